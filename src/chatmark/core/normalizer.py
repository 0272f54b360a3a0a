"""Rewrite math delimiters and bare HTML documents into renderer-friendly markup.

Both helpers are total: any input string, including the empty string, yields a
string. Fenced code blocks and inline code spans are never modified.
"""

from __future__ import annotations

import re


FENCE = "```"

# Alternatives are tried left to right at each position, so a code span is
# consumed whole before any bracket inside it can match. A fence still open
# while streaming runs to the end of the text.
_BRACKETS_PATTERN = re.compile(
    r"(```[\s\S]*?```|```[\s\S]*$|`.*?`)"
    r"|\\\[([\s\S]*?[^\\])\\\]"
    r"|\\\((.*?)\\\)"
)

_DOCTYPE_PATTERN = re.compile(r"(`*?)(\w*?)([\n\r]*?)(<!DOCTYPE html>)")
_BODY_END_PATTERN = re.compile(r"(</body>)([\r\n\s]*?)(</html>)([\n\r]*)(`*)([\n\r]*?)")
_HTML_END_PATTERN = re.compile(r"</html>[\n\r]*")


def escape_brackets(text: str) -> str:
    r"""Rewrite ``\[...\]`` to ``$$...$$`` and ``\(...\)`` to ``$...$`` outside code."""

    def _substitute(match: re.Match[str]) -> str:
        code, display, inline = match.groups()
        if code:
            return code
        if display:
            return f"$${display}$$"
        if inline:
            return f"${inline}$"
        return match.group(0)

    return _BRACKETS_PATTERN.sub(_substitute, text)


def try_wrap_html_code(text: str) -> str:
    """Fence a bare ``<!DOCTYPE html>`` document so it renders as an html code block.

    Text that already contains a fence marker anywhere is returned unchanged.
    """
    if FENCE in text:
        return text

    def _open(match: re.Match[str]) -> str:
        quote_start, _lang, _newline, doctype = match.groups()
        return match.group(0) if quote_start else f"\n{FENCE}html\n{doctype}"

    def _close(match: re.Match[str]) -> str:
        body_end, space, html_end, _newline, quote_end, _trailing = match.groups()
        return match.group(0) if quote_end else f"{body_end}{space}{html_end}\n{FENCE}\n"

    wrapped = _BODY_END_PATTERN.sub(_close, _DOCTYPE_PATTERN.sub(_open, text))
    if wrapped.count(FENCE) % 2 == 0:
        return wrapped

    # Documents without a </body></html> pair (or still streaming) close after
    # the last </html>, or at the end of the text.
    endings = list(_HTML_END_PATTERN.finditer(wrapped))
    tail = endings[-1] if endings else None
    if tail is not None and FENCE not in wrapped[tail.end() :]:
        return f"{wrapped[: tail.start()]}</html>\n{FENCE}\n{wrapped[tail.end() :]}"
    return f"{wrapped}\n{FENCE}\n"


def normalize(text: str) -> str:
    """Apply every normalisation step in the order the renderer expects."""
    return try_wrap_html_code(escape_brackets(text))


__all__ = ["FENCE", "escape_brackets", "normalize", "try_wrap_html_code"]
