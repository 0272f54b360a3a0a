"""Split normalised text into independently renderable paragraphs.

Segmentation is a pure function of its input and is recomputed on every
content change. Fenced code regions are swapped for positional tokens before
splitting on blank lines, so a fence is never divided between two paragraphs
even when its body contains blank lines. Unterminated fences, typical of a
stream cut mid-block, are closed synthetically instead of being rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from .normalizer import FENCE


_FENCED_BLOCK = re.compile(r"```[\s\S]*?```")
_PARAGRAPH_BREAK = re.compile(r"\n\n+")
# Tokens are delimited by private-use code points.
_TOKEN_TEMPLATE = "\ue000CODE_BLOCK_{index}\ue001"
_TOKEN_PATTERN = re.compile("\ue000CODE_BLOCK_(\\d+)\ue001")
_ELLIPSIS = "..."


@dataclass(frozen=True, slots=True)
class Prose:
    """Paragraph made of plain markup text."""

    text: str


@dataclass(frozen=True, slots=True)
class CodeBlock:
    """Paragraph holding one complete fenced code block."""

    language: str
    text: str


Paragraph = Prose | CodeBlock


def count_fences(text: str) -> int:
    """Return the number of triple-backtick markers in ``text``."""
    return text.count(FENCE)


def heal_fences(text: str) -> str:
    """Append a closing fence when ``text`` ends inside a fenced region."""
    if count_fences(text) % 2:
        return f"{text}\n{FENCE}"
    return text


def split_into_paragraphs(text: str) -> list[str]:
    """Return the ordered paragraph strings of ``text``."""
    healed = heal_fences(text)
    blocks: list[str] = []

    def _stash(match: re.Match[str]) -> str:
        blocks.append(match.group(0))
        return _TOKEN_TEMPLATE.format(index=len(blocks) - 1)

    tokenised = _FENCED_BLOCK.sub(_stash, healed)

    def _restore(match: re.Match[str]) -> str:
        index = int(match.group(1))
        return blocks[index] if index < len(blocks) else match.group(0)

    return [
        _TOKEN_PATTERN.sub(_restore, chunk)
        for chunk in _PARAGRAPH_BREAK.split(tokenised)
        if chunk.strip()
    ]


def classify(paragraph: str) -> Paragraph:
    """Return the typed form of a paragraph string."""
    if paragraph.startswith(FENCE):
        info = paragraph.split("\n", 1)[0][len(FENCE) :].strip()
        language = info.split()[0] if info else ""
        return CodeBlock(language=language, text=paragraph)
    return Prose(text=paragraph)


def segment(text: str) -> list[Paragraph]:
    """Split ``text`` and classify every paragraph."""
    return [classify(paragraph) for paragraph in split_into_paragraphs(text)]


def placeholder_text(paragraph: str, *, limit: int = 60) -> str:
    """Return the cheap preview shown before a paragraph is rendered."""
    if paragraph.startswith(FENCE):
        first_line = paragraph.split("\n", 1)[0]
        return f"{FENCE}{first_line[len(FENCE) :]}{_ELLIPSIS}{FENCE}"
    if len(paragraph) > limit:
        return paragraph[:limit] + _ELLIPSIS
    return paragraph


__all__ = [
    "CodeBlock",
    "Paragraph",
    "Prose",
    "classify",
    "count_fences",
    "heal_fences",
    "placeholder_text",
    "segment",
    "split_into_paragraphs",
]
