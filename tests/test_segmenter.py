import pytest

from chatmark.core.normalizer import FENCE
from chatmark.core.segmenter import (
    CodeBlock,
    Prose,
    classify,
    count_fences,
    heal_fences,
    placeholder_text,
    segment,
    split_into_paragraphs,
)


def test_split_on_blank_lines() -> None:
    assert split_into_paragraphs("a\n\nb\n\nc") == ["a", "b", "c"]


def test_fenced_block_with_blank_line_stays_whole() -> None:
    text = "```\nx\n\ny\n```"
    assert split_into_paragraphs(text) == [text]


def test_runs_of_newlines_and_blank_segments_are_dropped() -> None:
    assert split_into_paragraphs("\n\na\n\n\n\n   \n\nb\n\n") == ["a", "b"]


def test_empty_text_yields_no_paragraphs() -> None:
    assert split_into_paragraphs("") == []


def test_single_newline_does_not_split() -> None:
    assert split_into_paragraphs("line one\nline two") == ["line one\nline two"]


@pytest.mark.parametrize(
    "text",
    [
        "",
        "```",
        "```python\nprint(1)",
        "a\n\n```\nb\n```\n\n```js\nc",
        "``` ``` ```",
    ],
)
def test_healed_text_has_even_fence_count(text: str) -> None:
    assert count_fences(heal_fences(text)) % 2 == 0


def test_unterminated_fence_is_closed() -> None:
    paragraphs = split_into_paragraphs("Intro\n\n```python\nprint(1)\n\nprint(2)")
    assert paragraphs == ["Intro", "```python\nprint(1)\n\nprint(2)\n```"]


def test_rejoining_reproduces_balanced_input() -> None:
    text = "Title\n\n```py\na = 1\n\nb = 2\n```\n\nClosing words\nwith a break"
    assert "\n\n".join(split_into_paragraphs(text)) == heal_fences(text)


def test_prose_and_fence_on_the_same_paragraph_stay_together() -> None:
    text = "Look:\n```\ncode\n```"
    assert split_into_paragraphs(text) == [text]


def test_classify_distinguishes_code_and_prose() -> None:
    assert classify("```rust\nfn main() {}\n```") == CodeBlock(
        language="rust", text="```rust\nfn main() {}\n```"
    )
    assert classify("```\nplain\n```").language == ""
    assert classify("Hello") == Prose(text="Hello")


def test_segment_returns_typed_paragraphs() -> None:
    result = segment("Hi\n\n```sh\nls\n```")
    assert [type(item) for item in result] == [Prose, CodeBlock]


def test_placeholder_truncates_prose() -> None:
    paragraph = "x" * 75
    assert placeholder_text(paragraph) == "x" * 60 + "..."
    assert placeholder_text("short") == "short"


def test_placeholder_for_code_keeps_first_line() -> None:
    paragraph = "```python\nimport os\nprint(os.name)\n```"
    assert placeholder_text(paragraph) == f"{FENCE}python...{FENCE}"


def test_placeholder_limit_is_configurable() -> None:
    assert placeholder_text("abcdef", limit=3) == "abc..."
