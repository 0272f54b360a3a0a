from chatmark import StaticView, render_static
from chatmark.core.config import SessionConfig


CONTENT = (
    "**Bold** with math \\(x^2\\) and [a link](https://example.com).\n\n"
    "```mermaid\ngraph TD\nA-->B\n```\n\n"
    + "\n".join(f"row_{index} = {index}" for index in range(40))
)


def test_render_static_returns_wrapped_markup() -> None:
    view = render_static(CONTENT)

    assert isinstance(view, StaticView)
    html = view.to_html()
    assert html.startswith('<div class="markdown-body"')
    assert "font-size: 14px" in html
    assert "<strong>Bold</strong>" in html
    assert 'target="_blank"' in html


def test_static_render_normalizes_before_parsing() -> None:
    view = render_static(CONTENT)

    assert "$x^2$" in view.normalized
    assert "arithmatex" in view.html


def test_static_render_has_no_interactive_affordances() -> None:
    view = render_static("```python\n" + "\n".join(f"x{i} = {i}" for i in range(40)) + "\n```")

    html = view.to_html()
    assert 'data-language="python"' in html
    assert "data-code-block" not in html
    assert "copy-code-button" not in html
    assert "show-hide-button" not in html


def test_static_render_never_previews_artifacts() -> None:
    html = render_static(CONTENT).to_html()

    assert "language-mermaid" in html
    assert "no-dark mermaid" not in html
    assert "<iframe" not in html


def test_static_render_keeps_one_document() -> None:
    html = render_static("First\n\nSecond\n\nThird").to_html()

    assert "markdown-paragraph" not in html
    assert "markdown-paragraph-placeholder" not in html
    assert html.count('dir="auto"') == 4


def test_static_render_wraps_bare_documents_in_fences() -> None:
    view = render_static(
        "<!DOCTYPE html>\n<html><body><p>Hi</p></body></html>", config=SessionConfig()
    )

    assert view.normalized.startswith("\n```html\n<!DOCTYPE html>")
    assert "language-html" in view.html
    assert "&lt;p&gt;Hi&lt;/p&gt;" in view.html
