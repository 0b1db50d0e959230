import pytest

from exam_agent.core.sanitizer import sanitize_latex_output


def test_strips_fence_with_language_hint():
    raw = "```latex\n\\documentclass...\\end{document}\n```"
    assert sanitize_latex_output(raw) == "\\documentclass...\\end{document}"


def test_strips_bare_fence():
    assert sanitize_latex_output("```\nDOC\n```") == "DOC"


def test_other_language_hints():
    assert sanitize_latex_output("```tex\nX\n```") == "X"
    assert sanitize_latex_output("```LaTeX\nX\n```") == "X"


def test_plain_text_is_only_trimmed():
    assert sanitize_latex_output("  \\documentclass{article}\n\n") == "\\documentclass{article}"
    assert sanitize_latex_output("a ``` b") == "a ``` b"


def test_missing_closing_fence():
    assert sanitize_latex_output("```latex\nDOC") == "DOC"


def test_backslash_right_after_fence_is_content():
    assert sanitize_latex_output("```\\documentclass{article}```") == "\\documentclass{article}"


def test_empty_and_none():
    assert sanitize_latex_output("") == ""
    assert sanitize_latex_output(None) == ""
    assert sanitize_latex_output("```") == ""


def test_inline_fence_keeps_its_content():
    assert sanitize_latex_output("```DOC```") == "DOC"
    assert sanitize_latex_output("```latex DOC```") == "latex DOC"


def test_language_hint_at_end_of_text():
    assert sanitize_latex_output("```latex") == ""
    assert sanitize_latex_output("```latex\r\nDOC\r\n```") == "DOC"


@pytest.mark.parametrize(
    "raw",
    [
        "```latex\nDOC\n```",
        "  ```\nDOC\n```  ",
        "```\n```latex\nnested\n```\n```",
        "``````",
        "plain",
        "\n\n```python\nprint(1)\n```\n",
        "text ```latex\ninner\n``` tail",
        "```DOC```",
        "```latex DOC```",
    ],
)
def test_idempotent(raw):
    once = sanitize_latex_output(raw)
    assert sanitize_latex_output(once) == once
