from __future__ import annotations

import re

# A language hint (```latex, ```tex) only counts when the line ends right after
# it; otherwise the text following the backticks is content ("```DOC```").
_FENCE_OPEN_HINT = re.compile(r"^```[A-Za-z0-9_+.-]*(?=\r?\n|$)")
_FENCE_OPEN = re.compile(r"^```")
_FENCE_CLOSE = re.compile(r"```$")


def sanitize_latex_output(text: str | None) -> str:
    """
    Strip a surrounding Markdown code fence from model output.

    - "```latex\\n...\\n```" -> "..."
    - "```\\n...\\n```"      -> "..."
    - "```...```"           -> "..."
    - anything else          -> unchanged apart from trimming

    Idempotent: the result never starts with a fence and is already trimmed.
    """
    s = (text or "").strip()
    while s.startswith("```"):
        opened = _FENCE_OPEN_HINT.sub("", s, count=1)
        if opened == s:
            opened = _FENCE_OPEN.sub("", s, count=1)
        s = _FENCE_CLOSE.sub("", opened.rstrip(), count=1).strip()
    return s
