"""LaTeX document templates, one per output language.

The prompt builder treats the template as an opaque string and appends it
verbatim at the end of the instruction text.
"""

from __future__ import annotations

import os
from functools import lru_cache

from exam_agent.models.schemas import Language

_TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")


@lru_cache(maxsize=4)
def get_latex_template(language: Language | str) -> str:
    lang = Language(language)
    path = os.path.join(_TEMPLATE_DIR, f"exam_{lang.value}.tex")
    with open(path, "r", encoding="utf-8") as f:
        return f.read()
