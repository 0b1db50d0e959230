"""
Instruction text for exam generation.

`build_instruction(config, attachment_count)` is pure: it picks the scaffold
for `config.language` (prompts/exam_instruction_<lang>.yaml), fills in the
config fields and the option clauses, and appends the LaTeX template verbatim.
Identical inputs always give a byte-identical string.

Option clauses (declared under `options:` in each scaffold):
- data_policy.vary / data_policy.preserve: change the figures from the source
  documents vs. keep them (or write standard problems).
- figure_mode.tikz / figure_mode.placeholder: inline TikZ diagrams vs. an
  \\includegraphics placeholder for a real image.
"""

from __future__ import annotations

from typing import Callable, Optional

from exam_agent.core.latex_templates import get_latex_template
from exam_agent.models.schemas import ExamConfig, Language
from exam_agent.utils.prompt_manager import PromptManager, get_prompt_manager

TemplateSource = Callable[[Language], str]


def _scaffold_name(language: Language) -> str:
    return f"exam_instruction_{Language(language).value}.yaml"


def build_instruction(
    config: ExamConfig,
    attachment_count: int,
    *,
    template_source: Optional[TemplateSource] = None,
    prompt_manager: Optional[PromptManager] = None,
) -> str:
    pm = prompt_manager or get_prompt_manager()
    name = _scaffold_name(config.language)
    opts = pm.options(name)
    latex_template = (template_source or get_latex_template)(config.language)

    return pm.render(
        name,
        attachment_count=max(0, int(attachment_count)),
        topic=config.topic.strip() or opts["topic_fallback"],
        grade=config.grade,
        difficulty=opts["difficulty"][config.difficulty.value],
        num_multiple_choice=config.num_multiple_choice,
        num_essay=config.num_essay,
        data_clause=opts["data_policy"][config.data_policy.value],
        figure_clause=opts["figure_mode"][config.figure_mode.value],
        template_label=opts["template_label"],
        latex_template=latex_template,
    )
