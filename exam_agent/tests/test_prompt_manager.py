import pytest
from jinja2 import UndefinedError

from exam_agent.utils.prompt_manager import PromptManager, get_prompt_manager


def _write(tmp_path, name, body):
    (tmp_path / name).write_text(body, encoding="utf-8")


def test_variant_falls_back_to_base(tmp_path):
    _write(tmp_path, "p.yaml", "id: p\nversion: 1\ntemplate: 'base {{ x }}'\n")
    _write(tmp_path, "p__B.yaml", "id: p\nversion: 2\ntemplate: 'variant {{ x }}'\n")
    pm = PromptManager(str(tmp_path))
    assert pm.render("p.yaml", x=1) == "base 1"
    assert pm.render("p.yaml", variant="B", x=1) == "variant 1"
    assert pm.render("p.yaml", variant="C", x=1) == "base 1"
    assert pm.meta("p.yaml", variant="B")["version"] == 2


def test_missing_variable_raises(tmp_path):
    _write(tmp_path, "p.yaml", "template: 'hello {{ name }}'\n")
    pm = PromptManager(str(tmp_path))
    with pytest.raises(UndefinedError):
        pm.render("p.yaml")


def test_options_returns_copy(tmp_path):
    _write(tmp_path, "p.yaml", "template: x\noptions:\n  topic_fallback: general\n")
    pm = PromptManager(str(tmp_path))
    opts = pm.options("p.yaml")
    opts["topic_fallback"] = "changed"
    assert pm.options("p.yaml")["topic_fallback"] == "general"


@pytest.mark.parametrize("language", ["vi", "en"])
def test_bundled_scaffolds_declare_clause_tables(language):
    pm = get_prompt_manager()
    name = f"exam_instruction_{language}.yaml"
    opts = pm.options(name)
    assert set(opts["difficulty"]) == {"EASY", "MEDIUM", "HARD"}
    assert set(opts["data_policy"]) == {"vary", "preserve"}
    assert set(opts["figure_mode"]) == {"tikz", "placeholder"}
    assert opts["topic_fallback"]
    assert pm.meta(name)["language"] == language
