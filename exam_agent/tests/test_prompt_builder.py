from exam_agent.core.latex_templates import get_latex_template
from exam_agent.models.schemas import Difficulty, ExamConfig, Language
from exam_agent.services.prompt_builder import build_instruction


def test_deterministic_for_identical_inputs():
    cfg = ExamConfig(topic="Phân số", grade="5", num_multiple_choice=8, num_essay=3)
    assert build_instruction(cfg, 2) == build_instruction(cfg, 2)
    assert build_instruction(cfg, 2) == build_instruction(ExamConfig(**cfg.model_dump()), 2)


def test_english_scaffold_contains_config_fields():
    cfg = ExamConfig(
        topic="Fractions",
        grade="7",
        difficulty=Difficulty.HARD,
        num_multiple_choice=10,
        num_essay=2,
        language=Language.EN,
    )
    text = build_instruction(cfg, 0)
    assert "Topic: Fractions" in text
    assert "GRADE 7" in text
    assert "Difficulty: Hard" in text
    assert "Multiple choice (10 questions)" in text
    assert "Written answers (2 questions)" in text
    assert "ATTACHED" not in text


def test_vietnamese_scaffold_and_localized_difficulty():
    cfg = ExamConfig(topic="Phép chia", grade="3", difficulty=Difficulty.EASY)
    text = build_instruction(cfg, 0)
    assert "Chủ đề: Phép chia" in text
    assert "Đối tượng: Lớp 3" in text
    assert "Độ khó: Dễ" in text
    assert "TIẾNG VIỆT" in text


def test_topic_fallback_and_attachment_count():
    text = build_instruction(ExamConfig(topic="", language=Language.EN), 3)
    assert "Topic: Based on the attached documents" in text
    assert "3 REFERENCE DOCUMENT(S) ATTACHED." in text

    text_vi = build_instruction(ExamConfig(topic=""), 2)
    assert "Chủ đề: Dựa theo tài liệu đính kèm" in text_vi
    assert "ĐÃ CÓ 2 TÀI LIỆU ĐÍNH KÈM." in text_vi


def test_data_policy_clause():
    vary = build_instruction(ExamConfig(topic="x", vary_data=True, language=Language.EN), 0)
    keep = build_instruction(ExamConfig(topic="x", vary_data=False, language=Language.EN), 0)
    assert "CHANGE THE NUMBERS" in vary and "KEEP THE NUMBERS" not in vary
    assert "KEEP THE NUMBERS" in keep and "CHANGE THE NUMBERS" not in keep


def test_figure_mode_clause():
    tikz = build_instruction(ExamConfig(topic="x", use_tikz=True), 0)
    placeholder = build_instruction(ExamConfig(topic="x", use_tikz=False), 0)
    assert "Tự động sinh mã TikZ" in tikz
    assert "\\includegraphics[width=5cm]{image_placeholder.png}" in placeholder
    assert "Tự động sinh mã TikZ" not in placeholder


def test_template_appended_verbatim_at_end():
    for lang in (Language.VI, Language.EN):
        text = build_instruction(ExamConfig(topic="x", language=lang), 0)
        template = get_latex_template(lang)
        assert text.endswith(template.rstrip("\n")) or text.endswith(template)
        assert "\\begin{questionbox}" in text


def test_custom_template_source():
    text = build_instruction(
        ExamConfig(topic="x", language=Language.EN),
        0,
        template_source=lambda lang: f"%% TEMPLATE {lang.value}",
    )
    assert text.rstrip().endswith("%% TEMPLATE en")
    assert "TEMPLATE (English):" in text
