from types import SimpleNamespace

from exam_agent.cli import build_parser, main
from exam_agent.services.preview import PreviewRegistry
from exam_agent.services.session import ExamSession


class _FakeGenerator:
    def __init__(self, text="```latex\n\\begin{document}\\end{document}\n```"):
        self.text = text
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        return SimpleNamespace(text=self.text)


def _session(gen):
    return ExamSession(generator=gen, registry=PreviewRegistry())


def test_parser_defaults_match_config_defaults():
    args = build_parser().parse_args(["generate"])
    assert args.grade == "6"
    assert args.difficulty == "MEDIUM"
    assert args.num_multiple_choice == "10"
    assert args.num_essay == "2"
    assert args.use_tikz is True
    assert args.vary_data is False
    assert args.language == "vi"


def test_parser_uppercases_difficulty():
    args = build_parser().parse_args(["generate", "--difficulty", "hard", "--no-tikz"])
    assert args.difficulty == "HARD"
    assert args.use_tikz is False


def test_generate_writes_sanitized_output(tmp_path):
    gen = _FakeGenerator()
    out = tmp_path / "exam.tex"
    code = main(
        ["generate", "--topic", "Fractions", "--language", "en", "--mc", "3", "-o", str(out)],
        session=_session(gen),
    )
    assert code == 0
    assert out.read_text(encoding="utf-8") == "\\begin{document}\\end{document}\n"
    assert len(gen.requests) == 1
    assert "Section A: Multiple choice (3 questions)" in gen.requests[0].instruction


def test_generate_with_attachment_only(tmp_path):
    doc = tmp_path / "worksheet.pdf"
    doc.write_bytes(b"%PDF-1.4")
    notes = tmp_path / "notes.txt"
    notes.write_text("skip me")
    gen = _FakeGenerator()
    code = main(
        ["generate", "--attach", str(doc), "--attach", str(notes), "-o", str(tmp_path / "o.tex")],
        session=_session(gen),
    )
    assert code == 0
    assert [a.name for a in gen.requests[0].attachments] == ["worksheet.pdf"]


def test_generate_without_topic_or_attachment_exits_2(capsys):
    gen = _FakeGenerator()
    code = main(["generate"], session=_session(gen))
    assert code == 2
    assert gen.requests == []
    assert "error:" in capsys.readouterr().err


def test_generate_failure_exits_1(capsys):
    class _Broken:
        def generate(self, request):
            raise RuntimeError("upstream down")

    code = main(["generate", "--topic", "x"], session=_session(_Broken()))
    assert code == 1
    assert "upstream down" in capsys.readouterr().err
