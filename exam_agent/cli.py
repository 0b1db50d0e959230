"""
Command line entry point.

    python -m exam_agent.cli generate --topic "Fractions" --grade 6 --language en -o exam.tex
    python -m exam_agent.cli generate --attach worksheet.pdf --attach figure.png --vary-data
    python -m exam_agent.cli serve --port 8000
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from exam_agent.models.schemas import Attachment, Difficulty, Language
from exam_agent.services.attachment_store import filter_supported
from exam_agent.services.pipeline import GenerationStatus
from exam_agent.services.session import ExamSession
from exam_agent.utils.errors import ExamAgentError
from exam_agent.utils.logging_setup import silence_noisy_loggers

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="exam-agent", description="LaTeX math exam generator")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate one exam and write the LaTeX source")
    gen.add_argument("--topic", default="")
    gen.add_argument("--grade", default="6", choices=[str(g) for g in range(1, 13)])
    gen.add_argument(
        "--difficulty",
        default=Difficulty.MEDIUM.value,
        choices=[d.value for d in Difficulty],
        type=str.upper,
    )
    gen.add_argument("--mc", dest="num_multiple_choice", default="10", help="multiple-choice items (0-50)")
    gen.add_argument("--essay", dest="num_essay", default="2", help="essay items (0-10)")
    gen.add_argument("--no-tikz", dest="use_tikz", action="store_false", help="use image placeholders instead of TikZ")
    gen.add_argument("--vary-data", action="store_true", help="change the numbers from attached documents")
    gen.add_argument("--language", default=Language.VI.value, choices=[lang.value for lang in Language])
    gen.add_argument("--attach", action="append", default=[], metavar="FILE", help="PDF or image (repeatable)")
    gen.add_argument("-o", "--output", default="-", help="output file ('-' for stdout)")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def _load_attachments(paths: List[str]) -> List[Attachment]:
    files = [Attachment.from_path(p) for p in paths]
    supported = filter_supported(files)
    for f in files:
        if f not in supported:
            logger.warning("Skipping unsupported attachment: %s (%s)", f.name, f.mime_type)
    return supported


async def _generate(args: argparse.Namespace, session: ExamSession) -> int:
    session.config.set(
        topic=args.topic,
        grade=args.grade,
        difficulty=args.difficulty,
        num_multiple_choice=args.num_multiple_choice,
        num_essay=args.num_essay,
        use_tikz=args.use_tikz,
        vary_data=args.vary_data,
        language=args.language,
    )
    session.attachments.add(_load_attachments(args.attach))
    try:
        state = await session.generate()
    except ExamAgentError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    if state.status != GenerationStatus.SUCCEEDED:
        print(f"error: {state.error}", file=sys.stderr)
        return 1
    if args.output == "-":
        sys.stdout.write(state.text + "\n")
    else:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(state.text + "\n")
        print(f"wrote {args.output}", file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None, *, session: Optional[ExamSession] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    silence_noisy_loggers()

    if args.command == "serve":
        import uvicorn

        uvicorn.run("exam_agent.main:app", host=args.host, port=args.port)
        return 0

    with (session or ExamSession()) as s:
        return asyncio.run(_generate(args, s))


if __name__ == "__main__":
    sys.exit(main())
