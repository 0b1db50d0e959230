from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parents[2]


def load_project_dotenv() -> bool:
    """
    Load `<project root>/.env` into `os.environ` without overriding real env vars.

    Settings reads `.env` on its own, but the OpenAI SDK and child processes
    only see `os.environ`.
    """
    path = _PROJECT_ROOT / ".env"
    if not path.exists():
        return False
    return bool(load_dotenv(path, override=False))
