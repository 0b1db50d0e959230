from __future__ import annotations

# Load a local `.env` early so `python -m exam_agent.cli` picks up provider keys
# without a manual `export` in dev.
try:
    from exam_agent.utils.env import load_project_dotenv

    load_project_dotenv()
except Exception:
    # Never hard-fail import for optional dev convenience.
    pass
