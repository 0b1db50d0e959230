from __future__ import annotations

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

FILE_HANDLER_NAME = "exam_agent_file_handler"

# Root plus the server and app loggers; the named ones stop propagating so
# each record reaches the file once.
FILE_LOGGERS = ("", "uvicorn", "uvicorn.error", "uvicorn.access", "exam_agent")

_PROJECT_ROOT = Path(__file__).resolve().parents[2]


def setup_file_logging(*, log_file_path: str, level: int) -> None:
    """Attach a daily-rotating file handler (14 days kept). Safe to call twice."""
    if not log_file_path:
        return
    path = Path(log_file_path)
    if not path.is_absolute():
        path = _PROJECT_ROOT / path
    os.makedirs(path.parent, exist_ok=True)
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    for name in FILE_LOGGERS:
        logger = logging.getLogger(name)
        if any(getattr(h, "name", None) == FILE_HANDLER_NAME for h in logger.handlers):
            continue
        handler = TimedRotatingFileHandler(
            filename=str(path), when="midnight", backupCount=14, encoding="utf-8"
        )
        handler.setLevel(level)
        handler.setFormatter(fmt)
        handler.name = FILE_HANDLER_NAME
        logger.addHandler(handler)
        if logger.level == logging.NOTSET or logger.level > level:
            logger.setLevel(level)
        if name:
            logger.propagate = False


def silence_noisy_loggers() -> None:
    # The outbound request carries base64 attachments; keep it out of debug logs.
    for name in ("httpx", "httpcore", "openai", "multipart"):
        logging.getLogger(name).setLevel(logging.WARNING)
