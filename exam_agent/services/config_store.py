from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from exam_agent.models.schemas import ExamConfig

logger = logging.getLogger(__name__)


class ConfigStore:
    """
    Holds the current ExamConfig.

    The stored value is never mutated in place: `set()` builds a new
    ExamConfig from the current fields merged with the given ones, so the
    count clamps run at the write boundary on every edit.
    """

    def __init__(self, initial: Optional[ExamConfig] = None) -> None:
        self._config = initial or ExamConfig()

    def get(self) -> ExamConfig:
        return self._config

    def set(self, partial: Optional[Mapping[str, Any]] = None, **fields: Any) -> ExamConfig:
        changes = dict(partial or {})
        changes.update(fields)
        merged = self._config.model_dump()
        merged.update(changes)
        # Raises pydantic.ValidationError on unknown fields / bad grade; the
        # stored value stays untouched in that case.
        self._config = ExamConfig.model_validate(merged)
        return self._config

    def reset(self) -> ExamConfig:
        self._config = ExamConfig()
        return self._config
