from __future__ import annotations

import logging
from typing import Optional

from exam_agent.models.schemas import ExamConfig
from exam_agent.services.attachment_store import AttachmentStore
from exam_agent.services.config_store import ConfigStore
from exam_agent.services.generation import GenerationClient
from exam_agent.services.pipeline import GenerationState, RequestPipeline, TextGenerator
from exam_agent.services.preview import PreviewManager, PreviewRegistry
from exam_agent.utils.settings import get_settings

logger = logging.getLogger(__name__)


class ExamSession:
    """Process-local exam workspace: config, attachments, preview and pipeline."""

    def __init__(
        self,
        *,
        generator: Optional[TextGenerator] = None,
        registry: Optional[PreviewRegistry] = None,
        initial_config: Optional[ExamConfig] = None,
    ) -> None:
        settings = get_settings()
        self.config = ConfigStore(initial_config)
        self.attachments = AttachmentStore()
        self.preview = PreviewManager(
            registry or PreviewRegistry(url_prefix=settings.preview_url_prefix)
        )
        self.pipeline = RequestPipeline(
            generator or GenerationClient(),
            # Overall timeout covers every transport attempt of the single call.
            timeout_seconds=float(settings.generation_timeout_seconds)
            * max(1, int(settings.generation_max_attempts)),
        )

    async def generate(self) -> GenerationState:
        return await self.pipeline.submit(self.config.get(), self.attachments.list())

    def close(self) -> None:
        # Mandatory teardown: a live preview must never outlive the session.
        self.preview.close()

    def __enter__(self) -> "ExamSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


_DEFAULT_SESSION: Optional[ExamSession] = None


def get_exam_session() -> ExamSession:
    global _DEFAULT_SESSION
    if _DEFAULT_SESSION is None:
        _DEFAULT_SESSION = ExamSession()
    return _DEFAULT_SESSION


def set_exam_session(session: Optional[ExamSession]) -> None:
    """Replace the process session (closing the previous one); None resets it."""
    global _DEFAULT_SESSION
    if _DEFAULT_SESSION is not None and _DEFAULT_SESSION is not session:
        _DEFAULT_SESSION.close()
    _DEFAULT_SESSION = session
