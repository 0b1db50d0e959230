"""
Exam generation request pipeline.

State machine (one instance per session):

    IDLE --submit--> REQUESTING --ok--> SUCCEEDED
                                 \\-err-> FAILED

SUCCEEDED and FAILED accept a new submission just like IDLE; every submission
starts a fresh cycle and clears the previous result immediately.

Guards on submit:
- empty topic AND no attachments -> ExamValidationError, state unchanged,
  nothing is encoded or sent.
- a request already in flight    -> PipelineBusyError (rejected, not queued).

While REQUESTING the pipeline suspends only on attachment encoding and on the
single outbound call. Any failure in between collapses to FAILED with one
human-readable message; no partial attachment list is ever sent and there is
no automatic retry.

Cancellation: there is no cancel primitive. If the task awaiting `submit()` is
itself cancelled, the pipeline returns to IDLE (busy flag cleared) and the
CancelledError propagates; a provider call already running in its worker
thread is left to finish and its result is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Sequence

from exam_agent.core.sanitizer import sanitize_latex_output
from exam_agent.models.schemas import (
    Attachment,
    ExamConfig,
    GenerationRequest,
    Language,
)
from exam_agent.services.attachment_encoder import AttachmentEncoder
from exam_agent.services.prompt_builder import build_instruction
from exam_agent.utils.errors import (
    ExamValidationError,
    GenerationTimeoutError,
    PipelineBusyError,
)
from exam_agent.utils.observability import log_event

logger = logging.getLogger(__name__)

VALIDATION_MESSAGES = {
    Language.VI: "Vui lòng nhập chủ đề kiểm tra hoặc tải lên tài liệu.",
    Language.EN: "Please enter an exam topic or upload a document.",
}

FAILURE_FALLBACK_MESSAGES = {
    Language.VI: "Đã có lỗi xảy ra khi tạo đề.",
    Language.EN: "An error occurred while generating the exam.",
}


class GenerationStatus(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class GenerationState:
    status: GenerationStatus = GenerationStatus.IDLE
    text: str = ""
    error: Optional[str] = None

    @property
    def accepting_input(self) -> bool:
        return self.status != GenerationStatus.REQUESTING

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "text": self.text,
            "error": self.error,
            "accepting_input": self.accepting_input,
        }


IDLE = GenerationState()
REQUESTING = GenerationState(status=GenerationStatus.REQUESTING)


class TextGenerator(Protocol):
    """External generation capability: returns an object with `.text` or a str."""

    def generate(self, request: GenerationRequest) -> Any: ...


StateListener = Callable[[GenerationState], None]


def _response_text(result: Any) -> str:
    if result is None:
        return ""
    if isinstance(result, str):
        return result
    return str(getattr(result, "text", "") or "")


class RequestPipeline:
    def __init__(
        self,
        generator: TextGenerator,
        *,
        encoder: Optional[AttachmentEncoder] = None,
        instruction_builder: Callable[[ExamConfig, int], str] = build_instruction,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.generator = generator
        self.encoder = encoder or AttachmentEncoder()
        self.instruction_builder = instruction_builder
        self.timeout_seconds = timeout_seconds
        self._state: GenerationState = IDLE
        self._busy = False
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._busy

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, state: GenerationState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.warning("State listener failed: %s", e)

    def validate(self, config: ExamConfig, attachments: Sequence[Attachment]) -> None:
        if not config.topic.strip() and not attachments:
            raise ExamValidationError(VALIDATION_MESSAGES[config.language])

    async def _call_generator(self, request: GenerationRequest) -> Any:
        call = asyncio.ensure_future(asyncio.to_thread(self.generator.generate, request))
        if not self.timeout_seconds:
            return await call
        # Not wait_for: a TimeoutError raised by the provider itself must stay
        # distinct from the pipeline deadline.
        try:
            done, _ = await asyncio.wait({call}, timeout=float(self.timeout_seconds))
        except asyncio.CancelledError:
            call.cancel()
            raise
        if call not in done:
            call.cancel()
            raise GenerationTimeoutError(
                f"Generation timed out after {self.timeout_seconds}s"
            )
        return call.result()

    def _failure_message(self, config: ExamConfig, exc: BaseException) -> str:
        message = str(exc).strip()
        return message or FAILURE_FALLBACK_MESSAGES[config.language]

    async def submit(
        self, config: ExamConfig, attachments: Sequence[Attachment] = ()
    ) -> GenerationState:
        if self._busy:
            log_event(logger, "exam_submit_rejected", level="warning", reason="busy")
            raise PipelineBusyError("A generation request is already in progress")
        try:
            self.validate(config, attachments)
        except ExamValidationError:
            log_event(logger, "exam_submit_rejected", reason="validation")
            raise

        snapshot = tuple(attachments)
        self._busy = True
        self._publish(REQUESTING)
        log_event(
            logger,
            "exam_generation_started",
            language=config.language.value,
            grade=config.grade,
            attachments=len(snapshot),
        )
        try:
            encoded = await self.encoder.encode_all(snapshot) if snapshot else []
            instruction = self.instruction_builder(config, len(snapshot))
            request = GenerationRequest(instruction=instruction, attachments=encoded)
            result = await self._call_generator(request)
            text = sanitize_latex_output(_response_text(result))
        except asyncio.CancelledError:
            self._publish(IDLE)
            raise
        except Exception as e:
            message = self._failure_message(config, e)
            log_event(
                logger,
                "exam_generation_failed",
                level="warning",
                error_type=e.__class__.__name__,
                error=message,
            )
            self._publish(GenerationState(status=GenerationStatus.FAILED, error=message))
        else:
            log_event(logger, "exam_generation_succeeded", chars=len(text))
            self._publish(GenerationState(status=GenerationStatus.SUCCEEDED, text=text))
        finally:
            self._busy = False
        return self._state
