from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    # 4xx - Client errors
    INVALID_REQUEST = "E4000"
    NOT_FOUND = "E4004"
    BUSY = "E4090"
    UNSUPPORTED_MEDIA = "E4150"
    VALIDATION_ERROR = "E4220"

    # 5xx - Service errors
    SERVICE_ERROR = "E5000"
    PROVIDER_ERROR = "E5020"


class ExamAgentError(Exception):
    """Base error for exam agent."""


class ExamValidationError(ExamAgentError):
    """Submission rejected before any request was built (no topic, no attachments)."""


class UnsupportedAttachmentError(ExamAgentError):
    """Attachment MIME type is neither application/pdf nor image/*."""


class EncodingError(ExamAgentError):
    """An attachment's bytes could not be read or encoded."""


class ProviderError(ExamAgentError):
    """The generation provider failed or is not configured."""


class GenerationTimeoutError(ProviderError):
    """The pipeline's overall timeout elapsed before the provider answered."""


class PipelineBusyError(ExamAgentError):
    """A generation request is already in flight."""


def error_code_for_http_status(status_code: int) -> ErrorCode:
    if status_code == 404:
        return ErrorCode.NOT_FOUND
    if status_code == 409:
        return ErrorCode.BUSY
    if status_code == 415:
        return ErrorCode.UNSUPPORTED_MEDIA
    if status_code == 422:
        return ErrorCode.VALIDATION_ERROR
    if status_code == 502:
        return ErrorCode.PROVIDER_ERROR
    if 400 <= int(status_code) < 500:
        return ErrorCode.INVALID_REQUEST
    return ErrorCode.SERVICE_ERROR


def build_error_payload(
    *,
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Canonical error shape for HTTP JSON responses.

    `error` is the primary string message; `message` is kept as an alias.
    """
    payload: Dict[str, Any] = {"code": code.value, "error": str(message), "message": str(message)}
    if details is not None:
        payload["details"] = details
    if request_id:
        payload["request_id"] = str(request_id)
    return payload
