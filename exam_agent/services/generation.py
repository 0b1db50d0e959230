"""Generation client for an OpenAI-compatible chat-completions endpoint.

One call per request: a single user message whose content is the instruction
text followed by one block per attachment, in order.
- images -> `image_url` blocks with a data URL
- PDFs   -> `file` blocks with a data URL

Notes:
- Retries here cover the transport only (connection errors / timeouts); a
  request that reached the provider and failed is surfaced as-is.
- Do not allow arbitrary base_url/model injection; use env-configured endpoints.
"""

import logging
from functools import partial
from typing import List, Optional

import httpx
from openai import APIConnectionError, APITimeoutError, OpenAI, OpenAIError
from pydantic import BaseModel
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from exam_agent.models.schemas import PDF_MIME, EncodedAttachment, GenerationRequest
from exam_agent.utils.errors import ProviderError
from exam_agent.utils.observability import trace_span
from exam_agent.utils.settings import get_settings

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (
    APIConnectionError,
    APITimeoutError,
    httpx.ReadTimeout,
    httpx.ConnectTimeout,
)


def _log_retry(op: str, model: Optional[str], retry_state):
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying %s (model=%s), attempt=%s, exception=%s",
        op,
        model,
        retry_state.attempt_number,
        exc,
    )


class GenerationResult(BaseModel):
    text: str
    raw: dict


class GenerationClient:
    def __init__(self):
        settings = get_settings()
        self.api_key = settings.openai_api_key
        self.base_url = settings.openai_base_url
        self.model = settings.exam_model
        self.timeout_seconds = int(settings.generation_timeout_seconds)
        self.max_attempts = max(1, int(settings.generation_max_attempts))
        self.max_tokens = int(settings.generation_max_tokens)

    def _build_openai_client(self) -> OpenAI:
        return OpenAI(
            base_url=self.base_url,
            api_key=self.api_key,
            timeout=float(self.timeout_seconds),
            # Retries are handled below with logging; keep the SDK from doubling them.
            max_retries=0,
        )

    def _attachment_block(self, attachment: EncodedAttachment) -> dict:
        if attachment.mime_type == PDF_MIME:
            return {
                "type": "file",
                "file": {
                    "filename": attachment.name or "document.pdf",
                    "file_data": attachment.data_url(),
                },
            }
        return {"type": "image_url", "image_url": {"url": attachment.data_url()}}

    def content_blocks(self, request: GenerationRequest) -> List[dict]:
        blocks: List[dict] = [{"type": "text", "text": request.instruction}]
        blocks.extend(self._attachment_block(a) for a in request.attachments)
        return blocks

    def _create(self, client: OpenAI, request: GenerationRequest):
        return client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": self.content_blocks(request)}],
            max_tokens=self.max_tokens,
        )

    @trace_span("generation.generate")
    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Send one generation request and return the raw response text.

        Empty output is a valid (if unhelpful) result, not an error.
        """
        if not self.api_key:
            raise ProviderError("OPENAI_API_KEY not configured")
        client = self._build_openai_client()
        retrying = Retrying(
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            stop=stop_after_attempt(self.max_attempts),
            before_sleep=partial(_log_retry, "generation.generate", self.model),
            reraise=True,
        )
        try:
            resp = retrying(self._create, client, request)
        except OpenAIError as e:
            raise ProviderError(str(e) or e.__class__.__name__) from e
        text = ""
        if resp.choices:
            text = resp.choices[0].message.content or ""
        return GenerationResult(text=text, raw=resp.to_dict())
