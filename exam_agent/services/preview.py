"""Transient attachment previews.

A preview is a revocable URL pointing at an attachment's bytes, the server-side
equivalent of a browser object URL. At most one preview is live per manager:
opening a new one releases the previous one first, and `close()` (or leaving a
`with` block, or session teardown) releases whatever is live. Release happens
exactly once per resource.
"""

from __future__ import annotations

import logging
import uuid
from typing import Dict, Optional, Tuple

from exam_agent.models.schemas import PDF_MIME, Attachment, PreviewKind, PreviewResource
from exam_agent.utils.observability import log_event

logger = logging.getLogger(__name__)


class PreviewRegistry:
    """In-memory store of revocable blob URLs; used from the event loop only."""

    def __init__(self, url_prefix: str = "blob:exam-agent/") -> None:
        self.url_prefix = url_prefix
        self._blobs: Dict[str, Tuple[bytes, str]] = {}

    def create(self, data: bytes, mime_type: str) -> str:
        token = uuid.uuid4().hex
        self._blobs[token] = (bytes(data), str(mime_type))
        return f"{self.url_prefix}{token}"

    def token_of(self, url: str) -> str:
        s = str(url or "")
        if s.startswith(self.url_prefix):
            return s[len(self.url_prefix) :]
        return s

    def revoke(self, url: str) -> bool:
        return self._blobs.pop(self.token_of(url), None) is not None

    def resolve(self, url_or_token: str) -> Tuple[bytes, str]:
        """Return (bytes, mime_type); KeyError once revoked."""
        return self._blobs[self.token_of(url_or_token)]

    @property
    def live_count(self) -> int:
        return len(self._blobs)


def classify_preview_kind(mime_type: str) -> PreviewKind:
    if str(mime_type or "").strip().lower() == PDF_MIME:
        return PreviewKind.PDF
    return PreviewKind.IMAGE


class PreviewManager:
    def __init__(self, registry: Optional[PreviewRegistry] = None) -> None:
        self.registry = registry or PreviewRegistry()
        self._current: Optional[PreviewResource] = None

    @property
    def current(self) -> Optional[PreviewResource]:
        return self._current

    def open(self, attachment: Attachment) -> PreviewResource:
        # One live resource: release the previous one before creating a new one.
        self.close()
        data = attachment.read_bytes()
        url = self.registry.create(data, attachment.mime_type)
        self._current = PreviewResource(
            url=url,
            kind=classify_preview_kind(attachment.mime_type),
            name=attachment.name,
        )
        log_event(
            logger,
            "preview_opened",
            name=attachment.name,
            kind=self._current.kind.value,
            size=len(data),
        )
        return self._current

    def close(self) -> None:
        resource, self._current = self._current, None
        if resource is None:
            return
        self.registry.revoke(resource.url)
        log_event(logger, "preview_released", name=resource.name)

    # Teardown hook for the owning session / app lifespan.
    shutdown = close

    def __enter__(self) -> "PreviewManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False
