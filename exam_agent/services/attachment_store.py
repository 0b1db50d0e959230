from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Tuple

from exam_agent.models.schemas import PDF_MIME, Attachment
from exam_agent.utils.errors import UnsupportedAttachmentError
from exam_agent.utils.observability import log_event

logger = logging.getLogger(__name__)


def is_supported_mime(mime_type: str | None) -> bool:
    mt = str(mime_type or "").strip().lower()
    return mt == PDF_MIME or mt.startswith("image/")


def filter_supported(files: Iterable[Attachment]) -> List[Attachment]:
    """Drop anything that is not a PDF or an image (drag-and-drop input)."""
    return [f for f in files if is_supported_mime(f.mime_type)]


class AttachmentStore:
    """Ordered collection of pending attachments."""

    def __init__(self) -> None:
        self._items: List[Attachment] = []

    def add(self, files: Sequence[Attachment]) -> Tuple[Attachment, ...]:
        files = list(files)
        rejected = [f.name for f in files if not is_supported_mime(f.mime_type)]
        if rejected:
            # All-or-nothing: a rejected batch leaves the store untouched.
            raise UnsupportedAttachmentError(
                f"Unsupported attachment type (PDF or image only): {', '.join(rejected)}"
            )
        self._items.extend(files)
        log_event(logger, "attachments_added", added=len(files), total=len(self._items))
        return self.list()

    def remove_at(self, index: int) -> Attachment:
        if index < 0 or index >= len(self._items):
            raise IndexError(f"attachment index out of range: {index}")
        removed = self._items.pop(index)
        log_event(logger, "attachment_removed", index=index, total=len(self._items))
        return removed

    def get(self, index: int) -> Attachment:
        if index < 0 or index >= len(self._items):
            raise IndexError(f"attachment index out of range: {index}")
        return self._items[index]

    def list(self) -> Tuple[Attachment, ...]:
        return tuple(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
