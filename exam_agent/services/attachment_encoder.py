from __future__ import annotations

import asyncio
import base64
import logging
from typing import List, Optional, Sequence

from exam_agent.models.schemas import Attachment, EncodedAttachment
from exam_agent.utils.errors import EncodingError
from exam_agent.utils.observability import trace_span
from exam_agent.utils.settings import get_settings

logger = logging.getLogger(__name__)


class AttachmentEncoder:
    """
    Convert attachments to base64 payloads for the outbound request.

    All reads start together; the result list follows the input order no
    matter which read finishes first. One failure fails the whole batch.
    """

    def __init__(self, *, max_bytes: Optional[int] = None) -> None:
        if max_bytes is None:
            max_bytes = int(get_settings().max_attachment_bytes)
        self.max_bytes = int(max_bytes)

    async def read_bytes(self, attachment: Attachment) -> bytes:
        # File reads block; keep them off the event loop.
        return await asyncio.to_thread(attachment.read_bytes)

    async def encode_one(self, attachment: Attachment) -> EncodedAttachment:
        data = await self.read_bytes(attachment)
        if self.max_bytes > 0 and len(data) > self.max_bytes:
            raise EncodingError(
                f"Attachment '{attachment.name}' exceeds {self.max_bytes // (1024 * 1024)}MB limit"
            )
        return EncodedAttachment(
            mime_type=attachment.mime_type,
            base64_payload=base64.b64encode(data).decode("ascii"),
            name=attachment.name,
        )

    @trace_span("attachments.encode_all")
    async def encode_all(self, attachments: Sequence[Attachment]) -> List[EncodedAttachment]:
        if not attachments:
            return []
        results = await asyncio.gather(
            *(self.encode_one(a) for a in attachments), return_exceptions=True
        )
        for attachment, result in zip(attachments, results):
            if isinstance(result, EncodingError):
                raise result
            if isinstance(result, BaseException):
                raise EncodingError(
                    f"Cannot read attachment '{attachment.name}': {result}"
                ) from result
        return list(results)


async def encode_all(attachments: Sequence[Attachment]) -> List[EncodedAttachment]:
    return await AttachmentEncoder().encode_all(attachments)
