from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import PlainTextResponse, Response
from pydantic import ValidationError

from exam_agent.models.schemas import Attachment
from exam_agent.services.attachment_store import is_supported_mime
from exam_agent.services.pipeline import GenerationStatus
from exam_agent.services.session import ExamSession, get_exam_session
from exam_agent.utils.errors import (
    ExamValidationError,
    PipelineBusyError,
    UnsupportedAttachmentError,
)
from exam_agent.utils.observability import log_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exam")


def current_session() -> ExamSession:
    return get_exam_session()


def _attachment_view(index: int, a: Attachment) -> Dict[str, Any]:
    return {"index": index, "name": a.name, "mime_type": a.mime_type, "size": a.size}


def _attachment_list(session: ExamSession) -> List[Dict[str, Any]]:
    return [_attachment_view(i, a) for i, a in enumerate(session.attachments.list())]


@router.get("/config")
async def get_config(session: ExamSession = Depends(current_session)) -> Dict[str, Any]:
    return session.config.get().model_dump(mode="json")


@router.patch("/config")
async def update_config(
    changes: Dict[str, Any] = Body(...),
    session: ExamSession = Depends(current_session),
) -> Dict[str, Any]:
    try:
        config = session.config.set(changes)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "Invalid exam configuration",
                "errors": e.errors(include_url=False, include_context=False),
            },
        )
    return config.model_dump(mode="json")


@router.get("/attachments")
async def list_attachments(session: ExamSession = Depends(current_session)) -> Dict[str, Any]:
    return {"attachments": _attachment_list(session)}


@router.post("/attachments")
async def upload_attachments(
    files: List[UploadFile] = File(...),
    session: ExamSession = Depends(current_session),
) -> Dict[str, Any]:
    accepted: List[Attachment] = []
    rejected: List[Dict[str, str]] = []
    for f in files:
        name = (f.filename or "").strip() or "upload"
        if not is_supported_mime(f.content_type):
            rejected.append({"name": name, "reason": "unsupported type"})
            continue
        raw = await f.read()
        if not raw:
            rejected.append({"name": name, "reason": "empty file"})
            continue
        accepted.append(Attachment(name=name, mime_type=str(f.content_type), data=raw))

    if not accepted and rejected:
        if all(r["reason"] == "empty file" for r in rejected):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": "Uploaded files are empty", "rejected": rejected},
            )
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail={"error": "Only PDF or image files are accepted", "rejected": rejected},
        )
    try:
        session.attachments.add(accepted)
    except UnsupportedAttachmentError as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e))

    log_event(logger, "attachments_uploaded", accepted=len(accepted), rejected=len(rejected))
    return {"attachments": _attachment_list(session), "rejected": rejected}


@router.delete("/attachments/{index}")
async def remove_attachment(
    index: int, session: ExamSession = Depends(current_session)
) -> Dict[str, Any]:
    try:
        session.attachments.remove_at(index)
    except IndexError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="attachment not found")
    return {"attachments": _attachment_list(session)}


@router.post("/preview/{index}")
async def open_preview(
    index: int, session: ExamSession = Depends(current_session)
) -> Dict[str, Any]:
    try:
        attachment = session.attachments.get(index)
    except IndexError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="attachment not found")
    try:
        resource = session.preview.open(attachment)
    except OSError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"cannot read attachment: {e}")
    return {"url": resource.url, "kind": resource.kind.value, "name": resource.name}


@router.get("/preview/blob/{token}")
async def preview_blob(token: str, session: ExamSession = Depends(current_session)) -> Response:
    try:
        data, mime_type = session.preview.registry.resolve(token)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="preview not found")
    return Response(content=data, media_type=mime_type)


@router.delete("/preview")
async def close_preview(session: ExamSession = Depends(current_session)) -> Dict[str, Any]:
    session.preview.close()
    return {"closed": True}


@router.post("/generate")
async def generate_exam(session: ExamSession = Depends(current_session)) -> Dict[str, Any]:
    try:
        state = await session.generate()
    except PipelineBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ExamValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return state.to_dict()


@router.get("/state")
async def get_state(session: ExamSession = Depends(current_session)) -> Dict[str, Any]:
    return session.pipeline.state.to_dict()


@router.get("/result.tex")
async def download_result(session: ExamSession = Depends(current_session)) -> PlainTextResponse:
    state = session.pipeline.state
    if state.status != GenerationStatus.SUCCEEDED:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="no generated exam")
    return PlainTextResponse(
        state.text,
        media_type="text/x-tex",
        headers={"Content-Disposition": 'attachment; filename="exam.tex"'},
    )
