"""API router aggregation; `exam_agent/main.py` imports `routes.router`."""

from __future__ import annotations

from fastapi import APIRouter

from exam_agent.api import exam as exam_api

router = APIRouter()
router.include_router(exam_api.router)
