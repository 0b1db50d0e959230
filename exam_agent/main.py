import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from exam_agent.api import routes
from exam_agent.services.session import set_exam_session
from exam_agent.utils.errors import (
    ErrorCode,
    build_error_payload,
    error_code_for_http_status,
)
from exam_agent.utils.logging_setup import setup_file_logging, silence_noisy_loggers
from exam_agent.utils.observability import get_request_id_from_headers, log_event
from exam_agent.utils.settings import get_settings

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str | None:
    return getattr(
        getattr(request, "state", None), "request_id", None
    ) or get_request_id_from_headers(request.headers)


def _validate_cors(settings) -> None:
    env = str(getattr(settings, "app_env", "dev") or "dev").strip().lower()
    origins = getattr(settings, "allow_origins", None) or []
    if not isinstance(origins, list):
        origins = [str(origins)]
    origins_norm = [str(o or "").strip() for o in origins if str(o or "").strip()]
    if env in {"prod", "production"}:
        if not origins_norm or any(o == "*" for o in origins_norm):
            raise RuntimeError(
                "CORS is not explicitly configured for production. "
                "Set ALLOW_ORIGINS to an explicit allowlist (no '*')."
            )


def create_app() -> FastAPI:
    settings = get_settings()
    _validate_cors(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # noqa: ARG001
        if settings.log_to_file:
            level = getattr(logging, str(settings.log_level).upper(), logging.INFO)
            silence_noisy_loggers()
            setup_file_logging(log_file_path=str(settings.log_file_path), level=level)
        try:
            yield
        finally:
            # Closing the session releases any live preview.
            set_exam_session(None)

    app = FastAPI(title="LaTeX Exam Agent", version="1.0.0", lifespan=lifespan)

    @app.middleware("http")
    async def _request_id_middleware(request: Request, call_next):
        start = time.monotonic()
        request_id = _request_id(request) or f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = str(request_id)

        response = await call_next(request)
        response.headers["X-Request-Id"] = str(request_id)
        log_event(
            logger,
            "http_request",
            level="debug",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=getattr(response, "status_code", 0),
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )
        return response

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException):
        code = error_code_for_http_status(int(exc.status_code))
        detail = exc.detail
        # Keep FastAPI's default `detail` for compatibility, but also add our canonical payload.
        if isinstance(detail, dict):
            message = str(detail.get("error") or detail.get("message") or detail)
            details = detail
        else:
            message = str(detail)
            details = None
        payload = {"detail": detail}
        payload.update(
            build_error_payload(
                code=code,
                message=message,
                details=details,
                request_id=_request_id(request),
            )
        )
        return JSONResponse(status_code=int(exc.status_code), content=payload)

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        errors = [
            {k: v for k, v in e.items() if k in ("type", "loc", "msg")}
            for e in exc.errors()
        ]
        payload = {"detail": errors}
        payload.update(
            build_error_payload(
                code=ErrorCode.VALIDATION_ERROR,
                message="Validation error",
                details={"errors": errors},
                request_id=_request_id(request),
            )
        )
        return JSONResponse(status_code=422, content=payload)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        payload = build_error_payload(
            code=ErrorCode.SERVICE_ERROR,
            message="Internal server error",
            request_id=_request_id(request),
        )
        return JSONResponse(status_code=500, content=payload)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(routes.router, prefix="/api/v1")
    return app


app = create_app()
