from __future__ import annotations

import json
import time
import logging
import inspect
from functools import wraps
from typing import Any, Dict, Optional


def _safe_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (bytes, bytearray)):
        # Never emit raw attachment bytes.
        return f"<{len(value)} bytes>"
    if isinstance(value, (list, tuple)):
        return [_safe_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _safe_value(v) for k, v in value.items()}
    try:
        return str(value)
    except Exception:
        return repr(value)


def log_event(logger, event: str, *, level: str = "info", **fields: Any) -> None:
    """
    Emit a single-line JSON log with a stable `event` key.
    This is best-effort and must never raise.
    """
    try:
        payload: Dict[str, Any] = {"event": event}
        for k, v in fields.items():
            if v is None:
                continue
            payload[str(k)] = _safe_value(v)
        line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        fn = getattr(logger, level, None) or getattr(logger, "info", None)
        if fn:
            fn(line)
    except Exception:
        return


def _truncate(value: Any, *, limit: int = 500) -> Any:
    try:
        s = json.dumps(_safe_value(value), ensure_ascii=False)
    except Exception:
        try:
            s = str(value)
        except Exception:
            s = repr(value)
    if len(s) <= limit:
        return s
    return s[:limit] + "…"


def trace_span(
    name: str,
    *,
    include_args: bool = False,
    include_result: bool = False,
) -> Any:
    """
    Lightweight tracing decorator.
    Emits trace_start/trace_end events via log_event.
    """

    def decorator(fn):
        logger = logging.getLogger(fn.__module__)

        if inspect.iscoroutinefunction(fn):

            @wraps(fn)
            async def async_wrapper(*args, **kwargs):
                start = time.monotonic()
                payload: Dict[str, Any] = {"span": name}
                if include_args:
                    safe_args = (
                        args[1:] if args and hasattr(args[0], "__class__") else args
                    )
                    payload["args"] = _truncate(safe_args)
                    payload["kwargs"] = _truncate(kwargs)
                log_event(logger, "trace_start", **payload)
                try:
                    result = await fn(*args, **kwargs)
                except BaseException as e:
                    log_event(
                        logger,
                        "trace_end",
                        level="warning",
                        span=name,
                        elapsed_ms=int((time.monotonic() - start) * 1000),
                        error_type=e.__class__.__name__,
                        error=str(e),
                    )
                    raise
                end_payload: Dict[str, Any] = {}
                if include_result:
                    end_payload["result"] = _truncate(result)
                log_event(
                    logger,
                    "trace_end",
                    span=name,
                    elapsed_ms=int((time.monotonic() - start) * 1000),
                    **end_payload,
                )
                return result

            return async_wrapper

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.monotonic()
            payload: Dict[str, Any] = {"span": name}
            if include_args:
                safe_args = args[1:] if args and hasattr(args[0], "__class__") else args
                payload["args"] = _truncate(safe_args)
                payload["kwargs"] = _truncate(kwargs)
            log_event(logger, "trace_start", **payload)
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                log_event(
                    logger,
                    "trace_end",
                    level="warning",
                    span=name,
                    elapsed_ms=int((time.monotonic() - start) * 1000),
                    error_type=e.__class__.__name__,
                    error=str(e),
                )
                raise
            end_payload: Dict[str, Any] = {}
            if include_result:
                end_payload["result"] = _truncate(result)
            log_event(
                logger,
                "trace_end",
                span=name,
                elapsed_ms=int((time.monotonic() - start) * 1000),
                **end_payload,
            )
            return result

        return wrapper

    return decorator


def get_request_id_from_headers(headers: Any) -> Optional[str]:
    """
    Extract a correlation id from common headers.
    - X-Request-Id
    - X-Correlation-Id
    Returns stripped string or None.
    """
    try:
        for key in ("x-request-id", "x-correlation-id"):
            v = headers.get(key) if hasattr(headers, "get") else None
            if not v:
                continue
            s = str(v).strip()
            if s:
                return s
    except Exception:
        return None
    return None
