"""
RFC7807 problem-details rendering.

Every error the API returns, from auth rejections to storage failures, is an
`application/problem+json` body carrying the request id so clients can quote
it back.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.responses import ORJSONResponse

from .settings import get_settings

PROBLEM_JSON = "application/problem+json"


def _default_title(status_code: int) -> str:
    if status_code >= 500:
        return "Internal Server Error"
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _request_id(request: Request) -> str | None:
    state = getattr(request, "state", None)
    rid = getattr(state, "request_id", None) or request.headers.get("x-request-id")
    return str(rid) if rid else None


def problem_payload(
    *,
    request: Request,
    status_code: int,
    title: str | None = None,
    detail: str | None = None,
    type: str = "about:blank",
    errors: list[dict[str, Any]] | None = None,
    extensions: dict[str, Any] | None = None,
) -> dict[str, Any]:
    status = int(status_code)
    optional = {
        "detail": str(detail) if detail else None,
        "instance": str(getattr(request.url, "path", "") or "") or None,
        "requestId": _request_id(request),
        "errors": errors or None,
        # Extension members live under one key so they never shadow RFC7807 fields.
        "extensions": extensions or None,
    }
    return {
        "type": type or "about:blank",
        "title": title or _default_title(status),
        "status": status,
        **{k: v for k, v in optional.items() if v is not None},
    }


def problem_response(
    *,
    request: Request,
    status_code: int,
    title: str | None = None,
    detail: str | None = None,
    type: str = "about:blank",
    errors: list[dict[str, Any]] | None = None,
    extensions: dict[str, Any] | None = None,
) -> ORJSONResponse:
    status = int(status_code)
    # Server-side failure messages stay in the logs in production.
    if status >= 500 and get_settings().is_production:
        detail = None

    return ORJSONResponse(
        status_code=status,
        content=problem_payload(
            request=request,
            status_code=status,
            title=title,
            detail=detail,
            type=type,
            errors=errors,
            extensions=extensions,
        ),
        media_type=PROBLEM_JSON,
    )


def problem_from_error(
    *, request: Request, exc: Exception, extensions: dict[str, Any] | None = None
) -> ORJSONResponse:
    """Render an error class that declares `status_code` / `title` (ListoError, DdbError)."""
    ext = dict(extensions or {})
    if getattr(exc, "retryable", False):
        ext["retryable"] = True
    return problem_response(
        request=request,
        status_code=int(getattr(exc, "status_code", 500)),
        title=getattr(exc, "title", None),
        detail=str(exc) or None,
        extensions=ext or None,
    )
