from __future__ import annotations

from fastapi import HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..auth.auth0 import Auth0AuthError, verify_bearer_token
from ..observability.logging import get_logger
from ..problem_details import problem_response


def is_public_path(path: str) -> bool:
    # "GET /" health is the only public route.
    return path == "/"


async def require_auth(request: Request):
    # Let CORS preflight through without auth.
    # CORSMiddleware will handle preflight and add headers.
    if request.method.upper() == "OPTIONS":
        return

    if is_public_path(request.url.path):
        return

    auth = request.headers.get("authorization")
    if not auth:
        raise HTTPException(status_code=401, detail="Authorization header is required")

    parts = str(auth).split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        user = verify_bearer_token(parts[1].strip())
    except Auth0AuthError as e:
        raise HTTPException(status_code=int(e.status_code), detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=401, detail="Unauthorized") from e

    # Downstream handlers trust this subject unconditionally.
    request.state.user = user


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Rejects unauthenticated requests with a problem-details 401 before any
    router runs. Registered inside CORSMiddleware so denials carry CORS headers.
    """

    def __init__(self, app):
        super().__init__(app)
        self._log = get_logger("auth")

    async def dispatch(self, request: Request, call_next):
        try:
            await require_auth(request)
        except HTTPException as exc:
            status_code = int(exc.status_code)
            # 5xx here means Auth0 is misconfigured, not that the caller is wrong.
            log_fn = self._log.error if status_code >= 500 else self._log.info
            log_fn("auth_denied", status_code=status_code, path=request.url.path)
            return problem_response(
                request=request,
                status_code=status_code,
                title="Unauthorized" if status_code == 401 else None,
                detail=str(exc.detail) if isinstance(exc.detail, str) else None,
            )
        return await call_next(request)
