from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from cachetools import TTLCache
from jose import jwt
from jose.exceptions import JWTError

from ..settings import settings


class Auth0AuthError(Exception):
    def __init__(self, message: str, *, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class VerifiedUser:
    sub: str
    email: str | None
    claims: dict[str, Any]


_JWKS_CACHE: TTLCache[str, dict[str, Any]] = TTLCache(maxsize=4, ttl=60 * 60)


def _issuer() -> str:
    domain = str(settings.auth0_domain or "").strip().rstrip("/")
    if not domain:
        raise Auth0AuthError("AUTH0_DOMAIN is not set", status_code=500)
    return f"https://{domain}/"


def _jwks_url() -> str:
    return f"{_issuer()}.well-known/jwks.json"


def _get_jwks() -> dict[str, Any]:
    url = _jwks_url()
    cached = _JWKS_CACHE.get(url)
    if cached:
        return cached

    with httpx.Client(timeout=10.0) as client:
        resp = client.get(url)
        resp.raise_for_status()
        jwks = resp.json()

    _JWKS_CACHE[url] = jwks
    return jwks


def verify_bearer_token(token: str) -> VerifiedUser:
    """Verify an Auth0 access token (RS256) and return the subject."""
    if not token:
        raise Auth0AuthError("missing token")
    if not settings.auth0_audience:
        raise Auth0AuthError("AUTH0_AUDIENCE is not set", status_code=500)

    jwks = _get_jwks()
    try:
        claims = jwt.decode(
            token,
            jwks,
            algorithms=["RS256"],
            audience=settings.auth0_audience,
            issuer=_issuer(),
            options={"verify_aud": True, "verify_iss": True},
        )
    except JWTError as e:
        raise Auth0AuthError(str(e) or "invalid token") from e

    sub = str(claims.get("sub") or "").strip()
    if not sub:
        raise Auth0AuthError("missing sub")

    email = claims.get("email")
    return VerifiedUser(sub=sub, email=str(email) if email is not None else None, claims=claims)
