"""
Signed share tokens.

A share token is an HS256 JWT binding a checklist to its owner with an
absolute expiry. It is the actual authorization proof behind a share code:
the cache only indexes tokens, it never decides whether one is still valid.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import TokenExpired, TokenInvalidSignature, TokenMalformed

ALGORITHM = "HS256"
SHARE_TOKEN_TTL = timedelta(hours=12)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShareClaims(BaseModel):
    """Typed payload of a share token; every field is required on the wire."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    checklist_id: str = Field(min_length=1)
    owner_id: str = Field(min_length=1)
    expires_at: datetime = Field(validation_alias="exp")
    issued_at: datetime | None = Field(default=None, validation_alias="iat")


class TokenCodec:
    def __init__(
        self,
        secret: str,
        *,
        ttl: timedelta = SHARE_TOKEN_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not str(secret or "").strip():
            raise ValueError("share token secret is required")
        self._secret = str(secret)
        self._clock = clock
        self.ttl = ttl

    def sign(self, checklist_id: str, owner_id: str) -> str:
        cid = str(checklist_id or "").strip()
        oid = str(owner_id or "").strip()
        if not cid:
            raise ValueError("checklist_id is required")
        if not oid:
            raise ValueError("owner_id is required")

        now = self._clock()
        payload = {
            "checklist_id": cid,
            "owner_id": oid,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> ShareClaims:
        """
        Verify signature and expiry, then validate the claim shape.

        Raises TokenMalformed when the token cannot be parsed or lacks required
        claims, TokenInvalidSignature when the signature does not match, and
        TokenExpired once `exp` has passed.
        """
        raw = str(token or "").strip()
        if not raw:
            raise TokenMalformed(message="Share token is empty")

        # Parse before verifying so a garbled token is not reported as a bad signature.
        try:
            jwt.get_unverified_header(raw)
            jwt.get_unverified_claims(raw)
        except JWTError as e:
            raise TokenMalformed(message="Share token could not be parsed", cause=e) from e

        try:
            payload = jwt.decode(raw, self._secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError as e:
            raise TokenExpired(message="Share link has expired", cause=e) from e
        except JWTClaimsError as e:
            raise TokenMalformed(message="Share token claims are invalid", cause=e) from e
        except JWTError as e:
            raise TokenInvalidSignature(message="Share token signature is invalid", cause=e) from e

        try:
            return ShareClaims.model_validate(payload)
        except ValidationError as e:
            raise TokenMalformed(message="Share token is missing required claims", cause=e) from e
