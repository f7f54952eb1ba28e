from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable

from ..errors import SelfShare, ShareCodeInvalid, ShareCodeNotFound
from ..observability.logging import get_logger
from .codes import ShareCodeStore
from .tokens import TokenCodec

# 11 hex chars = 44 bits. Collisions are possible and not detected.
SHARE_CODE_LENGTH = 11

log = get_logger("sharing")


@dataclass(frozen=True, slots=True)
class RedeemedShare:
    owner_id: str
    checklist_id: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_share_code(checklist_id: str, owner_id: str, issued_at: datetime) -> str:
    digest = hashlib.sha256(f"{checklist_id}{owner_id}{issued_at.isoformat()}".encode("utf-8"))
    return digest.hexdigest()[:SHARE_CODE_LENGTH]


class SharingService:
    def __init__(
        self,
        *,
        codec: TokenCodec,
        store: ShareCodeStore,
        clock: Callable[[], datetime] = _utcnow,
    ):
        # A code must not expire from the cache while its token is still valid.
        if store.ttl < codec.ttl:
            raise ValueError("share code TTL must be at least the token validity window")
        self._codec = codec
        self._store = store
        self._clock = clock

    def issue(self, checklist_id: str, owner_id: str) -> str:
        token = self._codec.sign(checklist_id, owner_id)
        code = make_share_code(checklist_id, owner_id, self._clock())
        self._store.put(code, token)
        log.info("share_code_issued", checklist_id=checklist_id, owner_id=owner_id)
        return code

    def redeem(self, share_code: str, requesting_user_id: str) -> RedeemedShare:
        """
        Resolve a share code into the owner and checklist it grants access to.

        Performs no writes; the caller records the collaborator relation only
        after this returns.
        """
        try:
            token = self._store.get(share_code)
        except ShareCodeNotFound as e:
            raise ShareCodeInvalid(message="Share code is invalid or has expired", cause=e) from e

        claims = self._codec.verify(token)

        if claims.owner_id == str(requesting_user_id or "").strip():
            log.info("share_code_self_share_rejected", checklist_id=claims.checklist_id)
            raise SelfShare(message="You cannot add yourself as a collaborator on your own checklist")

        return RedeemedShare(owner_id=claims.owner_id, checklist_id=claims.checklist_id)


@lru_cache(maxsize=1)
def get_sharing_service() -> SharingService:
    from ..cache.redis_client import get_redis
    from ..settings import settings

    codec = TokenCodec(settings.require_signing_secret())
    return SharingService(codec=codec, store=ShareCodeStore(get_redis()))
