from __future__ import annotations

from datetime import timedelta
from typing import Any

from ..cache.redis_client import cache_call
from ..errors import ShareCodeNotFound
from .tokens import SHARE_TOKEN_TTL

KEY_PREFIX = "sharecode:"


class ShareCodeStore:
    """
    Maps a short share code to a previously issued token in Redis.

    Pure storage facade: codes are generated by the sharing service. Entries
    are never updated or revoked, they only expire with the TTL.
    """

    def __init__(self, client: Any, *, ttl: timedelta = SHARE_TOKEN_TTL):
        self._client = client
        self.ttl = ttl

    @staticmethod
    def _key(code: str) -> str:
        return f"{KEY_PREFIX}{code}"

    def put(self, code: str, token: str) -> None:
        key = self._key(code)
        seconds = int(self.ttl.total_seconds())
        cache_call("SET", lambda: self._client.set(key, token, ex=seconds))

    def get(self, code: str) -> str:
        c = str(code or "").strip()
        if not c:
            raise ShareCodeNotFound(message="Share code is empty")
        key = self._key(c)
        val = cache_call("GET", lambda: self._client.get(key))
        if not val:
            raise ShareCodeNotFound(message="Share code not found or expired")
        return str(val)
