"""Domain errors for sharing, collaboration and checklist ownership.

Every error carries the HTTP status it is rendered with; `listo.main` turns
them into problem-details responses. Nothing here is retried internally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(slots=True)
class ListoError(Exception):
    status_code: ClassVar[int] = 500
    title: ClassVar[str] = "Internal Server Error"

    message: str
    retryable: bool = False
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message


# --- share tokens ---


@dataclass(slots=True)
class TokenMalformed(ListoError):
    status_code: ClassVar[int] = 400
    title: ClassVar[str] = "Invalid Share Link"


@dataclass(slots=True)
class TokenInvalidSignature(ListoError):
    status_code: ClassVar[int] = 400
    title: ClassVar[str] = "Invalid Share Link"


@dataclass(slots=True)
class TokenExpired(ListoError):
    status_code: ClassVar[int] = 410
    title: ClassVar[str] = "Share Link Expired"


# --- share codes ---


@dataclass(slots=True)
class ShareCodeNotFound(ListoError):
    """Cache miss in the share-code store (absent or evicted by TTL)."""

    status_code: ClassVar[int] = 404
    title: ClassVar[str] = "Not Found"


@dataclass(slots=True)
class ShareCodeInvalid(ListoError):
    status_code: ClassVar[int] = 404
    title: ClassVar[str] = "Invalid Share Code"


@dataclass(slots=True)
class SelfShare(ListoError):
    status_code: ClassVar[int] = 400
    title: ClassVar[str] = "Bad Request"


# --- collaboration / ownership ---


@dataclass(slots=True)
class NotACollaborator(ListoError):
    status_code: ClassVar[int] = 403
    title: ClassVar[str] = "Forbidden"


@dataclass(slots=True)
class ChecklistNotFound(ListoError):
    status_code: ClassVar[int] = 404
    title: ClassVar[str] = "Not Found"


@dataclass(slots=True)
class ChecklistLocked(ListoError):
    status_code: ClassVar[int] = 409
    title: ClassVar[str] = "Checklist Locked"


# --- infrastructure ---


@dataclass(slots=True)
class StorageUnavailable(ListoError):
    """Transport failure talking to the cache (connection, timeout, auth)."""

    status_code: ClassVar[int] = 503
    title: ClassVar[str] = "Service Unavailable"
