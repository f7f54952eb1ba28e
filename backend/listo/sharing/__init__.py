from __future__ import annotations

from .codes import ShareCodeStore
from .service import RedeemedShare, SharingService, get_sharing_service
from .tokens import ShareClaims, TokenCodec

__all__ = [
    "RedeemedShare",
    "ShareClaims",
    "ShareCodeStore",
    "SharingService",
    "TokenCodec",
    "get_sharing_service",
]
