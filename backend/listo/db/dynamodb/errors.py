from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


@dataclass(slots=True)
class DdbError(Exception):
    """Base error for DynamoDB operations.

    Caught by the FastAPI exception handler in `listo.main` and rendered as an
    RFC7807 problem-details response using `status_code` / `title`.
    """

    status_code: ClassVar[int] = 500
    title: ClassVar[str] = "Storage Error"

    message: str
    operation: str | None = None
    table_name: str | None = None
    key: dict[str, Any] | None = None
    aws_request_id: str | None = None
    retryable: bool = False
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class DdbNotFound(DdbError):
    status_code: ClassVar[int] = 404
    title: ClassVar[str] = "Not Found"


@dataclass(slots=True)
class DdbConflict(DdbError):
    status_code: ClassVar[int] = 409
    title: ClassVar[str] = "Conflict"


@dataclass(slots=True)
class DdbValidation(DdbError):
    status_code: ClassVar[int] = 400
    title: ClassVar[str] = "Bad Request"


@dataclass(slots=True)
class DdbThrottled(DdbError):
    status_code: ClassVar[int] = 503
    title: ClassVar[str] = "Service Unavailable"


@dataclass(slots=True)
class DdbUnavailable(DdbError):
    status_code: ClassVar[int] = 503
    title: ClassVar[str] = "Service Unavailable"


@dataclass(slots=True)
class DdbInternal(DdbError):
    pass
