from __future__ import annotations

from typing import Any, Callable, TypeVar

from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError

from .errors import (
    DdbConflict,
    DdbError,
    DdbInternal,
    DdbNotFound,
    DdbThrottled,
    DdbUnavailable,
    DdbValidation,
)

T = TypeVar("T")


# Transient: surfaced as retryable so callers can decide. botocore has already
# applied its own client-level retries by the time we see these.
_TRANSIENT_CODES = {
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "RequestLimitExceeded",
    "InternalServerError",
    "ServiceUnavailable",
    "TransactionConflictException",
}


def _aws_request_id_from_client_error(e: ClientError) -> str | None:
    return (e.response or {}).get("ResponseMetadata", {}).get("RequestId")


def _err_code_from_client_error(e: ClientError) -> str:
    return str((e.response or {}).get("Error", {}).get("Code") or "")


def _cancellation_codes(e: ClientError) -> list[str]:
    reasons = (e.response or {}).get("CancellationReasons") or []
    return [str((r or {}).get("Code") or "") for r in reasons]


def map_client_error(
    *,
    operation: str,
    table_name: str | None,
    key: dict[str, Any] | None,
    exc: Exception,
) -> DdbError:
    if isinstance(exc, DdbError):
        return exc

    common: dict[str, Any] = {
        "operation": operation,
        "table_name": table_name,
        "key": key,
        "cause": exc,
    }

    if isinstance(exc, ClientError):
        code = _err_code_from_client_error(exc)
        common["aws_request_id"] = _aws_request_id_from_client_error(exc)

        if code == "ConditionalCheckFailedException":
            return DdbConflict(message="DynamoDB conditional check failed", **common)

        if code == "TransactionCanceledException":
            reasons = _cancellation_codes(exc)
            # One failed precondition cancels the whole transaction.
            if "ConditionalCheckFailed" in reasons:
                return DdbConflict(message="DynamoDB transaction precondition failed", **common)
            if any(r in _TRANSIENT_CODES or r == "TransactionConflict" for r in reasons):
                return DdbThrottled(
                    message="DynamoDB transaction conflicted", retryable=True, **common
                )
            return DdbInternal(message="DynamoDB transaction cancelled", **common)

        if code in ("ValidationException", "ParamValidationError"):
            return DdbValidation(message="DynamoDB request validation failed", **common)

        if code == "ResourceNotFoundException":
            return DdbNotFound(message="DynamoDB table not found", **common)

        if code in ("AccessDeniedException", "UnrecognizedClientException"):
            return DdbUnavailable(message="DynamoDB access denied", **common)

        if code in _TRANSIENT_CODES:
            return DdbThrottled(
                message="DynamoDB request throttled or unavailable", retryable=True, **common
            )

        return DdbInternal(message=f"DynamoDB request failed ({code or 'ClientError'})", **common)

    if isinstance(exc, (ConnectTimeoutError, ReadTimeoutError)):
        return DdbUnavailable(message="DynamoDB request timed out", retryable=True, **common)

    if isinstance(exc, BotoCoreError):
        return DdbUnavailable(message="DynamoDB client error", retryable=True, **common)

    return DdbInternal(message="Unexpected DynamoDB error", **common)


def ddb_call(
    operation: str,
    fn: Callable[[], T],
    *,
    table_name: str | None = None,
    key: dict[str, Any] | None = None,
) -> T:
    """Run one DynamoDB call, translating botocore failures into `DdbError`.

    Nothing is retried here; transient failures come back with
    `retryable=True` and the HTTP layer reports them as 503.
    """
    try:
        return fn()
    except Exception as e:  # noqa: BLE001
        raise map_client_error(operation=operation, table_name=table_name, key=key, exc=e) from e
