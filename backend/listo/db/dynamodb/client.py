from __future__ import annotations

from functools import lru_cache
from typing import Any

import boto3
from botocore.config import Config

from ...settings import settings


@lru_cache(maxsize=1)
def botocore_config() -> Config:
    # One attempt per call: throttling and timeouts reach the caller as
    # retryable errors instead of being replayed behind its back.
    return Config(
        retries={"total_max_attempts": 1, "mode": "standard"},
        connect_timeout=2,
        read_timeout=10,
    )


def _session_kwargs() -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "region_name": settings.aws_region,
        "config": botocore_config(),
    }
    # DynamoDB Local / LocalStack in development.
    endpoint = str(settings.ddb_endpoint_url or "").strip()
    if endpoint:
        kwargs["endpoint_url"] = endpoint
    return kwargs


@lru_cache(maxsize=1)
def dynamodb_resource():
    return boto3.resource("dynamodb", **_session_kwargs())


@lru_cache(maxsize=1)
def dynamodb_client():
    return boto3.client("dynamodb", **_session_kwargs())


def table_resource(table_name: str):
    return dynamodb_resource().Table(table_name)
