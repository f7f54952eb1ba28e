from __future__ import annotations

import copy
import os
import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure `backend/` is on sys.path so `import listo.*` works in tests.
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

# Settings are read once at import time.
os.environ.setdefault("JWT_SECRET", "unit-test-secret")
os.environ.setdefault("DDB_TABLE_NAME", "listo-test")


def _matches(cond: Any, item: dict[str, Any]) -> bool:
    # Evaluates the subset of boto3 Key/Attr conditions the repositories use.
    expr = cond.get_expression()
    op = expr["operator"]
    vals = expr["values"]
    if op == "AND":
        return all(_matches(v, item) for v in vals)
    name = vals[0].name
    if name not in item:
        return False
    if op == "=":
        return item[name] == vals[1]
    if op == "begins_with":
        return str(item[name]).startswith(vals[1])
    raise AssertionError(f"unsupported condition operator: {op}")


class MemoryTable:
    """In-memory stand-in for DynamoTable with the same keyword API."""

    table_name = "memory"

    def __init__(self):
        self.items: dict[tuple[str, str], dict[str, Any]] = {}

    @staticmethod
    def _k(key: dict[str, Any]) -> tuple[str, str]:
        return (key["pk"], key["sk"])

    def _conflict(self, operation: str, key: dict[str, Any]):
        from listo.db.dynamodb.errors import DdbConflict

        return DdbConflict(message="DynamoDB conditional check failed", operation=operation, key=key)

    @staticmethod
    def _apply_set(item, update_expression, names, values) -> None:
        assignments = update_expression.strip()
        assert assignments.upper().startswith("SET ")
        for part in assignments[4:].split(","):
            lhs, rhs = [s.strip() for s in part.split("=")]
            item[(names or {}).get(lhs, lhs)] = values[rhs]

    def get_item(self, *, key):
        it = self.items.get(self._k(key))
        return copy.deepcopy(it) if it else None

    def put_item(self, *, item, condition_expression=None):
        k = self._k(item)
        if condition_expression and "attribute_not_exists" in condition_expression and k in self.items:
            raise self._conflict("PutItem", item)
        self.items[k] = copy.deepcopy(item)
        return {}

    def delete_item(self, *, key, condition_expression=None):
        self.items.pop(self._k(key), None)
        return {}

    def update_item(
        self,
        *,
        key,
        update_expression,
        expression_attribute_names,
        expression_attribute_values,
        condition_expression=None,
        return_values="ALL_NEW",
    ):
        k = self._k(key)
        if condition_expression and "attribute_exists" in condition_expression and k not in self.items:
            raise self._conflict("UpdateItem", key)
        it = self.items.setdefault(k, dict(key))
        self._apply_set(it, update_expression, expression_attribute_names, expression_attribute_values)
        return copy.deepcopy(it)

    def query_all(self, *, key_condition_expression, index_name=None, filter_expression=None, scan_index_forward=True):
        out = [
            copy.deepcopy(it)
            for it in self.items.values()
            if _matches(key_condition_expression, it)
            and (filter_expression is None or _matches(filter_expression, it))
        ]
        sort_attr = "gsi1sk" if index_name == "GSI1" else "sk"
        return sorted(out, key=lambda x: str(x.get(sort_attr)), reverse=not scan_index_forward)

    def batch_delete(self, *, keys):
        key_list = list(keys)
        for k in key_list:
            self.items.pop(self._k(k), None)
        return len(key_list)

    def tx_update(self, **kwargs):
        return dict(kwargs)

    def transact_write(self, *, updates=()):
        from listo.db.dynamodb.errors import DdbValidation
        from listo.db.dynamodb.table import MAX_TRANSACT_ITEMS

        ups = list(updates)
        if len(ups) > MAX_TRANSACT_ITEMS:
            raise DdbValidation(
                message=f"A transaction can change at most {MAX_TRANSACT_ITEMS} items",
                operation="TransactWriteItems",
                table_name=self.table_name,
            )
        for u in ups:
            if u.get("condition_expression") and self._k(u["key"]) not in self.items:
                raise self._conflict("TransactWriteItems", u["key"])
        for u in ups:
            self._apply_set(
                self.items[self._k(u["key"])],
                u["update_expression"],
                u.get("expression_attribute_names"),
                u["expression_attribute_values"],
            )
        return {"ok": True}


class FakeRedis:
    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex
        return True

    def get(self, key):
        return self.data.get(key)

    def expire_now(self, key):
        self.data.pop(key, None)
        self.ttls.pop(key, None)


@pytest.fixture
def memory_table(monkeypatch) -> MemoryTable:
    from listo.repositories import checklists_repo, collaborators_repo, users_repo

    table = MemoryTable()
    for mod in (checklists_repo, collaborators_repo, users_repo):
        monkeypatch.setattr(mod, "get_main_table", lambda: table)
    return table


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def sharing_service(monkeypatch, fake_redis):
    from listo.routers import sharing as sharing_router
    from listo.sharing import ShareCodeStore, SharingService, TokenCodec

    svc = SharingService(codec=TokenCodec("unit-test-secret"), store=ShareCodeStore(fake_redis))
    monkeypatch.setattr(sharing_router, "get_sharing_service", lambda: svc)
    return svc


@pytest.fixture
def client(monkeypatch, memory_table, sharing_service):
    """
    TestClient where `Authorization: Bearer <sub>` authenticates as <sub>.
    """
    from fastapi.testclient import TestClient

    from listo.main import create_app
    from listo.middleware import auth as auth_mw

    class _User:
        def __init__(self, sub: str):
            self.sub = sub
            self.email = f"{sub}@example.com"

    monkeypatch.setattr(auth_mw, "verify_bearer_token", lambda tok: _User(tok))
    return TestClient(create_app())