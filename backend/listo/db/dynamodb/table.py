from __future__ import annotations

from typing import Any, Iterable

from boto3.dynamodb.types import TypeSerializer

from .calls import ddb_call
from .client import dynamodb_client, table_resource
from .errors import DdbInternal, DdbValidation

_serializer = TypeSerializer()

# TransactWriteItems refuses larger batches.
MAX_TRANSACT_ITEMS = 100


def _to_attribute_values(d: dict[str, Any]) -> dict[str, Any]:
    # Low-level client shape: {"S": "..."}, {"BOOL": true}, ...
    return {k: _serializer.serialize(v) for k, v in d.items()}


def _key_of(item: dict[str, Any]) -> dict[str, Any]:
    return {"pk": item.get("pk"), "sk": item.get("sk")}


def _optional(**params: Any) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v}


class DynamoTable:
    """
    Thin wrapper over one single-table-design DynamoDB table.

    Items use `pk`/`sk` as the primary key and `gsi1pk`/`gsi1sk` on GSI1.
    Every call goes through `ddb_call`, so callers only ever see `DdbError`.
    """

    def __init__(self, *, table_name: str):
        self.table_name = str(table_name)
        self._table = table_resource(self.table_name)
        self._client = dynamodb_client()

    def get_item(self, *, key: dict[str, Any]) -> dict[str, Any] | None:
        resp = ddb_call(
            "GetItem",
            lambda: self._table.get_item(Key=key),
            table_name=self.table_name,
            key=key,
        )
        return resp.get("Item")

    def put_item(self, *, item: dict[str, Any], condition_expression: str | None = None) -> dict[str, Any]:
        extra = _optional(ConditionExpression=condition_expression)
        return ddb_call(
            "PutItem",
            lambda: self._table.put_item(Item=item, **extra),
            table_name=self.table_name,
            key=_key_of(item),
        )

    def delete_item(self, *, key: dict[str, Any], condition_expression: str | None = None) -> dict[str, Any]:
        extra = _optional(ConditionExpression=condition_expression)
        return ddb_call(
            "DeleteItem",
            lambda: self._table.delete_item(Key=key, **extra),
            table_name=self.table_name,
            key=key,
        )

    def update_item(
        self,
        *,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_names: dict[str, str] | None,
        expression_attribute_values: dict[str, Any],
        condition_expression: str | None = None,
        return_values: str = "ALL_NEW",
    ) -> dict[str, Any] | None:
        extra = _optional(
            ExpressionAttributeNames=expression_attribute_names,
            ConditionExpression=condition_expression,
        )
        resp = ddb_call(
            "UpdateItem",
            lambda: self._table.update_item(
                Key=key,
                UpdateExpression=update_expression,
                ExpressionAttributeValues=expression_attribute_values,
                ReturnValues=return_values,
                **extra,
            ),
            table_name=self.table_name,
            key=key,
        )
        return resp.get("Attributes")

    def query_all(
        self,
        *,
        key_condition_expression: Any,
        index_name: str | None = None,
        filter_expression: Any | None = None,
        scan_index_forward: bool = True,
    ) -> list[dict[str, Any]]:
        """Query every page of a partition (or GSI partition) and return all items."""
        base: dict[str, Any] = {
            "KeyConditionExpression": key_condition_expression,
            "ScanIndexForward": bool(scan_index_forward),
            **_optional(IndexName=index_name),
        }
        if filter_expression is not None:
            base["FilterExpression"] = filter_expression

        items: list[dict[str, Any]] = []
        start_key: dict[str, Any] | None = None
        while True:
            # ExclusiveStartKey must be omitted, not None, on the first page.
            page_kwargs = {**base, **_optional(ExclusiveStartKey=start_key)}
            resp = ddb_call("Query", lambda: self._table.query(**page_kwargs), table_name=self.table_name)
            items.extend(resp.get("Items") or [])
            start_key = resp.get("LastEvaluatedKey")
            if not start_key:
                return items

    def batch_delete(self, *, keys: Iterable[dict[str, Any]]) -> int:
        """Delete many items (not atomic). Returns how many keys were submitted."""
        key_list = [dict(k) for k in keys]
        if not key_list:
            return 0

        def _op() -> int:
            # batch_writer chunks into 25-key requests and resends unprocessed keys.
            with self._table.batch_writer() as batch:
                for k in key_list:
                    batch.delete_item(Key=k)
            return len(key_list)

        return ddb_call("BatchWriteItem", _op, table_name=self.table_name)

    def tx_update(
        self,
        *,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_names: dict[str, str] | None,
        expression_attribute_values: dict[str, Any],
        condition_expression: str | None = None,
    ) -> dict[str, Any]:
        """Build one `Update` entry for `transact_write` in low-level client shape."""
        return {
            "TableName": self.table_name,
            "Key": _to_attribute_values(key),
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": _to_attribute_values(expression_attribute_values),
            **_optional(
                ExpressionAttributeNames=expression_attribute_names,
                ConditionExpression=condition_expression,
            ),
        }

    def transact_write(self, *, updates: Iterable[dict[str, Any]] = ()) -> dict[str, Any]:
        """Apply every update or none of them."""
        tx_items = [{"Update": u} for u in updates]
        if not tx_items:
            return {"ok": True}
        if len(tx_items) > MAX_TRANSACT_ITEMS:
            raise DdbValidation(
                message=f"A transaction can change at most {MAX_TRANSACT_ITEMS} items",
                operation="TransactWriteItems",
                table_name=self.table_name,
            )
        return ddb_call(
            "TransactWriteItems",
            lambda: self._client.transact_write_items(TransactItems=tx_items),
            table_name=self.table_name,
        )


def get_main_table() -> DynamoTable:
    from ...settings import settings

    if not settings.ddb_table_name:
        raise DdbInternal(message="DDB_TABLE_NAME is not set", operation="Config")
    return DynamoTable(table_name=settings.ddb_table_name)
