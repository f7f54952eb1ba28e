from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..db.dynamodb.errors import DdbConflict
from ..db.dynamodb.table import get_main_table


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def user_key(*, user_sub: str) -> dict[str, str]:
    sub = str(user_sub or "").strip()
    if not sub:
        raise ValueError("user_sub is required")
    return {"pk": f"USER#{sub}", "sk": "PROFILE"}


def normalize_user_for_api(item: dict[str, Any] | None) -> dict[str, Any] | None:
    if not item:
        return None
    return {
        "id": str(item.get("userSub") or "").strip() or None,
        "email": item.get("email") or "",
        "picture": item.get("picture") or "",
    }


def get_user(*, user_sub: str) -> dict[str, Any] | None:
    it = get_main_table().get_item(key=user_key(user_sub=user_sub))
    return normalize_user_for_api(it)


def upsert_user(*, user_sub: str, email: str | None, picture: str | None) -> tuple[dict[str, Any], bool]:
    """
    Create the profile if missing, else refresh email/picture.

    Returns (user, created). Creation is conditional so two concurrent first
    logins cannot both report `created`.
    """
    key = user_key(user_sub=user_sub)
    now = now_iso()
    em = str(email or "").strip()
    pic = str(picture or "").strip()

    t = get_main_table()
    item: dict[str, Any] = {
        **key,
        "entityType": "User",
        "userSub": str(user_sub).strip(),
        "email": em,
        "picture": pic,
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        t.put_item(item=item, condition_expression="attribute_not_exists(pk)")
        return normalize_user_for_api(item) or {}, True
    except DdbConflict:
        pass

    updated = t.update_item(
        key=key,
        update_expression="SET #email = :email, #picture = :picture, #updatedAt = :updatedAt",
        expression_attribute_names={
            "#email": "email",
            "#picture": "picture",
            "#updatedAt": "updatedAt",
        },
        expression_attribute_values={":email": em, ":picture": pic, ":updatedAt": now},
        condition_expression="attribute_exists(pk)",
    )
    return normalize_user_for_api(updated) or {}, False
