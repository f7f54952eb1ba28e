from __future__ import annotations

import uuid
from typing import Any

from boto3.dynamodb.conditions import Attr, Key

from ..db.dynamodb.errors import DdbConflict, DdbNotFound, DdbValidation
from ..db.dynamodb.table import MAX_TRANSACT_ITEMS, get_main_table
from ..errors import ChecklistLocked, ChecklistNotFound
from ..observability.logging import get_logger
from . import collaborators_repo
from .users_repo import get_user, now_iso

log = get_logger("checklists")

INTRO_CHECKLIST_TITLE = "My First Listo"
INTRO_CHECKLIST_ITEMS = [
    "Edit the title of this Listo by clicking on the title. Your changes will be saved automatically.",
    "Edit this item by clicking on it, making your changes, and clicking away, or <return>",
    "Add a new item to your Listo next to the + icon",
    "You can make a multi-line item by pressing <shift> + <return>",
    "Mark this item as done, by clicking on the checkbox",
    "Reorder this item by dragging it somewhere else, and dropping it",
    'Delete your checked items by selecting "Delete Checked" from the options dropdown',
    'Lock your Listo by selecting "Lock" from the options dropdown. You\'ll still be able to '
    "check/uncheck items, but can't change them. This is handy if you have checklists that you "
    "need to reuse.",
    'Share your Listo with others by selecting "Share" from the options dropdown. You can share '
    "with anyone, even if they don't have an account yet.",
    "Have fun!",
]


# -----------------------------
# Keys / entity helpers
# -----------------------------


def _require(v: str, name: str) -> str:
    s = str(v or "").strip()
    if not s:
        raise ValueError(f"{name} is required")
    return s


def owner_pk(owner_id: str) -> str:
    return f"USER#{_require(owner_id, 'owner_id')}"


def checklist_key(*, owner_id: str, checklist_id: str) -> dict[str, str]:
    return {"pk": owner_pk(owner_id), "sk": f"CHECKLIST#{_require(checklist_id, 'checklist_id')}"}


def item_sk_prefix(checklist_id: str) -> str:
    return f"CHECKLIST#{_require(checklist_id, 'checklist_id')}#ITEM#"


def item_key(*, owner_id: str, checklist_id: str, item_id: str) -> dict[str, str]:
    return {
        "pk": owner_pk(owner_id),
        "sk": f"{item_sk_prefix(checklist_id)}{_require(item_id, 'item_id')}",
    }


def normalize_checklist_for_api(
    item: dict[str, Any] | None, *, collaborators: list[dict[str, Any]] | None = None
) -> dict[str, Any] | None:
    if not item:
        return None
    return {
        "id": item.get("checklistId"),
        "title": item.get("title") or "",
        "locked": bool(item.get("locked")),
        "collaborators": collaborators or [],
        "created_at": item.get("createdAt"),
        "updated_at": item.get("updatedAt"),
    }


def normalize_item_for_api(item: dict[str, Any] | None) -> dict[str, Any] | None:
    if not item:
        return None
    return {
        "id": item.get("itemId"),
        "content": item.get("content") or "",
        "checked": bool(item.get("checked")),
        # Numbers come back from boto3 as Decimal.
        "ordering": int(item.get("ordering") or 0),
        "created_at": item.get("createdAt"),
        "updated_at": item.get("updatedAt"),
    }


# -----------------------------
# Checklists
# -----------------------------


def list_collaborators(*, owner_id: str, checklist_id: str) -> list[dict[str, Any]]:
    """
    Public view of everyone on a checklist: collaborators then the owner.
    Only email/picture are exposed, never user ids.
    """
    subs = collaborators_repo.list_collaborator_ids(owner_id=owner_id, checklist_id=checklist_id)
    out: list[dict[str, Any]] = []
    for sub in [*subs, owner_id]:
        u = get_user(user_sub=sub) or {}
        out.append({"email": u.get("email") or "", "picture": u.get("picture") or ""})
    return out


def get_checklist(*, owner_id: str, checklist_id: str) -> dict[str, Any] | None:
    it = get_main_table().get_item(key=checklist_key(owner_id=owner_id, checklist_id=checklist_id))
    if not it:
        return None
    collaborators = list_collaborators(owner_id=owner_id, checklist_id=checklist_id)
    return normalize_checklist_for_api(it, collaborators=collaborators)


def require_checklist(*, owner_id: str, checklist_id: str) -> dict[str, Any]:
    checklist = get_checklist(owner_id=owner_id, checklist_id=checklist_id)
    if not checklist:
        raise ChecklistNotFound(message="Checklist not found")
    return checklist


def list_checklists(*, owner_id: str) -> list[dict[str, Any]]:
    items = get_main_table().query_all(
        key_condition_expression=Key("pk").eq(owner_pk(owner_id)) & Key("sk").begins_with("CHECKLIST#"),
        filter_expression=Attr("entityType").eq("Checklist"),
    )
    out: list[dict[str, Any]] = []
    for it in items:
        lid = str(it.get("checklistId") or "")
        collaborators = list_collaborators(owner_id=owner_id, checklist_id=lid)
        out.append(normalize_checklist_for_api(it, collaborators=collaborators) or {})
    return out


def list_shared_checklists(*, collaborator_id: str) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for ref in collaborators_repo.list_shared_checklist_refs(collaborator_id=collaborator_id):
        checklist = get_checklist(owner_id=ref["ownerId"], checklist_id=ref["checklistId"])
        # Relations are cascade-deleted with the checklist; skip any stragglers.
        if checklist:
            out.append(checklist)
    return out


def create_checklist(*, owner_id: str, title: str, locked: bool = False) -> dict[str, Any]:
    now = now_iso()
    checklist_id = str(uuid.uuid4())
    item: dict[str, Any] = {
        **checklist_key(owner_id=owner_id, checklist_id=checklist_id),
        "entityType": "Checklist",
        "checklistId": checklist_id,
        "ownerId": str(owner_id).strip(),
        "title": str(title or "").strip(),
        "locked": bool(locked),
        "createdAt": now,
        "updatedAt": now,
    }
    get_main_table().put_item(item=item, condition_expression="attribute_not_exists(pk)")
    return normalize_checklist_for_api(item) or {}


def update_checklist(
    *, owner_id: str, checklist_id: str, title: str, locked: bool | None = None
) -> dict[str, Any]:
    """Update the title, and the lock flag only when `locked` is given."""
    names = {"#title": "title", "#updatedAt": "updatedAt"}
    values: dict[str, Any] = {":title": str(title or "").strip(), ":updatedAt": now_iso()}
    assignments = ["#title = :title", "#updatedAt = :updatedAt"]
    if locked is not None:
        names["#locked"] = "locked"
        values[":locked"] = bool(locked)
        assignments.append("#locked = :locked")

    try:
        updated = get_main_table().update_item(
            key=checklist_key(owner_id=owner_id, checklist_id=checklist_id),
            update_expression="SET " + ", ".join(assignments),
            expression_attribute_names=names,
            expression_attribute_values=values,
            condition_expression="attribute_exists(pk) AND attribute_exists(sk)",
        )
    except DdbConflict as e:
        raise ChecklistNotFound(message="Checklist not found", cause=e) from e
    return normalize_checklist_for_api(updated) or {}


def delete_checklist(*, owner_id: str, checklist_id: str) -> None:
    """
    Delete a checklist, its items and every collaborator relation on it.
    Locked checklists cannot be deleted.
    """
    t = get_main_table()
    it = t.get_item(key=checklist_key(owner_id=owner_id, checklist_id=checklist_id))
    if not it:
        raise ChecklistNotFound(message="Checklist not found")
    if bool(it.get("locked")):
        raise ChecklistLocked(message="Checklist is locked")

    # Relations first: a failure below leaves the checklist intact, never orphaned shares.
    collaborators_repo.delete_collaborators_for_checklist(owner_id=owner_id, checklist_id=checklist_id)

    items = _raw_items(owner_id=owner_id, checklist_id=checklist_id)
    t.batch_delete(keys=[{"pk": x["pk"], "sk": x["sk"]} for x in items])
    t.delete_item(key=checklist_key(owner_id=owner_id, checklist_id=checklist_id))
    log.info("checklist_deleted", owner_id=owner_id, checklist_id=checklist_id, item_count=len(items))


# -----------------------------
# Items
# -----------------------------


def _raw_items(*, owner_id: str, checklist_id: str) -> list[dict[str, Any]]:
    return get_main_table().query_all(
        key_condition_expression=Key("pk").eq(owner_pk(owner_id))
        & Key("sk").begins_with(item_sk_prefix(checklist_id)),
        filter_expression=Attr("entityType").eq("ChecklistItem"),
    )


def list_items(*, owner_id: str, checklist_id: str) -> list[dict[str, Any]]:
    items = [normalize_item_for_api(x) or {} for x in _raw_items(owner_id=owner_id, checklist_id=checklist_id)]
    return sorted(items, key=lambda x: (x["ordering"], str(x.get("created_at") or "")))


def create_item(*, owner_id: str, checklist_id: str, content: str, ordering: int = 0) -> dict[str, Any]:
    if not get_main_table().get_item(key=checklist_key(owner_id=owner_id, checklist_id=checklist_id)):
        raise ChecklistNotFound(message="Checklist not found")

    now = now_iso()
    item_id = str(uuid.uuid4())
    item: dict[str, Any] = {
        **item_key(owner_id=owner_id, checklist_id=checklist_id, item_id=item_id),
        "entityType": "ChecklistItem",
        "checklistId": str(checklist_id).strip(),
        "itemId": item_id,
        "content": str(content or ""),
        "checked": False,
        "ordering": int(ordering or 0),
        "createdAt": now,
        "updatedAt": now,
    }
    get_main_table().put_item(item=item)
    return normalize_item_for_api(item) or {}


def update_item(
    *,
    owner_id: str,
    checklist_id: str,
    item_id: str,
    content: str,
    checked: bool,
    ordering: int,
) -> dict[str, Any]:
    key = item_key(owner_id=owner_id, checklist_id=checklist_id, item_id=item_id)
    try:
        updated = get_main_table().update_item(
            key=key,
            update_expression=(
                "SET #content = :content, #checked = :checked, #ordering = :ordering, "
                "#updatedAt = :updatedAt"
            ),
            expression_attribute_names={
                "#content": "content",
                "#checked": "checked",
                "#ordering": "ordering",
                "#updatedAt": "updatedAt",
            },
            expression_attribute_values={
                ":content": str(content or ""),
                ":checked": bool(checked),
                ":ordering": int(ordering or 0),
                ":updatedAt": now_iso(),
            },
            condition_expression="attribute_exists(pk) AND attribute_exists(sk)",
        )
    except DdbConflict as e:
        raise DdbNotFound(message="Item not found", operation="UpdateItem", key=key, cause=e) from e
    return normalize_item_for_api(updated) or {}


def set_all_items_checked(*, owner_id: str, checklist_id: str, checked: bool) -> int:
    """
    Check or uncheck every item in one transaction. If any item vanished in
    the meantime the whole batch is rejected and nothing changes.
    """
    items = _raw_items(owner_id=owner_id, checklist_id=checklist_id)
    if not items:
        return 0
    if len(items) > MAX_TRANSACT_ITEMS:
        raise DdbValidation(
            message=f"Cannot update more than {MAX_TRANSACT_ITEMS} items at once",
            operation="TransactWriteItems",
        )

    now = now_iso()
    t = get_main_table()
    t.transact_write(
        updates=[
            t.tx_update(
                key={"pk": x["pk"], "sk": x["sk"]},
                update_expression="SET #checked = :checked, #updatedAt = :updatedAt",
                expression_attribute_names={"#checked": "checked", "#updatedAt": "updatedAt"},
                expression_attribute_values={":checked": bool(checked), ":updatedAt": now},
                condition_expression="attribute_exists(pk) AND attribute_exists(sk)",
            )
            for x in items
        ]
    )
    return len(items)


def delete_item(*, owner_id: str, checklist_id: str, item_id: str) -> None:
    get_main_table().delete_item(key=item_key(owner_id=owner_id, checklist_id=checklist_id, item_id=item_id))


def create_introductory_checklist(*, owner_id: str) -> dict[str, Any]:
    checklist = create_checklist(owner_id=owner_id, title=INTRO_CHECKLIST_TITLE)
    for i, content in enumerate(INTRO_CHECKLIST_ITEMS):
        create_item(owner_id=owner_id, checklist_id=checklist["id"], content=content, ordering=i)
    return checklist
