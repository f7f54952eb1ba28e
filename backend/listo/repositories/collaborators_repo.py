from __future__ import annotations

from typing import Any

from boto3.dynamodb.conditions import Key

from ..db.dynamodb.table import get_main_table
from ..errors import NotACollaborator, SelfShare
from ..observability.logging import get_logger
from .users_repo import now_iso

log = get_logger("collaborators")

# Collaborator relation item shape:
#   pk     = USER#<collaboratorId>               (collaborator perspective)
#   sk     = SHARED#<checklistId>
#   gsi1pk = OWNER#<ownerId>#CHECKLIST#<checklistId>  (owner perspective)
#   gsi1sk = COLLABORATOR#<collaboratorId>
#   ownerId, checklistId, collaboratorId


def _require(v: str, name: str) -> str:
    s = str(v or "").strip()
    if not s:
        raise ValueError(f"{name} is required")
    return s


def collaborator_key(*, collaborator_id: str, checklist_id: str) -> dict[str, str]:
    cid = _require(collaborator_id, "collaborator_id")
    lid = _require(checklist_id, "checklist_id")
    return {"pk": f"USER#{cid}", "sk": f"SHARED#{lid}"}


def collaborators_gsi_pk(*, owner_id: str, checklist_id: str) -> str:
    oid = _require(owner_id, "owner_id")
    lid = _require(checklist_id, "checklist_id")
    return f"OWNER#{oid}#CHECKLIST#{lid}"


def add_collaborator(*, owner_id: str, checklist_id: str, collaborator_id: str) -> dict[str, Any]:
    """Idempotent upsert: redeeming the same code twice rewrites the same relation."""
    oid = _require(owner_id, "owner_id")
    cid = _require(collaborator_id, "collaborator_id")
    if oid == cid:
        raise SelfShare(message="You cannot add yourself as a collaborator on your own checklist")

    item: dict[str, Any] = {
        **collaborator_key(collaborator_id=cid, checklist_id=checklist_id),
        "entityType": "Collaborator",
        "gsi1pk": collaborators_gsi_pk(owner_id=oid, checklist_id=checklist_id),
        "gsi1sk": f"COLLABORATOR#{cid}",
        "ownerId": oid,
        "checklistId": str(checklist_id).strip(),
        "collaboratorId": cid,
        "createdAt": now_iso(),
    }
    get_main_table().put_item(item=item)
    log.info("collaborator_added", owner_id=oid, checklist_id=item["checklistId"], collaborator_id=cid)
    return item


def remove_collaborator(*, collaborator_id: str, checklist_id: str) -> None:
    # DeleteItem on a missing key is a no-op.
    get_main_table().delete_item(
        key=collaborator_key(collaborator_id=collaborator_id, checklist_id=checklist_id)
    )
    log.info("collaborator_removed", checklist_id=checklist_id, collaborator_id=collaborator_id)


def resolve_owner(*, requesting_user_id: str, checklist_id: str) -> str:
    """
    Owner id for a checklist shared with `requesting_user_id`.

    Every shared read/write runs as the owner-scoped operation with this id
    as the partition key, never the requester's own id.
    """
    it = get_main_table().get_item(
        key=collaborator_key(collaborator_id=requesting_user_id, checklist_id=checklist_id)
    )
    owner_id = str((it or {}).get("ownerId") or "").strip()
    if not owner_id:
        raise NotACollaborator(message="You are not a collaborator on this checklist")
    return owner_id


def list_collaborator_ids(*, owner_id: str, checklist_id: str) -> list[str]:
    items = get_main_table().query_all(
        index_name="GSI1",
        key_condition_expression=Key("gsi1pk").eq(
            collaborators_gsi_pk(owner_id=owner_id, checklist_id=checklist_id)
        ),
    )
    out: list[str] = []
    for it in items:
        cid = str(it.get("collaboratorId") or "").strip()
        if cid:
            out.append(cid)
    return out


def list_shared_checklist_refs(*, collaborator_id: str) -> list[dict[str, str]]:
    """(ownerId, checklistId) pairs for every checklist shared with the user."""
    cid = _require(collaborator_id, "collaborator_id")
    items = get_main_table().query_all(
        key_condition_expression=Key("pk").eq(f"USER#{cid}") & Key("sk").begins_with("SHARED#"),
    )
    out: list[dict[str, str]] = []
    for it in items:
        oid = str(it.get("ownerId") or "").strip()
        lid = str(it.get("checklistId") or "").strip()
        if oid and lid:
            out.append({"ownerId": oid, "checklistId": lid})
    return out


def delete_collaborators_for_checklist(*, owner_id: str, checklist_id: str) -> int:
    ids = list_collaborator_ids(owner_id=owner_id, checklist_id=checklist_id)
    keys = [collaborator_key(collaborator_id=cid, checklist_id=checklist_id) for cid in ids]
    n = get_main_table().batch_delete(keys=keys)
    if n:
        log.info("collaborators_cascade_deleted", owner_id=owner_id, checklist_id=checklist_id, count=n)
    return n
