from __future__ import annotations

import pytest

from listo.db.dynamodb.errors import DdbConflict, DdbNotFound
from listo.errors import ChecklistLocked, ChecklistNotFound, NotACollaborator, SelfShare
from listo.repositories import checklists_repo, collaborators_repo, users_repo


def _auth(sub: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {sub}"}


def test_locked_checklist_cannot_be_deleted(memory_table):
    c = checklists_repo.create_checklist(owner_id="u1", title="Packing", locked=True)
    checklists_repo.create_item(owner_id="u1", checklist_id=c["id"], content="passport")

    with pytest.raises(ChecklistLocked):
        checklists_repo.delete_checklist(owner_id="u1", checklist_id=c["id"])

    assert len(checklists_repo.list_items(owner_id="u1", checklist_id=c["id"])) == 1


def test_locked_checklist_delete_is_conflict_over_http(client):
    r = client.post("/checklist", json={"title": "Packing", "locked": True}, headers=_auth("u1"))
    cid = r.json()["checklist"]["id"]

    r = client.delete(f"/checklist/{cid}", headers=_auth("u1"))
    assert r.status_code == 409
    assert r.json()["title"] == "Checklist Locked"

    # Unlock, then delete succeeds.
    client.put(f"/checklist/{cid}", json={"title": "Packing", "locked": False}, headers=_auth("u1"))
    assert client.delete(f"/checklist/{cid}", headers=_auth("u1")).status_code == 200


def test_delete_missing_checklist_is_not_found(memory_table):
    with pytest.raises(ChecklistNotFound):
        checklists_repo.delete_checklist(owner_id="u1", checklist_id="nope")


def test_delete_removes_items_and_relations_but_not_other_checklists(memory_table):
    keep = checklists_repo.create_checklist(owner_id="u1", title="Keep")
    gone = checklists_repo.create_checklist(owner_id="u1", title="Gone")
    for cid in (keep["id"], gone["id"]):
        checklists_repo.create_item(owner_id="u1", checklist_id=cid, content="x")
    collaborators_repo.add_collaborator(owner_id="u1", checklist_id=gone["id"], collaborator_id="u2")
    collaborators_repo.add_collaborator(owner_id="u1", checklist_id=keep["id"], collaborator_id="u2")

    checklists_repo.delete_checklist(owner_id="u1", checklist_id=gone["id"])

    assert [c["id"] for c in checklists_repo.list_checklists(owner_id="u1")] == [keep["id"]]
    assert len(checklists_repo.list_items(owner_id="u1", checklist_id=keep["id"])) == 1
    assert not any(gone["id"] in sk for (_pk, sk) in memory_table.items)
    with pytest.raises(NotACollaborator):
        collaborators_repo.resolve_owner(requesting_user_id="u2", checklist_id=gone["id"])
    assert collaborators_repo.resolve_owner(requesting_user_id="u2", checklist_id=keep["id"]) == "u1"


def test_items_are_listed_by_ordering(memory_table):
    c = checklists_repo.create_checklist(owner_id="u1", title="T")
    for content, ordering in (("c", 2), ("a", 0), ("b", 1)):
        checklists_repo.create_item(owner_id="u1", checklist_id=c["id"], content=content, ordering=ordering)

    assert [i["content"] for i in checklists_repo.list_items(owner_id="u1", checklist_id=c["id"])] == ["a", "b", "c"]


def test_create_item_requires_checklist(memory_table):
    with pytest.raises(ChecklistNotFound):
        checklists_repo.create_item(owner_id="u1", checklist_id="nope", content="x")


def test_update_missing_item_is_not_found(memory_table):
    c = checklists_repo.create_checklist(owner_id="u1", title="T")
    with pytest.raises(DdbNotFound):
        checklists_repo.update_item(
            owner_id="u1", checklist_id=c["id"], item_id="ghost", content="x", checked=True, ordering=0
        )


def test_update_missing_checklist_is_not_found(memory_table):
    with pytest.raises(ChecklistNotFound):
        checklists_repo.update_checklist(owner_id="u1", checklist_id="nope", title="x", locked=False)


def test_toggle_all_is_all_or_nothing(memory_table, monkeypatch):
    c = checklists_repo.create_checklist(owner_id="u1", title="T")
    for i in range(3):
        checklists_repo.create_item(owner_id="u1", checklist_id=c["id"], content=str(i), ordering=i)

    real_raw_items = checklists_repo._raw_items

    def _with_vanished_item(**kwargs):
        # One item was deleted between the read and the transaction.
        return [*real_raw_items(**kwargs), {"pk": "USER#u1", "sk": f"CHECKLIST#{c['id']}#ITEM#ghost"}]

    monkeypatch.setattr(checklists_repo, "_raw_items", _with_vanished_item)

    with pytest.raises(DdbConflict):
        checklists_repo.set_all_items_checked(owner_id="u1", checklist_id=c["id"], checked=True)

    monkeypatch.setattr(checklists_repo, "_raw_items", real_raw_items)
    items = checklists_repo.list_items(owner_id="u1", checklist_id=c["id"])
    assert [i["checked"] for i in items] == [False, False, False]

    assert checklists_repo.set_all_items_checked(owner_id="u1", checklist_id=c["id"], checked=True) == 3
    items = checklists_repo.list_items(owner_id="u1", checklist_id=c["id"])
    assert all(i["checked"] for i in items)


def test_toggle_all_on_empty_checklist_writes_nothing(memory_table):
    c = checklists_repo.create_checklist(owner_id="u1", title="T")
    assert checklists_repo.set_all_items_checked(owner_id="u1", checklist_id=c["id"], checked=True) == 0


def test_collaborator_cannot_be_owner(memory_table):
    with pytest.raises(SelfShare):
        collaborators_repo.add_collaborator(owner_id="u1", checklist_id="c1", collaborator_id="u1")


def test_collaborators_view_exposes_email_and_picture_only(memory_table):
    users_repo.upsert_user(user_sub="u1", email="owner@example.com", picture="p1")
    users_repo.upsert_user(user_sub="u2", email="guest@example.com", picture="p2")
    c = checklists_repo.create_checklist(owner_id="u1", title="T")
    collaborators_repo.add_collaborator(owner_id="u1", checklist_id=c["id"], collaborator_id="u2")

    got = checklists_repo.require_checklist(owner_id="u1", checklist_id=c["id"])["collaborators"]
    assert got == [
        {"email": "guest@example.com", "picture": "p2"},
        {"email": "owner@example.com", "picture": "p1"},
    ]


def test_first_login_creates_intro_checklist_once(client):
    r = client.post("/user", json={"email": "u1@example.com"}, headers=_auth("u1"))
    assert r.status_code == 200
    assert r.json()["message"] == "User created"

    r = client.post("/user", json={"email": "new@example.com", "picture": "pic"}, headers=_auth("u1"))
    assert r.json()["message"] == "User updated"
    assert r.json()["user"] == {"id": "u1", "email": "new@example.com", "picture": "pic"}

    checklists = client.get("/checklists", headers=_auth("u1")).json()["checklists"]
    assert [c["title"] for c in checklists] == [checklists_repo.INTRO_CHECKLIST_TITLE]

    items = client.get(f"/checklist/{checklists[0]['id']}", headers=_auth("u1")).json()["items"]
    assert [i["content"] for i in items] == checklists_repo.INTRO_CHECKLIST_ITEMS


def test_toggle_all_over_transaction_limit_is_rejected_and_changes_nothing(client, memory_table):
    from listo.db.dynamodb.table import MAX_TRANSACT_ITEMS

    c = checklists_repo.create_checklist(owner_id="u1", title="Big")
    for i in range(MAX_TRANSACT_ITEMS + 1):
        checklists_repo.create_item(owner_id="u1", checklist_id=c["id"], content=str(i), ordering=i)

    r = client.put(f"/checklist/{c['id']}/items", json={"checked": True}, headers=_auth("u1"))
    assert r.status_code == 400
    assert r.headers.get("content-type", "").startswith("application/problem+json")

    items = checklists_repo.list_items(owner_id="u1", checklist_id=c["id"])
    assert len(items) == MAX_TRANSACT_ITEMS + 1
    assert not any(i["checked"] for i in items)


def test_toggle_all_at_transaction_limit_succeeds(memory_table):
    from listo.db.dynamodb.table import MAX_TRANSACT_ITEMS

    c = checklists_repo.create_checklist(owner_id="u1", title="Full")
    for i in range(MAX_TRANSACT_ITEMS):
        checklists_repo.create_item(owner_id="u1", checklist_id=c["id"], content=str(i), ordering=i)

    n = checklists_repo.set_all_items_checked(owner_id="u1", checklist_id=c["id"], checked=True)
    assert n == MAX_TRANSACT_ITEMS


def test_title_only_update_keeps_lock(client):
    r = client.post("/checklist", json={"title": "Packing", "locked": True}, headers=_auth("u1"))
    cid = r.json()["checklist"]["id"]
    code = client.get(f"/checklist/{cid}/share", headers=_auth("u1")).json()["code"]
    client.post(f"/checklist/share/{code}", headers=_auth("u2"))

    r = client.put(f"/checklist/{cid}/shared", json={"title": "Packing list"}, headers=_auth("u2"))
    assert r.status_code == 200
    assert r.json()["checklist"]["locked"] is True

    r = client.put(f"/checklist/{cid}", json={"title": "Packing"}, headers=_auth("u1"))
    assert r.json()["checklist"]["locked"] is True
    assert client.delete(f"/checklist/{cid}", headers=_auth("u1")).status_code == 409
