from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ..repositories import checklists_repo
from ._user import current_user_sub

router = APIRouter(tags=["checklists"])


class CreateChecklistRequest(BaseModel):
    title: str = Field(..., min_length=1)
    locked: bool = False


class UpdateChecklistRequest(BaseModel):
    title: str = Field(..., min_length=1)
    # Omitted means "leave as is"; a title-only edit must not unlock.
    locked: bool | None = None


class CreateItemRequest(BaseModel):
    content: str = ""
    ordering: int = 0


class UpdateItemRequest(BaseModel):
    content: str = ""
    checked: bool = False
    ordering: int = 0


class SetAllItemsRequest(BaseModel):
    checked: bool


# Owner-scoped implementations. `owner_id` is always the partition owner;
# shared routes resolve it from the collaborator relation before calling these.


def get_checklist_impl(owner_id: str, checklist_id: str):
    checklist = checklists_repo.require_checklist(owner_id=owner_id, checklist_id=checklist_id)
    items = checklists_repo.list_items(owner_id=owner_id, checklist_id=checklist_id)
    return {"checklist": checklist, "items": items}


def update_checklist_impl(owner_id: str, checklist_id: str, body: UpdateChecklistRequest):
    updated = checklists_repo.update_checklist(
        owner_id=owner_id, checklist_id=checklist_id, title=body.title, locked=body.locked
    )
    return {"message": "Checklist updated", "checklist": updated}


def create_item_impl(owner_id: str, checklist_id: str, body: CreateItemRequest):
    item = checklists_repo.create_item(
        owner_id=owner_id, checklist_id=checklist_id, content=body.content, ordering=body.ordering
    )
    return {"message": "Item created", "item": item}


def set_all_items_impl(owner_id: str, checklist_id: str, body: SetAllItemsRequest):
    n = checklists_repo.set_all_items_checked(
        owner_id=owner_id, checklist_id=checklist_id, checked=body.checked
    )
    return {"message": "Items updated", "count": n}


def update_item_impl(owner_id: str, checklist_id: str, item_id: str, body: UpdateItemRequest):
    item = checklists_repo.update_item(
        owner_id=owner_id,
        checklist_id=checklist_id,
        item_id=item_id,
        content=body.content,
        checked=body.checked,
        ordering=body.ordering,
    )
    return {"message": "Item updated", "item": item}


def delete_item_impl(owner_id: str, checklist_id: str, item_id: str):
    checklists_repo.delete_item(owner_id=owner_id, checklist_id=checklist_id, item_id=item_id)
    return {"message": "Item deleted"}


# --- checklists ---


@router.get("/checklists")
def list_checklists(request: Request):
    return {"checklists": checklists_repo.list_checklists(owner_id=current_user_sub(request))}


@router.post("/checklist")
def create_checklist(request: Request, body: CreateChecklistRequest):
    checklist = checklists_repo.create_checklist(
        owner_id=current_user_sub(request), title=body.title, locked=body.locked
    )
    return {"message": "Checklist created", "checklist": checklist}


@router.get("/checklist/{checklistId}")
def get_checklist(checklistId: str, request: Request):
    return get_checklist_impl(current_user_sub(request), checklistId)


@router.put("/checklist/{checklistId}")
def put_checklist(checklistId: str, request: Request, body: UpdateChecklistRequest):
    return update_checklist_impl(current_user_sub(request), checklistId, body)


@router.delete("/checklist/{checklistId}")
def delete_checklist(checklistId: str, request: Request):
    checklists_repo.delete_checklist(owner_id=current_user_sub(request), checklist_id=checklistId)
    return {"message": "Checklist deleted"}


# --- items ---


@router.post("/checklist/{checklistId}/item")
def post_item(checklistId: str, request: Request, body: CreateItemRequest):
    return create_item_impl(current_user_sub(request), checklistId, body)


@router.put("/checklist/{checklistId}/items")
def put_all_items(checklistId: str, request: Request, body: SetAllItemsRequest):
    return set_all_items_impl(current_user_sub(request), checklistId, body)


@router.put("/checklist/{checklistId}/item/{itemId}")
def put_item(checklistId: str, itemId: str, request: Request, body: UpdateItemRequest):
    return update_item_impl(current_user_sub(request), checklistId, itemId, body)


@router.delete("/checklist/{checklistId}/item/{itemId}")
def delete_item(checklistId: str, itemId: str, request: Request):
    return delete_item_impl(current_user_sub(request), checklistId, itemId)
