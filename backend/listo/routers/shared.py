from __future__ import annotations

from fastapi import APIRouter, Request

from ..repositories import checklists_repo
from ..repositories.collaborators_repo import remove_collaborator, resolve_owner
from ._user import current_user_sub
from .checklists import (
    CreateItemRequest,
    SetAllItemsRequest,
    UpdateChecklistRequest,
    UpdateItemRequest,
    create_item_impl,
    delete_item_impl,
    get_checklist_impl,
    set_all_items_impl,
    update_checklist_impl,
    update_item_impl,
)

router = APIRouter(tags=["shared"])


def _owner_for(request: Request, checklist_id: str) -> str:
    return resolve_owner(requesting_user_id=current_user_sub(request), checklist_id=checklist_id)


@router.get("/checklists/shared")
def list_shared_checklists(request: Request):
    return {"checklists": checklists_repo.list_shared_checklists(collaborator_id=current_user_sub(request))}


@router.get("/checklist/{checklistId}/shared")
def get_shared_checklist(checklistId: str, request: Request):
    return get_checklist_impl(_owner_for(request, checklistId), checklistId)


@router.put("/checklist/{checklistId}/shared")
def put_shared_checklist(checklistId: str, request: Request, body: UpdateChecklistRequest):
    return update_checklist_impl(_owner_for(request, checklistId), checklistId, body)


@router.delete("/checklist/{checklistId}/shared/user")
def leave_shared_checklist(checklistId: str, request: Request):
    remove_collaborator(collaborator_id=current_user_sub(request), checklist_id=checklistId)
    return {"message": "Left checklist"}


@router.post("/checklist/{checklistId}/shared/item")
def post_shared_item(checklistId: str, request: Request, body: CreateItemRequest):
    return create_item_impl(_owner_for(request, checklistId), checklistId, body)


@router.put("/checklist/{checklistId}/shared/items")
def put_all_shared_items(checklistId: str, request: Request, body: SetAllItemsRequest):
    return set_all_items_impl(_owner_for(request, checklistId), checklistId, body)


@router.put("/checklist/{checklistId}/shared/item/{itemId}")
def put_shared_item(checklistId: str, itemId: str, request: Request, body: UpdateItemRequest):
    return update_item_impl(_owner_for(request, checklistId), checklistId, itemId, body)


@router.delete("/checklist/{checklistId}/shared/item/{itemId}")
def delete_shared_item(checklistId: str, itemId: str, request: Request):
    return delete_item_impl(_owner_for(request, checklistId), checklistId, itemId)
