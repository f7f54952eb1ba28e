from __future__ import annotations

from fastapi import APIRouter, Request

from ..errors import ChecklistNotFound
from ..observability.logging import get_logger
from ..repositories import checklists_repo
from ..repositories.collaborators_repo import add_collaborator
from ..sharing.service import get_sharing_service
from ._user import current_user_sub

router = APIRouter(tags=["sharing"])
log = get_logger("sharing_api")


@router.get("/checklist/{checklistId}/share")
def get_share_code(checklistId: str, request: Request):
    owner_id = current_user_sub(request)
    # Only the owner can share; this also rejects unknown ids.
    checklists_repo.require_checklist(owner_id=owner_id, checklist_id=checklistId)
    code = get_sharing_service().issue(checklistId, owner_id)
    return {"code": code}


@router.post("/checklist/share/{code}")
def redeem_share_code(code: str, request: Request):
    user_sub = current_user_sub(request)

    # Resolve fully (cache, signature, expiry, self-share) before any write.
    share = get_sharing_service().redeem(code, user_sub)

    if not checklists_repo.get_checklist(owner_id=share.owner_id, checklist_id=share.checklist_id):
        raise ChecklistNotFound(message="The shared checklist no longer exists")

    add_collaborator(
        owner_id=share.owner_id,
        checklist_id=share.checklist_id,
        collaborator_id=user_sub,
    )
    log.info("share_code_redeemed", checklist_id=share.checklist_id, collaborator_id=user_sub)
    return {"message": "Added to checklist", "checklist_id": share.checklist_id}
