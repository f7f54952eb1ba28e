from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ..observability.logging import get_logger
from ..repositories.checklists_repo import create_introductory_checklist
from ..repositories.users_repo import upsert_user
from ._user import current_user_sub

router = APIRouter(tags=["users"])
log = get_logger("users")


class UserRequest(BaseModel):
    email: str = Field(..., min_length=1)
    picture: str = ""


@router.post("/user")
def post_user(request: Request, body: UserRequest):
    sub = current_user_sub(request)
    user, created = upsert_user(user_sub=sub, email=body.email, picture=body.picture)
    if created:
        create_introductory_checklist(owner_id=sub)
        log.info("user_created", user_sub=sub)
    return {"message": "User created" if created else "User updated", "user": user}
