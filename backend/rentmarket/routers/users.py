# backend/rentmarket/routers/users.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..access import AccessContext, get_context, require_admin
from ..db import get_db
from ..schemas import MessageOut, ProfileUpdate, UserAction, UserOut, UserStatsOut
from ..services import user_admin

router = APIRouter(prefix="/users", tags=["users"])


def _with_stats(row: dict) -> UserStatsOut:
    base = UserOut.model_validate(row["user"]).model_dump()
    return UserStatsOut(
        **base,
        property_count=row["property_count"],
        inquiry_count=row["inquiry_count"],
        bookmark_count=row["bookmark_count"],
    )


@router.get("", response_model=list[UserStatsOut])
def list_users(
    role: Optional[str] = Query(default=None, description="tenant|owner|admin|all"),
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(require_admin),
):
    return [_with_stats(r) for r in user_admin.list_users(db, ctx, role=role)]


@router.patch("/me", response_model=UserOut)
def update_me(payload: ProfileUpdate, db: Session = Depends(get_db), ctx: AccessContext = Depends(get_context)):
    return user_admin.update_profile(db, ctx, payload)


@router.get("/{user_id}", response_model=UserStatsOut)
def get_user(user_id: int, db: Session = Depends(get_db), ctx: AccessContext = Depends(require_admin)):
    return _with_stats(user_admin.get_user_detail(db, ctx, user_id))


@router.put("/{user_id}", response_model=MessageOut)
def act_on_user(
    user_id: int,
    payload: UserAction,
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(require_admin),
):
    return MessageOut(message=user_admin.moderate_user(db, ctx, user_id, payload.action))


@router.delete("/{user_id}", response_model=MessageOut)
def delete_user(user_id: int, db: Session = Depends(get_db), ctx: AccessContext = Depends(require_admin)):
    return MessageOut(message=user_admin.moderate_user(db, ctx, user_id, "delete"))
