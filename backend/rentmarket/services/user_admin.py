# backend/rentmarket/services/user_admin.py
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..access import AccessContext
from ..errors import AccountExists, SelfActionDenied, ValidationFailed
from ..models import Bookmark, Inquiry, InquiryReply, Property, Requirement, Role, User
from ..schemas import ProfileUpdate
from .ownership import must_get_user

log = logging.getLogger("rentmarket.users")

# actions an admin may not aim at their own account
SELF_DENIED_ACTIONS = frozenset({"deactivate", "demote", "delete"})


def _count_by(db: Session, col) -> dict[int, int]:
    return {int(k): int(v) for k, v in db.execute(select(col, func.count()).group_by(col)).all()}


def user_stats(db: Session, user: User) -> dict[str, Any]:
    uid = int(user.id)
    return {
        "property_count": int(db.scalar(select(func.count()).select_from(Property).where(Property.owner_id == uid)) or 0),
        "inquiry_count": int(
            db.scalar(
                select(func.count())
                .select_from(Inquiry)
                .where(or_(Inquiry.tenant_id == uid, Inquiry.owner_id == uid))
            )
            or 0
        ),
        "bookmark_count": int(db.scalar(select(func.count()).select_from(Bookmark).where(Bookmark.user_id == uid)) or 0),
    }


def list_users(db: Session, ctx: AccessContext, *, role: str | None = None) -> list[dict[str, Any]]:
    ctx.demand("can_moderate", "Admin access required")

    q = select(User).order_by(desc(User.created_at), desc(User.id))
    if role and role != "all":
        q = q.where(User.role == role)
    users = list(db.scalars(q).all())

    props = _count_by(db, Property.owner_id)
    as_tenant = _count_by(db, Inquiry.tenant_id)
    as_owner = _count_by(db, Inquiry.owner_id)
    marks = _count_by(db, Bookmark.user_id)

    out: list[dict[str, Any]] = []
    for u in users:
        uid = int(u.id)
        out.append(
            {
                "user": u,
                "property_count": props.get(uid, 0),
                "inquiry_count": as_tenant.get(uid, 0) + as_owner.get(uid, 0),
                "bookmark_count": marks.get(uid, 0),
            }
        )
    return out


def get_user_detail(db: Session, ctx: AccessContext, user_id: int) -> dict[str, Any]:
    ctx.demand("can_moderate", "Admin access required")
    user = must_get_user(db, user_id=user_id)
    return {"user": user, **user_stats(db, user)}


def moderate_user(db: Session, ctx: AccessContext, user_id: int, action: str) -> str:
    """
    Apply one admin action to a user. Self-protection is checked before the
    target is even looked up, so an admin can never lock themselves out.
    """
    ctx.demand("can_moderate", "Admin access required")

    if action in SELF_DENIED_ACTIONS and int(user_id) == ctx.user_id:
        raise SelfActionDenied(f"You cannot {action} your own account")

    if action == "delete":
        delete_user_cascade(db, ctx, user_id)
        return "User deleted successfully"

    user = must_get_user(db, user_id=user_id)

    if action == "activate":
        user.is_active = True
        msg = "User activated successfully"
    elif action == "deactivate":
        user.is_active = False
        msg = "User deactivated successfully"
    elif action == "promote":
        if user.role == Role.ADMIN.value:
            raise ValidationFailed("User is already an admin")
        # listings must stay owned by an owner account; admins cannot edit them
        owned = db.scalar(select(func.count()).select_from(Property).where(Property.owner_id == user.id)) or 0
        if owned:
            raise ValidationFailed("User still owns listings; delete them before promoting")
        user.role = Role.ADMIN.value
        msg = "User promoted to admin"
    elif action == "demote":
        if user.role != Role.ADMIN.value:
            raise ValidationFailed("User is not an admin")
        user.role = Role.OWNER.value
        msg = "User demoted to owner"
    else:
        raise ValidationFailed("Invalid action")

    db.commit()
    log.info("user moderated: %s", action, extra={"user_id": ctx.user_id, "target_user_id": user.id})
    return msg


def delete_user_cascade(db: Session, ctx: AccessContext, user_id: int) -> None:
    """
    Hard delete in one transaction: replies, inquiries (either side), bookmarks
    (theirs and those on their listings), requirements, properties, then the user.
    """
    ctx.demand("can_moderate", "Admin access required")
    if int(user_id) == ctx.user_id:
        raise SelfActionDenied("You cannot delete your own account")

    user = must_get_user(db, user_id=user_id)
    uid = int(user.id)

    property_ids = select(Property.id).where(Property.owner_id == uid).scalar_subquery()
    inquiry_ids = select(Inquiry.id).where(or_(Inquiry.tenant_id == uid, Inquiry.owner_id == uid)).scalar_subquery()

    db.execute(delete(InquiryReply).where(InquiryReply.inquiry_id.in_(inquiry_ids)))
    db.execute(delete(Inquiry).where(or_(Inquiry.tenant_id == uid, Inquiry.owner_id == uid)))
    db.execute(delete(Bookmark).where(or_(Bookmark.user_id == uid, Bookmark.property_id.in_(property_ids))))
    db.execute(delete(Requirement).where(Requirement.tenant_id == uid))
    db.execute(delete(Property).where(Property.owner_id == uid))
    db.execute(delete(User).where(User.id == uid))
    db.commit()

    log.info("user deleted", extra={"user_id": ctx.user_id, "target_user_id": uid})


def update_profile(db: Session, ctx: AccessContext, payload: ProfileUpdate) -> User:
    """
    Name/phone only. Snapshots already copied onto listings and inquiries keep
    the old values.
    """
    user = must_get_user(db, user_id=ctx.user_id)

    if payload.phone is not None and payload.phone != user.phone:
        taken = db.scalar(select(User.id).where(User.phone == payload.phone, User.id != user.id))
        if taken is not None:
            raise AccountExists("User with this phone number already exists")
        user.phone = payload.phone
    if payload.name is not None:
        user.name = payload.name

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AccountExists("User with this phone number already exists")
    db.refresh(user)

    log.info("profile updated", extra={"user_id": ctx.user_id})
    return user
