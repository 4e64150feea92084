# backend/rentmarket/services/inquiry_lifecycle.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import desc, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..access import AccessContext
from ..domain.inquiry_states import (
    ACTIVE_STATUSES,
    InquiryStatus,
    normalize_status,
    status_after_reply,
)
from ..errors import DuplicateInquiry, Forbidden, InquiryClosed, ValidationFailed
from ..models import Inquiry, InquiryReply, Property, User, utcnow
from ..schemas import InquiryCreate
from .ownership import must_get_inquiry, must_get_property, must_get_user

log = logging.getLogger("rentmarket.inquiries")


def _active_exists(db: Session, *, tenant_id: int, property_id: int, exclude_id: Optional[int] = None) -> bool:
    q = select(Inquiry.id).where(
        Inquiry.tenant_id == int(tenant_id),
        Inquiry.property_id == int(property_id),
        Inquiry.status.in_(ACTIVE_STATUSES),
    )
    if exclude_id is not None:
        q = q.where(Inquiry.id != int(exclude_id))
    return db.scalar(q.limit(1)) is not None


def _commit_or_duplicate(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        # partial unique index on (tenant_id, property_id) for active statuses
        db.rollback()
        raise DuplicateInquiry()


def _must_get_as_party(db: Session, ctx: AccessContext, inquiry_id: int) -> Inquiry:
    row = must_get_inquiry(db, inquiry_id=inquiry_id)
    if not ctx.is_inquiry_party(row):
        raise Forbidden("Not a party to this inquiry")
    return row


def create_inquiry(db: Session, ctx: AccessContext, payload: InquiryCreate) -> Inquiry:
    ctx.demand("can_create_inquiry", "Only tenants can send inquiries")

    prop = must_get_property(db, property_id=payload.property_id)
    tenant = must_get_user(db, user_id=ctx.user_id)
    owner = db.get(User, int(prop.owner_id))

    if _active_exists(db, tenant_id=tenant.id, property_id=prop.id):
        raise DuplicateInquiry()

    row = Inquiry(
        property_id=int(prop.id),
        property_title=prop.title,
        tenant_id=int(tenant.id),
        tenant_name=tenant.name,
        tenant_email=tenant.email,
        tenant_phone=payload.phone,
        owner_id=int(prop.owner_id),
        owner_name=owner.name if owner else prop.owner_name,
        owner_email=owner.email if owner else prop.owner_email,
        message=payload.message,
        move_in_date=payload.move_in_date,
        budget=payload.budget,
        status=InquiryStatus.PENDING.value,
        is_read=False,
        created_at=utcnow(),
    )
    db.add(row)
    db.execute(
        update(Property).where(Property.id == prop.id).values(inquiry_count=Property.inquiry_count + 1)
    )
    _commit_or_duplicate(db)
    db.refresh(row)

    log.info(
        "inquiry created",
        extra={"user_id": ctx.user_id, "property_id": prop.id, "inquiry_id": row.id},
    )
    return row


def append_reply(db: Session, ctx: AccessContext, inquiry_id: int, message: str, *, reopen: bool = True) -> Inquiry:
    """
    Either party may reply. A reply always leaves the inquiry in 'replied' and unread
    for the other side. On a sink state, `reopen` decides between reopening and refusal.
    """
    row = _must_get_as_party(db, ctx, inquiry_id)

    next_status = status_after_reply(row.status, reopen=reopen)
    if next_status is None:
        raise InquiryClosed()

    sender = must_get_user(db, user_id=ctx.user_id)
    now = utcnow()
    row.replies.append(
        InquiryReply(
            sender_id=int(sender.id),
            sender_name=sender.name,
            sender_role=str(sender.role),
            message=message,
            created_at=now,
        )
    )
    previous = row.status
    row.status = next_status
    row.is_read = False
    row.updated_at = now
    _commit_or_duplicate(db)

    log.info(
        "inquiry reply %s -> %s",
        previous,
        next_status,
        extra={"user_id": ctx.user_id, "inquiry_id": row.id},
    )
    return must_get_inquiry(db, inquiry_id=row.id)


def mark_read(db: Session, ctx: AccessContext, inquiry_id: int) -> Inquiry:
    row = _must_get_as_party(db, ctx, inquiry_id)
    row.is_read = True
    row.read_at = utcnow()
    db.commit()
    return must_get_inquiry(db, inquiry_id=row.id)


def set_status(db: Session, ctx: AccessContext, inquiry_id: int, status: str) -> Inquiry:
    try:
        status = normalize_status(status)
    except ValueError as e:
        raise ValidationFailed(str(e))

    row = _must_get_as_party(db, ctx, inquiry_id)
    if status in ACTIVE_STATUSES and row.status not in ACTIVE_STATUSES:
        if _active_exists(db, tenant_id=row.tenant_id, property_id=row.property_id, exclude_id=row.id):
            raise DuplicateInquiry("Another active inquiry exists for this property")

    previous = row.status
    row.status = status
    row.updated_at = utcnow()
    _commit_or_duplicate(db)

    log.info(
        "inquiry status %s -> %s",
        previous,
        status,
        extra={"user_id": ctx.user_id, "inquiry_id": row.id},
    )
    return must_get_inquiry(db, inquiry_id=row.id)


def get_inquiry(db: Session, ctx: AccessContext, inquiry_id: int) -> Inquiry:
    row = must_get_inquiry(db, inquiry_id=inquiry_id)
    if not ctx.can_read_inquiry(row):
        raise Forbidden("Not a party to this inquiry")
    return row


def list_inquiries(db: Session, ctx: AccessContext, *, status: Optional[str] = None) -> list[Inquiry]:
    q = (
        select(Inquiry)
        .where(ctx.inquiry_scope())
        .options(selectinload(Inquiry.replies))
        .order_by(desc(Inquiry.created_at), desc(Inquiry.id))
    )
    if status and status.strip().lower() != "all":
        try:
            q = q.where(Inquiry.status == normalize_status(status))
        except ValueError as e:
            raise ValidationFailed(str(e))
    return list(db.scalars(q).all())
