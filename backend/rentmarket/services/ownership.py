# backend/rentmarket/services/ownership.py
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..errors import NotFound
from ..models import Inquiry, Property, Requirement, User


def must_get_user(db: Session, *, user_id: int) -> User:
    row = db.get(User, int(user_id))
    if not row:
        raise NotFound("User not found")
    return row


def must_get_property(db: Session, *, property_id: int) -> Property:
    row = db.get(Property, int(property_id))
    if not row:
        raise NotFound("Property not found")
    return row


def must_get_inquiry(db: Session, *, inquiry_id: int) -> Inquiry:
    row = db.scalar(
        select(Inquiry).where(Inquiry.id == int(inquiry_id)).options(selectinload(Inquiry.replies))
    )
    if not row:
        raise NotFound("Inquiry not found")
    return row


def must_get_requirement(db: Session, *, requirement_id: int) -> Requirement:
    row = db.get(Requirement, int(requirement_id))
    if not row:
        raise NotFound("Requirement not found")
    return row
