# backend/rentmarket/services/bookmarks.py
from __future__ import annotations

import logging

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..access import AccessContext
from ..errors import AlreadyBookmarked, NotFound
from ..models import Bookmark, Property, utcnow
from .ownership import must_get_property

log = logging.getLogger("rentmarket.bookmarks")


def add_bookmark(db: Session, ctx: AccessContext, *, property_id: int) -> Bookmark:
    prop = must_get_property(db, property_id=property_id)

    existing = db.scalar(
        select(Bookmark.id).where(Bookmark.user_id == ctx.user_id, Bookmark.property_id == prop.id)
    )
    if existing is not None:
        raise AlreadyBookmarked()

    row = Bookmark(user_id=ctx.user_id, property_id=int(prop.id), created_at=utcnow())
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyBookmarked()
    db.refresh(row)

    log.info("bookmark added", extra={"user_id": ctx.user_id, "property_id": prop.id})
    return row


def remove_bookmark(db: Session, ctx: AccessContext, *, property_id: int) -> None:
    res = db.execute(
        delete(Bookmark).where(Bookmark.user_id == ctx.user_id, Bookmark.property_id == int(property_id))
    )
    if not res.rowcount:
        db.rollback()
        raise NotFound("Bookmark not found")
    db.commit()

    log.info("bookmark removed", extra={"user_id": ctx.user_id, "property_id": property_id})


def list_bookmarked_properties(db: Session, ctx: AccessContext) -> list[Property]:
    """Bookmarked listings that are still active, most recently saved first."""
    q = (
        select(Property)
        .join(Bookmark, Bookmark.property_id == Property.id)
        .where(Bookmark.user_id == ctx.user_id, Property.is_active.is_(True))
        .order_by(desc(Bookmark.created_at), desc(Bookmark.id))
    )
    return list(db.scalars(q).all())


def list_bookmark_ids(db: Session, ctx: AccessContext) -> list[int]:
    q = select(Bookmark.property_id).where(Bookmark.user_id == ctx.user_id).order_by(Bookmark.id)
    return [int(x) for x in db.scalars(q).all()]
