# backend/rentmarket/services/listings.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.orm import Session

from ..access import AccessContext
from ..errors import Forbidden, ValidationFailed
from ..models import Bookmark, Inquiry, Property, PropertyView, utcnow
from ..schemas import PropertyCreate, PropertyUpdate
from .ownership import must_get_property, must_get_user

log = logging.getLogger("rentmarket.listings")

# larger page numbers overflow the store's integer offset
MAX_PAGE = 10_000

# admin action -> column updates
MODERATION_ACTIONS: dict[str, dict[str, bool]] = {
    "verify": {"is_verified": True},
    "reject": {"is_verified": False, "is_active": False},
    "activate": {"is_active": True},
    "deactivate": {"is_active": False},
}

MODERATION_MESSAGES: dict[str, str] = {
    "verify": "Property verified successfully",
    "reject": "Property rejected and deactivated",
    "activate": "Property activated successfully",
    "deactivate": "Property deactivated successfully",
}


@dataclass(frozen=True)
class ListingFilters:
    city: Optional[str] = None
    min_rent: Optional[float] = None
    max_rent: Optional[float] = None
    bhk: Optional[int] = None
    furnishing: Optional[str] = None
    property_type: Optional[str] = None


def _location_columns(payload: Any) -> dict[str, Any]:
    loc = payload.location
    return {
        "address": loc.address,
        "city": loc.city,
        "state": loc.state,
        "pincode": loc.pincode,
        "latitude": float(loc.coordinates.lat),
        "longitude": float(loc.coordinates.lng),
    }


def list_public(
    db: Session,
    *,
    page: int = 1,
    limit: int = 12,
    filters: ListingFilters | None = None,
) -> list[Property]:
    """
    Public listing: only is_active=true rows, newest first.
    Filters only narrow the result further; they can never widen it past is_active.
    """
    f = filters or ListingFilters()
    q = select(Property).where(Property.is_active.is_(True))

    if f.city:
        q = q.where(func.lower(Property.city) == f.city.strip().lower())
    if f.min_rent is not None:
        q = q.where(Property.rent >= float(f.min_rent))
    if f.max_rent is not None:
        q = q.where(Property.rent <= float(f.max_rent))
    if f.bhk is not None:
        q = q.where(Property.bhk == int(f.bhk))
    if f.furnishing:
        q = q.where(Property.furnishing == f.furnishing)
    if f.property_type:
        q = q.where(Property.property_type == f.property_type)

    page = min(max(1, int(page)), MAX_PAGE)
    q = q.order_by(desc(Property.created_at), desc(Property.id)).offset((page - 1) * limit).limit(limit)
    return list(db.scalars(q).all())


def list_owned(db: Session, ctx: AccessContext) -> list[Property]:
    ctx.demand("can_list_own_properties", "Only owners have properties")
    q = select(Property).where(Property.owner_id == ctx.user_id).order_by(desc(Property.created_at), desc(Property.id))
    return list(db.scalars(q).all())


def get_property(db: Session, *, property_id: int) -> Property:
    return must_get_property(db, property_id=property_id)


def create_property(db: Session, ctx: AccessContext, payload: PropertyCreate) -> Property:
    ctx.demand("can_create_property", "Only owners can list properties")

    owner = must_get_user(db, user_id=ctx.user_id)
    row = Property(
        title=payload.title,
        description=payload.description,
        rent=float(payload.rent),
        deposit=float(payload.deposit),
        bhk=int(payload.bhk),
        furnishing=payload.furnishing.value,
        property_type=payload.property_type.value,
        area=float(payload.area),
        amenities=list(payload.amenities),
        images=list(payload.images),
        owner_id=int(owner.id),
        owner_name=owner.name or "Unknown",
        owner_email=owner.email or "",
        owner_phone=owner.phone or "",
        is_verified=False,
        is_active=True,
        available_from=payload.available_from,
        view_count=0,
        inquiry_count=0,
        created_at=utcnow(),
        **_location_columns(payload),
    )
    db.add(row)
    db.commit()
    db.refresh(row)

    log.info("property created", extra={"user_id": ctx.user_id, "property_id": row.id})
    return row


def _must_get_mutable(db: Session, ctx: AccessContext, property_id: int) -> Property:
    row = must_get_property(db, property_id=property_id)
    if not ctx.can_mutate_property(row):
        raise Forbidden("You can only modify your own properties")
    return row


def update_property(db: Session, ctx: AccessContext, property_id: int, payload: PropertyUpdate) -> Property:
    row = _must_get_mutable(db, ctx, property_id)

    changes = payload.model_dump(exclude_unset=True, exclude={"location"})
    for k, v in changes.items():
        if v is None:
            continue
        if hasattr(v, "value"):
            v = v.value
        setattr(row, k, v)
    if payload.location is not None:
        for k, v in _location_columns(payload).items():
            setattr(row, k, v)

    db.commit()
    db.refresh(row)

    log.info("property updated", extra={"user_id": ctx.user_id, "property_id": row.id})
    return row


def delete_property(db: Session, ctx: AccessContext, property_id: int) -> None:
    row = _must_get_mutable(db, ctx, property_id)

    # bookmarks die with the listing; inquiries keep their title snapshot
    db.execute(delete(Bookmark).where(Bookmark.property_id == row.id))
    db.delete(row)
    db.commit()

    log.info("property deleted", extra={"user_id": ctx.user_id, "property_id": property_id})


def moderate_property(db: Session, ctx: AccessContext, property_id: int, action: str) -> str:
    ctx.demand("can_moderate", "Admin access required")

    updates = MODERATION_ACTIONS.get(action)
    if updates is None:
        raise ValidationFailed("Invalid action")

    row = must_get_property(db, property_id=property_id)
    for k, v in updates.items():
        setattr(row, k, v)
    db.commit()

    log.info("property moderated: %s", action, extra={"user_id": ctx.user_id, "property_id": row.id})
    return MODERATION_MESSAGES[action]


def record_view(
    db: Session,
    *,
    property_id: int,
    user_agent: str = "",
    ip: str = "",
    user_id: Optional[int] = None,
) -> None:
    """
    Unauthenticated and unthrottled. One event row + one atomic counter bump.
    """
    must_get_property(db, property_id=property_id)

    now = utcnow()
    db.add(
        PropertyView(
            property_id=int(property_id),
            user_id=user_id,
            user_agent=(user_agent or "")[:512],
            ip=(ip or "")[:64],
            viewed_at=now,
        )
    )
    db.execute(
        update(Property)
        .where(Property.id == int(property_id))
        .values(view_count=Property.view_count + 1, last_viewed_at=now)
    )
    db.commit()


def admin_list_properties(db: Session, ctx: AccessContext) -> list[dict[str, Any]]:
    """
    Every property (active or not) with view/inquiry counts taken from the event tables.
    """
    ctx.demand("can_moderate", "Admin access required")

    rows = list(db.scalars(select(Property).order_by(desc(Property.created_at), desc(Property.id))).all())

    view_counts = dict(
        db.execute(select(PropertyView.property_id, func.count()).group_by(PropertyView.property_id)).all()
    )
    inquiry_counts = dict(
        db.execute(select(Inquiry.property_id, func.count()).group_by(Inquiry.property_id)).all()
    )

    out: list[dict[str, Any]] = []
    for p in rows:
        out.append(
            {
                "property": p,
                "tracked_views": int(view_counts.get(p.id, 0)),
                "tracked_inquiries": int(inquiry_counts.get(p.id, 0)),
            }
        )
    return out
