# backend/rentmarket/services/requirements.py
from __future__ import annotations

import logging

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..access import AccessContext
from ..errors import Forbidden
from ..models import Requirement, utcnow
from ..schemas import RequirementCreate
from .ownership import must_get_requirement, must_get_user

log = logging.getLogger("rentmarket.requirements")


def create_requirement(db: Session, ctx: AccessContext, payload: RequirementCreate) -> Requirement:
    ctx.demand("can_post_requirement", "Only tenants can post requirements")

    tenant = must_get_user(db, user_id=ctx.user_id)
    row = Requirement(
        title=payload.title,
        description=payload.description,
        max_rent=float(payload.max_rent),
        bhk=int(payload.bhk),
        furnishing=payload.furnishing,
        property_type=payload.property_type,
        city=payload.city,
        state=payload.state,
        preferred_areas=list(payload.preferred_areas),
        amenities=list(payload.amenities),
        tenant_id=int(tenant.id),
        tenant_name=tenant.name,
        tenant_email=tenant.email,
        tenant_phone=tenant.phone or "",
        move_in_date=payload.move_in_date,
        is_active=True,
        created_at=utcnow(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)

    log.info("requirement posted", extra={"user_id": ctx.user_id})
    return row


def list_active_requirements(db: Session, *, city: str | None = None) -> list[Requirement]:
    q = select(Requirement).where(Requirement.is_active.is_(True))
    if city:
        q = q.where(Requirement.city == city.strip())
    q = q.order_by(desc(Requirement.created_at), desc(Requirement.id))
    return list(db.scalars(q).all())


def list_my_requirements(db: Session, ctx: AccessContext) -> list[Requirement]:
    q = (
        select(Requirement)
        .where(Requirement.tenant_id == ctx.user_id)
        .order_by(desc(Requirement.created_at), desc(Requirement.id))
    )
    return list(db.scalars(q).all())


def close_requirement(db: Session, ctx: AccessContext, requirement_id: int) -> Requirement:
    row = must_get_requirement(db, requirement_id=requirement_id)
    if int(row.tenant_id) != ctx.user_id:
        raise Forbidden("You can only close your own requirements")

    row.is_active = False
    db.commit()
    db.refresh(row)

    log.info("requirement closed", extra={"user_id": ctx.user_id})
    return row
