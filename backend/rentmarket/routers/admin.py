# backend/rentmarket/routers/admin.py
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..access import AccessContext, require_admin
from ..auth import get_settings
from ..config import Settings
from ..db import get_db
from ..schemas import AdminPropertyOut, MessageOut, PropertyAction, PropertyOut
from ..services import analytics, listings

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/properties", response_model=list[AdminPropertyOut])
def all_properties(db: Session = Depends(get_db), ctx: AccessContext = Depends(require_admin)):
    out: list[AdminPropertyOut] = []
    for row in listings.admin_list_properties(db, ctx):
        base = PropertyOut.model_validate(row["property"]).model_dump()
        out.append(
            AdminPropertyOut(**base, tracked_views=row["tracked_views"], tracked_inquiries=row["tracked_inquiries"])
        )
    return out


@router.put("/properties/{property_id}", response_model=MessageOut)
def moderate_property(
    property_id: int,
    payload: PropertyAction,
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(require_admin),
):
    return MessageOut(message=listings.moderate_property(db, ctx, property_id, payload.action))


@router.get("/analytics", response_model=dict[str, Any])
def platform_analytics(
    period: Optional[int] = Query(default=None, ge=1, le=3650, description="days"),
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(require_admin),
    settings: Settings = Depends(get_settings),
):
    return analytics.analytics_report(
        db,
        ctx,
        period_days=period or settings.analytics_default_period_days,
        top_limit=settings.top_groups_limit,
    )


@router.get("/dashboard-stats", response_model=dict[str, Any])
def dashboard_stats(
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(require_admin),
    settings: Settings = Depends(get_settings),
):
    return analytics.admin_dashboard_stats(
        db,
        ctx,
        top_limit=settings.top_groups_limit,
        recent_limit=settings.recent_items_limit,
    )
