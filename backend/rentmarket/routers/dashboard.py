# backend/rentmarket/routers/dashboard.py
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..access import AccessContext, get_context, require_analytics
from ..auth import get_settings
from ..config import Settings
from ..db import get_db
from ..services import analytics

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=dict[str, Any])
def stats(
    period: Optional[int] = Query(default=None, ge=1, le=3650, description="days"),
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_context),
    settings: Settings = Depends(get_settings),
):
    """Role-shaped dashboard numbers: owner portfolio, admin platform, tenant activity."""
    return analytics.dashboard_stats(
        db,
        ctx,
        period_days=period or settings.analytics_default_period_days,
        top_limit=settings.top_groups_limit,
        recent_limit=settings.recent_items_limit,
    )


@router.get("/analytics", response_model=dict[str, Any])
def owner_analytics(
    period: Optional[int] = Query(default=None, ge=1, le=3650, description="days"),
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(require_analytics),
    settings: Settings = Depends(get_settings),
):
    return analytics.analytics_report(
        db,
        ctx,
        period_days=period or settings.analytics_default_period_days,
        top_limit=settings.top_groups_limit,
    )
