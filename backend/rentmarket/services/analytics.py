# backend/rentmarket/services/analytics.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..access import AccessContext
from ..domain.analytics_math import (
    PeriodWindow,
    conversion_rate,
    growth_pct,
    round1,
    top_groups,
    with_percentages,
)
from ..models import Bookmark, Inquiry, Property, PropertyView, Requirement, User, utcnow

RECENT_ACTIVITY_PER_KIND = 5


def _count(db: Session, model, *where) -> int:
    q = select(func.count()).select_from(model)
    for w in where:
        q = q.where(w)
    return int(db.scalar(q) or 0)


def _group_counts(db: Session, col, *where, limit: Optional[int] = None) -> list[tuple[Any, int]]:
    q = select(col, func.count()).group_by(col)
    for w in where:
        q = q.where(w)
    return top_groups(db.execute(q).all(), limit)


def _scoped_property_ids(ctx: AccessContext):
    return select(Property.id).where(ctx.property_scope()).scalar_subquery()


def _in_window(col, start: datetime, end: Optional[datetime] = None) -> list:
    conds = [col >= start]
    if end is not None:
        conds.append(col < end)
    return conds


def _property_brief(p: Property) -> dict[str, Any]:
    return {
        "id": p.id,
        "title": p.title,
        "city": p.city,
        "rent": p.rent,
        "owner_name": p.owner_name,
        "is_verified": bool(p.is_verified),
        "is_active": bool(p.is_active),
        "created_at": p.created_at,
    }


def _user_brief(u: User) -> dict[str, Any]:
    return {"id": u.id, "name": u.name, "email": u.email, "role": u.role, "created_at": u.created_at}


def _inquiry_brief(i: Inquiry) -> dict[str, Any]:
    return {
        "id": i.id,
        "property_id": i.property_id,
        "property_title": i.property_title,
        "tenant_name": i.tenant_name,
        "status": i.status,
        "is_read": bool(i.is_read),
        "created_at": i.created_at,
    }


def analytics_report(
    db: Session,
    ctx: AccessContext,
    *,
    period_days: int = 30,
    top_limit: int = 10,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Overview, period-over-period growth, top cities, property types and recent activity.

    Admin: platform-wide, users included.
    Owner: same figures restricted to their own listings and the views/inquiries on them.
    Tenant: Forbidden (raised by property_scope).
    """
    prop_scope = ctx.property_scope()
    is_platform = ctx.can_moderate
    win = PeriodWindow(now=now or utcnow(), days=int(period_days))

    view_scope = [] if is_platform else [PropertyView.property_id.in_(_scoped_property_ids(ctx))]
    inq_scope = [ctx.inquiry_scope()]

    total_properties = _count(db, Property, prop_scope)
    total_views = _count(db, PropertyView, *view_scope)
    total_inquiries = _count(db, Inquiry, *inq_scope)

    def growth(model, col, *scope) -> float:
        cur = _count(db, model, *scope, *_in_window(col, win.current_start))
        prev = _count(db, model, *scope, *_in_window(col, win.previous_start, win.previous_end))
        return round1(growth_pct(cur, prev))

    overview: dict[str, Any] = {
        "total_properties": total_properties,
        "total_views": total_views,
        "total_inquiries": total_inquiries,
        "conversion_rate": conversion_rate(total_inquiries, total_views),
    }
    growth_out: dict[str, Any] = {
        "property_growth": growth(Property, Property.created_at, prop_scope),
        "view_growth": growth(PropertyView, PropertyView.viewed_at, *view_scope),
        "inquiry_growth": growth(Inquiry, Inquiry.created_at, *inq_scope),
    }
    if is_platform:
        overview["total_users"] = _count(db, User)
        growth_out["user_growth"] = growth(User, User.created_at)

    cities = _group_counts(db, Property.city, prop_scope, limit=top_limit)
    types = _group_counts(db, Property.property_type, prop_scope)

    activity: list[dict[str, Any]] = []
    recent_props = db.scalars(
        select(Property).where(prop_scope).order_by(desc(Property.created_at)).limit(RECENT_ACTIVITY_PER_KIND)
    ).all()
    for p in recent_props:
        activity.append(
            {
                "type": "property_listed",
                "description": f'New property "{p.title}" listed in {p.city}',
                "timestamp": p.created_at,
            }
        )
    if is_platform:
        for u in db.scalars(select(User).order_by(desc(User.created_at)).limit(RECENT_ACTIVITY_PER_KIND)).all():
            activity.append(
                {
                    "type": "user_signup",
                    "description": f"New user {u.name} signed up as {u.role}",
                    "timestamp": u.created_at,
                }
            )
    else:
        recent_inq = db.scalars(
            select(Inquiry).where(*inq_scope).order_by(desc(Inquiry.created_at)).limit(RECENT_ACTIVITY_PER_KIND)
        ).all()
        for i in recent_inq:
            activity.append(
                {
                    "type": "inquiry_received",
                    "description": f'{i.tenant_name} inquired about "{i.property_title}"',
                    "timestamp": i.created_at,
                }
            )
    activity.sort(key=lambda a: a["timestamp"], reverse=True)

    return {
        "period_days": win.days,
        "overview": overview,
        "growth": growth_out,
        "top_cities": with_percentages(cities, total_properties),
        "property_types": with_percentages(types, total_properties),
        "recent_activity": activity,
    }


def admin_dashboard_stats(
    db: Session,
    ctx: AccessContext,
    *,
    top_limit: int = 10,
    recent_limit: int = 10,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    ctx.demand("can_moderate", "Admin access required")
    win = PeriodWindow(now=now or utcnow(), days=0)

    return {
        "total_users": _count(db, User),
        "total_properties": _count(db, Property),
        "total_views": _count(db, PropertyView),
        "total_inquiries": _count(db, Inquiry),
        "active_properties": _count(db, Property, Property.is_active.is_(True)),
        "verified_properties": _count(db, Property, Property.is_verified.is_(True)),
        "pending_verifications": _count(
            db, Property, Property.is_verified.is_(False), Property.is_active.is_(True)
        ),
        "monthly_users": _count(db, User, User.created_at >= win.month_start),
        "monthly_properties": _count(db, Property, Property.created_at >= win.month_start),
        "users_by_role": [{"key": k, "count": c} for k, c in _group_counts(db, User.role)],
        "top_cities": [{"key": k, "count": c} for k, c in _group_counts(db, Property.city, limit=top_limit)],
        "recent_users": [
            _user_brief(u)
            for u in db.scalars(select(User).order_by(desc(User.created_at), desc(User.id)).limit(recent_limit)).all()
        ],
        "recent_properties": [
            _property_brief(p)
            for p in db.scalars(
                select(Property).order_by(desc(Property.created_at), desc(Property.id)).limit(recent_limit)
            ).all()
        ],
    }


def _trends(cur_views: int, prev_views: int, cur_inq: int, prev_inq: int) -> dict[str, Any]:
    return {
        "views": {"current": cur_views, "previous": prev_views, "growth": round1(growth_pct(cur_views, prev_views))},
        "inquiries": {"current": cur_inq, "previous": prev_inq, "growth": round1(growth_pct(cur_inq, prev_inq))},
    }


def _owner_stats(db: Session, ctx: AccessContext, win: PeriodWindow, recent_limit: int) -> dict[str, Any]:
    props = list(db.scalars(select(Property).where(ctx.property_scope())).all())
    prop_ids = [p.id for p in props]
    by_id = {p.id: p for p in props}

    views_in = PropertyView.property_id.in_(prop_ids)
    mine = Inquiry.owner_id == ctx.user_id

    views = _count(db, PropertyView, views_in, *_in_window(PropertyView.viewed_at, win.current_start))
    inquiries = _count(db, Inquiry, mine, *_in_window(Inquiry.created_at, win.current_start))
    prev_views = _count(
        db, PropertyView, views_in, *_in_window(PropertyView.viewed_at, win.previous_start, win.previous_end)
    )
    prev_inquiries = _count(
        db, Inquiry, mine, *_in_window(Inquiry.created_at, win.previous_start, win.previous_end)
    )

    total_rent = float(sum(float(p.rent or 0.0) for p in props))
    avg_rent = (total_rent / len(props)) if props else 0.0

    per_property = _group_counts(
        db,
        PropertyView.property_id,
        views_in,
        *_in_window(PropertyView.viewed_at, win.current_start),
        limit=10,
    )
    inquiry_by_prop = dict(
        db.execute(
            select(Inquiry.property_id, func.count())
            .where(mine, Inquiry.created_at >= win.current_start)
            .group_by(Inquiry.property_id)
        ).all()
    )
    performance = []
    for pid, view_count in per_property:
        p = by_id.get(pid)
        performance.append(
            {
                "property_id": pid,
                "title": p.title if p else "",
                "rent": p.rent if p else 0.0,
                "bhk": p.bhk if p else 0,
                "view_count": view_count,
                "inquiry_count": int(inquiry_by_prop.get(pid, 0)),
            }
        )

    recent = db.scalars(
        select(Inquiry).where(mine).order_by(desc(Inquiry.created_at), desc(Inquiry.id)).limit(recent_limit)
    ).all()

    return {
        "role": "owner",
        "total_properties": len(props),
        "active_properties": sum(1 for p in props if p.is_active),
        "verified_properties": sum(1 for p in props if p.is_verified),
        "total_views": views,
        "total_inquiries": inquiries,
        "monthly_views": _count(db, PropertyView, views_in, PropertyView.viewed_at >= win.month_start),
        "monthly_inquiries": _count(db, Inquiry, mine, Inquiry.created_at >= win.month_start),
        "total_rent": total_rent,
        "avg_rent": round(avg_rent),
        "conversion_rate": round1(conversion_rate(inquiries, views)),
        "property_performance": performance,
        "recent_inquiries": [_inquiry_brief(i) for i in recent],
        "trends": _trends(views, prev_views, inquiries, prev_inquiries),
    }


def _admin_stats(db: Session, win: PeriodWindow, top_limit: int) -> dict[str, Any]:
    total_users = _count(db, User)
    total_properties = _count(db, Property)
    views = _count(db, PropertyView, PropertyView.viewed_at >= win.current_start)
    inquiries = _count(db, Inquiry, Inquiry.created_at >= win.current_start)
    prev_views = _count(db, PropertyView, *_in_window(PropertyView.viewed_at, win.previous_start, win.previous_end))
    prev_inquiries = _count(db, Inquiry, *_in_window(Inquiry.created_at, win.previous_start, win.previous_end))

    return {
        "role": "admin",
        "total_users": total_users,
        "total_properties": total_properties,
        "total_views": views,
        "total_inquiries": inquiries,
        "total_bookmarks": _count(db, Bookmark),
        "total_requirements": _count(db, Requirement),
        "monthly_users": _count(db, User, User.created_at >= win.month_start),
        "monthly_properties": _count(db, Property, Property.created_at >= win.month_start),
        "monthly_views": _count(db, PropertyView, PropertyView.viewed_at >= win.month_start),
        "monthly_inquiries": _count(db, Inquiry, Inquiry.created_at >= win.month_start),
        "active_properties": _count(db, Property, Property.is_active.is_(True)),
        "verified_properties": _count(db, Property, Property.is_verified.is_(True)),
        "pending_verifications": _count(db, Property, Property.is_verified.is_(False)),
        "users_by_role": [{"key": k, "count": c} for k, c in _group_counts(db, User.role)],
        "top_cities": [{"key": k, "count": c} for k, c in _group_counts(db, Property.city, limit=top_limit)],
        "conversion_rate": round1(conversion_rate(inquiries, views)),
        "trends": _trends(views, prev_views, inquiries, prev_inquiries),
    }


def _tenant_stats(db: Session, ctx: AccessContext, win: PeriodWindow) -> dict[str, Any]:
    uid = ctx.user_id
    recent_ids = list(
        db.scalars(
            select(Bookmark.property_id)
            .where(Bookmark.user_id == uid)
            .order_by(desc(Bookmark.created_at), desc(Bookmark.id))
            .limit(5)
        ).all()
    )
    by_id = {p.id: p for p in db.scalars(select(Property).where(Property.id.in_(recent_ids)))} if recent_ids else {}
    # keep newest-bookmark-first order
    recent_props = [by_id[pid] for pid in recent_ids if pid in by_id]

    avg_rent = db.scalar(select(func.avg(Property.rent)).where(Property.is_active.is_(True)))

    return {
        "role": "tenant",
        "bookmarked_properties": _count(db, Bookmark, Bookmark.user_id == uid),
        "active_requirements": _count(db, Requirement, Requirement.tenant_id == uid, Requirement.is_active.is_(True)),
        "total_inquiries": _count(db, Inquiry, Inquiry.tenant_id == uid),
        "recent_bookmarked_properties": [_property_brief(p) for p in recent_props],
        "total_properties": _count(db, Property, Property.is_active.is_(True)),
        "new_properties_this_week": _count(
            db, Property, Property.is_active.is_(True), Property.created_at >= win.now - timedelta(days=7)
        ),
        "average_rent": round(float(avg_rent)) if avg_rent is not None else 0,
        "conversion_rate": 0.0,
    }


def dashboard_stats(
    db: Session,
    ctx: AccessContext,
    *,
    period_days: int = 30,
    top_limit: int = 10,
    recent_limit: int = 10,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    win = PeriodWindow(now=now or utcnow(), days=int(period_days))
    if ctx.can_moderate:
        return _admin_stats(db, win, top_limit)
    if ctx.can_list_own_properties:
        return _owner_stats(db, ctx, win, recent_limit)
    return _tenant_stats(db, ctx, win)
