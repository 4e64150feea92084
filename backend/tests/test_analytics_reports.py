# backend/tests/test_analytics_reports.py
from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import as_user
from rentmarket.access import AdminContext, OwnerContext, TenantContext
from rentmarket.auth import Principal
from rentmarket.errors import Forbidden
from rentmarket.models import Bookmark, PropertyView, utcnow
from rentmarket.services.analytics import analytics_report, dashboard_stats


def _ctx(cls, user):
    return cls(principal=Principal(user_id=user.id, name=user.name, email=user.email, role=user.role))


def _views(database, prop, *ages_in_days):
    now = utcnow()
    with database.session() as db:
        for age in ages_in_days:
            db.add(PropertyView(property_id=prop.id, user_agent="pytest", ip="127.0.0.1", viewed_at=now - timedelta(days=age)))
        db.commit()


@pytest.fixture
def market(make, database):
    o1 = make.user("owner")
    o2 = make.user("owner")
    tenant = make.user("tenant")
    admin = make.user("admin")
    p1 = make.property(o1, city="Mumbai", property_type="Apartment", rent=20000.0)
    p2 = make.property(o1, city="Mumbai", property_type="Studio", rent=10000.0)
    p3 = make.property(o2, city="Pune", property_type="Villa", rent=90000.0)

    # o1: 3 views this period, 2 in the previous one; o2: 1 this period
    _views(database, p1, 1, 2, 3, 40, 45)
    _views(database, p3, 1)
    make.inquiry(tenant, p1)
    make.inquiry(tenant, p3)
    return {"o1": o1, "o2": o2, "tenant": tenant, "admin": admin, "p1": p1, "p2": p2, "p3": p3}


def test_owner_report_is_restricted_to_own_listings(database, market):
    with database.session() as db:
        out = analytics_report(db, _ctx(OwnerContext, market["o1"]), period_days=30)

    ov = out["overview"]
    assert ov["total_properties"] == 2
    assert ov["total_views"] == 5
    assert ov["total_inquiries"] == 1
    assert ov["conversion_rate"] == 20.0
    assert "total_users" not in ov

    assert out["growth"]["view_growth"] == 50.0
    assert out["growth"]["inquiry_growth"] == 0.0  # nothing in the previous window
    assert out["top_cities"] == [{"key": "Mumbai", "count": 2, "percentage": 100.0}]
    assert {t["key"] for t in out["property_types"]} == {"Apartment", "Studio"}
    assert all(a["type"] in ("property_listed", "inquiry_received") for a in out["recent_activity"])


def test_admin_report_is_platform_wide(database, market):
    with database.session() as db:
        out = analytics_report(db, _ctx(AdminContext, market["admin"]), period_days=30)

    ov = out["overview"]
    assert ov["total_users"] == 4
    assert ov["total_properties"] == 3
    assert ov["total_views"] == 6
    assert ov["total_inquiries"] == 2
    assert ov["conversion_rate"] == pytest.approx(2 / 6 * 100)

    cities = out["top_cities"]
    assert [c["key"] for c in cities] == ["Mumbai", "Pune"]
    assert cities[0]["percentage"] == pytest.approx(200 / 3)
    assert "user_growth" in out["growth"]


def test_tenant_gets_no_analytics(database, market, client):
    with database.session() as db:
        with pytest.raises(Forbidden):
            analytics_report(db, _ctx(TenantContext, market["tenant"]))

    assert client.get("/api/dashboard/analytics", headers=as_user(market["tenant"].email)).status_code == 403
    assert client.get("/api/admin/analytics", headers=as_user(market["o1"].email)).status_code == 403


def test_analytics_endpoints(client, market):
    r = client.get("/api/dashboard/analytics", params={"period": 7}, headers=as_user(market["o1"].email))
    assert r.status_code == 200
    assert r.json()["period_days"] == 7
    assert r.json()["overview"]["total_properties"] == 2

    r = client.get("/api/admin/analytics", headers=as_user(market["admin"].email))
    assert r.status_code == 200
    assert r.json()["overview"]["total_properties"] == 3

    r = client.get("/api/admin/dashboard-stats", headers=as_user(market["admin"].email))
    body = r.json()
    assert body["total_properties"] == 3
    assert body["pending_verifications"] == 3
    assert {g["key"]: g["count"] for g in body["users_by_role"]} == {"owner": 2, "tenant": 1, "admin": 1}
    assert len(body["recent_users"]) == 4


def test_owner_dashboard_stats(database, market):
    with database.session() as db:
        out = dashboard_stats(db, _ctx(OwnerContext, market["o1"]), period_days=30)

    assert out["role"] == "owner"
    assert out["total_properties"] == 2
    assert out["total_views"] == 3
    assert out["total_inquiries"] == 1
    assert out["total_rent"] == 30000.0
    assert out["avg_rent"] == 15000
    assert out["conversion_rate"] == 33.3
    assert out["trends"]["views"] == {"current": 3, "previous": 2, "growth": 50.0}
    assert out["property_performance"][0]["property_id"] == market["p1"].id
    assert out["property_performance"][0]["inquiry_count"] == 1
    assert len(out["recent_inquiries"]) == 1


def test_tenant_and_admin_dashboard_stats(client, market):
    tenant = market["tenant"]
    client.post("/api/bookmarks", json={"property_id": market["p2"].id}, headers=as_user(tenant.email))

    r = client.get("/api/dashboard/stats", headers=as_user(tenant.email))
    body = r.json()
    assert body["role"] == "tenant"
    assert body["bookmarked_properties"] == 1
    assert body["total_inquiries"] == 2
    assert body["total_properties"] == 3
    assert body["average_rent"] == 40000
    assert [p["id"] for p in body["recent_bookmarked_properties"]] == [market["p2"].id]

    r = client.get("/api/dashboard/stats", headers=as_user(market["admin"].email))
    body = r.json()
    assert body["role"] == "admin"
    assert body["total_views"] == 4
    assert body["total_bookmarks"] == 1
    assert body["trends"]["views"]["previous"] == 2


def test_tenant_recent_bookmarks_are_newest_first(database, market):
    tenant = market["tenant"]
    now = utcnow()
    # bookmarked p2 last, then p1, then p3 earliest; id order would be p1, p2, p3
    with database.session() as db:
        for prop, age in ((market["p3"], 3), (market["p1"], 2), (market["p2"], 1)):
            db.add(Bookmark(user_id=tenant.id, property_id=prop.id, created_at=now - timedelta(hours=age)))
        db.commit()

    with database.session() as db:
        out = dashboard_stats(db, _ctx(TenantContext, tenant))

    assert [p["id"] for p in out["recent_bookmarked_properties"]] == [
        market["p2"].id,
        market["p1"].id,
        market["p3"].id,
    ]
