# backend/tests/test_view_tracking.py
from __future__ import annotations

from sqlalchemy import select

from conftest import as_user
from rentmarket.models import PropertyView


def test_anonymous_view_is_recorded_and_counted(client, make, database):
    owner = make.user("owner")
    p = make.property(owner)

    for _ in range(3):
        r = client.post(f"/api/properties/{p.id}/view", headers={"User-Agent": "pytest-agent"})
        assert r.status_code == 200

    body = client.get(f"/api/properties/{p.id}").json()
    assert body["view_count"] == 3
    assert body["last_viewed_at"] is not None

    with database.session() as db:
        rows = db.scalars(select(PropertyView).where(PropertyView.property_id == p.id)).all()
        assert len(rows) == 3
        assert {v.user_agent for v in rows} == {"pytest-agent"}
        assert all(v.user_id is None for v in rows)


def test_view_body_and_identity_are_captured(client, make, database):
    owner = make.user("owner")
    tenant = make.user("tenant")
    p = make.property(owner)

    r = client.post(
        f"/api/properties/{p.id}/view",
        json={"user_agent": "Mobile Safari", "ip": "10.0.0.7"},
        headers=as_user(tenant.email),
    )
    assert r.status_code == 200

    with database.session() as db:
        v = db.scalar(select(PropertyView).where(PropertyView.property_id == p.id))
        assert v.user_agent == "Mobile Safari"
        assert v.ip == "10.0.0.7"
        assert v.user_id == tenant.id


def test_view_on_missing_property_is_not_found(client):
    r = client.post("/api/properties/31337/view")
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"
