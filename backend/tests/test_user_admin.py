# backend/tests/test_user_admin.py
from __future__ import annotations

import pytest
from sqlalchemy import func, select

from conftest import as_user
from rentmarket.access import AdminContext
from rentmarket.auth import Principal
from rentmarket.errors import SelfActionDenied
from rentmarket.models import Bookmark, Inquiry, InquiryReply, Property, Requirement, User
from rentmarket.services.user_admin import moderate_user


def test_admin_cannot_target_self_with_restricted_actions(client, make):
    admin = make.user("admin")
    h = as_user(admin.email)

    for action in ("deactivate", "demote", "delete"):
        r = client.put(f"/api/users/{admin.id}", json={"action": action}, headers=h)
        assert r.status_code == 400
        assert r.json()["error"] == "self_action_denied"

    r = client.delete(f"/api/users/{admin.id}", headers=h)
    assert r.status_code == 400

    # still an active admin
    assert client.get(f"/api/users/{admin.id}", headers=h).json()["role"] == "admin"


def test_self_check_runs_before_lookup(app):
    ctx = AdminContext(principal=Principal(user_id=999, name="ghost", email="g@x", role="admin"))
    with app.state.database.session() as db:
        # 999 does not exist; the self check must fire before the NotFound lookup
        with pytest.raises(SelfActionDenied):
            moderate_user(db, ctx, 999, "delete")


def test_activate_deactivate_promote_demote(client, make):
    admin = make.user("admin")
    target = make.user("owner")
    h = as_user(admin.email)

    assert client.put(f"/api/users/{target.id}", json={"action": "deactivate"}, headers=h).status_code == 200
    assert client.get(f"/api/users/{target.id}", headers=h).json()["is_active"] is False
    assert client.get("/api/inquiries", headers=as_user(target.email)).status_code == 403

    assert client.put(f"/api/users/{target.id}", json={"action": "activate"}, headers=h).status_code == 200
    assert client.put(f"/api/users/{target.id}", json={"action": "promote"}, headers=h).status_code == 200
    assert client.get(f"/api/users/{target.id}", headers=h).json()["role"] == "admin"

    r = client.put(f"/api/users/{target.id}", json={"action": "promote"}, headers=h)
    assert r.status_code == 422

    assert client.put(f"/api/users/{target.id}", json={"action": "demote"}, headers=h).status_code == 200
    assert client.get(f"/api/users/{target.id}", headers=h).json()["role"] == "owner"

    r = client.put(f"/api/users/{target.id}", json={"action": "demote"}, headers=h)
    assert r.status_code == 422


def test_user_admin_requires_admin(client, make):
    owner = make.user("owner")
    other = make.user("tenant")
    assert client.get("/api/users", headers=as_user(owner.email)).status_code == 403
    r = client.put(f"/api/users/{other.id}", json={"action": "deactivate"}, headers=as_user(owner.email))
    assert r.status_code == 403


def test_missing_target_is_not_found(client, make):
    admin = make.user("admin")
    r = client.put("/api/users/5555", json={"action": "activate"}, headers=as_user(admin.email))
    assert r.status_code == 404


def test_user_list_carries_counts(client, make):
    admin = make.user("admin")
    owner = make.user("owner")
    tenant = make.user("tenant")
    p = make.property(owner)
    make.property(owner)
    make.inquiry(tenant, p)
    client.post("/api/bookmarks", json={"property_id": p.id}, headers=as_user(tenant.email))

    rows = {u["id"]: u for u in client.get("/api/users", headers=as_user(admin.email)).json()}
    assert rows[owner.id]["property_count"] == 2
    assert rows[owner.id]["inquiry_count"] == 1
    assert rows[tenant.id]["inquiry_count"] == 1
    assert rows[tenant.id]["bookmark_count"] == 1

    only_tenants = client.get("/api/users", params={"role": "tenant"}, headers=as_user(admin.email)).json()
    assert [u["id"] for u in only_tenants] == [tenant.id]


def test_deleting_owner_cascades(client, make, database):
    admin = make.user("admin")
    owner = make.user("owner")
    tenant = make.user("tenant")
    bystander = make.user("owner")
    p1 = make.property(owner)
    p2 = make.property(owner)
    keep = make.property(bystander)

    i1 = make.inquiry(tenant, p1)
    make.inquiry(tenant, keep)
    client.post(f"/api/inquiries/{i1.id}/reply", json={"message": "hi"}, headers=as_user(owner.email))
    client.post("/api/bookmarks", json={"property_id": p2.id}, headers=as_user(tenant.email))
    client.post("/api/bookmarks", json={"property_id": keep.id}, headers=as_user(tenant.email))

    r = client.delete(f"/api/users/{owner.id}", headers=as_user(admin.email))
    assert r.status_code == 200

    with database.session() as db:
        assert db.get(User, owner.id) is None
        assert db.scalar(select(func.count()).select_from(Property).where(Property.owner_id == owner.id)) == 0
        assert db.scalar(select(func.count()).select_from(Inquiry).where(Inquiry.owner_id == owner.id)) == 0
        assert db.scalar(select(func.count()).select_from(InquiryReply).where(InquiryReply.inquiry_id == i1.id)) == 0
        assert db.scalar(
            select(func.count()).select_from(Bookmark).where(Bookmark.property_id.in_([p1.id, p2.id]))
        ) == 0

        # unrelated rows survive
        assert db.get(Property, keep.id) is not None
        assert db.scalar(select(func.count()).select_from(Inquiry).where(Inquiry.tenant_id == tenant.id)) == 1
        assert db.scalar(select(func.count()).select_from(Bookmark).where(Bookmark.user_id == tenant.id)) == 1


def test_deleting_tenant_removes_their_rows(client, make, database):
    admin = make.user("admin")
    owner = make.user("owner")
    tenant = make.user("tenant")
    p = make.property(owner)
    make.inquiry(tenant, p)
    client.post("/api/bookmarks", json={"property_id": p.id}, headers=as_user(tenant.email))
    client.post(
        "/api/requirements",
        json={
            "title": "2BHK",
            "description": "Near metro",
            "max_rent": 30000,
            "bhk": 2,
            "city": "Mumbai",
            "state": "Maharashtra",
            "move_in_date": "2026-03-01",
        },
        headers=as_user(tenant.email),
    )

    assert client.put(f"/api/users/{tenant.id}", json={"action": "delete"}, headers=as_user(admin.email)).status_code == 200

    with database.session() as db:
        assert db.scalar(select(func.count()).select_from(Inquiry).where(Inquiry.tenant_id == tenant.id)) == 0
        assert db.scalar(select(func.count()).select_from(Bookmark).where(Bookmark.user_id == tenant.id)) == 0
        assert db.scalar(select(func.count()).select_from(Requirement).where(Requirement.tenant_id == tenant.id)) == 0
        assert db.get(Property, p.id) is not None


def test_owner_with_listings_cannot_be_promoted(client, make):
    admin = make.user("admin")
    owner = make.user("owner")
    p = make.property(owner)
    h = as_user(admin.email)

    r = client.put(f"/api/users/{owner.id}", json={"action": "promote"}, headers=h)
    assert r.status_code == 422
    assert r.json()["error"] == "validation_failed"
    assert client.get(f"/api/users/{owner.id}", headers=h).json()["role"] == "owner"

    # the listing stays editable by its owner
    r = client.patch(f"/api/properties/{p.id}", json={"rent": 21000}, headers=as_user(owner.email))
    assert r.status_code == 200

    assert client.delete(f"/api/properties/{p.id}", headers=as_user(owner.email)).status_code == 200
    assert client.put(f"/api/users/{owner.id}", json={"action": "promote"}, headers=h).status_code == 200
