# backend/tests/test_bookmarks.py
from __future__ import annotations

from conftest import as_user


def test_bookmark_pair_is_unique(client, make):
    owner = make.user("owner")
    tenant = make.user("tenant")
    p = make.property(owner)
    h = as_user(tenant.email)

    assert client.post("/api/bookmarks", json={"property_id": p.id}, headers=h).status_code == 201
    r = client.post("/api/bookmarks", json={"property_id": p.id}, headers=h)
    assert r.status_code == 409
    assert r.json()["error"] == "already_bookmarked"

    assert client.get("/api/bookmarks/ids", headers=h).json() == [p.id]


def test_bookmark_unknown_property_is_not_found(client, make):
    tenant = make.user("tenant")
    r = client.post("/api/bookmarks", json={"property_id": 777}, headers=as_user(tenant.email))
    assert r.status_code == 404


def test_any_role_may_bookmark_and_list_hides_inactive(client, make):
    owner = make.user("owner")
    live = make.property(owner)
    hidden = make.property(owner, is_active=False)
    h = as_user(owner.email)

    client.post("/api/bookmarks", json={"property_id": live.id}, headers=h)
    client.post("/api/bookmarks", json={"property_id": hidden.id}, headers=h)

    assert [p["id"] for p in client.get("/api/bookmarks", headers=h).json()] == [live.id]
    assert sorted(client.get("/api/bookmarks/ids", headers=h).json()) == sorted([live.id, hidden.id])


def test_remove_bookmark(client, make):
    owner = make.user("owner")
    tenant = make.user("tenant")
    p = make.property(owner)
    h = as_user(tenant.email)

    client.post("/api/bookmarks", json={"property_id": p.id}, headers=h)
    assert client.delete("/api/bookmarks", params={"property_id": p.id}, headers=h).status_code == 200
    assert client.delete("/api/bookmarks", params={"property_id": p.id}, headers=h).status_code == 404
    assert client.get("/api/bookmarks/ids", headers=h).json() == []


def test_bookmarks_need_identity(client):
    assert client.get("/api/bookmarks").status_code == 401
