# backend/tests/test_auth.py
from __future__ import annotations

import json
import logging

import pytest
from fastapi.testclient import TestClient

from conftest import as_user, make_settings
from rentmarket.logging_config import JsonFormatter
from rentmarket.main import create_app
from rentmarket.middleware.structured_logging import request_id_ctx

SIGNUP = {"name": "Meera", "email": "Meera@Example.com", "phone": "9811122233", "password": "hunter22", "role": "owner"}


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_signup_login_me_roundtrip(client):
    r = client.post("/api/auth/signup", json=SIGNUP)
    assert r.status_code == 201
    user = r.json()
    assert user["email"] == "meera@example.com"
    assert user["role"] == "owner"
    assert "password_hash" not in user

    r = client.post("/api/auth/login", json={"email": "meera@example.com", "password": "hunter22"})
    assert r.status_code == 200
    token = r.json()["access_token"]
    assert r.json()["token_type"] == "bearer"

    r = client.get("/api/auth/me", headers=_bearer(token))
    assert r.status_code == 200
    assert r.json()["id"] == user["id"]


def test_signup_duplicates_are_account_exists(client):
    assert client.post("/api/auth/signup", json=SIGNUP).status_code == 201

    r = client.post("/api/auth/signup", json={**SIGNUP, "phone": "9811122299"})
    assert r.status_code == 409
    assert r.json()["error"] == "account_exists"

    r = client.post("/api/auth/signup", json={**SIGNUP, "email": "other@example.com"})
    assert r.status_code == 409


def test_admin_signup_is_closed_by_default(client):
    r = client.post("/api/auth/signup", json={**SIGNUP, "role": "admin"})
    assert r.status_code == 403


def test_bad_credentials_are_generic(client, make):
    u = make.user("tenant")
    r1 = client.post("/api/auth/login", json={"email": u.email, "password": "wrong-one"})
    r2 = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "wrong-one"})
    assert r1.status_code == r2.status_code == 401
    assert r1.json()["detail"] == r2.json()["detail"]


def test_deactivated_account_cannot_login(client, make):
    u = make.user("tenant", is_active=False)
    r = client.post("/api/auth/login", json={"email": u.email, "password": "secret123"})
    assert r.status_code == 403


def test_garbage_token_is_unauthenticated(client):
    r = client.get("/api/auth/me", headers=_bearer("not.a.jwt"))
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"


def test_dev_header_is_ignored_in_jwt_mode(database, make):
    settings = make_settings(auth_mode="jwt", jwt_secret="test-secret")
    client = TestClient(create_app(settings=settings, database=database))
    u = make.user("tenant")

    assert client.get("/api/auth/me", headers=as_user(u.email)).status_code == 401

    token = client.post("/api/auth/login", json={"email": u.email, "password": "secret123"}).json()["access_token"]
    assert client.get("/api/auth/me", headers=_bearer(token)).status_code == 200


def test_prod_settings_reject_dev_auth():
    with pytest.raises(ValueError):
        make_settings(app_env="prod", auth_mode="dev")


def test_request_id_is_echoed(client):
    r = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "db": "ok"}
    assert r.headers["X-Request-ID"] == "abc-123"
    assert client.get("/api/health").headers.get("X-Request-ID")


def test_unsafe_request_id_is_replaced(client):
    for bad in ("x" * 200, "two words"):
        rid = client.get("/api/health", headers={"X-Request-ID": bad}).headers["X-Request-ID"]
        assert rid != bad
        assert len(rid) == 32


def test_log_lines_carry_request_id_and_extras():
    record = logging.LogRecord("rentmarket.inquiries", logging.INFO, __file__, 1, "inquiry created", None, None)
    record.inquiry_id = 7

    token = request_id_ctx.set("req-1")
    try:
        line = json.loads(JsonFormatter().format(record))
    finally:
        request_id_ctx.reset(token)

    assert line["request_id"] == "req-1"
    assert line["inquiry_id"] == 7
    assert line["message"] == "inquiry created"
