# backend/tests/conftest.py
from __future__ import annotations

import os
from datetime import date
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("AUTH_PBKDF2_ITERS", "1000")

from rentmarket.config import Settings  # noqa: E402
from rentmarket.db import Database  # noqa: E402
from rentmarket.main import create_app  # noqa: E402
from rentmarket.models import Inquiry, Property, User, utcnow  # noqa: E402
from rentmarket.services.auth_service import hash_password  # noqa: E402


def make_settings(**overrides: Any) -> Settings:
    base: dict[str, Any] = {
        "app_env": "test",
        "database_url": "sqlite:///:memory:",
        "auth_mode": "dev",
        "create_tables_on_startup": True,
    }
    base.update(overrides)
    return Settings(_env_file=None, **base)


def as_user(email: str) -> dict[str, str]:
    return {"X-User-Email": email}


class Factory:
    """Writes fixtures straight to the store, one short session per row."""

    def __init__(self, database: Database) -> None:
        self.database = database
        self._n = 0

    def _next(self) -> int:
        self._n += 1
        return self._n

    def user(self, role: str = "tenant", *, name: Optional[str] = None, is_active: bool = True) -> User:
        n = self._next()
        with self.database.session() as db:
            u = User(
                name=name or f"{role.title()} {n}",
                email=f"{role}{n}@example.com",
                phone=f"9{n:09d}",
                password_hash=hash_password("secret123"),
                role=role,
                is_active=is_active,
                created_at=utcnow(),
            )
            db.add(u)
            db.commit()
            db.refresh(u)
            db.expunge(u)
            return u

    def property(self, owner: User, **overrides: Any) -> Property:
        n = self._next()
        data: dict[str, Any] = {
            "title": f"Listing {n}",
            "description": "Two rooms and a balcony",
            "rent": 20000.0,
            "deposit": 50000.0,
            "bhk": 2,
            "furnishing": "Semi Furnished",
            "property_type": "Apartment",
            "area": 900.0,
            "address": f"{n} MG Road",
            "city": "Mumbai",
            "state": "Maharashtra",
            "pincode": "400050",
            "latitude": 19.076,
            "longitude": 72.8777,
            "amenities": ["Parking"],
            "images": [],
            "owner_id": owner.id,
            "owner_name": owner.name,
            "owner_email": owner.email,
            "owner_phone": owner.phone,
            "is_verified": False,
            "is_active": True,
            "available_from": date(2026, 1, 1),
            "created_at": utcnow(),
        }
        data.update(overrides)
        with self.database.session() as db:
            p = Property(**data)
            db.add(p)
            db.commit()
            db.refresh(p)
            db.expunge(p)
            return p

    def inquiry(self, tenant: User, prop: Property, **overrides: Any) -> Inquiry:
        data: dict[str, Any] = {
            "property_id": prop.id,
            "property_title": prop.title,
            "tenant_id": tenant.id,
            "tenant_name": tenant.name,
            "tenant_email": tenant.email,
            "tenant_phone": tenant.phone,
            "owner_id": prop.owner_id,
            "owner_name": prop.owner_name,
            "owner_email": prop.owner_email,
            "message": "Is it available?",
            "status": "pending",
            "is_read": False,
            "created_at": utcnow(),
        }
        data.update(overrides)
        with self.database.session() as db:
            i = Inquiry(**data)
            db.add(i)
            db.commit()
            db.refresh(i)
            db.expunge(i)
            return i


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def database(settings: Settings):
    d = Database(settings.database_url)
    d.create_all()
    yield d
    d.dispose()


@pytest.fixture
def app(settings: Settings, database: Database):
    return create_app(settings=settings, database=database)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make(database: Database) -> Factory:
    return Factory(database)
