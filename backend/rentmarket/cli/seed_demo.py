# backend/rentmarket/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from rentmarket.models import Property, Role, User, utcnow
from rentmarket.services.auth_service import hash_password


@dataclass(frozen=True)
class SeedResult:
    admin_email: str
    owner_email: str
    tenant_email: str
    property_ids: tuple[int, ...]


DEMO_PASSWORD = "demo1234"

DEMO_LISTINGS = (
    {
        "title": "Sunny 2BHK near Bandra station",
        "description": "Corner flat with cross ventilation, 5 minutes from the station.",
        "rent": 55000.0,
        "deposit": 150000.0,
        "bhk": 2,
        "furnishing": "Semi Furnished",
        "property_type": "Apartment",
        "area": 850.0,
        "address": "14 Hill Road, Bandra West",
        "city": "Mumbai",
        "state": "Maharashtra",
        "pincode": "400050",
        "latitude": 19.0596,
        "longitude": 72.8295,
        "amenities": ["Lift", "Parking", "Power Backup"],
    },
    {
        "title": "Studio in Koramangala",
        "description": "Compact studio for a single professional, fully furnished.",
        "rent": 22000.0,
        "deposit": 60000.0,
        "bhk": 1,
        "furnishing": "Fully Furnished",
        "property_type": "Studio",
        "area": 420.0,
        "address": "5th Block, Koramangala",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560095",
        "latitude": 12.9352,
        "longitude": 77.6245,
        "amenities": ["WiFi", "Gym"],
    },
)


def get_or_create_user(
    db: Session,
    *,
    email: str,
    name: str,
    role: str,
    phone: str,
    password: str = DEMO_PASSWORD,
) -> User:
    email = email.strip().lower()
    row = db.scalar(select(User).where(User.email == email))
    if row:
        return row
    row = User(
        email=email,
        name=name,
        role=role,
        phone=phone,
        password_hash=hash_password(password),
        is_active=True,
        created_at=utcnow(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _get_or_create_listing(db: Session, owner: User, data: dict) -> Property:
    row = db.scalar(select(Property).where(Property.owner_id == owner.id, Property.title == data["title"]))
    if row:
        return row
    row = Property(
        **data,
        images=[],
        owner_id=int(owner.id),
        owner_name=owner.name,
        owner_email=owner.email,
        owner_phone=owner.phone,
        is_verified=True,
        is_active=True,
        available_from=date.today(),
        created_at=utcnow(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def seed_demo(
    db: Session,
    *,
    admin_email: str = "admin@rentmarket.in",
    owner_email: str = "owner@rentmarket.in",
    tenant_email: str = "tenant@rentmarket.in",
    create_listings: bool = True,
) -> SeedResult:
    """Idempotent: re-running returns the same accounts and listings."""
    admin = get_or_create_user(db, email=admin_email, name="Demo Admin", role=Role.ADMIN.value, phone="9000000001")
    owner = get_or_create_user(db, email=owner_email, name="Demo Owner", role=Role.OWNER.value, phone="9000000002")
    tenant = get_or_create_user(db, email=tenant_email, name="Demo Tenant", role=Role.TENANT.value, phone="9000000003")

    ids: list[int] = []
    if create_listings:
        ids = [int(_get_or_create_listing(db, owner, d).id) for d in DEMO_LISTINGS]

    return SeedResult(
        admin_email=admin.email,
        owner_email=owner.email,
        tenant_email=tenant.email,
        property_ids=tuple(ids),
    )


def create_admin(db: Session, *, email: str, name: str, phone: str, password: str) -> User:
    """Promote an existing account or create a new admin."""
    email = email.strip().lower()
    row = db.scalar(select(User).where(User.email == email))
    if row:
        row.role = Role.ADMIN.value
        row.is_active = True
        db.commit()
        return row
    return get_or_create_user(db, email=email, name=name, role=Role.ADMIN.value, phone=phone, password=password)
