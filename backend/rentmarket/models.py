# backend/rentmarket/models.py
from __future__ import annotations

import enum
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def utcnow() -> datetime:
    # naive UTC; every DateTime column in this schema is stored without tz
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Role(str, enum.Enum):
    TENANT = "tenant"
    OWNER = "owner"
    ADMIN = "admin"


class Furnishing(str, enum.Enum):
    FULLY_FURNISHED = "Fully Furnished"
    SEMI_FURNISHED = "Semi Furnished"
    UNFURNISHED = "Unfurnished"


class PropertyType(str, enum.Enum):
    APARTMENT = "Apartment"
    HOUSE = "House"
    VILLA = "Villa"
    STUDIO = "Studio"
    PG = "PG"


# -----------------------------
# Accounts
# -----------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.TENANT.value)  # tenant|owner|admin
    phone: Mapped[str] = mapped_column(String(20), nullable=False, default="", index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, onupdate=utcnow)


# -----------------------------
# Listings
# -----------------------------
class Property(Base):
    __tablename__ = "properties"
    __table_args__ = (
        Index("ix_properties_rent_bhk_furnishing", "rent", "bhk", "furnishing"),
        Index("ix_properties_active_verified", "is_active", "is_verified"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    rent: Mapped[float] = mapped_column(Float, nullable=False)
    deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    bhk: Mapped[int] = mapped_column(Integer, nullable=False)
    furnishing: Mapped[str] = mapped_column(String(40), nullable=False)
    property_type: Mapped[str] = mapped_column(String(40), nullable=False)
    area: Mapped[float] = mapped_column(Float, nullable=False)

    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    state: Mapped[str] = mapped_column(String(120), nullable=False)
    pincode: Mapped[str] = mapped_column(String(6), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)

    amenities: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # snapshot of the owner at listing time; intentionally not refreshed
    owner_name: Mapped[str] = mapped_column(String(160), nullable=False)
    owner_email: Mapped[str] = mapped_column(String(254), nullable=False)
    owner_phone: Mapped[str] = mapped_column(String(20), nullable=False, default="")

    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    available_from: Mapped[date] = mapped_column(Date, nullable=False)

    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    inquiry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_viewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, onupdate=utcnow)


class PropertyView(Base):
    """
    Append-only view event. property_id is a plain reference: view history
    outlives the listing and is only ever counted.
    """

    __tablename__ = "property_views"
    __table_args__ = (Index("ix_property_views_property_viewed", "property_id", "viewed_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    user_agent: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    ip: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    viewed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)


# -----------------------------
# Tenant <-> owner contact
# -----------------------------
class Inquiry(Base):
    __tablename__ = "inquiries"
    __table_args__ = (
        # at most one active (pending|replied) inquiry per tenant+property
        Index(
            "uq_inquiries_active_tenant_property",
            "tenant_id",
            "property_id",
            unique=True,
            sqlite_where=text("status IN ('pending', 'replied')"),
            postgresql_where=text("status IN ('pending', 'replied')"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # plain reference: inquiries survive listing deletion with their title snapshot
    property_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    property_title: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    tenant_name: Mapped[str] = mapped_column(String(160), nullable=False)
    tenant_email: Mapped[str] = mapped_column(String(254), nullable=False)
    tenant_phone: Mapped[str] = mapped_column(String(20), nullable=False)

    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    owner_name: Mapped[str] = mapped_column(String(160), nullable=False, default="")
    owner_email: Mapped[str] = mapped_column(String(254), nullable=False, default="")

    message: Mapped[str] = mapped_column(Text, nullable=False)
    move_in_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    budget: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, onupdate=utcnow)

    replies: Mapped[List["InquiryReply"]] = relationship(
        back_populates="inquiry",
        cascade="all, delete-orphan",
        order_by="InquiryReply.id",
    )


class InquiryReply(Base):
    __tablename__ = "inquiry_replies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    inquiry_id: Mapped[int] = mapped_column(Integer, ForeignKey("inquiries.id"), nullable=False, index=True)

    sender_id: Mapped[int] = mapped_column(Integer, nullable=False)
    sender_name: Mapped[str] = mapped_column(String(160), nullable=False)
    sender_role: Mapped[str] = mapped_column(String(20), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    inquiry: Mapped["Inquiry"] = relationship(back_populates="replies")


# -----------------------------
# Saved listings / tenant requests
# -----------------------------
class Bookmark(Base):
    __tablename__ = "bookmarks"
    __table_args__ = (UniqueConstraint("user_id", "property_id", name="uq_bookmarks_user_property"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    property_id: Mapped[int] = mapped_column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class Requirement(Base):
    __tablename__ = "requirements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    max_rent: Mapped[float] = mapped_column(Float, nullable=False)
    bhk: Mapped[int] = mapped_column(Integer, nullable=False)
    furnishing: Mapped[str] = mapped_column(String(40), nullable=False, default="Any")
    property_type: Mapped[str] = mapped_column(String(40), nullable=False, default="Any")

    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(120), nullable=False)
    preferred_areas: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    amenities: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    tenant_name: Mapped[str] = mapped_column(String(160), nullable=False)
    tenant_email: Mapped[str] = mapped_column(String(254), nullable=False)
    tenant_phone: Mapped[str] = mapped_column(String(20), nullable=False, default="")

    move_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, onupdate=utcnow)
