# backend/rentmarket/schemas.py
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .domain.inquiry_states import InquiryStatus, normalize_status
from .models import Furnishing, PropertyType, Role

PINCODE_RE = re.compile(r"^\d{6}$")
PHONE_RE = re.compile(r"^[6-9]\d{9}$")


def _split_csv(v: Any) -> Any:
    # forms send "Parking, Gym" as one string
    if isinstance(v, str):
        return [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(v, list):
        return [str(x).strip() for x in v if str(x).strip()]
    return v


def _normalize_phone(v: str) -> str:
    phone = re.sub(r"[\s\-]", "", v or "")
    if not PHONE_RE.match(phone):
        raise ValueError("Invalid phone number. Must be a 10-digit Indian number starting with 6-9")
    return phone


def _not_blank(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("must not be empty")
    return v


# -------------------- Auth / Users --------------------

class SignupIn(BaseModel):
    name: str = Field(..., max_length=160)
    email: EmailStr
    phone: str
    password: str = Field(..., min_length=6)
    role: Role = Role.TENANT

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("phone")
    @classmethod
    def indian_mobile(cls, v: str) -> str:
        return _normalize_phone(v)


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str
    phone: str
    is_active: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UserStatsOut(UserOut):
    property_count: int = 0
    inquiry_count: int = 0
    bookmark_count: int = 0


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=160)
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _not_blank(v)

    @field_validator("phone")
    @classmethod
    def indian_mobile(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return _normalize_phone(v)


class UserAction(BaseModel):
    action: Literal["activate", "deactivate", "promote", "demote", "delete"]


# -------------------- Properties --------------------

class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Location(BaseModel):
    address: str
    city: str
    state: str
    pincode: str
    coordinates: Coordinates

    @field_validator("address", "city", "state")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("pincode")
    @classmethod
    def six_digits(cls, v: str) -> str:
        v = (v or "").strip()
        if not PINCODE_RE.match(v):
            raise ValueError("Pincode must be 6 digits")
        return v


class PropertyCreate(BaseModel):
    title: str = Field(..., max_length=200)
    description: str
    rent: float = Field(..., gt=0)
    deposit: float = Field(default=0.0, ge=0)
    bhk: int = Field(..., ge=1, le=10)
    furnishing: Furnishing
    property_type: PropertyType
    area: float = Field(..., gt=0)
    location: Location
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    available_from: date

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("amenities", "images", mode="before")
    @classmethod
    def split_lists(cls, v: Any) -> Any:
        return _split_csv(v)


class PropertyUpdate(BaseModel):
    """Owner edit: every field optional; ownership/moderation fields are not editable."""

    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    rent: Optional[float] = Field(default=None, gt=0)
    deposit: Optional[float] = Field(default=None, ge=0)
    bhk: Optional[int] = Field(default=None, ge=1, le=10)
    furnishing: Optional[Furnishing] = None
    property_type: Optional[PropertyType] = None
    area: Optional[float] = Field(default=None, gt=0)
    location: Optional[Location] = None
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None
    available_from: Optional[date] = None

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _not_blank(v)

    @field_validator("amenities", "images", mode="before")
    @classmethod
    def split_lists(cls, v: Any) -> Any:
        return _split_csv(v)


class PropertyOut(BaseModel):
    id: int
    title: str
    description: str
    rent: float
    deposit: float
    bhk: int
    furnishing: str
    property_type: str
    area: float

    address: str
    city: str
    state: str
    pincode: str
    latitude: float
    longitude: float

    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)

    owner_id: int
    owner_name: str
    owner_email: str
    owner_phone: str

    is_verified: bool
    is_active: bool
    available_from: date
    view_count: int
    inquiry_count: int
    last_viewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdminPropertyOut(PropertyOut):
    # counted from the event tables, not the denormalized counters
    tracked_views: int = 0
    tracked_inquiries: int = 0


class PropertyAction(BaseModel):
    action: Literal["verify", "reject", "activate", "deactivate"]


class ViewIn(BaseModel):
    user_agent: Optional[str] = Field(default=None, max_length=512)
    ip: Optional[str] = Field(default=None, max_length=64)


# -------------------- Inquiries --------------------

class InquiryCreate(BaseModel):
    property_id: int
    message: str
    phone: str
    move_in_date: Optional[date] = None
    budget: Optional[float] = Field(default=None, ge=0)

    @field_validator("message", "phone")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)


class ReplyIn(BaseModel):
    message: str

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)


class InquiryStatusIn(BaseModel):
    status: InquiryStatus

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, v: Any) -> Any:
        return normalize_status(str(v)) if isinstance(v, str) else v


class ReplyOut(BaseModel):
    id: int
    sender_id: int
    sender_name: str
    sender_role: str
    message: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class InquiryOut(BaseModel):
    id: int
    property_id: int
    property_title: str
    tenant_id: int
    tenant_name: str
    tenant_email: str
    tenant_phone: str
    owner_id: int
    owner_name: str
    owner_email: str
    message: str
    move_in_date: Optional[date] = None
    budget: Optional[float] = None
    status: str
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    replies: List[ReplyOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


# -------------------- Bookmarks --------------------

class BookmarkIn(BaseModel):
    property_id: int


# -------------------- Requirements --------------------

class RequirementCreate(BaseModel):
    title: str = Field(..., max_length=200)
    description: str
    max_rent: float = Field(..., gt=0)
    bhk: int = Field(..., ge=1, le=10)
    furnishing: Literal["Fully Furnished", "Semi Furnished", "Unfurnished", "Any"] = "Any"
    property_type: Literal["Apartment", "House", "Villa", "Studio", "PG", "Any"] = "Any"
    city: str
    state: str
    preferred_areas: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    move_in_date: date

    @field_validator("title", "description", "city", "state")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("preferred_areas", "amenities", mode="before")
    @classmethod
    def split_lists(cls, v: Any) -> Any:
        return _split_csv(v)


class RequirementOut(BaseModel):
    id: int
    title: str
    description: str
    max_rent: float
    bhk: int
    furnishing: str
    property_type: str
    city: str
    state: str
    preferred_areas: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    tenant_id: int
    tenant_name: str
    tenant_email: str
    tenant_phone: str
    move_in_date: date
    is_active: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# -------------------- Misc --------------------

class MessageOut(BaseModel):
    message: str
