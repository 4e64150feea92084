# backend/rentmarket/routers/properties.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status
from sqlalchemy.orm import Session

from ..access import AccessContext, get_context, require_owner
from ..auth import Principal, get_optional_principal, get_settings
from ..config import Settings
from ..db import get_db
from ..models import Furnishing, PropertyType
from ..schemas import MessageOut, PropertyCreate, PropertyOut, PropertyUpdate, ViewIn
from ..services import listings

router = APIRouter(prefix="/properties", tags=["properties"])


@router.get("", response_model=list[PropertyOut])
def list_properties(
    page: int = Query(default=1, ge=1, le=listings.MAX_PAGE),
    limit: Optional[int] = Query(default=None, ge=1),
    city: Optional[str] = Query(default=None),
    min_rent: Optional[float] = Query(default=None, ge=0),
    max_rent: Optional[float] = Query(default=None, ge=0),
    bhk: Optional[int] = Query(default=None, ge=1, le=10),
    furnishing: Optional[Furnishing] = Query(default=None),
    property_type: Optional[PropertyType] = Query(default=None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Public listing of active properties, newest first.
    limit defaults to default_page_size and is capped at max_page_size.
    """
    limit = min(int(limit or settings.default_page_size), int(settings.max_page_size))
    filters = listings.ListingFilters(
        city=city,
        min_rent=min_rent,
        max_rent=max_rent,
        bhk=bhk,
        furnishing=furnishing.value if furnishing else None,
        property_type=property_type.value if property_type else None,
    )
    return listings.list_public(db, page=page, limit=limit, filters=filters)


@router.post("", response_model=PropertyOut, status_code=status.HTTP_201_CREATED)
def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_context),
):
    return listings.create_property(db, ctx, payload)


@router.get("/mine", response_model=list[PropertyOut])
def my_properties(db: Session = Depends(get_db), ctx: AccessContext = Depends(require_owner)):
    return listings.list_owned(db, ctx)


@router.get("/{property_id}", response_model=PropertyOut)
def get_property(property_id: int, db: Session = Depends(get_db)):
    return listings.get_property(db, property_id=property_id)


@router.patch("/{property_id}", response_model=PropertyOut)
def update_property(
    property_id: int,
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_context),
):
    return listings.update_property(db, ctx, property_id, payload)


@router.delete("/{property_id}", response_model=MessageOut)
def delete_property(
    property_id: int,
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_context),
):
    listings.delete_property(db, ctx, property_id)
    return MessageOut(message="Property deleted successfully")


@router.post("/{property_id}/view", response_model=MessageOut)
def record_view(
    property_id: int,
    request: Request,
    payload: Optional[ViewIn] = Body(default=None),
    db: Session = Depends(get_db),
    p: Optional[Principal] = Depends(get_optional_principal),
):
    """Anonymous view counter; client-reported user agent/ip win over the transport's."""
    ua = (payload.user_agent if payload else None) or request.headers.get("user-agent", "")
    ip = (payload.ip if payload else None) or (request.client.host if request.client else "")
    listings.record_view(
        db,
        property_id=property_id,
        user_agent=ua,
        ip=ip,
        user_id=p.user_id if p else None,
    )
    return MessageOut(message="View recorded")
