# backend/rentmarket/routers/inquiries.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..access import AccessContext, get_context
from ..auth import get_settings
from ..config import Settings
from ..db import get_db
from ..schemas import InquiryCreate, InquiryOut, InquiryStatusIn, ReplyIn
from ..services import inquiry_lifecycle as lifecycle

router = APIRouter(prefix="/inquiries", tags=["inquiries"])


@router.get("", response_model=list[InquiryOut])
def list_inquiries(
    status_filter: Optional[str] = Query(default=None, alias="status", description="pending|replied|...|all"),
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_context),
):
    return lifecycle.list_inquiries(db, ctx, status=status_filter)


@router.post("", response_model=InquiryOut, status_code=status.HTTP_201_CREATED)
def create_inquiry(
    payload: InquiryCreate,
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_context),
):
    return lifecycle.create_inquiry(db, ctx, payload)


@router.get("/{inquiry_id}", response_model=InquiryOut)
def get_inquiry(inquiry_id: int, db: Session = Depends(get_db), ctx: AccessContext = Depends(get_context)):
    return lifecycle.get_inquiry(db, ctx, inquiry_id)


@router.put("/{inquiry_id}", response_model=InquiryOut)
def set_status(
    inquiry_id: int,
    payload: InquiryStatusIn,
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_context),
):
    return lifecycle.set_status(db, ctx, inquiry_id, payload.status.value)


@router.post("/{inquiry_id}/reply", response_model=InquiryOut)
def reply(
    inquiry_id: int,
    payload: ReplyIn,
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_context),
    settings: Settings = Depends(get_settings),
):
    return lifecycle.append_reply(db, ctx, inquiry_id, payload.message, reopen=settings.inquiry_reply_reopens)


@router.put("/{inquiry_id}/read", response_model=InquiryOut)
def mark_read(inquiry_id: int, db: Session = Depends(get_db), ctx: AccessContext = Depends(get_context)):
    return lifecycle.mark_read(db, ctx, inquiry_id)
