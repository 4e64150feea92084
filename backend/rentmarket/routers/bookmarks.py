# backend/rentmarket/routers/bookmarks.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..access import AccessContext, get_context
from ..db import get_db
from ..schemas import BookmarkIn, MessageOut, PropertyOut
from ..services import bookmarks

router = APIRouter(prefix="/bookmarks", tags=["bookmarks"])


@router.get("", response_model=list[PropertyOut])
def list_bookmarks(db: Session = Depends(get_db), ctx: AccessContext = Depends(get_context)):
    return bookmarks.list_bookmarked_properties(db, ctx)


@router.get("/ids", response_model=list[int])
def bookmark_ids(db: Session = Depends(get_db), ctx: AccessContext = Depends(get_context)):
    return bookmarks.list_bookmark_ids(db, ctx)


@router.post("", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def add_bookmark(payload: BookmarkIn, db: Session = Depends(get_db), ctx: AccessContext = Depends(get_context)):
    bookmarks.add_bookmark(db, ctx, property_id=payload.property_id)
    return MessageOut(message="Bookmark added successfully")


@router.delete("", response_model=MessageOut)
def remove_bookmark(
    property_id: int = Query(...),
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_context),
):
    bookmarks.remove_bookmark(db, ctx, property_id=property_id)
    return MessageOut(message="Bookmark removed successfully")
