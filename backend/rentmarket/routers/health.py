# backend/rentmarket/routers/health.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..db import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    # OperationalError bubbles to the 503 handler
    db.execute(text("SELECT 1"))
    return {"status": "ok", "db": "ok"}
