# backend/rentmarket/routers/requirements.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..access import AccessContext, get_context, require_tenant
from ..db import get_db
from ..schemas import RequirementCreate, RequirementOut
from ..services import requirements

router = APIRouter(prefix="/requirements", tags=["requirements"])


@router.get("", response_model=list[RequirementOut])
def list_requirements(city: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
    return requirements.list_active_requirements(db, city=city)


@router.post("", response_model=RequirementOut, status_code=status.HTTP_201_CREATED)
def post_requirement(
    payload: RequirementCreate,
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_context),
):
    return requirements.create_requirement(db, ctx, payload)


@router.get("/mine", response_model=list[RequirementOut])
def my_requirements(db: Session = Depends(get_db), ctx: AccessContext = Depends(require_tenant)):
    return requirements.list_my_requirements(db, ctx)


@router.delete("/{requirement_id}", response_model=RequirementOut)
def close_requirement(
    requirement_id: int,
    db: Session = Depends(get_db),
    ctx: AccessContext = Depends(get_context),
):
    return requirements.close_requirement(db, ctx, requirement_id)
