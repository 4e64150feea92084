# backend/rentmarket/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal, get_settings
from ..config import Settings
from ..db import get_db
from ..schemas import LoginIn, SignupIn, TokenOut, UserOut
from ..services.auth_service import authenticate, create_access_token, register_user
from ..services.ownership import must_get_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return register_user(db, settings, payload)


@router.post("/login", response_model=TokenOut)
def login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = authenticate(db, email=payload.email, password=payload.password)
    return TokenOut(access_token=create_access_token(settings, user=user), user=UserOut.model_validate(user))


@router.get("/me", response_model=UserOut)
def me(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return must_get_user(db, user_id=p.user_id)
