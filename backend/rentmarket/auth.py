# backend/rentmarket/auth.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import Settings
from .db import get_db
from .errors import Forbidden, Unauthenticated
from .models import User
from .services.auth_service import decode_access_token


@dataclass(frozen=True)
class Principal:
    user_id: int
    name: str
    email: str
    role: str  # tenant | owner | admin


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def principal_from_user(user: User) -> Principal:
    if not user.is_active:
        raise Forbidden("Account is deactivated")
    return Principal(user_id=int(user.id), name=str(user.name), email=str(user.email), role=str(user.role))


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and str(authorization).lower().startswith("bearer "):
        token = str(authorization).split(" ", 1)[1].strip()
        return token or None
    return None


def resolve_principal(
    db: Session,
    settings: Settings,
    *,
    authorization: Optional[str],
    dev_email: Optional[str],
) -> Optional[Principal]:
    """
    Identity sources (in priority order):
      1) Authorization: Bearer <jwt>
      2) dev header (settings.dev_header_user_email), ONLY if settings.auth_mode == "dev"

    Returns None when the request carries no identity at all.
    """
    token = _bearer_token(authorization)
    if token:
        claims = decode_access_token(settings, token)
        sub = str(claims.get("sub") or "")
        if not sub.isdigit():
            raise Unauthenticated("Token missing sub")
        user = db.get(User, int(sub))
        if user is None:
            raise Unauthenticated("Unknown user")
        return principal_from_user(user)

    if settings.auth_mode == "dev" and dev_email:
        email = dev_email.strip().lower()
        user = db.scalar(select(User).where(User.email == email))
        if user is None:
            raise Unauthenticated("Unknown user for dev auth")
        return principal_from_user(user)

    return None


def get_optional_principal(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Optional[Principal]:
    settings = get_settings(request)
    dev_email = request.headers.get(settings.dev_header_user_email)
    return resolve_principal(db, settings, authorization=authorization, dev_email=dev_email)


def get_principal(p: Optional[Principal] = Depends(get_optional_principal)) -> Principal:
    if p is None:
        raise Unauthenticated()
    return p
