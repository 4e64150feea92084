# backend/rentmarket/services/auth_service.py
from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import os
import secrets
from datetime import timedelta
from typing import Any

import jwt  # PyJWT
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import Settings
from ..errors import AccountExists, Forbidden, Unauthenticated
from ..models import Role, User, utcnow
from ..schemas import SignupIn

log = logging.getLogger("rentmarket.auth")


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(16)
    iters = int(os.getenv("AUTH_PBKDF2_ITERS", "210000"))
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iters)
    return f"pbkdf2_sha256${iters}${base64.b64encode(salt).decode()}${base64.b64encode(dk).decode()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algo, iters_s, salt_b64, dk_b64 = stored.split("$", 3)
        if algo != "pbkdf2_sha256":
            return False
        iters = int(iters_s)
        salt = base64.b64decode(salt_b64.encode())
        dk = base64.b64decode(dk_b64.encode())
    except ValueError:
        return False
    test = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iters)
    return hmac.compare_digest(test, dk)


def create_access_token(settings: Settings, *, user: User) -> str:
    now = utcnow()
    payload: dict[str, Any] = {
        "sub": str(user.id),
        "email": str(user.email),
        "role": str(user.role),
        "iat": now,
        "exp": now + timedelta(minutes=int(settings.jwt_exp_minutes)),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthenticated("Invalid token")


def register_user(db: Session, settings: Settings, payload: SignupIn) -> User:
    if payload.role == Role.ADMIN and not settings.allow_admin_signup:
        raise Forbidden("Admin accounts cannot be created through signup")

    email = payload.email.strip().lower()
    if db.scalar(select(User.id).where(func.lower(User.email) == email)) is not None:
        raise AccountExists("User with this email already exists")
    if db.scalar(select(User.id).where(User.phone == payload.phone)) is not None:
        raise AccountExists("User with this phone number already exists")

    user = User(
        name=payload.name,
        email=email,
        phone=payload.phone,
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        is_active=True,
        created_at=utcnow(),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # concurrent signup won the unique(email) race
        db.rollback()
        raise AccountExists("User with this email already exists")
    db.refresh(user)

    log.info("user signed up", extra={"user_id": user.id})
    return user


def authenticate(db: Session, *, email: str, password: str) -> User:
    user = db.scalar(select(User).where(User.email == email.strip().lower()))

    # Generic error: don't reveal whether the email exists
    if user is None or not verify_password(password, user.password_hash):
        raise Unauthenticated("Invalid email or password")
    if not user.is_active:
        raise Forbidden("Account is deactivated")
    return user
