# backend/rentmarket/errors.py
from __future__ import annotations

from typing import Optional

from fastapi import HTTPException


class ServiceError(HTTPException):
    """
    Base for every error the access layer surfaces.

    Subclasses HTTPException so a service can raise it from anywhere under a
    route; `kind` is the stable machine-readable name.
    """

    kind: str = "error"
    http_status: int = 400
    default_detail: str = "Request failed"

    def __init__(self, detail: Optional[str] = None, *, headers: Optional[dict[str, str]] = None) -> None:
        super().__init__(status_code=self.http_status, detail=detail or self.default_detail, headers=headers)


class Unauthenticated(ServiceError):
    kind = "unauthenticated"
    http_status = 401
    default_detail = "Not authenticated"

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(ServiceError):
    kind = "forbidden"
    http_status = 403
    default_detail = "Not allowed"


class SelfActionDenied(ServiceError):
    kind = "self_action_denied"
    http_status = 400
    default_detail = "Admins cannot apply this action to their own account"


class NotFound(ServiceError):
    kind = "not_found"
    http_status = 404
    default_detail = "Not found"


class ValidationFailed(ServiceError):
    kind = "validation_failed"
    http_status = 422
    default_detail = "Invalid input"


class Conflict(ServiceError):
    kind = "conflict"
    http_status = 409
    default_detail = "Conflict"


class DuplicateInquiry(Conflict):
    kind = "duplicate_inquiry"
    default_detail = "You have already sent an inquiry for this property"


class AlreadyBookmarked(Conflict):
    kind = "already_bookmarked"
    default_detail = "Property already bookmarked"


class AccountExists(Conflict):
    kind = "account_exists"
    default_detail = "User with this email already exists"


class InquiryClosed(Conflict):
    kind = "inquiry_closed"
    default_detail = "Inquiry is closed; replies are not accepted"


class StoreUnavailable(ServiceError):
    kind = "store_unavailable"
    http_status = 503
    default_detail = "Database is unavailable, try again later"
