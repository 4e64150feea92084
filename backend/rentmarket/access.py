# backend/rentmarket/access.py
"""
Role-scoped access contexts.

A request's Principal is resolved exactly once into one of three variants.
Every handler then asks the context instead of comparing role strings:

    ctx.inquiry_scope()          where-clause for visible inquiries
    ctx.property_scope()         where-clause for analytics pre-filtering
    ctx.can_mutate_property(p)   edit/delete rights on a listing
    ctx.is_inquiry_party(i)      tenant or owner of an inquiry
    ctx.demand("can_moderate")   raise Forbidden unless the capability is set
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from fastapi import Depends
from sqlalchemy import true
from sqlalchemy.sql.elements import ColumnElement

from .auth import Principal, get_principal
from .errors import Forbidden
from .models import Inquiry, Property, Role


@dataclass(frozen=True)
class _BaseContext:
    principal: Principal

    role: ClassVar[str] = ""

    can_create_inquiry: ClassVar[bool] = False
    can_list_own_properties: ClassVar[bool] = False
    can_create_property: ClassVar[bool] = False
    can_moderate: ClassVar[bool] = False
    can_post_requirement: ClassVar[bool] = False
    can_view_analytics: ClassVar[bool] = False

    @property
    def user_id(self) -> int:
        return self.principal.user_id

    def demand(self, capability: str, detail: str | None = None) -> None:
        if not bool(getattr(self, capability, False)):
            raise Forbidden(detail or f"Role '{self.role}' is not allowed to do this")

    def is_inquiry_party(self, inquiry: Inquiry) -> bool:
        return self.user_id in (int(inquiry.tenant_id), int(inquiry.owner_id))

    def can_read_inquiry(self, inquiry: Inquiry) -> bool:
        return self.is_inquiry_party(inquiry)

    def can_mutate_property(self, prop: Property) -> bool:
        return False

    def inquiry_scope(self) -> ColumnElement[bool]:
        raise NotImplementedError

    def property_scope(self) -> ColumnElement[bool]:
        raise Forbidden("Analytics are available to owners and admins only")


@dataclass(frozen=True)
class TenantContext(_BaseContext):
    role: ClassVar[str] = Role.TENANT.value

    can_create_inquiry: ClassVar[bool] = True
    can_post_requirement: ClassVar[bool] = True

    def inquiry_scope(self) -> ColumnElement[bool]:
        return Inquiry.tenant_id == self.user_id


@dataclass(frozen=True)
class OwnerContext(_BaseContext):
    role: ClassVar[str] = Role.OWNER.value

    can_list_own_properties: ClassVar[bool] = True
    can_create_property: ClassVar[bool] = True
    can_view_analytics: ClassVar[bool] = True

    def inquiry_scope(self) -> ColumnElement[bool]:
        return Inquiry.owner_id == self.user_id

    def property_scope(self) -> ColumnElement[bool]:
        return Property.owner_id == self.user_id

    def can_mutate_property(self, prop: Property) -> bool:
        return int(prop.owner_id) == self.user_id


@dataclass(frozen=True)
class AdminContext(_BaseContext):
    role: ClassVar[str] = Role.ADMIN.value

    can_moderate: ClassVar[bool] = True
    can_view_analytics: ClassVar[bool] = True

    def inquiry_scope(self) -> ColumnElement[bool]:
        return true()

    def property_scope(self) -> ColumnElement[bool]:
        return true()

    def can_read_inquiry(self, inquiry: Inquiry) -> bool:
        return True


AccessContext = Union[TenantContext, OwnerContext, AdminContext]

_CONTEXTS: dict[str, type] = {
    Role.TENANT.value: TenantContext,
    Role.OWNER.value: OwnerContext,
    Role.ADMIN.value: AdminContext,
}


def resolve_context(principal: Principal) -> AccessContext:
    cls = _CONTEXTS.get(str(principal.role))
    if cls is None:
        raise Forbidden("Invalid user role")
    return cls(principal=principal)


def get_context(p: Principal = Depends(get_principal)) -> AccessContext:
    return resolve_context(p)


def require(capability: str, detail: str | None = None):
    """Dependency factory: resolve the context and demand one capability."""

    def checker(ctx: AccessContext = Depends(get_context)) -> AccessContext:
        ctx.demand(capability, detail)
        return ctx

    return checker


require_admin = require("can_moderate", "Admin access required")
require_owner = require("can_list_own_properties", "Owner access required")
require_tenant = require("can_create_inquiry", "Tenant access required")
require_analytics = require("can_view_analytics", "Analytics are available to owners and admins only")
