"""Access policy checks applied at the start of every mutating operation."""

from __future__ import annotations

from dataclasses import dataclass

from . import models
from .errors import AuthorizationError, ValidationError


@dataclass(frozen=True, slots=True)
class Principal:
    """The authenticated identity performing an operation."""

    id: str
    display_name: str
    is_active: bool = True

    @classmethod
    def from_user(cls, user: models.User) -> Principal:
        profile_name = user.profile.full_name if user.profile else None
        display_name = profile_name or user.full_name or user.email or user.username
        return cls(id=user.id, display_name=display_name, is_active=user.is_active)


def require_principal(principal: Principal | None) -> Principal:
    if principal is None:
        raise ValidationError("An authenticated actor is required")
    return principal


def require_write(principal: Principal | None, resource: str) -> Principal:
    """Return *principal* when it may write to *resource*, else raise."""

    principal = require_principal(principal)
    if not principal.is_active:
        raise AuthorizationError(f"Inactive account cannot modify {resource}")
    return principal


def require_same_actor(actor: Principal, caller: Principal | None) -> None:
    """Movements may only be recorded under the caller's own identity."""

    if caller is not None and caller.id != actor.id:
        raise AuthorizationError("Movements can only be recorded for the authenticated user")


def require_owner(principal: Principal | None, owner_id: str) -> Principal:
    principal = require_principal(principal)
    if principal.id != owner_id:
        raise AuthorizationError("Profiles are only accessible by their owner")
    return principal
