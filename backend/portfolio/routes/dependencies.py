"""
Portfolio Backend — Route Dependencies
========================================

What:  FastAPI dependencies shared by the contact-info routes: the store
       instance and the authenticated Actor.
How:   `HTTPBearer(auto_error=False)` extracts the bearer token; a missing or
       invalid token raises AuthenticationError, which the global handler
       turns into a 401 with `WWW-Authenticate: Bearer`. Capability checks
       raise PermissionDeniedError (403).

Usage:
    @router.post("/admin/contact-info")
    async def write(actor: Actor = Depends(require_capability(EDIT_PROFILE))):
        ...

Tests swap the store with `app.dependency_overrides[get_contact_info_store]`.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portfolio.exceptions import AuthenticationError, PermissionDeniedError
from portfolio.services.auth_service import ADMIN_ROLE, Actor, verify_token
from portfolio.services.contact_info_store import ContactInfoStore, contact_info_store

bearer_scheme = HTTPBearer(auto_error=False)


def get_contact_info_store() -> ContactInfoStore:
    return contact_info_store


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Actor:
    """
    Authenticate the caller from its bearer token.

    Raises:
        AuthenticationError: no token, or the token fails verification
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return verify_token(credentials.credentials)


def require_capability(capability: str):
    """Dependency factory: the caller must hold `capability` (admins always do)."""

    async def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if not actor.can(capability):
            raise PermissionDeniedError(capability, actor=actor.subject)
        return actor

    return dependency


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise PermissionDeniedError(ADMIN_ROLE, actor=actor.subject)
    return actor
