"""
Portfolio Backend — Actor & Bearer Token Verification
=======================================================

What:  The `Actor` performing a request and the verification of the JWT
       bearer tokens that identify it.
How:   Tokens are issued by the identity side of the portfolio (out of scope
       here); this module only checks the signature and expiry with PyJWT
       and reads three claims:
           sub (or uid / userId)   → Actor.subject
           role                    → Actor.role
           permissions             → Actor.permissions, either a list of
                                     capability names or a {name: bool} map
Who:   Route dependencies (routes/dependencies.py) and ContactInfoStore.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet

import jwt

from portfolio.config import settings
from portfolio.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# ── Capabilities ──────────────────────────────────────────────────────────
EDIT_PROFILE = "canEditProfile"
ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Actor:
    """An authenticated caller. Admins hold every capability."""

    subject: str
    role: str = "user"
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def can(self, capability: str) -> bool:
        return self.is_admin or capability in self.permissions


def _permissions_from(claim: Any) -> FrozenSet[str]:
    if isinstance(claim, dict):
        return frozenset(name for name, granted in claim.items() if granted is True)
    if isinstance(claim, (list, tuple)):
        return frozenset(str(name) for name in claim)
    return frozenset()


def actor_from_claims(claims: Dict[str, Any]) -> Actor:
    """
    Build an Actor from decoded token claims.

    Raises:
        AuthenticationError: the token names no subject.
    """
    subject = claims.get("sub") or claims.get("uid") or claims.get("userId")
    if not subject:
        raise AuthenticationError(message="Token missing subject")
    return Actor(
        subject=str(subject),
        role=str(claims.get("role") or "user"),
        permissions=_permissions_from(claims.get("permissions")),
    )


def verify_token(token: str) -> Actor:
    """
    Verify a bearer token and return the Actor it identifies.

    Raises:
        AuthenticationError: expired, malformed or wrongly signed token.
    """
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Token expired")
    except jwt.InvalidTokenError as e:
        # Reason stays in the logs; clients only learn the token was rejected
        logger.info("Rejected bearer token: %s", type(e).__name__)
        raise AuthenticationError(message="Invalid or expired token")
    return actor_from_claims(claims)
