"""Identity provider boundary consumed by the ledgers."""

from __future__ import annotations

from typing import Protocol

from fastapi import Depends
from pydantic import ValidationError

from app.core.enums import RoleEnum
from app.core.security import decode_token, oauth2_scheme
from app.modules.identity.schemas import CurrentUser
from app.shared.exceptions import NotAuthenticatedException


class IdentityProvider(Protocol):
    """Source of the current actor."""

    def get_current_user(self) -> CurrentUser | None:
        """Return current actor, or None when anonymous."""

    def is_authenticated(self) -> bool:
        """Return True when an actor is present."""

    def has_role(self, role: RoleEnum) -> bool:
        """Return True when the actor holds role."""


class StaticIdentityProvider:
    """Identity provider holding an already-resolved actor."""

    def __init__(self, user: CurrentUser | None = None) -> None:
        self._user = user

    def get_current_user(self) -> CurrentUser | None:
        return self._user

    def is_authenticated(self) -> bool:
        return self._user is not None

    def has_role(self, role: RoleEnum) -> bool:
        return self._user is not None and self._user.role == role


def user_from_token(token: str) -> CurrentUser:
    """Build actor from bearer token claims."""
    payload = decode_token(token)
    if payload.get("type") != "access":
        raise NotAuthenticatedException("Invalid access token")

    subject = payload.get("sub")
    if not subject:
        raise NotAuthenticatedException("Token subject is missing")

    try:
        return CurrentUser(
            id=str(subject),
            role=payload.get("role"),
            name=payload.get("name") or "",
            email=payload.get("email") or "",
        )
    except ValidationError as exc:
        raise NotAuthenticatedException("Token role is not recognized") from exc


async def get_identity_provider(token: str | None = Depends(oauth2_scheme)) -> IdentityProvider:
    """Resolve request identity; requests without a bearer token are anonymous."""
    if not token:
        return StaticIdentityProvider()
    return StaticIdentityProvider(user_from_token(token))
