"""Identity API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.modules.identity.schemas import CurrentUser
from app.modules.identity.service import IdentityProvider, get_identity_provider
from app.shared.exceptions import NotAuthenticatedException

router = APIRouter(prefix="/identity", tags=["identity"])


@router.get("/me", response_model=CurrentUser)
async def get_me(identity: IdentityProvider = Depends(get_identity_provider)) -> CurrentUser:
    """Return the actor carried by the bearer token."""
    user = identity.get_current_user()
    if user is None:
        raise NotAuthenticatedException("Authentication required")
    return user
