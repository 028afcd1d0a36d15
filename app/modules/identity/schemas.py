"""Identity schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.core.enums import RoleEnum


class CurrentUser(BaseModel):
    """Actor resolved by the external identity provider."""

    id: str = Field(min_length=1)
    role: RoleEnum
    name: str = ""
    email: str = ""
