from __future__ import annotations

import pytest
from jose import jwt

from app.core.config import get_settings
from app.core.enums import RoleEnum
from app.core.security import create_access_token
from app.modules.identity.service import get_identity_provider, user_from_token
from app.shared.exceptions import NotAuthenticatedException


def test_access_token_resolves_to_current_user() -> None:
    token = create_access_token("student_1", role="student", name="Ada", email="ada@studio.test")

    user = user_from_token(token)

    assert user.id == "student_1"
    assert user.role == RoleEnum.STUDENT
    assert user.name == "Ada"
    assert user.email == "ada@studio.test"


def test_unknown_role_is_rejected() -> None:
    token = create_access_token("user_1", role="superuser")

    with pytest.raises(NotAuthenticatedException):
        user_from_token(token)


def test_non_access_token_is_rejected() -> None:
    token = create_access_token("user_1", role="admin", type="refresh")

    with pytest.raises(NotAuthenticatedException):
        user_from_token(token)


def test_token_signed_with_other_key_is_rejected() -> None:
    settings = get_settings()
    token = jwt.encode(
        {"sub": "admin_1", "role": "admin", "type": "access"},
        "another-secret-key",
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(NotAuthenticatedException):
        user_from_token(token)


def test_garbage_token_is_rejected() -> None:
    with pytest.raises(NotAuthenticatedException):
        user_from_token("not-a-token")


@pytest.mark.asyncio
async def test_missing_token_yields_anonymous_identity() -> None:
    identity = await get_identity_provider(None)

    assert identity.get_current_user() is None
    assert identity.is_authenticated() is False
    assert identity.has_role(RoleEnum.ADMIN) is False


@pytest.mark.asyncio
async def test_bearer_token_yields_authenticated_identity() -> None:
    identity = await get_identity_provider(create_access_token("instructor_1", role="instructor"))

    assert identity.is_authenticated() is True
    assert identity.has_role(RoleEnum.INSTRUCTOR) is True
    assert identity.has_role(RoleEnum.ADMIN) is False
