"""Unit tests for roles, permissions and bearer tokens."""

from uuid import uuid4

import jwt
import pytest

from hotel_booking.core.config import settings
from hotel_booking.core.dependencies import create_access_token, decode_access_token, get_current_principal
from hotel_booking.core.exceptions import AuthenticationError, AuthorizationError
from hotel_booking.core.permissions import Permission, Principal, Role, resolve_permissions


def test_admin_has_every_permission():
    assert resolve_permissions([Role.ADMIN]) == frozenset(Permission)


@pytest.mark.parametrize(
    ("role", "granted", "denied"),
    [
        (Role.MODERATOR, Permission.BOOKING_VIEW_ANY, Permission.BOOKING_CANCEL_ANY),
        (Role.WORKER, Permission.ROOM_CLEAN, Permission.BOOKING_VIEW_ANY),
        (Role.GUEST, Permission.BOOKING_CREATE, Permission.ROOM_CLEAN),
    ],
)
def test_role_permissions(role, granted, denied):
    permissions = resolve_permissions([role])

    assert granted in permissions
    assert denied not in permissions


def test_unknown_roles_grant_nothing():
    assert resolve_permissions(["superuser", "root"]) == frozenset()


def test_permissions_are_unioned_across_roles():
    permissions = resolve_permissions(["guest", "worker"])

    assert Permission.ROOM_CLEAN in permissions
    assert Permission.BOOKING_CREATE in permissions


def test_principal_require():
    principal = Principal.from_roles(uuid4(), ["guest"])

    principal.require(Permission.BOOKING_CREATE)
    with pytest.raises(AuthorizationError) as exc_info:
        principal.require(Permission.ROOM_CLEAN)

    assert exc_info.value.problem_details["required_permissions"] == ["room:clean"]


def test_principal_owner_or_permission():
    owner_id = uuid4()
    owner = Principal.from_roles(owner_id, ["guest"])
    admin = Principal.from_roles(uuid4(), ["admin"])
    stranger = Principal.from_roles(uuid4(), ["guest"])

    owner.require_owner_or(owner_id, Permission.BOOKING_CANCEL_ANY)
    admin.require_owner_or(owner_id, Permission.BOOKING_CANCEL_ANY)
    with pytest.raises(AuthorizationError):
        stranger.require_owner_or(owner_id, Permission.BOOKING_CANCEL_ANY)


def test_token_round_trip():
    user_id = uuid4()
    token = create_access_token(user_id, ["moderator"], username="mod")

    payload = decode_access_token(token)

    assert payload["sub"] == str(user_id)
    assert payload["roles"] == ["moderator"]
    assert payload["username"] == "mod"


def test_token_with_wrong_secret_rejected():
    token = jwt.encode({"sub": str(uuid4())}, "another-bearer-secret-0123456789abcdef", algorithm=settings.jwt_algorithm)

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_token_without_subject_rejected():
    token = jwt.encode({"roles": ["admin"]}, settings.bearer_token_secret, algorithm=settings.jwt_algorithm)

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


@pytest.mark.asyncio
async def test_current_principal_from_header():
    user_id = uuid4()
    token = create_access_token(user_id, ["worker"])

    principal = await get_current_principal(authorization=f"Bearer {token}")

    assert principal.user_id == user_id
    assert principal.roles == frozenset({Role.WORKER})
    assert principal.has(Permission.ROOM_CLEAN)


@pytest.mark.asyncio
@pytest.mark.parametrize("header", [None, "Bearer", "Basic abc", "Bearer not-a-jwt"])
async def test_current_principal_rejects_bad_headers(header):
    with pytest.raises(AuthenticationError):
        await get_current_principal(authorization=header)


@pytest.mark.asyncio
async def test_current_principal_rejects_non_uuid_subject():
    token = jwt.encode({"sub": "user-1"}, settings.bearer_token_secret, algorithm=settings.jwt_algorithm)

    with pytest.raises(AuthenticationError):
        await get_current_principal(authorization=f"Bearer {token}")
