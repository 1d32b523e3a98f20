"""FastAPI dependencies for database sessions and authentication."""

from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, Header
from jwt import PyJWTError

from .config import settings
from .database import get_db
from .exceptions import AuthenticationError
from .permissions import Principal


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a bearer token.

    Raises:
        AuthenticationError: If the signature, expiry or payload is invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=[settings.jwt_algorithm]
        )
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}") from e

    if payload.get("sub") is None:
        raise AuthenticationError(detail="Invalid token payload")

    return payload


def create_access_token(user_id: UUID | str, roles: list[str], username: Optional[str] = None, **claims) -> str:
    """Mint a bearer token; used by the demo setup script and tests."""
    payload = {"sub": str(user_id), "roles": list(roles), **claims}
    if username:
        payload["username"] = username
    return jwt.encode(payload, settings.bearer_token_secret, algorithm=settings.jwt_algorithm)


async def get_current_principal(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> Principal:
    """
    Authentication dependency that resolves a Bearer token into a Principal.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        Principal: Authenticated user with resolved permissions

    Raises:
        AuthenticationError: If token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError(detail="Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Invalid authorization header format")

    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    payload = decode_access_token(token)

    try:
        user_id = UUID(str(payload["sub"]))
    except ValueError:
        raise AuthenticationError(detail="Token subject is not a valid user ID")

    roles = payload.get("roles", [])
    if isinstance(roles, str):
        roles = [roles]

    return Principal.from_roles(user_id, roles, username=payload.get("username"))


RequiredAuth = Depends(get_current_principal)
DatabaseSession = Depends(get_db)
