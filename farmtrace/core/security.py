# farmtrace/core/security.py
"""
Identity-provider adapter: bearer JWT -> Identity(user_id, role).
Tokens are issued elsewhere; this side only verifies them.
"""
from __future__ import annotations
from typing import Any, Dict, Optional

import jwt
from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from farmtrace.core.config import Settings, get_settings
from farmtrace.domain.errors import UnauthorizedError
from farmtrace.domain.models.identity import Identity, Role

bearer = HTTPBearer(scheme_name="AccessToken", bearerFormat="JWT", auto_error=False)


def decode_token(token: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")


def identity_from_claims(claims: Dict[str, Any]) -> Identity:
    """`sub` and `role` are both mandatory; an unknown role is rejected, never defaulted."""
    user_id = claims.get("sub")
    if not user_id or not isinstance(user_id, str):
        raise UnauthorizedError("Missing subject in token")
    raw_role = claims.get("role")
    if not isinstance(raw_role, str):
        raise UnauthorizedError("Missing role in token")
    try:
        role = Role(raw_role.lower())
    except ValueError:
        raise UnauthorizedError(f"Unknown role in token: {raw_role!r}")
    return Identity(user_id=user_id, role=role)


def current_identity(credentials: HTTPAuthorizationCredentials = Security(bearer)) -> Identity:
    if not credentials or (credentials.scheme or "").lower() != "bearer":
        raise UnauthorizedError("Missing or invalid Authorization header")
    return identity_from_claims(decode_token(credentials.credentials.strip()))
