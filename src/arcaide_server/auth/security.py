"""
Bearer Token Verification

Session management lives with the external auth provider. This module only
answers "who is the caller, or reject":

1. Verify the JWT signature, issuer, audience and expiry.
2. Produce a validated `UserContext` for downstream routes.
"""

from __future__ import annotations

import jwt

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..api.dependencies import get_app_settings
from ..config import Settings
from .models import UserContext


# ---------------------------------------------------------------------
# Security Scheme
# ---------------------------------------------------------------------

security = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------

def _decode_token(token: str, settings: Settings) -> dict:
    """
    Decode and validate a JWT issued by the auth provider.

    Raises
    ------
    Various JWT-related exceptions, which the public wrapper handles.
    """
    return jwt.decode(
        token,
        settings.jwt_secret.get_secret_value(),
        algorithms=[settings.jwt_algo],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
        options={
            "require": ["iss", "aud", "iat", "exp", "sub"],
        },
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ---------------------------------------------------------------------
# Public Authentication Dependency
# ---------------------------------------------------------------------

def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(security),
    settings: Settings = Depends(get_app_settings),
) -> UserContext:
    """
    Verify the bearer token and construct a UserContext.

    Expected claims:
      - iss / aud: configured issuer and audience
      - sub: user id
      - name: optional display name

    Raises
    ------
    HTTPException(401) for missing, invalid or expired tokens.
    """
    if creds is None:
        raise _unauthorized("Not authenticated.")

    try:
        payload = _decode_token(creds.credentials, settings)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired.")
    except jwt.InvalidAudienceError:
        raise _unauthorized("Invalid token audience.")
    except jwt.InvalidIssuerError:
        raise _unauthorized("Invalid token issuer.")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid or malformed token.")

    user_id = payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        raise _unauthorized("Token missing 'sub' claim.")

    username = payload.get("name")

    return UserContext(
        user_id=user_id,
        username=username if isinstance(username, str) else None,
    )
