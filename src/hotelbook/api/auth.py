"""Bearer JWT → Actor.

Tokens are issued elsewhere; this module only verifies the RS256
signature and standard claims and maps them to the Actor the booking core
expects.

Provides:
- verify_token(): Validates JWT and returns its claims
- get_current_actor(): FastAPI dependency for the authenticated actor
"""

from __future__ import annotations

import os
from typing import Any

import jwt
from fastapi import HTTPException, Request

from hotelbook.domain.statuses import ROLE_HIERARCHY, Actor


def _get_settings() -> dict[str, str | None]:
    """Load token verification settings from environment."""
    return {
        "public_key": os.environ.get("AUTH_PUBLIC_KEY"),
        "issuer": os.environ.get("AUTH_ISSUER"),
        "audience": os.environ.get("AUTH_AUDIENCE"),
    }


def verify_token(token: str) -> dict[str, Any]:
    """Verify JWT signature, expiry, issuer and audience.

    Raises:
        HTTPException: 401 if token is invalid or verification is not configured.
    """
    settings = _get_settings()
    public_key = settings["public_key"]
    issuer = settings["issuer"]
    audience = settings["audience"]

    if not public_key or not issuer or not audience:
        raise HTTPException(status_code=401, detail="Auth not configured")

    try:
        return jwt.decode(
            token,
            public_key,
            algorithms=["RS256"],
            issuer=issuer,
            audience=audience,
            options={"require": ["exp", "iss", "aud", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def _extract_bearer_token(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    return parts[1]


def get_current_actor(request: Request) -> Actor:
    """FastAPI dependency: authenticated actor from the bearer token.

    Raises:
        HTTPException: 401 if token invalid/missing, 403 if the role is unknown.
    """
    claims = verify_token(_extract_bearer_token(request))

    role = claims.get("role", "guest")
    if role not in ROLE_HIERARCHY:
        raise HTTPException(status_code=403, detail="Unknown role")

    return Actor(id=str(claims["sub"]), role=role)

