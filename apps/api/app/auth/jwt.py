from __future__ import annotations

import uuid

import jwt
from jwt import PyJWTError

from app.core.config import settings
from app.services.permissions import Actor, ActorRole


def verify_access_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"require": ["sub", "exp"]},
        )
    except PyJWTError as exc:
        raise ValueError("invalid access token") from exc


def actor_from_claims(claims: dict) -> Actor:
    try:
        user_id = uuid.UUID(str(claims["sub"]))
        role = ActorRole(claims.get("role", ActorRole.USER.value))
    except (KeyError, ValueError) as exc:
        raise ValueError("invalid token subject or role") from exc
    return Actor(user_id=user_id, role=role)
