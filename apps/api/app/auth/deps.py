from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from app.auth.jwt import actor_from_claims, verify_access_token
from app.services.permissions import Actor


def _unauthorized(detail: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_actor(request: Request) -> Actor:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise _unauthorized("missing bearer token")

    token = auth.removeprefix("Bearer ").strip()
    try:
        return actor_from_claims(verify_access_token(token))
    except ValueError:
        raise _unauthorized("invalid access token") from None


CurrentActor = Annotated[Actor, Depends(get_current_actor)]


def require_admin(actor: CurrentActor) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="admin role required")
    return actor


AdminActor = Annotated[Actor, Depends(require_admin)]
