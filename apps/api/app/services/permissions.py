from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum

from app.core.error_codes import ErrorCode
from app.core.exceptions import PermissionDeniedError


class ActorRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """Verified caller identity handed over by the identity provider."""

    user_id: uuid.UUID
    role: ActorRole = ActorRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


def can_manage(actor: Actor, owner_id: uuid.UUID) -> bool:
    return actor.is_admin or actor.user_id == owner_id


def require_manage_permission(actor: Actor, owner_id: uuid.UUID) -> None:
    if not can_manage(actor, owner_id):
        raise PermissionDeniedError(
            ErrorCode.NOT_EVENT_OWNER.value, "only the event creator or an admin can do this"
        )
