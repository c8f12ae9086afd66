"""
Authentication dependencies.

Routes receive a typed Actor decoded from the `Authorization: Bearer <jwt>` header.
Role-specific dependencies narrow it to the variant the route serves.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from coachbook.core.errors import Forbidden, Unauthorized, messages
from coachbook.core.identity import Actor, AdminActor, AthleteActor, CoachActor, decode_token
from coachbook.core.logging import set_user_context

bearer = HTTPBearer(auto_error=False)


async def get_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Actor:
    """Decode the bearer token into an Actor; 401 when missing or invalid."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized(messages.TOKEN_MISSING)
    actor = decode_token(credentials.credentials)
    set_user_context(user_id=str(actor.id), role=actor.role)
    return actor


def require_athlete(actor: Actor = Depends(get_actor)) -> AthleteActor:
    if not isinstance(actor, AthleteActor):
        raise Forbidden(messages.ROLE_REQUIRED)
    return actor


def require_coach(actor: Actor = Depends(get_actor)) -> CoachActor:
    if not isinstance(actor, CoachActor):
        raise Forbidden(messages.ROLE_REQUIRED)
    return actor


def require_admin(actor: Actor = Depends(get_actor)) -> AdminActor:
    if not isinstance(actor, AdminActor):
        raise Forbidden(messages.ROLE_REQUIRED)
    return actor
