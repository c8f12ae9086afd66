"""
Request identities.

The identity provider issues HS256 bearer tokens carrying `sub` (user id), `role` and
`email`. We verify signature and expiry and trust the claims. An identity is one of
three closed variants; services dispatch on them with `match`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union

import jwt

from coachbook.core.config import settings
from coachbook.core.errors import Unauthorized, messages


@dataclass(frozen=True)
class AthleteActor:
    id: int
    email: str = ""

    role = "ATHLETE"


@dataclass(frozen=True)
class CoachActor:
    id: int
    email: str = ""

    role = "COACH"


@dataclass(frozen=True)
class AdminActor:
    id: int
    email: str = ""

    role = "ADMIN"


Actor = Union[AthleteActor, CoachActor, AdminActor]

_ROLES = {
    "ATHLETE": AthleteActor,
    "COACH": CoachActor,
    "ADMIN": AdminActor,
}


def actor_from_claims(claims: Dict[str, Any]) -> Actor:
    try:
        user_id = int(claims["sub"])
        actor_cls = _ROLES[str(claims["role"]).upper()]
    except (KeyError, TypeError, ValueError):
        raise Unauthorized(messages.TOKEN_INVALID)
    return actor_cls(id=user_id, email=claims.get("email", ""))


def decode_token(token: str) -> Actor:
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError:
        raise Unauthorized(messages.TOKEN_INVALID)
    return actor_from_claims(claims)


def is_party(actor: Actor, *, athlete_id: int, coach_id: int) -> bool:
    """True when the actor is the athlete or the coach on a booking."""
    match actor:
        case AthleteActor(id=actor_id):
            return actor_id == athlete_id
        case CoachActor(id=actor_id):
            return actor_id == coach_id
        case _:
            return False
