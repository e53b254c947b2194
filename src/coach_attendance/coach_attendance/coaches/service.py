from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.exceptions import AuthenticationError
from .model import Coach
from .repository import CoachRepository


@dataclass(frozen=True)
class SessionCoach:
    """What we store into the Flask session after login."""

    coach_id: str
    username: str
    name: str
    age_group: str

    def to_dict(self) -> dict:
        return {"id": self.coach_id, "username": self.username, "name": self.name, "ageGroup": self.age_group}


class AuthService:
    """Use case: authenticate a coach (login)."""

    def __init__(self, coaches: CoachRepository):
        self._coaches = coaches

    def authenticate(self, username: str, password: str) -> SessionCoach:
        username = require_non_empty(username, "Username")
        require_min_length(username, "Username", 3)
        require_min_length(password, "Password", 6)

        coach = self._coaches.get_by_username(username)
        if not coach or not coach.is_active:
            raise AuthenticationError("Invalid credentials")

        try:
            ok = check_password_hash(coach.password_hash, password)
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid credentials")

        return self._to_session(coach)

    def get_session_coach(self, coach_id: str) -> SessionCoach:
        coach = self._coaches.get_by_id(coach_id)
        if not coach or not coach.is_active:
            raise AuthenticationError("Coach not found")
        return self._to_session(coach)

    @staticmethod
    def _to_session(coach: Coach) -> SessionCoach:
        return SessionCoach(
            coach_id=coach.coach_id,
            username=coach.username,
            name=coach.name,
            age_group=coach.age_group,
        )
