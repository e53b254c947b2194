from __future__ import annotations

from typing import Iterable, Optional

from .model import Coach
from .repository import CoachRepository


class InMemoryCoachRepository(CoachRepository):
    def __init__(self, coaches: Iterable[Coach] = ()):
        self._by_id: dict[str, Coach] = {c.coach_id: c for c in coaches}

    def add(self, coach: Coach) -> None:
        self._by_id[coach.coach_id] = coach

    def get_by_id(self, coach_id: str) -> Optional[Coach]:
        return self._by_id.get(coach_id)

    def get_by_username(self, username: str) -> Optional[Coach]:
        for coach in self._by_id.values():
            if coach.username == username:
                return coach
        return None
