from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from .model import TrainingSession
from .repository import SessionRepository

_SLOT_ORDER = {"morning": 0, "evening": 1}


class InMemorySessionRepository(SessionRepository):
    def __init__(self, sessions: Iterable[TrainingSession] = ()):
        self._sessions: dict[str, TrainingSession] = {s.session_id: s for s in sessions}

    def add(self, session: TrainingSession) -> None:
        self._sessions[session.session_id] = session

    def get_by_id(self, session_id: str) -> Optional[TrainingSession]:
        return self._sessions.get(session_id)

    def list_for_age_group(self, *, age_group: str, session_date: date) -> Sequence[TrainingSession]:
        items = [s for s in self._sessions.values() if s.age_group == age_group and s.session_date == session_date]
        items.sort(key=lambda s: _SLOT_ORDER.get(s.time_slot.value, 99))
        return items
