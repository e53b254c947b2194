from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import TrainingSession


class SessionRepository(Protocol):
    """Read access to training sessions.

    Sessions are scheduled elsewhere; the attendance core only needs the date
    of a session (for the monthly complimentary quota) and the age-group
    listing used by the dashboard.
    """

    def get_by_id(self, session_id: str) -> Optional[TrainingSession]:
        raise NotImplementedError

    def list_for_age_group(self, *, age_group: str, session_date: date) -> Sequence[TrainingSession]:
        raise NotImplementedError
