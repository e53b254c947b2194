from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Player:
    player_id: str
    name: str
    age_group: str
    booked_sessions: int
    join_date: date


@dataclass(frozen=True)
class PlayerStats:
    """Read-model for dashboard/export (player joined with attendance counts)."""

    player_id: str
    name: str
    age_group: str
    booked_sessions: int
    attended_sessions: int
    complimentary_sessions: int
    join_date: date

    @property
    def attendance_rate(self) -> int:
        if self.booked_sessions <= 0:
            return 0
        return round(self.attended_sessions / self.booked_sessions * 100)

    @property
    def remaining_sessions(self) -> int:
        return self.booked_sessions - self.attended_sessions
