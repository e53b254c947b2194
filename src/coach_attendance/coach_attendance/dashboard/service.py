from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..coaches.service import SessionCoach
from ..core.constants import LOW_ATTENDANCE_THRESHOLD
from ..players.repository import PlayerRepository
from ..sessions.repository import SessionRepository


@dataclass(frozen=True)
class DashboardData:
    coach: dict
    today_sessions: list[dict]
    players: list[dict]
    stats: dict

    def to_dict(self) -> dict:
        return {
            "coach": self.coach,
            "todaySessions": self.today_sessions,
            "players": self.players,
            "stats": self.stats,
        }


class DashboardService:
    """Today's view for one coach: sessions and players of the coach's age group."""

    def __init__(self, players: PlayerRepository, sessions: SessionRepository):
        self._players = players
        self._sessions = sessions

    def build(self, coach: SessionCoach, *, today: date) -> DashboardData:
        stats_rows = self._players.list_stats_for_age_group(coach.age_group)
        sessions = self._sessions.list_for_age_group(age_group=coach.age_group, session_date=today)

        total = len(stats_rows)
        average = round(sum(p.attendance_rate for p in stats_rows) / total) if total else 0
        low = sum(1 for p in stats_rows if p.attendance_rate < LOW_ATTENDANCE_THRESHOLD)

        return DashboardData(
            coach=coach.to_dict(),
            today_sessions=[
                {
                    "id": s.session_id,
                    "date": s.session_date.strftime("%Y-%m-%d"),
                    "timeSlot": s.time_slot.value,
                    "ageGroup": s.age_group,
                    "photoUrl": s.photo_url,
                }
                for s in sessions
            ],
            players=[
                {
                    "id": p.player_id,
                    "name": p.name,
                    "ageGroup": p.age_group,
                    "bookedSessions": p.booked_sessions,
                    "attendedSessions": p.attended_sessions,
                    "complimentarySessions": p.complimentary_sessions,
                    "attendanceRate": p.attendance_rate,
                }
                for p in stats_rows
            ],
            stats={
                "totalPlayers": total,
                "averageAttendance": average,
                "lowAttendancePlayers": low,
            },
        )
