from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..coaches.service import SessionCoach
from ..players.model import PlayerStats
from ..players.repository import PlayerRepository

REPORT_FIELDS = [
    "Player Name",
    "Age Group",
    "Booked Sessions",
    "Attended Sessions",
    "Attendance Rate (%)",
    "Complimentary Sessions Used",
    "Remaining Sessions",
    "Status",
]


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[str]
    filename: str


def attendance_label(rate: int) -> str:
    if rate >= 90:
        return "Excellent"
    if rate >= 70:
        return "Good"
    return "Needs Attention"


class AttendanceExportService:
    """Builds the per-player attendance export for a coach's age group."""

    def __init__(self, players: PlayerRepository):
        self._players = players

    def build_player_report(self, coach: SessionCoach, *, report_date: date) -> ReportData:
        stats = self._players.list_stats_for_age_group(coach.age_group)
        rows = [self._to_row(p) for p in stats]

        summary = [
            f"Report generated on: {report_date.strftime('%Y-%m-%d')}",
            f"Coach: {coach.username}",
            f"Age Group: {coach.age_group}",
            f"Total Players: {len(stats)}",
        ]
        filename = f"attendance-report-{coach.age_group}-{report_date.strftime('%Y-%m-%d')}.csv"
        return ReportData(rows=rows, summary=summary, filename=filename)

    @staticmethod
    def _to_row(p: PlayerStats) -> dict:
        rate = p.attendance_rate
        return {
            "Player Name": p.name,
            "Age Group": p.age_group,
            "Booked Sessions": p.booked_sessions,
            "Attended Sessions": p.attended_sessions,
            "Attendance Rate (%)": rate,
            "Complimentary Sessions Used": p.complimentary_sessions,
            "Remaining Sessions": p.remaining_sessions,
            "Status": attendance_label(rate),
        }
