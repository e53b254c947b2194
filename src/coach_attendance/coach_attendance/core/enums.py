from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance mark stored for one (session, player) pair."""

    PRESENT_REGULAR = "present_regular"
    PRESENT_COMPLIMENTARY = "present_complimentary"
    ABSENT = "absent"

    @property
    def is_present(self) -> bool:
        return self is not AttendanceStatus.ABSENT


class TimeSlot(str, Enum):
    MORNING = "morning"
    EVENING = "evening"
