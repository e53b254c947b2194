from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import TimeSlot


@dataclass(frozen=True)
class TrainingSession:
    """A scheduled training session for one age group."""

    session_id: str
    session_date: date
    time_slot: TimeSlot
    age_group: str
    coach_id: Optional[str] = None
    photo_url: Optional[str] = None
