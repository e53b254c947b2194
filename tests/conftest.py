from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta

import pytest

from src.coach_attendance.coach_attendance.attendance.memory_attendance_repository import (
    InMemoryAttendanceRepository,
    InMemoryAttendanceStore,
)
from src.coach_attendance.coach_attendance.attendance.service import AttendanceService
from src.coach_attendance.coach_attendance.core.enums import TimeSlot
from src.coach_attendance.coach_attendance.sessions.memory_session_repository import InMemorySessionRepository
from src.coach_attendance.coach_attendance.sessions.model import TrainingSession


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime = datetime(2025, 3, 14, 9, 0, 0)):
        self._now = start

    def __call__(self) -> datetime:
        current = self._now
        self._now += timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def sessions_repo():
    return InMemorySessionRepository()


@pytest.fixture
def make_session(sessions_repo):
    def _make(session_date: date = date(2025, 3, 14), *, time_slot=TimeSlot.MORNING, age_group: str = "U-12"):
        session = TrainingSession(
            session_id=str(uuid.uuid4()),
            session_date=session_date,
            time_slot=time_slot,
            age_group=age_group,
        )
        sessions_repo.add(session)
        return session

    return _make


@pytest.fixture
def store():
    return InMemoryAttendanceStore()


@pytest.fixture
def attendance_repo(store, sessions_repo, clock):
    return InMemoryAttendanceRepository(store, sessions=sessions_repo, lock_timeout=2.0, clock=clock)


@pytest.fixture
def make_service(attendance_repo, sessions_repo, clock):
    def _make(photos=None, *, repo=None, **kwargs):
        return AttendanceService(repo or attendance_repo, sessions_repo, photos, clock=clock, **kwargs)

    return _make
