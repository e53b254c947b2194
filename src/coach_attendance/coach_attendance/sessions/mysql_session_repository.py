from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import TimeSlot
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import TrainingSession
from .repository import SessionRepository


def _to_session(r: dict) -> TrainingSession:
    return TrainingSession(
        session_id=r["session_id"],
        session_date=r["session_date"],
        time_slot=TimeSlot(r["time_slot"]),
        age_group=r["age_group"],
        coach_id=r.get("coach_id"),
        photo_url=r.get("photo_url"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: str) -> Optional[TrainingSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, session_date, time_slot, age_group, coach_id, photo_url
                FROM sessions
                WHERE session_id=%s
                """,
                (session_id,),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_for_age_group(self, *, age_group: str, session_date: date) -> Sequence[TrainingSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, session_date, time_slot, age_group, coach_id, photo_url
                FROM sessions
                WHERE age_group=%s AND session_date=%s
                ORDER BY FIELD(time_slot, 'morning', 'evening')
                """,
                (age_group, session_date),
            )
            return [_to_session(r) for r in fetchall(cur)]
