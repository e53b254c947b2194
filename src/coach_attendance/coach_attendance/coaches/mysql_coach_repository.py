from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Coach
from .repository import CoachRepository


def _to_coach(row: dict) -> Coach:
    return Coach(
        coach_id=row["coach_id"],
        username=row["username"],
        name=row["name"],
        password_hash=row["password_hash"],
        age_group=row["age_group"],
        is_active=bool(row.get("is_active", True)),
    )


class MySQLCoachRepository(CoachRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, coach_id: str) -> Optional[Coach]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT coach_id, username, name, password_hash, age_group, is_active
                FROM coaches
                WHERE coach_id=%s
                """,
                (coach_id,),
            )
            row = fetchone(cur)
            return _to_coach(row) if row else None

    def get_by_username(self, username: str) -> Optional[Coach]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT coach_id, username, name, password_hash, age_group, is_active
                FROM coaches
                WHERE username=%s
                """,
                (username,),
            )
            row = fetchone(cur)
            return _to_coach(row) if row else None
