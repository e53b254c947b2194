from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Player, PlayerStats
from .repository import PlayerRepository


def _to_player(r: dict) -> Player:
    return Player(
        player_id=r["player_id"],
        name=r["name"],
        age_group=r["age_group"],
        booked_sessions=int(r["booked_sessions"]),
        join_date=r["join_date"],
    )


class MySQLPlayerRepository(PlayerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, player_id: str) -> Optional[Player]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT player_id, name, age_group, booked_sessions, join_date
                FROM players
                WHERE player_id=%s
                """,
                (player_id,),
            )
            r = fetchone(cur)
            return _to_player(r) if r else None

    def list_by_age_group(self, age_group: str) -> Sequence[Player]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT player_id, name, age_group, booked_sessions, join_date
                FROM players
                WHERE age_group=%s
                ORDER BY name ASC
                """,
                (age_group,),
            )
            return [_to_player(r) for r in fetchall(cur)]

    def list_stats_for_age_group(self, age_group: str) -> Sequence[PlayerStats]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    p.player_id, p.name, p.age_group, p.booked_sessions, p.join_date,
                    COALESCE(SUM(ar.status IN ('present_regular', 'present_complimentary')), 0) AS attended,
                    COALESCE(SUM(ar.status = 'present_complimentary'), 0) AS complimentary
                FROM players p
                LEFT JOIN attendance_records ar ON ar.player_id = p.player_id
                WHERE p.age_group=%s
                GROUP BY p.player_id, p.name, p.age_group, p.booked_sessions, p.join_date
                ORDER BY p.name ASC
                """,
                (age_group,),
            )
            return [
                PlayerStats(
                    player_id=r["player_id"],
                    name=r["name"],
                    age_group=r["age_group"],
                    booked_sessions=int(r["booked_sessions"]),
                    attended_sessions=int(r["attended"]),
                    complimentary_sessions=int(r["complimentary"]),
                    join_date=r["join_date"],
                )
                for r in fetchall(cur)
            ]
