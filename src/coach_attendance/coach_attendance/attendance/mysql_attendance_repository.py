from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Optional, Sequence

import mysql.connector

from ..core.constants import COMPLIMENTARY_LIMIT_CODE, DEFAULT_BATCH_SIZE, MAX_COMPLIMENTARY_PER_MONTH
from ..core.enums import AttendanceStatus
from ..core.exceptions import BusinessError, ConcurrencyError, ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    ER_DUP_ENTRY,
    ER_LOCK_DEADLOCK,
    ER_LOCK_WAIT_TIMEOUT,
    ER_SIGNAL_EXCEPTION,
    db_cursor,
    db_transaction,
    fetchall,
    fetchone,
)
from .batching import bulk_create_in_batches
from .model import AttendanceDraft, AttendanceRecord, BulkAttendanceResult
from .repository import AttendanceRepository

_COLUMNS = "record_id, session_id, player_id, status, photo_url, recorded_at, version"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=r["record_id"],
        session_id=r["session_id"],
        player_id=r["player_id"],
        status=AttendanceStatus(r["status"]),
        timestamp=r["recorded_at"],
        version=int(r["version"]),
        photo_url=r.get("photo_url"),
    )


@contextmanager
def _translate_store_errors():
    try:
        yield
    except mysql.connector.Error as e:
        if e.errno in (ER_LOCK_DEADLOCK, ER_LOCK_WAIT_TIMEOUT):
            raise ConcurrencyError(f"Lock conflict: {e.msg}") from e
        # quota triggers in schema.sql
        if e.errno == ER_SIGNAL_EXCEPTION and "complimentary session limit" in (e.msg or "").lower():
            raise BusinessError("Complimentary session limit exceeded", code=COMPLIMENTARY_LIMIT_CODE) from e
        raise


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def transaction(self):
        return db_transaction(self._conn_factory)

    def _get_by_id(self, cur, record_id: str) -> AttendanceRecord:
        cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s", (record_id,))
        return _to_record(fetchone(cur))

    def find_by_session_and_player(
        self,
        session_id: str,
        player_id: str,
        *,
        for_update: bool = False,
    ) -> Optional[AttendanceRecord]:
        lock_clause = "FOR UPDATE" if for_update else ""
        with _translate_store_errors(), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE session_id=%s AND player_id=%s
                {lock_clause}
                """,
                (session_id, player_id),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create(self, draft: AttendanceDraft) -> AttendanceRecord:
        record_id = str(uuid.uuid4())
        try:
            with _translate_store_errors(), db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(record_id, session_id, player_id, status, photo_url, recorded_at, version)
                    VALUES(%s,%s,%s,%s,%s,NOW(6),1)
                    """,
                    (record_id, draft.session_id, draft.player_id, draft.status.value, draft.photo_url),
                )
                return self._get_by_id(cur, record_id)
        except mysql.connector.IntegrityError as e:
            if e.errno == ER_DUP_ENTRY:
                raise ConflictError("Attendance already recorded for this session and player") from e
            raise

    def update_with_version(
        self,
        record_id: str,
        *,
        expected_version: int,
        status: Optional[AttendanceStatus] = None,
        photo_url: Optional[str] = None,
    ) -> AttendanceRecord:
        with _translate_store_errors(), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=COALESCE(%s, status),
                    photo_url=COALESCE(%s, photo_url),
                    recorded_at=NOW(6),
                    version=version + 1
                WHERE record_id=%s AND version=%s
                """,
                (status.value if status else None, photo_url, record_id, int(expected_version)),
            )
            if cur.rowcount == 0:
                raise ConcurrencyError("Record was modified by another user")
            return self._get_by_id(cur, record_id)

    def get_monthly_complimentary_count(self, player_id: str, month: int, year: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt
                FROM attendance_records ar
                JOIN sessions s ON s.session_id = ar.session_id
                WHERE ar.player_id=%s
                  AND ar.status='present_complimentary'
                  AND MONTH(s.session_date)=%s
                  AND YEAR(s.session_date)=%s
                """,
                (player_id, int(month), int(year)),
            )
            r = fetchone(cur)
            return int(r["cnt"]) if r else 0

    def get_session_month(self, session_id: str) -> Optional[tuple[int, int]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT session_date FROM sessions WHERE session_id=%s", (session_id,))
            r = fetchone(cur)
            return (r["session_date"].month, r["session_date"].year) if r else None

    def lock_player_quota(self, player_id: str, month: int, year: int) -> None:
        # Row lock on the player: wider than (player, month) but held the same way.
        with _translate_store_errors(), db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT player_id FROM players WHERE player_id=%s FOR UPDATE", (player_id,))
            fetchone(cur)

    def bulk_create(
        self,
        drafts: Sequence[AttendanceDraft],
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        complimentary_limit: int = MAX_COMPLIMENTARY_PER_MONTH,
    ) -> BulkAttendanceResult:
        return bulk_create_in_batches(self, drafts, batch_size=batch_size, complimentary_limit=complimentary_limit)

    def get_bulk_by_session(self, session_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE session_id=%s
                ORDER BY recorded_at DESC
                """,
                (session_id,),
            )
            return [_to_record(r) for r in fetchall(cur)]
