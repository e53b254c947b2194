from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import month_of, now_local
from ..core.constants import DEFAULT_BATCH_SIZE, DEFAULT_LOCK_TIMEOUT_SECONDS, MAX_COMPLIMENTARY_PER_MONTH
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConcurrencyError, ConflictError
from ..sessions.repository import SessionRepository
from .batching import bulk_create_in_batches
from .model import AttendanceDraft, AttendanceRecord, BulkAttendanceResult
from .repository import AttendanceRepository


class _RowLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        # holder plus waiters; the entry is dropped when this reaches zero
        self.users = 0


class InMemoryAttendanceStore:
    """Committed attendance state, shared by every repository bound to it.

    Injected rather than module-global so tests get a fresh store each time
    and several repository instances (one per request thread) can share one.
    Row locks live in a registry that only keeps keys somebody holds or waits on.
    """

    def __init__(self):
        self.mutex = threading.Lock()
        self.records: dict[str, AttendanceRecord] = {}
        self.by_pair: dict[tuple[str, str], str] = {}
        self._locks: dict[tuple, _RowLock] = {}
        self._locks_mutex = threading.Lock()

    def acquire(self, key: tuple, timeout: float) -> bool:
        with self._locks_mutex:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _RowLock()
            entry.users += 1

        if entry.lock.acquire(timeout=timeout):
            return True
        self._leave(key, entry)
        return False

    def release(self, key: tuple) -> None:
        with self._locks_mutex:
            entry = self._locks[key]
            entry.lock.release()
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    def _leave(self, key: tuple, entry: _RowLock) -> None:
        with self._locks_mutex:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(key) is entry:
                del self._locks[key]

    def registered_locks(self) -> int:
        with self._locks_mutex:
            return len(self._locks)

    def snapshot(self) -> list[AttendanceRecord]:
        with self.mutex:
            return list(self.records.values())

    def apply(self, changes: dict[str, AttendanceRecord], created: set[str], base_versions: dict[str, int]) -> None:
        """Validate then apply a change set; caller holds ``mutex``."""

        for record_id, record in changes.items():
            if record_id in created:
                if (record.session_id, record.player_id) in self.by_pair:
                    raise ConflictError("Attendance already recorded for this session and player")
            else:
                stored = self.records.get(record_id)
                if stored is None or stored.version != base_versions[record_id]:
                    raise ConcurrencyError("Record was modified by another user")

        for record_id, record in changes.items():
            self.records[record_id] = record
            self.by_pair[(record.session_id, record.player_id)] = record_id


@dataclass
class _Transaction:
    held: dict[tuple, None] = field(default_factory=dict)
    pending: dict[str, AttendanceRecord] = field(default_factory=dict)
    created: set[str] = field(default_factory=set)
    base_versions: dict[str, int] = field(default_factory=dict)


class InMemoryAttendanceRepository(AttendanceRepository):
    """Attendance repository over an in-process store.

    Writes made inside ``transaction()`` are staged and become visible to
    other threads only at commit, all at once; a rollback discards them.
    Row locks are ``threading.Lock`` objects keyed by (session, player) and
    by (player, month) for the optional quota lock.
    """

    def __init__(
        self,
        store: Optional[InMemoryAttendanceStore] = None,
        *,
        sessions: SessionRepository,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = now_local,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self._store = store or InMemoryAttendanceStore()
        self._sessions = sessions
        self._lock_timeout = float(lock_timeout)
        self._clock = clock
        self._new_id = id_factory
        self._local = threading.local()

    @property
    def store(self) -> InMemoryAttendanceStore:
        return self._store

    # ---- transactions -------------------------------------------------

    def _current(self) -> Optional[_Transaction]:
        return getattr(self._local, "tx", None)

    @contextmanager
    def transaction(self):
        if self._current() is not None:
            yield
            return

        tx = _Transaction()
        self._local.tx = tx
        try:
            yield
            if tx.pending:
                with self._store.mutex:
                    self._store.apply(tx.pending, tx.created, tx.base_versions)
        finally:
            self._local.tx = None
            for key in reversed(list(tx.held)):
                self._store.release(key)

    def _acquire(self, key: tuple) -> None:
        tx = self._current()
        if tx is None or key in tx.held:
            return
        if not self._store.acquire(key, self._lock_timeout):
            raise ConcurrencyError("Lock wait timeout exceeded")
        tx.held[key] = None

    # ---- reads --------------------------------------------------------

    def _visible(self) -> list[AttendanceRecord]:
        with self._store.mutex:
            merged = dict(self._store.records)
        tx = self._current()
        if tx:
            merged.update(tx.pending)
        return list(merged.values())

    def _get_pair(self, session_id: str, player_id: str) -> Optional[AttendanceRecord]:
        tx = self._current()
        if tx:
            for r in tx.pending.values():
                if r.session_id == session_id and r.player_id == player_id:
                    return r
        with self._store.mutex:
            record_id = self._store.by_pair.get((session_id, player_id))
            return self._store.records.get(record_id) if record_id else None

    def _get_id(self, record_id: str) -> Optional[AttendanceRecord]:
        tx = self._current()
        if tx and record_id in tx.pending:
            return tx.pending[record_id]
        with self._store.mutex:
            return self._store.records.get(record_id)

    def find_by_session_and_player(
        self,
        session_id: str,
        player_id: str,
        *,
        for_update: bool = False,
    ) -> Optional[AttendanceRecord]:
        if for_update:
            self._acquire(("pair", session_id, player_id))
        return self._get_pair(session_id, player_id)

    def get_monthly_complimentary_count(self, player_id: str, month: int, year: int) -> int:
        count = 0
        for r in self._visible():
            if r.player_id != player_id or r.status != AttendanceStatus.PRESENT_COMPLIMENTARY:
                continue
            if self.get_session_month(r.session_id) == (month, year):
                count += 1
        return count

    def get_session_month(self, session_id: str) -> Optional[tuple[int, int]]:
        session = self._sessions.get_by_id(session_id)
        return month_of(session.session_date) if session else None

    def get_bulk_by_session(self, session_id: str) -> Sequence[AttendanceRecord]:
        items = [r for r in self._visible() if r.session_id == session_id]
        items.sort(key=lambda r: r.timestamp, reverse=True)
        return items

    # ---- writes -------------------------------------------------------

    def lock_player_quota(self, player_id: str, month: int, year: int) -> None:
        self._acquire(("quota", player_id, year, month))

    def create(self, draft: AttendanceDraft) -> AttendanceRecord:
        if self._get_pair(draft.session_id, draft.player_id) is not None:
            raise ConflictError("Attendance already recorded for this session and player")

        record = AttendanceRecord(
            record_id=self._new_id(),
            session_id=draft.session_id,
            player_id=draft.player_id,
            status=draft.status,
            timestamp=self._clock(),
            version=1,
            photo_url=draft.photo_url,
        )

        tx = self._current()
        if tx is None:
            with self._store.mutex:
                self._store.apply({record.record_id: record}, {record.record_id}, {})
            return record

        tx.pending[record.record_id] = record
        tx.created.add(record.record_id)
        return record

    def update_with_version(
        self,
        record_id: str,
        *,
        expected_version: int,
        status: Optional[AttendanceStatus] = None,
        photo_url: Optional[str] = None,
    ) -> AttendanceRecord:
        current = self._get_id(record_id)
        if current is None or current.version != int(expected_version):
            raise ConcurrencyError("Record was modified by another user")

        updated = replace(
            current,
            status=status or current.status,
            photo_url=photo_url if photo_url is not None else current.photo_url,
            timestamp=self._clock(),
            version=current.version + 1,
        )

        tx = self._current()
        if tx is None:
            with self._store.mutex:
                self._store.apply({record_id: updated}, set(), {record_id: current.version})
            return updated

        if record_id not in tx.created:
            tx.base_versions.setdefault(record_id, current.version)
        tx.pending[record_id] = updated
        return updated

    def bulk_create(
        self,
        drafts: Sequence[AttendanceDraft],
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        complimentary_limit: int = MAX_COMPLIMENTARY_PER_MONTH,
    ) -> BulkAttendanceResult:
        return bulk_create_in_batches(self, drafts, batch_size=batch_size, complimentary_limit=complimentary_limit)
