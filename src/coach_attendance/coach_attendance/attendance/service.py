from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Mapping, Optional, Sequence

from ..common.datetime_utils import month_of, now_local
from ..common.validators import require_status, require_uuid
from ..core.constants import (
    COMPLIMENTARY_LIMIT_CODE,
    DEFAULT_BATCH_SIZE,
    DEFAULT_RETRY_ATTEMPTS,
    MAX_COMPLIMENTARY_PER_MONTH,
)
from ..core.enums import AttendanceStatus
from ..core.exceptions import BusinessError, ConcurrencyError, ConflictError, DomainError, ValidationError
from ..photos.storage import PhotoStorage
from ..sessions.model import TrainingSession
from ..sessions.repository import SessionRepository
from .batching import failure_for, iter_batches
from .model import AttendanceDraft, AttendanceFailure, AttendanceRecord, BulkAttendanceResult, ComplimentaryUsage
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_LIMIT_MARKER = "complimentary session limit"


class _PendingPhoto:
    """Photo payload uploaded at most once, on first use.

    Upload failures are logged and turn into ``None``; they never reach the
    attendance write.
    """

    def __init__(self, storage: Optional[PhotoStorage], data: Optional[bytes]):
        self._storage = storage
        self._data = data
        self._done = False
        self._url: Optional[str] = None

    def url(self) -> Optional[str]:
        if not self._data:
            return None
        if not self._done:
            self._done = True
            if self._storage is None:
                logger.warning("photo supplied but no photo storage is configured; skipping")
            else:
                try:
                    self._url = self._storage.upload(self._data)
                except Exception:
                    logger.warning("photo upload failed; recording attendance without photo", exc_info=True)
        return self._url


class AttendanceService:
    """Records attendance marks.

    The only component that decides create-vs-update and enforces the monthly
    complimentary quota. Each mark runs in one repository transaction with the
    (session, player) pair locked for update.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        sessions: SessionRepository,
        photos: Optional[PhotoStorage] = None,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        complimentary_limit: int = MAX_COMPLIMENTARY_PER_MONTH,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        strict_quota_lock: bool = False,
        clock: Callable[[], datetime] = now_local,
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._attendance = attendance
        self._sessions = sessions
        self._photos = photos
        self._batch_size = int(batch_size)
        self._limit = int(complimentary_limit)
        self._retry_attempts = max(1, int(retry_attempts))
        self._strict_quota_lock = bool(strict_quota_lock)
        self._clock = clock

    # ---- single mark --------------------------------------------------

    def record_attendance_atomic(
        self,
        session_id: str,
        player_id: str,
        status: AttendanceStatus | str,
        photo: Optional[bytes] = None,
    ) -> AttendanceRecord:
        session_id = require_uuid(session_id, "session ID")
        player_id = require_uuid(player_id, "player ID")
        status = require_status(status)
        session = self._require_session(session_id)
        return self._record(session, player_id, status, _PendingPhoto(self._photos, photo))

    def _require_session(self, session_id: str) -> TrainingSession:
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise ValidationError("Session not found")
        return session

    def _record(
        self,
        session: TrainingSession,
        player_id: str,
        status: AttendanceStatus,
        photo: _PendingPhoto,
    ) -> AttendanceRecord:
        attempt = 1
        while True:
            try:
                return self._record_once(session, player_id, status, photo)
            except (ConflictError, ConcurrencyError) as e:
                if attempt >= self._retry_attempts:
                    raise
                logger.info(
                    "retrying attendance write for session=%s player=%s after %s (attempt %d)",
                    session.session_id, player_id, type(e).__name__, attempt,
                )
                attempt += 1

    def _record_once(
        self,
        session: TrainingSession,
        player_id: str,
        status: AttendanceStatus,
        photo: _PendingPhoto,
    ) -> AttendanceRecord:
        try:
            with self._attendance.transaction():
                existing = self._attendance.find_by_session_and_player(
                    session.session_id,
                    player_id,
                    for_update=True,
                )

                entering_complimentary = status == AttendanceStatus.PRESENT_COMPLIMENTARY and (
                    existing is None or existing.status != AttendanceStatus.PRESENT_COMPLIMENTARY
                )
                if entering_complimentary:
                    self._check_quota(player_id, session.session_date)

                photo_url = photo.url()

                if existing:
                    return self._attendance.update_with_version(
                        existing.record_id,
                        expected_version=existing.version,
                        status=status,
                        photo_url=photo_url,
                    )
                return self._attendance.create(
                    AttendanceDraft(
                        session_id=session.session_id,
                        player_id=player_id,
                        status=status,
                        photo_url=photo_url,
                    )
                )
        except DomainError:
            raise
        except Exception as e:
            # store-level quota guard (trigger / constraint) reports by message
            if _LIMIT_MARKER in str(e).lower():
                raise BusinessError("Complimentary session limit exceeded", code=COMPLIMENTARY_LIMIT_CODE) from e
            raise

    def _check_quota(self, player_id: str, session_date: date) -> None:
        month, year = month_of(session_date)
        if self._strict_quota_lock:
            self._attendance.lock_player_quota(player_id, month, year)

        used = self._attendance.get_monthly_complimentary_count(player_id, month, year)
        if used >= self._limit:
            raise BusinessError("Complimentary session limit exceeded", code=COMPLIMENTARY_LIMIT_CODE)

    # ---- bulk ---------------------------------------------------------

    def record_bulk_attendance(
        self,
        session_id: str,
        attendance: Mapping[str, AttendanceStatus | str],
        photo: Optional[bytes] = None,
    ) -> BulkAttendanceResult:
        """Mark many players for one session.

        A failure for one player becomes an entry in ``errors``; the other
        players are still recorded. Only a malformed session id, an unknown
        session or an empty mapping fail the whole call.
        """

        session_id = require_uuid(session_id, "session ID")
        if not attendance:
            raise ValidationError("At least one player attendance must be provided")
        session = self._require_session(session_id)

        pending_photo = _PendingPhoto(self._photos, photo)
        records: list[AttendanceRecord] = []
        errors: list[AttendanceFailure] = []

        # canonical ids first: "ABC..." and "abc..." name the same player
        entries: list[tuple[str, AttendanceStatus | str]] = []
        seen: set[str] = set()
        for raw_player_id, raw_status in attendance.items():
            try:
                player_id = require_uuid(raw_player_id, "player ID")
                if player_id in seen:
                    raise ValidationError("Duplicate player ID in submission")
            except ValidationError as exc:
                logger.warning("failed to record attendance for player %s: %s", raw_player_id, exc)
                errors.append(failure_for(str(raw_player_id), exc))
                continue
            seen.add(player_id)
            entries.append((player_id, raw_status))

        for batch in iter_batches(entries, self._batch_size):
            for player_id, raw_status in batch:
                try:
                    status = require_status(raw_status)
                    records.append(self._record(session, player_id, status, pending_photo))
                except Exception as exc:
                    logger.warning("failed to record attendance for player %s: %s", player_id, exc)
                    errors.append(failure_for(player_id, exc))

        return BulkAttendanceResult(
            success_count=len(records),
            records=records,
            timestamp=self._clock(),
            errors=errors,
        )

    # ---- reads --------------------------------------------------------

    def get_player_monthly_stats(self, player_id: str, month: int, year: int) -> ComplimentaryUsage:
        player_id = require_uuid(player_id, "player ID")
        if not 1 <= int(month) <= 12:
            raise ValidationError("Month must be between 1 and 12")

        used = self._attendance.get_monthly_complimentary_count(player_id, int(month), int(year))
        return ComplimentaryUsage(
            player_id=player_id,
            month=int(month),
            year=int(year),
            used=used,
            remaining=max(0, self._limit - used),
        )

    def get_session_attendance(self, session_id: str) -> Sequence[AttendanceRecord]:
        session_id = require_uuid(session_id, "session ID")
        return self._attendance.get_bulk_by_session(session_id)
