from __future__ import annotations

from typing import ContextManager, Optional, Protocol, Sequence

from ..core.constants import DEFAULT_BATCH_SIZE, MAX_COMPLIMENTARY_PER_MONTH
from ..core.enums import AttendanceStatus
from .model import AttendanceDraft, AttendanceRecord, BulkAttendanceResult


class AttendanceRepository(Protocol):
    """Sole gateway to the attendance record store.

    Owns locking and versioning. Every write goes through ``create`` or
    ``update_with_version``.
    """

    def transaction(self) -> ContextManager[None]:
        """Begin/commit/rollback scope.

        Nested use joins the outer transaction. Row locks taken inside are held
        until the outermost scope ends.
        """

        raise NotImplementedError

    def find_by_session_and_player(
        self,
        session_id: str,
        player_id: str,
        *,
        for_update: bool = False,
    ) -> Optional[AttendanceRecord]:
        """With ``for_update`` the pair is locked exclusively, even when no row exists yet."""

        raise NotImplementedError

    def create(self, draft: AttendanceDraft) -> AttendanceRecord:
        """Insert with version 1; raises ConflictError if the pair already exists."""

        raise NotImplementedError

    def update_with_version(
        self,
        record_id: str,
        *,
        expected_version: int,
        status: Optional[AttendanceStatus] = None,
        photo_url: Optional[str] = None,
    ) -> AttendanceRecord:
        """Conditional update; raises ConcurrencyError when the stored version moved on.

        ``None`` fields keep their stored value.
        """

        raise NotImplementedError

    def get_monthly_complimentary_count(self, player_id: str, month: int, year: int) -> int:
        raise NotImplementedError

    def get_session_month(self, session_id: str) -> Optional[tuple[int, int]]:
        """(month, year) of the session date, or None for an unknown session."""

        raise NotImplementedError

    def lock_player_quota(self, player_id: str, month: int, year: int) -> None:
        """Serialize complimentary checks for one player across sessions."""

        raise NotImplementedError

    def bulk_create(
        self,
        drafts: Sequence[AttendanceDraft],
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        complimentary_limit: int = MAX_COMPLIMENTARY_PER_MONTH,
    ) -> BulkAttendanceResult:
        raise NotImplementedError

    def get_bulk_by_session(self, session_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
