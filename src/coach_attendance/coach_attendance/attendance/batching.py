from __future__ import annotations

import logging
from typing import Iterator, Sequence, TypeVar

from ..common.datetime_utils import now_local
from ..core.constants import COMPLIMENTARY_LIMIT_CODE, MAX_COMPLIMENTARY_PER_MONTH
from ..core.enums import AttendanceStatus
from ..core.exceptions import BusinessError, ConflictError, DomainError, ValidationError
from .model import AttendanceDraft, AttendanceFailure, AttendanceRecord, BulkAttendanceResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures that leave the surrounding transaction usable.
RECORD_LEVEL_ERRORS = (ConflictError, ValidationError, BusinessError)


def iter_batches(items: Sequence[T], batch_size: int) -> Iterator[Sequence[T]]:
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    for start in range(0, len(items), batch_size):
        yield items[start:start + batch_size]


def failure_for(player_id: str, exc: Exception) -> AttendanceFailure:
    if isinstance(exc, DomainError):
        return AttendanceFailure(
            player_id=player_id,
            message=str(exc),
            code=getattr(exc, "code", None) or type(exc).__name__,
        )
    return AttendanceFailure(player_id=player_id, message="Unexpected error while recording attendance", code="InternalError")


def _check_complimentary_quota(repo, draft: AttendanceDraft, limit: int) -> None:
    if draft.status != AttendanceStatus.PRESENT_COMPLIMENTARY:
        return
    period = repo.get_session_month(draft.session_id)
    if period is None:
        raise ValidationError("Session not found")
    month, year = period
    # counts rows staged earlier in the same batch transaction too
    if repo.get_monthly_complimentary_count(draft.player_id, month, year) >= limit:
        raise BusinessError("Complimentary session limit exceeded", code=COMPLIMENTARY_LIMIT_CODE)


def bulk_create_in_batches(
    repo,
    drafts: Sequence[AttendanceDraft],
    *,
    batch_size: int,
    complimentary_limit: int = MAX_COMPLIMENTARY_PER_MONTH,
) -> BulkAttendanceResult:
    """Shared ``bulk_create`` body.

    One transaction per batch. Record-level failures (duplicate pair, quota
    exceeded) are kept per draft; any other failure rolls the batch back and
    marks every draft in it as failed.
    """

    records: list[AttendanceRecord] = []
    errors: list[AttendanceFailure] = []

    for batch in iter_batches(drafts, batch_size):
        batch_records: list[AttendanceRecord] = []
        batch_errors: list[AttendanceFailure] = []
        try:
            with repo.transaction():
                for draft in batch:
                    try:
                        _check_complimentary_quota(repo, draft, complimentary_limit)
                        batch_records.append(repo.create(draft))
                    except RECORD_LEVEL_ERRORS as exc:
                        logger.warning("bulk create skipped player %s: %s", draft.player_id, exc)
                        batch_errors.append(failure_for(draft.player_id, exc))
        except Exception as exc:
            logger.exception("bulk create batch of %d rolled back", len(batch))
            errors.extend(failure_for(d.player_id, exc) for d in batch)
            continue

        records.extend(batch_records)
        errors.extend(batch_errors)

    return BulkAttendanceResult(success_count=len(records), records=records, timestamp=now_local(), errors=errors)
