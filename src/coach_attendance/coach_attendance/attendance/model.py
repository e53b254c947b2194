from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance mark per (session, player) pair.

    ``version`` starts at 1 and grows by exactly 1 on every update; it is the
    optimistic-concurrency token checked by ``update_with_version``.
    """

    record_id: str
    session_id: str
    player_id: str
    status: AttendanceStatus
    timestamp: datetime
    version: int = 1
    photo_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "sessionId": self.session_id,
            "playerId": self.player_id,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "photoUrl": self.photo_url,
        }


@dataclass(frozen=True)
class AttendanceDraft:
    """A record that has not been persisted yet."""

    session_id: str
    player_id: str
    status: AttendanceStatus
    photo_url: Optional[str] = None


@dataclass(frozen=True)
class AttendanceFailure:
    player_id: str
    message: str
    code: Optional[str] = None

    def to_dict(self) -> dict:
        out = {"playerId": self.player_id, "message": self.message}
        if self.code:
            out["code"] = self.code
        return out


@dataclass(frozen=True)
class BulkAttendanceResult:
    """Outcome of one bulk submission; not persisted."""

    success_count: int
    records: list[AttendanceRecord]
    timestamp: datetime
    errors: list[AttendanceFailure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "successCount": self.success_count,
            "records": [r.to_dict() for r in self.records],
            "timestamp": self.timestamp.isoformat(),
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass(frozen=True)
class ComplimentaryUsage:
    player_id: str
    month: int
    year: int
    used: int
    remaining: int

    def to_dict(self) -> dict:
        return {
            "playerId": self.player_id,
            "month": self.month,
            "year": self.year,
            "complimentaryUsed": self.used,
            "complimentaryRemaining": self.remaining,
        }
