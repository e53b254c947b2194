from __future__ import annotations

import threading
import uuid
from datetime import date

import pytest

from src.coach_attendance.coach_attendance.attendance.memory_attendance_repository import InMemoryAttendanceRepository
from src.coach_attendance.coach_attendance.attendance.model import AttendanceDraft
from src.coach_attendance.coach_attendance.core.enums import AttendanceStatus
from src.coach_attendance.coach_attendance.core.exceptions import ConcurrencyError, ConflictError

REGULAR = AttendanceStatus.PRESENT_REGULAR
COMP = AttendanceStatus.PRESENT_COMPLIMENTARY


def _draft(session_id: str, player_id: str | None = None, status=REGULAR, photo_url=None) -> AttendanceDraft:
    return AttendanceDraft(
        session_id=session_id,
        player_id=player_id or str(uuid.uuid4()),
        status=status,
        photo_url=photo_url,
    )


def test_create_starts_at_version_one(make_session, attendance_repo):
    session = make_session()

    rec = attendance_repo.create(_draft(session.session_id, photo_url="https://cdn/x.png"))

    assert rec.version == 1
    assert rec.photo_url == "https://cdn/x.png"
    assert attendance_repo.find_by_session_and_player(session.session_id, rec.player_id) == rec


def test_create_for_existing_pair_conflicts(make_session, attendance_repo):
    session = make_session()
    rec = attendance_repo.create(_draft(session.session_id))

    with pytest.raises(ConflictError):
        attendance_repo.create(_draft(session.session_id, rec.player_id, COMP))


def test_update_with_version_increments(make_session, attendance_repo):
    rec = attendance_repo.create(_draft(make_session().session_id, photo_url="keep.png"))

    updated = attendance_repo.update_with_version(rec.record_id, expected_version=1, status=COMP)

    assert updated.version == 2
    assert updated.status == COMP
    assert updated.photo_url == "keep.png"
    assert updated.timestamp > rec.timestamp


def test_stale_version_is_rejected(make_session, attendance_repo):
    rec = attendance_repo.create(_draft(make_session().session_id))
    attendance_repo.update_with_version(rec.record_id, expected_version=1, status=COMP)

    with pytest.raises(ConcurrencyError):
        attendance_repo.update_with_version(rec.record_id, expected_version=1, status=REGULAR)

    assert attendance_repo.find_by_session_and_player(rec.session_id, rec.player_id).status == COMP


def test_update_of_missing_record_is_rejected(attendance_repo):
    with pytest.raises(ConcurrencyError):
        attendance_repo.update_with_version(str(uuid.uuid4()), expected_version=1, status=REGULAR)


def test_transaction_reads_its_own_writes(make_session, attendance_repo):
    session = make_session()

    with attendance_repo.transaction():
        rec = attendance_repo.create(_draft(session.session_id))
        seen = attendance_repo.find_by_session_and_player(session.session_id, rec.player_id, for_update=True)
        bumped = attendance_repo.update_with_version(rec.record_id, expected_version=1, status=COMP)

    assert seen == rec
    assert bumped.version == 2
    assert attendance_repo.find_by_session_and_player(session.session_id, rec.player_id) == bumped


def test_rollback_discards_staged_writes(make_session, attendance_repo):
    session = make_session()
    player = str(uuid.uuid4())

    with pytest.raises(RuntimeError):
        with attendance_repo.transaction():
            attendance_repo.create(_draft(session.session_id, player))
            raise RuntimeError("boom")

    assert attendance_repo.find_by_session_and_player(session.session_id, player) is None
    assert attendance_repo.store.snapshot() == []


def test_commit_revalidates_versions(make_session, attendance_repo, store, sessions_repo, clock):
    rec = attendance_repo.create(_draft(make_session().session_id))
    other = InMemoryAttendanceRepository(store, sessions=sessions_repo, clock=clock)

    with pytest.raises(ConcurrencyError):
        with attendance_repo.transaction():
            attendance_repo.update_with_version(rec.record_id, expected_version=1, status=COMP)
            # another writer commits first, without taking the row lock
            other.update_with_version(rec.record_id, expected_version=1, status=AttendanceStatus.ABSENT)

    stored = attendance_repo.find_by_session_and_player(rec.session_id, rec.player_id)
    assert stored.status == AttendanceStatus.ABSENT
    assert stored.version == 2


def test_row_lock_wait_times_out(make_session, store, sessions_repo, clock):
    repo = InMemoryAttendanceRepository(store, sessions=sessions_repo, lock_timeout=0.05, clock=clock)
    session = make_session()
    player = str(uuid.uuid4())
    locked = threading.Event()
    release = threading.Event()

    def holder():
        with repo.transaction():
            repo.find_by_session_and_player(session.session_id, player, for_update=True)
            locked.set()
            release.wait(timeout=5)

    t = threading.Thread(target=holder)
    t.start()
    try:
        assert locked.wait(timeout=5)
        with pytest.raises(ConcurrencyError):
            with repo.transaction():
                repo.find_by_session_and_player(session.session_id, player, for_update=True)
    finally:
        release.set()
        t.join(timeout=5)

    # lock is free again once the holder's transaction ended
    with repo.transaction():
        assert repo.find_by_session_and_player(session.session_id, player, for_update=True) is None


def test_monthly_complimentary_count_uses_session_month(make_session, attendance_repo):
    player = str(uuid.uuid4())
    for d in (date(2025, 3, 1), date(2025, 3, 31), date(2025, 4, 1)):
        attendance_repo.create(_draft(make_session(d).session_id, player, COMP))
    attendance_repo.create(_draft(make_session(date(2025, 3, 15)).session_id, player, REGULAR))
    attendance_repo.create(_draft(make_session(date(2025, 3, 16)).session_id, None, COMP))

    assert attendance_repo.get_monthly_complimentary_count(player, 3, 2025) == 2
    assert attendance_repo.get_monthly_complimentary_count(player, 4, 2025) == 1
    assert attendance_repo.get_monthly_complimentary_count(player, 3, 2024) == 0


def test_bulk_create_reports_conflicts_per_record(make_session, attendance_repo):
    session = make_session()
    existing = attendance_repo.create(_draft(session.session_id))
    drafts = [_draft(session.session_id) for _ in range(4)]
    drafts.insert(2, _draft(session.session_id, existing.player_id))

    result = attendance_repo.bulk_create(drafts, batch_size=2)

    assert result.success_count == 4
    assert [e.player_id for e in result.errors] == [existing.player_id]
    assert result.errors[0].code == "ConflictError"
    assert len(attendance_repo.get_bulk_by_session(session.session_id)) == 5


class ExplodingRepo(InMemoryAttendanceRepository):
    def __init__(self, *args, explode_for: str, **kwargs):
        super().__init__(*args, **kwargs)
        self.explode_for = explode_for

    def create(self, draft):
        if draft.player_id == self.explode_for:
            raise RuntimeError("store went away")
        return super().create(draft)


def test_bulk_create_rolls_back_whole_batch_on_store_failure(make_session, store, sessions_repo, clock):
    session = make_session()
    drafts = [_draft(session.session_id) for _ in range(4)]
    repo = ExplodingRepo(store, sessions=sessions_repo, clock=clock, explode_for=drafts[1].player_id)

    result = repo.bulk_create(drafts, batch_size=2)

    assert result.success_count == 2
    assert [r.player_id for r in result.records] == [drafts[2].player_id, drafts[3].player_id]
    assert {e.player_id for e in result.errors} == {drafts[0].player_id, drafts[1].player_id}
    assert all(e.code == "InternalError" for e in result.errors)
    assert {r.player_id for r in repo.get_bulk_by_session(session.session_id)} == {
        drafts[2].player_id,
        drafts[3].player_id,
    }


def test_bulk_by_session_only_returns_that_session(make_session, attendance_repo):
    s1, s2 = make_session(), make_session()
    first = attendance_repo.create(_draft(s1.session_id))
    attendance_repo.create(_draft(s2.session_id))
    latest = attendance_repo.create(_draft(s1.session_id))

    assert [r.record_id for r in attendance_repo.get_bulk_by_session(s1.session_id)] == [
        latest.record_id,
        first.record_id,
    ]


@pytest.mark.parametrize("batch_size", [2, 50])
def test_bulk_create_enforces_complimentary_limit(make_session, attendance_repo, batch_size):
    player = str(uuid.uuid4())
    drafts = [_draft(make_session(date(2025, 3, day)).session_id, player, COMP) for day in (3, 6, 9, 12, 15)]

    result = attendance_repo.bulk_create(drafts, batch_size=batch_size)

    assert result.success_count == 3
    assert [e.code for e in result.errors] == ["complimentary_limit_exceeded"] * 2
    assert attendance_repo.get_monthly_complimentary_count(player, 3, 2025) == 3


def test_bulk_create_limit_counts_existing_records_and_custom_limit(make_session, attendance_repo):
    player = str(uuid.uuid4())
    attendance_repo.create(_draft(make_session(date(2025, 3, 1)).session_id, player, COMP))
    drafts = [
        _draft(make_session(date(2025, 3, 2)).session_id, player, COMP),
        _draft(make_session(date(2025, 3, 3)).session_id, player, REGULAR),
        _draft(make_session(date(2025, 4, 1)).session_id, player, COMP),
    ]

    result = attendance_repo.bulk_create(drafts, complimentary_limit=1)

    assert result.success_count == 2
    assert [e.player_id for e in result.errors] == [player]
    assert result.errors[0].code == "complimentary_limit_exceeded"


def test_bulk_create_complimentary_for_unknown_session(attendance_repo):
    result = attendance_repo.bulk_create([_draft(str(uuid.uuid4()), status=COMP)])

    assert result.success_count == 0
    assert result.errors[0].code == "ValidationError"


def test_lock_registry_forgets_released_keys(make_session, store, sessions_repo, clock):
    repo = InMemoryAttendanceRepository(store, sessions=sessions_repo, lock_timeout=0.05, clock=clock)
    session = make_session()

    for _ in range(3):
        with repo.transaction():
            repo.find_by_session_and_player(session.session_id, str(uuid.uuid4()), for_update=True)
            repo.lock_player_quota(str(uuid.uuid4()), 3, 2025)
            assert store.registered_locks() == 2

    assert store.registered_locks() == 0


def test_lock_registry_forgets_timed_out_waiters(make_session, store, sessions_repo, clock):
    repo = InMemoryAttendanceRepository(store, sessions=sessions_repo, lock_timeout=0.05, clock=clock)
    session = make_session()
    player = str(uuid.uuid4())
    locked = threading.Event()
    release = threading.Event()

    def holder():
        with repo.transaction():
            repo.find_by_session_and_player(session.session_id, player, for_update=True)
            locked.set()
            release.wait(timeout=5)

    t = threading.Thread(target=holder)
    t.start()
    try:
        assert locked.wait(timeout=5)
        with pytest.raises(ConcurrencyError):
            with repo.transaction():
                repo.find_by_session_and_player(session.session_id, player, for_update=True)
        assert store.registered_locks() == 1
    finally:
        release.set()
        t.join(timeout=5)

    assert store.registered_locks() == 0
