from __future__ import annotations

import mysql.connector
import pytest

from src.coach_attendance.coach_attendance.attendance.mysql_attendance_repository import _translate_store_errors
from src.coach_attendance.coach_attendance.core.exceptions import BusinessError, ConcurrencyError


def test_quota_trigger_signal_becomes_business_error():
    with pytest.raises(BusinessError) as exc:
        with _translate_store_errors():
            raise mysql.connector.errors.DatabaseError(
                msg="complimentary session limit exceeded", errno=1644, sqlstate="45000"
            )

    assert exc.value.code == "complimentary_limit_exceeded"


@pytest.mark.parametrize("errno", [1205, 1213])
def test_lock_errors_become_concurrency_errors(errno):
    with pytest.raises(ConcurrencyError):
        with _translate_store_errors():
            raise mysql.connector.errors.DatabaseError(msg="lock", errno=errno)


def test_other_errors_pass_through():
    with pytest.raises(mysql.connector.errors.DatabaseError):
        with _translate_store_errors():
            raise mysql.connector.errors.DatabaseError(msg="some other signal", errno=1644, sqlstate="45000")
