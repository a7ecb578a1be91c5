"""Student activity status derived from pauses and payment recency."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from tuition_ledger.models.enums import StudentStatus
from tuition_ledger.models.tuition import Payment
from tuition_ledger.months import month_key

INACTIVITY_THRESHOLD_DAYS = 60


def _to_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def is_currently_paused(paused_months: Iterable[str] | None, as_of: date | datetime) -> bool:
    """Whether the ``as_of`` month is paused."""
    if not paused_months:
        return False
    return month_key(as_of) in set(paused_months)


def is_inactive(
    last_payment_date: date | datetime | None,
    as_of: date | datetime,
    threshold_days: int = INACTIVITY_THRESHOLD_DAYS,
) -> bool:
    """Whether no payment has been made within ``threshold_days``."""
    if last_payment_date is None:
        return True
    elapsed = abs((_to_date(as_of) - _to_date(last_payment_date)).days)
    return elapsed > threshold_days


def calculate_student_status(
    paused_months: Iterable[str] | None,
    last_payment_date: date | datetime | None,
    as_of: date | datetime,
    threshold_days: int = INACTIVITY_THRESHOLD_DAYS,
) -> StudentStatus:
    """Paused takes priority over inactive; otherwise the student is active."""
    if is_currently_paused(paused_months, as_of):
        return StudentStatus.PAUSED
    if is_inactive(last_payment_date, as_of, threshold_days):
        return StudentStatus.INACTIVE
    return StudentStatus.ACTIVE


def get_student_status_from_payments(
    paused_months: Iterable[str] | None,
    payments: Iterable[Payment],
    as_of: date | datetime,
    threshold_days: int = INACTIVITY_THRESHOLD_DAYS,
) -> StudentStatus:
    """Status using the most recent of ``payments`` as the last payment."""
    last = max((p.payment_date for p in payments), default=None)
    return calculate_student_status(paused_months, last, as_of, threshold_days)
