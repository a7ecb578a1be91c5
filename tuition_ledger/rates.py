"""Fee rate history: which monthly fee applies to which month."""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from tuition_ledger.exceptions import NoRateHistoryError
from tuition_ledger.models.tuition import FeeRateRecord
from tuition_ledger.months import month_key

logger = logging.getLogger(__name__)


def get_applicable_rate(target_month: str, history: Iterable[FeeRateRecord]) -> Decimal:
    """Resolve the fee rate in force for ``target_month``.

    Picks the record with the latest ``effective_from_month`` that is not
    after the target. A target that predates every record falls back to
    the earliest record.

    Parameters
    ----------
    target_month : str
        Month key (``YYYY-MM``) to price.
    history : Iterable[FeeRateRecord]
        Rate records for one student, in any order.

    Returns
    -------
    Decimal
        The applicable monthly rate.

    Raises
    ------
    NoRateHistoryError
        If ``history`` is empty.
    """
    records = list(history)
    if not records:
        raise NoRateHistoryError(f"No fee rate history available to price {target_month}")

    applicable = [r for r in records if r.effective_from_month <= target_month]
    if not applicable:
        return min(records, key=lambda r: r.effective_from_month).rate

    return max(applicable, key=lambda r: r.effective_from_month).rate


def initial_rate_record(
    student_id: str,
    rate: Decimal,
    joining_date: date | datetime,
    created_at: datetime | None = None,
) -> FeeRateRecord:
    """Build the first rate record for a new student, effective from the joining month."""
    return FeeRateRecord(
        effective_from_month=month_key(joining_date),
        rate=rate,
        student_id=student_id,
        record_id=uuid.uuid4().hex,
        created_at=created_at,
    )


def record_rate_change(
    history: list[FeeRateRecord],
    student_id: str,
    new_rate: Decimal,
    as_of: date | datetime,
) -> tuple[list[FeeRateRecord], FeeRateRecord]:
    """Apply a fee change effective from the ``as_of`` month.

    A second change within the same month supersedes the first instead of
    adding another record. Earlier records are never touched.

    Returns
    -------
    tuple[list[FeeRateRecord], FeeRateRecord]
        The new history and the inserted or updated record.
    """
    effective = month_key(as_of)
    updated: list[FeeRateRecord] = []
    changed: FeeRateRecord | None = None

    for record in history:
        if record.effective_from_month == effective:
            changed = replace(record, rate=new_rate)
            updated.append(changed)
        else:
            updated.append(record)

    if changed is None:
        changed = FeeRateRecord(
            effective_from_month=effective,
            rate=new_rate,
            student_id=student_id,
            record_id=uuid.uuid4().hex,
            created_at=as_of if isinstance(as_of, datetime) else None,
        )
        updated.append(changed)
        logger.debug(
            "New fee rate %s for student %s from %s",
            new_rate,
            student_id,
            effective,
            extra={"student_id": student_id, "month_key": effective},
        )
    else:
        logger.debug(
            "Superseded fee rate for student %s in %s with %s",
            student_id,
            effective,
            new_rate,
            extra={"student_id": student_id, "month_key": effective},
        )

    return updated, changed
