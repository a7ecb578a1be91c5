"""Tuition fee ledger engine.

Every function here is pure: callers fetch a snapshot of a student's
ledger rows and rate history, pass it in together with an explicit
``as_of`` date, and persist whatever new rows come back.

Payment amounts in the tuition ledger are stored positive.
"""

from __future__ import annotations

import logging
import uuid
import warnings
from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, Sequence

from tuition_ledger.models.enums import LedgerEntryType
from tuition_ledger.models.tuition import (
    ChargeableMonth,
    FeeRateRecord,
    LedgerEntry,
    LedgerSummary,
    PartialDueInfo,
    Payment,
    Student,
)
from tuition_ledger.months import (
    format_month_key,
    iter_month_keys,
    month_key,
    months_between,
)
from tuition_ledger.rates import get_applicable_rate

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _new_entry_id() -> str:
    return uuid.uuid4().hex


def _as_datetime(value: date | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def paused_month_keys(entries: Iterable[LedgerEntry]) -> set[str]:
    """Months currently paused according to PAUSE/UNPAUSE rows, in row order."""
    paused: set[str] = set()
    for entry in entries:
        if entry.entry_type == LedgerEntryType.PAUSE:
            paused.add(entry.month_key)
        elif entry.entry_type == LedgerEntryType.UNPAUSE:
            paused.discard(entry.month_key)
    return paused


def get_chargeable_months_with_fees(
    joining_date: date | datetime,
    rate_history: Sequence[FeeRateRecord],
    as_of: date | datetime,
    paused_months: Iterable[str] = (),
) -> list[ChargeableMonth]:
    """List billable months in chronological order with the fee for each.

    Billable months lie strictly after the joining month and strictly
    before the ``as_of`` month, excluding paused months.

    Raises
    ------
    NoRateHistoryError
        If at least one month is billable and ``rate_history`` is empty.
    """
    paused = set(paused_months)
    return [
        ChargeableMonth(month_key=key, fee=get_applicable_rate(key, rate_history))
        for key in months_between(joining_date, as_of)
        if key not in paused
    ]


def calculate_total_payable_with_history(
    joining_date: date | datetime,
    rate_history: Sequence[FeeRateRecord],
    as_of: date | datetime,
    paused_months: Iterable[str] = (),
) -> Decimal:
    """Total billed to date, each month priced at the rate in force then."""
    months = get_chargeable_months_with_fees(joining_date, rate_history, as_of, paused_months)
    return sum((m.fee for m in months), ZERO)


def calculate_total_payable(
    joining_date: date | datetime,
    monthly_fee: Decimal,
    as_of: date | datetime,
    paused_months: Iterable[str] = (),
) -> Decimal:
    """Flat-fee total payable, counting from the joining month itself.

    .. deprecated::
        Ignores fee changes. Use :func:`calculate_total_payable_with_history`.
    """
    warnings.warn(
        "calculate_total_payable ignores fee history; "
        "use calculate_total_payable_with_history",
        DeprecationWarning,
        stacklevel=2,
    )
    return monthly_fee * len(_legacy_pending_months(joining_date, as_of, paused_months))


def get_pending_months(
    joining_date: date | datetime,
    as_of: date | datetime,
    paused_months: Iterable[str] = (),
) -> list[str]:
    """Months the flat-fee model considers due.

    .. deprecated::
        Counts the joining month. Use :func:`get_chargeable_months_with_fees`.
    """
    warnings.warn(
        "get_pending_months belongs to the flat-fee model; "
        "use get_chargeable_months_with_fees",
        DeprecationWarning,
        stacklevel=2,
    )
    return _legacy_pending_months(joining_date, as_of, paused_months)


def _legacy_pending_months(
    joining_date: date | datetime,
    as_of: date | datetime,
    paused_months: Iterable[str],
) -> list[str]:
    paused = set(paused_months)
    return [
        key
        for key in iter_month_keys(month_key(joining_date), month_key(as_of))
        if key not in paused
    ]


def count_paused_months_in_range(
    paused_months: Iterable[str] | None,
    joining_date: date | datetime,
    as_of: date | datetime,
) -> int:
    """Count paused months that fall inside the billable window."""
    if not paused_months:
        return 0
    first, current = month_key(joining_date), month_key(as_of)
    return sum(1 for key in set(paused_months) if first < key < current)


def generate_fee_entries(
    student_id: str,
    joining_date: date | datetime,
    rate_history: Sequence[FeeRateRecord],
    existing_entries: Iterable[LedgerEntry],
    as_of: date | datetime,
    paused_months: Iterable[str] = (),
) -> list[LedgerEntry]:
    """Build the FEE_DUE rows still missing for a student.

    Months already holding a FEE_DUE row are skipped, so calling this
    repeatedly never yields duplicates. Months paused either through
    ``paused_months`` or through PAUSE rows in ``existing_entries`` are
    never charged.

    Parameters
    ----------
    student_id : str
        Student the rows belong to.
    joining_date : date | datetime
        Joining date; its month is never charged.
    rate_history : Sequence[FeeRateRecord]
        Fee rate records for the student.
    existing_entries : Iterable[LedgerEntry]
        Current ledger snapshot.
    as_of : date | datetime
        "Now"; its month is never charged.
    paused_months : Iterable[str]
        Additional paused month keys.

    Returns
    -------
    list[LedgerEntry]
        New FEE_DUE rows, oldest month first. Not persisted.

    Raises
    ------
    NoRateHistoryError
        If a month needs pricing and ``rate_history`` is empty.
    """
    own_entries = [e for e in existing_entries if e.student_id == student_id]
    paused = set(paused_months) | paused_month_keys(own_entries)
    already_due = {
        e.month_key for e in own_entries if e.entry_type == LedgerEntryType.FEE_DUE
    }

    new_months = [
        key
        for key in months_between(joining_date, as_of)
        if key not in paused and key not in already_due
    ]
    if not new_months:
        return []

    created_at = _as_datetime(as_of)
    entries = [
        LedgerEntry(
            entry_id=_new_entry_id(),
            student_id=student_id,
            entry_type=LedgerEntryType.FEE_DUE,
            month_key=key,
            amount=get_applicable_rate(key, rate_history),
            description=f"Monthly fee for {format_month_key(key)}",
            created_at=created_at,
        )
        for key in new_months
    ]
    logger.debug(
        "Generated %d FEE_DUE entries for student %s",
        len(entries),
        student_id,
        extra={"student_id": student_id},
    )
    return entries


def make_payment_entry(
    student_id: str,
    month: str,
    amount: Decimal,
    payment_id: str | None = None,
    description: str | None = None,
    created_at: datetime | None = None,
) -> LedgerEntry:
    """Build a PAYMENT row. Allocation to months happens at read time."""
    metadata = {"payment_id": payment_id} if payment_id else {}
    return LedgerEntry(
        entry_id=_new_entry_id(),
        student_id=student_id,
        entry_type=LedgerEntryType.PAYMENT,
        month_key=month,
        amount=amount,
        description=description or f"Payment received for {format_month_key(month)}",
        created_at=created_at,
        metadata=metadata,
    )


def make_pause_entry(
    student_id: str,
    month: str,
    created_at: datetime | None = None,
) -> LedgerEntry:
    """Build a PAUSE marker for a month."""
    return LedgerEntry(
        entry_id=_new_entry_id(),
        student_id=student_id,
        entry_type=LedgerEntryType.PAUSE,
        month_key=month,
        amount=ZERO,
        description=f"Fee paused for {format_month_key(month)}",
        created_at=created_at,
    )


def remove_pause_entries(
    entries: Iterable[LedgerEntry], student_id: str, month: str
) -> list[LedgerEntry]:
    """Unpause: drop the PAUSE markers of one student's month."""
    return [
        e
        for e in entries
        if not (
            e.entry_type == LedgerEntryType.PAUSE
            and e.student_id == student_id
            and e.month_key == month
        )
    ]


def remove_payment_entries(entries: Iterable[LedgerEntry], payment_id: str) -> list[LedgerEntry]:
    """Drop the PAYMENT rows mirroring ``payment_id``."""
    return [
        e
        for e in entries
        if not (
            e.entry_type == LedgerEntryType.PAYMENT
            and e.metadata.get("payment_id") == payment_id
        )
    ]


def calculate_ledger_summary(entries: Iterable[LedgerEntry]) -> LedgerSummary:
    """Totals and month lists over a ledger snapshot.

    ``pending_months`` is FEE_DUE months minus months that have any
    PAYMENT row. It does not compare amounts, so an underpaid month drops
    out of it; use :func:`get_partial_due_info_with_history` for the
    amount-aware view.
    """
    fee_entries: list[LedgerEntry] = []
    payment_entries: list[LedgerEntry] = []
    pause_entries: list[LedgerEntry] = []
    for entry in entries:
        if entry.entry_type == LedgerEntryType.FEE_DUE:
            fee_entries.append(entry)
        elif entry.entry_type == LedgerEntryType.PAYMENT:
            payment_entries.append(entry)
        elif entry.entry_type == LedgerEntryType.PAUSE:
            pause_entries.append(entry)

    total_due = sum((Decimal(e.amount) for e in fee_entries), ZERO)
    total_paid = sum((Decimal(e.amount) for e in payment_entries), ZERO)

    paid_months = [e.month_key for e in payment_entries]
    paid_set = set(paid_months)

    return LedgerSummary(
        total_due=total_due,
        total_paid=total_paid,
        balance=total_due - total_paid,
        pending_months=[e.month_key for e in fee_entries if e.month_key not in paid_set],
        paid_months=paid_months,
        paused_months=[e.month_key for e in pause_entries],
    )


def get_partial_due_info_with_history(
    total_due: Decimal,
    chargeable_months: Sequence[ChargeableMonth],
    total_paid: Decimal,
) -> PartialDueInfo:
    """Work out which months are still owed and whether the oldest is part-paid.

    ``total_paid`` is consumed against ``chargeable_months`` in the order
    given, earliest month first; the months must already be chronological.
    """
    if total_due <= 0 or not chargeable_months:
        return PartialDueInfo()

    remaining_paid = total_paid
    unpaid: list[tuple[ChargeableMonth, Decimal]] = []

    for month in chargeable_months:
        if remaining_paid >= month.fee:
            remaining_paid -= month.fee
        elif remaining_paid > 0:
            unpaid.append((month, month.fee - remaining_paid))
            remaining_paid = ZERO
        else:
            unpaid.append((month, month.fee))

    if not unpaid:
        return PartialDueInfo()

    first, first_remaining = unpaid[0]
    if first_remaining < first.fee:
        return PartialDueInfo(
            is_partial=True,
            partial_amount=first_remaining,
            partial_month=first.month_key,
            full_due_months=[m.month_key for m, _ in unpaid[1:]],
        )

    return PartialDueInfo(full_due_months=[m.month_key for m, _ in unpaid])


def sync_ledger_with_payments(
    student_id: str,
    payments: Iterable[Payment],
    existing_entries: Iterable[LedgerEntry],
) -> list[LedgerEntry]:
    """Mirror payment records that have no PAYMENT row yet."""
    mirrored = {
        e.metadata.get("payment_id")
        for e in existing_entries
        if e.entry_type == LedgerEntryType.PAYMENT and e.metadata.get("payment_id")
    }
    return [
        make_payment_entry(
            student_id,
            p.month,
            p.amount_paid,
            payment_id=p.payment_id,
            created_at=_as_datetime(p.payment_date),
        )
        for p in payments
        if p.student_id == student_id and p.payment_id not in mirrored
    ]


def sync_ledger_with_paused_months(
    student_id: str,
    paused_months: Iterable[str],
    existing_entries: Iterable[LedgerEntry],
) -> list[LedgerEntry]:
    """Add PAUSE rows for paused months missing from the ledger."""
    already = {
        e.month_key
        for e in existing_entries
        if e.entry_type == LedgerEntryType.PAUSE and e.student_id == student_id
    }
    new_entries: list[LedgerEntry] = []
    for key in paused_months:
        if key not in already:
            new_entries.append(make_pause_entry(student_id, key))
            already.add(key)
    return new_entries


def full_ledger_sync(
    student: Student,
    rate_history: Sequence[FeeRateRecord],
    existing_entries: Sequence[LedgerEntry],
    payments: Iterable[Payment],
    as_of: date | datetime,
) -> list[LedgerEntry]:
    """Bring a student's ledger up to date: pauses, then payments, then fees.

    Returns only the new rows, in that order.
    """
    pauses = sync_ledger_with_paused_months(
        student.student_id, student.paused_months, existing_entries
    )
    snapshot = [*existing_entries, *pauses]
    payment_rows = sync_ledger_with_payments(student.student_id, payments, snapshot)
    snapshot.extend(payment_rows)
    fees = generate_fee_entries(
        student.student_id,
        student.joining_date,
        rate_history,
        snapshot,
        as_of,
        student.paused_months,
    )
    logger.debug(
        "Ledger sync for %s: %d pauses, %d payments, %d fees",
        student.student_id,
        len(pauses),
        len(payment_rows),
        len(fees),
        extra={"student_id": student.student_id},
    )
    return [*pauses, *payment_rows, *fees]
