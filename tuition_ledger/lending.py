"""Lending ledger engine: simple-interest accrual, loan summaries and settlement.

Independent from the tuition engine. PAYMENT rows in the lending ledger
are stored with a negative amount; summaries use their absolute value.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from tuition_ledger.exceptions import InvalidEntityStateError
from tuition_ledger.models.enums import InterestType, LendingEntryType, LoanStatus
from tuition_ledger.models.lending import (
    Borrower,
    BorrowerLifetimeSummary,
    LendingLedgerEntry,
    LendingSummary,
    Loan,
    SettlementResult,
)
from tuition_ledger.months import elapsed_months

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")
CURRENCY_SYMBOL = "₹"


def _to_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def calculate_interest(
    principal: Decimal,
    rate: Decimal,
    interest_type: InterestType,
    start_date: date | datetime,
    end_date: date | datetime,
    quantum: Decimal = CENT,
) -> Decimal:
    """Simple (never compounded) interest accrued between two dates.

    Only whole elapsed months count. ``simple_monthly`` applies ``rate``
    percent per month; ``simple_yearly`` applies ``rate`` percent per year,
    prorated per month. Rounded half-up to ``quantum`` (the cent by default).
    """
    if interest_type == InterestType.ZERO_INTEREST or rate <= 0:
        return ZERO

    months = elapsed_months(start_date, end_date)
    rate_fraction = Decimal(rate) / 100

    if interest_type == InterestType.SIMPLE_MONTHLY:
        interest = Decimal(principal) * rate_fraction * months
    elif interest_type == InterestType.SIMPLE_YEARLY:
        interest = Decimal(principal) * rate_fraction / 12 * months
    else:
        return ZERO

    return interest.quantize(quantum, rounding=ROUND_HALF_UP)


def interest_end_date(loan: Loan, as_of: date | datetime) -> date:
    """Date interest runs to: ``as_of`` while active, frozen at settlement after."""
    if loan.status == LoanStatus.SETTLED and loan.settled_at is not None:
        return _to_date(loan.settled_at)
    return _to_date(as_of)


def loan_entries(loan: Loan, entries: Iterable[LendingLedgerEntry]) -> list[LendingLedgerEntry]:
    """Rows linked to ``loan``."""
    return [e for e in entries if e.loan_id == loan.loan_id]


def calculate_loan_summary(
    loan: Loan,
    entries: Iterable[LendingLedgerEntry],
    as_of: date | datetime,
    quantum: Decimal = CENT,
) -> LendingSummary:
    """Financial position of one loan.

    Interest comes from :func:`calculate_interest` rather than from
    INTEREST_ACCRUAL rows. Overpayment is absorbed: the remaining balance
    never goes below zero.

    Unlike the bare ``max(0, total_due - total_paid)``, every negative
    ADJUSTMENT row (normally the settlement write-off) also reduces the
    balance: ``remaining_balance = max(0, total_due - total_paid -
    written_off)``. Write-offs are reported in ``written_off`` and never
    counted in ``total_paid``, which only sums PAYMENT rows.
    """
    scoped = loan_entries(loan, entries)
    principal = Decimal(loan.principal_amount)

    if loan.interest_type == InterestType.ZERO_INTEREST:
        interest = ZERO
    else:
        interest = calculate_interest(
            principal,
            loan.interest_rate,
            loan.interest_type,
            loan.start_date,
            interest_end_date(loan, as_of),
            quantum,
        )

    total_paid = sum(
        (abs(Decimal(e.amount)) for e in scoped if e.entry_type == LendingEntryType.PAYMENT),
        ZERO,
    )
    written_off = sum(
        (
            -Decimal(e.amount)
            for e in scoped
            if e.entry_type == LendingEntryType.ADJUSTMENT and e.amount < 0
        ),
        ZERO,
    )
    total_due = principal + interest

    return LendingSummary(
        principal=principal,
        interest_accrued=interest,
        total_paid=total_paid,
        total_due=total_due,
        remaining_balance=max(ZERO, total_due - total_paid - written_off),
        written_off=written_off,
    )


def create_loan(
    borrower_id: str,
    principal_amount: Decimal,
    interest_type: InterestType,
    interest_rate: Decimal,
    start_date: date,
    created_at: datetime | None = None,
) -> tuple[Loan, LendingLedgerEntry]:
    """Open an active loan together with its single PRINCIPAL row."""
    loan = Loan(
        loan_id=uuid.uuid4().hex,
        borrower_id=borrower_id,
        principal_amount=principal_amount,
        interest_type=interest_type,
        interest_rate=interest_rate,
        start_date=start_date,
        status=LoanStatus.ACTIVE,
        created_at=created_at,
    )
    principal_entry = LendingLedgerEntry(
        entry_id=uuid.uuid4().hex,
        borrower_id=borrower_id,
        loan_id=loan.loan_id,
        entry_type=LendingEntryType.PRINCIPAL,
        amount=principal_amount,
        entry_date=start_date,
        description="Initial loan given",
        created_at=created_at,
    )
    return loan, principal_entry


def make_loan_payment_entry(
    loan: Loan,
    amount: Decimal,
    entry_date: date,
    description: str | None = None,
) -> LendingLedgerEntry:
    """Build a PAYMENT row against ``loan``; the amount is stored negative."""
    return LendingLedgerEntry(
        entry_id=uuid.uuid4().hex,
        borrower_id=loan.borrower_id,
        loan_id=loan.loan_id,
        entry_type=LendingEntryType.PAYMENT,
        amount=-abs(Decimal(amount)),
        entry_date=entry_date,
        description=description,
    )


def settle_loan(
    loan: Loan,
    entries: Iterable[LendingLedgerEntry],
    settled_at: datetime,
    quantum: Decimal = CENT,
) -> SettlementResult:
    """Close a loan, writing off any remaining balance.

    When the balance at ``settled_at`` is positive, one ADJUSTMENT row of
    minus that balance is produced. The returned loan is ``settled`` with
    ``settled_at`` set, which freezes its interest from then on. The
    returned summary is the position just before the write-off.

    Raises
    ------
    InvalidEntityStateError
        If the loan is already settled.
    """
    if loan.status == LoanStatus.SETTLED:
        raise InvalidEntityStateError(f"Loan {loan.loan_id} is already settled")

    summary = calculate_loan_summary(loan, entries, settled_at, quantum)

    adjustment = None
    if summary.remaining_balance > 0:
        adjustment = LendingLedgerEntry(
            entry_id=uuid.uuid4().hex,
            borrower_id=loan.borrower_id,
            loan_id=loan.loan_id,
            entry_type=LendingEntryType.ADJUSTMENT,
            amount=-summary.remaining_balance,
            entry_date=_to_date(settled_at),
            description="Balance adjustment on settlement",
            created_at=settled_at,
        )

    settled = replace(loan, status=LoanStatus.SETTLED, settled_at=settled_at)
    logger.debug(
        "Settled loan %s, wrote off %s",
        loan.loan_id,
        summary.remaining_balance,
        extra={"borrower_id": loan.borrower_id, "loan_id": loan.loan_id},
    )
    return SettlementResult(loan=settled, summary=summary, adjustment=adjustment)


def calculate_lending_summary(entries: Iterable[LendingLedgerEntry]) -> LendingSummary:
    """Totals derived purely from ledger rows.

    Positive adjustments add to what is due; negative adjustments count
    as recovered.
    """
    principal = ZERO
    interest = ZERO
    total_paid = ZERO

    for entry in entries:
        amount = Decimal(entry.amount)
        if entry.entry_type == LendingEntryType.PRINCIPAL:
            principal += amount
        elif entry.entry_type == LendingEntryType.INTEREST_ACCRUAL:
            interest += amount
        elif entry.entry_type == LendingEntryType.PAYMENT:
            total_paid += abs(amount)
        elif entry.entry_type == LendingEntryType.ADJUSTMENT:
            if amount > 0:
                interest += amount
            else:
                total_paid += abs(amount)

    total_due = principal + interest
    return LendingSummary(
        principal=principal,
        interest_accrued=interest,
        total_paid=total_paid,
        total_due=total_due,
        remaining_balance=max(ZERO, total_due - total_paid),
    )


def calculate_borrower_summary(
    borrower: Borrower,
    entries: Iterable[LendingLedgerEntry],
    as_of: date | datetime,
    quantum: Decimal = CENT,
) -> LendingSummary:
    """Summary for a legacy borrower whose rows carry no ``loan_id``."""
    ledger = calculate_lending_summary(entries)
    principal = Decimal(borrower.principal_amount)

    if borrower.interest_type == InterestType.ZERO_INTEREST or borrower.loan_start_date is None:
        interest = ZERO
    else:
        interest = calculate_interest(
            principal,
            borrower.interest_rate,
            borrower.interest_type,
            borrower.loan_start_date,
            as_of,
            quantum,
        )

    total_due = principal + interest
    return LendingSummary(
        principal=principal,
        interest_accrued=interest,
        total_paid=ledger.total_paid,
        total_due=total_due,
        remaining_balance=max(ZERO, total_due - ledger.total_paid),
    )


def calculate_borrower_lifetime_summary(
    loans: Sequence[Loan],
    entries: Sequence[LendingLedgerEntry],
    as_of: date | datetime,
    borrower: Borrower | None = None,
    quantum: Decimal = CENT,
) -> BorrowerLifetimeSummary:
    """Aggregate every loan of one borrower, each summarised on its own.

    When ``borrower`` is given, legacy rows (no ``loan_id``) are folded in:
    fully when the borrower has no loans, otherwise only what they recovered.
    """
    total_lent = ZERO
    total_paid = ZERO
    total_outstanding = ZERO
    active_due = ZERO
    active_count = 0

    for loan in loans:
        summary = calculate_loan_summary(loan, entries, as_of, quantum)
        total_lent += summary.principal
        total_paid += summary.total_paid
        total_outstanding += summary.remaining_balance
        if loan.status == LoanStatus.ACTIVE:
            active_due += summary.remaining_balance
            active_count += 1

    legacy = [e for e in entries if e.loan_id is None]
    if borrower is not None and legacy:
        legacy_summary = calculate_borrower_summary(borrower, legacy, as_of, quantum)
        total_paid += legacy_summary.total_paid
        if not loans:
            total_lent += legacy_summary.principal
            total_outstanding += legacy_summary.remaining_balance
            active_due += legacy_summary.remaining_balance

    return BorrowerLifetimeSummary(
        total_lent=total_lent,
        total_paid=total_paid,
        total_outstanding=total_outstanding,
        active_due=active_due,
        loan_count=len(loans),
        active_loan_count=active_count,
    )


def is_loan_cleared(summary: LendingSummary) -> bool:
    """Whether nothing remains to be paid."""
    return summary.remaining_balance <= 0


def format_interest_type(interest_type: InterestType, rate: Decimal) -> str:
    """Human-readable interest terms."""
    if interest_type == InterestType.ZERO_INTEREST:
        return "Zero Interest"
    if interest_type == InterestType.SIMPLE_MONTHLY:
        return f"{rate}% per month"
    if interest_type == InterestType.SIMPLE_YEARLY:
        return f"{rate}% p.a."
    return "Unknown"


def format_rupees(
    amount: Decimal,
    symbol: str = CURRENCY_SYMBOL,
    quantum: Decimal = CENT,
) -> str:
    """Format an amount with Indian digit grouping, e.g. ``₹1,23,456.5``.

    The amount is rounded half-up to ``quantum`` first; trailing zeros of
    the fraction are dropped.
    """
    value = Decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    integer, _, fraction = f"{abs(value):f}".partition(".")

    if len(integer) > 3:
        head, tail = integer[:-3], integer[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        integer = ",".join([*groups, tail])

    fraction = fraction.rstrip("0")
    return f"{sign}{symbol}{integer}.{fraction}" if fraction else f"{sign}{symbol}{integer}"
