"""Lending models: borrowers, loans and the lending ledger."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from tuition_ledger.models.enums import InterestType, LendingEntryType, LoanStatus


@dataclass
class Borrower:
    """Person money is lent to.

    The principal/interest fields describe the legacy single-loan model
    and are only used for ledger rows with no ``loan_id``.
    """

    borrower_id: str
    name: str
    contact_number: str | None = None
    principal_amount: Decimal = Decimal("0")
    interest_type: InterestType = InterestType.ZERO_INTEREST
    interest_rate: Decimal = Decimal("0")
    loan_start_date: date | None = None
    notes: str | None = None
    created_at: datetime | None = None


@dataclass
class Loan:
    """Loan contract; settles exactly once."""

    loan_id: str
    borrower_id: str
    principal_amount: Decimal
    interest_type: InterestType
    interest_rate: Decimal  # Percent, e.g. 12 for 12%
    start_date: date
    status: LoanStatus = LoanStatus.ACTIVE
    settled_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class LendingLedgerEntry:
    """Append-only lending ledger row. PAYMENT amounts are negative."""

    entry_id: str
    borrower_id: str
    loan_id: str | None  # None for legacy, unlinked rows
    entry_type: LendingEntryType
    amount: Decimal
    entry_date: date
    description: str | None = None
    created_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class LendingSummary:
    """Financial position of a single loan (or legacy borrower ledger)."""

    principal: Decimal
    interest_accrued: Decimal
    total_paid: Decimal
    total_due: Decimal
    remaining_balance: Decimal
    written_off: Decimal = Decimal("0")


@dataclass
class SettlementResult:
    """Rows produced by settling a loan."""

    loan: Loan
    summary: LendingSummary
    adjustment: LendingLedgerEntry | None = None


@dataclass
class BorrowerLifetimeSummary:
    """Aggregate over every loan of one borrower."""

    total_lent: Decimal
    total_paid: Decimal
    total_outstanding: Decimal
    active_due: Decimal
    loan_count: int = 0
    active_loan_count: int = 0
