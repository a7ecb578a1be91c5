"""Domain models for tuition fees and personal lending."""

from tuition_ledger.models.enums import (
    InterestType,
    LedgerEntryType,
    LendingEntryType,
    LoanStatus,
    PaymentMode,
    StudentStatus,
)
from tuition_ledger.models.lending import (
    Borrower,
    BorrowerLifetimeSummary,
    LendingLedgerEntry,
    LendingSummary,
    Loan,
    SettlementResult,
)
from tuition_ledger.models.tuition import (
    ChargeableMonth,
    FeeRateRecord,
    LedgerEntry,
    LedgerSummary,
    PartialDueInfo,
    Payment,
    Student,
)

__all__ = [
    "Borrower",
    "BorrowerLifetimeSummary",
    "ChargeableMonth",
    "FeeRateRecord",
    "InterestType",
    "LedgerEntry",
    "LedgerEntryType",
    "LedgerSummary",
    "LendingEntryType",
    "LendingLedgerEntry",
    "LendingSummary",
    "Loan",
    "LoanStatus",
    "PartialDueInfo",
    "Payment",
    "PaymentMode",
    "SettlementResult",
    "Student",
    "StudentStatus",
]
