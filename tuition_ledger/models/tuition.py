"""Tuition models: students, fee rate history and the fee ledger."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from tuition_ledger.models.enums import LedgerEntryType, PaymentMode


@dataclass
class Student:
    """Enrolled student."""

    student_id: str
    name: str
    class_name: str
    contact_number: str
    monthly_fee: Decimal  # Current fee; history lives in FeeRateRecord
    joining_date: date
    paused_months: list[str] = field(default_factory=list)
    remarks: str | None = None
    created_at: datetime | None = None


@dataclass
class FeeRateRecord:
    """Fee rate effective from a month onwards."""

    effective_from_month: str  # YYYY-MM
    rate: Decimal
    student_id: str | None = None
    record_id: str | None = None
    created_at: datetime | None = None


@dataclass
class Payment:
    """Payment as recorded by the payments screen (pre-ledger)."""

    payment_id: str
    student_id: str
    month: str  # YYYY-MM
    amount_paid: Decimal
    payment_date: date
    payment_mode: PaymentMode = PaymentMode.CASH
    transaction_id: str | None = None


@dataclass
class LedgerEntry:
    """Append-only fee ledger row."""

    entry_id: str
    student_id: str
    entry_type: LedgerEntryType
    month_key: str  # YYYY-MM
    amount: Decimal  # Always >= 0, payments included
    description: str | None = None
    created_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChargeableMonth:
    """A month that is billed, with the fee that applies to it."""

    month_key: str
    fee: Decimal


@dataclass
class LedgerSummary:
    """Read-time totals over a student's ledger."""

    total_due: Decimal
    total_paid: Decimal
    balance: Decimal
    pending_months: list[str]
    paid_months: list[str]
    paused_months: list[str]


@dataclass
class PartialDueInfo:
    """Outcome of allocating payments to months, earliest first."""

    is_partial: bool = False
    partial_amount: Decimal = Decimal("0")
    partial_month: str = ""
    full_due_months: list[str] = field(default_factory=list)
