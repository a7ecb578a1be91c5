"""Enumeration types for tuition and lending entities."""

from enum import Enum


class LedgerEntryType(str, Enum):
    FEE_DUE = "FEE_DUE"
    PAYMENT = "PAYMENT"
    PAUSE = "PAUSE"
    UNPAUSE = "UNPAUSE"
    ADJUSTMENT = "ADJUSTMENT"


class PaymentMode(str, Enum):
    CASH = "Cash"
    UPI = "UPI"
    BANK_TRANSFER = "Bank Transfer"
    OTHER = "Other"


class StudentStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    INACTIVE = "inactive"


class InterestType(str, Enum):
    ZERO_INTEREST = "zero_interest"
    SIMPLE_MONTHLY = "simple_monthly"
    SIMPLE_YEARLY = "simple_yearly"


class LoanStatus(str, Enum):
    ACTIVE = "active"
    SETTLED = "settled"


class LendingEntryType(str, Enum):
    PRINCIPAL = "PRINCIPAL"
    INTEREST_ACCRUAL = "INTEREST_ACCRUAL"
    PAYMENT = "PAYMENT"
    ADJUSTMENT = "ADJUSTMENT"
