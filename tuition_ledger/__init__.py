"""Accrual ledgers for a tuition business: monthly fee dues and personal lending."""

__version__ = "0.1.0"
