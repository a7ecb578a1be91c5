"""Custom exception hierarchy for tuition-ledger."""


class TuitionLedgerError(Exception):
    """Base exception for all tuition-ledger errors."""


class NoRateHistoryError(TuitionLedgerError):
    """Raised when a month must be priced but no fee rate record exists."""


class EntityNotFoundError(TuitionLedgerError):
    """Raised when a referenced entity does not exist."""


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class InvalidEntityStateError(TuitionLedgerError):
    """Raised when an entity is in an invalid state for the operation."""


class DuplicateEntryError(InvalidEntityStateError):
    """Raised when a ledger row would duplicate an existing one."""


class ConfigurationError(TuitionLedgerError):
    """Raised when configuration is invalid or missing."""


class SinkError(TuitionLedgerError):
    """Raised when a sink operation fails."""
