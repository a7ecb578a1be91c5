"""In-memory record store with referential integrity.

Plays the part of the backend tables: it holds the rows, applies the
pre-insert checks the application relies on, and hands out snapshots for
the engines to compute over.
"""

from dataclasses import dataclass, field
from datetime import datetime

from tuition_ledger.exceptions import (
    DuplicateEntryError,
    EntityNotFoundError,
    InvalidEntityStateError,
    ReferentialIntegrityError,
)
from tuition_ledger.models.enums import LedgerEntryType, LendingEntryType, LoanStatus
from tuition_ledger.models.lending import Borrower, LendingLedgerEntry, Loan
from tuition_ledger.models.tuition import FeeRateRecord, LedgerEntry, Payment, Student


@dataclass
class LedgerStore:
    """In-memory store for tuition and lending records."""

    # Primary entities
    students: dict[str, Student] = field(default_factory=dict)
    borrowers: dict[str, Borrower] = field(default_factory=dict)
    loans: dict[str, Loan] = field(default_factory=dict)

    # Rows
    fee_rates: list[FeeRateRecord] = field(default_factory=list)
    payments: list[Payment] = field(default_factory=list)
    ledger_entries: list[LedgerEntry] = field(default_factory=list)
    lending_entries: list[LendingLedgerEntry] = field(default_factory=list)

    # Relationship indexes
    _borrower_loans: dict[str, list[str]] = field(default_factory=dict)

    def add_student(self, student: Student) -> None:
        """Add a student to the store."""
        if student.created_at is None:
            student.created_at = datetime.now()
        self.students[student.student_id] = student

    def add_fee_rate(self, record: FeeRateRecord) -> None:
        """Add a fee rate record, replacing one for the same month."""
        if record.student_id not in self.students:
            raise ReferentialIntegrityError(f"Student {record.student_id} not found")

        self.fee_rates = [
            r
            for r in self.fee_rates
            if not (
                r.student_id == record.student_id
                and r.effective_from_month == record.effective_from_month
            )
        ]
        self.fee_rates.append(record)

    def add_payment(self, payment: Payment) -> None:
        """Add a payment record."""
        if payment.student_id not in self.students:
            raise ReferentialIntegrityError(f"Student {payment.student_id} not found")
        self.payments.append(payment)

    def add_ledger_entry(self, entry: LedgerEntry) -> None:
        """Append a fee ledger row.

        A second FEE_DUE row for the same student and month is rejected.
        """
        if entry.student_id not in self.students:
            raise ReferentialIntegrityError(f"Student {entry.student_id} not found")

        if entry.entry_type == LedgerEntryType.FEE_DUE and self.has_fee_due(
            entry.student_id, entry.month_key
        ):
            raise DuplicateEntryError(
                f"FEE_DUE for student {entry.student_id} in {entry.month_key} already exists"
            )

        if entry.created_at is None:
            entry.created_at = datetime.now()
        self.ledger_entries.append(entry)

    def add_ledger_entries(self, entries: list[LedgerEntry]) -> None:
        """Append several fee ledger rows."""
        for entry in entries:
            self.add_ledger_entry(entry)

    def has_fee_due(self, student_id: str, month_key: str) -> bool:
        """Whether a FEE_DUE row already exists for the student and month."""
        return any(
            e.student_id == student_id
            and e.month_key == month_key
            and e.entry_type == LedgerEntryType.FEE_DUE
            for e in self.ledger_entries
        )

    def delete_payment(self, payment_id: str) -> None:
        """Remove a payment and the ledger rows mirroring it."""
        before = len(self.payments)
        self.payments = [p for p in self.payments if p.payment_id != payment_id]
        if len(self.payments) == before:
            raise EntityNotFoundError(f"Payment {payment_id} not found")

        self.ledger_entries = [
            e
            for e in self.ledger_entries
            if not (
                e.entry_type == LedgerEntryType.PAYMENT
                and e.metadata.get("payment_id") == payment_id
            )
        ]

    def remove_pause(self, student_id: str, month_key: str) -> None:
        """Remove a student's PAUSE rows for a month."""
        self.ledger_entries = [
            e
            for e in self.ledger_entries
            if not (
                e.entry_type == LedgerEntryType.PAUSE
                and e.student_id == student_id
                and e.month_key == month_key
            )
        ]

    def add_borrower(self, borrower: Borrower) -> None:
        """Add a borrower to the store."""
        if borrower.created_at is None:
            borrower.created_at = datetime.now()
        self.borrowers[borrower.borrower_id] = borrower
        self._borrower_loans.setdefault(borrower.borrower_id, [])

    def add_loan(self, loan: Loan) -> None:
        """Add a loan to the store."""
        if loan.borrower_id not in self.borrowers:
            raise ReferentialIntegrityError(f"Borrower {loan.borrower_id} not found")

        if loan.loan_id not in self.loans:
            self._borrower_loans[loan.borrower_id].append(loan.loan_id)
        self.loans[loan.loan_id] = loan

    def update_loan(self, loan: Loan) -> None:
        """Replace a stored loan, e.g. after settlement."""
        current = self.get_loan(loan.loan_id)
        if current.status == LoanStatus.SETTLED and loan.status != LoanStatus.SETTLED:
            raise InvalidEntityStateError(f"Loan {loan.loan_id} is settled and cannot reopen")
        self.loans[loan.loan_id] = loan

    def add_lending_entry(self, entry: LendingLedgerEntry) -> None:
        """Append a lending ledger row.

        Rows linked to a settled loan are rejected.
        """
        if entry.borrower_id not in self.borrowers:
            raise ReferentialIntegrityError(f"Borrower {entry.borrower_id} not found")

        if entry.loan_id is not None:
            if entry.loan_id not in self.loans:
                raise ReferentialIntegrityError(f"Loan {entry.loan_id} not found")
            if self.loans[entry.loan_id].status == LoanStatus.SETTLED:
                raise InvalidEntityStateError(f"Loan {entry.loan_id} is settled")
            if entry.entry_type == LendingEntryType.PRINCIPAL and any(
                e.loan_id == entry.loan_id and e.entry_type == LendingEntryType.PRINCIPAL
                for e in self.lending_entries
            ):
                raise DuplicateEntryError(f"Loan {entry.loan_id} already has a PRINCIPAL row")

        if entry.created_at is None:
            entry.created_at = datetime.now()
        self.lending_entries.append(entry)

    # Query methods
    def get_student(self, student_id: str) -> Student:
        """Get a student by ID."""
        try:
            return self.students[student_id]
        except KeyError:
            raise EntityNotFoundError(f"Student {student_id} not found") from None

    def get_loan(self, loan_id: str) -> Loan:
        """Get a loan by ID."""
        try:
            return self.loans[loan_id]
        except KeyError:
            raise EntityNotFoundError(f"Loan {loan_id} not found") from None

    def get_fee_history(self, student_id: str) -> list[FeeRateRecord]:
        """Rate records for a student, oldest first."""
        return sorted(
            (r for r in self.fee_rates if r.student_id == student_id),
            key=lambda r: r.effective_from_month,
        )

    def get_student_payments(self, student_id: str) -> list[Payment]:
        """All payments of a student."""
        return [p for p in self.payments if p.student_id == student_id]

    def get_student_ledger(self, student_id: str) -> list[LedgerEntry]:
        """Ledger rows for a student ordered by month, then creation time."""
        rows = [e for e in self.ledger_entries if e.student_id == student_id]
        return sorted(rows, key=lambda e: (e.month_key, e.created_at or datetime.min))

    def get_borrower_loans(self, borrower_id: str) -> list[Loan]:
        """All loans for a borrower, in creation order."""
        loan_ids = self._borrower_loans.get(borrower_id, [])
        return [self.loans[lid] for lid in loan_ids]

    def get_borrower_ledger(self, borrower_id: str) -> list[LendingLedgerEntry]:
        """Lending rows for a borrower ordered by entry date, then creation time."""
        rows = [e for e in self.lending_entries if e.borrower_id == borrower_id]
        return sorted(rows, key=lambda e: (e.entry_date, e.created_at or datetime.min))

    def get_loan_ledger(self, loan_id: str) -> list[LendingLedgerEntry]:
        """Lending rows linked to one loan."""
        return [e for e in self.lending_entries if e.loan_id == loan_id]

    def summary(self) -> dict[str, int]:
        """Return summary counts of all records."""
        return {
            "students": len(self.students),
            "fee_rates": len(self.fee_rates),
            "payments": len(self.payments),
            "ledger_entries": len(self.ledger_entries),
            "borrowers": len(self.borrowers),
            "loans": len(self.loans),
            "lending_entries": len(self.lending_entries),
        }
