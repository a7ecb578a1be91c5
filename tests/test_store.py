"""Tests for LedgerStore."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from tuition_ledger.exceptions import (
    DuplicateEntryError,
    EntityNotFoundError,
    InvalidEntityStateError,
    ReferentialIntegrityError,
)
from tuition_ledger.lending import create_loan, make_loan_payment_entry, settle_loan
from tuition_ledger.models import (
    Borrower,
    FeeRateRecord,
    InterestType,
    LedgerEntry,
    LedgerEntryType,
    LoanStatus,
    Payment,
    Student,
)
from tuition_ledger.store import LedgerStore
from tuition_ledger.tuition import make_pause_entry, make_payment_entry, sync_ledger_with_payments


@pytest.fixture
def store() -> LedgerStore:
    """Create a fresh store for each test."""
    return LedgerStore()


@pytest.fixture
def sample_student(sample_student_id: str) -> Student:
    """Create a sample student."""
    return Student(
        student_id=sample_student_id,
        name="Test Student",
        class_name="9",
        contact_number="9123456780",
        monthly_fee=Decimal("1000"),
        joining_date=date(2024, 1, 10),
    )


@pytest.fixture
def sample_borrower(sample_borrower_id: str) -> Borrower:
    """Create a sample borrower."""
    return Borrower(borrower_id=sample_borrower_id, name="Test Borrower")


class TestStudents:
    """Tests for student, rate and payment records."""

    def test_add_student_sets_created_at(self, store: LedgerStore, sample_student: Student) -> None:
        """Test add_student sets created_at."""
        store.add_student(sample_student)

        assert store.get_student(sample_student.student_id) is sample_student
        assert sample_student.created_at is not None

    def test_get_missing_student(self, store: LedgerStore) -> None:
        """Test looking up a missing student."""
        with pytest.raises(EntityNotFoundError):
            store.get_student("nope")

    def test_fee_rate_requires_student(self, store: LedgerStore) -> None:
        """Test a fee rate needs a known student."""
        with pytest.raises(ReferentialIntegrityError):
            store.add_fee_rate(FeeRateRecord("2024-01", Decimal("1000"), student_id="nope"))

    def test_fee_rate_same_month_replaced(
        self, store: LedgerStore, sample_student: Student
    ) -> None:
        """Test a same-month fee rate replaces the earlier one."""
        store.add_student(sample_student)
        sid = sample_student.student_id
        store.add_fee_rate(FeeRateRecord("2024-05", Decimal("1200"), student_id=sid))
        store.add_fee_rate(FeeRateRecord("2024-01", Decimal("1000"), student_id=sid))
        store.add_fee_rate(FeeRateRecord("2024-05", Decimal("1300"), student_id=sid))

        history = store.get_fee_history(sid)

        assert [(r.effective_from_month, r.rate) for r in history] == [
            ("2024-01", Decimal("1000")),
            ("2024-05", Decimal("1300")),
        ]

    def test_payment_requires_student(self, store: LedgerStore) -> None:
        """Test a payment needs a known student."""
        payment = Payment("pay-1", "nope", "2024-02", Decimal("500"), date(2024, 3, 1))

        with pytest.raises(ReferentialIntegrityError):
            store.add_payment(payment)


class TestFeeLedger:
    """Tests for fee ledger rows."""

    def test_duplicate_fee_due_rejected(
        self, store: LedgerStore, sample_student: Student
    ) -> None:
        """Test a second FEE_DUE for a month is rejected."""
        store.add_student(sample_student)
        sid = sample_student.student_id
        store.add_ledger_entry(
            LedgerEntry("e1", sid, LedgerEntryType.FEE_DUE, "2024-02", Decimal("1000"))
        )

        with pytest.raises(DuplicateEntryError):
            store.add_ledger_entry(
                LedgerEntry("e2", sid, LedgerEntryType.FEE_DUE, "2024-02", Decimal("1000"))
            )
        assert store.has_fee_due(sid, "2024-02")
        assert not store.has_fee_due(sid, "2024-03")

    def test_duplicate_is_invalid_state(self) -> None:
        """Test DuplicateEntryError is an InvalidEntityStateError."""
        assert issubclass(DuplicateEntryError, InvalidEntityStateError)

    def test_entry_requires_student(self, store: LedgerStore) -> None:
        """Test a ledger row needs a known student."""
        with pytest.raises(ReferentialIntegrityError):
            store.add_ledger_entry(make_pause_entry("nope", "2024-02"))

    def test_ledger_ordered_by_month_then_creation(
        self, store: LedgerStore, sample_student: Student
    ) -> None:
        """Test ledger rows are ordered by month, then creation time."""
        store.add_student(sample_student)
        sid = sample_student.student_id
        store.add_ledger_entries(
            [
                make_payment_entry(sid, "2024-03", Decimal("1"), created_at=datetime(2024, 4, 2)),
                make_payment_entry(sid, "2024-02", Decimal("2"), created_at=datetime(2024, 4, 1)),
                make_payment_entry(sid, "2024-03", Decimal("3"), created_at=datetime(2024, 4, 1)),
            ]
        )

        amounts = [e.amount for e in store.get_student_ledger(sid)]

        assert amounts == [Decimal("2"), Decimal("3"), Decimal("1")]

    def test_delete_payment_removes_mirror(
        self, store: LedgerStore, sample_student: Student
    ) -> None:
        """Test deleting a payment removes its PAYMENT row."""
        store.add_student(sample_student)
        sid = sample_student.student_id
        payment = Payment("pay-1", sid, "2024-02", Decimal("500"), date(2024, 3, 1))
        store.add_payment(payment)
        store.add_ledger_entries(sync_ledger_with_payments(sid, [payment], []))

        store.delete_payment("pay-1")

        assert store.get_student_payments(sid) == []
        assert store.get_student_ledger(sid) == []

    def test_delete_missing_payment(self, store: LedgerStore) -> None:
        """Test deleting a missing payment."""
        with pytest.raises(EntityNotFoundError):
            store.delete_payment("nope")

    def test_remove_pause(self, store: LedgerStore, sample_student: Student) -> None:
        """Test removing a pause."""
        store.add_student(sample_student)
        sid = sample_student.student_id
        store.add_ledger_entries([make_pause_entry(sid, "2024-03"), make_pause_entry(sid, "2024-04")])

        store.remove_pause(sid, "2024-03")

        assert [e.month_key for e in store.get_student_ledger(sid)] == ["2024-04"]


class TestLending:
    """Tests for borrowers, loans and lending rows."""

    def test_loan_requires_borrower(self, store: LedgerStore) -> None:
        """Test a loan needs a known borrower."""
        loan, _ = create_loan("nope", Decimal("1000"), InterestType.ZERO_INTEREST, Decimal("0"), date(2024, 1, 1))

        with pytest.raises(ReferentialIntegrityError):
            store.add_loan(loan)

    def test_borrower_loans_in_creation_order(
        self, store: LedgerStore, sample_borrower: Borrower
    ) -> None:
        """Test a borrower's loans come back in creation order."""
        store.add_borrower(sample_borrower)
        bid = sample_borrower.borrower_id
        first, _ = create_loan(bid, Decimal("1000"), InterestType.ZERO_INTEREST, Decimal("0"), date(2024, 1, 1))
        second, _ = create_loan(bid, Decimal("2000"), InterestType.ZERO_INTEREST, Decimal("0"), date(2024, 2, 1))
        store.add_loan(first)
        store.add_loan(second)

        assert store.get_borrower_loans(bid) == [first, second]

    def test_duplicate_principal_rejected(
        self, store: LedgerStore, sample_borrower: Borrower
    ) -> None:
        """Test a second PRINCIPAL row is rejected."""
        store.add_borrower(sample_borrower)
        loan, principal = create_loan(
            sample_borrower.borrower_id, Decimal("1000"), InterestType.ZERO_INTEREST, Decimal("0"), date(2024, 1, 1)
        )
        store.add_loan(loan)
        store.add_lending_entry(principal)

        with pytest.raises(DuplicateEntryError):
            store.add_lending_entry(principal)

    def test_unknown_loan_rejected(self, store: LedgerStore, sample_borrower: Borrower) -> None:
        """Test a row against an unknown loan is rejected."""
        store.add_borrower(sample_borrower)
        loan, principal = create_loan(
            sample_borrower.borrower_id, Decimal("1000"), InterestType.ZERO_INTEREST, Decimal("0"), date(2024, 1, 1)
        )

        with pytest.raises(ReferentialIntegrityError):
            store.add_lending_entry(principal)

    def test_settled_loan_is_read_only(
        self, store: LedgerStore, sample_borrower: Borrower
    ) -> None:
        """Test rows against a settled loan are rejected."""
        store.add_borrower(sample_borrower)
        loan, principal = create_loan(
            sample_borrower.borrower_id, Decimal("1000"), InterestType.ZERO_INTEREST, Decimal("0"), date(2024, 1, 1)
        )
        store.add_loan(loan)
        store.add_lending_entry(principal)

        result = settle_loan(loan, store.get_loan_ledger(loan.loan_id), datetime(2024, 6, 1))
        store.add_lending_entry(result.adjustment)
        store.update_loan(result.loan)

        assert store.get_loan(loan.loan_id).status == LoanStatus.SETTLED
        with pytest.raises(InvalidEntityStateError):
            store.add_lending_entry(make_loan_payment_entry(loan, Decimal("100"), date(2024, 7, 1)))
        with pytest.raises(InvalidEntityStateError):
            store.update_loan(loan)

    def test_borrower_ledger_ordered_by_date(
        self, store: LedgerStore, sample_borrower: Borrower
    ) -> None:
        """Test a borrower's ledger is ordered by date."""
        store.add_borrower(sample_borrower)
        loan, principal = create_loan(
            sample_borrower.borrower_id, Decimal("1000"), InterestType.ZERO_INTEREST, Decimal("0"), date(2024, 1, 1)
        )
        store.add_loan(loan)
        late = make_loan_payment_entry(loan, Decimal("100"), date(2024, 3, 1))
        early = make_loan_payment_entry(loan, Decimal("200"), date(2024, 2, 1))
        for entry in (late, principal, early):
            store.add_lending_entry(entry)

        ledger = store.get_borrower_ledger(sample_borrower.borrower_id)

        assert ledger == [principal, early, late]

    def test_get_missing_loan(self, store: LedgerStore) -> None:
        """Test looking up a missing loan."""
        with pytest.raises(EntityNotFoundError):
            store.get_loan("nope")


class TestSummary:
    """Tests for store summary counts."""

    def test_counts(self, store: LedgerStore, sample_student: Student, sample_borrower: Borrower) -> None:
        """Test summary counts."""
        store.add_student(sample_student)
        store.add_borrower(sample_borrower)

        summary = store.summary()

        assert summary["students"] == 1
        assert summary["borrowers"] == 1
        assert summary["ledger_entries"] == 0
        assert set(summary) == {
            "students",
            "fee_rates",
            "payments",
            "ledger_entries",
            "borrowers",
            "loans",
            "lending_entries",
        }
