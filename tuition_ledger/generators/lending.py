"""Borrower and loan generators."""

from __future__ import annotations

import random
from datetime import date, datetime, timedelta
from decimal import Decimal

from tuition_ledger.generators.base import BaseGenerator
from tuition_ledger.lending import create_loan, make_loan_payment_entry
from tuition_ledger.models.enums import InterestType
from tuition_ledger.models.lending import Borrower, LendingLedgerEntry, Loan


class BorrowerGenerator(BaseGenerator):
    """Generate synthetic borrowers."""

    def generate(self) -> Borrower:
        """Generate a borrower with no legacy loan fields."""
        return Borrower(
            borrower_id=self.fake.uuid4(),
            name=self.fake.name(),
            contact_number=self.contact_number(),
            notes=random.choice([None, "Family", "Friend", "Colleague"]),
        )


class LoanGenerator(BaseGenerator):
    """Generate loans and their repayment rows."""

    INTEREST_TYPES = list(InterestType)
    INTEREST_WEIGHTS = [0.30, 0.30, 0.40]

    # Percent: per month for simple_monthly, per year for simple_yearly
    RATE_RANGES = {
        InterestType.SIMPLE_MONTHLY: (1, 3),
        InterestType.SIMPLE_YEARLY: (8, 24),
    }

    def generate(
        self,
        borrower_id: str,
        as_of: date,
        max_age_months: int = 18,
    ) -> tuple[Loan, LendingLedgerEntry]:
        """Generate an active loan and its PRINCIPAL row.

        Parameters
        ----------
        borrower_id : str
            Borrower the loan is given to.
        as_of : date
            Reference "today".
        max_age_months : int
            Oldest allowed start date, in months before ``as_of``.
        """
        interest_type = random.choices(
            self.INTEREST_TYPES, weights=self.INTEREST_WEIGHTS, k=1
        )[0]
        rate_range = self.RATE_RANGES.get(interest_type)
        rate = Decimal(random.randint(*rate_range)) if rate_range else Decimal("0")

        principal = Decimal(random.randint(5, 200) * 1000)
        start_date = as_of - timedelta(days=random.randint(30, max(30, max_age_months * 30)))

        return create_loan(
            borrower_id,
            principal,
            interest_type,
            rate,
            start_date,
            created_at=datetime.combine(start_date, datetime.min.time()),
        )

    def generate_payments(
        self,
        loan: Loan,
        as_of: date,
        max_payments: int = 6,
    ) -> list[LendingLedgerEntry]:
        """Generate repayments between the loan start and ``as_of``."""
        span = (as_of - loan.start_date).days
        if span <= 0:
            return []

        count = random.randint(0, max_payments)
        instalment = (loan.principal_amount / max(1, max_payments)).quantize(Decimal("1"))
        days = sorted(random.randint(1, span) for _ in range(count))
        return [
            make_loan_payment_entry(
                loan,
                instalment,
                loan.start_date + timedelta(days=offset),
                description="Repayment",
            )
            for offset in days
        ]
