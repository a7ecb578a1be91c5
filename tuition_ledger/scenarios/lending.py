"""Lending scenario: borrowers with loans, repayments and settlements."""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, time

from tuition_ledger.config import ScenarioConfig
from tuition_ledger.generators import BorrowerGenerator, LoanGenerator
from tuition_ledger.lending import settle_loan
from tuition_ledger.store import LedgerStore

logger = logging.getLogger(__name__)


class LendingScenario:
    """Generate borrowers with one or more loans.

    Every loan but a borrower's latest is settled, writing off any
    balance; the latest is settled with probability ``settle_rate``.
    """

    def __init__(
        self,
        num_borrowers: int = 5,
        max_loans_per_borrower: int = 2,
        settle_rate: float = 0.25,
        seed: int | None = None,
        *,
        config: ScenarioConfig | None = None,
    ) -> None:
        if config is not None:
            num_borrowers = config.num_borrowers
            settle_rate = config.settle_rate
        self.config = config
        self.num_borrowers = num_borrowers
        self.max_loans_per_borrower = max_loans_per_borrower
        self.settle_rate = settle_rate
        self.seed = seed

        if seed is not None:
            random.seed(seed)

        self.store = LedgerStore()
        self._borrower_gen = BorrowerGenerator(seed=seed)
        self._loan_gen = LoanGenerator(seed=seed)

    def generate(self, as_of: date) -> LedgerStore:
        """Generate all records as seen on ``as_of``."""
        logger.info("Starting lending scenario: %d borrowers", self.num_borrowers)
        settled_at = datetime.combine(as_of, time(hour=12))

        for _ in range(self.num_borrowers):
            borrower = self._borrower_gen.generate()
            self.store.add_borrower(borrower)

            num_loans = random.randint(1, self.max_loans_per_borrower)
            for index in range(num_loans):
                loan, principal = self._loan_gen.generate(borrower.borrower_id, as_of)
                self.store.add_loan(loan)
                self.store.add_lending_entry(principal)

                for payment in self._loan_gen.generate_payments(loan, as_of):
                    self.store.add_lending_entry(payment)

                is_latest = index == num_loans - 1
                if not is_latest or random.random() < self.settle_rate:
                    result = settle_loan(loan, self.store.get_loan_ledger(loan.loan_id), settled_at)
                    if result.adjustment is not None:
                        self.store.add_lending_entry(result.adjustment)
                    self.store.update_loan(result.loan)

        logger.info("Generated %s", self.store.summary())
        return self.store
