"""Tuition scenario: students with fee history, pauses and payments."""

from __future__ import annotations

import logging
import random
from datetime import date

from tuition_ledger.config import ScenarioConfig
from tuition_ledger.generators import PaymentGenerator, StudentGenerator
from tuition_ledger.months import date_from_month_key, months_between
from tuition_ledger.rates import initial_rate_record, record_rate_change
from tuition_ledger.store import LedgerStore
from tuition_ledger.tuition import full_ledger_sync, get_chargeable_months_with_fees

logger = logging.getLogger(__name__)


class TuitionScenario:
    """Generate a tuition book and bring every ledger up to date.

    This scenario creates:
    - Students who joined within the history window
    - A fee raise part-way through for some students
    - Occasional paused months
    - Payments per billed month (full, partial or missing)
    - FEE_DUE/PAYMENT/PAUSE ledger rows via a full ledger sync
    """

    def __init__(
        self,
        num_students: int = 20,
        history_months: int = 12,
        raise_rate: float = 0.30,
        pause_rate: float = 0.05,
        seed: int | None = None,
        *,
        config: ScenarioConfig | None = None,
    ) -> None:
        """Initialize tuition scenario.

        Parameters
        ----------
        num_students : int
            Number of students to generate.
        history_months : int
            How far back joining dates may go.
        raise_rate : float
            Share of students whose fee is raised once.
        pause_rate : float
            Probability that any billed month is paused.
        seed : int | None
            Random seed for reproducibility.
        config : ScenarioConfig | None
            Optional scenario configuration. If provided, overrides
            num_students, history_months and pause_rate.
        """
        if config is not None:
            num_students = config.num_students
            history_months = config.history_months
            pause_rate = config.pause_rate
        self.config = config
        self.num_students = num_students
        self.history_months = history_months
        self.raise_rate = raise_rate
        self.pause_rate = pause_rate
        self.seed = seed

        if seed is not None:
            random.seed(seed)

        self.store = LedgerStore()
        self._student_gen = StudentGenerator(seed=seed)
        self._payment_gen = PaymentGenerator(seed=seed)

    def generate(self, as_of: date) -> LedgerStore:
        """Generate all records as seen on ``as_of``.

        Returns
        -------
        LedgerStore
            Store containing all generated records.
        """
        logger.info(
            "Starting tuition scenario: %d students over %d months",
            self.num_students,
            self.history_months,
        )

        for student in self._student_gen.generate_batch(self.num_students, as_of, self.history_months):
            self.store.add_student(student)
            history = [initial_rate_record(student.student_id, student.monthly_fee, student.joining_date)]

            billable = months_between(student.joining_date, as_of)
            if billable and random.random() < self.raise_rate:
                raise_month = random.choice(billable)
                new_fee = self._student_gen.raised_fee(student.monthly_fee)
                history, _ = record_rate_change(
                    history, student.student_id, new_fee, date_from_month_key(raise_month)
                )
                student.monthly_fee = new_fee

            student.paused_months = [m for m in billable if random.random() < self.pause_rate]

            for record in history:
                self.store.add_fee_rate(record)

            months = get_chargeable_months_with_fees(
                student.joining_date, history, as_of, student.paused_months
            )
            for payment in self._payment_gen.generate_for_months(student.student_id, months):
                self.store.add_payment(payment)

            new_rows = full_ledger_sync(
                student,
                self.store.get_fee_history(student.student_id),
                self.store.get_student_ledger(student.student_id),
                self.store.get_student_payments(student.student_id),
                as_of,
            )
            self.store.add_ledger_entries(new_rows)

        logger.info("Generated %s", self.store.summary())
        return self.store
