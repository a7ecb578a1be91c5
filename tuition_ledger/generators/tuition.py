"""Student and payment generators."""

from __future__ import annotations

import random
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator, Sequence

from tuition_ledger.generators.base import BaseGenerator
from tuition_ledger.models.enums import PaymentMode
from tuition_ledger.models.tuition import ChargeableMonth, Payment, Student
from tuition_ledger.months import parse_month_key


class StudentGenerator(BaseGenerator):
    """Generate synthetic students."""

    MONTHLY_FEES = [Decimal(v) for v in ("500", "800", "1000", "1200", "1500", "2000")]
    CLASSES = ["5", "6", "7", "8", "9", "10", "11", "12"]

    def generate(self, as_of: date, history_months: int = 12) -> Student:
        """Generate a student who joined within the last ``history_months``.

        Parameters
        ----------
        as_of : date
            Reference "today".
        history_months : int
            How far back the joining date may go.

        Returns
        -------
        Student
            Generated student.
        """
        joining_date = as_of - timedelta(days=random.randint(0, max(0, history_months * 30)))
        return Student(
            student_id=self.fake.uuid4(),
            name=self.fake.name(),
            class_name=random.choice(self.CLASSES),
            contact_number=self.contact_number(),
            monthly_fee=random.choice(self.MONTHLY_FEES),
            joining_date=joining_date,
        )

    def generate_batch(self, count: int, as_of: date, history_months: int = 12) -> Iterator[Student]:
        """Generate multiple students."""
        for _ in range(count):
            yield self.generate(as_of, history_months)

    def raised_fee(self, current: Decimal) -> Decimal:
        """A plausible fee after a raise."""
        return current + Decimal(random.choice([100, 200, 250, 500]))


class PaymentGenerator(BaseGenerator):
    """Generate payments against billed months.

    Each month is paid in full, part-paid or skipped according to the
    configured rates.
    """

    def __init__(
        self,
        seed: int | None = None,
        full_rate: float = 0.80,
        partial_rate: float = 0.10,
    ) -> None:
        super().__init__(seed)
        self.full_rate = full_rate
        self.partial_rate = partial_rate

    def generate_for_months(
        self,
        student_id: str,
        months: Sequence[ChargeableMonth],
    ) -> list[Payment]:
        """Generate payments for ``months`` in chronological order."""
        payments = []
        for month in months:
            roll = random.random()
            if roll < self.full_rate:
                amount = month.fee
            elif roll < self.full_rate + self.partial_rate:
                amount = (month.fee / 2).quantize(Decimal("1"))
            else:
                continue
            payments.append(self._payment(student_id, month.month_key, amount))
        return payments

    def _payment(self, student_id: str, month: str, amount: Decimal) -> Payment:
        year, month_number = parse_month_key(month)
        # Paid some time in the following month
        paid_on = date(year, month_number, 28) + timedelta(days=random.randint(4, 20))
        mode = random.choice(list(PaymentMode))
        return Payment(
            payment_id=self.fake.uuid4(),
            student_id=student_id,
            month=month,
            amount_paid=amount,
            payment_date=paid_on,
            payment_mode=mode,
            transaction_id=self.fake.bothify("TXN########") if mode != PaymentMode.CASH else None,
        )
