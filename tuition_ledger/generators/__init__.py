"""Faker-driven sample-data generators."""

from tuition_ledger.generators.base import BaseGenerator
from tuition_ledger.generators.lending import BorrowerGenerator, LoanGenerator
from tuition_ledger.generators.tuition import PaymentGenerator, StudentGenerator

__all__ = [
    "BaseGenerator",
    "BorrowerGenerator",
    "LoanGenerator",
    "PaymentGenerator",
    "StudentGenerator",
]
