"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal

import pytest

from tuition_ledger.models import FeeRateRecord


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def as_of() -> date:
    """Reference "today" used across engine tests."""
    return date(2024, 6, 15)


@pytest.fixture
def sample_student_id() -> str:
    """Sample student ID."""
    return "stu-test-001"


@pytest.fixture
def sample_borrower_id() -> str:
    """Sample borrower ID."""
    return "bor-test-001"


@pytest.fixture
def flat_history(sample_student_id: str) -> list[FeeRateRecord]:
    """A single 1000/month rate from January 2024."""
    return [FeeRateRecord("2024-01", Decimal("1000"), student_id=sample_student_id)]
