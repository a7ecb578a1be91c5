"""Scenarios that build realistic tuition and lending books."""

from tuition_ledger.scenarios.lending import LendingScenario
from tuition_ledger.scenarios.tuition import TuitionScenario

__all__ = ["LendingScenario", "TuitionScenario"]
