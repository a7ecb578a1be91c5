#!/usr/bin/env python3
"""Generate a sample tuition and lending book and export it.

Runs the tuition and lending scenarios as of a given date, prints the
per-student and per-borrower positions the engines compute, and writes
every record to the chosen sink (JSON files, console or PostgreSQL).
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tuition_ledger.config import LedgerConfig
from tuition_ledger.lending import calculate_borrower_lifetime_summary, format_rupees
from tuition_ledger.logging import setup_logging
from tuition_ledger.scenarios import LendingScenario, TuitionScenario
from tuition_ledger.sinks import ConsoleSink, JsonFileSink, PostgresSink
from tuition_ledger.status import get_student_status_from_payments
from tuition_ledger.store import LedgerStore
from tuition_ledger.tuition import (
    calculate_ledger_summary,
    get_chargeable_months_with_fees,
    get_partial_due_info_with_history,
)

logger = logging.getLogger(__name__)


def report_students(store: LedgerStore, as_of: date, config: LedgerConfig) -> None:
    """Print each student's balance and oldest outstanding month."""
    symbol = config.billing.currency_symbol
    quantum = config.billing.money_quantum
    print("\nStudents")
    print("=" * 60)
    for student in store.students.values():
        summary = calculate_ledger_summary(store.get_student_ledger(student.student_id))
        months = get_chargeable_months_with_fees(
            student.joining_date,
            store.get_fee_history(student.student_id),
            as_of,
            student.paused_months,
        )
        due = get_partial_due_info_with_history(summary.total_due, months, summary.total_paid)
        status = get_student_status_from_payments(
            student.paused_months,
            store.get_student_payments(student.student_id),
            as_of,
            config.billing.inactivity_threshold_days,
        )
        balance = format_rupees(summary.balance, symbol, quantum)
        line = f"{student.name:28} {status.value:9} balance {balance}"
        if due.is_partial:
            partial = format_rupees(due.partial_amount, symbol, quantum)
            line += f" (partial {due.partial_month}: {partial})"
        if due.full_due_months:
            line += f" due: {', '.join(due.full_due_months)}"
        print(line)


def report_borrowers(store: LedgerStore, as_of: date, config: LedgerConfig) -> None:
    """Print each borrower's lifetime position."""
    symbol = config.billing.currency_symbol
    quantum = config.billing.money_quantum
    print("\nBorrowers")
    print("=" * 60)
    for borrower in store.borrowers.values():
        lifetime = calculate_borrower_lifetime_summary(
            store.get_borrower_loans(borrower.borrower_id),
            store.get_borrower_ledger(borrower.borrower_id),
            as_of,
            borrower=borrower,
            quantum=quantum,
        )
        print(
            f"{borrower.name:28} lent {format_rupees(lifetime.total_lent, symbol, quantum)}"
            f" recovered {format_rupees(lifetime.total_paid, symbol, quantum)}"
            f" active due {format_rupees(lifetime.active_due, symbol, quantum)}"
        )


def export(store: LedgerStore, sink: Any) -> None:
    """Write every record type of ``store`` to ``sink``."""
    batches = {
        "students": list(store.students.values()),
        "fee_rates": store.fee_rates,
        "payments": store.payments,
        "ledger_entries": store.ledger_entries,
        "borrowers": list(store.borrowers.values()),
        "loans": list(store.loans.values()),
        "lending_entries": store.lending_entries,
    }
    if isinstance(sink, PostgresSink):
        sink.create_tables()
        sink.write_all(batches)
    else:
        for entity_type, records in batches.items():
            sink.write_batch(entity_type, records)
    sink.close()


def main() -> None:
    """Generate, report and export a sample book."""
    config = LedgerConfig.from_env()

    parser = argparse.ArgumentParser(description="Generate a sample tuition and lending book")
    parser.add_argument("--students", type=int, default=10, help="Number of students")
    parser.add_argument("--borrowers", type=int, default=5, help="Number of borrowers")
    parser.add_argument("--months", type=int, default=12, help="History window in months")
    parser.add_argument("--seed", type=int, default=config.seed or 42, help="Random seed")
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=date.today(),
        help="Reference date (YYYY-MM-DD), defaults to today",
    )
    parser.add_argument(
        "--sink",
        choices=["json", "console", "postgres"],
        default="json",
        help="Where to write the records",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=config.output.json_output_dir,
        help="Directory for the JSON sink",
    )
    parser.add_argument("--log-level", default=config.log_level, help="Log level")
    args = parser.parse_args()

    setup_logging(args.log_level)

    tuition = TuitionScenario(
        num_students=args.students, history_months=args.months, seed=args.seed
    ).generate(args.as_of)
    lending = LendingScenario(num_borrowers=args.borrowers, seed=args.seed).generate(args.as_of)

    store = LedgerStore(
        students=tuition.students,
        fee_rates=tuition.fee_rates,
        payments=tuition.payments,
        ledger_entries=tuition.ledger_entries,
        borrowers=lending.borrowers,
        loans=lending.loans,
        lending_entries=lending.lending_entries,
        _borrower_loans=lending._borrower_loans,
    )

    report_students(store, args.as_of, config)
    report_borrowers(store, args.as_of, config)

    if args.sink == "postgres":
        sink: Any = PostgresSink(config.postgres.connection_string)
    elif args.sink == "console":
        sink = ConsoleSink(pretty=False, max_records=5)
    else:
        sink = JsonFileSink(args.output_dir, pretty=config.output.pretty_json)

    export(store, sink)
    logger.info("Done: %s", store.summary())


if __name__ == "__main__":
    main()
