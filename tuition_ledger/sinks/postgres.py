"""PostgreSQL sink persisting ledger rows produced by the engines."""

import json
import logging
from typing import Any

from tuition_ledger.exceptions import SinkError
from tuition_ledger.sinks.serialization import to_row

logger = logging.getLogger(__name__)


class PostgresSink:
    """Write records to PostgreSQL tables with ``executemany`` batches.

    Rows already present (same primary key) are left untouched, so writing
    the same batch twice is harmless.
    """

    # entity type -> (table, primary key, columns)
    TABLE_COLUMNS: dict[str, tuple[str, str, list[str]]] = {
        "students": (
            "students",
            "student_id",
            [
                "student_id",
                "name",
                "class_name",
                "contact_number",
                "monthly_fee",
                "joining_date",
                "paused_months",
                "remarks",
                "created_at",
            ],
        ),
        "fee_rates": (
            "student_fee_history",
            "record_id",
            ["record_id", "student_id", "effective_from_month", "rate", "created_at"],
        ),
        "payments": (
            "payments",
            "payment_id",
            [
                "payment_id",
                "student_id",
                "month",
                "amount_paid",
                "payment_date",
                "payment_mode",
                "transaction_id",
            ],
        ),
        "ledger_entries": (
            "fee_ledger",
            "entry_id",
            [
                "entry_id",
                "student_id",
                "entry_type",
                "month_key",
                "amount",
                "description",
                "created_at",
                "metadata",
            ],
        ),
        "borrowers": (
            "borrowers",
            "borrower_id",
            [
                "borrower_id",
                "name",
                "contact_number",
                "principal_amount",
                "interest_type",
                "interest_rate",
                "loan_start_date",
                "notes",
                "created_at",
            ],
        ),
        "loans": (
            "loans",
            "loan_id",
            [
                "loan_id",
                "borrower_id",
                "principal_amount",
                "interest_type",
                "interest_rate",
                "start_date",
                "status",
                "settled_at",
                "created_at",
            ],
        ),
        "lending_entries": (
            "lending_ledger",
            "entry_id",
            [
                "entry_id",
                "borrower_id",
                "loan_id",
                "entry_type",
                "amount",
                "entry_date",
                "description",
                "created_at",
                "metadata",
            ],
        ),
    }

    # Insert order respecting foreign keys
    ENTITY_ORDER = [
        "students",
        "fee_rates",
        "payments",
        "ledger_entries",
        "borrowers",
        "loans",
        "lending_entries",
    ]

    DDL = """
CREATE TABLE IF NOT EXISTS students (
    student_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    class_name TEXT NOT NULL,
    contact_number TEXT,
    monthly_fee NUMERIC(12, 2) NOT NULL,
    joining_date DATE NOT NULL,
    paused_months TEXT[] NOT NULL DEFAULT '{}',
    remarks TEXT,
    created_at TIMESTAMP
);
CREATE TABLE IF NOT EXISTS student_fee_history (
    record_id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(student_id) ON DELETE CASCADE,
    effective_from_month CHAR(7) NOT NULL,
    rate NUMERIC(12, 2) NOT NULL,
    created_at TIMESTAMP,
    UNIQUE (student_id, effective_from_month)
);
CREATE TABLE IF NOT EXISTS payments (
    payment_id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(student_id) ON DELETE CASCADE,
    month CHAR(7) NOT NULL,
    amount_paid NUMERIC(12, 2) NOT NULL,
    payment_date DATE NOT NULL,
    payment_mode TEXT NOT NULL,
    transaction_id TEXT
);
CREATE TABLE IF NOT EXISTS fee_ledger (
    entry_id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(student_id) ON DELETE CASCADE,
    entry_type TEXT NOT NULL,
    month_key CHAR(7) NOT NULL,
    amount NUMERIC(12, 2) NOT NULL,
    description TEXT,
    created_at TIMESTAMP,
    metadata JSONB NOT NULL DEFAULT '{}'
);
CREATE TABLE IF NOT EXISTS borrowers (
    borrower_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    contact_number TEXT,
    principal_amount NUMERIC(12, 2) NOT NULL DEFAULT 0,
    interest_type TEXT NOT NULL,
    interest_rate NUMERIC(7, 3) NOT NULL DEFAULT 0,
    loan_start_date DATE,
    notes TEXT,
    created_at TIMESTAMP
);
CREATE TABLE IF NOT EXISTS loans (
    loan_id TEXT PRIMARY KEY,
    borrower_id TEXT NOT NULL REFERENCES borrowers(borrower_id) ON DELETE CASCADE,
    principal_amount NUMERIC(12, 2) NOT NULL,
    interest_type TEXT NOT NULL,
    interest_rate NUMERIC(7, 3) NOT NULL,
    start_date DATE NOT NULL,
    status TEXT NOT NULL,
    settled_at TIMESTAMP,
    created_at TIMESTAMP
);
CREATE TABLE IF NOT EXISTS lending_ledger (
    entry_id TEXT PRIMARY KEY,
    borrower_id TEXT NOT NULL REFERENCES borrowers(borrower_id) ON DELETE CASCADE,
    loan_id TEXT REFERENCES loans(loan_id) ON DELETE CASCADE,
    entry_type TEXT NOT NULL,
    amount NUMERIC(12, 2) NOT NULL,
    entry_date DATE NOT NULL,
    description TEXT,
    created_at TIMESTAMP,
    metadata JSONB NOT NULL DEFAULT '{}'
);
"""

    def __init__(self, connection_string: str) -> None:
        """Open a connection.

        Parameters
        ----------
        connection_string : str
            libpq connection URL.
        """
        import psycopg

        try:
            self.conn = psycopg.connect(connection_string)
        except Exception as e:
            raise SinkError(f"Could not connect to PostgreSQL: {e}") from e
        self._counts: dict[str, int] = {}

    def create_tables(self) -> None:
        """Create the ledger tables if they do not exist."""
        with self.conn.cursor() as cur:
            cur.execute(self.DDL)
        self.conn.commit()

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Insert a batch of records into the table for ``entity_type``."""
        if not records:
            return

        mapping = self.TABLE_COLUMNS.get(entity_type)
        if mapping is None:
            logger.warning("No table mapping for entity type %s, skipping", entity_type)
            return

        table, primary_key, columns = mapping
        placeholders = ", ".join(
            "%s::jsonb" if col == "metadata" else "%s" for col in columns
        )
        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
            f"ON CONFLICT ({primary_key}) DO NOTHING"
        )

        rows = [self._row_values(record, columns) for record in records]

        with self.conn.cursor() as cur:
            cur.executemany(sql, rows)
        self.conn.commit()

        self._counts[entity_type] = self._counts.get(entity_type, 0) + len(records)
        logger.debug("Wrote %d rows to %s", len(records), table)

    def write_all(self, batches: dict[str, list[Any]]) -> None:
        """Write several entity batches in foreign-key order."""
        for entity_type in self.ENTITY_ORDER:
            if entity_type in batches:
                self.write_batch(entity_type, batches[entity_type])

    def close(self) -> None:
        """Log summary and close the connection."""
        for entity_type, count in self._counts.items():
            logger.info("  %s: %d rows written", entity_type, count)
        self.conn.close()

    @staticmethod
    def _row_values(record: Any, columns: list[str]) -> tuple:
        row = to_row(record)
        values = []
        for col in columns:
            value = row.get(col)
            if col == "metadata":
                value = json.dumps(value or {}, default=str)
            values.append(value)
        return tuple(values)
