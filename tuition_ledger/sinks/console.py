"""Console sink for inspecting a ledger export."""

import json
from collections import Counter
from decimal import Decimal
from typing import Any

from tuition_ledger.sinks.serialization import to_dict


class ConsoleSink:
    """Print ledger records to stdout, one entity type per section.

    Besides the records themselves the sink keeps, per entity type, the
    number of records, the net ``amount`` of those that carry one and a
    breakdown by ``entry_type`` for ledger rows. :meth:`close` prints these
    as a closing tally so that an export can be checked at a glance.
    """

    def __init__(self, pretty: bool = True, max_records: int | None = None) -> None:
        """Initialize console sink.

        Parameters
        ----------
        pretty : bool
            Indent each record's JSON.
        max_records : int | None
            Records shown per batch; the rest are only counted.
        """
        self.pretty = pretty
        self.max_records = max_records
        self._counts: dict[str, int] = {}
        self._amounts: dict[str, Decimal] = {}
        self._entry_types: dict[str, Counter] = {}

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Print a batch of records and add it to the tally."""
        rows = [to_dict(record) for record in records]
        print(f"\n--- {entity_type}: {len(rows)} records ---")

        shown = rows[: self.max_records] if self.max_records else rows
        indent = 2 if self.pretty else None
        for row in shown:
            print(json.dumps(row, indent=indent, ensure_ascii=False, default=str))
        if len(shown) < len(rows):
            print(f"... and {len(rows) - len(shown)} more records")

        self._counts[entity_type] = self._counts.get(entity_type, 0) + len(rows)
        for row in rows:
            if row.get("amount") is not None:
                total = self._amounts.get(entity_type, Decimal("0"))
                self._amounts[entity_type] = total + Decimal(str(row["amount"]))
            if row.get("entry_type") is not None:
                self._entry_types.setdefault(entity_type, Counter())[row["entry_type"]] += 1

    def close(self) -> None:
        """Print the export tally."""
        print("\n--- export tally ---")
        for entity_type, count in self._counts.items():
            line = f"  {entity_type}: {count} records"
            if entity_type in self._amounts:
                line += f", net amount {self._amounts[entity_type]}"
            print(line)
            for entry_type, n in sorted(self._entry_types.get(entity_type, {}).items()):
                print(f"    {entry_type}: {n}")
