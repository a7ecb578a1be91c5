"""In-memory record store holding ledger snapshots."""

from tuition_ledger.store.records import LedgerStore

__all__ = ["LedgerStore"]
