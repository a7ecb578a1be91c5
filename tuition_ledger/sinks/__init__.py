"""Output sinks for persisting ledger records."""

from tuition_ledger.sinks.console import ConsoleSink
from tuition_ledger.sinks.json_file import JsonFileSink
from tuition_ledger.sinks.postgres import PostgresSink

__all__ = ["ConsoleSink", "JsonFileSink", "PostgresSink"]
