"""Tests for config and logging."""

import io
import json
import logging
import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from tuition_ledger.config import (
    BillingConfig,
    LedgerConfig,
    OutputConfig,
    PostgresConfig,
    ScenarioConfig,
)
from tuition_ledger.exceptions import ConfigurationError
from tuition_ledger.lending import CENT, CURRENCY_SYMBOL, create_loan, settle_loan
from tuition_ledger.logging import JsonFormatter, get_logger, setup_logging
from tuition_ledger.models import InterestType
from tuition_ledger.status import INACTIVITY_THRESHOLD_DAYS

ENV_VARS = [
    "POSTGRES_HOST",
    "POSTGRES_PORT",
    "POSTGRES_DB",
    "POSTGRES_USER",
    "POSTGRES_PASSWORD",
    "OUTPUT_DIR",
    "PRETTY_JSON",
    "INACTIVITY_THRESHOLD_DAYS",
    "CURRENCY_SYMBOL",
    "MONEY_QUANTUM",
    "SEED",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Environment without any tuition-ledger variables."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestPostgresConfig:
    """Tests for PostgresConfig."""

    def test_default_values(self) -> None:
        """Test default connection settings."""
        config = PostgresConfig()

        assert config.host == "localhost"
        assert config.port == 5432
        assert config.database == "tuition"

    def test_connection_string(self) -> None:
        """Test connection string assembly."""
        config = PostgresConfig(host="db", port=5433, database="fees", user="u", password="p")

        assert config.connection_string == "postgresql://u:p@db:5433/fees"


class TestOutputAndBillingConfig:
    """Tests for OutputConfig and BillingConfig."""

    def test_output_defaults(self) -> None:
        """Test output defaults."""
        config = OutputConfig()

        assert config.json_output_dir == Path("output")
        assert config.pretty_json is False

    def test_billing_defaults(self) -> None:
        """Test billing defaults."""
        config = BillingConfig()

        assert config.inactivity_threshold_days == 60
        assert config.currency_symbol == "₹"
        assert config.money_quantum == Decimal("0.01")

    def test_billing_defaults_follow_engine_constants(self) -> None:
        """Test billing defaults come from the engine constants."""
        config = BillingConfig()

        assert config.inactivity_threshold_days == INACTIVITY_THRESHOLD_DAYS
        assert config.currency_symbol == CURRENCY_SYMBOL
        assert config.money_quantum == CENT


class TestScenarioConfig:
    """Tests for ScenarioConfig."""

    def test_default_values(self) -> None:
        """Test default scenario sizes."""
        config = ScenarioConfig(name="demo")

        assert config.num_students == 20
        assert config.num_borrowers == 5
        assert config.history_months == 12

    def test_ledger_config_without_scenario(self) -> None:
        """Test LedgerConfig has no scenario by default."""
        assert LedgerConfig().scenario is None


class TestLedgerConfig:
    """Tests for LedgerConfig.from_env."""

    def test_from_env_default(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test from_env with no variables set."""
        config = LedgerConfig.from_env()

        assert config.postgres.host == "localhost"
        assert config.postgres.port == 5432
        assert config.output.pretty_json is False
        assert config.billing.inactivity_threshold_days == 60
        assert config.billing.money_quantum == Decimal("0.01")
        assert config.seed is None
        assert config.log_level == "INFO"

    def test_from_env_custom(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test from_env with every variable set."""
        clean_env.setenv("POSTGRES_HOST", "db.internal")
        clean_env.setenv("POSTGRES_PORT", "6543")
        clean_env.setenv("OUTPUT_DIR", "/tmp/ledger")
        clean_env.setenv("PRETTY_JSON", "TRUE")
        clean_env.setenv("INACTIVITY_THRESHOLD_DAYS", "45")
        clean_env.setenv("CURRENCY_SYMBOL", "Rs ")
        clean_env.setenv("MONEY_QUANTUM", "1")
        clean_env.setenv("SEED", "7")
        clean_env.setenv("LOG_LEVEL", "DEBUG")

        config = LedgerConfig.from_env()

        assert config.postgres.host == "db.internal"
        assert config.postgres.port == 6543
        assert config.output.json_output_dir == Path("/tmp/ledger")
        assert config.output.pretty_json is True
        assert config.billing.inactivity_threshold_days == 45
        assert config.billing.currency_symbol == "Rs "
        assert config.billing.money_quantum == Decimal("1")
        assert config.seed == 7
        assert config.log_level == "DEBUG"

    def test_empty_seed_is_none(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that an empty SEED means no seed."""
        clean_env.setenv("SEED", "")

        assert LedgerConfig.from_env().seed is None

    def test_bad_integer_raises(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that a non-integer port raises ConfigurationError."""
        clean_env.setenv("POSTGRES_PORT", "not-a-port")

        with pytest.raises(ConfigurationError, match="POSTGRES_PORT"):
            LedgerConfig.from_env()

    @pytest.mark.parametrize("raw", ["cents", "0", "-0.01", "NaN"])
    def test_bad_money_quantum_raises(self, clean_env: pytest.MonkeyPatch, raw: str) -> None:
        """Test that an unusable MONEY_QUANTUM raises ConfigurationError."""
        clean_env.setenv("MONEY_QUANTUM", raw)

        with pytest.raises(ConfigurationError, match="MONEY_QUANTUM"):
            LedgerConfig.from_env()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_level(self) -> None:
        """Test setting the log level."""
        setup_logging(level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("tuition_ledger").level == logging.DEBUG

    def test_invalid_level_defaults_to_info(self) -> None:
        """Test that an unknown level falls back to INFO."""
        setup_logging(level="INVALID")

        assert logging.getLogger().level == logging.INFO

    def test_json_format(self) -> None:
        """Test JSON format installs JsonFormatter."""
        setup_logging(format_type="json")

        assert any(isinstance(h.formatter, JsonFormatter) for h in logging.getLogger().handlers)

    def test_custom_stream(self) -> None:
        """Test logging to a caller-supplied stream."""
        stream = io.StringIO()
        setup_logging(stream=stream)

        logging.getLogger("tuition_ledger.test").info("hello")

        assert "hello" in stream.getvalue()

    def test_replaces_handlers(self) -> None:
        """Test that existing root handlers are replaced."""
        root = logging.getLogger()
        root.addHandler(logging.StreamHandler())
        root.addHandler(logging.StreamHandler())

        setup_logging()

        assert len(root.handlers) == 1

    def test_external_loggers_quieted(self) -> None:
        """Test that psycopg and faker loggers are set to WARNING."""
        setup_logging(level="DEBUG")

        assert logging.getLogger("psycopg").level == logging.WARNING
        assert logging.getLogger("faker").level == logging.WARNING


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def _record(self, **kwargs: object) -> logging.LogRecord:
        defaults: dict = {
            "name": "tuition_ledger.test",
            "level": logging.INFO,
            "pathname": __file__,
            "lineno": 1,
            "msg": "Settled loan %s",
            "args": ("loan-1",),
            "exc_info": None,
        }
        defaults.update(kwargs)
        return logging.LogRecord(**defaults)

    def test_format_basic(self) -> None:
        """Test basic JSON formatting."""
        data = json.loads(JsonFormatter().format(self._record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "tuition_ledger.test"
        assert data["message"] == "Settled loan loan-1"
        assert "timestamp" in data

    def test_format_with_exception(self) -> None:
        """Test JSON formatting with exception info."""
        try:
            raise ValueError("bad amount")
        except ValueError:
            record = self._record(level=logging.ERROR, exc_info=sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError" in data["exception"]

    def test_format_with_extra(self) -> None:
        """Test JSON formatting with extra fields."""
        record = self._record()
        record.extra = {"amount": Decimal("12.50")}

        data = json.loads(JsonFormatter().format(record))

        assert data["amount"] == "12.50"

    def test_context_fields_lifted(self) -> None:
        """Test that ledger context attributes become top-level keys."""
        record = self._record()
        record.student_id = "stu-001"
        record.month_key = "2024-02"

        data = json.loads(JsonFormatter().format(record))

        assert data["student_id"] == "stu-001"
        assert data["month_key"] == "2024-02"
        assert "loan_id" not in data

    def test_engine_logs_carry_context(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that settle_loan logs carry borrower and loan ids."""
        loan, principal = create_loan(
            "bor-001", Decimal("1000"), InterestType.ZERO_INTEREST, Decimal("0"), date(2024, 1, 1)
        )

        with caplog.at_level(logging.DEBUG, logger="tuition_ledger.lending"):
            settle_loan(loan, [principal], datetime(2024, 6, 1))

        data = json.loads(JsonFormatter().format(caplog.records[-1]))
        assert data["loan_id"] == loan.loan_id
        assert data["borrower_id"] == "bor-001"


class TestGetLogger:
    """Tests for get_logger."""

    def test_get_logger(self) -> None:
        """Test get_logger returns the named logger."""
        logger = get_logger("tuition_ledger.test")

        assert isinstance(logger, logging.Logger)
        assert logger is get_logger("tuition_ledger.test")


class TestPackageInit:
    """Tests for tuition_ledger __init__.py."""

    def test_version_exported(self) -> None:
        """Test that __version__ is exported."""
        from tuition_ledger import __version__

        assert isinstance(__version__, str)
