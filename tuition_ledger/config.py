"""Configuration management for tuition-ledger."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

from tuition_ledger.exceptions import ConfigurationError
from tuition_ledger.lending import CENT, CURRENCY_SYMBOL
from tuition_ledger.status import INACTIVITY_THRESHOLD_DAYS


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "tuition"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class BillingConfig:
    """Billing rules shared by the tuition and lending engines."""

    inactivity_threshold_days: int = INACTIVITY_THRESHOLD_DAYS
    currency_symbol: str = CURRENCY_SYMBOL
    money_quantum: Decimal = CENT


@dataclass
class ScenarioConfig:
    """Configuration for sample-data scenario execution."""

    name: str
    num_students: int = 20
    num_borrowers: int = 5
    history_months: int = 12
    pause_rate: float = 0.05
    settle_rate: float = 0.25


@dataclass
class LedgerConfig:
    """Main configuration for tuition-ledger."""

    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    billing: BillingConfig = field(default_factory=BillingConfig)
    scenario: ScenarioConfig | None = None
    seed: int | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create config from environment variables."""
        import os

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=_env_int("POSTGRES_PORT", "5432"),
            database=os.getenv("POSTGRES_DB", "tuition"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        )

        output = OutputConfig(
            json_output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
        )

        billing = BillingConfig(
            inactivity_threshold_days=_env_int(
                "INACTIVITY_THRESHOLD_DAYS", str(INACTIVITY_THRESHOLD_DAYS)
            ),
            currency_symbol=os.getenv("CURRENCY_SYMBOL", CURRENCY_SYMBOL),
            money_quantum=_env_decimal("MONEY_QUANTUM", CENT),
        )

        return cls(
            postgres=postgres,
            output=output,
            billing=billing,
            seed=_env_int("SEED", None),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


def _env_int(name: str, default: str | None) -> int | None:
    """Read an integer environment variable."""
    import os

    raw = os.getenv(name, default)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _env_decimal(name: str, default: Decimal) -> Decimal:
    """Read a positive decimal environment variable."""
    import os

    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = Decimal(raw)
    except InvalidOperation as e:
        raise ConfigurationError(f"{name} must be a decimal, got {raw!r}") from e
    if not value.is_finite() or value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value
