"""Configuration management for plaza-billing."""

from dataclasses import dataclass, field

from plaza_billing.exceptions import ConfigurationError

BACKENDS = ("memory", "postgres")


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "plaza"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class BillingConfig:
    """Billing policy constants."""

    rent_due_day: int = 5
    maintenance_due_day: int = 10
    transaction_date_format: str = "%Y-%m-%d, %I:%M %p"
    unknown_collector: str = "Unknown Staff"
    currency_label: str = "Rs."
    phone_country_code: str = "92"
    overdue_detection: bool = True

    def __post_init__(self) -> None:
        for name in ("rent_due_day", "maintenance_due_day"):
            day = getattr(self, name)
            if not 1 <= day <= 28:
                raise ConfigurationError(f"{name} must be between 1 and 28, got {day}")


@dataclass
class PlazaConfig:
    """Main configuration for plaza-billing."""

    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    billing: BillingConfig = field(default_factory=BillingConfig)
    backend: str = "memory"
    seed: int | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ConfigurationError(
                f"Unknown backend {self.backend!r}, expected one of {', '.join(BACKENDS)}"
            )

    @classmethod
    def from_env(cls) -> "PlazaConfig":
        """Create config from environment variables."""
        import os

        try:
            postgres = PostgresConfig(
                host=os.getenv("POSTGRES_HOST", "localhost"),
                port=int(os.getenv("POSTGRES_PORT", "5432")),
                database=os.getenv("POSTGRES_DB", "plaza"),
                user=os.getenv("POSTGRES_USER", "postgres"),
                password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            )

            billing = BillingConfig(
                overdue_detection=os.getenv("OVERDUE_DETECTION", "true").lower() == "true",
            )

            seed = int(os.getenv("SEED")) if os.getenv("SEED") else None
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting in environment: {e}") from e

        return cls(
            postgres=postgres,
            billing=billing,
            backend=os.getenv("PLAZA_BACKEND", "memory"),
            seed=seed,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
