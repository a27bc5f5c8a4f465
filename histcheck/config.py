"""
Configuration management for histcheck.

Uses pydantic-settings for type-safe environment variable handling.
Only the model parameters the checkers consume live here; the fault
schedule and cluster layout belong to the harness that produced the history.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from histcheck.checkers.bank import BankModel


class Settings(BaseSettings):
    """
    Settings loaded from environment variables (prefix ``HISTCHECK_``).

    Defaults mirror the reference deployment: five bank accounts of ten
    units each and five monotonic partitions.
    """

    model_config = SettingsConfigDict(
        env_prefix="HISTCHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON-shaped log lines",
    )

    # Bank workload model
    bank_accounts: int = Field(
        default=5,
        ge=1,
        description="Number of accounts the bank workload created",
    )
    bank_initial_balance: int = Field(
        default=10,
        ge=0,
        description="Starting balance of every account",
    )

    # Monotonic-spread workload model
    monotonic_partitions: int = Field(
        default=5,
        ge=1,
        le=64,
        description="Number of independent sequences the spread writers insert into",
    )

    # Output
    reports_dir: Path = Field(
        default=Path("./reports"),
        description="Directory for report files written by the CLI runner",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @property
    def bank_model(self) -> BankModel:
        """Expected account count and total for the bank checker."""
        return BankModel(n=self.bank_accounts, initial_balance=self.bank_initial_balance)

    def get_redacted_config(self) -> dict[str, str | int | bool]:
        """Configuration summary safe for logging and report headers."""
        return {
            "log_level": self.log_level,
            "bank_accounts": self.bank_accounts,
            "bank_initial_balance": self.bank_initial_balance,
            "monotonic_partitions": self.monotonic_partitions,
            "reports_dir": str(self.reports_dir),
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Tests that change the environment call ``get_settings.cache_clear()``.
    """
    return Settings()
