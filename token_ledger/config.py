"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWANCE_POLICIES = ("atomic", "consume")


class TokenLedgerConfig(BaseSettings):
    """Token ledger configuration"""

    model_config = SettingsConfigDict(
        env_prefix="TOKEN_LEDGER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Asset configuration
    balance_bits: int = 128  # Width of the unsigned Balance type

    # transfer_from behaviour when the owner's balance is short:
    # "atomic" leaves the allowance untouched, "consume" spends it anyway
    allowance_policy: str = "atomic"

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # Audit configuration
    enable_audit_logging: bool = True
    audit_table: str = "ledger_events"

    @field_validator("balance_bits")
    @classmethod
    def _check_bits(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("balance_bits must be positive")
        return value

    @field_validator("allowance_policy")
    @classmethod
    def _check_policy(cls, value: str) -> str:
        value = value.lower()
        if value not in ALLOWANCE_POLICIES:
            raise ValueError(f"allowance_policy must be one of {ALLOWANCE_POLICIES}")
        return value

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return value


# Global configuration instance
config = TokenLedgerConfig()


def get_config() -> TokenLedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> TokenLedgerConfig:
    """Reload configuration from environment"""
    global config
    config = TokenLedgerConfig()
    return config
