from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_inventory_path() -> Path:
    return Path.home() / ".config" / "rackctl" / "inventory.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RACKCTL_",
        env_ignore_empty=True,
        extra="ignore",
    )

    LOG_LEVEL: str = "INFO"

    INVENTORY_PATH: Path = _default_inventory_path()

    SNMP_PORT: int = 161
    SNMP_TIMEOUT: float = 2.0
    # Per-port exchanges are never retried; a lost reply is a failed port.
    SNMP_RETRIES: int = 0
    SNMP_CONCURRENCY: int = 8

    WOL_BROADCAST_ADDRESS: str = "255.255.255.255"
    WOL_PORT: int = 9

    @field_validator("SNMP_TIMEOUT")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("SNMP_TIMEOUT must be positive")
        return v

    @field_validator("SNMP_CONCURRENCY")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("SNMP_CONCURRENCY must be at least 1")
        return v

    @field_validator("SNMP_RETRIES")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("SNMP_RETRIES must not be negative")
        return v

    @field_validator("SNMP_PORT", "WOL_PORT")
    @classmethod
    def validate_udp_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError(f"Port {v} out of range (1-65535)")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


settings = Settings()
