"""Configuration management for the membership registry."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class LedgerSettings(BaseSettings):
    """Remote ledger gateway settings."""

    url: str = Field(default="http://localhost:8545", alias="LEDGER_URL")
    timeout: float = Field(default=30.0, alias="LEDGER_TIMEOUT")
    connect_timeout: float = Field(default=10.0, alias="LEDGER_CONNECT_TIMEOUT")


class TransactionSettings(BaseSettings):
    """Transaction status auto-dismiss intervals (seconds)."""

    success_reset_seconds: float = Field(default=2.0, alias="TX_SUCCESS_RESET_SECONDS")
    error_reset_seconds: float = Field(default=3.0, alias="TX_ERROR_RESET_SECONDS")


class CapabilitySettings(BaseSettings):
    """Simulated encryption/verification capability settings."""

    verify_delay_seconds: float = Field(default=2.0, alias="VERIFY_DELAY_SECONDS")


class TierDefinition(BaseModel):
    """One membership tier as shown in the catalog."""

    level: str
    tag: str
    label: str
    tab: str
    color: str = "#cccccc"


DEFAULT_TIERS: list[dict[str, str]] = [
    {"level": "1", "tag": "FHE-L1", "label": "Bronze", "tab": "level1", "color": "#ff5555"},
    {"level": "2", "tag": "FHE-L2", "label": "Silver", "tab": "level2", "color": "#55ff55"},
    {"level": "3", "tag": "FHE-L3", "label": "Gold", "tab": "level3", "color": "#5555ff"},
]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Sub-settings
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    transaction: TransactionSettings = Field(default_factory=TransactionSettings)
    capabilities: CapabilitySettings = Field(default_factory=CapabilitySettings)

    # Paths
    project_root: Path = Field(default_factory=lambda: Path(__file__).parent.parent.parent)

    @property
    def config_dir(self) -> Path:
        """Get config directory."""
        return self.project_root / "config"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_tier_catalog(path: Path | None = None) -> list[TierDefinition]:
    """
    Load the tier catalog from YAML.

    Falls back to the built-in Bronze/Silver/Gold tiers when the file
    does not exist.
    """
    if path is None:
        path = get_settings().config_dir / "tiers.yaml"

    if not path.exists():
        logger.debug(f"[Config] No tier catalog at {path}, using defaults")
        return [TierDefinition(**tier) for tier in DEFAULT_TIERS]

    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}

    return [TierDefinition(**tier) for tier in data.get("tiers", DEFAULT_TIERS)]
