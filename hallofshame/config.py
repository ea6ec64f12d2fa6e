"""
Hall of Shame Configuration Management

Centralized configuration using Pydantic Settings for type-safe environment
variable loading with validation.

All settings can be overridden via environment variables prefixed with SHAME_.
For example, SHAME_PACKAGE_ID sets the package_id field.
"""

import logging
import re
from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_OBJECT_ID_PATTERN = re.compile(r"^0x[0-9a-fA-F]{1,64}$")


class SuiNetwork(str, Enum):
    """Sui networks the ledger client can target."""

    MAINNET = "mainnet"
    TESTNET = "testnet"
    DEVNET = "devnet"
    LOCALNET = "localnet"


class DiscoveryMode(str, Enum):
    """Which strategies the feed uses to discover post records."""

    EVENTS = "events"  # Scan recent publish events
    REGISTRY = "registry"  # Enumerate records attached to the registry object
    BOTH = "both"


# RPC endpoints for each network
RPC_ENDPOINTS = {
    SuiNetwork.MAINNET: "https://fullnode.mainnet.sui.io:443",
    SuiNetwork.TESTNET: "https://fullnode.testnet.sui.io:443",
    SuiNetwork.DEVNET: "https://fullnode.devnet.sui.io:443",
    SuiNetwork.LOCALNET: "http://127.0.0.1:9000",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SHAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ═══════════════════════════════════════════════════════════════
    # APPLICATION
    # ═══════════════════════════════════════════════════════════════
    app_env: Literal["development", "testing", "production"] = Field(
        default="development", description="Environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_json: bool = Field(default=False, description="Render logs as JSON")

    # ═══════════════════════════════════════════════════════════════
    # LEDGER (SUI)
    # ═══════════════════════════════════════════════════════════════
    sui_network: SuiNetwork = Field(default=SuiNetwork.TESTNET, description="Sui network")
    sui_rpc_url: str | None = Field(
        default=None, description="Override for the network's default fullnode URL"
    )
    package_id: str = Field(default="", description="Published hall_of_shame package id")
    hall_of_shame_id: str = Field(
        default="", description="Shared registry object that records attach to"
    )
    clock_object_id: str = Field(default="0x6", description="Shared clock object")
    gas_budget: int = Field(default=50_000_000, ge=1, description="Gas budget in MIST")
    transaction_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Max seconds to wait for transaction effects"
    )

    # ═══════════════════════════════════════════════════════════════
    # STORAGE (WALRUS)
    # ═══════════════════════════════════════════════════════════════
    walrus_aggregator_url: str = Field(
        default="https://aggregator.walrus-testnet.walrus.space",
        description="Read path for blob content",
    )
    walrus_upload_relay_url: str = Field(
        default="https://upload-relay.testnet.walrus.space",
        description="Write path that distributes slivers to storage nodes",
    )
    walrus_package_id: str = Field(default="", description="Walrus system package id")
    walrus_system_object_id: str = Field(default="", description="Walrus system object id")
    storage_epochs: int = Field(default=5, ge=1, description="Epochs requested per publish")
    storage_max_epochs: int = Field(
        default=53, ge=1, description="Storage network maximum retention window"
    )
    registration_ttl_epochs: int = Field(
        default=1,
        ge=0,
        description="Epochs a registration stays usable before the flow must restart",
    )

    # ═══════════════════════════════════════════════════════════════
    # RESILIENCE
    # ═══════════════════════════════════════════════════════════════
    request_timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP timeout")
    upload_retry_attempts: int = Field(default=3, ge=1, description="Upload/certify attempts")
    retry_backoff_min_seconds: float = Field(default=1.0, ge=0)
    retry_backoff_max_seconds: float = Field(default=10.0, ge=0)

    # ═══════════════════════════════════════════════════════════════
    # FEED
    # ═══════════════════════════════════════════════════════════════
    feed_discovery: DiscoveryMode = Field(default=DiscoveryMode.BOTH)
    feed_event_window: int = Field(
        default=50, ge=1, le=1000, description="Historical publish events scanned"
    )
    feed_hydration_workers: int = Field(
        default=4, ge=1, le=32, description="Concurrent content fetches"
    )

    @field_validator(
        "package_id",
        "hall_of_shame_id",
        "clock_object_id",
        "walrus_package_id",
        "walrus_system_object_id",
    )
    @classmethod
    def validate_object_id(cls, v: str, info: ValidationInfo) -> str:
        if v and not _OBJECT_ID_PATTERN.match(v):
            raise ValueError(f"{info.field_name} must be a 0x-prefixed hex object id")
        return v

    @property
    def rpc_url(self) -> str:
        """Fullnode URL, falling back to the network default."""
        return self.sui_rpc_url or RPC_ENDPOINTS[self.sui_network]

    @property
    def requested_epochs(self) -> int:
        """Epochs to register for, clamped to the network maximum."""
        return min(self.storage_epochs, self.storage_max_epochs)

    @property
    def is_configured(self) -> bool:
        """Whether the contract has been deployed and wired in."""
        return bool(self.package_id and self.hall_of_shame_id)

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    if not settings.is_configured:
        logger.warning(
            "Hall of Shame contract not configured. "
            "Set SHAME_PACKAGE_ID and SHAME_HALL_OF_SHAME_ID after deployment."
        )
    return settings
