"""
Configuration management for the Tune Tokenize backend.

Loads settings from .env via pydantic-settings. The network name selects
an entry of domain.constants.NETWORKS; development networks run on the
in-process chain, live networks are configuration only.
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

from domain.constants import DEVELOPMENT_CHAINS, NETWORKS, DECIMALS, INITIAL_PRICE, NetworkConfig

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Network ─────────────────────────────────────────────────────
    network: str = "hardhat"
    infura_api_key: str = ""
    deployer_private_key: str = ""
    price_feed_address: Optional[str] = None  # overrides the network's feed

    # ── Development chain ───────────────────────────────────────────
    dev_mnemonic: str = "test test test test test test test test test test test junk"
    dev_account_count: int = 10
    dev_account_balance_eth: int = 10_000
    auto_deploy: bool = True  # deploy mocks + TuneTokenize on first use

    # ── Price feed mock ─────────────────────────────────────────────
    mock_decimals: int = DECIMALS
    mock_initial_price: int = INITIAL_PRICE

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/tune_tokenize.db"
    database_echo: bool = False

    # ── Listener ────────────────────────────────────────────────────
    listener_poll_seconds: float = 2.0

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def network_config(self) -> NetworkConfig:
        """Entry of the network table for the selected network."""
        try:
            return NETWORKS[self.network]
        except KeyError:
            raise ValueError(
                f"Unknown network '{self.network}'. Choose one of: {', '.join(NETWORKS)}"
            ) from None

    @property
    def is_development_chain(self) -> bool:
        return self.network in DEVELOPMENT_CHAINS

    @property
    def rpc_url(self) -> Optional[str]:
        template = self.network_config.rpc_url
        if template is None:
            return None
        return template.format(infura_api_key=self.infura_api_key)

    @property
    def resolved_price_feed_address(self) -> Optional[str]:
        """Price feed for live networks (explicit override wins)."""
        return self.price_feed_address or self.network_config.price_feed_address

    def validate_network_settings(self):
        """
        Validate settings for the selected network.

        Live networks need an RPC key, a deployer key and a price feed.
        Called during app startup.
        """
        config = self.network_config

        if not self.is_development_chain:
            missing = []
            if not self.infura_api_key:
                missing.append("INFURA_API_KEY")
            if not self.deployer_private_key:
                missing.append("DEPLOYER_PRIVATE_KEY")
            if not self.resolved_price_feed_address:
                missing.append("PRICE_FEED_ADDRESS")
            if missing:
                raise ValueError(
                    f"Network '{config.name}' requires: {', '.join(missing)}"
                )
            if self.environment == "production" and "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            logger.info(f"Network settings validated for '{config.name}' (chain id {config.chain_id})")
        else:
            if self.mock_decimals < 0:
                raise ValueError("MOCK_DECIMALS must be non-negative")
            if self.mock_initial_price <= 0:
                logger.warning("MOCK_INITIAL_PRICE is not positive; minting will revert")
            if "*" in self.cors_origins:
                logger.warning("CORS_ORIGINS contains '*' (open access)")


# Global settings instance
settings = Settings()
