"""
Chain client singleton for the configured network.
"""
import logging
import threading
from typing import Optional

from chain.runtime import Chain, WEI_PER_ETH
from config import settings
from exceptions import ChainConnectionError

logger = logging.getLogger(__name__)


class ChainClient:
    """Singleton holding the in-process chain for development networks."""

    _instance = None
    _chain: Optional[Chain] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ChainClient, cls).__new__(cls)
            cls._instance._init_lock = threading.Lock()
        return cls._instance

    def _initialize_chain(self) -> Chain:
        """Start the chain for settings.network."""
        config = settings.network_config
        if not settings.is_development_chain:
            raise ChainConnectionError(
                f"Network '{config.name}' needs an RPC provider ({settings.rpc_url}); "
                f"only development networks run in-process"
            )
        try:
            chain = Chain(
                network=config.name,
                chain_id=config.chain_id,
                mnemonic=settings.dev_mnemonic,
                account_count=settings.dev_account_count,
                initial_balance=settings.dev_account_balance_eth * WEI_PER_ETH,
            )
        except Exception as e:
            logger.error(f"Failed to initialize chain '{config.name}': {e}")
            raise
        return chain

    @property
    def chain(self) -> Chain:
        """Get the chain instance, starting it on first use."""
        if self._chain is None:
            with self._init_lock:
                if self._chain is None:
                    self._chain = self._initialize_chain()
        return self._chain

    @property
    def is_started(self) -> bool:
        return self._chain is not None

    def reset(self) -> None:
        """Drop the current chain; the next access starts a fresh one."""
        self._chain = None
        from services import deploy_service
        deploy_service.registry.clear()
        logger.info("Chain reset")


# Global client instance
chain_client = ChainClient()
