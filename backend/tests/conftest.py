"""
Pytest configuration and shared fixtures for Tune Tokenize tests.

Provides a deployed development chain (snapshotted once, reverted after
every test), an in-memory SQLite DB, and the HTTP test client.
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values before config.Settings is instantiated
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("NETWORK", "hardhat")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("AUTO_DEPLOY", "true")
os.environ.setdefault("DEV_ACCOUNT_COUNT", "5")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")

from dataclasses import dataclass
from typing import AsyncGenerator, List

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from chain.runtime import WEI_PER_ETH, Chain
from contracts.mock_v3_aggregator.contract import MockV3Aggregator
from contracts.tune_tokenize.contract import TuneTokenize
from database import create_engine_for, init_db, make_session_factory
from domain.constants import MOCK_AGGREGATOR, TUNE_TOKENIZE
from services.deploy_service import DeploymentRegistry, deploy

# First two accounts of the "test test ... junk" mnemonic
DEPLOYER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
ACCOUNT_1 = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

VALID_WALLET_1 = DEPLOYER
VALID_WALLET_2 = ACCOUNT_1
INVALID_WALLET_SHORT = "0x1234"
INVALID_WALLET_BAD_CHECKSUM = "0xF39fd6e51aad88F6F4ce6aB8827279cffFb92266"

ONE_ETH = WEI_PER_ETH
TOKEN_URI = "tokenURI"


@dataclass
class Deployed:
    chain: Chain
    registry: DeploymentRegistry
    token: TuneTokenize
    mock: MockV3Aggregator
    accounts: List[str]

    @property
    def deployer(self) -> str:
        return self.accounts[0]


# ── Chain Fixtures ───────────────────────────────────────────────────


@pytest.fixture(scope="session")
def _deployed_base() -> tuple:
    """Deploy the mock + TuneTokenize once and snapshot the result."""
    chain = Chain(account_count=5)
    registry = DeploymentRegistry()
    deploy(chain, registry, tags=("all",))
    deployed = Deployed(
        chain=chain,
        registry=registry,
        token=chain.contract_at(registry.get(TUNE_TOKENIZE).address),
        mock=chain.contract_at(registry.get(MOCK_AGGREGATOR).address),
        accounts=chain.accounts,
    )
    return deployed, chain.snapshot()


@pytest.fixture
def deployed(_deployed_base) -> Deployed:
    """Fresh deployment state for every test (reverts to the snapshot afterwards)."""
    deployed, snapshot_id = _deployed_base
    yield deployed
    deployed.chain.revert(snapshot_id)


@pytest.fixture
def chain() -> Chain:
    """A bare chain with nothing deployed."""
    return Chain(account_count=3)


# ── Database Fixtures ────────────────────────────────────────────────


@pytest_asyncio.fixture(scope="function")
async def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = create_engine_for("sqlite:///:memory:")
    await init_db(engine)

    yield make_session_factory(engine)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
