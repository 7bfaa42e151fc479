"""
Deploy service — contract metadata, network-aware deployment, registry.

Deployment flow (tags "mocks", "tune_tokenize", "all"):
    1. On development chains, deploy MockV3Aggregator(DECIMALS, INITIAL_PRICE)
    2. Deploy TuneTokenize wired to the mock (development) or to the
       network's price feed (live networks)
    3. Wait for the network's block confirmations
    4. Record each deployment in the registry (exportable to JSON)
"""
import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from chain.runtime import Chain, Receipt
from config import settings
from contracts.mock_v3_aggregator.contract import MockV3Aggregator
from contracts.tune_tokenize.contract import TuneTokenize
from domain.constants import DEPLOY_TAGS, DEVELOPMENT_CHAINS, MOCK_AGGREGATOR, NETWORKS, TUNE_TOKENIZE

logger = logging.getLogger(__name__)

# Path to contracts directory
CONTRACTS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "contracts")


def _get_compiled_dir(contract_name: str) -> str:
    """Get the compiled output directory for a contract."""
    return os.path.join(CONTRACTS_DIR, contract_name, "compiled")


def get_contract_info(contract_name: str) -> dict:
    """
    Get contract metadata from contract_info.json.

    Returns:
        Dict with contract info, or {"compiled": False} if not exported yet.
    """
    info_path = os.path.join(_get_compiled_dir(contract_name), "contract_info.json")
    if os.path.exists(info_path):
        with open(info_path) as f:
            info = json.load(f)
        return {"compiled": True, **info}
    return {"compiled": False, "error": f"Contract '{contract_name}' not exported yet"}


def get_contract_abi(contract_name: str) -> list:
    """Load compiled/abi.json for a contract."""
    abi_path = os.path.join(_get_compiled_dir(contract_name), "abi.json")
    if not os.path.exists(abi_path):
        raise FileNotFoundError(
            f"ABI not found: {abi_path}. Run: python -m contracts.compile {contract_name}"
        )
    with open(abi_path) as f:
        return json.load(f)


def list_contracts() -> list[dict]:
    """List all contracts in the contracts directory."""
    contracts = []
    for entry in sorted(os.listdir(CONTRACTS_DIR)):
        contract_dir = os.path.join(CONTRACTS_DIR, entry)
        if os.path.exists(os.path.join(contract_dir, "contract.py")):
            contracts.append({"name": entry, **get_contract_info(entry)})
    return contracts


# ════════════════════════════════════════════════════════════════════
# Deployment registry
# ════════════════════════════════════════════════════════════════════


@dataclass
class Deployment:
    name: str
    address: str
    tx_hash: str
    block_number: int
    network: str
    chain_id: int
    args: List = field(default_factory=list)
    deployed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class DeploymentRegistry:
    """Deployments of the current chain, by contract name."""

    def __init__(self):
        self._deployments: Dict[str, Deployment] = {}

    def record(self, deployment: Deployment) -> None:
        self._deployments[deployment.name] = deployment

    def get(self, name: str) -> Optional[Deployment]:
        return self._deployments.get(name)

    def all(self) -> List[Deployment]:
        return list(self._deployments.values())

    def clear(self) -> None:
        self._deployments.clear()

    def export_json(self, path: str) -> None:
        """Write {name: deployment} to a JSON file."""
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "w") as f:
            json.dump({d.name: asdict(d) for d in self.all()}, f, indent=2)
        logger.info(f"Deployments written to {path}")


# Registry for the chain held by chain_client
registry = DeploymentRegistry()


def wait_for_confirmations(chain: Chain, receipt: Receipt, confirmations: int) -> int:
    """
    Mine until the receipt's block has the requested confirmations.

    Returns:
        Number of confirmations reached
    """
    target = receipt.block_number + confirmations - 1
    if chain.block_number < target:
        chain.mine(target - chain.block_number)
    return chain.block_number - receipt.block_number + 1


def _record(chain: Chain, registry: DeploymentRegistry, name: str, contract, args: list) -> Deployment:
    receipt = chain.get_receipt(contract.deploy_tx_hash)
    confirmations = NETWORKS[chain.network].block_confirmations if chain.network in NETWORKS else 1
    wait_for_confirmations(chain, receipt, confirmations)
    deployment = Deployment(
        name=name,
        address=contract.address,
        tx_hash=receipt.tx_hash,
        block_number=receipt.block_number,
        network=chain.network,
        chain_id=chain.chain_id,
        args=args,
    )
    registry.record(deployment)
    return deployment


def deploy_mocks(
    chain: Chain,
    registry: DeploymentRegistry,
    decimals: int | None = None,
    initial_answer: int | None = None,
    deployer: str | None = None,
) -> Optional[Deployment]:
    """Deploy MockV3Aggregator on development chains. Skipped elsewhere."""
    if chain.network not in DEVELOPMENT_CHAINS:
        logger.info(f"Network '{chain.network}' is live; skipping mocks")
        return None

    decimals = settings.mock_decimals if decimals is None else decimals
    initial_answer = settings.mock_initial_price if initial_answer is None else initial_answer

    logger.info("Local network detected! Deploying mocks...")
    mock = chain.deploy(MockV3Aggregator, decimals, initial_answer, sender=deployer)
    deployment = _record(chain, registry, MOCK_AGGREGATOR, mock, [decimals, initial_answer])
    logger.info(f"Mocks deployed! MockV3Aggregator at {deployment.address}")
    return deployment


def deploy_tune_tokenize(
    chain: Chain,
    registry: DeploymentRegistry,
    price_feed_address: str | None = None,
    deployer: str | None = None,
) -> Deployment:
    """
    Deploy TuneTokenize.

    The price feed is, in order: the explicit argument, the registered mock
    on development chains, or the configured network feed.
    """
    if price_feed_address is None:
        mock = registry.get(MOCK_AGGREGATOR)
        if chain.network in DEVELOPMENT_CHAINS and mock is not None:
            price_feed_address = mock.address
        else:
            price_feed_address = settings.resolved_price_feed_address
    if not price_feed_address:
        raise ValueError(f"No price feed address available for network '{chain.network}'")

    token = chain.deploy(TuneTokenize, price_feed_address, sender=deployer)
    deployment = _record(chain, registry, TUNE_TOKENIZE, token, [price_feed_address])
    logger.info(f"TuneTokenize deployed to: {deployment.address}")
    return deployment


def deploy(
    chain: Chain,
    registry: DeploymentRegistry,
    tags: Iterable[str] = ("all",),
    deployer: str | None = None,
) -> Dict[str, Deployment]:
    """Run the deployments selected by tags, mocks first."""
    names = set()
    for tag in tags:
        if tag not in DEPLOY_TAGS:
            raise ValueError(f"Unknown deploy tag '{tag}'. Choose from: {', '.join(DEPLOY_TAGS)}")
        names.update(DEPLOY_TAGS[tag])

    deployed = {}
    if MOCK_AGGREGATOR in names:
        mock = deploy_mocks(chain, registry, deployer=deployer)
        if mock is not None:
            deployed[MOCK_AGGREGATOR] = mock
    if TUNE_TOKENIZE in names:
        deployed[TUNE_TOKENIZE] = deploy_tune_tokenize(chain, registry, deployer=deployer)
    return deployed


def ensure_deployed(chain: Chain, registry: DeploymentRegistry) -> Deployment:
    """Return the TuneTokenize deployment, deploying everything if auto_deploy allows."""
    deployment = registry.get(TUNE_TOKENIZE)
    if deployment is not None:
        return deployment
    if not settings.auto_deploy:
        raise LookupError("TuneTokenize is not deployed and AUTO_DEPLOY is disabled")
    return deploy(chain, registry, tags=("all",))[TUNE_TOKENIZE]


def get_tune_tokenize(chain: Chain, registry: DeploymentRegistry) -> TuneTokenize:
    deployment = ensure_deployed(chain, registry)
    return chain.contract_at(deployment.address)


def get_price_feed(chain: Chain, registry: DeploymentRegistry) -> MockV3Aggregator:
    """The mock price feed (development chains only)."""
    ensure_deployed(chain, registry)
    deployment = registry.get(MOCK_AGGREGATOR)
    if deployment is None:
        raise LookupError(f"No MockV3Aggregator deployed on '{chain.network}'")
    return chain.contract_at(deployment.address)


def get_contract_stats(chain: Chain, registry: DeploymentRegistry) -> dict:
    """
    Read TuneTokenize state.

    Returns:
        dict: {address, name, symbol, owner, priceFeed, balanceWei,
               currentTokenId, blockNumber}
    """
    token = get_tune_tokenize(chain, registry)
    return {
        "address": token.address,
        "name": token.name(),
        "symbol": token.symbol(),
        "owner": token.owner(),
        "priceFeed": token.price_feed(),
        "balanceWei": token.balance,
        "currentTokenId": token.get_current_token_id(),
        "blockNumber": chain.block_number,
    }


async def save_deployments(db, registry: DeploymentRegistry) -> int:
    """
    Persist registry entries to the deployments table (caller commits).

    Returns:
        Number of new rows
    """
    from db_models import DeploymentRecord
    from sqlalchemy import select

    added = 0
    for d in registry.all():
        existing = await db.execute(
            select(DeploymentRecord.id).where(
                DeploymentRecord.network == d.network,
                DeploymentRecord.address == d.address,
            )
        )
        if existing.scalar_one_or_none() is not None:
            continue
        db.add(DeploymentRecord(
            name=d.name,
            address=d.address,
            network=d.network,
            chain_id=d.chain_id,
            tx_hash=d.tx_hash,
            block_number=d.block_number,
            args_json=json.dumps(d.args),
        ))
        added += 1
    return added
