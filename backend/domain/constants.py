"""
Network table and deployment constants used across services/routers.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    chain_id: int
    block_confirmations: int
    price_feed_address: Optional[str] = None
    rpc_url: Optional[str] = None  # "{infura_api_key}" is substituted at load time


SEPOLIA_ETH_USD_FEED = "0x694AA1769357215DE4FAC081bf1f309aDC325306"

NETWORKS = {
    "hardhat": NetworkConfig("hardhat", 31337, 1, price_feed_address=SEPOLIA_ETH_USD_FEED),
    "localhost": NetworkConfig("localhost", 31337, 1),
    "sepolia": NetworkConfig(
        "sepolia",
        11155111,
        6,
        price_feed_address=SEPOLIA_ETH_USD_FEED,
        rpc_url="https://sepolia.infura.io/v3/{infura_api_key}",
    ),
}

# Networks served by the in-process chain; mocks are deployed on these
DEVELOPMENT_CHAINS = ("hardhat", "localhost")

# MockV3Aggregator constructor arguments ($200 per ETH, 18 decimals)
DECIMALS = 18
INITIAL_PRICE = 200 * 10 ** 18

# Deployment names and tags
MOCK_AGGREGATOR = "MockV3Aggregator"
TUNE_TOKENIZE = "TuneTokenize"
DEPLOY_TAGS = {
    "mocks": (MOCK_AGGREGATOR,),
    "tune_tokenize": (TUNE_TOKENIZE,),
    "all": (MOCK_AGGREGATOR, TUNE_TOKENIZE),
}
