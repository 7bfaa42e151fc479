"""
Deploy MockV3Aggregator (development chains) and TuneTokenize.

Usage (from backend/):
    python -m scripts.deploy                          # all tags on settings.network
    python -m scripts.deploy --tags mocks             # only the price feed mock
    python -m scripts.deploy --out data/deployments.json
"""
import argparse
import logging
import sys

from chain_client import chain_client
from config import settings
from domain.constants import DEPLOY_TAGS
from exceptions import ChainError
from services import deploy_service

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Deploy Tune Tokenize contracts")
    parser.add_argument("--network", default=settings.network, help="Network name (default: %(default)s)")
    parser.add_argument("--tags", nargs="+", default=["all"], choices=sorted(DEPLOY_TAGS))
    parser.add_argument("--out", default=None, help="Write deployments to this JSON file")
    args = parser.parse_args(argv)

    settings.network = args.network
    try:
        settings.validate_network_settings()
        chain = chain_client.chain
        deployed = deploy_service.deploy(chain, deploy_service.registry, tags=args.tags)
    except (ValueError, ChainError) as e:
        logger.error(f"Deployment failed: {e}")
        return 1

    for name, deployment in deployed.items():
        print(f"{name:<18} {deployment.address}  (block {deployment.block_number})")

    if args.out:
        deploy_service.registry.export_json(args.out)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    sys.exit(main())
