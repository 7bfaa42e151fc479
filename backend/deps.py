"""
Shared FastAPI dependencies.

Centralizes the chain, the deployed contracts, dev-account guards and
pagination so routers can import from a single place.
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Depends, Query

from chain.runtime import Chain
from chain_client import chain_client
from config import settings
from contracts.mock_v3_aggregator.contract import MockV3Aggregator
from contracts.tune_tokenize.contract import TuneTokenize
from domain.errors import NotFoundError, PermissionDeniedError
from services import deploy_service


class Pagination(TypedDict):
    limit: int
    offset: int


def pagination_params(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


def get_chain() -> Chain:
    """The chain for settings.network (started on first use)."""
    return chain_client.chain


def get_token_contract(chain: Chain = Depends(get_chain)) -> TuneTokenize:
    """The deployed TuneTokenize, deploying it first when AUTO_DEPLOY is on."""
    try:
        return deploy_service.get_tune_tokenize(chain, deploy_service.registry)
    except LookupError as e:
        raise NotFoundError("Contract", "TuneTokenize", details={"reason": str(e)})


def get_price_feed_contract(chain: Chain = Depends(get_chain)) -> MockV3Aggregator:
    """The mock price feed. Only development chains have one."""
    if not settings.is_development_chain:
        raise PermissionDeniedError(f"Price feed is read-only on '{settings.network}'")
    try:
        return deploy_service.get_price_feed(chain, deploy_service.registry)
    except LookupError as e:
        raise NotFoundError("Contract", "MockV3Aggregator", details={"reason": str(e)})


def require_dev_account(sender: str, chain: Chain) -> str:
    """
    Require that `sender` is one of the chain's development accounts.

    The in-process chain only signs for accounts derived from DEV_MNEMONIC.
    """
    if sender not in chain.accounts:
        raise PermissionDeniedError(
            f"{sender[:10]}... is not a development account on '{chain.network}'"
        )
    return sender
