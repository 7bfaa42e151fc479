"""
NFT endpoints — pricing, minting, burning, transfers and inventory.

Write endpoints send a transaction from a development account; reverts
surface as 400 responses carrying the contract's revert reason. Inventory
reads come from the listener's index, single-token reads from the chain.
"""
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chain.runtime import Chain
from contracts.tune_tokenize.contract import TuneTokenize
from database import get_db
from db_models import ContractEvent, IndexedToken
from deps import Pagination, get_chain, get_token_contract, pagination_params, require_dev_account
from domain.errors import NotFoundError
from domain.responses import paginated_response
from exceptions import ContractRevert
from models import (
    BurnRequest,
    BurnResponse,
    ContractEventResponse,
    IndexedTokenResponse,
    MintPriceResponse,
    MintRequest,
    MintResponse,
    PriceResponse,
    TokenResponse,
    TransferRequest,
    TransferResponse,
)
from services import token_service
from utils.validators import validated_wallet, validated_wallet_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/nft", tags=["nft"])


# ── Pricing ────────────────────────────────────────────────────────

@router.get("/price", response_model=PriceResponse)
async def get_price(token: TuneTokenize = Depends(get_token_contract)):
    """Latest ETH/USD answer read through the contract's price feed."""
    return PriceResponse(**token_service.get_price_info(token))


@router.get("/mint-price", response_model=MintPriceResponse)
async def get_mint_price(token: TuneTokenize = Depends(get_token_contract)):
    """Current mint fee in wei (and ETH) for the fixed USD price."""
    return MintPriceResponse(**token_service.get_mint_price(token))


# ── POST /nft/mint ─────────────────────────────────────────────────

@router.post("/mint", response_model=MintResponse)
async def mint_token(
    request: MintRequest,
    chain: Chain = Depends(get_chain),
    token: TuneTokenize = Depends(get_token_contract),
):
    """
    Mint a token for the sender.

    The sender pays `valueWei` (defaults to the current mint price) and
    becomes both owner and minter of the new token.
    """
    require_dev_account(request.sender, chain)
    result = token_service.mint(token, request.sender, request.token_uri, request.value_wei)
    return MintResponse(**result)


# ── POST /nft/burn ─────────────────────────────────────────────────

@router.post("/burn", response_model=BurnResponse)
async def burn_token(
    request: BurnRequest,
    chain: Chain = Depends(get_chain),
    token: TuneTokenize = Depends(get_token_contract),
):
    """Burn a token. Only its minter may burn it, and only while owning it."""
    require_dev_account(request.sender, chain)
    return BurnResponse(**token_service.burn(token, request.sender, request.token_id))


# ── POST /nft/transfer ─────────────────────────────────────────────

@router.post("/transfer", response_model=TransferResponse)
async def transfer_token(
    request: TransferRequest,
    chain: Chain = Depends(get_chain),
    token: TuneTokenize = Depends(get_token_contract),
):
    require_dev_account(request.sender, chain)
    return TransferResponse(**token_service.transfer(token, request.sender, request.to, request.token_id))


# ── Inventory (indexed) ────────────────────────────────────────────

@router.get("/tokens")
async def list_indexed_tokens(
    owner: Optional[str] = Query(None, description="Filter by current owner"),
    include_burned: bool = Query(False, alias="includeBurned"),
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    """Tokens seen by the event listener, newest first."""
    conditions = []
    if owner is not None:
        conditions.append(IndexedToken.owner_wallet == validated_wallet_query(owner))
    if not include_burned:
        conditions.append(IndexedToken.is_burned == False)  # noqa: E712

    total = (await db.execute(
        select(func.count(IndexedToken.id)).where(*conditions)
    )).scalar_one()

    result = await db.execute(
        select(IndexedToken)
        .where(*conditions)
        .order_by(IndexedToken.token_id.desc())
        .limit(page["limit"])
        .offset(page["offset"])
    )
    items = [
        IndexedTokenResponse.model_validate(row).model_dump(by_alias=True)
        for row in result.scalars().all()
    ]
    return paginated_response(items, limit=page["limit"], offset=page["offset"], total=total)


@router.get("/events")
async def list_indexed_events(
    event: Optional[str] = Query(None, description="Event name, e.g. Minted"),
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    """Raw contract events stored by the listener, oldest first."""
    conditions = [ContractEvent.event == event] if event else []

    total = (await db.execute(
        select(func.count(ContractEvent.id)).where(*conditions)
    )).scalar_one()

    result = await db.execute(
        select(ContractEvent)
        .where(*conditions)
        .order_by(ContractEvent.block_number, ContractEvent.log_index)
        .limit(page["limit"])
        .offset(page["offset"])
    )
    items = [
        ContractEventResponse(
            tx_hash=row.tx_hash,
            log_index=row.log_index,
            block_number=row.block_number,
            event=row.event,
            args=json.loads(row.args_json),
        ).model_dump(by_alias=True)
        for row in result.scalars().all()
    ]
    return paginated_response(items, limit=page["limit"], offset=page["offset"], total=total)


# ── On-chain reads ─────────────────────────────────────────────────

@router.get("/balance/{wallet}")
async def get_balance(
    wallet: str = Depends(validated_wallet),
    token: TuneTokenize = Depends(get_token_contract),
):
    """Number of TuneTokenize tokens held by a wallet."""
    return token_service.get_balance(token, wallet)


@router.get("/{token_id}", response_model=TokenResponse)
async def get_token(
    token_id: int,
    token: TuneTokenize = Depends(get_token_contract),
):
    """Owner, minter and URI of a live token."""
    try:
        return TokenResponse(**token_service.get_token(token, token_id))
    except ContractRevert:
        raise NotFoundError("Token", str(token_id))
