"""
Development account endpoints — the funded accounts of the in-process chain.
"""
import logging

from fastapi import APIRouter, Depends

from chain.runtime import Chain
from deps import get_chain
from models import AccountListResponse, AccountResponse
from services.token_service import format_eth
from utils.validators import validated_wallet

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/accounts", tags=["accounts"])


def _account(chain: Chain, index: int, address: str) -> AccountResponse:
    balance = chain.balance_of(address)
    return AccountResponse(
        index=index,
        address=address,
        balance_wei=balance,
        balance_eth=format_eth(balance),
        nonce=chain.nonce_of(address),
    )


@router.get("", response_model=AccountListResponse)
async def list_accounts(chain: Chain = Depends(get_chain)):
    """Development accounts with balances. Account 0 deploys the contracts."""
    return AccountListResponse(
        network=chain.network,
        accounts=[_account(chain, i, addr) for i, addr in enumerate(chain.accounts)],
    )


@router.get("/{wallet}/balance")
async def get_wallet_balance(
    wallet: str = Depends(validated_wallet),
    chain: Chain = Depends(get_chain),
):
    """Native balance of any address (contracts included)."""
    balance = chain.balance_of(wallet)
    return {"wallet": wallet, "balanceWei": balance, "balanceEth": format_eth(balance)}
