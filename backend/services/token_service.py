"""
Token Service — mint, burn, transfer and withdraw on TuneTokenize.

Thin layer between the HTTP routes and the contract: each function sends
one transaction (or reads state) and returns a JSON-ready dict. Contract
reverts propagate as ContractRevert so callers can map the reason.
"""
import logging
from decimal import Decimal
from typing import Optional

from chain.runtime import WEI_PER_ETH, Receipt, to_address
from contracts.tune_tokenize.contract import TuneTokenize
from exceptions import ChainError

logger = logging.getLogger(__name__)


def format_eth(wei: int) -> str:
    """Render a wei amount as an exact ETH decimal string."""
    value = Decimal(wei) / Decimal(WEI_PER_ETH)
    text = format(value.normalize(), "f")
    return text if "." not in text else text.rstrip("0").rstrip(".")


def get_price_info(token: TuneTokenize) -> dict:
    """Latest price feed answer as seen by the contract."""
    feed = token.chain.contract_at(token.price_feed())
    round_data = feed.latest_round_data()
    return {
        "price": token.get_latest_price(),
        "decimals": feed.decimals(),
        "roundId": round_data.round_id,
        "updatedAt": round_data.updated_at,
        "priceFeed": token.price_feed(),
    }


def get_mint_price(token: TuneTokenize) -> dict:
    wei = token.get_mint_price_eth()
    return {"wei": wei, "eth": format_eth(wei)}


def _minted_token_id(receipt: Receipt) -> int:
    events = receipt.events("Minted")
    if not events:
        raise ChainError(f"Mint transaction {receipt.tx_hash} emitted no Minted event")
    return events[0].args["tokenId"]


def mint(token: TuneTokenize, sender: str, token_uri: str, value_wei: Optional[int] = None) -> dict:
    """
    Mint a token for `sender`.

    Args:
        token: Deployed TuneTokenize
        sender: Paying account (becomes owner and minter)
        token_uri: Metadata URI, must be non-empty
        value_wei: Payment; defaults to the current mint price

    Returns:
        dict: {txHash, tokenId, tokenUri, owner, paidWei, blockNumber}
    """
    sender = to_address(sender)
    if value_wei is None:
        value_wei = token.get_mint_price_eth()

    logger.info(f"Minting TuneTokenize for {sender[:10]}... (paying {format_eth(value_wei)} ETH)")
    receipt = token.mint_token(token_uri, sender=sender, value=value_wei)
    token_id = _minted_token_id(receipt)
    logger.info(f"  Minted token #{token_id} (tx {receipt.tx_hash[:10]}...)")

    return {
        "txHash": receipt.tx_hash,
        "tokenId": token_id,
        "tokenUri": token_uri,
        "owner": sender,
        "paidWei": value_wei,
        "blockNumber": receipt.block_number,
    }


def burn(token: TuneTokenize, sender: str, token_id: int) -> dict:
    """Burn a token; only its minter may do so while still owning it."""
    sender = to_address(sender)
    receipt = token.burn(token_id, sender=sender)
    logger.info(f"Burned token #{token_id} for {sender[:10]}... (tx {receipt.tx_hash[:10]}...)")
    return {
        "txHash": receipt.tx_hash,
        "tokenId": token_id,
        "blockNumber": receipt.block_number,
        "balance": token.balance_of(sender),
    }


def transfer(token: TuneTokenize, sender: str, to: str, token_id: int) -> dict:
    """Transfer a token owned by (or approved to) sender."""
    sender = to_address(sender)
    owner = token.owner_of(token_id)
    receipt = token.transfer_from(owner, to_address(to), token_id, sender=sender)
    return {
        "txHash": receipt.tx_hash,
        "tokenId": token_id,
        "from": owner,
        "to": to_address(to),
        "blockNumber": receipt.block_number,
    }


def withdraw(token: TuneTokenize, sender: str) -> dict:
    """
    Withdraw the contract balance to its owner.

    Returns:
        dict: {txHash, owner, amountWei, amountEth, blockNumber}
    """
    sender = to_address(sender)
    amount = token.balance
    receipt = token.withdraw(sender=sender)
    logger.info(f"Withdrew {format_eth(amount)} ETH to {token.owner()[:10]}...")
    return {
        "txHash": receipt.tx_hash,
        "owner": token.owner(),
        "amountWei": amount,
        "amountEth": format_eth(amount),
        "blockNumber": receipt.block_number,
    }


def get_token(token: TuneTokenize, token_id: int) -> dict:
    """On-chain view of a live token. Reverts with 'ERC721: invalid token ID' if absent."""
    owner = token.owner_of(token_id)
    return {
        "tokenId": token_id,
        "owner": owner,
        "minter": token.minters(token_id),
        "tokenUri": token.token_uri(token_id),
    }


def get_balance(token: TuneTokenize, wallet: str) -> dict:
    wallet = to_address(wallet)
    return {"wallet": wallet, "balance": token.balance_of(wallet)}
