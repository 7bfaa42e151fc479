"""
TuneTokenize — ERC-721 tune NFTs priced in USD through a price feed.

Anyone can mint a token with a metadata URI by paying the current mint
fee in native currency. The fee is a fixed USD amount converted at the
price feed's latest answer. The original minter may burn a token while
they still own it, and the owner withdraws accumulated payments.

On-chain State:
    _price_feed   (address)         — price feed contract (latest_round_data)
    _token_ids    (uint)            — next token id to assign, starts at 1
    _minters      (id -> address)   — recorded minter per live token
    + ERC-721 ownership/URI storage, owner, reentrancy status

Methods:
    get_latest_price()        — raw price feed answer
    get_mint_price_eth()      — mint fee in wei
    mint_token(token_uri)     — payable; mints the next id to the caller
    burn(token_id)            — minter-while-owner only
    withdraw()                — owner only; sends the whole balance
    get_current_token_id()    — next id to be assigned
    minters(token_id)         — recorded minter (zero address if none)

Payments above the fee are kept by the contract and are withdrawable.
"""
from typing import Dict

from chain.contract import external, view
from chain.runtime import WEI_PER_ETH, ZERO_ADDRESS, to_address
from contracts.common.access import Ownable, ReentrancyGuard, non_reentrant, only_owner
from contracts.common.erc721 import ERC721
from exceptions import ContractRevert

# ── Contract Metadata ──────────────────────────────────────────────
CONTRACT_NAME = "TuneTokenize"
CONTRACT_DESCRIPTION = (
    "ERC-721 tune tokens minted for a fixed USD fee converted to ETH "
    "at the latest price feed answer."
)
CONTRACT_VERSION = "1.0.0"
CONTRACT_METHODS = [
    "get_latest_price", "get_mint_price_eth", "mint_token",
    "burn", "withdraw", "get_current_token_id", "minters",
]

TOKEN_NAME = "Tune Tokenize"
TOKEN_SYMBOL = "TT"
MINT_PRICE_USD = 50
PRICE_DECIMALS = 18


# ── Errors ─────────────────────────────────────────────────────────

class InvalidTokenUri(ContractRevert):
    reason = "TuneTokenize__InvalidTokenUri"


class NeedMoreETHSent(ContractRevert):
    reason = "TuneTokenize__NeedMoreETHSent"


class CanOnlyBeBurnedIfOwnedByMinter(ContractRevert):
    reason = "TuneTokenize__CanOnlyBeBurnedIfOwnedByMinter"


class NothingToWithdraw(ContractRevert):
    reason = "TuneTokenize__NothingToWithdraw"


class InvalidPrice(ContractRevert):
    reason = "TuneTokenize__InvalidPrice"


class TransferFailed(ContractRevert):
    reason = "TuneTokenize__TransferFailed"


def mint_price_wei(answer: int, decimals: int, price_usd: int = MINT_PRICE_USD) -> int:
    """
    Convert a USD price to wei at a price feed answer.

    The answer is scaled to 18 decimals, then
    fee = ceil(price_usd * 1e18 * 1e18 / price), in integers.
    Rounding up means the fee never undercharges and is always >= 1 wei.

    Raises:
        InvalidPrice: answer is not positive or scales down to zero
    """
    if answer <= 0:
        raise InvalidPrice()
    if decimals <= PRICE_DECIMALS:
        price = answer * 10 ** (PRICE_DECIMALS - decimals)
    else:
        price = answer // 10 ** (decimals - PRICE_DECIMALS)
    if price == 0:
        raise InvalidPrice()
    return -(-price_usd * WEI_PER_ETH * 10 ** PRICE_DECIMALS // price)


class TuneTokenize(ERC721, Ownable, ReentrancyGuard):
    EVENTS = {"Minted": ("tokenId", "tokenURI")}
    ERRORS = (
        InvalidTokenUri,
        NeedMoreETHSent,
        CanOnlyBeBurnedIfOwnedByMinter,
        NothingToWithdraw,
        InvalidPrice,
        TransferFailed,
    )

    def __init__(self, price_feed_address: str):
        ERC721.__init__(self, TOKEN_NAME, TOKEN_SYMBOL)
        Ownable.__init__(self)
        ReentrancyGuard.__init__(self)
        self._price_feed = to_address(price_feed_address)
        self._token_ids = 1
        self._minters: Dict[int, str] = {}

    # ── Pricing ─────────────────────────────────────────────────────

    @view
    def price_feed(self) -> str:
        return self._price_feed

    @view
    def get_latest_price(self) -> int:
        return self.chain.contract_at(self._price_feed).latest_round_data().answer

    @view
    def get_mint_price_eth(self) -> int:
        feed = self.chain.contract_at(self._price_feed)
        return mint_price_wei(feed.latest_round_data().answer, feed.decimals())

    # ── Tokens ──────────────────────────────────────────────────────

    @view
    def get_current_token_id(self) -> int:
        return self._token_ids

    @view
    def minters(self, token_id: int) -> str:
        return self._minters.get(token_id, ZERO_ADDRESS)

    @external(payable=True)
    def mint_token(self, token_uri: str) -> None:
        if not token_uri:
            raise InvalidTokenUri()
        if self.msg.value < self.get_mint_price_eth():
            raise NeedMoreETHSent()

        token_id = self._token_ids
        self._token_ids += 1
        self._minters[token_id] = self.msg.sender
        self._safe_mint(self.msg.sender, token_id)
        self._set_token_uri(token_id, token_uri)
        self.emit("Minted", token_id, token_uri)

    @external
    def burn(self, token_id: int) -> None:
        sender = self.msg.sender
        if self._owners.get(token_id) != sender or self._minters.get(token_id) != sender:
            raise CanOnlyBeBurnedIfOwnedByMinter()
        del self._minters[token_id]
        self._burn(token_id)

    # ── Payments ────────────────────────────────────────────────────

    @external
    @only_owner
    @non_reentrant
    def withdraw(self) -> None:
        amount = self.balance
        if amount == 0:
            raise NothingToWithdraw()
        try:
            self.chain.send_value(self._owner, amount)
        except ContractRevert as exc:
            raise TransferFailed() from exc
