"""
Pydantic models for request/response validation.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional

from eth_utils import is_address, to_checksum_address


class ApiBase(BaseModel):
    """Shared base — allows construction by Python name or alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


def _checksum(value: str) -> str:
    if not is_address(value):
        raise ValueError(f"Invalid Ethereum address: {value[:12]}...")
    return to_checksum_address(value)


class SenderRequest(ApiBase):
    """Any request signed by a development account."""
    sender: str = Field(..., description="Sending account (one of the development accounts)")

    @field_validator("sender")
    @classmethod
    def _validate_sender(cls, v: str) -> str:
        return _checksum(v)


# ── Token Requests ──────────────────────────────────────────────────

class MintRequest(SenderRequest):
    """Mint a TuneTokenize token. An empty URI is rejected by the contract."""
    token_uri: str = Field(..., alias="tokenUri", description="Metadata URI for the token")
    value_wei: Optional[int] = Field(
        default=None,
        alias="valueWei",
        ge=0,
        description="Payment in wei (defaults to the current mint price)",
    )


class BurnRequest(SenderRequest):
    """Burn a token (minter only, while still owner)."""
    token_id: int = Field(..., alias="tokenId", ge=0)


class TransferRequest(SenderRequest):
    """Transfer a token to another address."""
    to: str = Field(..., description="Recipient address")
    token_id: int = Field(..., alias="tokenId", ge=0)

    @field_validator("to")
    @classmethod
    def _validate_to(cls, v: str) -> str:
        return _checksum(v)


class WithdrawRequest(SenderRequest):
    """Withdraw the contract balance (owner only)."""


class UpdateAnswerRequest(ApiBase):
    """Set a new answer on the mock price feed (development chains only)."""
    answer: int = Field(..., description="Raw answer in the feed's decimals")


# ── Token Responses ─────────────────────────────────────────────────

class PriceResponse(ApiBase):
    price: int
    decimals: int
    round_id: int = Field(..., alias="roundId")
    updated_at: int = Field(..., alias="updatedAt")
    price_feed: str = Field(..., alias="priceFeed")


class MintPriceResponse(ApiBase):
    wei: int
    eth: str


class MintResponse(ApiBase):
    """Response after minting a token."""
    tx_hash: str = Field(..., alias="txHash")
    token_id: int = Field(..., alias="tokenId")
    token_uri: str = Field(..., alias="tokenUri")
    owner: str
    paid_wei: int = Field(..., alias="paidWei")
    block_number: int = Field(..., alias="blockNumber")


class BurnResponse(ApiBase):
    tx_hash: str = Field(..., alias="txHash")
    token_id: int = Field(..., alias="tokenId")
    block_number: int = Field(..., alias="blockNumber")
    balance: int


class TransferResponse(ApiBase):
    tx_hash: str = Field(..., alias="txHash")
    token_id: int = Field(..., alias="tokenId")
    from_: str = Field(..., alias="from")
    to: str
    block_number: int = Field(..., alias="blockNumber")


class WithdrawResponse(ApiBase):
    tx_hash: str = Field(..., alias="txHash")
    owner: str
    amount_wei: int = Field(..., alias="amountWei")
    amount_eth: str = Field(..., alias="amountEth")
    block_number: int = Field(..., alias="blockNumber")


class TokenResponse(ApiBase):
    """On-chain view of a live token."""
    token_id: int = Field(..., alias="tokenId")
    owner: str
    minter: str
    token_uri: str = Field(..., alias="tokenUri")


class IndexedTokenResponse(ApiBase):
    """Token row maintained by the event listener."""
    token_id: int = Field(..., alias="tokenId")
    contract_address: str = Field(..., alias="contractAddress")
    owner_wallet: Optional[str] = Field(None, alias="ownerWallet")
    minter_wallet: str = Field(..., alias="minterWallet")
    token_uri: str = Field(..., alias="tokenUri")
    is_burned: bool = Field(..., alias="isBurned")
    minted_tx: str = Field(..., alias="mintedTx")
    minted_block: int = Field(..., alias="mintedBlock")


class ContractEventResponse(ApiBase):
    tx_hash: str = Field(..., alias="txHash")
    log_index: int = Field(..., alias="logIndex")
    block_number: int = Field(..., alias="blockNumber")
    event: str
    args: dict


# ── Contract Responses ──────────────────────────────────────────────

class DeploymentResponse(ApiBase):
    name: str
    address: str
    tx_hash: str = Field(..., alias="txHash")
    block_number: int = Field(..., alias="blockNumber")
    network: str
    chain_id: int = Field(..., alias="chainId")
    args: list = Field(default_factory=list)
    deployed_at: Optional[str] = Field(None, alias="deployedAt")


class ContractStatsResponse(ApiBase):
    """On-chain TuneTokenize state."""
    address: str
    name: str
    symbol: str
    owner: str
    price_feed: str = Field(..., alias="priceFeed")
    balance_wei: int = Field(..., alias="balanceWei")
    current_token_id: int = Field(..., alias="currentTokenId")
    block_number: int = Field(..., alias="blockNumber")


class AccountResponse(ApiBase):
    index: int
    address: str
    balance_wei: int = Field(..., alias="balanceWei")
    balance_eth: str = Field(..., alias="balanceEth")
    nonce: int


class AccountListResponse(ApiBase):
    network: str
    accounts: List[AccountResponse]


# ── Error Models ────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error message")
    detail: str = Field(default="", description="Detailed error information")
