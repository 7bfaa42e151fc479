"""
ERC-721 non-fungible token with per-token URI storage.

Storage:
    _owners            token id -> owner address
    _balances          owner address -> number of tokens held
    _token_approvals   token id -> approved address
    _operator_approvals owner -> {operator: bool}
    _token_uris        token id -> metadata URI

Revert reasons follow the usual OpenZeppelin 4.x strings so callers
familiar with them can branch on the same messages.
"""
from typing import Dict

from chain.contract import Contract, external, view
from chain.runtime import ZERO_ADDRESS, to_address
from exceptions import ContractRevert

# bytes4(keccak256("onERC721Received(address,address,uint256,bytes)"))
ERC721_RECEIVED = 0x150B7A02

INTERFACE_ERC165 = 0x01FFC9A7
INTERFACE_ERC721 = 0x80AC58CD
INTERFACE_ERC721_METADATA = 0x5B5E139F


class ERC721(Contract):
    EVENTS = {
        "Transfer": ("from", "to", "tokenId"),
        "Approval": ("owner", "approved", "tokenId"),
        "ApprovalForAll": ("owner", "operator", "approved"),
    }

    def __init__(self, name: str, symbol: str):
        self._name = name
        self._symbol = symbol
        self._owners: Dict[int, str] = {}
        self._balances: Dict[str, int] = {}
        self._token_approvals: Dict[int, str] = {}
        self._operator_approvals: Dict[str, Dict[str, bool]] = {}
        self._token_uris: Dict[int, str] = {}

    # ── Views ───────────────────────────────────────────────────────

    @view
    def name(self) -> str:
        return self._name

    @view
    def symbol(self) -> str:
        return self._symbol

    @view
    def supports_interface(self, interface_id: int) -> bool:
        return interface_id in (INTERFACE_ERC165, INTERFACE_ERC721, INTERFACE_ERC721_METADATA)

    @view
    def balance_of(self, owner: str) -> int:
        owner = to_address(owner)
        if owner == ZERO_ADDRESS:
            raise ContractRevert("ERC721: address zero is not a valid owner")
        return self._balances.get(owner, 0)

    @view
    def owner_of(self, token_id: int) -> str:
        owner = self._owners.get(token_id)
        if owner is None:
            raise ContractRevert("ERC721: invalid token ID")
        return owner

    @view
    def token_uri(self, token_id: int) -> str:
        self._require_minted(token_id)
        return self._token_uris.get(token_id, "")

    @view
    def get_approved(self, token_id: int) -> str:
        self._require_minted(token_id)
        return self._token_approvals.get(token_id, ZERO_ADDRESS)

    @view
    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self._operator_approvals.get(to_address(owner), {}).get(to_address(operator), False)

    # ── Entry points ────────────────────────────────────────────────

    @external
    def approve(self, to: str, token_id: int) -> None:
        to = to_address(to)
        owner = self.owner_of(token_id)
        if to == owner:
            raise ContractRevert("ERC721: approval to current owner")
        sender = self.msg.sender
        if sender != owner and not self.is_approved_for_all(owner, sender):
            raise ContractRevert("ERC721: approve caller is not token owner or approved for all")
        self._approve(to, token_id)

    @external
    def set_approval_for_all(self, operator: str, approved: bool) -> None:
        owner = self.msg.sender
        operator = to_address(operator)
        if owner == operator:
            raise ContractRevert("ERC721: approve to caller")
        self._operator_approvals.setdefault(owner, {})[operator] = bool(approved)
        self.emit("ApprovalForAll", owner, operator, bool(approved))

    @external
    def transfer_from(self, from_: str, to: str, token_id: int) -> None:
        if not self._is_approved_or_owner(self.msg.sender, token_id):
            raise ContractRevert("ERC721: caller is not token owner or approved")
        self._transfer(to_address(from_), to_address(to), token_id)

    @external
    def safe_transfer_from(self, from_: str, to: str, token_id: int, data: bytes = b"") -> None:
        if not self._is_approved_or_owner(self.msg.sender, token_id):
            raise ContractRevert("ERC721: caller is not token owner or approved")
        from_, to = to_address(from_), to_address(to)
        self._transfer(from_, to, token_id)
        self._check_on_received(from_, to, token_id, data)

    # ── Internals ───────────────────────────────────────────────────

    def _exists(self, token_id: int) -> bool:
        return token_id in self._owners

    def _require_minted(self, token_id: int) -> None:
        if not self._exists(token_id):
            raise ContractRevert("ERC721: invalid token ID")

    def _is_approved_or_owner(self, spender: str, token_id: int) -> bool:
        owner = self.owner_of(token_id)
        return (
            spender == owner
            or self.is_approved_for_all(owner, spender)
            or self._token_approvals.get(token_id) == spender
        )

    def _approve(self, to: str, token_id: int) -> None:
        if to == ZERO_ADDRESS:
            self._token_approvals.pop(token_id, None)
        else:
            self._token_approvals[token_id] = to
        self.emit("Approval", self.owner_of(token_id), to, token_id)

    def _mint(self, to: str, token_id: int) -> None:
        if to == ZERO_ADDRESS:
            raise ContractRevert("ERC721: mint to the zero address")
        if self._exists(token_id):
            raise ContractRevert("ERC721: token already minted")
        self._balances[to] = self._balances.get(to, 0) + 1
        self._owners[token_id] = to
        self.emit("Transfer", ZERO_ADDRESS, to, token_id)

    def _safe_mint(self, to: str, token_id: int, data: bytes = b"") -> None:
        self._mint(to, token_id)
        self._check_on_received(ZERO_ADDRESS, to, token_id, data)

    def _burn(self, token_id: int) -> None:
        owner = self.owner_of(token_id)
        self._token_approvals.pop(token_id, None)
        self._balances[owner] -= 1
        del self._owners[token_id]
        self._token_uris.pop(token_id, None)
        self.emit("Transfer", owner, ZERO_ADDRESS, token_id)

    def _transfer(self, from_: str, to: str, token_id: int) -> None:
        if self.owner_of(token_id) != from_:
            raise ContractRevert("ERC721: transfer from incorrect owner")
        if to == ZERO_ADDRESS:
            raise ContractRevert("ERC721: transfer to the zero address")
        self._token_approvals.pop(token_id, None)
        self._balances[from_] -= 1
        self._balances[to] = self._balances.get(to, 0) + 1
        self._owners[token_id] = to
        self.emit("Transfer", from_, to, token_id)

    def _set_token_uri(self, token_id: int, uri: str) -> None:
        self._require_minted(token_id)
        self._token_uris[token_id] = uri

    def _check_on_received(self, from_: str, to: str, token_id: int, data: bytes) -> None:
        """Contract recipients must acknowledge the token via on_erc721_received."""
        if not self.chain.is_contract(to):
            return
        hook = getattr(self.chain.contract_at(to), "on_erc721_received", None)
        if hook is None or hook(self.msg.sender, from_, token_id, data) != ERC721_RECEIVED:
            raise ContractRevert("ERC721: transfer to non ERC721Receiver implementer")
