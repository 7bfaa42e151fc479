"""
Ownership and reentrancy guards shared by contracts.

    Ownable          — single owner set to the deployer, `@only_owner`
    ReentrancyGuard  — `@non_reentrant` rejects re-entry while a guarded
                       call is still executing
"""
import functools
from typing import Callable

from chain.contract import Contract, external, view
from chain.runtime import ZERO_ADDRESS, to_address
from exceptions import ContractRevert

_NOT_ENTERED = 1
_ENTERED = 2


def only_owner(fn: Callable) -> Callable:
    """Restrict an entry point to the contract owner. Apply under @external."""

    @functools.wraps(fn)
    def wrapper(self: "Ownable", *args, **kwargs):
        self._check_owner()
        return fn(self, *args, **kwargs)

    return wrapper


def non_reentrant(fn: Callable) -> Callable:
    """Reject nested calls into any guarded entry point. Apply under @external."""

    @functools.wraps(fn)
    def wrapper(self: "ReentrancyGuard", *args, **kwargs):
        if self._status == _ENTERED:
            raise ContractRevert("ReentrancyGuard: reentrant call")
        self._status = _ENTERED
        try:
            return fn(self, *args, **kwargs)
        finally:
            self._status = _NOT_ENTERED

    return wrapper


class Ownable(Contract):
    EVENTS = {"OwnershipTransferred": ("previousOwner", "newOwner")}

    def __init__(self):
        self._owner = ZERO_ADDRESS
        self._transfer_ownership(self.msg.sender)

    @view
    def owner(self) -> str:
        return self._owner

    @external
    @only_owner
    def transfer_ownership(self, new_owner: str) -> None:
        new_owner = to_address(new_owner)
        if new_owner == ZERO_ADDRESS:
            raise ContractRevert("Ownable: new owner is the zero address")
        self._transfer_ownership(new_owner)

    @external
    @only_owner
    def renounce_ownership(self) -> None:
        self._transfer_ownership(ZERO_ADDRESS)

    def _check_owner(self) -> None:
        if self.msg.sender != self._owner:
            raise ContractRevert("Ownable: caller is not the owner")

    def _transfer_ownership(self, new_owner: str) -> None:
        previous, self._owner = self._owner, new_owner
        self.emit("OwnershipTransferred", previous, new_owner)


class ReentrancyGuard(Contract):
    def __init__(self):
        self._status = _NOT_ENTERED
