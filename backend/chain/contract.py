"""
Contract base class and entry-point decorators for the in-process chain.

Contracts are plain Python classes. Their instance attributes are contract
storage: the chain snapshots them before each transaction and restores
them when it reverts, so storage must hold plain data (ints, strings,
dicts, lists), never references to other contracts. Refer to other
contracts by address and resolve them with `self.chain.contract_at()`.

Entry points:
    @external            — state-changing, rejects attached value
    @external(payable=True)
    @view                — read-only, called directly

Calling an @external method from outside the chain sends a transaction
(`sender=` defaults to the chain's first account) and returns its Receipt.
"""
from __future__ import annotations

import copy
import functools
from typing import TYPE_CHECKING, Any, Callable, Dict, Tuple

from exceptions import ChainError, ContractRevert

if TYPE_CHECKING:
    from chain.runtime import Chain, Msg

RUNTIME_ATTRS = frozenset({"chain", "address", "deploy_tx_hash"})


def external(func: Callable | None = None, *, payable: bool = False):
    """Mark a method as a state-changing entry point."""

    def decorate(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(self: "Contract", *args: Any, sender: str | None = None, value: int = 0, **kwargs: Any):
            if value and not payable:
                raise ContractRevert(f"{fn.__name__}: function is not payable")
            return self.chain.execute(self, fn, args, kwargs, sender=sender, value=value)

        wrapper.abi_kind = "payable" if payable else "nonpayable"
        return wrapper

    if func is not None:
        return decorate(func)
    return decorate


def view(fn: Callable) -> Callable:
    """Mark a method as a read-only entry point."""
    fn.abi_kind = "view"
    return fn


class Contract:
    """Base class for contracts executed by `chain.runtime.Chain`."""

    # Merged along the MRO: event name -> ordered argument names
    EVENTS: Dict[str, Tuple[str, ...]] = {}
    # Merged along the MRO: ContractRevert subclasses this contract raises
    ERRORS: Tuple[type, ...] = ()

    chain: "Chain"
    address: str
    deploy_tx_hash: str

    # ── Execution context ───────────────────────────────────────────

    @property
    def msg(self) -> "Msg":
        return self.chain.current_msg

    @property
    def block_timestamp(self) -> int:
        return self.chain.block_timestamp

    @property
    def balance(self) -> int:
        """Native balance held by this contract, in wei."""
        return self.chain.balance_of(self.address)

    # ── Events ──────────────────────────────────────────────────────

    @classmethod
    def events(cls) -> Dict[str, Tuple[str, ...]]:
        merged: Dict[str, Tuple[str, ...]] = {}
        for klass in reversed(cls.__mro__):
            merged.update(klass.__dict__.get("EVENTS", {}))
        return merged

    @classmethod
    def errors(cls) -> Tuple[type, ...]:
        merged = []
        for klass in reversed(cls.__mro__):
            for error in klass.__dict__.get("ERRORS", ()):
                if error not in merged:
                    merged.append(error)
        return tuple(merged)

    def emit(self, event: str, *values: Any) -> None:
        fields = self.events().get(event)
        if fields is None:
            raise ChainError(f"{type(self).__name__} does not declare event '{event}'")
        if len(fields) != len(values):
            raise ChainError(f"Event '{event}' takes {len(fields)} arguments, got {len(values)}")
        self.chain.emit_log(self.address, event, dict(zip(fields, values)))

    # ── Storage snapshots ───────────────────────────────────────────

    def _export_state(self) -> Dict[str, Any]:
        return copy.deepcopy({k: v for k, v in vars(self).items() if k not in RUNTIME_ATTRS})

    def _import_state(self, state: Dict[str, Any]) -> None:
        for key in [k for k in vars(self) if k not in RUNTIME_ATTRS]:
            delattr(self, key)
        self.__dict__.update(copy.deepcopy(state))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} at {getattr(self, 'address', '?')}>"
