"""
In-process EVM-style chain for development networks.

State held here:
    balances   — native balance per address, in wei
    nonces     — per-sender transaction count
    contracts  — deployed Contract instances by address
    blocks     — one block per successful transaction
    logs       — events emitted by mined transactions

Execution model:
    Every external call made from outside the chain is one transaction.
    Transactions are serialized by a lock. The attached value moves first,
    then the contract code runs. A ContractRevert (or any other exception)
    restores the state captured before the transaction, so a failed call
    leaves no partial effects. Calls a contract makes while a transaction
    is running (contract to contract, native sends to a payable `receive`)
    are message calls inside that transaction and revert with it.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import rlp
from eth_utils import is_address, keccak, to_canonical_address, to_checksum_address

from chain.accounts import DEFAULT_MNEMONIC, derive_dev_accounts
from exceptions import (
    ChainError,
    ContractRevert,
    InsufficientBalanceError,
    UnknownContractError,
)

if TYPE_CHECKING:
    from chain.contract import Contract

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
WEI_PER_ETH = 10 ** 18
DEFAULT_ACCOUNT_BALANCE = 10_000 * WEI_PER_ETH


def to_address(value: str) -> str:
    """Return the checksummed form of an address. Raises ValueError if malformed."""
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return to_checksum_address(value)


def create_address(sender: str, nonce: int) -> str:
    """EVM CREATE address: last 20 bytes of keccak(rlp([sender, nonce]))."""
    encoded = rlp.encode([to_canonical_address(sender), nonce])
    return to_checksum_address(keccak(encoded)[12:])


# ── Records ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Msg:
    """Caller and attached value of the executing call."""
    sender: str
    value: int = 0


@dataclass(frozen=True)
class Frame:
    msg: Msg
    address: str  # contract whose code is executing


@dataclass(frozen=True)
class LogEntry:
    address: str
    event: str
    args: Dict[str, Any]
    block_number: int
    tx_hash: str
    log_index: int


@dataclass(frozen=True)
class Block:
    number: int
    timestamp: int
    tx_hashes: tuple = ()


@dataclass
class Receipt:
    """Result of a mined transaction."""
    tx_hash: str
    sender: str
    to: Optional[str]
    value: int
    block_number: int
    logs: List[LogEntry] = field(default_factory=list)
    contract_address: Optional[str] = None
    return_value: Any = None
    status: int = 1

    def events(self, name: str) -> List[LogEntry]:
        """All logs of the given event name, in emission order."""
        return [log for log in self.logs if log.event == name]


# ── Chain ───────────────────────────────────────────────────────────

class Chain:
    """A single-node development chain held in process memory."""

    def __init__(
        self,
        network: str = "hardhat",
        chain_id: int = 31337,
        mnemonic: str = DEFAULT_MNEMONIC,
        account_count: int = 10,
        initial_balance: int = DEFAULT_ACCOUNT_BALANCE,
    ):
        self.network = network
        self.chain_id = chain_id
        self._lock = threading.RLock()

        self._accounts = [acct.address for acct in derive_dev_accounts(mnemonic, account_count)]
        self._balances: Dict[str, int] = {addr: initial_balance for addr in self._accounts}
        self._nonces: Dict[str, int] = {}
        self._contracts: Dict[str, Contract] = {}
        self._blocks: List[Block] = [Block(number=0, timestamp=int(time.time()))]
        self._logs: List[LogEntry] = []
        self._receipts: Dict[str, Receipt] = {}
        self._time_offset = 0

        self._snapshots: Dict[int, dict] = {}
        self._next_snapshot_id = 1

        # Scratch state of the transaction being executed
        self._frames: List[Frame] = []
        self._pending_tx: Optional[str] = None
        self._pending_timestamp: Optional[int] = None
        self._pending_logs: List[LogEntry] = []

        logger.info(
            f"Chain '{network}' started (chain id {chain_id}, "
            f"{account_count} accounts funded with {initial_balance // WEI_PER_ETH} ETH)"
        )

    # ── Accounts & balances ─────────────────────────────────────────

    @property
    def accounts(self) -> List[str]:
        return list(self._accounts)

    @property
    def default_account(self) -> str:
        """Signer used when a transaction names no sender."""
        return self._accounts[0]

    def balance_of(self, address: str) -> int:
        return self._balances.get(to_address(address), 0)

    def set_balance(self, address: str, wei: int) -> None:
        """Overwrite an account balance (development helper)."""
        if wei < 0:
            raise ValueError("balance must be non-negative")
        with self._lock:
            self._balances[to_address(address)] = wei

    def nonce_of(self, address: str) -> int:
        return self._nonces.get(to_address(address), 0)

    # ── Contracts ───────────────────────────────────────────────────

    def is_contract(self, address: str) -> bool:
        return to_address(address) in self._contracts

    def contract_at(self, address: str) -> "Contract":
        contract = self._contracts.get(to_address(address))
        if contract is None:
            raise UnknownContractError(f"No contract deployed at {address}")
        return contract

    def deploy(self, contract_cls: type, *args: Any, sender: str | None = None, value: int = 0) -> "Contract":
        """
        Deploy a contract class. Constructor arguments are passed through.

        The contract address is the CREATE address of (sender, nonce), and
        the constructor runs with msg.sender == sender.
        """
        with self._lock:
            if self._frames:
                raise ChainError("Contract creation inside a transaction is not supported")
            sender = self._resolve_sender(sender)
            address = create_address(sender, self._nonces.get(sender, 0))

            contract = contract_cls.__new__(contract_cls)
            contract.chain = self
            contract.address = address

            def construct():
                self._contracts[address] = contract
                self._balances.setdefault(address, 0)
                contract.__init__(*args)

            receipt = self._run_transaction(sender, address, value, construct, contract_address=address)
            contract.deploy_tx_hash = receipt.tx_hash

        logger.info(f"Deployed {contract_cls.__name__} at {address} (tx {receipt.tx_hash[:10]}...)")
        return contract

    # ── Execution ───────────────────────────────────────────────────

    @property
    def in_transaction(self) -> bool:
        return bool(self._frames)

    @property
    def current_msg(self) -> Msg:
        if not self._frames:
            raise ChainError("No call is executing")
        return self._frames[-1].msg

    @property
    def current_address(self) -> str:
        """Address of the contract whose code is executing."""
        if not self._frames:
            raise ChainError("No call is executing")
        return self._frames[-1].address

    def execute(
        self,
        contract: "Contract",
        func: Callable,
        args: tuple,
        kwargs: dict,
        sender: str | None = None,
        value: int = 0,
    ) -> Any:
        """
        Run a state-changing contract method.

        Outside a transaction this starts one and returns its Receipt.
        Inside a transaction it is a message call from the executing
        contract and returns the method's return value.
        """
        if value < 0:
            raise ValueError("value must be non-negative")

        def body():
            return func(contract, *args, **kwargs)

        with self._lock:
            if self._frames:
                caller = self.current_address
                if sender is not None and to_address(sender) != caller:
                    raise ChainError("Calls made during execution are sent by the executing contract")
                return self._message_call(caller, contract.address, value, body)

            sender = self._resolve_sender(sender)
            return self._run_transaction(sender, contract.address, value, body)

    def send_value(self, to: str, amount: int) -> None:
        """
        Send native currency from the executing contract.

        Plain accounts are credited directly. Contract recipients must expose
        a payable `receive`, which runs as a message call; a revert there
        propagates to the caller.
        """
        if not self._frames:
            raise ChainError("send_value is only available during contract execution")
        to = to_address(to)
        target = self._contracts.get(to)
        if target is None:
            self._move(self.current_address, to, amount)
            return
        receive = getattr(target, "receive", None)
        if receive is None or getattr(receive, "abi_kind", None) != "payable":
            raise ContractRevert("recipient contract cannot receive native currency")
        receive(value=amount)

    def emit_log(self, address: str, event: str, args: Dict[str, Any]) -> None:
        """Record an event emitted by the executing transaction."""
        if self._pending_tx is None:
            raise ChainError("Events can only be emitted during a transaction")
        self._pending_logs.append(
            LogEntry(
                address=address,
                event=event,
                args=dict(args),
                block_number=self.block_number + 1,
                tx_hash=self._pending_tx,
                log_index=len(self._pending_logs),
            )
        )

    def _resolve_sender(self, sender: str | None) -> str:
        sender = self.default_account if sender is None else to_address(sender)
        if sender in self._contracts:
            raise ChainError(f"{sender} is a contract and cannot originate transactions")
        return sender

    def _tx_hash(self, sender: str, nonce: int) -> str:
        payload = rlp.encode([self.chain_id, to_canonical_address(sender), nonce, len(self._blocks)])
        return "0x" + keccak(payload).hex()

    def _move(self, source: str, to: str, amount: int) -> None:
        if amount == 0:
            return
        if self._balances.get(source, 0) < amount:
            raise ContractRevert("insufficient balance for transfer")
        self._balances[source] -= amount
        self._balances[to] = self._balances.get(to, 0) + amount

    def _message_call(self, caller: str, to: str, value: int, body: Callable[[], Any]) -> Any:
        # Nested calls roll back on their own so a caller may catch the revert
        saved = self._capture() if self._frames else None
        pending_logs = len(self._pending_logs)

        self._move(caller, to, value)
        self._frames.append(Frame(msg=Msg(sender=caller, value=value), address=to))
        try:
            return body()
        except ContractRevert:
            if saved is not None:
                self._restore(saved)
                del self._pending_logs[pending_logs:]
            raise
        finally:
            self._frames.pop()

    def _run_transaction(
        self,
        sender: str,
        to: str,
        value: int,
        body: Callable[[], Any],
        contract_address: str | None = None,
    ) -> Receipt:
        balance = self._balances.get(sender, 0)
        if balance < value:
            raise InsufficientBalanceError(f"{sender} holds {balance} wei, transaction needs {value}")

        nonce = self._nonces.get(sender, 0)
        tx_hash = self._tx_hash(sender, nonce)
        saved = self._capture()
        timestamp = self._next_timestamp()

        self._nonces[sender] = nonce + 1
        self._pending_tx = tx_hash
        self._pending_timestamp = timestamp
        self._pending_logs = []
        try:
            result = self._message_call(sender, to, value, body)
            logs = self._pending_logs
        except ContractRevert as exc:
            self._restore(saved)
            self._nonces[sender] = nonce + 1
            exc.tx_hash = tx_hash
            logger.info(f"Transaction {tx_hash[:10]}... from {sender[:10]}... reverted: {exc.reason}")
            raise
        except Exception:
            self._restore(saved)
            self._nonces[sender] = nonce + 1
            logger.error(f"Transaction {tx_hash[:10]}... failed; state rolled back", exc_info=True)
            raise
        finally:
            self._frames.clear()
            self._pending_tx = None
            self._pending_timestamp = None
            self._pending_logs = []

        block = Block(number=self.block_number + 1, timestamp=timestamp, tx_hashes=(tx_hash,))
        self._blocks.append(block)
        self._logs.extend(logs)
        receipt = Receipt(
            tx_hash=tx_hash,
            sender=sender,
            to=None if contract_address else to,
            value=value,
            block_number=block.number,
            logs=list(logs),
            contract_address=contract_address,
            return_value=result,
        )
        self._receipts[tx_hash] = receipt
        return receipt

    # ── Blocks & logs ───────────────────────────────────────────────

    @property
    def block_number(self) -> int:
        """Number of the latest mined block."""
        return self._blocks[-1].number

    @property
    def latest_block(self) -> Block:
        return self._blocks[-1]

    @property
    def block_timestamp(self) -> int:
        """Timestamp seen by executing code (the pending block), else the latest block's."""
        if self._pending_timestamp is not None:
            return self._pending_timestamp
        return self._blocks[-1].timestamp

    def get_block(self, number: int) -> Block:
        if not 0 <= number < len(self._blocks):
            raise ChainError(f"Block {number} does not exist")
        return self._blocks[number]

    def get_receipt(self, tx_hash: str) -> Receipt:
        receipt = self._receipts.get(tx_hash)
        if receipt is None:
            raise ChainError(f"Unknown transaction {tx_hash}")
        return receipt

    def get_logs(
        self,
        from_block: int = 0,
        to_block: int | None = None,
        address: str | None = None,
        event: str | None = None,
    ) -> List[LogEntry]:
        """Mined logs filtered by block range (inclusive), emitter and event name."""
        address = to_address(address) if address else None
        last = self.block_number if to_block is None else to_block
        return [
            log for log in self._logs
            if from_block <= log.block_number <= last
            and (address is None or log.address == address)
            and (event is None or log.event == event)
        ]

    def mine(self, blocks: int = 1) -> int:
        """Mine empty blocks. Returns the new block number."""
        with self._lock:
            for _ in range(blocks):
                self._blocks.append(Block(number=self.block_number + 1, timestamp=self._next_timestamp()))
            return self.block_number

    def increase_time(self, seconds: int) -> None:
        """Shift the clock used for future blocks."""
        with self._lock:
            self._time_offset += seconds

    def _next_timestamp(self) -> int:
        return max(self._blocks[-1].timestamp + 1, int(time.time()) + self._time_offset)

    # ── Snapshots ───────────────────────────────────────────────────

    def snapshot(self) -> int:
        """Capture the full chain state. The id stays valid after a revert."""
        with self._lock:
            if self._frames:
                raise ChainError("Cannot snapshot during a transaction")
            snapshot_id = self._next_snapshot_id
            self._next_snapshot_id += 1
            self._snapshots[snapshot_id] = self._capture()
            return snapshot_id

    def revert(self, snapshot_id: int) -> None:
        """Restore a snapshot. Snapshots taken after it are discarded."""
        with self._lock:
            saved = self._snapshots.get(snapshot_id)
            if saved is None:
                raise ChainError(f"Unknown snapshot {snapshot_id}")
            self._restore(saved)
            for later in [sid for sid in self._snapshots if sid > snapshot_id]:
                del self._snapshots[later]
        logger.debug(f"Reverted to snapshot {snapshot_id} (block {self.block_number})")

    def _capture(self) -> dict:
        return {
            "balances": dict(self._balances),
            "nonces": dict(self._nonces),
            "contracts": dict(self._contracts),
            "storage": {addr: c._export_state() for addr, c in self._contracts.items()},
            "blocks": list(self._blocks),
            "log_count": len(self._logs),
            "receipts": dict(self._receipts),
            "time_offset": self._time_offset,
        }

    def _restore(self, saved: dict) -> None:
        self._balances = dict(saved["balances"])
        self._nonces = dict(saved["nonces"])
        self._contracts = dict(saved["contracts"])
        for addr, storage in saved["storage"].items():
            self._contracts[addr]._import_state(storage)
        self._blocks = list(saved["blocks"])
        del self._logs[saved["log_count"]:]
        self._receipts = dict(saved["receipts"])
        self._time_offset = saved["time_offset"]

    def __repr__(self) -> str:
        return f"<Chain {self.network} id={self.chain_id} block={self.block_number}>"
