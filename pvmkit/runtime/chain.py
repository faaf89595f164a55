"""
An in-memory chain for running artifacts in tests and local experiments.

Every invocation runs in its own ``Frame`` (a ``Host`` with its own
arena). Storage and the event log are snapshotted before each
invocation and restored when it reverts or traps.
"""
import itertools
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pvmkit.runtime.arena import Arena
from pvmkit.runtime.exceptions import CallFailed, ContractReturn, ContractRevert, RuntimeFault
from pvmkit.runtime.host import Host
from pvmkit.runtime.loader import Contract, load_contract
from pvmkit.runtime.types import Address
from pvmkit.utils import keccak256

MAX_CALL_DEPTH = 64


@dataclass
class LogEntry:
    address: Address
    topics: List[bytes]
    data: bytes


@dataclass
class ExecutionResult:
    is_success: bool
    output: bytes = b""
    logs: List[LogEntry] = field(default_factory=list)
    # set when the invocation trapped instead of returning or reverting
    error: Optional[BaseException] = None

    @property
    def is_revert(self) -> bool:
        return not self.is_success and self.error is None

    @property
    def is_trap(self) -> bool:
        return self.error is not None


class ExecutionError(Exception):
    """Raised when an invocation does not return normally."""


class ExecutionReverted(ExecutionError):
    def __init__(self, result: ExecutionResult):
        self.result = result
        if result.is_trap:
            msg = f"trap: {type(result.error).__name__}: {result.error}"
        else:
            msg = f"revert: {result.output!r}"
        super().__init__(msg)

    @property
    def output(self) -> bytes:
        return self.result.output


@dataclass
class Account:
    contract: Optional[Contract]
    storage: Dict[bytes, bytes] = field(default_factory=dict)


class Frame(Host):
    def __init__(self, chain, address, caller, value, data, depth):
        self.chain = chain
        self.arena = Arena()
        self.depth = depth
        self._address = address
        self._caller = caller
        self._value = value
        self._input = bytes(data)

    @property
    def _storage(self):
        return self.chain._accounts[self._address].storage

    def get_storage(self, key):
        return self._storage.get(bytes(key))

    def set_storage(self, key, value):
        if len(value) == 0:
            self._storage.pop(bytes(key), None)
        else:
            self._storage[bytes(key)] = bytes(value)

    def call_contract_with_output(self, address, value, data):
        result = self.chain._execute(
            Address(address), data, caller=self._address, value=value, depth=self.depth + 1
        )
        if not result.is_success:
            raise CallFailed(f"call to {Address(address)} failed: {result.output!r}")
        return result.output

    def caller(self):
        return self._caller

    def address(self):
        return self._address

    def block_number(self):
        return self.chain.block_number

    def now(self):
        return self.chain.timestamp

    def value_transferred(self):
        return self._value

    def input(self):
        return self._input

    def deposit_event(self, topics, data):
        self.chain._logs.append(LogEntry(self._address, [bytes(t) for t in topics], bytes(data)))


class Chain:
    def __init__(self, block_number: int = 1, timestamp: int = 0):
        self._accounts: Dict[Address, Account] = {}
        self._logs: List[LogEntry] = []
        self._nonce = itertools.count()
        self.block_number = block_number
        self.timestamp = timestamp
        self.deployer = Address(keccak256(b"pvmkit.deployer")[12:])
        self.last_result: Optional[ExecutionResult] = None

    # state

    def _snapshot(self):
        storage = {addr: dict(acc.storage) for addr, acc in self._accounts.items()}
        return storage, len(self._logs)

    def _restore(self, snapshot):
        storage, n_logs = snapshot
        for addr in list(self._accounts):
            if addr not in storage:
                del self._accounts[addr]
            else:
                self._accounts[addr].storage = storage[addr]
        del self._logs[n_logs:]

    @contextmanager
    def anchor(self):
        """Discard every state change made inside the block."""
        snapshot = self._snapshot()
        try:
            yield
        finally:
            self._restore(snapshot)

    def get_storage(self, address, key: bytes) -> Optional[bytes]:
        return self._accounts[Address(address)].storage.get(bytes(key))

    def set_storage(self, address, key: bytes, value: bytes) -> None:
        self.frame(address).set_storage(key, value)

    def get_logs(self, address=None) -> List[LogEntry]:
        if address is None:
            return list(self._logs)
        address = Address(address)
        return [log for log in self._logs if log.address == address]

    def mine(self, blocks: int = 1, seconds: int = 6) -> None:
        self.block_number += blocks
        self.timestamp += blocks * seconds

    def frame(self, address, caller=None, data: bytes = b"") -> Frame:
        """A host for ``address`` outside of any invocation, e.g. to read storage."""
        return Frame(self, Address(address), caller or self.deployer, 0, data, depth=0)

    # execution

    def _new_address(self, sender: Address) -> Address:
        nonce = next(self._nonce)
        return Address(keccak256(bytes(sender) + nonce.to_bytes(8, "big"))[12:])

    def _execute(self, address, data, caller, value=0, depth=0, deploy=False):
        if depth > MAX_CALL_DEPTH:
            return ExecutionResult(False, error=RuntimeFault("call depth limit exceeded"))

        account = self._accounts.get(address)
        if account is None or account.contract is None:
            return ExecutionResult(False, error=RuntimeFault(f"no contract at {address}"))

        snapshot = self._snapshot()
        n_logs = len(self._logs)
        frame = Frame(self, address, caller, value, data, depth)
        entry = account.contract.deploy if deploy else account.contract.call

        try:
            entry(frame)
        except ContractReturn as e:
            result = ExecutionResult(True, e.data)
        except ContractRevert as e:
            self._restore(snapshot)
            result = ExecutionResult(False, e.data)
        except Exception as e:
            self._restore(snapshot)
            result = ExecutionResult(False, error=e)
        else:
            result = ExecutionResult(True)

        result.logs = self._logs[n_logs:]
        return result

    def deploy(self, contract: Contract, sender=None, value: int = 0) -> Address:
        sender = Address(sender) if sender is not None else self.deployer
        address = self._new_address(sender)
        self._accounts[address] = Account(contract)

        result = self._execute(address, b"", sender, value, deploy=True)
        self.last_result = result
        if not result.is_success:
            del self._accounts[address]
            raise ExecutionReverted(result)
        return address

    def transact(self, address, data: bytes, sender=None, value: int = 0) -> ExecutionResult:
        sender = Address(sender) if sender is not None else self.deployer
        result = self._execute(Address(address), bytes(data), sender, value)
        self.last_result = result
        return result

    def call(self, address, data: bytes, sender=None, value: int = 0) -> ExecutionResult:
        """Like ``transact``, but every state change is discarded."""
        with self.anchor():
            return self.transact(address, data, sender, value)

    def deploy_source(self, source_code: str, name: Optional[str] = None, settings=None, **kwargs):
        """Generate, load and deploy a contract from author source."""
        from pvmkit.compiler import compile_code

        out = compile_code(
            source_code, contract_path=f"{name or 'contract'}.py", settings=settings
        )
        contract = load_contract(out, name=name)
        address = self.deploy(contract, **kwargs)
        return ContractHandle(self, address, contract)

    def at(self, address, contract: Contract) -> "ContractHandle":
        return ContractHandle(self, Address(address), contract)


class ContractMethods:
    """
    Every method of a deployed contract, by attribute or by item. Reaches
    methods whose names a ``ContractHandle`` attribute shadows, such as
    ``state`` or ``get_logs``.
    """

    def __init__(self, handle: "ContractHandle"):
        self._handle = handle

    def __getitem__(self, name: str) -> "BoundMethod":
        contract = self._handle.contract
        if name not in contract.methods:
            raise KeyError(f"{contract.name} has no method {name!r}")
        return BoundMethod(self._handle, contract.methods[name])

    def __getattr__(self, name):
        if name.startswith("__") or name == "_handle":
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError as e:
            raise AttributeError(e.args[0]) from None

    def __iter__(self):
        return iter(self._handle.contract.methods)


class ContractHandle:
    """
    A deployed contract. Attribute access returns callables for the
    contract's methods which encode arguments, run a transaction and
    decode the result. Methods named like a handle attribute are reached
    through ``handle.fn``.
    """

    def __init__(self, chain: Chain, address: Address, contract: Contract):
        self.chain = chain
        self.address = address
        self.contract = contract
        self.fn = ContractMethods(self)

    def __getattr__(self, name):
        if name in ("chain", "address", "contract", "fn"):
            raise AttributeError(name)
        return getattr(self.fn, name)

    def state(self):
        """Decoded storage record of this contract."""
        storage_cls = self.contract.storage_class
        if storage_cls is None:
            raise AttributeError(f"{self.contract.name} declares no storage")
        return storage_cls.load(self.chain.frame(self.address))

    def get_logs(self):
        return self.chain.get_logs(self.address)

    def __repr__(self):
        return f"<{self.contract.name} at {self.address}>"


class BoundMethod:
    def __init__(self, handle: ContractHandle, method):
        self.handle = handle
        self.method = method

    def _run(self, runner, args, sender, value):
        data = self.method.encode_input(*args)
        result = runner(self.handle.address, data, sender=sender, value=value)
        if not result.is_success:
            raise ExecutionReverted(result)
        return self.method.decode_output(result.output)

    def __call__(self, *args, sender=None, value=0):
        return self._run(self.handle.chain.transact, args, sender, value)

    def call(self, *args, sender=None, value=0):
        """Run without keeping any state change."""
        return self._run(self.handle.chain.call, args, sender, value)
