import abc
from typing import List, Optional

from pvmkit.runtime.arena import MAX_INPUT_SIZE, MAX_VALUE_SIZE, Arena
from pvmkit.runtime.exceptions import AllocationError, ContractReturn, ContractRevert
from pvmkit.runtime.types import Address
from pvmkit.utils import keccak256


class Host(abc.ABC):
    """
    The host ABI a contract invocation runs against.

    Storage keys are 32 bytes. Setting a key to empty bytes removes it.
    ``return_value`` and ``revert`` never return: they raise
    ``ContractReturn`` / ``ContractRevert`` which the executing host
    catches at the invocation boundary.
    """

    arena: Arena

    # storage

    @abc.abstractmethod
    def get_storage(self, key: bytes) -> Optional[bytes]:
        pass

    @abc.abstractmethod
    def set_storage(self, key: bytes, value: bytes) -> None:
        pass

    def clear_storage(self, key: bytes) -> None:
        self.set_storage(key, b"")

    def contains_storage(self, key: bytes) -> bool:
        return self.get_storage(key) is not None

    # cross-contract calls

    @abc.abstractmethod
    def call_contract_with_output(self, address: Address, value: int, data: bytes) -> bytes:
        """
        Invoke ``address`` synchronously and return its output.
        Raises ``CallFailed`` if the callee reverts or traps.
        """

    def call_contract(self, address: Address, value: int, data: bytes) -> None:
        self.call_contract_with_output(address, value, data)

    # invocation context

    @abc.abstractmethod
    def caller(self) -> Address:
        pass

    @abc.abstractmethod
    def address(self) -> Address:
        pass

    @abc.abstractmethod
    def block_number(self) -> int:
        pass

    @abc.abstractmethod
    def now(self) -> int:
        pass

    @abc.abstractmethod
    def value_transferred(self) -> int:
        pass

    @abc.abstractmethod
    def input(self) -> bytes:
        pass

    @abc.abstractmethod
    def deposit_event(self, topics: List[bytes], data: bytes) -> None:
        pass

    # control flow

    def return_value(self, data: bytes):
        raise ContractReturn(data)

    def revert(self, data: bytes):
        raise ContractRevert(data)

    def hash_keccak_256(self, data: bytes) -> bytes:
        return keccak256(data)

    # arena-backed reads

    def read_input(self) -> bytes:
        """
        Copy the call input into the arena. Input longer than
        MAX_INPUT_SIZE is truncated; if the arena is exhausted the
        input reads as empty.
        """
        data = self.input()[:MAX_INPUT_SIZE]
        buf = self.arena.alloc(len(data))
        if buf is None:
            return b""
        buf[:] = data
        return bytes(buf)

    def read_storage(self, key: bytes) -> Optional[bytes]:
        """
        Copy the value at ``key`` into the arena. Values larger than
        MAX_VALUE_SIZE read as absent. Raises ``AllocationError`` when the
        arena is exhausted.
        """
        value = self.get_storage(key)
        if value is None or len(value) > MAX_VALUE_SIZE:
            return None
        buf = self.arena.alloc(len(value))
        if buf is None:
            raise AllocationError(f"arena exhausted reading {len(value)} bytes of storage")
        buf[:] = value
        return bytes(buf)
