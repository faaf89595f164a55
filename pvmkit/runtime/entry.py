"""
Helpers shared by generated entry points and call wrappers.
"""
import enum
import types
from dataclasses import dataclass
from typing import Callable, Optional

from pvmkit.runtime.codec import Codec, DecodeError, Stream

# names the generator defines in every artifact
ENTRY_DEPLOY = "_pvm_entry_deploy"
ENTRY_CALL = "_pvm_entry_call"
DISPATCH_TABLE = "_PVM_DISPATCH_TABLE"
METHODS = "_PVM_METHODS"
METADATA = "_PVM_METADATA"
STORAGE_CLASS = "_PVM_STORAGE_CLASS"

# fixed revert diagnostics
NO_SELECTOR = b"no selector"
UNKNOWN_SELECTOR = b"unknown selector"
NO_METHODS = b"no methods"
INVALID_ARGUMENTS = b"invalid arguments"


class StateAccess(enum.Enum):
    NONE = "none"
    SHARED = "shared"
    EXCLUSIVE = "exclusive"


@dataclass(frozen=True)
class Method:
    name: str
    selector: bytes
    handler: Callable
    args: Optional[Codec] = None
    returns: Optional[Codec] = None
    arity: int = 0
    state: StateAccess = StateAccess.NONE

    @property
    def mutates(self) -> bool:
        return self.state == StateAccess.EXCLUSIVE

    def encode_args(self, args) -> bytes:
        args = tuple(args)
        if len(args) != self.arity:
            raise TypeError(f"{self.name}() takes {self.arity} arguments ({len(args)} given)")
        if self.arity == 0:
            return b""
        if self.arity == 1:
            return self.args.encode(args[0])
        return self.args.encode(args)

    def encode_input(self, *args) -> bytes:
        return self.selector + self.encode_args(args)

    def decode_output(self, data: bytes):
        if self.returns is None:
            return None
        return self.returns.decode_exact(data)


def method_table(*methods: Method) -> types.MappingProxyType:
    return types.MappingProxyType({m.name: m for m in methods})


def dispatch_table(methods) -> types.MappingProxyType:
    return types.MappingProxyType({m.selector: m for m in methods.values()})


def decode_args(host, codec: Codec, data: bytes, arity: int) -> tuple:
    """
    Decode call arguments following the selector. Malformed input reverts
    with ``invalid arguments``; bytes after the last argument are ignored.
    """
    try:
        value = codec.decode_from(Stream(data))
    except DecodeError:
        host.revert(INVALID_ARGUMENTS)
    if arity == 1:
        return (value,)
    return value


def check_state(state, cls, init_name: str):
    if not isinstance(state, cls):
        raise TypeError(f"{init_name}() must return {cls.__name__}, got {type(state).__name__}")
    return state
