"""
Runtime signals and errors.

``ContractReturn`` and ``ContractRevert`` end an invocation. They derive
from ``BaseException`` so that an author's ``except Exception`` cannot
swallow a return or revert.
"""
import enum


class HostSignal(BaseException):
    def __init__(self, data: bytes = b""):
        super().__init__(data)
        self.data = bytes(data)


class ContractReturn(HostSignal):
    """Normal return with output data."""


class ContractRevert(HostSignal):
    """Revert with diagnostic data. All state changes are discarded."""


class RuntimeFault(Exception):
    pass


class AllocationError(RuntimeFault):
    """The invocation arena is exhausted. Traps the invocation."""


class ValueTooLarge(RuntimeFault):
    """A storage write exceeds MAX_VALUE_SIZE. Traps the invocation."""


class NoActiveHost(RuntimeFault):
    """Author code asked for the host outside of an entry point."""


class CallFailed(RuntimeFault):
    """The callee reverted, trapped or does not exist."""


class CallErrorKind(enum.Enum):
    CALL_FAILED = "call_failed"
    DECODE_FAILED = "decode_failed"


class ContractCallError(RuntimeFault):
    """
    A cross-contract call through a generated proxy failed.

    ``kind`` is ``CallErrorKind.CALL_FAILED`` when the remote invocation
    failed and ``CallErrorKind.DECODE_FAILED`` when its output could not
    be decoded into the declared return type.
    """

    CALL_FAILED = CallErrorKind.CALL_FAILED
    DECODE_FAILED = CallErrorKind.DECODE_FAILED

    def __init__(self, kind: CallErrorKind, message: str = ""):
        self.kind = kind
        super().__init__(message or kind.value)
