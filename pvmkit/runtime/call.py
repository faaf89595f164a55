"""
Cross-contract call helpers used by generated proxies.

Call data is ``selector ++ encoded arguments``. Failures surface as
``ContractCallError`` and never escape as a bare host error.
"""
from pvmkit import env
from pvmkit.runtime.codec import DecodeError, Stream
from pvmkit.runtime.exceptions import CallFailed, ContractCallError


def encode_call_data(selector: bytes, args: bytes = b"") -> bytes:
    assert len(selector) == 4, selector
    return bytes(selector) + bytes(args)


def call_with_value(address, value: int, selector: bytes, args: bytes = b"", host=None) -> None:
    data = encode_call_data(selector, args)
    try:
        env.resolve(host).call_contract(address, value, data)
    except CallFailed as e:
        raise ContractCallError(ContractCallError.CALL_FAILED, str(e)) from e


def call(address, selector: bytes, args: bytes = b"", host=None) -> None:
    call_with_value(address, 0, selector, args, host)


def call_with_value_and_decode(
    address, value: int, selector: bytes, args: bytes, codec, host=None
):
    data = encode_call_data(selector, args)
    try:
        output = env.resolve(host).call_contract_with_output(address, value, data)
    except CallFailed as e:
        raise ContractCallError(ContractCallError.CALL_FAILED, str(e)) from e

    try:
        return codec.decode_from(Stream(output))
    except DecodeError as e:
        raise ContractCallError(ContractCallError.DECODE_FAILED, str(e)) from e


def call_and_decode(address, selector: bytes, args: bytes, codec, host=None):
    return call_with_value_and_decode(address, 0, selector, args, codec, host)
