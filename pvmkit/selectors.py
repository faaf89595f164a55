"""
Selector, storage key and event topic derivation.

Every function here is pure: two independent builds of the same names
produce bit-identical results.
"""
from pvmkit.runtime.codec import Bytes
from pvmkit.utils import keccak256

SELECTOR_SIZE = 4
KEY_SIZE = 32


def selector(name: str) -> bytes:
    """First four bytes of keccak256 over the UTF-8 name."""
    return keccak256(name.encode("utf-8"))[:SELECTOR_SIZE]


def storage_key(type_name: str) -> bytes:
    return keccak256(type_name.encode("utf-8"))


def event_topic(type_name: str) -> bytes:
    # selector in the leading bytes, zero padded to one topic slot
    return selector(type_name) + bytes(KEY_SIZE - SELECTOR_SIZE)


def namespace_key(namespace) -> bytes:
    """
    Key of a storage namespace: keccak256 over the codec encoding of the
    namespace bytes (compact length prefix followed by the raw bytes).
    """
    if isinstance(namespace, str):
        namespace = namespace.encode("utf-8")
    return keccak256(Bytes().encode(namespace))


def mapping_key(ns_key: bytes, encoded_key: bytes) -> bytes:
    # the namespace key is a fixed 32-byte value, so it is hashed without a prefix
    return keccak256(bytes(ns_key) + bytes(encoded_key))
