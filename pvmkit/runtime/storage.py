"""
Typed storage access.

``read`` and ``write`` back the generated ``load``/``save`` methods.
``Lazy`` and ``Mapping`` are stateless handles for values kept outside
the storage record; every access goes to the host, nothing is cached.
"""
from typing import Generic, Optional, TypeVar

from pvmkit import env
from pvmkit.runtime import codec as _codec
from pvmkit.runtime.arena import MAX_VALUE_SIZE
from pvmkit.runtime.exceptions import ValueTooLarge
from pvmkit.selectors import mapping_key, namespace_key

K = TypeVar("K")
V = TypeVar("V")


def read(key: bytes, codec, host=None):
    """
    Value at ``key``, or ``None`` if the key is missing or its bytes do
    not decode.
    """
    raw = env.resolve(host).read_storage(key)
    if raw is None:
        return None
    return codec.decode(raw)


def write(key: bytes, codec, value, host=None) -> None:
    """
    Encode ``value`` and store it at ``key``. Raises ``ValueTooLarge``
    rather than store bytes that ``read`` would report as missing.
    """
    data = codec.encode(value)
    if len(data) > MAX_VALUE_SIZE:
        raise ValueTooLarge(f"{len(data)} byte value exceeds the {MAX_VALUE_SIZE} byte limit")
    env.resolve(host).set_storage(key, data)


def remove(key: bytes, host=None) -> None:
    env.resolve(host).clear_storage(key)


def contains(key: bytes, host=None) -> bool:
    return env.resolve(host).contains_storage(key)


class Lazy(Generic[V]):
    """
    A single value stored at ``keccak256(encode(namespace))``.

    A stored ``None`` of an ``Optional`` value reads back the same as a
    missing key.
    """

    def __init__(self, namespace, value_type):
        self.key = namespace_key(namespace)
        self.codec = _codec.for_type(value_type)

    @classmethod
    def from_key(cls, key: bytes, value_type) -> "Lazy":
        ret = cls.__new__(cls)
        ret.key = bytes(key)
        ret.codec = _codec.for_type(value_type)
        return ret

    def get(self, host=None) -> Optional[V]:
        return read(self.key, self.codec, host)

    def get_or(self, default: V, host=None) -> V:
        ret = self.get(host)
        return default if ret is None else ret

    def set(self, value: V, host=None) -> None:
        write(self.key, self.codec, value, host)

    def clear(self, host=None) -> None:
        remove(self.key, host)

    def exists(self, host=None) -> bool:
        return contains(self.key, host)


class Mapping(Generic[K, V]):
    """
    Key/value entries under a namespace. The entry for ``k`` lives at
    ``keccak256(namespace_key ++ encode(k))``.
    """

    def __init__(self, namespace, key_type, value_type):
        self.namespace = namespace_key(namespace)
        self.key_codec = _codec.for_type(key_type)
        self.value_codec = _codec.for_type(value_type)

    def key_for(self, key: K) -> bytes:
        return mapping_key(self.namespace, self.key_codec.encode(key))

    def get(self, key: K, host=None) -> Optional[V]:
        return read(self.key_for(key), self.value_codec, host)

    def get_or(self, key: K, default: V, host=None) -> V:
        ret = self.get(key, host)
        return default if ret is None else ret

    def insert(self, key: K, value: V, host=None) -> None:
        write(self.key_for(key), self.value_codec, value, host)

    def remove(self, key: K, host=None) -> None:
        remove(self.key_for(key), host)

    def contains(self, key: K, host=None) -> bool:
        return contains(self.key_for(key), host)
