"""
SCALE-compatible binary codec.

Wire rules:

* ``bool`` is one byte, ``00`` or ``01``
* fixed-width integers are little-endian two's complement
* ``bytes``, ``str`` and lists carry a compact length prefix
* tuples and records are the concatenation of their fields
* ``Optional`` is ``00`` for ``None`` and ``01`` followed by the value
* addresses and hashes are their raw fixed-size bytes

``decode`` reads one value from the front of the input and ignores
anything after it, returning ``None`` when the input is malformed.
``decode_exact`` requires the whole input to be consumed and raises
``DecodeError`` otherwise.
"""
from typing import Any, Optional

from pvmkit.runtime.types import Address, Hash, SizedInt
from pvmkit.utils import int_bounds


class CodecError(Exception):
    pass


class EncodeError(CodecError, ValueError):
    pass


class DecodeError(CodecError):
    pass


class Stream:
    def __init__(self, data):
        self.data = bytes(data)
        self.pos = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def read(self, n: int) -> bytes:
        if n > self.remaining:
            raise DecodeError(f"unexpected end of input: wanted {n} bytes, have {self.remaining}")
        ret = self.data[self.pos : self.pos + n]
        self.pos += n
        return ret

    def read_byte(self) -> int:
        return self.read(1)[0]


class Codec:
    # lower bound on the encoded size of one value
    min_size = 1

    def encode(self, value) -> bytes:
        raise NotImplementedError(f"{type(self).__name__}.encode")

    def decode_from(self, stream: Stream):
        raise NotImplementedError(f"{type(self).__name__}.decode_from")

    def decode(self, data) -> Optional[Any]:
        try:
            return self.decode_from(Stream(data))
        except DecodeError:
            return None

    def decode_exact(self, data):
        stream = Stream(data)
        ret = self.decode_from(stream)
        if stream.remaining:
            raise DecodeError(f"{stream.remaining} trailing bytes after {self!r}")
        return ret

    def __repr__(self):
        return f"{type(self).__name__}()"

    def __eq__(self, other):
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self):
        return hash(repr(self))


class Bool(Codec):
    def encode(self, value) -> bytes:
        if not isinstance(value, (bool, int)) or value not in (0, 1):
            raise EncodeError(f"not a bool: {value!r}")
        return b"\x01" if value else b"\x00"

    def decode_from(self, stream):
        b = stream.read_byte()
        if b > 1:
            raise DecodeError(f"invalid bool byte {b:#04x}")
        return b == 1


class Int(Codec):
    def __init__(self, bits: int, signed: bool):
        assert bits % 8 == 0 and 8 <= bits <= 256
        self.bits = bits
        self.signed = signed

    @property
    def size(self) -> int:
        return self.bits // 8

    @property
    def min_size(self) -> int:
        return self.size

    def encode(self, value) -> bytes:
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodeError(f"not an integer: {value!r}")
        lo, hi = int_bounds(self.signed, self.bits)
        if not lo <= value <= hi:
            raise EncodeError(f"{value} out of bounds for {self._type_name}")
        return int(value).to_bytes(self.size, "little", signed=self.signed)

    def decode_from(self, stream):
        return int.from_bytes(stream.read(self.size), "little", signed=self.signed)

    @property
    def _type_name(self):
        return f"{'i' if self.signed else 'u'}{self.bits}"

    def __repr__(self):
        return f"Int({self.bits}, {self.signed})"


class Compact(Codec):
    """
    Compact unsigned integer.

    The low two bits of the first byte select the mode: single byte,
    two bytes, four bytes, or a length byte followed by 4 to 67 bytes.
    """

    def encode(self, value) -> bytes:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise EncodeError(f"not a compact integer: {value!r}")
        if value < 1 << 6:
            return bytes([value << 2])
        if value < 1 << 14:
            return ((value << 2) | 0b01).to_bytes(2, "little")
        if value < 1 << 30:
            return ((value << 2) | 0b10).to_bytes(4, "little")

        n = max(4, (value.bit_length() + 7) // 8)
        if n > 67:
            raise EncodeError(f"{value} is too large for a compact integer")
        return bytes([((n - 4) << 2) | 0b11]) + value.to_bytes(n, "little")

    def decode_from(self, stream):
        first = stream.read_byte()
        mode = first & 0b11
        if mode == 0b00:
            return first >> 2
        if mode == 0b01:
            return int.from_bytes(bytes([first]) + stream.read(1), "little") >> 2
        if mode == 0b10:
            return int.from_bytes(bytes([first]) + stream.read(3), "little") >> 2

        n = (first >> 2) + 4
        value = int.from_bytes(stream.read(n), "little")
        if value < 1 << 30:
            raise DecodeError("non-canonical compact integer")
        return value


_COMPACT = Compact()


class Bytes(Codec):
    def encode(self, value) -> bytes:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise EncodeError(f"not bytes: {value!r}")
        value = bytes(value)
        return _COMPACT.encode(len(value)) + value

    def decode_from(self, stream):
        return stream.read(_COMPACT.decode_from(stream))


class Str(Codec):
    def encode(self, value) -> bytes:
        if not isinstance(value, str):
            raise EncodeError(f"not a str: {value!r}")
        data = value.encode("utf-8")
        return _COMPACT.encode(len(data)) + data

    def decode_from(self, stream):
        data = stream.read(_COMPACT.decode_from(stream))
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"invalid utf-8: {e}") from e


class FixedBytes(Codec):
    """Raw fixed-size bytes, decoded into ``value_type`` (``Address`` or ``Hash``)."""

    def __init__(self, value_type):
        self.value_type = value_type

    def encode(self, value) -> bytes:
        if not isinstance(value, (bytes, bytearray)) or len(value) != self.value_type.SIZE:
            raise EncodeError(f"expected {self.value_type.SIZE} bytes, got {value!r}")
        return bytes(value)

    def decode_from(self, stream):
        return self.value_type(stream.read(self.value_type.SIZE))

    @property
    def min_size(self) -> int:
        return self.value_type.SIZE

    def __repr__(self):
        return f"FixedBytes({self.value_type.__name__})"


class Seq(Codec):
    def __init__(self, elem: Codec):
        self.elem = elem

    def encode(self, value) -> bytes:
        if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            raise EncodeError(f"not a sequence: {value!r}")
        items = list(value)
        return _COMPACT.encode(len(items)) + b"".join(self.elem.encode(x) for x in items)

    def decode_from(self, stream):
        count = _COMPACT.decode_from(stream)
        if count * self.elem.min_size > stream.remaining:
            raise DecodeError(f"sequence length {count} exceeds input")
        return [self.elem.decode_from(stream) for _ in range(count)]

    def __repr__(self):
        return f"Seq({self.elem!r})"


class Tuple(Codec):
    def __init__(self, *elems: Codec):
        self.elems = elems

    def encode(self, value) -> bytes:
        value = tuple(value)
        if len(value) != len(self.elems):
            raise EncodeError(f"expected {len(self.elems)} items, got {len(value)}")
        return b"".join(c.encode(v) for c, v in zip(self.elems, value))

    def decode_from(self, stream):
        return tuple(c.decode_from(stream) for c in self.elems)

    @property
    def min_size(self) -> int:
        return sum(c.min_size for c in self.elems)

    def __repr__(self):
        return f"Tuple({', '.join(repr(c) for c in self.elems)})"


class Option(Codec):
    def __init__(self, elem: Codec):
        self.elem = elem

    def encode(self, value) -> bytes:
        if value is None:
            return b"\x00"
        return b"\x01" + self.elem.encode(value)

    def decode_from(self, stream):
        tag = stream.read_byte()
        if tag == 0:
            return None
        if tag == 1:
            return self.elem.decode_from(stream)
        raise DecodeError(f"invalid option tag {tag:#04x}")

    def __repr__(self):
        return f"Option({self.elem!r})"


class Record(Codec):
    """
    Field-wise encoding of an object. Decoding calls ``cls(**fields)``.
    """

    def __init__(self, cls, fields):
        self.cls = cls
        self.fields = tuple(fields)

    def encode(self, value) -> bytes:
        ret = []
        for name, codec in self.fields:
            try:
                ret.append(codec.encode(getattr(value, name)))
            except EncodeError as e:
                raise EncodeError(f"{self.cls.__name__}.{name}: {e}") from e
        return b"".join(ret)

    def decode_from(self, stream):
        kwargs = {name: codec.decode_from(stream) for name, codec in self.fields}
        return self.cls(**kwargs)

    @property
    def min_size(self) -> int:
        return sum(c.min_size for _, c in self.fields)

    def __repr__(self):
        return f"Record({self.cls.__name__})"


_SIMPLE = {bool: Bool(), bytes: Bytes(), str: Str()}


def for_type(typ) -> Codec:
    """
    Codec for a runtime type object. Accepts codecs (returned as is),
    ``bool``, ``bytes``, ``str``, the sized integers, ``Address``, ``Hash``
    and ``list[T]`` / ``tuple[...]`` / ``Optional[T]`` of those.
    """
    import typing

    if isinstance(typ, Codec):
        return typ
    if typ in _SIMPLE:
        return _SIMPLE[typ]
    if isinstance(typ, type) and issubclass(typ, SizedInt):
        return Int(typ.BITS, typ.SIGNED)
    if typ in (Address, Hash):
        return FixedBytes(typ)
    if typ is int:
        raise TypeError("`int` has no fixed width, use a sized integer such as u32")

    origin = typing.get_origin(typ)
    args = typing.get_args(typ)
    if origin is list and len(args) == 1:
        return Seq(for_type(args[0]))
    if origin is tuple and args and Ellipsis not in args:
        return Tuple(*(for_type(a) for a in args))
    if args and type(None) in args and len(args) == 2:
        (inner,) = [a for a in args if a is not type(None)]
        return Option(for_type(inner))

    raise TypeError(f"no codec for {typ!r}")
