"""
Value types understood by the codec and the generator.

Sized integers are ``int`` subclasses that check their bounds on
construction. Arithmetic on them yields plain ``int``; the codec checks
bounds again when a value is encoded.
"""
from pvmkit.utils import int_bounds


class SizedInt(int):
    BITS: int
    SIGNED: bool

    def __new__(cls, value=0):
        ret = super().__new__(cls, value)
        lo, hi = int_bounds(cls.SIGNED, cls.BITS)
        if not lo <= ret <= hi:
            raise OverflowError(f"{int(ret)} is out of bounds for {cls.__name__}")
        return ret

    def __repr__(self):
        return f"{type(self).__name__}({int(self)})"


def _sized_int(name, signed, bits):
    return type(name, (SizedInt,), {"BITS": bits, "SIGNED": signed, "__module__": __name__})


u8 = _sized_int("u8", False, 8)
u16 = _sized_int("u16", False, 16)
u32 = _sized_int("u32", False, 32)
u64 = _sized_int("u64", False, 64)
u128 = _sized_int("u128", False, 128)
u256 = _sized_int("u256", False, 256)
i8 = _sized_int("i8", True, 8)
i16 = _sized_int("i16", True, 16)
i32 = _sized_int("i32", True, 32)
i64 = _sized_int("i64", True, 64)
i128 = _sized_int("i128", True, 128)
i256 = _sized_int("i256", True, 256)

INTEGER_TYPES = {
    t.__name__: t for t in (u8, u16, u32, u64, u128, u256, i8, i16, i32, i64, i128, i256)
}


class _FixedBytesValue(bytes):
    SIZE: int

    def __new__(cls, value=None):
        if value is None:
            value = bytes(cls.SIZE)
        elif isinstance(value, str):
            value = bytes.fromhex(value.removeprefix("0x"))
        elif isinstance(value, int):
            value = value.to_bytes(cls.SIZE, "big")
        value = bytes(value)
        if len(value) != cls.SIZE:
            raise ValueError(f"{cls.__name__} must be {cls.SIZE} bytes, got {len(value)}")
        return super().__new__(cls, value)

    @classmethod
    def zero(cls):
        return cls()

    def is_zero(self) -> bool:
        return not any(self)

    def __str__(self):
        return "0x" + self.hex()

    def __repr__(self):
        return f"{type(self).__name__}('{self}')"


class Address(_FixedBytesValue):
    """A 20-byte account address."""

    SIZE = 20


class Hash(_FixedBytesValue):
    """A 32-byte hash."""

    SIZE = 32
