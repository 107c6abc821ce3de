"""
Fixed-width integer and floating point semantics for generated code.

Python ints are unbounded, so every C integer operation that can leave the
range of its type is passed through one of the wrap helpers below. Signed
types wrap in two's complement.
"""

import math
import struct

_F32 = struct.Struct('<f')


def i8(value: int) -> int:
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


def u8(value: int) -> int:
    return value & 0xFF


def i16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def u16(value: int) -> int:
    return value & 0xFFFF


def i32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def u32(value: int) -> int:
    return value & 0xFFFFFFFF


def i64(value: int) -> int:
    value &= 0xFFFFFFFFFFFFFFFF
    return value - 0x10000000000000000 if value & 0x8000000000000000 else value


def u64(value: int) -> int:
    return value & 0xFFFFFFFFFFFFFFFF


def to_bool(value) -> int:
    """Conversion to _Bool: any nonzero scalar (or non-null pointer) becomes 1."""
    return 1 if value else 0


def to_int(value: float) -> int:
    """Float to integer conversion, truncating toward zero."""
    if math.isnan(value) or math.isinf(value):
        raise OverflowError(f'cannot convert {value} to an integer')
    return int(value)


def idiv(a: int, b: int) -> int:
    """C integer division: the quotient is truncated toward zero."""
    if b == 0:
        raise ZeroDivisionError('integer division by zero')
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def imod(a: int, b: int) -> int:
    """C remainder: has the sign of the dividend."""
    return a - b * idiv(a, b)


def f32(value: float) -> float:
    """Round a Python float to IEEE binary32."""
    try:
        return _F32.unpack(_F32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def fdiv(a: float, b: float) -> float:
    """Floating division with IEEE results for a zero divisor."""
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b
