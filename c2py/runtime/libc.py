"""
The subset of the C standard library available to translated programs.

Strings are char arrays (lists of ints) reached through Ptr. Output goes to
whatever sys.stdout is at call time, so callers can capture it.
"""

import math
import re
import sys
from typing import List, Optional

from .pointers import Block, Ptr, address, read_cstr
from .structs import Struct, copy_value

_FORMAT_RE = re.compile(
    r'%(?P<flags>[-+ #0]*)(?P<width>\*|\d+)?(?:\.(?P<precision>\*|\d*))?'
    r'(?P<length>hh|h|ll|l|z|j|t|L)?(?P<conv>[diouxXeEfFgGcsp%])'
)

_LENGTH_BITS = {'hh': 8, 'h': 16, None: 32, 'l': 64, 'll': 64, 'z': 64, 'j': 64, 't': 64, 'L': 64}


class CExit(SystemExit):
    """Raised by exit(); carries the status like SystemExit."""


def _write(data: bytes) -> None:
    sys.stdout.write(data.decode('utf-8', errors='replace'))


def format_c(fmt: bytes, args: List) -> bytes:
    """Format args according to a printf format string."""
    text = fmt.decode('latin-1')
    out: List[str] = []
    pending = list(args)
    position = 0

    def take():
        if not pending:
            raise ValueError('printf: too few arguments for format')
        return pending.pop(0)

    for m in _FORMAT_RE.finditer(text):
        out.append(text[position:m.start()])
        position = m.end()
        conv = m.group('conv')
        if conv == '%':
            out.append('%')
            continue

        flags = m.group('flags')
        width = m.group('width')
        precision = m.group('precision')
        if width == '*':
            width_value = take()
            if width_value < 0:
                flags += '-'
                width_value = -width_value
            width = str(width_value)
        if precision == '*':
            precision_value = take()
            precision = str(precision_value) if precision_value >= 0 else None
        spec = '%' + flags + (width or '') + ('.' + precision if precision is not None else '')
        value = take()

        if conv in 'di':
            out.append((spec + 'd') % int(value))
        elif conv in 'ouxX':
            bits = _LENGTH_BITS[m.group('length')]
            number = int(value) & ((1 << bits) - 1)
            if conv == 'o' and '#' in flags:
                spec = spec.replace('#', '')
                out.append((spec + 's') % ('0' + format(number, 'o') if number else '0'))
            else:
                out.append((spec + ('d' if conv == 'u' else conv)) % number)
        elif conv in 'eEfFgG':
            out.append((spec + conv) % float(value))
        elif conv == 'c':
            out.append((spec.replace('0', '') + 's') % chr(int(value) & 0xFF))
        elif conv == 's':
            out.append((spec + 's') % read_cstr(value).decode('latin-1'))
        elif conv == 'p':
            shown = '(nil)' if value is None else f'0x{address(value):x}'
            out.append(((spec.split('.')[0]) + 's') % shown)

    out.append(text[position:])
    return ''.join(out).encode('latin-1')


# =============================================================================
# STDIO
# =============================================================================

def printf(fmt: Ptr, *args) -> int:
    data = format_c(read_cstr(fmt), list(args))
    _write(data)
    return len(data)


def puts(s: Ptr) -> int:
    data = read_cstr(s) + b'\n'
    _write(data)
    return len(data)


def putchar(c: int) -> int:
    c &= 0xFF
    sys.stdout.write(bytes([c]).decode('latin-1'))
    return c


# =============================================================================
# STDLIB
# =============================================================================

def malloc(size: int) -> Ptr:
    return Ptr(Block(size), 0)


def calloc(count: int, size: int) -> Ptr:
    return Ptr(Block(count * size), 0)


def realloc(p: Optional[Ptr], size: int) -> Ptr:
    if p is None:
        return malloc(size)
    buf = p.buf
    if not isinstance(buf, Block):
        raise ValueError('realloc of memory not obtained from malloc')
    buf.resize(size)
    return Ptr(buf, 0)


def free(p: Optional[Ptr]) -> None:
    """Memory is reclaimed by the garbage collector; free only drops the contents."""
    if p is not None and isinstance(p.buf, Block):
        p.buf.clear()


def c_abs(value: int) -> int:
    return abs(value)


def c_exit(status: int) -> None:
    sys.stdout.flush()
    raise CExit(status & 0xFF)


def c_assert(condition) -> None:
    if not condition:
        print('Assertion failed', file=sys.stderr)
        raise CExit(134)


# =============================================================================
# STRING
# =============================================================================

def _zero_like(value):
    if isinstance(value, Struct):
        return type(value)()
    if isinstance(value, list):
        return [_zero_like(v) for v in value]
    if isinstance(value, float):
        return 0.0
    if isinstance(value, Ptr) or value is None:
        return None
    return 0


def memset(p: Ptr, c: int, n: int, element_size: int = 1) -> Ptr:
    """Fill n bytes; for wider elements the byte is replicated across each element."""
    count = n // element_size
    byte = c & 0xFF
    for i in range(count):
        current = p[i]
        if isinstance(current, int) and not isinstance(current, bool):
            pattern = int.from_bytes(bytes([byte]) * element_size, 'little', signed=True)
            p[i] = pattern
        elif byte == 0:
            p[i] = _zero_like(current)
        else:
            raise ValueError('memset with a nonzero byte on non-integer memory')
    return p


def memcpy(dst: Ptr, src: Ptr, n: int, element_size: int = 1) -> Ptr:
    count = n // element_size
    values = [copy_value(src[i]) for i in range(count)]
    for i, value in enumerate(values):
        current = dst[i]
        if isinstance(current, Struct):
            current.assign_from(value)
        else:
            dst[i] = value
    return dst


def strlen(s: Ptr) -> int:
    return len(read_cstr(s))


def strcmp(a: Ptr, b: Ptr) -> int:
    i = 0
    while True:
        x = a[i] & 0xFF
        y = b[i] & 0xFF
        if x != y:
            return x - y
        if x == 0:
            return 0
        i += 1


def strcpy(dst: Ptr, src: Ptr) -> Ptr:
    i = 0
    while True:
        value = src[i]
        dst[i] = value
        if value == 0:
            return dst
        i += 1


# =============================================================================
# MATH
# =============================================================================

def sqrt(x: float) -> float:
    if x < 0:
        return math.nan
    return math.sqrt(x)


def pow(x: float, y: float) -> float:  # noqa: A001
    try:
        return math.pow(x, y)
    except OverflowError:
        return math.inf
    except ValueError:
        return math.nan


def fabs(x: float) -> float:
    return math.fabs(x)
