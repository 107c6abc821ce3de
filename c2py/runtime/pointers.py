"""
Pointer model for generated code.

A pointer is a (buffer, offset) pair. The buffer is any object supporting
integer indexing: a list holding an array, a one-element list boxing a
scalar whose address was taken, an AttrCell standing for a struct member,
or a Block returned by malloc. NULL is None.
"""

from typing import Callable, List, Optional


class AttrCell:
    """A one-element view of obj.name so that &s.f can be indexed like an array."""

    __slots__ = ('obj', 'name')

    def __init__(self, obj, name: str):
        self.obj = obj
        self.name = name

    def __getitem__(self, index: int):
        if index != 0:
            raise IndexError('struct member pointer index out of range')
        return getattr(self.obj, self.name)

    def __setitem__(self, index: int, value) -> None:
        if index != 0:
            raise IndexError('struct member pointer index out of range')
        setattr(self.obj, self.name, value)

    def __len__(self) -> int:
        return 1

    def __eq__(self, other) -> bool:
        return isinstance(other, AttrCell) and self.obj is other.obj and self.name == other.name

    def __hash__(self) -> int:
        return hash((id(self.obj), self.name))


class Block(list):
    """Memory from malloc/calloc/realloc.

    A block starts untyped, sized in bytes. The first cast to a typed
    pointer fixes its element size and fills it with zero values.
    """

    def __init__(self, nbytes: int):
        super().__init__([0] * nbytes)
        self.nbytes = nbytes
        self.element_size: Optional[int] = None
        self.factory: Optional[Callable[[], object]] = None

    def retype(self, element_size: int, factory: Callable[[], object]) -> None:
        count = self.nbytes // element_size if element_size else self.nbytes
        self[:] = [factory() for _ in range(count)]
        self.element_size = element_size
        self.factory = factory

    def resize(self, nbytes: int) -> None:
        self.nbytes = nbytes
        if self.element_size is None:
            count = nbytes
            factory = int
        else:
            count = nbytes // self.element_size
            factory = self.factory
        if count < len(self):
            del self[count:]
        else:
            self.extend(factory() for _ in range(count - len(self)))

    __hash__ = object.__hash__

    def __eq__(self, other) -> bool:
        return self is other


def _same_buffer(a, b) -> bool:
    return a is b or (type(a) is AttrCell and a == b)


class Ptr:
    """A pointer into buf at element offset off."""

    __slots__ = ('buf', 'off')

    def __init__(self, buf, off: int = 0):
        self.buf = buf
        self.off = off

    def __getitem__(self, index: int):
        position = self.off + index
        if position < 0:
            raise IndexError('pointer dereference before start of object')
        return self.buf[position]

    def __setitem__(self, index: int, value) -> None:
        position = self.off + index
        if position < 0:
            raise IndexError('pointer dereference before start of object')
        self.buf[position] = value

    def __add__(self, n: int) -> 'Ptr':
        return Ptr(self.buf, self.off + n)

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, Ptr):
            return self.off - other.off
        return Ptr(self.buf, self.off - other)

    def __eq__(self, other) -> bool:
        return isinstance(other, Ptr) and _same_buffer(self.buf, other.buf) and self.off == other.off

    def __ne__(self, other) -> bool:
        return not self.__eq__(other)

    def __lt__(self, other: 'Ptr') -> bool:
        return self.off < other.off

    def __le__(self, other: 'Ptr') -> bool:
        return self.off <= other.off

    def __gt__(self, other: 'Ptr') -> bool:
        return self.off > other.off

    def __ge__(self, other: 'Ptr') -> bool:
        return self.off >= other.off

    def __hash__(self) -> int:
        return hash((id(self.buf), self.off))

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f'Ptr(<{type(self.buf).__name__} at 0x{id(self.buf):x}>, {self.off})'


def ptr_cast(p: Optional[Ptr], element_size: int, factory: Callable[[], object]) -> Optional[Ptr]:
    """Convert a void pointer to a typed one, typing fresh malloc memory."""
    if p is None:
        return None
    buf = p.buf
    if isinstance(buf, Block) and buf.element_size is None and element_size != 1:
        buf.retype(element_size, factory)
        return Ptr(buf, p.off // element_size)
    return p


def address(p: Optional[Ptr]) -> int:
    """A stable fake address, used when printing pointers."""
    if p is None:
        return 0
    return (id(p.buf) & 0xFFFFFFFFFFF0) + p.off


def cstr(data: bytes, length: Optional[int] = None) -> List[int]:
    """A NUL-terminated char array holding data, padded to length."""
    values = [b - 256 if b >= 128 else b for b in data]
    values.append(0)
    if length is not None:
        if length < len(values):
            # char s[3] = "abc" drops the terminator
            values = values[:length]
        else:
            values.extend([0] * (length - len(values)))
    return values


def read_cstr(p: Ptr) -> bytes:
    """Read a NUL-terminated string starting at p."""
    if p is None:
        raise ValueError('null pointer passed where a string was expected')
    out = bytearray()
    i = 0
    while True:
        value = p[i]
        if value == 0:
            return bytes(out)
        out.append(value & 0xFF)
        i += 1


def argv(args: List[str]) -> Ptr:
    """Build main's argv from sys.argv: an array of char pointers ending with NULL."""
    strings: List[Optional[Ptr]] = [Ptr(cstr(arg.encode('utf-8')), 0) for arg in args]
    strings.append(None)
    return Ptr(strings, 0)
