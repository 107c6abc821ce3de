"""
Semantic C types.

Types are plain value objects compared structurally. Struct and union types
are the exception: one StructType object is created per tag definition and
its field list is filled in when the definition completes, so that
self-referential structs can point at themselves.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple


POINTER_SIZE = 8


class CType:
    """Base class for all semantic types."""

    @property
    def size(self) -> Optional[int]:
        """Size in bytes, or None for incomplete types."""
        return None

    @property
    def align(self) -> int:
        return 1

    def strip(self) -> 'CType':
        """Return the type with all typedef aliases removed."""
        return self

    # Classification helpers work through typedefs

    @property
    def is_void(self) -> bool:
        return isinstance(self.strip(), VoidType)

    @property
    def is_integer(self) -> bool:
        return isinstance(self.strip(), (IntegerType, EnumType))

    @property
    def is_floating(self) -> bool:
        return isinstance(self.strip(), FloatType)

    @property
    def is_arithmetic(self) -> bool:
        return self.is_integer or self.is_floating

    @property
    def is_pointer(self) -> bool:
        return isinstance(self.strip(), PointerType)

    @property
    def is_scalar(self) -> bool:
        return self.is_arithmetic or self.is_pointer

    @property
    def is_array(self) -> bool:
        return isinstance(self.strip(), ArrayType)

    @property
    def is_function(self) -> bool:
        return isinstance(self.strip(), FunctionType)

    @property
    def is_struct(self) -> bool:
        return isinstance(self.strip(), StructType)

    @property
    def is_aggregate(self) -> bool:
        return self.is_array or self.is_struct

    @property
    def is_error(self) -> bool:
        return isinstance(self.strip(), ErrorType)

    @property
    def is_complete(self) -> bool:
        return self.size is not None


@dataclass(frozen=True)
class VoidType(CType):
    def __str__(self) -> str:
        return 'void'


@dataclass(frozen=True)
class ErrorType(CType):
    """Placeholder type given to expressions that failed to resolve."""

    def __str__(self) -> str:
        return '<error>'


@dataclass(frozen=True)
class IntegerType(CType):
    name: str
    byte_size: int
    signed: bool
    rank: int

    @property
    def size(self) -> Optional[int]:
        return self.byte_size

    @property
    def align(self) -> int:
        return self.byte_size

    @property
    def bits(self) -> int:
        return self.byte_size * 8

    @property
    def min_value(self) -> int:
        if self.name == '_Bool':
            return 0
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        if self.name == '_Bool':
            return 1
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class FloatType(CType):
    name: str
    byte_size: int

    @property
    def size(self) -> Optional[int]:
        return self.byte_size

    @property
    def align(self) -> int:
        return min(self.byte_size, 8)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class EnumType(CType):
    """An enumerated type. Values are stored as int."""
    tag: str

    @property
    def size(self) -> Optional[int]:
        return 4

    @property
    def align(self) -> int:
        return 4

    def __str__(self) -> str:
        return f'enum {self.tag}'


@dataclass(frozen=True)
class PointerType(CType):
    target: CType

    @property
    def size(self) -> Optional[int]:
        return POINTER_SIZE

    @property
    def align(self) -> int:
        return POINTER_SIZE

    def __str__(self) -> str:
        return f'{self.target} *'


@dataclass(frozen=True)
class ArrayType(CType):
    element: CType
    length: Optional[int] = None

    @property
    def size(self) -> Optional[int]:
        if self.length is None or self.element.size is None:
            return None
        return self.element.size * self.length

    @property
    def align(self) -> int:
        return self.element.align

    def __str__(self) -> str:
        length = '' if self.length is None else str(self.length)
        return f'{self.element}[{length}]'


@dataclass(frozen=True)
class FunctionType(CType):
    return_type: CType
    params: Tuple[CType, ...] = ()
    variadic: bool = False
    has_prototype: bool = True

    def __str__(self) -> str:
        params = [str(p) for p in self.params]
        if self.variadic:
            params.append('...')
        if not params and self.has_prototype:
            params.append('void')
        return f'{self.return_type} ({", ".join(params)})'


@dataclass(frozen=True)
class TypedefType(CType):
    """A named alias for another type."""
    name: str
    target: CType

    @property
    def size(self) -> Optional[int]:
        return self.target.size

    @property
    def align(self) -> int:
        return self.target.align

    def strip(self) -> CType:
        return self.target.strip()

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Field:
    name: str
    ctype: CType
    offset: int = 0


class StructType(CType):
    """A struct or union type.

    fields is None until the definition is complete. Equality compares the
    kind, the tag and the field sequence; nested struct types inside fields
    are compared by kind and tag only so self-referential types terminate.
    """

    def __init__(self, kind: str, tag: str, fields: Optional[List[Field]] = None, anonymous: bool = False):
        self.kind = kind
        self.tag = tag
        self.fields: Optional[List[Field]] = None
        self.anonymous = anonymous
        # typedef name given to an anonymous struct, used for naming only
        self.alias: Optional[str] = None
        self._size: Optional[int] = None
        self._align = 1
        if fields is not None:
            self.complete(fields)

    @property
    def is_union(self) -> bool:
        return self.kind == 'union'

    def complete(self, fields: List[Field]) -> None:
        """Lay out fields (LP64 alignment rules) and mark the type complete."""
        laid_out: List[Field] = []
        offset = 0
        size = 0
        align = 1
        for f in fields:
            f_size = f.ctype.size or 0
            f_align = f.ctype.align
            align = max(align, f_align)
            if self.is_union:
                laid_out.append(Field(f.name, f.ctype, 0))
                size = max(size, f_size)
            else:
                offset = _round_up(offset, f_align)
                laid_out.append(Field(f.name, f.ctype, offset))
                offset += f_size
                size = offset
        self.fields = laid_out
        self._align = align
        self._size = _round_up(size, align)

    def field(self, name: str) -> Optional[Field]:
        for f in self.fields or ():
            if f.name == name:
                return f
        return None

    @property
    def size(self) -> Optional[int]:
        return self._size

    @property
    def align(self) -> int:
        return self._align

    def _key(self):
        fields = None
        if self.fields is not None:
            fields = tuple((f.name, _shallow_key(f.ctype)) for f in self.fields)
        return (self.kind, self.tag, fields)

    def __eq__(self, other) -> bool:
        if self is other:
            return True
        if not isinstance(other, StructType):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash((self.kind, self.tag))

    def __repr__(self) -> str:
        return f'StructType({self.kind!r}, {self.tag!r})'

    def __str__(self) -> str:
        if self.anonymous:
            return f'{self.kind} <anonymous>'
        return f'{self.kind} {self.tag}'


def _round_up(value: int, align: int) -> int:
    if align <= 1:
        return value
    return (value + align - 1) // align * align


def _shallow_key(ctype: CType):
    """A hashable key for ctype that does not recurse into struct fields."""
    if isinstance(ctype, StructType):
        return ('struct-ref', ctype.kind, ctype.tag)
    if isinstance(ctype, PointerType):
        return ('ptr', _shallow_key(ctype.target))
    if isinstance(ctype, ArrayType):
        return ('array', _shallow_key(ctype.element), ctype.length)
    if isinstance(ctype, FunctionType):
        return (
            'func',
            _shallow_key(ctype.return_type),
            tuple(_shallow_key(p) for p in ctype.params),
            ctype.variadic,
        )
    if isinstance(ctype, TypedefType):
        return _shallow_key(ctype.target)
    return ctype


# =============================================================================
# PREDEFINED TYPES
# =============================================================================

VOID = VoidType()
ERROR = ErrorType()

BOOL = IntegerType('_Bool', 1, False, 0)
CHAR = IntegerType('char', 1, True, 1)
SCHAR = IntegerType('signed char', 1, True, 1)
UCHAR = IntegerType('unsigned char', 1, False, 1)
SHORT = IntegerType('short', 2, True, 2)
USHORT = IntegerType('unsigned short', 2, False, 2)
INT = IntegerType('int', 4, True, 3)
UINT = IntegerType('unsigned int', 4, False, 3)
LONG = IntegerType('long', 8, True, 4)
ULONG = IntegerType('unsigned long', 8, False, 4)
LLONG = IntegerType('long long', 8, True, 5)
ULLONG = IntegerType('unsigned long long', 8, False, 5)

FLOAT = FloatType('float', 4)
DOUBLE = FloatType('double', 8)
LDOUBLE = FloatType('long double', 16)

SIZE_T = ULONG
PTRDIFF_T = LONG


# =============================================================================
# TYPE RELATIONS
# =============================================================================

def strip(ctype: CType) -> CType:
    return ctype.strip()


def compatible(a: CType, b: CType) -> bool:
    """Structural compatibility ignoring typedef names and enum/int distinctions."""
    a = a.strip()
    b = b.strip()
    if isinstance(a, EnumType):
        a = INT
    if isinstance(b, EnumType):
        b = INT
    if isinstance(a, PointerType) and isinstance(b, PointerType):
        return compatible(a.target, b.target)
    if isinstance(a, ArrayType) and isinstance(b, ArrayType):
        if a.length is not None and b.length is not None and a.length != b.length:
            return False
        return compatible(a.element, b.element)
    if isinstance(a, FunctionType) and isinstance(b, FunctionType):
        if not compatible(a.return_type, b.return_type):
            return False
        if not a.has_prototype or not b.has_prototype:
            return True
        if a.variadic != b.variadic or len(a.params) != len(b.params):
            return False
        return all(compatible(x, y) for x, y in zip(a.params, b.params))
    return a == b


def integer_promote(ctype: CType) -> CType:
    """Apply the integer promotions."""
    t = ctype.strip()
    if isinstance(t, EnumType):
        return INT
    if isinstance(t, IntegerType) and t.rank < INT.rank:
        return INT
    return t


def usual_arithmetic_conversion(a: CType, b: CType) -> CType:
    """The common real type of two arithmetic operands."""
    a = a.strip()
    b = b.strip()
    if a.is_floating or b.is_floating:
        sizes = [t.size for t in (a, b) if isinstance(t, FloatType)]
        largest = max(sizes)
        if largest >= LDOUBLE.size:
            return LDOUBLE
        if largest >= DOUBLE.size:
            return DOUBLE
        return FLOAT
    a = integer_promote(a)
    b = integer_promote(b)
    if a == b:
        return a
    assert isinstance(a, IntegerType) and isinstance(b, IntegerType)
    if a.signed == b.signed:
        return a if a.rank >= b.rank else b
    unsigned, signed = (a, b) if not a.signed else (b, a)
    if unsigned.rank >= signed.rank:
        return unsigned
    if signed.byte_size > unsigned.byte_size:
        return signed
    return corresponding_unsigned(signed)


def corresponding_unsigned(ctype: IntegerType) -> IntegerType:
    return {
        'char': UCHAR,
        'signed char': UCHAR,
        'short': USHORT,
        'int': UINT,
        'long': ULONG,
        'long long': ULLONG,
    }.get(ctype.name, ctype)


def decay(ctype: CType) -> CType:
    """Array-to-pointer and function-to-pointer conversion."""
    t = ctype.strip()
    if isinstance(t, ArrayType):
        return PointerType(t.element)
    if isinstance(t, FunctionType):
        return PointerType(ctype)
    return ctype


def pointee(ctype: CType) -> Optional[CType]:
    t = ctype.strip()
    if isinstance(t, PointerType):
        return t.target
    return None
