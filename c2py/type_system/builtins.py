"""
Builtin names known to every translation unit.

Since the transpiler does not run a preprocessor, the usual libc headers are
replaced by this fixed table: primitive type spellings, common typedef names,
a handful of macro-like constants, and the libc functions implemented by
c2py.runtime. The table is built once and shared read-only between
transpile calls.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from .types import (
    CType,
    FunctionType,
    PointerType,
    TypedefType,
    VOID,
    BOOL,
    CHAR,
    SCHAR,
    UCHAR,
    SHORT,
    USHORT,
    INT,
    UINT,
    LONG,
    ULONG,
    LLONG,
    ULLONG,
    FLOAT,
    DOUBLE,
    LDOUBLE,
    SIZE_T,
    PTRDIFF_T,
)
from ..lexer.tokens import KEYWORDS


PRIMITIVE_SPECIFIERS = frozenset({
    'void', 'char', 'short', 'int', 'long', 'float', 'double',
    'signed', 'unsigned', '_Bool',
})


def primitive_from_specifiers(names: List[str]) -> Optional[CType]:
    """Map a list of primitive type specifier keywords to a type.

    Returns None if the combination is not valid C.
    """
    longs = names.count('long')
    signed = names.count('signed')
    unsigned = names.count('unsigned')
    bases = [n for n in names if n not in ('long', 'signed', 'unsigned')]

    if signed + unsigned > 1 or longs > 2 or len(bases) > 1:
        return None
    base = bases[0] if bases else None

    if base in ('void', '_Bool', 'float'):
        if longs or signed or unsigned:
            return None
        return {'void': VOID, '_Bool': BOOL, 'float': FLOAT}[base]
    if base == 'double':
        if signed or unsigned or longs > 1:
            return None
        return LDOUBLE if longs else DOUBLE
    if base == 'char':
        if longs:
            return None
        if unsigned:
            return UCHAR
        return SCHAR if signed else CHAR
    if base == 'short':
        if longs:
            return None
        return USHORT if unsigned else SHORT
    if base not in (None, 'int'):
        return None
    if base is None and not (longs or signed or unsigned):
        return None
    if longs == 2:
        return ULLONG if unsigned else LLONG
    if longs == 1:
        return ULONG if unsigned else LONG
    return UINT if unsigned else INT


@dataclass(frozen=True)
class BuiltinFunction:
    """A libc function implemented by the runtime."""
    name: str
    ctype: FunctionType
    runtime_name: str
    # memset/memcpy-style functions receive the pointee size of their first argument
    needs_element_size: bool = False


@dataclass(frozen=True)
class BuiltinConstant:
    name: str
    ctype: CType
    value: int
    is_null_pointer: bool = False


@dataclass
class BuiltinTable:
    """Read-only tables shared by every transpile call."""
    keywords: FrozenSet[str] = field(default_factory=lambda: frozenset(KEYWORDS))
    typedefs: Dict[str, TypedefType] = field(default_factory=dict)
    functions: Dict[str, BuiltinFunction] = field(default_factory=dict)
    constants: Dict[str, BuiltinConstant] = field(default_factory=dict)

    @property
    def typedef_names(self) -> FrozenSet[str]:
        return frozenset(self.typedefs)

    def function(self, name: str) -> Optional[BuiltinFunction]:
        return self.functions.get(name)


def _fn(ret: CType, *params: CType, variadic: bool = False) -> FunctionType:
    return FunctionType(ret, tuple(params), variadic)


_CHAR_PTR = PointerType(CHAR)
_VOID_PTR = PointerType(VOID)

_BUILTIN_FUNCTIONS: Tuple[Tuple[str, FunctionType, str, bool], ...] = (
    ('printf', _fn(INT, _CHAR_PTR, variadic=True), 'printf', False),
    ('puts', _fn(INT, _CHAR_PTR), 'puts', False),
    ('putchar', _fn(INT, INT), 'putchar', False),
    ('malloc', _fn(_VOID_PTR, SIZE_T), 'malloc', False),
    ('calloc', _fn(_VOID_PTR, SIZE_T, SIZE_T), 'calloc', False),
    ('realloc', _fn(_VOID_PTR, _VOID_PTR, SIZE_T), 'realloc', False),
    ('free', _fn(VOID, _VOID_PTR), 'free', False),
    ('memset', _fn(_VOID_PTR, _VOID_PTR, INT, SIZE_T), 'memset', True),
    ('memcpy', _fn(_VOID_PTR, _VOID_PTR, _VOID_PTR, SIZE_T), 'memcpy', True),
    ('strlen', _fn(SIZE_T, _CHAR_PTR), 'strlen', False),
    ('strcmp', _fn(INT, _CHAR_PTR, _CHAR_PTR), 'strcmp', False),
    ('strcpy', _fn(_CHAR_PTR, _CHAR_PTR, _CHAR_PTR), 'strcpy', False),
    ('abs', _fn(INT, INT), 'c_abs', False),
    ('labs', _fn(LONG, LONG), 'c_abs', False),
    ('exit', _fn(VOID, INT), 'c_exit', False),
    ('assert', _fn(VOID, INT), 'c_assert', False),
    ('sqrt', _fn(DOUBLE, DOUBLE), 'sqrt', False),
    ('pow', _fn(DOUBLE, DOUBLE, DOUBLE), 'pow', False),
    ('fabs', _fn(DOUBLE, DOUBLE), 'fabs', False),
)

_BUILTIN_TYPEDEFS: Tuple[Tuple[str, CType], ...] = (
    ('size_t', SIZE_T),
    ('ssize_t', LONG),
    ('ptrdiff_t', PTRDIFF_T),
    ('intptr_t', LONG),
    ('uintptr_t', ULONG),
    ('bool', BOOL),
    ('int8_t', SCHAR),
    ('uint8_t', UCHAR),
    ('int16_t', SHORT),
    ('uint16_t', USHORT),
    ('int32_t', INT),
    ('uint32_t', UINT),
    ('int64_t', LONG),
    ('uint64_t', ULONG),
)

_BUILTIN_CONSTANTS: Tuple[BuiltinConstant, ...] = (
    BuiltinConstant('NULL', _VOID_PTR, 0, is_null_pointer=True),
    BuiltinConstant('true', INT, 1),
    BuiltinConstant('false', INT, 0),
    BuiltinConstant('EXIT_SUCCESS', INT, 0),
    BuiltinConstant('EXIT_FAILURE', INT, 1),
    BuiltinConstant('CHAR_BIT', INT, 8),
    BuiltinConstant('INT_MAX', INT, INT.max_value),
    BuiltinConstant('INT_MIN', INT, INT.min_value),
    BuiltinConstant('UINT_MAX', UINT, UINT.max_value),
    BuiltinConstant('LONG_MAX', LONG, LONG.max_value),
    BuiltinConstant('LONG_MIN', LONG, LONG.min_value),
)


def build_builtin_table() -> BuiltinTable:
    """Build the shared builtin table."""
    table = BuiltinTable()
    for name, target in _BUILTIN_TYPEDEFS:
        table.typedefs[name] = TypedefType(name, target)
    for name, ctype, runtime_name, needs_size in _BUILTIN_FUNCTIONS:
        table.functions[name] = BuiltinFunction(name, ctype, runtime_name, needs_size)
    for const in _BUILTIN_CONSTANTS:
        table.constants[const.name] = const
    return table


# Shared by Transpiler instances that are not given their own table
DEFAULT_BUILTINS = build_builtin_table()
