"""
Type mappings from C types to their Python representation.

This module contains the mappings used by the code generator to pick the
runtime wrap helper for an integer type and to build zero values.
"""

from typing import Callable, Optional

from .types import (
    CType,
    IntegerType,
    FloatType,
    EnumType,
    PointerType,
    ArrayType,
    StructType,
    FunctionType,
)


# =============================================================================
# TYPE MAPPING CONSTANTS
# =============================================================================

# (byte size, signed) -> runtime helper that wraps a Python int to that width
INTEGER_WRAPPERS = {
    (1, True): 'i8',
    (1, False): 'u8',
    (2, True): 'i16',
    (2, False): 'u16',
    (4, True): 'i32',
    (4, False): 'u32',
    (8, True): 'i64',
    (8, False): 'u64',
}

# Zero values for scalar categories
DEFAULT_VALUES = {
    'integer': '0',
    'floating': '0.0',
    'pointer': 'None',
}


# =============================================================================
# TYPE CONVERSION FUNCTIONS
# =============================================================================

def integer_wrapper(ctype: CType) -> Optional[str]:
    """Return the runtime wrap helper name for an integer type.

    _Bool maps to 'to_bool'; non-integer types return None.
    """
    t = ctype.strip()
    if isinstance(t, EnumType):
        return 'i32'
    if not isinstance(t, IntegerType):
        return None
    if t.name == '_Bool':
        return 'to_bool'
    return INTEGER_WRAPPERS[(t.byte_size, t.signed)]


def fits_in(source: CType, target: CType) -> bool:
    """Whether every value of integer type source is representable in target."""
    s = source.strip()
    t = target.strip()
    if isinstance(s, EnumType):
        s_min, s_max = -(1 << 31), (1 << 31) - 1
    elif isinstance(s, IntegerType):
        s_min, s_max = s.min_value, s.max_value
    else:
        return False
    if isinstance(t, EnumType):
        t_min, t_max = -(1 << 31), (1 << 31) - 1
    elif isinstance(t, IntegerType):
        t_min, t_max = t.min_value, t.max_value
    else:
        return False
    return t_min <= s_min and s_max <= t_max


def get_default_value(ctype: CType, struct_class: Callable[[StructType], str]) -> str:
    """Return a Python expression that builds the zero value of ctype.

    Args:
        ctype: The C type
        struct_class: Maps a struct type to its generated class name

    Returns:
        Python source for a fresh zero value
    """
    t = ctype.strip()
    if isinstance(t, (IntegerType, EnumType)):
        return DEFAULT_VALUES['integer']
    if isinstance(t, FloatType):
        return DEFAULT_VALUES['floating']
    if isinstance(t, (PointerType, FunctionType)):
        return DEFAULT_VALUES['pointer']
    if isinstance(t, StructType):
        return f'{struct_class(t)}()'
    if isinstance(t, ArrayType):
        length = t.length or 0
        element = t.element.strip()
        if element.is_scalar:
            return f'[{get_default_value(element, struct_class)}] * {length}'
        return f'[{get_default_value(element, struct_class)} for _ in range({length})]'
    return 'None'


def element_factory(ctype: CType, struct_class: Callable[[StructType], str]) -> str:
    """Return a Python callable expression producing zero values of ctype."""
    t = ctype.strip()
    if isinstance(t, StructType):
        return struct_class(t)
    if isinstance(t, (IntegerType, EnumType)):
        return 'int'
    if isinstance(t, FloatType):
        return 'float'
    return f'lambda: {get_default_value(t, struct_class)}'
