"""
Types module for the C to Python transpiler.

This module provides semantic C types, the shared builtin table, and the
mappings from C types to their Python representation.
"""

from .types import (
    CType,
    VoidType,
    ErrorType,
    IntegerType,
    FloatType,
    EnumType,
    PointerType,
    ArrayType,
    FunctionType,
    TypedefType,
    StructType,
    Field,
    compatible,
    integer_promote,
    usual_arithmetic_conversion,
    decay,
    pointee,
)
from .builtins import (
    BuiltinTable,
    BuiltinFunction,
    BuiltinConstant,
    build_builtin_table,
    primitive_from_specifiers,
    DEFAULT_BUILTINS,
)
from .mappings import (
    integer_wrapper,
    fits_in,
    get_default_value,
    element_factory,
    INTEGER_WRAPPERS,
    DEFAULT_VALUES,
)

__all__ = [
    'CType',
    'VoidType',
    'ErrorType',
    'IntegerType',
    'FloatType',
    'EnumType',
    'PointerType',
    'ArrayType',
    'FunctionType',
    'TypedefType',
    'StructType',
    'Field',
    'compatible',
    'integer_promote',
    'usual_arithmetic_conversion',
    'decay',
    'pointee',
    'BuiltinTable',
    'BuiltinFunction',
    'BuiltinConstant',
    'build_builtin_table',
    'primitive_from_specifiers',
    'DEFAULT_BUILTINS',
    'integer_wrapper',
    'fits_in',
    'get_default_value',
    'element_factory',
    'INTEGER_WRAPPERS',
    'DEFAULT_VALUES',
]
