"""
Semantic analysis: scopes, symbols, constant folding and type checking.
"""

from .scope import Symbol, SymbolStorage, Scope, ScopeArena
from .constant import (
    wrap_integer,
    evaluate_integer,
    is_null_pointer_constant,
    is_arithmetic_constant,
    is_address_constant,
    is_constant_initializer,
)
from .resolver import Resolver, resolve

__all__ = [
    'Symbol',
    'SymbolStorage',
    'Scope',
    'ScopeArena',
    'wrap_integer',
    'evaluate_integer',
    'is_null_pointer_constant',
    'is_arithmetic_constant',
    'is_address_constant',
    'is_constant_initializer',
    'Resolver',
    'resolve',
]
