"""
Lexer module for the C to Python transpiler.

This module provides tokenization of C source code.
"""

from .tokens import (
    TokenType,
    TokenCategory,
    Token,
    KEYWORDS,
    THREE_CHAR_OPS,
    TWO_CHAR_OPS,
    SINGLE_CHAR_OPS,
)
from .lexer import Lexer, TokenStream, tokenize, decode_escapes, decode_source

__all__ = [
    'TokenType',
    'TokenCategory',
    'Token',
    'KEYWORDS',
    'THREE_CHAR_OPS',
    'TWO_CHAR_OPS',
    'SINGLE_CHAR_OPS',
    'Lexer',
    'TokenStream',
    'tokenize',
    'decode_escapes',
    'decode_source',
]
