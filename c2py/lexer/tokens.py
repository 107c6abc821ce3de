"""
Token definitions for the C lexer.

This module contains the TokenType enum, Token dataclass, and
constant mappings for keywords and punctuators.
"""

from dataclasses import dataclass
from enum import Enum, auto

from ..diagnostics import SourcePosition


class TokenType(Enum):
    """Enumeration of all token types recognized by the C lexer."""

    # Keywords
    AUTO = auto()
    BREAK = auto()
    CASE = auto()
    CHAR = auto()
    CONST = auto()
    CONTINUE = auto()
    DEFAULT = auto()
    DO = auto()
    DOUBLE = auto()
    ELSE = auto()
    ENUM = auto()
    EXTERN = auto()
    FLOAT = auto()
    FOR = auto()
    GOTO = auto()
    IF = auto()
    INLINE = auto()
    INT = auto()
    LONG = auto()
    REGISTER = auto()
    RESTRICT = auto()
    RETURN = auto()
    SHORT = auto()
    SIGNED = auto()
    SIZEOF = auto()
    STATIC = auto()
    STRUCT = auto()
    SWITCH = auto()
    TYPEDEF = auto()
    UNION = auto()
    UNSIGNED = auto()
    VOID = auto()
    VOLATILE = auto()
    WHILE = auto()
    BOOL = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    AMPERSAND = auto()
    PIPE = auto()
    CARET = auto()
    TILDE = auto()
    BANG = auto()
    LT = auto()
    GT = auto()
    LT_EQ = auto()
    GT_EQ = auto()
    EQ_EQ = auto()
    BANG_EQ = auto()
    AMPERSAND_AMPERSAND = auto()
    PIPE_PIPE = auto()
    LT_LT = auto()
    GT_GT = auto()
    EQ = auto()
    PLUS_EQ = auto()
    MINUS_EQ = auto()
    STAR_EQ = auto()
    SLASH_EQ = auto()
    PERCENT_EQ = auto()
    AMPERSAND_EQ = auto()
    PIPE_EQ = auto()
    CARET_EQ = auto()
    LT_LT_EQ = auto()
    GT_GT_EQ = auto()
    PLUS_PLUS = auto()
    MINUS_MINUS = auto()
    ARROW = auto()
    QUESTION = auto()
    COLON = auto()
    HASH = auto()
    HASH_HASH = auto()

    # Delimiters
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    SEMICOLON = auto()
    COMMA = auto()
    DOT = auto()
    ELLIPSIS = auto()

    # Literals
    INT_LITERAL = auto()
    FLOAT_LITERAL = auto()
    CHAR_LITERAL = auto()
    STRING_LITERAL = auto()
    IDENTIFIER = auto()

    # Special
    ERROR = auto()
    EOF = auto()


class TokenCategory(Enum):
    """Coarse token classification."""
    IDENTIFIER = 'identifier'
    KEYWORD = 'keyword'
    LITERAL = 'literal'
    PUNCTUATOR = 'punctuator'
    ERROR = 'error'
    EOF = 'eof'


@dataclass(frozen=True)
class Token:
    """Represents a single token from the lexer."""
    type: TokenType
    value: str
    line: int
    column: int
    offset: int = 0
    # Set on ERROR tokens: the diagnostic code and message to report
    error: str = ''

    @property
    def pos(self) -> SourcePosition:
        return SourcePosition(self.line, self.column, self.offset)

    @property
    def category(self) -> TokenCategory:
        if self.type == TokenType.IDENTIFIER:
            return TokenCategory.IDENTIFIER
        if self.type in KEYWORD_TYPES:
            return TokenCategory.KEYWORD
        if self.type in LITERAL_TYPES:
            return TokenCategory.LITERAL
        if self.type == TokenType.ERROR:
            return TokenCategory.ERROR
        if self.type == TokenType.EOF:
            return TokenCategory.EOF
        return TokenCategory.PUNCTUATOR


# Keyword to TokenType mapping
KEYWORDS = {
    'auto': TokenType.AUTO,
    'break': TokenType.BREAK,
    'case': TokenType.CASE,
    'char': TokenType.CHAR,
    'const': TokenType.CONST,
    'continue': TokenType.CONTINUE,
    'default': TokenType.DEFAULT,
    'do': TokenType.DO,
    'double': TokenType.DOUBLE,
    'else': TokenType.ELSE,
    'enum': TokenType.ENUM,
    'extern': TokenType.EXTERN,
    'float': TokenType.FLOAT,
    'for': TokenType.FOR,
    'goto': TokenType.GOTO,
    'if': TokenType.IF,
    'inline': TokenType.INLINE,
    'int': TokenType.INT,
    'long': TokenType.LONG,
    'register': TokenType.REGISTER,
    'restrict': TokenType.RESTRICT,
    'return': TokenType.RETURN,
    'short': TokenType.SHORT,
    'signed': TokenType.SIGNED,
    'sizeof': TokenType.SIZEOF,
    'static': TokenType.STATIC,
    'struct': TokenType.STRUCT,
    'switch': TokenType.SWITCH,
    'typedef': TokenType.TYPEDEF,
    'union': TokenType.UNION,
    'unsigned': TokenType.UNSIGNED,
    'void': TokenType.VOID,
    'volatile': TokenType.VOLATILE,
    'while': TokenType.WHILE,
    '_Bool': TokenType.BOOL,
}

KEYWORD_TYPES = frozenset(KEYWORDS.values())

LITERAL_TYPES = frozenset({
    TokenType.INT_LITERAL,
    TokenType.FLOAT_LITERAL,
    TokenType.CHAR_LITERAL,
    TokenType.STRING_LITERAL,
})

# Three-character punctuators
THREE_CHAR_OPS = {
    '...': TokenType.ELLIPSIS,
    '<<=': TokenType.LT_LT_EQ,
    '>>=': TokenType.GT_GT_EQ,
}

# Two-character punctuators
TWO_CHAR_OPS = {
    '->': TokenType.ARROW,
    '++': TokenType.PLUS_PLUS,
    '--': TokenType.MINUS_MINUS,
    '<<': TokenType.LT_LT,
    '>>': TokenType.GT_GT,
    '<=': TokenType.LT_EQ,
    '>=': TokenType.GT_EQ,
    '==': TokenType.EQ_EQ,
    '!=': TokenType.BANG_EQ,
    '&&': TokenType.AMPERSAND_AMPERSAND,
    '||': TokenType.PIPE_PIPE,
    '*=': TokenType.STAR_EQ,
    '/=': TokenType.SLASH_EQ,
    '%=': TokenType.PERCENT_EQ,
    '+=': TokenType.PLUS_EQ,
    '-=': TokenType.MINUS_EQ,
    '&=': TokenType.AMPERSAND_EQ,
    '^=': TokenType.CARET_EQ,
    '|=': TokenType.PIPE_EQ,
    '##': TokenType.HASH_HASH,
}

# Single-character punctuators and delimiters
SINGLE_CHAR_OPS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '%': TokenType.PERCENT,
    '&': TokenType.AMPERSAND,
    '|': TokenType.PIPE,
    '^': TokenType.CARET,
    '~': TokenType.TILDE,
    '!': TokenType.BANG,
    '<': TokenType.LT,
    '>': TokenType.GT,
    '=': TokenType.EQ,
    '?': TokenType.QUESTION,
    ':': TokenType.COLON,
    '#': TokenType.HASH,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    '[': TokenType.LBRACKET,
    ']': TokenType.RBRACKET,
    ';': TokenType.SEMICOLON,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
}

# Simple escape sequences accepted inside character and string literals
SIMPLE_ESCAPES = {
    'n': 10,
    't': 9,
    'r': 13,
    'a': 7,
    'b': 8,
    'f': 12,
    'v': 11,
    '\\': 92,
    "'": 39,
    '"': 34,
    '?': 63,
}
