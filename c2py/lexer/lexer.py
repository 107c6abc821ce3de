"""
Lexer implementation for C source code.

The Lexer tokenizes C source text into a stream of tokens that can be
consumed by the parser. Lexing is a pure function of its input: errors are
returned as ERROR tokens rather than reported or raised, so the same bytes
always produce the same tokens.
"""

import sys
from typing import Iterator, List, Optional, Tuple, Union

from .tokens import (
    Token,
    TokenType,
    KEYWORDS,
    THREE_CHAR_OPS,
    TWO_CHAR_OPS,
    SINGLE_CHAR_OPS,
    SIMPLE_ESCAPES,
)


_DIGITS = '0123456789'
_HEX_DIGITS = '0123456789abcdefABCDEF'
_OCT_DIGITS = '01234567'
_INT_SUFFIXES = {'', 'u', 'l', 'ul', 'lu', 'll', 'ull', 'llu'}
_FLOAT_SUFFIXES = {'', 'f', 'l'}


def _is_identifier_char(ch: str) -> bool:
    # ASCII only: every such name is also a valid Python identifier
    return ch == '_' or (ch.isascii() and ch.isalnum())


def decode_source(source: Union[str, bytes]) -> str:
    """Return source text, decoding UTF-8 bytes if needed.

    Raises UnicodeDecodeError for bytes that are not valid UTF-8.
    """
    if isinstance(source, bytes):
        return source.decode('utf-8')
    if isinstance(source, str):
        return source
    raise TypeError(f'source must be str or bytes, not {type(source).__name__}')


def decode_escapes(body: str) -> Tuple[List[int], List[str]]:
    """Decode the body of a char/string literal into byte values.

    Returns the list of values and a list of problems found (unknown escape
    sequences are kept as the escaped character itself).
    """
    values: List[int] = []
    problems: List[str] = []
    i = 0
    n = len(body)
    while i < n:
        ch = body[i]
        if ch != '\\':
            values.extend(ch.encode('utf-8'))
            i += 1
            continue
        i += 1
        if i >= n:
            problems.append('trailing backslash in literal')
            values.append(92)
            break
        esc = body[i]
        if esc in SIMPLE_ESCAPES:
            values.append(SIMPLE_ESCAPES[esc])
            i += 1
        elif esc in _OCT_DIGITS:
            j = i
            while j < n and j < i + 3 and body[j] in _OCT_DIGITS:
                j += 1
            values.append(int(body[i:j], 8) & 0xFF)
            i = j
        elif esc == 'x':
            j = i + 1
            while j < n and body[j] in _HEX_DIGITS:
                j += 1
            if j == i + 1:
                problems.append('\\x used with no following hex digits')
                values.append(ord('x'))
            else:
                values.append(int(body[i + 1:j], 16) & 0xFF)
            i = j
        else:
            problems.append(f"unknown escape sequence '\\{esc}'")
            values.extend(esc.encode('utf-8'))
            i += 1
    return values, problems


class Lexer:
    """
    Lexer for C source code.

    Converts source text into tokens for parsing. Identifiers are interned
    with sys.intern so repeated names share storage across transpile calls.
    """

    def __init__(self, source: Union[str, bytes]):
        self.source = decode_source(source)
        self.pos = 0
        self.line = 1
        self.column = 1
        self.offset = 0
        self.tokens: List[Token] = []

    def reset(self) -> None:
        self.pos = 0
        self.line = 1
        self.column = 1
        self.offset = 0
        self.tokens = []

    def peek(self, offset: int = 0) -> str:
        """Look ahead in the source without consuming."""
        pos = self.pos + offset
        if pos >= len(self.source):
            return ''
        return self.source[pos]

    def advance(self) -> str:
        """Consume and return the current character."""
        ch = self.peek()
        if not ch:
            return ch
        self.pos += 1
        self.offset += 1 if ch < '\x80' else len(ch.encode('utf-8'))
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def skip_whitespace(self) -> None:
        """Skip over whitespace characters, including line continuations."""
        while True:
            ch = self.peek()
            if ch and ch in ' \t\r\n\f\v':
                self.advance()
            elif ch == '\\' and self.peek(1) == '\n':
                self.advance()
                self.advance()
            else:
                return

    def skip_comment(self) -> bool:
        """Skip a line or block comment. Returns False if a block comment is unterminated."""
        if self.peek(1) == '/':
            while self.peek() and self.peek() != '\n':
                self.advance()
            return True
        self.advance()  # skip /
        self.advance()  # skip *
        while self.peek():
            if self.peek() == '*' and self.peek(1) == '/':
                self.advance()
                self.advance()
                return True
            self.advance()
        return False

    def read_quoted(self) -> Tuple[str, bool]:
        """Read a char or string literal including its quotes.

        Returns the raw text and whether the closing quote was found.
        """
        quote = self.advance()
        result = quote
        while self.peek() and self.peek() != quote and self.peek() != '\n':
            if self.peek() == '\\' and self.peek(1):
                result += self.advance()
            result += self.advance()
        if self.peek() == quote:
            result += self.advance()
            return result, True
        return result, False

    def read_number(self) -> Tuple[str, TokenType, Optional[str]]:
        """Read an integer or floating literal.

        Returns the raw text, token type, and an error message (or None).
        """
        start = self.pos
        is_float = False

        if self.peek() == '0' and self.peek(1) in ('x', 'X') and (
            (self.peek(2) and self.peek(2) in _HEX_DIGITS)
            or (self.peek(2) == '.' and self.peek(3) and self.peek(3) in _HEX_DIGITS)
        ):
            self.advance()
            self.advance()
            while self.peek() and self.peek() in _HEX_DIGITS:
                self.advance()
            if self.peek() == '.':
                is_float = True
                self.advance()
                while self.peek() and self.peek() in _HEX_DIGITS:
                    self.advance()
            if self.peek() in ('p', 'P') and self._exponent_follows():
                is_float = True
                self._read_exponent()
            elif is_float:
                self.read_suffix()
                return self.source[start:self.pos], TokenType.ERROR, 'hexadecimal floating constant requires an exponent'
        else:
            while self.peek() and self.peek() in _DIGITS:
                self.advance()
            if self.peek() == '.':
                is_float = True
                self.advance()
                while self.peek() and self.peek() in _DIGITS:
                    self.advance()
            if self.peek() in ('e', 'E') and self._exponent_follows():
                is_float = True
                self._read_exponent()

        body = self.source[start:self.pos]
        suffix = self.read_suffix().lower()
        text = self.source[start:self.pos]

        if is_float:
            if suffix not in _FLOAT_SUFFIXES:
                return text, TokenType.ERROR, f"invalid suffix '{suffix}' on floating constant"
            return text, TokenType.FLOAT_LITERAL, None

        if suffix not in _INT_SUFFIXES:
            return text, TokenType.ERROR, f"invalid suffix '{suffix}' on integer constant"
        if len(body) > 1 and body[0] == '0' and body[1] not in 'xX':
            if any(c not in _OCT_DIGITS for c in body):
                return text, TokenType.ERROR, f"invalid digit in octal constant '{body}'"
        return text, TokenType.INT_LITERAL, None

    def _exponent_follows(self) -> bool:
        """At an exponent marker followed by an optionally signed decimal digit."""
        if self.peek(1) and self.peek(1) in _DIGITS:
            return True
        return self.peek(1) in ('+', '-') and bool(self.peek(2)) and self.peek(2) in _DIGITS

    def _read_exponent(self) -> None:
        self.advance()
        if self.peek() in ('+', '-'):
            self.advance()
        while self.peek() and self.peek() in _DIGITS:
            self.advance()

    def read_suffix(self) -> str:
        """Read the letters and digits glued to the end of a number."""
        start = self.pos
        while self.peek() and _is_identifier_char(self.peek()):
            self.advance()
        return self.source[start:self.pos]

    def read_identifier(self) -> Tuple[str, Optional[str]]:
        """Read an identifier or keyword.

        Returns the text and an error message (or None). A '$' is taken into
        the token so the whole name is reported once.
        """
        start = self.pos
        while self.peek() and (_is_identifier_char(self.peek()) or self.peek() == '$'):
            self.advance()
        text = self.source[start:self.pos]
        if '$' in text:
            return text, f"'$' in identifier '{text}' is not supported"
        return text, None

    def iter_tokens(self) -> Iterator[Token]:
        """Lazily yield tokens from the start of the source, ending with EOF."""
        self.reset()
        while True:
            self.skip_whitespace()
            if self.pos >= len(self.source):
                break

            start_line = self.line
            start_col = self.column
            start_offset = self.offset
            start_pos = self.pos
            ch = self.peek()

            # Comments
            if ch == '/' and self.peek(1) in ('/', '*'):
                if not self.skip_comment():
                    yield Token(
                        TokenType.ERROR, self.source[start_pos:self.pos],
                        start_line, start_col, start_offset,
                        error='E103:unterminated comment',
                    )
                continue

            # Character and string literals
            if ch in ('"', "'"):
                value, closed = self.read_quoted()
                if not closed:
                    kind = 'string' if ch == '"' else 'character'
                    yield Token(
                        TokenType.ERROR, value, start_line, start_col, start_offset,
                        error=f'E102:unterminated {kind} literal',
                    )
                elif ch == "'" and value == "''":
                    yield Token(
                        TokenType.ERROR, value, start_line, start_col, start_offset,
                        error='E104:empty character constant',
                    )
                else:
                    token_type = TokenType.STRING_LITERAL if ch == '"' else TokenType.CHAR_LITERAL
                    yield Token(token_type, value, start_line, start_col, start_offset)
                continue

            # Numbers
            if ch in _DIGITS or (ch == '.' and self.peek(1) and self.peek(1) in _DIGITS):
                value, token_type, problem = self.read_number()
                yield Token(
                    token_type, value, start_line, start_col, start_offset,
                    error=f'E105:{problem}' if problem else '',
                )
                continue

            # Identifiers and keywords
            if (_is_identifier_char(ch) and ch not in _DIGITS) or ch == '$':
                value, problem = self.read_identifier()
                if problem:
                    yield Token(TokenType.ERROR, value, start_line, start_col, start_offset, error=f'E106:{problem}')
                    continue
                token_type = KEYWORDS.get(value, TokenType.IDENTIFIER)
                yield Token(token_type, sys.intern(value), start_line, start_col, start_offset)
                continue

            # Punctuators, longest match first
            three_char = self.source[self.pos:self.pos + 3]
            two_char = self.source[self.pos:self.pos + 2]
            if three_char in THREE_CHAR_OPS:
                for _ in range(3):
                    self.advance()
                yield Token(THREE_CHAR_OPS[three_char], three_char, start_line, start_col, start_offset)
                continue
            if two_char in TWO_CHAR_OPS:
                self.advance()
                self.advance()
                yield Token(TWO_CHAR_OPS[two_char], two_char, start_line, start_col, start_offset)
                continue
            if ch in SINGLE_CHAR_OPS:
                self.advance()
                yield Token(SINGLE_CHAR_OPS[ch], ch, start_line, start_col, start_offset)
                continue

            # Unknown character
            self.advance()
            yield Token(
                TokenType.ERROR, ch, start_line, start_col, start_offset,
                error=f"E101:unrecognized character '{ch}'",
            )

        yield Token(TokenType.EOF, '', self.line, self.column, self.offset)

    def tokenize(self) -> List[Token]:
        """
        Tokenize the entire source and return a list of tokens.

        Returns:
            List of Token objects, ending with an EOF token.
        """
        self.tokens = list(self.iter_tokens())
        return self.tokens


class TokenStream:
    """A lazy, restartable token sequence over a fixed source.

    Each iteration starts a fresh lexer, so iterating twice yields equal
    token sequences.
    """

    def __init__(self, source: Union[str, bytes]):
        self._source = decode_source(source)

    def __iter__(self) -> Iterator[Token]:
        return Lexer(self._source).iter_tokens()

    def to_list(self) -> List[Token]:
        return list(self)


def tokenize(source: Union[str, bytes]) -> TokenStream:
    """Return a lazy, restartable token sequence for source."""
    return TokenStream(source)
