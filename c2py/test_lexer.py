"""
Unit tests for the C lexer.

Run with: python3 -m pytest c2py/test_lexer.py
"""

import sys
import unittest

from c2py.lexer import Lexer, TokenType, TokenCategory, tokenize, decode_escapes


def token_types(source):
    return [t.type for t in tokenize(source)]


class TestBasicTokens(unittest.TestCase):
    """Keywords, identifiers, literals and punctuators."""

    def test_declaration(self):
        self.assertEqual(
            token_types('int x = 42;'),
            [TokenType.INT, TokenType.IDENTIFIER, TokenType.EQ,
             TokenType.INT_LITERAL, TokenType.SEMICOLON, TokenType.EOF],
        )

    def test_longest_match_punctuators(self):
        self.assertEqual(
            token_types('a->b <<= c ... d++'),
            [TokenType.IDENTIFIER, TokenType.ARROW, TokenType.IDENTIFIER,
             TokenType.LT_LT_EQ, TokenType.IDENTIFIER, TokenType.ELLIPSIS,
             TokenType.IDENTIFIER, TokenType.PLUS_PLUS, TokenType.EOF],
        )

    def test_keyword_versus_identifier(self):
        tokens = list(tokenize('while whilex _Bool'))
        self.assertEqual(tokens[0].type, TokenType.WHILE)
        self.assertEqual(tokens[1].type, TokenType.IDENTIFIER)
        self.assertEqual(tokens[1].value, 'whilex')
        self.assertEqual(tokens[2].type, TokenType.BOOL)

    def test_numeric_literals(self):
        tokens = list(tokenize('0x1F 10UL 017 1.5f .5 1e10 3.0L'))
        self.assertEqual(
            [t.type for t in tokens[:-1]],
            [TokenType.INT_LITERAL, TokenType.INT_LITERAL, TokenType.INT_LITERAL,
             TokenType.FLOAT_LITERAL, TokenType.FLOAT_LITERAL, TokenType.FLOAT_LITERAL,
             TokenType.FLOAT_LITERAL],
        )
        self.assertEqual(tokens[1].value, '10UL')

    def test_hexadecimal_floating_literals(self):
        tokens = list(tokenize('0x1p3 0x1.8p-1f 0x.8P+2 0x1fu'))
        self.assertEqual(
            [t.type for t in tokens[:-1]],
            [TokenType.FLOAT_LITERAL, TokenType.FLOAT_LITERAL, TokenType.FLOAT_LITERAL,
             TokenType.INT_LITERAL],
        )
        self.assertEqual([t.value for t in tokens[:-1]], ['0x1p3', '0x1.8p-1f', '0x.8P+2', '0x1fu'])

    def test_string_and_char_literals(self):
        tokens = list(tokenize(r'"a\"b" ' + r"'\n'"))
        self.assertEqual(tokens[0].type, TokenType.STRING_LITERAL)
        self.assertEqual(tokens[0].value, r'"a\"b"')
        self.assertEqual(tokens[1].type, TokenType.CHAR_LITERAL)

    def test_categories(self):
        tokens = list(tokenize('int x 1 + @'))
        self.assertEqual(
            [t.category for t in tokens],
            [TokenCategory.KEYWORD, TokenCategory.IDENTIFIER, TokenCategory.LITERAL,
             TokenCategory.PUNCTUATOR, TokenCategory.ERROR, TokenCategory.EOF],
        )


class TestCommentsAndPositions(unittest.TestCase):

    def test_comments_are_skipped(self):
        source = '// line comment\nint /* block\ncomment */ y;'
        self.assertEqual(
            token_types(source),
            [TokenType.INT, TokenType.IDENTIFIER, TokenType.SEMICOLON, TokenType.EOF],
        )

    def test_line_and_column(self):
        tokens = list(tokenize('int a;\n  return'))
        ret = tokens[3]
        self.assertEqual(ret.type, TokenType.RETURN)
        self.assertEqual((ret.line, ret.column), (2, 3))
        self.assertEqual(ret.offset, 9)

    def test_offset_counts_utf8_bytes(self):
        """Columns count characters while offsets count bytes."""
        tokens = list(tokenize('/* é */ x'))
        x = tokens[0]
        self.assertEqual(x.column, 9)
        self.assertEqual(x.offset, 9)

    def test_line_continuation(self):
        self.assertEqual(
            token_types('a \\\n b'),
            [TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.EOF],
        )

    def test_eof_position(self):
        tokens = list(tokenize('x\n'))
        self.assertEqual(tokens[-1].type, TokenType.EOF)
        self.assertEqual(tokens[-1].line, 2)


class TestLexErrors(unittest.TestCase):
    """Errors come back as ERROR tokens carrying a code and message."""

    def error_of(self, source):
        errors = [t for t in tokenize(source) if t.type == TokenType.ERROR]
        self.assertEqual(len(errors), 1, errors)
        return errors[0]

    def test_unrecognized_character(self):
        token = self.error_of('int @ x;')
        self.assertTrue(token.error.startswith('E101:'))
        self.assertEqual(token.value, '@')

    def test_unterminated_string(self):
        self.assertTrue(self.error_of('"abc\nint x;').error.startswith('E102:'))

    def test_unterminated_comment(self):
        self.assertTrue(self.error_of('int x; /* never closed').error.startswith('E103:'))

    def test_empty_char_constant(self):
        self.assertTrue(self.error_of("''").error.startswith('E104:'))

    def test_bad_number(self):
        self.assertIn('octal', self.error_of('09').error)
        self.assertTrue(self.error_of('12abc').error.startswith('E105:'))

    def test_hexadecimal_float_needs_exponent(self):
        token = self.error_of('0x1.8;')
        self.assertTrue(token.error.startswith('E105:'))
        self.assertEqual(token.value, '0x1.8')

    def test_dollar_in_identifier(self):
        token = self.error_of('int a$b = 1;')
        self.assertTrue(token.error.startswith('E106:'))
        self.assertEqual(token.value, 'a$b')
        self.assertTrue(self.error_of('$x').error.startswith('E106:'))

    def test_non_ascii_letter_is_not_an_identifier(self):
        token = self.error_of('int x² = 1;')
        self.assertEqual(token.value, '²')

    def test_lexing_continues_after_error(self):
        types = token_types('a @ b')
        self.assertEqual(types, [TokenType.IDENTIFIER, TokenType.ERROR, TokenType.IDENTIFIER, TokenType.EOF])

    def test_invalid_utf8_raises(self):
        with self.assertRaises(UnicodeDecodeError):
            tokenize(b'int x = \xff;')


class TestTokenStream(unittest.TestCase):

    def test_stream_is_restartable(self):
        stream = tokenize('int main(void) { return 0; }')
        self.assertEqual(list(stream), list(stream))

    def test_bytes_and_text_agree(self):
        source = 'char *s = "hi";'
        self.assertEqual(list(tokenize(source)), list(tokenize(source.encode('utf-8'))))

    def test_identifiers_are_interned(self):
        name = ''.join(['coun', 'ter'])
        token = list(tokenize(name))[0]
        self.assertIs(token.value, sys.intern('counter'))

    def test_lexer_tokenize_list(self):
        tokens = Lexer('x;').tokenize()
        self.assertEqual(tokens[-1].type, TokenType.EOF)
        self.assertEqual(len(tokens), 3)


class TestDecodeEscapes(unittest.TestCase):

    def test_simple_and_numeric_escapes(self):
        values, problems = decode_escapes(r'a\n\x41\101\0')
        self.assertEqual(values, [97, 10, 65, 65, 0])
        self.assertEqual(problems, [])

    def test_unknown_escape_is_reported(self):
        values, problems = decode_escapes(r'\q')
        self.assertEqual(values, [ord('q')])
        self.assertEqual(len(problems), 1)

    def test_utf8_text_becomes_bytes(self):
        values, _ = decode_escapes('é')
        self.assertEqual(values, [0xC3, 0xA9])


if __name__ == '__main__':
    unittest.main()
