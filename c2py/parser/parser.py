"""
C parser implementation.

The Parser converts the token list produced by the Lexer into an Abstract
Syntax Tree (AST). Declarations and statements are parsed by recursive
descent; binary operators use precedence climbing.

Typedef names are what make C context sensitive: `T * x;` is a declaration
when T names a type and a multiplication otherwise. The parser consults an
explicit TypedefTable that mirrors C block scoping.

Syntax errors never escape the parser. Each one is reported once as E201,
the parser skips to the next ';' or to the '}' closing the current construct,
and parsing resumes.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ..diagnostics import Diagnostics, DiagnosticKind, SourcePosition
from ..lexer import Token, TokenType, KEYWORDS, THREE_CHAR_OPS, TWO_CHAR_OPS, SINGLE_CHAR_OPS
from ..lexer import decode_escapes
from ..type_system.builtins import DEFAULT_BUILTINS
from .ast_nodes import (
    # Top-level
    TranslationUnit,
    # Type syntax
    TypeSpec,
    PrimitiveTypeSpec,
    TypedefNameSpec,
    StructSpec,
    FieldDeclaration,
    EnumSpec,
    Enumerator,
    PointerTypeSpec,
    ArrayTypeSpec,
    FunctionTypeSpec,
    ParameterDeclaration,
    # Declarations
    Declaration,
    VariableDeclaration,
    TypedefDeclaration,
    TagDeclaration,
    FunctionDefinition,
    # Expressions
    Expression,
    IntegerLiteral,
    FloatLiteral,
    CharLiteral,
    StringLiteral,
    Identifier,
    BinaryOperation,
    Assignment,
    UnaryOperation,
    TernaryOperation,
    CommaExpression,
    FunctionCall,
    MemberAccess,
    IndexAccess,
    TypeCast,
    SizeofExpression,
    InitializerList,
    InitializerItem,
    CompoundLiteral,
    # Statements
    Statement,
    CompoundStatement,
    DeclarationStatement,
    ExpressionStatement,
    EmptyStatement,
    IfStatement,
    WhileStatement,
    DoWhileStatement,
    ForStatement,
    SwitchStatement,
    CaseStatement,
    DefaultStatement,
    ReturnStatement,
    BreakStatement,
    ContinueStatement,
    GotoStatement,
    LabeledStatement,
)


# =============================================================================
# TOKEN CLASSES
# =============================================================================

PRIMITIVE_TYPE_TOKENS = frozenset({
    TokenType.VOID, TokenType.CHAR, TokenType.SHORT, TokenType.INT,
    TokenType.LONG, TokenType.FLOAT, TokenType.DOUBLE, TokenType.SIGNED,
    TokenType.UNSIGNED, TokenType.BOOL,
})

QUALIFIER_TOKENS = frozenset({TokenType.CONST, TokenType.VOLATILE, TokenType.RESTRICT})

STORAGE_TOKENS = frozenset({
    TokenType.TYPEDEF, TokenType.EXTERN, TokenType.STATIC,
    TokenType.AUTO, TokenType.REGISTER,
})

TAG_TOKENS = frozenset({TokenType.STRUCT, TokenType.UNION, TokenType.ENUM})

# Lexer error codes whose token is parsed as a stand-in (type, value or None
# to keep the original text), so one bad literal gives one diagnostic
ERROR_PLACEHOLDERS: Dict[str, Tuple[TokenType, Optional[str]]] = {
    'E105': (TokenType.INT_LITERAL, '0'),
    'E106': (TokenType.IDENTIFIER, None),
}

ASSIGNMENT_OPERATORS = frozenset({
    TokenType.EQ, TokenType.PLUS_EQ, TokenType.MINUS_EQ, TokenType.STAR_EQ,
    TokenType.SLASH_EQ, TokenType.PERCENT_EQ, TokenType.AMPERSAND_EQ,
    TokenType.PIPE_EQ, TokenType.CARET_EQ, TokenType.LT_LT_EQ, TokenType.GT_GT_EQ,
})

UNARY_OPERATORS = frozenset({
    TokenType.AMPERSAND, TokenType.STAR, TokenType.PLUS, TokenType.MINUS,
    TokenType.TILDE, TokenType.BANG,
})

# Binary operator precedence, loosest first
BINARY_PRECEDENCE: Dict[TokenType, int] = {
    TokenType.PIPE_PIPE: 1,
    TokenType.AMPERSAND_AMPERSAND: 2,
    TokenType.PIPE: 3,
    TokenType.CARET: 4,
    TokenType.AMPERSAND: 5,
    TokenType.EQ_EQ: 6,
    TokenType.BANG_EQ: 6,
    TokenType.LT: 7,
    TokenType.GT: 7,
    TokenType.LT_EQ: 7,
    TokenType.GT_EQ: 7,
    TokenType.LT_LT: 8,
    TokenType.GT_GT: 8,
    TokenType.PLUS: 9,
    TokenType.MINUS: 9,
    TokenType.STAR: 10,
    TokenType.SLASH: 10,
    TokenType.PERCENT: 10,
}

_TOKEN_SPELLING = {
    token_type: text
    for table in (KEYWORDS, THREE_CHAR_OPS, TWO_CHAR_OPS, SINGLE_CHAR_OPS)
    for text, token_type in table.items()
}


def describe_token(token: Token) -> str:
    if token.type == TokenType.EOF:
        return 'end of input'
    return f"'{token.value}'"


def spelling(token_type: TokenType) -> str:
    text = _TOKEN_SPELLING.get(token_type)
    if text is not None:
        return f"'{text}'"
    return token_type.name.lower().replace('_', ' ')


# =============================================================================
# TYPEDEF TABLE
# =============================================================================

class TypedefTable:
    """
    Block-scoped record of which identifiers currently name types.

    Each scope maps a name to True (typedef) or False (an ordinary
    declaration that shadows an outer typedef). The bottom scope holds the
    builtin typedef names.
    """

    def __init__(self, builtin_names: Iterable[str] = ()):
        self._scopes: List[Dict[str, bool]] = [dict.fromkeys(builtin_names, True), {}]

    def push(self) -> None:
        self._scopes.append({})

    def pop(self) -> None:
        if len(self._scopes) > 2:
            self._scopes.pop()

    @property
    def depth(self) -> int:
        return len(self._scopes) - 2

    def declare(self, name: str, is_typedef: bool) -> None:
        self._scopes[-1][name] = is_typedef

    def is_typedef(self, name: str) -> bool:
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        return False


class _ParseError(Exception):
    """Unwinds to the nearest recovery point. Never leaves the parser."""

    def __init__(self, token: Token, message: str):
        super().__init__(message)
        self.token = token
        self.message = message


@dataclass
class DeclarationSpecifiers:
    """The specifier part of a declaration, before any declarators."""
    type_spec: TypeSpec
    pos: SourcePosition
    storage: Optional[str] = None
    qualifiers: List[str] = field(default_factory=list)
    is_inline: bool = False
    # struct/union reference with no body, e.g. the `struct S` in `struct S;`
    is_tag_reference: bool = False


# =============================================================================
# LITERAL DECODING
# =============================================================================

def parse_integer_text(text: str) -> int:
    """Return the value of a C integer constant, ignoring its suffix."""
    body = text.rstrip('uUlL')
    if body[:2] in ('0x', '0X'):
        return int(body[2:], 16)
    if len(body) > 1 and body[0] == '0':
        return int(body, 8)
    return int(body)


def parse_float_text(text: str) -> float:
    body = text
    if body[-1] in 'fFlL':
        body = body[:-1]
    if body[:2] in ('0x', '0X'):
        return float.fromhex(body)
    return float(body)


# =============================================================================
# PARSER
# =============================================================================

class Parser:
    """
    Recursive descent parser for C source code.

    Parses a token list into a TranslationUnit, reporting problems to the
    given Diagnostics.
    """

    def __init__(
        self,
        tokens: Iterable[Token],
        diagnostics: Diagnostics,
        typedefs: Optional[TypedefTable] = None,
    ):
        self.diagnostics = diagnostics
        self.typedefs = typedefs if typedefs is not None else TypedefTable(DEFAULT_BUILTINS.typedef_names)
        self.tokens = self._prepare_tokens(list(tokens))
        self.pos = 0
        self._anonymous_count = 0
        self._pending_tags: List[TagDeclaration] = []
        # unterminated constructs unwind through several recovery points
        self._reported_eof = False

    def _prepare_tokens(self, tokens: List[Token]) -> List[Token]:
        """Report lexer errors and drop preprocessor lines."""
        result: List[Token] = []
        previous_line = 0
        i = 0
        while i < len(tokens):
            token = tokens[i]
            if token.type == TokenType.ERROR:
                code, _, message = token.error.partition(':')
                self.diagnostics.error(DiagnosticKind.LEX, code or 'E101', message or 'invalid token', token.pos)
                previous_line = token.line
                i += 1
                if code in ERROR_PLACEHOLDERS:
                    # a malformed number or name still fills its slot in the grammar
                    stand_in, value = ERROR_PLACEHOLDERS[code]
                    result.append(Token(stand_in, value or token.value, token.line, token.column, token.offset))
                continue
            if token.type == TokenType.HASH and token.line > previous_line:
                line = token.line
                words = []
                i += 1
                while i < len(tokens) and tokens[i].line == line and tokens[i].type != TokenType.EOF:
                    if tokens[i].type == TokenType.ERROR:
                        code, _, message = tokens[i].error.partition(':')
                        self.diagnostics.error(DiagnosticKind.LEX, code, message, tokens[i].pos)
                    else:
                        words.append(tokens[i].value)
                    i += 1
                directive = '#' + (words[0] if words else '')
                self.diagnostics.warning(
                    DiagnosticKind.SYNTAX, 'W201',
                    f"preprocessor directive '{directive}' ignored", token.pos,
                )
                previous_line = line
                continue
            previous_line = token.line
            result.append(token)
            i += 1
        if not result or result[-1].type != TokenType.EOF:
            last = result[-1] if result else None
            result.append(Token(TokenType.EOF, '', last.line if last else 1, last.column if last else 1))
        return result

    # =========================================================================
    # TOKEN HELPERS
    # =========================================================================

    def peek(self, offset: int = 0) -> Token:
        """Look ahead in the token stream without consuming."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[pos]

    def current(self) -> Token:
        """Return the current token."""
        return self.peek()

    def advance(self) -> Token:
        """Consume and return the current token."""
        token = self.current()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def match(self, *types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        return self.current().type in types

    def accept(self, token_type: TokenType) -> bool:
        """Consume the current token if it has the given type."""
        if self.current().type == token_type:
            self.advance()
            return True
        return False

    def expect(self, token_type: TokenType, context: str = '') -> Token:
        """Consume the current token if it matches, otherwise raise a syntax error."""
        if self.current().type != token_type:
            message = f'expected {spelling(token_type)} but found {describe_token(self.current())}'
            if context:
                message = f'{message} {context}'
            raise _ParseError(self.current(), message)
        return self.advance()

    def error(self, message: str, token: Optional[Token] = None) -> _ParseError:
        return _ParseError(token or self.current(), message)

    # =========================================================================
    # ERROR RECOVERY
    # =========================================================================

    def _recover(self, err: _ParseError) -> None:
        """Report err and skip to the next ';' or to the '}' closing the current construct."""
        if err.token.type == TokenType.EOF:
            if self._reported_eof:
                return
            self._reported_eof = True
        self.diagnostics.error(DiagnosticKind.SYNTAX, 'E201', err.message, err.token.pos)
        self._pending_tags.clear()
        depth = 0
        while not self.match(TokenType.EOF):
            if self.match(TokenType.LBRACE):
                depth += 1
            elif self.match(TokenType.RBRACE):
                if depth == 0:
                    return
                depth -= 1
                if depth == 0:
                    self.advance()
                    return
            elif self.match(TokenType.SEMICOLON) and depth == 0:
                self.advance()
                return
            self.advance()

    def _anonymous_tag(self) -> str:
        self._anonymous_count += 1
        return f'<anonymous {self._anonymous_count}>'

    def _take_pending_tags(self) -> List[Declaration]:
        tags: List[Declaration] = list(self._pending_tags)
        self._pending_tags.clear()
        return tags

    # =========================================================================
    # CLASSIFICATION
    # =========================================================================

    def is_typedef_name(self, token: Token) -> bool:
        return token.type == TokenType.IDENTIFIER and self.typedefs.is_typedef(token.value)

    def starts_type_name(self, token: Optional[Token] = None) -> bool:
        """Whether token can begin a type name (specifiers and qualifiers only)."""
        token = token or self.current()
        return (
            token.type in PRIMITIVE_TYPE_TOKENS
            or token.type in QUALIFIER_TOKENS
            or token.type in TAG_TOKENS
            or self.is_typedef_name(token)
        )

    def starts_declaration(self) -> bool:
        token = self.current()
        if token.type in STORAGE_TOKENS or token.type == TokenType.INLINE:
            return True
        if self.is_typedef_name(token) and self.peek(1).type == TokenType.COLON:
            return False  # a label that happens to share a typedef's name
        return self.starts_type_name(token)

    # =========================================================================
    # TOP-LEVEL PARSING
    # =========================================================================

    def parse(self) -> TranslationUnit:
        """Parse the entire source file into a TranslationUnit AST."""
        unit = TranslationUnit(pos=self.current().pos)

        while not self.match(TokenType.EOF):
            start = self.pos
            try:
                if self.accept(TokenType.SEMICOLON):
                    continue
                unit.declarations.extend(self.parse_external_declaration())
            except _ParseError as err:
                self._recover(err)
                if self.pos == start or self.match(TokenType.RBRACE):
                    self.advance()  # stray '}' at file scope

        return unit

    def parse_external_declaration(self) -> List[Declaration]:
        """Parse a function definition or a file-scope declaration group."""
        specs = self.parse_declaration_specifiers()

        if self.match(TokenType.SEMICOLON):
            self.advance()
            return self._take_pending_tags() + self._tag_only_declaration(specs)

        name, name_token, type_spec = self.parse_declarator(specs.type_spec)
        if name is None:
            raise self.error('expected identifier in declaration', name_token)

        if isinstance(type_spec, FunctionTypeSpec) and self.match(TokenType.LBRACE):
            if specs.storage == 'typedef':
                raise self.error('function definition declared typedef', name_token)
            self.typedefs.declare(name, False)
            tags = self._take_pending_tags()
            body = self.parse_function_body(type_spec)
            definition = FunctionDefinition(
                name=name,
                type_spec=type_spec,
                body=body,
                storage=specs.storage,
                is_inline=specs.is_inline,
                pos=name_token.pos,
            )
            return tags + [definition]

        declarations = self.parse_init_declarators(specs, name, name_token, type_spec)
        return self._take_pending_tags() + declarations

    def _tag_only_declaration(self, specs: DeclarationSpecifiers) -> List[Declaration]:
        """`struct S;` declares an incomplete tag in the current scope."""
        if specs.is_tag_reference:
            return [TagDeclaration(spec=specs.type_spec, pos=specs.pos)]
        return []

    def parse_function_body(self, type_spec: FunctionTypeSpec) -> CompoundStatement:
        """Parse a function body; parameters share the body's outermost scope."""
        self.typedefs.push()
        try:
            for param in type_spec.parameters:
                if param.name:
                    self.typedefs.declare(param.name, False)
            return self.parse_compound_statement(new_scope=False)
        finally:
            self.typedefs.pop()

    # =========================================================================
    # DECLARATIONS
    # =========================================================================

    def parse_declaration_specifiers(self, allow_storage: bool = True) -> DeclarationSpecifiers:
        """Parse storage classes, qualifiers and type specifiers."""
        start = self.current()
        storage: Optional[str] = None
        qualifiers: List[str] = []
        is_inline = False
        primitive_names: List[str] = []
        type_spec: Optional[TypeSpec] = None
        is_tag_reference = False

        while True:
            token = self.current()
            if token.type in STORAGE_TOKENS:
                if not allow_storage:
                    raise self.error(f"storage class '{token.value}' not allowed here")
                if storage is not None:
                    raise self.error('multiple storage classes in declaration specifiers')
                storage = self.advance().value
            elif token.type in QUALIFIER_TOKENS:
                qualifiers.append(self.advance().value)
            elif token.type == TokenType.INLINE:
                self.advance()
                is_inline = True
            elif token.type in PRIMITIVE_TYPE_TOKENS:
                if type_spec is not None:
                    raise self.error(f"unexpected '{token.value}' after type")
                primitive_names.append(self.advance().value)
            elif token.type in (TokenType.STRUCT, TokenType.UNION):
                if type_spec is not None or primitive_names:
                    raise self.error('two or more data types in declaration specifiers')
                type_spec, is_tag_reference = self.parse_struct_specifier()
            elif token.type == TokenType.ENUM:
                if type_spec is not None or primitive_names:
                    raise self.error('two or more data types in declaration specifiers')
                type_spec = self.parse_enum_specifier()
            elif (
                token.type == TokenType.IDENTIFIER
                and type_spec is None
                and not primitive_names
                and self.typedefs.is_typedef(token.value)
            ):
                self.advance()
                type_spec = TypedefNameSpec(name=token.value, pos=token.pos)
            else:
                break

        if primitive_names:
            type_spec = PrimitiveTypeSpec(names=primitive_names, pos=start.pos)
        if type_spec is None:
            raise self.error(f'expected type specifier but found {describe_token(self.current())}')

        return DeclarationSpecifiers(
            type_spec=type_spec,
            pos=start.pos,
            storage=storage,
            qualifiers=qualifiers,
            is_inline=is_inline,
            is_tag_reference=is_tag_reference,
        )

    def parse_init_declarators(
        self,
        specs: DeclarationSpecifiers,
        name: str,
        name_token: Token,
        type_spec: TypeSpec,
    ) -> List[Declaration]:
        """Parse the rest of a declaration group after its first declarator."""
        declarations: List[Declaration] = []

        while True:
            is_typedef = specs.storage == 'typedef'
            self.typedefs.declare(name, is_typedef)

            if is_typedef:
                if self.match(TokenType.EQ):
                    raise self.error(f"typedef '{name}' is initialized")
                declarations.append(TypedefDeclaration(name=name, type_spec=type_spec, pos=name_token.pos))
            else:
                initializer = None
                if self.accept(TokenType.EQ):
                    initializer = self.parse_initializer()
                declarations.append(VariableDeclaration(
                    name=name,
                    type_spec=type_spec,
                    storage=specs.storage,
                    initializer=initializer,
                    qualifiers=list(specs.qualifiers),
                    pos=name_token.pos,
                ))

            if not self.accept(TokenType.COMMA):
                break
            name, name_token, type_spec = self.parse_declarator(specs.type_spec)
            if name is None:
                raise self.error('expected identifier in declaration', name_token)

        self.expect(TokenType.SEMICOLON, 'after declaration')
        return declarations

    def parse_declaration(self) -> DeclarationStatement:
        """Parse a block-scope declaration group."""
        start = self.current()
        specs = self.parse_declaration_specifiers()
        if self.accept(TokenType.SEMICOLON):
            declarations = self._take_pending_tags() + self._tag_only_declaration(specs)
            return DeclarationStatement(declarations=declarations, pos=start.pos)

        name, name_token, type_spec = self.parse_declarator(specs.type_spec)
        if name is None:
            raise self.error('expected identifier in declaration', name_token)
        if isinstance(type_spec, FunctionTypeSpec) and self.match(TokenType.LBRACE):
            raise self.error('function definition is not allowed here')
        declarations = self.parse_init_declarators(specs, name, name_token, type_spec)
        return DeclarationStatement(declarations=self._take_pending_tags() + declarations, pos=start.pos)

    # =========================================================================
    # DECLARATORS
    # =========================================================================

    def parse_declarator(
        self,
        base: TypeSpec,
        abstract: bool = False,
    ) -> Tuple[Optional[str], Token, TypeSpec]:
        """Parse a (possibly abstract) declarator applied to base.

        Returns the declared name (None for abstract declarators), the token
        where the name is or should be, and the full type.
        """
        pointers: List[Tuple[Token, List[str]]] = []
        while self.match(TokenType.STAR):
            star = self.advance()
            pointers.append((star, self.parse_qualifiers()))

        name: Optional[str] = None
        name_token = self.current()
        inner: Optional[Tuple[Optional[str], Token, list]] = None

        if self.match(TokenType.IDENTIFIER) and not abstract:
            name_token = self.advance()
            name = name_token.value
        elif self.match(TokenType.LPAREN) and self._starts_nested_declarator(abstract):
            self.advance()
            inner = self.parse_declarator_derivations(abstract)
            self.expect(TokenType.RPAREN, 'to close declarator')
            name, name_token = inner[0], inner[1]
        elif self.match(TokenType.IDENTIFIER) and abstract and not self.is_typedef_name(self.current()):
            raise self.error(f"unexpected identifier '{self.current().value}' in type name")

        suffixes = self.parse_declarator_suffixes()

        result = base
        for star, qualifiers in pointers:
            result = PointerTypeSpec(target=result, qualifiers=qualifiers, pos=star.pos)
        for build in reversed(suffixes):
            result = build(result)
        if inner is not None:
            for build in inner[2]:
                result = build(result)
        return name, name_token, result

    def parse_declarator_derivations(self, abstract: bool):
        """Parse a parenthesised declarator into (name, token, builders).

        Builders are listed in the order they apply to the type produced by
        the enclosing declarator.
        """
        pointers: List[Tuple[Token, List[str]]] = []
        while self.match(TokenType.STAR):
            star = self.advance()
            pointers.append((star, self.parse_qualifiers()))

        name: Optional[str] = None
        name_token = self.current()
        inner = None
        if self.match(TokenType.IDENTIFIER) and not abstract:
            name_token = self.advance()
            name = name_token.value
        elif self.match(TokenType.LPAREN) and self._starts_nested_declarator(abstract):
            self.advance()
            inner = self.parse_declarator_derivations(abstract)
            self.expect(TokenType.RPAREN, 'to close declarator')
            name, name_token = inner[0], inner[1]

        builders = []
        for star, qualifiers in pointers:
            builders.append(lambda t, star=star, q=qualifiers: PointerTypeSpec(target=t, qualifiers=q, pos=star.pos))
        builders.extend(reversed(self.parse_declarator_suffixes()))
        if inner is not None:
            builders.extend(inner[2])
        return name, name_token, builders

    def _starts_nested_declarator(self, abstract: bool) -> bool:
        """After '(' in a declarator: nested declarator or a parameter list?"""
        nxt = self.peek(1)
        if nxt.type in (TokenType.STAR, TokenType.LPAREN):
            return True
        if nxt.type == TokenType.LBRACKET:
            return abstract
        if nxt.type == TokenType.IDENTIFIER and not abstract:
            return not self.typedefs.is_typedef(nxt.value)
        return False

    def parse_declarator_suffixes(self) -> list:
        """Parse array and function suffixes into builder callables."""
        builders = []
        while True:
            if self.match(TokenType.LBRACKET):
                bracket = self.advance()
                while self.match(*QUALIFIER_TOKENS) or self.match(TokenType.STATIC):
                    self.advance()
                size = None
                if not self.match(TokenType.RBRACKET):
                    size = self.parse_assignment()
                self.expect(TokenType.RBRACKET, 'to close array declarator')
                builders.append(
                    lambda t, size=size, pos=bracket.pos: ArrayTypeSpec(element=t, size=size, pos=pos)
                )
            elif self.match(TokenType.LPAREN):
                paren = self.advance()
                parameters, variadic, has_prototype = self.parse_parameter_list()
                builders.append(
                    lambda t, p=parameters, v=variadic, h=has_prototype, pos=paren.pos: FunctionTypeSpec(
                        return_type=t, parameters=p, variadic=v, has_prototype=h, pos=pos,
                    )
                )
            else:
                return builders

    def parse_qualifiers(self) -> List[str]:
        qualifiers = []
        while self.match(*QUALIFIER_TOKENS):
            qualifiers.append(self.advance().value)
        return qualifiers

    def parse_parameter_list(self) -> Tuple[List[ParameterDeclaration], bool, bool]:
        """Parse parameters after '(' up to and including ')'.

        Returns (parameters, variadic, has_prototype).
        """
        if self.accept(TokenType.RPAREN):
            return [], False, False
        if self.match(TokenType.VOID) and self.peek(1).type == TokenType.RPAREN:
            self.advance()
            self.advance()
            return [], False, True

        parameters: List[ParameterDeclaration] = []
        variadic = False
        self.typedefs.push()
        try:
            while True:
                if self.match(TokenType.ELLIPSIS):
                    self.advance()
                    variadic = True
                    break
                parameters.append(self.parse_parameter())
                if not self.accept(TokenType.COMMA):
                    break
        finally:
            self.typedefs.pop()
        self.expect(TokenType.RPAREN, 'to close parameter list')
        return parameters, variadic, True

    def parse_parameter(self) -> ParameterDeclaration:
        """Parse a single parameter declaration."""
        start = self.current()
        if not self.starts_type_name() and not self.match(TokenType.REGISTER):
            raise self.error(f'expected parameter declaration but found {describe_token(start)}')
        specs = self.parse_declaration_specifiers()
        name, name_token, type_spec = self.parse_declarator(specs.type_spec, abstract=False)
        if name is not None:
            self.typedefs.declare(name, False)
        return ParameterDeclaration(
            name=name,
            type_spec=type_spec,
            pos=name_token.pos if name is not None else start.pos,
        )

    def parse_type_name(self) -> TypeSpec:
        """Parse a type name as used by casts, sizeof and compound literals."""
        specs = self.parse_declaration_specifiers(allow_storage=False)
        _, _, type_spec = self.parse_declarator(specs.type_spec, abstract=True)
        return type_spec

    # =========================================================================
    # STRUCT / UNION / ENUM SPECIFIERS
    # =========================================================================

    def parse_struct_specifier(self) -> Tuple[StructSpec, bool]:
        """Parse a struct or union specifier.

        A definition is queued as a TagDeclaration so that it is emitted
        before the declaration that contains it; the caller receives a plain
        reference. Returns (spec, is_reference_without_body).
        """
        keyword = self.advance()
        kind = keyword.value
        tag: Optional[str] = None
        if self.match(TokenType.IDENTIFIER):
            tag = self.advance().value

        if not self.match(TokenType.LBRACE):
            if tag is None:
                raise self.error(f"expected identifier or '{{' after '{kind}'")
            return StructSpec(kind=kind, tag=tag, pos=keyword.pos), True

        anonymous = tag is None
        if anonymous:
            tag = self._anonymous_tag()
        fields = self.parse_struct_fields()
        definition = StructSpec(kind=kind, tag=tag, fields=fields, anonymous=anonymous, pos=keyword.pos)
        self._pending_tags.append(TagDeclaration(spec=definition, pos=keyword.pos))
        return StructSpec(kind=kind, tag=tag, anonymous=anonymous, pos=keyword.pos), False

    def parse_struct_fields(self) -> List[FieldDeclaration]:
        """Parse '{' member-declarations '}'."""
        self.expect(TokenType.LBRACE)
        fields: List[FieldDeclaration] = []

        while not self.match(TokenType.RBRACE, TokenType.EOF):
            if self.accept(TokenType.SEMICOLON):
                continue
            specs = self.parse_declaration_specifiers(allow_storage=False)
            if self.accept(TokenType.SEMICOLON):
                continue
            while True:
                if self.match(TokenType.COLON):
                    # unnamed bit-field
                    colon = self.advance()
                    width = self.parse_conditional()
                    fields.append(FieldDeclaration(name='', type_spec=specs.type_spec, bit_width=width, pos=colon.pos))
                else:
                    name, name_token, type_spec = self.parse_declarator(specs.type_spec)
                    if name is None:
                        raise self.error('expected member name', name_token)
                    width = None
                    if self.accept(TokenType.COLON):
                        width = self.parse_conditional()
                    fields.append(FieldDeclaration(name=name, type_spec=type_spec, bit_width=width, pos=name_token.pos))
                if not self.accept(TokenType.COMMA):
                    break
            self.expect(TokenType.SEMICOLON, 'after member declaration')

        self.expect(TokenType.RBRACE, 'to close member list')
        return fields

    def parse_enum_specifier(self) -> EnumSpec:
        """Parse an enum specifier; definitions are queued like struct definitions."""
        keyword = self.advance()
        tag: Optional[str] = None
        if self.match(TokenType.IDENTIFIER):
            tag = self.advance().value

        if not self.match(TokenType.LBRACE):
            if tag is None:
                raise self.error("expected identifier or '{' after 'enum'")
            return EnumSpec(tag=tag, pos=keyword.pos)

        anonymous = tag is None
        if anonymous:
            tag = self._anonymous_tag()
        self.advance()
        enumerators: List[Enumerator] = []
        while not self.match(TokenType.RBRACE):
            name_token = self.expect(TokenType.IDENTIFIER, 'in enumerator list')
            value = None
            if self.accept(TokenType.EQ):
                value = self.parse_conditional()
            enumerators.append(Enumerator(name=name_token.value, value=value, pos=name_token.pos))
            self.typedefs.declare(name_token.value, False)
            if not self.accept(TokenType.COMMA):
                break
        self.expect(TokenType.RBRACE, 'to close enumerator list')

        definition = EnumSpec(tag=tag, enumerators=enumerators, anonymous=anonymous, pos=keyword.pos)
        self._pending_tags.append(TagDeclaration(spec=definition, pos=keyword.pos))
        return EnumSpec(tag=tag, anonymous=anonymous, pos=keyword.pos)

    # =========================================================================
    # INITIALIZERS
    # =========================================================================

    def parse_initializer(self) -> Expression:
        if self.match(TokenType.LBRACE):
            return self.parse_initializer_list()
        return self.parse_assignment()

    def parse_initializer_list(self) -> InitializerList:
        """Parse a brace initializer with optional designators."""
        brace = self.expect(TokenType.LBRACE)
        items: List[InitializerItem] = []

        while not self.match(TokenType.RBRACE):
            start = self.current()
            designators = []
            while self.match(TokenType.DOT, TokenType.LBRACKET):
                if self.accept(TokenType.DOT):
                    designators.append(self.expect(TokenType.IDENTIFIER, 'in designator').value)
                else:
                    self.advance()
                    designators.append(self.parse_conditional())
                    self.expect(TokenType.RBRACKET, 'to close designator')
            if designators:
                self.expect(TokenType.EQ, 'after designator')
            value = self.parse_initializer()
            items.append(InitializerItem(value=value, designators=designators, pos=start.pos))
            if not self.accept(TokenType.COMMA):
                break

        self.expect(TokenType.RBRACE, 'to close initializer')
        return InitializerList(items=items, pos=brace.pos)

    # =========================================================================
    # STATEMENT PARSING
    # =========================================================================

    def parse_compound_statement(self, new_scope: bool = True) -> CompoundStatement:
        """Parse '{' block-items '}', recovering from errors inside the block."""
        brace = self.expect(TokenType.LBRACE)
        statements: List[Statement] = []
        if new_scope:
            self.typedefs.push()
        try:
            while not self.match(TokenType.RBRACE, TokenType.EOF):
                start = self.pos
                try:
                    statements.extend(self.parse_block_item())
                except _ParseError as err:
                    self._recover(err)
                    if self.pos == start and not self.match(TokenType.RBRACE):
                        self.advance()
        finally:
            if new_scope:
                self.typedefs.pop()
        self.expect(TokenType.RBRACE, 'to close block')
        return CompoundStatement(statements=statements, pos=brace.pos)

    def parse_block_item(self) -> List[Statement]:
        if self.starts_declaration():
            return [self.parse_declaration()]
        statement = self.parse_statement()
        tags = self._take_pending_tags()
        if tags:
            # struct definitions inside casts or sizeof
            return [DeclarationStatement(declarations=tags, pos=statement.pos), statement]
        return [statement]

    def parse_statement(self) -> Statement:
        """Parse a single statement."""
        token = self.current()
        if token.type == TokenType.LBRACE:
            return self.parse_compound_statement()
        elif token.type == TokenType.IF:
            return self.parse_if_statement()
        elif token.type == TokenType.FOR:
            return self.parse_for_statement()
        elif token.type == TokenType.WHILE:
            return self.parse_while_statement()
        elif token.type == TokenType.DO:
            return self.parse_do_while_statement()
        elif token.type == TokenType.SWITCH:
            return self.parse_switch_statement()
        elif token.type == TokenType.CASE:
            self.advance()
            value = self.parse_conditional()
            self.expect(TokenType.COLON, 'after case label')
            return CaseStatement(value=value, body=self.parse_labeled_body(), pos=token.pos)
        elif token.type == TokenType.DEFAULT:
            self.advance()
            self.expect(TokenType.COLON, "after 'default'")
            return DefaultStatement(body=self.parse_labeled_body(), pos=token.pos)
        elif token.type == TokenType.RETURN:
            return self.parse_return_statement()
        elif token.type == TokenType.BREAK:
            self.advance()
            self.expect(TokenType.SEMICOLON, "after 'break'")
            return BreakStatement(pos=token.pos)
        elif token.type == TokenType.CONTINUE:
            self.advance()
            self.expect(TokenType.SEMICOLON, "after 'continue'")
            return ContinueStatement(pos=token.pos)
        elif token.type == TokenType.GOTO:
            self.advance()
            label = self.expect(TokenType.IDENTIFIER, "after 'goto'").value
            self.expect(TokenType.SEMICOLON, 'after goto statement')
            return GotoStatement(label=label, pos=token.pos)
        elif token.type == TokenType.SEMICOLON:
            self.advance()
            return EmptyStatement(pos=token.pos)
        elif token.type == TokenType.IDENTIFIER and self.peek(1).type == TokenType.COLON:
            self.advance()
            self.advance()
            return LabeledStatement(label=token.value, body=self.parse_labeled_body(), pos=token.pos)
        elif self.starts_declaration():
            raise self.error('a declaration is not allowed here')
        else:
            return self.parse_expression_statement()

    def parse_labeled_body(self) -> Statement:
        """The statement after a label; a label right before '}' gets an empty body."""
        if self.match(TokenType.RBRACE):
            return EmptyStatement(pos=self.current().pos)
        if self.starts_declaration():
            raise self.error('a label can only be part of a statement')
        return self.parse_statement()

    def parse_expression_statement(self) -> ExpressionStatement:
        start = self.current()
        expression = self.parse_expression()
        self.expect(TokenType.SEMICOLON, 'after expression')
        return ExpressionStatement(expression=expression, pos=start.pos)

    def parse_if_statement(self) -> IfStatement:
        """Parse an if statement."""
        token = self.expect(TokenType.IF)
        self.expect(TokenType.LPAREN, "after 'if'")
        condition = self.parse_expression()
        self.expect(TokenType.RPAREN, 'to close condition')

        true_body = self.parse_statement()

        false_body = None
        if self.accept(TokenType.ELSE):
            false_body = self.parse_statement()

        return IfStatement(condition=condition, true_body=true_body, false_body=false_body, pos=token.pos)

    def parse_for_statement(self) -> ForStatement:
        """Parse a for statement; a declaration in the init clause scopes over the loop."""
        token = self.expect(TokenType.FOR)
        self.expect(TokenType.LPAREN, "after 'for'")
        self.typedefs.push()
        try:
            init: Optional[Statement] = None
            if self.match(TokenType.SEMICOLON):
                self.advance()
            elif self.starts_declaration():
                init = self.parse_declaration()
            else:
                init = self.parse_expression_statement()

            condition = None
            if not self.match(TokenType.SEMICOLON):
                condition = self.parse_expression()
            self.expect(TokenType.SEMICOLON, 'after for condition')

            post = None
            if not self.match(TokenType.RPAREN):
                post = self.parse_expression()
            self.expect(TokenType.RPAREN, 'to close for clauses')

            body = self.parse_statement()
        finally:
            self.typedefs.pop()

        return ForStatement(init=init, condition=condition, post=post, body=body, pos=token.pos)

    def parse_while_statement(self) -> WhileStatement:
        """Parse a while statement."""
        token = self.expect(TokenType.WHILE)
        self.expect(TokenType.LPAREN, "after 'while'")
        condition = self.parse_expression()
        self.expect(TokenType.RPAREN, 'to close condition')
        body = self.parse_statement()
        return WhileStatement(condition=condition, body=body, pos=token.pos)

    def parse_do_while_statement(self) -> DoWhileStatement:
        """Parse a do-while statement."""
        token = self.expect(TokenType.DO)
        body = self.parse_statement()
        self.expect(TokenType.WHILE, "after 'do' body")
        self.expect(TokenType.LPAREN, "after 'while'")
        condition = self.parse_expression()
        self.expect(TokenType.RPAREN, 'to close condition')
        self.expect(TokenType.SEMICOLON, 'after do-while')
        return DoWhileStatement(body=body, condition=condition, pos=token.pos)

    def parse_switch_statement(self) -> SwitchStatement:
        token = self.expect(TokenType.SWITCH)
        self.expect(TokenType.LPAREN, "after 'switch'")
        expression = self.parse_expression()
        self.expect(TokenType.RPAREN, 'to close switch expression')
        body = self.parse_statement()
        return SwitchStatement(expression=expression, body=body, pos=token.pos)

    def parse_return_statement(self) -> ReturnStatement:
        """Parse a return statement."""
        token = self.expect(TokenType.RETURN)
        expr = None
        if not self.match(TokenType.SEMICOLON):
            expr = self.parse_expression()
        self.expect(TokenType.SEMICOLON, 'after return statement')
        return ReturnStatement(expression=expr, pos=token.pos)

    # =========================================================================
    # EXPRESSION PARSING
    # =========================================================================

    def parse_expression(self) -> Expression:
        """Parse a full expression, including the comma operator."""
        first = self.parse_assignment()
        if not self.match(TokenType.COMMA):
            return first
        expressions = [first]
        while self.accept(TokenType.COMMA):
            expressions.append(self.parse_assignment())
        return CommaExpression(expressions=expressions, pos=first.pos)

    def parse_assignment(self) -> Expression:
        """Parse an assignment expression (right associative)."""
        left = self.parse_conditional()

        if self.current().type in ASSIGNMENT_OPERATORS:
            op = self.advance()
            value = self.parse_assignment()
            return Assignment(target=left, operator=op.value, value=value, pos=op.pos)

        return left

    def parse_conditional(self) -> Expression:
        """Parse a conditional expression."""
        condition = self.parse_binary(1)

        if self.match(TokenType.QUESTION):
            question = self.advance()
            true_expr = self.parse_expression()
            self.expect(TokenType.COLON, 'in conditional expression')
            false_expr = self.parse_conditional()
            return TernaryOperation(
                condition=condition,
                true_expression=true_expr,
                false_expression=false_expr,
                pos=question.pos,
            )

        return condition

    def parse_binary(self, min_precedence: int) -> Expression:
        """Precedence climbing over the binary operator table."""
        left = self.parse_cast()
        while True:
            precedence = BINARY_PRECEDENCE.get(self.current().type)
            if precedence is None or precedence < min_precedence:
                return left
            op = self.advance()
            right = self.parse_binary(precedence + 1)
            left = BinaryOperation(left=left, operator=op.value, right=right, pos=op.pos)

    def parse_cast(self) -> Expression:
        """Parse a cast expression or compound literal."""
        if self.match(TokenType.LPAREN) and self.starts_type_name(self.peek(1)):
            paren = self.advance()
            type_spec = self.parse_type_name()
            self.expect(TokenType.RPAREN, 'to close type name')
            if self.match(TokenType.LBRACE):
                initializer = self.parse_initializer_list()
                literal = CompoundLiteral(type_spec=type_spec, initializer=initializer, pos=paren.pos)
                return self.parse_postfix_operators(literal)
            operand = self.parse_cast()
            return TypeCast(type_spec=type_spec, expression=operand, pos=paren.pos)
        return self.parse_unary()

    def parse_unary(self) -> Expression:
        """Parse a unary expression."""
        token = self.current()
        if token.type in (TokenType.PLUS_PLUS, TokenType.MINUS_MINUS):
            self.advance()
            operand = self.parse_unary()
            return UnaryOperation(operator=token.value, operand=operand, is_prefix=True, pos=token.pos)

        if token.type in UNARY_OPERATORS:
            self.advance()
            operand = self.parse_cast()
            return UnaryOperation(operator=token.value, operand=operand, is_prefix=True, pos=token.pos)

        if token.type == TokenType.SIZEOF:
            self.advance()
            if self.match(TokenType.LPAREN) and self.starts_type_name(self.peek(1)):
                self.advance()
                type_spec = self.parse_type_name()
                self.expect(TokenType.RPAREN, 'to close sizeof')
                if self.match(TokenType.LBRACE):
                    initializer = self.parse_initializer_list()
                    literal = CompoundLiteral(type_spec=type_spec, initializer=initializer, pos=token.pos)
                    return SizeofExpression(operand=self.parse_postfix_operators(literal), pos=token.pos)
                return SizeofExpression(type_spec=type_spec, pos=token.pos)
            operand = self.parse_unary()
            return SizeofExpression(operand=operand, pos=token.pos)

        return self.parse_postfix()

    def parse_postfix(self) -> Expression:
        """Parse a postfix expression."""
        return self.parse_postfix_operators(self.parse_primary())

    def parse_postfix_operators(self, expr: Expression) -> Expression:
        while True:
            token = self.current()
            if token.type in (TokenType.DOT, TokenType.ARROW):
                self.advance()
                member = self.expect(TokenType.IDENTIFIER, f"after '{token.value}'").value
                expr = MemberAccess(
                    expression=expr, member=member,
                    is_arrow=token.type == TokenType.ARROW, pos=token.pos,
                )
            elif token.type == TokenType.LBRACKET:
                self.advance()
                index = self.parse_expression()
                self.expect(TokenType.RBRACKET, 'to close subscript')
                expr = IndexAccess(base=expr, index=index, pos=token.pos)
            elif token.type == TokenType.LPAREN:
                self.advance()
                args = self.parse_arguments()
                expr = FunctionCall(function=expr, arguments=args, pos=token.pos)
            elif token.type in (TokenType.PLUS_PLUS, TokenType.MINUS_MINUS):
                self.advance()
                expr = UnaryOperation(operator=token.value, operand=expr, is_prefix=False, pos=token.pos)
            else:
                return expr

    def parse_arguments(self) -> List[Expression]:
        """Parse function call arguments after '(' through ')'."""
        args: List[Expression] = []
        if self.accept(TokenType.RPAREN):
            return args
        while True:
            args.append(self.parse_assignment())
            if not self.accept(TokenType.COMMA):
                break
        self.expect(TokenType.RPAREN, 'to close argument list')
        return args

    def parse_primary(self) -> Expression:
        """Parse a primary expression."""
        token = self.current()

        if token.type == TokenType.IDENTIFIER:
            self.advance()
            return Identifier(name=token.value, pos=token.pos)

        if token.type == TokenType.INT_LITERAL:
            self.advance()
            return IntegerLiteral(value=parse_integer_text(token.value), text=token.value, pos=token.pos)

        if token.type == TokenType.FLOAT_LITERAL:
            self.advance()
            return FloatLiteral(value=parse_float_text(token.value), text=token.value, pos=token.pos)

        if token.type == TokenType.CHAR_LITERAL:
            self.advance()
            return CharLiteral(value=self._char_value(token), text=token.value, pos=token.pos)

        if token.type == TokenType.STRING_LITERAL:
            values: List[int] = []
            pieces = []
            while self.match(TokenType.STRING_LITERAL):
                piece = self.advance()
                pieces.append(piece.value)
                values.extend(self._decode_literal(piece))
            return StringLiteral(values=values, text=' '.join(pieces), pos=token.pos)

        if token.type == TokenType.LPAREN:
            self.advance()
            expr = self.parse_expression()
            self.expect(TokenType.RPAREN, 'to close parenthesized expression')
            return expr

        raise self.error(f'expected expression but found {describe_token(token)}')

    def _decode_literal(self, token: Token) -> List[int]:
        values, problems = decode_escapes(token.value[1:-1])
        for problem in problems:
            self.diagnostics.warning(DiagnosticKind.LEX, 'W101', problem, token.pos)
        return values

    def _char_value(self, token: Token) -> int:
        """The int value of a character constant (plain char is signed)."""
        values = self._decode_literal(token)
        if len(values) == 1:
            value = values[0]
            return value - 256 if value >= 128 else value
        self.diagnostics.warning(
            DiagnosticKind.LEX, 'W102', f'multi-character character constant {token.value}', token.pos,
        )
        value = 0
        for byte in values[-4:]:
            value = (value << 8) | byte
        return value - (1 << 32) if value >= (1 << 31) else value


def parse(
    tokens: Iterable[Token],
    diagnostics: Diagnostics,
    typedefs: Optional[TypedefTable] = None,
) -> TranslationUnit:
    """Parse tokens into a TranslationUnit, reporting problems to diagnostics."""
    return Parser(tokens, diagnostics, typedefs).parse()
