"""
AST node definitions for C parsing.

This module contains all the dataclasses representing nodes in the
Abstract Syntax Tree (AST) produced by the C parser. Every node carries its
source position; expression nodes also carry a ctype slot that the resolver
fills in.
"""

from dataclasses import dataclass, field, fields
from typing import Iterator, List, Optional, Union, TYPE_CHECKING

from ..diagnostics import SourcePosition, NO_POSITION

if TYPE_CHECKING:
    from ..semantic.scope import Symbol
    from ..type_system.types import CType, Field, StructType


# =============================================================================
# BASE NODE
# =============================================================================

@dataclass
class ASTNode:
    """Base class for all AST nodes."""
    pos: SourcePosition = field(default=NO_POSITION, kw_only=True, compare=False, repr=False)

    def children(self) -> Iterator['ASTNode']:
        """Yield direct child nodes in source order."""
        for f in fields(self):
            if f.name == 'pos' or not f.compare:
                continue
            value = getattr(self, f.name)
            if isinstance(value, ASTNode):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, ASTNode):
                        yield item


def walk(node: ASTNode) -> Iterator[ASTNode]:
    """Yield node and all of its descendants, depth first."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(current.children())))


# =============================================================================
# TYPE SYNTAX NODES
# =============================================================================

@dataclass
class TypeSpec(ASTNode):
    """Base class for type syntax (specifiers and declarator derivations)."""
    pass


@dataclass
class PrimitiveTypeSpec(TypeSpec):
    """Builtin type specifier keywords (e.g. ['unsigned', 'long'])."""
    names: List[str] = field(default_factory=list)


@dataclass
class TypedefNameSpec(TypeSpec):
    """A reference to a typedef name."""
    name: str


@dataclass
class FieldDeclaration(ASTNode):
    """A single member of a struct or union."""
    name: str
    type_spec: TypeSpec
    bit_width: Optional['Expression'] = None


@dataclass
class StructSpec(TypeSpec):
    """A struct or union specifier. fields is None for a reference without a body."""
    kind: str  # 'struct' or 'union'
    tag: Optional[str] = None
    fields: Optional[List[FieldDeclaration]] = None
    anonymous: bool = False


@dataclass
class Enumerator(ASTNode):
    """A single enumeration constant."""
    name: str
    value: Optional['Expression'] = None
    symbol: Optional['Symbol'] = field(default=None, compare=False, repr=False)


@dataclass
class EnumSpec(TypeSpec):
    """An enum specifier. enumerators is None for a reference without a body."""
    tag: Optional[str] = None
    enumerators: Optional[List[Enumerator]] = None
    anonymous: bool = False


@dataclass
class PointerTypeSpec(TypeSpec):
    """Pointer to the target type."""
    target: TypeSpec
    qualifiers: List[str] = field(default_factory=list)


@dataclass
class ArrayTypeSpec(TypeSpec):
    """Array of element type with an optional size expression."""
    element: TypeSpec
    size: Optional['Expression'] = None


@dataclass
class ParameterDeclaration(ASTNode):
    """A function parameter. name is None in abstract declarators."""
    name: Optional[str]
    type_spec: TypeSpec
    symbol: Optional['Symbol'] = field(default=None, compare=False, repr=False)


@dataclass
class FunctionTypeSpec(TypeSpec):
    """Function returning return_type."""
    return_type: TypeSpec
    parameters: List[ParameterDeclaration] = field(default_factory=list)
    variadic: bool = False
    has_prototype: bool = True


# =============================================================================
# EXPRESSION NODES
# =============================================================================

@dataclass
class Expression(ASTNode):
    """Base class for all expression nodes."""
    ctype: Optional['CType'] = field(default=None, kw_only=True, compare=False, repr=False)


@dataclass
class IntegerLiteral(Expression):
    """An integer constant (value already decoded)."""
    value: int
    text: str = ''


@dataclass
class FloatLiteral(Expression):
    """A floating constant."""
    value: float
    text: str = ''


@dataclass
class CharLiteral(Expression):
    """A character constant; value is its int value."""
    value: int
    text: str = ''


@dataclass
class StringLiteral(Expression):
    """A string literal; values are the bytes without the terminating NUL."""
    values: List[int] = field(default_factory=list)
    text: str = ''


@dataclass
class Identifier(Expression):
    """Represents an identifier reference."""
    name: str
    symbol: Optional['Symbol'] = field(default=None, compare=False, repr=False)


@dataclass
class BinaryOperation(Expression):
    """Represents a binary operation (e.g., a + b). Assignments use Assignment."""
    left: Expression
    operator: str
    right: Expression


@dataclass
class Assignment(Expression):
    """Simple or compound assignment (=, +=, <<=, ...)."""
    target: Expression
    operator: str
    value: Expression
    # Type the arithmetic of a compound assignment is carried out in
    operation_ctype: Optional['CType'] = field(default=None, compare=False, repr=False)


@dataclass
class UnaryOperation(Expression):
    """Represents a unary operation (e.g., !x, -y, *p, &v, x++)."""
    operator: str
    operand: Expression
    is_prefix: bool = True


@dataclass
class TernaryOperation(Expression):
    """Represents a conditional operation (a ? b : c)."""
    condition: Expression
    true_expression: Expression
    false_expression: Expression


@dataclass
class CommaExpression(Expression):
    """Represents a comma expression (a, b, c)."""
    expressions: List[Expression] = field(default_factory=list)


@dataclass
class FunctionCall(Expression):
    """Represents a function call."""
    function: Expression
    arguments: List[Expression] = field(default_factory=list)


@dataclass
class MemberAccess(Expression):
    """Represents member access (s.member or p->member)."""
    expression: Expression
    member: str
    is_arrow: bool = False
    field_info: Optional['Field'] = field(default=None, compare=False, repr=False)


@dataclass
class IndexAccess(Expression):
    """Represents index access (e.g., arr[i])."""
    base: Expression
    index: Expression


@dataclass
class TypeCast(Expression):
    """Represents an explicit cast (type)expr."""
    type_spec: TypeSpec
    expression: Expression


@dataclass
class ImplicitCast(Expression):
    """A conversion inserted by the resolver; ctype holds the target type."""
    expression: Expression
    kind: str = 'convert'  # 'convert', 'decay', 'null', 'void'


@dataclass
class SizeofExpression(Expression):
    """sizeof applied to an expression or a type name."""
    operand: Optional[Expression] = None
    type_spec: Optional[TypeSpec] = None
    value: Optional[int] = field(default=None, compare=False, repr=False)


@dataclass
class InitializerItem(ASTNode):
    """One element of a brace initializer, with optional designators."""
    value: Union[Expression, 'InitializerList']
    designators: List[Union[str, Expression]] = field(default_factory=list)


@dataclass
class InitializerList(Expression):
    """A brace-enclosed initializer.

    After resolution, entries holds (key, value) pairs where key is an
    array index or a field name and value is an Expression or a nested
    InitializerList, all typed.
    """
    items: List[InitializerItem] = field(default_factory=list)
    entries: list = field(default_factory=list, compare=False, repr=False)


@dataclass
class CompoundLiteral(Expression):
    """A C99 compound literal (type){...}."""
    type_spec: TypeSpec
    initializer: InitializerList


# =============================================================================
# DECLARATION NODES
# =============================================================================

@dataclass
class Declaration(ASTNode):
    """Base class for declarations."""
    pass


@dataclass
class VariableDeclaration(Declaration):
    """A single declared object (or function prototype when type_spec is a function)."""
    name: str
    type_spec: TypeSpec
    storage: Optional[str] = None  # None, 'extern', 'static', 'auto', 'register'
    initializer: Optional[Expression] = None
    qualifiers: List[str] = field(default_factory=list)
    symbol: Optional['Symbol'] = field(default=None, compare=False, repr=False)


@dataclass
class TypedefDeclaration(Declaration):
    """typedef <type> name;"""
    name: str
    type_spec: TypeSpec
    symbol: Optional['Symbol'] = field(default=None, compare=False, repr=False)


@dataclass
class TagDeclaration(Declaration):
    """A struct/union/enum definition or forward declaration on its own."""
    spec: TypeSpec


@dataclass
class FunctionDefinition(Declaration):
    """A function with a body."""
    name: str
    type_spec: FunctionTypeSpec
    body: 'CompoundStatement'
    storage: Optional[str] = None
    is_inline: bool = False
    symbol: Optional['Symbol'] = field(default=None, compare=False, repr=False)


# =============================================================================
# STATEMENT NODES
# =============================================================================

@dataclass
class Statement(ASTNode):
    """Base class for all statement nodes."""
    pass


@dataclass
class CompoundStatement(Statement):
    """Represents a block of statements enclosed in braces."""
    statements: List[Statement] = field(default_factory=list)


@dataclass
class DeclarationStatement(Statement):
    """One declaration group inside a block."""
    declarations: List[Declaration] = field(default_factory=list)


@dataclass
class ExpressionStatement(Statement):
    """Represents an expression used as a statement."""
    expression: Expression


@dataclass
class EmptyStatement(Statement):
    """A lone semicolon."""
    pass


@dataclass
class IfStatement(Statement):
    """Represents an if/else statement."""
    condition: Expression
    true_body: Statement
    false_body: Optional[Statement] = None


@dataclass
class WhileStatement(Statement):
    """Represents a while loop."""
    condition: Expression
    body: Statement


@dataclass
class DoWhileStatement(Statement):
    """Represents a do-while loop."""
    body: Statement
    condition: Expression


@dataclass
class ForStatement(Statement):
    """Represents a for loop."""
    init: Optional[Statement] = None
    condition: Optional[Expression] = None
    post: Optional[Expression] = None
    body: Optional[Statement] = None


@dataclass
class SwitchStatement(Statement):
    """Represents a switch statement."""
    expression: Expression
    body: Statement


@dataclass
class CaseStatement(Statement):
    """case <value>: <body>"""
    value: Expression
    body: Statement
    resolved_value: Optional[int] = field(default=None, compare=False, repr=False)


@dataclass
class DefaultStatement(Statement):
    """default: <body>"""
    body: Statement


@dataclass
class ReturnStatement(Statement):
    """Represents a return statement."""
    expression: Optional[Expression] = None


@dataclass
class BreakStatement(Statement):
    """Represents a break statement."""
    pass


@dataclass
class ContinueStatement(Statement):
    """Represents a continue statement."""
    pass


@dataclass
class GotoStatement(Statement):
    """Represents a goto statement."""
    label: str


@dataclass
class LabeledStatement(Statement):
    """label: <body>"""
    label: str
    body: Statement


# =============================================================================
# TOP-LEVEL NODE
# =============================================================================

@dataclass
class TranslationUnit(ASTNode):
    """Root node representing an entire C source file."""
    declarations: List[Declaration] = field(default_factory=list)
    # Filled by the resolver: struct/union types in definition order
    struct_types: List['StructType'] = field(default_factory=list, compare=False, repr=False)
