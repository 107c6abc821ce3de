"""
Base generator class with shared utilities.

This module provides the BaseGenerator class that contains common utilities
used across all specialized generator classes in the code generation pipeline.
"""

from typing import Iterator, TYPE_CHECKING

if TYPE_CHECKING:
    from .context import CodeGenerationContext

from ..parser.ast_nodes import (
    ASTNode,
    Expression,
    Identifier,
    Assignment,
    UnaryOperation,
    FunctionCall,
    InitializerList,
    MemberAccess,
)
from ..semantic.scope import Symbol, SymbolStorage
from ..type_system.mappings import get_default_value, element_factory
from ..type_system.types import CType, StructType


def iter_nodes(node: ASTNode) -> Iterator[ASTNode]:
    """Pre-order walk that also enters resolved initializer entries."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if isinstance(current, InitializerList):
            stack.extend(reversed([value for _, value in current.entries]))
        else:
            stack.extend(reversed(list(current.children())))


def has_side_effects(expr: Expression) -> bool:
    for node in iter_nodes(expr):
        if isinstance(node, (Assignment, FunctionCall)):
            return True
        if isinstance(node, UnaryOperation) and node.operator in ('++', '--'):
            return True
    return False


def strip_parens(text: str) -> str:
    """Remove one pair of parentheses enclosing the whole of text.

    An assignment expression keeps its parentheses, which Python requires
    in most statement positions.
    """
    if not (text.startswith('(') and text.endswith(')')):
        return text
    depth = 0
    quote = None
    escaped = False
    for i, ch in enumerate(text):
        if quote:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in ('"', "'"):
            quote = ch
        elif ch == ':' and depth == 1 and text[i + 1] == '=':
            return text
        elif ch in '([{':
            depth += 1
        elif ch in ')]}':
            depth -= 1
            if depth == 0 and i != len(text) - 1:
                return text
    return text[1:-1]


class BaseGenerator:
    """
    Base class for all code generators.

    Provides shared utilities for:
    - Indentation management
    - Python names of C symbols and struct types
    - Storage decisions (boxed variables)
    - Zero values
    """

    def __init__(self, ctx: 'CodeGenerationContext'):
        """
        Initialize the base generator.

        Args:
            ctx: The code generation context containing all state
        """
        self._ctx = ctx

    # =========================================================================
    # INDENTATION
    # =========================================================================

    def indent(self) -> str:
        """Return the current indentation string."""
        return self._ctx.indent()

    @property
    def indent_level(self) -> int:
        """Get the current indentation level."""
        return self._ctx.indent_level

    @indent_level.setter
    def indent_level(self, value: int):
        """Set the current indentation level."""
        self._ctx.indent_level = value

    @property
    def rt(self) -> str:
        """Alias the generated module imports the runtime under."""
        return self._ctx.runtime_alias

    # =========================================================================
    # NAME RESOLUTION
    # =========================================================================

    def name_of(self, symbol: Symbol) -> str:
        """Python name for a symbol, allocated on first use."""
        name = self._ctx.symbol_names.get(symbol)
        if name is None:
            if self.is_module_level(symbol) or self._ctx.local_names is None:
                name = self._ctx.module_names.allocate(symbol.name)
            else:
                name = self._ctx.local_names.allocate(symbol.name)
            self._ctx.symbol_names[symbol] = name
        return name

    @staticmethod
    def is_module_level(symbol: Symbol) -> bool:
        if symbol.is_static or symbol.storage in (SymbolStorage.GLOBAL, SymbolStorage.FUNCTION):
            return True
        return symbol.storage == SymbolStorage.ENUM_CONSTANT and symbol.scope_depth == 0

    def struct_class(self, ctype: StructType) -> str:
        return self._ctx.struct_class(ctype)

    def field_name(self, ctype: CType, member: str) -> str:
        return self._ctx.member_name(ctype.strip(), member)

    def member_attribute(self, expr: MemberAccess) -> str:
        """Attribute name of the member selected by a . or -> expression."""
        ctype = expr.expression.ctype.strip()
        if expr.is_arrow:
            ctype = ctype.target
        return self.field_name(ctype, expr.member)

    # =========================================================================
    # STORAGE
    # =========================================================================

    @staticmethod
    def is_boxed(symbol: Symbol) -> bool:
        """Objects whose address is taken live in a one-element list."""
        return symbol.is_object and symbol.address_taken and not symbol.ctype.is_array

    def is_boxed_identifier(self, expr: Expression) -> bool:
        return isinstance(expr, Identifier) and expr.symbol is not None and self.is_boxed(expr.symbol)

    # =========================================================================
    # VALUE FORMATTING
    # =========================================================================

    def zero_value(self, ctype: CType) -> str:
        return get_default_value(ctype, self.struct_class)

    def factory(self, ctype: CType) -> str:
        return element_factory(ctype, self.struct_class)
