"""
Definition generation for C to Python transpilation.

This module handles the module-level pieces of a generated program: struct
and union classes, file-scope enumeration constants, global and static
objects, and function definitions.
"""

from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from .context import CodeGenerationContext
    from .expression import ExpressionGenerator
    from .statement import StatementGenerator

from .base import BaseGenerator, iter_nodes
from ..parser.ast_nodes import (
    ASTNode,
    Identifier,
    Assignment,
    UnaryOperation,
    Enumerator,
    FunctionDefinition,
    VariableDeclaration,
)
from ..semantic.flow import falls_through
from ..type_system.types import StructType


class DefinitionGenerator(BaseGenerator):
    """
    Generates Python code for module-level definitions.

    Handles:
    - Struct and union classes (zero-initializing constructors)
    - Enumeration constants
    - Global and static local objects
    - Functions, including parameter boxing and `global` declarations
    """

    def __init__(
        self,
        ctx: 'CodeGenerationContext',
        expr_generator: 'ExpressionGenerator',
        stmt_generator: 'StatementGenerator',
    ):
        super().__init__(ctx)
        self._expr = expr_generator
        self._stmt = stmt_generator

    # =========================================================================
    # STRUCTS AND ENUMS
    # =========================================================================

    def generate_struct_class(self, ctype: StructType) -> str:
        """Generate the class of a struct or union type.

        Union members are separate attributes; they do not share storage.
        """
        name = self.struct_class(ctype)
        ind = self._ctx.indent_str
        fields = ctype.fields or []
        slots = [repr(self.field_name(ctype, f.name)) for f in fields]
        if len(slots) == 1:
            slots_text = f'({slots[0]},)'
        else:
            slots_text = f'({", ".join(slots)})'

        lines = [f'class {name}({self.rt}.Struct):']
        lines.append(f'{ind}__slots__ = {slots_text}')
        lines.append('')
        lines.append(f'{ind}def __init__(self):')
        for f in fields:
            lines.append(f'{ind * 2}self.{self.field_name(ctype, f.name)} = {self.zero_value(f.ctype)}')
        if not fields:
            lines.append(f'{ind * 2}pass')
        return '\n'.join(lines)

    def generate_enum_constant(self, enumerator: Enumerator) -> str:
        return f'{self.name_of(enumerator.symbol)} = {enumerator.symbol.value}'

    # =========================================================================
    # OBJECTS
    # =========================================================================

    def generate_object(self, declaration: VariableDeclaration) -> str:
        """A global, or a static local hoisted to module level."""
        symbol = declaration.symbol
        value = self._expr.object_value(symbol, declaration.initializer)
        return f'{self.name_of(symbol)} = {value}'

    # =========================================================================
    # FUNCTIONS
    # =========================================================================

    def generate_function(self, definition: FunctionDefinition) -> str:
        symbol = definition.symbol
        name = self.name_of(symbol)
        self._ctx.begin_function(symbol)
        self.indent_level = 1
        try:
            params = []
            boxed = []
            for i, param in enumerate(definition.type_spec.parameters):
                if param.symbol is None:
                    params.append(self._ctx.temporary(f'_arg{i}'))
                    continue
                param_name = self.name_of(param.symbol)
                params.append(param_name)
                if self.is_boxed(param.symbol):
                    boxed.append(param_name)

            lines = [f'def {name}({", ".join(params)}):']
            assigned = self._assigned_globals(definition.body)
            if assigned:
                lines.append(f'{self.indent()}global {", ".join(assigned)}')
            for param_name in boxed:
                lines.append(f'{self.indent()}{param_name} = [{param_name}]')

            body = self._stmt.generate(definition.body)
            if body:
                lines.append(body)
            if symbol.name == 'main' and falls_through(definition.body):
                # reaching the end of main returns 0
                lines.append(f'{self.indent()}return 0')
            if len(lines) == 1:
                lines.append(f'{self.indent()}pass')
            return '\n'.join(lines)
        finally:
            self.indent_level = 0
            self._ctx.end_function()

    def _assigned_globals(self, body: ASTNode) -> List[str]:
        """Module-level names the function rebinds, in order of first assignment."""
        names: List[str] = []
        for node in iter_nodes(body):
            if isinstance(node, Assignment):
                target = node.target
            elif isinstance(node, UnaryOperation) and node.operator in ('++', '--'):
                target = node.operand
            else:
                continue
            if not isinstance(target, Identifier) or target.symbol is None:
                continue
            symbol = target.symbol
            if self.is_module_level(symbol) and not self.is_boxed(symbol) and not symbol.ctype.is_struct:
                name = self.name_of(symbol)
                if name not in names:
                    names.append(name)
        return names
