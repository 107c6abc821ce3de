"""
Python code generator.

Assembles one Python module from a resolved translation unit. The module
layout is fixed:

    header comment
    imports (sys and the runtime as _rt)
    struct and union classes
    file-scope enumeration constants
    functions
    global objects, then static locals
    main guard

Globals come after the functions because their initializers may name
functions; nothing runs until the main guard calls main().
"""

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..transpile import TranspileOptions

from .base import iter_nodes
from .context import CodeGenerationContext
from .definition import DefinitionGenerator
from .expression import ExpressionGenerator
from .statement import StatementGenerator
from ..parser.ast_nodes import (
    Enumerator,
    FunctionDefinition,
    VariableDeclaration,
    TranslationUnit,
    walk,
)
from ..semantic.scope import Symbol, SymbolStorage


DEFAULT_INDENT = 4
DEFAULT_RUNTIME_MODULE = 'c2py.runtime'


class PythonCodeGenerator:
    """
    Generates a Python module from a resolved C translation unit.

    The unit must have resolved without errors: every expression typed,
    every identifier bound to its symbol.
    """

    def __init__(self, options: Optional['TranspileOptions'] = None):
        self.indent = getattr(options, 'indent', DEFAULT_INDENT)
        self.runtime_module = getattr(options, 'runtime_module', DEFAULT_RUNTIME_MODULE)
        self.emit_main_guard = getattr(options, 'emit_main_guard', True)

    def generate(self, unit: TranslationUnit, file_path: str = '') -> str:
        ctx = CodeGenerationContext(indent_str=' ' * self.indent, file_path=file_path)
        expr_generator = ExpressionGenerator(ctx)
        stmt_generator = StatementGenerator(ctx, expr_generator)
        definitions = DefinitionGenerator(ctx, expr_generator, stmt_generator)

        enumerators = self._allocate_names(ctx, unit)

        blocks: List[str] = [self._generate_header(file_path)]

        for ctype in unit.struct_types:
            blocks.append(definitions.generate_struct_class(ctype))

        if enumerators:
            blocks.append('\n'.join(definitions.generate_enum_constant(e) for e in enumerators))

        for decl in unit.declarations:
            if isinstance(decl, FunctionDefinition) and decl.symbol is not None:
                blocks.append(definitions.generate_function(decl))

        objects = [
            definitions.generate_object(decl)
            for decl in unit.declarations
            if self._is_global_definition(decl)
        ]
        objects.extend(definitions.generate_object(decl) for decl in ctx.static_declarations)
        if objects:
            blocks.append('\n'.join(objects))

        main = self._find_main(unit)
        if self.emit_main_guard and main is not None:
            blocks.append(self._generate_main_guard(ctx, main))

        return '\n\n\n'.join(blocks) + '\n'

    # =========================================================================
    # NAMES
    # =========================================================================

    @staticmethod
    def _allocate_names(ctx: CodeGenerationContext, unit: TranslationUnit) -> List[Enumerator]:
        """Hand out module-level names in source order; returns file-scope enumerators."""
        for ctype in unit.struct_types:
            ctx.struct_class(ctype)

        enumerators: List[Enumerator] = []
        for decl in unit.declarations:
            if isinstance(decl, FunctionDefinition):
                if decl.symbol is not None and decl.symbol not in ctx.symbol_names:
                    ctx.symbol_names[decl.symbol] = ctx.module_names.allocate(decl.name)
                continue
            for node in walk(decl):
                if isinstance(node, Enumerator) and node.symbol is not None and node.symbol.scope_depth == 0:
                    if node.symbol not in ctx.symbol_names:
                        ctx.symbol_names[node.symbol] = ctx.module_names.allocate(node.name)
                        enumerators.append(node)
            if PythonCodeGenerator._is_global_definition(decl) and decl.symbol not in ctx.symbol_names:
                ctx.symbol_names[decl.symbol] = ctx.module_names.allocate(decl.name)

        # static locals become module-level names qualified by their function
        for decl in unit.declarations:
            if not isinstance(decl, FunctionDefinition):
                continue
            for node in iter_nodes(decl.body):
                if (
                    isinstance(node, VariableDeclaration)
                    and node.symbol is not None
                    and node.symbol.is_static
                    and node.symbol.declaration is node
                ):
                    ctx.symbol_names[node.symbol] = ctx.module_names.allocate(f'{decl.name}_{node.name}')
                    ctx.static_declarations.append(node)
        return enumerators

    @staticmethod
    def _is_global_definition(decl) -> bool:
        return (
            isinstance(decl, VariableDeclaration)
            and decl.symbol is not None
            and decl.symbol.storage == SymbolStorage.GLOBAL
            and decl.symbol.declaration is decl
        )

    # =========================================================================
    # MODULE FRAME
    # =========================================================================

    def _generate_header(self, file_path: str) -> str:
        source = file_path or '<string>'
        return '\n'.join([
            f'# Generated by c2py from {source}. Do not edit.',
            '',
            'import sys',
            '',
            f'import {self.runtime_module} as _rt',
        ])

    @staticmethod
    def _find_main(unit: TranslationUnit) -> Optional[Symbol]:
        for decl in unit.declarations:
            if isinstance(decl, FunctionDefinition) and decl.name == 'main' and decl.symbol is not None:
                return decl.symbol
        return None

    def _generate_main_guard(self, ctx: CodeGenerationContext, main: Symbol) -> str:
        params = main.ctype.strip().params
        args = ['len(sys.argv)', f'{ctx.runtime_alias}.argv(sys.argv)'][:len(params)]
        ind = ctx.indent_str
        return '\n'.join([
            "if __name__ == '__main__':",
            f'{ind}sys.exit({ctx.symbol_names[main]}({", ".join(args)}))',
        ])


def generate(unit: TranslationUnit, options: Optional['TranspileOptions'] = None, file_path: str = '') -> str:
    """Generate the Python module for a resolved translation unit."""
    return PythonCodeGenerator(options).generate(unit, file_path)
