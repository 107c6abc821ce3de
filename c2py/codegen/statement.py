"""
Statement generation for C to Python transpilation.

This module handles the generation of Python code from C statement AST
nodes. C control flow that Python lacks is lowered onto while loops:
- for loops become while loops that run the step before every continue
- do/while loops test their condition at the bottom
- switch statements become a `while True` wrapper whose sections are
  guarded by comparisons with the switch value, with a fall-through flag
"""

from typing import List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .context import CodeGenerationContext
    from .expression import ExpressionGenerator

from .base import BaseGenerator, strip_parens
from .context import FlowContext
from ..parser.ast_nodes import (
    Expression,
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
    VariableDeclaration,
)
from ..semantic.constant import evaluate_integer
from ..semantic.flow import always_true, contains_continue, falls_through, leaves_section


class StatementGenerator(BaseGenerator):
    """
    Generates Python code from C statement AST nodes.

    This class handles all statement types including:
    - Blocks (flattened, since Python has no block scope)
    - Local variable declarations
    - Control flow (if, for, while, do/while, switch)
    - Returns, breaks, continues
    """

    def __init__(self, ctx: 'CodeGenerationContext', expr_generator: 'ExpressionGenerator'):
        """
        Initialize the statement generator.

        Args:
            ctx: The code generation context
            expr_generator: The expression generator
        """
        super().__init__(ctx)
        self._expr = expr_generator

    # =========================================================================
    # MAIN DISPATCH
    # =========================================================================

    def generate(self, stmt: Statement) -> str:
        """Generate Python code from a statement AST node.

        Args:
            stmt: The statement AST node

        Returns:
            The Python code, one indented line per statement, possibly empty
        """
        if isinstance(stmt, CompoundStatement):
            return self.generate_statements(stmt.statements)
        elif isinstance(stmt, DeclarationStatement):
            return self.generate_declaration_statement(stmt)
        elif isinstance(stmt, ExpressionStatement):
            return self._lines(self._expr.statement(stmt.expression))
        elif isinstance(stmt, EmptyStatement):
            return ''
        elif isinstance(stmt, IfStatement):
            return self.generate_if_statement(stmt)
        elif isinstance(stmt, WhileStatement):
            return self.generate_while_statement(stmt)
        elif isinstance(stmt, DoWhileStatement):
            return self.generate_do_while_statement(stmt)
        elif isinstance(stmt, ForStatement):
            return self.generate_for_statement(stmt)
        elif isinstance(stmt, SwitchStatement):
            return self.generate_switch_statement(stmt)
        elif isinstance(stmt, ReturnStatement):
            return self.generate_return_statement(stmt)
        elif isinstance(stmt, BreakStatement):
            return f'{self.indent()}break'
        elif isinstance(stmt, ContinueStatement):
            return self.generate_continue_statement()
        elif isinstance(stmt, (CaseStatement, DefaultStatement)):
            # labels are consumed by the enclosing switch
            return self.generate(stmt.body)
        raise ValueError(f'cannot generate statement {type(stmt).__name__}')

    # =========================================================================
    # BLOCKS
    # =========================================================================

    def generate_statements(self, statements: List[Statement]) -> str:
        parts = [self.generate(s) for s in statements]
        return '\n'.join(p for p in parts if p)

    def generate_body(
        self,
        body: Optional[Statement],
        trailer: Optional[List[str]] = None,
        leader: Optional[List[str]] = None,
    ) -> str:
        """Generate an indented suite with optional lines before and after it."""
        self.indent_level += 1
        try:
            parts = [self._lines(leader)] if leader else []
            if body is not None:
                parts.append(self.generate(body))
            if trailer:
                parts.append(self._lines(trailer))
            text = '\n'.join(p for p in parts if p)
            return text or f'{self.indent()}pass'
        finally:
            self.indent_level -= 1

    def _lines(self, lines: List[str]) -> str:
        return '\n'.join(f'{self.indent()}{line}' for line in lines)

    # =========================================================================
    # DECLARATIONS
    # =========================================================================

    def generate_declaration_statement(self, stmt: DeclarationStatement) -> str:
        lines = []
        for decl in stmt.declarations:
            if not isinstance(decl, VariableDeclaration):
                continue
            symbol = decl.symbol
            # statics live at module level; block externs name the global
            if symbol is None or symbol.declaration is not decl or symbol.is_static:
                continue
            value = self._expr.object_value(symbol, decl.initializer)
            lines.append(f'{self.indent()}{self.name_of(symbol)} = {value}')
        return '\n'.join(lines)

    # =========================================================================
    # CONTROL FLOW
    # =========================================================================

    def generate_if_statement(self, stmt: IfStatement, keyword: str = 'if') -> str:
        condition = strip_parens(self._expr.condition(stmt.condition))
        lines = [f'{self.indent()}{keyword} {condition}:', self.generate_body(stmt.true_body)]
        false_body = stmt.false_body
        if isinstance(false_body, IfStatement):
            lines.append(self.generate_if_statement(false_body, 'elif'))
        elif false_body is not None and not isinstance(false_body, EmptyStatement):
            lines.append(f'{self.indent()}else:')
            lines.append(self.generate_body(false_body))
        return '\n'.join(lines)

    def _loop_condition(self, condition: Optional[Expression]) -> str:
        if always_true(condition):
            return 'True'
        return strip_parens(self._expr.condition(condition))

    def generate_while_statement(self, stmt: WhileStatement) -> str:
        header = f'{self.indent()}while {self._loop_condition(stmt.condition)}:'
        self._ctx.flow_stack.append(FlowContext('loop'))
        try:
            body = self.generate_body(stmt.body)
        finally:
            self._ctx.flow_stack.pop()
        return f'{header}\n{body}'

    def generate_for_statement(self, stmt: ForStatement) -> str:
        lines = []
        if stmt.init is not None:
            init = self.generate(stmt.init)
            if init:
                lines.append(init)
        step = self._expr.statement(stmt.post) if stmt.post is not None else []
        lines.append(f'{self.indent()}while {self._loop_condition(stmt.condition)}:')
        self._ctx.flow_stack.append(FlowContext('loop', step=step))
        try:
            trailer = step if falls_through(stmt.body) else None
            lines.append(self.generate_body(stmt.body, trailer))
        finally:
            self._ctx.flow_stack.pop()
        return '\n'.join(lines)

    def generate_do_while_statement(self, stmt: DoWhileStatement) -> str:
        lines = []
        self._ctx.flow_stack.append(FlowContext('loop'))
        try:
            if always_true(stmt.condition):
                lines.append(f'{self.indent()}while True:')
                lines.append(self.generate_body(stmt.body))
            elif contains_continue(stmt.body):
                # continue must still reach the condition test
                flag = self._ctx.temporary('_first')
                condition = self._expr.condition(stmt.condition)
                lines.append(f'{self.indent()}{flag} = True')
                lines.append(f'{self.indent()}while {flag} or {condition}:')
                lines.append(self.generate_body(stmt.body, leader=[f'{flag} = False']))
            else:
                lines.append(f'{self.indent()}while True:')
                trailer = None
                if falls_through(stmt.body):
                    if evaluate_integer(stmt.condition) == 0:
                        trailer = ['break']
                    else:
                        condition = self._expr.condition(stmt.condition)
                        trailer = [f'if not {condition}:', f'{self._ctx.indent_str}break']
                lines.append(self.generate_body(stmt.body, trailer))
        finally:
            self._ctx.flow_stack.pop()
        return '\n'.join(lines)

    def generate_return_statement(self, stmt: ReturnStatement) -> str:
        if stmt.expression is None:
            return f'{self.indent()}return'
        return f'{self.indent()}return {strip_parens(self._expr.copied(stmt.expression))}'

    def generate_continue_statement(self) -> str:
        stack = self._ctx.flow_stack
        if stack and stack[-1].kind == 'switch':
            loop = self._enclosing_loop()
            return self._lines([f'{loop.continue_flag} = True', 'break'])
        step = stack[-1].step if stack else []
        return self._lines(step + ['continue'])

    def _enclosing_loop(self) -> FlowContext:
        for flow in reversed(self._ctx.flow_stack):
            if flow.kind == 'loop':
                return flow
        raise ValueError('continue outside of a loop')

    # =========================================================================
    # SWITCH
    # =========================================================================

    def generate_switch_statement(self, stmt: SwitchStatement) -> str:
        stack = self._ctx.flow_stack
        parent = stack[-1] if stack else None
        escapes = contains_continue(stmt.body)
        lines = []

        if escapes and parent is not None and parent.kind == 'loop':
            if parent.continue_flag is None:
                parent.continue_flag = self._ctx.temporary('_continue')
            lines.append(f'{self.indent()}{parent.continue_flag} = False')

        prefix, sections = self._switch_sections(stmt.body)
        value = self._ctx.temporary('_sw')
        lines.append(f'{self.indent()}{value} = {strip_parens(self._expr.generate(stmt.expression))}')

        # sections other than the last that can run into the next one
        falling = [not self._leaves(stmts) for _, stmts in sections[:-1]]
        fall = self._ctx.temporary('_fall') if any(falling) else None
        if fall is not None:
            lines.append(f'{self.indent()}{fall} = False')

        case_values = [v for labels, _ in sections for v in labels if v is not None]
        lines.append(f'{self.indent()}while True:')
        stack.append(FlowContext('switch'))
        self.indent_level += 1
        try:
            declarations = [s for s in prefix if isinstance(s, DeclarationStatement)]
            if declarations:
                lines.append(self.generate_statements(declarations))
            for i, (labels, stmts) in enumerate(sections):
                trailer = [f'{fall} = True'] if i < len(falling) and falling[i] else None
                test = self._section_test(value, labels, case_values)
                if test is None:
                    lines.append(self.generate_statements(stmts))
                    if trailer:
                        lines.append(self._lines(trailer))
                    continue
                if fall is not None:
                    test = f'{fall} or {test}'
                lines.append(f'{self.indent()}if {test}:')
                lines.append(self.generate_body(CompoundStatement(statements=stmts), trailer))
            lines.append(f'{self.indent()}break')
        finally:
            self.indent_level -= 1
            stack.pop()

        if escapes and parent is not None:
            flag = self._enclosing_loop().continue_flag
            lines.append(f'{self.indent()}if {flag}:')
            self.indent_level += 1
            try:
                if parent.kind == 'switch':
                    lines.append(f'{self.indent()}break')
                else:
                    lines.append(self._lines(parent.step + ['continue']))
            finally:
                self.indent_level -= 1
        return '\n'.join(line for line in lines if line)

    @staticmethod
    def _switch_sections(body: Statement) -> Tuple[List[Statement], List[Tuple[List[Optional[int]], List[Statement]]]]:
        """Split a switch body into statements before the first label and labelled sections.

        Each section is (labels, statements) where a default label is None.
        """
        items = body.statements if isinstance(body, CompoundStatement) else [body]
        prefix: List[Statement] = []
        sections: List[Tuple[List[Optional[int]], List[Statement]]] = []
        for item in items:
            labels: List[Optional[int]] = []
            while isinstance(item, (CaseStatement, DefaultStatement)):
                labels.append(item.resolved_value if isinstance(item, CaseStatement) else None)
                item = item.body
            if labels:
                sections.append((labels, [item]))
            elif sections:
                sections[-1][1].append(item)
            else:
                prefix.append(item)
        return prefix, sections

    @staticmethod
    def _leaves(statements: List[Statement]) -> bool:
        return bool(statements) and leaves_section(statements[-1])

    @staticmethod
    def _section_test(value: str, labels: List[Optional[int]], case_values: List[int]) -> Optional[str]:
        if None in labels:
            # default runs when no label of another section matches
            others = [v for v in case_values if v not in labels]
            if not others:
                return None
            if len(others) == 1:
                return f'{value} != {others[0]}'
            return f'{value} not in ({", ".join(str(v) for v in others)})'
        if len(labels) == 1:
            return f'{value} == {labels[0]}'
        return f'{value} in ({", ".join(str(v) for v in labels)})'
