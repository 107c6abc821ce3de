"""
Control-flow queries over resolved statements.

Used by the resolver for missing-return warnings and by the code generator
to decide how loops and switches are lowered.
"""

from typing import Optional

from ..parser.ast_nodes import (
    Expression,
    Identifier,
    FunctionCall,
    ImplicitCast,
    Statement,
    CompoundStatement,
    ExpressionStatement,
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
    LabeledStatement,
)
from .constant import evaluate_integer
from .scope import SymbolStorage


LOOPS = (WhileStatement, DoWhileStatement, ForStatement)


def is_exit_call(stmt: Statement) -> bool:
    """A call to the library exit() (not a user function of that name)."""
    if not isinstance(stmt, ExpressionStatement):
        return False
    call = stmt.expression
    if not isinstance(call, FunctionCall):
        return False
    callee = call.function
    if isinstance(callee, ImplicitCast):
        callee = callee.expression
    return (
        isinstance(callee, Identifier)
        and callee.symbol is not None
        and callee.symbol.builtin is not None
        and callee.symbol.builtin.runtime_name == 'c_exit'
        and not (callee.symbol.storage == SymbolStorage.FUNCTION and callee.symbol.defined)
    )


def always_true(condition: Optional[Expression]) -> bool:
    if condition is None:
        return True
    value = evaluate_integer(condition)
    return value is not None and value != 0


def contains_break(stmt: Optional[Statement]) -> bool:
    """Whether stmt contains a break that leaves the construct directly around it."""
    if stmt is None:
        return False
    if isinstance(stmt, BreakStatement):
        return True
    if isinstance(stmt, LOOPS + (SwitchStatement,)):
        return False
    return any(contains_break(child) for child in stmt.children() if isinstance(child, Statement))


def contains_continue(stmt: Optional[Statement]) -> bool:
    """Whether stmt contains a continue for the loop around it (switches are transparent)."""
    if stmt is None:
        return False
    if isinstance(stmt, ContinueStatement):
        return True
    if isinstance(stmt, LOOPS):
        return False
    return any(contains_continue(child) for child in stmt.children() if isinstance(child, Statement))


def falls_through(stmt: Optional[Statement]) -> bool:
    """Conservative check whether control can reach the end of stmt."""
    if stmt is None:
        return True
    if isinstance(stmt, ReturnStatement):
        return False
    if is_exit_call(stmt):
        return False
    if isinstance(stmt, CompoundStatement):
        return all(falls_through(s) for s in stmt.statements)
    if isinstance(stmt, IfStatement):
        if stmt.false_body is None:
            return True
        return falls_through(stmt.true_body) or falls_through(stmt.false_body)
    if isinstance(stmt, (WhileStatement, ForStatement)):
        if always_true(stmt.condition):
            return contains_break(stmt.body)
        return True
    if isinstance(stmt, DoWhileStatement):
        if always_true(stmt.condition):
            return contains_break(stmt.body)
        return falls_through(stmt.body) or contains_break(stmt.body) or contains_continue(stmt.body)
    if isinstance(stmt, SwitchStatement):
        body = stmt.body
        items = body.statements if isinstance(body, CompoundStatement) else [body]
        has_default = any(has_default_label(item) for item in items)
        return not has_default or contains_break(body) or falls_through(body)
    if isinstance(stmt, (CaseStatement, DefaultStatement, LabeledStatement)):
        return falls_through(stmt.body)
    return True


def leaves_section(stmt: Optional[Statement]) -> bool:
    """Whether stmt always ends with a jump out of the enclosing switch section."""
    if isinstance(stmt, (BreakStatement, ContinueStatement)):
        return True
    if isinstance(stmt, CompoundStatement):
        return bool(stmt.statements) and leaves_section(stmt.statements[-1])
    if isinstance(stmt, IfStatement) and stmt.false_body is not None:
        return leaves_section(stmt.true_body) and leaves_section(stmt.false_body)
    return not falls_through(stmt)


def has_default_label(stmt: Statement) -> bool:
    while isinstance(stmt, (CaseStatement, DefaultStatement)):
        if isinstance(stmt, DefaultStatement):
            return True
        stmt = stmt.body
    return False
