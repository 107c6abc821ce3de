"""
Constant expression evaluation.

Works on resolved expressions (every node typed). Integer constant
expressions are folded with the wrap-around and truncation rules of their C
types; other constant forms (floating constants, address constants) are only
recognised, since the generator emits them as ordinary expressions.
"""

from typing import Optional

from ..parser.ast_nodes import (
    Expression,
    IntegerLiteral,
    FloatLiteral,
    CharLiteral,
    StringLiteral,
    Identifier,
    BinaryOperation,
    UnaryOperation,
    TernaryOperation,
    TypeCast,
    ImplicitCast,
    SizeofExpression,
    MemberAccess,
    IndexAccess,
    InitializerList,
    CompoundLiteral,
)
from ..type_system.types import CType, IntegerType, EnumType
from .scope import SymbolStorage


def wrap_integer(value: int, ctype: Optional[CType]) -> int:
    """Reduce value to the range of integer type ctype."""
    t = ctype.strip() if ctype is not None else None
    if isinstance(t, EnumType):
        bits, signed = 32, True
    elif isinstance(t, IntegerType):
        if t.name == '_Bool':
            return 1 if value else 0
        bits, signed = t.bits, t.signed
    else:
        return value
    mask = (1 << bits) - 1
    value &= mask
    if signed and value >> (bits - 1):
        value -= 1 << bits
    return value


def _truncating_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def evaluate_integer(expr: Expression) -> Optional[int]:
    """Fold an integer constant expression, or return None if expr is not one."""
    if isinstance(expr, (IntegerLiteral, CharLiteral)):
        return wrap_integer(expr.value, expr.ctype)

    if isinstance(expr, Identifier):
        symbol = expr.symbol
        if symbol is None or symbol.value is None or symbol.is_null_pointer:
            return None
        if symbol.storage in (SymbolStorage.ENUM_CONSTANT, SymbolStorage.BUILTIN):
            return symbol.value
        return None

    if isinstance(expr, SizeofExpression):
        return expr.value

    if isinstance(expr, (ImplicitCast, TypeCast)):
        if expr.ctype is None or not expr.ctype.is_integer:
            return None
        inner = expr.expression
        if isinstance(inner, FloatLiteral):
            return wrap_integer(int(inner.value), expr.ctype)
        value = evaluate_integer(inner)
        if value is None:
            return None
        return wrap_integer(value, expr.ctype)

    if isinstance(expr, UnaryOperation) and expr.is_prefix:
        if expr.operator not in ('-', '+', '~', '!'):
            return None
        value = evaluate_integer(expr.operand)
        if value is None:
            return None
        if expr.operator == '-':
            return wrap_integer(-value, expr.ctype)
        if expr.operator == '+':
            return value
        if expr.operator == '~':
            return wrap_integer(~value, expr.ctype)
        return 0 if value else 1

    if isinstance(expr, BinaryOperation):
        return _evaluate_binary(expr)

    if isinstance(expr, TernaryOperation):
        condition = evaluate_integer(expr.condition)
        if condition is None:
            return None
        chosen = expr.true_expression if condition else expr.false_expression
        return evaluate_integer(chosen)

    return None


def _evaluate_binary(expr: BinaryOperation) -> Optional[int]:
    # The left spine is folded in a loop so long chains do not recurse per operator
    chain = [expr]
    while isinstance(chain[-1].left, BinaryOperation):
        chain.append(chain[-1].left)
    value = evaluate_integer(chain[-1].left)
    for node in reversed(chain):
        if value is None:
            return None
        value = _apply_binary(node, value)
    return value


def _apply_binary(expr: BinaryOperation, left: int) -> Optional[int]:
    op = expr.operator

    # Short-circuit operators only need the right side when it is evaluated
    if op == '&&':
        if not left:
            return 0
        right = evaluate_integer(expr.right)
        return None if right is None else int(bool(right))
    if op == '||':
        if left:
            return 1
        right = evaluate_integer(expr.right)
        return None if right is None else int(bool(right))

    right = evaluate_integer(expr.right)
    if right is None:
        return None

    if op == '+':
        result = left + right
    elif op == '-':
        result = left - right
    elif op == '*':
        result = left * right
    elif op == '/':
        if right == 0:
            return None
        result = _truncating_div(left, right)
    elif op == '%':
        if right == 0:
            return None
        result = left - right * _truncating_div(left, right)
    elif op == '<<':
        if right < 0:
            return None
        result = left << right
    elif op == '>>':
        if right < 0:
            return None
        result = left >> right
    elif op == '&':
        result = left & right
    elif op == '|':
        result = left | right
    elif op == '^':
        result = left ^ right
    elif op == '==':
        return int(left == right)
    elif op == '!=':
        return int(left != right)
    elif op == '<':
        return int(left < right)
    elif op == '>':
        return int(left > right)
    elif op == '<=':
        return int(left <= right)
    elif op == '>=':
        return int(left >= right)
    else:
        return None
    return wrap_integer(result, expr.ctype)


def is_null_pointer_constant(expr: Expression) -> bool:
    """An integer constant 0, or such a constant cast to void *."""
    if isinstance(expr, Identifier) and expr.symbol is not None and expr.symbol.is_null_pointer:
        return True
    if isinstance(expr, (TypeCast, ImplicitCast)) and expr.ctype is not None and expr.ctype.is_pointer:
        target = expr.ctype.strip().target
        if target.is_void:
            return is_null_pointer_constant(expr.expression)
        return False
    if expr.ctype is not None and expr.ctype.is_integer:
        return evaluate_integer(expr) == 0
    return False


def is_arithmetic_constant(expr: Expression) -> bool:
    """Integer or floating constant expression."""
    if isinstance(expr, FloatLiteral):
        return True
    if evaluate_integer(expr) is not None:
        return True
    if isinstance(expr, (ImplicitCast, TypeCast)) and expr.ctype is not None and expr.ctype.is_arithmetic:
        return is_arithmetic_constant(expr.expression)
    if isinstance(expr, UnaryOperation) and expr.is_prefix and expr.operator in ('-', '+', '!'):
        return is_arithmetic_constant(expr.operand)
    if isinstance(expr, BinaryOperation) and expr.operator not in ('&&', '||'):
        while isinstance(expr, BinaryOperation) and expr.operator not in ('&&', '||'):
            if not is_arithmetic_constant(expr.right):
                return False
            expr = expr.left
        return is_arithmetic_constant(expr)
    if isinstance(expr, TernaryOperation):
        return all(is_arithmetic_constant(e) for e in (expr.condition, expr.true_expression, expr.false_expression))
    return False


def _is_static_lvalue(expr: Expression) -> bool:
    """An lvalue whose address is known before the program runs."""
    if isinstance(expr, Identifier):
        symbol = expr.symbol
        return symbol is not None and (symbol.has_static_duration or symbol.is_function)
    if isinstance(expr, StringLiteral):
        return True
    if isinstance(expr, CompoundLiteral):
        return is_constant_initializer(expr.initializer)
    if isinstance(expr, MemberAccess):
        if expr.is_arrow:
            return is_address_constant(expr.expression)
        return _is_static_lvalue(expr.expression)
    if isinstance(expr, IndexAccess):
        return is_address_constant(expr.base) and evaluate_integer(expr.index) is not None
    if isinstance(expr, UnaryOperation) and expr.operator == '*':
        return is_address_constant(expr.operand)
    return False


def is_address_constant(expr: Expression) -> bool:
    if is_null_pointer_constant(expr):
        return True
    if isinstance(expr, ImplicitCast):
        if expr.kind in ('decay', 'function'):
            return _is_static_lvalue(expr.expression)
        return is_address_constant(expr.expression)
    if isinstance(expr, TypeCast):
        return is_address_constant(expr.expression)
    if isinstance(expr, UnaryOperation) and expr.operator == '&':
        return _is_static_lvalue(expr.operand)
    if isinstance(expr, BinaryOperation) and expr.operator in ('+', '-'):
        if expr.left.ctype is not None and expr.left.ctype.is_pointer:
            return is_address_constant(expr.left) and evaluate_integer(expr.right) is not None
        return is_address_constant(expr.right) and evaluate_integer(expr.left) is not None
    return False


def is_constant_initializer(expr: Expression) -> bool:
    """Whether expr may initialize an object with static storage duration."""
    if isinstance(expr, InitializerList):
        return all(is_constant_initializer(value) for _, value in expr.entries)
    if isinstance(expr, StringLiteral):
        return True
    return is_arithmetic_constant(expr) or is_address_constant(expr)
