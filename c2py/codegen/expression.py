"""
Expression code generation.

Every C expression becomes one Python expression. Texts returned by
generate() are always safe to use as an operand (atoms, calls, subscripts or
parenthesized), so callers never have to reason about precedence.

Value representation:
- integers are Python ints kept in the range of their C type by the runtime
  wrap helpers (_rt.i32 and friends), floats are Python floats
- pointers are _rt.Ptr(buffer, offset) and NULL is None
- arrays are lists, structs are instances of generated _rt.Struct classes
- scalars whose address is taken live in a one-element list
"""

import math
from typing import List, Optional, Tuple

from .base import BaseGenerator, has_side_effects, strip_parens
from ..parser.ast_nodes import (
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
    ImplicitCast,
    SizeofExpression,
    InitializerList,
    CompoundLiteral,
)
from ..runtime.integers import f32
from ..semantic.constant import evaluate_integer, is_null_pointer_constant, wrap_integer
from ..semantic.scope import SymbolStorage
from ..type_system.mappings import integer_wrapper, fits_in
from ..type_system.types import (
    CType,
    IntegerType,
    ArrayType,
    PointerType,
    StructType,
    FLOAT,
)


RELATIONAL_OPERATORS = ('<', '>', '<=', '>=', '==', '!=')
LOGICAL_OPERATORS = ('&&', '||')
# Operators whose exact result may leave the range of the operand type
WRAPPING_OPERATORS = ('+', '-', '*', '<<')
# Operators a left-deep chain of which is emitted as one flat Python expression
CHAIN_OPERATORS = ('+', '-', '*')
BITWISE_OPERATORS = ('&', '|', '^')
# Scalar arrays up to this length are initialized with a list display
ARRAY_LITERAL_LIMIT = 32


def format_float(value: float, ctype: CType) -> str:
    if ctype.strip() == FLOAT:
        value = f32(value)
    if math.isnan(value):
        return "float('nan')"
    if math.isinf(value):
        return "float('inf')" if value > 0 else "float('-inf')"
    return repr(value)


def format_int(value: int) -> str:
    return f'({value})' if value < 0 else str(value)


def string_bytes(literal: StringLiteral) -> str:
    return repr(bytes(v & 0xFF for v in literal.values))


class ExpressionGenerator(BaseGenerator):
    """
    Generates Python expressions from resolved C expressions.

    Three entry points: generate() for the value of an expression,
    condition() for a truth test and statement() for an expression
    evaluated only for its side effects.
    """

    # =========================================================================
    # MAIN DISPATCH
    # =========================================================================

    def generate(self, expr: Expression) -> str:
        """Generate the value of an expression."""
        if isinstance(expr, IntegerLiteral):
            return format_int(wrap_integer(expr.value, expr.ctype))
        elif isinstance(expr, CharLiteral):
            return format_int(expr.value)
        elif isinstance(expr, FloatLiteral):
            return format_float(expr.value, expr.ctype)
        elif isinstance(expr, StringLiteral):
            return self.string_array(expr)
        elif isinstance(expr, Identifier):
            return self.generate_identifier(expr)
        elif isinstance(expr, BinaryOperation):
            return self.generate_binary_operation(expr)
        elif isinstance(expr, Assignment):
            return self.generate_assignment(expr)
        elif isinstance(expr, UnaryOperation):
            return self.generate_unary_operation(expr)
        elif isinstance(expr, TernaryOperation):
            return self.generate_ternary(expr)
        elif isinstance(expr, CommaExpression):
            parts = ', '.join(strip_parens(self.generate(e)) for e in expr.expressions)
            return f'{self.rt}.last({parts})'
        elif isinstance(expr, FunctionCall):
            return self.generate_function_call(expr)
        elif isinstance(expr, MemberAccess):
            return f'{self.member_object(expr)}.{self.member_attribute(expr)}'
        elif isinstance(expr, IndexAccess):
            return f'{self.pointer_base(expr.base)}[{strip_parens(self.generate(expr.index))}]'
        elif isinstance(expr, ImplicitCast):
            return self.generate_implicit_cast(expr)
        elif isinstance(expr, TypeCast):
            return self.generate_type_cast(expr)
        elif isinstance(expr, SizeofExpression):
            return str(expr.value)
        elif isinstance(expr, CompoundLiteral):
            return self.initializer(expr.initializer, expr.ctype)
        elif isinstance(expr, InitializerList):
            return self.initializer(expr, expr.ctype)
        raise ValueError(f'cannot generate expression {type(expr).__name__}')

    def condition(self, expr: Expression) -> str:
        """Generate a Python truth test for a C controlling expression."""
        if isinstance(expr, BinaryOperation):
            if expr.operator in LOGICAL_OPERATORS:
                # a && b && c is left-deep; collect it in a loop and join flat
                operands = [expr.right]
                node = expr.left
                while isinstance(node, BinaryOperation) and node.operator == expr.operator:
                    operands.append(node.right)
                    node = node.left
                operands.append(node)
                word = ' and ' if expr.operator == '&&' else ' or '
                return '(' + word.join(self.condition(e) for e in reversed(operands)) + ')'
            if expr.operator in RELATIONAL_OPERATORS:
                return f'({self._comparison(expr)})'
        if isinstance(expr, UnaryOperation) and expr.operator == '!':
            return f'(not {self.condition(expr.operand)})'
        return self.generate(expr)

    def statement(self, expr: Expression) -> List[str]:
        """Generate the statements for an expression evaluated for its effects."""
        if isinstance(expr, (ImplicitCast, TypeCast)) and expr.ctype is not None and expr.ctype.is_void:
            return self.statement(expr.expression)
        if isinstance(expr, CommaExpression):
            lines: List[str] = []
            for e in expr.expressions:
                lines.extend(self.statement(e))
            return lines
        if isinstance(expr, Assignment):
            return [self._assignment_statement(expr)]
        if isinstance(expr, UnaryOperation) and expr.operator in ('++', '--'):
            return [self._increment_statement(expr)]
        return [strip_parens(self.generate(expr))]

    # =========================================================================
    # IDENTIFIERS AND LITERALS
    # =========================================================================

    def generate_identifier(self, expr: Identifier) -> str:
        symbol = expr.symbol
        if symbol.storage == SymbolStorage.ENUM_CONSTANT:
            if symbol.scope_depth == 0:
                return self.name_of(symbol)
            return format_int(symbol.value)
        if symbol.storage == SymbolStorage.BUILTIN:
            if symbol.is_null_pointer:
                return 'None'
            if symbol.builtin is not None:
                return f'{self.rt}.{symbol.builtin.runtime_name}'
            return format_int(symbol.value)
        if symbol.storage == SymbolStorage.FUNCTION:
            if not symbol.defined and symbol.builtin is not None:
                return f'{self.rt}.{symbol.builtin.runtime_name}'
            return self.name_of(symbol)
        name = self.name_of(symbol)
        if self.is_boxed(symbol):
            return f'{name}[0]'
        return name

    def string_array(self, literal: StringLiteral, length=None) -> str:
        """A fresh char array holding the literal."""
        if length is None:
            return f'{self.rt}.cstr({string_bytes(literal)})'
        return f'{self.rt}.cstr({string_bytes(literal)}, {length})'

    # =========================================================================
    # CONVERSIONS
    # =========================================================================

    def generate_implicit_cast(self, expr: ImplicitCast) -> str:
        inner = expr.expression
        if expr.kind == 'decay':
            return f'{self.rt}.Ptr({self.generate(inner)}, 0)'
        if expr.kind == 'null':
            return 'None'
        if expr.kind in ('function', 'void'):
            return self.generate(inner)
        return self.convert(self.generate(inner), inner.ctype, expr.ctype)

    def generate_type_cast(self, expr: TypeCast) -> str:
        inner = expr.expression
        if expr.ctype.is_void:
            return self.generate(inner)
        if expr.ctype.is_pointer and inner.ctype.is_integer:
            # only a null pointer constant may be cast to a pointer
            return 'None'
        return self.convert(self.generate(inner), inner.ctype, expr.ctype)

    def convert(self, text: str, source: CType, target: CType) -> str:
        """Convert the value text of type source to type target."""
        s = source.strip()
        t = target.strip()
        if t.is_void or s == t:
            return text
        if isinstance(t, IntegerType) and t.name == '_Bool':
            if isinstance(s, IntegerType) and s.name == '_Bool':
                return text
            return f'{self.rt}.to_bool({strip_parens(text)})'
        if t.is_integer:
            if s.is_integer:
                if fits_in(s, t):
                    return text
                return f'{self.rt}.{integer_wrapper(t)}({strip_parens(text)})'
            if s.is_floating:
                return f'{self.rt}.{integer_wrapper(t)}({self.rt}.to_int({strip_parens(text)}))'
            return text
        if t.is_floating:
            if s.is_integer:
                if t == FLOAT:
                    return f'{self.rt}.f32({strip_parens(text)})'
                return f'float({strip_parens(text)})'
            if s.is_floating and t == FLOAT:
                return f'{self.rt}.f32({strip_parens(text)})'
            return text
        if isinstance(t, PointerType) and isinstance(s, PointerType):
            return self.pointer_cast(text, s, t)
        return text

    def pointer_cast(self, text: str, source: PointerType, target: PointerType) -> str:
        """void * to T * types fresh heap memory for T."""
        element = target.target.strip()
        if not source.target.is_void or element.is_void or element.is_function or not element.is_complete:
            return text
        if element.size == 1:
            return text
        return f'{self.rt}.ptr_cast({strip_parens(text)}, {element.size}, {self.factory(element)})'

    # =========================================================================
    # OPERATORS
    # =========================================================================

    def generate_binary_operation(self, expr: BinaryOperation) -> str:
        op = expr.operator
        if expr.ctype.is_integer:
            value = evaluate_integer(expr)
            if value is not None:
                return format_int(value)
        if op in LOGICAL_OPERATORS:
            return f'(1 if {strip_parens(self.condition(expr))} else 0)'
        if op in RELATIONAL_OPERATORS:
            return f'int({self._comparison(expr)})'
        if expr.left.ctype.is_pointer or expr.right.ctype.is_pointer:
            return self._pointer_arithmetic(expr)
        if self._is_chain_link(expr):
            return self._chain(expr)
        return self.arithmetic(op, self.generate(expr.left), self.generate(expr.right), expr.ctype)

    @staticmethod
    def _is_chain_link(expr: Expression, outer: Optional[BinaryOperation] = None) -> bool:
        """Whether expr may be printed flat, without its own wrap, inside outer."""
        if not isinstance(expr, BinaryOperation) or expr.ctype is None:
            return False
        if expr.left.ctype.is_pointer or expr.right.ctype.is_pointer:
            return False
        t = expr.ctype.strip()
        if expr.operator in BITWISE_OPERATORS:
            if not t.is_integer:
                return False
        elif expr.operator in CHAIN_OPERATORS:
            # binary32 rounds after every operation
            if not (t.is_integer or t.is_floating and t != FLOAT):
                return False
        else:
            return False
        if outer is None:
            return True
        if t != outer.ctype.strip():
            return False
        if outer.operator in BITWISE_OPERATORS:
            return expr.operator == outer.operator
        return outer.operator in CHAIN_OPERATORS and (expr.operator == '*' or outer.operator != '*')

    def _chain(self, expr: BinaryOperation) -> str:
        """A left-deep chain like a + b - c * d as one Python expression.

        Wrapping once at the end gives the same value as wrapping after
        every step, since + - and * are compatible with reduction modulo 2**n.
        """
        text = self._chain_text(expr)
        t = expr.ctype.strip()
        if t.is_floating or expr.operator in BITWISE_OPERATORS:
            return f'({text})'
        return f'{self.rt}.{integer_wrapper(t)}({text})'

    def _chain_text(self, expr: BinaryOperation) -> str:
        nodes = [expr]
        while self._is_chain_link(nodes[-1].left, nodes[-1]):
            nodes.append(nodes[-1].left)
        text = self.generate(nodes[-1].left)
        for node in reversed(nodes):
            right = node.right
            if node.operator in ('+', '-') and self._is_chain_link(right, node) and right.operator == '*':
                # binds tighter, so it needs neither parentheses nor a wrap
                operand = self._chain_text(right)
            else:
                operand = self.generate(right)
            text = f'{text} {node.operator} {operand}'
        return text

    def arithmetic(self, op: str, left: str, right: str, ctype: CType) -> str:
        """left op right computed in ctype; both operands already have that type."""
        t = ctype.strip()
        if t.is_floating:
            if op == '/':
                text = f'{self.rt}.fdiv({left}, {right})'
            else:
                text = f'({left} {op} {right})'
            if t == FLOAT:
                return f'{self.rt}.f32({strip_parens(text)})'
            return text
        wrapper = integer_wrapper(t)
        if op == '/':
            return f'{self.rt}.{wrapper}({self.rt}.idiv({left}, {right}))'
        if op == '%':
            return f'{self.rt}.imod({left}, {right})'
        if op in WRAPPING_OPERATORS:
            return f'{self.rt}.{wrapper}({left} {op} {right})'
        return f'({left} {op} {right})'

    def _comparison(self, expr: BinaryOperation) -> str:
        op = expr.operator
        if op in ('==', '!='):
            test = 'is' if op == '==' else 'is not'
            if self._is_null(expr.right):
                return f'{self.generate(expr.left)} {test} None'
            if self._is_null(expr.left):
                return f'{self.generate(expr.right)} {test} None'
        return f'{self.generate(expr.left)} {op} {self.generate(expr.right)}'

    @staticmethod
    def _is_null(expr: Expression) -> bool:
        if isinstance(expr, ImplicitCast) and expr.kind == 'null':
            return True
        return expr.ctype is not None and expr.ctype.is_pointer and is_null_pointer_constant(expr)

    def _pointer_arithmetic(self, expr: BinaryOperation) -> str:
        op = expr.operator
        left, right = expr.left, expr.right
        if left.ctype.is_pointer and right.ctype.is_pointer:
            return f'({self.generate(left)} - {self.generate(right)})'
        if left.ctype.is_pointer and self.is_array_decay(left):
            offset = self.generate(right)
            if op == '-':
                offset = f'-{offset}'
            return f'{self.rt}.Ptr({self.generate(left.expression)}, {offset})'
        return f'({self.generate(left)} {op} {self.generate(right)})'

    def generate_unary_operation(self, expr: UnaryOperation) -> str:
        op = expr.operator
        operand = expr.operand
        if op in ('++', '--'):
            return self.generate_increment(expr)
        if op == '&':
            return self.address_of(operand)
        if op == '*':
            if expr.ctype.is_function:
                return self.generate(operand)
            return f'{self.pointer_base(operand)}[0]'
        if op == '!':
            return f'int(not {self.condition(operand)})'
        value = self.generate(operand)
        if op == '+':
            return value
        if op == '-':
            if expr.ctype.is_floating:
                return f'(-{value})'
            return f'{self.rt}.{integer_wrapper(expr.ctype)}(-{value})'
        if op == '~':
            if expr.ctype.strip().signed:
                return f'(~{value})'
            return f'{self.rt}.{integer_wrapper(expr.ctype)}(~{value})'
        raise ValueError(f'unknown unary operator {op}')

    def generate_ternary(self, expr: TernaryOperation) -> str:
        condition = strip_parens(self.condition(expr.condition))
        true_value = self.generate(expr.true_expression)
        false_value = self.generate(expr.false_expression)
        return f'({true_value} if {condition} else {false_value})'

    # =========================================================================
    # POINTERS AND LVALUES
    # =========================================================================

    @staticmethod
    def is_array_decay(expr: Expression) -> bool:
        return isinstance(expr, ImplicitCast) and expr.kind == 'decay'

    def pointer_base(self, expr: Expression) -> str:
        """Something subscriptable standing for the pointer value expr."""
        if self.is_array_decay(expr):
            return self.generate(expr.expression)
        return self.generate(expr)

    def member_object(self, expr: MemberAccess) -> str:
        if expr.is_arrow:
            return f'{self.pointer_base(expr.expression)}[0]'
        return self.generate(expr.expression)

    def address_of(self, operand: Expression) -> str:
        if operand.ctype.is_function:
            return self.generate(operand)
        if isinstance(operand, Identifier) and self.is_boxed(operand.symbol):
            return f'{self.rt}.Ptr({self.name_of(operand.symbol)}, 0)'
        if isinstance(operand, IndexAccess):
            index = self.generate(operand.index)
            if self.is_array_decay(operand.base):
                return f'{self.rt}.Ptr({self.generate(operand.base.expression)}, {strip_parens(index)})'
            return f'({self.generate(operand.base)} + {index})'
        if isinstance(operand, UnaryOperation) and operand.operator == '*':
            return self.generate(operand.operand)
        if isinstance(operand, MemberAccess) and not operand.ctype.is_aggregate:
            obj = self.member_object(operand)
            return f'{self.rt}.Ptr({self.rt}.AttrCell({obj}, {self.member_attribute(operand)!r}), 0)'
        # arrays, struct members and literals are referenced through a fresh box
        return f'{self.rt}.Ptr([{self.generate(operand)}], 0)'

    def lvalue(self, target: Expression) -> Tuple[str, str, str, str]:
        """Split an assignable expression for the runtime update helpers.

        Returns (kind, object, key, current) where kind is 'item' or 'attr',
        key is the Python source of the index or attribute name and current
        reads the stored value.
        """
        if isinstance(target, Identifier):
            name = self.name_of(target.symbol)
            return 'item', name, '0', f'{name}[0]'
        if isinstance(target, IndexAccess):
            base = self.pointer_base(target.base)
            index = strip_parens(self.generate(target.index))
            return 'item', base, index, f'{base}[{index}]'
        if isinstance(target, UnaryOperation) and target.operator == '*':
            base = self.pointer_base(target.operand)
            return 'item', base, '0', f'{base}[0]'
        if isinstance(target, MemberAccess):
            obj = self.member_object(target)
            name = self.member_attribute(target)
            return 'attr', obj, repr(name), f'{obj}.{name}'
        raise ValueError(f'not an lvalue: {type(target).__name__}')

    def _is_plain_name(self, expr: Expression) -> bool:
        return isinstance(expr, Identifier) and not self.is_boxed(expr.symbol)

    # =========================================================================
    # ASSIGNMENT
    # =========================================================================

    def assigned_value(self, expr: Assignment, current: str, rhs: str) -> str:
        """The value stored by expr given the current target value and the right side."""
        if expr.operator == '=':
            return rhs
        op = expr.operator[:-1]
        target_type = expr.target.ctype
        if target_type.is_pointer:
            return f'({current} {op} {rhs})'
        op_type = expr.operation_ctype or target_type
        left = self.convert(current, target_type, op_type)
        if target_type.is_integer and op_type.is_integer and op in WRAPPING_OPERATORS:
            return f'{self.rt}.{integer_wrapper(target_type)}({left} {op} {rhs})'
        return self.convert(self.arithmetic(op, left, rhs, op_type), op_type, target_type)

    def generate_assignment(self, expr: Assignment) -> str:
        target = expr.target
        rhs = self.generate(expr.value)
        if target.ctype.is_struct:
            return f'{self.rt}.struct_assign({self.generate(target)}, {strip_parens(rhs)})'
        if self._is_plain_name(target):
            name = self.name_of(target.symbol)
            return f'({name} := {strip_parens(self.assigned_value(expr, name, rhs))})'
        kind, obj, key, _ = self.lvalue(target)
        if expr.operator == '=':
            return f'{self.rt}.assign_{kind}({obj}, {key}, {strip_parens(rhs)})'
        fn = f'lambda v, r: {strip_parens(self.assigned_value(expr, "v", "r"))}'
        return f'{self.rt}.update_{kind}({obj}, {key}, {fn}, {strip_parens(rhs)})'

    def _assignment_statement(self, expr: Assignment) -> str:
        target = expr.target
        rhs = self.generate(expr.value)
        if target.ctype.is_struct:
            return f'{self.generate(target)}.assign_from({strip_parens(rhs)})'
        if self._is_plain_name(target):
            name = self.name_of(target.symbol)
            return f'{name} = {strip_parens(self.assigned_value(expr, name, rhs))}'
        if expr.operator != '=' and has_side_effects(target):
            # the target must be evaluated once
            return self.generate_assignment(expr)
        _, _, _, current = self.lvalue(target)
        return f'{current} = {strip_parens(self.assigned_value(expr, current, rhs))}'

    def step(self, ctype: CType, current: str, op: str) -> str:
        """current + 1 or current - 1 in ctype (increment and decrement)."""
        t = ctype.strip()
        if t.is_pointer:
            return f'({current} {op} 1)'
        if t.is_floating:
            if t == FLOAT:
                return f'{self.rt}.f32({current} {op} 1.0)'
            return f'({current} {op} 1.0)'
        return f'{self.rt}.{integer_wrapper(t)}({current} {op} 1)'

    def generate_increment(self, expr: UnaryOperation) -> str:
        operand = expr.operand
        op = '+' if expr.operator == '++' else '-'
        if self._is_plain_name(operand):
            name = self.name_of(operand.symbol)
            updated = f'({name} := {strip_parens(self.step(operand.ctype, name, op))})'
            if expr.is_prefix:
                return updated
            return f'{self.rt}.first({name}, {updated})'
        kind, obj, key, _ = self.lvalue(operand)
        fn = f'lambda v: {strip_parens(self.step(operand.ctype, "v", op))}'
        helper = 'update' if expr.is_prefix else 'post_update'
        return f'{self.rt}.{helper}_{kind}({obj}, {key}, {fn})'

    def _increment_statement(self, expr: UnaryOperation) -> str:
        operand = expr.operand
        op = '+' if expr.operator == '++' else '-'
        if self._is_plain_name(operand):
            name = self.name_of(operand.symbol)
            return f'{name} = {strip_parens(self.step(operand.ctype, name, op))}'
        if has_side_effects(operand):
            return self.generate_increment(expr)
        _, _, _, current = self.lvalue(operand)
        return f'{current} = {strip_parens(self.step(operand.ctype, current, op))}'

    # =========================================================================
    # CALLS
    # =========================================================================

    def generate_function_call(self, expr: FunctionCall) -> str:
        callee = expr.function
        target = callee.expression if isinstance(callee, ImplicitCast) else callee
        args = [self.argument(a) for a in expr.arguments]
        symbol = target.symbol if isinstance(target, Identifier) else None
        if symbol is not None and symbol.builtin is not None and not (
            symbol.storage == SymbolStorage.FUNCTION and symbol.defined
        ):
            builtin = symbol.builtin
            if builtin.needs_element_size and expr.arguments:
                args.append(str(self._element_size(expr.arguments[0])))
            return f'{self.rt}.{builtin.runtime_name}({", ".join(args)})'
        return f'{self.generate(callee)}({", ".join(args)})'

    def argument(self, expr: Expression) -> str:
        """An argument value; struct arguments are passed by copy."""
        return strip_parens(self.copied(expr))

    @staticmethod
    def _element_size(pointer: Expression) -> int:
        t = pointer.ctype.strip()
        if isinstance(t, PointerType):
            target = t.target.strip()
            if not target.is_void and target.is_complete:
                return target.size
        return 1

    def copied(self, expr: Expression) -> str:
        """The value of expr, copied when it is a struct object that C would copy."""
        text = self.generate(expr)
        if expr.ctype is not None and expr.ctype.is_struct and self._is_object(expr):
            return f'{text}.copy()'
        return text

    @staticmethod
    def _is_object(expr: Expression) -> bool:
        if isinstance(expr, (Identifier, MemberAccess, IndexAccess)):
            return True
        return isinstance(expr, UnaryOperation) and expr.operator == '*'

    # =========================================================================
    # INITIALIZERS
    # =========================================================================

    def object_value(self, symbol, init: Optional[Expression]) -> str:
        """Initial value bound to a declared object, boxed if its address is taken."""
        if init is None:
            value = self.zero_value(symbol.ctype)
        else:
            value = strip_parens(self.initializer(init, symbol.ctype))
        if self.is_boxed(symbol):
            return f'[{value}]'
        return value

    def initializer(self, init: Expression, ctype: CType) -> str:
        """A fresh value of type ctype built from a resolved initializer."""
        if isinstance(init, InitializerList):
            target = (init.ctype or ctype).strip()
            if isinstance(target, ArrayType):
                return self._array_initializer(init.entries, target)
            if isinstance(target, StructType):
                return self._struct_initializer(init.entries, target)
            if init.entries:
                return self.initializer(init.entries[0][1], target)
            return self.zero_value(target)
        t = ctype.strip()
        if isinstance(init, StringLiteral) and isinstance(t, ArrayType):
            return self.string_array(init, t.length)
        return self.copied(init)

    def _array_initializer(self, entries: list, ctype: ArrayType) -> str:
        length = ctype.length or 0
        element = ctype.element
        values = dict(entries)
        if length <= ARRAY_LITERAL_LIMIT:
            items = [
                self.initializer(values[i], element) if i in values else self.zero_value(element)
                for i in range(length)
            ]
            return f'[{", ".join(items)}]'
        if not values:
            return self.zero_value(ctype)
        pairs = ', '.join(f'{i}: {self.initializer(v, element)}' for i, v in values.items())
        return f'{self.rt}.array_init({length}, {self.factory(element)}, {{{pairs}}})'

    def _struct_initializer(self, entries: list, ctype: StructType) -> str:
        cls = self.struct_class(ctype)
        values = dict(entries)
        if not values:
            return f'{cls}()'
        members = ', '.join(
            f'{self.field_name(ctype, name)}={strip_parens(self.initializer(value, ctype.field(name).ctype))}'
            for name, value in values.items()
        )
        return f'{self.rt}.build({cls}(), {members})'
