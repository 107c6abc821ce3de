"""
Expression typing for the resolver.

ExpressionResolver is mixed into Resolver. It binds identifiers, computes
the type of every expression, checks operand constraints and makes value
conversions explicit by inserting ImplicitCast nodes. Resolution returns the
(possibly wrapped) node; callers store it back into the tree.
"""

from typing import List, Optional

from ..diagnostics import DiagnosticKind, SourcePosition
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
from ..type_system.types import (
    CType,
    ArrayType,
    FunctionType,
    IntegerType,
    PointerType,
    StructType,
    ERROR,
    VOID,
    CHAR,
    INT,
    UINT,
    LONG,
    ULONG,
    LLONG,
    ULLONG,
    FLOAT,
    DOUBLE,
    LDOUBLE,
    PTRDIFF_T,
    SIZE_T,
    compatible,
    integer_promote,
    usual_arithmetic_conversion,
)
from .constant import is_null_pointer_constant
from .scope import Symbol, SymbolStorage


INTEGER_OPERATORS = frozenset({'%', '&', '|', '^'})
SHIFT_OPERATORS = frozenset({'<<', '>>'})
RELATIONAL_OPERATORS = frozenset({'<', '>', '<=', '>='})
EQUALITY_OPERATORS = frozenset({'==', '!='})
LOGICAL_OPERATORS = frozenset({'&&', '||'})


def is_character_type(ctype: CType) -> bool:
    t = ctype.strip()
    return isinstance(t, IntegerType) and t.byte_size == 1 and t.name != '_Bool'


class ExpressionResolver:
    """Typing rules for C expressions."""

    # =========================================================================
    # REPORTING
    # =========================================================================

    def error(self, code: str, message: str, pos: SourcePosition) -> CType:
        self.diagnostics.error(DiagnosticKind.SEMANTIC, code, message, pos)
        return ERROR

    def warning(self, code: str, message: str, pos: SourcePosition) -> None:
        self.diagnostics.warning(DiagnosticKind.SEMANTIC, code, message, pos)

    # =========================================================================
    # CONVERSIONS
    # =========================================================================

    def rvalue(self, expr: Expression) -> Expression:
        """Array-to-pointer and function-to-pointer conversion."""
        ctype = expr.ctype
        if ctype is None:
            return expr
        t = ctype.strip()
        if isinstance(t, ArrayType):
            return ImplicitCast(expression=expr, kind='decay', ctype=PointerType(t.element), pos=expr.pos)
        if isinstance(t, FunctionType):
            return ImplicitCast(expression=expr, kind='function', ctype=PointerType(ctype), pos=expr.pos)
        return expr

    def value(self, expr: Expression) -> Expression:
        """Resolve expr and apply the conversions for use as a value."""
        return self.rvalue(self.resolve_expression(expr))

    def convert(self, expr: Expression, target: CType) -> Expression:
        """Make the conversion of expr to target explicit where it changes the value."""
        source = expr.ctype
        if source is None or source.is_error or target.is_error:
            return expr
        s = source.strip()
        t = target.strip()
        if t.is_void:
            return ImplicitCast(expression=expr, kind='void', ctype=target, pos=expr.pos)
        if isinstance(t, StructType) or isinstance(s, StructType):
            return expr
        if isinstance(t, PointerType):
            if not isinstance(s, PointerType):
                if is_null_pointer_constant(expr):
                    return ImplicitCast(expression=expr, kind='null', ctype=target, pos=expr.pos)
                return ImplicitCast(expression=expr, kind='convert', ctype=target, pos=expr.pos)
            if s.target.is_void and not t.target.is_void:
                return ImplicitCast(expression=expr, kind='convert', ctype=target, pos=expr.pos)
            return expr
        if compatible(s, t):
            return expr
        return ImplicitCast(expression=expr, kind='convert', ctype=target, pos=expr.pos)

    def assign_convert(self, target: CType, expr: Expression, context: str, pos: SourcePosition) -> Expression:
        """Check that expr (already a value) can be assigned to an object of type target."""
        source = expr.ctype
        if source is None or source.is_error or target.is_error:
            return expr
        s = source.strip()
        t = target.strip()

        if t.is_arithmetic and s.is_arithmetic:
            return self.convert(expr, target)
        if isinstance(t, IntegerType) and t.name == '_Bool' and isinstance(s, PointerType):
            return self.convert(expr, target)
        if isinstance(t, PointerType):
            if is_null_pointer_constant(expr):
                return self.convert(expr, target)
            if isinstance(s, PointerType):
                if not (s.target.is_void or t.target.is_void or compatible(s.target, t.target)):
                    self.warning('W302', f"incompatible pointer types {context} '{t}' from '{s}'", pos)
                return self.convert(expr, target)
            self.error('E303', f"incompatible integer to pointer conversion {context} '{t}' from '{s}'", pos)
            return expr
        if isinstance(t, StructType) and isinstance(s, StructType):
            if compatible(s, t):
                return expr
        self.error('E303', f"incompatible types {context} '{t}' from '{s}'", pos)
        return expr

    def require_scalar(self, expr: Expression, what: str) -> bool:
        ctype = expr.ctype
        if ctype is None or ctype.is_error:
            return False
        if not ctype.is_scalar:
            self.error('E305', f"{what} requires a scalar value, not '{ctype}'", expr.pos)
            return False
        return True

    def is_lvalue(self, expr: Expression) -> bool:
        if isinstance(expr, Identifier):
            return expr.symbol is not None and expr.symbol.is_object
        if isinstance(expr, (IndexAccess, StringLiteral, CompoundLiteral)):
            return True
        if isinstance(expr, MemberAccess):
            return expr.is_arrow or self.is_lvalue(expr.expression)
        if isinstance(expr, UnaryOperation):
            return expr.operator == '*'
        return False

    def require_modifiable(self, expr: Expression, what: str) -> bool:
        if expr.ctype is None or expr.ctype.is_error:
            return False
        if not self.is_lvalue(expr) or isinstance(expr, StringLiteral):
            self.error('E306', f'expression is not assignable ({what})', expr.pos)
            return False
        if expr.ctype.is_array:
            self.error('E306', f"array type '{expr.ctype}' is not assignable", expr.pos)
            return False
        return True

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def resolve_expression(self, expr: Expression) -> Expression:
        """Type expr and its children. Array and function values are not decayed here."""
        if isinstance(expr, IntegerLiteral):
            expr.ctype = self._integer_literal_type(expr)
        elif isinstance(expr, FloatLiteral):
            suffix = expr.text[-1:].lower()
            expr.ctype = FLOAT if suffix == 'f' else LDOUBLE if suffix == 'l' else DOUBLE
        elif isinstance(expr, CharLiteral):
            expr.ctype = INT
        elif isinstance(expr, StringLiteral):
            expr.ctype = ArrayType(CHAR, len(expr.values) + 1)
        elif isinstance(expr, Identifier):
            self._resolve_identifier(expr)
        elif isinstance(expr, BinaryOperation):
            return self._resolve_binary(expr)
        elif isinstance(expr, Assignment):
            return self._resolve_assignment(expr)
        elif isinstance(expr, UnaryOperation):
            return self._resolve_unary(expr)
        elif isinstance(expr, TernaryOperation):
            return self._resolve_ternary(expr)
        elif isinstance(expr, CommaExpression):
            expr.expressions = [self.value(e) for e in expr.expressions]
            expr.ctype = expr.expressions[-1].ctype
        elif isinstance(expr, FunctionCall):
            return self._resolve_call(expr)
        elif isinstance(expr, MemberAccess):
            return self._resolve_member(expr)
        elif isinstance(expr, IndexAccess):
            return self._resolve_index(expr)
        elif isinstance(expr, TypeCast):
            return self._resolve_cast(expr)
        elif isinstance(expr, SizeofExpression):
            self._resolve_sizeof(expr)
        elif isinstance(expr, CompoundLiteral):
            ctype = self.resolve_type(expr.type_spec)
            expr.initializer, expr.ctype = self.resolve_initializer(expr.initializer, ctype, expr.pos)
        elif isinstance(expr, ImplicitCast):
            pass  # already resolved
        elif isinstance(expr, InitializerList):
            expr.ctype = self.error('E305', 'initializer list is not an expression', expr.pos)
        else:
            expr.ctype = self.error('E305', f'unsupported expression {type(expr).__name__}', expr.pos)
        return expr

    # =========================================================================
    # PRIMARY EXPRESSIONS
    # =========================================================================

    def _integer_literal_type(self, literal: IntegerLiteral) -> CType:
        text = literal.text.lower() if literal.text else str(literal.value)
        body = text.rstrip('ul')
        suffix = text[len(body):]
        unsigned = 'u' in suffix
        longs = suffix.count('l')
        decimal = not (body.startswith('0x') or (len(body) > 1 and body[0] == '0'))

        if unsigned:
            candidates = [UINT, ULONG, ULLONG][min(longs, 2):]
        elif decimal:
            candidates = [INT, LONG, LLONG][min(longs, 2):]
        else:
            candidates = [INT, UINT, LONG, ULONG, LLONG, ULLONG][2 * min(longs, 2):]

        for candidate in candidates:
            if literal.value <= candidate.max_value:
                return candidate
        self.warning('W305', f"integer constant '{literal.text}' is too large for its type", literal.pos)
        return ULLONG

    def _resolve_identifier(self, expr: Identifier) -> None:
        symbol = self.arena.lookup(expr.name) or self.builtin_symbol(expr.name)
        if symbol is None:
            expr.ctype = self.error('E301', f"use of undeclared identifier '{expr.name}'", expr.pos)
            return
        if symbol.storage == SymbolStorage.TYPEDEF:
            expr.ctype = self.error('E305', f"unexpected type name '{expr.name}': expected expression", expr.pos)
            return
        expr.symbol = symbol
        expr.ctype = symbol.ctype

    # =========================================================================
    # OPERATORS
    # =========================================================================

    def _resolve_binary(self, expr: BinaryOperation) -> Expression:
        # Left operands are walked in a loop so long chains like a + b + ...
        # do not recurse once per operator.
        chain = [expr]
        while isinstance(chain[-1].left, BinaryOperation):
            chain.append(chain[-1].left)
        chain[-1].left = self.value(chain[-1].left)
        for node in reversed(chain):
            node.right = self.value(node.right)
            self._type_binary(node)
        return expr

    def _type_binary(self, expr: BinaryOperation) -> Expression:
        """Type one operator whose operands are already resolved."""
        op = expr.operator
        lt = expr.left.ctype
        rt = expr.right.ctype
        if lt is None or rt is None or lt.is_error or rt.is_error:
            expr.ctype = ERROR
            return expr

        if op in LOGICAL_OPERATORS:
            left_ok = self.require_scalar(expr.left, f"operand of '{op}'")
            right_ok = self.require_scalar(expr.right, f"operand of '{op}'")
            expr.ctype = INT if left_ok and right_ok else ERROR
            return expr

        if op in SHIFT_OPERATORS:
            if lt.is_integer and rt.is_integer:
                expr.left = self.convert(expr.left, integer_promote(lt))
                expr.right = self.convert(expr.right, integer_promote(rt))
                expr.ctype = integer_promote(lt)
                return expr
            return self._invalid_operands(expr)

        if lt.is_arithmetic and rt.is_arithmetic:
            if op in INTEGER_OPERATORS and not (lt.is_integer and rt.is_integer):
                return self._invalid_operands(expr)
            common = usual_arithmetic_conversion(lt, rt)
            expr.left = self.convert(expr.left, common)
            expr.right = self.convert(expr.right, common)
            if op in RELATIONAL_OPERATORS or op in EQUALITY_OPERATORS:
                expr.ctype = INT
            else:
                expr.ctype = common
            return expr

        lp = lt.strip() if lt.is_pointer else None
        rp = rt.strip() if rt.is_pointer else None

        if op == '+' and (lp is not None and rt.is_integer or rp is not None and lt.is_integer):
            pointer_side = expr.left if lp is not None else expr.right
            if not self._check_pointer_arithmetic(pointer_side):
                expr.ctype = ERROR
                return expr
            expr.ctype = pointer_side.ctype
            return expr

        if op == '-' and lp is not None and rt.is_integer:
            if not self._check_pointer_arithmetic(expr.left):
                expr.ctype = ERROR
                return expr
            expr.ctype = lt
            return expr

        if op == '-' and lp is not None and rp is not None:
            if not compatible(lp.target, rp.target):
                return self._invalid_operands(expr)
            if not self._check_pointer_arithmetic(expr.left):
                expr.ctype = ERROR
                return expr
            expr.ctype = PTRDIFF_T
            return expr

        if op in EQUALITY_OPERATORS or op in RELATIONAL_OPERATORS:
            if lp is not None and rp is not None:
                if not (compatible(lp.target, rp.target) or (op in EQUALITY_OPERATORS and (lp.target.is_void or rp.target.is_void))):
                    self.warning('W302', f"comparison of distinct pointer types '{lt}' and '{rt}'", expr.pos)
                expr.ctype = INT
                return expr
            if lp is not None and is_null_pointer_constant(expr.right):
                expr.right = self.convert(expr.right, lt)
                expr.ctype = INT
                return expr
            if rp is not None and is_null_pointer_constant(expr.left):
                expr.left = self.convert(expr.left, rt)
                expr.ctype = INT
                return expr

        return self._invalid_operands(expr)

    def _invalid_operands(self, expr: BinaryOperation) -> Expression:
        expr.ctype = self.error(
            'E305',
            f"invalid operands to binary expression ('{expr.left.ctype}' {expr.operator} '{expr.right.ctype}')",
            expr.pos,
        )
        return expr

    def _check_pointer_arithmetic(self, pointer: Expression) -> bool:
        target = pointer.ctype.strip().target
        if target.is_void or target.is_function or not target.is_complete:
            self.error('E305', f"arithmetic on a pointer to incomplete type '{target}'", pointer.pos)
            return False
        return True

    def _resolve_assignment(self, expr: Assignment) -> Expression:
        expr.target = self.resolve_expression(expr.target)
        expr.value = self.value(expr.value)
        target_type = expr.target.ctype
        value_type = expr.value.ctype
        if target_type is None or target_type.is_error or value_type is None or value_type.is_error:
            expr.ctype = ERROR
            return expr
        if not self.require_modifiable(expr.target, f"left side of '{expr.operator}'"):
            expr.ctype = ERROR
            return expr

        expr.ctype = target_type
        if expr.operator == '=':
            expr.value = self.assign_convert(target_type, expr.value, 'assigning to', expr.pos)
            return expr

        op = expr.operator[:-1]
        if target_type.is_pointer and op in ('+', '-') and value_type.is_integer:
            if not self._check_pointer_arithmetic(expr.target):
                expr.ctype = ERROR
            return expr
        if not (target_type.is_arithmetic and value_type.is_arithmetic):
            expr.ctype = self.error(
                'E305', f"invalid operands to '{expr.operator}' ('{target_type}' and '{value_type}')", expr.pos,
            )
            return expr
        if op in SHIFT_OPERATORS or op in INTEGER_OPERATORS:
            if not (target_type.is_integer and value_type.is_integer):
                expr.ctype = self.error(
                    'E305', f"invalid operands to '{expr.operator}' ('{target_type}' and '{value_type}')", expr.pos,
                )
                return expr
        if op in SHIFT_OPERATORS:
            expr.operation_ctype = integer_promote(target_type)
            expr.value = self.convert(expr.value, integer_promote(value_type))
        else:
            expr.operation_ctype = usual_arithmetic_conversion(target_type, value_type)
            expr.value = self.convert(expr.value, expr.operation_ctype)
        return expr

    def _resolve_unary(self, expr: UnaryOperation) -> Expression:
        op = expr.operator

        if op in ('++', '--'):
            expr.operand = self.resolve_expression(expr.operand)
            ctype = expr.operand.ctype
            if ctype is None or ctype.is_error or not self.require_modifiable(expr.operand, f"operand of '{op}'"):
                expr.ctype = ERROR
                return expr
            if ctype.is_pointer:
                if not self._check_pointer_arithmetic(expr.operand):
                    expr.ctype = ERROR
                    return expr
            elif not ctype.is_arithmetic:
                expr.ctype = self.error('E305', f"cannot {'increment' if op == '++' else 'decrement'} value of type '{ctype}'", expr.pos)
                return expr
            expr.ctype = ctype
            return expr

        if op == '&':
            expr.operand = self.resolve_expression(expr.operand)
            operand = expr.operand
            ctype = operand.ctype
            if ctype is None or ctype.is_error:
                expr.ctype = ERROR
                return expr
            if ctype.is_function:
                expr.ctype = PointerType(ctype)
                return expr
            if not self.is_lvalue(operand):
                expr.ctype = self.error('E306', 'cannot take the address of an rvalue', expr.pos)
                return expr
            if isinstance(operand, Identifier) and operand.symbol is not None:
                operand.symbol.address_taken = True
            expr.ctype = PointerType(ctype)
            return expr

        expr.operand = self.value(expr.operand)
        ctype = expr.operand.ctype
        if ctype is None or ctype.is_error:
            expr.ctype = ERROR
            return expr

        if op == '*':
            if not ctype.is_pointer:
                expr.ctype = self.error('E309', f"indirection requires pointer operand ('{ctype}' invalid)", expr.pos)
                return expr
            target = ctype.strip().target
            if target.is_void:
                expr.ctype = self.error('E309', "dereferencing a 'void *' pointer", expr.pos)
                return expr
            expr.ctype = target
            return expr

        if op in ('+', '-'):
            if not ctype.is_arithmetic:
                expr.ctype = self.error('E305', f"invalid argument type '{ctype}' to unary expression", expr.pos)
                return expr
            promoted = integer_promote(ctype) if ctype.is_integer else ctype
            expr.operand = self.convert(expr.operand, promoted)
            expr.ctype = promoted
            return expr

        if op == '~':
            if not ctype.is_integer:
                expr.ctype = self.error('E305', f"invalid argument type '{ctype}' to unary expression", expr.pos)
                return expr
            promoted = integer_promote(ctype)
            expr.operand = self.convert(expr.operand, promoted)
            expr.ctype = promoted
            return expr

        # '!'
        expr.ctype = INT if self.require_scalar(expr.operand, "operand of '!'") else ERROR
        return expr

    def _resolve_ternary(self, expr: TernaryOperation) -> Expression:
        expr.condition = self.value(expr.condition)
        expr.true_expression = self.value(expr.true_expression)
        expr.false_expression = self.value(expr.false_expression)
        a = expr.true_expression.ctype
        b = expr.false_expression.ctype
        if not self.require_scalar(expr.condition, 'condition') or a is None or b is None or a.is_error or b.is_error:
            expr.ctype = ERROR
            return expr

        if a.is_arithmetic and b.is_arithmetic:
            common = usual_arithmetic_conversion(a, b)
        elif a.is_struct and b.is_struct and compatible(a, b):
            common = a
        elif a.is_void and b.is_void:
            common = VOID
        elif a.is_pointer and is_null_pointer_constant(expr.false_expression):
            common = a
        elif b.is_pointer and is_null_pointer_constant(expr.true_expression):
            common = b
        elif a.is_pointer and b.is_pointer:
            at = a.strip().target
            bt = b.strip().target
            if at.is_void:
                common = a
            elif bt.is_void:
                common = b
            else:
                if not compatible(at, bt):
                    self.warning('W302', f"pointer type mismatch ('{a}' and '{b}')", expr.pos)
                common = a
        else:
            expr.ctype = self.error('E305', f"incompatible operand types ('{a}' and '{b}')", expr.pos)
            return expr

        expr.true_expression = self.convert(expr.true_expression, common)
        expr.false_expression = self.convert(expr.false_expression, common)
        expr.ctype = common
        return expr

    # =========================================================================
    # POSTFIX EXPRESSIONS
    # =========================================================================

    def _resolve_call(self, expr: FunctionCall) -> Expression:
        callee = self.resolve_expression(expr.function)
        if isinstance(callee, Identifier) and callee.symbol is not None and callee.symbol.first_call is None:
            callee.symbol.first_call = expr.pos
        expr.function = self.rvalue(callee)
        args: List[Expression] = [self.value(a) for a in expr.arguments]
        expr.arguments = args

        ctype = expr.function.ctype
        if ctype is None or ctype.is_error:
            expr.ctype = ERROR
            return expr
        ftype: Optional[FunctionType] = None
        if ctype.is_pointer and ctype.strip().target.is_function:
            ftype = ctype.strip().target.strip()
        if ftype is None:
            expr.ctype = self.error('E307', f"called object type '{ctype}' is not a function or function pointer", expr.pos)
            return expr

        params = ftype.params
        if ftype.has_prototype:
            if len(args) < len(params) or (len(args) > len(params) and not ftype.variadic):
                amount = 'few' if len(args) < len(params) else 'many'
                expr.ctype = self.error(
                    'E304',
                    f'too {amount} arguments to function call, expected {len(params)}, have {len(args)}',
                    expr.pos,
                )
                return expr

        converted: List[Expression] = []
        for i, arg in enumerate(args):
            if arg.ctype is None or arg.ctype.is_error:
                converted.append(arg)
                continue
            if ftype.has_prototype and i < len(params):
                converted.append(self.assign_convert(params[i], arg, 'passing', arg.pos))
            else:
                converted.append(self._default_promotion(arg))
        expr.arguments = converted

        return_type = ftype.return_type
        if not return_type.is_void and not return_type.is_complete:
            expr.ctype = self.error('E313', f"calling function with incomplete return type '{return_type}'", expr.pos)
            return expr
        expr.ctype = return_type
        return expr

    def _default_promotion(self, arg: Expression) -> Expression:
        ctype = arg.ctype
        if ctype.is_floating and ctype.strip() == FLOAT:
            return self.convert(arg, DOUBLE)
        if ctype.is_integer:
            return self.convert(arg, integer_promote(ctype))
        return arg

    def _resolve_member(self, expr: MemberAccess) -> Expression:
        if expr.is_arrow:
            expr.expression = self.value(expr.expression)
        else:
            expr.expression = self.resolve_expression(expr.expression)
        ctype = expr.expression.ctype
        if ctype is None or ctype.is_error:
            expr.ctype = ERROR
            return expr

        if expr.is_arrow:
            if not ctype.is_pointer or not ctype.strip().target.is_struct:
                expr.ctype = self.error('E308', f"member reference type '{ctype}' is not a pointer to a struct", expr.pos)
                return expr
            record = ctype.strip().target.strip()
        else:
            if not ctype.is_struct:
                expr.ctype = self.error('E308', f"member reference base type '{ctype}' is not a struct or union", expr.pos)
                return expr
            record = ctype.strip()

        if not record.is_complete:
            expr.ctype = self.error('E313', f"member access into incomplete type '{record}'", expr.pos)
            return expr
        member = record.field(expr.member)
        if member is None:
            expr.ctype = self.error('E308', f"no member named '{expr.member}' in '{record}'", expr.pos)
            return expr
        expr.field_info = member
        expr.ctype = member.ctype
        return expr

    def _resolve_index(self, expr: IndexAccess) -> Expression:
        expr.base = self.value(expr.base)
        expr.index = self.value(expr.index)
        bt = expr.base.ctype
        it = expr.index.ctype
        if bt is None or it is None or bt.is_error or it.is_error:
            expr.ctype = ERROR
            return expr
        if bt.is_integer and it.is_pointer:
            expr.base, expr.index = expr.index, expr.base
            bt, it = it, bt
        if not bt.is_pointer:
            expr.ctype = self.error('E305', 'subscripted value is not an array or pointer', expr.pos)
            return expr
        if not it.is_integer:
            expr.ctype = self.error('E305', 'array subscript is not an integer', expr.index.pos)
            return expr
        if not self._check_pointer_arithmetic(expr.base):
            expr.ctype = ERROR
            return expr
        expr.ctype = bt.strip().target
        return expr

    def _resolve_cast(self, expr: TypeCast) -> Expression:
        target = self.resolve_type(expr.type_spec)
        expr.expression = self.value(expr.expression)
        source = expr.expression.ctype
        if target.is_error or source is None or source.is_error:
            expr.ctype = ERROR
            return expr
        expr.ctype = target
        t = target.strip()
        s = source.strip()

        if t.is_void:
            return expr
        if not t.is_scalar:
            expr.ctype = self.error('E305', f"used type '{target}' where arithmetic or pointer type is required", expr.pos)
            return expr
        if not s.is_scalar:
            expr.ctype = self.error('E305', f"operand of type '{source}' where arithmetic or pointer type is required", expr.pos)
            return expr
        if t.is_pointer and s.is_integer and not is_null_pointer_constant(expr.expression):
            expr.ctype = self.error('E315', 'casting a nonzero integer to a pointer is not supported', expr.pos)
            return expr
        if s.is_pointer and t.is_integer and not (isinstance(t, IntegerType) and t.name == '_Bool'):
            expr.ctype = self.error('E315', 'casting a pointer to an integer is not supported', expr.pos)
            return expr
        if (t.is_pointer and s.is_floating) or (s.is_pointer and t.is_floating):
            expr.ctype = self.error('E305', f"cannot cast '{source}' to '{target}'", expr.pos)
            return expr
        return expr

    def _resolve_sizeof(self, expr: SizeofExpression) -> None:
        if expr.type_spec is not None:
            ctype = self.resolve_type(expr.type_spec)
        else:
            expr.operand = self.resolve_expression(expr.operand)
            ctype = expr.operand.ctype
        expr.ctype = SIZE_T
        if ctype is None or ctype.is_error:
            expr.ctype = ERROR
            return
        if ctype.is_function:
            expr.ctype = self.error('E313', "invalid application of 'sizeof' to a function type", expr.pos)
            return
        if not ctype.is_complete:
            expr.ctype = self.error('E313', f"invalid application of 'sizeof' to an incomplete type '{ctype}'", expr.pos)
            return
        expr.value = ctype.size

    # =========================================================================
    # BUILTINS
    # =========================================================================

    def builtin_symbol(self, name: str) -> Optional[Symbol]:
        """Symbol for a libc function or constant that was not declared in the source."""
        symbol = self._builtin_symbols.get(name)
        if symbol is not None:
            return symbol
        function = self.builtins.function(name)
        if function is not None:
            symbol = Symbol(name, function.ctype, SymbolStorage.BUILTIN, builtin=function, defined=True)
        else:
            constant = self.builtins.constants.get(name)
            if constant is None:
                return None
            symbol = Symbol(
                name, constant.ctype, SymbolStorage.BUILTIN,
                value=constant.value, is_null_pointer=constant.is_null_pointer, defined=True,
            )
        self._builtin_symbols[name] = symbol
        return symbol
