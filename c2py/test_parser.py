"""
Unit tests for the C parser.

Run with: python3 -m pytest c2py/test_parser.py
"""

import unittest

from c2py.diagnostics import Diagnostics, DiagnosticKind
from c2py.lexer import tokenize
from c2py.parser import (
    parse,
    TypedefTable,
    PrimitiveTypeSpec,
    TypedefNameSpec,
    PointerTypeSpec,
    ArrayTypeSpec,
    FunctionTypeSpec,
    StructSpec,
    EnumSpec,
    IntegerLiteral,
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
    StringLiteral,
    CharLiteral,
    InitializerList,
    CompoundLiteral,
    VariableDeclaration,
    TypedefDeclaration,
    TagDeclaration,
    FunctionDefinition,
    CompoundStatement,
    DeclarationStatement,
    ExpressionStatement,
    IfStatement,
    ForStatement,
    DoWhileStatement,
    SwitchStatement,
    CaseStatement,
    DefaultStatement,
    ReturnStatement,
    GotoStatement,
    walk,
)


def parse_source(source):
    diagnostics = Diagnostics('<test>')
    unit = parse(tokenize(source), diagnostics)
    return unit, diagnostics


def INT():
    return PrimitiveTypeSpec(names=['int'])


def lit(value):
    return IntegerLiteral(value=value, text=str(value))


class ParserTestCase(unittest.TestCase):

    def parse_ok(self, source):
        unit, diagnostics = parse_source(source)
        self.assertFalse(diagnostics.has_errors, [str(d) for d in diagnostics])
        return unit

    def parse_expression(self, text):
        """Parse text as the initializer of a global."""
        unit = self.parse_ok(f'int a, b, c, *p, f(int); int x = {text};')
        return unit.declarations[-1].initializer

    def body_of(self, source):
        unit = self.parse_ok(source)
        function = [d for d in unit.declarations if isinstance(d, FunctionDefinition)][-1]
        return function.body.statements


class TestDeclarations(ParserTestCase):
    """Declarators and declaration specifiers."""

    def test_simple_declaration(self):
        unit = self.parse_ok('int x = 1;')
        self.assertEqual(unit.declarations, [VariableDeclaration(name='x', type_spec=INT(), initializer=lit(1))])

    def test_declaration_group(self):
        unit = self.parse_ok('static int a, *b, c[3];')
        a, b, c = unit.declarations
        self.assertEqual(a.storage, 'static')
        self.assertEqual(b.type_spec, PointerTypeSpec(target=INT()))
        self.assertEqual(c.type_spec, ArrayTypeSpec(element=INT(), size=lit(3)))

    def test_multidimensional_array(self):
        """int m[2][3] is an array of 2 arrays of 3 ints."""
        unit = self.parse_ok('int m[2][3];')
        self.assertEqual(
            unit.declarations[0].type_spec,
            ArrayTypeSpec(element=ArrayTypeSpec(element=INT(), size=lit(3)), size=lit(2)),
        )

    def test_array_of_pointers_versus_pointer_to_array(self):
        unit = self.parse_ok('int *a[4]; int (*b)[4];')
        self.assertEqual(unit.declarations[0].type_spec, ArrayTypeSpec(element=PointerTypeSpec(target=INT()), size=lit(4)))
        self.assertEqual(unit.declarations[1].type_spec, PointerTypeSpec(target=ArrayTypeSpec(element=INT(), size=lit(4))))

    def test_function_pointer(self):
        unit = self.parse_ok('int (*op)(int, int);')
        spec = unit.declarations[0].type_spec
        self.assertIsInstance(spec, PointerTypeSpec)
        self.assertIsInstance(spec.target, FunctionTypeSpec)
        self.assertEqual(len(spec.target.parameters), 2)

    def test_prototypes(self):
        unit = self.parse_ok('int f(void); int g(); int h(const char *fmt, ...);')
        f, g, h = (d.type_spec for d in unit.declarations)
        self.assertTrue(f.has_prototype)
        self.assertEqual(f.parameters, [])
        self.assertFalse(g.has_prototype)
        self.assertTrue(h.variadic)
        self.assertEqual(h.parameters[0].name, 'fmt')

    def test_multiword_primitive(self):
        unit = self.parse_ok('unsigned long long n;')
        self.assertEqual(unit.declarations[0].type_spec, PrimitiveTypeSpec(names=['unsigned', 'long', 'long']))

    def test_function_definition(self):
        unit = self.parse_ok('int add(int a, int b) { return a + b; }')
        definition = unit.declarations[0]
        self.assertIsInstance(definition, FunctionDefinition)
        self.assertEqual([p.name for p in definition.type_spec.parameters], ['a', 'b'])
        self.assertEqual(
            definition.body.statements,
            [ReturnStatement(expression=BinaryOperation(left=Identifier(name='a'), operator='+', right=Identifier(name='b')))],
        )


class TestTagsAndTypedefs(ParserTestCase):

    def test_struct_definition_is_hoisted(self):
        """A struct defined inside a declaration comes first as its own TagDeclaration."""
        unit = self.parse_ok('struct point { int x, y; } origin;')
        tag, variable = unit.declarations
        self.assertIsInstance(tag, TagDeclaration)
        self.assertEqual([f.name for f in tag.spec.fields], ['x', 'y'])
        self.assertEqual(variable.type_spec, StructSpec(kind='struct', tag='point'))

    def test_anonymous_struct_gets_a_tag(self):
        unit = self.parse_ok('typedef struct { int v; } box;')
        tag, typedef = unit.declarations
        self.assertTrue(tag.spec.anonymous)
        self.assertIsNotNone(tag.spec.tag)
        self.assertIsInstance(typedef, TypedefDeclaration)
        self.assertEqual(typedef.type_spec.tag, tag.spec.tag)

    def test_enum(self):
        unit = self.parse_ok('enum color { RED, GREEN = 5, BLUE };')
        spec = unit.declarations[0].spec
        self.assertIsInstance(spec, EnumSpec)
        self.assertEqual([e.name for e in spec.enumerators], ['RED', 'GREEN', 'BLUE'])
        self.assertEqual(spec.enumerators[1].value, lit(5))

    def test_forward_struct_reference(self):
        unit = self.parse_ok('struct node;')
        self.assertIsInstance(unit.declarations[0], TagDeclaration)

    def test_typedef_name_starts_declaration(self):
        stmts = self.body_of('typedef int T; void f(void) { T * x; }')
        self.assertIsInstance(stmts[0], DeclarationStatement)
        self.assertEqual(stmts[0].declarations[0].type_spec, PointerTypeSpec(target=TypedefNameSpec(name='T')))

    def test_ordinary_name_is_multiplication(self):
        stmts = self.body_of('int T, x; void f(void) { T * x; }')
        self.assertIsInstance(stmts[0], ExpressionStatement)
        self.assertEqual(stmts[0].expression.operator, '*')

    def test_local_declaration_shadows_typedef(self):
        stmts = self.body_of('typedef int T; int x; void f(void) { int T = 2; T * x; }')
        self.assertIsInstance(stmts[1], ExpressionStatement)

    def test_builtin_typedefs(self):
        unit = self.parse_ok('size_t n; uint8_t byte;')
        self.assertEqual(unit.declarations[0].type_spec, TypedefNameSpec(name='size_t'))

    def test_custom_typedef_table(self):
        diagnostics = Diagnostics()
        unit = parse(tokenize('word w;'), diagnostics, TypedefTable(['word']))
        self.assertFalse(diagnostics.has_errors)
        self.assertEqual(unit.declarations[0].type_spec, TypedefNameSpec(name='word'))


class TestExpressions(ParserTestCase):

    def test_precedence(self):
        expr = self.parse_expression('1 + 2 * 3')
        self.assertEqual(
            expr,
            BinaryOperation(left=lit(1), operator='+', right=BinaryOperation(left=lit(2), operator='*', right=lit(3))),
        )

    def test_left_associativity(self):
        expr = self.parse_expression('a - b - c')
        self.assertEqual(expr.operator, '-')
        self.assertEqual(expr.left, BinaryOperation(left=Identifier(name='a'), operator='-', right=Identifier(name='b')))

    def test_logical_and_relational(self):
        expr = self.parse_expression('a < b || b == c && c')
        self.assertEqual(expr.operator, '||')
        self.assertEqual(expr.right.operator, '&&')
        self.assertEqual(expr.right.left.operator, '==')

    def test_assignment_is_right_associative(self):
        stmts = self.body_of('int a, b; void f(void) { a = b = 3; }')
        expr = stmts[0].expression
        self.assertIsInstance(expr, Assignment)
        self.assertIsInstance(expr.value, Assignment)

    def test_ternary(self):
        expr = self.parse_expression('a ? b : c ? 1 : 2')
        self.assertIsInstance(expr, TernaryOperation)
        self.assertIsInstance(expr.false_expression, TernaryOperation)

    def test_unary_and_postfix(self):
        expr = self.parse_expression('-*p++')
        self.assertEqual(expr.operator, '-')
        self.assertEqual(expr.operand.operator, '*')
        postfix = expr.operand.operand
        self.assertIsInstance(postfix, UnaryOperation)
        self.assertFalse(postfix.is_prefix)

    def test_postfix_chain(self):
        expr = self.parse_expression('f(1)[2]')
        self.assertIsInstance(expr, IndexAccess)
        self.assertIsInstance(expr.base, FunctionCall)

    def test_member_access(self):
        stmts = self.body_of('void f(void) { s.a->b; }')
        expr = stmts[0].expression
        self.assertIsInstance(expr, MemberAccess)
        self.assertTrue(expr.is_arrow)
        self.assertFalse(expr.expression.is_arrow)

    def test_cast_and_sizeof(self):
        expr = self.parse_expression('(long)sizeof(int) + sizeof a')
        self.assertIsInstance(expr.left, TypeCast)
        self.assertIsInstance(expr.left.expression, SizeofExpression)
        self.assertIsNotNone(expr.left.expression.type_spec)
        self.assertIsNotNone(expr.right.operand)

    def test_parenthesized_expression_is_not_a_cast(self):
        expr = self.parse_expression('(a) + 1')
        self.assertIsInstance(expr, BinaryOperation)

    def test_comma_expression(self):
        stmts = self.body_of('int a, b; void f(void) { a = 1, b = 2; }')
        self.assertIsInstance(stmts[0].expression, CommaExpression)
        self.assertEqual(len(stmts[0].expression.expressions), 2)

    def test_adjacent_strings_concatenate(self):
        expr = self.parse_expression('"ab" "c\\n"')
        self.assertIsInstance(expr, StringLiteral)
        self.assertEqual(expr.values, [97, 98, 99, 10])

    def test_char_literal_value(self):
        self.assertEqual(self.parse_expression("'A'"), CharLiteral(value=65, text="'A'"))
        self.assertEqual(self.parse_expression("'\\xff'").value, -1)

    def test_integer_literal_bases(self):
        self.assertEqual(self.parse_expression('0x10').value, 16)
        self.assertEqual(self.parse_expression('010').value, 8)
        self.assertEqual(self.parse_expression('10u').value, 10)

    def test_hexadecimal_float_values(self):
        self.assertEqual(self.parse_expression('0x1p3').value, 8.0)
        self.assertEqual(self.parse_expression('0x1.8p-1f').value, 0.75)
        self.assertEqual(self.parse_expression('0x.8P+2').value, 2.0)

    def test_initializer_list_with_designators(self):
        unit = self.parse_ok('int v[4] = { [2] = 7, 1 };')
        init = unit.declarations[0].initializer
        self.assertIsInstance(init, InitializerList)
        self.assertEqual(init.items[0].designators, [lit(2)])
        self.assertEqual(init.items[1].designators, [])

    def test_compound_literal(self):
        stmts = self.body_of('struct p { int x; }; void f(void) { (struct p){ .x = 1 }; }')
        self.assertIsInstance(stmts[0].expression, CompoundLiteral)


class TestStatements(ParserTestCase):

    def test_if_else(self):
        stmts = self.body_of('int a; void f(void) { if (a) a = 1; else if (a > 2) a = 2; else a = 3; }')
        stmt = stmts[0]
        self.assertIsInstance(stmt, IfStatement)
        self.assertIsInstance(stmt.false_body, IfStatement)
        self.assertIsNotNone(stmt.false_body.false_body)

    def test_for_with_declaration(self):
        stmts = self.body_of('void f(void) { for (int i = 0; i < 3; i++) ; }')
        loop = stmts[0]
        self.assertIsInstance(loop, ForStatement)
        self.assertIsInstance(loop.init, DeclarationStatement)
        self.assertIsNotNone(loop.post)

    def test_empty_for_clauses(self):
        loop = self.body_of('void f(void) { for (;;) break; }')[0]
        self.assertIsNone(loop.init)
        self.assertIsNone(loop.condition)
        self.assertIsNone(loop.post)

    def test_do_while(self):
        stmts = self.body_of('int n; void f(void) { do n--; while (n); }')
        self.assertIsInstance(stmts[0], DoWhileStatement)

    def test_switch_labels(self):
        stmts = self.body_of(
            'int n; void f(void) { switch (n) { case 1: case 2: n = 0; break; default: n = 1; } }'
        )
        switch = stmts[0]
        self.assertIsInstance(switch, SwitchStatement)
        body = switch.body.statements
        self.assertIsInstance(body[0], CaseStatement)
        self.assertIsInstance(body[0].body, CaseStatement)
        self.assertIsInstance(body[2], DefaultStatement)

    def test_goto_is_parsed(self):
        stmts = self.body_of('void f(void) { goto out; out: ; }')
        self.assertIsInstance(stmts[0], GotoStatement)


class TestErrorRecovery(unittest.TestCase):
    """Syntax errors are reported and parsing resumes."""

    def test_missing_semicolon(self):
        unit, diagnostics = parse_source('int x = 1\nint y = 2;')
        codes = [d.code for d in diagnostics.errors]
        self.assertEqual(codes, ['E201'])
        self.assertEqual(diagnostics.errors[0].kind, DiagnosticKind.SYNTAX)

    def test_recovers_inside_function(self):
        unit, diagnostics = parse_source('int f(void) { int a = ; return 1; } int g(void) { return 2; }')
        self.assertEqual(len(diagnostics.errors), 1)
        names = [d.name for d in unit.declarations if isinstance(d, FunctionDefinition)]
        self.assertEqual(names, ['f', 'g'])
        self.assertIsInstance(unit.declarations[0].body.statements[-1], ReturnStatement)

    def test_multiple_errors_are_collected(self):
        _, diagnostics = parse_source('int f(void) { 1 +; 2 *; return 0; }')
        self.assertEqual(len(diagnostics.errors), 2)

    def test_unexpected_end_of_input_reported_once(self):
        _, diagnostics = parse_source('int f(void) { if (1) {')
        self.assertEqual(len(diagnostics.errors), 1)
        self.assertIn('end of input', diagnostics.errors[0].message)

    def test_error_position(self):
        _, diagnostics = parse_source('int x;\nint y = );')
        error = diagnostics.errors[0]
        self.assertEqual((error.line, error.column), (2, 9))

    def test_lex_errors_reported_as_lex(self):
        _, diagnostics = parse_source('int x = 1 @ 2;')
        kinds = [d.kind for d in diagnostics.errors]
        self.assertIn(DiagnosticKind.LEX, kinds)
        self.assertEqual(diagnostics.errors[0].code, 'E101')

    def test_malformed_literal_does_not_cascade(self):
        for source, code in (('int x = 0x1.8;', 'E105'), ('int y = 12abc + 1;', 'E105'), ('int a$b = 1;', 'E106')):
            _, diagnostics = parse_source(source)
            self.assertEqual([d.code for d in diagnostics.errors], [code], source)

    def test_preprocessor_lines_are_skipped_with_warning(self):
        unit, diagnostics = parse_source('#include <stdio.h>\n#define N 3\nint x;')
        self.assertFalse(diagnostics.has_errors)
        self.assertEqual([w.code for w in diagnostics.warnings], ['W201', 'W201'])
        self.assertEqual(len(unit.declarations), 1)

    def test_ast_is_a_tree(self):
        unit, _ = parse_source('int f(int a) { while (a) { a = a - 1; } return a; }')
        nodes = list(walk(unit))
        self.assertEqual(len(nodes), len({id(n) for n in nodes}))


if __name__ == '__main__':
    unittest.main()
