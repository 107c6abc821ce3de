"""
Unit tests for the Python code generator.

Most tests transpile a small C program, execute the generated module and
compare what it prints with what the C program prints.

Run with: python3 -m pytest c2py/test_codegen.py
"""

import contextlib
import io
import unittest

import c2py.runtime as _rt
from c2py.transpile import Transpiler, TranspileOptions


def transpile_c(source, **options):
    result = Transpiler(TranspileOptions(**options)).transpile_source(source, 'test.c')
    if not result.ok:
        raise AssertionError('transpilation failed:\n' + '\n'.join(str(d) for d in result.diagnostics))
    return result.code


def load_module(code):
    namespace = {'__name__': 'generated'}
    exec(compile(code, 'test.py', 'exec'), namespace)
    return namespace


def run_c(source, *args):
    """Run main() of the translated program; returns (status, stdout)."""
    namespace = load_module(transpile_c(source))
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        try:
            status = namespace['main'](*args)
        except SystemExit as e:
            status = e.code
    return status, out.getvalue()


class TestModuleLayout(unittest.TestCase):
    """The shape of the generated module."""

    SOURCE = '''
struct point { int x; int y; };
int add(int a, int b) { return a + b; }
int main(void) { return add(1, 2); }
'''

    def test_header_and_imports(self):
        code = transpile_c(self.SOURCE)
        lines = code.splitlines()
        self.assertEqual(lines[0], '# Generated by c2py from test.c. Do not edit.')
        self.assertIn('import sys', lines)
        self.assertIn('import c2py.runtime as _rt', lines)

    def test_struct_class(self):
        code = transpile_c(self.SOURCE)
        self.assertIn('class struct_point(_rt.Struct):', code)
        self.assertIn("__slots__ = ('x', 'y')", code)

    def test_function_and_wrapping_arithmetic(self):
        code = transpile_c(self.SOURCE)
        self.assertIn('def add(a, b):', code)
        self.assertIn('return _rt.i32(a + b)', code)

    def test_main_guard(self):
        code = transpile_c(self.SOURCE)
        self.assertTrue(code.endswith("if __name__ == '__main__':\n    sys.exit(main())\n"))

    def test_main_guard_can_be_disabled(self):
        code = transpile_c(self.SOURCE, emit_main_guard=False)
        self.assertNotIn('__main__', code)

    def test_indent_option(self):
        code = transpile_c(self.SOURCE, indent=2)
        self.assertIn('\n  return _rt.i32(a + b)', code)

    def test_runtime_module_option(self):
        code = transpile_c(self.SOURCE, runtime_module='vendored.c2py_runtime')
        self.assertIn('import vendored.c2py_runtime as _rt', code)

    def test_python_names_are_not_shadowed(self):
        code = transpile_c('int main(void) { int sum = 0; int list = 2; return sum + list; }')
        self.assertIn('sum_ = 0', code)
        self.assertIn('list_ = 2', code)

    def test_python_reserved_names_compile(self):
        code = transpile_c('''
int None = 1, await = 2, __name__ = 3, sys = 4, _rt = 5;
int main(void) { int lambda = 6; return None + await + __name__ + sys + _rt + lambda; }
''')
        compile(code, 'test.py', 'exec')
        self.assertEqual(load_module(code)['main'](), 21)

    def test_chain_is_wrapped_once(self):
        code = transpile_c('int add3(int a, int b, int c) { return a + b - c * 2; }')
        self.assertIn('return _rt.i32(a + b - c * 2)', code)

    def test_constant_expressions_are_folded(self):
        code = transpile_c('int f(void) { return (1 << 4) + 3 * 2; }')
        self.assertIn('return 22', code)

    def test_for_becomes_while(self):
        code = transpile_c('int main(void) { int s = 0; for (int i = 0; i < 10; i++) s += i; return s; }')
        self.assertNotIn('for ', code)
        self.assertIn('while i < 10:', code)

    def test_no_main_no_guard(self):
        code = transpile_c('int square(int x) { return x * x; }')
        self.assertNotIn('__main__', code)
        namespace = load_module(code)
        self.assertEqual(namespace['square'](7), 49)

    def test_main_guard_runs_program(self):
        code = transpile_c('int main(void) { return 3; }')
        with self.assertRaises(SystemExit) as cm:
            exec(compile(code, 'test.py', 'exec'), {'__name__': '__main__'})
        self.assertEqual(cm.exception.code, 3)


class TestArithmetic(unittest.TestCase):
    """C integer and floating point semantics survive translation."""

    def test_signed_overflow_wraps(self):
        status, out = run_c('''
int main(void) {
    int i = 2147483647;
    i = i + 1;
    printf("%d\\n", i);
    return 0;
}
''')
        self.assertEqual(out, '-2147483648\n')

    def test_unsigned_wraps(self):
        _, out = run_c('''
int main(void) {
    unsigned int u = 0;
    u = u - 1;
    printf("%u\\n", u);
    return 0;
}
''')
        self.assertEqual(out, '4294967295\n')

    def test_division_truncates_toward_zero(self):
        _, out = run_c('int main(void) { printf("%d %d\\n", -7 / 2, -7 % 2); return 0; }')
        self.assertEqual(out, '-3 -1\n')

    def test_char_arithmetic(self):
        _, out = run_c('''
int main(void) {
    char c = 'a';
    c = c + 1;
    putchar(c);
    putchar('\\n');
    return 0;
}
''')
        self.assertEqual(out, 'b\n')

    def test_float_formatting(self):
        _, out = run_c('int main(void) { printf("%.3f\\n", sqrt(2.0)); return 0; }')
        self.assertEqual(out, '1.414\n')

    def test_mixed_arithmetic(self):
        _, out = run_c('''
int main(void) {
    int n = 7;
    double half = n / 2;
    double exact = n / 2.0;
    printf("%.1f %.1f\\n", half, exact);
    return 0;
}
''')
        self.assertEqual(out, '3.0 3.5\n')

    def test_long_constant_sum(self):
        status, _ = run_c('int main(void) { return ' + ' + '.join(['1'] * 1000) + '; }')
        self.assertEqual(status, 1000)

    def test_long_variable_sum(self):
        namespace = load_module(transpile_c('int total(int x) { return ' + ' + '.join(['x'] * 1000) + '; }'))
        self.assertEqual(namespace['total'](3), 3000)
        self.assertEqual(namespace['total'](2147483647), -1000)

    def test_long_logical_chain(self):
        namespace = load_module(transpile_c('int all(int x) { return ' + ' && '.join(['x'] * 500) + '; }'))
        self.assertEqual((namespace['all'](7), namespace['all'](0)), (1, 0))

    def test_chain_wraps_like_each_step(self):
        namespace = load_module(transpile_c('''
int f(int x) { return 2147483647 + x + x; }
unsigned g(unsigned u) { return u - 3u * u + 1u; }
double h(double d) { return d * 0.5 + d - 1.0; }
'''))
        self.assertEqual(namespace['f'](1), -2147483647)
        self.assertEqual(namespace['g'](1), 4294967295)
        self.assertEqual(namespace['h'](4.0), 5.0)

    def test_hexadecimal_float(self):
        _, out = run_c('int main(void) { printf("%.2f\\n", 0x1.8p1 + 0x1p-2); return 0; }')
        self.assertEqual(out, '3.25\n')


class TestControlFlow(unittest.TestCase):

    def test_for_loop_sum(self):
        status, out = run_c('''
int main(void) {
    int sum = 0;
    for (int i = 1; i <= 10; i++)
        sum += i;
    printf("%d\\n", sum);
    return 0;
}
''')
        self.assertEqual((status, out), (0, '55\n'))

    def test_do_while(self):
        _, out = run_c('''
int main(void) {
    int i = 0;
    do {
        i++;
    } while (i < 5);
    printf("%d\\n", i);
    return 0;
}
''')
        self.assertEqual(out, '5\n')

    def test_recursion(self):
        _, out = run_c('''
int fib(int n) { return n < 2 ? n : fib(n - 1) + fib(n - 2); }
int main(void) { printf("%d\\n", fib(10)); return 0; }
''')
        self.assertEqual(out, '55\n')

    def test_switch_fallthrough(self):
        namespace = load_module(transpile_c('''
int classify(int x) {
    int r = 0;
    switch (x) {
    case 1:
        r += 1;
    case 2:
        r += 2;
        break;
    default:
        r = -1;
    }
    return r;
}
'''))
        classify = namespace['classify']
        self.assertEqual([classify(1), classify(2), classify(5)], [3, 2, -1])

    def test_continue_inside_switch(self):
        """continue in a switch skips the rest of the loop body but runs the step."""
        _, out = run_c('''
int main(void) {
    int odd = 0, other = 0, after = 0;
    for (int i = 0; i < 4; i++) {
        switch (i % 2) {
        case 1:
            odd++;
            continue;
        default:
            other++;
            break;
        }
        after++;
    }
    printf("%d %d %d\\n", odd, other, after);
    return 0;
}
''')
        self.assertEqual(out, '2 2 2\n')

    def test_main_without_return(self):
        status, out = run_c('int main(void) { printf("x"); }')
        self.assertEqual((status, out), (0, 'x'))

    def test_exit_status(self):
        status, out = run_c('''
int main(void) {
    printf("a\\n");
    exit(2);
    printf("b\\n");
    return 0;
}
''')
        self.assertEqual((status, out), (2, 'a\n'))


class TestDataModel(unittest.TestCase):
    """Pointers, arrays, structs and storage duration."""

    def test_swap_through_pointers(self):
        _, out = run_c('''
void swap(int *a, int *b) { int t = *a; *a = *b; *b = t; }
int main(void) {
    int x = 1, y = 2;
    swap(&x, &y);
    printf("%d %d\\n", x, y);
    return 0;
}
''')
        self.assertEqual(out, '2 1\n')

    def test_struct_value_semantics(self):
        _, out = run_c('''
struct point { int x; int y; };
struct point shift(struct point p, int d) { p.x += d; return p; }
int main(void) {
    struct point a = { 1, 2 };
    struct point b = a;
    b.x = 10;
    struct point c = shift(a, 3);
    printf("%d %d %d\\n", a.x, b.x, c.x);
    return 0;
}
''')
        self.assertEqual(out, '1 10 4\n')

    def test_renamed_members_do_not_collide(self):
        _, out = run_c('''
struct T { int __x; int m__x; int copy; int copy_; };
int main(void) {
    struct T t;
    struct T u;
    int *p = &t.__x;
    t.__x = 1;
    t.m__x = 2;
    t.copy = 3;
    t.copy_ = 4;
    *p += 10;
    u = t;
    printf("%d %d %d %d\\n", u.__x, u.m__x, u.copy, u.copy_);
    return 0;
}
''')
        self.assertEqual(out, '11 2 3 4\n')

    def test_member_names_in_initializers(self):
        _, out = run_c('''
struct T { int __x; int m__x; };
int main(void) {
    struct T t = { .m__x = 5, .__x = 6 };
    struct T *p = &t;
    p->__x++;
    printf("%d %d\\n", t.__x, p->m__x);
    return 0;
}
''')
        self.assertEqual(out, '7 5\n')

    def test_linked_list_on_the_heap(self):
        _, out = run_c('''
struct node { int value; struct node *next; };
int main(void) {
    struct node *head = NULL;
    for (int i = 1; i <= 3; i++) {
        struct node *n = malloc(sizeof(struct node));
        n->value = i;
        n->next = head;
        head = n;
    }
    int total = 0;
    for (struct node *p = head; p != NULL; p = p->next)
        total = total * 10 + p->value;
    printf("%d\\n", total);
    return 0;
}
''')
        self.assertEqual(out, '321\n')

    def test_two_dimensional_array(self):
        _, out = run_c('''
int main(void) {
    int m[2][3];
    int total = 0;
    for (int i = 0; i < 2; i++)
        for (int j = 0; j < 3; j++)
            m[i][j] = i * 3 + j;
    for (int i = 0; i < 2; i++)
        for (int j = 0; j < 3; j++)
            total += m[i][j];
    printf("%d %d\\n", m[1][2], total);
    return 0;
}
''')
        self.assertEqual(out, '5 15\n')

    def test_pointer_walk(self):
        _, out = run_c('''
int main(void) {
    int a[] = { 1, 2, 3, 4 };
    int *p = a;
    int s = 0;
    while (p < a + 4)
        s += *p++;
    printf("%d\\n", s);
    return 0;
}
''')
        self.assertEqual(out, '10\n')

    def test_strings(self):
        _, out = run_c('''
int main(void) {
    char buf[8];
    char *s = "hello";
    strcpy(buf, "hi");
    printf("%s %d %s %c\\n", buf, (int)strlen(buf), s, s[1]);
    return 0;
}
''')
        self.assertEqual(out, 'hi 2 hello e\n')

    def test_memset_and_memcpy_use_element_size(self):
        _, out = run_c('''
int main(void) {
    int a[4];
    int b[4];
    memset(a, 0, sizeof(a));
    a[2] = 5;
    memcpy(b, a, sizeof(a));
    printf("%d %d\\n", b[2], b[3]);
    return 0;
}
''')
        self.assertEqual(out, '5 0\n')

    def test_static_local_keeps_its_value(self):
        _, out = run_c('''
int next(void) { static int n = 0; return ++n; }
int main(void) {
    next();
    next();
    printf("%d\\n", next());
    return 0;
}
''')
        self.assertEqual(out, '3\n')

    def test_global_variable(self):
        _, out = run_c('''
int counter = 0;
void bump(int n) { counter += n; }
int main(void) {
    bump(3);
    bump(4);
    printf("%d\\n", counter);
    return 0;
}
''')
        self.assertEqual(out, '7\n')

    def test_function_pointer(self):
        _, out = run_c('''
int twice(int x) { return x * 2; }
int apply(int (*f)(int), int v) { return f(v); }
int main(void) {
    printf("%d\\n", apply(twice, 5));
    return 0;
}
''')
        self.assertEqual(out, '10\n')

    def test_enum_values(self):
        _, out = run_c('''
enum color { RED, GREEN = 5, BLUE };
int main(void) {
    enum color c = BLUE;
    printf("%d %d %d\\n", RED, GREEN, c);
    return 0;
}
''')
        self.assertEqual(out, '0 5 6\n')

    def test_main_arguments(self):
        status, out = run_c('''
int main(int argc, char **argv) {
    printf("%d %s\\n", argc, argv[1]);
    return 0;
}
''', 2, _rt.argv(['prog', 'arg']))
        self.assertEqual((status, out), (0, '2 arg\n'))


if __name__ == '__main__':
    unittest.main()
