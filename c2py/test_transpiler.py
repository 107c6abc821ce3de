"""
Unit tests for the Transpiler facade, its options and the command line.

Run with: python3 -m pytest c2py/test_transpiler.py
"""

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from c2py import (
    DiagnosticKind,
    ResultReleasedError,
    Transpiler,
    TranspileOptions,
    TranspileStatus,
    transpile,
)
from c2py.codegen import PythonCodeGenerator
from c2py.diagnostics import Diagnostics, SourcePosition
from c2py.transpile import main


HELLO = '''
int main(void) {
    printf("hello\\n");
    return 0;
}
'''


class TempDirTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, name, content):
        path = self.tmp / name
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding='utf-8')
        return path


class TestTranspileStatus(TempDirTestCase):
    """Each failure class maps to its own status."""

    def test_ok(self):
        result = Transpiler().transpile(self.write('hello.c', HELLO))
        self.assertEqual(result.status, TranspileStatus.OK)
        self.assertTrue(result.ok)
        self.assertIn('def main():', result.code)
        self.assertEqual(len(result.diagnostics), 0)

    def test_accepts_str_path(self):
        path = self.write('hello.c', HELLO)
        result = transpile(str(path))
        self.assertTrue(result.ok)
        self.assertIn(f'# Generated by c2py from {path}.', result.code)

    def test_empty_path_is_invalid(self):
        result = Transpiler().transpile('')
        self.assertEqual(result.status, TranspileStatus.INVALID)
        self.assertIsNone(result.code)
        self.assertEqual([d.code for d in result.diagnostics], ['E400'])

    def test_missing_file(self):
        result = Transpiler().transpile(self.tmp / 'missing.c')
        self.assertEqual(result.status, TranspileStatus.IO)
        error = result.diagnostics.errors[0]
        self.assertEqual((error.kind, error.code), (DiagnosticKind.IO, 'E401'))

    def test_invalid_utf8(self):
        result = Transpiler().transpile(self.write('bad.c', b'int x = 1;\n\xff'))
        self.assertEqual(result.status, TranspileStatus.IO)
        error = result.diagnostics.errors[0]
        self.assertEqual(error.code, 'E402')
        self.assertEqual((error.line, error.column), (2, 1))

    def test_syntax_error(self):
        result = Transpiler().transpile_source('int main(void) { return 0 }')
        self.assertEqual(result.status, TranspileStatus.PARSE)
        self.assertIsNone(result.code)
        self.assertTrue(result.diagnostics.has_errors_of(DiagnosticKind.SYNTAX))

    def test_lex_error(self):
        result = Transpiler().transpile_source('int @ x;')
        self.assertEqual(result.status, TranspileStatus.PARSE)
        self.assertTrue(result.diagnostics.has_errors_of(DiagnosticKind.LEX))

    def test_semantic_error(self):
        result = Transpiler().transpile_source('int main(void) { return y; }')
        self.assertEqual(result.status, TranspileStatus.SEMANTIC)
        self.assertEqual(result.diagnostics.errors[0].code, 'E301')

    def test_error_is_contained(self):
        result = Transpiler().transpile_source('int x = y;')
        self.assertEqual(result.status, TranspileStatus.SEMANTIC)
        self.assertIsNone(result.code)
        self.assertEqual(len(result.diagnostics), 1)
        error = result.diagnostics.errors[0]
        self.assertEqual((error.code, error.line, error.column), ('E301', 1, 9))

    def test_unknown_extension(self):
        result = Transpiler().transpile(self.write('hello.txt', HELLO))
        self.assertEqual(result.status, TranspileStatus.IO)
        self.assertIsNone(result.code)
        self.assertEqual([d.code for d in result.diagnostics], ['E403'])
        self.assertTrue(Transpiler().transpile(self.write('HELLO.C', HELLO)).ok)

    def test_output_is_deterministic(self):
        for source in ('#include <stdio.h>\n' + HELLO, 'int f(void) { return y + z; }'):
            first = Transpiler().transpile_source(source)
            second = Transpiler().transpile_source(source)
            self.assertEqual(first.status, second.status)
            self.assertEqual(first.code, second.code)
            self.assertEqual([str(d) for d in first.diagnostics], [str(d) for d in second.diagnostics])
            self.assertEqual(len(first.diagnostics), 1 if first.ok else 2)

    def test_long_sum(self):
        result = Transpiler().transpile_source('int main(void) { return ' + ' + '.join(['1'] * 1000) + '; }')
        self.assertEqual(result.status, TranspileStatus.OK)
        self.assertIn('return 1000', result.code)

    def test_deep_nesting_is_a_diagnostic(self):
        source = 'int main(void) { return ' + '(' * 300 + '1' + ')' * 300 + '; }'
        result = Transpiler().transpile_source(source)
        self.assertEqual(result.status, TranspileStatus.PARSE)
        self.assertEqual([d.code for d in result.diagnostics.errors], ['E202'])

    def test_python_indentation_limit(self):
        source = 'int main(void) { int x = 1; ' + 'if (x) ' * 120 + 'x = 2; return x; }'
        result = Transpiler().transpile_source(source)
        self.assertEqual(result.status, TranspileStatus.TRANSFORMER)
        self.assertIsNone(result.code)
        error = result.diagnostics.errors[0]
        self.assertEqual((error.kind, error.code), (DiagnosticKind.INTERNAL, 'E501'))
        self.assertIn('indentation', error.message)

    def test_warnings_do_not_block(self):
        result = Transpiler().transpile_source('#include <stdio.h>\n' + HELLO)
        self.assertTrue(result.ok)
        self.assertEqual([d.code for d in result.diagnostics.warnings], ['W201'])

    def test_generator_failure(self):
        with mock.patch.object(PythonCodeGenerator, 'generate', side_effect=RuntimeError('boom')):
            result = Transpiler().transpile_source(HELLO)
        self.assertEqual(result.status, TranspileStatus.TRANSFORMER)
        error = result.diagnostics.errors[0]
        self.assertEqual((error.kind, error.code), (DiagnosticKind.INTERNAL, 'E500'))
        self.assertIn('boom', error.message)

    def test_bad_argument_types(self):
        with self.assertRaises(TypeError):
            Transpiler().transpile(42)
        with self.assertRaises(TypeError):
            Transpiler().transpile_source(None)


class TestTranspilerReuse(unittest.TestCase):

    def test_calls_are_independent(self):
        transpiler = Transpiler()
        first = transpiler.transpile_source('typedef int T; T x;')
        second = transpiler.transpile_source('T y;')
        self.assertTrue(first.ok)
        self.assertFalse(second.ok)
        self.assertEqual(len(first.diagnostics), 0)
        third = transpiler.transpile_source(HELLO)
        self.assertTrue(third.ok)


class TestResultRelease(unittest.TestCase):

    def test_release(self):
        transpiler = Transpiler()
        result = transpiler.transpile_source(HELLO)
        self.assertFalse(result.released)
        transpiler.free(result)
        self.assertTrue(result.released)
        self.assertIn('released', repr(result))
        with self.assertRaises(ResultReleasedError):
            result.code

    def test_double_release(self):
        result = Transpiler().transpile_source(HELLO)
        result.release()
        with self.assertRaises(ResultReleasedError):
            result.release()

    def test_failed_results_can_be_released(self):
        transpiler = Transpiler()
        results = [transpiler.transpile_source('int x = ;'), transpiler.transpile('')]
        transpiler.free(*results)
        self.assertTrue(all(r.released for r in results))
        # diagnostics outlive the text
        self.assertTrue(results[0].diagnostics.has_errors)


class TestOptions(TempDirTestCase):

    def test_defaults(self):
        options = TranspileOptions()
        self.assertEqual(options.indent, 4)
        self.assertEqual(options.runtime_module, 'c2py.runtime')
        self.assertTrue(options.emit_main_guard)
        self.assertFalse(options.verbose)

    def test_validation(self):
        for bad in (0, -1, True, '4'):
            with self.assertRaises(ValueError):
                TranspileOptions(indent=bad)
        for bad in ('', 'not a module', 'pkg..mod'):
            with self.assertRaises(ValueError):
                TranspileOptions(runtime_module=bad)

    def test_from_dict(self):
        options = TranspileOptions.from_dict({'indent': 2, 'emit_main_guard': False})
        self.assertEqual((options.indent, options.emit_main_guard), (2, False))
        with self.assertRaises(ValueError):
            TranspileOptions.from_dict({'tabs': True})

    def test_from_json_file(self):
        path = self.write('c2py.json', json.dumps({'runtime_module': 'rt'}))
        self.assertEqual(TranspileOptions.from_json_file(path).runtime_module, 'rt')

    def test_from_json_file_errors(self):
        with self.assertRaises(ValueError):
            TranspileOptions.from_json_file(self.write('list.json', '[1, 2]'))
        with self.assertRaises(ValueError):
            TranspileOptions.from_json_file(self.write('broken.json', '{indent'))
        with self.assertRaises(OSError):
            TranspileOptions.from_json_file(self.tmp / 'absent.json')


class TestDiagnostics(unittest.TestCase):

    def make(self, verbose=False):
        diagnostics = Diagnostics('x.c', verbose)
        diagnostics.error(DiagnosticKind.SEMANTIC, 'E301', "undeclared identifier 'y'", SourcePosition(3, 5, 20))
        diagnostics.warning(DiagnosticKind.SYNTAX, 'W201', 'preprocessor directive ignored', SourcePosition(1, 1, 0))
        diagnostics.warning(DiagnosticKind.SYNTAX, 'W201', 'preprocessor directive ignored', SourcePosition(2, 1, 9))
        return diagnostics

    def test_str(self):
        error = self.make().errors[0]
        self.assertEqual(str(error), "[error] x.c:3:5: undeclared identifier 'y' (E301)")

    def test_summary(self):
        self.assertEqual(Diagnostics().get_summary(), 'No diagnostics.')
        self.assertEqual(
            self.make().get_summary(),
            '1 error(s); 2 warning(s); errors by phase: 1 semantic',
        )

    def test_print_summary_groups_warnings(self):
        out = io.StringIO()
        self.make().print_summary(out)
        lines = out.getvalue().splitlines()
        self.assertEqual(lines[1:], ['Transpiler warnings (2):', '  syntax: 2 occurrence(s)'])

    def test_print_summary_verbose(self):
        out = io.StringIO()
        self.make(verbose=True).print_summary(out)
        self.assertEqual(len(out.getvalue().splitlines()), 3)


class TestCommandLine(TempDirTestCase):

    def run_main(self, *args):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main([str(a) for a in args])
        return code, out.getvalue(), err.getvalue()

    def test_writes_to_stdout(self):
        code, out, err = self.run_main(self.write('hello.c', HELLO))
        self.assertEqual(code, 0)
        self.assertIn("if __name__ == '__main__':", out)
        self.assertEqual(err, '')

    def test_output_file(self):
        target = self.tmp / 'out' / 'hello.py'
        code, out, err = self.run_main(self.write('hello.c', HELLO), '-o', target)
        self.assertEqual(code, 0)
        self.assertEqual(out, '')
        self.assertIn('Written:', err)
        self.assertIn('def main():', target.read_text(encoding='utf-8'))

    def test_no_main(self):
        code, out, _ = self.run_main(self.write('hello.c', HELLO), '--no-main')
        self.assertEqual(code, 0)
        self.assertNotIn('__main__', out)

    def test_config(self):
        config = self.write('c2py.json', '{"indent": 2}')
        code, out, _ = self.run_main(self.write('hello.c', HELLO), '--config', config)
        self.assertEqual(code, 0)
        self.assertIn("\n  return 0", out)

    def test_bad_config(self):
        config = self.write('c2py.json', '{"indent": 0}')
        code, out, err = self.run_main(self.write('hello.c', HELLO), '--config', config)
        self.assertEqual(code, 1)
        self.assertIn('cannot load config', err)

    def test_failure_reports_diagnostics(self):
        code, out, err = self.run_main(self.write('bad.c', 'int main(void) { return y; }'))
        self.assertEqual(code, 1)
        self.assertEqual(out, '')
        self.assertIn('(E301)', err)
        self.assertIn('transpilation failed (semantic)', err)

    def test_deep_nesting_fails_cleanly(self):
        source = self.write('deep.c', 'int main(void) { return ' + '(' * 300 + '1' + ')' * 300 + '; }')
        code, out, err = self.run_main(source)
        self.assertEqual(code, 1)
        self.assertEqual(out, '')
        self.assertIn('(E202)', err)

    def test_missing_input(self):
        code, _, err = self.run_main(self.tmp / 'missing.c')
        self.assertEqual(code, 1)
        self.assertIn('(E401)', err)

    def test_verbose_lists_warnings(self):
        source = self.write('warn.c', '#include <stdio.h>\n' + HELLO)
        _, _, quiet = self.run_main(source)
        _, _, verbose = self.run_main(source, '-v')
        self.assertIn('Transpiler warnings (1):', quiet)
        self.assertIn('(W201)', verbose)

    def test_help_and_usage_errors(self):
        code, out, _ = self.run_main('--help')
        self.assertEqual(code, 0)
        self.assertIn('usage: c2py', out)
        code, _, err = self.run_main()
        self.assertEqual(code, 1)
        self.assertIn('usage: c2py', err)


if __name__ == '__main__':
    unittest.main()
