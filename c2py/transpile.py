"""
C to Python Transpiler

This module is the entry point of the engine. It wires the pipeline
together:

    source bytes -> Lexer -> Parser -> Resolver -> PythonCodeGenerator

Usage:
    python -m c2py program.c
    python -m c2py program.c -o program.py
    python -m c2py program.c --config c2py.json --no-main

Library usage:
    transpiler = Transpiler()
    result = transpiler.transpile('program.c')
    if result.ok:
        print(result.code)
    transpiler.free(result)
"""

import dataclasses
import json
import os
import sys
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .codegen import PythonCodeGenerator
from .diagnostics import Diagnostics, DiagnosticKind, SourcePosition
from .lexer import tokenize
from .parser import TypedefTable, parse
from .semantic import resolve
from .type_system import BuiltinTable, build_builtin_table


PathArg = Union[str, 'os.PathLike[str]']

# File name extensions accepted as C source
SOURCE_SUFFIXES = ('.c', '.h')


class TranspileStatus(IntEnum):
    """Outcome of one transpile call; 0 is success."""
    OK = 0
    INVALID = 1
    IO = 2
    PARSE = 3
    SEMANTIC = 4
    TRANSFORMER = 5


class ResultReleasedError(RuntimeError):
    """Raised when a released TranspileResult is used or released again."""


# =============================================================================
# OPTIONS
# =============================================================================

@dataclass(frozen=True)
class TranspileOptions:
    """Settings that shape the generated module."""
    indent: int = 4
    runtime_module: str = 'c2py.runtime'
    emit_main_guard: bool = True
    verbose: bool = False

    def __post_init__(self):
        if not isinstance(self.indent, int) or isinstance(self.indent, bool) or self.indent < 1:
            raise ValueError(f'indent must be a positive integer, got {self.indent!r}')
        if not self.runtime_module or not all(part.isidentifier() for part in self.runtime_module.split('.')):
            raise ValueError(f'runtime_module is not a module name: {self.runtime_module!r}')

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TranspileOptions':
        """Build options from a mapping; unknown keys are rejected."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f'unknown option(s): {", ".join(unknown)}')
        return cls(**data)

    @classmethod
    def from_json_file(cls, path: PathArg) -> 'TranspileOptions':
        """Load options from a JSON object file.

        Raises OSError if the file cannot be read and ValueError (including
        json.JSONDecodeError) if its contents are not a valid options object.
        """
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f'{path}: expected a JSON object')
        return cls.from_dict(data)


# =============================================================================
# RESULT
# =============================================================================

class TranspileResult:
    """
    The outcome of a transpile call.

    code is the generated module text when status is OK, otherwise None.
    The text stays available until the result is released, either with
    release() or Transpiler.free(); after that, reading code or releasing
    again raises ResultReleasedError.
    """

    def __init__(self, status: TranspileStatus, code: Optional[str], diagnostics: Diagnostics):
        self.status = status
        self.diagnostics = diagnostics
        self._code = code
        self._released = False

    @property
    def ok(self) -> bool:
        return self.status == TranspileStatus.OK

    @property
    def released(self) -> bool:
        return self._released

    @property
    def code(self) -> Optional[str]:
        if self._released:
            raise ResultReleasedError('transpile result has already been released')
        return self._code

    def release(self) -> None:
        if self._released:
            raise ResultReleasedError('transpile result released twice')
        self._released = True
        self._code = None

    def __repr__(self) -> str:
        state = 'released' if self._released else f'{len(self._code or "")} chars'
        return f'TranspileResult({self.status.name}, {state}, {len(self.diagnostics)} diagnostic(s))'


# =============================================================================
# TRANSPILER
# =============================================================================

class Transpiler:
    """
    Transpiles C source files to Python modules.

    One instance can serve any number of calls. The builtin table (keywords,
    builtin typedefs, libc prototypes) is built once and only read afterwards;
    every call gets its own diagnostics, typedef table, scopes and AST.
    """

    def __init__(self, options: Optional[TranspileOptions] = None, builtins: Optional[BuiltinTable] = None):
        self.options = options or TranspileOptions()
        self.builtins = builtins or build_builtin_table()

    def transpile(self, path: PathArg) -> TranspileResult:
        """Transpile the C file at path."""
        if not isinstance(path, (str, os.PathLike)):
            raise TypeError(f'path must be str or os.PathLike, not {type(path).__name__}')
        file_path = os.fspath(path)
        diagnostics = Diagnostics(file_path, self.options.verbose)

        if not file_path:
            diagnostics.error(DiagnosticKind.IO, 'E400', 'no input file given')
            return TranspileResult(TranspileStatus.INVALID, None, diagnostics)

        suffix = Path(file_path).suffix
        if suffix.lower() not in SOURCE_SUFFIXES:
            diagnostics.error(DiagnosticKind.IO, 'E403', f"unknown file extension '{suffix}': expected .c or .h")
            return TranspileResult(TranspileStatus.IO, None, diagnostics)

        try:
            data = Path(file_path).read_bytes()
        except OSError as e:
            diagnostics.error(DiagnosticKind.IO, 'E401', f'cannot read file: {e.strerror or e}')
            return TranspileResult(TranspileStatus.IO, None, diagnostics)

        return self._run(data, diagnostics)

    def transpile_source(self, source: Union[str, bytes], file_path: str = '<string>') -> TranspileResult:
        """Transpile C source held in memory."""
        if not isinstance(source, (str, bytes)):
            raise TypeError(f'source must be str or bytes, not {type(source).__name__}')
        return self._run(source, Diagnostics(file_path, self.options.verbose))

    def free(self, *results: TranspileResult) -> None:
        """Release the text of one or more results."""
        for result in results:
            result.release()

    def _run(self, source: Union[str, bytes], diagnostics: Diagnostics) -> TranspileResult:
        try:
            tokens = tokenize(source)
        except UnicodeDecodeError as e:
            diagnostics.error(DiagnosticKind.IO, 'E402', f'source is not valid UTF-8: {e.reason}', _byte_position(source, e.start))
            return TranspileResult(TranspileStatus.IO, None, diagnostics)

        try:
            unit = parse(tokens, diagnostics, TypedefTable(self.builtins.typedef_names))
        except RecursionError:
            diagnostics.error(DiagnosticKind.SYNTAX, 'E202', 'expression or statement nested too deeply')
            return TranspileResult(TranspileStatus.PARSE, None, diagnostics)
        if diagnostics.has_errors_of(DiagnosticKind.LEX) or diagnostics.has_errors_of(DiagnosticKind.SYNTAX):
            return TranspileResult(TranspileStatus.PARSE, None, diagnostics)

        try:
            resolve(unit, diagnostics, self.builtins)
        except RecursionError:
            diagnostics.error(DiagnosticKind.SEMANTIC, 'E317', 'expression or statement nested too deeply')
        if diagnostics.has_errors:
            return TranspileResult(TranspileStatus.SEMANTIC, None, diagnostics)

        try:
            code = PythonCodeGenerator(self.options).generate(unit, diagnostics.file_path)
        except Exception as e:
            diagnostics.error(DiagnosticKind.INTERNAL, 'E500', f'code generation failed: {type(e).__name__}: {e}')
            return TranspileResult(TranspileStatus.TRANSFORMER, None, diagnostics)

        # Python has its own nesting limits (100 indentation levels, 200
        # open brackets) that a valid C program can exceed
        try:
            compile(code, diagnostics.file_path, 'exec')
        except (SyntaxError, RecursionError, MemoryError) as e:
            reason = e.msg if isinstance(e, SyntaxError) else type(e).__name__
            diagnostics.error(DiagnosticKind.INTERNAL, 'E501', f'generated module is not valid Python: {reason}')
            return TranspileResult(TranspileStatus.TRANSFORMER, None, diagnostics)

        return TranspileResult(TranspileStatus.OK, code, diagnostics)


def _byte_position(source: Union[str, bytes], offset: int) -> SourcePosition:
    if isinstance(source, str):
        return SourcePosition(offset=offset)
    line = source.count(b'\n', 0, offset) + 1
    column = offset - (source.rfind(b'\n', 0, offset) + 1) + 1
    return SourcePosition(line, column, offset)


def transpile(path: PathArg, options: Optional[TranspileOptions] = None) -> TranspileResult:
    """One-shot transpile; the same as Transpiler(options).transpile(path)."""
    return Transpiler(options).transpile(path)


# =============================================================================
# COMMAND LINE
# =============================================================================

def main(argv=None) -> int:
    import argparse

    parser = argparse.ArgumentParser(prog='c2py', description='C to Python Transpiler')
    parser.add_argument('input', help='Input C source file')
    parser.add_argument('-o', '--output', metavar='FILE', help='Write the generated module to FILE instead of stdout')
    parser.add_argument('-v', '--verbose', action='store_true', help='List every diagnostic, warnings included')
    parser.add_argument('--config', metavar='FILE', help='JSON file with transpile options')
    parser.add_argument('--no-main', action='store_true', help='Do not emit the __main__ guard')

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse has already printed usage; --help exits cleanly
        return 0 if e.code == 0 else 1

    try:
        options = TranspileOptions.from_json_file(args.config) if args.config else TranspileOptions()
    except (OSError, ValueError, TypeError) as e:
        print(f'Error: cannot load config {args.config}: {e}', file=sys.stderr)
        return 1
    if args.verbose:
        options = dataclasses.replace(options, verbose=True)
    if args.no_main:
        options = dataclasses.replace(options, emit_main_guard=False)

    transpiler = Transpiler(options)
    result = transpiler.transpile(args.input)
    result.diagnostics.print_summary()

    if not result.ok:
        print(f'Error: {args.input}: transpilation failed ({result.status.name.lower()})', file=sys.stderr)
        transpiler.free(result)
        return 1

    try:
        if args.output:
            output_path = Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(result.code)
            print(f'Written: {output_path}', file=sys.stderr)
        else:
            sys.stdout.write(result.code)
    except OSError as e:
        print(f'Error: cannot write {args.output}: {e}', file=sys.stderr)
        return 1
    finally:
        transpiler.free(result)
    return 0


if __name__ == '__main__':
    sys.exit(main())
