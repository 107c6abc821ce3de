"""
C to Python Transpiler

This package translates a single C99 source file (no preprocessor) into an
equivalent Python 3 module. Generated modules import the support runtime
in c2py.runtime.

Module Structure:
- lexer/: Tokenization (TokenType, Token, Lexer, tokenize)
- parser/: AST nodes and parsing (Parser, TypedefTable, parse)
- type_system/: C types, the builtin table and Python mappings
- semantic/: Scopes, constant folding, name and type resolution
- codegen/: Python code generation (PythonCodeGenerator)
- runtime/: Support library for generated code
- transpile.py: The Transpiler facade and the command line

Usage:
    from c2py import Transpiler

    transpiler = Transpiler()
    result = transpiler.transpile('program.c')
    print(result.code)
    transpiler.free(result)
"""

from .diagnostics import Diagnostic, Diagnostics, DiagnosticKind, DiagnosticSeverity
from .transpile import (
    Transpiler,
    TranspileOptions,
    TranspileResult,
    TranspileStatus,
    ResultReleasedError,
    transpile,
)

__all__ = [
    'Diagnostic',
    'Diagnostics',
    'DiagnosticKind',
    'DiagnosticSeverity',
    'Transpiler',
    'TranspileOptions',
    'TranspileResult',
    'TranspileStatus',
    'ResultReleasedError',
    'transpile',
]
