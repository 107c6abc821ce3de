"""
Diagnostic collection for the C to Python transpiler.

Every phase of the pipeline reports problems through a shared Diagnostics
accumulator instead of raising. The facade inspects the collected
diagnostics to decide whether code generation may run.
"""

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for transpiler diagnostics."""
    ERROR = 'error'
    WARNING = 'warning'
    INFO = 'info'


class DiagnosticKind(Enum):
    """The pipeline phase that produced a diagnostic."""
    IO = 'io'
    LEX = 'lex'
    SYNTAX = 'syntax'
    SEMANTIC = 'semantic'
    INTERNAL = 'internal'


@dataclass(frozen=True)
class SourcePosition:
    """A location in the source file (1-based line/column, 0-based byte offset)."""
    line: int = 0
    column: int = 0
    offset: int = 0

    def __str__(self) -> str:
        return f'{self.line}:{self.column}'


NO_POSITION = SourcePosition()


@dataclass(frozen=True)
class Diagnostic:
    """A single diagnostic message."""
    severity: DiagnosticSeverity
    kind: DiagnosticKind
    code: str
    message: str
    file_path: str = ''
    line: Optional[int] = None
    column: Optional[int] = None

    @property
    def is_error(self) -> bool:
        return self.severity == DiagnosticSeverity.ERROR

    def __str__(self) -> str:
        location = self.file_path
        if self.line:
            location = f'{location}:{self.line}'
            if self.column:
                location = f'{location}:{self.column}'
        if location:
            return f'[{self.severity.value}] {location}: {self.message} ({self.code})'
        return f'[{self.severity.value}] {self.message} ({self.code})'


class Diagnostics:
    """
    Collects diagnostics from every phase of a single transpile call.

    Usage:
        diag = Diagnostics('example.c')
        diag.error(DiagnosticKind.SEMANTIC, 'E301', "undeclared identifier 'y'", pos)
        # ... after the pipeline ...
        diag.print_summary()
    """

    def __init__(self, file_path: str = '', verbose: bool = False):
        self.file_path = file_path
        self._diagnostics: List[Diagnostic] = []
        self._verbose = verbose

    @property
    def diagnostics(self) -> List[Diagnostic]:
        """Get all collected diagnostics in report order."""
        return list(self._diagnostics)

    @property
    def errors(self) -> List[Diagnostic]:
        """Get only error-level diagnostics."""
        return [d for d in self._diagnostics if d.severity == DiagnosticSeverity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        """Get only warning-level diagnostics."""
        return [d for d in self._diagnostics if d.severity == DiagnosticSeverity.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self._diagnostics)

    @property
    def count(self) -> int:
        """Get total diagnostic count."""
        return len(self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)

    def __iter__(self):
        return iter(list(self._diagnostics))

    def clear(self) -> None:
        """Clear all diagnostics."""
        self._diagnostics.clear()

    def has_errors_of(self, kind: DiagnosticKind) -> bool:
        return any(d.is_error and d.kind == kind for d in self._diagnostics)

    # =========================================================================
    # REPORTING METHODS
    # =========================================================================

    def report(
        self,
        severity: DiagnosticSeverity,
        kind: DiagnosticKind,
        code: str,
        message: str,
        pos: Optional[SourcePosition] = None,
    ) -> Diagnostic:
        """Record a diagnostic and return it."""
        diagnostic = Diagnostic(
            severity=severity,
            kind=kind,
            code=code,
            message=message,
            file_path=self.file_path,
            line=pos.line if pos is not None and pos.line else None,
            column=pos.column if pos is not None and pos.column else None,
        )
        self._diagnostics.append(diagnostic)
        return diagnostic

    def error(
        self,
        kind: DiagnosticKind,
        code: str,
        message: str,
        pos: Optional[SourcePosition] = None,
    ) -> Diagnostic:
        return self.report(DiagnosticSeverity.ERROR, kind, code, message, pos)

    def warning(
        self,
        kind: DiagnosticKind,
        code: str,
        message: str,
        pos: Optional[SourcePosition] = None,
    ) -> Diagnostic:
        return self.report(DiagnosticSeverity.WARNING, kind, code, message, pos)

    def info(
        self,
        kind: DiagnosticKind,
        code: str,
        message: str,
        pos: Optional[SourcePosition] = None,
    ) -> Diagnostic:
        return self.report(DiagnosticSeverity.INFO, kind, code, message, pos)

    # =========================================================================
    # SUMMARY
    # =========================================================================

    def print_summary(self, file=None) -> None:
        """Print a summary of all diagnostics to stderr (or specified file).

        Errors are always listed individually. Warnings are grouped by phase
        unless verbose output was requested.
        """
        if file is None:
            file = sys.stderr

        if not self._diagnostics:
            return

        errors = self.errors
        warnings = self.warnings
        infos = [d for d in self._diagnostics if d.severity == DiagnosticSeverity.INFO]

        for d in errors:
            print(str(d), file=file)

        if warnings:
            if self._verbose:
                for d in warnings:
                    print(str(d), file=file)
            else:
                print(f'Transpiler warnings ({len(warnings)}):', file=file)
                for kind, count in sorted(self._count_by_kind(warnings).items()):
                    print(f'  {kind}: {count} occurrence(s)', file=file)

        if infos and self._verbose:
            for d in infos:
                print(str(d), file=file)

    def get_summary(self) -> str:
        """Get a one-line summary of all diagnostics."""
        if not self._diagnostics:
            return 'No diagnostics.'

        parts = [f'{len(self.errors)} error(s)', f'{len(self.warnings)} warning(s)']
        by_kind = self._count_by_kind(self.errors)
        if by_kind:
            detail = ', '.join(f'{count} {kind}' for kind, count in sorted(by_kind.items()))
            parts.append(f'errors by phase: {detail}')
        return '; '.join(parts)

    @staticmethod
    def _count_by_kind(diagnostics: List[Diagnostic]) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for d in diagnostics:
            counts[d.kind.value] = counts.get(d.kind.value, 0) + 1
        return counts
