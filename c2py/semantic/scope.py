"""
Symbols and the scope arena used by the resolver.

Scopes live in a flat list indexed by integer handle; each record points at
its parent by handle. Scopes are strictly nested, so leaving the innermost
scope truncates the list.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, TYPE_CHECKING

from ..diagnostics import SourcePosition, NO_POSITION
from ..type_system.types import CType

if TYPE_CHECKING:
    from ..parser.ast_nodes import ASTNode
    from ..type_system.builtins import BuiltinFunction


class SymbolStorage(Enum):
    """What an ordinary identifier denotes."""
    LOCAL = 'local'
    GLOBAL = 'global'
    PARAMETER = 'parameter'
    FUNCTION = 'function'
    TYPEDEF = 'typedef'
    ENUM_CONSTANT = 'enum_constant'
    BUILTIN = 'builtin'


@dataclass(eq=False)
class Symbol:
    """A declared name. Compared and hashed by identity."""
    name: str
    ctype: CType
    storage: SymbolStorage
    scope_depth: int = 0
    pos: SourcePosition = NO_POSITION
    address_taken: bool = False
    defined: bool = False
    is_static: bool = False
    # Enum constants and builtin constants
    value: Optional[int] = None
    is_null_pointer: bool = False
    # Runtime implementation for libc functions
    builtin: Optional['BuiltinFunction'] = None
    # The declaration the generator emits for file-scope and static objects
    declaration: Optional['ASTNode'] = field(default=None, repr=False)
    # Function owning a static local
    owner: Optional[str] = None
    first_call: Optional[SourcePosition] = field(default=None, repr=False)

    @property
    def is_object(self) -> bool:
        return self.storage in (SymbolStorage.LOCAL, SymbolStorage.GLOBAL, SymbolStorage.PARAMETER)

    @property
    def is_function(self) -> bool:
        return self.storage == SymbolStorage.FUNCTION or (
            self.storage == SymbolStorage.BUILTIN and self.builtin is not None
        )

    @property
    def has_static_duration(self) -> bool:
        return self.storage == SymbolStorage.GLOBAL or self.is_static


@dataclass
class Scope:
    parent: Optional[int]
    depth: int
    symbols: Dict[str, Symbol] = field(default_factory=dict)
    tags: Dict[str, CType] = field(default_factory=dict)


class ScopeArena:
    """Nested scopes for ordinary identifiers and struct/union/enum tags."""

    def __init__(self):
        self.scopes: List[Scope] = []
        self.current: Optional[int] = None

    @property
    def depth(self) -> int:
        if self.current is None:
            return -1
        return self.scopes[self.current].depth

    @property
    def at_file_scope(self) -> bool:
        return self.depth == 0

    def enter(self) -> int:
        depth = self.depth + 1
        handle = len(self.scopes)
        self.scopes.append(Scope(parent=self.current, depth=depth))
        self.current = handle
        return handle

    def exit(self) -> None:
        handle = self.current
        if handle is None:
            raise RuntimeError('exit from empty scope arena')
        self.current = self.scopes[handle].parent
        del self.scopes[handle:]

    def _chain(self):
        handle = self.current
        while handle is not None:
            scope = self.scopes[handle]
            yield scope
            handle = scope.parent

    # Ordinary identifiers

    def declare(self, symbol: Symbol) -> None:
        self.scopes[self.current].symbols[symbol.name] = symbol

    def lookup(self, name: str) -> Optional[Symbol]:
        for scope in self._chain():
            symbol = scope.symbols.get(name)
            if symbol is not None:
                return symbol
        return None

    def lookup_current(self, name: str) -> Optional[Symbol]:
        return self.scopes[self.current].symbols.get(name)

    def lookup_file(self, name: str) -> Optional[Symbol]:
        return self.scopes[0].symbols.get(name) if self.scopes else None

    # Tags

    def declare_tag(self, tag: str, ctype: CType) -> None:
        self.scopes[self.current].tags[tag] = ctype

    def lookup_tag(self, tag: str) -> Optional[CType]:
        for scope in self._chain():
            ctype = scope.tags.get(tag)
            if ctype is not None:
                return ctype
        return None

    def lookup_tag_current(self, tag: str) -> Optional[CType]:
        return self.scopes[self.current].tags.get(tag)
