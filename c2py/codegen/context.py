"""
Code generation context for the Python code generator.

This module provides a context class that holds all state needed during
code generation, separating state management from the generation logic.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..parser.ast_nodes import VariableDeclaration
from ..semantic.scope import Symbol
from ..type_system.types import StructType
from .names import NameAllocator, RESERVED_MODULE_NAMES, member_names


@dataclass
class FlowContext:
    """A loop or switch being generated, innermost last on the context stack."""

    kind: str  # 'loop' or 'switch'
    # statements a `continue` must run before jumping (the step of a for loop)
    step: List[str] = field(default_factory=list)
    # flag set by `continue` written inside a switch nested in this loop
    continue_flag: Optional[str] = None


@dataclass
class CodeGenerationContext:
    """
    Holds all state needed during Python code generation.

    Module-level state (names of struct classes, globals, functions and
    static locals) lives for the whole unit; the function state is reset by
    begin_function().
    """

    # Indentation state
    indent_level: int = 0
    indent_str: str = '    '

    # Module context
    file_path: str = ''
    runtime_alias: str = '_rt'
    module_names: NameAllocator = field(default_factory=lambda: NameAllocator(RESERVED_MODULE_NAMES))
    symbol_names: Dict[Symbol, str] = field(default_factory=dict)
    struct_names: Dict[int, str] = field(default_factory=dict)
    # member names of a struct, keyed by its member sequence
    struct_members: Dict[Tuple[str, ...], Dict[str, str]] = field(default_factory=dict)
    static_declarations: List[VariableDeclaration] = field(default_factory=list)

    # Function context
    current_function: Optional[Symbol] = None
    local_names: Optional[NameAllocator] = None
    flow_stack: List[FlowContext] = field(default_factory=list)

    def indent(self) -> str:
        """Return the current indentation string."""
        return self.indent_str * self.indent_level

    def begin_function(self, function: Symbol) -> None:
        self.current_function = function
        self.local_names = NameAllocator(parent=self.module_names)
        self.flow_stack = []

    def end_function(self) -> None:
        self.current_function = None
        self.local_names = None
        self.flow_stack = []

    def struct_class(self, ctype: StructType) -> str:
        """Class name for a struct type, allocated on first use."""
        key = id(ctype)
        name = self.struct_names.get(key)
        if name is None:
            if ctype.anonymous:
                base = f'{ctype.kind}_{ctype.alias}' if ctype.alias else f'{ctype.kind}_anon'
            else:
                base = f'{ctype.kind}_{ctype.tag}'
            name = self.module_names.allocate(base)
            self.struct_names[key] = name
        return name

    def temporary(self, base: str) -> str:
        """A fresh local name for generated bookkeeping (switch values, flags)."""
        assert self.local_names is not None
        return self.local_names.allocate(base)

    def member_name(self, ctype: StructType, member: str) -> str:
        """Attribute name of a member in the class generated for ctype."""
        key = tuple(f.name for f in ctype.fields or [])
        names = self.struct_members.get(key)
        if names is None:
            names = member_names(key)
            self.struct_members[key] = names
        return names[member]
