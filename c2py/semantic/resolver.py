"""
Name resolution and type checking.

The resolver walks the parsed tree in two passes. Pass 1 registers every
file-scope declaration (tags, typedefs, globals, prototypes and function
definitions) so that later code may refer to functions and globals declared
further down. Pass 2 resolves global initializers and function bodies in
source order, pushing a scope per block.

Errors are reported to the Diagnostics accumulator and never abort the walk:
an expression that fails to resolve gets ErrorType, and operations on
ErrorType report nothing further.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from ..diagnostics import Diagnostics, SourcePosition
from ..parser.ast_nodes import (
    TypeSpec,
    PrimitiveTypeSpec,
    TypedefNameSpec,
    StructSpec,
    EnumSpec,
    PointerTypeSpec,
    ArrayTypeSpec,
    FunctionTypeSpec,
    Expression,
    StringLiteral,
    InitializerItem,
    InitializerList,
    Declaration,
    VariableDeclaration,
    TypedefDeclaration,
    TagDeclaration,
    FunctionDefinition,
    Statement,
    CompoundStatement,
    DeclarationStatement,
    ExpressionStatement,
    EmptyStatement,
    IfStatement,
    WhileStatement,
    DoWhileStatement,
    ForStatement,
    SwitchStatement,
    CaseStatement,
    DefaultStatement,
    ReturnStatement,
    BreakStatement,
    ContinueStatement,
    GotoStatement,
    LabeledStatement,
    TranslationUnit,
)
from ..type_system.builtins import BuiltinTable, DEFAULT_BUILTINS, primitive_from_specifiers
from ..type_system.types import (
    CType,
    ArrayType,
    EnumType,
    Field,
    FunctionType,
    PointerType,
    StructType,
    TypedefType,
    ERROR,
    INT,
    compatible,
    integer_promote,
)
from .constant import evaluate_integer, is_constant_initializer, wrap_integer
from .expressions import ExpressionResolver, is_character_type
from .flow import falls_through
from .scope import ScopeArena, Symbol, SymbolStorage


@dataclass
class _SwitchContext:
    ctype: CType
    # case labels written directly in the switch body
    top_level: Set[int] = field(default_factory=set)
    values: Dict[int, SourcePosition] = field(default_factory=dict)
    has_default: bool = False


class Resolver(ExpressionResolver):
    """Binds identifiers to symbols and annotates expressions with types."""

    def __init__(self, diagnostics: Diagnostics, builtins: Optional[BuiltinTable] = None):
        self.diagnostics = diagnostics
        self.builtins = builtins or DEFAULT_BUILTINS
        self.arena = ScopeArena()
        self.unit: Optional[TranslationUnit] = None

        self._builtin_symbols: Dict[str, Symbol] = {}
        self._declared_types: Dict[int, CType] = {}
        self._early_initializers: Set[int] = set()
        self._initializer_values: Dict[int, Expression] = {}

        # Function context
        self.function: Optional[Symbol] = None
        self.return_type: Optional[CType] = None
        self._breakables: List[str] = []
        self._switches: List[_SwitchContext] = []

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    def resolve(self, unit: TranslationUnit) -> TranslationUnit:
        self.unit = unit
        self.arena.enter()
        try:
            for declaration in unit.declarations:
                self.declare_external(declaration)
            for declaration in unit.declarations:
                if isinstance(declaration, VariableDeclaration):
                    self.resolve_global(declaration)
                elif isinstance(declaration, FunctionDefinition):
                    self.resolve_function(declaration)
            self._check_undefined_functions()
        finally:
            self.arena.exit()
        return unit

    def _check_undefined_functions(self) -> None:
        for symbol in self.arena.scopes[0].symbols.values():
            if (
                symbol.storage == SymbolStorage.FUNCTION
                and not symbol.defined
                and symbol.builtin is None
                and symbol.first_call is not None
            ):
                self.warning('W301', f"function '{symbol.name}' is called but never defined", symbol.first_call)

    # =========================================================================
    # TYPES
    # =========================================================================

    def resolve_type(self, spec: TypeSpec, is_definition: bool = False) -> CType:
        """Turn type syntax into a semantic type, declaring struct tags on first mention."""
        if isinstance(spec, PrimitiveTypeSpec):
            ctype = primitive_from_specifiers(spec.names)
            if ctype is None:
                return self.error('E316', f"invalid combination of type specifiers '{' '.join(spec.names)}'", spec.pos)
            return ctype

        if isinstance(spec, TypedefNameSpec):
            symbol = self.arena.lookup(spec.name)
            if symbol is not None and symbol.storage == SymbolStorage.TYPEDEF:
                if symbol.ctype.is_error:
                    return ERROR
                return TypedefType(spec.name, symbol.ctype)
            builtin = self.builtins.typedefs.get(spec.name)
            if builtin is not None:
                return builtin
            return self.error('E301', f"unknown type name '{spec.name}'", spec.pos)

        if isinstance(spec, StructSpec):
            return self._struct_reference(spec)

        if isinstance(spec, EnumSpec):
            return self._enum_reference(spec)

        if isinstance(spec, PointerTypeSpec):
            target = self.resolve_type(spec.target)
            if target.is_error:
                return ERROR
            return PointerType(target)

        if isinstance(spec, ArrayTypeSpec):
            return self._array_type(spec)

        if isinstance(spec, FunctionTypeSpec):
            return self._function_type(spec, is_definition)

        return self.error('E305', f'unsupported type syntax {type(spec).__name__}', spec.pos)

    def _array_type(self, spec: ArrayTypeSpec) -> CType:
        element = self.resolve_type(spec.element)
        if element.is_error:
            return ERROR
        if element.is_function:
            return self.error('E313', 'array elements cannot be functions', spec.pos)
        if not element.is_complete:
            return self.error('E313', f"array has incomplete element type '{element}'", spec.pos)
        if spec.size is None:
            return ArrayType(element, None)

        size = self.value(spec.size)
        spec.size = size
        if size.ctype is None or size.ctype.is_error:
            return ERROR
        if not size.ctype.is_integer:
            return self.error('E305', f"size of array has non-integer type '{size.ctype}'", size.pos)
        length = evaluate_integer(size)
        if length is None:
            if self.arena.at_file_scope:
                return self.error('E311', 'array size is not an integer constant expression', size.pos)
            return self.error('E315', 'variable length arrays are not supported', size.pos)
        if length < 0:
            return self.error('E311', 'array size is negative', size.pos)
        return ArrayType(element, length)

    def _function_type(self, spec: FunctionTypeSpec, is_definition: bool) -> CType:
        return_type = self.resolve_type(spec.return_type)
        if return_type.is_array or return_type.is_function:
            self.error('E313', f"function cannot return {'array' if return_type.is_array else 'function'} type '{return_type}'", spec.pos)
            return_type = ERROR

        params: List[CType] = []
        for param in spec.parameters:
            ptype = self.resolve_type(param.type_spec)
            stripped = ptype.strip()
            if isinstance(stripped, ArrayType):
                ptype = PointerType(stripped.element)
            elif isinstance(stripped, FunctionType):
                ptype = PointerType(ptype)
            elif ptype.is_void:
                self.error('E313', "parameter has incomplete type 'void'", param.pos)
                ptype = ERROR
            params.append(ptype)

        if is_definition and spec.variadic:
            self.error('E315', 'variadic function definitions are not supported', spec.pos)

        return FunctionType(
            return_type,
            tuple(params),
            spec.variadic,
            spec.has_prototype or is_definition,
        )

    # =========================================================================
    # STRUCTS, UNIONS AND ENUMS
    # =========================================================================

    def _struct_reference(self, spec: StructSpec) -> CType:
        existing = self.arena.lookup_tag(spec.tag)
        if existing is None:
            struct = StructType(spec.kind, spec.tag, anonymous=spec.anonymous)
            self.arena.declare_tag(spec.tag, struct)
            return struct
        if not isinstance(existing, StructType) or existing.kind != spec.kind:
            return self.error('E302', f"use of '{spec.tag}' with tag type that does not match previous declaration", spec.pos)
        return existing

    def _enum_reference(self, spec: EnumSpec) -> CType:
        existing = self.arena.lookup_tag(spec.tag)
        if existing is None:
            return EnumType(spec.tag)
        if not isinstance(existing, EnumType):
            return self.error('E302', f"use of '{spec.tag}' with tag type that does not match previous declaration", spec.pos)
        return existing

    def resolve_tag_declaration(self, declaration: TagDeclaration) -> None:
        spec = declaration.spec
        if isinstance(spec, StructSpec):
            if spec.fields is not None:
                self.define_struct(spec)
                return
            existing = self.arena.lookup_tag_current(spec.tag)
            if existing is None:
                self.arena.declare_tag(spec.tag, StructType(spec.kind, spec.tag, anonymous=spec.anonymous))
            elif not isinstance(existing, StructType) or existing.kind != spec.kind:
                self.error('E302', f"use of '{spec.tag}' with tag type that does not match previous declaration", spec.pos)
        elif isinstance(spec, EnumSpec):
            if spec.enumerators is not None:
                self.define_enum(spec)
            else:
                self._enum_reference(spec)

    def define_struct(self, spec: StructSpec) -> None:
        existing = self.arena.lookup_tag_current(spec.tag)
        if existing is not None:
            if not isinstance(existing, StructType) or existing.kind != spec.kind:
                self.error('E302', f"use of '{spec.tag}' with tag type that does not match previous declaration", spec.pos)
                return
            if existing.fields is not None:
                self.error('E302', f"redefinition of '{existing}'", spec.pos)
                return
            struct = existing
        else:
            struct = StructType(spec.kind, spec.tag, anonymous=spec.anonymous)
            self.arena.declare_tag(spec.tag, struct)

        fields: List[Field] = []
        seen: Set[str] = set()
        for member in spec.fields:
            if member.bit_width is not None:
                self.error('E315', 'bit-fields are not supported', member.pos)
                continue
            ctype = self.resolve_type(member.type_spec)
            if ctype.is_error:
                continue
            if ctype.is_function:
                self.error('E313', f"field '{member.name}' declared as a function", member.pos)
                continue
            if not ctype.is_complete:
                self.error('E313', f"field '{member.name}' has incomplete type '{ctype}'", member.pos)
                continue
            if member.name in seen:
                self.error('E302', f"duplicate member '{member.name}'", member.pos)
                continue
            seen.add(member.name)
            fields.append(Field(member.name, ctype))

        struct.complete(fields)
        if struct.is_union and len(fields) > 1:
            self.warning('W304', f"members of '{struct}' do not share storage in the generated code", spec.pos)
        self.unit.struct_types.append(struct)

    def define_enum(self, spec: EnumSpec) -> None:
        existing = self.arena.lookup_tag_current(spec.tag)
        if existing is not None:
            if isinstance(existing, EnumType):
                self.error('E302', f"redefinition of 'enum {spec.tag}'", spec.pos)
            else:
                self.error('E302', f"use of '{spec.tag}' with tag type that does not match previous declaration", spec.pos)
            return
        self.arena.declare_tag(spec.tag, EnumType(spec.tag))

        next_value = 0
        for enumerator in spec.enumerators:
            value = next_value
            if enumerator.value is not None:
                enumerator.value = self.value(enumerator.value)
                folded = evaluate_integer(enumerator.value)
                if folded is None:
                    if not enumerator.value.ctype.is_error:
                        self.error('E311', f"enumerator value for '{enumerator.name}' is not an integer constant", enumerator.value.pos)
                else:
                    value = folded
            if not INT.min_value <= value <= INT.max_value:
                self.warning('W305', f"enumerator value for '{enumerator.name}' is not representable as 'int'", enumerator.pos)
                value = wrap_integer(value, INT)

            if self.arena.lookup_current(enumerator.name) is not None:
                self.error('E302', f"redefinition of '{enumerator.name}'", enumerator.pos)
            else:
                symbol = Symbol(
                    enumerator.name, INT, SymbolStorage.ENUM_CONSTANT,
                    scope_depth=self.arena.depth, pos=enumerator.pos, value=value, defined=True,
                )
                self.arena.declare(symbol)
                enumerator.symbol = symbol
            next_value = value + 1

    # =========================================================================
    # DECLARATIONS
    # =========================================================================

    def declare_external(self, declaration: Declaration) -> None:
        if isinstance(declaration, TagDeclaration):
            self.resolve_tag_declaration(declaration)
        elif isinstance(declaration, TypedefDeclaration):
            self.declare_typedef(declaration)
        elif isinstance(declaration, VariableDeclaration):
            self.declare_global(declaration)
        elif isinstance(declaration, FunctionDefinition):
            self.declare_function(declaration)

    def declare_typedef(self, declaration: TypedefDeclaration) -> None:
        ctype = self.resolve_type(declaration.type_spec)
        existing = self.arena.lookup_current(declaration.name)
        if existing is not None:
            if existing.storage == SymbolStorage.TYPEDEF and compatible(existing.ctype, ctype):
                declaration.symbol = existing
                return
            self.error('E302', f"redefinition of '{declaration.name}'", declaration.pos)
            return

        if isinstance(ctype, StructType) and ctype.anonymous and ctype.alias is None:
            ctype.alias = declaration.name
        symbol = Symbol(
            declaration.name, ctype, SymbolStorage.TYPEDEF,
            scope_depth=self.arena.depth, pos=declaration.pos, defined=True,
        )
        self.arena.declare(symbol)
        declaration.symbol = symbol

    def declare_global(self, declaration: VariableDeclaration) -> None:
        ctype = self.resolve_type(declaration.type_spec)
        self._declared_types[id(declaration)] = ctype
        name = declaration.name

        if ctype.is_function:
            declaration.symbol = self._declare_prototype(name, ctype, declaration.pos)
            if declaration.initializer is not None:
                self.error('E303', f"illegal initializer for function '{name}'", declaration.pos)
            return

        if ctype.is_array and ctype.strip().length is None and declaration.initializer is not None:
            declaration.initializer, ctype = self.resolve_initializer(declaration.initializer, ctype, declaration.pos)
            self._declared_types[id(declaration)] = ctype
            self._early_initializers.add(id(declaration))

        existing = self.arena.lookup_current(name)
        if existing is not None:
            if existing.storage != SymbolStorage.GLOBAL or not compatible(existing.ctype, ctype):
                self.error('E302', f"redefinition of '{name}' with a different type", declaration.pos)
                declaration.symbol = Symbol(name, ctype, SymbolStorage.GLOBAL, pos=declaration.pos)
                return
            if existing.ctype.is_array and existing.ctype.strip().length is None:
                existing.ctype = ctype
            current = existing.declaration
            if declaration.initializer is not None:
                if current is not None and current.initializer is not None:
                    self.error('E302', f"redefinition of '{name}'", declaration.pos)
                else:
                    existing.declaration = declaration
            declaration.symbol = existing
            return

        symbol = Symbol(
            name, ctype, SymbolStorage.GLOBAL,
            pos=declaration.pos, defined=True, declaration=declaration,
        )
        self.arena.declare(symbol)
        declaration.symbol = symbol

    def _declare_prototype(self, name: str, ctype: CType, pos: SourcePosition) -> Symbol:
        """Declare (or merge) a file-scope function prototype."""
        existing = self.arena.lookup_file(name)
        if existing is not None:
            if existing.storage != SymbolStorage.FUNCTION:
                self.error('E302', f"redefinition of '{name}' as different kind of symbol", pos)
                return Symbol(name, ctype, SymbolStorage.FUNCTION, pos=pos)
            if not compatible(existing.ctype, ctype):
                self.error('E302', f"conflicting types for '{name}'", pos)
                return existing
            if not existing.ctype.strip().has_prototype and not existing.defined:
                existing.ctype = ctype
            return existing

        symbol = Symbol(name, ctype, SymbolStorage.FUNCTION, pos=pos, builtin=self.builtins.function(name))
        self.arena.scopes[0].symbols[name] = symbol
        return symbol

    def declare_function(self, definition: FunctionDefinition) -> None:
        ctype = self.resolve_type(definition.type_spec, is_definition=True)
        self._declared_types[id(definition)] = ctype
        name = definition.name

        return_type = ctype.strip().return_type if ctype.is_function else ERROR
        if not return_type.is_void and not return_type.is_complete and not return_type.is_error:
            self.error('E313', f"incomplete result type '{return_type}' in function definition", definition.pos)

        existing = self.arena.lookup_current(name)
        if existing is not None:
            if existing.storage != SymbolStorage.FUNCTION:
                self.error('E302', f"redefinition of '{name}' as different kind of symbol", definition.pos)
            elif existing.defined:
                self.error('E314', f"redefinition of function '{name}'", definition.pos)
            elif not compatible(existing.ctype, ctype):
                self.error('E302', f"conflicting types for '{name}'", definition.pos)
            else:
                existing.ctype = ctype
                existing.defined = True
                existing.declaration = definition
                definition.symbol = existing
                return
            definition.symbol = Symbol(name, ctype, SymbolStorage.FUNCTION, pos=definition.pos, defined=True)
            return

        symbol = Symbol(
            name, ctype, SymbolStorage.FUNCTION,
            pos=definition.pos, defined=True, declaration=definition,
            builtin=self.builtins.function(name),
        )
        self.arena.declare(symbol)
        definition.symbol = symbol

    def resolve_global(self, declaration: VariableDeclaration) -> None:
        symbol = declaration.symbol
        if symbol is None or symbol.storage != SymbolStorage.GLOBAL:
            return
        ctype = self._declared_types[id(declaration)]
        if ctype.is_error:
            return

        if declaration.initializer is not None and id(declaration) not in self._early_initializers:
            declaration.initializer, ctype = self.resolve_initializer(declaration.initializer, ctype, declaration.pos)
        if declaration.initializer is not None:
            if not is_constant_initializer(declaration.initializer) and not _has_error(declaration.initializer):
                self.error('E311', 'initializer element is not a compile-time constant', declaration.initializer.pos)

        if symbol.declaration is declaration and not ctype.is_complete:
            self.error('E313', f"variable '{declaration.name}' has incomplete type '{ctype}'", declaration.pos)

    def resolve_local_declaration(self, declaration: Declaration) -> None:
        if isinstance(declaration, TagDeclaration):
            self.resolve_tag_declaration(declaration)
            return
        if isinstance(declaration, TypedefDeclaration):
            self.declare_typedef(declaration)
            return
        if not isinstance(declaration, VariableDeclaration):
            return

        name = declaration.name
        ctype = self.resolve_type(declaration.type_spec)

        if ctype.is_function or declaration.storage == 'extern':
            self._declare_block_extern(declaration, ctype)
            return

        if self.arena.lookup_current(name) is not None:
            self.error('E302', f"redefinition of '{name}'", declaration.pos)
            symbol = Symbol(name, ctype, SymbolStorage.LOCAL, scope_depth=self.arena.depth, pos=declaration.pos)
        else:
            is_static = declaration.storage == 'static'
            symbol = Symbol(
                name, ctype, SymbolStorage.LOCAL,
                scope_depth=self.arena.depth,
                pos=declaration.pos,
                defined=True,
                is_static=is_static,
                declaration=declaration,
                owner=self.function.name if is_static and self.function is not None else None,
            )
            self.arena.declare(symbol)
        declaration.symbol = symbol

        if declaration.initializer is not None and not ctype.is_error:
            declaration.initializer, symbol.ctype = self.resolve_initializer(
                declaration.initializer, ctype, declaration.pos,
            )
            if symbol.is_static and not is_constant_initializer(declaration.initializer) and not _has_error(declaration.initializer):
                self.error('E311', 'initializer element is not a compile-time constant', declaration.initializer.pos)

        if not symbol.ctype.is_error and not symbol.ctype.is_complete:
            self.error('E313', f"variable '{name}' has incomplete type '{symbol.ctype}'", declaration.pos)

    def _declare_block_extern(self, declaration: VariableDeclaration, ctype: CType) -> None:
        """Block-scope prototypes and extern declarations refer to the file-scope entity."""
        name = declaration.name
        if declaration.initializer is not None:
            self.error('E303', f"block-scope declaration of '{name}' with linkage cannot have an initializer", declaration.pos)

        if ctype.is_function:
            symbol = self._declare_prototype(name, ctype, declaration.pos)
        else:
            symbol = self.arena.lookup_file(name)
            if symbol is None or symbol.storage != SymbolStorage.GLOBAL:
                self.error('E315', f"extern declaration of '{name}' has no definition in this file", declaration.pos)
                return
            if not compatible(symbol.ctype, ctype):
                self.error('E302', f"redefinition of '{name}' with a different type", declaration.pos)
                return

        if self.arena.lookup_current(name) not in (None, symbol):
            self.error('E302', f"redefinition of '{name}'", declaration.pos)
            return
        self.arena.declare(symbol)
        declaration.symbol = symbol

    # =========================================================================
    # INITIALIZERS
    # =========================================================================

    def resolve_initializer(self, init: Expression, ctype: CType, pos: SourcePosition) -> Tuple[Expression, CType]:
        """Check init against ctype.

        Brace initializers are normalized into InitializerList.entries, a list
        of (index or field name, value) pairs. Returns the resolved initializer
        and the completed object type (arrays of unknown length get theirs).
        """
        if ctype.is_error:
            return init, ctype
        target = ctype.strip()

        if isinstance(init, InitializerList):
            if isinstance(target, (ArrayType, StructType)):
                result, index = self._fill(ctype, init.items, 0, braced=True, pos=init.pos)
                if index < len(init.items):
                    self.error('E303', 'excess elements in initializer', init.items[index].pos)
                return result, result.ctype
            if not init.items:
                self.error('E303', 'scalar initializer cannot be empty', init.pos)
                return init, ctype
            if len(init.items) > 1:
                self.error('E303', 'excess elements in scalar initializer', init.items[1].pos)
            if init.items[0].designators:
                self.error('E303', 'designator in initializer for scalar type', init.items[0].pos)
            return self.resolve_initializer(init.items[0].value, ctype, pos)

        if isinstance(target, ArrayType):
            if isinstance(init, StringLiteral) and is_character_type(target.element):
                return self._string_initializer(init, target, ctype)
            self.error('E303', f"array '{ctype}' must be initialized with a brace-enclosed initializer", init.pos)
            self.value(init)
            return init, ctype

        value = self.value(init)
        return self.assign_convert(ctype, value, 'initializing', pos), ctype

    def _string_initializer(self, init: StringLiteral, target: ArrayType, ctype: CType) -> Tuple[Expression, CType]:
        self.resolve_expression(init)
        if target.length is None:
            return init, ArrayType(target.element, len(init.values) + 1)
        if len(init.values) > target.length:
            self.error('E303', 'initializer-string for char array is too long', init.pos)
        return init, ctype

    def _item_value(self, item: InitializerItem) -> Expression:
        """Resolve the value of an initializer item once."""
        key = id(item)
        value = self._initializer_values.get(key)
        if value is None:
            value = self.value(item.value)
            self._initializer_values[key] = value
        return value

    def _fill(
        self,
        ctype: CType,
        items: List[InitializerItem],
        index: int,
        braced: bool,
        pos: SourcePosition,
        designated: bool = False,
    ) -> Tuple[InitializerList, int]:
        """Initialize one aggregate from items[index:].

        With braced=False the aggregate's braces were elided: it takes only as
        many items as it needs and stops at the next designator. designated
        means the designators of items[index] were already applied by the
        caller.
        """
        target = ctype.strip()
        if not target.is_complete and not (isinstance(target, ArrayType) and target.length is None):
            self.error('E313', f"initializing object of incomplete type '{ctype}'", pos)
            return InitializerList(ctype=ctype, pos=pos), len(items) if braced else index + 1
        if isinstance(target, ArrayType):
            return self._fill_array(ctype, target, items, index, braced, pos, designated)
        return self._fill_struct(ctype, target, items, index, braced, pos, designated)

    def _fill_array(self, ctype, target: ArrayType, items, index, braced, pos, designated):
        element = target.element
        entries: Dict[int, Expression] = {}
        position = 0
        while index < len(items):
            item = items[index]
            if item.designators and not designated:
                if not braced:
                    break
                designator = item.designators[0]
                if isinstance(designator, str):
                    self.error('E303', f"field designator '.{designator}' in array initializer", item.pos)
                    index += 1
                    continue
                designator = self.value(designator)
                folded = evaluate_integer(designator)
                if folded is None:
                    self.error('E311', 'array designator is not an integer constant expression', designator.pos)
                    index += 1
                    continue
                if folded < 0 or (target.length is not None and folded >= target.length):
                    self.error('E303', f'array designator index {folded} is out of bounds', designator.pos)
                    index += 1
                    continue
                position = folded
                value, index = self._designated(element, item, items, index)
            else:
                if target.length is not None and position >= target.length:
                    if braced:
                        self.error('E303', 'excess elements in array initializer', item.pos)
                        index = len(items)
                    break
                value, index = self._element(element, items, index, designated)
            designated = False
            entries[position] = _merge(entries.get(position), value)
            position += 1

        length = target.length
        if length is None:
            length = max(entries) + 1 if entries else 0
            ctype = ArrayType(element, length)
        result = InitializerList(entries=sorted(entries.items(), key=lambda e: e[0]), ctype=ctype, pos=pos)
        return result, index

    def _fill_struct(self, ctype, target: StructType, items, index, braced, pos, designated):
        fields = target.fields
        entries: Dict[str, Expression] = {}
        position = 0
        while index < len(items):
            item = items[index]
            if item.designators and not designated:
                if not braced:
                    break
                designator = item.designators[0]
                if not isinstance(designator, str):
                    self.error('E303', f"array designator in initializer for '{target}'", item.pos)
                    index += 1
                    continue
                names = [f.name for f in fields]
                if designator not in names:
                    self.error('E308', f"no member named '{designator}' in '{target}'", item.pos)
                    index += 1
                    continue
                position = names.index(designator)
                if target.is_union:
                    entries = {name: value for name, value in entries.items() if name == designator}
                value, index = self._designated(fields[position].ctype, item, items, index)
            else:
                if position >= len(fields) or (target.is_union and entries):
                    if braced:
                        self.error('E303', f"excess elements in {target.kind} initializer", item.pos)
                        index = len(items)
                    break
                value, index = self._element(fields[position].ctype, items, index, designated)
            designated = False
            name = fields[position].name
            entries[name] = _merge(entries.get(name), value)
            position += 1

        ordered = [(f.name, entries[f.name]) for f in fields if f.name in entries]
        return InitializerList(entries=ordered, ctype=ctype, pos=pos), index

    def _designated(self, ctype: CType, item: InitializerItem, items, index: int) -> Tuple[Expression, int]:
        """Initialize the subobject named by the first designator of item."""
        rest = item.designators[1:]
        if not rest:
            return self._element(ctype, items, index, designated=True)
        if not ctype.is_aggregate:
            self.error('E303', f"designator applied to non-aggregate type '{ctype}'", item.pos)
            return self._item_value(item), index + 1
        nested = InitializerItem(value=item.value, designators=rest, pos=item.pos)
        result, _ = self._fill(ctype, [nested], 0, braced=True, pos=item.pos)
        return result, index + 1

    def _element(self, ctype: CType, items: List[InitializerItem], index: int, designated: bool = False) -> Tuple[Expression, int]:
        """Initialize one subobject of type ctype starting at items[index]."""
        item = items[index]
        raw = item.value
        if isinstance(raw, InitializerList):
            value, _ = self.resolve_initializer(raw, ctype, item.pos)
            return value, index + 1

        target = ctype.strip()
        if isinstance(target, ArrayType) and isinstance(raw, StringLiteral) and is_character_type(target.element):
            value, _ = self.resolve_initializer(raw, ctype, item.pos)
            return value, index + 1

        if isinstance(target, (ArrayType, StructType)):
            if isinstance(target, StructType):
                value = self._item_value(item)
                if value.ctype is not None and (value.ctype.is_error or (value.ctype.is_struct and compatible(value.ctype, target))):
                    return value, index + 1
            sub, next_index = self._fill(ctype, items, index, braced=False, pos=item.pos, designated=designated)
            if next_index == index:
                self.error('E303', f"cannot initialize '{ctype}' from this element", item.pos)
                return sub, index + 1
            return sub, next_index

        value = self._item_value(item)
        return self.assign_convert(ctype, value, 'initializing', item.pos), index + 1

    # =========================================================================
    # FUNCTIONS
    # =========================================================================

    def resolve_function(self, definition: FunctionDefinition) -> None:
        symbol = definition.symbol
        ctype = self._declared_types[id(definition)]
        if symbol is None or not ctype.is_function:
            return
        ftype = ctype.strip()

        self.function = symbol
        self.return_type = ftype.return_type
        self._breakables = []
        self._switches = []
        self.arena.enter()
        try:
            for param, ptype in zip(definition.type_spec.parameters, ftype.params):
                if not ptype.is_error and not ptype.is_complete:
                    self.error('E313', f"parameter has incomplete type '{ptype}'", param.pos)
                if not param.name:
                    continue
                if self.arena.lookup_current(param.name) is not None:
                    self.error('E302', f"redefinition of parameter '{param.name}'", param.pos)
                    continue
                param_symbol = Symbol(
                    param.name, ptype, SymbolStorage.PARAMETER,
                    scope_depth=self.arena.depth, pos=param.pos, defined=True,
                )
                self.arena.declare(param_symbol)
                param.symbol = param_symbol

            self.resolve_block_items(definition.body.statements)

            if (
                not self.return_type.is_void
                and not self.return_type.is_error
                and definition.name != 'main'
                and falls_through(definition.body)
            ):
                self.warning('W303', f"non-void function '{definition.name}' does not return a value in all control paths", definition.pos)
        finally:
            self.arena.exit()
            self.function = None
            self.return_type = None

    # =========================================================================
    # STATEMENTS
    # =========================================================================

    def resolve_block_items(self, statements: List[Statement]) -> None:
        for statement in statements:
            self.resolve_statement(statement)

    def condition(self, expr: Expression) -> Expression:
        value = self.value(expr)
        self.require_scalar(value, 'condition')
        return value

    def resolve_statement(self, stmt: Statement) -> None:
        if isinstance(stmt, CompoundStatement):
            self.arena.enter()
            try:
                self.resolve_block_items(stmt.statements)
            finally:
                self.arena.exit()

        elif isinstance(stmt, DeclarationStatement):
            for declaration in stmt.declarations:
                self.resolve_local_declaration(declaration)

        elif isinstance(stmt, ExpressionStatement):
            stmt.expression = self.value(stmt.expression)

        elif isinstance(stmt, EmptyStatement):
            pass

        elif isinstance(stmt, IfStatement):
            stmt.condition = self.condition(stmt.condition)
            self.resolve_statement(stmt.true_body)
            if stmt.false_body is not None:
                self.resolve_statement(stmt.false_body)

        elif isinstance(stmt, WhileStatement):
            stmt.condition = self.condition(stmt.condition)
            self._loop_body(stmt.body)

        elif isinstance(stmt, DoWhileStatement):
            self._loop_body(stmt.body)
            stmt.condition = self.condition(stmt.condition)

        elif isinstance(stmt, ForStatement):
            self.arena.enter()
            try:
                if stmt.init is not None:
                    self.resolve_statement(stmt.init)
                if stmt.condition is not None:
                    stmt.condition = self.condition(stmt.condition)
                if stmt.post is not None:
                    stmt.post = self.value(stmt.post)
                if stmt.body is not None:
                    self._loop_body(stmt.body)
            finally:
                self.arena.exit()

        elif isinstance(stmt, SwitchStatement):
            self._resolve_switch(stmt)

        elif isinstance(stmt, CaseStatement):
            self._resolve_case(stmt)

        elif isinstance(stmt, DefaultStatement):
            context = self._switches[-1] if self._switches else None
            if context is None:
                self.error('E310', "'default' statement not in switch statement", stmt.pos)
            elif id(stmt) not in context.top_level:
                self.error('E315', "'default' label nested inside another statement is not supported", stmt.pos)
            elif context.has_default:
                self.error('E312', "multiple default labels in one switch", stmt.pos)
            else:
                context.has_default = True
            self.resolve_statement(stmt.body)

        elif isinstance(stmt, ReturnStatement):
            self._resolve_return(stmt)

        elif isinstance(stmt, BreakStatement):
            if not self._breakables:
                self.error('E310', "'break' statement not in loop or switch statement", stmt.pos)

        elif isinstance(stmt, ContinueStatement):
            if 'loop' not in self._breakables:
                self.error('E310', "'continue' statement not in loop statement", stmt.pos)

        elif isinstance(stmt, GotoStatement):
            self.error('E315', "'goto' is not supported", stmt.pos)

        elif isinstance(stmt, LabeledStatement):
            self.error('E315', f"label '{stmt.label}' is not supported", stmt.pos)
            self.resolve_statement(stmt.body)

    def _loop_body(self, body: Statement) -> None:
        self._breakables.append('loop')
        try:
            self.resolve_statement(body)
        finally:
            self._breakables.pop()

    def _resolve_switch(self, stmt: SwitchStatement) -> None:
        expression = self.value(stmt.expression)
        ctype = expression.ctype
        if ctype is not None and not ctype.is_error and not ctype.is_integer:
            self.error('E305', f"statement requires expression of integer type ('{ctype}' invalid)", expression.pos)
            ctype = ERROR
        elif ctype is not None and not ctype.is_error:
            ctype = integer_promote(ctype)
            expression = self.convert(expression, ctype)
        stmt.expression = expression

        context = _SwitchContext(ctype=ctype or ERROR)
        top = stmt.body.statements if isinstance(stmt.body, CompoundStatement) else [stmt.body]
        for item in top:
            while isinstance(item, (CaseStatement, DefaultStatement)):
                context.top_level.add(id(item))
                item = item.body

        self._switches.append(context)
        self._breakables.append('switch')
        try:
            self.resolve_statement(stmt.body)
        finally:
            self._breakables.pop()
            self._switches.pop()

    def _resolve_case(self, stmt: CaseStatement) -> None:
        context = self._switches[-1] if self._switches else None
        stmt.value = self.value(stmt.value)
        if context is None:
            self.error('E310', "'case' statement not in switch statement", stmt.pos)
        elif id(stmt) not in context.top_level:
            self.error('E315', "'case' label nested inside another statement is not supported", stmt.pos)
        elif stmt.value.ctype is not None and not stmt.value.ctype.is_error:
            folded = evaluate_integer(stmt.value)
            if folded is None:
                self.error('E311', 'case value is not a constant expression', stmt.value.pos)
            else:
                folded = wrap_integer(folded, context.ctype)
                if folded in context.values:
                    self.error('E312', f"duplicate case value '{folded}'", stmt.value.pos)
                else:
                    context.values[folded] = stmt.pos
                stmt.resolved_value = folded
        self.resolve_statement(stmt.body)

    def _resolve_return(self, stmt: ReturnStatement) -> None:
        return_type = self.return_type
        name = self.function.name if self.function is not None else '?'
        if stmt.expression is None:
            if return_type is not None and not return_type.is_void and not return_type.is_error:
                self.warning('W303', f"non-void function '{name}' should return a value", stmt.pos)
            return
        value = self.value(stmt.expression)
        if return_type is None or return_type.is_error or value.ctype is None or value.ctype.is_error:
            stmt.expression = value
            return
        if return_type.is_void:
            if not value.ctype.is_void:
                self.error('E303', f"void function '{name}' should not return a value", stmt.pos)
            stmt.expression = value
            return
        stmt.expression = self.assign_convert(return_type, value, 'returning', stmt.pos)


def resolve(unit: TranslationUnit, diagnostics: Diagnostics, builtins: Optional[BuiltinTable] = None) -> TranslationUnit:
    """Resolve names and types in unit, reporting problems to diagnostics."""
    return Resolver(diagnostics, builtins).resolve(unit)


# =============================================================================
# HELPERS
# =============================================================================

def _merge(existing: Optional[Expression], value: Expression) -> Expression:
    """Combine two initializers for the same subobject; nested designators add to earlier ones."""
    if isinstance(existing, InitializerList) and isinstance(value, InitializerList):
        combined = dict(existing.entries)
        combined.update(value.entries)
        target = existing.ctype.strip() if existing.ctype is not None else None
        if isinstance(target, StructType):
            entries = [(f.name, combined[f.name]) for f in target.fields if f.name in combined]
        else:
            entries = sorted(combined.items(), key=lambda e: e[0])
        return InitializerList(entries=entries, ctype=existing.ctype, pos=existing.pos)
    return value


def _has_error(expr: Expression) -> bool:
    if isinstance(expr, InitializerList):
        return any(_has_error(value) for _, value in expr.entries)
    return expr.ctype is not None and expr.ctype.is_error
