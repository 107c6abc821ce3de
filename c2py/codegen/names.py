"""
Python identifier allocation for generated modules.

C identifiers become Python identifiers unchanged unless they collide with a
Python keyword or builtin (a trailing underscore is added) or with another
name already handed out in the same namespace (a numeric suffix is added).
"""

import builtins
import keyword
from typing import Dict, Iterable, Optional, Set


# Names the generated module binds itself
RESERVED_MODULE_NAMES = frozenset({'sys', '_rt'})

BUILTIN_NAMES = frozenset(dir(builtins))


def python_name(name: str) -> str:
    """Map a C identifier to a Python identifier that shadows nothing."""
    if keyword.iskeyword(name) or name in BUILTIN_NAMES:
        return name + '_'
    return name


class NameAllocator:
    """Hands out unique Python names within one namespace.

    A function-level allocator is created with the module allocator as its
    parent so locals never shadow module-level names.
    """

    def __init__(self, reserved: Iterable[str] = (), parent: Optional['NameAllocator'] = None):
        self._used: Set[str] = set(reserved)
        self._parent = parent

    def is_used(self, name: str) -> bool:
        if name in self._used:
            return True
        return self._parent is not None and self._parent.is_used(name)

    def allocate(self, name: str) -> str:
        base = python_name(name)
        candidate = base
        counter = 1
        while self.is_used(candidate):
            candidate = f'{base}_{counter}'
            counter += 1
        self._used.add(candidate)
        return candidate


# Attributes of the runtime Struct base class
STRUCT_ATTRIBUTES = frozenset({'copy', 'assign_from'})


def _attribute_base(name: str) -> str:
    mapped = python_name(name)
    if mapped.startswith('__'):
        # private name mangling would apply inside the class body
        return 'm' + mapped
    if mapped in STRUCT_ATTRIBUTES:
        return mapped + '_'
    return mapped


def member_names(members: Iterable[str]) -> Dict[str, str]:
    """Attribute names for the members of one struct or union.

    Members that are already safe attribute names keep them and the others
    are renamed around those, so a renamed member never takes the name of
    another member.
    """
    members = list(members)
    allocator = NameAllocator(STRUCT_ATTRIBUTES)
    names: Dict[str, str] = {}
    for member in members:
        if _attribute_base(member) == member:
            names[member] = allocator.allocate(member)
    for member in members:
        if member not in names:
            names[member] = allocator.allocate(_attribute_base(member))
    return names
