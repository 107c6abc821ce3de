"""
Aggregate values for generated code.

C structs have value semantics; generated struct classes subclass Struct and
are copied explicitly wherever C would copy (assignment, argument passing,
return). Arrays are Python lists.
"""

from typing import Callable, Dict, List


def copy_value(value):
    """Deep copy of an aggregate value; scalars and pointers are returned as is."""
    if isinstance(value, Struct):
        return value.copy()
    if isinstance(value, list):
        return [copy_value(v) for v in value]
    return value


class Struct:
    """Base class of generated struct and union classes."""

    __slots__ = ()

    def copy(self) -> 'Struct':
        clone = object.__new__(type(self))
        for name in self.__slots__:
            setattr(clone, name, copy_value(getattr(self, name)))
        return clone

    def assign_from(self, other: 'Struct') -> 'Struct':
        """Copy every member of other into self, in place."""
        if other is self:
            return self
        for name in self.__slots__:
            setattr(self, name, copy_value(getattr(other, name)))
        return self

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return all(getattr(self, n) == getattr(other, n) for n in self.__slots__)

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        members = ', '.join(f'{n}={getattr(self, n)!r}' for n in self.__slots__)
        return f'{type(self).__name__}({members})'


def build(obj: Struct, **members) -> Struct:
    """Set members of a freshly constructed struct and return it."""
    for name, value in members.items():
        setattr(obj, name, value)
    return obj


def struct_assign(target: Struct, source: Struct) -> Struct:
    """Struct assignment used as an expression; the value is the target."""
    return target.assign_from(source)


def array_init(length: int, factory: Callable[[], object], values: Dict[int, object]) -> List:
    """An array of length zero values with the given index -> value entries."""
    result = [factory() for _ in range(length)]
    for index, value in values.items():
        result[index] = value
    return result
