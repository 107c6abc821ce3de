"""
Helpers that let assignments and side effects appear inside expressions.

Python statements cannot nest inside expressions. Assignments to plain names
use the walrus operator; assignments through subscripts and attributes go
through these functions, which evaluate in the order C requires and return
the value C would produce.
"""


def first(value, *_):
    """Evaluate every argument, return the first (postfix ++ and --)."""
    return value


def last(*values):
    """Evaluate every argument, return the last (the comma operator)."""
    return values[-1]


def assign_item(container, index, value):
    container[index] = value
    return value


def update_item(container, index, fn, *args):
    """container[index] = fn(container[index], *args); returns the new value."""
    value = fn(container[index], *args)
    container[index] = value
    return value


def post_update_item(container, index, fn, *args):
    """Like update_item but returns the old value."""
    old = container[index]
    container[index] = fn(old, *args)
    return old


def assign_attr(obj, name: str, value):
    setattr(obj, name, value)
    return value


def update_attr(obj, name: str, fn, *args):
    value = fn(getattr(obj, name), *args)
    setattr(obj, name, value)
    return value


def post_update_attr(obj, name: str, fn, *args):
    old = getattr(obj, name)
    setattr(obj, name, fn(old, *args))
    return old
