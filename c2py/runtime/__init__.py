"""
Support runtime imported by generated modules as `_rt`.

Generated code only uses the names exported here.
"""

from .integers import (
    i8,
    u8,
    i16,
    u16,
    i32,
    u32,
    i64,
    u64,
    to_bool,
    to_int,
    idiv,
    imod,
    f32,
    fdiv,
)
from .pointers import (
    Ptr,
    AttrCell,
    Block,
    ptr_cast,
    address,
    cstr,
    read_cstr,
    argv,
)
from .structs import (
    Struct,
    build,
    struct_assign,
    array_init,
    copy_value,
)
from .expressions import (
    first,
    last,
    assign_item,
    update_item,
    post_update_item,
    assign_attr,
    update_attr,
    post_update_attr,
)
from .libc import (
    CExit,
    format_c,
    printf,
    puts,
    putchar,
    malloc,
    calloc,
    realloc,
    free,
    memset,
    memcpy,
    strlen,
    strcmp,
    strcpy,
    c_abs,
    c_exit,
    c_assert,
    sqrt,
    pow,
    fabs,
)

__all__ = [
    'i8', 'u8', 'i16', 'u16', 'i32', 'u32', 'i64', 'u64',
    'to_bool', 'to_int', 'idiv', 'imod', 'f32', 'fdiv',
    'Ptr', 'AttrCell', 'Block', 'ptr_cast', 'address', 'cstr', 'read_cstr', 'argv',
    'Struct', 'build', 'struct_assign', 'array_init', 'copy_value',
    'first', 'last', 'assign_item', 'update_item', 'post_update_item',
    'assign_attr', 'update_attr', 'post_update_attr',
    'CExit', 'format_c', 'printf', 'puts', 'putchar', 'malloc', 'calloc',
    'realloc', 'free', 'memset', 'memcpy', 'strlen', 'strcmp', 'strcpy',
    'c_abs', 'c_exit', 'c_assert', 'sqrt', 'pow', 'fabs',
]
