"""
Unit tests for the runtime support library used by generated modules.

Run with: python3 -m pytest c2py/test_runtime.py
"""

import contextlib
import io
import math
import operator
import unittest

import c2py.runtime as _rt
from c2py.runtime import Ptr, Struct


class Point(Struct):
    __slots__ = ('x', 'y')

    def __init__(self, x=0, y=0):
        self.x = x
        self.y = y


class Polygon(Struct):
    __slots__ = ('count', 'points')

    def __init__(self):
        self.count = 0
        self.points = [Point() for _ in range(2)]


def c_string(text):
    return Ptr(_rt.cstr(text), 0)


class TestIntegers(unittest.TestCase):
    """Wrap-around, division and float conversions."""

    def test_signed_wrap(self):
        self.assertEqual(_rt.i8(200), -56)
        self.assertEqual(_rt.i16(0x8000), -32768)
        self.assertEqual(_rt.i32(2 ** 31), -2 ** 31)
        self.assertEqual(_rt.i32(-2 ** 31 - 1), 2 ** 31 - 1)
        self.assertEqual(_rt.i64(2 ** 63), -2 ** 63)

    def test_unsigned_wrap(self):
        self.assertEqual(_rt.u8(-1), 255)
        self.assertEqual(_rt.u16(70000), 4464)
        self.assertEqual(_rt.u32(-1), 4294967295)
        self.assertEqual(_rt.u64(-1), 2 ** 64 - 1)

    def test_division_truncates(self):
        self.assertEqual(_rt.idiv(-7, 2), -3)
        self.assertEqual(_rt.idiv(7, -2), -3)
        self.assertEqual(_rt.idiv(-7, -2), 3)
        self.assertEqual(_rt.imod(-7, 2), -1)
        self.assertEqual(_rt.imod(7, -2), 1)

    def test_integer_division_by_zero(self):
        with self.assertRaises(ZeroDivisionError):
            _rt.idiv(1, 0)
        with self.assertRaises(ZeroDivisionError):
            _rt.imod(1, 0)

    def test_float_division_by_zero(self):
        self.assertEqual(_rt.fdiv(1.0, 0.0), math.inf)
        self.assertEqual(_rt.fdiv(-1.0, 0.0), -math.inf)
        self.assertEqual(_rt.fdiv(1.0, -0.0), -math.inf)
        self.assertTrue(math.isnan(_rt.fdiv(0.0, 0.0)))
        self.assertEqual(_rt.fdiv(3.0, 2.0), 1.5)

    def test_float32_rounding(self):
        self.assertNotEqual(_rt.f32(0.1), 0.1)
        self.assertAlmostEqual(_rt.f32(0.1), 0.1, places=7)
        self.assertEqual(_rt.f32(0.5), 0.5)
        self.assertEqual(_rt.f32(1e39), math.inf)

    def test_conversions(self):
        self.assertEqual(_rt.to_int(-2.7), -2)
        self.assertEqual(_rt.to_int(2.7), 2)
        with self.assertRaises(OverflowError):
            _rt.to_int(math.nan)
        self.assertEqual(_rt.to_bool(0.0), 0)
        self.assertEqual(_rt.to_bool(-3), 1)
        self.assertEqual(_rt.to_bool(None), 0)
        self.assertEqual(_rt.to_bool(Ptr([0])), 1)


class TestPointers(unittest.TestCase):

    def test_indexing_and_arithmetic(self):
        a = [10, 20, 30]
        p = Ptr(a, 0)
        self.assertEqual((p + 2)[0], 30)
        self.assertEqual((1 + p)[0], 20)
        self.assertEqual((p + 2) - p, 2)
        self.assertEqual(((p + 2) - 1)[0], 20)
        (p + 1)[1] = 99
        self.assertEqual(a, [10, 20, 99])

    def test_negative_index_is_relative(self):
        a = [1, 2, 3]
        self.assertEqual(Ptr(a, 2)[-1], 2)
        with self.assertRaises(IndexError):
            Ptr(a, 0)[-1]

    def test_comparison(self):
        a = [1, 2, 3]
        self.assertEqual(Ptr(a, 1), Ptr(a, 0) + 1)
        self.assertNotEqual(Ptr(a, 0), Ptr([1, 2, 3], 0))
        self.assertNotEqual(Ptr(a, 0), None)
        self.assertTrue(Ptr(a, 0) < Ptr(a, 2))
        self.assertTrue(Ptr(a, 2) >= Ptr(a, 2))
        self.assertTrue(Ptr(a, 0))

    def test_member_pointer(self):
        pt = Point(1, 2)
        p = Ptr(_rt.AttrCell(pt, 'x'), 0)
        p[0] = 5
        self.assertEqual(pt.x, 5)
        self.assertEqual(p, Ptr(_rt.AttrCell(pt, 'x'), 0))
        self.assertNotEqual(p, Ptr(_rt.AttrCell(pt, 'y'), 0))
        with self.assertRaises(IndexError):
            p[1]

    def test_address(self):
        a = [0, 0]
        self.assertEqual(_rt.address(None), 0)
        self.assertEqual(_rt.address(Ptr(a, 1)) - _rt.address(Ptr(a, 0)), 1)


class TestHeap(unittest.TestCase):
    """malloc'd blocks and their first typed cast."""

    def test_malloc_then_cast(self):
        p = _rt.malloc(16)
        self.assertIsInstance(p.buf, _rt.Block)
        self.assertEqual(len(p.buf), 16)
        q = _rt.ptr_cast(p, 8, int)
        self.assertEqual(len(q.buf), 2)
        self.assertEqual(q.buf.element_size, 8)
        self.assertIs(_rt.ptr_cast(q, 8, int), q)

    def test_cast_to_struct(self):
        q = _rt.ptr_cast(_rt.malloc(16), 8, Point)
        self.assertEqual(len(q.buf), 2)
        self.assertIsInstance(q[1], Point)
        self.assertIsNot(q[0], q[1])

    def test_char_cast_keeps_bytes(self):
        p = _rt.malloc(4)
        self.assertIs(_rt.ptr_cast(p, 1, int), p)
        self.assertIsNone(p.buf.element_size)
        self.assertIsNone(_rt.ptr_cast(None, 4, int))

    def test_realloc_keeps_contents(self):
        q = _rt.ptr_cast(_rt.malloc(8), 4, int)
        q[0], q[1] = 7, 8
        r = _rt.realloc(q, 16)
        self.assertEqual(list(r.buf), [7, 8, 0, 0])
        r = _rt.realloc(r, 4)
        self.assertEqual(list(r.buf), [7])
        self.assertEqual(len(_rt.realloc(None, 3).buf), 3)
        with self.assertRaises(ValueError):
            _rt.realloc(Ptr([1]), 8)

    def test_calloc_and_free(self):
        p = _rt.calloc(2, 4)
        self.assertEqual(list(p.buf), [0] * 8)
        _rt.free(p)
        self.assertEqual(len(p.buf), 0)
        _rt.free(None)


class TestStrings(unittest.TestCase):

    def test_cstr(self):
        self.assertEqual(_rt.cstr(b'hi'), [104, 105, 0])
        self.assertEqual(_rt.cstr(b'abc', 3), [97, 98, 99])
        self.assertEqual(_rt.cstr(b'a', 4), [97, 0, 0, 0])
        self.assertEqual(_rt.cstr(b'\xe9'), [-23, 0])

    def test_read_cstr(self):
        self.assertEqual(_rt.read_cstr(c_string(b'hello') + 1), b'ello')
        self.assertEqual(_rt.read_cstr(Ptr([-23, 0])), b'\xe9')
        with self.assertRaises(ValueError):
            _rt.read_cstr(None)

    def test_argv(self):
        args = _rt.argv(['prog', 'x'])
        self.assertEqual(_rt.read_cstr(args[0]), b'prog')
        self.assertEqual(_rt.read_cstr(args[1]), b'x')
        self.assertIsNone(args[2])

    def test_strlen_and_strcpy(self):
        buf = [0] * 8
        _rt.strcpy(Ptr(buf, 0), c_string(b'abc'))
        self.assertEqual(buf[:4], [97, 98, 99, 0])
        self.assertEqual(_rt.strlen(Ptr(buf, 0)), 3)

    def test_strcmp(self):
        self.assertEqual(_rt.strcmp(c_string(b'abc'), c_string(b'abc')), 0)
        self.assertEqual(_rt.strcmp(c_string(b'abc'), c_string(b'abd')), -1)
        self.assertEqual(_rt.strcmp(c_string(b'ab'), c_string(b'abc')), -99)
        self.assertGreater(_rt.strcmp(c_string(b'\xff'), c_string(b'a')), 0)


class TestMemory(unittest.TestCase):

    def test_memset_zero(self):
        buf = [1, 2, 3]
        _rt.memset(Ptr(buf, 0), 0, 12, 4)
        self.assertEqual(buf, [0, 0, 0])

    def test_memset_replicates_byte(self):
        buf = [0, 0]
        _rt.memset(Ptr(buf, 0), 1, 8, 4)
        self.assertEqual(buf, [0x01010101, 0x01010101])
        buf = [0]
        _rt.memset(Ptr(buf, 0), 255, 4, 4)
        self.assertEqual(buf, [-1])

    def test_memset_struct(self):
        buf = [Point(1, 2)]
        _rt.memset(Ptr(buf, 0), 0, 8, 8)
        self.assertEqual(buf[0], Point(0, 0))
        with self.assertRaises(ValueError):
            _rt.memset(Ptr(buf, 0), 1, 8, 8)

    def test_memcpy(self):
        dst = [0, 0, 0]
        _rt.memcpy(Ptr(dst, 0), Ptr([1, 2, 3], 0), 8, 4)
        self.assertEqual(dst, [1, 2, 0])

    def test_memcpy_structs_in_place(self):
        target = Point()
        dst = [target]
        src = [Point(3, 4)]
        _rt.memcpy(Ptr(dst, 0), Ptr(src, 0), 8, 8)
        self.assertIs(dst[0], target)
        self.assertEqual(target, Point(3, 4))
        self.assertIsNot(dst[0], src[0])


class TestStructs(unittest.TestCase):

    def test_copy_is_deep(self):
        poly = Polygon()
        poly.points[0].x = 5
        clone = poly.copy()
        self.assertEqual(clone, poly)
        clone.points[0].x = 9
        self.assertEqual(poly.points[0].x, 5)

    def test_assign_from(self):
        a, b = Point(1, 2), Point(3, 4)
        self.assertIs(a.assign_from(b), a)
        self.assertEqual(a, b)
        b.x = 0
        self.assertEqual(a.x, 3)
        self.assertIs(_rt.struct_assign(a, b), a)
        self.assertEqual(a.x, 0)

    def test_equality_needs_same_type(self):
        self.assertNotEqual(Point(), Polygon())
        self.assertEqual(repr(Point(1, 2)), 'Point(x=1, y=2)')

    def test_build(self):
        self.assertEqual(_rt.build(Point(), x=3), Point(3, 0))

    def test_array_init(self):
        self.assertEqual(_rt.array_init(3, int, {1: 5}), [0, 5, 0])
        points = _rt.array_init(2, Point, {})
        self.assertIsNot(points[0], points[1])

    def test_copy_value(self):
        nested = [[1, 2], [Point(1, 1)]]
        clone = _rt.copy_value(nested)
        self.assertEqual(clone, nested)
        self.assertIsNot(clone[1][0], nested[1][0])
        p = Ptr(nested, 0)
        self.assertIs(_rt.copy_value(p), p)


class TestExpressionHelpers(unittest.TestCase):

    def test_first_and_last(self):
        self.assertEqual(_rt.first(1, 2, 3), 1)
        self.assertEqual(_rt.last(1, 2, 3), 3)

    def test_item_updates(self):
        values = [1, 2]
        self.assertEqual(_rt.assign_item(values, 0, 7), 7)
        self.assertEqual(_rt.update_item(values, 1, operator.add, 5), 7)
        self.assertEqual(_rt.post_update_item(values, 1, operator.sub, 1), 7)
        self.assertEqual(values, [7, 6])

    def test_attribute_updates(self):
        pt = Point(1, 2)
        self.assertEqual(_rt.assign_attr(pt, 'x', 4), 4)
        self.assertEqual(_rt.update_attr(pt, 'y', lambda v: _rt.i32(v * 3)), 6)
        self.assertEqual(_rt.post_update_attr(pt, 'x', operator.add, 1), 4)
        self.assertEqual((pt.x, pt.y), (5, 6))


class TestFormat(unittest.TestCase):
    """printf conversions."""

    def test_integers(self):
        self.assertEqual(_rt.format_c(b'%5d|%-3d|%03d', [42, 7, 5]), b'   42|7  |005')
        self.assertEqual(_rt.format_c(b'%x %X %o %u', [255, 255, 8, -1]), b'ff FF 10 4294967295')
        self.assertEqual(_rt.format_c(b'%lx', [-1]), b'ffffffffffffffff')
        self.assertEqual(_rt.format_c(b'%#o %#x', [8, 255]), b'010 0xff')

    def test_floats(self):
        self.assertEqual(_rt.format_c(b'%.2f %e', [3.14159, 12345.678]), b'3.14 1.234568e+04')
        self.assertEqual(_rt.format_c(b'%g', [0.5]), b'0.5')

    def test_star_width_and_precision(self):
        self.assertEqual(_rt.format_c(b'%*d', [4, 9]), b'   9')
        self.assertEqual(_rt.format_c(b'%*d|', [-3, 1]), b'1  |')
        self.assertEqual(_rt.format_c(b'%.*f', [1, 2.25]), b'2.2')

    def test_strings_chars_and_pointers(self):
        self.assertEqual(_rt.format_c(b'%s!', [c_string(b'hi')]), b'hi!')
        self.assertEqual(_rt.format_c(b'%c%%', [65]), b'A%')
        self.assertEqual(_rt.format_c(b'%p', [None]), b'(nil)')
        self.assertTrue(_rt.format_c(b'%p', [Ptr([0])]).startswith(b'0x'))

    def test_too_few_arguments(self):
        with self.assertRaises(ValueError):
            _rt.format_c(b'%d %d', [1])


class TestStdio(unittest.TestCase):

    def capture(self, fn, *args):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            result = fn(*args)
        return result, out.getvalue()

    def test_printf(self):
        result, text = self.capture(_rt.printf, c_string(b'%d-%s\n'), 3, c_string(b'x'))
        self.assertEqual(text, '3-x\n')
        self.assertEqual(result, 4)

    def test_puts_and_putchar(self):
        result, text = self.capture(_rt.puts, c_string(b'line'))
        self.assertEqual((result, text), (5, 'line\n'))
        result, text = self.capture(_rt.putchar, 321)
        self.assertEqual((result, text), (65, 'A'))


class TestProcessAndMath(unittest.TestCase):

    def test_exit(self):
        with self.assertRaises(SystemExit) as cm:
            _rt.c_exit(259)
        self.assertIsInstance(cm.exception, _rt.CExit)
        self.assertEqual(cm.exception.code, 3)

    def test_assert(self):
        _rt.c_assert(1)
        err = io.StringIO()
        with contextlib.redirect_stderr(err):
            with self.assertRaises(_rt.CExit) as cm:
                _rt.c_assert(0)
        self.assertEqual(cm.exception.code, 134)
        self.assertIn('Assertion failed', err.getvalue())

    def test_math(self):
        self.assertEqual(_rt.c_abs(-3), 3)
        self.assertEqual(_rt.fabs(-2.5), 2.5)
        self.assertEqual(_rt.sqrt(9.0), 3.0)
        self.assertTrue(math.isnan(_rt.sqrt(-1.0)))
        self.assertEqual(_rt.pow(2.0, 10.0), 1024.0)
        self.assertEqual(_rt.pow(10.0, 400.0), math.inf)


if __name__ == '__main__':
    unittest.main()
