
# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from dataclasses import dataclass
import struct

import numpy as np


class DecodeError(ValueError):
    pass

class TypeMismatchError(TypeError):
    pass


@dataclass(frozen=True)
class Primitive:
    name: str     # name as written in the log's format definitions
    short: str
    stype: str    # struct module type
    width: int

    @property
    def dtype(self):
        return np.dtype('<' + self.stype) if self.stype != 'c' else np.dtype('S1')

    def __str__(self):
        return self.name

# Wire order of the log format.  Widths are fixed by the format, never measured.
_primitive_list = [
    Primitive('uint8_t',  'u8',   'B', 1),
    Primitive('int8_t',   'i8',   'b', 1),
    Primitive('uint16_t', 'u16',  'H', 2),
    Primitive('int16_t',  'i16',  'h', 2),
    Primitive('uint32_t', 'u32',  'I', 4),
    Primitive('int32_t',  'i32',  'i', 4),
    Primitive('uint64_t', 'u64',  'Q', 8),
    Primitive('int64_t',  'i64',  'q', 8),
    Primitive('float',    'f32',  'f', 4),
    Primitive('double',   'f64',  'd', 8),
    Primitive('bool',     'bool', '?', 1),
    Primitive('char',     'char', 'c', 1),
]

assert all(struct.calcsize('<' + p.stype) == p.width for p in _primitive_list)

primitives = {p.name: p for p in _primitive_list}

# All the spellings we accept for a primitive: uint8_t, uint8, u8, float, f32...
_aliases = {alias: p
            for p in _primitive_list
            for alias in {p.name, p.short, p.name.removesuffix('_t')}}

def lookup(name):
    if isinstance(name, Primitive):
        return name
    return _aliases.get(name)

def check_kind(kind, expected):
    want = lookup(expected)
    if want is None:
        raise TypeMismatchError('Unknown primitive type %r' % (expected,))
    if want != kind:
        raise TypeMismatchError('Requested %s but field is %s' % (want.name, kind.name))


def _check_bounds(buf, offset, size):
    if offset < 0 or offset + size > len(buf):
        raise DecodeError('Read of %d bytes at %d exceeds buffer of %d bytes'
                          % (size, offset, len(buf)))

def decode(kind, buf, offset=0):
    _check_bounds(buf, offset, kind.width)
    val, = struct.unpack_from('<' + kind.stype, buf, offset)
    if kind.stype == 'c':
        val = val.decode('latin_1')
    return val

def decode_array(kind, buf, offset, count):
    _check_bounds(buf, offset, kind.width * count)
    vals = struct.unpack_from('<%d%s' % (count, kind.stype), buf, offset)
    if kind.stype == 'c':
        vals = [v.decode('latin_1') for v in vals]
    return list(vals)

def decode_text(buf, offset, count, trim=False):
    # every byte maps to one character, so the result is never longer than count
    _check_bounds(buf, offset, count)
    s = bytes(buf[offset:offset + count])
    if trim:
        zero = s.find(0)
        if zero >= 0: s = s[:zero]
    return s.decode('latin_1')


@dataclass(frozen=True)
class DecodedValue:
    kind: Primitive
    value: object

    def expect(self, kind):
        check_kind(self.kind, kind)
        return self.value

    def as_u8(self):   return self.expect('u8')
    def as_i8(self):   return self.expect('i8')
    def as_u16(self):  return self.expect('u16')
    def as_i16(self):  return self.expect('i16')
    def as_u32(self):  return self.expect('u32')
    def as_i32(self):  return self.expect('i32')
    def as_u64(self):  return self.expect('u64')
    def as_i64(self):  return self.expect('i64')
    def as_f32(self):  return self.expect('f32')
    def as_f64(self):  return self.expect('f64')
    def as_bool(self): return self.expect('bool')
    def as_char(self): return self.expect('char')

def decode_value(kind, buf, offset=0):
    return DecodedValue(kind, decode(kind, buf, offset))
