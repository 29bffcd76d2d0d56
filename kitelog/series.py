
# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import numpy as np

from . import paths
from . import primitives
from .primitives import TypeMismatchError
from .schema import Builtin, BuiltinArray


def _is_text(leaf):
    return isinstance(leaf, (Builtin, BuiltinArray)) and leaf.kind.name == 'char'


class SeriesReader:
    """Cursor over every logged sample of one type.

    Paths are resolved once per reader and reused for every sample."""

    def __init__(self, registry, series, trim_text=False):
        self.registry = registry
        self.type_name = series.type_name
        self.series = series
        self.trim_text = trim_text
        self.index = 0
        self._resolved = {}

    def __len__(self):
        return len(self.series)

    def resolved(self, path):
        try:
            return self._resolved[path]
        except KeyError:
            pass
        rp = paths.resolve_or_raise(self.registry, self.type_name, path)
        self._resolved[path] = rp
        return rp

    # Single sample access

    def _payload(self, index):
        if not 0 <= index < len(self.series):
            raise IndexError('%s has no sample %d (%d logged)'
                             % (self.type_name, index, len(self.series)))
        return self.series.payloads[index]

    def value_at(self, index, path, kind=None):
        rp = self.resolved(path)
        leaf = rp.leaf
        buf = self._payload(index)
        if isinstance(leaf, Builtin):
            if kind is not None:
                primitives.check_kind(leaf.kind, kind)
            return primitives.decode(leaf.kind, buf, rp.offset)
        if isinstance(leaf, BuiltinArray) and leaf.is_text:
            if kind is not None:
                primitives.check_kind(leaf.kind, kind)
            return primitives.decode_text(buf, rp.offset, leaf.count, self.trim_text)
        raise TypeMismatchError('%s.%s is %s, not a single value'
                                % (self.type_name, path, leaf.type_text))

    def decoded_at(self, index, path):
        rp = self.resolved(path)
        if not isinstance(rp.leaf, Builtin):
            raise TypeMismatchError('%s.%s is %s, not a single value'
                                    % (self.type_name, path, rp.leaf.type_text))
        return primitives.decode_value(rp.leaf.kind, self._payload(index), rp.offset)

    def array_at(self, index, path, kind=None):
        rp = self.resolved(path)
        leaf = self._array_leaf(rp, path, kind)
        return primitives.decode_array(leaf.kind, self._payload(index),
                                       rp.offset, leaf.count)

    def value(self, path, kind=None):
        return self.value_at(self.index, path, kind)

    def values(self, path, kind=None):
        return self.array_at(self.index, path, kind)

    def map_all(self, path, transform):
        """One transform() result per sample, in log order.

        With a path, transform gets that field's value; with path=None it
        gets this reader positioned on each sample in turn."""
        ret = []
        for i in range(len(self)):
            if path is None:
                self.index = i
                ret.append(transform(self))
            else:
                ret.append(transform(self.value_at(i, path)))
        return ret

    # Whole series access

    def column(self, path, kind=None):
        rp = self.resolved(path)
        leaf = rp.leaf
        if _is_text(leaf):
            return [self.value_at(i, path, kind) for i in range(len(self))]
        if not isinstance(leaf, Builtin):
            raise TypeMismatchError('%s.%s is %s, not a single value'
                                    % (self.type_name, path, leaf.type_text))
        if kind is not None:
            primitives.check_kind(leaf.kind, kind)
        return self._gather(rp.offset, leaf.kind, 1).reshape((len(self),))

    def column_array(self, path, kind=None):
        rp = self.resolved(path)
        leaf = self._array_leaf(rp, path, kind)
        return self._gather(rp.offset, leaf.kind, leaf.count)

    def _array_leaf(self, rp, path, kind):
        leaf = rp.leaf
        if not isinstance(leaf, BuiltinArray):
            raise TypeMismatchError('%s.%s is %s, not an array of values'
                                    % (self.type_name, path, leaf.type_text))
        if leaf.is_text:
            raise TypeMismatchError('%s.%s is text, read it as a single value'
                                    % (self.type_name, path))
        if kind is not None:
            primitives.check_kind(leaf.kind, kind)
        return leaf

    def _gather(self, offset, prim, count):
        payloads = self.series.payloads
        n = len(payloads)
        if not n:
            return np.empty((0, count), dtype=prim.dtype)
        size = len(payloads[0])
        if offset + prim.width * count <= size and all(len(p) == size for p in payloads):
            # every sample has the same layout, so view them all at once
            data = b''.join(payloads)
            return np.ndarray(buffer=data, dtype=prim.dtype,
                              shape=(n, count), offset=offset,
                              strides=(size, prim.width)).copy()
        return np.array([primitives.decode_array(prim, p, offset, count) for p in payloads],
                        dtype=prim.dtype).reshape((n, count))
