
# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

# Schemas form trees of immutable values.  A nested type that hasn't
# been defined yet is a Composite/CompositeArray with schema=None.
# Whenever a new definition shows up, the registry rebuilds every tree
# that mentions it (and the new one from the existing trees), so
# definitions can arrive in any order.

from dataclasses import dataclass
import re
from typing import Optional, Tuple

from . import primitives


class UnresolvedTypeError(Exception):
    def __init__(self, type_name):
        super().__init__('Type %s was never defined' % type_name)
        self.type_name = type_name

class SchemaSyntaxError(ValueError):
    pass


@dataclass(frozen=True)
class Builtin:
    kind: primitives.Primitive

    def byte_count(self):
        return self.kind.width

    def expanded(self, schema):
        return self

    @property
    def type_text(self):
        return self.kind.name

    def describe(self):
        return []

@dataclass(frozen=True)
class BuiltinArray:
    kind: primitives.Primitive
    count: int

    def byte_count(self):
        return self.kind.width * self.count

    def expanded(self, schema):
        return self

    @property
    def is_text(self):
        return self.kind.name == 'char'

    @property
    def type_text(self):
        return '%s[%d]' % (self.kind.name, self.count)

    def describe(self):
        return []

@dataclass(frozen=True)
class Composite:
    name: str
    schema: Optional['Schema'] = None

    def element_schema(self):
        if self.schema is None:
            raise UnresolvedTypeError(self.name)
        return self.schema

    def byte_count(self):
        return self.element_schema().byte_count()

    def expanded(self, schema):
        if schema.type_name == self.name:
            return type(self)(self.name, schema)
        if self.schema is None:
            return self
        return type(self)(self.name, self.schema.expanded(schema))

    @property
    def type_text(self):
        return self.name

    def describe(self):
        if self.schema is None:
            return ['(unresolved)']
        return self.schema.describe()

@dataclass(frozen=True)
class CompositeArray:
    name: str
    count: int
    schema: Optional['Schema'] = None

    element_schema = Composite.element_schema
    describe = Composite.describe

    def byte_count(self):
        return self.element_schema().byte_count() * self.count

    def expanded(self, schema):
        if schema.type_name == self.name:
            return type(self)(self.name, self.count, schema)
        if self.schema is None:
            return self
        return type(self)(self.name, self.count, self.schema.expanded(schema))

    @property
    def type_text(self):
        return '%s[%d]' % (self.name, self.count)

ARRAYS = (BuiltinArray, CompositeArray)
COMPOSITES = (Composite, CompositeArray)


_type_re = re.compile(r'([A-Za-z_][A-Za-z0-9_]*)(?:\[([0-9]+)\])?$')

def parse_property(text):
    m = _type_re.match(text)
    if not m:
        raise SchemaSyntaxError('Bad type %r' % text)
    name, count = m.group(1), m.group(2)
    kind = primitives.lookup(name)
    if count is None:
        return Builtin(kind) if kind else Composite(name)
    count = int(count)
    if count < 1:
        raise SchemaSyntaxError('Bad array length in %r' % text)
    return BuiltinArray(kind, count) if kind else CompositeArray(name, count)


@dataclass(frozen=True)
class Schema:
    type_name: str
    fields: Tuple[Tuple[str, object], ...]
    padding: int = 0 # trailing filler bytes, not addressable

    @classmethod
    def parse(cls, text):
        """Parse 'name:type field;type field;...' into a Schema.

        Referenced types not known as primitives stay unresolved."""
        type_name, sep, body = text.partition(':')
        type_name = type_name.strip()
        if not sep or not _type_re.match(type_name) or '[' in type_name:
            raise SchemaSyntaxError('Bad format definition %r' % text)
        fields = []
        for item in body.split(';'):
            item = item.strip()
            if not item:
                continue
            parts = item.split()
            if len(parts) != 2:
                raise SchemaSyntaxError('Bad field %r in %s' % (item, type_name))
            ftype, fname = parts
            fields.append((fname, parse_property(ftype)))
        # alignment filler at the end of a type has no value to read, but
        # still takes up room when the type is nested inside another
        padding = 0
        while (fields and fields[-1][0].startswith('_padding')
               and isinstance(fields[-1][1], (Builtin, BuiltinArray))):
            padding += fields.pop()[1].byte_count()
        names = [f[0] for f in fields]
        if len(set(names)) != len(names):
            raise SchemaSyntaxError('Duplicate field names in %s' % type_name)
        return cls(type_name, tuple(fields), padding)

    def field(self, name):
        for fname, prop in self.fields:
            if fname == name:
                return prop
        return None

    def byte_count(self):
        return sum(prop.byte_count() for _, prop in self.fields) + self.padding

    def expanded(self, schema):
        if schema.type_name == self.type_name:
            return schema
        return Schema(self.type_name,
                      tuple((fname, prop.expanded(schema)) for fname, prop in self.fields),
                      self.padding)

    def unresolved(self):
        """Names of nested types still missing anywhere in the tree."""
        ret = set()
        for _, prop in self.fields:
            if isinstance(prop, COMPOSITES):
                if prop.schema is None:
                    ret.add(prop.name)
                else:
                    ret |= prop.schema.unresolved()
        return ret

    def describe(self):
        ret = []
        for fname, prop in self.fields:
            ret.append('%s: %s' % (fname, prop.type_text))
            ret += ['    ' + line for line in prop.describe()]
        return ret

    def __str__(self):
        return '\n'.join([self.type_name] + ['    ' + line for line in self.describe()])


class SchemaRegistry:
    def __init__(self):
        self._schemas = {}

    def define(self, text):
        return self.add(Schema.parse(text))

    def add(self, schema):
        for name, existing in self._schemas.items():
            if name != schema.type_name:
                schema = schema.expanded(existing)
        for name, existing in list(self._schemas.items()):
            if name != schema.type_name:
                self._schemas[name] = existing.expanded(schema)
        self._schemas[schema.type_name] = schema
        return schema

    def get(self, type_name):
        try:
            return self._schemas[type_name]
        except KeyError:
            raise UnresolvedTypeError(type_name) # pylint: disable=raise-missing-from

    def __contains__(self, type_name):
        return type_name in self._schemas

    def __iter__(self):
        return iter(self._schemas)

    def __len__(self):
        return len(self._schemas)

    def byte_count(self, type_name):
        return self.get(type_name).byte_count()

    def description(self, type_name=None):
        if type_name is not None:
            return str(self.get(type_name))
        return '\n\n'.join(str(s) for s in self._schemas.values())
