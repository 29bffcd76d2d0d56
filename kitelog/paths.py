
# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

# pylint: disable=used-before-assignment
# pylint: disable=undefined-variable
# pylint: disable=function-redefined

# Dotted field paths: 'q', 'pos.x', 'wheels[2].temp', 'vals[3]'

from dataclasses import dataclass
from typing import List, Optional

from sly import Lexer, Parser

from .schema import ARRAYS, Builtin, BuiltinArray, Composite


class PathError(ValueError):
    pass

class PathNotFoundError(KeyError):
    def __init__(self, type_name, path):
        super().__init__('%s has no field %s' % (type_name, path))
        self.type_name = type_name
        self.path = path


@dataclass(frozen=True)
class Segment:
    name: str
    index: Optional[int] = None

class PathLex(Lexer):
    tokens = { ID, INDEX }
    literals = { '.' }

    ignore = ' \t'

    ID = r'[a-zA-Z_][a-zA-Z0-9_]*'

    @_(r'\[[0-9]+\]')
    def INDEX(self, t):
        t.value = int(t.value[1:-1])
        return t

    def error(self, t):
        raise PathError('Bad character %r in path at %d' % (t.value[0], self.index))

class PathParse(Parser):
    tokens = PathLex.tokens

    @_('segment { "." segment }')
    def path(self, p):
        return [p.segment0] + p.segment1

    @_('ID')
    def segment(self, p):
        return Segment(p.ID)

    @_('ID INDEX')
    def segment(self, p):
        return Segment(p.ID, p.INDEX)

    def error(self, token):
        if not token:
            raise PathError('Path ends unexpectedly')
        raise PathError('Unexpected %r in path' % (token.value,))

def parse(text) -> List[Segment]:
    if not text.strip():
        return []
    return PathParse().parse(PathLex().tokenize(text))


@dataclass(frozen=True)
class ResolvedPath:
    path: str
    offset: int
    leaf: object # a schema property

def _walk(schema, segments):
    """Returns (offset, leaf property) or None if there's no such field."""
    seg = segments[0]
    rest = segments[1:]
    offset = 0
    for fname, prop in schema.fields:
        if fname != seg.name:
            offset += prop.byte_count()
            continue
        if seg.index is not None:
            if not isinstance(prop, ARRAYS) or seg.index >= prop.count:
                return None
            if isinstance(prop, BuiltinArray):
                if rest:
                    return None
                return offset + seg.index * prop.kind.width, Builtin(prop.kind)
            elem = Composite(prop.name, prop.element_schema())
            offset += seg.index * elem.byte_count()
            prop = elem
        elif isinstance(prop, ARRAYS) and rest:
            # must index an array before going into it
            return None
        if not rest:
            return offset, prop
        if not isinstance(prop, Composite):
            return None
        inner = _walk(prop.element_schema(), rest)
        if inner is None:
            return None
        return offset + inner[0], inner[1]
    return None

def resolve(registry, type_name, path):
    """Locate path inside one sample of type_name.

    Returns a ResolvedPath, or None if no such field exists (unknown name
    at some level, index out of bounds, indexing a non-array).  Raises
    UnresolvedTypeError when the walk needs the layout of a type that was
    never defined, and PathError for malformed paths."""
    schema = registry.get(type_name)
    segments = parse(path)
    if not segments:
        return ResolvedPath(path, 0, Composite(type_name, schema))
    found = _walk(schema, segments)
    if found is None:
        return None
    return ResolvedPath(path, found[0], found[1])

def resolve_or_raise(registry, type_name, path):
    ret = resolve(registry, type_name, path)
    if ret is None:
        raise PathNotFoundError(type_name, path)
    return ret
