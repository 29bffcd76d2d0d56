import itertools

import pytest

from kitelog import paths
from kitelog.schema import (Builtin, BuiltinArray, Composite, CompositeArray, Schema,
                            SchemaRegistry, SchemaSyntaxError, UnresolvedTypeError)


def test_parse_simple():
    s = Schema.parse('pos:float x;float y;float z;')
    assert s.type_name == 'pos'
    assert [f[0] for f in s.fields] == ['x', 'y', 'z']
    assert all(isinstance(p, Builtin) and p.kind.name == 'float' for _, p in s.fields)
    assert s.byte_count() == 12


def test_parse_kinds():
    s = Schema.parse('m:uint64_t timestamp;float[4] q;char[10] name;gps fix;wheel[4] wheels')
    assert isinstance(s.field('q'), BuiltinArray) and s.field('q').count == 4
    assert s.field('name').is_text
    assert s.field('fix') == Composite('gps')
    assert s.field('wheels') == CompositeArray('wheel', 4)
    assert s.unresolved() == {'gps', 'wheel'}


def test_trailing_padding_not_addressable():
    s = Schema.parse('t:uint64_t timestamp;uint8_t x;uint8_t[7] _padding0;')
    assert [f[0] for f in s.fields] == ['timestamp', 'x']
    assert s.padding == 7
    assert s.byte_count() == 16


def test_padding_kept_inside_other_types():
    reg = SchemaRegistry()
    reg.define('outer:elem[2] e;uint8_t z;uint8_t[3] _padding0;')
    reg.define('elem:uint8_t a;uint8_t[3] _padding0;')
    assert reg.byte_count('elem') == 4
    assert reg.byte_count('outer') == 12
    assert paths.resolve(reg, 'outer', 'e[1].a').offset == 4
    assert paths.resolve(reg, 'outer', 'z').offset == 8
    assert paths.resolve(reg, 'outer', 'e[0]._padding0') is None


def test_padding_survives_expansion():
    reg = SchemaRegistry()
    reg.define('inner:uint16_t a;uint8_t[6] _padding0;')
    reg.define('outer:inner v;float t;')
    assert reg.get('outer').field('v').schema.padding == 6
    assert paths.resolve(reg, 'outer', 't').offset == 8


@pytest.mark.parametrize('text', [
    'no colon here',
    'a:float',
    'a:float x y',
    'a:float[0] x',
    'a:float[x] y',
    'a:float x;float x;',
    'a[2]:float x',
])
def test_bad_definitions(text):
    with pytest.raises(SchemaSyntaxError):
        Schema.parse(text)


def test_unresolved_byte_count():
    reg = SchemaRegistry()
    reg.define('outer:inner v;float t;')
    with pytest.raises(UnresolvedTypeError) as err:
        reg.byte_count('outer')
    assert err.value.type_name == 'inner'
    with pytest.raises(UnresolvedTypeError):
        reg.get('missing')


def _layout(reg):
    return {name: reg.byte_count(name) for name in reg}


def test_expansion_is_order_independent():
    a = 'a:uint16_t n;b inner;float t;'
    b = 'b:uint8_t p;uint8_t q;'
    first = SchemaRegistry()
    first.define(a)
    first.define(b)
    second = SchemaRegistry()
    second.define(b)
    second.define(a)
    assert _layout(first) == _layout(second) == {'a': 8, 'b': 2}
    for reg in (first, second):
        assert paths.resolve(reg, 'a', 'inner.q').offset == 3
        assert paths.resolve(reg, 'a', 't').offset == 4


def test_deep_chain_every_order():
    defs = [
        'top:uint64_t timestamp;mid[2] mids;',
        'mid:uint8_t flag;leaf l;',
        'leaf:float[3] v;double w;',
    ]
    expected = None
    for order in itertools.permutations(defs):
        reg = SchemaRegistry()
        for d in order:
            reg.define(d)
        layout = _layout(reg)
        offs = paths.resolve(reg, 'top', 'mids[1].l.w').offset
        if expected is None:
            expected = (layout, offs)
        assert (layout, offs) == expected
    assert expected[0] == {'top': 8 + 2 * 21, 'mid': 21, 'leaf': 20}
    assert expected[1] == 8 + 21 + 1 + 12


def test_self_reference_never_resolves():
    reg = SchemaRegistry()
    reg.define('node:uint8_t v;node next;')
    assert reg.get('node').unresolved() == {'node'}
    with pytest.raises(UnresolvedTypeError):
        reg.byte_count('node')


def test_mutual_reference_terminates():
    reg = SchemaRegistry()
    reg.define('a:uint8_t x;b other;')
    reg.define('b:uint8_t y;a other;')
    with pytest.raises(UnresolvedTypeError):
        reg.byte_count('a')


def test_redefinition_replaces_and_propagates():
    reg = SchemaRegistry()
    reg.define('inner:uint8_t a;')
    reg.define('outer:inner v;float t;')
    assert reg.byte_count('outer') == 5
    reg.define('inner:uint32_t a;uint32_t b;')
    assert reg.byte_count('inner') == 8
    assert reg.byte_count('outer') == 12


def test_description():
    reg = SchemaRegistry()
    reg.define('outer:inner v;float[2] t;')
    assert '(unresolved)' in reg.description('outer')
    reg.define('inner:uint8_t a;uint8_t b;')
    assert reg.description('outer').splitlines() == [
        'outer',
        '    v: inner',
        '        a: uint8_t',
        '        b: uint8_t',
        '    t: float[2]',
    ]
