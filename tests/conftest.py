import struct

import pytest

MAGIC = b'ULog\x01\x12\x35'


class LogBuilder:
    """Writes synthetic logs frame by frame."""

    def __init__(self, version=1, start_time=0, magic=MAGIC):
        self.data = bytearray(magic + struct.pack('<BQ', version, start_time))

    def frame(self, tag, payload):
        self.data += struct.pack('<HB', len(payload), ord(tag)) + payload
        return self

    def format(self, text):
        return self.frame('F', text.encode('utf-8'))

    def add(self, msg_id, type_name, multi_id=0):
        return self.frame('A', struct.pack('<BH', multi_id, msg_id) + type_name.encode('utf-8'))

    def remove(self, msg_id):
        return self.frame('R', struct.pack('<H', msg_id))

    def sample(self, msg_id, payload):
        return self.frame('D', struct.pack('<H', msg_id) + payload)

    def _key_value(self, typ, name, value):
        key = ('%s %s' % (typ, name)).encode('utf-8')
        return bytes([len(key)]) + key + value

    def info(self, typ, name, value):
        return self.frame('I', self._key_value(typ, name, value))

    def info_multiple(self, typ, name, value, is_continued=False):
        return self.frame('M', bytes([int(is_continued)]) + self._key_value(typ, name, value))

    def parameter(self, typ, name, value):
        return self.frame('P', self._key_value(typ, name, value))

    def log_line(self, level, timestamp, text):
        return self.frame('L', struct.pack('<BQ', ord(str(level)), timestamp) + text.encode('utf-8'))

    def dropout(self, ms):
        return self.frame('O', struct.pack('<H', ms))

    def sync(self):
        return self.frame('S', b'\x2f\x73\x13\x20\x25\x0c\xbb\x12')

    def flag_bits(self, compat=b'\0' * 8, incompat=b'\0' * 8, offsets=(0, 0, 0)):
        return self.frame('B', compat + incompat + struct.pack('<3Q', *offsets))

    def raw(self, data):
        self.data += data
        return self

    def build(self):
        return bytes(self.data)


@pytest.fixture
def new_log():
    return LogBuilder


def floats(*vals):
    return struct.pack('<%df' % len(vals), *vals)


@pytest.fixture
def pos_log(new_log):
    b = new_log(start_time=1_000_000)
    b.format('pos:float x;float y;float z;')
    b.add(1, 'pos')
    for v in [(1.0, 2.0, 3.0), (4.0, 5.0, 6.0), (7.0, 8.0, 9.0)]:
        b.sample(1, floats(*v))
    return b.build()
