
# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

# File layout:
#   16 byte preamble: 7 byte magic, 1 byte version, 8 byte start time (us)
#   frames: [size u16 | kind u8 | payload (size bytes)]...
# All little endian.  Changing any of this requires a version bump on
# the producing side.

from dataclasses import dataclass
import enum
import struct

MAGIC = b'ULog\x01\x12\x35'
PREAMBLE = struct.Struct('<7sBQ')
PREAMBLE_LEN = PREAMBLE.size # 16
HEADER = struct.Struct('<HB')
HEADER_LEN = HEADER.size # 3

class RecordKind(enum.Enum):
    FORMAT = 'F'
    DATA = 'D'
    INFO = 'I'
    INFO_MULTIPLE = 'M'
    PARAMETER = 'P'
    ADD_LOGGED = 'A'
    REMOVE_LOGGED = 'R'
    SYNC = 'S'
    DROPOUT = 'O'
    LOGGING = 'L'
    FLAG_BITS = 'B'

_kind_by_tag = {ord(k.value): k for k in RecordKind}

@dataclass
class Preamble:
    version: int
    start_time: int # microseconds

def read_preamble(buf):
    """Returns the Preamble, or None if the magic doesn't match.

    Version validation is left to the caller."""
    if len(buf) < PREAMBLE_LEN:
        return None
    magic, version, start_time = PREAMBLE.unpack_from(buf, 0)
    if magic != MAGIC:
        return None
    return Preamble(version, start_time)

@dataclass
class Frame:
    kind: RecordKind
    payload: memoryview
    pos: int # offset of the frame header in the file

# Reasons the frame walk ended early
STOP_UNKNOWN_KIND = 'unknown record kind'
STOP_TRUNCATED = 'truncated'

class FrameReader:
    def __init__(self, buf, pos=PREAMBLE_LEN):
        self._buf = memoryview(buf)
        self.pos = pos
        self.frames = 0
        self.stop_reason = None
        self.stop_detail = ''

    def remaining(self):
        return len(self._buf) - self.pos

    def read_header(self):
        # None at clean end of stream or when we give up on the rest
        if self.remaining() == 0:
            return None
        if self.remaining() < HEADER_LEN:
            self._stop(STOP_TRUNCATED, 'partial frame header')
            return None
        size, tag = HEADER.unpack_from(self._buf, self.pos)
        kind = _kind_by_tag.get(tag)
        if kind is None:
            self._stop(STOP_UNKNOWN_KIND, 'tag 0x%02x' % tag)
            return None
        if self.remaining() - HEADER_LEN < size:
            self._stop(STOP_TRUNCATED, '%s frame wants %d bytes, %d left'
                       % (kind.value, size, self.remaining() - HEADER_LEN))
            return None
        return size, kind

    def read_payload(self, size):
        start = self.pos + HEADER_LEN
        # length was validated by read_header, anything else is a bug
        assert start + size <= len(self._buf)
        self.pos = start + size
        self.frames += 1
        return self._buf[start:start + size]

    def _stop(self, reason, detail):
        self.stop_reason = reason
        self.stop_detail = detail

    def __iter__(self):
        while True:
            hdr = self.read_header()
            if hdr is None:
                return
            size, kind = hdr
            pos = self.pos
            yield Frame(kind, self.read_payload(size), pos)
