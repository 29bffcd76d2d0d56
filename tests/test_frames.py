import struct

from kitelog import frames
from kitelog.frames import RecordKind


def test_preamble(new_log):
    pre = frames.read_preamble(new_log(version=1, start_time=123456).build())
    assert pre.version == 1
    assert pre.start_time == 123456


def test_preamble_bad_magic(new_log):
    assert frames.read_preamble(new_log(magic=b'ULog\x01\x12\x36').build()) is None
    assert frames.read_preamble(b'ULog') is None


def test_frames_in_order(new_log):
    buf = (new_log()
           .format('a:uint8_t v;')
           .add(3, 'a')
           .sample(3, b'\x07')
           .build())
    reader = frames.FrameReader(buf)
    got = [(f.kind, bytes(f.payload)) for f in reader]
    assert got == [
        (RecordKind.FORMAT, b'a:uint8_t v;'),
        (RecordKind.ADD_LOGGED, b'\x00\x03\x00a'),
        (RecordKind.DATA, b'\x03\x00\x07'),
    ]
    assert reader.stop_reason is None
    assert reader.pos == len(buf)
    assert reader.frames == 3


def test_frame_positions(new_log):
    buf = new_log().sync().dropout(5).build()
    pos = [f.pos for f in frames.FrameReader(buf)]
    assert pos == [16, 16 + 3 + 8]


def test_unknown_tag_stops(new_log):
    buf = new_log().dropout(5).raw(struct.pack('<HB', 2, ord('Z')) + b'xx').dropout(6).build()
    reader = frames.FrameReader(buf)
    assert len(list(reader)) == 1
    assert reader.stop_reason == frames.STOP_UNKNOWN_KIND


def test_truncated_payload_stops(new_log):
    buf = new_log().dropout(5).build() + struct.pack('<HB', 10, ord('I')) + b'abc'
    reader = frames.FrameReader(buf)
    assert [f.kind for f in reader] == [RecordKind.DROPOUT]
    assert reader.stop_reason == frames.STOP_TRUNCATED


def test_truncated_header_stops(new_log):
    buf = new_log().dropout(5).build() + b'\x01'
    reader = frames.FrameReader(buf)
    assert len(list(reader)) == 1
    assert reader.stop_reason == frames.STOP_TRUNCATED


def test_empty_payload(new_log):
    buf = new_log().frame('S', b'').build()
    got = list(frames.FrameReader(buf))
    assert len(got) == 1
    assert len(got[0].payload) == 0
