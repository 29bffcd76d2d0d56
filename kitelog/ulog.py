
# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import mmap
import os
import struct
from typing import Dict, List, Optional
from warnings import warn

import numpy as np

from . import base
from . import config
from . import frames
from . import paths
from . import primitives
from .frames import RecordKind
from .samples import ChannelTable, SampleStore
from .schema import Builtin, BuiltinArray, SchemaRegistry, SchemaSyntaxError, parse_property
from .series import SeriesReader


class LoadError(Exception):
    pass


class ParsedLog:
    """Everything decoded from one log.  Nothing changes after load_log
    returns, so any number of readers may use it at once."""

    def __init__(self, version, start_time, options):
        self.version: int = version
        self.start_time: int = start_time # microseconds
        self.options = options
        self.schemas = SchemaRegistry()
        self.channels = ChannelTable()
        self.samples = SampleStore(self.channels)
        self.info: Dict[str, object] = {}
        self.info_multiple: Dict[str, List[list]] = {}
        self.parameters: Dict[str, object] = {}
        self.messages: List[base.LogMessage] = []
        self.dropouts: List[base.Dropout] = []
        self.sync_count = 0
        self.frame_count = 0
        self.flag_bits: Optional[base.FlagBits] = None
        self.diagnostics: List[base.Diagnostic] = []
        self.stop_reason: Optional[str] = None

    # Reading API

    def reader(self, type_name, multi_id=None):
        return SeriesReader(self.schemas,
                            self.samples.series(type_name).select(multi_id),
                            trim_text=self.options.trim_text)

    def read(self, type_name, path, kind=None, multi_id=None):
        return self.reader(type_name, multi_id).column(path, kind)

    def read_array(self, type_name, path, kind=None, multi_id=None):
        return self.reader(type_name, multi_id).column_array(path, kind)

    def read_with(self, type_name, transform, rng=None, multi_id=None):
        r = self.reader(type_name, multi_id)
        ret = []
        for i in rng if rng is not None else range(len(r)):
            r.index = i
            ret.append(transform(r))
        return ret

    def channel(self, type_name, path, time_path='timestamp', multi_id=None):
        r = self.reader(type_name, multi_id)
        return base.Channel(np.asarray(r.column(time_path), dtype=np.int64),
                            r.column(path),
                            '%s.%s' % (type_name, path))

    # Information API

    def schema(self, type_name):
        return self.schemas.get(type_name)

    def resolve(self, type_name, path):
        return paths.resolve(self.schemas, type_name, path)

    def property(self, type_name, path=''):
        rp = self.resolve(type_name, path)
        return rp.leaf if rp else None

    def byte_offset(self, type_name, path):
        rp = self.resolve(type_name, path)
        return rp.offset if rp else None

    def type_names(self):
        return sorted(self.samples)

    def sample_count(self, type_name, multi_id=None):
        return len(self.samples.series(type_name).select(multi_id))

    def schema_description(self, type_name=None):
        return self.schemas.description(type_name)

    def __repr__(self):
        return 'ParsedLog(version=%d, frames=%d, types=%d, samples=%d)' % (
            self.version, self.frame_count, len(self.schemas),
            sum(self.samples.counts().values()))


# Frame decoders.  Each one gets the log and one payload.

def _decode_typed(log, typ, data):
    prop = parse_property(typ)
    if isinstance(prop, Builtin):
        return primitives.decode(prop.kind, data, 0)
    if isinstance(prop, BuiltinArray):
        if prop.is_text:
            return primitives.decode_text(data, 0, min(prop.count, len(data)),
                                          log.options.trim_text)
        return primitives.decode_array(prop.kind, data, 0, prop.count)
    raise SchemaSyntaxError('Nested type %s not allowed here' % typ)

def _key_value(log, payload):
    key_len = payload[0]
    key = bytes(payload[1:1 + key_len]).decode('utf-8')
    if len(payload) < 1 + key_len or ' ' not in key:
        raise ValueError('Bad key %r' % key)
    typ, name = key.split(' ', 1)
    return name, _decode_typed(log, typ, payload[1 + key_len:])

def _format(log, frame):
    log.schemas.define(bytes(frame.payload).decode('utf-8'))

def _data(log, frame):
    msg_id, = struct.unpack_from('<H', frame.payload, 0)
    if not log.samples.append_sample(msg_id, frame.payload[2:]):
        _diag(log, frame, 'dropped', 'data for unregistered channel %d' % msg_id)

def _info(log, frame):
    name, val = _key_value(log, frame.payload)
    log.info[name] = val

def _info_multiple(log, frame):
    is_continued = frame.payload[0]
    name, val = _key_value(log, frame.payload[1:])
    entries = log.info_multiple.setdefault(name, [])
    if is_continued and entries:
        entries[-1].append(val)
    else:
        entries.append([val])

def _parameter(log, frame):
    name, val = _key_value(log, frame.payload)
    log.parameters[name] = val

def _add_logged(log, frame):
    multi_id, msg_id = struct.unpack_from('<BH', frame.payload, 0)
    type_name = bytes(frame.payload[3:]).decode('utf-8')
    log.channels.register(msg_id, type_name, multi_id)
    log.samples.add_type(type_name)

def _remove_logged(log, frame):
    msg_id, = struct.unpack_from('<H', frame.payload, 0)
    log.channels.deregister(msg_id)

def _sync(log, frame):
    log.sync_count += 1

def _dropout(log, frame):
    duration, = struct.unpack_from('<H', frame.payload, 0)
    log.dropouts.append(base.Dropout(frame.pos, duration))

def _logging(log, frame):
    level, timestamp = struct.unpack_from('<BQ', frame.payload, 0)
    if ord('0') <= level <= ord('7'):
        level -= ord('0')
    log.messages.append(base.LogMessage(level, timestamp,
                                        bytes(frame.payload[9:]).decode('utf-8', 'replace')))

def _flag_bits(log, frame):
    compat, incompat, *offsets = struct.unpack_from('<8s8s3Q', frame.payload, 0)
    log.flag_bits = base.FlagBits(compat, incompat, offsets)

_decoders = {
    RecordKind.FORMAT: _format,
    RecordKind.DATA: _data,
    RecordKind.INFO: _info,
    RecordKind.INFO_MULTIPLE: _info_multiple,
    RecordKind.PARAMETER: _parameter,
    RecordKind.ADD_LOGGED: _add_logged,
    RecordKind.REMOVE_LOGGED: _remove_logged,
    RecordKind.SYNC: _sync,
    RecordKind.DROPOUT: _dropout,
    RecordKind.LOGGING: _logging,
    RecordKind.FLAG_BITS: _flag_bits,
}

def _diag(log, frame, kind, message):
    log.diagnostics.append(base.Diagnostic(frame.pos, kind, message))


def load_log(buf, progress=None, options=None):
    """Decode a complete log held in memory.

    Raises LoadError if this isn't a log we can read at all.  Damage later
    in the stream just ends the parse early; see stop_reason and
    diagnostics on the result."""
    if options is None:
        options = config.LoadOptions()
    if len(buf) > options.max_log_bytes:
        raise LoadError('Log is %d bytes, limit is %d' % (len(buf), options.max_log_bytes))
    pre = frames.read_preamble(buf)
    if pre is None:
        raise LoadError('Not a log file (bad magic)')
    if pre.version not in options.versions:
        raise LoadError('Unsupported log version %d' % pre.version)

    log = ParsedLog(pre.version, pre.start_time, options)
    reader = frames.FrameReader(buf)
    next_progress = options.progress_interval
    for frame in reader:
        if progress and reader.pos > next_progress:
            next_progress += options.progress_interval
            progress(reader.pos, len(buf))
        try:
            _decoders[frame.kind](log, frame)
        except (struct.error, IndexError, ValueError) as err:
            # bad metadata only costs us that one frame
            _diag(log, frame, 'malformed', '%s frame: %s' % (frame.kind.name, err))

    log.frame_count = reader.frames
    if reader.stop_reason:
        log.stop_reason = reader.stop_reason
        log.diagnostics.append(base.Diagnostic(reader.pos, 'stopped', '%s (%s)' % (
            reader.stop_reason, reader.stop_detail)))
        warn('Stopped reading log at offset %d: %s (%s)'
             % (reader.pos, reader.stop_reason, reader.stop_detail))
    if progress:
        progress(len(buf), len(buf))
    return log

def ULOG(fname, progress=None, options=None):
    if options is None:
        options = config.LoadOptions()
    size = os.path.getsize(fname)
    if size > options.max_log_bytes:
        raise LoadError('%s is %d bytes, limit is %d' % (fname, size, options.max_log_bytes))
    if size < frames.PREAMBLE_LEN:
        raise LoadError('%s is too short to be a log' % fname)
    with open(fname, 'rb') as f:
        with mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) as m:
            return load_log(m, progress, options)
