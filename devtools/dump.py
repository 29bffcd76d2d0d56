#!/usr/bin/python3

import pprint
import sys

from kitelog import config, ulog

fname = 'log.ulg' if len(sys.argv) < 2 else sys.argv[1]

pp = pprint.PrettyPrinter()

def progress(pos, total):
    print('%3d%%' % (100 * pos // max(total, 1)), end='\r')

def dump_schemas(log):
    print(log.schema_description())

def dump_counts(log):
    for name in log.type_names():
        s = log.samples.series(name)
        print('%-40s %8d  instances %s' % (name, len(s), s.multi_ids()))

def dump_meta(log):
    print('version', log.version, 'start', log.start_time, 'frames', log.frame_count)
    pp.pprint(log.info)
    pp.pprint(log.info_multiple)
    pp.pprint(log.parameters)
    for m in log.messages:
        print('[%d] %12d %s' % (m.level, m.timestamp, m.message))
    print('dropouts', sum(d.duration for d in log.dropouts), 'ms in', len(log.dropouts))
    for d in log.diagnostics:
        print('%8x %s: %s' % (d.pos, d.kind, d.message))

def dump_field(log, type_name, path):
    ch = log.channel(type_name, path)
    for t, v in list(zip(ch.timecodes, ch.values))[:20]:
        print('%12d' % t, v)

# options from ./kitelog.ini, defaults when there isn't one
options = config.load_options('kitelog.ini')
log = ulog.ULOG(fname, progress, options)
print()
#dump_schemas(log)
dump_counts(log)
dump_meta(log)
if len(sys.argv) >= 4:
    dump_field(log, sys.argv[2], sys.argv[3])
