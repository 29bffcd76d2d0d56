
# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

# Turn decoded series into the vectors and rotations the viewer wants.
# Positions and velocities are NED (north, east, down) in meters.

from dataclasses import dataclass

import numpy as np

@dataclass(eq=False)
class Locations:
    time: np.ndarray # seconds since log start
    pos: np.ndarray  # (n, 3)
    vel: np.ndarray  # (n, 3)

@dataclass(eq=False)
class Orientations:
    time: np.ndarray
    q: np.ndarray    # (n, 4) x, y, z, w

def vectors(log, type_name, paths=('x', 'y', 'z'), multi_id=None):
    r = log.reader(type_name, multi_id)
    return np.column_stack([r.column(p).astype(np.float64) for p in paths]).reshape((len(r), len(paths)))

# The log stores attitude as w, x, y, z; we want x, y, z, w
SCALAR_LAST = (1, 2, 3, 0)

def quaternions(log, type_name, path='q', order=SCALAR_LAST, multi_id=None):
    q = log.read_array(type_name, path, multi_id=multi_id).astype(np.float64)
    if q.shape[1] != 4:
        raise ValueError('%s.%s has %d elements, not a quaternion' % (type_name, path, q.shape[1]))
    return q[:, list(order)]

def seconds(log, type_name, time_path='timestamp', multi_id=None):
    tc = log.read(type_name, time_path, multi_id=multi_id)
    return (tc.astype(np.int64) - log.start_time) / 1e6

def locations(log, type_name='vehicle_local_position', multi_id=None):
    return Locations(seconds(log, type_name, multi_id=multi_id),
                     vectors(log, type_name, ('x', 'y', 'z'), multi_id),
                     vectors(log, type_name, ('vx', 'vy', 'vz'), multi_id))

def orientations(log, type_name='vehicle_attitude', multi_id=None):
    return Orientations(seconds(log, type_name, multi_id=multi_id),
                        quaternions(log, type_name, multi_id=multi_id))

def speeds(locs):
    return np.sqrt(np.sum(np.square(locs.vel), axis=1))
