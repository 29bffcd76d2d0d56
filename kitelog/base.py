
# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from dataclasses import dataclass
import typing

import numpy as np

@dataclass(eq=False)
class Channel:
    timecodes: np.ndarray # microseconds, log clock
    values: typing.Any    # ndarray, or list for text fields
    name: str

@dataclass(eq=False)
class LogMessage:
    level: int # 0 (emergency) .. 7 (debug)
    timestamp: int
    message: str

@dataclass(eq=False)
class Dropout:
    pos: int
    duration: int # ms

@dataclass(eq=False)
class FlagBits:
    compat: bytes
    incompat: bytes
    appended_offsets: typing.List[int]

@dataclass(eq=False)
class Diagnostic:
    pos: int # file offset of the frame involved
    kind: str
    message: str
