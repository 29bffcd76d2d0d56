
# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(eq=False)
class Subscription:
    type_name: str
    multi_id: int


class ChannelTable:
    """Numeric channel ids -> logged type name, as announced by the stream."""

    def __init__(self):
        self._channels: Dict[int, Subscription] = {}

    def register(self, msg_id, type_name, multi_id=0):
        # re-registering an id just replaces it
        self._channels[msg_id] = Subscription(type_name, multi_id)

    def deregister(self, msg_id):
        return self._channels.pop(msg_id, None)

    def lookup(self, msg_id):
        return self._channels.get(msg_id)

    def __contains__(self, msg_id):
        return msg_id in self._channels

    def __len__(self):
        return len(self._channels)

    def items(self):
        return self._channels.items()


@dataclass(eq=False)
class SampleSeries:
    type_name: str
    payloads: List[bytes] = field(default_factory=list, repr=False)
    instances: List[int] = field(default_factory=list, repr=False) # multi_id per sample

    def __len__(self):
        return len(self.payloads)

    def select(self, multi_id):
        if multi_id is None:
            return self
        pick = [i for i, m in enumerate(self.instances) if m == multi_id]
        return SampleSeries(self.type_name,
                            [self.payloads[i] for i in pick],
                            [multi_id] * len(pick))

    def multi_ids(self):
        return sorted(set(self.instances))


class SampleStore:
    def __init__(self, channels):
        self.channels = channels
        self._series: Dict[str, SampleSeries] = {}

    def add_type(self, type_name):
        return self._series.setdefault(type_name, SampleSeries(type_name))

    def append_sample(self, msg_id, payload):
        """Returns False (and stores nothing) if msg_id isn't registered."""
        sub = self.channels.lookup(msg_id)
        if sub is None:
            return False
        s = self.add_type(sub.type_name)
        s.payloads.append(bytes(payload))
        s.instances.append(sub.multi_id)
        return True

    def series(self, type_name):
        return self._series.get(type_name) or SampleSeries(type_name)

    def samples(self, type_name):
        return self.series(type_name).payloads

    def __contains__(self, type_name):
        return type_name in self._series

    def __iter__(self):
        return iter(self._series)

    def counts(self):
        return {k: len(v) for k, v in self._series.items()}
