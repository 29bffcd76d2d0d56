
# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import configparser
from dataclasses import dataclass, field
import json

import dacite

@dataclass
class LoadOptions:
    max_log_bytes: int = 512 * 1024 * 1024 # refuse anything bigger before parsing
    versions: list[int] = field(default_factory=lambda: [0, 1])
    trim_text: bool = False # cut char[N] text at the first NUL
    progress_interval: int = 1_000_000

def from_dict(data):
    return dacite.from_dict(data_class=LoadOptions, data=data,
                            config=dacite.Config(strict=True))

def load_options(fname=None, section='main'):
    """Read LoadOptions from an ini file.  Values are JSON, like the rest
    of our config files.  Anything missing keeps its default."""
    config = configparser.ConfigParser()
    config[section] = {} # base structure initialization
    if fname:
        config.read(fname)
    data = {}
    for key, val in config[section].items():
        try:
            data[key] = json.loads(val)
        except json.JSONDecodeError as err:
            raise ValueError('Bad value for %s in %s: %s' % (key, fname, err)) from err
    return from_dict(data)
