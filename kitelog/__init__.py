
# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from .config import LoadOptions, load_options
from .paths import PathError, PathNotFoundError
from .primitives import DecodeError, TypeMismatchError
from .schema import SchemaSyntaxError, UnresolvedTypeError
from .ulog import LoadError, ParsedLog, ULOG, load_log
