"""streamhash: incremental xxHash64 with resumable state and file manifests."""

from __future__ import annotations

import logging

from ._errors import (
    StreamHashChecksumError,
    StreamHashError,
    StreamHashStateError,
    StreamHashVersionError,
)
from ._files import hash_file, read_manifest, verify_manifest, write_manifest
from ._hash import XXH64, xxh64_hexdigest, xxh64_intdigest
from ._state import dumps, loads
from ._types import FileDigest, HasherState

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "dumps",
    "FileDigest",
    "hash_file",
    "HasherState",
    "loads",
    "read_manifest",
    "StreamHashChecksumError",
    "StreamHashError",
    "StreamHashStateError",
    "StreamHashVersionError",
    "verify_manifest",
    "write_manifest",
    "XXH64",
    "xxh64_hexdigest",
    "xxh64_intdigest",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
