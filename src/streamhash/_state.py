"""Hasher snapshots packed with msgpack, for resuming a hash in another process."""

from __future__ import annotations

from typing import Any

import msgpack

from ._errors import StreamHashStateError, StreamHashVersionError
from ._hash import XXH64
from ._types import HasherState

STATE_VERSION = "1"

_FIELDS = ("seed", "total_length", "acc", "tail")


def dumps(hasher: XXH64) -> bytes:
    """Serialize the full state of ``hasher``."""
    state = hasher.state()
    return msgpack.packb(
        {
            "version": STATE_VERSION,
            "seed": state.seed,
            "total_length": state.total_length,
            "acc": list(state.acc),
            "tail": state.tail,
        },
        use_bin_type=True,
    )


def _unpack(blob: bytes) -> dict[str, Any]:
    try:
        raw = msgpack.unpackb(blob, raw=False)
    except (TypeError, ValueError, msgpack.exceptions.UnpackException) as exc:
        raise StreamHashStateError(f"Cannot decode hasher state: {exc}") from exc
    if not isinstance(raw, dict):
        raise StreamHashStateError(
            f"Hasher state must be a map, got {type(raw).__name__}"
        )
    return raw


def loads(blob: bytes) -> XXH64:
    """Rebuild a hasher from bytes produced by ``dumps``."""
    raw = _unpack(blob)

    version = raw.get("version")
    if version != STATE_VERSION:
        raise StreamHashVersionError(
            f"Expected state version {STATE_VERSION!r}, got {version!r}"
        )
    missing = [name for name in _FIELDS if name not in raw]
    if missing:
        raise StreamHashStateError(f"Hasher state missing fields: {', '.join(missing)}")

    acc = raw["acc"]
    if not isinstance(acc, list) or len(acc) != 4:
        raise StreamHashStateError(f"acc must be a list of 4 ints, got {acc!r}")
    tail = raw["tail"]
    if not isinstance(tail, bytes):
        raise StreamHashStateError(f"tail must be binary, got {type(tail).__name__}")

    state = HasherState(
        seed=raw["seed"],
        total_length=raw["total_length"],
        acc=tuple(acc),  # type: ignore[arg-type]
        tail=tail,
    )
    return XXH64.from_state(state)
