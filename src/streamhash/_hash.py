"""xxHash64 streaming hasher."""

from __future__ import annotations

import struct
from typing import TYPE_CHECKING

from ._errors import StreamHashStateError
from ._types import HasherState

if TYPE_CHECKING:
    from collections.abc import Buffer

PRIME1: int = 11400714785074694791
PRIME2: int = 14029467366897019727
PRIME3: int = 1609587929392839161
PRIME4: int = 9650029242287828579
PRIME5: int = 2870177450012600261
MASK64: int = 0xFFFFFFFFFFFFFFFF

BLOCK_SIZE: int = 32

_LANES = struct.Struct("<4Q")
_U64 = struct.Struct("<Q")
_U32 = struct.Struct("<I")


def _rotl64(x: int, r: int) -> int:
    return ((x << r) & MASK64) | (x >> (64 - r))


def _round(acc: int, lane: int) -> int:
    acc = (acc + lane * PRIME2) & MASK64
    return (_rotl64(acc, 31) * PRIME1) & MASK64


def _merge(acc: int, lane: int) -> int:
    acc ^= _round(0, lane)
    return (acc * PRIME1 + PRIME4) & MASK64


def _avalanche(h: int) -> int:
    h ^= h >> 33
    h = (h * PRIME2) & MASK64
    h ^= h >> 29
    h = (h * PRIME3) & MASK64
    h ^= h >> 32
    return h


def _check_seed(seed: int) -> int:
    if not isinstance(seed, int):
        raise TypeError(f"seed must be an int, not {type(seed).__name__}")
    if not 0 <= seed <= MASK64:
        raise ValueError(f"seed must be in [0, 2**64), got {seed}")
    return seed


def _initial_accumulators(seed: int) -> tuple[int, int, int, int]:
    return (
        (seed + PRIME1 + PRIME2) & MASK64,
        (seed + PRIME2) & MASK64,
        seed,
        (seed - PRIME1) & MASK64,
    )


def _as_bytes_view(data: Buffer) -> memoryview:
    if isinstance(data, str):
        raise TypeError("Strings must be encoded before hashing")
    return memoryview(data).cast("B")


class XXH64:
    """Incremental xxHash64.

    Input may be fed through ``update`` in chunks of any size; the digest
    depends only on the concatenated bytes and the seed. ``digest`` reads
    the current state without modifying it, so it can be called at any
    point and hashing can continue afterwards.
    """

    __slots__ = ("_seed", "_v1", "_v2", "_v3", "_v4", "_total_length", "_tail", "_used")

    name = "xxh64"
    digest_size = 8
    block_size = BLOCK_SIZE

    def __init__(self, data: Buffer = b"", seed: int = 0) -> None:
        self._seed = _check_seed(seed)
        self._tail = bytearray(BLOCK_SIZE)
        self.reset()
        self.update(data)

    def reset(self) -> None:
        """Discard all input, keeping the seed."""
        self._v1, self._v2, self._v3, self._v4 = _initial_accumulators(self._seed)
        self._total_length = 0
        self._used = 0

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def total_length(self) -> int:
        """Number of bytes passed to ``update`` so far."""
        return self._total_length

    def update(self, data: Buffer) -> None:
        """Feed more bytes into the hash."""
        view = _as_bytes_view(data)
        n = len(view)
        self._total_length = (self._total_length + n) & MASK64

        used = self._used
        tail = self._tail
        if used + n < BLOCK_SIZE:
            tail[used:used + n] = view
            self._used = used + n
            return

        v1, v2, v3, v4 = self._v1, self._v2, self._v3, self._v4
        pos = 0

        # Complete the partially filled block first.
        if used:
            pos = BLOCK_SIZE - used
            tail[used:] = view[:pos]
            w1, w2, w3, w4 = _LANES.unpack_from(tail)
            v1 = _round(v1, w1)
            v2 = _round(v2, w2)
            v3 = _round(v3, w3)
            v4 = _round(v4, w4)

        limit = n - BLOCK_SIZE
        while pos <= limit:
            w1, w2, w3, w4 = _LANES.unpack_from(view, pos)
            v1 = _round(v1, w1)
            v2 = _round(v2, w2)
            v3 = _round(v3, w3)
            v4 = _round(v4, w4)
            pos += BLOCK_SIZE

        self._v1, self._v2, self._v3, self._v4 = v1, v2, v3, v4

        remaining = n - pos
        if remaining:
            tail[:remaining] = view[pos:]
        self._used = remaining

    def digest(self) -> int:
        """Return the 64-bit hash of all bytes seen so far."""
        if self._total_length >= BLOCK_SIZE:
            v1, v2, v3, v4 = self._v1, self._v2, self._v3, self._v4
            h = (
                _rotl64(v1, 1) + _rotl64(v2, 7) + _rotl64(v3, 12) + _rotl64(v4, 18)
            ) & MASK64
            h = _merge(h, v1)
            h = _merge(h, v2)
            h = _merge(h, v3)
            h = _merge(h, v4)
        else:
            # Lanes never engaged: v3 still holds the seed.
            h = (self._v3 + PRIME5) & MASK64

        h = (h + self._total_length) & MASK64

        tail = self._tail
        used = self._used
        pos = 0
        while pos + 8 <= used:
            (lane,) = _U64.unpack_from(tail, pos)
            h ^= _round(0, lane)
            h = (_rotl64(h, 27) * PRIME1 + PRIME4) & MASK64
            pos += 8

        if pos + 4 <= used:
            (word,) = _U32.unpack_from(tail, pos)
            h ^= (word * PRIME1) & MASK64
            h = (_rotl64(h, 23) * PRIME2 + PRIME3) & MASK64
            pos += 4

        while pos < used:
            h ^= (tail[pos] * PRIME5) & MASK64
            h = (_rotl64(h, 11) * PRIME1) & MASK64
            pos += 1

        return _avalanche(h)

    intdigest = digest

    def digest_bytes(self) -> bytes:
        """Digest as 8 bytes in canonical (big-endian) order."""
        return self.digest().to_bytes(8, "big")

    def hexdigest(self) -> str:
        return format(self.digest(), "016x")

    def copy(self) -> XXH64:
        """Return an independent clone of this hasher."""
        clone = XXH64.__new__(XXH64)
        clone._seed = self._seed
        clone._v1, clone._v2, clone._v3, clone._v4 = self._v1, self._v2, self._v3, self._v4
        clone._total_length = self._total_length
        clone._tail = bytearray(self._tail)
        clone._used = self._used
        return clone

    # -- State export --

    def state(self) -> HasherState:
        """Snapshot the current state as an immutable value."""
        return HasherState(
            seed=self._seed,
            total_length=self._total_length,
            acc=(self._v1, self._v2, self._v3, self._v4),
            tail=bytes(self._tail[:self._used]),
        )

    @classmethod
    def from_state(cls, state: HasherState) -> XXH64:
        """Rebuild a hasher from a snapshot taken with ``state()``."""
        for label, value in (("seed", state.seed), ("total_length", state.total_length)):
            if not isinstance(value, int) or not 0 <= value <= MASK64:
                raise StreamHashStateError(f"{label} is not a 64-bit unsigned int: {value!r}")
        if len(state.acc) != 4:
            raise StreamHashStateError(f"Expected 4 accumulators, got {len(state.acc)}")
        for value in state.acc:
            if not isinstance(value, int) or not 0 <= value <= MASK64:
                raise StreamHashStateError(f"Accumulator out of range: {value!r}")
        if len(state.tail) >= BLOCK_SIZE:
            raise StreamHashStateError(
                f"Tail holds {len(state.tail)} bytes, must be under {BLOCK_SIZE}"
            )
        if len(state.tail) != state.total_length % BLOCK_SIZE:
            raise StreamHashStateError(
                f"Tail length {len(state.tail)} inconsistent with "
                f"total length {state.total_length}"
            )
        if (
            state.total_length < BLOCK_SIZE
            and tuple(state.acc) != _initial_accumulators(state.seed)
        ):
            raise StreamHashStateError(
                "Accumulators changed before a full block was seen"
            )

        hasher = cls(seed=state.seed)
        hasher._v1, hasher._v2, hasher._v3, hasher._v4 = state.acc
        hasher._total_length = state.total_length
        hasher._tail[:len(state.tail)] = state.tail
        hasher._used = len(state.tail)
        return hasher

    def __repr__(self) -> str:
        return f"XXH64(seed={self._seed:#x}, total_length={self._total_length})"


def xxh64_intdigest(data: Buffer, seed: int = 0) -> int:
    """Compute xxHash64 of ``data`` in one call."""
    return XXH64(data, seed).digest()


def xxh64_hexdigest(data: Buffer, seed: int = 0) -> str:
    return XXH64(data, seed).hexdigest()
