"""Data structures for streamhash."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class HasherState:
    seed: int                         # u64
    total_length: int                 # u64 bytes fed so far
    acc: tuple[int, int, int, int]    # u64 lane accumulators
    tail: bytes                       # unfolded bytes, len == total_length % 32


@dataclass(slots=True, frozen=True)
class FileDigest:
    name: str       # path relative to the manifest directory
    size: int
    digest: str     # 16-char hex xxh64
