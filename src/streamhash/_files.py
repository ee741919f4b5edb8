"""File hashing and xxh64 checksum manifests."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from ._errors import StreamHashChecksumError, StreamHashError, StreamHashVersionError
from ._hash import MASK64, XXH64
from ._types import FileDigest

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
MANIFEST_VERSION = "1.0"
DEFAULT_CHUNK_SIZE = 65536


def _open_hasher(path: Path, seed: int, chunk_size: int) -> XXH64:
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if not path.exists():
        raise StreamHashError(f"File not found: {path}")
    if not path.is_file():
        raise StreamHashError(f"Not a file: {path}")

    hasher = XXH64(seed=seed)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            hasher.update(chunk)
    logger.debug("Hashed %s (%d bytes): %s", path, hasher.total_length, hasher.hexdigest())
    return hasher


def hash_file(
    path: Path | str, seed: int = 0, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> int:
    """Compute xxHash64 of a file, reading it in ``chunk_size`` pieces."""
    return _open_hasher(Path(path), seed, chunk_size).digest()


def _entry_path(directory: Path, name: str) -> Path:
    filepath = directory / name
    if not filepath.resolve().is_relative_to(directory.resolve()):
        raise StreamHashError(f"Manifest entry escapes {directory}: {name!r}")
    return filepath


def _default_filenames(directory: Path) -> list[str]:
    return sorted(
        p.name for p in directory.iterdir()
        if p.is_file() and p.name != MANIFEST_NAME
    )


def write_manifest(
    directory: Path | str,
    filenames: Iterable[str] | None = None,
    seed: int = 0,
) -> Path:
    """Hash files in ``directory`` and record them in a manifest.

    Args:
        directory: Directory holding the files; the manifest is written here.
        filenames: Names relative to ``directory``. If None, every regular
            file except the manifest itself.
        seed: xxh64 seed used for every file.

    Returns:
        Path of the written manifest.
    """
    directory = Path(directory)
    if filenames is None:
        filenames = _default_filenames(directory)

    files: dict[str, str] = {}
    for name in filenames:
        hasher = _open_hasher(_entry_path(directory, name), seed, DEFAULT_CHUNK_SIZE)
        files[name] = hasher.hexdigest()

    manifest_path = directory / MANIFEST_NAME
    with open(manifest_path, "w") as f:
        json.dump(
            {
                "version": MANIFEST_VERSION,
                "algorithm": XXH64.name,
                "seed": seed,
                "files": files,
            },
            f,
            indent=2,
            sort_keys=True,
        )
    logger.info("Wrote manifest for %d files to %s", len(files), manifest_path)
    return manifest_path


def read_manifest(directory: Path | str) -> dict[str, Any]:
    manifest_path = Path(directory) / MANIFEST_NAME
    if not manifest_path.exists():
        raise StreamHashError(f"{MANIFEST_NAME} not found in {directory}")
    with open(manifest_path) as f:
        return json.load(f)


def verify_manifest(directory: Path | str) -> list[FileDigest]:
    """Check every file listed in the manifest against its recorded digest."""
    directory = Path(directory)
    manifest = read_manifest(directory)

    version = manifest.get("version")
    if version != MANIFEST_VERSION:
        raise StreamHashVersionError(
            f"Expected manifest version {MANIFEST_VERSION!r}, got {version!r}"
        )
    algorithm = manifest.get("algorithm")
    if algorithm != XXH64.name:
        raise StreamHashError(f"Unsupported manifest algorithm: {algorithm!r}")
    seed = manifest.get("seed", 0)
    if isinstance(seed, bool) or not isinstance(seed, int) or not 0 <= seed <= MASK64:
        raise StreamHashError(f"Manifest seed must be a 64-bit unsigned int, got {seed!r}")
    files = manifest.get("files", {})
    if not isinstance(files, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in files.items()
    ):
        raise StreamHashError("Manifest files must map file names to hex digests")

    results: list[FileDigest] = []
    for name, expected in sorted(files.items()):
        filepath = _entry_path(directory, name)
        if not filepath.exists():
            raise StreamHashError(f"Missing file: {filepath}")
        hasher = _open_hasher(filepath, seed, DEFAULT_CHUNK_SIZE)
        actual = hasher.hexdigest()
        if actual != expected:
            logger.warning("Checksum mismatch for %s", filepath)
            raise StreamHashChecksumError(
                f"Checksum mismatch for {name}: expected {expected}, got {actual}"
            )
        results.append(FileDigest(name=name, size=hasher.total_length, digest=actual))
    return results
