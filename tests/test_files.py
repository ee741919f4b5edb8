"""Tests for file hashing and checksum manifests."""

import json
import logging

import pytest
import xxhash

from streamhash import hash_file, read_manifest, verify_manifest, write_manifest
from streamhash._errors import (
    StreamHashChecksumError,
    StreamHashError,
    StreamHashVersionError,
)
from streamhash._files import MANIFEST_NAME


@pytest.fixture
def data_dir(tmp_path, payload):
    (tmp_path / "a.bin").write_bytes(payload)
    (tmp_path / "b.bin").write_bytes(payload[:17])
    (tmp_path / "empty.bin").write_bytes(b"")
    return tmp_path


@pytest.mark.parametrize("chunk_size", [1, 32, 100, 65536])
def test_hash_file(data_dir, payload, chunk_size):
    assert hash_file(data_dir / "a.bin", chunk_size=chunk_size) == xxhash.xxh64_intdigest(payload)


def test_hash_file_seed(data_dir, payload):
    assert hash_file(str(data_dir / "a.bin"), seed=9) == xxhash.xxh64_intdigest(payload, 9)


def test_hash_empty_file(data_dir):
    assert hash_file(data_dir / "empty.bin") == 0xEF46DB3751D8E999


def test_hash_missing_file(tmp_path):
    with pytest.raises(StreamHashError, match="File not found"):
        hash_file(tmp_path / "nope.bin")


def test_hash_directory(tmp_path):
    with pytest.raises(StreamHashError, match="Not a file"):
        hash_file(tmp_path)


def test_bad_chunk_size(data_dir):
    with pytest.raises(ValueError):
        hash_file(data_dir / "a.bin", chunk_size=0)


def test_manifest_roundtrip(data_dir, payload):
    path = write_manifest(data_dir)
    assert path == data_dir / MANIFEST_NAME

    manifest = read_manifest(data_dir)
    assert manifest["algorithm"] == "xxh64"
    assert sorted(manifest["files"]) == ["a.bin", "b.bin", "empty.bin"]
    assert manifest["files"]["a.bin"] == xxhash.xxh64_hexdigest(payload)

    results = verify_manifest(data_dir)
    assert [r.name for r in results] == ["a.bin", "b.bin", "empty.bin"]
    assert [r.size for r in results] == [len(payload), 17, 0]


def test_manifest_explicit_files_and_seed(data_dir, payload):
    write_manifest(data_dir, filenames=["b.bin"], seed=3)
    manifest = read_manifest(data_dir)
    assert manifest["seed"] == 3
    assert manifest["files"] == {"b.bin": xxhash.xxh64_hexdigest(payload[:17], 3)}
    assert len(verify_manifest(data_dir)) == 1


def test_manifest_not_found(tmp_path):
    with pytest.raises(StreamHashError, match="manifest.json not found"):
        verify_manifest(tmp_path)


def test_checksum_mismatch(data_dir, caplog):
    write_manifest(data_dir)
    with open(data_dir / "b.bin", "ab") as f:
        f.write(b"tampered")
    with caplog.at_level(logging.WARNING, logger="streamhash"):
        with pytest.raises(StreamHashChecksumError, match="b.bin"):
            verify_manifest(data_dir)
    assert "Checksum mismatch" in caplog.text


def test_missing_listed_file(data_dir):
    write_manifest(data_dir)
    (data_dir / "a.bin").unlink()
    with pytest.raises(StreamHashError, match="Missing file"):
        verify_manifest(data_dir)


def _rewrite_manifest(directory, **changes):
    manifest_path = directory / MANIFEST_NAME
    with open(manifest_path) as f:
        manifest = json.load(f)
    manifest.update(changes)
    with open(manifest_path, "w") as f:
        json.dump(manifest, f)


def test_version_mismatch(data_dir):
    write_manifest(data_dir)
    _rewrite_manifest(data_dir, version="99.0")
    with pytest.raises(StreamHashVersionError):
        verify_manifest(data_dir)


def test_unsupported_algorithm(data_dir):
    write_manifest(data_dir)
    _rewrite_manifest(data_dir, algorithm="sha256")
    with pytest.raises(StreamHashError, match="algorithm"):
        verify_manifest(data_dir)


@pytest.mark.parametrize("seed", [-1, 2**64, "0", 1.5, True])
def test_bad_manifest_seed(data_dir, seed):
    write_manifest(data_dir)
    _rewrite_manifest(data_dir, seed=seed)
    with pytest.raises(StreamHashError, match="seed"):
        verify_manifest(data_dir)


@pytest.mark.parametrize("files", [["a.bin"], "a.bin", {"a.bin": 12}])
def test_bad_manifest_files(data_dir, files):
    write_manifest(data_dir)
    _rewrite_manifest(data_dir, files=files)
    with pytest.raises(StreamHashError, match="files"):
        verify_manifest(data_dir)


def test_manifest_entry_outside_directory(tmp_path, payload):
    outside = tmp_path / "outside.bin"
    outside.write_bytes(payload)
    inner = tmp_path / "inner"
    inner.mkdir()
    write_manifest(inner, filenames=[])
    _rewrite_manifest(inner, files={"../outside.bin": xxhash.xxh64_hexdigest(payload)})
    with pytest.raises(StreamHashError, match="escapes"):
        verify_manifest(inner)


def test_absolute_manifest_entry(tmp_path, payload):
    outside = tmp_path / "outside.bin"
    outside.write_bytes(payload)
    inner = tmp_path / "inner"
    inner.mkdir()
    write_manifest(inner, filenames=[])
    _rewrite_manifest(inner, files={str(outside): xxhash.xxh64_hexdigest(payload)})
    with pytest.raises(StreamHashError, match="escapes"):
        verify_manifest(inner)


def test_write_manifest_rejects_outside_entry(tmp_path, payload):
    (tmp_path / "outside.bin").write_bytes(payload)
    inner = tmp_path / "inner"
    inner.mkdir()
    with pytest.raises(StreamHashError, match="escapes"):
        write_manifest(inner, filenames=["../outside.bin"])
