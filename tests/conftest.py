"""Shared fixtures for streamhash tests."""

import random

import pytest


@pytest.fixture(scope="session")
def counting_bytes():
    """The 100-byte sequence 0, 1, ..., 99."""
    return bytes(range(100))


@pytest.fixture(scope="session")
def payload():
    """1 KiB of reproducible pseudo-random data."""
    return random.Random(1234).randbytes(1024)
