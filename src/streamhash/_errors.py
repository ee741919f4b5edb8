"""streamhash error types."""


class StreamHashError(Exception):
    """Base error for all streamhash failures."""


class StreamHashStateError(StreamHashError):
    """Serialized hasher state is malformed or inconsistent."""


class StreamHashVersionError(StreamHashError):
    """Snapshot or manifest format version mismatch."""


class StreamHashChecksumError(StreamHashError):
    """File digest does not match its manifest entry."""
