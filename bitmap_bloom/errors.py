class BloomFilterError(Exception):
    pass


class InvalidArgument(BloomFilterError, ValueError):
    """Empty or non-string key/element, or a non-positive TTL."""


class InvalidParameters(BloomFilterError, ValueError):
    """Sizing inputs that cannot describe a usable bitmap."""


class StoreUnavailable(BloomFilterError):
    """Redis could not be reached (connect failure or timeout)."""


class StoreError(BloomFilterError):
    """Redis answered, but with an error for one or more batched commands."""
