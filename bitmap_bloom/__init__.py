from .errors import BloomFilterError, InvalidArgument, InvalidParameters, StoreError, StoreUnavailable
from .filter import BF_KEY_PREFIX, AsyncRedisBloomFilter, RedisBloomFilter, remote_key
from .hashing import bit_indices
from .local import LocalBloomFilter
from .params import FilterParameters, compute_sizing

__all__ = [
    "AsyncRedisBloomFilter",
    "BF_KEY_PREFIX",
    "BloomFilterError",
    "FilterParameters",
    "InvalidArgument",
    "InvalidParameters",
    "LocalBloomFilter",
    "RedisBloomFilter",
    "StoreError",
    "StoreUnavailable",
    "bit_indices",
    "compute_sizing",
    "remote_key",
]
