from __future__ import annotations
import logging
import time
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

import redis
import redis.asyncio as aioredis

from .errors import InvalidArgument, StoreUnavailable
from .hashing import bit_indices
from .metrics import BLOOM_OPERATIONS_TOTAL, BLOOM_ROUNDTRIP_SECONDS
from .params import FilterParameters
from .store import BitOp, bitcount, expire, getbit, run_batch, run_batch_async, setbit

logger = logging.getLogger("bitmap_bloom.filter")

BF_KEY_PREFIX = "bf:"


def remote_key(key: str) -> str:
    return BF_KEY_PREFIX + key


def _require_text(name: str, value: object) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidArgument(f"{name} is required and must be a non-empty string")
    return value


def _require_ttl(ttl_seconds: object) -> int:
    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) or ttl_seconds <= 0:
        raise InvalidArgument(f"ttl_seconds must be a positive int, got {ttl_seconds!r}")
    return ttl_seconds


@contextmanager
def _observe(op: str) -> Iterator[None]:
    start = time.perf_counter()
    outcome = "ok"
    try:
        yield
    except StoreUnavailable:
        outcome = "unavailable"
        raise
    except Exception:
        outcome = "error"
        raise
    finally:
        BLOOM_OPERATIONS_TOTAL.labels(op=op, outcome=outcome).inc()
        BLOOM_ROUNDTRIP_SECONDS.labels(op=op).observe(time.perf_counter() - start)


class _BitmapBloomBase:
    """
    Shared validation and batch building for the sync and asyncio filters.

    The filter holds no bits, only immutable sizing; every process that
    shares a key must be built with the same expected_elements and
    false_positive_rate.
    """

    def __init__(
        self,
        expected_elements: Optional[int] = None,
        false_positive_rate: Optional[float] = None,
        params: Optional[FilterParameters] = None,
    ) -> None:
        if params is None:
            if expected_elements is None or false_positive_rate is None:
                raise TypeError("pass expected_elements and false_positive_rate, or params")
            params = FilterParameters.create(expected_elements, false_positive_rate)
        self.params = params
        logger.info(
            "Bloom filter sized: expected_elements=%s fpp=%s bitmap_length=%s hash_functions=%s",
            params.expected_elements,
            params.false_positive_rate,
            params.bitmap_length,
            params.hash_function_count,
        )

    @property
    def bitmap_length(self) -> int:
        return self.params.bitmap_length

    @property
    def hash_function_count(self) -> int:
        return self.params.hash_function_count

    def _target(self, key: object, element: object) -> Tuple[str, Tuple[int, ...]]:
        key = _require_text("key", key)
        element = _require_text("element", element)
        indices = bit_indices(element, self.params)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("key=%s element=%s indices=%s", key, element, indices)
        return remote_key(key), indices

    def _insert_ops(self, key: object, element: object, ttl_seconds: object) -> List[BitOp]:
        actual_key, indices = self._target(key, element)
        ttl = _require_ttl(ttl_seconds)
        ops = [setbit(actual_key, index) for index in indices]
        # EXPIRE rides in the same pipeline, after the bits
        ops.append(expire(actual_key, ttl))
        return ops

    def _query_ops(self, key: object, element: object) -> List[BitOp]:
        actual_key, indices = self._target(key, element)
        return [getbit(actual_key, index) for index in indices]

    def _count_ops(self, key: object) -> List[BitOp]:
        return [bitcount(remote_key(_require_text("key", key)))]


class RedisBloomFilter(_BitmapBloomBase):
    """
    Bloom filter whose bitmap lives in Redis under "bf:<key>".

    - insert: SETBIT for every index + EXPIRE, one pipelined round trip
    - may_exist: GETBIT for every index, one pipelined round trip
    """

    def __init__(
        self,
        client: redis.Redis,
        expected_elements: Optional[int] = None,
        false_positive_rate: Optional[float] = None,
        params: Optional[FilterParameters] = None,
    ) -> None:
        super().__init__(expected_elements, false_positive_rate, params)
        self.client = client

    def insert(self, key: str, element: str, ttl_seconds: int) -> None:
        ops = self._insert_ops(key, element, ttl_seconds)
        with _observe("insert"):
            run_batch(self.client, ops)

    def may_exist(self, key: str, element: str) -> bool:
        ops = self._query_ops(key, element)
        with _observe("may_exist"):
            bits = run_batch(self.client, ops)
        return all(int(bit) == 1 for bit in bits)

    def bit_count(self, key: str) -> int:
        ops = self._count_ops(key)
        with _observe("count"):
            (count,) = run_batch(self.client, ops)
        return int(count)

    def approximate_element_count(self, key: str) -> int:
        return self.params.approximate_count(self.bit_count(key))

    def expected_fpp(self, key: str) -> float:
        return self.params.fpp_for(self.bit_count(key))


class AsyncRedisBloomFilter(_BitmapBloomBase):
    """RedisBloomFilter for redis.asyncio clients; same keys, same bits."""

    def __init__(
        self,
        client: aioredis.Redis,
        expected_elements: Optional[int] = None,
        false_positive_rate: Optional[float] = None,
        params: Optional[FilterParameters] = None,
    ) -> None:
        super().__init__(expected_elements, false_positive_rate, params)
        self.client = client

    async def insert(self, key: str, element: str, ttl_seconds: int) -> None:
        ops = self._insert_ops(key, element, ttl_seconds)
        with _observe("insert"):
            await run_batch_async(self.client, ops)

    async def may_exist(self, key: str, element: str) -> bool:
        ops = self._query_ops(key, element)
        with _observe("may_exist"):
            bits = await run_batch_async(self.client, ops)
        return all(int(bit) == 1 for bit in bits)

    async def bit_count(self, key: str) -> int:
        ops = self._count_ops(key)
        with _observe("count"):
            (count,) = await run_batch_async(self.client, ops)
        return int(count)

    async def approximate_element_count(self, key: str) -> int:
        return self.params.approximate_count(await self.bit_count(key))

    async def expected_fpp(self, key: str) -> float:
        return self.params.fpp_for(await self.bit_count(key))
