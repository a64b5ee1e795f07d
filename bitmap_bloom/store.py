from __future__ import annotations
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, List, Sequence, Tuple

import redis
import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, TimeoutError as RedisTimeoutError

from .errors import StoreError, StoreUnavailable

logger = logging.getLogger("bitmap_bloom.store")

_COMMANDS = {"SETBIT", "GETBIT", "EXPIRE", "BITCOUNT"}


@dataclass(frozen=True)
class BitOp:
    command: str
    key: str
    args: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if self.command not in _COMMANDS:
            raise ValueError(f"unsupported bitmap command: {self.command}")


def setbit(key: str, offset: int) -> BitOp:
    return BitOp("SETBIT", key, (offset, 1))


def getbit(key: str, offset: int) -> BitOp:
    return BitOp("GETBIT", key, (offset,))


def expire(key: str, ttl_seconds: int) -> BitOp:
    return BitOp("EXPIRE", key, (ttl_seconds,))


def bitcount(key: str) -> BitOp:
    return BitOp("BITCOUNT", key)


def _queue(pipe: Any, ops: Sequence[BitOp]) -> None:
    for op in ops:
        getattr(pipe, op.command.lower())(op.key, *op.args)


@contextmanager
def _translate_errors(ops: Sequence[BitOp]) -> Iterator[None]:
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError) as exc:
        logger.warning("Redis unavailable during batch of %d ops: %s", len(ops), exc)
        raise StoreUnavailable(f"Redis unavailable: {exc}") from exc
    except RedisError as exc:
        logger.warning("Redis rejected batch of %d ops: %s", len(ops), exc)
        raise StoreError(f"Redis error: {exc}") from exc


def run_batch(client: redis.Redis, ops: Sequence[BitOp]) -> List[Any]:
    """
    Send every op in one pipeline (no MULTI/EXEC) and return the replies
    in submission order. Nothing is atomic across ops; the only promise is
    a single round trip.
    """
    if not ops:
        return []
    with _translate_errors(ops):
        with client.pipeline(transaction=False) as pipe:
            _queue(pipe, ops)
            return pipe.execute()


async def run_batch_async(client: aioredis.Redis, ops: Sequence[BitOp]) -> List[Any]:
    """Same contract as run_batch, for redis.asyncio clients."""
    if not ops:
        return []
    with _translate_errors(ops):
        async with client.pipeline(transaction=False) as pipe:
            _queue(pipe, ops)
            return await pipe.execute()
