from __future__ import annotations
from typing import Tuple

import mmh3

from .params import FilterParameters

_SIGN_MASK = (1 << 63) - 1


def split_digest(digest: bytes) -> Tuple[int, int]:
    """
    Murmur3 x64 128 digest -> (hash1, hash2).

    Both halves are read least significant byte first. This MUST stay stable:
    writers and readers that disagree on the byte order set different bits.
    """
    if len(digest) != 16:
        raise ValueError(f"expected a 16 byte digest, got {len(digest)}")
    return int.from_bytes(digest[:8], "little"), int.from_bytes(digest[8:], "little")


def element_hashes(element: str) -> Tuple[int, int]:
    digest = mmh3.hash_bytes(element.encode("utf-8"), 0, True)
    return split_digest(digest)


def positions_from_hashes(hash1: int, hash2: int, bitmap_length: int, count: int) -> Tuple[int, ...]:
    # Double hashing over wrapping 64-bit arithmetic, sign bit masked off.
    return tuple(((hash1 + i * hash2) & _SIGN_MASK) % bitmap_length for i in range(count))


def bit_indices(element: str, params: FilterParameters) -> Tuple[int, ...]:
    hash1, hash2 = element_hashes(element)
    return positions_from_hashes(hash1, hash2, params.bitmap_length, params.hash_function_count)
