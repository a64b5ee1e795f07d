from __future__ import annotations
from typing import Iterable, Optional

from .hashing import bit_indices
from .params import FilterParameters


class LocalBloomFilter:
    """
    In-process Bloom filter over a bytearray (reference / offline inspection).
    Same sizing and indices as RedisBloomFilter, and the same bit order as a
    Redis string: offset 0 is the most significant bit of byte 0, so
    to_bytes() matches GET bf:<key> for the same inserts.
    """

    def __init__(self, params: FilterParameters, bitmap: Optional[bytes] = None) -> None:
        self.params = params
        size = (params.bitmap_length + 7) // 8
        self._bytes = bytearray(size)
        if bitmap:
            chunk = bitmap[:size]
            self._bytes[: len(chunk)] = chunk

    @classmethod
    def create(cls, expected_elements: int, false_positive_rate: float) -> "LocalBloomFilter":
        return cls(FilterParameters.create(expected_elements, false_positive_rate))

    @classmethod
    def from_bitmap(cls, params: FilterParameters, raw: Optional[bytes]) -> "LocalBloomFilter":
        # Redis returns None for a missing key and trims trailing zero bytes
        return cls(params, raw or b"")

    def add(self, element: str) -> None:
        for bit in bit_indices(element, self.params):
            self._bytes[bit // 8] |= 0x80 >> (bit % 8)

    def update(self, elements: Iterable[str]) -> None:
        for element in elements:
            self.add(element)

    def __contains__(self, element: str) -> bool:
        for bit in bit_indices(element, self.params):
            if not (self._bytes[bit // 8] & (0x80 >> (bit % 8))):
                return False
        return True

    def to_bytes(self) -> bytes:
        return bytes(self._bytes)

    def bit_count(self) -> int:
        return sum(bin(b).count("1") for b in self._bytes)

    def approximate_element_count(self) -> int:
        return self.params.approximate_count(self.bit_count())

    def expected_fpp(self) -> float:
        return self.params.fpp_for(self.bit_count())
