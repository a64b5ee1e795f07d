from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Tuple

from .errors import InvalidParameters

# A Redis string tops out at 512 MB, so SETBIT/GETBIT offsets stop at 2**32 - 1.
MAX_BITMAP_LENGTH = 2 ** 32

_LN2_SQUARED = math.log(2) * math.log(2)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_sizing(expected_elements: int, false_positive_rate: float) -> Tuple[int, int]:
    """
    Optimal Bloom filter sizing:
      m = -n * ln(p) / ln(2)^2   (truncated toward zero)
      k = max(1, round(m / n * ln(2)))

    Every process sharing a filter must call this with the same n and p,
    otherwise the bit positions silently diverge.
    """
    if isinstance(expected_elements, bool) or not isinstance(expected_elements, int):
        raise InvalidParameters(f"expected_elements must be an int, got {expected_elements!r}")
    if expected_elements <= 0:
        raise InvalidParameters(f"expected_elements must be > 0, got {expected_elements}")
    if isinstance(false_positive_rate, bool) or not isinstance(false_positive_rate, (int, float)):
        raise InvalidParameters(f"false_positive_rate must be a float, got {false_positive_rate!r}")
    if not 0.0 < false_positive_rate < 1.0:
        raise InvalidParameters(f"false_positive_rate must be in (0, 1), got {false_positive_rate}")

    try:
        bitmap_length = int(-expected_elements * math.log(false_positive_rate) / _LN2_SQUARED)
    except OverflowError as exc:
        raise InvalidParameters(
            f"bitmap length for expected_elements={expected_elements} exceeds the Redis limit "
            f"of {MAX_BITMAP_LENGTH} bits"
        ) from exc
    if bitmap_length <= 0:
        raise InvalidParameters(
            f"bitmap length is 0 for expected_elements={expected_elements}, "
            f"false_positive_rate={false_positive_rate}"
        )
    if bitmap_length > MAX_BITMAP_LENGTH:
        raise InvalidParameters(
            f"bitmap length {bitmap_length} exceeds the Redis limit of {MAX_BITMAP_LENGTH} bits"
        )

    hash_function_count = max(1, round_half_up(bitmap_length / expected_elements * math.log(2)))
    return bitmap_length, hash_function_count


@dataclass(frozen=True)
class FilterParameters:
    expected_elements: int
    false_positive_rate: float
    bitmap_length: int
    hash_function_count: int

    @classmethod
    def create(cls, expected_elements: int, false_positive_rate: float) -> "FilterParameters":
        bitmap_length, hash_function_count = compute_sizing(expected_elements, false_positive_rate)
        return cls(
            expected_elements=expected_elements,
            false_positive_rate=float(false_positive_rate),
            bitmap_length=bitmap_length,
            hash_function_count=hash_function_count,
        )

    def approximate_count(self, bits_set: int) -> int:
        # Swamidass & Baldi estimate, as in Guava's approximateElementCount.
        if bits_set <= 0:
            return 0
        if bits_set >= self.bitmap_length:
            return self.bitmap_length
        fraction = bits_set / self.bitmap_length
        return round_half_up(-self.bitmap_length / self.hash_function_count * math.log1p(-fraction))

    def fpp_for(self, bits_set: int) -> float:
        fraction = min(max(bits_set, 0), self.bitmap_length) / self.bitmap_length
        return fraction ** self.hash_function_count
