import mmh3
import pytest

from bitmap_bloom import FilterParameters, bit_indices
from bitmap_bloom.hashing import element_hashes, positions_from_hashes, split_digest


def _digest(low: int, high: int) -> bytes:
    return low.to_bytes(8, "little") + high.to_bytes(8, "little")


def test_split_digest_reads_each_half_little_endian():
    digest = bytes(range(16))
    hash1, hash2 = split_digest(digest)
    assert hash1 == 0x0706050403020100
    assert hash2 == 0x0F0E0D0C0B0A0908


def test_split_digest_rejects_wrong_length():
    with pytest.raises(ValueError):
        split_digest(b"\x00" * 8)


def test_double_hashing_positions():
    hash1, hash2 = split_digest(_digest(1, 2))
    assert positions_from_hashes(hash1, hash2, 100, 4) == (1, 3, 5, 7)


def test_sign_bit_is_masked():
    hash1, hash2 = split_digest(_digest((1 << 63) + 5, 0))
    assert positions_from_hashes(hash1, hash2, 1000, 2) == (5, 5)


def test_combined_hash_wraps_at_64_bits():
    # hash1 = -1 as a signed long; adding 1 wraps to 0
    hash1, hash2 = split_digest(_digest((1 << 64) - 1, 1))
    assert positions_from_hashes(hash1, hash2, 1000, 2) == (((1 << 63) - 1) % 1000, 0)


def test_element_hashes_use_murmur3_x64_128_of_utf8():
    digest = mmh3.hash_bytes("ключ".encode("utf-8"), 0, True)
    assert element_hashes("ключ") == split_digest(digest)


def test_indices_are_deterministic_and_in_range():
    params = FilterParameters.create(3000, 0.03)
    first = bit_indices("76930242", params)
    assert first == bit_indices("76930242", params)
    assert len(first) == params.hash_function_count
    assert all(0 <= i < params.bitmap_length for i in first)


def test_indices_depend_on_parameters():
    small = FilterParameters.create(100, 0.01)
    large = FilterParameters.create(100_000, 0.01)
    elements = [str(76930242 + i) for i in range(20)]
    assert [bit_indices(e, small) for e in elements] != [bit_indices(e, large) for e in elements]


def test_distinct_elements_spread_over_bitmap():
    params = FilterParameters.create(1000, 0.01)
    seen = set()
    for i in range(1000):
        seen.update(bit_indices(f"user:{i}", params))
    # ~7000 draws into ~9585 slots; a poor hash would cluster far below this
    assert len(seen) > params.bitmap_length * 0.4
