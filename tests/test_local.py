from bitmap_bloom import FilterParameters, LocalBloomFilter, bit_indices


def test_membership():
    bf = LocalBloomFilter.create(1000, 0.01)
    bf.update(f"id-{i}" for i in range(1000))
    assert all(f"id-{i}" in bf for i in range(1000))
    false_hits = sum(1 for i in range(5000) if f"other-{i}" in bf)
    assert false_hits / 5000 < 0.02


def test_bit_order_matches_redis_strings():
    # offset 0 is the high bit of byte 0, as with SETBIT
    params = FilterParameters(expected_elements=1, false_positive_rate=0.5, bitmap_length=16, hash_function_count=1)
    bf = LocalBloomFilter(params)
    bf.add("76930242")
    (index,) = bit_indices("76930242", params)
    expected = bytearray(2)
    expected[index // 8] = 0x80 >> (index % 8)
    assert bf.to_bytes() == bytes(expected)


def test_from_bitmap_pads_short_snapshot():
    params = FilterParameters.create(1000, 0.01)
    assert LocalBloomFilter.from_bitmap(params, None).bit_count() == 0
    bf = LocalBloomFilter.from_bitmap(params, b"\xff")
    assert len(bf.to_bytes()) == (params.bitmap_length + 7) // 8
    assert bf.bit_count() == 8


def test_estimates():
    bf = LocalBloomFilter.create(1000, 0.01)
    assert bf.approximate_element_count() == 0
    bf.update(str(i) for i in range(500))
    assert abs(bf.approximate_element_count() - 500) < 40
    assert 0 < bf.expected_fpp() < 0.01
