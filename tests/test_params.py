import dataclasses
import math

import pytest

from bitmap_bloom import FilterParameters, InvalidParameters, compute_sizing
from bitmap_bloom.params import MAX_BITMAP_LENGTH, round_half_up


def test_reference_sizing():
    m, k = compute_sizing(3000, 0.03)
    expected_m = int(-3000 * math.log(0.03) / (math.log(2) ** 2))
    assert m == expected_m
    assert 21000 < m < 23000
    assert k == 5


@pytest.mark.parametrize(
    "n, p",
    [(1, 0.5), (2, 0.7), (10, 0.01), (1000, 0.001), (1_000_000, 0.0001), (3000, 0.03)],
)
def test_valid_inputs_give_usable_sizing(n, p):
    m, k = compute_sizing(n, p)
    assert m > 0
    assert k >= 1


def test_hash_count_floors_at_one():
    # m/n*ln2 ~ 0.35 rounds to 0
    m, k = compute_sizing(10, 0.75)
    assert k == 1
    assert m == int(-10 * math.log(0.75) / (math.log(2) ** 2))


@pytest.mark.parametrize("n", [0, -1, -3000])
def test_rejects_non_positive_expected_elements(n):
    with pytest.raises(InvalidParameters):
        compute_sizing(n, 0.03)


@pytest.mark.parametrize("n", [1.5, "3000", None, True])
def test_rejects_non_int_expected_elements(n):
    with pytest.raises(InvalidParameters):
        compute_sizing(n, 0.03)


@pytest.mark.parametrize("p", [0, 0.0, 1, 1.0, -0.1, 1.5, float("nan"), None, "0.03"])
def test_rejects_rate_outside_open_interval(p):
    with pytest.raises(InvalidParameters):
        compute_sizing(3000, p)


def test_rejects_zero_length_bitmap():
    # -ln(0.9)/ln2^2 ~ 0.22 bits for a single element
    with pytest.raises(InvalidParameters, match="bitmap length is 0"):
        compute_sizing(1, 0.9)


def test_rejects_bitmap_beyond_redis_limit():
    with pytest.raises(InvalidParameters, match="Redis limit"):
        compute_sizing(10 ** 9, 1e-9)
    with pytest.raises(InvalidParameters, match="Redis limit") as info:
        compute_sizing(10 ** 400, 0.5)
    assert isinstance(info.value.__cause__, OverflowError)
    assert compute_sizing(10 ** 8, 0.01)[0] < MAX_BITMAP_LENGTH


def test_invalid_parameters_is_value_error():
    with pytest.raises(ValueError):
        FilterParameters.create(0, 0.5)


def test_parameters_are_frozen():
    params = FilterParameters.create(3000, 0.03)
    with pytest.raises(dataclasses.FrozenInstanceError):
        params.bitmap_length = 1


def test_round_half_up_matches_java_round():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(0.49) == 0


def test_approximate_count_and_fpp_bounds():
    params = FilterParameters.create(3000, 0.03)
    assert params.approximate_count(0) == 0
    assert params.approximate_count(params.bitmap_length) == params.bitmap_length
    assert params.fpp_for(0) == 0.0
    assert params.fpp_for(params.bitmap_length) == 1.0
    # half the bits set is the design point: ~n elements, fpp near the target
    half = params.bitmap_length // 2
    assert abs(params.approximate_count(half) - 3000) < 100
    assert params.fpp_for(half) == pytest.approx(0.5 ** params.hash_function_count, rel=1e-3)
