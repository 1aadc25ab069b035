from __future__ import annotations

import random
from bisect import bisect_left

import pytest

from sitebuilder.core.errors import InvalidOrderKey
from sitebuilder.core.order_keys import OrderKey, key_between, keys_between, validate_key


def test_empty_collection_starts_in_the_middle():
    assert key_between(None, None) == OrderKey("i")
    assert OrderKey.initial() == OrderKey("i")


def test_open_bounds():
    assert str(key_between("i", None)) > "i"
    assert str(key_between(None, "i")) < "i"
    assert str(key_between(None, "i")) == "9"


@pytest.mark.parametrize(
    "lo, hi",
    [
        ("a", "b"),
        ("a", "a1"),
        ("az", "b"),
        ("ab", "ac"),
        ("a", "bz"),
        ("0001", "0002"),
        ("y", "z"),
        ("z", None),
        ("zzzz", None),
        (None, "01"),
        (None, "001"),
    ],
)
def test_key_is_strictly_between(lo, hi):
    key = str(key_between(lo, hi))
    if lo is not None:
        assert lo < key
    if hi is not None:
        assert key < hi
    assert not key.endswith("0")


def test_adjacent_symbols_grow_the_key():
    assert str(key_between("a", "b")) == "ai"
    assert str(key_between("a", "a1")) == "a0i"


def test_ten_thousand_inserts_into_one_gap():
    rnd = random.Random(20240117)
    keys = ["a", "b"]
    for _ in range(10_000):
        i = rnd.randrange(1, len(keys))
        new = str(key_between(keys[i - 1], keys[i]))
        assert keys[i - 1] < new < keys[i]
        keys.insert(i, new)

    assert keys == sorted(keys)
    assert len(set(keys)) == len(keys)
    for k in keys:
        validate_key(k)


def test_repeated_append_at_the_same_spot_never_runs_out():
    lo, hi = "m", "n"
    for _ in range(1_000):
        nxt = str(key_between(lo, hi))
        assert lo < nxt < hi
        lo = nxt


def test_repeated_prepend_never_runs_out():
    hi = "1"
    for _ in range(500):
        nxt = str(key_between(None, hi))
        assert nxt < hi
        hi = nxt


def test_keys_between_are_ascending_and_inside_the_gap():
    keys = [str(k) for k in keys_between("c", "d", 50)]
    assert keys == sorted(keys)
    assert len(set(keys)) == 50
    assert all("c" < k < "d" for k in keys)


def test_keys_between_zero_count():
    assert keys_between(None, None, 0) == []


def test_order_key_compares_like_its_string():
    pool = ["9", "a", "a0i", "ai", "b", "i", "zz"]
    assert sorted(OrderKey(k) for k in pool) == [OrderKey(k) for k in sorted(pool)]
    assert bisect_left(sorted(pool), "ah") == 3


@pytest.mark.parametrize("bad", ["", "A", "a-b", "a0", "0", "é", " a"])
def test_malformed_keys_are_rejected(bad):
    with pytest.raises(InvalidOrderKey):
        OrderKey(bad)
    with pytest.raises(InvalidOrderKey):
        key_between(bad, None)


@pytest.mark.parametrize("lo, hi", [("b", "a"), ("a", "a")])
def test_inverted_bounds_are_rejected(lo, hi):
    with pytest.raises(InvalidOrderKey):
        key_between(lo, hi)
