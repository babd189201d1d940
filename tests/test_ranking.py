from __future__ import annotations

import random

import pytest
from hypothesis import given, strategies as st

from cheat_check.comparator import Score
from cheat_check.pairs import Pair
from cheat_check.ranking import rank, validate_threshold

identities = st.sampled_from(["a", "b", "c", "d", "e"])


@st.composite
def scores(draw):
    first = draw(identities)
    second = draw(identities.filter(lambda x: x != first))
    return Score(Pair.of(first, second), draw(st.floats(min_value=0, max_value=1)))


def s(a, b, value):
    return Score(Pair.of(a, b), value)


def test_threshold_is_inclusive():
    assert rank([s("a", "b", 0.5), s("a", "c", 0.4999)], 0.5) == [s("a", "b", 0.5)]


def test_sorted_descending():
    ranked = rank([s("a", "b", 0.6), s("c", "d", 0.9), s("a", "c", 0.75)], 0.0)
    assert [r.value for r in ranked] == [0.9, 0.75, 0.6]


def test_ties_broken_by_identities():
    tied = [s("c", "d", 0.8), s("a", "d", 0.8), s("b", "a", 0.8), s("a", "c", 0.8)]
    ranked = rank(tied, 0.8)
    assert [r.pair for r in ranked] == [Pair("a", "b"), Pair("a", "c"), Pair("a", "d"), Pair("c", "d")]


def test_input_order_does_not_matter():
    items = [s(a, b, round(random.Random(i).random(), 2)) for i, (a, b) in enumerate(
        [("a", "b"), ("a", "c"), ("b", "c"), ("c", "d"), ("a", "d"), ("b", "d")]
    )]
    expected = rank(items, 0.2)
    for seed in range(5):
        shuffled = items[:]
        random.Random(seed).shuffle(shuffled)
        assert rank(shuffled, 0.2) == expected


def test_empty_input():
    assert rank([], 0.5) == []


@pytest.mark.parametrize("threshold", [-0.01, 1.01, float("nan")])
def test_invalid_threshold(threshold):
    with pytest.raises(ValueError):
        rank([s("a", "b", 0.5)], threshold)


def test_threshold_bounds_are_valid():
    assert validate_threshold(0) == 0.0
    assert validate_threshold(1) == 1.0
    assert rank([s("a", "b", 1.0), s("a", "c", 0.99)], 1.0) == [s("a", "b", 1.0)]


@given(st.lists(scores(), max_size=30), st.floats(min_value=0, max_value=1))
def test_rank_is_idempotent(items, threshold):
    once = rank(items, threshold)
    assert rank(once, threshold) == once
    assert all(r.value >= threshold for r in once)
    assert len(once) == sum(1 for i in items if i.value >= threshold)
