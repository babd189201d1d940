from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from cheat_check.documents import Document
from cheat_check.errors import DuplicateIdentity
from cheat_check.pairs import Pair, chunk_pairs, enumerate_pairs, pair_count


def docs(*names):
    return [Document(name, name) for name in names]


def test_pair_is_unordered():
    assert Pair.of("b", "a") == Pair.of("a", "b") == Pair("a", "b")
    assert Pair.of("b", "a").first == "a"
    assert str(Pair.of("y", "x")) == "x <-> y"


def test_self_pair_is_invalid():
    with pytest.raises(ValueError):
        Pair.of("a", "a")


def test_pair_fields_must_be_canonical():
    with pytest.raises(ValueError):
        Pair("b", "a")


@pytest.mark.parametrize("n", [0, 1])
def test_fewer_than_two_documents_have_no_pairs(n):
    assert enumerate_pairs(docs(*"ab"[:n])) == []
    assert pair_count(n) == 0


def test_enumeration_order_follows_input_indices():
    assert enumerate_pairs(docs("c", "a", "b")) == [
        Pair("a", "c"),
        Pair("b", "c"),
        Pair("a", "b"),
    ]


def test_duplicate_identities_are_rejected():
    with pytest.raises(DuplicateIdentity):
        enumerate_pairs(docs("a", "b", "a"))


@given(st.lists(st.text(min_size=1, max_size=6), unique=True, max_size=15))
def test_every_unordered_pair_exactly_once(names):
    pairs = enumerate_pairs(docs(*names))
    n = len(names)
    assert len(pairs) == n * (n - 1) // 2 == pair_count(n)
    assert len(set(pairs)) == len(pairs)
    expected = {frozenset((a, b)) for a in names for b in names if a != b}
    assert {frozenset((p.first, p.second)) for p in pairs} == expected


@given(st.integers(min_value=0, max_value=60), st.integers(min_value=1, max_value=20))
def test_chunks_partition_the_pairs(n_pairs, chunks):
    pairs = [Pair(f"a{i:03d}", f"b{i:03d}") for i in range(n_pairs)]
    result = chunk_pairs(pairs, chunks)
    assert [p for chunk in result for p in chunk] == pairs
    assert len(result) == min(chunks, n_pairs)
    if result:
        sizes = [len(chunk) for chunk in result]
        assert min(sizes) >= 1
        assert max(sizes) - min(sizes) <= 1


def test_chunk_count_must_be_positive():
    with pytest.raises(ValueError):
        chunk_pairs([Pair("a", "b")], 0)
