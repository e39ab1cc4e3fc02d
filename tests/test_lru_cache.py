from __future__ import annotations

import random
from collections import OrderedDict

import pytest

from lyricsify.cache.lru import LyricsCache


def test_get_miss_returns_none():
    cache = LyricsCache(3)
    assert cache.get("nope") is None
    assert len(cache) == 0


def test_insert_evicts_least_recently_used():
    cache = LyricsCache(2)
    cache.insert("a", "A")
    cache.insert("b", "B")
    cache.insert("c", "C")
    assert "a" not in cache
    assert cache.keys() == ["b", "c"]


def test_get_refreshes_recency():
    cache = LyricsCache(2)
    cache.insert("a", "A")
    cache.insert("b", "B")
    assert cache.get("a").value == "A"
    cache.insert("c", "C")
    assert "b" not in cache
    assert cache.keys() == ["a", "c"]


def test_overwrite_existing_key_does_not_evict():
    cache = LyricsCache(2)
    cache.insert("a", "A")
    cache.insert("b", "B")
    cache.insert("a", "A2")
    assert len(cache) == 2
    assert cache.get("a").value == "A2"
    assert cache.keys() == ["b", "a"]


def test_negative_entries_take_a_slot():
    cache = LyricsCache(2)
    cache.insert("a", None)
    cache.insert("b", "B")
    entry = cache.get("a")
    assert entry is not None and entry.value is None
    cache.insert("c", None)
    assert len(cache) == 2
    assert "b" not in cache


def test_entry_records_insert_time():
    cache = LyricsCache(2, clock=lambda: 1234.5)
    cache.insert("a", "A")
    entry = cache.get("a")
    assert entry.key == "a"
    assert entry.inserted_at == 1234.5


def test_contains_does_not_touch():
    cache = LyricsCache(2)
    cache.insert("a", "A")
    cache.insert("b", "B")
    assert "a" in cache
    cache.insert("c", "C")
    assert "a" not in cache


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        LyricsCache(0)


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_random_operations_match_reference_model(seed):
    rng = random.Random(seed)
    capacity = 5
    cache = LyricsCache(capacity)
    model: OrderedDict[str, str | None] = OrderedDict()

    for _ in range(500):
        key = f"k{rng.randrange(12)}"
        if rng.random() < 0.5:
            value = rng.choice([None, f"lyrics {key}"])
            if key not in model and len(model) >= capacity:
                lru = next(iter(model))
                model.pop(lru)
                cache.insert(key, value)
                assert lru not in cache
            else:
                cache.insert(key, value)
            model[key] = value
            model.move_to_end(key)
        else:
            entry = cache.get(key)
            if key in model:
                model.move_to_end(key)
                assert entry is not None and entry.value == model[key]
            else:
                assert entry is None

        assert len(cache) <= capacity
        assert cache.keys() == list(model)
