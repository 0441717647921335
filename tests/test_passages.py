"""Tests for reading passage selection."""

import random

from streaming_benchmark.passages import PASSAGES, random_passage


class TestPassages:
    """Tests for the passage pool."""

    def test_pool_size(self) -> None:
        assert len(PASSAGES) == 8
        assert len(set(PASSAGES)) == len(PASSAGES)

    def test_passages_long_enough_to_read_for_half_a_minute(self) -> None:
        for passage in PASSAGES:
            assert 55 <= len(passage.split()) <= 110


class TestRandomPassage:
    """Tests for random_passage."""

    def test_returns_index_and_text(self) -> None:
        index, text = random_passage(rng=random.Random(1))
        assert text == PASSAGES[index]

    def test_seeded_rng_is_repeatable(self) -> None:
        assert random_passage(rng=random.Random(7)) == random_passage(rng=random.Random(7))

    def test_excluded_passages_not_chosen(self) -> None:
        rng = random.Random(3)
        excluded = set(range(len(PASSAGES) - 1))
        for _ in range(20):
            index, _ = random_passage(excluded, rng)
            assert index == len(PASSAGES) - 1

    def test_session_uses_every_passage_before_repeating(self) -> None:
        rng = random.Random(11)
        used: set[int] = set()
        for _ in range(len(PASSAGES)):
            index, _ = random_passage(used, rng)
            assert index not in used
            used.add(index)
        assert used == set(range(len(PASSAGES)))

    def test_exhausted_pool_starts_over(self) -> None:
        index, _ = random_passage(set(range(len(PASSAGES))), random.Random(5))
        assert 0 <= index < len(PASSAGES)
