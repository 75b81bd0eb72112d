"""Unit tests for weighted random node selection."""

from __future__ import annotations

import random
from collections import Counter
from unittest.mock import MagicMock

import pytest

from sphinxql.balancing.selector import WeightedNodeSelector

TRIALS = 60_000


class TestWeightedNodeSelector:
    """Tests for the single-draw weighted policy."""

    @pytest.mark.parametrize(
        "weights",
        [
            {0: 1, 1: 1},
            {0: 3, 1: 1},
            {0: 5, 1: 3, 2: 2},
            {0: 1, 1: 0, 2: 9},
        ],
    )
    def test_frequencies_converge_to_weight_share(self, weights: dict[int, int]) -> None:
        """Test each node is picked about weight / total of the time."""
        selector = WeightedNodeSelector(random.Random(1234))
        candidates = list(weights.items())
        total = sum(weights.values())

        counts = Counter(selector.select(candidates) for _ in range(TRIALS))

        for index, weight in weights.items():
            assert counts[index] / TRIALS == pytest.approx(weight / total, abs=0.015)

    def test_zero_weight_node_is_never_picked(self) -> None:
        selector = WeightedNodeSelector(random.Random(99))
        picks = {selector.select([(0, 0), (1, 4), (2, 0)]) for _ in range(2_000)}
        assert picks == {1}

    @pytest.mark.parametrize(
        "candidates",
        [
            [(3, 0)],
            [(2, 0), (5, 0)],
        ],
    )
    def test_all_zero_weights_fall_back_to_first(self, candidates: list[tuple[int, int]]) -> None:
        """Test zero total weight still returns a live node."""
        selector = WeightedNodeSelector(random.Random(0))
        assert selector.select(candidates) == candidates[0][0]

    def test_single_candidate(self) -> None:
        assert WeightedNodeSelector().select([(4, 10)]) == 4

    def test_walks_candidates_in_order(self) -> None:
        """Test the draw is mapped onto cumulative ranges in list order."""
        rng = MagicMock(spec=random.Random)
        selector = WeightedNodeSelector(rng)
        candidates = [(0, 2), (1, 3), (2, 5)]

        for draw, expected in [(0, 0), (1, 0), (2, 1), (4, 1), (5, 2), (9, 2)]:
            rng.randrange.return_value = draw
            assert selector.select(candidates) == expected

        rng.randrange.assert_called_with(10)

    def test_empty_candidates_raise(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            WeightedNodeSelector().select([])
