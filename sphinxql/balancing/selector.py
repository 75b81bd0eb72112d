from __future__ import annotations

import random
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class WeightedNodeSelector:
    """Single-draw weighted random choice over candidate nodes.

    Each call is independent: over many calls a node is picked with
    probability ``weight / total_weight``, but a handful of calls may well
    hit the same node repeatedly. This is not round-robin.

    Parameters
    ----------
    rng : random.Random | None
        Random source, seedable for tests.
    """

    __slots__ = ("_rng",)

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def select(self, candidates: Sequence[tuple[int, int]]) -> int:
        """Pick one node index from ``(index, weight)`` pairs.

        Weights of zero take no share of the range. When every candidate
        weighs zero the first candidate is returned.

        Raises
        ------
        ValueError
            If there are no candidates.
        """
        if not candidates:
            raise ValueError("Cannot select from an empty candidate list")

        total = sum(weight for _, weight in candidates)
        if total <= 0:
            return candidates[0][0]

        draw = self._rng.randrange(total)
        running = 0
        for index, weight in candidates:
            running += weight
            if running > draw:
                return index

        # unreachable while weights are non-negative
        return candidates[-1][0]
