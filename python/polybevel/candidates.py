# python/polybevel/candidates.py
# Incrementally maintained set of edge pairs that may produce a split event
# Exists so the sweep avoids rescanning every edge pair after each topology change
# RELEVANT FILES: python/polybevel/builder.py, python/polybevel/events.py, tests/test_candidates.py

from __future__ import annotations

from typing import Iterable, Iterator, List, Set, Tuple

import numpy as np

from .edges import EdgeGraph

Pair = Tuple[int, int]

# Corners moving forward along their own segment faster than this cannot split anything.
_REFLEX_TANGENT_SPEED = 0.001


class CandidatePairTracker:
    """Ordered pairs ``(a, b)``: the corner of ``a`` may cross the front of ``b``.

    Membership is only a hint. Every pair is re-validated before use and
    pairs referencing inactive edges are dropped when the sweep meets them.
    """

    def __init__(self) -> None:
        self._pairs: Set[Pair] = set()

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, pair: Pair) -> bool:
        return pair in self._pairs

    def __iter__(self) -> Iterator[Pair]:
        return iter(self._pairs)

    def clear(self) -> None:
        self._pairs.clear()

    def discard(self, index: int, other: int) -> None:
        self._pairs.discard((index, other))

    def seed(self, graph: EdgeGraph) -> None:
        """Register every reflex corner against every other active edge."""

        active = list(graph.active)
        for index in active:
            edge = graph[index]
            if float(np.dot(edge.tangent, edge.velocity)) > _REFLEX_TANGENT_SPEED:
                continue
            for other in active:
                if other != index:
                    self._pairs.add((index, other))

    def add_all_for(self, index: int, active: Iterable[int]) -> None:
        """Pair ``index`` with every active edge, in both directions."""

        for other in active:
            if other == index:
                continue
            self._pairs.add((index, other))
            self._pairs.add((other, index))

    def snapshot(self, into: List[Pair]) -> List[Pair]:
        """Copy the current pairs into a reusable scratch list."""

        into.clear()
        into.extend(self._pairs)
        return into
