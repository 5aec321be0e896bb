"""Skill-driven reordering of scored candidates to simulate imperfect play."""

from __future__ import annotations

import random
from typing import Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    """The subset of `random.Random` the orderer needs."""

    def random(self) -> float: ...

    def randrange(self, stop: int) -> int: ...


def select_candidate_order(
    scored: Sequence[T],
    random_choice_percent: float,
    suboptimality_percent: float,
    rng: Optional[RandomSource] = None,
) -> list[T]:
    """
    Decide the order in which candidates are attempted.

    One roll in [0, 100) picks a band:
    - below `random_choice_percent`: a uniformly random candidate moves to the front
    - below the sum of both percentages: the top two candidates swap
    - otherwise: the ranked order is kept

    Scores are never changed, only order.

    Args:
        scored: Candidates sorted best first
        random_choice_percent: Chance of trying a random candidate first
        suboptimality_percent: Chance of trying the second best first
        rng: Random source; a fresh `random.Random()` when omitted

    Returns:
        A new list holding the same candidates
    """
    ordered = list(scored)
    if len(ordered) <= 1:
        return ordered

    rng = rng or random.Random()
    roll = rng.random() * 100

    if roll < random_choice_percent:
        chosen = ordered.pop(rng.randrange(len(ordered)))
        ordered.insert(0, chosen)
    elif roll < random_choice_percent + suboptimality_percent:
        ordered[0], ordered[1] = ordered[1], ordered[0]
    return ordered
