"""
Winner selection.

Draws are a Fisher-Yates shuffle over a copy of the eligible pool followed by
taking the first N entries. Every eligible participant is equally likely to
land at any rank, and no participant can be picked twice in one draw.

The random source is stdlib random.Random: casual event use does not need
cryptographic strength, and a seeded instance makes draws reproducible in
tests.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from lottery.logic.exceptions import EmptyPoolError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from lottery.logic.models import Participant


def effective_draw_count(requested: int, pool_size: int) -> int:
    """Clamp a requested count to [1, pool_size]."""
    return min(max(requested, 1), pool_size)


def fisher_yates_shuffle(items: Sequence[Participant], rng: random.Random) -> list[Participant]:
    """
    Return a uniformly shuffled copy of items.

    For i in n-1..1: swap result[i] with result[randrange(i + 1)].
    randrange is rejection-sampled in CPython, so there is no modulo bias.
    """
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randrange(i + 1)
        result[i], result[j] = result[j], result[i]
    return result


def draw(pool: Sequence[Participant], count: int, rng: random.Random | None = None) -> list[Participant]:
    """
    Pick min(count, len(pool)) distinct winners from pool.

    count <= 0 is treated as 1. Raises EmptyPoolError when pool is empty.
    Never mutates pool.
    """
    if not pool:
        raise EmptyPoolError
    if rng is None:
        rng = random.Random()  # noqa: S311
    shuffled = fisher_yates_shuffle(pool, rng)
    return shuffled[: effective_draw_count(count, len(pool))]
