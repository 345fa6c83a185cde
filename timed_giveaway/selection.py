from __future__ import annotations

import random
import secrets
from typing import Hashable, Iterable, List, Optional


def select_winners(
    participants: Iterable[Hashable],
    count: int,
    *,
    rng: Optional[random.Random] = None,
) -> List[Hashable]:
    """Draw ``count`` distinct participants, every subset equally likely.

    ``Random.sample`` performs a partial Fisher-Yates draw, so the result is
    uniform without replacement. The population is ordered by ``repr`` first
    so a seeded ``rng`` reproduces the same draw regardless of set ordering.
    """
    population = sorted(set(participants), key=repr)
    if count < 0 or count > len(population):
        raise ValueError(
            f"count must be between 0 and {len(population)}, got {count}"
        )
    if count == 0:
        return []
    if rng is None:
        rng = secrets.SystemRandom()
    return rng.sample(population, count)
