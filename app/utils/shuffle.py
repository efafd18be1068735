"""
Shuffle Helper

Fisher-Yates over a copy of the input. No per-student seed: every call
produces a fresh uniform permutation.
"""

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")

_system_random = random.SystemRandom()


def shuffled(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a new list with the elements of `items` in random order."""
    rng = rng or _system_random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result
