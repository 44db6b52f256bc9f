"""
Shuffling for playlist items and tracks.

The algorithm swaps every position with a uniformly drawn position over
the WHOLE sequence. The draw range doesn't shrink, so this is not
Fisher-Yates and the resulting distribution is only approximately
uniform. That is fine for playlist order; callers and tests should only
rely on the result being a permutation of the input.
"""

import random
from typing import MutableSequence, Protocol, TypeVar


T = TypeVar("T")


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int: ...


def shuffle_in_place(items: MutableSequence[T], rng: RandomSource | None = None) -> None:
    """
    Randomly permute a sequence in place.

    Args:
        items: Any mutable sequence (list, deque, ...).
        rng: Source of randomness with a randrange(stop) method.
             Defaults to the random module. Pass a seeded
             random.Random for reproducible order.

    Example:
        tracks = [a, b, c, d]
        shuffle_in_place(tracks, random.Random(42))
    """
    source = rng if rng is not None else random
    size = len(items)
    for first in range(size):
        second = source.randrange(size)
        items[first], items[second] = items[second], items[first]
