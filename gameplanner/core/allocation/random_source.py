"""Injected randomness for allocation."""

import random
from typing import Any, MutableSequence, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    """
    Source of randomness used by sampling and placement.

    random.Random satisfies this protocol; tests pass a seeded instance
    for deterministic plans.
    """

    def shuffle(self, x: MutableSequence[Any]) -> None: ...

    def choice(self, seq: Sequence[T]) -> T: ...

    def random(self) -> float: ...


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Create a random source, seeded when a seed is given."""
    return random.Random(seed)
