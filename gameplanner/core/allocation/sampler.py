"""
Concept-Diversity Sampler.

Picks plays from a candidate set preferring unique concepts, and falls
back to repeating concepts rather than leaving slots empty.
"""

from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, Sequence

from gameplanner.core.allocation.random_source import RandomSource
from gameplanner.core.models import Play


@dataclass
class SampleResult:
    """Plays drawn by the sampler and the concepts used so far."""

    selected: list[Play] = field(default_factory=list)
    used_concepts: set[str] = field(default_factory=set)

    @property
    def ids(self) -> set[str]:
        return {play.id for play in self.selected}

    def __len__(self) -> int:
        return len(self.selected)


def sample(
    candidates: Sequence[Play],
    count: int,
    used_concepts: AbstractSet[str],
    rng: RandomSource,
    exclude_ids: Iterable[str] = (),
) -> SampleResult:
    """
    Draw up to count plays, preferring concepts not yet used.

    1. Shuffle the candidates.
    2. Accept candidates whose concept is unused until count is reached.
    3. If short, walk the skipped and unreached candidates again without
       the concept filter.

    The caller's used_concepts set is not modified; the returned result
    carries an updated copy. Plays whose id is in exclude_ids (or that
    repeat an id already drawn) are never selected.

    Args:
        candidates: Eligible plays
        count: Number of plays wanted
        used_concepts: Normalized concepts already placed
        rng: Random source
        exclude_ids: Play ids that must not be drawn

    Returns:
        SampleResult with at most count plays (short when the pool is)
    """
    used = set(used_concepts)
    if count <= 0:
        return SampleResult(selected=[], used_concepts=used)

    excluded = set(exclude_ids)
    pool: list[Play] = []
    for play in candidates:
        if play.id in excluded:
            continue
        excluded.add(play.id)
        pool.append(play)
    rng.shuffle(pool)

    selected: list[Play] = []
    remaining: list[Play] = []
    for index, play in enumerate(pool):
        if len(selected) == count:
            remaining.extend(pool[index:])
            break
        key = play.concept_key
        if key in used:
            remaining.append(play)
            continue
        selected.append(play)
        if key:
            used.add(key)

    for play in remaining:
        if len(selected) == count:
            break
        selected.append(play)
        if play.concept_key:
            used.add(play.concept_key)

    return SampleResult(selected=selected, used_concepts=used)
