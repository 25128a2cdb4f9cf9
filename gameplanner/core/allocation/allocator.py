"""
Weighted Category Allocator.

Splits a slot count across weighted buckets (fronts, coverages or play
categories) by proportional rounding.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def allocate(target: int, distribution: Mapping[str, float]) -> dict[str, int]:
    """
    Split target slots across weighted buckets.

    Each bucket gets round(pct / 100 * target), rounded half-up. Rounding
    drift is corrected one slot at a time on buckets ordered by descending
    percentage (ties keep declaration order), never below zero. When the
    percentages sum to less than 100 the expected total is scaled down
    and the remainder is left unallocated.

    Args:
        target: Number of slots to fill
        distribution: Bucket name -> percentage (0-100)

    Returns:
        Bucket name -> count, including zero-count buckets.
        Empty if the distribution is empty or target <= 0.

    Example:
        allocate(10, {"A": 50, "B": 30, "C": 20}) -> {"A": 5, "B": 3, "C": 2}
    """
    if target <= 0 or not distribution:
        return {}

    weights = {
        name: max(Decimal(str(pct)), Decimal(0))
        for name, pct in distribution.items()
    }
    total_pct = sum(weights.values(), Decimal(0))
    if total_pct <= 0:
        return {name: 0 for name in weights}

    hundred = Decimal(100)
    if total_pct >= hundred:
        expected = target
    else:
        expected = _round_half_up(total_pct / hundred * target)

    counts = {name: _round_half_up(pct / hundred * target) for name, pct in weights.items()}

    # Python's sort is stable, so ties keep declaration order
    order = sorted(weights, key=lambda name: -weights[name])
    drift = sum(counts.values()) - expected

    while drift > 0:
        adjusted = False
        for name in order:
            if drift == 0:
                break
            if counts[name] > 0:
                counts[name] -= 1
                drift -= 1
                adjusted = True
        if not adjusted:
            break

    growable = [name for name in order if weights[name] > 0]
    while drift < 0:
        for name in growable:
            if drift == 0:
                break
            counts[name] += 1
            drift += 1

    return counts
