"""
Locked-Slot Regenerator.

Places newly drawn plays into the positions of a section that are not
held by locked slots. Locked slots keep their play and their position.
"""

from typing import Sequence

from gameplanner.core.allocation.random_source import RandomSource
from gameplanner.core.models import Play, Section


def available_positions(section: Section) -> list[int]:
    """Positions not held by a locked slot, ascending."""
    return section.available_positions()


def free_pairs(section: Section) -> list[int]:
    """Start positions of combo pairs with neither half locked."""
    return section.free_pairs()


def regenerate_section(section: Section, new_plays: Sequence[Play], rng: RandomSource) -> Section:
    """
    Regenerate a section around its locked slots.

    Unlocked slots are cleared, the free positions are shuffled and the
    new plays are assigned to them in order. Positions left over when
    there are fewer plays than free positions stay empty.

    Returns:
        A new Section; the input section is not modified
    """
    result = section.copy()
    result.clear_unlocked()

    positions = available_positions(result)
    rng.shuffle(positions)
    for position, play in zip(positions, new_plays):
        result.slots[position].play = play
    return result


def regenerate_paired_section(
    section: Section,
    pairs: Sequence[tuple[Play, Play]],
    partners: dict[int, Play],
    rng: RandomSource,
) -> Section:
    """
    Regenerate a combo section around its locked slots.

    Free pairs are shuffled as units and filled pair by pair, so a first
    and second down call always stay together. A pair with one locked half
    keeps that half and takes the partner play given for its unlocked
    position.

    Args:
        section: Paired section
        pairs: (first, second) plays for free pairs
        partners: Unlocked position of a half-locked pair -> play
        rng: Random source

    Returns:
        A new Section; the input section is not modified
    """
    result = section.copy()
    result.clear_unlocked()

    starts = free_pairs(result)
    rng.shuffle(starts)
    for start, (first, second) in zip(starts, pairs):
        result.slots[start].play = first
        result.slots[start + 1].play = second

    for position, play in partners.items():
        slot = result.slot(position)
        if not slot.locked and not slot.is_filled:
            slot.play = play
    return result
