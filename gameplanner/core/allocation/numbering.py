"""
Global Position Compactor.

Computes the contiguous play numbers shown on printed scripts and
wristcoaches: visible sections are walked in fixed group order and each
starts where the previous visible section's filled plays ended.
"""

from typing import Mapping, Sequence

from gameplanner.core.models import Section


def counted_plays(section: Section) -> int:
    """
    Plays a section contributes to the running number.

    Paired sections count each pair with at least one filled half as 2.
    """
    if not section.paired:
        return section.filled_count
    pairs = 0
    for start in range(0, section.capacity - 1, 2):
        if section.slots[start].is_filled or section.slots[start + 1].is_filled:
            pairs += 1
    return pairs * 2


def numbering_for(
    section_groups: Sequence[Sequence[str]],
    visibility: Mapping[str, bool],
    sections: Mapping[str, Section],
) -> dict[str, int]:
    """
    Starting display number of each visible section.

    Args:
        section_groups: Section keys grouped in display order
        visibility: Section key -> visible (missing keys count as visible)
        sections: Section key -> Section

    Returns:
        Section key -> first display number. Hidden sections and keys
        missing from sections get no entry.
    """
    numbers: dict[str, int] = {}
    running = 0
    for group in section_groups:
        for key in group:
            section = sections.get(key)
            if section is None or not visibility.get(key, True):
                continue
            numbers[key] = running + 1
            running += counted_plays(section)
    return numbers


def display_numbers(
    section_groups: Sequence[Sequence[str]],
    visibility: Mapping[str, bool],
    sections: Mapping[str, Section],
) -> dict[str, dict[int, int]]:
    """
    Display number of every filled slot of every visible section.

    Unpaired sections number filled slots consecutively. A combo pair
    uses two numbers, one per half, whenever either half is filled.

    Returns:
        Section key -> {slot position -> display number}
    """
    starts = numbering_for(section_groups, visibility, sections)
    result: dict[str, dict[int, int]] = {}
    for key, start in starts.items():
        section = sections[key]
        numbers: dict[int, int] = {}
        current = start
        if section.paired:
            for first in range(0, section.capacity - 1, 2):
                halves = section.slots[first:first + 2]
                if not any(slot.is_filled for slot in halves):
                    continue
                for offset, slot in enumerate(halves):
                    if slot.is_filled:
                        numbers[slot.position] = current + offset
                current += 2
        else:
            for slot in section.slots:
                if slot.is_filled:
                    numbers[slot.position] = current
                    current += 1
        result[key] = numbers
    return result
