"""
Play allocation engine.

allocate -> sample -> regenerate, wrapped per section by build_section,
plus display numbering across sections.
"""

from gameplanner.core.allocation.allocator import allocate
from gameplanner.core.allocation.numbering import counted_plays, display_numbers, numbering_for
from gameplanner.core.allocation.policies import (
    DEFAULT_CATEGORY_MIX,
    AllocationOutcome,
    BasePackageFocus,
    PlanSettings,
    auto_focus,
    base_package,
    build_section,
    by_categories,
    candidates_for,
    coverage_beaters,
    front_beaters,
    play_action,
    resolve_base_focus,
    situational,
    validate_section,
)
from gameplanner.core.allocation.random_source import RandomSource, make_rng
from gameplanner.core.allocation.regenerator import (
    available_positions,
    free_pairs,
    regenerate_paired_section,
    regenerate_section,
)
from gameplanner.core.allocation.sampler import SampleResult, sample

__all__ = [
    "DEFAULT_CATEGORY_MIX",
    "AllocationOutcome",
    "BasePackageFocus",
    "PlanSettings",
    "RandomSource",
    "SampleResult",
    "allocate",
    "auto_focus",
    "available_positions",
    "base_package",
    "build_section",
    "by_categories",
    "candidates_for",
    "counted_plays",
    "coverage_beaters",
    "display_numbers",
    "free_pairs",
    "front_beaters",
    "make_rng",
    "numbering_for",
    "play_action",
    "regenerate_paired_section",
    "regenerate_section",
    "resolve_base_focus",
    "sample",
    "situational",
    "validate_section",
]
