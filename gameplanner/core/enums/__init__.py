"""Game plan enumerations."""

from gameplanner.core.enums.plays import (
    COVERAGE_BEATER_CATEGORIES,
    PASS_CATEGORIES,
    RUN_BASED_CATEGORIES,
    DistributionKind,
    PlayCategory,
    Situation,
)

__all__ = [
    "COVERAGE_BEATER_CATEGORIES",
    "PASS_CATEGORIES",
    "RUN_BASED_CATEGORIES",
    "DistributionKind",
    "PlayCategory",
    "Situation",
]
