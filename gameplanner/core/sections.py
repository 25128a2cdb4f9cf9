"""
Section Catalog.

Defines the named sections of a game plan, their selection policy,
default size and the fixed group order used for display numbering.
Front-beater and coverage-beater sections are created on the fly for
each scouted front and coverage.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from gameplanner.core.enums import PlayCategory, Situation
from gameplanner.core.matching import slugify


# Hard ceiling for a section's slot count (doubled for paired sections)
MAX_SECTION_CAPACITY = 20


class PolicyKind(Enum):
    """How a section selects its plays."""

    CATEGORY_MIX = "category_mix"
    BASE_PACKAGE = "base_package"
    FRONT_BEATER = "front_beater"
    COVERAGE_BEATER = "coverage_beater"
    WEIGHTED_FRONTS = "weighted_fronts"
    WEIGHTED_COVERAGES = "weighted_coverages"
    SITUATIONAL = "situational"
    PLAY_ACTION = "play_action"
    CATEGORY = "category"
    COMBO = "combo"


# Display groups in the order they appear on printed scripts
GROUP_ORDER = (
    "opening",
    "base",
    "fronts",
    "coverages",
    "run_pass",
    "early_downs",
    "third_down",
    "scoring",
    "backed_up",
    "specials",
)


@dataclass(frozen=True)
class SectionSpec:
    """
    Static definition of a game plan section.

    Attributes:
        key: Stable identifier (lower-case)
        title: Display title
        policy: Selection policy
        default_capacity: Slot count for a new plan
        group: Display group (see GROUP_ORDER)
        paired: True for combo sections (two slots per call)
        situation: Situational flag for SITUATIONAL sections
        categories: Category filter for CATEGORY sections
        target: Front or coverage name for beater sections
    """

    key: str
    title: str
    policy: PolicyKind
    default_capacity: int
    group: str
    paired: bool = False
    situation: Optional[Situation] = None
    categories: frozenset = field(default_factory=frozenset)
    target: Optional[str] = None


DEFAULT_CATALOG: tuple[SectionSpec, ...] = (
    SectionSpec("opening_script", "Opening Script", PolicyKind.CATEGORY_MIX, 15, "opening"),
    SectionSpec("base_package_1", "Base Package 1", PolicyKind.BASE_PACKAGE, 8, "base"),
    SectionSpec("base_package_2", "Base Package 2", PolicyKind.BASE_PACKAGE, 8, "base"),
    SectionSpec("base_package_3", "Base Package 3", PolicyKind.BASE_PACKAGE, 8, "base"),
    SectionSpec("run_game", "Run Game", PolicyKind.WEIGHTED_FRONTS, 10, "run_pass"),
    SectionSpec("pass_game", "Pass Game", PolicyKind.WEIGHTED_COVERAGES, 10, "run_pass"),
    SectionSpec("first_downs", "First Downs", PolicyKind.CATEGORY_MIX, 10, "early_downs"),
    SectionSpec("combos", "1st & 2nd Down Combos", PolicyKind.COMBO, 8, "early_downs", paired=True),
    SectionSpec("third_short", "3rd & Short", PolicyKind.SITUATIONAL, 6, "third_down",
                situation=Situation.THIRD_SHORT),
    SectionSpec("third_medium", "3rd & Medium", PolicyKind.SITUATIONAL, 6, "third_down",
                situation=Situation.THIRD_MEDIUM),
    SectionSpec("third_long", "3rd & Long", PolicyKind.SITUATIONAL, 6, "third_down",
                situation=Situation.THIRD_LONG),
    SectionSpec("red_zone", "Red Zone", PolicyKind.SITUATIONAL, 8, "scoring",
                situation=Situation.RED_ZONE),
    SectionSpec("goal_line", "Goal Line", PolicyKind.SITUATIONAL, 5, "scoring",
                situation=Situation.GOAL_LINE),
    # Two-point tries are snapped from the goal line package
    SectionSpec("two_point", "2-Point Plays", PolicyKind.SITUATIONAL, 3, "scoring",
                situation=Situation.GOAL_LINE),
    SectionSpec("backed_up", "Backed Up", PolicyKind.CATEGORY, 5, "backed_up",
                categories=frozenset({PlayCategory.RUN_GAME, PlayCategory.QUICK_GAME})),
    SectionSpec("screens", "Screens", PolicyKind.CATEGORY, 5, "specials",
                categories=frozenset({PlayCategory.SCREEN_GAME})),
    SectionSpec("play_action", "Play Action", PolicyKind.PLAY_ACTION, 6, "specials"),
    SectionSpec("deep_shots", "Deep Shots", PolicyKind.CATEGORY, 5, "specials",
                categories=frozenset({PlayCategory.SHOT_PLAYS})),
)


def front_section(front: str, capacity: int = 5) -> SectionSpec:
    """Build the beater section for a scouted defensive front."""
    return SectionSpec(
        key=f"front_{slugify(front)}",
        title=f"vs {front}",
        policy=PolicyKind.FRONT_BEATER,
        default_capacity=capacity,
        group="fronts",
        target=front,
    )


def coverage_section(coverage: str, capacity: int = 5) -> SectionSpec:
    """Build the beater section for a scouted coverage."""
    return SectionSpec(
        key=f"coverage_{slugify(coverage)}",
        title=f"vs {coverage}",
        policy=PolicyKind.COVERAGE_BEATER,
        default_capacity=capacity,
        group="coverages",
        target=coverage,
    )


def build_catalog(
    fronts: Iterable[str] = (),
    coverages: Iterable[str] = (),
    base: Iterable[SectionSpec] = DEFAULT_CATALOG,
) -> list[SectionSpec]:
    """
    Build the full section catalog for an opponent.

    Adds one beater section per scouted front and coverage to the base
    catalog. Duplicate keys keep the first definition.
    """
    catalog: list[SectionSpec] = []
    seen: set[str] = set()
    specs = list(base)
    specs.extend(front_section(name) for name in fronts)
    specs.extend(coverage_section(name) for name in coverages)
    for spec in specs:
        if spec.key in seen:
            continue
        seen.add(spec.key)
        catalog.append(spec)
    return catalog


def default_section_groups(catalog: Iterable[SectionSpec]) -> list[list[str]]:
    """
    Group section keys in fixed display order.

    Sections keep their catalog order within a group. Unknown groups are
    appended after the known ones.
    """
    grouped: dict[str, list[str]] = {group: [] for group in GROUP_ORDER}
    for spec in catalog:
        grouped.setdefault(spec.group, []).append(spec.key)
    return [keys for keys in grouped.values() if keys]
