"""
Section-Specific Selection Policies.

Each section kind pre-filters the play pool, optionally splits its open
slots across weighted buckets, samples plays for diversity, and places
them around the section's locked slots.

build_section() is the single per-section operation. It is pure apart
from the injected random source, so sections can be built independently
and in parallel.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Optional, Sequence

from gameplanner.core.allocation.allocator import allocate
from gameplanner.core.allocation.random_source import RandomSource
from gameplanner.core.allocation.regenerator import regenerate_paired_section, regenerate_section
from gameplanner.core.allocation.sampler import sample
from gameplanner.core.enums import (
    COVERAGE_BEATER_CATEGORIES,
    PASS_CATEGORIES,
    RUN_BASED_CATEGORIES,
    PlayCategory,
    Situation,
)
from gameplanner.core.errors import AllocationNotice, InvalidConfigurationError, NoticeKind
from gameplanner.core.matching import normalize_name
from gameplanner.core.models import Play, Section
from gameplanner.core.scouting import ScoutingReport
from gameplanner.core.sections import (
    DEFAULT_CATALOG,
    PolicyKind,
    SectionSpec,
    build_catalog,
)


logger = logging.getLogger(__name__)


# Play-type mix for the opening script and first downs (percent of slots)
DEFAULT_CATEGORY_MIX: dict[str, float] = {
    PlayCategory.RUN_GAME.value: 35,
    PlayCategory.RPO_GAME.value: 10,
    PlayCategory.QUICK_GAME.value: 20,
    PlayCategory.DROPBACK_GAME.value: 15,
    PlayCategory.SCREEN_GAME.value: 10,
    PlayCategory.MOVING_POCKET.value: 5,
    PlayCategory.SHOT_PLAYS.value: 5,
}

# Categories drawn by the weighted pass game section
WEIGHTED_COVERAGE_CATEGORIES = frozenset(COVERAGE_BEATER_CATEGORIES | {PlayCategory.MOVING_POCKET})


# =============================================================================
# Settings
# =============================================================================

@dataclass(frozen=True)
class BasePackageFocus:
    """
    What a base package is built around: one concept or one formation.

    The two are mutually exclusive; use with_concept() / with_formation()
    to switch, which clears the other.
    """

    concept: Optional[str] = None
    formation: Optional[str] = None

    def __post_init__(self) -> None:
        if self.concept and self.formation:
            raise InvalidConfigurationError(
                f"Base package focus must be a concept or a formation, not both "
                f"({self.concept!r}, {self.formation!r})"
            )

    @property
    def is_empty(self) -> bool:
        return not (self.concept or self.formation)

    @property
    def label(self) -> str:
        return self.concept or self.formation or ""

    def with_concept(self, concept: str) -> "BasePackageFocus":
        return BasePackageFocus(concept=concept)

    def with_formation(self, formation: str) -> "BasePackageFocus":
        return BasePackageFocus(formation=formation)

    def matches(self, play: Play) -> bool:
        if self.concept:
            return play.concept_key == normalize_name(self.concept)
        if self.formation:
            return normalize_name(play.formation) == normalize_name(self.formation)
        return False

    def key(self) -> tuple[str, str]:
        """Normalized identity used to tell sibling packages apart."""
        if self.concept:
            return ("concept", normalize_name(self.concept))
        return ("formation", normalize_name(self.formation or ""))

    def to_dict(self) -> dict:
        return {"concept": self.concept, "formation": self.formation}

    @classmethod
    def from_dict(cls, data: Mapping) -> "BasePackageFocus":
        return cls(concept=data.get("concept") or None, formation=data.get("formation") or None)


@dataclass
class PlanSettings:
    """
    Per-plan inputs to allocation.

    Passed explicitly on every call; nothing here is global.

    Attributes:
        team_id: Team the plan belongs to
        opponent_id: Opponent the plan is for
        scouting: Opponent tendencies (front and coverage distributions)
        base_package_focus: Section key -> chosen focus (auto when absent)
        category_mix: Category value -> percent for category-mix sections
        catalog: Section definitions; beater sections for the scouted
            fronts and coverages are added automatically
    """

    team_id: str = ""
    opponent_id: str = ""
    scouting: ScoutingReport = field(default_factory=ScoutingReport)
    base_package_focus: dict[str, BasePackageFocus] = field(default_factory=dict)
    category_mix: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_MIX))
    catalog: Sequence[SectionSpec] = DEFAULT_CATALOG

    def full_catalog(self) -> list[SectionSpec]:
        """Base catalog plus beater sections for the scouted fronts and coverages."""
        return build_catalog(self.scouting.fronts(), self.scouting.coverages(), self.catalog)

    def spec_for(self, key: str) -> SectionSpec:
        for spec in self.full_catalog():
            if spec.key == key:
                return spec
        raise InvalidConfigurationError(f"No definition for section: {key}", key)

    def base_package_keys(self) -> list[str]:
        return [spec.key for spec in self.full_catalog() if spec.policy == PolicyKind.BASE_PACKAGE]


@dataclass
class AllocationOutcome:
    """A rebuilt section plus any notices about how well it filled."""

    section: Section
    notices: list[AllocationNotice] = field(default_factory=list)

    @property
    def filled(self) -> int:
        return self.section.filled_count


# =============================================================================
# Pre-filters
# =============================================================================

def front_beaters(pool: Iterable[Play], front: str) -> list[Play]:
    """Run and RPO plays that list the front among their front beaters."""
    return [
        play for play in pool
        if play.category in RUN_BASED_CATEGORIES and play.beats_front(front)
    ]


def coverage_beaters(pool: Iterable[Play], coverage: str) -> list[Play]:
    """Quick, dropback and shot plays that list the coverage among their beaters."""
    return [
        play for play in pool
        if play.category in COVERAGE_BEATER_CATEGORIES and play.beats_coverage(coverage)
    ]


def situational(pool: Iterable[Play], situation: Situation) -> list[Play]:
    return [play for play in pool if play.has_situation(situation)]


def play_action(pool: Iterable[Play]) -> list[Play]:
    return [play for play in pool if play.is_play_action]


def by_categories(pool: Iterable[Play], categories: Iterable[PlayCategory]) -> list[Play]:
    wanted = frozenset(categories)
    return [play for play in pool if play.category in wanted]


def base_package(pool: Iterable[Play], focus: BasePackageFocus) -> list[Play]:
    return [play for play in pool if focus.matches(play)]


def _ranked(values: Iterable[str]) -> list[tuple[str, int]]:
    """(first-seen spelling, count) by descending count; ties keep pool order."""
    counts: Counter = Counter()
    spelling: dict[str, str] = {}
    for value in values:
        key = normalize_name(value)
        if not key:
            continue
        spelling.setdefault(key, value.strip())
        counts[key] += 1
    return [(spelling[key], count) for key, count in counts.most_common()]


def auto_focus(pool: Sequence[Play], claimed: Iterable[tuple[str, str]] = ()) -> BasePackageFocus:
    """
    Pick a base package focus from the pool.

    Compares the most frequent concept with the most frequent formation
    and takes whichever matches more plays (a tie goes to the concept).
    Focuses in claimed are skipped so sibling packages differ; when every
    focus is claimed the most frequent one is reused.
    """
    taken = set(claimed)
    concepts = _ranked(play.concept for play in pool)
    formations = _ranked(play.formation for play in pool)

    def first_unclaimed(ranked, kind):
        for value, count in ranked:
            if (kind, normalize_name(value)) not in taken:
                return value, count
        return None

    concept = first_unclaimed(concepts, "concept")
    formation = first_unclaimed(formations, "formation")

    if concept is None and formation is None:
        if concepts:
            return BasePackageFocus(concept=concepts[0][0])
        if formations:
            return BasePackageFocus(formation=formations[0][0])
        return BasePackageFocus()
    if formation is None or (concept is not None and concept[1] >= formation[1]):
        return BasePackageFocus(concept=concept[0])
    return BasePackageFocus(formation=formation[0])


def resolve_base_focus(key: str, pool: Sequence[Play], settings: PlanSettings) -> BasePackageFocus:
    """
    Focus for one base package section.

    An explicit focus wins. Otherwise packages are resolved in catalog
    order, each auto-selection skipping the focuses of its siblings.
    """
    chosen = settings.base_package_focus.get(key)
    if chosen is not None and not chosen.is_empty:
        return chosen

    keys = settings.base_package_keys()
    if key not in keys:
        keys.append(key)

    claimed = {
        focus.key() for other, focus in settings.base_package_focus.items()
        if other != key and not focus.is_empty
    }
    for sibling in keys:
        explicit = settings.base_package_focus.get(sibling)
        if explicit is not None and not explicit.is_empty:
            continue
        focus = auto_focus(pool, claimed)
        if sibling == key:
            return focus
        if not focus.is_empty:
            claimed.add(focus.key())
    return BasePackageFocus()


# =============================================================================
# Section building
# =============================================================================

def _notices(section_key: str, candidates: int, requested: int, delivered: int) -> list[AllocationNotice]:
    if requested <= 0 or delivered >= requested:
        return []
    if candidates == 0:
        return [AllocationNotice(
            kind=NoticeKind.NO_CANDIDATES,
            section_key=section_key,
            message=f"No plays in the pool match {section_key}",
            requested=requested,
            delivered=0,
        )]
    return [AllocationNotice(
        kind=NoticeKind.PARTIAL_FILL,
        section_key=section_key,
        message=f"Filled {delivered} of {requested} open slots in {section_key}",
        requested=requested,
        delivered=delivered,
    )]


def _fill_weighted(
    count: int,
    distribution: Mapping[str, float],
    bucket_candidates: Callable[[str], list[Play]],
    general: Sequence[Play],
    used_concepts: set[str],
    exclude_ids: set[str],
    rng: RandomSource,
) -> list[Play]:
    """
    Split count across the distribution and sample each bucket.

    Buckets share the used concept set and never repeat a play. The
    unallocated remainder and any bucket shortfall are topped up from the
    general candidates.
    """
    selected: list[Play] = []
    used = set(used_concepts)
    exclude = set(exclude_ids)

    for bucket, wanted in allocate(count, distribution).items():
        if wanted <= 0:
            continue
        result = sample(bucket_candidates(bucket), wanted, used, rng, exclude)
        logger.debug(f"Bucket {bucket}: wanted {wanted}, drew {len(result)}")
        selected.extend(result.selected)
        used = result.used_concepts
        exclude |= result.ids

    shortfall = count - len(selected)
    if shortfall > 0:
        result = sample(general, shortfall, used, rng, exclude)
        logger.debug(f"Topped up {len(result)} of {shortfall} from general candidates")
        selected.extend(result.selected)
    return selected


def candidates_for(spec: SectionSpec, pool: Sequence[Play], settings: PlanSettings) -> list[Play]:
    """General candidates of a section (before locked plays are excluded)."""
    policy = spec.policy
    if policy == PolicyKind.FRONT_BEATER:
        return front_beaters(pool, spec.target or "")
    if policy == PolicyKind.COVERAGE_BEATER:
        return coverage_beaters(pool, spec.target or "")
    if policy == PolicyKind.SITUATIONAL:
        return situational(pool, spec.situation)
    if policy == PolicyKind.PLAY_ACTION:
        return play_action(pool)
    if policy == PolicyKind.CATEGORY:
        return by_categories(pool, spec.categories)
    if policy == PolicyKind.BASE_PACKAGE:
        return base_package(pool, resolve_base_focus(spec.key, pool, settings))
    if policy == PolicyKind.WEIGHTED_FRONTS:
        return by_categories(pool, RUN_BASED_CATEGORIES)
    if policy == PolicyKind.WEIGHTED_COVERAGES:
        return by_categories(pool, WEIGHTED_COVERAGE_CATEGORIES)
    # CATEGORY_MIX and COMBO draw from the whole pool
    return list(pool)


def validate_section(section: Section, spec: SectionSpec) -> None:
    """
    Reject a section whose settings cannot be allocated.

    Raises:
        InvalidConfigurationError: On a bad capacity, a paired/unpaired
            mismatch or a policy missing its parameter
    """
    section.validate_capacity(section.capacity)
    if spec.key != section.key:
        raise InvalidConfigurationError(
            f"Section {section.key} does not match definition {spec.key}", section.key
        )
    if spec.paired != section.paired:
        raise InvalidConfigurationError(
            f"Section {section.key} pairing does not match its definition", section.key
        )
    if spec.policy == PolicyKind.SITUATIONAL and spec.situation is None:
        raise InvalidConfigurationError(f"Situational section {spec.key} has no situation", spec.key)
    if spec.policy in (PolicyKind.FRONT_BEATER, PolicyKind.COVERAGE_BEATER) and not spec.target:
        raise InvalidConfigurationError(f"Beater section {spec.key} has no target", spec.key)
    if spec.policy == PolicyKind.CATEGORY and not spec.categories:
        raise InvalidConfigurationError(f"Category section {spec.key} has no categories", spec.key)


def build_section(
    section: Section,
    pool: Sequence[Play],
    settings: PlanSettings,
    rng: RandomSource,
    spec: Optional[SectionSpec] = None,
) -> AllocationOutcome:
    """
    Rebuild one section's unlocked slots from the play pool.

    Args:
        section: Current section (not modified)
        pool: Read-only play pool snapshot
        settings: Plan settings (scouting, focuses, category mix)
        rng: Random source
        spec: Section definition (looked up in the settings when omitted)

    Returns:
        AllocationOutcome with the new section and any notices

    Raises:
        InvalidConfigurationError: If the section cannot be allocated
    """
    spec = spec or settings.spec_for(section.key)
    validate_section(section, spec)

    if spec.policy == PolicyKind.COMBO:
        return _build_combo(section, pool, rng)

    locked = section.locked_plays()
    exclude = {play.id for play in locked}
    used = {play.concept_key for play in locked if play.concept_key}
    general = [play for play in candidates_for(spec, pool, settings) if play.id not in exclude]
    open_count = len(section.available_positions())

    if spec.policy == PolicyKind.WEIGHTED_FRONTS:
        selected = _fill_weighted(
            open_count,
            settings.scouting.fronts_pct,
            lambda front: [play for play in general if play.beats_front(front)],
            general, used, exclude, rng,
        )
    elif spec.policy == PolicyKind.WEIGHTED_COVERAGES:
        selected = _fill_weighted(
            open_count,
            settings.scouting.coverages_pct,
            lambda coverage: [play for play in general if play.beats_coverage(coverage)],
            general, used, exclude, rng,
        )
    elif spec.policy == PolicyKind.CATEGORY_MIX:
        selected = _fill_weighted(
            open_count,
            settings.category_mix,
            lambda category: [play for play in general if play.category.value == category],
            general, used, exclude, rng,
        )
    else:
        selected = sample(general, open_count, used, rng, exclude).selected

    rebuilt = regenerate_section(section, selected, rng)
    notices = _notices(section.key, len(general), open_count, len(selected))
    logger.debug(f"Built {section.key}: {len(selected)} of {open_count} open slots filled")
    return AllocationOutcome(section=rebuilt, notices=notices)


def _pick_other_category(
    pool: Sequence[Play],
    first: Play,
    used: set[str],
    exclude: set[str],
    rng: RandomSource,
):
    """Draw a play from a random category other than first's, falling back to any other."""
    others = [category for category in PlayCategory if category != first.category]
    second_category = rng.choice(others)
    candidates = [play for play in pool if play.category == second_category]
    result = sample(candidates, 1, used, rng, exclude)
    if not result.selected:
        fallback = [play for play in pool if play.category != first.category]
        result = sample(fallback, 1, used, rng, exclude)
    return result


def _build_combo(section: Section, pool: Sequence[Play], rng: RandomSource) -> AllocationOutcome:
    """
    Fill a paired section with first/second-down combos.

    Each free pair draws its first play from a random category that still
    has candidates and its second from a different random category. A
    pair with one locked half takes a partner from another category.
    """
    locked = section.locked_plays()
    exclude = {play.id for play in locked}
    used = {play.concept_key for play in locked if play.concept_key}
    available = [play for play in pool if play.id not in exclude]

    pairs = []
    for _ in section.free_pairs():
        categories = sorted(
            {play.category for play in available if play.id not in exclude},
            key=lambda category: category.value,
        )
        if not categories:
            break
        first_category = rng.choice(categories)
        first = sample(
            [play for play in available if play.category == first_category], 1, used, rng, exclude
        )
        if not first.selected:
            break
        used = first.used_concepts
        exclude |= first.ids
        second = _pick_other_category(available, first.selected[0], used, exclude, rng)
        if not second.selected:
            # Nothing outside the first category is left; stop pairing
            break
        used = second.used_concepts
        exclude |= second.ids
        pairs.append((first.selected[0], second.selected[0]))

    partners: dict[int, Play] = {}
    for start in range(0, section.capacity - 1, 2):
        halves = section.slots[start:start + 2]
        locked_halves = [slot for slot in halves if slot.locked]
        if len(locked_halves) != 1 or locked_halves[0].play is None:
            continue
        open_slot = halves[0] if halves[1].locked else halves[1]
        partner = _pick_other_category(available, locked_halves[0].play, used, exclude, rng)
        if partner.selected:
            used = partner.used_concepts
            exclude |= partner.ids
            partners[open_slot.position] = partner.selected[0]

    rebuilt = regenerate_paired_section(section, pairs, partners, rng)
    open_count = len(section.available_positions())
    delivered = 2 * len(pairs) + len(partners)
    notices = _notices(section.key, len(available), open_count, delivered)
    logger.debug(f"Built {section.key}: {len(pairs)} combos, {len(partners)} partners")
    return AllocationOutcome(section=rebuilt, notices=notices)
