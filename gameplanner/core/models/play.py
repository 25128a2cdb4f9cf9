"""Play records supplied by a team's play pool."""

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from gameplanner.core.enums import PlayCategory, Situation
from gameplanner.core.matching import (
    contains_name,
    join_name_list,
    normalize_name,
    parse_name_list,
    word_tokens,
)


# Pass-protection words that mark a play-action or bootleg call
PLAY_ACTION_PROTECTIONS = frozenset({"pa", "boot"})

# Alternate column names used by the original play pool tables
_FIELD_ALIASES = {
    "play_id": "id",
    "formations": "formation",
    "pass_protections": "pass_protection",
    "to_motions": "to_motion",
    "from_motions": "from_motion",
    "motion_shift": "to_motion",
    "third_s": "third_short",
    "third_m": "third_medium",
    "third_l": "third_long",
    "rz": "red_zone",
    "gl": "goal_line",
    "custom_edit": "custom_display",
}

_TEXT_FIELDS = (
    "concept",
    "formation",
    "tags",
    "shifts",
    "to_motion",
    "from_motion",
    "pass_protection",
    "concept_tag",
    "concept_direction",
    "rpo_tag",
)

_FLAG_FIELDS = ("third_short", "third_medium", "third_long", "red_zone", "goal_line")

_LIST_FIELDS = ("front_beaters", "coverage_beaters", "blitz_beaters")


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y", "t")
    return bool(value)


@dataclass(frozen=True)
class Play:
    """
    A single play from the play pool.

    Plays are immutable context for the allocation engine. Several plays
    may share a concept (same scheme from different formations); the
    concept is the key used to keep sections varied.

    Attributes:
        id: Unique play identifier
        category: Play-type category (required)
        concept: Core scheme label (diversity key)
        formation: Formation label
        tags, shifts, to_motion, from_motion, pass_protection,
        concept_tag, concept_direction, rpo_tag: Call components
        third_short .. goal_line: Situational flags
        front_beaters: Defensive fronts this play is built to beat
        coverage_beaters: Coverages this play is built to beat
        blitz_beaters: Pressures this play is built to beat
        custom_display: Optional text that replaces the rendered call
    """

    id: str
    category: PlayCategory
    concept: str = ""
    formation: str = ""
    tags: str = ""
    shifts: str = ""
    to_motion: str = ""
    from_motion: str = ""
    pass_protection: str = ""
    concept_tag: str = ""
    concept_direction: str = ""
    rpo_tag: str = ""

    third_short: bool = False
    third_medium: bool = False
    third_long: bool = False
    red_zone: bool = False
    goal_line: bool = False

    front_beaters: tuple[str, ...] = field(default_factory=tuple)
    coverage_beaters: tuple[str, ...] = field(default_factory=tuple)
    blitz_beaters: tuple[str, ...] = field(default_factory=tuple)

    custom_display: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Play id is required")
        if not isinstance(self.category, PlayCategory):
            object.__setattr__(self, "category", PlayCategory.parse(self.category))
        for name in _LIST_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, parse_name_list(value))

    # -------------------------------------------------------------------------
    # Matching
    # -------------------------------------------------------------------------

    @property
    def concept_key(self) -> str:
        """Normalized concept used for diversity checks."""
        return normalize_name(self.concept)

    def beats_front(self, front: str) -> bool:
        """Check if this play lists the front among its front beaters."""
        return contains_name(self.front_beaters, front)

    def beats_coverage(self, coverage: str) -> bool:
        """Check if this play lists the coverage among its coverage beaters."""
        return contains_name(self.coverage_beaters, coverage)

    def has_situation(self, situation: Situation) -> bool:
        """Check a situational flag."""
        return bool(getattr(self, situation.value))

    @property
    def is_play_action(self) -> bool:
        """Shot plays and PA / Boot protections count as play action."""
        if self.category == PlayCategory.SHOT_PLAYS:
            return True
        return bool(word_tokens(self.pass_protection) & PLAY_ACTION_PROTECTIONS)

    @property
    def has_motion(self) -> bool:
        """Whether the call carries shifts or motions."""
        return bool(self.shifts or self.to_motion or self.from_motion)

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def render_call(self, include_motion: bool = True) -> str:
        """
        Render the full call as it appears on the call sheet.

        Components are joined in call order; empty components are skipped.
        A custom display override wins over the rendered call.
        """
        if self.custom_display:
            return self.custom_display

        components = [
            self.shifts if include_motion else "",
            self.to_motion if include_motion else "",
            self.formation,
            self.tags,
            self.from_motion if include_motion else "",
            self.pass_protection,
            self.concept,
            self.concept_tag,
            self.concept_direction,
            self.rpo_tag,
        ]
        return " ".join(part.strip() for part in components if part and part.strip())

    def with_overrides(self, **changes: Any) -> "Play":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {"id": self.id, "category": self.category.value}
        for name in _TEXT_FIELDS:
            data[name] = getattr(self, name)
        for name in _FLAG_FIELDS:
            data[name] = getattr(self, name)
        for name in _LIST_FIELDS:
            data[name] = join_name_list(getattr(self, name))
        data["custom_display"] = self.custom_display
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Play":
        """
        Create from dictionary.

        Accepts both this package's field names and the original play
        pool column names (play_id, formations, third_s, rz, ...).
        Beater lists may be comma-joined strings or lists.

        Raises:
            ValueError: If the id or category is missing or invalid
        """
        normalized: dict[str, Any] = {}
        for key, value in data.items():
            target = _FIELD_ALIASES.get(key, key)
            # Canonical names win over aliases
            if target in normalized and key != target:
                continue
            normalized[target] = value

        play_id = normalized.get("id")
        if play_id is None or str(play_id).strip() == "":
            raise ValueError("Play record has no id")
        if not normalized.get("category"):
            raise ValueError(f"Play {play_id} has no category")

        kwargs: dict[str, Any] = {
            "id": str(play_id),
            "category": PlayCategory.parse(normalized["category"]),
        }
        for name in _TEXT_FIELDS:
            value = normalized.get(name)
            kwargs[name] = str(value).strip() if value else ""
        for name in _FLAG_FIELDS:
            kwargs[name] = _as_bool(normalized.get(name, False))
        for name in _LIST_FIELDS:
            kwargs[name] = parse_name_list(normalized.get(name))
        custom = normalized.get("custom_display")
        kwargs["custom_display"] = str(custom) if custom else None
        return cls(**kwargs)

    def __str__(self) -> str:
        return f"Play({self.id}: {self.render_call()} [{self.category.value}])"
