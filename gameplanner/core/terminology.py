"""
Terminology translation.

Play pools are written in default terminology ("Inside Zone", "Trips").
Each team may rename any term; calls are rendered with the team's words
when a plan is persisted or printed.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from gameplanner.core.enums import PlayCategory
from gameplanner.core.models.play import Play


# Term categories used by terminology entries
FORMATIONS = "formations"
TAGS = "tags"
MOTIONS = "motions"
SHIFTS = "shifts"
PASS_PROTECTIONS = "pass_protections"
CONCEPT_TAGS = "concept_tags"
RPO_TAGS = "rpo_tags"

# Term category holding each play category's concepts
CONCEPT_CATEGORIES: dict[PlayCategory, tuple[str, ...]] = {
    PlayCategory.RUN_GAME: ("run_game",),
    PlayCategory.RPO_GAME: ("run_game",),
    PlayCategory.QUICK_GAME: ("quick_game",),
    PlayCategory.DROPBACK_GAME: ("dropback",),
    PlayCategory.SCREEN_GAME: ("screens",),
    PlayCategory.SHOT_PLAYS: ("shot_plays",),
    # Moving pocket concepts come from both pass menus
    PlayCategory.MOVING_POCKET: ("quick_game", "dropback"),
}


@dataclass(frozen=True)
class TerminologyEntry:
    """One term: the default concept name, its label and its category."""

    category: str
    concept: str
    label: str

    @classmethod
    def from_dict(cls, data: dict) -> "TerminologyEntry":
        return cls(
            category=str(data["category"]).strip().lower(),
            concept=str(data["concept"]).strip(),
            label=str(data.get("label") or data["concept"]).strip(),
        )


EntryLike = Union[TerminologyEntry, dict]


def _entries(items: Iterable[EntryLike]) -> list[TerminologyEntry]:
    return [item if isinstance(item, TerminologyEntry) else TerminologyEntry.from_dict(item) for item in items]


class TerminologyMap:
    """Translate default labels into a team's labels, per term category."""

    def __init__(self, mapping: Optional[dict[str, dict[str, str]]] = None):
        self._mapping = mapping or {}

    @classmethod
    def from_entries(
        cls,
        default_terms: Iterable[EntryLike],
        team_terms: Iterable[EntryLike] = (),
    ) -> "TerminologyMap":
        """
        Build the lookup from default and team entries.

        A team entry overrides the default entry with the same category
        and concept. Both the default label and the concept name map to
        the team label; keys are lower-cased.
        """
        overrides = {
            (entry.category, entry.concept.lower()): entry.label
            for entry in _entries(team_terms)
        }
        mapping: dict[str, dict[str, str]] = {}
        for entry in _entries(default_terms):
            team_label = overrides.get((entry.category, entry.concept.lower()), entry.label)
            terms = mapping.setdefault(entry.category, {})
            terms[entry.label.lower()] = team_label
            terms.setdefault(entry.concept.lower(), team_label)
        return cls(mapping)

    def lookup(self, value: str, *categories: str) -> str:
        """Translate one value, trying each category in order."""
        if not value:
            return value
        key = value.strip().lower()
        for category in categories:
            label = self._mapping.get(category, {}).get(key)
            if label is not None:
                return label
        return value

    def translate(self, play: Play) -> Play:
        """Return the play with its call components in team terminology."""
        if not self._mapping:
            return play
        return play.with_overrides(
            formation=self.lookup(play.formation, FORMATIONS),
            tags=self.lookup(play.tags, TAGS),
            shifts=self.lookup(play.shifts, SHIFTS, MOTIONS),
            to_motion=self.lookup(play.to_motion, MOTIONS),
            from_motion=self.lookup(play.from_motion, MOTIONS),
            pass_protection=self.lookup(play.pass_protection, PASS_PROTECTIONS),
            concept=self.lookup(play.concept, *CONCEPT_CATEGORIES[play.category]),
            concept_tag=self.lookup(play.concept_tag, CONCEPT_TAGS),
            rpo_tag=self.lookup(play.rpo_tag, RPO_TAGS, "quick_game"),
        )

    def __len__(self) -> int:
        return sum(len(terms) for terms in self._mapping.values())
