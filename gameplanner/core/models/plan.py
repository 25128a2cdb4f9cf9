"""
Game Plan Models.

A game plan maps section keys to ordered slot lists. Every mutation keeps
a section's slots numbered 0..capacity-1 with no gaps; locked slots are
only changed by explicit user actions, never by regeneration.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

from gameplanner.core.enums import PlayCategory
from gameplanner.core.errors import InvalidConfigurationError, UnknownSectionError
from gameplanner.core.models.play import Play
from gameplanner.core.sections import DEFAULT_CATALOG, MAX_SECTION_CAPACITY, SectionSpec

if TYPE_CHECKING:
    from gameplanner.core.terminology import TerminologyMap


logger = logging.getLogger(__name__)


class SectionState(Enum):
    """Regeneration state of a section."""

    STABLE = "stable"
    REGENERATING = "regenerating"


# =============================================================================
# Slot
# =============================================================================

@dataclass
class Slot:
    """One position within a section."""

    position: int
    play: Optional[Play] = None
    locked: bool = False
    favorite: bool = False
    custom_text: Optional[str] = None

    @property
    def is_filled(self) -> bool:
        return self.play is not None

    @property
    def display_text(self) -> str:
        """Text shown on the call sheet (custom edit wins)."""
        if self.custom_text:
            return self.custom_text
        if self.play is None:
            return ""
        return self.play.render_call()

    def clear(self) -> None:
        """Remove the occupant and every per-occupant flag."""
        self.play = None
        self.locked = False
        self.favorite = False
        self.custom_text = None

    def copy(self) -> "Slot":
        return replace(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "position": self.position,
            "play_id": self.play.id if self.play else None,
            "locked": self.locked,
            "favorite": self.favorite,
            "custom_text": self.custom_text,
        }


# =============================================================================
# Persisted Slot Record
# =============================================================================

@dataclass(frozen=True)
class SlotRecord:
    """
    One persisted row of a game plan.

    Written for every occupied position. The section key is stored
    lower-cased and the rendered call text is stored alongside the play id
    so the sheet can be printed without the play pool.
    """

    team_id: str
    opponent_id: str
    play_id: str
    section: str
    position: int
    combined_call: str
    category: str
    customized_edit: Optional[str] = None
    is_locked: bool = False
    is_favorite: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "team_id": self.team_id,
            "opponent_id": self.opponent_id,
            "play_id": self.play_id,
            "section": self.section,
            "position": self.position,
            "combined_call": self.combined_call,
            "customized_edit": self.customized_edit,
            "is_locked": self.is_locked,
            "is_favorite": self.is_favorite,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SlotRecord":
        """Create from dictionary."""
        return cls(
            team_id=str(data["team_id"]),
            opponent_id=str(data["opponent_id"]),
            play_id=str(data["play_id"]),
            section=str(data["section"]).lower(),
            position=int(data["position"]),
            combined_call=data.get("combined_call") or "",
            category=data.get("category") or "",
            customized_edit=data.get("customized_edit"),
            is_locked=bool(data.get("is_locked", False)),
            is_favorite=bool(data.get("is_favorite", False)),
        )


# =============================================================================
# Section
# =============================================================================

@dataclass
class Section:
    """
    A named, fixed-capacity group of play slots.

    Attributes:
        key: Stable identifier
        title: Display title
        capacity: Target slot count; always equals len(slots)
        slots: Ordered slots, positions 0..capacity-1
        visible: Whether the section is shown/printed
        paired: Combo section (slots 2k and 2k+1 form one call)
        max_capacity: Ceiling for unpaired sections (doubled when paired)
        state: STABLE, or REGENERATING while an allocation is in flight
    """

    key: str
    title: str
    capacity: int
    slots: list[Slot] = field(default_factory=list)
    visible: bool = True
    paired: bool = False
    max_capacity: int = MAX_SECTION_CAPACITY
    state: SectionState = SectionState.STABLE

    def __post_init__(self) -> None:
        self.validate_capacity(self.capacity)
        if not self.slots:
            self.slots = [Slot(position=i) for i in range(self.capacity)]
        elif len(self.slots) != self.capacity:
            raise InvalidConfigurationError(
                f"Section {self.key} has {len(self.slots)} slots for capacity {self.capacity}",
                self.key,
            )
        self._renumber()

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def empty(
        cls,
        key: str,
        title: str,
        capacity: int,
        paired: bool = False,
        max_capacity: int = MAX_SECTION_CAPACITY,
    ) -> "Section":
        """Create a section with every slot empty."""
        return cls(key=key, title=title, capacity=capacity, paired=paired, max_capacity=max_capacity)

    @classmethod
    def from_spec(
        cls,
        spec: SectionSpec,
        capacity: Optional[int] = None,
        max_capacity: int = MAX_SECTION_CAPACITY,
    ) -> "Section":
        """Create an empty section from its catalog definition."""
        size = capacity if capacity is not None else spec.default_capacity
        if spec.paired and size % 2:
            size += 1
        return cls.empty(spec.key, spec.title, size, paired=spec.paired, max_capacity=max_capacity)

    def copy(self) -> "Section":
        """Copy the section and its slots (plays are shared, they are immutable)."""
        return replace(self, slots=[slot.copy() for slot in self.slots])

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def ceiling(self) -> int:
        """Largest allowed capacity."""
        return self.max_capacity * 2 if self.paired else self.max_capacity

    @property
    def filled_count(self) -> int:
        return sum(1 for slot in self.slots if slot.is_filled)

    @property
    def pair_count(self) -> int:
        return self.capacity // 2 if self.paired else 0

    @property
    def is_generating(self) -> bool:
        return self.state == SectionState.REGENERATING

    @property
    def locked_positions(self) -> list[int]:
        return [slot.position for slot in self.slots if slot.locked]

    def available_positions(self) -> list[int]:
        """Positions not held by a locked slot, ascending."""
        return [slot.position for slot in self.slots if not slot.locked]

    def free_pairs(self) -> list[int]:
        """Starting positions of pairs with neither half locked."""
        return [
            start for start in range(0, self.capacity - 1, 2)
            if not self.slots[start].locked and not self.slots[start + 1].locked
        ]

    def plays(self) -> list[Play]:
        """Occupying plays in position order."""
        return [slot.play for slot in self.slots if slot.play is not None]

    def locked_plays(self) -> list[Play]:
        return [slot.play for slot in self.slots if slot.locked and slot.play is not None]

    def slot(self, position: int) -> Slot:
        """Get a slot by position."""
        if not 0 <= position < self.capacity:
            raise InvalidConfigurationError(
                f"Position {position} is outside section {self.key} (capacity {self.capacity})",
                self.key,
            )
        return self.slots[position]

    # -------------------------------------------------------------------------
    # Capacity
    # -------------------------------------------------------------------------

    def validate_capacity(self, capacity: int) -> None:
        """
        Check a capacity against this section's limits.

        Raises:
            InvalidConfigurationError: If capacity < 1, over the ceiling,
                or odd for a paired section
        """
        if not isinstance(capacity, int) or capacity < 1:
            raise InvalidConfigurationError(
                f"Section {self.key} capacity must be at least 1, got {capacity}", self.key
            )
        if capacity > self.ceiling:
            raise InvalidConfigurationError(
                f"Section {self.key} capacity {capacity} exceeds maximum {self.ceiling}", self.key
            )
        if self.paired and capacity % 2:
            raise InvalidConfigurationError(
                f"Combo section {self.key} needs an even capacity, got {capacity}", self.key
            )

    def set_capacity(self, capacity: int) -> None:
        """
        Resize the section.

        Growing appends empty slots. Shrinking drops trailing empty slots
        first, then trailing unlocked plays; locked slots are never dropped.
        Paired sections resize by whole pairs.

        Raises:
            InvalidConfigurationError: If the capacity is invalid or the
                locked slots do not fit
        """
        self.validate_capacity(capacity)
        if capacity >= self.capacity:
            self.slots.extend(Slot(position=0) for _ in range(capacity - self.capacity))
            self.capacity = capacity
            self._renumber()
            return

        unit = 2 if self.paired else 1
        units = [self.slots[i:i + unit] for i in range(0, self.capacity, unit)]
        to_remove = (self.capacity - capacity) // unit

        removable: list[int] = []
        # Empty units first, then unlocked occupied units, both from the end
        for wanted_empty in (True, False):
            for index in range(len(units) - 1, -1, -1):
                if len(removable) == to_remove:
                    break
                group = units[index]
                if index in removable or any(slot.locked for slot in group):
                    continue
                is_empty = not any(slot.is_filled for slot in group)
                if is_empty == wanted_empty:
                    removable.append(index)

        if len(removable) < to_remove:
            raise InvalidConfigurationError(
                f"Cannot shrink {self.key} to {capacity}: {len(self.locked_positions)} slots are locked",
                self.key,
            )

        drop = set(removable)
        self.slots = [slot for index, group in enumerate(units) if index not in drop for slot in group]
        self.capacity = capacity
        self._renumber()

    # -------------------------------------------------------------------------
    # Manual edits
    # -------------------------------------------------------------------------

    def add_play(self, play: Play, position: Optional[int] = None) -> int:
        """
        Manually place a play.

        Uses the given empty slot, or the first empty unlocked slot. A full
        section grows by one slot (one pair when paired) if under its ceiling.

        Returns:
            Position the play was placed at
        """
        if position is not None:
            slot = self.slot(position)
            if slot.is_filled or slot.locked:
                raise InvalidConfigurationError(
                    f"Position {position} in {self.key} is already occupied", self.key
                )
            slot.play = play
            return position

        for slot in self.slots:
            if not slot.is_filled and not slot.locked:
                slot.play = play
                return slot.position

        grow_by = 2 if self.paired else 1
        if self.capacity + grow_by > self.ceiling:
            raise InvalidConfigurationError(
                f"Section {self.key} is full ({self.capacity} of {self.ceiling})", self.key
            )
        self.set_capacity(self.capacity + grow_by)
        placed = self.capacity - grow_by
        self.slots[placed].play = play
        return placed

    def delete_slot(self, position: int) -> None:
        """
        Delete the play at a position and close the gap.

        Later slots shift up one position and an empty slot is appended so
        the capacity is unchanged. In paired sections only the slot is
        cleared; a pair is removed (and an empty pair appended) once both
        halves are empty.
        """
        slot = self.slot(position)
        if self.paired:
            slot.clear()
            start = position - position % 2
            if not self.slots[start].is_filled and not self.slots[start + 1].is_filled:
                del self.slots[start:start + 2]
                self.slots.extend([Slot(position=0), Slot(position=0)])
        else:
            del self.slots[position]
            self.slots.append(Slot(position=0))
        self._renumber()

    def move_slot(self, source: int, destination: int) -> None:
        """Move a slot (a whole pair in paired sections) to a new position."""
        self.slot(source)
        self.slot(destination)
        if self.paired:
            src, dst = source // 2, destination // 2
            pairs = [self.slots[i:i + 2] for i in range(0, self.capacity, 2)]
            pair = pairs.pop(src)
            pairs.insert(dst, pair)
            self.slots = [slot for group in pairs for slot in group]
        else:
            moved = self.slots.pop(source)
            self.slots.insert(destination, moved)
        self._renumber()

    def set_locked(self, position: int, locked: bool) -> None:
        """Lock or unlock a slot; only occupied slots can be locked."""
        slot = self.slot(position)
        if locked and not slot.is_filled:
            raise InvalidConfigurationError(
                f"Cannot lock empty position {position} in {self.key}", self.key
            )
        slot.locked = locked

    def set_favorite(self, position: int, favorite: bool) -> None:
        self.slot(position).favorite = favorite

    def set_custom_text(self, position: int, text: Optional[str]) -> None:
        """Set (or clear with None/empty) the custom call text of a slot."""
        slot = self.slot(position)
        slot.custom_text = text.strip() if text and text.strip() else None

    def clear_unlocked(self) -> None:
        """Clear every slot that is not locked."""
        for slot in self.slots:
            if not slot.locked:
                slot.clear()

    def clear_all(self) -> None:
        for slot in self.slots:
            slot.clear()

    def _renumber(self) -> None:
        for index, slot in enumerate(self.slots):
            slot.position = index

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_records(
        self,
        team_id: str,
        opponent_id: str,
        terminology: Optional["TerminologyMap"] = None,
    ) -> list[SlotRecord]:
        """Persisted rows for every occupied slot."""
        records = []
        for slot in self.slots:
            if slot.play is None:
                continue
            play = terminology.translate(slot.play) if terminology else slot.play
            records.append(SlotRecord(
                team_id=team_id,
                opponent_id=opponent_id,
                play_id=slot.play.id,
                section=self.key.lower(),
                position=slot.position,
                combined_call=play.render_call(),
                category=slot.play.category.value,
                customized_edit=slot.custom_text,
                is_locked=slot.locked,
                is_favorite=slot.favorite,
            ))
        return records

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "key": self.key,
            "title": self.title,
            "capacity": self.capacity,
            "visible": self.visible,
            "paired": self.paired,
            "max_capacity": self.max_capacity,
            "slots": [slot.to_dict() for slot in self.slots],
        }

    @classmethod
    def from_dict(cls, data: dict, pool: dict[str, Play]) -> "Section":
        """Create from dictionary, resolving play ids against the pool."""
        slots = []
        for raw in data.get("slots", []):
            play_id = raw.get("play_id")
            play = pool.get(play_id) if play_id else None
            if play_id and play is None:
                logger.warning(f"Play {play_id} in section {data['key']} is no longer in the pool")
            slots.append(Slot(
                position=raw.get("position", 0),
                play=play,
                locked=bool(raw.get("locked", False)) and play is not None,
                favorite=bool(raw.get("favorite", False)),
                custom_text=raw.get("custom_text"),
            ))
        return cls(
            key=data["key"],
            title=data.get("title", data["key"]),
            capacity=data.get("capacity", len(slots)),
            slots=slots,
            visible=data.get("visible", True),
            paired=data.get("paired", False),
            max_capacity=data.get("max_capacity", MAX_SECTION_CAPACITY),
        )

    def __str__(self) -> str:
        return f"Section({self.key}: {self.filled_count}/{self.capacity} filled)"


# =============================================================================
# Game Plan
# =============================================================================

@dataclass
class GamePlan:
    """
    A team's game plan against one opponent.

    Created empty the first time a team/opponent pairing is opened and
    mutated by regeneration and manual edits. Sections keep catalog order.
    """

    team_id: str
    opponent_id: str
    sections: dict[str, Section] = field(default_factory=dict)
    specs: dict[str, SectionSpec] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(
        cls,
        team_id: str,
        opponent_id: str,
        catalog: Iterable[SectionSpec] = DEFAULT_CATALOG,
        max_capacity: int = MAX_SECTION_CAPACITY,
    ) -> "GamePlan":
        """Create an empty plan with one section per catalog entry."""
        plan = cls(team_id=team_id, opponent_id=opponent_id)
        for spec in catalog:
            plan.add_section(spec, max_capacity=max_capacity)
        return plan

    def add_section(
        self,
        spec: SectionSpec,
        capacity: Optional[int] = None,
        max_capacity: int = MAX_SECTION_CAPACITY,
    ) -> Section:
        """Add an empty section (no-op if the key already exists)."""
        if spec.key in self.sections:
            return self.sections[spec.key]
        section = Section.from_spec(spec, capacity=capacity, max_capacity=max_capacity)
        self.sections[spec.key] = section
        self.specs[spec.key] = spec
        return section

    def remove_section(self, key: str) -> None:
        self.section(key)
        del self.sections[key]
        self.specs.pop(key, None)

    def section(self, key: str) -> Section:
        """Get a section by key."""
        section = self.sections.get(key)
        if section is None:
            raise UnknownSectionError(f"Unknown section: {key}", key)
        return section

    def spec(self, key: str) -> SectionSpec:
        """Get the catalog definition of a section."""
        spec = self.specs.get(key)
        if spec is None:
            raise InvalidConfigurationError(f"No definition for section: {key}", key)
        return spec

    def replace_section(self, section: Section) -> None:
        """Commit a regenerated copy of a section."""
        self.section(section.key)
        self.sections[section.key] = section

    def visibility(self) -> dict[str, bool]:
        return {key: section.visible for key, section in self.sections.items()}

    @property
    def filled_count(self) -> int:
        return sum(section.filled_count for section in self.sections.values())

    def delete_all(self) -> None:
        """Clear every slot of every section, locked ones included."""
        for section in self.sections.values():
            section.clear_all()

    def to_records(self, terminology: Optional["TerminologyMap"] = None) -> list[SlotRecord]:
        records = []
        for section in self.sections.values():
            records.extend(section.to_records(self.team_id, self.opponent_id, terminology))
        return records

    @classmethod
    def from_records(
        cls,
        team_id: str,
        opponent_id: str,
        records: Iterable[SlotRecord],
        pool: Iterable[Play],
        catalog: Iterable[SectionSpec] = DEFAULT_CATALOG,
        max_capacity: int = MAX_SECTION_CAPACITY,
    ) -> "GamePlan":
        """
        Rebuild a plan from persisted rows.

        Plays missing from the pool are restored from the stored call text
        so a printed sheet survives pool edits. Rows for unknown sections or
        positions beyond the section ceiling are skipped.
        """
        plan = cls.create(team_id, opponent_id, catalog, max_capacity=max_capacity)
        by_id = {play.id: play for play in pool}

        for record in sorted(records, key=lambda r: (r.section, r.position)):
            section = plan.sections.get(record.section)
            if section is None:
                logger.warning(f"Skipping record for unknown section {record.section}")
                continue
            if record.position >= section.capacity:
                needed = record.position + 1
                if section.paired and needed % 2:
                    needed += 1
                if needed > section.ceiling:
                    logger.warning(
                        f"Skipping record at position {record.position} beyond {section.key} ceiling"
                    )
                    continue
                section.set_capacity(needed)

            play = by_id.get(record.play_id)
            if play is None:
                play = Play(
                    id=record.play_id,
                    category=PlayCategory.parse(record.category),
                    custom_display=record.combined_call,
                )
            slot = section.slots[record.position]
            slot.play = play
            slot.locked = record.is_locked
            slot.favorite = record.is_favorite
            slot.custom_text = record.customized_edit
        return plan

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "team_id": self.team_id,
            "opponent_id": self.opponent_id,
            "created_at": self.created_at.isoformat(),
            "sections": [section.to_dict() for section in self.sections.values()],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        pool: Iterable[Play],
        catalog: Iterable[SectionSpec] = DEFAULT_CATALOG,
    ) -> "GamePlan":
        """Create from dictionary; section definitions come from the catalog."""
        by_id = {play.id: play for play in pool}
        specs = {spec.key: spec for spec in catalog}

        created_at = datetime.now()
        if "created_at" in data:
            try:
                created_at = datetime.fromisoformat(data["created_at"])
            except (ValueError, TypeError):
                pass

        plan = cls(team_id=data["team_id"], opponent_id=data["opponent_id"], created_at=created_at)
        for raw in data.get("sections", []):
            spec = specs.get(raw["key"])
            if spec is None:
                logger.warning(f"Dropping section {raw['key']} with no catalog definition")
                continue
            plan.sections[spec.key] = Section.from_dict(raw, by_id)
            plan.specs[spec.key] = spec
        return plan
