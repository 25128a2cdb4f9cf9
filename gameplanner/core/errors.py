"""
Errors and notices raised by the allocation engine.

Exceptions are for conditions that stop an operation (bad configuration,
failed persistence). Notices describe sections that could not be fully
filled; those are normal outcomes, not failures.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class GamePlanError(Exception):
    """Base exception for game plan errors."""

    def __init__(self, message: str, section_key: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.section_key = section_key


class InvalidConfigurationError(GamePlanError):
    """Raised before allocation when a section or its settings are invalid."""
    pass


class PersistenceError(GamePlanError):
    """Raised when the game plan store fails to commit a section."""
    pass


class SourceError(GamePlanError):
    """Raised when the play pool or scouting source cannot be read."""
    pass


class SectionBusyError(GamePlanError):
    """Raised when a section is already being regenerated."""
    pass


class UnknownSectionError(GamePlanError, KeyError):
    """Raised when a plan has no section with the requested key."""

    def __str__(self) -> str:
        return self.message


class NoticeKind(Enum):
    """Kinds of non-blocking allocation notices."""

    NO_CANDIDATES = "no_candidates"
    PARTIAL_FILL = "partial_fill"


@dataclass(frozen=True)
class AllocationNotice:
    """
    Informational outcome of a regeneration.

    Attributes:
        kind: NO_CANDIDATES when the filter produced nothing,
            PARTIAL_FILL when fewer plays than open slots were found
        section_key: Section the notice is about
        message: Human readable description
        requested: Open slots the allocation tried to fill
        delivered: Plays actually placed
    """

    kind: NoticeKind
    section_key: str
    message: str
    requested: int = 0
    delivered: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "section_key": self.section_key,
            "message": self.message,
            "requested": self.requested,
            "delivered": self.delivered,
        }
