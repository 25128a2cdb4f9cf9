"""
Scouting Report.

Opponent tendencies as weighted distributions: what share of snaps the
opponent lines up in each front, plays each coverage, and brings each
pressure. The front and coverage maps drive the weighted sections and the
dynamic beater sections of a game plan.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from gameplanner.core.enums import DistributionKind


logger = logging.getLogger(__name__)


Distribution = dict[str, float]


def parse_distribution(value: Union[str, dict, None]) -> Distribution:
    """
    Parse a distribution from its stored form.

    Accepts a dict or a JSON-encoded object. Non-numeric percentages are
    dropped; an unparseable string yields an empty distribution.
    """
    if value is None or value == "":
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unparseable distribution: {value[:40]!r}")
            return {}
    if not isinstance(value, dict):
        logger.warning(f"Ignoring distribution of type {type(value).__name__}")
        return {}

    result: Distribution = {}
    for name, pct in value.items():
        if not str(name).strip():
            continue
        try:
            result[str(name).strip()] = float(pct)
        except (TypeError, ValueError):
            logger.debug(f"Dropping non-numeric percentage for {name}: {pct!r}")
    return result


def ranked_buckets(distribution: Distribution) -> list[str]:
    """Bucket names by descending percentage (ties keep input order)."""
    return [name for name, _ in sorted(distribution.items(), key=lambda item: -item[1])]


@dataclass
class ScoutingReport:
    """
    Scouted tendencies of one opponent.

    Attributes:
        fronts_pct: Front name -> percentage of snaps
        coverages_pct: Coverage name -> percentage of snaps
        blitz_pct: Pressure name -> percentage of snaps
        overall_blitz_pct: Share of snaps with any pressure
        notes: Free-form coaching notes
    """

    fronts_pct: Distribution = field(default_factory=dict)
    coverages_pct: Distribution = field(default_factory=dict)
    blitz_pct: Distribution = field(default_factory=dict)
    overall_blitz_pct: float = 0.0
    notes: str = ""

    def distribution(self, kind: DistributionKind) -> Distribution:
        """Get the front or coverage distribution."""
        if kind == DistributionKind.FRONT:
            return dict(self.fronts_pct)
        return dict(self.coverages_pct)

    def fronts(self) -> list[str]:
        """Scouted fronts, most frequent first."""
        return ranked_buckets(self.fronts_pct)

    def coverages(self) -> list[str]:
        """Scouted coverages, most frequent first."""
        return ranked_buckets(self.coverages_pct)

    @property
    def is_empty(self) -> bool:
        return not (self.fronts_pct or self.coverages_pct or self.blitz_pct)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "fronts_pct": dict(self.fronts_pct),
            "coverages_pct": dict(self.coverages_pct),
            "blitz_pct": dict(self.blitz_pct),
            "overall_blitz_pct": self.overall_blitz_pct,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScoutingReport":
        """Create from dictionary; percentage maps may be JSON strings."""
        try:
            overall = float(data.get("overall_blitz_pct") or 0)
        except (TypeError, ValueError):
            overall = 0.0
        notes = data.get("notes")
        return cls(
            fronts_pct=parse_distribution(data.get("fronts_pct")),
            coverages_pct=parse_distribution(data.get("coverages_pct")),
            blitz_pct=parse_distribution(data.get("blitz_pct")),
            overall_blitz_pct=overall,
            notes=notes if isinstance(notes, str) else "",
        )
