"""
Collaborator interfaces.

The engine reads the play pool and scouting distributions and writes
section rows through these protocols. Every call may be slow or fail;
implementations raise SourceError / PersistenceError on failure.
"""

from typing import Protocol, runtime_checkable

from gameplanner.core.enums import DistributionKind
from gameplanner.core.models import Play, SlotRecord
from gameplanner.core.scouting import Distribution


@runtime_checkable
class PlayPoolSource(Protocol):
    """Supplies a team's play pool."""

    async def fetch_play_pool(self, team_id: str) -> list[Play]: ...


@runtime_checkable
class DistributionSource(Protocol):
    """Supplies scouted front and coverage percentages for an opponent."""

    async def fetch_distribution(
        self, team_id: str, opponent_id: str, kind: DistributionKind
    ) -> Distribution: ...


@runtime_checkable
class GamePlanStore(Protocol):
    """Persists game plan rows, one section at a time."""

    async def persist_section(
        self,
        team_id: str,
        opponent_id: str,
        section_key: str,
        records: list[SlotRecord],
    ) -> None: ...

    async def load_records(self, team_id: str, opponent_id: str) -> list[SlotRecord]: ...

    async def delete_all(self, team_id: str, opponent_id: str) -> None: ...
