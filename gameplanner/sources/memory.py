"""In-memory collaborators, used by the API service and tests."""

from typing import Iterable, Optional

from gameplanner.core.enums import DistributionKind
from gameplanner.core.models import Play, SlotRecord
from gameplanner.core.scouting import Distribution, ScoutingReport


class InMemoryPlayPool:
    """
    Play pools held in a dict.

    Plays passed to the constructor are served to any team without a pool
    of its own.
    """

    def __init__(self, plays: Optional[Iterable[Play]] = None):
        self._default: list[Play] = list(plays or [])
        self._pools: dict[str, list[Play]] = {}

    def set_plays(self, team_id: str, plays: Iterable[Play]) -> None:
        self._pools[team_id] = list(plays)

    async def fetch_play_pool(self, team_id: str) -> list[Play]:
        return list(self._pools.get(team_id, self._default))


class InMemoryDistributionSource:
    """Scouting reports held in a dict keyed by (team, opponent)."""

    def __init__(self, report: Optional[ScoutingReport] = None):
        self._default = report or ScoutingReport()
        self._reports: dict[tuple[str, str], ScoutingReport] = {}

    def set_report(self, team_id: str, opponent_id: str, report: ScoutingReport) -> None:
        self._reports[(team_id, opponent_id)] = report

    def get_report(self, team_id: str, opponent_id: str) -> ScoutingReport:
        return self._reports.get((team_id, opponent_id), self._default)

    async def fetch_distribution(
        self, team_id: str, opponent_id: str, kind: DistributionKind
    ) -> Distribution:
        return self.get_report(team_id, opponent_id).distribution(kind)


class InMemoryGamePlanStore:
    """Game plan rows held in a dict keyed by (team, opponent) then section."""

    def __init__(self):
        self._plans: dict[tuple[str, str], dict[str, list[SlotRecord]]] = {}

    async def persist_section(
        self,
        team_id: str,
        opponent_id: str,
        section_key: str,
        records: list[SlotRecord],
    ) -> None:
        sections = self._plans.setdefault((team_id, opponent_id), {})
        sections[section_key.lower()] = list(records)

    async def load_records(self, team_id: str, opponent_id: str) -> list[SlotRecord]:
        sections = self._plans.get((team_id, opponent_id), {})
        return [record for records in sections.values() for record in records]

    async def delete_all(self, team_id: str, opponent_id: str) -> None:
        self._plans.pop((team_id, opponent_id), None)

    def section_records(self, team_id: str, opponent_id: str, section_key: str) -> list[SlotRecord]:
        return list(self._plans.get((team_id, opponent_id), {}).get(section_key.lower(), []))
