"""
JSON file collaborators.

Layout under the data directory:

    playpools/<team_id>.json                   list of play rows
    scouting/<team_id>/<opponent_id>.json      scouting report
    gameplans/<team_id>/<opponent_id>.json     {"sections": {key: [rows]}}
"""

import json
import logging
from pathlib import Path
from typing import Any, Union

from gameplanner.core.enums import DistributionKind
from gameplanner.core.errors import PersistenceError, SourceError
from gameplanner.core.models import Play, SlotRecord
from gameplanner.core.scouting import Distribution, ScoutingReport


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _read_json(path: Path) -> Any:
    with open(path) as f:
        return json.load(f)


def load_plays(path: PathLike) -> list[Play]:
    """
    Load plays from a JSON file.

    The file holds a list of play rows or an object with a "plays" list.
    Rows without a valid id or category are skipped with a warning.

    Raises:
        SourceError: If the file cannot be read or parsed
    """
    try:
        data = _read_json(Path(path))
    except (OSError, json.JSONDecodeError) as e:
        raise SourceError(f"Cannot read play pool {path}: {e}") from e

    rows = data.get("plays", []) if isinstance(data, dict) else data
    if not isinstance(rows, list):
        raise SourceError(f"Play pool {path} is not a list of plays")

    plays = []
    for row in rows:
        try:
            plays.append(Play.from_dict(row))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping play row in {path}: {e}")
    return plays


def load_scouting(path: PathLike) -> ScoutingReport:
    """
    Load a scouting report from a JSON file.

    Raises:
        SourceError: If the file cannot be read or parsed
    """
    try:
        data = _read_json(Path(path))
    except (OSError, json.JSONDecodeError) as e:
        raise SourceError(f"Cannot read scouting report {path}: {e}") from e
    if not isinstance(data, dict):
        raise SourceError(f"Scouting report {path} is not an object")
    return ScoutingReport.from_dict(data)


class JsonPlayPool:
    """Play pools stored as one JSON file per team."""

    def __init__(self, data_dir: PathLike):
        self.root = Path(data_dir) / "playpools"

    def path_for(self, team_id: str) -> Path:
        return self.root / f"{team_id}.json"

    async def fetch_play_pool(self, team_id: str) -> list[Play]:
        path = self.path_for(team_id)
        if not path.exists():
            logger.info(f"No play pool file for team {team_id}")
            return []
        return load_plays(path)

    def save(self, team_id: str, plays: list[Play]) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        with open(self.path_for(team_id), "w") as f:
            json.dump([play.to_dict() for play in plays], f, indent=2)


class JsonDistributionSource:
    """Scouting reports stored as one JSON file per team/opponent."""

    def __init__(self, data_dir: PathLike):
        self.root = Path(data_dir) / "scouting"

    def path_for(self, team_id: str, opponent_id: str) -> Path:
        return self.root / team_id / f"{opponent_id}.json"

    async def fetch_distribution(
        self, team_id: str, opponent_id: str, kind: DistributionKind
    ) -> Distribution:
        path = self.path_for(team_id, opponent_id)
        if not path.exists():
            return {}
        return load_scouting(path).distribution(kind)

    def save(self, team_id: str, opponent_id: str, report: ScoutingReport) -> None:
        path = self.path_for(team_id, opponent_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(report.to_dict(), f, indent=2)


class JsonFileStore:
    """Game plan rows stored as one JSON file per team/opponent."""

    def __init__(self, data_dir: PathLike):
        self.root = Path(data_dir) / "gameplans"

    def path_for(self, team_id: str, opponent_id: str) -> Path:
        return self.root / team_id / f"{opponent_id}.json"

    def _read(self, team_id: str, opponent_id: str) -> dict[str, list[dict]]:
        path = self.path_for(team_id, opponent_id)
        if not path.exists():
            return {}
        data = _read_json(path)
        return data.get("sections", {})

    async def persist_section(
        self,
        team_id: str,
        opponent_id: str,
        section_key: str,
        records: list[SlotRecord],
    ) -> None:
        path = self.path_for(team_id, opponent_id)
        try:
            sections = self._read(team_id, opponent_id)
            sections[section_key.lower()] = [record.to_dict() for record in records]
            path.parent.mkdir(parents=True, exist_ok=True)
            # Write to a temp file first so a failed write keeps the old plan
            tmp = path.with_suffix(".json.tmp")
            with open(tmp, "w") as f:
                json.dump({"sections": sections}, f, indent=2)
            tmp.replace(path)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot write {section_key} to {path}: {e}", section_key) from e

    async def load_records(self, team_id: str, opponent_id: str) -> list[SlotRecord]:
        try:
            sections = self._read(team_id, opponent_id)
        except (OSError, json.JSONDecodeError) as e:
            raise SourceError(f"Cannot read game plan for {team_id} vs {opponent_id}: {e}") from e
        return [SlotRecord.from_dict(row) for rows in sections.values() for row in rows]

    async def delete_all(self, team_id: str, opponent_id: str) -> None:
        path = self.path_for(team_id, opponent_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot delete {path}: {e}") from e
