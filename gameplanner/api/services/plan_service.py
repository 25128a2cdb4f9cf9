"""
Service layer for the Game Plan API.

Holds open plans in memory and routes every change through the engine so
the store and the in-memory plan never disagree. Manual edits are made on
a copy of the section, persisted, and only then committed.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Iterable, Optional, TypeVar

from gameplanner.config import PlannerConfig, get_config
from gameplanner.core.allocation import (
    BasePackageFocus,
    PlanSettings,
    display_numbers,
    numbering_for,
)
from gameplanner.core.errors import InvalidConfigurationError, SectionBusyError
from gameplanner.core.models import GamePlan, Play, Section
from gameplanner.core.scouting import ScoutingReport
from gameplanner.core.sections import default_section_groups
from gameplanner.engine import GamePlanEngine, PlanRegenerationSummary, RegenerationResult
from gameplanner.sources import (
    InMemoryDistributionSource,
    InMemoryGamePlanStore,
    InMemoryPlayPool,
    RestClient,
    RestDistributionSource,
    RestGamePlanStore,
    RestPlayPoolSource,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

PlanKey = tuple[str, str]


class GamePlanService:
    """
    Manages open game plans.

    Plan storage is guarded by an asyncio lock; regeneration itself runs
    outside the lock so a busy section can be detected and reported.
    """

    def __init__(self, engine: Optional[GamePlanEngine] = None, config: Optional[PlannerConfig] = None) -> None:
        """Initialize with an in-memory backend unless an engine is given."""
        self.config = config or get_config()
        if engine is None:
            engine = GamePlanEngine(
                InMemoryPlayPool(),
                InMemoryDistributionSource(),
                InMemoryGamePlanStore(),
                config=self.config,
            )
        self.engine = engine
        self._plans: dict[PlanKey, GamePlan] = {}
        self._settings: dict[PlanKey, PlanSettings] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: Optional[PlannerConfig] = None) -> "GamePlanService":
        """Use the PostgREST backend when an API URL is configured."""
        config = config or get_config()
        if not config.uses_rest_backend:
            return cls(config=config)
        client = RestClient.from_config(config)
        engine = GamePlanEngine(
            RestPlayPoolSource(client),
            RestDistributionSource(client),
            RestGamePlanStore(client),
            config=config,
        )
        return cls(engine=engine, config=config)

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    def set_play_pool(self, team_id: str, plays: Iterable[Play]) -> int:
        """Replace a team's play pool (in-memory backend only)."""
        pool = self.engine.play_pool
        if not isinstance(pool, InMemoryPlayPool):
            raise InvalidConfigurationError("Play pool is read-only for this backend")
        plays = list(plays)
        pool.set_plays(team_id, plays)
        logger.info(f"Play pool for {team_id} set to {len(plays)} plays")
        return len(plays)

    def set_scouting(self, team_id: str, opponent_id: str, report: ScoutingReport) -> None:
        """Replace an opponent's scouting report (in-memory backend only)."""
        source = self.engine.distributions
        if not isinstance(source, InMemoryDistributionSource):
            raise InvalidConfigurationError("Scouting is read-only for this backend")
        source.set_report(team_id, opponent_id, report)
        key = (team_id, opponent_id)
        if key in self._settings:
            self._settings[key] = replace(self._settings[key], scouting=report)

    def get_scouting(self, team_id: str, opponent_id: str) -> Optional[ScoutingReport]:
        source = self.engine.distributions
        if isinstance(source, InMemoryDistributionSource):
            return source.get_report(team_id, opponent_id)
        settings = self._settings.get((team_id, opponent_id))
        return settings.scouting if settings else None

    def settings_for(self, team_id: str, opponent_id: str) -> PlanSettings:
        key = (team_id, opponent_id)
        settings = self._settings.get(key)
        if settings is None:
            report = self.get_scouting(team_id, opponent_id) or ScoutingReport()
            settings = PlanSettings(team_id=team_id, opponent_id=opponent_id, scouting=report)
            self._settings[key] = settings
        return settings

    def update_settings(
        self,
        team_id: str,
        opponent_id: str,
        base_package_focus: Optional[dict[str, BasePackageFocus]] = None,
        category_mix: Optional[dict[str, float]] = None,
    ) -> PlanSettings:
        """Merge focus and category mix changes into a plan's settings."""
        settings = self.settings_for(team_id, opponent_id)
        focus = dict(settings.base_package_focus)
        focus.update(base_package_focus or {})
        settings = replace(
            settings,
            base_package_focus=focus,
            category_mix=dict(category_mix) if category_mix is not None else settings.category_mix,
        )
        self._settings[(team_id, opponent_id)] = settings
        return settings

    # -------------------------------------------------------------------------
    # Plans
    # -------------------------------------------------------------------------

    async def open_plan(self, team_id: str, opponent_id: str) -> GamePlan:
        """Get an open plan, loading or creating it on first use."""
        async with self._lock:
            plan = self._plans.get((team_id, opponent_id))
            if plan is None:
                settings = self.settings_for(team_id, opponent_id)
                plan = await self.engine.open_plan(team_id, opponent_id, settings)
                self._plans[(team_id, opponent_id)] = plan
            return plan

    @property
    def open_plan_count(self) -> int:
        return len(self._plans)

    async def get_plan(self, team_id: str, opponent_id: str) -> Optional[GamePlan]:
        """Get an open plan by team and opponent."""
        async with self._lock:
            return self._plans.get((team_id, opponent_id))

    async def delete_all(self, team_id: str, opponent_id: str) -> Optional[GamePlan]:
        """Clear every slot of a plan (locked ones included)."""
        plan = await self.get_plan(team_id, opponent_id)
        if plan is None:
            return None
        busy = [key for key, section in plan.sections.items() if section.is_generating]
        if busy:
            raise SectionBusyError(f"Sections still regenerating: {', '.join(busy)}", busy[0])
        await self.engine.delete_all(plan)
        return plan

    async def regenerate_section(self, plan: GamePlan, section_key: str) -> RegenerationResult:
        settings = self.settings_for(plan.team_id, plan.opponent_id)
        self.engine.sync_sections(plan, settings)
        return await self.engine.regenerate_section(plan, section_key, settings)

    async def regenerate_plan(self, plan: GamePlan) -> PlanRegenerationSummary:
        settings = self.settings_for(plan.team_id, plan.opponent_id)
        return await self.engine.regenerate_plan(plan, settings)

    def numbering(self, plan: GamePlan) -> tuple[dict[str, int], dict[str, dict[int, int]]]:
        """Starting numbers and per-slot numbers of visible sections."""
        groups = default_section_groups(plan.specs.values())
        visibility = plan.visibility()
        return (
            numbering_for(groups, visibility, plan.sections),
            display_numbers(groups, visibility, plan.sections),
        )

    # -------------------------------------------------------------------------
    # Manual edits
    # -------------------------------------------------------------------------

    async def edit_section(self, plan: GamePlan, section_key: str, edit: Callable[[Section], T]) -> T:
        """
        Apply a manual edit to a copy of a section, persist it, then commit.

        Raises:
            SectionBusyError: If the section is regenerating
            InvalidConfigurationError: If the edit is invalid
            PersistenceError: If the store rejects the edited section
        """
        return await self.engine.edit_section(plan, section_key, edit)

    async def find_play(self, team_id: str, play_id: str) -> Play:
        pool = await self.engine.play_pool.fetch_play_pool(team_id)
        for play in pool:
            if play.id == play_id:
                return play
        raise InvalidConfigurationError(f"Play {play_id} is not in the play pool")


# Global service instance
game_plan_service = GamePlanService.from_config()


def get_game_plan_service() -> GamePlanService:
    """FastAPI dependency returning the global service."""
    return game_plan_service
