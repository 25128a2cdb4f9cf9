"""
Game plan engine.

Orchestrates regeneration: fetch the play pool and scouting
distributions, build a section, persist its rows, and only then commit
the new section to the in-memory plan. Each section is guarded by its
REGENERATING state so it is never rebuilt twice at once.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from gameplanner.config import PlannerConfig, get_config
from gameplanner.core.allocation import PlanSettings, RandomSource, build_section, make_rng
from gameplanner.core.enums import DistributionKind
from gameplanner.core.errors import (
    AllocationNotice,
    GamePlanError,
    PersistenceError,
    SectionBusyError,
    SourceError,
)
from gameplanner.core.models import GamePlan, Play, Section, SectionState
from gameplanner.core.terminology import TerminologyMap
from gameplanner.sources.base import DistributionSource, GamePlanStore, PlayPoolSource


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RegenerationResult:
    """Outcome of regenerating one section."""

    section_key: str
    filled: int
    capacity: int
    notices: list[AllocationNotice] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.filled == self.capacity

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "section_key": self.section_key,
            "filled": self.filled,
            "capacity": self.capacity,
            "notices": [notice.to_dict() for notice in self.notices],
        }


@dataclass
class PlanRegenerationSummary:
    """Outcome of regenerating a whole plan; failed sections keep their old plays."""

    results: dict[str, RegenerationResult] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def notices(self) -> list[AllocationNotice]:
        return [notice for result in self.results.values() for notice in result.notices]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "results": {key: result.to_dict() for key, result in self.results.items()},
            "failures": dict(self.failures),
        }


class GamePlanEngine:
    """
    Async orchestration of section regeneration.

    Usage:
        engine = GamePlanEngine(pool_source, distribution_source, store)
        plan = await engine.open_plan("team", "opponent")
        summary = await engine.regenerate_plan(plan)
    """

    def __init__(
        self,
        play_pool: PlayPoolSource,
        distributions: DistributionSource,
        store: GamePlanStore,
        config: Optional[PlannerConfig] = None,
        rng: Optional[RandomSource] = None,
        terminology: Optional[TerminologyMap] = None,
    ):
        self.play_pool = play_pool
        self.distributions = distributions
        self.store = store
        self.config = config or get_config()
        self.rng = rng or make_rng(self.config.seed)
        self.terminology = terminology

    # -------------------------------------------------------------------------
    # Collaborator calls
    # -------------------------------------------------------------------------

    async def _fetch(self, call: Awaitable[T], what: str) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.config.fetch_timeout)
        except asyncio.TimeoutError as e:
            raise SourceError(f"Timed out fetching {what} after {self.config.fetch_timeout}s") from e
        except GamePlanError:
            raise
        except Exception as e:
            raise SourceError(f"Failed fetching {what}: {e}") from e

    async def persist_section(self, plan: GamePlan, section: Section) -> None:
        """
        Write a section's rows to the store.

        Raises:
            PersistenceError: If the write fails or times out
        """
        records = section.to_records(plan.team_id, plan.opponent_id, self.terminology)
        try:
            await asyncio.wait_for(
                self.store.persist_section(plan.team_id, plan.opponent_id, section.key, records),
                timeout=self.config.persist_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Timed out saving {section.key} after {self.config.persist_timeout}s")
            raise PersistenceError(f"Timed out saving {section.key}", section.key) from e
        except PersistenceError as e:
            logger.error(f"Failed saving {section.key}: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Failed saving {section.key}: {e}")
            raise PersistenceError(f"Failed saving {section.key}: {e}", section.key) from e

    async def load_inputs(
        self,
        team_id: str,
        opponent_id: str,
        settings: Optional[PlanSettings] = None,
    ) -> tuple[list[Play], PlanSettings]:
        """
        Fetch a read-only pool snapshot and the current scouting distributions.

        Returns:
            (play pool, settings with fronts and coverages filled in)

        Raises:
            SourceError: If any fetch fails or times out
        """
        base = settings or PlanSettings(team_id=team_id, opponent_id=opponent_id)
        pool = await self._fetch(self.play_pool.fetch_play_pool(team_id), "play pool")
        fronts = await self._fetch(
            self.distributions.fetch_distribution(team_id, opponent_id, DistributionKind.FRONT),
            "front distribution",
        )
        coverages = await self._fetch(
            self.distributions.fetch_distribution(team_id, opponent_id, DistributionKind.COVERAGE),
            "coverage distribution",
        )
        scouting = replace(base.scouting, fronts_pct=dict(fronts), coverages_pct=dict(coverages))
        resolved = replace(base, team_id=team_id, opponent_id=opponent_id, scouting=scouting)
        return list(pool), resolved

    # -------------------------------------------------------------------------
    # Plans
    # -------------------------------------------------------------------------

    def sync_sections(self, plan: GamePlan, settings: PlanSettings) -> None:
        """Add catalog sections the plan lacks (new scouted fronts/coverages)."""
        for spec in settings.full_catalog():
            if spec.key not in plan.sections:
                plan.add_section(spec, max_capacity=self.config.max_capacity)

    async def open_plan(
        self,
        team_id: str,
        opponent_id: str,
        settings: Optional[PlanSettings] = None,
    ) -> GamePlan:
        """
        Load a plan from the store, or create it empty.

        Raises:
            SourceError: If the store or a source cannot be read
        """
        pool, settings = await self.load_inputs(team_id, opponent_id, settings)
        records = await self._fetch(self.store.load_records(team_id, opponent_id), "game plan")
        plan = GamePlan.from_records(
            team_id,
            opponent_id,
            records,
            pool,
            settings.full_catalog(),
            max_capacity=self.config.max_capacity,
        )
        logger.info(f"Opened plan {team_id} vs {opponent_id}: {plan.filled_count} plays")
        return plan

    async def edit_section(self, plan: GamePlan, section_key: str, edit: Callable[[Section], T]) -> T:
        """
        Apply a manual edit to a copy of a section, persist it, then commit.

        The live section is REGENERATING while the store write is pending,
        so a regeneration cannot start from the pre-edit slots.

        Raises:
            SectionBusyError: If the section is regenerating or being edited
            InvalidConfigurationError: If the edit is invalid
            PersistenceError: If the store rejects the edited section
        """
        section = plan.section(section_key)
        if section.is_generating:
            raise SectionBusyError(f"Section {section_key} is regenerating", section_key)
        draft = section.copy()
        result = edit(draft)

        section.state = SectionState.REGENERATING
        try:
            await self.persist_section(plan, draft)
            self._commit(plan, section, draft)
        finally:
            section.state = SectionState.STABLE
        return result

    def _commit(self, plan: GamePlan, current: Section, updated: Section) -> None:
        """Swap in a new section, unless the one it was built from was replaced meanwhile."""
        if plan.sections.get(current.key) is not current:
            raise SectionBusyError(f"Section {current.key} changed while it was being saved", current.key)
        updated.state = SectionState.STABLE
        plan.replace_section(updated)

    async def delete_all(self, plan: GamePlan) -> None:
        """Delete every stored row of the plan and clear all slots."""
        try:
            await asyncio.wait_for(
                self.store.delete_all(plan.team_id, plan.opponent_id),
                timeout=self.config.persist_timeout,
            )
        except asyncio.TimeoutError as e:
            raise PersistenceError(f"Timed out deleting plan {plan.team_id} vs {plan.opponent_id}") from e
        plan.delete_all()
        logger.info(f"Deleted plan {plan.team_id} vs {plan.opponent_id}")

    # -------------------------------------------------------------------------
    # Regeneration
    # -------------------------------------------------------------------------

    async def regenerate_section(
        self,
        plan: GamePlan,
        section_key: str,
        settings: Optional[PlanSettings] = None,
        pool: Optional[list[Play]] = None,
    ) -> RegenerationResult:
        """
        Regenerate one section's unlocked slots.

        The rebuilt section replaces the old one only after the store
        accepts it. The section is REGENERATING for the duration and is
        always STABLE afterwards.

        Args:
            plan: Plan to update
            section_key: Section to rebuild
            settings: Plan settings (fetched distributions are merged in)
            pool: Pre-fetched pool; when given, settings are used as is

        Raises:
            UnknownSectionError: If the plan has no such section
            SectionBusyError: If the section is already regenerating or was
                replaced by an edit while this one was saving
            InvalidConfigurationError: If the section cannot be allocated
            SourceError: If the pool or distributions cannot be fetched
            PersistenceError: If the store rejects the new rows
        """
        section = plan.section(section_key)
        if section.is_generating:
            raise SectionBusyError(f"Section {section_key} is already regenerating", section_key)

        section.state = SectionState.REGENERATING
        try:
            if pool is None:
                pool, settings = await self.load_inputs(plan.team_id, plan.opponent_id, settings)
            elif settings is None:
                settings = PlanSettings(team_id=plan.team_id, opponent_id=plan.opponent_id)

            spec = plan.specs.get(section_key) or settings.spec_for(section_key)
            outcome = build_section(section, pool, settings, self.rng, spec=spec)
            await self.persist_section(plan, outcome.section)
            self._commit(plan, section, outcome.section)
        finally:
            section.state = SectionState.STABLE

        for notice in outcome.notices:
            logger.info(f"{notice.section_key}: {notice.message}")
        logger.info(f"Regenerated {section_key}: {outcome.filled}/{outcome.section.capacity}")
        return RegenerationResult(
            section_key=section_key,
            filled=outcome.filled,
            capacity=outcome.section.capacity,
            notices=outcome.notices,
        )

    async def regenerate_plan(
        self,
        plan: GamePlan,
        settings: Optional[PlanSettings] = None,
        keys: Optional[Iterable[str]] = None,
    ) -> PlanRegenerationSummary:
        """
        Regenerate every section (or the given ones).

        Sections run one after another, or concurrently when
        parallel_regeneration is set. A failing section is recorded and
        the rest still run; failures are logged once at the end.
        """
        summary = PlanRegenerationSummary()
        try:
            pool, settings = await self.load_inputs(plan.team_id, plan.opponent_id, settings)
        except SourceError as e:
            targets = list(keys) if keys is not None else list(plan.sections)
            summary.failures = {key: e.message for key in targets}
            logger.warning(f"Plan regeneration aborted, sources unavailable: {e.message}")
            return summary

        self.sync_sections(plan, settings)
        targets = list(keys) if keys is not None else list(plan.sections)

        async def run(key: str) -> tuple[str, Optional[RegenerationResult], Optional[str]]:
            try:
                return key, await self.regenerate_section(plan, key, settings, pool), None
            except GamePlanError as e:
                return key, None, e.message

        if self.config.parallel_regeneration:
            outcomes = await asyncio.gather(*(run(key) for key in targets))
        else:
            outcomes = [await run(key) for key in targets]

        for key, result, error in outcomes:
            if result is not None:
                summary.results[key] = result
            else:
                summary.failures[key] = error or "unknown error"

        if summary.failures:
            details = "; ".join(f"{key}: {message}" for key, message in summary.failures.items())
            logger.warning(f"{len(summary.failures)} of {len(targets)} sections failed: {details}")
        return summary
