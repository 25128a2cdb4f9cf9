"""Tests for the async regeneration engine."""

import asyncio
import random
from dataclasses import replace

import pytest

from gameplanner.core.errors import PersistenceError, SectionBusyError, SourceError, UnknownSectionError
from gameplanner.core.models import GamePlan, SectionState
from gameplanner.engine import GamePlanEngine
from gameplanner.sources import InMemoryDistributionSource, InMemoryGamePlanStore, InMemoryPlayPool


# =============================================================================
# Test collaborators
# =============================================================================

class FailingStore(InMemoryGamePlanStore):
    """Store that rejects writes for some sections."""

    def __init__(self, failing: set[str]):
        super().__init__()
        self.failing = failing

    async def persist_section(self, team_id, opponent_id, section_key, records):
        if section_key in self.failing:
            raise ConnectionError("database unavailable")
        await super().persist_section(team_id, opponent_id, section_key, records)


class SlowStore(InMemoryGamePlanStore):
    """Store that takes a while to write."""

    def __init__(self, delay: float):
        super().__init__()
        self.delay = delay

    async def persist_section(self, team_id, opponent_id, section_key, records):
        await asyncio.sleep(self.delay)
        await super().persist_section(team_id, opponent_id, section_key, records)


class BrokenPool:
    async def fetch_play_pool(self, team_id):
        raise RuntimeError("pool offline")


def _engine(play_pool, scouting, config, store=None, pool_source=None) -> GamePlanEngine:
    return GamePlanEngine(
        play_pool=pool_source or InMemoryPlayPool(play_pool),
        distributions=InMemoryDistributionSource(scouting),
        store=store or InMemoryGamePlanStore(),
        config=config,
        rng=random.Random(3),
    )


# =============================================================================
# Opening plans
# =============================================================================

class TestOpenPlan:
    """Plans are loaded from the store or created empty."""

    def test_new_plan_is_empty_with_beater_sections(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config)

        plan = asyncio.run(engine.open_plan("team", "opp"))

        assert plan.filled_count == 0
        assert "front_4_3_over" in plan.sections
        assert "coverage_cover_1" in plan.sections

    def test_reopen_restores_regenerated_plan(self, play_pool, scouting, config):
        store = InMemoryGamePlanStore()
        engine = _engine(play_pool, scouting, config, store=store)

        async def run():
            plan = await engine.open_plan("team", "opp")
            await engine.regenerate_section(plan, "red_zone")
            return plan, await engine.open_plan("team", "opp")

        plan, reopened = asyncio.run(run())

        assert {p.id for p in reopened.section("red_zone").plays()} == {"r3", "q2", "m2"}
        assert reopened.section("red_zone").plays() == plan.section("red_zone").plays()

    def test_source_failure_raises_source_error(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config, pool_source=BrokenPool())
        with pytest.raises(SourceError):
            asyncio.run(engine.open_plan("team", "opp"))


# =============================================================================
# Section regeneration
# =============================================================================

class TestRegenerateSection:
    """One section at a time."""

    def test_regenerate_persists_then_commits(self, play_pool, scouting, config):
        store = InMemoryGamePlanStore()
        engine = _engine(play_pool, scouting, config, store=store)

        async def run():
            plan = await engine.open_plan("team", "opp")
            return plan, await engine.regenerate_section(plan, "two_point")

        plan, result = asyncio.run(run())

        assert result.filled == 3
        assert result.complete
        assert plan.section("two_point").state == SectionState.STABLE
        records = store.section_records("team", "opp", "two_point")
        assert {record.play_id for record in records} == {"r1", "r3", "p2"}

    def test_locked_slots_survive(self, play_pool, pool_by_id, scouting, config):
        engine = _engine(play_pool, scouting, config)

        async def run():
            plan = await engine.open_plan("team", "opp")
            section = plan.section("third_short")
            section.slots[3].play = pool_by_id["q1"]
            section.set_locked(3, True)
            await engine.regenerate_section(plan, "third_short")
            return plan

        plan = asyncio.run(run())

        section = plan.section("third_short")
        assert section.slots[3].play.id == "q1"
        assert section.slots[3].locked
        assert [p.id for p in section.plays()].count("q1") == 1

    def test_persistence_failure_keeps_old_section(self, play_pool, pool_by_id, scouting, config):
        engine = _engine(play_pool, scouting, config, store=FailingStore({"red_zone"}))

        async def run():
            plan = await engine.open_plan("team", "opp")
            plan.section("red_zone").slots[0].play = pool_by_id["x1"]
            with pytest.raises(PersistenceError):
                await engine.regenerate_section(plan, "red_zone")
            return plan

        plan = asyncio.run(run())

        section = plan.section("red_zone")
        assert [p.id for p in section.plays()] == ["x1"]
        assert section.state == SectionState.STABLE

    def test_slow_store_times_out(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config, store=SlowStore(delay=1.0))

        async def run():
            plan = await engine.open_plan("team", "opp")
            with pytest.raises(PersistenceError):
                await engine.regenerate_section(plan, "screens")
            return plan

        plan = asyncio.run(run())

        assert plan.section("screens").filled_count == 0
        assert not plan.section("screens").is_generating

    def test_busy_section_rejected(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config)

        async def run():
            plan = await engine.open_plan("team", "opp")
            plan.section("screens").state = SectionState.REGENERATING
            await engine.regenerate_section(plan, "screens")

        with pytest.raises(SectionBusyError):
            asyncio.run(run())

    def test_concurrent_regeneration_of_same_section(self, play_pool, scouting, config):
        """A second request while the first is in flight is rejected, not queued."""
        engine = _engine(play_pool, scouting, config, store=SlowStore(delay=0.05))

        async def run():
            plan = await engine.open_plan("team", "opp")
            return plan, await asyncio.gather(
                engine.regenerate_section(plan, "screens"),
                engine.regenerate_section(plan, "screens"),
                return_exceptions=True,
            )

        plan, results = asyncio.run(run())

        assert sum(isinstance(result, SectionBusyError) for result in results) == 1
        assert plan.section("screens").filled_count == 3
        assert plan.section("screens").state == SectionState.STABLE

    def test_unknown_section(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config)

        async def run():
            plan = await engine.open_plan("team", "opp")
            await engine.regenerate_section(plan, "nope")

        with pytest.raises(UnknownSectionError):
            asyncio.run(run())


# =============================================================================
# Manual edits
# =============================================================================

class TestEditSection:
    """Manual edits share the busy guard with regeneration."""

    def test_lock_survives_overlapping_regeneration(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config, store=SlowStore(delay=0.05))

        async def regenerate_later(plan):
            await asyncio.sleep(0.01)
            return await engine.regenerate_section(plan, "two_point")

        async def run():
            plan = await engine.open_plan("team", "opp")
            await engine.regenerate_section(plan, "two_point")
            play_id = plan.section("two_point").slots[0].play.id
            results = await asyncio.gather(
                engine.edit_section(plan, "two_point", lambda section: section.set_locked(0, True)),
                regenerate_later(plan),
                return_exceptions=True,
            )
            return plan, play_id, results

        plan, play_id, results = asyncio.run(run())

        assert results[0] is None
        assert isinstance(results[1], SectionBusyError)
        section = plan.section("two_point")
        assert section.slots[0].locked
        assert section.slots[0].play.id == play_id
        assert section.state == SectionState.STABLE

    def test_edit_rejected_while_regenerating(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config, store=SlowStore(delay=0.05))

        async def edit_later(plan):
            await asyncio.sleep(0.01)
            return await engine.edit_section(plan, "screens", lambda section: section.set_capacity(2))

        async def run():
            plan = await engine.open_plan("team", "opp")
            results = await asyncio.gather(
                engine.regenerate_section(plan, "screens"),
                edit_later(plan),
                return_exceptions=True,
            )
            return plan, results

        plan, results = asyncio.run(run())

        assert isinstance(results[1], SectionBusyError)
        assert plan.section("screens").capacity == 5
        assert plan.section("screens").filled_count == 3

    def test_failed_write_keeps_section_unedited(self, play_pool, pool_by_id, scouting, config):
        store = FailingStore({"two_point"})
        engine = _engine(play_pool, scouting, config, store=store)

        async def run():
            plan = await engine.open_plan("team", "opp")
            plan.section("two_point").slots[0].play = pool_by_id["r1"]
            with pytest.raises(PersistenceError):
                await engine.edit_section(plan, "two_point", lambda section: section.set_locked(0, True))
            return plan

        plan = asyncio.run(run())

        section = plan.section("two_point")
        assert not section.slots[0].locked
        assert section.state == SectionState.STABLE
        assert store.section_records("team", "opp", "two_point") == []


# =============================================================================
# Plan regeneration
# =============================================================================

class TestRegeneratePlan:
    """Every section, continuing past failures."""

    def test_all_sections_regenerated(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config)

        async def run():
            plan = await engine.open_plan("team", "opp")
            return plan, await engine.regenerate_plan(plan)

        plan, summary = asyncio.run(run())

        assert summary.ok
        assert set(summary.results) == set(plan.sections)
        assert plan.section("opening_script").filled_count == 15

    def test_failure_does_not_stop_other_sections(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config, store=FailingStore({"screens"}))

        async def run():
            plan = await engine.open_plan("team", "opp")
            return plan, await engine.regenerate_plan(plan)

        plan, summary = asyncio.run(run())

        assert list(summary.failures) == ["screens"]
        assert "screens" not in summary.results
        assert plan.section("screens").filled_count == 0
        assert plan.section("deep_shots").filled_count == 3

    def test_parallel_mode(self, play_pool, scouting, config):
        engine = _engine(
            play_pool, scouting, replace(config, parallel_regeneration=True),
            store=FailingStore({"red_zone"}),
        )

        async def run():
            plan = await engine.open_plan("team", "opp")
            return plan, await engine.regenerate_plan(plan)

        plan, summary = asyncio.run(run())

        assert list(summary.failures) == ["red_zone"]
        assert len(summary.results) == len(plan.sections) - 1
        assert all(not section.is_generating for section in plan.sections.values())

    def test_selected_keys_only(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config)

        async def run():
            plan = await engine.open_plan("team", "opp")
            return plan, await engine.regenerate_plan(plan, keys=["screens", "deep_shots"])

        plan, summary = asyncio.run(run())

        assert set(summary.results) == {"screens", "deep_shots"}
        assert plan.section("red_zone").filled_count == 0

    def test_unavailable_sources_fail_every_section(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config, pool_source=BrokenPool())

        plan = GamePlan.create("team", "opp")
        summary = asyncio.run(engine.regenerate_plan(plan))

        assert not summary.results
        assert set(summary.failures) == set(plan.sections)

    def test_notices_collected(self, play_pool, scouting, config):
        engine = _engine(play_pool, scouting, config)

        async def run():
            plan = await engine.open_plan("team", "opp")
            return await engine.regenerate_plan(plan)

        summary = asyncio.run(run())

        keys = {notice.section_key for notice in summary.notices}
        assert "screens" in keys
        assert "opening_script" not in keys


class TestDeleteAll:
    """Plan deletion."""

    def test_delete_all_clears_store_and_plan(self, play_pool, scouting, config):
        store = InMemoryGamePlanStore()
        engine = _engine(play_pool, scouting, config, store=store)

        async def run():
            plan = await engine.open_plan("team", "opp")
            await engine.regenerate_plan(plan)
            await engine.delete_all(plan)
            return plan, await store.load_records("team", "opp")

        plan, records = asyncio.run(run())

        assert plan.filled_count == 0
        assert records == []
