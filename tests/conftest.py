"""Shared pytest fixtures for game planner tests."""

import random

import pytest

from gameplanner.config import PlannerConfig
from gameplanner.core.allocation import PlanSettings
from gameplanner.core.enums import PlayCategory
from gameplanner.core.models import Play, Section
from gameplanner.core.scouting import ScoutingReport


def _play(play_id: str, category: PlayCategory, concept: str, formation: str, **kwargs) -> Play:
    return Play(id=play_id, category=category, concept=concept, formation=formation, **kwargs)


RUN = PlayCategory.RUN_GAME
RPO = PlayCategory.RPO_GAME
QUICK = PlayCategory.QUICK_GAME
DROPBACK = PlayCategory.DROPBACK_GAME
SCREEN = PlayCategory.SCREEN_GAME
MOVING = PlayCategory.MOVING_POCKET
SHOT = PlayCategory.SHOT_PLAYS


# =============================================================================
# Play Fixtures
# =============================================================================


@pytest.fixture
def play_factory():
    """Build plays with only the fields a test cares about."""
    counter = {"n": 0}

    def make(category: PlayCategory = RUN, concept: str = "", formation: str = "", **kwargs) -> Play:
        counter["n"] += 1
        play_id = kwargs.pop("id", f"play_{counter['n']}")
        return Play(id=play_id, category=category, concept=concept, formation=formation, **kwargs)

    return make


@pytest.fixture
def play_pool() -> list[Play]:
    """A small but complete play pool covering every category."""
    return [
        # Run game
        _play("r1", RUN, "Inside Zone", "Trips", front_beaters=("4-3 Over", "Bear"),
              third_short=True, goal_line=True),
        _play("r2", RUN, "Inside Zone", "Deuce", front_beaters=("4-3 Over",)),
        _play("r3", RUN, "Power", "Trips", front_beaters=("3-4 Split +", "Bear"),
              red_zone=True, goal_line=True),
        _play("r4", RUN, "Counter", "Deuce", front_beaters=("Nickel 4-2",), third_short=True),
        _play("r5", RUN, "Outside Zone", "Trey", front_beaters=("4-3 Over", "Nickel 4-2")),
        _play("r6", RUN, "Draw", "Deuce", front_beaters=("Nickel 4-2",), third_long=True),
        # RPO
        _play("p1", RPO, "Glance", "Trips", front_beaters=("4-3 Over",), rpo_tag="Glance"),
        _play("p2", RPO, "Bubble", "Deuce", front_beaters=("3-4 Split +",), goal_line=True),
        # Quick game
        _play("q1", QUICK, "Stick", "Trips", coverage_beaters=("Cover 3", "Cover 1"), third_short=True),
        _play("q2", QUICK, "Snag", "Deuce", coverage_beaters=("Cover 2", "Cover 3"), red_zone=True),
        _play("q3", QUICK, "Hoss", "Trey", coverage_beaters=("Cover 3",)),
        _play("q4", QUICK, "Quick Out", "Trips", coverage_beaters=("Cover 1", "Cover 4")),
        # Dropback
        _play("d1", DROPBACK, "Curl", "Trips", coverage_beaters=("Cover 3",), third_medium=True),
        _play("d2", DROPBACK, "Dig", "Deuce", coverage_beaters=("Cover 1", "Cover 4"), third_long=True),
        _play("d3", DROPBACK, "Dagger", "Trey", coverage_beaters=("Cover 3", "Cover 4"),
              third_long=True, pass_protection="Slide"),
        _play("d4", DROPBACK, "Flood", "Trips", coverage_beaters=("Cover 3",), pass_protection="Boot"),
        # Screens
        _play("s1", SCREEN, "Bubble", "Trips"),
        _play("s2", SCREEN, "Tunnel", "Deuce"),
        _play("s3", SCREEN, "RB Screen", "Trey", third_long=True),
        # Moving pocket
        _play("m1", MOVING, "Sprint Out", "Trips", coverage_beaters=("Cover 1",), pass_protection="Half"),
        _play("m2", MOVING, "Flood", "Deuce", pass_protection="PA Boot", red_zone=True),
        # Shots
        _play("x1", SHOT, "Go", "Trips", coverage_beaters=("Cover 1", "Cover 0")),
        _play("x2", SHOT, "Post/Wheel", "Deuce", coverage_beaters=("Cover 3",), pass_protection="Max PA"),
        _play("x3", SHOT, "Double Move", "Trey", coverage_beaters=("Cover 1",)),
    ]


@pytest.fixture
def pool_by_id(play_pool) -> dict[str, Play]:
    return {play.id: play for play in play_pool}


# =============================================================================
# Scouting / Settings Fixtures
# =============================================================================


@pytest.fixture
def scouting() -> ScoutingReport:
    """Opponent showing three fronts and three coverages."""
    return ScoutingReport(
        fronts_pct={"4-3 Over": 50, "Nickel 4-2": 30, "3-4 Split +": 20},
        coverages_pct={"Cover 3": 40, "Cover 1": 35, "Cover 4": 25},
        blitz_pct={"Fire Zone": 20},
        overall_blitz_pct=25,
        notes="Heavy Cover 3 on early downs",
    )


@pytest.fixture
def settings(scouting) -> PlanSettings:
    return PlanSettings(team_id="team", opponent_id="opp", scouting=scouting)


@pytest.fixture
def rng() -> random.Random:
    """Deterministic random source."""
    return random.Random(42)


@pytest.fixture
def config() -> PlannerConfig:
    """Config with short timeouts and no env influence."""
    return PlannerConfig(
        max_capacity=20,
        fetch_timeout=1.0,
        persist_timeout=0.2,
        parallel_regeneration=False,
        data_dir="data",
        api_url=None,
        api_key=None,
        retry_delay=0.0,
        seed=7,
    )


# =============================================================================
# Section Fixtures
# =============================================================================


@pytest.fixture
def locked_section(pool_by_id) -> Section:
    """Capacity 6: [locked r1, empty, locked q1, empty, empty, empty]."""
    section = Section.empty("third_short", "3rd & Short", 6)
    section.slots[0].play = pool_by_id["r1"]
    section.slots[0].locked = True
    section.slots[2].play = pool_by_id["q1"]
    section.slots[2].locked = True
    return section
