"""Tests for the concept-diversity sampler."""

import random

from gameplanner.core.allocation import sample
from gameplanner.core.enums import PlayCategory


class TestSampleDiversity:
    """Unique concepts are preferred."""

    def test_distinct_concepts_when_available(self, play_factory):
        """With enough distinct concepts every pick has a new concept."""
        candidates = [
            play_factory(concept=concept, formation=formation)
            for concept in ("Inside Zone", "Power", "Counter", "Draw")
            for formation in ("Trips", "Deuce")
        ]
        for seed in range(50):
            result = sample(candidates, 4, set(), random.Random(seed))
            assert len(result.selected) == 4
            assert len({play.concept_key for play in result.selected}) == 4

    def test_used_concepts_are_avoided(self, play_factory):
        candidates = [
            play_factory(concept="Inside Zone"),
            play_factory(concept="Power"),
            play_factory(concept="Counter"),
        ]
        result = sample(candidates, 2, {"insidezone"}, random.Random(3))
        assert {play.concept for play in result.selected} == {"Power", "Counter"}

    def test_concepts_compared_normalized(self, play_factory):
        """'Inside Zone' and 'inside  zone' are the same concept."""
        candidates = [
            play_factory(concept="Inside Zone"),
            play_factory(concept="inside  zone"),
            play_factory(concept="Power"),
        ]
        for seed in range(20):
            result = sample(candidates, 2, set(), random.Random(seed))
            assert "Power" in {play.concept for play in result.selected}


class TestSampleDegrades:
    """Short pools degrade to repetition rather than empty slots."""

    def test_repeats_concepts_when_unique_exhausted(self, play_factory):
        candidates = [play_factory(concept="Inside Zone", formation=f"F{i}") for i in range(5)]
        result = sample(candidates, 3, set(), random.Random(1))
        assert len(result.selected) == 3

    def test_returns_min_of_count_and_pool(self, play_factory):
        candidates = [
            play_factory(concept="Inside Zone"),
            play_factory(concept="Inside Zone"),
            play_factory(concept="Power"),
        ]
        for count in range(0, 6):
            result = sample(candidates, count, set(), random.Random(count))
            assert len(result.selected) == min(count, len(candidates))

    def test_empty_candidates(self):
        result = sample([], 4, {"power"}, random.Random(1))
        assert result.selected == []
        assert result.used_concepts == {"power"}

    def test_zero_count(self, play_factory):
        result = sample([play_factory(concept="Power")], 0, set(), random.Random(1))
        assert result.selected == []


class TestSampleContract:
    """Inputs are not mutated and ids are never repeated."""

    def test_input_used_set_not_mutated(self, play_factory):
        used = {"power"}
        candidates = [play_factory(concept="Counter"), play_factory(concept="Draw")]
        result = sample(candidates, 2, used, random.Random(5))
        assert used == {"power"}
        assert result.used_concepts == {"power", "counter", "draw"}

    def test_input_candidates_not_reordered(self, play_factory):
        candidates = [play_factory(concept=f"C{i}") for i in range(10)]
        before = list(candidates)
        sample(candidates, 5, set(), random.Random(9))
        assert candidates == before

    def test_excluded_ids_never_drawn(self, play_factory):
        candidates = [play_factory(id=f"p{i}", concept=f"C{i}") for i in range(6)]
        result = sample(candidates, 6, set(), random.Random(2), exclude_ids={"p0", "p1"})
        assert len(result.selected) == 4
        assert not {"p0", "p1"} & result.ids

    def test_duplicate_ids_drawn_once(self, play_factory):
        play = play_factory(id="dup", concept="Power")
        result = sample([play, play, play], 3, set(), random.Random(2))
        assert len(result.selected) == 1

    def test_seeded_runs_repeat(self, play_pool):
        first = sample(play_pool, 8, set(), random.Random(11))
        second = sample(play_pool, 8, set(), random.Random(11))
        assert [p.id for p in first.selected] == [p.id for p in second.selected]

    def test_categories_untouched(self, play_factory):
        candidates = [play_factory(category=PlayCategory.SHOT_PLAYS, concept="Go")]
        result = sample(candidates, 1, set(), random.Random(0))
        assert result.selected[0].category == PlayCategory.SHOT_PLAYS
