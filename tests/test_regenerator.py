"""Tests for the locked-slot regenerator."""

import random

from gameplanner.core.allocation import (
    available_positions,
    free_pairs,
    regenerate_paired_section,
    regenerate_section,
)
from gameplanner.core.models import Section, SectionState


class TestAvailablePositions:
    """Free positions around locked slots."""

    def test_skips_locked(self, locked_section):
        assert available_positions(locked_section) == [1, 3, 4, 5]

    def test_all_free_when_nothing_locked(self):
        assert available_positions(Section.empty("s", "S", 4)) == [0, 1, 2, 3]

    def test_free_pairs(self, pool_by_id):
        section = Section.empty("combos", "Combos", 6, paired=True)
        section.slots[3].play = pool_by_id["r1"]
        section.slots[3].locked = True
        assert free_pairs(section) == [0, 4]


class TestRegenerateSection:
    """Locked slots keep their play and index."""

    def test_example_fills_all_empty_positions(self, locked_section, pool_by_id):
        """Capacity 6 with two locks and four new plays fills every free position."""
        new_plays = [pool_by_id[pid] for pid in ("r4", "r6", "q2", "d1")]

        result = regenerate_section(locked_section, new_plays, random.Random(4))

        assert result.slots[0].play.id == "r1"
        assert result.slots[0].locked
        assert result.slots[2].play.id == "q1"
        assert result.slots[2].locked
        placed = {result.slots[i].play.id for i in (1, 3, 4, 5)}
        assert placed == {"r4", "r6", "q2", "d1"}

    def test_input_not_mutated(self, locked_section, pool_by_id):
        regenerate_section(locked_section, [pool_by_id["r4"]], random.Random(1))
        assert [slot.is_filled for slot in locked_section.slots] == [True, False, True, False, False, False]

    def test_short_play_list_leaves_empty_slots(self, locked_section, pool_by_id):
        result = regenerate_section(locked_section, [pool_by_id["r4"]], random.Random(2))
        assert result.filled_count == 3
        assert result.capacity == 6

    def test_unlocked_plays_are_replaced(self, pool_by_id):
        section = Section.empty("s", "S", 3)
        for slot, pid in zip(section.slots, ("r1", "r2", "r3")):
            slot.play = pool_by_id[pid]
        section.slots[1].favorite = True

        result = regenerate_section(section, [pool_by_id["q1"]], random.Random(3))

        assert [slot.play.id for slot in result.slots if slot.play] == ["q1"]
        assert not any(slot.favorite for slot in result.slots)

    def test_positions_contiguous_after_regeneration(self, locked_section, play_pool):
        for seed in range(30):
            result = regenerate_section(locked_section, play_pool[:seed % 8], random.Random(seed))
            assert [slot.position for slot in result.slots] == list(range(result.capacity))

    def test_locked_slots_never_move(self, locked_section, play_pool):
        for seed in range(30):
            result = regenerate_section(locked_section, play_pool[3:9], random.Random(seed))
            assert result.slots[0].play.id == "r1"
            assert result.slots[2].play.id == "q1"
            assert result.slots[0].position == 0
            assert result.slots[2].position == 2

    def test_placement_is_shuffled(self, pool_by_id):
        section = Section.empty("s", "S", 4)
        plays = [pool_by_id[pid] for pid in ("r1", "r2", "r3", "r4")]
        orders = {
            tuple(slot.play.id for slot in regenerate_section(section, plays, random.Random(seed)).slots)
            for seed in range(20)
        }
        assert len(orders) > 1

    def test_result_is_stable(self, locked_section, pool_by_id):
        result = regenerate_section(locked_section, [pool_by_id["r4"]], random.Random(0))
        assert result.state == SectionState.STABLE


class TestRegeneratePairedSection:
    """Combo pairs stay together."""

    def test_pairs_fill_adjacent_slots(self, pool_by_id):
        section = Section.empty("combos", "Combos", 4, paired=True)
        pairs = [(pool_by_id["r1"], pool_by_id["q1"]), (pool_by_id["r3"], pool_by_id["d1"])]

        result = regenerate_paired_section(section, pairs, {}, random.Random(5))

        found = {(result.slots[0].play.id, result.slots[1].play.id),
                 (result.slots[2].play.id, result.slots[3].play.id)}
        assert found == {("r1", "q1"), ("r3", "d1")}

    def test_half_locked_pair_takes_partner(self, pool_by_id):
        section = Section.empty("combos", "Combos", 4, paired=True)
        section.slots[2].play = pool_by_id["r1"]
        section.slots[2].locked = True

        result = regenerate_paired_section(
            section,
            [(pool_by_id["r2"], pool_by_id["q2"])],
            {3: pool_by_id["d2"]},
            random.Random(6),
        )

        assert result.slots[2].play.id == "r1"
        assert result.slots[3].play.id == "d2"
        assert (result.slots[0].play.id, result.slots[1].play.id) == ("r2", "q2")
