"""Play category and situation definitions."""

from enum import Enum


class PlayCategory(Enum):
    """Play-type categories used by the play pool."""

    RUN_GAME = "run_game"
    RPO_GAME = "rpo_game"
    QUICK_GAME = "quick_game"
    DROPBACK_GAME = "dropback_game"
    SCREEN_GAME = "screen_game"
    MOVING_POCKET = "moving_pocket"
    SHOT_PLAYS = "shot_plays"

    @property
    def label(self) -> str:
        """Human-readable category name."""
        labels = {
            PlayCategory.RUN_GAME: "Run Game",
            PlayCategory.RPO_GAME: "RPO",
            PlayCategory.QUICK_GAME: "Quick Game",
            PlayCategory.DROPBACK_GAME: "Dropback",
            PlayCategory.SCREEN_GAME: "Screens",
            PlayCategory.MOVING_POCKET: "Moving Pocket",
            PlayCategory.SHOT_PLAYS: "Shot Plays",
        }
        return labels[self]

    @property
    def is_run_based(self) -> bool:
        """Run and RPO plays are built to beat fronts."""
        return self in RUN_BASED_CATEGORIES

    @property
    def is_pass(self) -> bool:
        """Pass categories are built to beat coverages."""
        return self in PASS_CATEGORIES

    @classmethod
    def parse(cls, value: "str | PlayCategory") -> "PlayCategory":
        """
        Parse a category from its wire value or enum name.

        Accepts "run_game", "RUN_GAME", "run-game" and the like.

        Raises:
            ValueError: If the value is not a known category
        """
        if isinstance(value, PlayCategory):
            return value
        normalized = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        for category in cls:
            if category.value == normalized:
                return category
        raise ValueError(f"Unknown play category: {value!r}")


# Categories whose plays attack a defensive front
RUN_BASED_CATEGORIES = frozenset({PlayCategory.RUN_GAME, PlayCategory.RPO_GAME})

# Categories whose plays attack a coverage
PASS_CATEGORIES = frozenset({
    PlayCategory.QUICK_GAME,
    PlayCategory.DROPBACK_GAME,
    PlayCategory.SCREEN_GAME,
    PlayCategory.MOVING_POCKET,
    PlayCategory.SHOT_PLAYS,
})

# Categories eligible for coverage-beater sections
COVERAGE_BEATER_CATEGORIES = frozenset({
    PlayCategory.QUICK_GAME,
    PlayCategory.DROPBACK_GAME,
    PlayCategory.SHOT_PLAYS,
})


class Situation(Enum):
    """Situational flags carried on a play."""

    THIRD_SHORT = "third_short"
    THIRD_MEDIUM = "third_medium"
    THIRD_LONG = "third_long"
    RED_ZONE = "red_zone"
    GOAL_LINE = "goal_line"


class DistributionKind(Enum):
    """Scouting distributions the allocation engine can weight by."""

    FRONT = "front"
    COVERAGE = "coverage"
