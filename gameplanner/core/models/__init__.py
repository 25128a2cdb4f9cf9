"""Game plan data models."""

from gameplanner.core.models.play import PLAY_ACTION_PROTECTIONS, Play
from gameplanner.core.models.plan import GamePlan, Section, SectionState, Slot, SlotRecord

__all__ = [
    "PLAY_ACTION_PROTECTIONS",
    "GamePlan",
    "Play",
    "Section",
    "SectionState",
    "Slot",
    "SlotRecord",
]
