"""
Pydantic schemas for the Game Plan API.

Frontend-friendly format for:
- The play pool and scouting report of a team/opponent
- Sections with their slots and print numbers
- Regeneration results and notices
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict

from gameplanner.core.models import GamePlan, Play, Section
from gameplanner.core.scouting import ScoutingReport


class PlayModel(BaseModel):
    """A play from the play pool."""
    id: str
    category: str = Field(..., description="run_game, rpo_game, quick_game, dropback_game, ...")
    concept: str = ""
    formation: str = ""
    tags: str = ""
    shifts: str = ""
    to_motion: str = ""
    from_motion: str = ""
    pass_protection: str = ""
    concept_tag: str = ""
    concept_direction: str = ""
    rpo_tag: str = ""

    # Situational flags
    third_short: bool = False
    third_medium: bool = False
    third_long: bool = False
    red_zone: bool = False
    goal_line: bool = False

    front_beaters: List[str] = []
    coverage_beaters: List[str] = []
    blitz_beaters: List[str] = []
    custom_display: Optional[str] = None

    def to_play(self) -> Play:
        return Play.from_dict(self.model_dump())

    @classmethod
    def from_play(cls, play: Play) -> "PlayModel":
        data = play.to_dict()
        data["front_beaters"] = list(play.front_beaters)
        data["coverage_beaters"] = list(play.coverage_beaters)
        data["blitz_beaters"] = list(play.blitz_beaters)
        return cls(**data)


class SetPlayPoolRequest(BaseModel):
    """Replace a team's play pool."""
    plays: List[PlayModel]


class PlayPoolResponse(BaseModel):
    """Result of replacing a play pool."""
    team_id: str
    play_count: int


class ScoutingModel(BaseModel):
    """Scouted opponent tendencies (percent of snaps)."""
    fronts_pct: Dict[str, float] = {}
    coverages_pct: Dict[str, float] = {}
    blitz_pct: Dict[str, float] = {}
    overall_blitz_pct: float = 0.0
    notes: str = ""

    def to_report(self) -> ScoutingReport:
        return ScoutingReport.from_dict(self.model_dump())

    @classmethod
    def from_report(cls, report: ScoutingReport) -> "ScoutingModel":
        return cls(**report.to_dict())


class FocusModel(BaseModel):
    """Base package focus: a concept or a formation, not both."""
    concept: Optional[str] = None
    formation: Optional[str] = None


class RegenerateRequest(BaseModel):
    """Options for a regeneration. Omitted fields keep the plan's settings."""
    base_package_focus: Dict[str, FocusModel] = Field(
        default_factory=dict, description="Section key -> focus"
    )
    category_mix: Optional[Dict[str, float]] = Field(
        None, description="Category -> percent for opening script and first downs"
    )


class SlotModel(BaseModel):
    """One slot of a section."""
    position: int
    play_id: Optional[str] = None
    call: str = ""
    category: Optional[str] = None
    locked: bool = False
    favorite: bool = False
    custom_text: Optional[str] = None
    display_number: Optional[int] = Field(None, description="Number on printed scripts")


class SectionModel(BaseModel):
    """A section with its slots."""
    key: str
    title: str
    capacity: int
    visible: bool = True
    paired: bool = False
    state: str = "stable"
    filled: int = 0
    starting_number: Optional[int] = None
    slots: List[SlotModel] = []

    @classmethod
    def from_section(
        cls,
        section: Section,
        starting_number: Optional[int] = None,
        numbers: Optional[Dict[int, int]] = None,
    ) -> "SectionModel":
        numbers = numbers or {}
        return cls(
            key=section.key,
            title=section.title,
            capacity=section.capacity,
            visible=section.visible,
            paired=section.paired,
            state=section.state.value,
            filled=section.filled_count,
            starting_number=starting_number,
            slots=[
                SlotModel(
                    position=slot.position,
                    play_id=slot.play.id if slot.play else None,
                    call=slot.display_text,
                    category=slot.play.category.value if slot.play else None,
                    locked=slot.locked,
                    favorite=slot.favorite,
                    custom_text=slot.custom_text,
                    display_number=numbers.get(slot.position),
                )
                for slot in section.slots
            ],
        )


class GamePlanResponse(BaseModel):
    """A full game plan."""
    team_id: str
    opponent_id: str
    total_plays: int
    sections: List[SectionModel]

    @classmethod
    def from_plan(
        cls,
        plan: GamePlan,
        starts: Optional[Dict[str, int]] = None,
        numbers: Optional[Dict[str, Dict[int, int]]] = None,
    ) -> "GamePlanResponse":
        starts = starts or {}
        numbers = numbers or {}
        return cls(
            team_id=plan.team_id,
            opponent_id=plan.opponent_id,
            total_plays=plan.filled_count,
            sections=[
                SectionModel.from_section(section, starts.get(key), numbers.get(key))
                for key, section in plan.sections.items()
            ],
        )


class NoticeModel(BaseModel):
    """Non-blocking allocation notice."""
    kind: str
    section_key: str
    message: str
    requested: int = 0
    delivered: int = 0


class RegenerationModel(BaseModel):
    """Outcome of regenerating one section."""
    section_key: str
    filled: int
    capacity: int
    notices: List[NoticeModel] = []


class RegenerateSectionResponse(BaseModel):
    """Regeneration outcome plus the rebuilt section."""
    result: RegenerationModel
    section: SectionModel


class RegeneratePlanResponse(BaseModel):
    """Outcome of regenerating every section."""
    results: Dict[str, RegenerationModel]
    failures: Dict[str, str] = Field(default_factory=dict, description="Section key -> error")
    plan: GamePlanResponse


class UpdateSectionRequest(BaseModel):
    """Change a section's size or visibility."""
    capacity: Optional[int] = None
    visible: Optional[bool] = None


class UpdateSlotRequest(BaseModel):
    """Change a slot's flags or custom text (empty text clears it)."""
    locked: Optional[bool] = None
    favorite: Optional[bool] = None
    custom_text: Optional[str] = None


class AddPlayRequest(BaseModel):
    """Manually add a play from the pool to a section."""
    play_id: str
    position: Optional[int] = Field(None, description="Empty slot to use (first empty when omitted)")


class MoveSlotRequest(BaseModel):
    """Reorder a section (drag and drop)."""
    source: int = Field(..., ge=0)
    destination: int = Field(..., ge=0)


class NumberingResponse(BaseModel):
    """Print numbering for visible sections."""
    starts: Dict[str, int]
    numbers: Dict[str, Dict[int, int]]
