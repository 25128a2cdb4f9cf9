"""Pydantic schemas for the Game Plan API."""

from gameplanner.api.schemas.game_plan import (
    AddPlayRequest,
    FocusModel,
    GamePlanResponse,
    MoveSlotRequest,
    NoticeModel,
    NumberingResponse,
    PlayModel,
    PlayPoolResponse,
    RegenerateRequest,
    RegenerateSectionResponse,
    RegeneratePlanResponse,
    RegenerationModel,
    ScoutingModel,
    SectionModel,
    SetPlayPoolRequest,
    SlotModel,
    UpdateSectionRequest,
    UpdateSlotRequest,
)

__all__ = [
    "AddPlayRequest",
    "FocusModel",
    "GamePlanResponse",
    "MoveSlotRequest",
    "NoticeModel",
    "NumberingResponse",
    "PlayModel",
    "PlayPoolResponse",
    "RegenerateRequest",
    "RegenerateSectionResponse",
    "RegeneratePlanResponse",
    "RegenerationModel",
    "ScoutingModel",
    "SectionModel",
    "SetPlayPoolRequest",
    "SlotModel",
    "UpdateSectionRequest",
    "UpdateSlotRequest",
]
