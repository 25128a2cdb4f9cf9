"""
Game Plan API Router.

Endpoints for building a game plan against an opponent: load the play
pool and scouting, regenerate sections, and make manual edits.
"""

from fastapi import APIRouter, Depends, HTTPException

from gameplanner.api.schemas.game_plan import (
    AddPlayRequest,
    GamePlanResponse,
    MoveSlotRequest,
    NumberingResponse,
    PlayPoolResponse,
    RegenerateRequest,
    RegenerateSectionResponse,
    RegeneratePlanResponse,
    RegenerationModel,
    ScoutingModel,
    SectionModel,
    SetPlayPoolRequest,
    UpdateSectionRequest,
    UpdateSlotRequest,
)
from gameplanner.api.services.plan_service import GamePlanService, get_game_plan_service
from gameplanner.core.allocation import BasePackageFocus
from gameplanner.core.errors import (
    GamePlanError,
    InvalidConfigurationError,
    PersistenceError,
    SectionBusyError,
    SourceError,
    UnknownSectionError,
)
from gameplanner.core.models import GamePlan, Section


router = APIRouter(prefix="/game-plans", tags=["game-plans"])


def _http_error(error: GamePlanError) -> HTTPException:
    """Translate an engine error into an HTTP error."""
    if isinstance(error, UnknownSectionError):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, SectionBusyError):
        return HTTPException(status_code=409, detail=error.message)
    if isinstance(error, InvalidConfigurationError):
        return HTTPException(status_code=422, detail=error.message)
    if isinstance(error, (PersistenceError, SourceError)):
        return HTTPException(status_code=502, detail=error.message)
    return HTTPException(status_code=500, detail=error.message)


async def _require_plan(service: GamePlanService, team_id: str, opponent_id: str) -> GamePlan:
    plan = await service.get_plan(team_id, opponent_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found. Create one first.")
    return plan


def _plan_response(service: GamePlanService, plan: GamePlan) -> GamePlanResponse:
    starts, numbers = service.numbering(plan)
    return GamePlanResponse.from_plan(plan, starts, numbers)


def _section_response(service: GamePlanService, plan: GamePlan, key: str) -> SectionModel:
    starts, numbers = service.numbering(plan)
    return SectionModel.from_section(plan.section(key), starts.get(key), numbers.get(key))


# =============================================================================
# Inputs
# =============================================================================

@router.put("/{team_id}/play-pool", response_model=PlayPoolResponse)
async def set_play_pool(
    team_id: str,
    request: SetPlayPoolRequest,
    service: GamePlanService = Depends(get_game_plan_service),
) -> PlayPoolResponse:
    """Replace a team's play pool."""
    try:
        plays = [model.to_play() for model in request.plays]
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    try:
        count = service.set_play_pool(team_id, plays)
    except GamePlanError as e:
        raise _http_error(e)
    return PlayPoolResponse(team_id=team_id, play_count=count)


@router.put("/{team_id}/{opponent_id}/scouting", response_model=ScoutingModel)
async def set_scouting(
    team_id: str,
    opponent_id: str,
    request: ScoutingModel,
    service: GamePlanService = Depends(get_game_plan_service),
) -> ScoutingModel:
    """Replace the scouting report for an opponent."""
    report = request.to_report()
    try:
        service.set_scouting(team_id, opponent_id, report)
    except GamePlanError as e:
        raise _http_error(e)
    return ScoutingModel.from_report(report)


@router.get("/{team_id}/{opponent_id}/scouting", response_model=ScoutingModel)
async def get_scouting(
    team_id: str,
    opponent_id: str,
    service: GamePlanService = Depends(get_game_plan_service),
) -> ScoutingModel:
    """Get the scouting report for an opponent."""
    report = service.get_scouting(team_id, opponent_id)
    if report is None:
        raise HTTPException(status_code=404, detail="No scouting report")
    return ScoutingModel.from_report(report)


# =============================================================================
# Plans
# =============================================================================

@router.post("/{team_id}/{opponent_id}", response_model=GamePlanResponse)
async def open_plan(
    team_id: str,
    opponent_id: str,
    service: GamePlanService = Depends(get_game_plan_service),
) -> GamePlanResponse:
    """Open a plan, creating it empty the first time."""
    try:
        plan = await service.open_plan(team_id, opponent_id)
    except GamePlanError as e:
        raise _http_error(e)
    return _plan_response(service, plan)


@router.get("/{team_id}/{opponent_id}", response_model=GamePlanResponse)
async def get_plan(
    team_id: str,
    opponent_id: str,
    service: GamePlanService = Depends(get_game_plan_service),
) -> GamePlanResponse:
    """Get an open plan."""
    plan = await _require_plan(service, team_id, opponent_id)
    return _plan_response(service, plan)


@router.delete("/{team_id}/{opponent_id}", response_model=GamePlanResponse)
async def delete_all(
    team_id: str,
    opponent_id: str,
    service: GamePlanService = Depends(get_game_plan_service),
) -> GamePlanResponse:
    """Clear every play from the plan, locked plays included."""
    try:
        plan = await service.delete_all(team_id, opponent_id)
    except GamePlanError as e:
        raise _http_error(e)
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    return _plan_response(service, plan)


@router.get("/{team_id}/{opponent_id}/numbering", response_model=NumberingResponse)
async def get_numbering(
    team_id: str,
    opponent_id: str,
    service: GamePlanService = Depends(get_game_plan_service),
) -> NumberingResponse:
    """Print numbering for the plan's visible sections."""
    plan = await _require_plan(service, team_id, opponent_id)
    starts, numbers = service.numbering(plan)
    return NumberingResponse(starts=starts, numbers=numbers)


# =============================================================================
# Regeneration
# =============================================================================

def _apply_request(service: GamePlanService, plan: GamePlan, request: RegenerateRequest) -> None:
    try:
        focus = {
            key: BasePackageFocus(concept=model.concept, formation=model.formation)
            for key, model in request.base_package_focus.items()
        }
    except InvalidConfigurationError as e:
        raise _http_error(e)
    service.update_settings(plan.team_id, plan.opponent_id, focus, request.category_mix)


@router.post("/{team_id}/{opponent_id}/regenerate", response_model=RegeneratePlanResponse)
async def regenerate_plan(
    team_id: str,
    opponent_id: str,
    request: RegenerateRequest = RegenerateRequest(),
    service: GamePlanService = Depends(get_game_plan_service),
) -> RegeneratePlanResponse:
    """Regenerate every section; failed sections keep their plays."""
    plan = await _require_plan(service, team_id, opponent_id)
    _apply_request(service, plan, request)
    summary = await service.regenerate_plan(plan)
    return RegeneratePlanResponse(
        results={
            key: RegenerationModel(**result.to_dict())
            for key, result in summary.results.items()
        },
        failures=summary.failures,
        plan=_plan_response(service, plan),
    )


@router.post(
    "/{team_id}/{opponent_id}/sections/{section_key}/regenerate",
    response_model=RegenerateSectionResponse,
)
async def regenerate_section(
    team_id: str,
    opponent_id: str,
    section_key: str,
    request: RegenerateRequest = RegenerateRequest(),
    service: GamePlanService = Depends(get_game_plan_service),
) -> RegenerateSectionResponse:
    """Regenerate one section's unlocked slots."""
    plan = await _require_plan(service, team_id, opponent_id)
    _apply_request(service, plan, request)
    try:
        result = await service.regenerate_section(plan, section_key)
    except GamePlanError as e:
        raise _http_error(e)
    return RegenerateSectionResponse(
        result=RegenerationModel(**result.to_dict()),
        section=_section_response(service, plan, section_key),
    )


# =============================================================================
# Manual edits
# =============================================================================

@router.patch("/{team_id}/{opponent_id}/sections/{section_key}", response_model=SectionModel)
async def update_section(
    team_id: str,
    opponent_id: str,
    section_key: str,
    request: UpdateSectionRequest,
    service: GamePlanService = Depends(get_game_plan_service),
) -> SectionModel:
    """Resize a section or change its visibility."""
    plan = await _require_plan(service, team_id, opponent_id)

    def edit(section: Section) -> None:
        if request.capacity is not None:
            section.set_capacity(request.capacity)
        if request.visible is not None:
            section.visible = request.visible

    try:
        await service.edit_section(plan, section_key, edit)
    except GamePlanError as e:
        raise _http_error(e)
    return _section_response(service, plan, section_key)


@router.patch(
    "/{team_id}/{opponent_id}/sections/{section_key}/slots/{position}",
    response_model=SectionModel,
)
async def update_slot(
    team_id: str,
    opponent_id: str,
    section_key: str,
    position: int,
    request: UpdateSlotRequest,
    service: GamePlanService = Depends(get_game_plan_service),
) -> SectionModel:
    """Lock, favorite or relabel a slot."""
    plan = await _require_plan(service, team_id, opponent_id)

    def edit(section: Section) -> None:
        if request.locked is not None:
            section.set_locked(position, request.locked)
        if request.favorite is not None:
            section.set_favorite(position, request.favorite)
        if request.custom_text is not None:
            section.set_custom_text(position, request.custom_text)

    try:
        await service.edit_section(plan, section_key, edit)
    except GamePlanError as e:
        raise _http_error(e)
    return _section_response(service, plan, section_key)


@router.post(
    "/{team_id}/{opponent_id}/sections/{section_key}/plays",
    response_model=SectionModel,
)
async def add_play(
    team_id: str,
    opponent_id: str,
    section_key: str,
    request: AddPlayRequest,
    service: GamePlanService = Depends(get_game_plan_service),
) -> SectionModel:
    """Manually add a play from the pool."""
    plan = await _require_plan(service, team_id, opponent_id)
    try:
        play = await service.find_play(team_id, request.play_id)
        await service.edit_section(
            plan, section_key, lambda section: section.add_play(play, request.position)
        )
    except GamePlanError as e:
        raise _http_error(e)
    return _section_response(service, plan, section_key)


@router.delete(
    "/{team_id}/{opponent_id}/sections/{section_key}/slots/{position}",
    response_model=SectionModel,
)
async def delete_slot(
    team_id: str,
    opponent_id: str,
    section_key: str,
    position: int,
    service: GamePlanService = Depends(get_game_plan_service),
) -> SectionModel:
    """Delete a play; later plays move up."""
    plan = await _require_plan(service, team_id, opponent_id)
    try:
        await service.edit_section(plan, section_key, lambda section: section.delete_slot(position))
    except GamePlanError as e:
        raise _http_error(e)
    return _section_response(service, plan, section_key)


@router.post(
    "/{team_id}/{opponent_id}/sections/{section_key}/move",
    response_model=SectionModel,
)
async def move_slot(
    team_id: str,
    opponent_id: str,
    section_key: str,
    request: MoveSlotRequest,
    service: GamePlanService = Depends(get_game_plan_service),
) -> SectionModel:
    """Move a play to a new position."""
    plan = await _require_plan(service, team_id, opponent_id)
    try:
        await service.edit_section(
            plan,
            section_key,
            lambda section: section.move_slot(request.source, request.destination),
        )
    except GamePlanError as e:
        raise _http_error(e)
    return _section_response(service, plan, section_key)
