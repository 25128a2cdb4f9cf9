"""Service layer for the Game Plan API."""

from gameplanner.api.services.plan_service import (
    GamePlanService,
    game_plan_service,
    get_game_plan_service,
)

__all__ = ["GamePlanService", "game_plan_service", "get_game_plan_service"]
