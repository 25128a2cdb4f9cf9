"""API routers for different resource types."""

from gameplanner.api.routers.game_plans import router as game_plans_router

__all__ = [
    "game_plans_router",
]
