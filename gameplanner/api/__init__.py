"""Game planner API package - FastAPI backend for the game plan builder."""

from gameplanner.api.main import app, create_app

__all__ = ["app", "create_app"]
