"""FastAPI application for the game planner."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gameplanner import __version__
from gameplanner.api.routers import game_plans_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    logger.info("Game planner API starting up...")
    yield
    # Shutdown
    logger.info("Game planner API shutting down...")
    from gameplanner.api.services.plan_service import game_plan_service
    from gameplanner.sources import RestClient

    client = getattr(game_plan_service.engine.play_pool, "client", None)
    if isinstance(client, RestClient):
        await client.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Game Planner API",
        description="Football game plan builder",
        version=__version__,
        lifespan=lifespan,
    )

    # Configure CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",  # Next.js dev server
            "http://localhost:5173",  # Vite dev server
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(game_plans_router, prefix="/api/v1")

    @app.get("/")
    async def root() -> dict:
        """Root endpoint - API info."""
        return {
            "name": "Game Planner API",
            "version": __version__,
            "description": "Football game plan builder",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint."""
        from gameplanner.api.services.plan_service import game_plan_service

        return {
            "status": "healthy",
            "open_plans": game_plan_service.open_plan_count,
        }

    return app


# Create app instance
app = create_app()


def run_api(host: str = "127.0.0.1", port: int = 8000, reload: bool = False) -> None:
    """Run the API server."""
    uvicorn.run(
        "gameplanner.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    run_api(reload=True)
