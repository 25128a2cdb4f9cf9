"""
Game planner configuration.

Controls section limits, collaborator timeouts, regeneration mode and
where plans and play pools are read from and written to. All settings
can be overridden via environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from gameplanner.core.sections import MAX_SECTION_CAPACITY


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


@dataclass
class PlannerConfig:
    """Configuration for the allocation engine and its collaborators."""

    # Section limits
    max_capacity: int = field(
        default_factory=lambda: _env_int("GAMEPLANNER_MAX_CAPACITY", MAX_SECTION_CAPACITY)
    )

    # Collaborator timeouts (seconds)
    fetch_timeout: float = field(default_factory=lambda: _env_float("GAMEPLANNER_FETCH_TIMEOUT", 10.0))
    persist_timeout: float = field(default_factory=lambda: _env_float("GAMEPLANNER_PERSIST_TIMEOUT", 10.0))

    # Regenerate all sections concurrently instead of one after another
    parallel_regeneration: bool = field(
        default_factory=lambda: os.getenv("GAMEPLANNER_PARALLEL", "false").lower() == "true"
    )

    # JSON file storage
    data_dir: str = field(default_factory=lambda: os.getenv("GAMEPLANNER_DATA_DIR", "data"))

    # PostgREST-style HTTP backend (disabled when no URL)
    api_url: Optional[str] = field(default_factory=lambda: os.getenv("GAMEPLANNER_API_URL") or None)
    api_key: Optional[str] = field(default_factory=lambda: os.getenv("GAMEPLANNER_API_KEY") or None)
    max_retries: int = 3
    retry_delay: float = 0.5  # Base delay, doubled per attempt

    # Fixed seed for reproducible plans (random when unset)
    seed: Optional[int] = field(default_factory=lambda: _env_int("GAMEPLANNER_SEED", None))

    @classmethod
    def from_env(cls) -> "PlannerConfig":
        """Create config from environment variables."""
        return cls()

    @property
    def uses_rest_backend(self) -> bool:
        return bool(self.api_url)

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []
        if self.max_capacity < 1:
            errors.append("GAMEPLANNER_MAX_CAPACITY must be at least 1")
        if self.fetch_timeout <= 0:
            errors.append("GAMEPLANNER_FETCH_TIMEOUT must be positive")
        if self.persist_timeout <= 0:
            errors.append("GAMEPLANNER_PERSIST_TIMEOUT must be positive")
        if not self.data_dir:
            errors.append("GAMEPLANNER_DATA_DIR is required")
        if self.api_url and not self.api_url.startswith(("http://", "https://")):
            errors.append("GAMEPLANNER_API_URL must be an http(s) URL")
        if self.max_retries < 1:
            errors.append("max_retries must be at least 1")
        return errors


# Singleton config instance
_config: Optional[PlannerConfig] = None


def get_config() -> PlannerConfig:
    """Get the global planner configuration."""
    global _config
    if _config is None:
        _config = PlannerConfig.from_env()
    return _config


def set_config(config: Optional[PlannerConfig]) -> None:
    """
    Replace the global configuration.

    Useful for testing; pass None to re-read the environment next time.
    """
    global _config
    _config = config
