"""
Play pool, scouting and game plan collaborators.

In-memory, JSON file and PostgREST implementations of the source and
store protocols the engine depends on.
"""

from gameplanner.sources.base import DistributionSource, GamePlanStore, PlayPoolSource
from gameplanner.sources.json_store import (
    JsonDistributionSource,
    JsonFileStore,
    JsonPlayPool,
    load_plays,
    load_scouting,
)
from gameplanner.sources.memory import (
    InMemoryDistributionSource,
    InMemoryGamePlanStore,
    InMemoryPlayPool,
)
from gameplanner.sources.rest import (
    RestAPIError,
    RestClient,
    RestClientError,
    RestDistributionSource,
    RestGamePlanStore,
    RestPlayPoolSource,
    RestRateLimitError,
)

__all__ = [
    "DistributionSource",
    "GamePlanStore",
    "InMemoryDistributionSource",
    "InMemoryGamePlanStore",
    "InMemoryPlayPool",
    "JsonDistributionSource",
    "JsonFileStore",
    "JsonPlayPool",
    "PlayPoolSource",
    "RestAPIError",
    "RestClient",
    "RestClientError",
    "RestDistributionSource",
    "RestGamePlanStore",
    "RestPlayPoolSource",
    "RestRateLimitError",
    "load_plays",
    "load_scouting",
]
