"""
PostgREST Client

Thin async wrapper around a PostgREST-style HTTP API holding the play
pool, scouting reports and game plan rows.

Tables:
    playpool            play rows, filtered by team_id
    scouting_reports    one row per team/opponent
    game_plan           one row per occupied slot
"""

import asyncio
import logging
from typing import Any, Iterable, Optional

import httpx

from gameplanner.config import PlannerConfig
from gameplanner.core.enums import DistributionKind
from gameplanner.core.errors import PersistenceError, SourceError
from gameplanner.core.models import Play, SlotRecord
from gameplanner.core.scouting import Distribution, ScoutingReport


logger = logging.getLogger(__name__)

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


class RestClientError(Exception):
    """Base exception for REST client errors."""
    pass


class RestRateLimitError(RestClientError):
    """Raised when rate limited by the API."""
    pass


class RestAPIError(RestClientError):
    """Raised for API errors."""
    def __init__(self, message: str, status_code: int, response_body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class RestClient:
    """
    Async client for a PostgREST-style API.

    Usage:
        async with RestClient("https://db.example.com", api_key="...") as client:
            rows = await client.select("playpool", team_id="t1")
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root; tables live under /rest/v1.
            api_key: Sent as apikey and bearer token when set.
            max_retries: Maximum attempts for transient errors.
            retry_delay: Base delay between retries (exponential backoff).
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._request_count = 0

    @classmethod
    def from_config(cls, config: PlannerConfig, **kwargs: Any) -> "RestClient":
        if not config.api_url:
            raise ValueError("GAMEPLANNER_API_URL is not set")
        return cls(
            config.api_url,
            api_key=config.api_key,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            timeout=config.fetch_timeout,
            **kwargs,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self.base_url}/rest/v1",
                timeout=httpx.Timeout(self.timeout),
                headers=self._headers(),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @staticmethod
    def _filters(**equals: str) -> dict[str, str]:
        return {column: f"eq.{value}" for column, value in equals.items()}

    async def request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        json: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
        idempotent: Optional[bool] = None,
    ) -> Any:
        """
        Send a request, retrying transient failures.

        Server errors and timeouts are retried only for idempotent
        requests (GET, PUT, DELETE unless told otherwise); a POST that may
        have been applied is not sent twice. Rate limits and connection
        failures are always retried.

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            RestRateLimitError: If rate limited after retries.
            RestAPIError: For other API errors.
            RestClientError: If the request never reached the API.
        """
        client = await self._get_client()
        last_error: Optional[Exception] = None
        if idempotent is None:
            idempotent = method.upper() in IDEMPOTENT_METHODS

        for attempt in range(self.max_retries):
            try:
                response = await client.request(
                    method, f"/{table}", params=params, json=json, headers=headers
                )
                self._request_count += 1

                if response.status_code < 300:
                    if not response.content:
                        return None
                    return response.json()

                elif response.status_code == 429:
                    # Rate limited - exponential backoff
                    delay = self.retry_delay * (2 ** attempt)
                    logger.warning(f"Rate limited, retrying in {delay:.1f}s (attempt {attempt + 1})")
                    await asyncio.sleep(delay)
                    last_error = RestRateLimitError(f"Rate limited on {table}")

                elif response.status_code >= 500:
                    last_error = RestAPIError(
                        f"Server error: {response.status_code}",
                        response.status_code,
                        response.text,
                    )
                    if not idempotent:
                        raise last_error
                    # Server error - retry
                    delay = self.retry_delay * (2 ** attempt)
                    logger.warning(f"Server error {response.status_code}, retrying in {delay:.1f}s")
                    await asyncio.sleep(delay)

                else:
                    # Client error - don't retry
                    raise RestAPIError(
                        f"API error on {table}: {response.status_code}",
                        response.status_code,
                        response.text,
                    )

            except httpx.TimeoutException as e:
                if not idempotent:
                    raise RestClientError(f"Request to {table} timed out") from e
                delay = self.retry_delay * (2 ** attempt)
                logger.warning(f"Request timeout, retrying in {delay:.1f}s (attempt {attempt + 1})")
                await asyncio.sleep(delay)
                last_error = RestClientError("Request timed out")

            except httpx.RequestError as e:
                delay = self.retry_delay * (2 ** attempt)
                logger.warning(f"Request error: {e}, retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                last_error = RestClientError(f"Request error: {e}")

        # All retries exhausted
        if last_error:
            raise last_error
        raise RestClientError("Failed after all retries")

    async def select(self, table: str, order: Optional[str] = None, **equals: str) -> list[dict]:
        params = self._filters(**equals)
        params["select"] = "*"
        if order:
            params["order"] = order
        return await self.request("GET", table, params=params) or []

    async def upsert(self, table: str, rows: list[dict], on_conflict: str) -> None:
        """Insert rows, overwriting existing rows that share the on_conflict columns."""
        if not rows:
            return
        await self.request(
            "POST",
            table,
            params={"on_conflict": on_conflict},
            json=rows,
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            idempotent=True,
        )

    async def delete(
        self, table: str, keep: Optional[dict[str, Iterable[Any]]] = None, **equals: str
    ) -> None:
        """Delete matching rows, except those whose column value is listed in keep."""
        params = self._filters(**equals)
        for column, values in (keep or {}).items():
            values = list(values)
            if values:
                params[column] = f"not.in.({','.join(str(value) for value in values)})"
        await self.request("DELETE", table, params=params)

    @property
    def request_count(self) -> int:
        """Total number of requests answered."""
        return self._request_count


class RestPlayPoolSource:
    """Play pool read from the playpool table."""

    TABLE = "playpool"

    def __init__(self, client: RestClient):
        self.client = client

    async def fetch_play_pool(self, team_id: str) -> list[Play]:
        try:
            rows = await self.client.select(self.TABLE, team_id=team_id)
        except RestClientError as e:
            raise SourceError(f"Cannot fetch play pool for {team_id}: {e}") from e

        plays = []
        for row in rows:
            try:
                plays.append(Play.from_dict(row))
            except ValueError as e:
                logger.warning(f"Skipping play pool row: {e}")
        return plays


class RestDistributionSource:
    """Front and coverage distributions read from the scouting_reports table."""

    TABLE = "scouting_reports"

    def __init__(self, client: RestClient):
        self.client = client

    async def fetch_report(self, team_id: str, opponent_id: str) -> ScoutingReport:
        try:
            rows = await self.client.select(self.TABLE, team_id=team_id, opponent_id=opponent_id)
        except RestClientError as e:
            raise SourceError(f"Cannot fetch scouting for {team_id} vs {opponent_id}: {e}") from e
        if not rows:
            return ScoutingReport()
        return ScoutingReport.from_dict(rows[0])

    async def fetch_distribution(
        self, team_id: str, opponent_id: str, kind: DistributionKind
    ) -> Distribution:
        report = await self.fetch_report(team_id, opponent_id)
        return report.distribution(kind)


class RestGamePlanStore:
    """Game plan rows in the game_plan table, replaced one section at a time."""

    TABLE = "game_plan"
    CONFLICT_COLUMNS = "team_id,opponent_id,section,position"

    def __init__(self, client: RestClient):
        self.client = client

    async def persist_section(
        self,
        team_id: str,
        opponent_id: str,
        section_key: str,
        records: list[SlotRecord],
    ) -> None:
        """
        Replace a section's rows.

        New rows are upserted first, then rows at positions the section no
        longer occupies are deleted. A failed upsert leaves the stored
        section untouched.
        """
        section = section_key.lower()
        rows = [record.to_dict() for record in records]
        try:
            await self.client.upsert(self.TABLE, rows, on_conflict=self.CONFLICT_COLUMNS)
            await self.client.delete(
                self.TABLE,
                keep={"position": [record.position for record in records]},
                team_id=team_id,
                opponent_id=opponent_id,
                section=section,
            )
        except RestClientError as e:
            raise PersistenceError(f"Cannot save {section}: {e}", section_key) from e

    async def load_records(self, team_id: str, opponent_id: str) -> list[SlotRecord]:
        try:
            rows = await self.client.select(
                self.TABLE, order="section,position", team_id=team_id, opponent_id=opponent_id
            )
        except RestClientError as e:
            raise SourceError(f"Cannot load game plan for {team_id} vs {opponent_id}: {e}") from e
        return [SlotRecord.from_dict(row) for row in rows]

    async def delete_all(self, team_id: str, opponent_id: str) -> None:
        try:
            await self.client.delete(self.TABLE, team_id=team_id, opponent_id=opponent_id)
        except RestClientError as e:
            raise PersistenceError(f"Cannot delete game plan for {team_id} vs {opponent_id}: {e}") from e
