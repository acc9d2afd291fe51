"""Jules REST API client: paginated listings over governed, retried requests."""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import httpx
from loguru import logger

from jules_wrapped.client import sample_data
from jules_wrapped.client.constants import (
    ACTIVITIES_PATH,
    API_KEY_HEADER,
    NEXT_PAGE_TOKEN_KEY,
    PAGE_SIZE_PARAM,
    PAGE_TOKEN_PARAM,
    SESSIONS_PATH,
    SOURCES_PATH,
)
from jules_wrapped.client.errors import PaginationError
from jules_wrapped.client.events import EventChannel
from jules_wrapped.client.governor import RateGovernor
from jules_wrapped.client.models import Activity, Session, Source
from jules_wrapped.client.retry import RetryingFetcher
from jules_wrapped.client.transform import parse_activity, parse_session, parse_source

if TYPE_CHECKING:
    from jules_wrapped.config import ClientConfig


class JulesClient:
    """Client for one collection run.

    Owns the run's :class:`RateGovernor`, so every request issued through
    this client - whichever task issues it - shares one pacing budget.
    With ``use_sample_data`` the listings come from the bundled fixture and
    no HTTP client is ever created.
    """

    def __init__(
        self,
        config: ClientConfig,
        governor: RateGovernor | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._config = config
        self._events = EventChannel(config.on_rate_limit)
        self._governor = governor or RateGovernor(
            config.rate_limit_per_minute,
            events=self._events,
            clock=clock,
            sleep=sleep,
        )
        self._transport = transport
        self._rng = rng
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None
        self._fetcher: RetryingFetcher | None = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def governor(self) -> RateGovernor:
        return self._governor

    # ── HTTP client ────────────────────────────────────────────────────

    def _headers(self) -> dict[str, str]:
        if self._config.api_key:
            return {API_KEY_HEADER: self._config.api_key}
        return {}

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout, transport=self._transport
            )
            self._fetcher = None
        return self._client

    async def _get_fetcher(self) -> RetryingFetcher:
        client = await self._get_client()
        if self._fetcher is None:
            self._fetcher = RetryingFetcher(
                client,
                self._governor,
                events=self._events,
                headers=self._headers(),
                rng=self._rng,
                sleep=self._sleep,
            )
        return self._fetcher

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> JulesClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Pagination ─────────────────────────────────────────────────────

    async def paginate(self, path: str, items_key: str) -> list[dict[str, Any]]:
        """Fetch every page of a collection and concatenate the items in order.

        Stops when the server omits ``nextPageToken``.  There is no page
        ceiling unless ``max_pages`` is configured.
        """
        fetcher = await self._get_fetcher()
        url = f"{self._config.resolved_base_url}/{path}"
        max_pages = self._config.max_pages
        items: list[dict[str, Any]] = []
        page_token: str | None = None
        pages = 0

        while True:
            if max_pages is not None and pages >= max_pages:
                raise PaginationError(path, max_pages)

            params: dict[str, Any] = {PAGE_SIZE_PARAM: self._config.page_size}
            if page_token:
                params[PAGE_TOKEN_PARAM] = page_token

            page = await fetcher.fetch_json(url, params=params)
            pages += 1
            page_items = page.get(items_key)
            if isinstance(page_items, list):
                items.extend(i for i in page_items if isinstance(i, dict))

            token = page.get(NEXT_PAGE_TOKEN_KEY)
            if not token:
                break
            page_token = str(token)

        logger.debug(f"Listed {len(items)} {items_key} from {path} in {pages} page(s)")
        return items

    # ── Resources ──────────────────────────────────────────────────────

    async def list_sessions(self) -> list[Session]:
        if self._config.use_sample_data:
            raw = sample_data.SAMPLE_SESSIONS
        else:
            raw = await self.paginate(SESSIONS_PATH, "sessions")
        return [parse_session(r) for r in raw]

    async def list_sources(self) -> list[Source]:
        if self._config.use_sample_data:
            raw = sample_data.SAMPLE_SOURCES
        else:
            raw = await self.paginate(SOURCES_PATH, "sources")
        return [parse_source(r) for r in raw]

    async def list_activities(self, session_name: str) -> list[Activity]:
        if self._config.use_sample_data:
            raw = sample_data.SAMPLE_ACTIVITIES.get(session_name, [])
        else:
            raw = await self.paginate(f"{session_name}/{ACTIVITIES_PATH}", "activities")
        return [parse_activity(r) for r in raw]
