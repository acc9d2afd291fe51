"""Configuration for a collection run."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from jules_wrapped.client.constants import (
    ACTIVITY_CONCURRENCY,
    API_TIMEOUT,
    DEFAULT_BASE_URL,
    DEFAULT_RATE_LIMIT_PER_MINUTE,
    PAGE_SIZE,
)

if TYPE_CHECKING:
    from jules_wrapped.client.events import RateLimitEvent

ENV_API_KEY = "JULES_API_KEY"
ENV_BASE_URL = "JULES_API_BASE_URL"


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class ClientConfig:
    """Options recognised by :func:`jules_wrapped.collect`."""

    api_key: str | None = None
    base_url: str | None = None
    use_sample_data: bool = False
    on_rate_limit: Callable[[RateLimitEvent], None] | None = None
    concurrency: int = ACTIVITY_CONCURRENCY
    page_size: int = PAGE_SIZE
    timeout: float = API_TIMEOUT
    rate_limit_per_minute: int = DEFAULT_RATE_LIMIT_PER_MINUTE
    max_pages: int | None = None  # None = follow page tokens until the server stops

    @classmethod
    def from_env(cls, **overrides) -> ClientConfig:
        """Build a config from ``JULES_API_KEY`` / ``JULES_API_BASE_URL``.

        Explicit keyword overrides win over the environment; blank strings
        count as unset.
        """
        api_key = _blank_to_none(overrides.pop("api_key", None)) or _blank_to_none(
            os.environ.get(ENV_API_KEY)
        )
        base_url = _blank_to_none(overrides.pop("base_url", None)) or _blank_to_none(
            os.environ.get(ENV_BASE_URL)
        )
        return cls(api_key=api_key, base_url=base_url, **overrides)

    @property
    def resolved_base_url(self) -> str:
        return (self.base_url or DEFAULT_BASE_URL).rstrip("/")

    def has_credentials(self) -> bool:
        if self.use_sample_data:
            return True
        return bool(self.api_key and self.api_key.strip())
