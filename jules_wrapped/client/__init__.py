"""Jules REST API client with rate governance and retries."""

from jules_wrapped.client.api import JulesClient
from jules_wrapped.client.errors import JulesAPIError, PaginationError
from jules_wrapped.client.governor import RateGovernor

__all__ = ["JulesClient", "JulesAPIError", "PaginationError", "RateGovernor"]
