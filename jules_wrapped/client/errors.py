"""Exceptions raised out of a collection run."""

from __future__ import annotations


class JulesAPIError(RuntimeError):
    """The API answered with a status that retrying will not fix."""

    def __init__(self, status_code: int, body: str = "", reason: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Jules API error ({status_code}): {body or reason}")


class PaginationError(RuntimeError):
    """A paginated listing ran past the configured page ceiling."""

    def __init__(self, path: str, max_pages: int):
        self.path = path
        self.max_pages = max_pages
        super().__init__(f"Gave up listing {path!r} after {max_pages} pages")
