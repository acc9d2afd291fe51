"""jules-wrapped - your year with Jules, in numbers."""

from loguru import logger

__version__ = "0.1.0"
__logo__ = "🐙"

# Library code stays quiet unless the embedding application opts in.
logger.disable("jules_wrapped")

from jules_wrapped.config import ClientConfig  # noqa: E402
from jules_wrapped.usage.report import collect, collect_sync  # noqa: E402

__all__ = ["ClientConfig", "collect", "collect_sync", "__version__", "__logo__"]
