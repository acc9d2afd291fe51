"""Constants for the Jules REST API client."""

# API endpoint
DEFAULT_BASE_URL = "https://jules.googleapis.com/v1alpha"
API_KEY_HEADER = "X-Goog-Api-Key"

# API paths (activities hang off the session resource name)
SESSIONS_PATH = "sessions"
SOURCES_PATH = "sources"
ACTIVITIES_PATH = "activities"

# Paging
PAGE_SIZE = 100
PAGE_SIZE_PARAM = "pageSize"
PAGE_TOKEN_PARAM = "pageToken"
NEXT_PAGE_TOKEN_KEY = "nextPageToken"

# Request timeout per call, in seconds
API_TIMEOUT = 10.0

# Fan-out for per-session activity fetches
ACTIVITY_CONCURRENCY = 3

# Rate governance
DEFAULT_RATE_LIMIT_PER_MINUTE = 90
RATE_LIMIT_BUFFER_RATIO = 0.9
MIN_RATE_LIMIT_PER_MINUTE = 1
SLEEP_EVENT_INTERVAL = 1.0  # seconds between repeated spacing-only sleep events

# Retry / resilience
RATE_LIMITED_STATUS = 429
TRANSIENT_STATUS_CODES = frozenset({500, 502, 503, 504})
RETRY_BASE_DELAY = 1.0  # seconds; doubles each attempt
RETRY_MAX_DELAY = 15.0
RETRY_JITTER = (0.85, 1.15)

# Source resource-name prefixes stripped when no owner/repo is known
GITHUB_SOURCE_PREFIX = "sources/github/"
SOURCE_PREFIX = "sources/"

# Automation mode enum prefix stripped for display
AUTOMATION_MODE_PREFIX = "AUTOMATION_MODE_"

RATE_LIMIT_NOTICE = (
    "Jules API rate limits detected - this may take a while, continuing automatically."
)
