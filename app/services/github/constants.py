"""Constants for GitHub service."""

API_VERSION = "2022-11-28"

# Timeline event emitted when a pull request's head branch is force-pushed
FORCE_PUSH_EVENT = "head_ref_force_pushed"

# Maximum page size for the issue timeline endpoint
TIMELINE_PER_PAGE = 100

# Authenticated-user lookups are cached per token for this long (seconds)
USER_CACHE_TTL = 300
