"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MIN_SESSION_MINUTES = 1
MAX_SESSION_MINUTES = 180

# Attempts to win the single active slot when creates race each other.
CREATE_ATTEMPTS = 3

DEFAULT_SESSION_LIST_LIMIT = 50
MAX_SESSION_LIST_LIMIT = 500
DEFAULT_DB_CONNECT_TIMEOUT = 5
DEFAULT_DB_LOCK_WAIT_TIMEOUT = 5
