"""Quiz-related constants shared across the core and server layers."""

PARTIAL_CREDIT_THRESHOLD: float = 0.70
TIMER_TICK_SECONDS: float = 1.0
RECENT_ATTEMPTS_LIMIT: int = 10
DEFAULT_EXPIRATION_DAYS: int = 7
ANONYMOUS_PARTICIPANT: str = "Anonymous"

EXCELLENT_SCORE_THRESHOLD: int = 80
GOOD_SCORE_THRESHOLD: int = 60

# Finished sessions stay readable this long after completion or their last request.
COMPLETED_SESSION_RETENTION_SECONDS: float = 15 * 60
# Unfinished sessions nobody has touched for this long are dropped.
IDLE_SESSION_TIMEOUT_SECONDS: float = 4 * 60 * 60
