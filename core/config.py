"""Settings access for core/ and routers/ modules."""

from config import (  # noqa: F401
    ACTIVITY_THROTTLE_SECONDS,
    APP_NAME,
    APP_TIMEZONE,
    APP_VERSION,
    BOARD_CACHE_TTL_SECONDS,
    CRON_JOB_TIMEOUT_MINUTES,
    CRON_SECRET,
    DEBUG,
    DESCOPE_JWT_LEEWAY,
    DESCOPE_JWT_LEEWAY_FALLBACK,
    DESCOPE_MANAGEMENT_KEY,
    DESCOPE_PROJECT_ID,
    ENVIRONMENT,
    JARCHIVE_BASE_URL,
    JARCHIVE_REQUEST_DELAY_SECONDS,
    JARCHIVE_TIMEOUT_SECONDS,
    LOG_LEVEL,
    SCHEDULER_ENABLED,
)
