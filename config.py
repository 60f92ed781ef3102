import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Application environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DEBUG = ENVIRONMENT == "development"

# Database settings
DATABASE_URL = os.getenv("DATABASE_URL")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Application settings
APP_NAME = os.getenv("APP_NAME", "Trivrdy API")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "America/New_York")

# Descope settings
DESCOPE_PROJECT_ID = os.getenv("DESCOPE_PROJECT_ID", "")
DESCOPE_JWT_LEEWAY = int(os.getenv("DESCOPE_JWT_LEEWAY", "60"))  # seconds of clock-skew tolerance
DESCOPE_JWT_LEEWAY_FALLBACK = int(os.getenv("DESCOPE_JWT_LEEWAY_FALLBACK", "120"))
DESCOPE_MANAGEMENT_KEY = os.getenv("DESCOPE_MANAGEMENT_KEY", "")

logging.info(
    f"Descope JWT leeway configured: primary={DESCOPE_JWT_LEEWAY}s, fallback={DESCOPE_JWT_LEEWAY_FALLBACK}s"
)

# Shared secrets for scheduled/internal callers
CRON_SECRET = os.getenv("CRON_SECRET", "")

# Scheduler settings
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "false").lower() == "true"
CRON_JOB_TIMEOUT_MINUTES = int(os.getenv("CRON_JOB_TIMEOUT_MINUTES", "10"))

# Game board cache
BOARD_CACHE_TTL_SECONDS = int(os.getenv("BOARD_CACHE_TTL_SECONDS", "300"))

# J-Archive scraping
JARCHIVE_BASE_URL = os.getenv("JARCHIVE_BASE_URL", "https://j-archive.com")
JARCHIVE_TIMEOUT_SECONDS = int(os.getenv("JARCHIVE_TIMEOUT_SECONDS", "15"))
JARCHIVE_REQUEST_DELAY_SECONDS = float(os.getenv("JARCHIVE_REQUEST_DELAY_SECONDS", "1"))

# User activity tracking
ACTIVITY_THROTTLE_SECONDS = int(os.getenv("ACTIVITY_THROTTLE_SECONDS", "60"))
