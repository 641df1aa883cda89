import logging
import os

from dotenv import load_dotenv


# ============================================================
# Environment bootstrap
# ============================================================
# Load variables from .env early.
# override=True allows local dev to intentionally shadow system envs.
load_dotenv(override=True)


# ============================================================
# Logging Configuration
# ============================================================
# LOG_LEVEL is expected to be something like: DEBUG, INFO, WARNING, ERROR
# Default to INFO if missing or invalid.
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


def _env_int(name: str, default: str) -> int:
    # Integer settings must fail fast on garbage rather than silently default.
    try:
        return int(os.getenv(name, default))
    except ValueError:
        raise RuntimeError(f"{name} must be a valid integer")


def _env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ============================================================
# Application Metadata
# ============================================================
MAIN_APP_HOST: str = os.getenv("MAIN_APP_HOST", "0.0.0.0")
MAIN_APP_PORT: int = _env_int("MAIN_APP_PORT", "8000")

# Descriptive metadata (used by FastAPI / OpenAPI)
MAIN_APP_TITLE: str = os.getenv("MAIN_APP_TITLE", "LEO Segments API")
MAIN_APP_DESCRIPTION: str = os.getenv(
    "MAIN_APP_DESCRIPTION",
    "Subscriber segments defined as filter expressions, with safe counting",
)
MAIN_APP_VERSION: str = os.getenv("MAIN_APP_VERSION", "1.0.0")

# Create the segments/subscribers tables on startup (dev and test setups).
AUTO_CREATE_SCHEMA: bool = _env_bool("AUTO_CREATE_SCHEMA")


# ============================================================
# CORS Configuration
# ============================================================
# ⚠️ SECURITY NOTE
# Using "*" with credentials=True is NOT allowed by browsers
# and should never be used in production.
# Replace "*" with explicit origins when deploying.
CORS_ALLOW_ORIGINS = [
    "*"  # e.g. "https://cdp-admin.example.com"
]

CORS_ALLOW_CREDENTIALS: bool = True
CORS_ALLOW_METHODS = ["*"]
CORS_ALLOW_HEADERS = ["*"]


# ============================================================
# Segment Configuration
# ============================================================
class SegmentConfigs:
    """
    Limits and defaults for segment definitions and queries.

    Read once at import time so business logic never calls os.getenv().
    """

    # Maximum length of every name-like input (segment names included).
    STD_INPUT_MAX_LEN: int = _env_int("STD_INPUT_MAX_LEN", "200")

    # Columns the listing endpoint may sort on. Anything else falls back
    # to DEFAULT_ORDER_BY.
    ORDER_COLUMNS = ("name", "created_at", "updated_at")
    DEFAULT_ORDER_BY: str = "created_at"
    DEFAULT_ORDER: str = "DESC"

    DEFAULT_PER_PAGE: int = _env_int("DEFAULT_PER_PAGE", "20")

    # Upper bound for ad-hoc subscriber counts (seconds).
    # Applied as a transaction-local statement_timeout.
    COUNT_TIMEOUT_SECONDS: int = _env_int("SEGMENT_COUNT_TIMEOUT_SECONDS", "10")
