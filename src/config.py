"""
FNF Chart Info - Configuration
All settings loaded from environment variables with sensible defaults.

The service is stateless: charts are processed in memory and nothing is
written to disk.  The only runtime-mutable setting (the score multiplier)
lives in the session, these values are just its starting points.
"""

import os

from dotenv import load_dotenv

# Load environment variables from .env file
_ = load_dotenv()

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT = int(os.getenv("APP_PORT", "8000"))
APP_ENV = os.getenv("APP_ENV", "development")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# ---------------------------------------------------------------------------
# Logging (stdout only)
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# ---------------------------------------------------------------------------
# Score multipliers (points per note), one default per engine.
# Loading a new chart resets the session multiplier to its engine default.
# ---------------------------------------------------------------------------
PSYCH_SCORE_MULTIPLIER = int(os.getenv("PSYCH_SCORE_MULTIPLIER", "350"))
VSLICE_SCORE_MULTIPLIER = int(os.getenv("VSLICE_SCORE_MULTIPLIER", "500"))
CODENAME_SCORE_MULTIPLIER = int(os.getenv("CODENAME_SCORE_MULTIPLIER", "300"))
# Used before any chart has been loaded
DEFAULT_SCORE_MULTIPLIER = int(os.getenv("DEFAULT_SCORE_MULTIPLIER", "350"))

# ---------------------------------------------------------------------------
# Lanes
# ---------------------------------------------------------------------------
DEFAULT_KEY_COUNT = int(os.getenv("DEFAULT_KEY_COUNT", "4"))
SUPPORTED_KEY_COUNTS = {4, 8}

if DEFAULT_KEY_COUNT not in SUPPORTED_KEY_COUNTS:
    raise RuntimeError(
        f"DEFAULT_KEY_COUNT must be one of {sorted(SUPPORTED_KEY_COUNTS)}, "
        f"got {DEFAULT_KEY_COUNT}."
    )

# ---------------------------------------------------------------------------
# Upload limits
# ---------------------------------------------------------------------------
MAX_UPLOAD_FILES = 2
MAX_FILE_SIZE_MB = int(os.getenv("MAX_FILE_SIZE_MB", "50"))
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024

ALLOWED_CONTENT_TYPES = {"application/json"}
ALLOWED_FILE_EXTENSIONS = {".json"}

# ---------------------------------------------------------------------------
# User-facing links
# ---------------------------------------------------------------------------
ISSUES_URL = os.getenv(
    "ISSUES_URL", "https://github.com/MeguminBOT/fnf-chart-info-tool/issues"
)
