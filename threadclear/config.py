"""Centralized configuration for the ThreadClear backend.

Typed constants for database, extraction, taxonomy, insight and API settings.
Environment variable overrides use safe defaults so the app starts without
extra env configuration.
"""

from __future__ import annotations

import os
from pathlib import Path

# --- App ---
APP_VERSION: str = "1.0.0"
APP_ENV: str = os.getenv("THREADCLEAR_ENV", "development")

# --- Database ---
DB_POOL_SIZE: int = int(os.getenv("THREADCLEAR_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("THREADCLEAR_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("THREADCLEAR_DB_CONNECT_TIMEOUT", "30.0"))
DB_TEMP_CONN_MAX: int = int(os.getenv("THREADCLEAR_DB_TEMP_CONN_MAX", "10"))
DB_RETRY_MAX: int = int(os.getenv("THREADCLEAR_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("THREADCLEAR_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("THREADCLEAR_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("THREADCLEAR_DB_RETRY_JITTER", "0.1"))

# --- Extraction ---
# Email bodies are cut harder than chat spans: quoted history and footers dominate them.
BODY_MAX_CHARS: int = int(os.getenv("THREADCLEAR_BODY_MAX_CHARS", "500"))
CHAT_MAX_CHARS: int = int(os.getenv("THREADCLEAR_CHAT_MAX_CHARS", "1000"))
TRUNCATION_SUFFIX: str = "..."
FALLBACK_MAX_LINES: int = int(os.getenv("THREADCLEAR_FALLBACK_MAX_LINES", "50"))
SENDER_MAX_CHARS: int = 30
NAME_MAX_CHARS: int = 50
QUOTE_MIN_OFFSET: int = 20
SIGNATURE_MIN_OFFSET: int = 10

# --- Capsule metadata ---
# Reply gaps this long are treated as a restarted thread, not a response.
RESPONSE_GAP_MAX_DAYS: int = 30

# --- Taxonomy ---
TAXONOMY_OVERRIDES_PATH: Path = Path(
    os.getenv(
        "THREADCLEAR_TAXONOMY_OVERRIDES_PATH",
        str(Path(__file__).parent.parent / "config" / "taxonomy_overrides.yaml"),
    )
)

# --- Insights ---
INSIGHT_DEFAULT_DAYS: int = 30
INSIGHT_MAX_DAYS: int = 365
INSIGHT_RETENTION_DAYS: int = int(os.getenv("THREADCLEAR_INSIGHT_RETENTION_DAYS", "90"))
HEALTH_FLAG_THRESHOLD: float = 0.5
HEALTH_HIGH_THRESHOLD: float = 0.3

# --- API ---
API_LIST_LIMIT_DEFAULT: int = 50
API_LIST_LIMIT_MAX: int = 500
API_MAX_TEXT_CHARS: int = int(os.getenv("THREADCLEAR_API_MAX_TEXT_CHARS", "200000"))
