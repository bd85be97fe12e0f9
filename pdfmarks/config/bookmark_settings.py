"""
Bookmark editor settings and constants.

Centralized configuration for interchange formats, outline colors,
id generation, session limits and API access.
"""
import os
from pathlib import Path
from typing import Optional

# Interchange formats
CSV_HEADER = "title,page,level"
"""Header row written and recognized by the CSV codec"""

JSON_INDENT = 2
"""Indentation used when exporting bookmarks as JSON"""

# Outline colors
NAMED_COLORS = ("red", "blue", "green", "yellow", "purple")
"""Named bookmark colors supported by the editor"""

PDF_COLOR_MAP = {
    "red": [1.0, 0.0, 0.0],
    "blue": [0.0, 0.0, 1.0],
    "green": [0.0, 1.0, 0.0],
    "yellow": [1.0, 1.0, 0.0],
    "purple": [0.5, 0.0, 0.5],
}
"""RGB triples written into outline /C arrays for named colors"""

HEX_COLOR_MAP = {
    "red": "#dc2626",
    "blue": "#2563eb",
    "green": "#16a34a",
    "yellow": "#ca8a04",
    "purple": "#9333ea",
}
"""Display hex values for named colors"""

# Sessions
MAX_SESSIONS = 100
"""Default cap on concurrently open editing sessions (oldest evicted first)"""

ID_STRATEGIES = ("counter", "uuid")


def get_id_strategy() -> str:
    """Get the bookmark id strategy from environment.

    Returns:
        "counter" (default) or "uuid"
    """
    strategy = os.environ.get("BOOKMARK_ID_STRATEGY", "counter").strip().lower()
    if strategy not in ID_STRATEGIES:
        raise ValueError(
            f"Unknown BOOKMARK_ID_STRATEGY {strategy!r}, expected one of {ID_STRATEGIES}"
        )
    return strategy


def get_max_sessions() -> int:
    """Get the session cap from environment or use MAX_SESSIONS."""
    return int(os.environ.get("BOOKMARK_MAX_SESSIONS", MAX_SESSIONS))


def get_api_key() -> Optional[str]:
    """Get the API key from environment.

    Returns:
        Configured key, or None when ``API_KEY`` is unset or blank
    """
    key = os.environ.get("API_KEY", "").strip()
    return key or None


def get_document_root() -> Path:
    """Get the directory PDF paths sent to the API are confined to.

    Returns:
        Resolved ``BOOKMARK_DOCUMENT_ROOT`` (default: current working directory)
    """
    return Path(os.environ.get("BOOKMARK_DOCUMENT_ROOT") or os.getcwd()).resolve()
