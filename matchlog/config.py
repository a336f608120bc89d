import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

from .models import ClassColorSpec

# =============================
# Game data
# =============================
CLASSES: List[ClassColorSpec] = [
    ClassColorSpec("Swordcraft", "#dde100ff", "#8a8f00"),
    ClassColorSpec("Runecraft", "#5e78feff", "#2b3cbf"),
    ClassColorSpec("Abysscraft", "#fb4c84ff", "#b3124b"),
    ClassColorSpec("Portalcraft", "#74bed1ff", "#2d7f96"),
    ClassColorSpec("Havencraft", "#d0be6dff", "#8a7835"),
    ClassColorSpec("Dragoncraft", "#ff8f1d", "#b3540f"),
    ClassColorSpec("Forestcraft", "#93c6a1ff", "#4f7d59"),
]
CLASS_ORDER = [c.type for c in CLASSES]
CLASS_COLORS = {c.type: c for c in CLASSES}

EXPANSIONS = [
    "Legends Rise",
    "Infinity Evolved",
]

GROUPS = [
    "Emerald",
    "Topaz",
    "Ruby",
    "Sapphire",
    "Diamond",
]

TURN_ORDERS = [
    {"label": "1st", "value": "1st"},
    {"label": "2nd", "value": "2nd"},
    {"label": "Unknown", "value": "unknown"},
]

RESULTS = [
    {"label": "Win", "value": "win", "color": "#22c55e"},
    {"label": "Lose", "value": "lose", "color": "#ef4444"},
]
RESULT_COLORS = {"Win": "#22c55e", "Lose": "#ef4444"}

PAGE_SIZES = [5, 15, 25, 50]
DEFAULT_PAGE_SIZE = 5

EXPORT_FILE_NAME = "deck-data.json"

# =============================
# Messages
# =============================
CONFIRM_DELETE = "Are you sure you want to remove this row?"
INVALID_JSON = "Invalid JSON format: root should be an array."
NO_DATA = "No data available"


def import_success(count: int) -> str:
    return f"Imported {count} new record(s)."


def import_error(error: str) -> str:
    return f"Failed to import JSON: {error}"


# =============================
# Runtime settings
# =============================
@dataclass
class Settings:
    """Runtime settings loaded from environment variables (and `.env`)."""

    db_path: str
    log_level: str
    page_size: int

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(override=False)

        db_path = os.getenv("MATCHLOG_DB_PATH", os.path.join("data", "matchlog.db"))
        log_level = os.getenv("MATCHLOG_LOG_LEVEL", "INFO").upper()

        try:
            page_size = int(os.getenv("MATCHLOG_PAGE_SIZE", str(DEFAULT_PAGE_SIZE)))
        except ValueError:
            page_size = DEFAULT_PAGE_SIZE
        if page_size not in PAGE_SIZES:
            page_size = DEFAULT_PAGE_SIZE

        return cls(
            db_path=db_path,
            log_level=log_level,
            page_size=page_size,
        )
