"""Formatting helpers that turn model data into display values. Nothing here mutates state."""

import json
import math
from datetime import datetime
from typing import List, Optional, Sequence, TypeVar

import pandas as pd

from .config import CLASS_COLORS, RESULT_COLORS
from .models import MatchRecord, is_number

T = TypeVar("T")

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

LOG_COLUMNS = [
    "Player's Class",
    "Opponent's Class",
    "Turn Order",
    "Timestamp",
    "Result",
    "Game Expansion",
    "Group",
    "id",
]

INVALID_DATE = "Invalid Date"

BADGE_STYLE = "background:{bg};color:#fff;padding:2px 8px;border-radius:4px;display:inline-block;"


def format_timestamp(ms: float) -> str:
    """Local time as e.g. `18 Oct, 3:05PM`; unrepresentable values give `Invalid Date`."""
    if not is_number(ms):
        return INVALID_DATE
    try:
        d = datetime.fromtimestamp(ms / 1000)
    except (OverflowError, OSError, ValueError):
        return INVALID_DATE
    hour = d.hour % 12 or 12
    ampm = "PM" if d.hour >= 12 else "AM"
    return f"{d.day} {MONTHS[d.month - 1]}, {hour}:{d.minute:02d}{ampm}"


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def class_color(class_name: str, selected: bool = False) -> Optional[str]:
    info = CLASS_COLORS.get(class_name)
    if info is None:
        return None
    return info.selected_color if selected else info.color


def class_badge(class_name: str, selected: bool = False) -> str:
    bg = class_color(class_name, selected) or "#222"
    return f"<span style='{BADGE_STYLE.format(bg=bg)}'>{class_name}</span>"


def result_badge(result: str) -> str:
    bg = RESULT_COLORS.get(result, RESULT_COLORS["Lose"])
    return f"<span style='{BADGE_STYLE.format(bg=bg)} font-weight:700;'>{result}</span>"


def winrate_background(rate: float) -> str:
    red = _round_half_up(255 * (100 - rate) / 100)
    green = _round_half_up(255 * rate / 100)
    return f"rgb({red}, {green}, 0)"


def winrate_cell_style(value) -> str:
    """CSS for one statistics cell; only win rates (numbers or `NN.NN%`) are colored."""
    if isinstance(value, str):
        if not value.endswith("%"):
            return ""
        value = float(value[:-1])
    if not is_number(value):
        return ""
    return f"background-color: {winrate_background(value)}; color: #fff; font-weight: bold;"


def choice_label(label: str, selected: bool) -> str:
    return f"✅ {label}" if selected else label


def log_frame(records: Sequence[MatchRecord]) -> pd.DataFrame:
    rows = [
        {
            "Player's Class": r.player_class,
            "Opponent's Class": r.opponent_class,
            "Turn Order": _text(r.turn_order),
            "Timestamp": format_timestamp(r.timestamp),
            "Result": r.result,
            "Game Expansion": _text(r.expansion),
            "Group": _text(r.group),
            "id": r.id,
        }
        for r in records
    ]
    df = pd.DataFrame(rows, columns=LOG_COLUMNS)
    # unsaved records have no id yet
    df["id"] = df["id"].astype("Int64")
    return df


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def page_count(total: int, page_size: int) -> int:
    return max(1, math.ceil(total / page_size))


def paginate(items: Sequence[T], page: int, page_size: int) -> List[T]:
    """Items on 1-based `page`; out-of-range pages are clamped."""
    page = min(max(page, 1), page_count(len(items), page_size))
    start = (page - 1) * page_size
    return list(items[start:start + page_size])
