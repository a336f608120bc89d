"""
Data model for logged matches and the transient form/filter state.

A `MatchRecord` travels as a plain dict on the JSON wire (export/import files)
and as a row in the SQLite store. Keys in the wire form:

    playerClass, opponentClass, turnOrder, result, timestamp, expansion, group

Files exported by the older browser version of the tracker used
`timeStamps`, `gameExpansion` and `groupList`; those names are read as aliases.
Any other key is kept in `extra` and written back out unchanged.
"""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set, Tuple

WIN = "Win"
LOSE = "Lose"

# wire key -> attribute name
WIRE_FIELDS = {
    "playerClass": "player_class",
    "opponentClass": "opponent_class",
    "turnOrder": "turn_order",
    "result": "result",
    "timestamp": "timestamp",
    "expansion": "expansion",
    "group": "group",
}
LEGACY_ALIASES = {
    "timeStamps": "timestamp",
    "gameExpansion": "expansion",
    "groupList": "group",
}


# 0001-01-01 .. 9999-12-31 UTC, the span `datetime` can represent
MIN_TIMESTAMP_MS = -62_135_596_800_000
MAX_TIMESTAMP_MS = 253_402_300_799_999


def is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_timestamp(value: Any) -> bool:
    return is_number(value) and MIN_TIMESTAMP_MS <= value <= MAX_TIMESTAMP_MS


def _key_part(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return value
    # unchecked import fields may hold lists or objects
    return json.dumps(value, sort_keys=True)


def is_valid_import_data(data: Any) -> bool:
    """An import must be a list of objects with the fields the statistics need."""
    if not isinstance(data, list):
        return False
    for item in data:
        if not isinstance(item, dict):
            return False
        if not all(isinstance(item.get(k), str) for k in ("playerClass", "opponentClass", "result")):
            return False
        timestamp = item["timestamp"] if "timestamp" in item else item.get("timeStamps")
        if not is_timestamp(timestamp):
            return False
    return True


@dataclass(frozen=True)
class ClassColorSpec:
    type: str
    color: str
    selected_color: str


@dataclass
class MatchRecord:
    player_class: str
    opponent_class: str
    turn_order: Optional[str]
    result: str
    timestamp: float
    expansion: Optional[str] = None
    group: Optional[str] = None
    id: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_win(self) -> bool:
        return self.result == WIN

    def dedup_key(self) -> Tuple[Any, ...]:
        """Identity used when merging imports. `group` is not part of it."""
        parts = (
            self.timestamp,
            self.player_class,
            self.opponent_class,
            self.turn_order,
            self.result,
            self.expansion,
        )
        return tuple(_key_part(p) for p in parts)

    def to_dict(self, include_id: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        for key, attr in WIRE_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        if include_id and self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchRecord":
        """Build an unsaved record from its wire form. Any `id` is dropped; the store assigns ids."""
        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            if key in WIRE_FIELDS:
                values[WIRE_FIELDS[key]] = value
            elif key in LEGACY_ALIASES:
                # canonical keys win over legacy ones
                values.setdefault(LEGACY_ALIASES[key], value)
            elif key != "id":
                extra[key] = value

        return cls(
            player_class=values.get("player_class"),
            opponent_class=values.get("opponent_class"),
            turn_order=values.get("turn_order"),
            result=values.get("result"),
            timestamp=values.get("timestamp"),
            expansion=values.get("expansion"),
            group=values.get("group"),
            extra=extra,
        )


@dataclass
class FormSelection:
    """Match-entry form state. `result` holds the lower-case choice value."""

    player_class: Optional[str] = None
    opponent_class: Optional[str] = None
    turn_order: Optional[str] = None
    result: Optional[str] = "win"
    expansion: Optional[str] = None
    group: Optional[str] = None

    def is_complete(self) -> bool:
        return all(
            v is not None and v != ""
            for v in (
                self.player_class,
                self.opponent_class,
                self.turn_order,
                self.result,
                self.expansion,
                self.group,
            )
        )

    def result_value(self) -> str:
        return WIN if self.result == "win" else LOSE


@dataclass
class FilterSet:
    """Statistics filters. An empty set leaves that axis unconstrained."""

    turn_orders: Set[str] = field(default_factory=set)
    groups: Set[str] = field(default_factory=set)
    expansions: Set[str] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not (self.turn_orders or self.groups or self.expansions)

    def clear(self) -> None:
        self.turn_orders = set()
        self.groups = set()
        self.expansions = set()
