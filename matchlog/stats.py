"""
Win/lose aggregation over match records.

Everything here is a pure function of its inputs: the record list is never
mutated, and filtered views are rebuilt from the full list on every call.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Sequence

import pandas as pd

from .models import WIN, FilterSet, MatchRecord, is_number

NO_GROUP = "N/A"
EMPTY_CELL = "-"


@dataclass
class MatchupCell:
    opponent_class: str
    win: int = 0
    lose: int = 0

    @property
    def total(self) -> int:
        return self.win + self.lose

    @property
    def winrate(self) -> str:
        # Empty cells keep the bare "0%"; played cells always show two decimals.
        if self.total == 0:
            return "0%"
        return f"{self.win / self.total * 100:.2f}%"

    @property
    def winrate_value(self) -> float:
        return self.win / self.total * 100 if self.total else 0.0


def compute_matchup(
    records: Iterable[MatchRecord], class_roster: Sequence[str]
) -> Dict[str, List[MatchupCell]]:
    """Dense roster x roster win/lose matrix, keyed by player class in roster order."""
    cells = {
        player: {opponent: MatchupCell(opponent) for opponent in class_roster}
        for player in class_roster
    }
    for r in records:
        row = cells.get(r.player_class)
        if row is None or r.opponent_class not in row:
            continue
        if r.result == WIN:
            row[r.opponent_class].win += 1
        else:
            row[r.opponent_class].lose += 1
    return {player: list(row.values()) for player, row in cells.items()}


def matchup_frame(matrix: Dict[str, List[MatchupCell]], show_counts: bool = False) -> pd.DataFrame:
    """Display table for the statistics view: one row per player class."""
    rows = []
    for player, cells in matrix.items():
        row = {"Player Class": player}
        for cell in cells:
            if cell.total == 0:
                row[cell.opponent_class] = EMPTY_CELL
            elif show_counts:
                row[cell.opponent_class] = f"{cell.win}W / {cell.lose}L"
            else:
                row[cell.opponent_class] = cell.winrate
        rows.append(row)
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    return df.set_index("Player Class")


def matchup_values(matrix: Dict[str, List[MatchupCell]]) -> pd.DataFrame:
    """Numeric win rates (NaN for unplayed matchups) so table columns sort by value."""
    df = pd.DataFrame(
        {
            player: {c.opponent_class: c.winrate_value if c.total else float("nan") for c in cells}
            for player, cells in matrix.items()
        }
    ).T
    df.index.name = "Player Class"
    return df.astype(float)


def apply_filters(records: Iterable[MatchRecord], filters: FilterSet) -> List[MatchRecord]:
    """AND across axes, OR within an axis; an empty axis matches everything."""
    out = []
    for r in records:
        if filters.turn_orders and not _selected(r.turn_order, filters.turn_orders):
            continue
        if filters.groups and not _selected(r.group, filters.groups):
            continue
        if filters.expansions and not _selected(r.expansion, filters.expansions):
            continue
        out.append(r)
    return out


def _selected(value, selected) -> bool:
    # imported values may be unhashable; only strings can match a choice
    return isinstance(value, str) and value in selected


def win_rate(records: Sequence[MatchRecord]) -> float:
    if not records:
        return 0
    wins = sum(1 for r in records if r.result == WIN)
    return wins / len(records) * 100


def start_of_local_day(now_ms: float) -> int:
    now = datetime.fromtimestamp(now_ms / 1000)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(midnight.timestamp() * 1000)


def today_records(records: Iterable[MatchRecord], now_ms: float) -> List[MatchRecord]:
    start = start_of_local_day(now_ms)
    return [r for r in records if is_number(r.timestamp) and r.timestamp >= start]


def current_group(records: Sequence[MatchRecord]) -> str:
    """Group of the most recent record (the list is kept newest first)."""
    if not records:
        return NO_GROUP
    group = records[0].group
    return group if isinstance(group, str) and group else NO_GROUP


def group_records(records: Iterable[MatchRecord], group: str) -> List[MatchRecord]:
    return [r for r in records if r.group == group]


def summary(records: Sequence[MatchRecord], now_ms: float) -> Dict[str, str]:
    """Header figures for the match log: today's rate and current group's rate."""
    today = today_records(records, now_ms)
    today_rate = f"{win_rate(today):.2f}%" if today else "0.00%"

    group = current_group(records)
    in_group = group_records(records, group)
    return {
        "today": f"{today_rate} in {len(today)} game(s)",
        "group": group,
        "group_rate": f"{win_rate(in_group):.2f}% in {len(in_group)} game(s)",
    }
