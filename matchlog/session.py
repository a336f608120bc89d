"""
Match log controller.

A `Session` owns the in-memory record list plus the form and filter state of
one user. Every mutation follows the same path: change the list in memory,
rewrite the whole store, then reload from it so ids and ordering come from
the store.
"""

import json
import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from . import config
from .errors import ParseError, StorageError, ValidationError
from .models import FilterSet, FormSelection, MatchRecord, is_valid_import_data
from .stats import MatchupCell, apply_filters, compute_matchup
from .store import RecordStore

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def _reject_constant(name: str):
    # NaN and Infinity are not JSON
    raise ValueError(f"Unexpected token {name}")


class Session:
    def __init__(
        self,
        store: RecordStore,
        clock: Callable[[], float] = now_ms,
        class_roster: Sequence[str] = config.CLASS_ORDER,
    ):
        self.store = store
        self.clock = clock
        self.class_roster = list(class_roster)
        self.records: List[MatchRecord] = []
        self.form = FormSelection(expansion=config.EXPANSIONS[-1])
        self.filters = FilterSet()
        self.show_counts = False

    # =============================
    # Persistence
    # =============================
    async def load(self) -> None:
        try:
            self.records = await self.store.load_all()
        except StorageError:
            logger.exception("Load failed, starting with an empty list")
            self.records = []

        if self.records and isinstance(self.records[0].group, str):
            self.form.group = self.records[0].group
        else:
            self.form.group = config.GROUPS[0]

    async def save(self) -> bool:
        try:
            await self.store.replace_all(self.records)
        except StorageError:
            logger.warning("Save failed; %d in-memory record(s) not persisted", len(self.records))
            return False
        return True

    async def _persist(self) -> None:
        # reload only after a successful save so a failed write keeps the new list
        if await self.save():
            await self.load()

    # =============================
    # Match log operations
    # =============================
    async def submit(self, selection: Optional[FormSelection] = None) -> Optional[MatchRecord]:
        """Log the selected match. Returns None while the form is incomplete."""
        form = selection or self.form
        if not form.is_complete():
            return None

        record = MatchRecord(
            player_class=form.player_class,
            opponent_class=form.opponent_class,
            turn_order=form.turn_order,
            result=form.result_value(),
            timestamp=self.clock(),
            expansion=form.expansion,
            group=form.group,
        )
        self.records.append(record)
        await self._persist()
        return record

    async def remove(self, record_id: int, confirm: Callable[[str], bool]) -> bool:
        """
        Delete the record with `record_id` after `confirm` approves.

        Unknown ids leave the list alone and do not touch the store.
        """
        if not confirm(config.CONFIRM_DELETE):
            return False

        remaining = [r for r in self.records if r.id != record_id]
        if len(remaining) == len(self.records):
            return False

        self.records = remaining
        await self._persist()
        return True

    def export_all(self) -> str:
        return json.dumps(
            [r.to_dict(include_id=False) for r in self.records],
            ensure_ascii=False,
            indent=2,
        )

    async def import_merge(self, raw_text: str) -> int:
        """
        Merge records from an exported JSON file. Returns how many were added.

        Raises ParseError for malformed JSON and ValidationError for a payload of
        the wrong shape; nothing is imported in either case.
        """
        try:
            imported = json.loads(raw_text, parse_constant=_reject_constant)
        except ValueError as e:
            raise ParseError(str(e)) from e

        if not is_valid_import_data(imported):
            raise ValidationError(config.INVALID_JSON)

        existing = {r.dedup_key() for r in self.records}
        added = 0
        for item in imported:
            record = MatchRecord.from_dict(item)
            if record.dedup_key() not in existing:
                self.records.append(record)
                added += 1

        logger.info("Import: %d of %d record(s) added", added, len(imported))
        if added > 0:
            await self._persist()
        return added

    # =============================
    # Form state
    # =============================
    def select_player_class(self, value: str) -> None:
        self.form.player_class = value

    def select_opponent_class(self, value: str) -> None:
        self.form.opponent_class = value

    def select_turn_order(self, value: str) -> None:
        self.form.turn_order = value

    def select_result(self, value: str) -> None:
        self.form.result = value

    def select_expansion(self, value: str) -> None:
        self.form.expansion = value

    def select_group(self, value: str) -> None:
        self.form.group = value

    # =============================
    # Statistics view
    # =============================
    def set_filters(
        self,
        turn_orders: Iterable[str] = (),
        groups: Iterable[str] = (),
        expansions: Iterable[str] = (),
    ) -> None:
        self.filters = FilterSet(set(turn_orders), set(groups), set(expansions))

    def clear_filters(self) -> None:
        self.filters.clear()

    def filtered(self) -> List[MatchRecord]:
        return apply_filters(self.records, self.filters)

    def matchup(self) -> Dict[str, List[MatchupCell]]:
        return compute_matchup(self.filtered(), self.class_roster)

    def toggle_view(self) -> bool:
        self.show_counts = not self.show_counts
        return self.show_counts
