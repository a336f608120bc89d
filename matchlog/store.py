"""SQLite-backed record store with load-all / replace-all semantics."""

import json
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, List

import aiosqlite

from .errors import StorageError
from .models import MatchRecord

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("player_class", "opponent_class", "turn_order", "result", "expansion", "group")
# key inside the `extra` column for TEXT_FIELDS values that are not strings
ENCODED_KEY = "__encoded__"

SCHEMA = """
CREATE TABLE IF NOT EXISTS matches (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    player_class TEXT,
    opponent_class TEXT,
    turn_order TEXT,
    result TEXT,
    timestamp INTEGER,
    expansion TEXT,
    group_name TEXT,
    extra TEXT NOT NULL DEFAULT '{}'
)
"""

INSERT = """
INSERT INTO matches (
    player_class, opponent_class, turn_order, result,
    timestamp, expansion, group_name, extra
) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
"""


class RecordStore:
    """
    Persists the full match list to a local SQLite file.

    There is no partial update path: `replace_all` clears the table and writes
    every record again, so ids handed out by the store change on every save.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        parent = os.path.dirname(self.db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        async with aiosqlite.connect(self.db_path) as conn:
            conn.row_factory = aiosqlite.Row
            await conn.execute(SCHEMA)
            await conn.commit()
            yield conn

    async def load_all(self) -> List[MatchRecord]:
        """All stored records, newest first. Returns [] on any failure."""
        try:
            async with self._connect() as conn:
                async with conn.execute("SELECT * FROM matches ORDER BY id") as cursor:
                    rows = await cursor.fetchall()
            return [_row_to_record(row) for row in rows]
        except Exception:
            logger.exception("Failed to load records from %s", self.db_path)
            return []

    async def replace_all(self, records: Iterable[MatchRecord]) -> None:
        """Clear the table, then insert `records` sorted by descending timestamp."""
        records = list(records)
        try:
            ordered = sorted(records, key=lambda r: r.timestamp, reverse=True)
            async with self._connect() as conn:
                await conn.execute("DELETE FROM matches")
                await conn.commit()
                for record in ordered:
                    await conn.execute(INSERT, _record_to_row(record))
                await conn.commit()
        except Exception as e:
            logger.exception("Failed to save %d record(s) to %s", len(records), self.db_path)
            raise StorageError(str(e)) from e
        logger.debug("Saved %d record(s)", len(records))


def _record_to_row(record: MatchRecord) -> tuple:
    extra = dict(record.extra)
    text = {}
    encoded = {}
    for attr in TEXT_FIELDS:
        value = getattr(record, attr)
        if value is None or isinstance(value, str):
            text[attr] = value
        else:
            # imported fields are unchecked and may hold numbers, lists or objects
            text[attr] = None
            encoded[attr] = value
    if encoded:
        extra[ENCODED_KEY] = encoded
    return (
        text["player_class"],
        text["opponent_class"],
        text["turn_order"],
        text["result"],
        record.timestamp,
        text["expansion"],
        text["group"],
        json.dumps(extra, ensure_ascii=False),
    )


def _row_to_record(row: aiosqlite.Row) -> MatchRecord:
    extra = json.loads(row["extra"] or "{}")
    encoded = extra.pop(ENCODED_KEY, {})
    record = MatchRecord(
        player_class=row["player_class"],
        opponent_class=row["opponent_class"],
        turn_order=row["turn_order"],
        result=row["result"],
        timestamp=row["timestamp"],
        expansion=row["expansion"],
        group=row["group_name"],
        id=row["id"],
        extra=extra,
    )
    for attr, value in encoded.items():
        setattr(record, attr, value)
    return record
