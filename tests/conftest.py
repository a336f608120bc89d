import pytest

from matchlog.models import MatchRecord
from matchlog.session import Session
from matchlog.store import RecordStore

FIXED_NOW = 1_760_000_000_000


def make_record(**kwargs) -> MatchRecord:
    values = dict(
        player_class="Swordcraft",
        opponent_class="Runecraft",
        turn_order="1st",
        result="Win",
        timestamp=100,
        expansion="Legends Rise",
        group="Emerald",
    )
    values.update(kwargs)
    return MatchRecord(**values)


class SpyStore(RecordStore):
    """RecordStore that counts replace_all calls."""

    def __init__(self, db_path):
        super().__init__(db_path)
        self.saves = 0

    async def replace_all(self, records):
        self.saves += 1
        await super().replace_all(records)


@pytest.fixture
def store(tmp_path):
    return SpyStore(str(tmp_path / "matchlog.db"))


@pytest.fixture
def session(store):
    return Session(store, clock=lambda: FIXED_NOW)
