import math
from datetime import datetime

from matchlog.config import CLASS_ORDER
from matchlog.models import FilterSet
from matchlog.stats import (
    MatchupCell,
    apply_filters,
    compute_matchup,
    current_group,
    group_records,
    matchup_frame,
    matchup_values,
    start_of_local_day,
    summary,
    today_records,
    win_rate,
)

from conftest import make_record


def ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def test_matchup_is_dense_with_no_records():
    matrix = compute_matchup([], CLASS_ORDER)
    assert list(matrix) == CLASS_ORDER
    for cells in matrix.values():
        assert [c.opponent_class for c in cells] == CLASS_ORDER
        assert all(c.win == 0 and c.lose == 0 and c.winrate == "0%" for c in cells)


def test_matchup_counts_and_winrate_format():
    records = [
        make_record(player_class="Swordcraft", opponent_class="Runecraft", result="Win"),
        make_record(player_class="Swordcraft", opponent_class="Runecraft", result="Win"),
        make_record(player_class="Swordcraft", opponent_class="Runecraft", result="Lose"),
        make_record(player_class="Havencraft", opponent_class="Havencraft", result="Win"),
    ]
    matrix = compute_matchup(records, CLASS_ORDER)

    sword_vs_rune = matrix["Swordcraft"][CLASS_ORDER.index("Runecraft")]
    assert (sword_vs_rune.win, sword_vs_rune.lose) == (2, 1)
    assert sword_vs_rune.winrate == "66.67%"

    mirror = matrix["Havencraft"][CLASS_ORDER.index("Havencraft")]
    assert mirror.winrate == "100.00%"

    rune_vs_sword = matrix["Runecraft"][CLASS_ORDER.index("Swordcraft")]
    assert rune_vs_sword.winrate == "0%"


def test_all_losses_still_show_two_decimals():
    cell = MatchupCell("Runecraft", win=0, lose=3)
    assert cell.winrate == "0.00%"


def test_matchup_ignores_classes_outside_roster():
    records = [
        make_record(player_class="Shadowcraft", opponent_class="Runecraft"),
        make_record(player_class="Swordcraft", opponent_class="Bloodcraft"),
    ]
    matrix = compute_matchup(records, CLASS_ORDER)
    assert all(c.total == 0 for cells in matrix.values() for c in cells)


def test_matchup_frame_display_modes():
    records = [
        make_record(player_class="Swordcraft", opponent_class="Runecraft", result="Win"),
        make_record(player_class="Swordcraft", opponent_class="Runecraft", result="Lose"),
    ]
    matrix = compute_matchup(records, CLASS_ORDER)

    rates = matchup_frame(matrix)
    assert list(rates.index) == CLASS_ORDER
    assert list(rates.columns) == CLASS_ORDER
    assert rates.loc["Swordcraft", "Runecraft"] == "50.00%"
    assert rates.loc["Swordcraft", "Swordcraft"] == "-"

    counts = matchup_frame(matrix, show_counts=True)
    assert counts.loc["Swordcraft", "Runecraft"] == "1W / 1L"
    assert counts.loc["Runecraft", "Swordcraft"] == "-"


def test_apply_filters_empty_is_identity():
    records = [make_record(turn_order="1st"), make_record(turn_order="2nd")]
    out = apply_filters(records, FilterSet())
    assert out == records
    assert out is not records


def test_apply_filters_single_axis():
    records = [
        make_record(turn_order="1st", group="Ruby"),
        make_record(turn_order="2nd", group="Ruby"),
        make_record(turn_order="1st", group="Topaz"),
        make_record(turn_order="unknown"),
    ]
    out = apply_filters(records, FilterSet(turn_orders={"1st"}))
    assert out == [records[0], records[2]]


def test_apply_filters_or_within_and_across_axes():
    records = [
        make_record(turn_order="1st", group="Ruby", expansion="Legends Rise"),
        make_record(turn_order="2nd", group="Topaz", expansion="Legends Rise"),
        make_record(turn_order="2nd", group="Ruby", expansion="Infinity Evolved"),
        make_record(turn_order="1st", group="Diamond", expansion="Legends Rise"),
    ]
    filters = FilterSet(
        turn_orders={"1st", "2nd"},
        groups={"Ruby", "Topaz"},
        expansions={"Legends Rise"},
    )
    assert apply_filters(records, filters) == records[:2]


def test_apply_filters_does_not_mutate_source():
    records = [make_record(turn_order="1st"), make_record(turn_order="2nd")]
    apply_filters(records, FilterSet(turn_orders={"2nd"}))
    assert len(records) == 2


def test_win_rate():
    assert win_rate([]) == 0
    records = [make_record(result="Win")] * 3 + [make_record(result="Lose")]
    assert win_rate(records) == 75


def test_today_window_uses_local_midnight():
    now = datetime(2026, 10, 18, 15, 30)
    assert start_of_local_day(ms(now)) == ms(datetime(2026, 10, 18))

    records = [
        make_record(timestamp=ms(datetime(2026, 10, 18, 0, 0))),
        make_record(timestamp=ms(datetime(2026, 10, 18, 9, 15))),
        make_record(timestamp=ms(datetime(2026, 10, 17, 23, 59))),
    ]
    assert today_records(records, ms(now)) == records[:2]


def test_current_group():
    assert current_group([]) == "N/A"
    records = [make_record(group="Sapphire"), make_record(group="Ruby")]
    assert current_group(records) == "Sapphire"
    assert group_records(records, "Ruby") == [records[1]]


def test_summary_texts():
    now = ms(datetime(2026, 10, 18, 20, 0))
    records = [
        make_record(timestamp=ms(datetime(2026, 10, 18, 19, 0)), group="Ruby", result="Win"),
        make_record(timestamp=ms(datetime(2026, 10, 18, 18, 0)), group="Ruby", result="Lose"),
        make_record(timestamp=ms(datetime(2026, 10, 17, 18, 0)), group="Ruby", result="Win"),
        make_record(timestamp=ms(datetime(2026, 10, 16, 18, 0)), group="Topaz", result="Win"),
    ]
    figures = summary(records, now)
    assert figures["today"] == "50.00% in 2 game(s)"
    assert figures["group"] == "Ruby"
    assert figures["group_rate"] == "66.67% in 3 game(s)"


def test_summary_empty():
    figures = summary([], ms(datetime(2026, 10, 18, 20, 0)))
    assert figures == {
        "today": "0.00% in 0 game(s)",
        "group": "N/A",
        "group_rate": "0.00% in 0 game(s)",
    }


def test_matchup_values_are_numeric():
    records = [
        make_record(player_class="Forestcraft", opponent_class="Havencraft", result="Win"),
        make_record(player_class="Forestcraft", opponent_class="Havencraft", result="Lose"),
        make_record(player_class="Forestcraft", opponent_class="Portalcraft", result="Win"),
        make_record(player_class="Forestcraft", opponent_class="Swordcraft", result="Lose"),
    ]
    df = matchup_values(compute_matchup(records, CLASS_ORDER))

    assert list(df.index) == CLASS_ORDER
    assert list(df.columns) == CLASS_ORDER
    assert df.index.name == "Player Class"
    assert df.loc["Forestcraft", "Havencraft"] == 50.0
    assert df.loc["Forestcraft", "Portalcraft"] == 100.0
    assert df.loc["Forestcraft", "Swordcraft"] == 0.0
    assert math.isnan(df.loc["Forestcraft", "Runecraft"])

    # 100 sorts above 50, which a "100.00%" string would not
    order = df.loc["Forestcraft"].sort_values(ascending=False).index
    assert list(order[:3]) == ["Portalcraft", "Havencraft", "Swordcraft"]


def test_filters_tolerate_non_string_values():
    records = [
        make_record(turn_order=["1st"], expansion={"set": 1}, group=3),
        make_record(),
    ]
    filters = FilterSet(turn_orders={"1st"}, groups={"Emerald"}, expansions={"Legends Rise"})
    assert apply_filters(records, filters) == [records[1]]
    assert apply_filters(records, FilterSet()) == records


def test_current_group_ignores_non_string_group():
    assert current_group([make_record(group=["Ruby"])]) == "N/A"
    assert current_group([make_record(group="")]) == "N/A"


def test_today_skips_unusable_timestamps():
    now = ms(datetime(2026, 10, 18, 15, 30))
    records = [
        make_record(timestamp=None),
        make_record(timestamp=float("nan")),
        make_record(timestamp=now),
    ]
    assert today_records(records, now) == [records[2]]
    assert summary(records, now)["today"] == "100.00% in 1 game(s)"
