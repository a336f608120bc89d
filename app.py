import asyncio
import logging

import pandas as pd
import streamlit as st

from matchlog import config
from matchlog.config import Settings
from matchlog.errors import ParseError, ValidationError
from matchlog.presentation import (
    choice_label,
    class_color,
    log_frame,
    page_count,
    paginate,
    winrate_cell_style,
)
from matchlog.session import Session
from matchlog.stats import matchup_frame, matchup_values, summary
from matchlog.store import RecordStore

# =============================
# Setup
# =============================
settings = Settings.from_env()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("matchlog.app")

st.set_page_config(page_title="Shadowverse Match Log", layout="wide")

st.markdown("""
<style>
.stApp { background:#0f0e1a; color:#e5e7eb; }
h1 { font-size: 22px !important; margin: 0.2rem 0 0.2rem 0 !important; }
h2 { font-size: 16px !important; margin-top: 0.4rem !important; }
h3 { font-size: 14px !important; margin-top: 0.4rem !important; }

.block-container { padding-top: 5rem; padding-bottom: 0.8rem; max-width: 1250px; }

.small-muted { color: #9ca3af; font-size: 12px; }
.section-title { font-weight: 800; letter-spacing: 0.3px; margin-top: 8px; }

div.stButton > button {
  border-radius: 10px;
  border: 1px solid rgba(139, 92, 246, 0.28);
  background: rgba(139, 92, 246, 0.08);
  color: #e5e7eb;
  padding: 0.25rem 0.55rem;
  font-size: 12px;
  line-height: 1.1;
  white-space: nowrap;
  overflow: hidden;
  text-overflow: ellipsis;
  width: 100% !important;
  display: block !important;
}
</style>
""", unsafe_allow_html=True)

if "session" not in st.session_state:
    session = Session(RecordStore(settings.db_path))
    asyncio.run(session.load())
    st.session_state.session = session
    st.session_state.page = 1
    st.session_state.page_size = settings.page_size
    st.session_state.pending_delete = None

session: Session = st.session_state.session


def section_title(text: str):
    st.markdown(f"<div class='section-title'>{text}</div>", unsafe_allow_html=True)


def choice_grid(options, selected, key_prefix, on_pick, per_row=4, label_of=None):
    """Row-wrapped buttons; the selected option is marked with ✅."""
    for i in range(0, len(options), per_row):
        row = st.columns(per_row, gap="small")
        chunk = options[i:i + per_row]
        for j in range(per_row):
            if j >= len(chunk):
                row[j].empty()
                continue
            value = chunk[j]
            label = label_of(value) if label_of else value
            with row[j]:
                if st.button(choice_label(label, selected == value), key=f"{key_prefix}_{value}"):
                    on_pick(value)
                    st.rerun()


def selected_class_caption(caption: str, class_name):
    if not class_name:
        return
    color = class_color(class_name, selected=True) or "#e5e7eb"
    st.markdown(
        f"<div class='small-muted'>{caption}</div>"
        f"<div style='font-weight:900; color:{color};'>{class_name}</div>",
        unsafe_allow_html=True,
    )


st.title("Shadowverse Match Log")

tab_log, tab_stats = st.tabs(["Match Log", "Statistics"])

# =============================
# Match log tab
# =============================
with tab_log:
    flash = st.session_state.pop("flash", None)
    if flash:
        kind, message = flash
        getattr(st, kind)(message)

    figures = summary(session.records, session.clock())
    s1, s2, s3 = st.columns(3, gap="small")
    s1.metric("Today", figures["today"])
    s2.metric("Current group", figures["group"])
    s3.metric("Group win rate", figures["group_rate"])

    with st.expander("Add match", expanded=True):
        form = session.form

        section_title("Player's Class")
        choice_grid(config.CLASS_ORDER, form.player_class, "player", session.select_player_class)
        selected_class_caption("Selected:", form.player_class)

        section_title("Opponent's Class")
        choice_grid(config.CLASS_ORDER, form.opponent_class, "opponent", session.select_opponent_class)
        selected_class_caption("Selected:", form.opponent_class)

        turn_labels = {t["value"]: t["label"] for t in config.TURN_ORDERS}
        result_labels = {r["value"]: r["label"] for r in config.RESULTS}

        c1, c2 = st.columns(2, gap="large")
        with c1:
            section_title("Turn Order")
            choice_grid(
                list(turn_labels), form.turn_order, "turn", session.select_turn_order,
                per_row=3, label_of=turn_labels.get,
            )
        with c2:
            section_title("Result")
            choice_grid(
                list(result_labels), form.result, "result", session.select_result,
                per_row=2, label_of=result_labels.get,
            )

        c3, c4 = st.columns(2, gap="large")
        with c3:
            expansion = st.selectbox(
                "Game Expansion",
                config.EXPANSIONS,
                index=config.EXPANSIONS.index(form.expansion) if form.expansion in config.EXPANSIONS else len(config.EXPANSIONS) - 1,
            )
            session.select_expansion(expansion)
        with c4:
            group = st.radio(
                "Group",
                config.GROUPS,
                index=config.GROUPS.index(form.group) if form.group in config.GROUPS else None,
                horizontal=True,
            )
            if group:
                session.select_group(group)

        if st.button("Submit", type="primary", disabled=not form.is_complete(), key="submit_btn"):
            record = asyncio.run(session.submit())
            if record is not None:
                st.session_state.page = 1
                st.rerun()

    st.divider()

    # ---- History table
    section_title("History")
    records = session.records
    if not records:
        st.caption(config.NO_DATA)
    else:
        p1, p2, _ = st.columns([1, 1, 3], gap="small")
        with p1:
            page_size = st.selectbox(
                "Rows per page",
                config.PAGE_SIZES,
                index=config.PAGE_SIZES.index(st.session_state.page_size),
            )
            if page_size != st.session_state.page_size:
                st.session_state.page_size = page_size
                st.session_state.page = 1
        pages = page_count(len(records), st.session_state.page_size)
        with p2:
            st.session_state.page = st.number_input(
                f"Page (of {pages})", min_value=1, max_value=pages,
                value=min(st.session_state.page, pages), step=1,
            )

        shown = paginate(records, st.session_state.page, st.session_state.page_size)
        df = log_frame(shown)
        event = st.dataframe(
            df.drop(columns=["id"]),
            use_container_width=True,
            hide_index=True,
            on_select="rerun",
            selection_mode="single-row",
            key="history_table",
        )

        picked = event.selection.rows if event is not None else []
        # selection state outlives removals and page changes
        if picked and picked[0] < len(df):
            target_id = df.iloc[picked[0]]["id"]
            if pd.isna(target_id):
                st.caption("This row is not saved yet and cannot be removed.")
            elif st.button("Remove selected row", key="remove_btn"):
                st.session_state.pending_delete = int(target_id)

        if st.session_state.pending_delete is not None:
            st.warning(config.CONFIRM_DELETE)
            y, n, _ = st.columns([1, 1, 4], gap="small")
            if y.button("Yes, remove", key="confirm_remove"):
                rid = st.session_state.pending_delete
                st.session_state.pending_delete = None
                if asyncio.run(session.remove(rid, confirm=lambda _msg: True)):
                    st.session_state.flash = ("success", "Removed")
                st.rerun()
            if n.button("Cancel", key="cancel_remove"):
                st.session_state.pending_delete = None
                st.rerun()

    st.divider()

    # ---- Export / Import
    e1, e2 = st.columns(2, gap="large")
    with e1:
        st.download_button(
            "Export (JSON)",
            data=session.export_all().encode("utf-8"),
            file_name=config.EXPORT_FILE_NAME,
            mime="application/json",
        )
    with e2:
        uploaded = st.file_uploader("Import (JSON)", type=["json"], key="import_file")
        if uploaded is not None and st.button("Import", key="import_btn"):
            try:
                raw = uploaded.getvalue().decode("utf-8")
                added = asyncio.run(session.import_merge(raw))
            except ValidationError:
                logger.warning("Import rejected: %s", uploaded.name)
                st.error(config.INVALID_JSON)
            except ParseError as e:
                logger.warning("Import parse error: %s", e.message)
                st.error(config.import_error(e.message))
            except UnicodeDecodeError as e:
                st.error(config.import_error(str(e)))
            else:
                st.session_state.flash = ("success", config.import_success(added))
                st.rerun()

# =============================
# Statistics tab
# =============================
with tab_stats:
    turn_labels = {t["value"]: t["label"] for t in config.TURN_ORDERS}

    with st.expander("Filters", expanded=False):
        f1, f2, f3 = st.columns(3, gap="small")
        with f1:
            sel_turns = st.multiselect(
                "Turn Order", options=list(turn_labels), format_func=turn_labels.get, key="filter_turn",
            )
        with f2:
            sel_groups = st.multiselect("Group", options=config.GROUPS, key="filter_group")
        with f3:
            sel_expansions = st.multiselect("Game Expansion", options=config.EXPANSIONS, key="filter_expansion")

        b1, b2, _ = st.columns([1, 1, 4], gap="small")
        if b1.button("Apply", key="apply_filters"):
            session.set_filters(sel_turns, sel_groups, sel_expansions)
            st.rerun()
        if b2.button("Clear", key="clear_filters"):
            session.clear_filters()
            for k in ("filter_turn", "filter_group", "filter_expansion"):
                st.session_state.pop(k, None)
            st.rerun()

    toggle_label = "Show Winrates" if session.show_counts else "Show Win/Lose Counts"
    if st.button(toggle_label, key="toggle_view"):
        session.toggle_view()
        st.rerun()

    if not session.filtered():
        st.info(config.NO_DATA)
    else:
        matrix = session.matchup()
        if session.show_counts:
            st.dataframe(matchup_frame(matrix, show_counts=True), use_container_width=True)
        else:
            frame = matchup_values(matrix)
            styled = frame.style.format("{:.2f}%", na_rep="-").map(winrate_cell_style)
            st.dataframe(styled, use_container_width=True)
