"""Exercise Catalog - Streamlit viewer"""
import sys
from pathlib import Path

import streamlit as st

app_dir = Path(__file__).parent
if str(app_dir) not in sys.path:
    sys.path.insert(0, str(app_dir))

from exercise_catalog.catalog import try_load_catalog
from exercise_catalog.coach import ask_coach
from exercise_catalog.config import ModalityChoice, policy_from_env
from exercise_catalog.filtering import category_options, filter_rows, goal_options
from exercise_catalog.models import Biomarkers, ProgressEntry
from exercise_catalog.paths import catalog_csv_path, progress_store_path
from exercise_catalog.plan import build_plan
from exercise_catalog.progress import ProgressStore, ProgressStoreError
from ui_components import progress_frame, render_progress_chart, render_protocol_card

st.set_page_config(
    page_title="Exercise Catalog",
    page_icon="🏃",
    layout="wide"
)

NO_DATA = "No data: the catalog could not be loaded."


@st.cache_resource(show_spinner=False)
def load_outcome(csv_path: str):
    return try_load_catalog(Path(csv_path))


def render_plan_tab(catalog, policy):
    """Plan tab: biomarker gates plus a short list of protocols."""
    st.header("Plan")
    if catalog is None:
        st.info(NO_DATA)
        return

    col1, col2, col3 = st.columns(3)
    with col1:
        sleep_eff = st.text_input("Sleep efficiency (%)", key="sleep_eff")
        hrv = st.text_input("HRV (ms)", key="hrv_value")
    with col2:
        sbp = st.text_input("Systolic BP", key="sbp")
        dbp = st.text_input("Diastolic BP", key="dbp")
    with col3:
        cgm_tir = st.text_input("CGM time in range (%)", key="cgm_tir")
        hscrp = st.text_input("hsCRP (mg/L)", key="hscrp")

    choice = st.radio(
        "Exercise type",
        [c.value for c in ModalityChoice],
        index=2,
        horizontal=True,
        format_func=lambda v: {"first": policy.first, "second": policy.second, "both": "both"}[v],
    )

    if not st.button("Generate plan", type="primary"):
        return

    markers = Biomarkers(sleep_eff=sleep_eff, hrv=hrv, sbp=sbp, dbp=dbp, cgm_tir=cgm_tir, hscrp=hscrp)
    plan = build_plan(catalog, ModalityChoice(choice), markers, policy=policy)

    gate_text = "**Safety gates:** " + " ".join(plan.gate_notes)
    if plan.cautionary:
        st.warning(gate_text)
    else:
        st.success(gate_text)

    if plan.empty:
        st.info("No items available (check the CSV modality column).")
        return
    for i, row in enumerate(plan.picks):
        render_protocol_card(catalog, row, key=f"plan_{i}", mode="plan", biomarkers=markers)


def render_library_tab(catalog, policy):
    """Library tab: browse by category and goals."""
    st.header("Library")
    if catalog is None:
        st.info(NO_DATA)
        return

    cats = category_options(catalog)
    goals = goal_options(catalog, include_labels=True)
    col1, col2 = st.columns(2)
    with col1:
        selected_cats = st.multiselect("Types", cats, placeholder="All types" if cats else "None in CSV")
    with col2:
        selected_goals = st.multiselect("Goals", goals, placeholder="All goals" if goals else "None in CSV")

    rows = filter_rows(catalog, selected_cats, selected_goals, goal_match=policy.goal_match)
    st.caption(f"{len(rows)} of {len(catalog)} protocols")
    if not rows:
        st.info("No items match the filters.")
        return
    for i, row in enumerate(rows):
        render_protocol_card(catalog, row, key=f"lib_{i}")


def render_ask_tab(catalog):
    """Ask tab: free-text questions, usable without a catalog."""
    st.header("Ask")
    question = st.text_area("Your question", key="ask_input")
    if st.button("Send", key="ask_send"):
        reply = ask_coach(question, catalog)
        st.markdown(f"**Coach:** {reply.text}")
        if reply.error and reply.generated_by == "fallback":
            st.caption(f"AI coaching unavailable: {reply.error}")


def render_progress_tab():
    """Progress tab: append-only session log with confirmed clear."""
    st.header("Progress")
    store = ProgressStore(progress_store_path())

    with st.form("progress_form", clear_on_submit=True):
        col1, col2, col3, col4, col5 = st.columns(5)
        with col1:
            p_date = st.date_input("Date")
        with col2:
            p_type = st.selectbox("Type", ["aerobic", "resistance", "mobility", "other"])
        with col3:
            p_duration = st.number_input("Minutes", min_value=0, value=0)
        with col4:
            p_rpe = st.number_input("RPE", min_value=0, max_value=10, value=0)
        with col5:
            p_hrv = st.text_input("HRV (optional)")
        if st.form_submit_button("Add entry"):
            try:
                store.add(ProgressEntry(date=p_date, type=p_type, duration=p_duration, rpe=p_rpe, hrv=p_hrv))
            except (ValueError, ProgressStoreError) as e:
                st.error(f"Entry not saved: {e}")

    entries = store.entries()
    for w in store.warnings:
        st.warning(w)

    if entries:
        st.dataframe(progress_frame(entries), use_container_width=True, hide_index=True)
        render_progress_chart(entries)
    else:
        st.info("No progress entries yet.")

    confirm = st.checkbox("I want to clear ALL progress entries")
    if st.button("Clear all", disabled=not confirm):
        store.clear(confirmed=confirm)
        st.rerun()


def main():
    st.title("Exercise Catalog")
    st.caption("Browse exercise protocols, build a simple plan and log your sessions")

    policy = policy_from_env()
    outcome = load_outcome(str(catalog_csv_path()))
    catalog = outcome.catalog if outcome.ok else None

    if not outcome.ok:
        st.error(f"Initialization failed ({outcome.error_kind}): {outcome.error}")
    elif outcome.warnings:
        with st.expander(f"{len(outcome.warnings)} CSV warning(s)"):
            for w in outcome.warnings:
                st.markdown(f"- {w}")

    tab1, tab2, tab3, tab4 = st.tabs(["Plan", "Library", "Ask", "Progress"])

    with tab1:
        render_plan_tab(catalog, policy)

    with tab2:
        render_library_tab(catalog, policy)

    with tab3:
        render_ask_tab(catalog)

    with tab4:
        render_progress_tab()


if __name__ == "__main__":
    main()
