"""Protocol card rendering for the Exercise Catalog viewer."""
import html

import streamlit as st

from exercise_catalog.catalog import Catalog
from exercise_catalog.coach import coach_row
from exercise_catalog.filtering import goal_labels

DETAIL_FIELDS = [
    ("direct_benefits", "Direct cognitive benefits"),
    ("indirect_benefits", "Indirect cognitive benefits"),
    ("mechanisms", "Mechanisms (brain-body)"),
    ("mechanism_tags", "Mechanism tags"),
    ("cognitive_targets", "Cognitive targets"),
    ("safety_notes", "Safety notes"),
    ("home_equipment", "Home equipment"),
]


def _field(catalog: Catalog, row, role: str) -> str:
    value = catalog.value(row, role).strip()
    return html.escape(value) if value else "-"


def render_protocol_card(catalog: Catalog, row, key: str, mode: str = "library", biomarkers=None):
    """
    Render one protocol row as a card with an on-demand coaching button.

    Args:
        catalog: Loaded catalog (for role lookups)
        row: Row mapping from the catalog
        key: Unique widget key for this card
        mode: "library" or "plan" coaching prompt
        biomarkers: Plan-form readings passed to the coach in plan mode
    """
    with st.container(border=True):
        category = catalog.value(row, "category").strip() or "type: n/a"
        st.caption(category)
        st.markdown(f"### {html.escape(catalog.title_of(row))}")
        st.markdown(f"**Protocol:** {_field(catalog, row, 'protocol_start')}")
        st.markdown(f"**Progression:** {_field(catalog, row, 'progression_rule')}")

        contra = catalog.value(row, "contraindications").strip()
        if contra:
            st.warning(f"**Contraindications:** {html.escape(contra)}")

        st.markdown(f"**Coaching (rules-based):** {_field(catalog, row, 'coach_script')}")

        goals = sorted(goal_labels(row, catalog.schema))
        if goals:
            st.markdown("**Goals:** " + ", ".join(f"`{g}`" for g in goals))

        with st.expander("Details"):
            for role, label in DETAIL_FIELDS:
                st.markdown(f"**{label}:** {_field(catalog, row, role)}")

        if st.button("AI Coaching", key=f"coach_{key}"):
            with st.spinner("Generating..."):
                reply = coach_row(row, catalog.schema, mode=mode, biomarkers=biomarkers)
            if reply.generated_by != "fallback":
                st.success(f"**AI Coaching:** {reply.text}")
            else:
                st.info(f"**Coaching (rules-based):** {reply.text}")
                if reply.error:
                    st.caption(f"AI coaching unavailable: {reply.error}")
