# app.py
import logging

import pandas as pd
import streamlit as st

from config import (
    AUDIT_MODEL, ENABLE_GROUNDING, LOG_LEVEL, MODEL_CHOICES
)
from constants import (
    COLORS, MOCK_ALERTS, PORTALS, RECENT_APPROVALS, STATUS_BADGES
)
from styles import inject_button_css, badge
from compliance.backend import create_backend, load_settings
from compliance.errors import ConfigurationError
from compliance.service import apply_feed_refresh, refresh_approvals, search_ingredient
from compliance.utils import group_by_region, make_downloads, status_counts

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# ----------------------------------------------------
# Streamlit page + styles
# ----------------------------------------------------
st.set_page_config(page_title="RA Compliance Pro", page_icon="🧪", layout="wide")
inject_button_css()

st.title("🧪 RA Compliance Pro: Ingredient Audit")
st.caption(
    "Audits one ingredient across CN / US / EU regulators. Searches are anchored to official portals "
    "(FDA, NIFDC, NHC, SAMR, EFSA, europa.eu) and every regulatory ID must trace back to a published record. "
    "Results come from a generative model: verify against the linked originals before relying on them."
)

# ----------------------------------------------------
# Session state (defaults)
# ----------------------------------------------------
defaults = {
    "model": AUDIT_MODEL,
    "enable_grounding": ENABLE_GROUNDING,
    "approvals": list(RECENT_APPROVALS),
    "result": None,
    "query": "",
}
for k, v in defaults.items():
    if k not in st.session_state:
        st.session_state[k] = v

# ----------------------------------------------------
# Sidebar: model / grounding switches
# ----------------------------------------------------
with st.sidebar:
    st.header("Audit engine")
    model_options = MODEL_CHOICES if st.session_state.model in MODEL_CHOICES else [st.session_state.model] + MODEL_CHOICES
    st.selectbox("Gemini model", model_options, key="model")
    st.toggle(
        "Google Search grounding",
        key="enable_grounding",
        help="On: the model searches official portals live and returns citation links. "
             "Off: answers come from model knowledge in JSON mode (faster, no citations).",
    )


# ----------------------------------------------------
# Backend handle (explicit, rebuilt only when the switches change)
# ----------------------------------------------------
@st.cache_resource(show_spinner=False)
def _cached_backend(model: str, enable_grounding: bool):
    return create_backend(load_settings(model=model, enable_grounding=enable_grounding))


try:
    backend = _cached_backend(st.session_state.model, st.session_state.enable_grounding)
except ConfigurationError as e:
    st.error(f"Configuration error: {e}")
    st.stop()


# ----------------------------------------------------
# Rendering helpers
# ----------------------------------------------------
def _render_detail(detail) -> None:
    st.markdown(f"**{detail.regulatory_id}** - {STATUS_BADGES[detail.status]}")
    st.markdown(
        f"- Applicant: {detail.applicant}\n"
        f"- Approval date: {detail.approval_date}\n"
        f"- Dosage form: {detail.dosage_form}\n"
        f"- Material source: {detail.material_source}\n"
        f"- Limit: {detail.limit}"
    )
    if detail.notes:
        st.markdown(f"- Audit notes: {detail.notes}")
    for i, src in enumerate(detail.sources, 1):
        st.markdown(f"  - [Official source {i}]({src})")
    st.markdown("---")


def _render_result(result) -> None:
    st.markdown(f"## {result.name}")
    st.markdown(
        badge("Grounded result" if result.grounding_sources else "Model result", "#1e293b")
        + badge(f"CAS: {result.cas or 'N/A'}", COLORS["accent"]),
        unsafe_allow_html=True,
    )

    st.markdown("### 📋 Audit summary")
    st.info(result.summary)

    if result.details:
        counts = status_counts(result.details)
        cols = st.columns(len(counts))
        for col, (status, n) in zip(cols, counts.items()):
            col.metric(STATUS_BADGES[status], n)

    st.markdown("### 🌍 Records by region")
    grouped = group_by_region(result.details)
    if not grouped:
        st.write("_No independent records were returned._")
    for region, entries in grouped.items():
        with st.expander(f"{region} ({len(entries)} independent records)", expanded=True):
            for detail in entries:
                _render_detail(detail)

    if result.grounding_sources:
        st.markdown("### 🔗 Grounded evidence (direct links from regulatory portals)")
        for link in result.grounding_sources:
            st.markdown(f"- [{link.title}]({link.uri})  \n  `{link.uri}`")

    json_bytes, csv_bytes = make_downloads(result)
    c1, c2 = st.columns(2)
    with c1:
        st.download_button(
            "⬇️ Download JSON", data=json_bytes, file_name="compliance_audit.json",
            mime="application/json", key="dl_json"
        )
    with c2:
        st.download_button(
            "⬇️ Download CSV", data=csv_bytes, file_name="compliance_audit.csv",
            mime="text/csv", key="dl_csv"
        )


def _approvals_frame(approvals) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Region": a.region,
                "Date": a.date,
                "Ingredient": a.name,
                "CAS": a.cas or "N/A",
                "Agency": a.agency,
                "Category": a.category,
                "Regulatory ID": a.regulatory_id,
                "Link": a.url or "",
            }
            for a in approvals
        ]
    )


dashboard, library, radar = st.tabs(["Audit Dashboard", "Evidence Base", "Risk Radar"])

# ----------------------------------------------------
# Dashboard: approvals feed + search
# ----------------------------------------------------
with dashboard:
    st.markdown("### 🆕 Latest approvals")
    if st.button("🔄 Sync feed"):
        with st.spinner("Fetching recent approvals…"):
            latest = refresh_approvals(backend)
        if latest:
            st.success(f"Feed updated with {len(latest)} approvals.")
        else:
            st.warning("Refresh returned nothing; keeping the previous feed.")
        st.session_state.approvals = apply_feed_refresh(st.session_state.approvals, latest)

    st.dataframe(
        _approvals_frame(st.session_state.approvals),
        use_container_width=True,
        hide_index=True,
        column_config={"Link": st.column_config.LinkColumn("Link")},
    )

    st.markdown("### 🔎 Precision audit")
    with st.form("search_form"):
        query = st.text_input(
            "Ingredient",
            value=st.session_state.query,
            placeholder="Enter an ingredient name to audit against official registers (e.g. ergothioneine)…",
            label_visibility="collapsed",
        )
        submitted = st.form_submit_button("🔬 Run official audit")

    if submitted and query.strip():
        st.session_state.query = query
        st.session_state.result = None
        with st.spinner("Locking onto official portals and tracing GRN / filing IDs…"):
            st.session_state.result = search_ingredient(backend, query)

    if st.session_state.result is not None:
        _render_result(st.session_state.result)

# ----------------------------------------------------
# Evidence base: official portals
# ----------------------------------------------------
with library:
    st.markdown("### 📚 Official regulatory portal access points")
    cols = st.columns(len(PORTALS))
    for col, (region, portals) in zip(cols, PORTALS.items()):
        with col:
            st.markdown(f"#### {region}")
            for title, desc, url in portals:
                st.markdown(f"**[{title}]({url})**  \n{desc}")

# ----------------------------------------------------
# Risk radar: regulatory shifts
# ----------------------------------------------------
with radar:
    st.markdown("### 📡 Regulatory risk radar")
    for a in MOCK_ALERTS:
        color = COLORS["danger"] if a.severity == "high" else COLORS["warning"]
        st.markdown(
            badge(a.type, color) + f"<small>{a.date} · {a.region}</small>",
            unsafe_allow_html=True,
        )
        st.markdown(f"**{a.title}**")
        st.caption(
            "Audit reminder: this policy change may affect historical filings; "
            "re-check each affected record against its filing number."
        )
        st.markdown("---")
