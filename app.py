"""Streamlit dashboard for CampusHub: competitions browser and team allocator."""
from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from campushub.config import ASSIGNMENTS_FILE, SOURCES_PATH, get_env
from campushub.errors import NotFound, ValidationError
from campushub.log import get_logger
from campushub.services import get_aggregator, get_allocator

log = get_logger(__name__)

_GLASS_CSS = """
<style>
[data-testid="stAppViewContainer"] {
    background: linear-gradient(135deg, #e8eaf6 0%, #f3e5f5 40%, #e0f2f1 100%);
}
[data-testid="stSidebar"] {
    background: rgba(255,255,255,0.55);
    backdrop-filter: blur(16px);
    border-right: 1px solid rgba(255,255,255,0.3);
}
[data-testid="stMetric"], [data-testid="stForm"], [data-testid="stExpander"] {
    background: rgba(255,255,255,0.6);
    border-radius: 12px;
    border: 1px solid rgba(255,255,255,0.4);
    box-shadow: 0 4px 16px rgba(0,0,0,0.06);
}
.block-container { padding-top: 2rem; }
h1, h2, h3 { color: #1a1a2e; }
</style>
"""

# ── Helpers ──────────────────────────────────────────────────────────────


def _check(label: str, ok: bool) -> str:
    icon = "✅" if ok else "⬜"
    return f"{icon}  {label}"


def _status() -> dict[str, bool]:
    return {
        "sources": SOURCES_PATH.exists(),
        "proxy": bool(get_env("SCRAPER_PROVIDER") and get_env("SCRAPER_API_KEY")),
        "assignments": ASSIGNMENTS_FILE.exists(),
    }


def _skills_from_text(text: str) -> list[str]:
    return [s.strip() for s in text.replace("\n", ",").split(",") if s.strip()]


# ── Page: Competitions ───────────────────────────────────────────────────


def page_competitions() -> None:
    st.header("Competitions & Hackathons")
    aggregator = get_aggregator()

    c1, c2, c3 = st.columns([3, 1, 1])
    with c1:
        q = st.text_input("Search", placeholder="title, description or tag")
    with c2:
        upcoming = st.checkbox("Upcoming only", value=True)
    with c3:
        limit = st.number_input("Limit", 1, 200, 50)

    if st.button("Refresh sources", help="Drop the cache and fetch every source again"):
        aggregator.cache.clear()

    with st.spinner("Gathering competitions…"):
        result = aggregator.list_events(q=q, upcoming_only=upcoming, limit=limit)

    m1, m2 = st.columns(2)
    m1.metric("Events", result["count"])
    m2.metric("Served from", result["source"])

    if not result["items"]:
        st.info("No events found. Check **Sources** for failing feeds.")
        return

    for ev in result["items"]:
        with st.expander(f"{ev['title']}  ·  {ev['source']}"):
            if ev.get("start_date"):
                st.caption(f"Starts {ev['start_date']}" + (f" · ends {ev['end_date']}" if ev.get("end_date") else ""))
            if ev.get("description"):
                st.write(ev["description"][:600])
            if ev.get("tags"):
                st.caption(" · ".join(ev["tags"]))
            if ev.get("url"):
                st.markdown(f"[Open listing]({ev['url']})")


# ── Page: Allocator ──────────────────────────────────────────────────────


def _candidates_table(candidates) -> None:
    if not candidates:
        st.info("Nobody matches these skills or is available.")
        return

    import pandas as pd

    df = pd.DataFrame([c.to_dict() for c in candidates])
    df["matched"] = df["matched_required_skills"].apply(", ".join)
    display_cols = ["name", "coverage", "matched", "experience_level", "available", "composite_score"]

    st.dataframe(
        df[display_cols],
        use_container_width=True,
        column_config={
            "coverage": st.column_config.ProgressColumn("Coverage", min_value=0, max_value=1, format="%.2f"),
            "composite_score": st.column_config.NumberColumn("Score", format="%.2f"),
            "experience_level": "Experience",
        },
        hide_index=True,
    )


def page_allocator() -> None:
    st.header("Team Allocator")
    allocator = get_allocator()
    projects = allocator.load_projects()

    with st.form("allocate"):
        labels = ["— ad-hoc skills —"] + [f"{p.id} · {p.title or ', '.join(p.skills)}" for p in projects]
        choice = st.selectbox("Project", labels)
        skills_text = st.text_area("Required skills (comma separated)", help="Used when no project is selected")
        c1, c2 = st.columns(2)
        with c1:
            team_size = st.number_input("Team size", 1, 20, 3)
        with c2:
            persist = st.checkbox("Save assignments", value=False)
        reason = st.text_input("Reason", placeholder="Optional note stored with each assignment")
        submitted = st.form_submit_button("Allocate", type="primary", use_container_width=True)

    if submitted:
        project_id = None
        if choice != labels[0]:
            project_id = projects[labels.index(choice) - 1].id
        try:
            result = allocator.allocate(
                project_id=project_id,
                project_skills=_skills_from_text(skills_text),
                team_size=team_size,
                persist=persist,
                reason=reason,
            )
        except (ValidationError, NotFound) as exc:
            st.error(str(exc))
        else:
            st.success(f"Required: {', '.join(result.required_skills) or '—'}")
            _candidates_table(result.candidates)

    st.divider()
    st.subheader("Assignments")
    assignments = allocator.list_assignments()
    if not assignments:
        st.info("No saved assignments.")
        return
    for a in assignments:
        c1, c2 = st.columns([5, 1])
        c1.markdown(
            f"**{a.user_id}** → project `{a.project_id or 'ad-hoc'}` "
            f"· {a.coverage:.0%} · {a.assigned_at[:16]}"
            + (f"  \n_{a.reason}_" if a.reason else "")
        )
        if c2.button("Remove", key=f"rm_{a.id}"):
            allocator.unassign(a.id)
            st.rerun()


# ── Page: Sources ────────────────────────────────────────────────────────


def page_sources() -> None:
    st.header("Sources")
    aggregator = get_aggregator()
    sources = aggregator.list_sources()
    if not sources:
        st.warning(f"No sources configured — add some to `config/{SOURCES_PATH.name}`.")
        return

    st.dataframe(sources, use_container_width=True)
    ids = [s["id"] for s in sources]
    picked = st.selectbox("Test a source", ids)
    if st.button("Run fetch chain", type="primary"):
        with st.status(f"Fetching {picked}…", expanded=True) as sw:
            report = aggregator.debug_source(picked)
            if report["ok"]:
                sw.update(label=f"{report['item_count']} item(s)", state="complete")
                st.json(report["items_sample"])
            else:
                sw.update(label="All tiers failed", state="error")
                st.error(report["error"])


def _inject_css() -> None:
    st.markdown(_GLASS_CSS, unsafe_allow_html=True)


def _sidebar_status() -> None:
    with st.sidebar:
        st.divider()
        s = _status()
        st.markdown("**Status**")
        st.markdown(_check("Source list", s["sources"]))
        st.markdown(_check("Anti-bot proxy", s["proxy"]))
        st.markdown(_check("Assignment store", s["assignments"]))


def _wrap(page):
    def run() -> None:
        _inject_css()
        _sidebar_status()
        page()

    run.__name__ = page.__name__
    return run


pages = [
    st.Page(_wrap(page_competitions), title="Competitions", icon="🏆", url_path="competitions", default=True),
    st.Page(_wrap(page_allocator), title="Allocator", icon="🧩", url_path="allocator"),
    st.Page(_wrap(page_sources), title="Sources", icon="🛰️", url_path="sources"),
]

nav = st.navigation(pages)
nav.run()
