"""Streamlit dashboard for PR reviewer suggestions."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from pr_advisor.config import ReviewerConfig, SizeConfig
from pr_advisor.models import ReviewerSuggestions
from pr_advisor.report import format_reviewer_section, format_size_section
from pr_advisor.size import analyze_size
from pr_advisor.sources import SnapshotDataSource
from pr_advisor.suggester import suggest_reviewers

RAW_DIR = Path(__file__).resolve().parent.parent / "data" / "raw"

SIGNAL_COLORS: dict[str, str] = {
    "commits": "#FF6B6B",
    "codeowners": "#4ECDC4",
    "latency": "#FFD93D",
    "cross_repo": "#6C5CE7",
    "timezone": "#A8E6CF",
    "required": "#2D3436",
}
SIGNAL_LABELS: dict[str, str] = {
    "commits": "Recent commits",
    "codeowners": "CODEOWNERS",
    "latency": "Fast reviewer",
    "cross_repo": "Cross-repo",
    "timezone": "Timezone",
    "required": "Required",
}


# ── Data loading (cached) ──────────────────────────────────────────────────

@st.cache_data
def _snapshot_files() -> list[str]:
    """Snapshot paths, newest first."""
    files = sorted(RAW_DIR.glob("snapshot_*.json"), key=lambda p: p.stat().st_mtime, reverse=True)
    return [str(p) for p in files]


@st.cache_data
def _load_snapshot(path: str) -> dict:
    return json.loads(Path(path).read_text())


def _rank(snapshot: dict, config: ReviewerConfig) -> ReviewerSuggestions:
    """Re-run the engine in memory against the frozen snapshot."""
    source = SnapshotDataSource(snapshot)
    return suggest_reviewers(source, source.context, config, now=source.captured_at)


def _ranking_frame(result: ReviewerSuggestions) -> pd.DataFrame:
    rows = []
    for rank, c in enumerate(result.ranked, 1):
        row = {
            "Rank": rank,
            "Reviewer": c.login,
            "Score": c.score,
            "Open reviews": c.open_reviews,
            "Suggested": rank <= len(result.suggestions),
            "Signals": ", ".join(c.reasons),
        }
        for signal, label in SIGNAL_LABELS.items():
            row[label] = c.breakdown.get(signal, 0)
        rows.append(row)
    return pd.DataFrame(rows)


# ── Dashboard ───────────────────────────────────────────────────────────────

def main() -> None:
    """Render the Streamlit dashboard."""
    st.set_page_config(page_title="PR Reviewer Suggestions", layout="wide")

    files = _snapshot_files()
    if not files:
        st.error(
            "No snapshot found. Capture one first:\n\n"
            "```bash\n"
            "python scripts/fetch.py OWNER/REPO PR\n"
            "```"
        )
        return

    # ── Sidebar filters ─────────────────────────────────────────────────
    with st.sidebar:
        st.header("Snapshot")
        path = st.selectbox("File", files, format_func=lambda p: Path(p).name)
        snapshot = _load_snapshot(path)
        if not snapshot.get("context"):
            st.error("This snapshot has no pull request context.")
            return

        inputs = snapshot.get("_metadata", {}).get("inputs", {})
        base = ReviewerConfig.from_inputs(inputs)

        st.header("Signals")
        max_reviewers = st.slider("Max reviewers", min_value=1, max_value=10, value=base.max_reviewers)
        use_codeowners = st.toggle("CODEOWNERS", value=base.use_codeowners)
        use_latency = st.toggle("Review latency", value=base.use_latency)
        penalize_load = st.toggle(
            "Penalize review load", value=base.penalize_load,
            help="score × 1 / (1 + open_reviews / 3)",
        )
        detect_flaky = st.toggle(
            "Detect flaky reviewers", value=base.detect_flaky,
            help="Halves the score of reviewers with ≥3 open requests "
                 "who reviewed fewer PRs than they were asked to.",
        )
        show_breakdown = st.toggle("Show breakdown table", value=base.show_breakdown)

    config = replace(
        base,
        max_reviewers=max_reviewers,
        use_codeowners=use_codeowners,
        use_latency=use_latency,
        penalize_load=penalize_load,
        show_breakdown=show_breakdown,
        detect_flaky=detect_flaky,
    )
    result = _rank(snapshot, config)
    files = SnapshotDataSource(snapshot).context.files
    size = analyze_size(files, SizeConfig.from_inputs(inputs))
    meta = snapshot.get("_metadata", {})

    # ── Compact header ───────────────────────────────────────────────────
    col_h1, col_h2 = st.columns([3, 2])
    with col_h1:
        st.markdown(
            f"## {meta.get('repository', '?')} #{meta.get('pr_number', '?')}"
        )
        st.caption("Commit history · CODEOWNERS · review latency · load")
    with col_h2:
        col_c, col_s = st.columns(2)
        col_c.metric("Confidence", result.confidence.value)
        col_s.metric(
            "Size", size.size,
            help=f"{size.total_changed:,} lines in {size.file_count} files",
        )
        st.caption(
            f"{result.files_considered} of {result.file_count} files · "
            f"last {result.lookback_days} days · captured {meta.get('captured_at', 'unknown')}"
        )

    if result.no_strong_candidates:
        st.warning("No strong candidates found for this PR.")
        return

    df = _ranking_frame(result)

    # ── Side-by-side: table (left) + chart (right) ──────────────────────
    col_table, col_chart = st.columns([3, 2])

    with col_table:
        st.markdown(f"**{len(df)} candidates**")
        st.dataframe(
            df[["Rank", "Reviewer", "Score", "Open reviews", "Suggested", "Signals"]],
            use_container_width=True,
            hide_index=True,
        )

    with col_chart:
        st.markdown("**Points by signal (before penalties)**")
        top = df.head(max(max_reviewers, 5))
        fig = go.Figure()
        for signal, label in SIGNAL_LABELS.items():
            if top[label].sum() == 0:
                continue
            fig.add_trace(go.Bar(
                x=top["Reviewer"],
                y=top[label],
                name=label,
                marker_color=SIGNAL_COLORS[signal],
            ))
        fig.update_layout(
            barmode="stack",
            xaxis_title="Reviewer",
            yaxis_title="Points",
            legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
            margin=dict(t=10, b=40, l=50, r=10),
            height=280,
        )
        st.plotly_chart(fig, use_container_width=True)

    # ── Comment preview ──────────────────────────────────────────────────
    with st.expander("Comment preview"):
        st.markdown(format_size_section(size))
        st.markdown(format_reviewer_section(result))

    with st.expander("How Scoring Works"):
        st.markdown("""
| Signal | Points |
|---|---|
| **Recent commits** | 3 / 2 / 1 per changed file for its most recent authors |
| **CODEOWNERS** | 4 per owned changed file (last matching rule wins) |
| **Fast reviewer** | 6 / 4 / 2 / 1 for a median first review within 4 / 12 / 24 / 48h |
| **Cross-repo** | 1 per commit on the same paths elsewhere, at most 5 |
| **Timezone** | 3 within 4h of 2pm preferred-local, 1 within 8h |
| **Required** | 10 if otherwise unscored, else +5 |

Load and flaky penalties are applied afterwards:
`score × 1 / (1 + open_reviews / 3)`, then `score × 0.5` for flaky reviewers.
""")


if __name__ == "__main__":
    main()
