"""Markdown rendering of a reviewer-suggestion run."""

from __future__ import annotations

from pr_advisor.models import RankedCandidate, ReviewerSuggestions, SizeReport

NO_CANDIDATES_MESSAGE = (
    "No strong candidates found (not enough history, no CODEOWNERS match, "
    "or only bots/author matched)."
)
FOOTNOTE = "_Notes: excludes PR author and bots; heuristic-based._"


def _candidate_line(candidate: RankedCandidate, already_reviewed: set[str]) -> str:
    load = f", {candidate.open_reviews} open reviews" if candidate.open_reviews is not None else ""
    why = f" — {', '.join(candidate.reasons)}" if candidate.reasons else ""
    done = " (already reviewed)" if candidate.login.lower() in already_reviewed else ""
    return f"- @{candidate.login} (score: {candidate.score}{load}){why}{done}"


def _breakdown_table(suggestions: list[RankedCandidate]) -> list[str]:
    lines = [
        "**Signal breakdown:**",
        "",
        "| Reviewer | Score | Signals |",
        "|----------|------:|--------|",
    ]
    for s in suggestions:
        signals = ", ".join(s.reasons) or "-"
        load = f" ({s.open_reviews} open)" if s.open_reviews is not None else ""
        lines.append(f"| @{s.login} | {s.score}{load} | {signals} |")
    return lines


def format_reviewer_section(result: ReviewerSuggestions) -> str:
    """Render the "Reviewer Suggestions" block of the PR advisor comment."""
    lines = [
        "#### Reviewer Suggestions",
        "",
        "Based on:",
        f"- commit history in the last **{result.lookback_days} days**",
        f"- changed files: **{result.files_considered}**",
        f"- confidence: **{result.confidence.value}**",
        "",
    ]

    if result.no_strong_candidates:
        lines.append(NO_CANDIDATES_MESSAGE)
        return "\n".join(lines) + "\n"

    already_reviewed = {login.lower() for login in result.existing_reviewers}
    lines.extend(_candidate_line(s, already_reviewed) for s in result.suggestions)

    if result.team_coverage:
        lines += ["", "**Team coverage:**"]
        lines.extend(
            f"- {t.team}: {t.count}/{t.total} suggestions" for t in result.team_coverage
        )

    if result.show_breakdown:
        lines.append("")
        lines.extend(_breakdown_table(result.suggestions))

    lines += ["", FOOTNOTE]
    return "\n".join(lines) + "\n"


SIZE_NOTE = "_Notes: size is based on the larger of file-count bucket and line-change bucket._"


def format_size_section(report: SizeReport) -> str:
    """Render the "Size Summary" block: totals, bucket, hot directories, split hint."""
    lines = [
        "#### Size Summary",
        "",
        f"Files changed: **{report.file_count:,}**",
        "",
        f"Lines added: **+{report.additions:,}**  ",
        f"Lines removed: **-{report.deletions:,}**  ",
        f"Total changed: **{report.total_changed:,}**",
        "",
        f"Size: **{report.size}**",
    ]
    if report.ignored_count:
        plural = "" if report.ignored_count == 1 else "s"
        lines.append(f"_({report.ignored_count} generated/lock file{plural} excluded)_")

    if report.top_directories:
        lines += [
            "",
            "**Top changed directories:**",
            "",
            "| Directory | Files | Lines |",
            "|-----------|------:|------:|",
        ]
        lines.extend(
            f"| `{d.directory}` | {d.files:,} | {d.lines:,} |" for d in report.top_directories
        )

    if report.split_suggestions:
        lines += ["", "**Split recommendation:** This PR is large; consider splitting it:"]
        lines.extend(f"- `{d.directory}` ({d.lines:,} lines)" for d in report.split_suggestions)

    lines += ["", SIZE_NOTE]
    return "\n".join(lines) + "\n"
