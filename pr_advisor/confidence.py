"""Confidence label and team coverage for a finished ranking."""

from __future__ import annotations

from pr_advisor.attribution import FileAuthors
from pr_advisor.config import (
    HIGH_MIN_COVERAGE,
    HIGH_MIN_SCORE,
    HIGH_MIN_SEPARATION,
    MEDIUM_MIN_COVERAGE,
    MEDIUM_MIN_SCORE,
)
from pr_advisor.models import Confidence, OwnershipRule, RankedCandidate, TeamCoverage
from pr_advisor.ownership import owners_for_file, team_rosters


def signal_coverage(
    changed_paths: list[str],
    rules: list[OwnershipRule],
    file_authors: list[FileAuthors],
) -> float:
    """Fraction of changed files backed by commit history or CODEOWNERS.

    Commit coverage is approximated by the number of paths with authors;
    the better of the two sources wins.
    """
    total = len(changed_paths)
    if not total:
        return 0.0

    covered = 0
    if file_authors:
        covered = min(total, max(1, len(file_authors)))
    if rules:
        owned = sum(1 for path in changed_paths if owners_for_file(rules, path))
        covered = max(covered, owned)
    return covered / total


def score_separation(ranked: list[RankedCandidate]) -> float:
    """``(top - second) / top``, or 0 when nobody scored."""
    top = ranked[0].score if ranked else 0
    second = ranked[1].score if len(ranked) > 1 else 0
    if top <= 0:
        return 0.0
    return (top - second) / top


def compute_confidence(
    ranked: list[RankedCandidate],
    changed_paths: list[str],
    rules: list[OwnershipRule],
    file_authors: list[FileAuthors],
) -> Confidence:
    """Label the ranking High / Medium / Low.

    *ranked* is the full ranking after penalties, before truncation.
    """
    top = ranked[0].score if ranked else 0
    coverage = signal_coverage(changed_paths, rules, file_authors)
    separation = score_separation(ranked)

    if top >= HIGH_MIN_SCORE and coverage >= HIGH_MIN_COVERAGE and separation >= HIGH_MIN_SEPARATION:
        return Confidence.HIGH
    if top >= MEDIUM_MIN_SCORE and coverage >= MEDIUM_MIN_COVERAGE:
        return Confidence.MEDIUM
    return Confidence.LOW


def compute_team_coverage(
    suggestions: list[RankedCandidate],
    rules: list[OwnershipRule],
) -> list[TeamCoverage]:
    """For each CODEOWNERS team, how many suggestions sit on its roster."""
    suggested = {s.login.lower() for s in suggestions}
    return [
        TeamCoverage(team=team, count=len(members & suggested), total=len(suggestions))
        for team, members in team_rosters(rules).items()
        if members
    ]
