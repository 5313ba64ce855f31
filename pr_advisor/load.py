"""Review load and reliability: who is busy, and who rarely follows through."""

from __future__ import annotations

import logging
from datetime import datetime

from pr_advisor.config import (
    FLAKY_CLOSED_PRS,
    FLAKY_MIN_REQUESTS,
    FLAKY_OPEN_PRS,
    FLAKY_PENALTY,
    LOAD_OPEN_PRS,
    LOAD_PENALTY_DIVISOR,
)
from pr_advisor.models import RankedCandidate, round_half_up
from pr_advisor.sources import DataSourceError, ReviewDataSource

logger = logging.getLogger(__name__)

FLAKY_REASON = "flaky reviewer"


# ── Load ────────────────────────────────────────────────────────────────────

def compute_open_review_counts(source: ReviewDataSource) -> dict[str, int]:
    """Open PRs per (lower-cased) login that still await their review."""
    counts: dict[str, int] = {}
    for pr in source.list_pulls("open", LOAD_OPEN_PRS):
        for login in pr.requested_reviewers:
            key = login.lower()
            counts[key] = counts.get(key, 0) + 1
    return counts


def load_multiplier(open_reviews: int) -> float:
    """``1 / (1 + n/3)``: 1.0 when idle, shrinking but never reaching zero."""
    return 1 / (1 + open_reviews / LOAD_PENALTY_DIVISOR)


def apply_load_penalty(
    ranked: list[RankedCandidate], counts: dict[str, int]
) -> list[RankedCandidate]:
    """Scale every score by its load multiplier and re-sort (stable)."""
    for candidate in ranked:
        open_reviews = counts.get(candidate.login.lower(), 0)
        candidate.open_reviews = open_reviews
        candidate.score = round_half_up(candidate.score * load_multiplier(open_reviews))
    return sorted(ranked, key=lambda c: c.score, reverse=True)


# ── Flaky reviewers ─────────────────────────────────────────────────────────

def detect_flaky_reviewers(
    source: ReviewDataSource,
    since: datetime,
) -> set[str]:
    """Lower-cased logins requested on many open PRs but seldom reviewing.

    Reviews are counted over recently closed PRs (created after *since*),
    requests over the currently open ones. A login is flaky with at least
    ``FLAKY_MIN_REQUESTS`` requests and fewer reviewed PRs than requests.
    """
    reviewed_counts: dict[str, int] = {}
    closed = source.list_pulls("closed", FLAKY_CLOSED_PRS, sort="updated", direction="desc")
    for pr in closed:
        if pr.created_at < since:
            continue
        try:
            reviews = source.list_reviews(pr.number)
        except DataSourceError as exc:
            logger.warning("Review lookup for PR #%d failed: %s", pr.number, exc)
            continue
        for login in {r.login.lower() for r in reviews if r.login}:
            reviewed_counts[login] = reviewed_counts.get(login, 0) + 1

    requested_counts: dict[str, int] = {}
    for pr in source.list_pulls("open", FLAKY_OPEN_PRS):
        for login in pr.requested_reviewers:
            key = login.lower()
            requested_counts[key] = requested_counts.get(key, 0) + 1

    return {
        login
        for login, requested in requested_counts.items()
        if requested >= FLAKY_MIN_REQUESTS and reviewed_counts.get(login, 0) < requested
    }


def apply_flaky_penalty(
    ranked: list[RankedCandidate], flaky: set[str]
) -> list[RankedCandidate]:
    """Halve flaky candidates' scores, tag them once, and re-sort (stable)."""
    for candidate in ranked:
        if candidate.login.lower() not in flaky:
            continue
        candidate.score = round_half_up(candidate.score * FLAKY_PENALTY)
        if FLAKY_REASON not in candidate.reasons:
            candidate.reasons.append(FLAKY_REASON)
    return sorted(ranked, key=lambda c: c.score, reverse=True)
