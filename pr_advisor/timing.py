"""Reviewer timing: review latency and time-of-day activity."""

from __future__ import annotations

import logging
import math
import statistics
from datetime import datetime

from pr_advisor.config import (
    LATENCY_BONUS_STEPS,
    LATENCY_PRS_MAX,
    LATENCY_PRS_MIN,
    TIMEZONE_BONUS_STEPS,
    TIMEZONE_LOCAL_CENTER_HOUR,
)
from pr_advisor.models import is_bot_login, round_half_up
from pr_advisor.sources import DataSourceError, ReviewDataSource

logger = logging.getLogger(__name__)


# ── Review latency ──────────────────────────────────────────────────────────

def compute_reviewer_latency(
    source: ReviewDataSource,
    since: datetime,
    max_closed_prs: int,
) -> dict[str, float]:
    """Median hours from PR creation to each reviewer's first review.

    Samples the most recently updated closed PRs created after *since*.
    Logins that never reviewed a sampled PR get no entry at all.
    """
    sample = max(LATENCY_PRS_MIN, min(LATENCY_PRS_MAX, max_closed_prs))
    pulls = source.list_pulls("closed", sample, sort="updated", direction="desc")

    per_reviewer: dict[str, list[float]] = {}
    for pr in pulls:
        if pr.closed_at is None and pr.merged_at is None:
            continue
        if pr.created_at < since:
            continue

        try:
            reviews = source.list_reviews(pr.number)
        except DataSourceError as exc:
            logger.warning("Review lookup for PR #%d failed: %s", pr.number, exc)
            continue

        first_by_user: dict[str, datetime] = {}
        for review in reviews:
            if is_bot_login(review.login) or review.submitted_at is None:
                continue
            seen = first_by_user.get(review.login)
            if seen is None or review.submitted_at < seen:
                first_by_user[review.login] = review.submitted_at

        for login, submitted in first_by_user.items():
            hours = (submitted - pr.created_at).total_seconds() / 3600
            if not math.isfinite(hours) or hours < 0:
                continue
            per_reviewer.setdefault(login, []).append(hours)

    return {login: statistics.median(hours) for login, hours in per_reviewer.items()}


def latency_bonus(median_hours: float | None) -> int:
    """Step bonus: faster median reviewers earn more points."""
    if median_hours is None:
        return 0
    for max_hours, points in LATENCY_BONUS_STEPS:
        if median_hours <= max_hours:
            return points
    return 0


def latency_reason(median_hours: float) -> str:
    return f"fast reviewer (~{round_half_up(median_hours)}h median)"


# ── Timezone ────────────────────────────────────────────────────────────────

def average_commit_hours(commit_hours: dict[str, list[int]]) -> dict[str, int]:
    """Mean UTC commit hour per login, rounded to the nearest hour."""
    return {
        login: round_half_up(sum(hours) / len(hours))
        for login, hours in commit_hours.items()
        if hours
    }


def preferred_center_hour(offset_hours: int) -> int:
    """UTC hour that is 2pm in the preferred timezone."""
    return (TIMEZONE_LOCAL_CENTER_HOUR - offset_hours) % 24


def timezone_bonus(avg_hour_utc: float | None, offset_hours: int | None) -> int:
    """3 points within 4h (circular) of the preferred center, 1 within 8h."""
    if avg_hour_utc is None or offset_hours is None:
        return 0
    diff = abs(avg_hour_utc - preferred_center_hour(offset_hours))
    distance = min(diff, 24 - diff)
    for max_distance, points in TIMEZONE_BONUS_STEPS:
        if distance <= max_distance:
            return points
    return 0
