"""Reviewer suggestion pipeline.

Gathers every signal through a ``ReviewDataSource``, ranks candidates,
applies exclusions and penalties, and labels the result. Each data
collection step may fail on its own; a failure only removes that signal.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from pr_advisor.attribution import collect_attribution, fetch_cross_repo_expertise
from pr_advisor.config import ReviewerConfig
from pr_advisor.confidence import compute_confidence, compute_team_coverage
from pr_advisor.exclusions import load_excluded_reviewers
from pr_advisor.load import (
    apply_flaky_penalty,
    apply_load_penalty,
    compute_open_review_counts,
    detect_flaky_reviewers,
)
from pr_advisor.models import PullRequestContext, ReviewerSuggestions, is_bot_login
from pr_advisor.ownership import load_ownership_rules
from pr_advisor.ranking import SignalWeights, drop_excluded, rank_candidates
from pr_advisor.sources import DataSourceError, ReviewDataSource
from pr_advisor.timing import compute_reviewer_latency

logger = logging.getLogger(__name__)


def existing_reviewers(context: PullRequestContext) -> list[str]:
    """Humans other than the author who already reviewed this PR, first-seen order."""
    author = context.author_login.lower()
    seen: dict[str, str] = {}
    for review in context.reviews:
        if is_bot_login(review.login) or review.login.lower() == author:
            continue
        seen.setdefault(review.login.lower(), review.login)
    return list(seen.values())


def suggest_reviewers(
    source: ReviewDataSource,
    context: PullRequestContext,
    config: ReviewerConfig = ReviewerConfig(),
    now: datetime | None = None,
) -> ReviewerSuggestions:
    """Rank reviewer candidates for the PR described by *context*.

    *now* anchors the lookback window; pass the capture time when replaying
    a snapshot so repeated runs see identical inputs.
    """
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=config.lookback_days)

    changed_paths = [f.path for f in context.files]
    considered = changed_paths[: config.max_files]
    if len(considered) < len(changed_paths):
        logger.info(
            "Considering the first %d of %d changed files", len(considered), len(changed_paths)
        )

    # Ownership
    rules = load_ownership_rules(source, context.head_sha) if config.use_codeowners else []

    # Commit history
    attribution = collect_attribution(source, context.full_name, considered, since)

    # Review latency
    latency: dict[str, float] = {}
    if config.use_latency:
        try:
            latency = compute_reviewer_latency(source, since, config.latency_prs)
            logger.info("Latency entries computed: %d", len(latency))
        except DataSourceError as exc:
            logger.warning("Latency computation failed (continuing): %s", exc)

    # Exclusions
    excluded = load_excluded_reviewers(source, context.head_sha, config.exclude_reviewers)

    # Cross-repo expertise
    cross_repo: dict[str, int] = {}
    if config.cross_repos:
        cross_repo = fetch_cross_repo_expertise(
            source, context.owner, config.cross_repos, changed_paths, since
        )

    # Flaky reviewers
    flaky: set[str] = set()
    if config.detect_flaky:
        try:
            flaky = detect_flaky_reviewers(source, since)
            if flaky:
                logger.info("Flaky reviewers detected: %s", ", ".join(sorted(flaky)))
        except DataSourceError as exc:
            logger.warning("Flaky detection failed (continuing): %s", exc)

    ranked = rank_candidates(
        pr_author=context.author_login,
        changed_paths=considered,
        attribution=attribution,
        rules=rules,
        latency=latency,
        cross_repo=cross_repo,
        preferred_offset=config.prefer_timezone,
        required_reviewers=config.required_reviewers,
        weights=SignalWeights.from_config(config),
    )
    ranked = drop_excluded(ranked, excluded)

    if config.penalize_load:
        try:
            counts = compute_open_review_counts(source)
            ranked = apply_load_penalty(ranked, counts)
        except DataSourceError as exc:
            logger.warning("Load computation failed (continuing): %s", exc)

    if flaky:
        ranked = apply_flaky_penalty(ranked, flaky)

    suggestions = ranked[: config.max_reviewers]
    confidence = compute_confidence(ranked, considered, rules, attribution.file_authors)
    logger.info(
        "Suggested %d of %d candidates (confidence %s)",
        len(suggestions),
        len(ranked),
        confidence.value,
    )

    return ReviewerSuggestions(
        suggestions=suggestions,
        ranked=ranked,
        confidence=confidence,
        team_coverage=compute_team_coverage(suggestions, rules),
        lookback_days=config.lookback_days,
        file_count=len(changed_paths),
        files_considered=len(considered),
        show_breakdown=config.show_breakdown,
        existing_reviewers=existing_reviewers(context),
    )
