"""Scoring and ranking of reviewer candidates.

Signals are added in this order, and the multiplicative load and flaky
penalties come after all of them:

    1. recent commits       3/2/1 per path by recency, x commit weight
    2. CODEOWNERS           flat bonus per (owner, file)
    3. fast reviewer        latency step bonus, x latency weight
    4. cross-repo expertise 1 per commit elsewhere, capped at 5
    5. timezone match       3 or 1 by distance from the preferred 2pm
    6. required reviewer    10 if unscored so far, else +5

The PR author and bot-like logins never receive credit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from pr_advisor.attribution import Attribution, weighted_authors
from pr_advisor.config import (
    CODEOWNERS_WEIGHT,
    COMMIT_HISTORY_WEIGHT,
    CROSS_REPO_MAX_BONUS,
    LATENCY_WEIGHT,
    REQUIRED_REVIEWER_BOOST,
    REQUIRED_REVIEWER_FLOOR,
    ReviewerConfig,
)
from pr_advisor.models import OwnershipRule, RankedCandidate, is_bot_login, round_half_up
from pr_advisor.ownership import owners_for_file
from pr_advisor.timing import (
    average_commit_hours,
    latency_bonus,
    latency_reason,
    timezone_bonus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignalWeights:
    """Multipliers for the weighted signals; 0 switches a signal off."""

    commit_history: float = COMMIT_HISTORY_WEIGHT
    codeowners: float = CODEOWNERS_WEIGHT
    latency: float = LATENCY_WEIGHT

    @classmethod
    def from_config(cls, config: ReviewerConfig) -> SignalWeights:
        return cls(
            codeowners=CODEOWNERS_WEIGHT if config.use_codeowners else 0,
            latency=LATENCY_WEIGHT if config.use_latency else 0,
        )


# ── Accumulator ─────────────────────────────────────────────────────────────

@dataclass
class CandidateSignal:
    """Running total for one login."""

    login: str
    score: float = 0.0
    reasons: list[str] = field(default_factory=list)
    breakdown: dict[str, float] = field(default_factory=dict)


class CandidateScores:
    """Insertion-ordered score table keyed case-insensitively by login.

    The first spelling seen for a login is the one reported. Ties in the
    final ranking keep this insertion order.
    """

    def __init__(self, pr_author: str | None) -> None:
        self._author = (pr_author or "").lower()
        self._signals: dict[str, CandidateSignal] = {}

    def eligible(self, login: str | None) -> bool:
        return not is_bot_login(login) and login.lower() != self._author

    def add(self, login: str | None, points: float, reason: str, signal: str) -> None:
        """Credit *login*; silently ignores the author and bots."""
        if not self.eligible(login):
            return
        entry = self._signals.setdefault(login.lower(), CandidateSignal(login=login))
        entry.score += points
        entry.breakdown[signal] = entry.breakdown.get(signal, 0) + points
        if reason and reason not in entry.reasons:
            entry.reasons.append(reason)

    def score_of(self, login: str) -> float:
        entry = self._signals.get(login.lower())
        return entry.score if entry else 0.0

    def __len__(self) -> int:
        return len(self._signals)

    def ranked(self) -> list[RankedCandidate]:
        """Candidates by descending score; equal scores keep first-seen order."""
        candidates = [
            RankedCandidate(
                login=s.login,
                score=round_half_up(s.score),
                reasons=list(s.reasons),
                breakdown=dict(s.breakdown),
            )
            for s in self._signals.values()
        ]
        return sorted(candidates, key=lambda c: c.score, reverse=True)


# ── Ranking ─────────────────────────────────────────────────────────────────

def rank_candidates(
    *,
    pr_author: str | None,
    changed_paths: list[str],
    attribution: Attribution,
    rules: list[OwnershipRule],
    latency: dict[str, float] | None = None,
    cross_repo: dict[str, int] | None = None,
    preferred_offset: int | None = None,
    required_reviewers: Iterable[str] = (),
    weights: SignalWeights = SignalWeights(),
) -> list[RankedCandidate]:
    """Combine every signal into one ranking (before exclusions and penalties)."""
    scores = CandidateScores(pr_author)

    for file_authors in attribution.file_authors:
        for login, weight in weighted_authors(file_authors):
            scores.add(login, weight * weights.commit_history, "recent commits", "commits")

    if weights.codeowners > 0 and rules:
        seen: set[tuple[str, str]] = set()
        for path in changed_paths:
            for owner in owners_for_file(rules, path):
                key = (owner.lower(), path)
                if key in seen:
                    continue
                seen.add(key)
                scores.add(owner, weights.codeowners, "CODEOWNERS", "codeowners")

    if weights.latency > 0 and latency:
        for login, median_hours in latency.items():
            bonus = latency_bonus(median_hours) * weights.latency
            if bonus > 0:
                scores.add(login, bonus, latency_reason(median_hours), "latency")

    for login, count in (cross_repo or {}).items():
        scores.add(login, min(count, CROSS_REPO_MAX_BONUS), "cross-repo expertise", "cross_repo")

    if preferred_offset is not None:
        for login, avg_hour in average_commit_hours(attribution.commit_hours).items():
            bonus = timezone_bonus(avg_hour, preferred_offset)
            if bonus > 0:
                scores.add(login, bonus, "timezone match", "timezone")

    for login in required_reviewers:
        if not scores.eligible(login):
            continue
        points = REQUIRED_REVIEWER_FLOOR if scores.score_of(login) == 0 else REQUIRED_REVIEWER_BOOST
        scores.add(login, points, "required reviewer", "required")

    logger.info("Scored %d candidates", len(scores))
    return scores.ranked()


def drop_excluded(
    ranked: list[RankedCandidate], excluded: set[str]
) -> list[RankedCandidate]:
    """Remove every candidate whose lower-cased login is excluded."""
    return [c for c in ranked if c.login.lower() not in excluded]
