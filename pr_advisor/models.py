"""Domain models for reviewer suggestions."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pr_advisor.config import AUTOMATION_ACCOUNTS, BOT_SUFFIX


def round_half_up(value: float) -> int:
    """Round .5 upwards (``round()`` would send 2.5 to 2)."""
    return math.floor(value + 0.5)


def is_bot_login(login: str | None) -> bool:
    """Return True for missing logins and anything that looks automated."""
    if not login:
        return True
    lowered = login.lower()
    return (
        login.endswith(BOT_SUFFIX)
        or "bot" in lowered
        or lowered in AUTOMATION_ACCOUNTS
    )


@dataclass(frozen=True)
class ChangedFile:
    """A single file touched in the pull request under review."""

    path: str
    additions: int = 0
    deletions: int = 0

    @property
    def churn(self) -> int:
        """Total lines changed (additions + deletions)."""
        return self.additions + self.deletions


@dataclass(frozen=True)
class ReviewEvent:
    """A review submitted on a pull request."""

    login: str
    state: str  # APPROVED, CHANGES_REQUESTED, COMMENTED, DISMISSED
    submitted_at: datetime | None = None


@dataclass(frozen=True)
class CommitRecord:
    """One commit touching a path. ``author_login`` is None for unlinked authors."""

    author_login: str | None
    authored_at: datetime | None = None


@dataclass(frozen=True)
class PullSummary:
    """A row from a pull-request listing."""

    number: int
    author_login: str | None
    created_at: datetime
    closed_at: datetime | None = None
    merged_at: datetime | None = None
    requested_reviewers: tuple[str, ...] = ()


@dataclass(frozen=True)
class OwnershipRule:
    """One CODEOWNERS line: a path pattern and who owns it."""

    pattern: str
    owners: tuple[str, ...]
    teams: tuple[str, ...] = ()


@dataclass(frozen=True)
class PullRequestContext:
    """Everything the engine needs to know about the PR being triaged."""

    owner: str
    repo: str
    number: int
    author_login: str
    head_sha: str | None = None
    files: tuple[ChangedFile, ...] = ()
    reviews: tuple[ReviewEvent, ...] = ()

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class RankedCandidate:
    """A suggested reviewer with the evidence behind the score."""

    login: str
    score: int
    reasons: list[str] = field(default_factory=list)
    open_reviews: int | None = None
    breakdown: dict[str, float] = field(default_factory=dict)


class Confidence(str, Enum):
    """How much to trust the ranking."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


@dataclass(frozen=True)
class TeamCoverage:
    """How many of the final suggestions belong to a CODEOWNERS team roster."""

    team: str
    count: int
    total: int


@dataclass
class ReviewerSuggestions:
    """Result of one reviewer-suggestion run."""

    suggestions: list[RankedCandidate]
    ranked: list[RankedCandidate]
    confidence: Confidence
    team_coverage: list[TeamCoverage]
    lookback_days: int
    file_count: int
    files_considered: int
    show_breakdown: bool = False
    existing_reviewers: list[str] = field(default_factory=list)

    @property
    def no_strong_candidates(self) -> bool:
        """True when nobody cleared any scoring threshold."""
        return not self.suggestions


@dataclass(frozen=True)
class DirectoryStats:
    """Changed files and lines under one directory."""

    directory: str
    files: int
    lines: int


@dataclass
class SizeReport:
    """Size bucket of a pull request and where its changes are concentrated."""

    additions: int
    deletions: int
    file_count: int
    size: str
    ignored_count: int = 0
    top_directories: list[DirectoryStats] = field(default_factory=list)
    split_suggestions: list[DirectoryStats] = field(default_factory=list)

    @property
    def total_changed(self) -> int:
        return self.additions + self.deletions
