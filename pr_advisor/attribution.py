"""Commit attribution: who recently touched the changed paths."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pr_advisor.config import (
    AUTHOR_RANK_WEIGHTS,
    CROSS_REPO_COMMITS_PER_PATH,
    CROSS_REPO_MAX_PATHS,
    MAX_AUTHORS_PER_FILE,
    PER_FILE_COMMIT_CAP,
)
from pr_advisor.models import is_bot_login
from pr_advisor.sources import DataSourceError, ReviewDataSource

logger = logging.getLogger(__name__)


@dataclass
class FileAuthors:
    """Distinct human authors of one path, most recent first."""

    path: str
    authors: list[str]


@dataclass
class Attribution:
    """Per-path authors plus the UTC commit hours seen for each author."""

    file_authors: list[FileAuthors] = field(default_factory=list)
    commit_hours: dict[str, list[int]] = field(default_factory=dict)


def author_weight(rank: int) -> int:
    """3 for the most recent author, 2 for the next, 1 for everyone else."""
    if rank < len(AUTHOR_RANK_WEIGHTS):
        return AUTHOR_RANK_WEIGHTS[rank]
    return 1


def weighted_authors(file_authors: FileAuthors) -> list[tuple[str, int]]:
    """``(login, weight)`` for the first ``MAX_AUTHORS_PER_FILE`` authors."""
    return [
        (login, author_weight(i))
        for i, login in enumerate(file_authors.authors[:MAX_AUTHORS_PER_FILE])
    ]


def collect_attribution(
    source: ReviewDataSource,
    repo: str,
    paths: list[str],
    since: datetime,
    per_file_cap: int = PER_FILE_COMMIT_CAP,
) -> Attribution:
    """Fetch recent commits for each path and keep the human authors.

    A failed lookup for one path is logged and skipped. Paths with no human
    authors are left out of ``file_authors``.
    """
    result = Attribution()

    for path in paths:
        try:
            commits = source.list_commits(repo, path, since, per_file_cap)
        except DataSourceError as exc:
            logger.warning("Failed commit lookup for %s: %s", path, exc)
            continue

        authors: list[str] = []
        for commit in commits:
            login = commit.author_login
            if is_bot_login(login):
                continue
            if commit.authored_at is not None:
                result.commit_hours.setdefault(login, []).append(
                    commit.authored_at.astimezone(timezone.utc).hour
                )
            if login not in authors:
                authors.append(login)

        if authors:
            result.file_authors.append(FileAuthors(path=path, authors=authors))

    logger.info(
        "Commit attribution: %d/%d paths with human authors",
        len(result.file_authors),
        len(paths),
    )
    return result


def fetch_cross_repo_expertise(
    source: ReviewDataSource,
    owner: str,
    repos: Iterable[str],
    paths: list[str],
    since: datetime,
) -> dict[str, int]:
    """Count commits per author on the same paths in other repositories.

    *repos* entries are ``name`` (same owner) or ``owner/name``.
    """
    expertise: dict[str, int] = {}
    for repo in repos:
        full_name = repo if "/" in repo else f"{owner}/{repo}"
        for path in paths[:CROSS_REPO_MAX_PATHS]:
            try:
                commits = source.list_commits(
                    full_name, path, since, CROSS_REPO_COMMITS_PER_PATH
                )
            except DataSourceError as exc:
                logger.warning("Cross-repo lookup %s:%s failed: %s", full_name, path, exc)
                continue
            for commit in commits:
                login = commit.author_login
                if is_bot_login(login):
                    continue
                expertise[login] = expertise.get(login, 0) + 1

    logger.info("Cross-repo expertise entries: %d", len(expertise))
    return expertise
