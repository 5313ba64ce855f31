"""Pull-request size: XS–XL bucket, hot directories and split hints.

Generated and lock files are dropped before counting. The bucket is the
larger of the line-change bucket and the file-count bucket.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pr_advisor.config import (
    SIZE_DIR_DEPTH,
    SIZE_ORDER,
    SIZE_SPLIT_DIRS,
    SIZE_TOP_DIRS,
    SizeConfig,
)
from pr_advisor.models import ChangedFile, DirectoryStats, SizeReport
from pr_advisor.ownership import glob_match

logger = logging.getLogger(__name__)

LARGE_SIZES = frozenset({"L", "XL"})


def is_ignored(path: str, patterns: Iterable[str]) -> bool:
    """True if *path* matches any ignore pattern (slash-less ones by base name)."""
    return any(glob_match(path, pattern) for pattern in patterns)


def split_ignored(
    files: Iterable[ChangedFile], patterns: Iterable[str]
) -> tuple[list[ChangedFile], int]:
    """``(counted files, number ignored)``."""
    patterns = tuple(patterns)
    counted: list[ChangedFile] = []
    ignored = 0
    for f in files:
        if is_ignored(f.path, patterns):
            ignored += 1
        else:
            counted.append(f)
    return counted, ignored


def size_bucket(value: int, thresholds: tuple[int, ...]) -> str:
    for name, upper in zip(SIZE_ORDER, thresholds):
        if value <= upper:
            return name
    return SIZE_ORDER[-1]


def larger_size(a: str, b: str) -> str:
    return max(a, b, key=SIZE_ORDER.index)


def directory_of(path: str, depth: int = SIZE_DIR_DEPTH) -> str:
    """``a/b/c/d.ts`` -> ``a/b``; shallow files map to their parent (or ``.``)."""
    segments = path.split("/")
    if len(segments) <= depth:
        return "/".join(segments[:-1]) or "."
    return "/".join(segments[:depth])


def top_changed_directories(
    files: Iterable[ChangedFile],
    depth: int = SIZE_DIR_DEPTH,
    limit: int = SIZE_TOP_DIRS,
) -> list[DirectoryStats]:
    """Directories by lines changed, largest first; ties keep first-seen order."""
    totals: dict[str, list[int]] = {}
    for f in files:
        entry = totals.setdefault(directory_of(f.path, depth), [0, 0])
        entry[0] += 1
        entry[1] += f.churn
    ranked = sorted(totals.items(), key=lambda item: item[1][1], reverse=True)
    return [DirectoryStats(d, files=n, lines=lines) for d, (n, lines) in ranked[:limit]]


def split_suggestions(files: list[ChangedFile], size: str) -> list[DirectoryStats]:
    """For L/XL changes spanning two or more directories, the largest ones."""
    if size not in LARGE_SIZES:
        return []
    directories = top_changed_directories(files, limit=len(files))
    if len(directories) < 2:
        return []
    return directories[:SIZE_SPLIT_DIRS]


def analyze_size(
    files: Iterable[ChangedFile], config: SizeConfig = SizeConfig()
) -> SizeReport:
    """Bucket the change after dropping ignored files."""
    counted, ignored = split_ignored(files, config.ignore_patterns)
    additions = sum(f.additions for f in counted)
    deletions = sum(f.deletions for f in counted)

    size = larger_size(
        size_bucket(additions + deletions, config.line_thresholds),
        size_bucket(len(counted), config.file_thresholds),
    )
    logger.info(
        "Size %s: %d files, %d lines changed (%d ignored)",
        size, len(counted), additions + deletions, ignored,
    )
    return SizeReport(
        additions=additions,
        deletions=deletions,
        file_count=len(counted),
        size=size,
        ignored_count=ignored,
        top_directories=top_changed_directories(counted),
        split_suggestions=split_suggestions(counted, size),
    )
