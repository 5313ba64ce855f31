"""Reviewer exclusions: explicit inputs plus ``.github/reviewer-config.yml``."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

import yaml

from pr_advisor.config import REVIEWER_CONFIG_PATH
from pr_advisor.sources import DataSourceError, ReviewDataSource

logger = logging.getLogger(__name__)

_INLINE_EXCLUDE_RE = re.compile(r"exclude:\s*\[([^\]]+)\]")
_EXCLUDE_KEY_RE = re.compile(r"^exclude:", re.IGNORECASE)
_BLOCK_ITEM_RE = re.compile(r"^\s+-\s+")


def _clean_login(value: object) -> str:
    return str(value).strip().strip("'\"").lstrip("@").lower()


def _logins(entries: Iterable[object]) -> set[str]:
    return {login for login in (_clean_login(e) for e in entries if e is not None) if login}


def scan_exclude_list(text: str) -> set[str]:
    """Line-based reading of ``exclude:`` for files YAML rejects.

    Unquoted ``@login`` entries are not valid YAML, but are common in
    hand-written configs. Takes an inline ``[a, b]`` list if present,
    otherwise the ``- item`` lines under ``exclude:``.
    """
    inline = _INLINE_EXCLUDE_RE.search(text)
    if inline:
        return _logins(inline.group(1).split(","))

    entries: list[str] = []
    in_exclude = False
    for line in text.splitlines():
        if _EXCLUDE_KEY_RE.match(line.strip()):
            in_exclude = True
            continue
        if in_exclude and _BLOCK_ITEM_RE.match(line):
            entries.append(_BLOCK_ITEM_RE.sub("", line))
        elif in_exclude and line[:1].strip():
            in_exclude = False
    return _logins(entries)


def parse_reviewer_config(text: str | None) -> set[str]:
    """Return the lower-cased ``exclude`` logins from a reviewer config.

    Accepts ``exclude: [a, b]``, a block list, or a comma-separated string.
    Text YAML cannot parse goes through ``scan_exclude_list``; a parsed
    document of any other shape is an empty config.
    """
    if not text:
        return set()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.warning(
            "%s is not valid YAML (%s); scanning it line by line", REVIEWER_CONFIG_PATH, exc
        )
        return scan_exclude_list(text)
    if not isinstance(data, dict):
        return set()

    exclude = data.get("exclude")
    if isinstance(exclude, str):
        return _logins(exclude.split(","))
    if isinstance(exclude, list):
        return _logins(exclude)
    return set()


def load_excluded_reviewers(
    source: ReviewDataSource,
    ref: str | None,
    input_excludes: Iterable[str] = (),
) -> set[str]:
    """Merge explicit exclusions with the repository's reviewer config."""
    excluded = {_clean_login(login) for login in input_excludes if login}
    try:
        text = source.fetch_file_text(REVIEWER_CONFIG_PATH, ref)
    except DataSourceError as exc:
        logger.warning("Reviewer config lookup failed: %s", exc)
        text = None
    excluded |= parse_reviewer_config(text)
    excluded.discard("")
    if excluded:
        logger.info("Excluded reviewers: %s", ", ".join(sorted(excluded)))
    return excluded
