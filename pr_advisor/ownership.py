"""CODEOWNERS parsing and path ownership resolution.

Rules are kept in file order and resolution is *last match wins*: a later
line overrides every earlier line that also matches the path.
"""

from __future__ import annotations

import fnmatch
import logging
import re

from pr_advisor.config import CODEOWNERS_PATHS
from pr_advisor.models import OwnershipRule, is_bot_login
from pr_advisor.sources import DataSourceError, ReviewDataSource

logger = logging.getLogger(__name__)

_INLINE_COMMENT_RE = re.compile(r"\s+#")
_BRACE_RE = re.compile(r"\{([^{}]*,[^{}]*)\}")


# ── Parsing ─────────────────────────────────────────────────────────────────

def parse_codeowners(text: str | None) -> list[OwnershipRule]:
    """Turn CODEOWNERS text into ordered rules.

    Owner tokens lose one leading ``@``; tokens with a ``/`` are teams and
    stay owners as well. Bot owners are dropped, and a rule left with no
    owners is dropped with them.
    """
    rules: list[OwnershipRule] = []
    if not text:
        return rules

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        line = _INLINE_COMMENT_RE.split(line, maxsplit=1)[0].strip()
        parts = line.split()
        if len(parts) < 2:
            continue

        pattern = parts[0]
        raw_owners = [p[1:] if p.startswith("@") else p for p in parts[1:]]
        raw_owners = [o.strip() for o in raw_owners if o.strip()]
        owners = tuple(o for o in raw_owners if not is_bot_login(o))
        teams = tuple(o for o in raw_owners if "/" in o)

        if not owners:
            continue
        rules.append(OwnershipRule(pattern=pattern, owners=owners, teams=teams))

    return rules


# ── Matching ────────────────────────────────────────────────────────────────

def normalize_pattern(pattern: str) -> str:
    """``/x`` is anchored at the repo root; anything else matches at any depth."""
    if pattern.startswith("/"):
        return pattern[1:]
    return f"**/{pattern}"


def _match_parts(pattern_parts: list[str], path_parts: list[str]) -> bool:
    if not pattern_parts:
        return not path_parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        return any(
            _match_parts(rest, path_parts[i:]) for i in range(len(path_parts) + 1)
        )
    if not path_parts:
        return False
    return fnmatch.fnmatchcase(path_parts[0], head) and _match_parts(rest, path_parts[1:])


def expand_braces(pattern: str) -> list[str]:
    """``*.{js,ts}`` -> ``["*.js", "*.ts"]``, innermost groups first.

    A brace group without a comma is literal text.
    """
    match = _BRACE_RE.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end():]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option + tail))
    return expanded


def _glob_match_one(path: str, pattern: str) -> bool:
    if "/" not in pattern:
        return fnmatch.fnmatchcase(path.rsplit("/", 1)[-1], pattern)
    return _match_parts(pattern.split("/"), path.split("/"))


def glob_match(path: str, pattern: str) -> bool:
    """Segment-aware glob match.

    ``*``/``?``/``[...]`` never cross a ``/``, ``**`` spans any number of
    segments, ``{a,b}`` alternatives are expanded, dot-files are ordinary
    names. A pattern without a slash is matched against the path's base name.
    """
    return any(_glob_match_one(path, p) for p in expand_braces(pattern))


def owners_for_file(rules: list[OwnershipRule], path: str) -> tuple[str, ...]:
    """Owners of the last rule matching *path*, or ``()``."""
    matched: tuple[str, ...] = ()
    for rule in rules:
        if glob_match(path, normalize_pattern(rule.pattern)):
            matched = rule.owners
    return matched


def team_rosters(rules: list[OwnershipRule]) -> dict[str, set[str]]:
    """Map each team to the lower-cased owners of every rule naming it."""
    rosters: dict[str, set[str]] = {}
    for rule in rules:
        for team in rule.teams:
            rosters.setdefault(team, set()).update(o.lower() for o in rule.owners)
    return rosters


# ── Loading ─────────────────────────────────────────────────────────────────

def load_ownership_rules(
    source: ReviewDataSource, ref: str | None = None
) -> list[OwnershipRule]:
    """Parse the first CODEOWNERS file found at *ref*; no file means no rules."""
    for path in CODEOWNERS_PATHS:
        try:
            text = source.fetch_file_text(path, ref)
        except DataSourceError as exc:
            logger.warning("CODEOWNERS lookup at %s failed: %s", path, exc)
            continue
        if text:
            rules = parse_codeowners(text)
            logger.info("CODEOWNERS rules loaded from %s: %d", path, len(rules))
            return rules
    logger.info("No CODEOWNERS file found")
    return []
