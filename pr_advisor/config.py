"""Centralised configuration and constants."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# ── Paths ───────────────────────────────────────────────────────────────────
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
DATA_DIR: Path = PROJECT_ROOT / "data"
RAW_DIR: Path = DATA_DIR / "raw"

# ── GitHub API ──────────────────────────────────────────────────────────────
GITHUB_TOKEN: str | None = os.getenv("GITHUB_TOKEN")
GITHUB_API_BASE: str = "https://api.github.com"
REQUEST_TIMEOUT: int = 30  # seconds
RATE_LIMIT_BUFFER: int = 5
RETRY_MAX: int = 3
RETRY_BACKOFF: float = 2.0  # seconds, exponential base

# ── Repository files ───────────────────────────────────────────────────────
CODEOWNERS_PATHS: tuple[str, ...] = (
    ".github/CODEOWNERS",
    "CODEOWNERS",
    "docs/CODEOWNERS",
)
REVIEWER_CONFIG_PATH: str = ".github/reviewer-config.yml"

# ── Bot heuristic ──────────────────────────────────────────────────────────
BOT_SUFFIX: str = "[bot]"
AUTOMATION_ACCOUNTS: frozenset[str] = frozenset({"github-actions"})

# ── Signal weights ─────────────────────────────────────────────────────────
COMMIT_HISTORY_WEIGHT: float = 1
CODEOWNERS_WEIGHT: float = 4
LATENCY_WEIGHT: float = 1
REQUIRED_REVIEWER_FLOOR: int = 10
REQUIRED_REVIEWER_BOOST: int = 5

# ── Attribution ────────────────────────────────────────────────────────────
PER_FILE_COMMIT_CAP: int = 30
MAX_AUTHORS_PER_FILE: int = 10
AUTHOR_RANK_WEIGHTS: tuple[int, ...] = (3, 2)  # everyone after gets 1

# ── Cross-repo expertise ───────────────────────────────────────────────────
CROSS_REPO_MAX_PATHS: int = 5
CROSS_REPO_COMMITS_PER_PATH: int = 10
CROSS_REPO_MAX_BONUS: int = 5

# ── Timing ─────────────────────────────────────────────────────────────────
LATENCY_PRS_MIN: int = 5
LATENCY_PRS_MAX: int = 50
# (max median hours, bonus points), checked in order
LATENCY_BONUS_STEPS: tuple[tuple[float, int], ...] = (
    (4, 6),
    (12, 4),
    (24, 2),
    (48, 1),
)
TIMEZONE_LOCAL_CENTER_HOUR: int = 14  # 2pm local
TIMEZONE_BONUS_STEPS: tuple[tuple[float, int], ...] = (
    (4, 3),
    (8, 1),
)

# ── Load & reliability ─────────────────────────────────────────────────────
LOAD_OPEN_PRS: int = 100
LOAD_PENALTY_DIVISOR: float = 3
FLAKY_CLOSED_PRS: int = 30
FLAKY_OPEN_PRS: int = 50
FLAKY_MIN_REQUESTS: int = 3
FLAKY_PENALTY: float = 0.5

# ── Confidence ─────────────────────────────────────────────────────────────
HIGH_MIN_SCORE: int = 12
HIGH_MIN_COVERAGE: float = 0.5
HIGH_MIN_SEPARATION: float = 0.25
MEDIUM_MIN_SCORE: int = 6
MEDIUM_MIN_COVERAGE: float = 0.25

# ── PR context ─────────────────────────────────────────────────────────────
PR_FILES_PAGE_SIZE: int = 100
PR_FILES_MAX: int = 500
REVIEW_PAGE_SIZE: int = 100

# ── Size buckets ───────────────────────────────────────────────────────────
SIZE_ORDER: tuple[str, ...] = ("XS", "S", "M", "L", "XL")
# XS/S/M/L upper bounds; anything larger is XL
SIZE_LINE_THRESHOLDS: tuple[int, ...] = (50, 200, 500, 1000)
SIZE_FILE_THRESHOLDS: tuple[int, ...] = (2, 5, 15, 30)
SIZE_THRESHOLD_MAX: int = 1_000_000
SIZE_IGNORE_PATTERNS: tuple[str, ...] = (
    "dist/**",
    "*.min.js",
    "*.min.css",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "*.generated.*",
)
SIZE_DIR_DEPTH: int = 2
SIZE_TOP_DIRS: int = 5
SIZE_SPLIT_DIRS: int = 3


# ── Input parsing ──────────────────────────────────────────────────────────

_TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "n", "off"})
_TIMEZONE_RE = re.compile(r"UTC([+-]?\d+)", re.IGNORECASE)


def to_bool(value: object, default: bool = False) -> bool:
    """Parse a yes/no style input; anything unrecognised yields *default*."""
    if value is None:
        return default
    v = str(value).strip().lower()
    if v in _TRUE_VALUES:
        return True
    if v in _FALSE_VALUES:
        return False
    return default


def clamp_int(value: object, default: int, lo: int, hi: int) -> int:
    """Parse an integer input and clamp it into ``[lo, hi]``.

    Empty or non-numeric input falls back to *default* (unclamped).
    """
    raw = default if value is None or str(value).strip() == "" else value
    try:
        n = int(str(raw).strip())
    except ValueError:
        logger.warning("Not an integer: %r; using %d", value, default)
        return default
    return max(lo, min(hi, n))


def parse_comma_separated(value: str | None) -> tuple[str, ...]:
    """Split ``"a, B,,c"`` into ``("a", "b", "c")``."""
    return tuple(
        part.strip().lower() for part in (value or "").split(",") if part.strip()
    )


def parse_timezone_offset(value: str | None) -> int | None:
    """Parse ``"UTC+2"`` / ``"utc-5"`` into a signed hour offset.

    Anything else is treated as absent.
    """
    if not value:
        return None
    match = _TIMEZONE_RE.search(value)
    if match is None:
        logger.warning("Unrecognised timezone %r; ignoring", value)
        return None
    return int(match.group(1))


# ── Run configuration ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class ReviewerConfig:
    """Options recognised by the reviewer-suggestion engine."""

    max_reviewers: int = 3
    lookback_days: int = 90
    max_files: int = 50
    use_codeowners: bool = True
    use_latency: bool = True
    latency_prs: int = 20
    penalize_load: bool = True
    exclude_reviewers: tuple[str, ...] = ()
    cross_repos: tuple[str, ...] = ()
    required_reviewers: tuple[str, ...] = ()
    prefer_timezone: int | None = None
    show_breakdown: bool = False
    detect_flaky: bool = False

    @classmethod
    def from_inputs(cls, inputs: Mapping[str, str | None]) -> ReviewerConfig:
        """Build a config from raw string inputs (action inputs, CLI flags).

        Keys match the field names; missing keys keep their defaults.
        """
        d = cls()
        return cls(
            max_reviewers=clamp_int(inputs.get("max_reviewers"), d.max_reviewers, 1, 10),
            lookback_days=clamp_int(inputs.get("lookback_days"), d.lookback_days, 1, 365),
            max_files=clamp_int(inputs.get("max_files"), d.max_files, 1, PR_FILES_MAX),
            use_codeowners=to_bool(inputs.get("use_codeowners"), d.use_codeowners),
            use_latency=to_bool(inputs.get("use_latency"), d.use_latency),
            latency_prs=clamp_int(
                inputs.get("latency_prs"), d.latency_prs, LATENCY_PRS_MIN, LATENCY_PRS_MAX
            ),
            penalize_load=to_bool(inputs.get("penalize_load"), d.penalize_load),
            exclude_reviewers=parse_comma_separated(inputs.get("exclude_reviewers")),
            # repo names keep their case
            cross_repos=tuple(
                r.strip() for r in (inputs.get("cross_repos") or "").split(",") if r.strip()
            ),
            required_reviewers=tuple(
                r.strip().lstrip("@")
                for r in (inputs.get("required_reviewers") or "").split(",")
                if r.strip()
            ),
            prefer_timezone=parse_timezone_offset(inputs.get("prefer_timezone")),
            show_breakdown=to_bool(inputs.get("show_breakdown"), d.show_breakdown),
            detect_flaky=to_bool(inputs.get("detect_flaky"), d.detect_flaky),
        )


@dataclass(frozen=True)
class SizeConfig:
    """Size bucket thresholds and the files left out of the count."""

    line_thresholds: tuple[int, ...] = SIZE_LINE_THRESHOLDS
    file_thresholds: tuple[int, ...] = SIZE_FILE_THRESHOLDS
    ignore_patterns: tuple[str, ...] = SIZE_IGNORE_PATTERNS

    @classmethod
    def from_inputs(cls, inputs: Mapping[str, str | None]) -> SizeConfig:
        """Read ``xs_lines`` … ``l_files`` and ``size_ignore``.

        Each threshold is clamped to at least the one before it. An empty
        ``size_ignore`` keeps the default patterns; ``none`` disables them.
        """
        raw_ignore = (inputs.get("size_ignore") or "").strip()
        if not raw_ignore:
            ignore = SIZE_IGNORE_PATTERNS
        elif raw_ignore.lower() == "none":
            ignore = ()
        else:
            ignore = tuple(p.strip() for p in raw_ignore.split(",") if p.strip())
        return cls(
            line_thresholds=_ascending_thresholds(inputs, "lines", SIZE_LINE_THRESHOLDS),
            file_thresholds=_ascending_thresholds(inputs, "files", SIZE_FILE_THRESHOLDS),
            ignore_patterns=ignore,
        )


def _ascending_thresholds(
    inputs: Mapping[str, str | None], unit: str, defaults: tuple[int, ...]
) -> tuple[int, ...]:
    values: list[int] = []
    floor = 1
    for name, default in zip(("xs", "s", "m", "l"), defaults):
        raw = inputs.get(f"{name}_{unit}")
        floor = clamp_int(raw, max(default, floor), floor, SIZE_THRESHOLD_MAX)
        values.append(floor)
    return tuple(values)
