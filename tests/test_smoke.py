"""Smoke tests for the PR advisor package."""

from __future__ import annotations

import subprocess
import sys

import pytest

from pr_advisor.config import (
    ReviewerConfig,
    clamp_int,
    parse_comma_separated,
    parse_timezone_offset,
    to_bool,
)
from pr_advisor.models import ChangedFile, Confidence, is_bot_login, round_half_up


# ── Smoke tests ─────────────────────────────────────────────────────────────


def test_module_entry_point() -> None:
    """``python -m pr_advisor`` exits 0 and prints version info."""
    result = subprocess.run(
        [sys.executable, "-m", "pr_advisor"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
    assert "pr_advisor" in result.stdout


def test_imports() -> None:
    """All package modules are importable."""
    from pr_advisor import __version__
    from pr_advisor.config import CODEOWNERS_WEIGHT, GITHUB_API_BASE, PROJECT_ROOT
    from pr_advisor.github_client import GitHubClient  # noqa: F401
    from pr_advisor.report import format_reviewer_section  # noqa: F401
    from pr_advisor.sources import GitHubDataSource, SnapshotDataSource  # noqa: F401
    from pr_advisor.suggester import suggest_reviewers  # noqa: F401

    assert isinstance(__version__, str)
    assert PROJECT_ROOT.exists()
    assert GITHUB_API_BASE.startswith("https://")
    assert CODEOWNERS_WEIGHT == 4


def test_client_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    from pr_advisor import github_client

    monkeypatch.setattr(github_client, "GITHUB_TOKEN", None)
    with pytest.raises(ValueError, match="GITHUB_TOKEN"):
        github_client.GitHubClient()


# ── Model tests ─────────────────────────────────────────────────────────────


def test_changed_file_churn() -> None:
    fc = ChangedFile(path="src/api/handler.ts", additions=50, deletions=20)
    assert fc.churn == 70


@pytest.mark.parametrize(
    "login",
    ["dependabot[bot]", "renovate-bot", "RoBoT", "github-actions", "", None],
)
def test_bot_logins(login: str | None) -> None:
    assert is_bot_login(login) is True


@pytest.mark.parametrize("login", ["alice", "Bob-Smith", "octocat"])
def test_human_logins(login: str) -> None:
    assert is_bot_login(login) is False


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(4.5) == 5
    assert round_half_up(9.23) == 9
    assert round_half_up(0.49) == 0


def test_confidence_values() -> None:
    assert [c.value for c in Confidence] == ["High", "Medium", "Low"]


# ── Config parsing ──────────────────────────────────────────────────────────


def test_config_defaults() -> None:
    config = ReviewerConfig()
    assert config.max_reviewers == 3
    assert config.lookback_days == 90
    assert config.max_files == 50
    assert config.use_codeowners and config.use_latency and config.penalize_load
    assert config.latency_prs == 20
    assert config.detect_flaky is False
    assert config.prefer_timezone is None


def test_config_from_inputs() -> None:
    config = ReviewerConfig.from_inputs({
        "max_reviewers": "5",
        "lookback_days": "9999",
        "latency_prs": "2",
        "use_latency": "off",
        "detect_flaky": "yes",
        "exclude_reviewers": "Alice, bob,,",
        "required_reviewers": "@Carol, dave",
        "cross_repos": "Org/Other, sibling",
        "prefer_timezone": "UTC-5",
    })
    assert config.max_reviewers == 5
    assert config.lookback_days == 365
    assert config.latency_prs == 5
    assert config.use_latency is False
    assert config.detect_flaky is True
    assert config.exclude_reviewers == ("alice", "bob")
    assert config.required_reviewers == ("Carol", "dave")
    assert config.cross_repos == ("Org/Other", "sibling")
    assert config.prefer_timezone == -5


def test_config_from_empty_inputs_matches_defaults() -> None:
    assert ReviewerConfig.from_inputs({}) == ReviewerConfig()


def test_input_helpers() -> None:
    assert to_bool("TRUE") is True
    assert to_bool("n") is False
    assert to_bool("maybe", default=True) is True
    assert clamp_int("abc", 7, 1, 10) == 7
    assert clamp_int("", 7, 1, 10) == 7
    assert clamp_int("0", 7, 1, 10) == 1
    assert parse_comma_separated(None) == ()
    assert parse_timezone_offset("utc+2") == 2
    assert parse_timezone_offset("Europe/Berlin") is None
    assert parse_timezone_offset(None) is None


# ── Command-line plumbing ───────────────────────────────────────────────────


def test_parse_repository() -> None:
    import argparse

    from pr_advisor.cli import parse_repository

    assert parse_repository("acme/web") == ("acme", "web")
    for bad in ("acme", "acme/", "/web", "a/b/c"):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_repository(bad)


def test_command_line_overrides_snapshot_inputs() -> None:
    import argparse

    from pr_advisor.cli import add_config_arguments, build_config, config_inputs

    parser = argparse.ArgumentParser()
    add_config_arguments(parser)
    args = parser.parse_args(["--max-reviewers", "5", "--detect-flaky", "true"])

    assert config_inputs(args) == {"max_reviewers": "5", "detect_flaky": "true"}
    config = build_config(args, base={"max_reviewers": "2", "lookback_days": "30"})
    assert config.max_reviewers == 5
    assert config.lookback_days == 30
    assert config.detect_flaky is True


def test_parse_pr_number() -> None:
    import argparse

    from pr_advisor.cli import parse_pr_number

    assert parse_pr_number("12") == 12
    for bad in ("abc", "0", "-3", ""):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_pr_number(bad)


def test_size_options_reach_size_config() -> None:
    import argparse

    from pr_advisor.cli import add_config_arguments, build_size_config, config_inputs

    parser = argparse.ArgumentParser()
    add_config_arguments(parser)
    args = parser.parse_args(["--xs-lines", "20", "--size-ignore", "none"])

    assert config_inputs(args) == {"xs_lines": "20", "size_ignore": "none"}
    size_config = build_size_config(args, base={"l_files": "40"})
    assert size_config.line_thresholds == (20, 200, 500, 1000)
    assert size_config.file_thresholds == (2, 5, 15, 40)
    assert size_config.ignore_patterns == ()
