"""Shared argparse plumbing for the scripts."""

from __future__ import annotations

import argparse
from collections.abc import Mapping

from pr_advisor.config import ReviewerConfig, SizeConfig

# flag -> ReviewerConfig field
CONFIG_FLAGS: dict[str, str] = {
    "--max-reviewers": "max_reviewers",
    "--lookback-days": "lookback_days",
    "--max-files": "max_files",
    "--use-codeowners": "use_codeowners",
    "--use-latency": "use_latency",
    "--latency-prs": "latency_prs",
    "--penalize-load": "penalize_load",
    "--exclude-reviewers": "exclude_reviewers",
    "--cross-repos": "cross_repos",
    "--required-reviewers": "required_reviewers",
    "--prefer-timezone": "prefer_timezone",
    "--show-breakdown": "show_breakdown",
    "--detect-flaky": "detect_flaky",
}

# flag -> SizeConfig input
SIZE_FLAGS: dict[str, str] = {
    "--xs-lines": "xs_lines",
    "--s-lines": "s_lines",
    "--m-lines": "m_lines",
    "--l-lines": "l_lines",
    "--xs-files": "xs_files",
    "--s-files": "s_files",
    "--m-files": "m_files",
    "--l-files": "l_files",
    "--size-ignore": "size_ignore",
}


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    """Add one string option per reviewer and size input.

    Values stay raw strings; the ``from_inputs`` constructors do the parsing.
    """
    for title, flags in (("reviewer options", CONFIG_FLAGS), ("size options", SIZE_FLAGS)):
        group = parser.add_argument_group(title)
        for flag, dest in flags.items():
            group.add_argument(flag, dest=dest, default=None, metavar="VALUE")


def config_inputs(args: argparse.Namespace) -> dict[str, str]:
    """The config options actually given on the command line."""
    return {
        dest: value
        for dest in (*CONFIG_FLAGS.values(), *SIZE_FLAGS.values())
        if (value := getattr(args, dest, None)) is not None
    }


def build_config(
    args: argparse.Namespace, base: Mapping[str, str] | None = None
) -> ReviewerConfig:
    """Config from *base* inputs overridden by command-line options."""
    return ReviewerConfig.from_inputs({**(base or {}), **config_inputs(args)})


def build_size_config(
    args: argparse.Namespace, base: Mapping[str, str] | None = None
) -> SizeConfig:
    return SizeConfig.from_inputs({**(base or {}), **config_inputs(args)})


def parse_repository(value: str) -> tuple[str, str]:
    """``"owner/name"`` -> ``("owner", "name")``."""
    owner, sep, name = value.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise argparse.ArgumentTypeError(f"expected OWNER/REPO, got {value!r}")
    return owner, name


def parse_pr_number(value: str) -> int:
    """A positive pull request number."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a PR number, got {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a PR number, got {value!r}")
    return number
