"""CLI: Size a PR, rank its reviewers, and print the markdown sections."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from pr_advisor.cli import (
    add_config_arguments,
    build_config,
    build_size_config,
    parse_pr_number,
    parse_repository,
)
from pr_advisor.config import RAW_DIR
from pr_advisor.github_client import GitHubClient
from pr_advisor.report import format_reviewer_section, format_size_section
from pr_advisor.size import analyze_size
from pr_advisor.sources import GitHubDataSource, SnapshotDataSource
from pr_advisor.suggester import suggest_reviewers

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s"
)
logger = logging.getLogger(__name__)


def _latest_snapshot() -> Path | None:
    """Return the most recent snapshot file."""
    files = sorted(RAW_DIR.glob("snapshot_*.json"), key=lambda p: p.stat().st_mtime)
    return files[-1] if files else None


def main() -> None:
    """Replay a snapshot (default: the latest) or query GitHub live."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--snapshot", type=Path, help="snapshot JSON to replay")
    parser.add_argument(
        "--live",
        nargs=2,
        metavar=("OWNER/REPO", "PR"),
        help="query the GitHub API instead of a snapshot",
    )
    parser.add_argument("--json", action="store_true", help="print the ranking as JSON")
    add_config_arguments(parser)
    args = parser.parse_args()

    if args.live:
        try:
            owner, repo = parse_repository(args.live[0])
            number = parse_pr_number(args.live[1])
        except argparse.ArgumentTypeError as exc:
            parser.error(str(exc))
        config = build_config(args)
        size_config = build_size_config(args)
        with GitHubClient() as client:
            source = GitHubDataSource(client, owner, repo)
            context = source.get_pull_context(number)
            result = suggest_reviewers(source, context, config)
    else:
        snapshot_path = args.snapshot or _latest_snapshot()
        if snapshot_path is None:
            print("No snapshot found. Run: python scripts/fetch.py OWNER/REPO PR")
            sys.exit(1)
        logger.info("Replaying snapshot %s", snapshot_path)
        raw = json.loads(snapshot_path.read_text())
        source = SnapshotDataSource(raw)
        if source.context is None:
            print(f"{snapshot_path} has no pull request context.")
            sys.exit(1)
        context = source.context
        inputs = raw.get("_metadata", {}).get("inputs")
        config = build_config(args, base=inputs)
        size_config = build_size_config(args, base=inputs)
        result = suggest_reviewers(source, context, config, now=source.captured_at)

    size = analyze_size(context.files, size_config)

    if args.json:
        print(json.dumps(
            {
                "size": asdict(size),
                "confidence": result.confidence.value,
                "suggestions": [asdict(s) for s in result.suggestions],
                "team_coverage": [asdict(t) for t in result.team_coverage],
            },
            indent=2,
        ))
    else:
        print(format_size_section(size))
        print(format_reviewer_section(result))


if __name__ == "__main__":
    main()
