"""CLI: Snapshot everything the reviewer engine reads for one PR."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from datetime import datetime, timezone

from pr_advisor.cli import (
    add_config_arguments,
    build_config,
    config_inputs,
    parse_pr_number,
    parse_repository,
)
from pr_advisor.config import RAW_DIR
from pr_advisor.github_client import GitHubClient
from pr_advisor.sources import GitHubDataSource, RecordingDataSource
from pr_advisor.suggester import suggest_reviewers

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s"
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Run the engine live once and save every answer to data/raw/."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("repository", type=parse_repository, help="OWNER/REPO")
    parser.add_argument("number", type=parse_pr_number, help="pull request number")
    add_config_arguments(parser)
    args = parser.parse_args()

    owner, repo = args.repository
    config = build_config(args)
    # all optional signals on; replays toggle them
    capture_config = replace(
        config, use_codeowners=True, use_latency=True, penalize_load=True, detect_flaky=True
    )

    now = datetime.now(timezone.utc).replace(microsecond=0)
    with GitHubClient() as client:
        recorder = RecordingDataSource(GitHubDataSource(client, owner, repo))
        context = recorder.get_pull_context(args.number)
        suggest_reviewers(recorder, context, capture_config, now=now)

    snapshot = recorder.to_snapshot(now)
    snapshot["_metadata"]["repository"] = f"{owner}/{repo}"
    snapshot["_metadata"]["pr_number"] = args.number
    snapshot["_metadata"]["inputs"] = config_inputs(args)

    RAW_DIR.mkdir(parents=True, exist_ok=True)
    timestamp = now.strftime("%Y%m%dT%H%M%S")
    out_path = RAW_DIR / f"snapshot_{owner}_{repo}_{args.number}_{timestamp}.json"
    out_path.write_text(json.dumps(snapshot, indent=2, default=str))
    logger.info("Saved %d calls for PR #%d → %s", len(snapshot["calls"]), args.number, out_path)


if __name__ == "__main__":
    main()
