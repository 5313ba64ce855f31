"""Tests for the GitHub-backed data source, using an in-process transport."""

from __future__ import annotations

import base64
from datetime import datetime, timezone

import httpx
import pytest

from pr_advisor.github_client import GitHubClient
from pr_advisor.models import CommitRecord
from pr_advisor.sources import (
    DataSourceError,
    GitHubDataSource,
    RecordingDataSource,
    SnapshotDataSource,
    format_timestamp,
    parse_timestamp,
)

SINCE = datetime(2026, 7, 3, 12, 0, tzinfo=timezone.utc)


def _source(routes: dict[str, object], seen: list[httpx.Request] | None = None) -> GitHubDataSource:
    """Data source whose client answers from *routes* (path -> JSON or status int)."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        answer = routes.get(request.url.path, 404)
        if callable(answer):
            answer = answer(request)
        if isinstance(answer, int):
            return httpx.Response(answer, json={"message": "nope"})
        return httpx.Response(200, json=answer)

    client = GitHubClient(
        token="test-token",
        base_url="https://api.github.test",
        transport=httpx.MockTransport(handler),
    )
    return GitHubDataSource(client, "acme", "web")


# ── Timestamps ──────────────────────────────────────────────────────────────


def test_timestamps() -> None:
    parsed = parse_timestamp("2026-09-30T09:15:00Z")
    assert parsed == datetime(2026, 9, 30, 9, 15, tzinfo=timezone.utc)
    assert format_timestamp(parsed) == "2026-09-30T09:15:00Z"
    assert parse_timestamp(None) is None


# ── REST reads ──────────────────────────────────────────────────────────────


def test_list_commits_sends_filters_and_keeps_unlinked_authors() -> None:
    seen: list[httpx.Request] = []
    source = _source(
        {
            "/repos/acme/api/commits": [
                {"author": {"login": "alice"}, "commit": {"author": {"date": "2026-09-30T09:15:00Z"}}},
                {"author": None, "commit": {"author": {"date": "2026-09-29T18:00:00Z"}}},
            ]
        },
        seen,
    )
    commits = source.list_commits("acme/api", "src/a.ts", SINCE, 30)

    assert commits[0] == CommitRecord("alice", datetime(2026, 9, 30, 9, 15, tzinfo=timezone.utc))
    assert commits[1].author_login is None
    params = seen[0].url.params
    assert params["path"] == "src/a.ts"
    assert params["since"] == "2026-07-03T12:00:00Z"
    assert params["per_page"] == "30"
    assert seen[0].headers["Authorization"] == "Bearer test-token"


def test_list_pulls_reads_requested_reviewers() -> None:
    seen: list[httpx.Request] = []
    source = _source(
        {
            "/repos/acme/web/pulls": [
                {
                    "number": 5,
                    "user": {"login": "erin"},
                    "created_at": "2026-09-01T10:00:00Z",
                    "closed_at": None,
                    "merged_at": None,
                    "requested_reviewers": [{"login": "bob"}, {"login": "Alice"}],
                }
            ]
        },
        seen,
    )
    (pr,) = source.list_pulls("open", 50)
    assert pr.number == 5
    assert pr.requested_reviewers == ("bob", "Alice")
    assert pr.closed_at is None
    assert "sort" not in seen[0].url.params

    source.list_pulls("closed", 20, sort="updated", direction="desc")
    assert seen[1].url.params["sort"] == "updated"
    assert seen[1].url.params["direction"] == "desc"


def test_fetch_file_text_decodes_base64() -> None:
    content = base64.encodebytes(b"src/api/* @alice\n").decode()
    source = _source(
        {"/repos/acme/web/contents/.github/CODEOWNERS": {"encoding": "base64", "content": content}}
    )
    assert source.fetch_file_text(".github/CODEOWNERS", "abc") == "src/api/* @alice\n"


def test_fetch_file_text_missing_or_directory() -> None:
    source = _source({"/repos/acme/web/contents/docs": [{"name": "README.md"}]})
    assert source.fetch_file_text("CODEOWNERS") is None
    assert source.fetch_file_text("docs") is None


def test_server_errors_become_data_source_errors() -> None:
    source = _source({"/repos/acme/web/contents/CODEOWNERS": 500, "/repos/acme/web/pulls": 500})
    with pytest.raises(DataSourceError):
        source.fetch_file_text("CODEOWNERS")
    with pytest.raises(DataSourceError):
        source.list_pulls("open", 100)


def test_forbidden_without_quota_headers_is_not_retried() -> None:
    seen: list[httpx.Request] = []
    source = _source({"/repos/acme/web/pulls/1/reviews": 403}, seen)
    with pytest.raises(DataSourceError):
        source.list_reviews(1)
    assert len(seen) == 1


# ── Pull request context ────────────────────────────────────────────────────


def _context_routes(total_files: int) -> dict[str, object]:
    def files(request: httpx.Request) -> list[dict]:
        page = int(request.url.params["page"])
        start = (page - 1) * 100
        return [
            {"filename": f"src/f{i}.ts", "additions": i, "deletions": 1}
            for i in range(start, min(start + 100, total_files))
        ]

    return {
        "/repos/acme/web/pulls/7": {"user": {"login": "carol"}, "head": {"sha": "abc123"}},
        "/repos/acme/web/pulls/7/files": files,
        "/repos/acme/web/pulls/7/reviews": [
            {"user": {"login": "bob"}, "state": "APPROVED", "submitted_at": "2026-09-30T10:00:00Z"},
            {"user": None, "state": "COMMENTED", "submitted_at": None},
        ],
    }


def test_pull_context_paginates_files() -> None:
    context = _source(_context_routes(130)).get_pull_context(7)
    assert context.author_login == "carol"
    assert context.head_sha == "abc123"
    assert context.full_name == "acme/web"
    assert len(context.files) == 130
    assert context.files[-1].path == "src/f129.ts"
    assert [r.login for r in context.reviews] == ["bob", "ghost"]


def test_pull_context_caps_files() -> None:
    seen: list[httpx.Request] = []
    context = _source(_context_routes(300), seen).get_pull_context(7, max_files=50)
    assert len(context.files) == 50
    file_pages = [r for r in seen if r.url.path.endswith("/files")]
    assert len(file_pages) == 1


# ── Recording ───────────────────────────────────────────────────────────────


def test_recorded_failures_replay_as_failures() -> None:
    recorder = RecordingDataSource(_source({"/repos/acme/web/pulls": 500}))
    with pytest.raises(DataSourceError):
        recorder.list_pulls("open", 100)
    assert recorder.fetch_file_text("CODEOWNERS", "abc") is None

    snapshot = recorder.to_snapshot(SINCE)
    assert snapshot["_metadata"]["call_count"] == 2
    assert snapshot["context"] is None

    replay = SnapshotDataSource(snapshot)
    with pytest.raises(DataSourceError, match="GET /repos/acme/web/pulls failed"):
        replay.list_pulls("open", 100)
    assert replay.fetch_file_text("CODEOWNERS", "abc") is None
    with pytest.raises(DataSourceError, match="Not in snapshot"):
        replay.fetch_file_text("CODEOWNERS")
