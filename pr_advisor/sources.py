"""Data sources the reviewer engine reads from.

The engine only talks to a ``ReviewDataSource``. Three implementations:

    GitHubDataSource    live REST API via ``GitHubClient``
    RecordingDataSource wraps another source and captures every answer
    SnapshotDataSource  replays a captured snapshot, no network

Every failure a source reports is a ``DataSourceError`` so callers can
isolate a single bad fetch without catching unrelated bugs.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Callable
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import httpx

from pr_advisor.config import PR_FILES_MAX, PR_FILES_PAGE_SIZE, REVIEW_PAGE_SIZE
from pr_advisor.github_client import GitHubClient
from pr_advisor.models import (
    ChangedFile,
    CommitRecord,
    PullRequestContext,
    PullSummary,
    ReviewEvent,
)

logger = logging.getLogger(__name__)


class DataSourceError(RuntimeError):
    """A single fetch failed; the caller decides whether that is fatal."""


class ReviewDataSource(Protocol):
    """Read-only view of a repository's history and review activity."""

    def list_commits(
        self, repo: str, path: str, since: datetime, per_page: int
    ) -> list[CommitRecord]: ...

    def list_reviews(self, number: int) -> list[ReviewEvent]: ...

    def list_pulls(
        self,
        state: str,
        per_page: int,
        sort: str | None = None,
        direction: str | None = None,
    ) -> list[PullSummary]: ...

    def fetch_file_text(self, path: str, ref: str | None = None) -> str | None: ...

    def get_pull_context(
        self, number: int, max_files: int = PR_FILES_MAX
    ) -> PullRequestContext: ...


# ── Timestamp helpers ───────────────────────────────────────────────────────

def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO-8601 timestamp (``...Z``) into an aware datetime."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_timestamp(value: datetime) -> str:
    """Format an aware datetime the way GitHub expects (UTC, ``Z`` suffix)."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _login(obj: dict[str, Any] | None) -> str | None:
    return (obj or {}).get("login") or None


# ── Live GitHub ─────────────────────────────────────────────────────────────

class GitHubDataSource:
    """``ReviewDataSource`` backed by the GitHub REST API."""

    def __init__(self, client: GitHubClient, owner: str, repo: str) -> None:
        self._client = client
        self.owner = owner
        self.repo = repo

    @property
    def _prefix(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        try:
            return self._client.rest_get(endpoint, params=params)
        except (httpx.HTTPError, RuntimeError) as exc:
            raise DataSourceError(f"GET {endpoint} failed: {exc}") from exc

    def list_commits(
        self, repo: str, path: str, since: datetime, per_page: int
    ) -> list[CommitRecord]:
        """Commits touching *path* in *repo* (``owner/name``), newest first."""
        data = self._get(
            f"/repos/{repo}/commits",
            params={"path": path, "since": format_timestamp(since), "per_page": per_page},
        )
        return [
            CommitRecord(
                author_login=_login(c.get("author")),
                authored_at=parse_timestamp(
                    ((c.get("commit") or {}).get("author") or {}).get("date")
                ),
            )
            for c in data
        ]

    def list_reviews(self, number: int) -> list[ReviewEvent]:
        data = self._get(
            f"{self._prefix}/pulls/{number}/reviews",
            params={"per_page": REVIEW_PAGE_SIZE},
        )
        return [
            ReviewEvent(
                login=_login(r.get("user")) or "ghost",
                state=r.get("state", ""),
                submitted_at=parse_timestamp(r.get("submitted_at")),
            )
            for r in data
        ]

    def list_pulls(
        self,
        state: str,
        per_page: int,
        sort: str | None = None,
        direction: str | None = None,
    ) -> list[PullSummary]:
        params: dict[str, Any] = {"state": state, "per_page": per_page}
        if sort:
            params["sort"] = sort
        if direction:
            params["direction"] = direction
        data = self._get(f"{self._prefix}/pulls", params=params)
        return [
            PullSummary(
                number=pr["number"],
                author_login=_login(pr.get("user")),
                created_at=parse_timestamp(pr["created_at"]),
                closed_at=parse_timestamp(pr.get("closed_at")),
                merged_at=parse_timestamp(pr.get("merged_at")),
                requested_reviewers=tuple(
                    login
                    for login in (_login(u) for u in pr.get("requested_reviewers") or [])
                    if login
                ),
            )
            for pr in data
        ]

    def fetch_file_text(self, path: str, ref: str | None = None) -> str | None:
        """Return a repository file's text, or None if it does not exist."""
        endpoint = f"{self._prefix}/contents/{path}"
        params = {"ref": ref} if ref else None
        try:
            data = self._client.rest_get(endpoint, params=params)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return None
            raise DataSourceError(f"GET {endpoint} failed: {exc}") from exc
        except (httpx.HTTPError, RuntimeError) as exc:
            raise DataSourceError(f"GET {endpoint} failed: {exc}") from exc

        if not isinstance(data, dict) or not data.get("content"):
            return None
        if data.get("encoding", "base64") != "base64":
            return data["content"]
        try:
            return base64.b64decode(data["content"]).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise DataSourceError(f"Undecodable content at {path}: {exc}") from exc

    def get_pull_context(
        self, number: int, max_files: int = PR_FILES_MAX
    ) -> PullRequestContext:
        """Load PR metadata, its changed files (capped) and its reviews."""
        pr = self._get(f"{self._prefix}/pulls/{number}")

        files: list[ChangedFile] = []
        page = 1
        while len(files) < max_files:
            batch = self._get(
                f"{self._prefix}/pulls/{number}/files",
                params={"per_page": PR_FILES_PAGE_SIZE, "page": page},
            )
            if not batch:
                break
            for f in batch[: max_files - len(files)]:
                files.append(ChangedFile(
                    path=f["filename"],
                    additions=f.get("additions", 0),
                    deletions=f.get("deletions", 0),
                ))
            if len(batch) < PR_FILES_PAGE_SIZE:
                break
            page += 1

        return PullRequestContext(
            owner=self.owner,
            repo=self.repo,
            number=number,
            author_login=_login(pr.get("user")) or "ghost",
            head_sha=(pr.get("head") or {}).get("sha"),
            files=tuple(files),
            reviews=tuple(self.list_reviews(number)),
        )


# ── Snapshot codec ──────────────────────────────────────────────────────────
# Records are stored as plain dicts with ISO timestamps so a snapshot is a
# readable JSON file.

_TIMESTAMP_FIELDS = {"submitted_at", "authored_at", "created_at", "closed_at", "merged_at"}


def _encode_record(record: Any) -> dict[str, Any]:
    out = asdict(record)
    for key in _TIMESTAMP_FIELDS & out.keys():
        if out[key] is not None:
            out[key] = format_timestamp(out[key])
    return out


def _decode_fields(raw: dict[str, Any]) -> dict[str, Any]:
    out = dict(raw)
    for key in _TIMESTAMP_FIELDS & out.keys():
        out[key] = parse_timestamp(out[key])
    return out


def _decode_commits(payload: list[dict]) -> list[CommitRecord]:
    return [CommitRecord(**_decode_fields(c)) for c in payload]


def _decode_reviews(payload: list[dict]) -> list[ReviewEvent]:
    return [ReviewEvent(**_decode_fields(r)) for r in payload]


def _decode_pulls(payload: list[dict]) -> list[PullSummary]:
    pulls = []
    for p in payload:
        fields = _decode_fields(p)
        fields["requested_reviewers"] = tuple(fields.get("requested_reviewers") or ())
        pulls.append(PullSummary(**fields))
    return pulls


def encode_context(ctx: PullRequestContext) -> dict[str, Any]:
    return {
        "owner": ctx.owner,
        "repo": ctx.repo,
        "number": ctx.number,
        "author_login": ctx.author_login,
        "head_sha": ctx.head_sha,
        "files": [asdict(f) for f in ctx.files],
        "reviews": [_encode_record(r) for r in ctx.reviews],
    }


def decode_context(raw: dict[str, Any]) -> PullRequestContext:
    return PullRequestContext(
        owner=raw["owner"],
        repo=raw["repo"],
        number=raw["number"],
        author_login=raw["author_login"],
        head_sha=raw.get("head_sha"),
        files=tuple(ChangedFile(**f) for f in raw.get("files", [])),
        reviews=tuple(_decode_reviews(raw.get("reviews", []))),
    )


def _commits_key(repo: str, path: str, since: datetime, per_page: int) -> str:
    return f"commits|{repo}|{path}|{format_timestamp(since)}|{per_page}"


def _reviews_key(number: int) -> str:
    return f"reviews|{number}"


def _pulls_key(state: str, per_page: int, sort: str | None, direction: str | None) -> str:
    return f"pulls|{state}|{per_page}|{sort or ''}|{direction or ''}"


def _file_key(path: str, ref: str | None) -> str:
    return f"file|{path}|{ref or ''}"


# ── Recording ───────────────────────────────────────────────────────────────

class RecordingDataSource:
    """Pass-through source that remembers every answer (and every failure)."""

    def __init__(self, inner: ReviewDataSource) -> None:
        self._inner = inner
        self._calls: dict[str, dict[str, Any]] = {}
        self._context: PullRequestContext | None = None

    def _record(self, key: str, fetch: Callable[[], Any], encode: Callable[[Any], Any]) -> Any:
        try:
            result = fetch()
        except DataSourceError as exc:
            self._calls[key] = {"error": str(exc)}
            raise
        self._calls[key] = {"ok": encode(result)}
        return result

    def list_commits(
        self, repo: str, path: str, since: datetime, per_page: int
    ) -> list[CommitRecord]:
        return self._record(
            _commits_key(repo, path, since, per_page),
            lambda: self._inner.list_commits(repo, path, since, per_page),
            lambda rs: [_encode_record(r) for r in rs],
        )

    def list_reviews(self, number: int) -> list[ReviewEvent]:
        return self._record(
            _reviews_key(number),
            lambda: self._inner.list_reviews(number),
            lambda rs: [_encode_record(r) for r in rs],
        )

    def list_pulls(
        self,
        state: str,
        per_page: int,
        sort: str | None = None,
        direction: str | None = None,
    ) -> list[PullSummary]:
        return self._record(
            _pulls_key(state, per_page, sort, direction),
            lambda: self._inner.list_pulls(state, per_page, sort, direction),
            lambda rs: [_encode_record(r) for r in rs],
        )

    def fetch_file_text(self, path: str, ref: str | None = None) -> str | None:
        return self._record(
            _file_key(path, ref),
            lambda: self._inner.fetch_file_text(path, ref),
            lambda text: text,
        )

    def get_pull_context(
        self, number: int, max_files: int = PR_FILES_MAX
    ) -> PullRequestContext:
        self._context = self._inner.get_pull_context(number, max_files)
        return self._context

    def to_snapshot(self, captured_at: datetime) -> dict[str, Any]:
        """Serialise everything seen so far. *captured_at* becomes the replay clock."""
        return {
            "_metadata": {
                "captured_at": format_timestamp(captured_at),
                "call_count": len(self._calls),
            },
            "context": encode_context(self._context) if self._context else None,
            "calls": dict(sorted(self._calls.items())),
        }


# ── Replay ──────────────────────────────────────────────────────────────────

class SnapshotDataSource:
    """Replays a snapshot written by ``RecordingDataSource``.

    Calls that were never captured raise ``DataSourceError``, exactly like
    a failed live fetch would.
    """

    def __init__(self, snapshot: dict[str, Any]) -> None:
        self._calls: dict[str, dict[str, Any]] = snapshot.get("calls", {})
        raw_ctx = snapshot.get("context")
        self.context: PullRequestContext | None = decode_context(raw_ctx) if raw_ctx else None
        self.captured_at: datetime | None = parse_timestamp(
            snapshot.get("_metadata", {}).get("captured_at")
        )

    @classmethod
    def load(cls, path: Path) -> SnapshotDataSource:
        return cls(json.loads(Path(path).read_text()))

    def _replay(self, key: str) -> Any:
        entry = self._calls.get(key)
        if entry is None:
            raise DataSourceError(f"Not in snapshot: {key}")
        if "error" in entry:
            raise DataSourceError(entry["error"])
        return entry["ok"]

    def list_commits(
        self, repo: str, path: str, since: datetime, per_page: int
    ) -> list[CommitRecord]:
        return _decode_commits(self._replay(_commits_key(repo, path, since, per_page)))

    def list_reviews(self, number: int) -> list[ReviewEvent]:
        return _decode_reviews(self._replay(_reviews_key(number)))

    def list_pulls(
        self,
        state: str,
        per_page: int,
        sort: str | None = None,
        direction: str | None = None,
    ) -> list[PullSummary]:
        return _decode_pulls(self._replay(_pulls_key(state, per_page, sort, direction)))

    def fetch_file_text(self, path: str, ref: str | None = None) -> str | None:
        return self._replay(_file_key(path, ref))

    def get_pull_context(
        self, number: int, max_files: int = PR_FILES_MAX
    ) -> PullRequestContext:
        if self.context is None or self.context.number != number:
            raise DataSourceError(f"PR #{number} is not in this snapshot")
        return PullRequestContext(
            owner=self.context.owner,
            repo=self.context.repo,
            number=self.context.number,
            author_login=self.context.author_login,
            head_sha=self.context.head_sha,
            files=self.context.files[:max_files],
            reviews=self.context.reviews,
        )
