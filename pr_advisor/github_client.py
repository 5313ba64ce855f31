"""GitHub REST client with rate-limit handling and retries."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from pr_advisor.config import (
    GITHUB_API_BASE,
    GITHUB_TOKEN,
    RATE_LIMIT_BUFFER,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF,
    RETRY_MAX,
)

logger = logging.getLogger(__name__)


class GitHubClient:
    """Read-only GitHub REST client with automatic retries."""

    def __init__(
        self,
        token: str | None = None,
        base_url: str = GITHUB_API_BASE,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._token = token or GITHUB_TOKEN
        if not self._token:
            raise ValueError(
                "GITHUB_TOKEN is required. Set it as an environment variable."
            )
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=REQUEST_TIMEOUT,
            transport=transport,
        )
        self._remaining: int = 5000
        self._reset_at: float = 0.0

    # ── REST ────────────────────────────────────────────────────────────

    def rest_get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a GET request to the GitHub REST API.

        Returns parsed JSON. Non-rate-limit HTTP errors surface as
        ``httpx.HTTPStatusError``; exhausted retries as ``RuntimeError``.
        """
        for attempt in range(1, RETRY_MAX + 1):
            self._wait_if_rate_limited()

            try:
                resp = self._client.get(endpoint, params=params)
            except httpx.TransportError as exc:
                logger.warning("Transport error (attempt %d/%d): %s", attempt, RETRY_MAX, exc)
                if attempt == RETRY_MAX:
                    raise RuntimeError(f"All {RETRY_MAX} retries exhausted") from exc
                time.sleep(RETRY_BACKOFF ** attempt)
                continue

            self._track_rate_limit(resp)

            if self._is_rate_limited(resp):
                self._handle_rate_limit_response(resp, attempt)
                continue

            resp.raise_for_status()
            return resp.json()

        raise RuntimeError(f"All {RETRY_MAX} retries exhausted")

    # ── Rate-limit helpers ──────────────────────────────────────────────

    def _track_rate_limit(self, resp: httpx.Response) -> None:
        """Update internal rate-limit state from REST response headers."""
        remaining = resp.headers.get("X-RateLimit-Remaining")
        reset_ts = resp.headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self._remaining = int(remaining)
        if reset_ts is not None:
            self._reset_at = float(reset_ts)
        logger.debug("Rate limit: remaining=%s reset=%s", remaining, reset_ts)

    @staticmethod
    def _is_rate_limited(resp: httpx.Response) -> bool:
        """429 always; 403 only when GitHub says the quota is gone."""
        if resp.status_code == 429:
            return True
        if resp.status_code != 403:
            return False
        return (
            resp.headers.get("X-RateLimit-Remaining") == "0"
            or "Retry-After" in resp.headers
        )

    def _wait_if_rate_limited(self) -> None:
        """Sleep if remaining API points are below the safety buffer."""
        if self._remaining < RATE_LIMIT_BUFFER:
            wait = max(0, self._reset_at - time.time()) + 5
            logger.info(
                "Rate limit low (%d remaining). Sleeping %.0fs.",
                self._remaining,
                wait,
            )
            time.sleep(wait)

    def _handle_rate_limit_response(self, resp: httpx.Response, attempt: int) -> None:
        """Back off after a 403/429: ``Retry-After`` first, else until the reset."""
        retry_after = resp.headers.get("Retry-After")
        reset_ts = resp.headers.get("X-RateLimit-Reset")
        if retry_after is not None:
            wait = float(retry_after)
        elif reset_ts is not None:
            wait = max(0.0, float(reset_ts) - time.time()) + 1
        else:
            wait = 60.0
        logger.warning(
            "Rate limited (HTTP %d). Sleeping %.0fs (attempt %d/%d).",
            resp.status_code,
            wait,
            attempt,
            RETRY_MAX,
        )
        time.sleep(wait)

    # ── Context manager ─────────────────────────────────────────────────

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
