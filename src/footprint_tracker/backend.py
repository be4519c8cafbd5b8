"""Best-effort client for the remote ingestion and analysis API."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Any, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)

INGEST_PATH = "/tracking/ingest"
ANALYZE_PATH = "/content/analyze"
MAX_TEXT_CHARS = 5000


def engagement_score(counters: Mapping[str, Any], duration_seconds: float) -> float:
    """Interactions per second over the interval, capped at 1.0."""
    interactions = sum(
        float(counters.get(key, 0) or 0) for key in ("clicks", "keys", "scrolls")
    )
    if duration_seconds <= 0:
        return 0.0
    return round(min(1.0, interactions / duration_seconds), 3)


def build_ingest_payload(
    *,
    user_id: str,
    url: str,
    title: str,
    text: str,
    start_ts: datetime,
    end_ts: datetime,
    counters: Mapping[str, Any],
) -> dict[str, Any]:
    duration_seconds = max((end_ts - start_ts).total_seconds(), 0.0)
    return {
        "user_id": user_id,
        "url": url,
        "title": title,
        "text": text[:MAX_TEXT_CHARS],
        "start_ts": start_ts.isoformat(),
        "end_ts": end_ts.isoformat(),
        "duration_seconds": duration_seconds,
        "clicks": int(counters.get("clicks", 0) or 0),
        "keypresses": int(counters.get("keys", 0) or 0),
        "engagement_score": engagement_score(counters, duration_seconds),
    }


class BackendClient:
    """Posts tracking data to the backend without ever failing the caller.

    Requests run on a small worker pool so the tracking loop never waits on
    the network. Errors and timeouts are logged and reported as ``None``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 8.0,
        transport: Optional[httpx.BaseTransport] = None,
        max_workers: int = 2,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="backend")

    def ingest(self, payload: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        return self._post(INGEST_PATH, payload)

    def analyze(self, text: str, url: str) -> Optional[dict[str, Any]]:
        return self._post(
            ANALYZE_PATH,
            {
                "text": text[:MAX_TEXT_CHARS],
                "url": url,
                "analyze_sentiment": True,
                "analyze_category": True,
                "analyze_emotions": True,
            },
        )

    def submit_ingest(self, payload: Mapping[str, Any]) -> Future:
        return self._executor.submit(self.ingest, payload)

    def submit_analyze(self, text: str, url: str) -> Future:
        return self._executor.submit(self.analyze, text, url)

    def close(self) -> None:
        """Let in-flight requests finish, then release the connection pool."""
        self._executor.shutdown(wait=True)
        self._client.close()

    def _post(self, path: str, payload: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        try:
            response = self._client.post(path, json=dict(payload))
        except httpx.TimeoutException:
            logger.warning("Backend request to %s timed out.", path)
            return None
        except httpx.HTTPError as exc:
            logger.warning("Backend request to %s failed: %s", path, exc)
            return None

        if response.status_code >= 300:
            logger.warning(
                "Backend rejected %s with status %d: %s",
                path,
                response.status_code,
                response.text[:200],
            )
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug("Backend response from %s was not JSON.", path)
            return {}
