import json
from datetime import datetime, timedelta

import httpx
import pytest

from footprint_tracker.backend import (
    ANALYZE_PATH,
    INGEST_PATH,
    BackendClient,
    build_ingest_payload,
    engagement_score,
)

BASE_URL = "http://backend.test"


@pytest.fixture
def requests_seen():
    return []


def _client(handler, requests_seen):
    def _recording(request):
        requests_seen.append(request)
        return handler(request)

    return BackendClient(BASE_URL, timeout=1.0, transport=httpx.MockTransport(_recording))


def test_engagement_score():
    assert engagement_score({"clicks": 3, "keys": 2, "scrolls": 5}, 20) == 0.5
    assert engagement_score({"clicks": 500}, 10) == 1.0
    assert engagement_score({"clicks": 3}, 0) == 0.0
    assert engagement_score({}, 30) == 0.0


def test_ingest_payload_shape():
    start = datetime(2024, 5, 1, 9, 0)
    payload = build_ingest_payload(
        user_id="u1",
        url="https://github.com",
        title="Repo",
        text="x" * 6000,
        start_ts=start,
        end_ts=start + timedelta(seconds=40),
        counters={"clicks": 4, "keys": 6},
    )
    assert payload["duration_seconds"] == 40.0
    assert payload["clicks"] == 4
    assert payload["keypresses"] == 6
    assert payload["engagement_score"] == 0.25
    assert len(payload["text"]) == 5000
    assert payload["start_ts"] == start.isoformat()


def test_ingest_posts_json(requests_seen):
    client = _client(lambda request: httpx.Response(201, json={"id": 7}), requests_seen)
    try:
        assert client.ingest({"url": "https://github.com"}) == {"id": 7}
    finally:
        client.close()

    assert requests_seen[0].url.path == INGEST_PATH
    assert json.loads(requests_seen[0].content) == {"url": "https://github.com"}


def test_analyze_request_flags(requests_seen):
    client = _client(lambda request: httpx.Response(200, text="ok"), requests_seen)
    try:
        assert client.submit_analyze("some text", "https://github.com").result(timeout=5) == {}
    finally:
        client.close()

    body = json.loads(requests_seen[0].content)
    assert requests_seen[0].url.path == ANALYZE_PATH
    assert body["analyze_sentiment"] and body["analyze_category"] and body["analyze_emotions"]


def test_rejected_request_returns_none(requests_seen):
    client = _client(lambda request: httpx.Response(503, text="unavailable"), requests_seen)
    try:
        assert client.ingest({"url": "https://github.com"}) is None
    finally:
        client.close()


def test_timeouts_and_transport_errors_return_none(requests_seen):
    def _timeout(request):
        raise httpx.ReadTimeout("too slow", request=request)

    def _refused(request):
        raise httpx.ConnectError("refused", request=request)

    for handler in (_timeout, _refused):
        client = _client(handler, requests_seen)
        try:
            assert client.submit_ingest({"url": "https://github.com"}).result(timeout=5) is None
        finally:
            client.close()
