"""Tests for the provider API client."""

import asyncio
from typing import Any, Dict, List

import httpx
import pytest

from nlsync.ingestion import IssueFetcher, IssueFetchError

BASE_URL = "https://api.example.com/v2"


def make_fetcher(handler) -> IssueFetcher:
    return IssueFetcher(BASE_URL, "test-key", transport=httpx.MockTransport(handler))


def post(post_id: str = "post_1") -> Dict[str, Any]:
    return {
        "id": post_id,
        "title": "the news",
        "created": 1700000000,
        "content": {"free": {"rss": "<h6 id='c'>Brasil</h6><h1>Título</h1><p>texto</p>"}},
        "status": "confirmed",
    }


def test_latest_issue_request_and_payload() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": [post()]})

    issue = asyncio.run(make_fetcher(handler).fetch_latest_issue("pub_1"))

    assert issue.id == "post_1"
    assert issue.body_markup.startswith("<h6")

    request = seen[0]
    assert request.url.path == "/v2/publications/pub_1/posts"
    assert request.url.params["limit"] == "1"
    assert request.url.params["order_by"] == "created_timestamp"
    assert request.url.params["direction"] == "desc"
    assert request.url.params["expand"] == "free_rss_content"
    assert request.headers["Authorization"] == "Bearer test-key"


def test_publication_without_posts() -> None:
    fetcher = make_fetcher(lambda request: httpx.Response(200, json={"data": []}))

    assert asyncio.run(fetcher.fetch_latest_issue("pub_1")) is None


def test_http_error_status_raises() -> None:
    fetcher = make_fetcher(lambda request: httpx.Response(401, text="invalid token"))

    with pytest.raises(IssueFetchError, match="401"):
        asyncio.run(fetcher.fetch_latest_issue("pub_1"))


def test_invalid_json_raises() -> None:
    fetcher = make_fetcher(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(IssueFetchError):
        asyncio.run(fetcher.fetch_latest_issue("pub_1"))


def test_transport_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(IssueFetchError, match="HTTP error"):
        asyncio.run(make_fetcher(handler).fetch_latest_issue("pub_1"))


def test_fetch_single_issue() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v2/publications/pub_1/posts/post_9"
        return httpx.Response(200, json={"data": post("post_9")})

    issue = asyncio.run(make_fetcher(handler).fetch_issue("pub_1", "post_9"))

    assert issue.id == "post_9"


def test_fetch_latest_for_several_publications() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "pub_bad" in request.url.path:
            return httpx.Response(500, text="server error")
        return httpx.Response(200, json={"data": [post()]})

    results = make_fetcher(handler).fetch_latest_sync(["pub_1", "pub_bad"])

    assert [result.success for result in results] == [True, False]
    assert results[0].issue.id == "post_1"
    assert "500" in results[1].error
