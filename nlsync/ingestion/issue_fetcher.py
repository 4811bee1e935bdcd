"""Provider API client for newsletter issues."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..parsing.models import IssuePayload
from .models import FetchResult

logger = logging.getLogger(__name__)


class IssueFetchError(Exception):
    """The provider API could not be reached or returned an unusable answer."""


class IssueFetcher:
    """Fetch issues (posts) from the newsletter provider API."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        timeout: float = 30.0,
        max_concurrent: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize issue fetcher."""
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise IssueFetchError(
                f"Provider API error: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise IssueFetchError(f"HTTP error: {e}") from e
        except ValueError as e:
            raise IssueFetchError(f"Invalid JSON from provider: {e}") from e

        if not isinstance(data, dict):
            raise IssueFetchError("Unexpected provider response shape")
        return data

    async def fetch_latest_issue(self, publication_id: str) -> Optional[IssuePayload]:
        """Latest issue of a publication, or None when it has no posts."""
        logger.info("Fetching latest issue of publication %s", publication_id)
        data = await self._get_json(
            f"/publications/{publication_id}/posts",
            {
                "page": 0,
                "limit": 1,
                "order_by": "created_timestamp",
                "direction": "desc",
                "expand": "free_rss_content",
            },
        )
        posts = data.get("data") or []
        if not posts:
            return None

        issue = IssuePayload.from_raw(posts[0])
        if issue is None:
            raise IssueFetchError("Malformed post in provider response")
        return issue

    async def fetch_issue(self, publication_id: str, post_id: str) -> IssuePayload:
        """One issue by its provider post id."""
        data = await self._get_json(
            f"/publications/{publication_id}/posts/{post_id}",
            {"expand": "free_rss_content"},
        )
        issue = IssuePayload.from_raw(data.get("data"))
        if issue is None:
            raise IssueFetchError(f"Malformed post {post_id} in provider response")
        return issue

    async def fetch_latest_for_all(self, publication_ids: List[str]) -> List[FetchResult]:
        """Fetch the latest issue of every publication concurrently."""
        if not publication_ids:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def fetch_with_semaphore(publication_id: str) -> FetchResult:
            async with semaphore:
                try:
                    issue = await self.fetch_latest_issue(publication_id)
                except IssueFetchError as e:
                    logger.warning("Fetching publication %s failed: %s", publication_id, e)
                    return FetchResult(publication_id=publication_id, success=False, error=str(e))
                return FetchResult(publication_id=publication_id, success=True, issue=issue)

        tasks = [fetch_with_semaphore(publication_id) for publication_id in publication_ids]
        return list(await asyncio.gather(*tasks))

    def fetch_latest_sync(self, publication_ids: List[str]) -> List[FetchResult]:
        """Synchronous wrapper for fetch_latest_for_all."""
        return asyncio.run(self.fetch_latest_for_all(publication_ids))
