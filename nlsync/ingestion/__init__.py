"""Newsletter issue ingestion from the provider API."""

from .issue_fetcher import IssueFetcher, IssueFetchError
from .models import FetchResult

__all__ = ["FetchResult", "IssueFetchError", "IssueFetcher"]
