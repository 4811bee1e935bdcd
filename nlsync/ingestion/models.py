"""Data models for issue ingestion."""

from typing import Optional

from pydantic import BaseModel, Field

from ..parsing.models import IssuePayload


class FetchResult(BaseModel):
    """Result of fetching the latest issue of a publication."""

    publication_id: str = Field(..., description="Provider publication id")
    success: bool = Field(..., description="Whether fetch was successful")
    issue: Optional[IssuePayload] = Field(None, description="Latest issue, if the publication has one")
    error: Optional[str] = Field(None, description="Error message if failed")
