"""Article models for records created from newsletter items."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .base import DBModel


class ArticleStatus(str, Enum):
    """Editorial workflow states."""

    DRAFT = "draft"
    NEWSLETTER_PENDING = "newsletter_pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    ARCHIVED = "archived"
    REJECTED = "rejected"


class ContentBlock(BaseModel):
    """One block of structured article content."""

    id: str = Field(..., description="Block id, stable for the same body")
    type: str = Field(..., description="heading, paragraph, image, quote or list")
    data: Dict[str, Any] = Field(default_factory=dict, description="Block payload")


class ArticleCandidate(BaseModel):
    """Article fields derived from one extracted newsletter item."""

    title: str = Field(..., description="Article title", min_length=1)
    slug: str = Field(..., description="URL slug", min_length=1)
    content: List[Dict[str, Any]] = Field(default_factory=list, description="Ordered content blocks")
    excerpt: str = Field("", description="Plain-text excerpt")
    category: Optional[str] = Field(None, description="Category display name")
    category_ref: Optional[str] = Field(None, description="Category marker id from the issue")
    source: str = Field("newsletter", description="Origin of the article")
    source_id: Optional[str] = Field(None, description="Stable per-item id within the source")
    source_url: Optional[str] = Field(None, description="Web URL of the originating issue")
    newsletter: Optional[str] = Field(None, description="Subject line of the originating issue")
    publication_ref: Optional[str] = Field(None, description="Publication the issue belongs to")
    featured_image: Optional[str] = Field(None, description="Primary image URL")
    image_source: Optional[str] = Field(None, description="Image attribution text")
    external_links: List[Dict[str, str]] = Field(default_factory=list, description="Outbound links")
    word_count: int = Field(0, description="Words in the article body", ge=0)
    read_time: int = Field(1, description="Estimated reading time in minutes", ge=1)


# Identity fields: set on create, never rewritten by a sync update.
IDENTITY_FIELDS = frozenset({"slug", "source", "source_id"})


class PersistedArticle(DBModel, ArticleCandidate):
    """Article as stored in the article store."""

    status: str = Field(ArticleStatus.DRAFT.value, description="Editorial status")
    published_at: Optional[datetime] = Field(None, description="Publication timestamp")
