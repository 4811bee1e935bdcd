"""Data models for newsletter parsing.

Python attribute names are English; the provider-facing wire names are the
field aliases, produced by ``model_dump(by_alias=True)``.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class IssueFreeContent(BaseModel):
    """Free-tier content of an issue."""

    rss: Optional[str] = Field(None, description="Issue body markup")


class IssueContent(BaseModel):
    """Content envelope of an issue."""

    free: Optional[IssueFreeContent] = Field(None, description="Free-tier content")
    rss: Optional[str] = Field(None, description="Issue body markup")


class IssuePayload(BaseModel):
    """One newsletter issue as delivered by the provider."""

    id: Optional[str] = Field(None, description="Provider issue id")
    title: Optional[str] = Field(None, description="Issue title")
    subject_line: Optional[str] = Field(None, description="Email subject line")
    preview_text: Optional[str] = Field(None, description="Email preview text")
    thumbnail_url: Optional[str] = Field(None, description="Issue thumbnail")
    web_url: Optional[str] = Field(None, description="Web version URL")
    created: Optional[float] = Field(None, description="Creation time (epoch seconds)")
    publish_date: Optional[float] = Field(None, description="Publish time (epoch seconds)")
    content: Optional[IssueContent] = Field(None, description="Body envelope")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Accept numeric provider ids."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def body_markup(self) -> Optional[str]:
        """Body markup from ``content.free.rss``, else ``content.rss``."""
        if self.content is None:
            return None
        if self.content.free is not None and self.content.free.rss:
            return self.content.free.rss
        return self.content.rss or None

    @classmethod
    def from_raw(cls, data: Any) -> Optional["IssuePayload"]:
        """Validate a raw payload, returning None when it is unusable."""
        if isinstance(data, cls):
            return data
        if not isinstance(data, dict):
            return None
        try:
            return cls.model_validate(data)
        except ValidationError:
            return None


class ExternalLink(BaseModel):
    """Outbound link found in an item body."""

    url: str = Field(..., description="Absolute link target")
    text: str = Field("", alias="texto", description="Anchor visible text")

    model_config = ConfigDict(populate_by_name=True)


class ExtractedItem(BaseModel):
    """One news item extracted from an issue."""

    number: int = Field(..., alias="numero", ge=1)
    title: str = Field(..., alias="titulo", min_length=1)
    title_id: str = Field("", alias="titulo_id")
    category: str = Field(..., alias="categoria")
    category_id: str = Field("", alias="categoria_id")
    body_html: str = Field("", alias="conteudo_html")
    summary: str = Field("", alias="resumo")
    image_url: str = Field("", alias="imagem_principal")
    image_source: str = Field("", alias="fonte_imagem")
    links: List[ExternalLink] = Field(default_factory=list, alias="links_externos")
    link_count: int = Field(0, alias="total_links")
    start_marker: str = Field(..., alias="id_inicio")
    end_marker: str = Field(..., alias="id_fim")

    model_config = ConfigDict(populate_by_name=True)


class IssueMetadata(BaseModel):
    """Descriptive fields of the issue plus extraction totals."""

    issue_id: Optional[str] = Field(None, description="Provider issue id")
    title: str = Field("Newsletter", alias="titulo")
    subject_line: str = ""
    preview_text: str = ""
    thumbnail_url: str = ""
    web_url: str = ""
    created: str = Field(..., description="ISO-8601 creation time")
    publish_date: str = Field(..., description="ISO-8601 publish time")
    total_items: int = Field(0, alias="total_noticias")
    categories: List[str] = Field(default_factory=list, alias="categorias_encontradas")
    strategy: str = Field("none", description="Extraction stage that produced the items")

    model_config = ConfigDict(populate_by_name=True)


class ParseResult(BaseModel):
    """Items extracted from one issue."""

    items: List[ExtractedItem] = Field(default_factory=list, alias="noticias")
    metadata: IssueMetadata

    model_config = ConfigDict(populate_by_name=True)
