"""Configuration models."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("nlsync", description="Database name")
    user: str = Field("nlsync_user", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")
    statement_timeout_ms: int = Field(5000, description="Per-statement timeout", ge=100)
    pool_min_size: int = Field(1, description="Connections kept open", ge=1)
    pool_max_size: int = Field(10, description="Upper bound on open connections", ge=1)


class ParserConfig(BaseModel):
    """Newsletter markup conventions and filters."""

    section_break_class: str = Field("content_break", description="Class token of the section rule")
    ignored_sections: List[str] = Field(
        default_factory=lambda: [
            "rodapé",
            "quem somos",
            "dicas do final de semana",
            "opinião do leitor",
            "giveaway",
        ],
        description="Category names (substring, case-insensitive) that are not news",
    )
    placeholder_titles: List[str] = Field(
        default_factory=lambda: ["Título", "Title"],
        description="Titles skipped by the fallback extractor",
    )
    wrapper_title_phrases: List[str] = Field(
        default_factory=lambda: ["edição de hoje", "giro por"],
        description="Title phrases marking non-news wrappers",
    )
    min_fallback_body_length: int = Field(50, ge=0)
    summary_max_length: int = Field(200, ge=1)
    excluded_link_domains: List[str] = Field(
        default_factory=lambda: ["thenewscc.com.br", "api.whatsapp.com"],
        description="Hosts never reported as outbound links",
    )
    fallback_category_name: str = Field("GERAL")
    fallback_category_id: str = Field("geral")

    @field_validator("section_break_class")
    @classmethod
    def validate_break_class(cls, v: str) -> str:
        """Reject class tokens containing whitespace."""
        if not v or any(ch.isspace() for ch in v):
            raise ValueError("section_break_class must be a single class token")
        return v


class SyncConfig(BaseModel):
    """Article sync behaviour."""

    source: str = Field("newsletter", description="Source tag written on every article")
    default_status: str = Field("draft", description="Status of newly created articles")
    max_attempts: int = Field(2, description="Attempts per store call", ge=1, le=5)
    retry_wait_seconds: float = Field(0.2, ge=0.0)


class ProviderConfig(BaseModel):
    """Newsletter provider API configuration."""

    base_url: str = Field("https://api.beehiiv.com/v2", description="Provider API base URL")
    api_key_env: Optional[str] = Field("NLSYNC_PROVIDER_API_KEY", description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    publication_ids: List[str] = Field(
        default_factory=list, description="Publications synced when no source is given"
    )
    max_concurrent: int = Field(3, description="Parallel provider requests", ge=1)
    timeout: float = Field(30.0, gt=0)


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
