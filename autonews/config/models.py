"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("autonews", description="Database name")
    user: str = Field("autonews_user", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")
    min_pool_size: int = Field(1, ge=1, le=20)
    max_pool_size: int = Field(5, ge=1, le=50)


class YouTubeConfig(BaseModel):
    """Video provider configuration."""

    provider: str = Field("auto", description="Video provider (auto, data_api, feed)")
    api_key_env: Optional[str] = Field("YOUTUBE_API_KEY", description="Environment variable for Data API key")
    api_key: Optional[str] = Field(None, description="Data API key (prefer api_key_env)")
    page_size: int = Field(25, description="Videos requested per page", ge=1, le=50)
    max_pages: int = Field(10, description="Safety cap on pages per discovery", ge=1, le=100)
    timeout: float = Field(30.0, description="Request timeout in seconds", gt=0)

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Validate provider name."""
        if v not in ("auto", "data_api", "feed"):
            raise ValueError(f"Unknown video provider: {v}")
        return v


class TranscriptConfig(BaseModel):
    """Transcript extraction configuration."""

    max_attempts: int = Field(3, description="Attempts per strategy on network errors", ge=1, le=10)
    retry_base_delay: float = Field(1.0, description="First backoff delay in seconds", ge=0.0)


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = Field("openai", description="LLM provider (openai)")
    model: str = Field("gpt-4o-mini", description="Model name")
    api_key_env: Optional[str] = Field("OPENAI_API_KEY", description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    base_url: Optional[str] = Field(None, description="Base URL for API (e.g., for a proxy)")
    max_transcript_chars: int = Field(12_000, description="Transcript characters sent to the model", ge=500)
    max_tokens: int = Field(4_000, description="Completion token budget", ge=100)
    temperature: float = Field(0.3, ge=0.0, le=2.0)
    max_retries: int = Field(3, description="Retries on transient errors", ge=0, le=10)
    retry_base_delay: float = Field(1.0, description="First backoff delay in seconds", ge=0.0)
    timeout: float = Field(120.0, description="Per-request wall-clock budget in seconds", gt=0)


class MediaConfig(BaseModel):
    """Thumbnail import configuration."""

    timeout: float = Field(20.0, description="HTTP timeout in seconds", gt=0)
    max_seconds: float = Field(60.0, description="Total wall-clock budget per image", gt=0)


class PipelineConfig(BaseModel):
    """Per-run pipeline parameters."""

    max_videos_per_run: int = Field(5, description="New videos processed per run", ge=1, le=100)
    video_transcript_chars: int = Field(5_000, description="Transcript cap stored on video records", ge=0)
    article_transcript_chars: int = Field(15_000, description="Transcript cap stored on articles", ge=0)
    assign_source_category: bool = Field(True, description="Copy the source category onto articles")
    run_timeout_seconds: Optional[float] = Field(None, description="Abort a run after this many seconds", gt=0)
    ledger_timeout_seconds: float = Field(10.0, description="Budget for each run ledger write", gt=0)


class SchedulerConfig(BaseModel):
    """Periodic trigger configuration."""

    enabled: bool = Field(True, description="Run the pipeline on a timer when serving")
    interval_minutes: float = Field(5.0, description="Minutes between runs", gt=0)
    initial_delay_seconds: float = Field(10.0, description="Delay before the first run", ge=0)


class ServerConfig(BaseModel):
    """HTTP trigger surface configuration."""

    host: str = Field("127.0.0.1", description="Bind host")
    port: int = Field(8000, description="Bind port", ge=1, le=65535)
    cron_secret_env: str = Field("CRON_SECRET", description="Environment variable holding the shared secret")


class ConfigModel(BaseModel):
    """Main configuration model."""

    workspace_root: str = Field("~/autonews", description="Root directory for media files")
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    youtube: YouTubeConfig = Field(default_factory=YouTubeConfig)
    transcripts: TranscriptConfig = Field(default_factory=TranscriptConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


class SourceConfig(BaseModel):
    """Source configuration from sources.yaml."""

    name: str = Field(..., description="Source display name")
    channel_id: str = Field(..., description="YouTube channel ID (UC...)")
    language: str = Field("ar", description="Language hint")
    category: Optional[str] = Field(None, description="Category for generated articles")
    active: bool = Field(True, description="Whether source is polled")

    @field_validator("channel_id")
    @classmethod
    def validate_channel_id(cls, v: str) -> str:
        """Strip whitespace and reject empty IDs."""
        v = v.strip()
        if not v:
            raise ValueError("channel_id must not be empty")
        return v
