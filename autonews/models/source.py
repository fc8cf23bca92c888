"""Source model for YouTube channels polled by the pipeline."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import DBModel


class Source(DBModel):
    """Channel/author that is periodically polled for new videos."""

    channel_id: str = Field(..., description="External YouTube channel ID")
    name: str = Field(..., description="Display name")
    active: bool = Field(True, description="Whether the source is polled")
    language: str = Field("ar", description="Transcript and article language hint")
    category: Optional[str] = Field(None, description="Category assigned to generated articles")
    last_fetched_at: Optional[datetime] = Field(None, description="When the pipeline last polled this source")
    fetch_count: int = Field(0, description="Number of completed polls", ge=0)
