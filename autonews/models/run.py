"""Run model for tracking pipeline executions."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from .base import DBModel


class Run(DBModel):
    """Pipeline run model."""

    started_at: datetime = Field(..., description="When the run started")
    finished_at: Optional[datetime] = Field(None, description="When the run finished")
    status: str = Field("running", description="Run status (success, failed, running)")
    source_id: Optional[int] = Field(None, description="Source selected for this run")
    stats_json: Optional[Dict[str, Any]] = Field(None, description="Aggregate run statistics")
