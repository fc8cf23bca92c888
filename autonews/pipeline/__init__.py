"""Pipeline orchestration, triggers and scheduling."""

from .orchestrator import PipelineOrchestrator, PipelineSummary, build_orchestrator, cap_text
from .scheduler import PipelineScheduler
from .triggers import reprocess_stuck_videos, trigger_run, verify_secret

__all__ = [
    "PipelineOrchestrator",
    "PipelineScheduler",
    "PipelineSummary",
    "build_orchestrator",
    "cap_text",
    "reprocess_stuck_videos",
    "trigger_run",
    "verify_secret",
]
