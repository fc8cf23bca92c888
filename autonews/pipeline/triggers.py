"""On-demand trigger and recovery operations shared by the CLI and HTTP surfaces."""

import hmac
from typing import Any, Dict, Optional

from rich.console import Console

from ..config.loader import PLACEHOLDER_SECRETS
from ..db.store import ContentStore
from ..errors import PipelineError
from ..models import RETRYABLE_STATUSES
from .orchestrator import PipelineOrchestrator

console = Console()


def verify_secret(expected: Optional[str], supplied: Optional[str]) -> bool:
    """Constant-time credential check; an unset or placeholder secret never matches."""
    if not expected or expected in PLACEHOLDER_SECRETS or not supplied:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


async def trigger_run(orchestrator: PipelineOrchestrator) -> Dict[str, Any]:
    """Run the pipeline once and return a structured result."""
    try:
        summary = await orchestrator.run()
    except PipelineError as e:
        console.print(f"[red][Pipeline] Run failed: {e}[/red]")
        return {"success": False, "error": "Pipeline failed", "details": str(e)}

    if summary.skipped:
        message = "Pipeline already running"
    else:
        message = "Pipeline completed"

    return {
        "success": True,
        "message": message,
        "processed": summary.processed,
        "articles": summary.articles,
        "errors": summary.errors,
        "skipped": summary.skipped,
    }


async def reprocess_stuck_videos(
    store: ContentStore,
    orchestrator: PipelineOrchestrator,
) -> Dict[str, Any]:
    """
    Forget videos that ended without an article and run the pipeline again.

    Records in ``no_transcript`` or ``failed`` are deleted so discovery sees
    their IDs as new. Transcribed records that already have an article are
    moved to ``article_generated`` first.
    """
    repaired = await orchestrator.repair_article_status()
    stuck = await store.find_videos_by_status(RETRYABLE_STATUSES)

    deleted = 0
    for video in stuck:
        await store.delete_video(video.id)
        deleted += 1

    if deleted == 0:
        return {
            "success": True,
            "message": "No videos to reprocess",
            "deleted": 0,
            "repaired": repaired,
            "pipeline": None,
        }

    console.print(f"[cyan][Pipeline] Deleted {deleted} stuck videos, re-running pipeline[/cyan]")
    pipeline = await trigger_run(orchestrator)

    return {
        "success": pipeline["success"],
        "message": f"Deleted {deleted} videos and re-ran pipeline",
        "deleted": deleted,
        "repaired": repaired,
        "pipeline": pipeline,
    }
