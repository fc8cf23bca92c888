"""HTTP trigger surface for the pipeline."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from rich.console import Console

from .. import __version__
from ..db.store import ContentStore
from ..pipeline import PipelineOrchestrator, PipelineScheduler, verify_secret
from ..pipeline.triggers import reprocess_stuck_videos, trigger_run

console = Console()


def _supplied_secret(request: Request) -> Optional[str]:
    """Credential from ``Authorization: Bearer <secret>`` or the ``secret`` query parameter."""
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()
    return request.query_params.get("secret")


def _unauthorized() -> JSONResponse:
    return JSONResponse({"error": "Unauthorized"}, status_code=status.HTTP_401_UNAUTHORIZED)


def create_app(
    orchestrator: PipelineOrchestrator,
    store: ContentStore,
    cron_secret: Optional[str],
    scheduler: Optional[PipelineScheduler] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        orchestrator: Orchestrator shared by every trigger
        store: Content store used by the recovery endpoint
        cron_secret: Shared secret; when unset every authenticated call is rejected
        scheduler: Optional interval scheduler started with the app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if scheduler is not None:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()

    app = FastAPI(title="autonews", version=__version__, lifespan=lifespan)

    if not cron_secret:
        console.print("[yellow]Warning: No cron secret configured. Trigger endpoints will reject all calls.[/yellow]")

    @app.get("/health")
    async def health():
        return {"status": "ok", "running": orchestrator.is_running}

    @app.get("/api/cron")
    async def cron(request: Request):
        """Run the pipeline once and return its summary."""
        if not verify_secret(cron_secret, _supplied_secret(request)):
            return _unauthorized()

        try:
            result = await trigger_run(orchestrator)
        except Exception as e:
            console.print(f"[red][API] Cron run failed: {e}[/red]")
            result = {"success": False, "error": "Pipeline failed", "details": str(e)}

        if not result["success"]:
            return JSONResponse(result, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return result

    @app.post("/api/reprocess-videos")
    async def reprocess_videos(request: Request):
        """Forget videos without an article and run the pipeline again."""
        if not verify_secret(cron_secret, _supplied_secret(request)):
            return _unauthorized()

        try:
            return await reprocess_stuck_videos(store, orchestrator)
        except Exception as e:
            console.print(f"[red][API] Reprocess failed: {e}[/red]")
            return JSONResponse(
                {"success": False, "error": "Reprocess failed", "details": str(e)},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

    return app
