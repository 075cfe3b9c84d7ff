"""FastAPI application receiving chat messages and reporting job status."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool

from ..config import Settings
from ..controller import JobRequest
from ..logging_config import setup_logging
from ..runtime import Runtime

logger = logging.getLogger(__name__)


def create_runtime() -> Runtime:
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_file)
    runtime = Runtime.from_settings(settings)
    runtime.install_exit_handlers()
    return runtime


def create_app(runtime: Optional[Runtime] = None) -> FastAPI:
    """Build the app; without ``runtime`` one is created from the environment on start-up."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        rt = runtime or create_runtime()
        app.state.runtime = rt
        # Requests are only served once the plotter is parked and the board cleared
        await run_in_threadpool(rt.start)
        logger.info("Server running")
        try:
            yield
        finally:
            await run_in_threadpool(rt.shutdown)

    app = FastAPI(title="Teleplotter", lifespan=lifespan)

    def pipeline():
        return app.state.runtime.pipeline

    @app.get("/api/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/status")
    def status() -> Dict[str, Any]:
        return {"job": pipeline().job_status()}

    @app.post("/api/messages")
    def post_message(payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            request = JobRequest.from_message(payload)
        except (ValueError, AttributeError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if request is None:
            return {"ok": True, "accepted": False, "ignored": True}
        if not pipeline().submit(request):
            if not pipeline().is_ready:
                raise HTTPException(status_code=503, detail="Plotter is starting")
            raise HTTPException(status_code=409, detail="Plotter is busy")
        return {"ok": True, "accepted": True}

    return app


app = create_app()


def run(settings: Optional[Settings] = None) -> None:
    settings = settings or Settings.from_env()
    uvicorn.run("teleplotter.server.app:app", host=settings.host, port=settings.port, reload=False)


__all__ = ["app", "create_app", "create_runtime", "run"]
