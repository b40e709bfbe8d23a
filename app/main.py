"""PDF Shrink Service - FastAPI application."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.api.errors import register_error_handlers
from app.api.v1.router import v1_router, pdf_router_compat
from app.api.v1.health import router as health_root_router
from app.api.v1 import health as health_api
from app.api.v1 import pdf as pdf_api
from app.jobs.executor_pool import ExecutorPoolDispatcher
from app.processing.convergence import ConvergenceController
from app.processing.ghostscript import GhostscriptRunner
from app.storage.workspace import TempWorkspace

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Global dispatcher reference
_dispatcher = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    global _dispatcher

    runner = GhostscriptRunner(
        settings.ghostscript_executable(),
        timeout_seconds=settings.tool_timeout_seconds,
    )
    workspace = TempWorkspace(
        settings.incoming_dir,
        settings.outgoing_dir,
        ttl_hours=settings.temp_file_ttl_hours,
    )
    workspace.ensure_dirs()

    logger.info("Starting PDF Shrink Service on port %d", settings.server_port)
    logger.info("Using Ghostscript: %s", runner.executable)
    logger.info("Incoming dir: %s, outgoing dir: %s", workspace.incoming_dir, workspace.outgoing_dir)
    expired = workspace.cleanup_expired()
    if expired:
        logger.info("Removed %d expired temp file(s)", expired)

    controller = ConvergenceController(runner)
    _dispatcher = ExecutorPoolDispatcher(
        worker_fn=controller.run,
        max_workers=settings.max_concurrent_jobs,
    )
    await _dispatcher.start()
    logger.info("Job pool started (%d workers)", settings.max_concurrent_jobs)

    # Wire dispatcher and workspace into API endpoints
    pdf_api.set_dispatcher(_dispatcher)
    pdf_api.set_workspace(workspace, max_upload_mb=settings.max_upload_mb)
    health_api.set_components(runner, _dispatcher, workspace)

    yield

    # Shutdown
    logger.info("Shutting down PDF Shrink Service")
    await _dispatcher.stop()
    workspace.cleanup_expired()


app = FastAPI(
    title="PDF Shrink Service",
    description="Compress or resize PDFs toward a target size with Ghostscript",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS: the browser tool needs to read the size headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Original-KB", "X-Final-KB", "X-Target-Met"],
)

register_error_handlers(app)

# Mount routers
app.include_router(health_root_router, tags=["health"])  # GET /health at root
app.include_router(v1_router)  # All /api/v1/* endpoints
app.include_router(pdf_router_compat)  # /compress, /resize at root

# Front-end last so API routes take precedence
if settings.static_dir:
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True, check_dir=False), name="static")


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.server_port)
