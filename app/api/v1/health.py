"""Health check endpoint."""

import platform
import sys

from fastapi import APIRouter

router = APIRouter()

# Set by main.py during lifespan
_runner = None
_dispatcher = None
_workspace = None


def set_components(runner, dispatcher, workspace):
    global _runner, _dispatcher, _workspace
    _runner = runner
    _dispatcher = dispatcher
    _workspace = workspace


@router.get("/health")
def health_check():
    """Service health, Ghostscript availability, and system info."""
    gs_version = _runner.version() if _runner is not None else None

    return {
        "status": "healthy" if gs_version else "degraded",
        "ghostscript_available": gs_version is not None,
        "ghostscript_executable": _runner.executable if _runner is not None else None,
        "ghostscript_version": gs_version,
        "active_jobs": _dispatcher.active_count() if _dispatcher is not None else 0,
        "jobs": [
            {
                "id": job.id,
                "mode": job.mode.value,
                "status": job.status.value,
                "started_at": job.started_at.isoformat() if job.started_at else None,
            }
            for job in (_dispatcher.active_jobs() if _dispatcher is not None else [])
        ],
        "incoming_dir": _workspace.incoming_dir if _workspace is not None else None,
        "outgoing_dir": _workspace.outgoing_dir if _workspace is not None else None,
        "python_version": sys.version,
        "platform": platform.platform(),
    }
