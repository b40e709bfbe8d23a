"""PDF shrink endpoints.

  POST /compress  - lower image resolution, optionally toward targetKb
  POST /resize    - lower page dimensions toward targetKb (required)

Both answer with the PDF itself plus size headers, or {"error": ...}.
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from app.errors import JobValidationError
from app.jobs.models import ShrinkJob, ShrinkMode
from app.processing.convergence import ShrinkResult, validate_job

logger = logging.getLogger(__name__)

router = APIRouter()

# Wired in during lifespan
_dispatcher = None
_workspace = None
_max_upload_bytes = 200 * 1024 * 1024


def set_dispatcher(dispatcher):
    global _dispatcher
    _dispatcher = dispatcher


def set_workspace(workspace, max_upload_mb: Optional[int] = None):
    global _workspace, _max_upload_bytes
    _workspace = workspace
    if max_upload_mb is not None:
        _max_upload_bytes = max_upload_mb * 1024 * 1024


_OUTPUT_PREFIX = {
    ShrinkMode.COMPRESS: "compressed",
    ShrinkMode.RESIZE: "resized",
}


# ---------------------------------------------------------------------------
# POST /compress
# ---------------------------------------------------------------------------

@router.post("/compress")
async def compress_pdf(
    pdf: Optional[UploadFile] = File(None),
    target_kb: Optional[int] = Form(None, alias="targetKb"),
    quality: Optional[int] = Form(None),
):
    """Compress by downsampling images.

    With targetKb the resolution steps down from 200dpi until the file fits;
    otherwise one pass at the resolution implied by quality (0-100).
    """
    job, result = await _shrink(pdf, ShrinkMode.COMPRESS, target_kb, quality)
    headers = {
        "X-Original-KB": str(result.original_kb),
        "X-Final-KB": str(result.final_kb),
    }
    if job.target_kb is not None:
        headers["X-Target-Met"] = _flag(result.met_budget)
    return _file_response(job, result, headers)


# ---------------------------------------------------------------------------
# POST /resize
# ---------------------------------------------------------------------------

@router.post("/resize")
async def resize_pdf(
    pdf: Optional[UploadFile] = File(None),
    target_kb: Optional[int] = Form(None, alias="targetKb"),
):
    """Shrink page dimensions from 100% scale in 10% steps until the file fits targetKb."""
    job, result = await _shrink(pdf, ShrinkMode.RESIZE, target_kb, None)
    headers = {
        "X-Final-KB": str(result.final_kb),
        "X-Target-Met": _flag(result.met_budget),
    }
    return _file_response(job, result, headers)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _shrink(
    pdf: Optional[UploadFile],
    mode: ShrinkMode,
    target_kb: Optional[int],
    quality: Optional[int],
):
    if _dispatcher is None or _workspace is None:
        raise HTTPException(status_code=503, detail="Dispatcher not ready")

    if pdf is None or not pdf.filename:
        raise JobValidationError("No file uploaded")

    job = ShrinkJob(
        mode=mode,
        input_path=_workspace.incoming_path(pdf.filename),
        output_path=_workspace.output_path(_OUTPUT_PREFIX[mode]),
        original_filename=pdf.filename,
        target_kb=target_kb,
        quality=quality,
    )

    # BaseException: a cancelled request (client gone, shutdown) drains too
    try:
        await _save_upload(pdf, job.input_path)
        validate_job(job)
        result = await _dispatcher.run(job, on_abandon=_discard_job_files)
    except BaseException:
        _discard_job_files(job)
        raise

    logger.info(
        "[%s] %s %s: %dKB -> %dKB (%s)",
        job.id,
        mode.value,
        job.original_filename,
        result.original_kb,
        result.final_kb,
        result.stop_reason.value,
    )
    return job, result


async def _save_upload(pdf: UploadFile, upload_path: str) -> None:
    """Stream the upload to disk in 1 MB chunks, bounded by the size limit."""
    total = 0
    try:
        with open(upload_path, "wb") as dst:
            while True:
                chunk = await pdf.read(1024 * 1024)
                if not chunk:
                    break
                total += len(chunk)
                if total > _max_upload_bytes:
                    raise HTTPException(
                        status_code=413,
                        detail=f"File too large (max {_max_upload_bytes // (1024 * 1024)} MB)",
                    )
                dst.write(chunk)
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to save upload: {exc}")


def _discard_job_files(job: ShrinkJob) -> None:
    _workspace.discard(job.input_path, job.output_path)


def _file_response(job: ShrinkJob, result: ShrinkResult, headers: dict) -> FileResponse:
    """Stream the final PDF; input and output are removed once it has been sent."""
    download_name = f"{_OUTPUT_PREFIX[job.mode]}_{int(time.time() * 1000)}.pdf"
    return FileResponse(
        result.final_path,
        media_type="application/pdf",
        filename=download_name,
        headers=headers,
        background=BackgroundTask(_workspace.discard, job.input_path, result.final_path),
    )


def _flag(value: bool) -> str:
    return "true" if value else "false"
