"""Job record data model for PDF shrink requests."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
import uuid


class ShrinkMode(str, Enum):
    COMPRESS = "compress"  # lower image resolution
    RESIZE = "resize"      # lower page dimensions


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ShrinkJob(BaseModel):
    """One upload being shrunk, from request to response."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    mode: ShrinkMode
    input_path: str
    output_path: str
    original_filename: str = "upload.pdf"
    target_kb: Optional[int] = None
    quality: Optional[int] = None
    status: JobStatus = JobStatus.PENDING
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
