"""Incoming/outgoing file directories with per-request paths and TTL cleanup."""

import logging
import os
import shutil
import time
import uuid
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class TempWorkspace:
    """Owns the upload (incoming) and generated-artifact (outgoing) directories.

    Directories are the only state shared between requests; every path
    handed out is unique, so concurrent jobs never need a lock.
    """

    def __init__(self, incoming_dir: str, outgoing_dir: str, ttl_hours: int = 2):
        self.incoming_dir = incoming_dir
        self.outgoing_dir = outgoing_dir
        self._ttl_seconds = ttl_hours * 3600

    def ensure_dirs(self) -> None:
        os.makedirs(self.incoming_dir, exist_ok=True)
        os.makedirs(self.outgoing_dir, exist_ok=True)

    def incoming_path(self, filename: str = "upload.pdf") -> str:
        """Fresh path in the incoming directory for an upload."""
        ext = os.path.splitext(filename)[1] or ".pdf"
        return os.path.join(self.incoming_dir, f"{uuid.uuid4().hex}{ext}")

    def output_path(self, prefix: str) -> str:
        """Fresh path in the outgoing directory, e.g. compressed_1700000000000_ab12cd34.pdf"""
        stamp = int(time.time() * 1000)
        return os.path.join(
            self.outgoing_dir, f"{prefix}_{stamp}_{uuid.uuid4().hex[:8]}.pdf"
        )

    def discard(self, *paths: str) -> None:
        """Best-effort delete. Failures are logged, never raised."""
        for path in paths:
            if path:
                _remove_quietly(path)

    def cleanup_expired(self) -> int:
        """Remove entries older than the TTL from both directories. Returns count removed.

        Catches files left behind by clients that disconnected mid-job.
        """
        now = time.time()
        removed = 0
        for base_dir in (self.incoming_dir, self.outgoing_dir):
            if not os.path.isdir(base_dir):
                continue
            for entry in os.listdir(base_dir):
                path = os.path.join(base_dir, entry)
                try:
                    if now - os.path.getmtime(path) <= self._ttl_seconds:
                        continue
                    if os.path.isdir(path):
                        shutil.rmtree(path, ignore_errors=True)
                    else:
                        os.remove(path)
                    removed += 1
                except OSError as e:
                    logger.warning("Could not expire %s: %s", path, e)
        return removed


class CandidateSlot:
    """The single on-disk artifact a job may hold, plus the attempt being written.

    Each attempt writes to scratch_path. A successful attempt replaces the
    previous artifact at path; a failed one is thrown away and the previous
    artifact stays. At most one finished artifact exists at any time.
    """

    def __init__(self, path: str):
        self.path = path
        self.scratch_path = f"{path}.part"

    def begin(self) -> str:
        """Clear leftovers and return the path the next attempt should write to."""
        _remove_quietly(self.scratch_path)
        return self.scratch_path

    def commit(self) -> None:
        """Promote the attempt just written. No file from the attempt means no artifact."""
        if os.path.exists(self.scratch_path):
            os.replace(self.scratch_path, self.path)
        else:
            _remove_quietly(self.path)

    def abort(self) -> None:
        _remove_quietly(self.scratch_path)


@contextmanager
def candidate_output(path: str) -> Iterator[CandidateSlot]:
    """Scope a job's output path: absent on entry, no scratch left on exit.

    If the body raises, the artifact is removed too; on normal exit it is
    left for the caller to stream and delete.
    """
    slot = CandidateSlot(path)
    _remove_quietly(path)
    try:
        yield slot
    except BaseException:
        _remove_quietly(path)
        raise
    finally:
        slot.abort()


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)
