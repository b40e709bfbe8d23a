"""Application configuration via environment variables."""

import sys
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Temporary storage
    incoming_dir: str = "uploads"
    outgoing_dir: str = "output"
    temp_file_ttl_hours: int = 2
    max_upload_mb: int = 200

    # Ghostscript
    ghostscript_path: Optional[str] = None  # defaults to gswin64c / gs by platform
    tool_timeout_seconds: int = 120

    # Job processing
    max_concurrent_jobs: int = 4

    # Server
    host: str = "0.0.0.0"
    server_port: int = 3000
    log_level: str = "INFO"
    static_dir: Optional[str] = None  # serve a front-end at / when set

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def ghostscript_executable(self) -> str:
        if self.ghostscript_path:
            return self.ghostscript_path
        return "gswin64c" if sys.platform == "win32" else "gs"


settings = Settings()
