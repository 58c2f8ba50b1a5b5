from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except Exception:
        return default


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    # None: console logging only
    logs_dir: Optional[Path]
    static_dir: Path

    default_target_mb: float
    max_files: int
    max_file_size: int

    # seconds; 0 disables the wall-clock limit
    process_timeout: float

    log_level: str

    @staticmethod
    def from_env() -> "Settings":
        host = os.getenv("HOST", "0.0.0.0").strip()
        port = _env_int("PORT", 3000)

        logs_env = os.getenv("LOGS_DIR", "logs").strip()
        logs_dir = Path(logs_env) if logs_env else None
        static_dir = Path(os.getenv("STATIC_DIR", str(Path("web") / "static")))

        default_target_mb = _env_float("DEFAULT_TARGET_MB", 9.0)
        if not math.isfinite(default_target_mb) or default_target_mb <= 0:
            default_target_mb = 9.0

        max_files = _env_int("MAX_FILES", 20)
        max_file_size = _env_int("MAX_FILE_SIZE", 100 * 1024 * 1024)  # 100 MiB

        process_timeout = max(0.0, _env_float("PROCESS_TIMEOUT", 0.0))

        log_level = os.getenv("LOG_LEVEL", "INFO").strip()

        return Settings(
            host=host,
            port=port,
            logs_dir=logs_dir,
            static_dir=static_dir,
            default_target_mb=default_target_mb,
            max_files=max_files,
            max_file_size=max_file_size,
            process_timeout=process_timeout,
            log_level=log_level,
        )
