from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s request_id=%(request_id)s %(message)s"


class RequestIdFilter(logging.Filter):
    """
    Gives records logged outside a request (startup, uvicorn) a request_id of "-".
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


def setup_logging(
        log_dir: Optional[Path],
        level: str = "INFO",
        file_name: str = "merge_compress.log",
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 10,
) -> None:
    """Console logging plus a rotating file in ``log_dir`` (skipped when None)."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicated handlers on reloads
    if root.handlers:
        return

    fmt = logging.Formatter(fmt=LOG_FORMAT)
    request_filter = RequestIdFilter()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                filename=str(log_dir / file_name),
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
        )

    for handler in handlers:
        handler.setFormatter(fmt)
        handler.addFilter(request_filter)
        root.addHandler(handler)

    # uvicorn is started with log_config=None; route its loggers through ours.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers.clear()
        logging.getLogger(name).propagate = True
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
