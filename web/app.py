from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles

from pdf_merge_compress.processor import ParseError, merge_and_compress
from pdf_merge_compress.settings import Settings

BUNDLED_STATIC_DIR = Path(__file__).parent / "static"
RESULT_FILENAME = "merged-compressed.pdf"

log = logging.getLogger("pdf_merge_compress.web")


def parse_target_size_mb(raw: Optional[str], default: float) -> float:
    """Form value -> positive megabytes, falling back to ``default``."""
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value) or value <= 0:
        return default
    return value


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="PDF Merge & Compress")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/api/merge-compress")
    async def api_merge_compress(
            pdfs: Optional[List[UploadFile]] = File(None),
            target_size: Optional[str] = Form(None, alias="targetSize"),
    ):
        adapter = logging.LoggerAdapter(log, {"request_id": uuid.uuid4().hex[:12]})

        if not pdfs:
            return _error("No PDF files uploaded", 400)
        if len(pdfs) > settings.max_files:
            return _error(f"Too many files: at most {settings.max_files} PDFs per request", 400)

        buffers: List[bytes] = []
        for upload in pdfs:
            content = await upload.read()
            if len(content) > settings.max_file_size:
                return _error(
                    f"File '{upload.filename}' exceeds the {settings.max_file_size // (1024 * 1024)} MB limit",
                    413,
                )
            buffers.append(content)

        target_mb = parse_target_size_mb(target_size, settings.default_target_mb)
        adapter.info("Received %d PDFs, target %.2f MB", len(buffers), target_mb)

        try:
            final_pdf = await merge_and_compress(
                buffers,
                target_mb * 1024,
                timeout=settings.process_timeout or None,
                logger=adapter,
            )
        except ParseError as e:
            adapter.warning("Rejected upload: %s", e)
            return _error(f"Failed to process PDFs: {e}", 400)
        except Exception as e:
            adapter.exception("Error processing PDFs: %s", e)
            return _error(f"Failed to process PDFs: {e}", 500)
        finally:
            buffers.clear()

        return Response(
            content=final_pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{RESULT_FILENAME}"'},
        )

    @app.get("/health")
    async def health():
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    static_dir = settings.static_dir if settings.static_dir.is_dir() else BUNDLED_STATIC_DIR
    # Mounted last so it does not shadow the API routes.
    app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")

    return app


app = create_app()
