"""Concatenate uploaded PDFs into a single document (PyMuPDF)."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import fitz  # PyMuPDF

from pdf_merge_compress.processor.errors import ParseError

MERGED_METADATA = {
    "creator": "pdf-merge-compress",
    "producer": "pdf-merge-compress",
}


def _open_upload(data: bytes, index: int) -> fitz.Document:
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise ParseError(f"Document #{index + 1} is not a valid PDF: {e}", index=index) from e

    if doc.page_count == 0:
        doc.close()
        raise ParseError(f"Document #{index + 1} has no pages", index=index)
    return doc


def merge_pdfs(
        buffers: Sequence[bytes],
        logger: Optional[logging.Logger | logging.LoggerAdapter] = None,
) -> bytes:
    """Append every page of every buffer, in the given order, to a new PDF.

    Parameters
    ----------
    buffers:
        Serialized PDF documents. Page order of the result is upload order,
        then the original page order inside each document.
    logger:
        Optional logger (a request-scoped adapter in the web layer).

    Returns
    -------
    bytes
        The merged document.

    Raises
    ------
    ParseError
        If any buffer cannot be opened; ``index`` identifies which one.
    """
    log = logger or logging.getLogger(__name__)
    if not buffers:
        raise ValueError("At least one PDF document is required")

    merged = fitz.open()
    try:
        for index, data in enumerate(buffers):
            src = _open_upload(data, index)
            try:
                merged.insert_pdf(src)
                log.debug("Appended document #%d (%d pages)", index + 1, src.page_count)
            finally:
                src.close()

        merged.set_metadata(dict(MERGED_METADATA))
        out = merged.tobytes(garbage=3, deflate=True)
        log.info("Merged %d PDFs into %d pages (%d bytes)", len(buffers), merged.page_count, len(out))
        return out
    finally:
        merged.close()
