"""Merge uploads and, when needed, reduce the result to the target size."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from pdf_merge_compress.processor.errors import ReduceError
from pdf_merge_compress.processor.merger import merge_pdfs
from pdf_merge_compress.processor.reducer import PDFSizeReducer


async def _merge_and_compress(
        buffers: Sequence[bytes],
        target_size_kb: float,
        reducer: Optional[PDFSizeReducer],
        log: logging.Logger | logging.LoggerAdapter,
) -> bytes:
    log.info("Merging %d PDFs...", len(buffers))
    merged = await asyncio.to_thread(merge_pdfs, buffers, log)

    merged_kb = len(merged) / 1024
    log.info("Merged PDF size: %.2f MB", merged_kb / 1024)
    if merged_kb <= target_size_kb:
        return merged

    log.info("Compressing to target size: %.2f MB...", target_size_kb / 1024)
    reducer = reducer or PDFSizeReducer(logger=log)
    result = await reducer.reduce(merged, target_size_kb)
    log.info(
        "Final PDF size: %.2f MB (outcome=%s, attempts=%d)",
        result.size / 1024 / 1024,
        result.outcome.value,
        len(result.attempts),
    )
    return result.data


async def merge_and_compress(
        buffers: Sequence[bytes],
        target_size_kb: float,
        *,
        timeout: Optional[float] = None,
        reducer: Optional[PDFSizeReducer] = None,
        logger: Optional[logging.Logger | logging.LoggerAdapter] = None,
) -> bytes:
    """Merge ``buffers`` in order and shrink the result towards ``target_size_kb``.

    ``timeout`` (seconds) bounds the whole call; expiry is reported as
    :class:`ReduceError`.
    """
    log = logger or logging.getLogger(__name__)
    work = _merge_and_compress(buffers, target_size_kb, reducer, log)
    if not timeout:
        return await work

    try:
        return await asyncio.wait_for(work, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ReduceError(f"Processing did not finish within {timeout:g} seconds") from e
