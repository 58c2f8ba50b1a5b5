"""Iterative PDF size reduction (pikepdf).

Core responsibilities
--------------------
1) Build a fresh working copy of the current source document per attempt.
2) Degrade it according to :class:`ReductionPolicy` (content scaling, page
   box shrinking, metadata/annotation stripping, page dropping).
3) Serialize with the attempt's save profile and stop once the target fits.
4) Every few attempts, reload the produced bytes as the new source so the
   degradation compounds.

The loop never fails just because the target was not reached; it reports a
degraded result or the fixed placeholder document instead.
"""

from __future__ import annotations

import asyncio
import enum
import io
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import pikepdf

from pdf_merge_compress.processor.errors import ReduceError, UnreadableSourceError
from pdf_merge_compress.processor.placeholder import build_placeholder_pdf
from pdf_merge_compress.processor.policy import DEFAULT_POLICY, ReductionPolicy, SaveProfile

METADATA_KEYS = ("/Title", "/Author", "/Subject", "/Keywords", "/Producer", "/Creator")


class Outcome(enum.Enum):
    SUCCESS = "success"
    DEGRADED_SUCCESS = "degraded_success"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class CompressionAttempt:
    """What one iteration of the loop did and produced."""
    attempt: int
    scale_factor: float
    page_count: int
    profile: SaveProfile
    size_bytes: Optional[int] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.size_bytes is not None


@dataclass(frozen=True)
class ReductionResult:
    outcome: Outcome
    data: bytes
    original_size: int
    original_page_count: Optional[int] = None
    attempts: Tuple[CompressionAttempt, ...] = ()

    @property
    def size(self) -> int:
        return len(self.data)


def _open_pdf(data: bytes) -> pikepdf.Pdf:
    return pikepdf.Pdf.open(io.BytesIO(data))


def _serialize(pdf: pikepdf.Pdf, profile: SaveProfile) -> bytes:
    if profile.update_field_appearances and "/AcroForm" in pdf.Root:
        pdf.generate_appearance_streams()

    mode = pikepdf.ObjectStreamMode.generate if profile.use_object_streams else pikepdf.ObjectStreamMode.disable
    buf = io.BytesIO()
    pdf.save(buf, compress_streams=True, object_stream_mode=mode)
    return buf.getvalue()


def _scale_content(pdf: pikepdf.Pdf, page: pikepdf.Page, factor: float) -> None:
    """Wrap the page content in ``q <scale> cm ... Q``."""
    if "/Contents" not in page.obj:
        return
    prefix = f"q {factor:.4f} 0 0 {factor:.4f} 0 0 cm\n".encode("ascii")
    page.contents_add(pikepdf.Stream(pdf, prefix), prepend=True)
    page.contents_add(pikepdf.Stream(pdf, b"\nQ\n"))


def _shrink_page(page: pikepdf.Page, factor: float) -> None:
    x1, y1, x2, y2 = (float(v) for v in page.mediabox)
    llx, lly = min(x1, x2), min(y1, y2)
    width = abs(x2 - x1) * factor
    height = abs(y2 - y1) * factor

    box = [llx, lly, llx + width, lly + height]
    page.obj.MediaBox = pikepdf.Array(box)
    if "/CropBox" in page.obj:
        page.obj.CropBox = pikepdf.Array(box)


def _strip_annotations(page: pikepdf.Page, log: logging.Logger | logging.LoggerAdapter) -> None:
    try:
        if "/Annots" in page.obj:
            del page.obj["/Annots"]
    except Exception as e:
        log.debug("Could not remove annotations: %s", e)


def _carry_document_data(
        source: pikepdf.Pdf,
        working: pikepdf.Pdf,
        keep_forms: bool,
        log: logging.Logger | logging.LoggerAdapter,
) -> None:
    """Copy document information and (optionally) the interactive form."""
    if "/Info" in source.trailer:
        info = source.trailer.Info
        for key in METADATA_KEYS:
            value = info.get(key)
            if isinstance(value, pikepdf.String):
                working.docinfo[key] = pikepdf.String(bytes(value))

    if not keep_forms or "/AcroForm" not in source.Root:
        return
    try:
        acroform = source.Root.AcroForm
        if not acroform.is_indirect:
            acroform = source.make_indirect(acroform)
        working.Root.AcroForm = working.copy_foreign(acroform)
    except Exception as e:
        log.debug("Form data not carried over: %s", e)


def _strip_metadata(working: pikepdf.Pdf, log: logging.Logger | logging.LoggerAdapter) -> None:
    try:
        if "/Info" not in working.trailer:
            return
        info = working.trailer.Info
        for key in METADATA_KEYS:
            if key in info:
                del info[key]
    except Exception as e:
        log.debug("Could not clear metadata: %s", e)


class PDFSizeReducer:
    """Shrink a PDF towards a target size in a bounded number of attempts."""

    def __init__(
            self,
            policy: ReductionPolicy = DEFAULT_POLICY,
            logger: Optional[logging.Logger | logging.LoggerAdapter] = None,
    ) -> None:
        self.policy = policy
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    async def reduce(self, data: bytes, target_size_kb: float) -> ReductionResult:
        """Reduce ``data`` until it fits ``target_size_kb`` or attempts run out.

        Parameters
        ----------
        data:
            Serialized PDF.
        target_size_kb:
            Upper bound for the result, in KiB.

        Returns
        -------
        ReductionResult
            ``SUCCESS`` when the target was met (including the no-op case,
            where ``data`` itself is returned), ``DEGRADED_SUCCESS`` with the
            smallest attempt otherwise, or ``PLACEHOLDER`` when the target was
            far out of reach.

        Raises
        ------
        UnreadableSourceError
            ``data`` could not be parsed.
        ReduceError
            No attempt could be serialized.
        """
        if target_size_kb <= 0:
            raise ValueError(f"Target size must be positive, got {target_size_kb}")

        log = self.logger
        original_size = len(data)
        current_kb = original_size / 1024
        log.info("Initial PDF size: %.2f MB", current_kb / 1024)

        if current_kb <= target_size_kb:
            return ReductionResult(Outcome.SUCCESS, data, original_size)

        try:
            source = await asyncio.to_thread(_open_pdf, data)
        except Exception as e:
            raise UnreadableSourceError(f"Cannot parse document for compression: {e}") from e

        original_page_count = len(source.pages)
        if original_page_count == 0:
            source.close()
            raise UnreadableSourceError("Document has no pages")

        ratio = target_size_kb / current_kb
        log.info("Need to compress to %.1f%% of original size", ratio * 100)

        attempts: List[CompressionAttempt] = []
        best: Optional[bytes] = None
        try:
            for attempt in range(1, self.policy.max_attempts + 1):
                record, produced = await self._run_attempt(source, attempt, ratio)
                attempts.append(record)
                if produced is None:
                    continue

                if best is None or len(produced) < len(best):
                    best = produced

                if len(produced) / 1024 <= target_size_kb:
                    log.info("Successfully compressed to target size at attempt %d", attempt)
                    return ReductionResult(
                        Outcome.SUCCESS, produced, original_size, original_page_count, tuple(attempts)
                    )

                if self.policy.is_checkpoint(attempt):
                    source = await self._reload(source, produced)
        finally:
            source.close()

        if best is None:
            raise ReduceError(
                f"All {len(attempts)} compression attempts failed; last error: {attempts[-1].error}"
            )

        log.warning(
            "Could not achieve target size after %d attempts. Best size: %.2f MB (target was %.2f MB)",
            len(attempts),
            len(best) / 1024 / 1024,
            target_size_kb / 1024,
        )

        if self.policy.wants_placeholder(ratio):
            try:
                placeholder = await asyncio.to_thread(build_placeholder_pdf, original_page_count)
            except Exception as e:
                raise ReduceError(f"Failed to build placeholder document: {e}") from e
            log.info("Created minimal PDF as last resort")
            return ReductionResult(
                Outcome.PLACEHOLDER, placeholder, original_size, original_page_count, tuple(attempts)
            )

        return ReductionResult(
            Outcome.DEGRADED_SUCCESS, best, original_size, original_page_count, tuple(attempts)
        )

    async def _run_attempt(
            self,
            source: pikepdf.Pdf,
            attempt: int,
            ratio: float,
    ) -> Tuple[CompressionAttempt, Optional[bytes]]:
        log = self.logger
        policy = self.policy
        profile = policy.save_profile_for(attempt)
        scale = policy.scale_for(attempt)

        total = len(source.pages)
        keep = policy.pages_to_keep(attempt, ratio, total)
        if keep < total:
            log.info("Reducing to %d pages out of %d", keep, total)

        log.info("Compression attempt %d...", attempt)
        working = None
        try:
            working = await self._build_working_copy(source, attempt, keep, profile)
            produced = await asyncio.to_thread(_serialize, working, profile)
        except Exception as e:
            log.warning("Compression attempt %d failed: %s", attempt, e)
            return CompressionAttempt(attempt, scale, keep, profile, error=str(e)), None
        finally:
            if working is not None:
                working.close()

        log.info("Attempt %d size: %.2f MB", attempt, len(produced) / 1024 / 1024)
        return CompressionAttempt(attempt, scale, keep, profile, size_bytes=len(produced)), produced

    async def _build_working_copy(
            self,
            source: pikepdf.Pdf,
            attempt: int,
            keep: int,
            profile: SaveProfile,
    ) -> pikepdf.Pdf:
        policy = self.policy
        scale = policy.scale_for(attempt)
        dimension_factor = policy.dimension_factor(attempt)
        strip_annotations = policy.strips_annotations(attempt)

        working = pikepdf.Pdf.new()
        try:
            for i in range(keep):
                working.pages.append(source.pages[i])
                page = working.pages[-1]

                if scale != 1.0:
                    _scale_content(working, page, scale)
                if dimension_factor != 1.0:
                    _shrink_page(page, dimension_factor)
                if strip_annotations:
                    _strip_annotations(page, self.logger)

                if (i + 1) % profile.flush_granularity == 0:
                    await asyncio.sleep(0)

            _carry_document_data(source, working, keep_forms=not strip_annotations, log=self.logger)
            if policy.strips_metadata(attempt):
                _strip_metadata(working, self.logger)
        except Exception:
            working.close()
            raise
        return working

    async def _reload(self, source: pikepdf.Pdf, produced: bytes) -> pikepdf.Pdf:
        """Checkpoint: make the just-produced document the new source."""
        try:
            reloaded = await asyncio.to_thread(_open_pdf, produced)
        except Exception as e:
            self.logger.info("Could not reload compressed PDF, continuing with previous source: %s", e)
            return source

        source.close()
        self.logger.debug("Reloaded compressed PDF as new source (%d pages)", len(reloaded.pages))
        return reloaded


async def reduce_pdf(
        data: bytes,
        target_size_kb: float,
        policy: ReductionPolicy = DEFAULT_POLICY,
        logger: Optional[logging.Logger | logging.LoggerAdapter] = None,
) -> bytes:
    """Shortcut returning only the reduced bytes."""
    result = await PDFSizeReducer(policy=policy, logger=logger).reduce(data, target_size_kb)
    return result.data
