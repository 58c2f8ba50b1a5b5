"""PDF processing services."""

from .errors import ParseError, PdfProcessingError, ReduceError, UnreadableSourceError
from .merger import merge_pdfs
from .pipeline import merge_and_compress
from .placeholder import build_placeholder_pdf
from .policy import DEFAULT_POLICY, AttemptTier, ReductionPolicy, SaveProfile
from .reducer import CompressionAttempt, Outcome, PDFSizeReducer, ReductionResult, reduce_pdf

__all__ = [
    "AttemptTier",
    "CompressionAttempt",
    "DEFAULT_POLICY",
    "Outcome",
    "ParseError",
    "PDFSizeReducer",
    "PdfProcessingError",
    "ReduceError",
    "ReductionPolicy",
    "ReductionResult",
    "SaveProfile",
    "UnreadableSourceError",
    "build_placeholder_pdf",
    "merge_and_compress",
    "merge_pdfs",
    "reduce_pdf",
]
