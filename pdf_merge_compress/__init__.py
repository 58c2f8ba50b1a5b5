"""Top-level package for the PDF merge & compress service.

This package contains:
- the merge stage (PyMuPDF page concatenation);
- the size-reduction loop (pikepdf) with its data-driven policy;
- small utilities (settings, logging setup).

The HTTP surface lives in the separate ``web`` package.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
