from __future__ import annotations

import io
import random
import string
from typing import List, Optional

import fitz  # PyMuPDF
import pikepdf
import pytest


def _text_pdf(page_texts: List[str], width: float = 612, height: float = 792) -> bytes:
    doc = fitz.open()
    for text in page_texts:
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 72), text, fontsize=12)
    data = doc.tobytes()
    doc.close()
    return data


def _heavy_pdf(
        pages: int,
        payload_bytes: int,
        *,
        title_chars: int = 0,
        annots_per_page: int = 0,
        crop_box: bool = False,
        seed: int = 0,
) -> bytes:
    """Pages carrying incompressible random payloads.

    Each page gets a ``/PageMarker`` integer (its 0-based index) so tests can
    check which pages survived.
    """
    rng = random.Random(seed)
    pdf = pikepdf.Pdf.new()
    for i in range(pages):
        pdf.add_blank_page(page_size=(612, 792))
        page = pdf.pages[-1]

        payload = pikepdf.Stream(pdf, rng.randbytes(payload_bytes))
        payload.Type = pikepdf.Name.XObject
        payload.Subtype = pikepdf.Name.Form
        payload.BBox = pikepdf.Array([0, 0, 1, 1])
        page.obj.Resources = pikepdf.Dictionary(XObject=pikepdf.Dictionary(Payload=payload))
        page.obj.Contents = pikepdf.Stream(pdf, b"0 0 m 100 100 l S")
        page.obj.PageMarker = i
        if crop_box:
            page.obj.CropBox = pikepdf.Array([0, 0, 612, 792])

        if annots_per_page:
            annots = pikepdf.Array()
            for _ in range(annots_per_page):
                annots.append(pdf.make_indirect(pikepdf.Dictionary(
                    Type=pikepdf.Name.Annot,
                    Subtype=pikepdf.Name.Text,
                    Rect=pikepdf.Array([10, 10, 20, 20]),
                    Contents=pikepdf.String(rng.randbytes(256)),
                )))
            page.obj.Annots = annots

    if title_chars:
        pdf.docinfo["/Title"] = pikepdf.String("".join(rng.choices(string.ascii_letters, k=title_chars)))
    pdf.docinfo["/Author"] = pikepdf.String("Test Author")
    pdf.docinfo["/Producer"] = pikepdf.String("test-suite")

    buf = io.BytesIO()
    pdf.save(buf)
    pdf.close()
    return buf.getvalue()


def page_texts(data: bytes) -> List[str]:
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        return [page.get_text().strip() for page in doc]
    finally:
        doc.close()


def page_markers(data: bytes) -> List[Optional[int]]:
    with pikepdf.Pdf.open(io.BytesIO(data)) as pdf:
        return [int(p.obj.PageMarker) if "/PageMarker" in p.obj else None for p in pdf.pages]


@pytest.fixture
def make_text_pdf():
    return _text_pdf


@pytest.fixture
def make_heavy_pdf():
    return _heavy_pdf
