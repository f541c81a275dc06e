"""
Sample documents for the test suite
"""

import io
from typing import Dict, List, Optional

import fitz  # PyMuPDF
import pikepdf

LETTER = (612, 792)


def make_pdf(page_texts: List[str],
             size=LETTER,
             metadata: Optional[Dict[str, str]] = None,
             with_drawing: bool = False) -> bytes:
    """
    Build a PDF with one page per entry in ``page_texts``

    Each page gets its text at (72, 72) and, near the bottom, a second line
    at y=715 that falls inside the region (50, 700) 200x20 used by the tests.
    """
    doc = fitz.open()
    for text in page_texts:
        page = doc.new_page(width=size[0], height=size[1])
        page.insert_text((72, 72), text)
        page.insert_text((55, 715), f"{text} SSN 123-45-6789")
        if with_drawing:
            page.draw_rect(fitz.Rect(300, 300, 400, 350), color=(0, 0, 1), fill=(0, 1, 0))
    if metadata:
        doc.set_metadata(metadata)
    data = doc.tobytes()
    doc.close()
    return data


def page_texts(data: bytes) -> List[str]:
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        return [page.get_text() for page in doc]
    finally:
        doc.close()


def page_sizes(data: bytes) -> List[tuple]:
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        return [(page.rect.width, page.rect.height) for page in doc]
    finally:
        doc.close()


def crop_pages(data: bytes, cropbox) -> bytes:
    """Give every page the same /CropBox (PDF units, bottom-left origin)"""
    with pikepdf.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            page.obj.CropBox = pikepdf.Array(cropbox)
        buffer = io.BytesIO()
        pdf.save(buffer)
    return buffer.getvalue()


def render_pixel(data: bytes, index: int, x: int, y: int):
    """RGB of one pixel of a page rendered at 72 DPI"""
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        return doc[index].get_pixmap(alpha=False).pixel(x, y)
    finally:
        doc.close()
