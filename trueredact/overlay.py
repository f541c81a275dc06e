"""
Vector Overlay Redactor - Preview rectangles drawn on top of the page

This path only paints over the existing content stream. Everything under
the rectangles stays in the file and can be extracted, so the output is a
preview and never a redacted document. Only RedactionPipeline.preview()
calls into this module.
"""

import io
import logging
from typing import Iterable, List, Sequence, Tuple

import pikepdf

from .classify import PageClassification, classify_pages
from .geometry import NativeRect, to_native_space, to_render_space
from .models import RGB, RedactionRegion, parse_color

logger = logging.getLogger(__name__)

PREVIEW_COLOR: RGB = (255, 0, 0)
PREVIEW_OPACITY = 0.3
BORDER_WIDTH = 1


def _num(value: float) -> str:
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


def native_rect_for(region: RedactionRegion, page_box: Sequence[float]) -> NativeRect:
    """
    Map a display-space region onto the page's native coordinates

    Display units are already points, so the render step uses scale 1.
    ``page_box`` is the visible page (CropBox, else MediaBox), matching
    the page area PyMuPDF renders and reports; the result is shifted by
    its origin.
    """
    llx, lly, _urx, ury = (float(v) for v in page_box)
    page_height = ury - lly
    native = to_native_space(to_render_space(region, 1.0), page_height)
    return native.offset(llx, lly)


def _overlay_operators(rects: Iterable[NativeRect],
                       color: RGB,
                       gs_name: str,
                       border: bool) -> bytes:
    r, g, b = (_num(c / 255) for c in color)
    lines: List[str] = ["q"]
    if gs_name:
        lines.append(f"{gs_name} gs")
    lines.append(f"{r} {g} {b} rg")
    if border:
        lines.append(f"{r} {g} {b} RG")
        lines.append(f"{BORDER_WIDTH} w")

    paint = "B" if border else "f"
    for rect in rects:
        lines.append(f"{_num(rect.x)} {_num(rect.y)} {_num(rect.width)} {_num(rect.height)} re {paint}")

    lines.append("Q")
    return ("\n".join(lines) + "\n").encode("ascii")


def _paint_page(pdf: pikepdf.Pdf,
                page: pikepdf.Page,
                regions: Sequence[RedactionRegion],
                color: RGB,
                opacity: float,
                border: bool) -> None:
    rects = [native_rect_for(region, page.cropbox) for region in regions]

    gs_name = ""
    if opacity < 1.0:
        # Fill alpha only; the border stays solid
        graphics_state = pikepdf.Dictionary(
            Type=pikepdf.Name.ExtGState,
            ca=opacity,
        )
        gs_name = str(page.add_resource(graphics_state, pikepdf.Name.ExtGState, prefix="RedactGS"))

    # Isolate the original content so its graphics state can't leak into ours
    page.contents_add(pikepdf.Stream(pdf, b"q\n"), prepend=True)
    page.contents_add(
        pikepdf.Stream(pdf, b"Q\n" + _overlay_operators(rects, color, gs_name, border)),
        prepend=False,
    )


def overlay_regions(data: bytes,
                    regions: Iterable[RedactionRegion],
                    fill_color=PREVIEW_COLOR,
                    opacity: float = PREVIEW_OPACITY,
                    border: bool = True) -> Tuple[bytes, PageClassification]:
    """
    Draw preview rectangles onto a copy of the document

    Args:
        data: Source PDF bytes
        regions: Regions in display space
        fill_color: Rectangle color (name, hex or RGB triple)
        opacity: Fill opacity in (0, 1]
        border: Stroke a solid outline around each rectangle

    Returns:
        (preview PDF bytes, page classification used to place the regions)
    """
    if not 0.0 < opacity <= 1.0:
        raise ValueError(f"opacity must be within (0, 1], got {opacity}")
    color = parse_color(fill_color)

    with pikepdf.open(io.BytesIO(bytes(data))) as pdf:
        classification = classify_pages(len(pdf.pages), regions)

        for plan in classification.pages:
            if not plan.regions:
                continue
            _paint_page(pdf, pdf.pages[plan.index], plan.regions, color, opacity, border)
            logger.debug("Page %d: drew %d preview rectangles", plan.index + 1, len(plan.regions))

        buffer = io.BytesIO()
        pdf.save(buffer)

    return buffer.getvalue(), classification
