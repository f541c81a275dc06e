"""
Rasterizing Redactor - Flatten a page to an image and paint over regions

A replacement page built here holds a single embedded PNG and nothing else,
so no text or vector content of the source page survives.
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import fitz  # PyMuPDF
from PIL import Image, ImageDraw, ImageFont

from .errors import RedactionError, RenderError, ResourceLimitError
from .geometry import scale_for, to_render_space
from .models import RGB, RedactionOptions, RedactionRegion

logger = logging.getLogger(__name__)

# Labels below this size are unreadable; the block is left plain
MIN_LABEL_FONT_SIZE = 4


@dataclass(frozen=True)
class RasterPage:
    """A flattened page ready to be placed into the output document"""
    index: int
    width: float
    height: float
    image_bytes: bytes
    region_count: int


def render_pixel_count(page_width: float, page_height: float, resolution_dpi: int) -> float:
    scale = scale_for(resolution_dpi)
    return (page_width * scale) * (page_height * scale)


def check_render_budget(page: fitz.Page, index: int, resolution_dpi: int, max_render_pixels: int) -> None:
    """
    Refuse to render pages whose bitmap would exceed the pixel budget

    Raises:
        ResourceLimitError: if width_px * height_px > max_render_pixels
    """
    pixels = render_pixel_count(page.rect.width, page.rect.height, resolution_dpi)
    if pixels > max_render_pixels:
        raise ResourceLimitError(
            f"Page {index + 1} would render to {int(pixels)} pixels at {resolution_dpi} DPI "
            f"(limit {max_render_pixels}); retry with a lower resolution"
        )


def contrasting_color(fill: RGB) -> RGB:
    """White on dark fills, black on light ones"""
    r, g, b = fill
    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    return (0, 0, 0) if luminance >= 128 else (255, 255, 255)


def _fit_label_font(draw: ImageDraw.ImageDraw, text: str, box_width: float, font_size: float):
    """Shrink the font until the label fits inside the block"""
    while font_size >= MIN_LABEL_FONT_SIZE:
        font = ImageFont.load_default(size=font_size)
        if draw.textlength(text, font=font) <= box_width * 0.95:
            return font
        font_size *= 0.85
    return None


def _paint_regions(image: Image.Image, regions: Sequence[RedactionRegion], options: RedactionOptions) -> None:
    draw = ImageDraw.Draw(image)
    scale = options.scale
    label_color = contrasting_color(options.fill_color)

    for region in regions:
        render_rect = to_render_space(region, scale)
        x0, y0, x1, y1 = render_rect.pixel_box()

        # Clip to the bitmap; ImageDraw treats the far corner as inclusive
        x0, y0 = max(x0, 0), max(y0, 0)
        x1, y1 = min(x1, image.width), min(y1, image.height)
        if x1 <= x0 or y1 <= y0:
            logger.debug("Region %s lies outside page %d", region, region.page + 1)
            continue

        draw.rectangle([x0, y0, x1 - 1, y1 - 1], fill=options.fill_color)

        if not options.add_label:
            continue

        # Label goes on strictly after the fill so it is never covered
        font_size = min(render_rect.height * 0.6, 14 * scale)
        font = _fit_label_font(draw, options.label_text, x1 - x0, font_size)
        if font is None:
            continue

        center = ((x0 + x1) / 2, (y0 + y1) / 2)
        draw.text(center, options.label_text, fill=label_color, font=font, anchor="mm")


def rasterize_page(page: fitz.Page,
                   regions: Sequence[RedactionRegion],
                   options: RedactionOptions,
                   max_render_pixels: int,
                   index: Optional[int] = None) -> RasterPage:
    """
    Render a page to a bitmap and paint opaque blocks over its regions

    Args:
        page: Source page
        regions: Regions targeting this page (display space)
        options: Resolution, fill color and label settings
        max_render_pixels: Pixel budget checked before rendering
        index: 0-based page index, defaults to ``page.number``

    Returns:
        RasterPage holding the native page size and the PNG bytes

    Raises:
        ResourceLimitError: if the bitmap would be too large
        RenderError: if rendering, compositing or encoding fails
    """
    index = page.number if index is None else index
    check_render_budget(page, index, options.resolution_dpi, max_render_pixels)

    scale = options.scale
    try:
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
        # Release the raw samples as soon as Pillow owns a copy
        pix = None

        _paint_regions(image, regions, options)

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        image_bytes = buffer.getvalue()
    except RedactionError:
        raise
    except Exception as e:
        raise RenderError(f"Failed to rasterize page {index + 1}: {e}", page_index=index) from e

    logger.debug("Page %d: rasterized with %d redactions at %d DPI",
                 index + 1, len(regions), options.resolution_dpi)

    return RasterPage(
        index=index,
        width=page.rect.width,
        height=page.rect.height,
        image_bytes=image_bytes,
        region_count=len(regions),
    )


def rasterize_from_bytes(data: bytes,
                         index: int,
                         regions: Tuple[RedactionRegion, ...],
                         options: RedactionOptions,
                         max_render_pixels: int) -> RasterPage:
    """
    Process-pool entry point: open the document and rasterize one page

    PyMuPDF documents can't be shared between processes, so each worker
    opens its own copy of the source bytes.
    """
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        return rasterize_page(doc[index], regions, options, max_render_pixels, index=index)
    finally:
        doc.close()


def build_replacement_page(doc: fitz.Document, raster: RasterPage) -> fitz.Page:
    """
    Append a page of the original native size holding only the raster image
    """
    page = doc.new_page(-1, width=raster.width, height=raster.height)
    page.insert_image(page.rect, stream=raster.image_bytes, keep_proportion=False)
    return page
