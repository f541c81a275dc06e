"""
Document Assembler - Rebuild the document page by page in source order
"""

import logging
from typing import Callable, Mapping, Optional

import fitz  # PyMuPDF

from .classify import PageClassification, PagePlan, PageStrategy
from .errors import AssemblyError
from .raster import RasterPage, build_replacement_page

logger = logging.getLogger(__name__)

PageCallback = Callable[[PagePlan], None]


def _copy_pages(output: fitz.Document, source: fitz.Document, first: int, last: int) -> None:
    """Copy source pages first..last (inclusive) unchanged"""
    expected = output.page_count + (last - first + 1)
    try:
        output.insert_pdf(source, from_page=first, to_page=last)
    except Exception as e:
        raise AssemblyError(f"Failed to copy pages {first + 1}-{last + 1}: {e}") from e

    if output.page_count != expected:
        raise AssemblyError(
            f"Copying pages {first + 1}-{last + 1} produced {output.page_count} pages, expected {expected}"
        )


def assemble_document(source: fitz.Document,
                      classification: PageClassification,
                      rasters: Mapping[int, RasterPage],
                      on_page_sanitized: Optional[PageCallback] = None) -> fitz.Document:
    """
    Build the output document

    Untouched pages are copied verbatim; each contiguous run is copied in a
    single call. Sanitize pages are replaced by their raster page.

    Args:
        source: Open source document
        classification: Page plans for every source page
        rasters: Raster pages keyed by 0-based page index
        on_page_sanitized: Called after each sanitize page is placed

    Returns:
        New fitz.Document; the caller closes it

    Raises:
        AssemblyError: if any page is missing or can't be placed
    """
    if classification.page_count != source.page_count:
        raise AssemblyError(
            f"Classification covers {classification.page_count} pages, source has {source.page_count}"
        )

    output = fitz.open()
    try:
        run_start = None

        for plan in classification.pages:
            if plan.strategy is PageStrategy.UNTOUCHED:
                if run_start is None:
                    run_start = plan.index
                continue

            # Flush pending untouched pages first to keep source order
            if run_start is not None:
                _copy_pages(output, source, run_start, plan.index - 1)
                run_start = None

            raster = rasters.get(plan.index)
            if raster is None or raster.index != plan.index:
                raise AssemblyError(f"No rasterized replacement for page {plan.index + 1}")

            try:
                build_replacement_page(output, raster)
            except Exception as e:
                raise AssemblyError(f"Failed to place rasterized page {plan.index + 1}: {e}") from e

            if on_page_sanitized is not None:
                on_page_sanitized(plan)

        if run_start is not None:
            _copy_pages(output, source, run_start, source.page_count - 1)

        if output.page_count != source.page_count:
            raise AssemblyError(
                f"Output has {output.page_count} pages, source has {source.page_count}"
            )
    except Exception:
        output.close()
        raise

    logger.debug("Assembled %d pages (%d sanitized)",
                 output.page_count, len(classification.sanitize_indices))
    return output


def serialize(doc: fitz.Document) -> bytes:
    """
    Write the assembled document to bytes

    Unused objects are dropped and streams compressed, but content streams
    are not cleaned, so copied pages keep their original operators.
    """
    return doc.tobytes(garbage=3, deflate=True)
