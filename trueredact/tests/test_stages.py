"""
Tests for the individual apply stages: rasterize, assemble, scrub
"""

import io
import unittest
from unittest import mock
from datetime import datetime, timezone

import fitz  # PyMuPDF
import pikepdf

from trueredact.assemble import assemble_document, serialize
from trueredact.classify import classify_pages
from trueredact.errors import AssemblyError, RenderError, ResourceLimitError
from trueredact.models import RedactionOptions, RedactionRegion
from trueredact.raster import (
    check_render_budget,
    contrasting_color,
    rasterize_from_bytes,
    rasterize_page,
)
from trueredact.sanitize import pdf_date, scrub_metadata
from trueredact.tests.helpers import make_pdf, page_texts

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestRasterize(unittest.TestCase):

    def setUp(self):
        self.source = make_pdf(["Page one", "Page two"])
        self.doc = fitz.open(stream=self.source, filetype="pdf")
        self.region = RedactionRegion(page=0, x=50, y=700, width=200, height=20)

    def tearDown(self):
        self.doc.close()

    def test_raster_page_keeps_native_size(self):
        raster = rasterize_page(self.doc[0], [self.region], RedactionOptions(), 64_000_000)

        self.assertEqual(raster.index, 0)
        self.assertEqual((raster.width, raster.height), (612, 792))
        self.assertEqual(raster.region_count, 1)
        self.assertTrue(raster.image_bytes.startswith(PNG_SIGNATURE))

    def test_rasterize_from_bytes(self):
        raster = rasterize_from_bytes(self.source, 1, (self.region,), RedactionOptions(), 64_000_000)
        self.assertEqual(raster.index, 1)

    def test_render_budget(self):
        with self.assertRaises(ResourceLimitError):
            check_render_budget(self.doc[0], 0, 150, max_render_pixels=1_000_000)
        check_render_budget(self.doc[0], 0, 72, max_render_pixels=1_000_000)

    def test_render_failure_wrapped(self):
        page = self.doc[0]
        with mock.patch.object(fitz.Page, "get_pixmap", side_effect=RuntimeError("boom")):
            with self.assertRaises(RenderError) as ctx:
                rasterize_page(page, [self.region], RedactionOptions(), 64_000_000)
        self.assertEqual(ctx.exception.page_index, 0)

    def test_contrasting_color(self):
        self.assertEqual(contrasting_color((0, 0, 0)), (255, 255, 255))
        self.assertEqual(contrasting_color((255, 255, 0)), (0, 0, 0))
        self.assertEqual(contrasting_color((0, 0, 128)), (255, 255, 255))


class TestAssemble(unittest.TestCase):

    def setUp(self):
        self.source = make_pdf(["One", "Two", "Three", "Four"])
        self.doc = fitz.open(stream=self.source, filetype="pdf")

    def tearDown(self):
        self.doc.close()

    def _rasters(self, classification):
        options = RedactionOptions(resolution_dpi=72)
        return {
            index: rasterize_page(self.doc[index], classification.plan_for(index).regions,
                                  options, 64_000_000)
            for index in classification.sanitize_indices
        }

    def test_source_order(self):
        regions = [RedactionRegion(page=p, x=0, y=0, width=10, height=10) for p in (1, 2)]
        classification = classify_pages(self.doc.page_count, regions)
        placed = []

        output = assemble_document(self.doc, classification, self._rasters(classification),
                                   on_page_sanitized=lambda plan: placed.append(plan.index))
        try:
            data = serialize(output)
        finally:
            output.close()

        texts = page_texts(data)
        self.assertEqual(len(texts), 4)
        self.assertIn("One", texts[0])
        self.assertEqual(texts[1].strip(), "")
        self.assertEqual(texts[2].strip(), "")
        self.assertIn("Four", texts[3])
        self.assertEqual(placed, [1, 2])

    def test_missing_raster(self):
        classification = classify_pages(
            self.doc.page_count, [RedactionRegion(page=2, x=0, y=0, width=10, height=10)],
        )
        with self.assertRaises(AssemblyError):
            assemble_document(self.doc, classification, {})

    def test_classification_mismatch(self):
        classification = classify_pages(2, [])
        with self.assertRaises(AssemblyError):
            assemble_document(self.doc, classification, {})


class TestScrubMetadata(unittest.TestCase):

    def setUp(self):
        self.when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        self.source = make_pdf(["One"], metadata={"title": "T", "author": "A", "keywords": "k"})

    def test_pdf_date(self):
        self.assertEqual(pdf_date(self.when), "D:20240102030405+00'00'")
        self.assertEqual(pdf_date(datetime(2024, 1, 2, 3, 4, 5)), "D:20240102030405+00'00'")

    def test_scrub(self):
        data = scrub_metadata(self.source, when=self.when, producer="P", creator="C")
        with pikepdf.open(io.BytesIO(data)) as pdf:
            self.assertEqual(
                {str(k): str(v) for k, v in pdf.docinfo.items()},
                {
                    "/Producer": "P",
                    "/Creator": "C",
                    "/CreationDate": "D:20240102030405+00'00'",
                    "/ModDate": "D:20240102030405+00'00'",
                },
            )

    def test_preserve(self):
        data = scrub_metadata(self.source, preserve_metadata=True, when=self.when)
        with pikepdf.open(io.BytesIO(data)) as pdf:
            self.assertEqual(str(pdf.docinfo["/Title"]), "T")
            self.assertEqual(str(pdf.docinfo["/Author"]), "A")
            self.assertEqual(str(pdf.docinfo["/ModDate"]), "D:20240102030405+00'00'")


if __name__ == "__main__":
    unittest.main()
