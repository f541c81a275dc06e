"""
Tests for regions, options, colors and the audit trail
"""

import math
import unittest
from datetime import datetime, timezone

from trueredact.audit import AuditTrailBuilder, describe_area
from trueredact.errors import InvalidRegionError
from trueredact.models import (
    DEFAULT_LABEL_TEXT,
    OperationResult,
    RedactionOptions,
    RedactionRegion,
    RedactionStrategy,
    parse_color,
)


class TestRedactionRegion(unittest.TestCase):

    def test_valid_region(self):
        region = RedactionRegion(page=1, x=50, y=700, width=200, height=20, reason="SSN")
        self.assertEqual(region.to_dict(), {
            "page": 1, "x": 50, "y": 700, "width": 200, "height": 20, "reason": "SSN",
        })

    def test_non_positive_size_rejected(self):
        for width, height in ((0, 10), (10, 0), (-5, 10), (10, -1)):
            with self.assertRaises(InvalidRegionError):
                RedactionRegion(page=0, x=0, y=0, width=width, height=height)

    def test_non_finite_coordinates_rejected(self):
        for value in (math.nan, math.inf, -math.inf):
            with self.assertRaises(InvalidRegionError):
                RedactionRegion(page=0, x=value, y=0, width=1, height=1)

    def test_page_must_be_non_negative_integer(self):
        for page in (-1, 1.0, "0", True):
            with self.assertRaises(InvalidRegionError):
                RedactionRegion(page=page, x=0, y=0, width=1, height=1)

    def test_invalid_region_is_value_error(self):
        with self.assertRaises(ValueError):
            RedactionRegion(page=0, x=0, y=0, width=0, height=1)

    def test_from_dict_missing_field(self):
        with self.assertRaises(InvalidRegionError):
            RedactionRegion.from_dict({"page": 0, "x": 0, "y": 0, "width": 5})

    def test_large_page_accepted_at_construction(self):
        """Page range is checked against the document later"""
        region = RedactionRegion.from_dict({"page": 999, "x": 0, "y": 0, "width": 5, "height": 5})
        self.assertEqual(region.page, 999)


class TestRedactionOptions(unittest.TestCase):

    def test_defaults(self):
        options = RedactionOptions()
        self.assertEqual(options.resolution_dpi, 150)
        self.assertEqual(options.fill_color, (0, 0, 0))
        self.assertFalse(options.add_label)
        self.assertEqual(options.label_text, DEFAULT_LABEL_TEXT)
        self.assertFalse(options.preserve_metadata)
        self.assertAlmostEqual(options.scale, 150 / 72)

    def test_from_dict_camel_case(self):
        options = RedactionOptions.from_dict({
            "resolutionDPI": 300,
            "redactionColor": "#ff0000",
            "addRedactionLabel": True,
            "labelText": "WITHHELD",
            "userId": "u-42",
            "documentId": "doc-7",
            "preserveMetadata": True,
        })
        self.assertEqual(options.resolution_dpi, 300)
        self.assertEqual(options.fill_color, (255, 0, 0))
        self.assertTrue(options.add_label)
        self.assertEqual(options.label_text, "WITHHELD")
        self.assertEqual(options.operator_id, "u-42")
        self.assertEqual(options.document_id, "doc-7")
        self.assertTrue(options.preserve_metadata)

    def test_from_dict_empty(self):
        self.assertEqual(RedactionOptions.from_dict(None), RedactionOptions())
        self.assertEqual(RedactionOptions.from_dict({}), RedactionOptions())

    def test_empty_label_falls_back(self):
        self.assertEqual(RedactionOptions(label_text="").label_text, DEFAULT_LABEL_TEXT)

    def test_flags_must_be_booleans(self):
        """String flags such as "false" would otherwise read as true"""
        for data in ({"addLabel": "false"}, {"preserveMetadata": 1}, {"add_label": "yes"}):
            with self.assertRaises(ValueError):
                RedactionOptions.from_dict(data)

        options = RedactionOptions.from_dict({"addLabel": False, "preserveMetadata": True})
        self.assertFalse(options.add_label)
        self.assertTrue(options.preserve_metadata)

    def test_resolution_bounds(self):
        for dpi in (0, -72, 5000, 150.0):
            with self.assertRaises(ValueError):
                RedactionOptions(resolution_dpi=dpi)


class TestParseColor(unittest.TestCase):

    def test_named_and_hex(self):
        self.assertEqual(parse_color("black"), (0, 0, 0))
        self.assertEqual(parse_color("White"), (255, 255, 255))
        self.assertEqual(parse_color("#1a2b3c"), (26, 43, 60))
        self.assertEqual(parse_color("f00"), (255, 0, 0))

    def test_sequences(self):
        self.assertEqual(parse_color((10, 20, 30)), (10, 20, 30))
        self.assertEqual(parse_color([1.0, 0.0, 0.5]), (255, 0, 128))

    def test_invalid(self):
        for value in ("chartreuse-ish", "#12345", (1, 2), (0, 0, 300)):
            with self.assertRaises(ValueError):
                parse_color(value)


class TestAuditTrail(unittest.TestCase):

    def test_describe_area_integral_values(self):
        region = RedactionRegion(page=1, x=50.0, y=700, width=200, height=20.0)
        self.assertEqual(describe_area(region), "(50, 700) 200x20")

    def test_describe_area_fractional_values(self):
        region = RedactionRegion(page=0, x=10.5, y=2, width=3.25, height=4)
        self.assertEqual(describe_area(region), "(10.5, 2) 3.25x4")

    def test_record_uses_one_based_page(self):
        when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        builder = AuditTrailBuilder(operator_id="u-1")
        entry = builder.record(RedactionRegion(page=1, x=50, y=700, width=200, height=20, reason="SSN"), when)

        self.assertEqual(entry.page, 2)
        self.assertEqual(entry.reason, "SSN")
        self.assertEqual(entry.operator_id, "u-1")
        self.assertEqual(entry.to_dict()["areaDescription"], "(50, 700) 200x20")
        self.assertEqual(entry.to_dict()["timestamp"], "2024-01-02T03:04:05+00:00")

    def test_entries_are_a_copy(self):
        builder = AuditTrailBuilder()
        builder.record(RedactionRegion(page=0, x=0, y=0, width=1, height=1))
        builder.entries.clear()
        self.assertEqual(builder.count, 1)

    def test_summary(self):
        builder = AuditTrailBuilder()
        for page in (0, 0, 2):
            builder.record(RedactionRegion(page=page, x=0, y=0, width=1, height=1))

        self.assertEqual(builder.summary(), {
            "total_redactions": 3,
            "pages_modified": 2,
            "redactions_by_page": {1: 2, 3: 1},
        })


class TestOperationResult(unittest.TestCase):

    def test_to_dict_leaves_out_bytes(self):
        result = OperationResult(success=True, strategy_used=RedactionStrategy.RASTERIZED,
                                 output_bytes=b"%PDF-", redaction_count=2)
        data = result.to_dict()
        self.assertNotIn("outputBytes", data)
        self.assertEqual(data["strategyUsed"], "rasterized")
        self.assertEqual(data["redactionCount"], 2)


if __name__ == "__main__":
    unittest.main()
