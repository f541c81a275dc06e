"""
Tests for page classification
"""

import unittest

from trueredact.classify import PageStrategy, classify_pages
from trueredact.models import RedactionRegion


def _region(page, x=0, reason=None):
    return RedactionRegion(page=page, x=x, y=0, width=10, height=10, reason=reason)


class TestClassifyPages(unittest.TestCase):

    def test_one_plan_per_page(self):
        classification = classify_pages(3, [_region(1)])

        self.assertEqual([plan.index for plan in classification.pages], [0, 1, 2])
        self.assertEqual(
            [plan.strategy for plan in classification.pages],
            [PageStrategy.UNTOUCHED, PageStrategy.SANITIZE, PageStrategy.UNTOUCHED],
        )
        self.assertEqual(classification.sanitize_indices, [1])
        self.assertEqual(classification.untouched_indices, [0, 2])

    def test_regions_keep_input_order_within_page(self):
        regions = [_region(0, x=30), _region(2), _region(0, x=10)]
        classification = classify_pages(3, regions)

        self.assertEqual([r.x for r in classification.plan_for(0).regions], [30, 10])
        self.assertEqual(classification.applied_count, 3)

    def test_out_of_range_regions_skipped(self):
        regions = [_region(999, reason="far"), _region(0), _region(2)]
        with self.assertLogs("trueredact.classify", level="WARNING"):
            classification = classify_pages(2, regions)

        self.assertEqual([r.page for r in classification.skipped], [999, 2])
        self.assertEqual(classification.applied_count, 1)
        self.assertEqual(classification.sanitize_indices, [0])

    def test_no_regions(self):
        classification = classify_pages(4, [])
        self.assertEqual(classification.sanitize_indices, [])
        self.assertEqual(classification.untouched_indices, [0, 1, 2, 3])

    def test_idempotent(self):
        regions = [_region(0), _region(1), _region(7)]
        self.assertEqual(classify_pages(3, regions), classify_pages(3, regions))


if __name__ == "__main__":
    unittest.main()
