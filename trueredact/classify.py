"""
Page Classifier - Decide which pages are copied and which are sanitized
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple

from .models import RedactionRegion

logger = logging.getLogger(__name__)


class PageStrategy(Enum):
    UNTOUCHED = "untouched"
    SANITIZE = "sanitize"


@dataclass(frozen=True)
class PagePlan:
    """Regions targeting one source page, in input order"""
    index: int
    regions: Tuple[RedactionRegion, ...]

    @property
    def strategy(self) -> PageStrategy:
        return PageStrategy.SANITIZE if self.regions else PageStrategy.UNTOUCHED


@dataclass(frozen=True)
class PageClassification:
    page_count: int
    pages: Tuple[PagePlan, ...]
    skipped: Tuple[RedactionRegion, ...]

    @property
    def sanitize_indices(self) -> List[int]:
        return [plan.index for plan in self.pages if plan.strategy is PageStrategy.SANITIZE]

    @property
    def untouched_indices(self) -> List[int]:
        return [plan.index for plan in self.pages if plan.strategy is PageStrategy.UNTOUCHED]

    @property
    def applied_count(self) -> int:
        """Number of regions that land on a real page"""
        return sum(len(plan.regions) for plan in self.pages)

    def plan_for(self, index: int) -> PagePlan:
        return self.pages[index]


def classify_pages(page_count: int, regions: Iterable[RedactionRegion]) -> PageClassification:
    """
    Partition regions by page

    Args:
        page_count: Number of pages N in the source document
        regions: Regions to apply, in caller order

    Returns:
        One plan per page in [0, N). Regions whose page is outside that
        range are collected in ``skipped`` and never attached to any page.
    """
    by_page: List[List[RedactionRegion]] = [[] for _ in range(page_count)]
    skipped: List[RedactionRegion] = []

    for region in regions:
        if 0 <= region.page < page_count:
            by_page[region.page].append(region)
        else:
            logger.warning(
                "Skipping region for page %d: document has %d pages",
                region.page, page_count,
            )
            skipped.append(region)

    pages = tuple(PagePlan(index=i, regions=tuple(rs)) for i, rs in enumerate(by_page))
    return PageClassification(page_count=page_count, pages=pages, skipped=tuple(skipped))
