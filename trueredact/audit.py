"""
Audit Trail Builder - One immutable entry per applied redaction
"""

from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .models import AuditEntry, RedactionRegion


def _format_number(value: float) -> str:
    # Whole numbers print without a trailing ".0"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def describe_area(region: RedactionRegion) -> str:
    """
    Human-readable position and size, e.g. ``"(50, 700) 200x20"``
    """
    return (
        f"({_format_number(region.x)}, {_format_number(region.y)}) "
        f"{_format_number(region.width)}x{_format_number(region.height)}"
    )


class AuditTrailBuilder:
    """Append-only list of audit entries for a single operation"""

    def __init__(self, operator_id: Optional[str] = None):
        self.operator_id = operator_id
        self._entries: List[AuditEntry] = []

    def record(self, region: RedactionRegion, when: Optional[datetime] = None) -> AuditEntry:
        entry = AuditEntry(
            timestamp=when or datetime.now(timezone.utc),
            page=region.page + 1,
            area_description=describe_area(region),
            reason=region.reason,
            operator_id=self.operator_id,
        )
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> List[AuditEntry]:
        return list(self._entries)

    @property
    def count(self) -> int:
        return len(self._entries)

    def summary(self) -> Dict[str, Any]:
        """Total count plus per-page counts keyed by 1-based page number"""
        per_page: Dict[int, int] = OrderedDict()
        for entry in self._entries:
            per_page[entry.page] = per_page.get(entry.page, 0) + 1

        return {
            "total_redactions": self.count,
            "pages_modified": len(per_page),
            "redactions_by_page": dict(per_page),
        }
