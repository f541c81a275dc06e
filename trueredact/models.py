"""
Redaction Data Model - Regions, options, audit entries and operation results
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import InvalidRegionError


DEFAULT_RESOLUTION_DPI = 150
MAX_RESOLUTION_DPI = 1200
DEFAULT_LABEL_TEXT = "REDACTED"

RGB = Tuple[int, int, int]

NAMED_COLORS: Dict[str, RGB] = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "blue": (0, 0, 255),
    "green": (0, 255, 0),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
}


def parse_color(value: Union[str, Tuple, List]) -> RGB:
    """
    Normalize a fill color to an RGB triple with 0-255 channels

    Accepts a color name, a hex string ("#1a2b3c" or "1a2b3c") or a
    sequence of three numbers. Float sequences in [0, 1] are treated as
    unit-range colors.

    Raises:
        ValueError: if the value cannot be interpreted as a color
    """
    if isinstance(value, str):
        name = value.strip().lower()
        if name in NAMED_COLORS:
            return NAMED_COLORS[name]

        hex_digits = name.lstrip("#")
        if len(hex_digits) == 3:
            hex_digits = "".join(c * 2 for c in hex_digits)
        if len(hex_digits) != 6:
            raise ValueError(f"Unrecognized color: {value!r}")
        try:
            return (
                int(hex_digits[0:2], 16),
                int(hex_digits[2:4], 16),
                int(hex_digits[4:6], 16),
            )
        except ValueError:
            raise ValueError(f"Unrecognized color: {value!r}") from None

    channels = tuple(value)
    if len(channels) != 3:
        raise ValueError(f"Color must have three channels, got {len(channels)}")

    # Unit-range floats, as used by PyMuPDF
    if all(isinstance(c, float) for c in channels) and all(0.0 <= c <= 1.0 for c in channels):
        return tuple(int(round(c * 255)) for c in channels)

    rgb = tuple(int(c) for c in channels)
    if any(c < 0 or c > 255 for c in rgb):
        raise ValueError(f"Color channels must be within 0-255: {value!r}")
    return rgb


@dataclass(frozen=True)
class RedactionRegion:
    """
    A rectangle to redact, in caller display space (points, top-left origin)

    ``page`` is 0-based. It is checked against the document only when the
    region is processed; out-of-range regions are skipped, not rejected here.
    """
    page: int
    x: float
    y: float
    width: float
    height: float
    reason: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.page, bool) or not isinstance(self.page, int):
            raise InvalidRegionError(f"Region page must be an integer, got {self.page!r}")
        if self.page < 0:
            raise InvalidRegionError(f"Region page must be non-negative, got {self.page}")

        for name in ("x", "y", "width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidRegionError(f"Region {name} must be a finite number, got {value!r}")

        if self.width <= 0 or self.height <= 0:
            raise InvalidRegionError(
                f"Region width and height must be positive, got {self.width}x{self.height}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RedactionRegion":
        """Build a region from its JSON form"""
        try:
            return cls(
                page=data["page"],
                x=data["x"],
                y=data["y"],
                width=data["width"],
                height=data["height"],
                reason=data.get("reason"),
            )
        except KeyError as e:
            raise InvalidRegionError(f"Region is missing field {e.args[0]!r}") from None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "page": self.page,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }
        if self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass(frozen=True)
class RedactionOptions:
    """
    Options for the rasterizing ``apply`` path

    Defaults are applied here, at construction, so every field always holds
    a concrete, validated value.
    """
    resolution_dpi: int = DEFAULT_RESOLUTION_DPI
    fill_color: RGB = (0, 0, 0)
    add_label: bool = False
    label_text: str = DEFAULT_LABEL_TEXT
    operator_id: Optional[str] = None
    document_id: Optional[str] = None
    preserve_metadata: bool = False

    def __post_init__(self):
        dpi = self.resolution_dpi
        if isinstance(dpi, bool) or not isinstance(dpi, int):
            raise ValueError(f"resolution_dpi must be an integer, got {dpi!r}")
        if dpi <= 0 or dpi > MAX_RESOLUTION_DPI:
            raise ValueError(f"resolution_dpi must be within 1-{MAX_RESOLUTION_DPI}, got {dpi}")

        for name in ("add_label", "preserve_metadata"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be a boolean, got {value!r}")

        # Frozen dataclass, so normalized values go through object.__setattr__
        object.__setattr__(self, "fill_color", parse_color(self.fill_color))
        if not self.label_text:
            object.__setattr__(self, "label_text", DEFAULT_LABEL_TEXT)

    @property
    def scale(self) -> float:
        return self.resolution_dpi / 72

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RedactionOptions":
        """
        Build options from their JSON form

        Both the snake_case field names and the camelCase names used by the
        HTTP clients are accepted.
        """
        if not data:
            return cls()

        aliases = {
            "resolution_dpi": ("resolution_dpi", "resolutionDPI", "resolutionDpi", "dpi"),
            "fill_color": ("fill_color", "fillColor", "redactionColor"),
            "add_label": ("add_label", "addLabel", "addRedactionLabel"),
            "label_text": ("label_text", "labelText"),
            "operator_id": ("operator_id", "operatorId", "userId"),
            "document_id": ("document_id", "documentId"),
            "preserve_metadata": ("preserve_metadata", "preserveMetadata"),
        }

        kwargs = {}
        for field_name, keys in aliases.items():
            for key in keys:
                if data.get(key) is not None:
                    kwargs[field_name] = data[key]
                    break

        return cls(**kwargs)


@dataclass(frozen=True)
class AuditEntry:
    """One applied redaction; ``page`` is 1-based for display"""
    timestamp: datetime
    page: int
    area_description: str
    reason: Optional[str] = None
    operator_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "page": self.page,
            "areaDescription": self.area_description,
            "reason": self.reason,
            "operatorId": self.operator_id,
        }


class RedactionStrategy(Enum):
    RASTERIZED = "rasterized"
    VECTOR_OVERLAY = "vectorOverlay"


@dataclass
class OperationResult:
    """Outcome of a preview or apply call"""
    success: bool
    strategy_used: RedactionStrategy
    output_bytes: Optional[bytes] = None
    redaction_count: int = 0
    audit_entries: List[AuditEntry] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    skipped_regions: List[RedactionRegion] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly summary (the PDF bytes are left out)"""
        return {
            "success": self.success,
            "strategyUsed": self.strategy_used.value,
            "redactionCount": self.redaction_count,
            "auditEntries": [entry.to_dict() for entry in self.audit_entries],
            "error": self.error,
            "errorKind": self.error_kind,
            "warnings": list(self.warnings),
            "skippedRegions": [region.to_dict() for region in self.skipped_regions],
        }
