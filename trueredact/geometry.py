"""
Coordinate Transformer - Display, render and native page spaces

Display space: what callers send. PDF points, top-left origin.
Render space: display space scaled by resolution_dpi / 72, top-left origin.
Native space: the page's own coordinates, points, bottom-left origin.

Each space has its own rectangle type so one can't be passed where another
is expected.
"""

import math
from dataclasses import dataclass
from typing import Tuple, Union

from .models import RedactionRegion

# Points per inch; the page's reference resolution
PDF_REFERENCE_DPI = 72


@dataclass(frozen=True)
class DisplayRect:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_region(cls, region: RedactionRegion) -> "DisplayRect":
        return cls(region.x, region.y, region.width, region.height)


@dataclass(frozen=True)
class RenderRect:
    x: float
    y: float
    width: float
    height: float

    def pixel_box(self) -> Tuple[int, int, int, int]:
        """
        Integer (x0, y0, x1, y1) box covering the whole rectangle

        Near edges are floored and far edges ceiled, so partial pixels on
        the border are painted too.
        """
        return (
            int(math.floor(self.x)),
            int(math.floor(self.y)),
            int(math.ceil(self.x + self.width)),
            int(math.ceil(self.y + self.height)),
        )


@dataclass(frozen=True)
class NativeRect:
    x: float
    y: float
    width: float
    height: float

    def offset(self, dx: float, dy: float) -> "NativeRect":
        return NativeRect(self.x + dx, self.y + dy, self.width, self.height)


def scale_for(resolution_dpi: int) -> float:
    return resolution_dpi / PDF_REFERENCE_DPI


def to_display_space(region: RedactionRegion) -> DisplayRect:
    return DisplayRect.from_region(region)


def to_render_space(rect: Union[DisplayRect, RedactionRegion], scale: float) -> RenderRect:
    """Scale a display-space rectangle into render (bitmap) space"""
    if isinstance(rect, RedactionRegion):
        rect = DisplayRect.from_region(rect)
    if not isinstance(rect, DisplayRect):
        raise TypeError(f"Expected a display-space rectangle, got {type(rect).__name__}")

    return RenderRect(
        x=rect.x * scale,
        y=rect.y * scale,
        width=rect.width * scale,
        height=rect.height * scale,
    )


def to_native_space(rect: RenderRect, page_height_native: float, scale: float = 1.0) -> NativeRect:
    """
    Convert a render-space rectangle to native page space

    Undoes the render scale and flips the vertical axis, since native space
    has its origin at the bottom-left.
    """
    if not isinstance(rect, RenderRect):
        raise TypeError(f"Expected a render-space rectangle, got {type(rect).__name__}")

    x = rect.x / scale
    y = rect.y / scale
    width = rect.width / scale
    height = rect.height / scale

    return NativeRect(
        x=x,
        y=page_height_native - y - height,
        width=width,
        height=height,
    )
