"""
Pure geometry and style classification for element visibility.

Nothing in this module touches a page. The caller fetches the bounding box,
the computed style subset and the viewport size through the page-execution
boundary and hands the plain values in.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class VisibilityReason(str, Enum):
    HIDDEN_BY_STYLE = "hidden_by_style"
    ZERO_SIZE = "zero_size"
    OFFSCREEN = "offscreen"
    OCCLUDED = "occluded"
    NOT_FOUND = "not_found"
    EVALUATION_FAILED = "evaluation_failed"


@dataclass(frozen=True)
class Rect:
    """Client rect as reported by getBoundingClientRect()."""
    top: float
    left: float
    bottom: float
    right: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return ((self.left + self.right) / 2, (self.top + self.bottom) / 2)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Rect":
        return cls(
            top=float(payload.get("top", 0.0)),
            left=float(payload.get("left", 0.0)),
            bottom=float(payload.get("bottom", 0.0)),
            right=float(payload.get("right", 0.0)),
            width=float(payload.get("width", 0.0)),
            height=float(payload.get("height", 0.0)),
        )


@dataclass(frozen=True)
class StyleSubset:
    """The handful of computed style values the visibility checks look at."""
    visibility: str = "visible"
    display: str = "block"
    opacity: str = "1"
    position: str = "static"
    z_index: str = "auto"

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "StyleSubset":
        return cls(
            visibility=str(payload.get("visibility", "visible")),
            display=str(payload.get("display", "block")),
            opacity=str(payload.get("opacity", "1")),
            position=str(payload.get("position", "static")),
            z_index=str(payload.get("zIndex", payload.get("z_index", "auto"))),
        )


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Viewport":
        return cls(width=float(payload.get("width", 0.0)), height=float(payload.get("height", 0.0)))


@dataclass(frozen=True)
class GeometryVerdict:
    hidden: bool
    offscreen: bool
    reason: Optional[VisibilityReason] = None

    @property
    def renderable(self) -> bool:
        return not (self.hidden or self.offscreen)


def parse_z_index(value: Any) -> int:
    """
    Numeric stacking order of a computed z-index value.

    "auto", empty and unparseable values count as 0 so that comparisons
    between elements are always numeric.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value).strip()
    if not text or text == "auto":
        return 0
    try:
        return int(text)
    except ValueError:
        try:
            return int(float(text))
        except ValueError:
            return 0


def _hidden_reason(box: Rect, style: StyleSubset) -> Optional[VisibilityReason]:
    # opacity is compared as the exact string "0", not numerically
    if style.visibility == "hidden" or style.display == "none" or style.opacity == "0":
        return VisibilityReason.HIDDEN_BY_STYLE
    if box.width == 0:
        return VisibilityReason.ZERO_SIZE
    return None


def is_offscreen(box: Rect, viewport: Viewport) -> bool:
    return (
        box.bottom < 0
        or box.top > viewport.height
        or box.right < 0
        or box.left > viewport.width
    )


def classify(box: Rect, style: StyleSubset, viewport: Viewport) -> GeometryVerdict:
    hidden_reason = _hidden_reason(box, style)
    offscreen = is_offscreen(box, viewport)

    reason = hidden_reason
    if reason is None and offscreen:
        reason = VisibilityReason.OFFSCREEN

    return GeometryVerdict(hidden=hidden_reason is not None, offscreen=offscreen, reason=reason)
