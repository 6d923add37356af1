"""
Visibility resolution: style/geometry classification plus hit-testing.

Two occlusion strategies are available and they are not equivalent:

- ``CONTAINMENT``: the topmost element at the target's center point must be
  the target or one of its descendants. Anything covering that pixel fails
  the check, even a transparent static sibling.
- ``STACK_SCAN``: walk the whole element stack at the target's center point
  and fail on any element other than the target that is absolutely/fixed
  positioned or carries a higher z-index than the target.
- ``ABOVE_TARGET``: the stack scan restricted to entries painted above the
  target, skipping the target's own descendants. Positioned ancestors such
  as a fixed header wrapping the target do not count against it.

The hit test runs against the target's root node, so elements inside a
shadow root are tested within that shadow tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence, Union

from playwright.async_api import ElementHandle, Frame, Page
from playwright.async_api import TimeoutError as PlaywrightTimeout

from pagehelper.core.geometry import (
    GeometryVerdict,
    Rect,
    StyleSubset,
    Viewport,
    VisibilityReason,
    classify,
    parse_z_index,
)

logger = logging.getLogger("pagehelper.visibility")


SNAPSHOT_SCRIPT = """
(el) => {
  const style = getComputedStyle(el);
  const rect = el.getBoundingClientRect();
  return {
    rect: {
      top: rect.top, left: rect.left, bottom: rect.bottom, right: rect.right,
      width: rect.width, height: rect.height
    },
    style: {
      visibility: style.visibility, display: style.display, opacity: style.opacity,
      position: style.position, zIndex: style.zIndex
    },
    viewport: { width: window.innerWidth, height: window.innerHeight }
  };
}
"""

HIT_TEST_SCRIPT = """
(el, [x, y]) => {
  const root = el.getRootNode ? el.getRootNode() : null;
  const doc = root && typeof root.elementsFromPoint === "function" ? root : (el.ownerDocument || document);
  const topmost = doc.elementFromPoint(x, y);
  const stack = Array.from(doc.elementsFromPoint(x, y)).map((node) => {
    const style = getComputedStyle(node);
    return {
      tag: (node.tagName || '').toLowerCase(),
      id: node.id || '',
      isTarget: node === el,
      insideTarget: node !== el && el.contains(node),
      position: style.position,
      zIndex: style.zIndex
    };
  });
  return { containsTopmost: topmost !== null && el.contains(topmost), stack };
}
"""

OCCLUDING_POSITIONS = frozenset({"absolute", "fixed"})


class OcclusionStrategy(str, Enum):
    CONTAINMENT = "containment"
    STACK_SCAN = "stack_scan"
    ABOVE_TARGET = "above_target"


@dataclass(frozen=True)
class HitTestEntry:
    tag: str
    element_id: str = ""
    is_target: bool = False
    inside_target: bool = False
    position: str = "static"
    z_index: str = "auto"

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "HitTestEntry":
        return cls(
            tag=str(payload.get("tag", "")),
            element_id=str(payload.get("id", "")),
            is_target=bool(payload.get("isTarget", False)),
            inside_target=bool(payload.get("insideTarget", False)),
            position=str(payload.get("position", "static")),
            z_index=str(payload.get("zIndex", "auto")),
        )

    def describe(self) -> str:
        return f"{self.tag}#{self.element_id}" if self.element_id else self.tag


@dataclass(frozen=True)
class HitTestResult:
    contains_topmost: bool
    stack: tuple[HitTestEntry, ...] = ()

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "HitTestResult":
        return cls(
            contains_topmost=bool(payload.get("containsTopmost", False)),
            stack=tuple(HitTestEntry.from_dict(item) for item in payload.get("stack", [])),
        )


@dataclass(frozen=True)
class VisibilityVerdict:
    visible: bool
    reason: Optional[VisibilityReason] = None
    detail: str = ""
    geometry: Optional[GeometryVerdict] = field(default=None, compare=False)

    def __bool__(self) -> bool:
        return self.visible


def entries_above_target(stack: Sequence[HitTestEntry]) -> tuple[HitTestEntry, ...]:
    """Entries painted above the target; the whole stack if the target is absent."""
    for index, entry in enumerate(stack):
        if entry.is_target:
            return tuple(stack[:index])
    return tuple(stack)


def find_stack_occluder(
    stack: Sequence[HitTestEntry],
    target_z_index: str,
    above_target_only: bool = False,
) -> Optional[HitTestEntry]:
    """First entry other than the target that is positioned or stacked above it."""
    target_z = parse_z_index(target_z_index)
    candidates = entries_above_target(stack) if above_target_only else stack
    for entry in candidates:
        if entry.is_target:
            continue
        if above_target_only and entry.inside_target:
            continue
        if entry.position in OCCLUDING_POSITIONS:
            return entry
        if parse_z_index(entry.z_index) > target_z:
            return entry
    return None


def is_occluded_by_stack(
    stack: Sequence[HitTestEntry],
    target_z_index: str,
    above_target_only: bool = False,
) -> bool:
    return find_stack_occluder(stack, target_z_index, above_target_only) is not None


def is_occluded_by_containment(hit_test: HitTestResult) -> bool:
    return not hit_test.contains_topmost


class VisibilityResolver:
    """
    Boolean visibility predicates over a live page.

    Every check fetches fresh state from the page. Failures of any kind
    (missing element, detached node, navigation mid-check) collapse to a
    not-visible verdict instead of raising.
    """

    def __init__(
        self,
        strategy: OcclusionStrategy = OcclusionStrategy.STACK_SCAN,
        lookup_timeout_ms: int = 1_000,
    ) -> None:
        self._strategy = strategy
        self._lookup_timeout_ms = lookup_timeout_ms

    @property
    def strategy(self) -> OcclusionStrategy:
        return self._strategy

    async def is_visible(
        self,
        root: Union[Page, Frame],
        selector: str,
        strategy: Optional[OcclusionStrategy] = None,
    ) -> bool:
        verdict = await self.verdict(root, selector, strategy=strategy)
        return verdict.visible

    async def is_not_obstructed(self, root: Union[Page, Frame], selector: str) -> bool:
        """Containment-only check; style and offscreen state are not consulted."""
        try:
            element = await self._lookup(root, selector)
            if element is None:
                logger.debug(f"[Visibility] {selector}: not found")
                return False
            snapshot = await element.evaluate(SNAPSHOT_SCRIPT)
            box = Rect.from_dict(snapshot.get("rect", {}))
            hit_test = await self._hit_test(element, box)
        except Exception as exc:
            logger.debug(f"[Visibility] {selector}: obstruction check failed: {exc}")
            return False

        obstructed = is_occluded_by_containment(hit_test)
        if obstructed:
            logger.debug(f"[Visibility] {selector}: center point covered")
        return not obstructed

    async def verdict(
        self,
        root: Union[Page, Frame],
        selector: str,
        strategy: Optional[OcclusionStrategy] = None,
    ) -> VisibilityVerdict:
        strategy = strategy or self._strategy
        try:
            verdict = await self._evaluate(root, selector, strategy)
        except Exception as exc:
            verdict = VisibilityVerdict(
                visible=False,
                reason=VisibilityReason.EVALUATION_FAILED,
                detail=str(exc),
            )

        if not verdict.visible:
            logger.debug(f"[Visibility] {selector}: not visible ({verdict.reason.value if verdict.reason else 'unknown'}) {verdict.detail}")
        return verdict

    async def _evaluate(
        self,
        root: Union[Page, Frame],
        selector: str,
        strategy: OcclusionStrategy,
    ) -> VisibilityVerdict:
        element = await self._lookup(root, selector)
        if element is None:
            return VisibilityVerdict(visible=False, reason=VisibilityReason.NOT_FOUND)

        snapshot = await element.evaluate(SNAPSHOT_SCRIPT)
        box = Rect.from_dict(snapshot.get("rect", {}))
        style = StyleSubset.from_dict(snapshot.get("style", {}))
        viewport = Viewport.from_dict(snapshot.get("viewport", {}))

        geometry = classify(box, style, viewport)
        if not geometry.renderable:
            return VisibilityVerdict(visible=False, reason=geometry.reason, geometry=geometry)

        hit_test = await self._hit_test(element, box)

        if strategy == OcclusionStrategy.CONTAINMENT:
            if is_occluded_by_containment(hit_test):
                return VisibilityVerdict(
                    visible=False,
                    reason=VisibilityReason.OCCLUDED,
                    detail="center point not inside target",
                    geometry=geometry,
                )
            return VisibilityVerdict(visible=True, geometry=geometry)

        occluder = find_stack_occluder(
            hit_test.stack,
            style.z_index,
            above_target_only=strategy == OcclusionStrategy.ABOVE_TARGET,
        )
        if occluder is not None:
            return VisibilityVerdict(
                visible=False,
                reason=VisibilityReason.OCCLUDED,
                detail=f"covered by {occluder.describe()}",
                geometry=geometry,
            )
        return VisibilityVerdict(visible=True, geometry=geometry)

    async def _lookup(self, root: Union[Page, Frame], selector: str) -> Optional[ElementHandle]:
        if self._lookup_timeout_ms <= 0:
            return await root.query_selector(selector)
        try:
            return await root.wait_for_selector(selector, state="attached", timeout=self._lookup_timeout_ms)
        except PlaywrightTimeout:
            return None

    async def _hit_test(self, element: ElementHandle, box: Rect) -> HitTestResult:
        x, y = box.center
        payload = await element.evaluate(HIT_TEST_SCRIPT, [x, y])
        return HitTestResult.from_dict(payload)
