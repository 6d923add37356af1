"""
Selector-path resolution across iframe and shadow-root boundaries.

A selector path is an ordered list of selectors. Each segment is searched
inside the shadow root (or, when there is none, the element itself) produced
by the previous one, so ``["my-app", "settings-panel", "#save"]`` walks three
nested shadow trees. An optional frame anchor picks the iframe (or shadow
host) whose document becomes the search context for the first segment.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from playwright.async_api import ElementHandle, Error as PlaywrightError, Frame, Page
from playwright.async_api import TimeoutError as PlaywrightTimeout

from pagehelper.core.errors import DetachedFrameError, InvalidArgumentError, NotFoundError

logger = logging.getLogger("pagehelper.locator")

SearchContext = Union[Page, Frame, ElementHandle]
SelectorPath = Union[str, Sequence[str]]

SHADOW_OR_SELF_SCRIPT = "el => el.shadowRoot ? el.shadowRoot : el"
SHADOW_ROOT_SCRIPT = "el => el.shadowRoot"

# Fragments of Playwright error messages raised against a stale handle.
_STALE_HANDLE_MARKERS = ("not attached", "disposed", "node is detached")


def normalize_path(path: SelectorPath) -> tuple[str, ...]:
    """Validate a selector path and return it as a tuple of segments."""
    if isinstance(path, str):
        segments: tuple[str, ...] = (path,)
    else:
        try:
            segments = tuple(path)
        except TypeError as exc:
            raise InvalidArgumentError(f"Selector path must be a string or a sequence, got {type(path).__name__}") from exc

    if not segments:
        raise InvalidArgumentError("Empty selector path")
    for index, segment in enumerate(segments):
        if not isinstance(segment, str):
            raise InvalidArgumentError(f"Selector path segment {index} is not a string: {segment!r}")
        if not segment.strip():
            raise InvalidArgumentError(f"Selector path segment {index} is blank")
    return segments


def is_stale_handle_error(exc: BaseException) -> bool:
    if isinstance(exc, PlaywrightTimeout):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _STALE_HANDLE_MARKERS)


class TreeLocator:
    def __init__(self, default_timeout_ms: Optional[int] = None) -> None:
        self._default_timeout_ms = default_timeout_ms

    async def locate(
        self,
        root: Union[Page, Frame],
        path: SelectorPath,
        frame_anchor: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> ElementHandle:
        """
        Resolve ``path`` to a single element handle.

        Args:
            root: Page (or frame) the search starts from
            path: Selector, or list of selectors crossing shadow roots
            frame_anchor: Selector of an iframe or shadow host to start inside
            timeout_ms: Bound for each individual wait; engine default if None

        Raises:
            InvalidArgumentError: path is empty or malformed
            NotFoundError: a segment (or the anchor) did not appear in time
            DetachedFrameError: the anchor has no document to search
        """
        segments = normalize_path(path)
        timeout = timeout_ms if timeout_ms is not None else self._default_timeout_ms

        context: SearchContext = root
        if frame_anchor:
            context = await self._anchor_context(root, frame_anchor, timeout)

        for index, segment in enumerate(segments[:-1]):
            resolved = segments[: index + 1]
            host = await self._wait_for_match(context, segment, timeout, resolved, frame_anchor)
            context = await self._descend(host, resolved, frame_anchor)

        element = await self._wait_for_match(context, segments[-1], timeout, segments, frame_anchor)
        logger.debug(f"[Locator] Resolved {' >> '.join(segments)}")
        return element

    async def _wait_for_match(
        self,
        context: SearchContext,
        selector: str,
        timeout: Optional[int],
        resolved: tuple[str, ...],
        frame_anchor: Optional[str],
    ) -> ElementHandle:
        try:
            element = await context.wait_for_selector(selector, state="attached", timeout=timeout)
        except PlaywrightTimeout as exc:
            logger.debug(f"[Locator] Timed out waiting for {' >> '.join(resolved)}")
            raise NotFoundError(resolved, frame_anchor) from exc
        except PlaywrightError as exc:
            if is_stale_handle_error(exc):
                raise NotFoundError(resolved, frame_anchor) from exc
            raise

        if element is None:
            raise NotFoundError(resolved, frame_anchor)
        return element

    async def _descend(
        self,
        element: ElementHandle,
        resolved: tuple[str, ...],
        frame_anchor: Optional[str],
    ) -> ElementHandle:
        try:
            handle = await element.evaluate_handle(SHADOW_OR_SELF_SCRIPT)
        except PlaywrightError as exc:
            if is_stale_handle_error(exc):
                raise NotFoundError(resolved, frame_anchor) from exc
            raise

        scope = handle.as_element()
        if scope is None:
            raise NotFoundError(resolved, frame_anchor)
        return scope

    async def _anchor_context(
        self,
        root: Union[Page, Frame],
        frame_anchor: str,
        timeout: Optional[int],
    ) -> SearchContext:
        try:
            anchor = await root.wait_for_selector(frame_anchor, state="attached", timeout=timeout)
        except PlaywrightTimeout as exc:
            raise NotFoundError(frame_anchor, frame_anchor) from exc
        if anchor is None:
            raise NotFoundError(frame_anchor, frame_anchor)

        try:
            frame = await anchor.content_frame()
            if frame is not None:
                logger.debug(f"[Locator] Searching inside frame {frame_anchor}")
                return frame

            # Not a frame: fall back to the anchor's open shadow root.
            handle = await anchor.evaluate_handle(SHADOW_ROOT_SCRIPT)
        except PlaywrightError as exc:
            if is_stale_handle_error(exc):
                raise NotFoundError(frame_anchor, frame_anchor) from exc
            raise

        shadow_root = handle.as_element()
        if shadow_root is None:
            raise DetachedFrameError(frame_anchor)
        logger.debug(f"[Locator] Searching inside shadow root of {frame_anchor}")
        return shadow_root
