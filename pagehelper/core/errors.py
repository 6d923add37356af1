from __future__ import annotations

from typing import Sequence


class PageHelperError(Exception):
    """Base class for errors raised by the page helper core."""


class InvalidArgumentError(PageHelperError, ValueError):
    """Malformed input to the helper itself; never retried."""


class NotFoundError(PageHelperError):
    def __init__(self, path: Sequence[str] | str, frame_anchor: str | None = None) -> None:
        if isinstance(path, str):
            path = (path,)
        self.path: tuple[str, ...] = tuple(path)
        self.frame_anchor = frame_anchor
        joined = " >> ".join(self.path)
        if frame_anchor and self.path != (frame_anchor,):
            message = f"Could not find element: {joined} (inside {frame_anchor})"
        else:
            message = f"Could not find element: {joined}"
        super().__init__(message)


class DetachedFrameError(PageHelperError):
    def __init__(self, frame_anchor: str) -> None:
        self.frame_anchor = frame_anchor
        super().__init__(f"Anchor '{frame_anchor}' has no content document or shadow root")
