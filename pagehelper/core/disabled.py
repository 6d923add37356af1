from __future__ import annotations

import logging
from typing import Optional, Union

from playwright.async_api import Frame, Page

from pagehelper.core.polling import PollingWaiter
from pagehelper.core.tree_locator import SelectorPath, TreeLocator, normalize_path

logger = logging.getLogger("pagehelper.disabled")


def disabled_selector(selector: str) -> str:
    """Compound selector matching ``selector`` only while it carries ``disabled``."""
    return f":is({selector})[disabled]"


class DisabledStateChecker:
    """
    Answers "is this control disabled right now".

    Not finding a disabled match within the timeout reads as "not disabled";
    a missing element therefore also reports False.
    """

    def __init__(self, locator: Optional[TreeLocator] = None, waiter: Optional[PollingWaiter] = None) -> None:
        self._locator = locator or TreeLocator()
        self._waiter = waiter or PollingWaiter()

    async def is_disabled(
        self,
        root: Union[Page, Frame],
        selector: SelectorPath,
        timeout_ms: int,
        frame_anchor: Optional[str] = None,
    ) -> bool:
        try:
            segments = list(normalize_path(selector))
            segments[-1] = disabled_selector(segments[-1])

            async def attempt(attempt_timeout_ms: int):
                return await self._locator.locate(
                    root,
                    segments,
                    frame_anchor=frame_anchor,
                    timeout_ms=attempt_timeout_ms,
                )

            element = await self._waiter.poll_until(attempt, total_timeout_ms=timeout_ms)
        except Exception as exc:
            logger.debug(f"[Disabled] {selector}: check failed: {exc}")
            return False

        return element is not None
