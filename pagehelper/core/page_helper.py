"""
PageHelper - the entry point scenario code talks to.

Bundles element location, visibility and polling predicates plus the
everyday page actions behind one object. A helper holds no page state:
every call takes the page (or frame) it should act on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from playwright.async_api import ElementHandle, Frame, Page

from pagehelper.core.actions import PageActions
from pagehelper.core.disabled import DisabledStateChecker
from pagehelper.core.polling import ElementWaiter, PollingWaiter
from pagehelper.core.tree_locator import SelectorPath, TreeLocator
from pagehelper.core.visibility import OcclusionStrategy, VisibilityResolver, VisibilityVerdict
from pagehelper.core.wait_manager import WaitManager

Root = Union[Page, Frame]


@dataclass(frozen=True)
class HelperConfig:
    """Timeouts and strategy defaults for PageHelper."""
    default_timeout_ms: int = 30_000
    lookup_timeout_ms: int = 1_000
    poll_attempt_ms: int = 1_000
    poll_interval_ms: int = 100
    occlusion_strategy: OcclusionStrategy = OcclusionStrategy.STACK_SCAN


class PageHelper:
    def __init__(self, config: Optional[HelperConfig] = None) -> None:
        self.config = config or HelperConfig()

        self.locator = TreeLocator(default_timeout_ms=self.config.default_timeout_ms)
        self.visibility = VisibilityResolver(
            strategy=self.config.occlusion_strategy,
            lookup_timeout_ms=self.config.lookup_timeout_ms,
        )
        self.poller = PollingWaiter(
            per_attempt_timeout_ms=self.config.poll_attempt_ms,
            interval_ms=self.config.poll_interval_ms,
        )
        self.element_waiter = ElementWaiter(self.poller)
        self.disabled = DisabledStateChecker(locator=self.locator, waiter=self.poller)
        self.actions = PageActions(locator=self.locator)

    def waits(self, page: Page) -> WaitManager:
        return WaitManager(page, default_timeout_ms=self.config.default_timeout_ms)

    async def locate(
        self,
        root: Root,
        path: SelectorPath,
        frame_anchor: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> ElementHandle:
        return await self.locator.locate(root, path, frame_anchor=frame_anchor, timeout_ms=timeout_ms)

    async def is_visible(
        self,
        root: Root,
        selector: str,
        strategy: Optional[OcclusionStrategy] = None,
    ) -> bool:
        return await self.visibility.is_visible(root, selector, strategy=strategy)

    async def visibility_verdict(
        self,
        root: Root,
        selector: str,
        strategy: Optional[OcclusionStrategy] = None,
    ) -> VisibilityVerdict:
        return await self.visibility.verdict(root, selector, strategy=strategy)

    async def is_not_obstructed(self, root: Root, selector: str) -> bool:
        return await self.visibility.is_not_obstructed(root, selector)

    async def wait_for_element(self, root: Root, selector: str, timeout_ms: int) -> Optional[ElementHandle]:
        return await self.element_waiter.wait_for_element(root, selector, timeout_ms)

    async def is_disabled(
        self,
        root: Root,
        selector: SelectorPath,
        timeout_ms: int,
        frame_anchor: Optional[str] = None,
    ) -> bool:
        return await self.disabled.is_disabled(root, selector, timeout_ms, frame_anchor=frame_anchor)

    async def click_and_wait_for_navigation(self, page: Page, selector: str, wait_until: str = "networkidle") -> Optional[str]:
        return await self.waits(page).click_and_wait_for_navigation(selector, wait_until=wait_until)

    async def click_and_wait_for_network_idle(self, page: Page, selector: str, idle_ms: int = 1_000) -> bool:
        return await self.waits(page).click_and_wait_for_network_idle(selector, idle_ms=idle_ms)

    async def load_page(self, page: Page, url: str, wait_until: str = "load"):
        return await self.waits(page).load_page(url, wait_until=wait_until)
