from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional, TypeVar

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

logger = logging.getLogger("pagehelper.session")

T = TypeVar("T")


@dataclass(frozen=True)
class SessionConfig:
    headless: bool = True
    browser_type: str = "chromium"
    viewport_width: int = 1440
    viewport_height: int = 900
    default_timeout_ms: int = 30_000
    ignore_https_errors: bool = True
    slow_mo_ms: int = 0
    user_agent: Optional[str] = None
    extra_args: tuple[str, ...] = ()


class BrowserSession:
    """Owns the Playwright driver, one browser and one context."""

    def __init__(self, config: Optional[SessionConfig] = None) -> None:
        self.config = config or SessionConfig()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    @property
    def browser(self) -> Optional[Browser]:
        return self._browser

    async def start(self) -> None:
        if self._browser:
            return
        self._playwright = await async_playwright().start()
        launch_options: dict[str, Any] = {"headless": self.config.headless}
        if self.config.slow_mo_ms:
            launch_options["slow_mo"] = self.config.slow_mo_ms
        if self.config.extra_args:
            launch_options["args"] = list(self.config.extra_args)
        try:
            launcher = getattr(self._playwright, self.config.browser_type)
            self._browser = await launcher.launch(**launch_options)
            context_options: dict[str, Any] = {
                "viewport": {"width": self.config.viewport_width, "height": self.config.viewport_height},
                "ignore_https_errors": self.config.ignore_https_errors,
            }
            if self.config.user_agent:
                context_options["user_agent"] = self.config.user_agent
            self._context = await self._browser.new_context(**context_options)
        except Exception:
            await self.close()
            raise
        logger.info(f"[Session] {self.config.browser_type} started (headless={self.config.headless})")

    async def new_page(self) -> Page:
        if not self._context:
            raise RuntimeError("Browser session not started")
        page = await self._context.new_page()
        page.set_default_timeout(self.config.default_timeout_ms)
        return page

    async def close(self) -> None:
        if self._context:
            await self._context.close()
            self._context = None
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
        logger.info("[Session] Closed")

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


@asynccontextmanager
async def open_page(config: Optional[SessionConfig] = None) -> AsyncGenerator[Page, None]:
    """Launch a browser, yield a fresh page, and tear everything down afterwards."""
    async with BrowserSession(config) as session:
        page = await session.new_page()
        try:
            yield page
        finally:
            await page.close()


async def run_with_page(
    scenario: Callable[..., Awaitable[T]],
    *args: Any,
    config: Optional[SessionConfig] = None,
) -> T:
    async with open_page(config) as page:
        return await scenario(page, *args)
