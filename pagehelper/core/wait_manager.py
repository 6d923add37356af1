from __future__ import annotations

import asyncio
import re
from typing import Any, Awaitable, Callable, Optional

from playwright.async_api import Frame, Page, Request, Response


class WaitManager:
    """Pairs a page action with the waits it triggers, arming the waits first."""

    def __init__(self, page: Page, default_timeout_ms: int = 30_000) -> None:
        self._page = page
        self._default_timeout_ms = default_timeout_ms

    @property
    def page(self) -> Page:
        return self._page

    def _timeout(self, timeout_ms: Optional[int]) -> int:
        return self._default_timeout_ms if timeout_ms is None else timeout_ms

    async def wait_for_navigation(
        self,
        wait_until: str = "load",
        timeout_ms: Optional[int] = None,
    ) -> str:
        """Wait for the main frame to navigate, then for ``wait_until``; returns the new URL."""
        timeout = self._timeout(timeout_ms)
        main_frame = self._page.main_frame

        def predicate(frame: Frame) -> bool:
            return frame == main_frame

        await self._page.wait_for_event("framenavigated", predicate=predicate, timeout=timeout)
        await self._page.wait_for_load_state(wait_until, timeout=timeout)
        return self._page.url

    async def wait_for_network_idle(self, idle_ms: int = 1_000, timeout_ms: Optional[int] = None) -> bool:
        """Wait until no request has been in flight for ``idle_ms``."""
        inflight: set[Request] = set()
        changed = asyncio.Event()

        def on_start(request: Request) -> None:
            inflight.add(request)
            changed.set()

        def on_end(request: Request) -> None:
            inflight.discard(request)
            changed.set()

        async def settle() -> bool:
            while True:
                changed.clear()
                if inflight:
                    await changed.wait()
                    continue
                try:
                    await asyncio.wait_for(changed.wait(), idle_ms / 1000)
                except asyncio.TimeoutError:
                    return True

        self._page.on("request", on_start)
        self._page.on("requestfinished", on_end)
        self._page.on("requestfailed", on_end)
        try:
            return await asyncio.wait_for(settle(), self._timeout(timeout_ms) / 1000)
        finally:
            self._page.remove_listener("request", on_start)
            self._page.remove_listener("requestfinished", on_end)
            self._page.remove_listener("requestfailed", on_end)

    async def wait_for_response(
        self,
        url_pattern: Optional[str] = None,
        ok_only: bool = True,
        timeout_ms: Optional[int] = None,
    ) -> Response:
        regex = re.compile(url_pattern) if url_pattern else None

        def predicate(response: Response) -> bool:
            if regex and not regex.search(response.url):
                return False
            if ok_only and not response.ok:
                return False
            return True

        return await self._page.wait_for_event("response", predicate=predicate, timeout=self._timeout(timeout_ms))

    async def run_with_wait(
        self,
        action: Callable[[], Awaitable[Any]],
        *waits: Callable[[], Awaitable[Any]],
    ) -> tuple[Any, list[Any]]:
        """Pre-arm waits, run action, then wait for every armed task to finish.

        A wait attached only after the action is dispatched can miss a fast
        navigation or response, so all waits are scheduled before the action.
        """
        if not waits:
            return await action(), []

        tasks = [asyncio.create_task(wait()) for wait in waits]
        try:
            await asyncio.sleep(0)
            result = await action()
            outcomes = list(await asyncio.gather(*tasks))
            return result, outcomes
        finally:
            await self._cancel_and_drain(tasks)

    async def click_and_wait_for_navigation(
        self,
        selector: str,
        wait_until: str = "networkidle",
        timeout_ms: Optional[int] = None,
    ) -> Optional[str]:
        handle = await self._page.wait_for_selector(selector, timeout=self._timeout(timeout_ms))
        if handle is None:
            return None
        _, outcomes = await self.run_with_wait(
            handle.click,
            lambda: self.wait_for_navigation(wait_until=wait_until, timeout_ms=timeout_ms),
        )
        return outcomes[0]

    async def click_and_wait_for_network_idle(
        self,
        selector: str,
        idle_ms: int = 1_000,
        timeout_ms: Optional[int] = None,
    ) -> bool:
        handle = await self._page.wait_for_selector(selector, timeout=self._timeout(timeout_ms))
        if handle is None:
            return False
        _, outcomes = await self.run_with_wait(
            handle.click,
            lambda: self.wait_for_network_idle(idle_ms=idle_ms, timeout_ms=timeout_ms),
        )
        return bool(outcomes[0])

    async def load_page(
        self,
        url: str,
        wait_until: str = "load",
        timeout_ms: Optional[int] = None,
    ) -> Optional[Response]:
        """Navigate and wait for the first OK response, both armed together."""
        response, _ = await self.run_with_wait(
            lambda: self._page.goto(url, wait_until=wait_until, timeout=self._timeout(timeout_ms)),
            lambda: self.wait_for_response(ok_only=True, timeout_ms=timeout_ms),
        )
        return response

    async def _cancel_and_drain(self, tasks: list[asyncio.Task[Any]]) -> None:
        for task in tasks:
            if task.done() or task.cancelled():
                continue
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
