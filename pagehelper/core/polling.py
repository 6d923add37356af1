from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar, Union

from playwright.async_api import ElementHandle, Frame, Page
from playwright.async_api import TimeoutError as PlaywrightTimeout

from pagehelper.core.errors import NotFoundError

logger = logging.getLogger("pagehelper.polling")

T = TypeVar("T")

# Conditions that mean "not there yet". Anything else escapes the loop.
DEFAULT_RETRY_ON: tuple[type[BaseException], ...] = (
    PlaywrightTimeout,
    asyncio.TimeoutError,
    NotFoundError,
)


@dataclass
class PollBudget:
    """Coarse countdown: every failed attempt costs a full per-attempt timeout."""
    remaining_ms: int
    per_attempt_ms: int

    @property
    def exhausted(self) -> bool:
        return self.remaining_ms <= 0

    def charge(self) -> None:
        self.remaining_ms -= self.per_attempt_ms


class PollingWaiter:
    def __init__(
        self,
        per_attempt_timeout_ms: int = 1_000,
        interval_ms: int = 100,
        retry_on: tuple[type[BaseException], ...] = DEFAULT_RETRY_ON,
    ) -> None:
        if per_attempt_timeout_ms <= 0:
            raise ValueError("per_attempt_timeout_ms must be positive")
        if interval_ms < 0:
            raise ValueError("interval_ms must not be negative")
        self._per_attempt_ms = per_attempt_timeout_ms
        self._interval_ms = interval_ms
        self._retry_on = retry_on

    async def poll_until(
        self,
        attempt: Callable[[int], Awaitable[Optional[T]]],
        total_timeout_ms: int,
        per_attempt_timeout_ms: Optional[int] = None,
        interval_ms: Optional[int] = None,
    ) -> Optional[T]:
        """
        Retry ``attempt`` until it yields a value or the budget runs out.

        ``attempt`` receives its own timeout in milliseconds and returns the
        result, or None when the condition does not hold yet. Returns None
        once the total budget is spent; that is an expected outcome.
        """
        per_attempt = per_attempt_timeout_ms or self._per_attempt_ms
        interval = self._interval_ms if interval_ms is None else interval_ms
        budget = PollBudget(
            remaining_ms=total_timeout_ms,
            per_attempt_ms=min(per_attempt, max(total_timeout_ms, 0)),
        )

        attempts = 0
        while not budget.exhausted:
            attempts += 1
            try:
                result = await asyncio.wait_for(attempt(budget.per_attempt_ms), budget.per_attempt_ms / 1000)
            except self._retry_on as exc:
                logger.debug(f"[Polling] Attempt {attempts} not ready: {type(exc).__name__}")
                result = None

            if result is not None:
                return result

            budget.charge()
            if budget.exhausted:
                break
            if interval:
                await asyncio.sleep(interval / 1000)

        logger.debug(f"[Polling] Gave up after {attempts} attempt(s) / {total_timeout_ms}ms")
        return None


class ElementWaiter:
    """Wait for an element to become visible, tolerating transient absence."""

    def __init__(self, waiter: Optional[PollingWaiter] = None) -> None:
        self._waiter = waiter or PollingWaiter()

    async def wait_for_element(
        self,
        root: Union[Page, Frame],
        selector: str,
        timeout_ms: int,
        state: str = "visible",
    ) -> Optional[ElementHandle]:
        async def attempt(attempt_timeout_ms: int) -> Optional[ElementHandle]:
            return await root.wait_for_selector(selector, state=state, timeout=attempt_timeout_ms)

        return await self._waiter.poll_until(attempt, total_timeout_ms=timeout_ms)
