from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from playwright.async_api import Dialog, Page

logger = logging.getLogger("pagehelper.listeners")

_recorder_ids = itertools.count(1)

CLICK_LISTENER_SCRIPT = """
(bindingName) => {
  const marker = bindingName + 'Installed';
  if (window[marker]) return false;
  window[marker] = true;
  document.addEventListener('click', (event) => {
    const target = event.target;
    if (!target) return;
    window[bindingName]({
      timestamp: Date.now(),
      x: event.clientX,
      y: event.clientY,
      target: target.tagName || '',
      targetId: target.id || '',
      targetClass: typeof target.className === 'string' ? target.className : ''
    });
  }, true);
  return true;
}
"""


class Subscription:
    """A page event listener that stays attached until disposed."""

    def __init__(self, page: Page, event: str, handler: Callable[..., Any]) -> None:
        self._page = page
        self._event = event
        self._handler = handler
        self._active = True
        page.on(event, handler)

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> None:
        if not self._active:
            return
        self._page.remove_listener(self._event, self._handler)
        self._active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()


def subscribe(page: Page, event: str, handler: Callable[..., Any]) -> Subscription:
    return Subscription(page, event, handler)


@dataclass(frozen=True)
class ClickEvent:
    timestamp: int
    x: float
    y: float
    target: str
    target_id: str = ""
    target_class: str = ""

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ClickEvent":
        return cls(
            timestamp=int(payload.get("timestamp", 0)),
            x=float(payload.get("x", 0.0)),
            y=float(payload.get("y", 0.0)),
            target=str(payload.get("target", "")),
            target_id=str(payload.get("targetId", "")),
            target_class=str(payload.get("targetClass", "")),
        )


class ClickEventRecorder:
    """
    Records clicks on the current document into a Python-side log.

    The page reports each click through a dedicated binding instead of an
    array on ``window``; ``events()`` hands back a copy of the log.
    """

    def __init__(self, page: Page) -> None:
        self._page = page
        self._binding = f"__pagehelperClick{next(_recorder_ids)}"
        self._events: list[ClickEvent] = []
        self._exposed = False
        self._recording = False

    async def start(self) -> None:
        if not self._exposed:
            await self._page.expose_function(self._binding, self._record)
            self._exposed = True
        installed = await self._page.evaluate(CLICK_LISTENER_SCRIPT, self._binding)
        self._recording = True
        logger.debug(f"[Listeners] Click recorder {self._binding} started (listener installed: {bool(installed)})")

    def stop(self) -> None:
        self._recording = False

    def _record(self, payload: dict[str, Any]) -> None:
        if not self._recording:
            return
        self._events.append(ClickEvent.from_dict(payload))

    def events(self) -> list[ClickEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()


@dataclass(frozen=True)
class DialogRecord:
    kind: str
    message: str
    ts: float


class DialogAutoResponder:
    """Accepts (or dismisses) every dialog while active and keeps what it saw."""

    def __init__(self, page: Page, accept: bool = True, prompt_text: Optional[str] = None) -> None:
        self._page = page
        self._accept = accept
        self._prompt_text = prompt_text
        self._records: list[DialogRecord] = []
        self._subscription: Optional[Subscription] = None

    @property
    def records(self) -> list[DialogRecord]:
        return list(self._records)

    async def _on_dialog(self, dialog: Dialog) -> None:
        self._records.append(DialogRecord(kind=dialog.type, message=dialog.message, ts=time.time()))
        if self._accept:
            if self._prompt_text is not None:
                await dialog.accept(self._prompt_text)
            else:
                await dialog.accept()
        else:
            await dialog.dismiss()

    def __enter__(self) -> "DialogAutoResponder":
        self._subscription = subscribe(self._page, "dialog", self._on_dialog)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._subscription:
            self._subscription.dispose()
            self._subscription = None
