"""
Everyday page interactions used by test scenarios.

These are thin wrappers around Playwright: element queries, typing helpers,
shadow DOM shortcuts, scrolling and file inputs. Element lookups that wait go
through ``TreeLocator`` so a missing element surfaces as ``NotFoundError``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from playwright.async_api import ElementHandle, Frame, Page
from playwright.async_api import Error as PlaywrightError

from pagehelper.core.errors import NotFoundError
from pagehelper.core.tree_locator import TreeLocator

logger = logging.getLogger("pagehelper.actions")

Root = Union[Page, Frame]

SHADOW_CLICK_SCRIPT = """
([hostSelector, targetSelector]) => {
  const host = document.querySelector(hostSelector);
  if (!host) return 'host';
  const root = host.shadowRoot;
  if (!root) return 'root';
  const target = root.querySelector(targetSelector);
  if (!target) return 'target';
  target.click();
  return null;
}
"""

SHADOW_TEXT_SCRIPT = """
([hostSelector, targetSelector]) => {
  const host = document.querySelector(hostSelector);
  if (!host) return { missing: 'host' };
  const root = host.shadowRoot;
  if (!root) return { missing: 'root' };
  const target = root.querySelector(targetSelector);
  if (!target) return { missing: 'target' };
  return { text: (target.textContent || '').trim() };
}
"""

COMPUTED_STYLE_SCRIPT = """
(el) => {
  const style = getComputedStyle(el);
  const out = {};
  for (let i = 0; i < style.length; i++) {
    const name = style[i];
    const value = style.getPropertyValue(name);
    if (value) out[name] = value;
  }
  return out;
}
"""

CHANGE_VALUE_SCRIPT = """
(input, value) => {
  input.value = value;
  input.dispatchEvent(new Event('input', { bubbles: true }));
  input.dispatchEvent(new Event('change', { bubbles: true }));
}
"""

# Returns the part of newValue still to be typed, clearing the field when
# the new value does not extend the current one.
TYPE_SUFFIX_SCRIPT = """
(input, newValue) => {
  const current = input.value || '';
  if (newValue.length <= current.length || !newValue.startsWith(current)) {
    input.value = '';
    return newValue;
  }
  return newValue.substring(current.length);
}
"""


class PageActions:
    def __init__(self, locator: Optional[TreeLocator] = None, default_timeout_ms: Optional[int] = None) -> None:
        self._locator = locator or TreeLocator(default_timeout_ms=default_timeout_ms)

    async def _require(self, root: Root, selector: str, timeout_ms: Optional[int] = None) -> ElementHandle:
        return await self._locator.locate(root, selector, timeout_ms=timeout_ms)

    async def wait_and_click(self, root: Root, selector: str, timeout_ms: Optional[int] = None) -> None:
        element = await self._require(root, selector, timeout_ms)
        await element.click()

    # -- queries ---------------------------------------------------------

    async def get_text_content(self, root: Root, selector: str) -> Optional[str]:
        """Trimmed text of the first match, or None when nothing matches."""
        element = await root.query_selector(selector)
        if element is None:
            return None
        text = await element.text_content()
        return text.strip() if text is not None else None

    async def get_input_value(self, root: Root, selector: str, timeout_ms: Optional[int] = None) -> str:
        element = await self._require(root, selector, timeout_ms)
        return await element.evaluate("el => el.value")

    async def get_attribute_value(self, root: Root, selector: str, attribute: str) -> Optional[str]:
        try:
            element = await root.query_selector(selector)
            if element is None:
                return None
            return await element.get_attribute(attribute)
        except PlaywrightError as exc:
            logger.warning(f"[Actions] Could not read {attribute} of {selector}: {exc}")
            return None

    async def get_inline_style_property_value(self, root: Root, selector: str, prop: str) -> Optional[str]:
        try:
            element = await root.query_selector(selector)
            if element is None:
                return None
            return await element.evaluate("(el, prop) => el.style.getPropertyValue(prop)", prop)
        except PlaywrightError as exc:
            logger.warning(f"[Actions] Could not read inline {prop} of {selector}: {exc}")
            return None

    async def get_computed_style_properties(self, root: Root, selector: str) -> Optional[dict[str, str]]:
        element = await root.query_selector(selector)
        if element is None:
            return None
        return await element.evaluate(COMPUTED_STYLE_SCRIPT)

    async def count_elements(self, root: Root, selector: str) -> int:
        return len(await root.query_selector_all(selector))

    async def is_checkbox_checked(self, root: Root, selector: str, timeout_ms: Optional[int] = None) -> bool:
        element = await self._require(root, selector, timeout_ms)
        return bool(await element.evaluate("el => el.checked"))

    async def element_contains_text(self, element: ElementHandle, text: str) -> bool:
        content = await element.text_content()
        return content is not None and text in content

    async def get_element_by_xpath(self, root: Root, xpath: str, timeout_ms: Optional[int] = None) -> ElementHandle:
        return await self._require(root, f"xpath={xpath}", timeout_ms)

    async def get_element_by_text(
        self,
        root: Root,
        xpath: str,
        text: str,
        timeout_ms: Optional[int] = None,
    ) -> ElementHandle:
        """First element matching ``xpath`` whose text contains ``text``."""
        literal = _xpath_literal(text)
        return await self._require(root, f"xpath=({xpath})[contains(., {literal})]", timeout_ms)

    # -- input -----------------------------------------------------------

    async def type_text(self, root: Root, selector: str, text: str, timeout_ms: Optional[int] = None) -> None:
        element = await self._require(root, selector, timeout_ms)
        await element.type(text)

    async def type_slowly(self, element: ElementHandle, text: str, delay_ms: int = 100) -> None:
        await element.type(text, delay=delay_ms)

    async def type_into_element(self, element: ElementHandle, value: str, delay_ms: int = 100) -> None:
        remaining = await element.evaluate(TYPE_SUFFIX_SCRIPT, value)
        await element.focus()
        await element.press("End")
        await element.type(remaining, delay=delay_ms)

    async def change_element_value(self, element: ElementHandle, value: str) -> None:
        await element.focus()
        await element.evaluate(CHANGE_VALUE_SCRIPT, value)

    async def load_file(self, root: Root, selector: str, file_path: Union[str, Path], timeout_ms: int = 5_000) -> None:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        element = await self._require(root, selector, timeout_ms)
        await element.set_input_files(str(path.resolve()))

    # -- shadow DOM ------------------------------------------------------

    async def click_from_shadow_dom(self, page: Root, host_selector: str, target_selector: str) -> None:
        missing = await page.evaluate(SHADOW_CLICK_SCRIPT, [host_selector, target_selector])
        if missing:
            raise NotFoundError(_shadow_path(missing, host_selector, target_selector))

    async def get_text_from_shadow_dom(self, page: Root, host_selector: str, target_selector: str) -> str:
        result = await page.evaluate(SHADOW_TEXT_SCRIPT, [host_selector, target_selector])
        if result.get("missing"):
            raise NotFoundError(_shadow_path(result["missing"], host_selector, target_selector))
        return result.get("text", "")

    # -- scrolling -------------------------------------------------------

    async def scroll_element_into_view(self, root: Root, selector: str) -> bool:
        element = await root.query_selector(selector)
        if element is None:
            return False
        await element.evaluate("el => el.scrollIntoView()")
        return True

    async def scroll_down(self, page: Page, max_scrolls: int = 100, pause_ms: int = 1_000) -> int:
        """Scroll to the bottom until the document stops growing; returns the scroll count."""
        previous_height = -1
        scrolls = 0
        while scrolls < max_scrolls:
            await page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
            await asyncio.sleep(pause_ms / 1000)
            height = await page.evaluate("document.body.scrollHeight")
            scrolls += 1
            if height == previous_height:
                break
            previous_height = height
        logger.debug(f"[Actions] Scrolled {scrolls} time(s), final height {previous_height}")
        return scrolls


def _shadow_path(missing: str, host_selector: str, target_selector: str) -> tuple[str, ...]:
    if missing == "target":
        return (host_selector, target_selector)
    if missing == "root":
        return (host_selector, "#shadow-root")
    return (host_selector,)


def _xpath_literal(text: str) -> str:
    if "'" not in text:
        return f"'{text}'"
    if '"' not in text:
        return f'"{text}"'
    parts = text.split("'")
    return "concat(" + ", \"'\", ".join(f"'{part}'" for part in parts) + ")"


