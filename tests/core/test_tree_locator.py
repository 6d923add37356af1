"""
Tests for TreeLocator selector-path resolution.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from pagehelper.core.errors import DetachedFrameError, InvalidArgumentError, NotFoundError
from pagehelper.core.tree_locator import TreeLocator, is_stale_handle_error, normalize_path


def make_element(scope=None, frame=None, shadow_root=None):
    """Element handle fake whose evaluate_handle yields ``scope`` (or itself)."""
    element = MagicMock(name="element")
    element.wait_for_selector = AsyncMock()
    element.content_frame = AsyncMock(return_value=frame)

    def evaluate_handle(script):
        handle = MagicMock(name="js_handle")
        if "? el.shadowRoot : el" in script:
            handle.as_element.return_value = scope if scope is not None else element
        else:
            handle.as_element.return_value = shadow_root
        return handle

    element.evaluate_handle = AsyncMock(side_effect=evaluate_handle)
    return element


class TestNormalizePath:
    """Tests for selector path validation."""

    def test_string_is_single_segment(self):
        assert normalize_path("#go") == ("#go",)

    def test_list_is_kept_in_order(self):
        assert normalize_path(["a", "b", "c"]) == ("a", "b", "c")

    def test_empty_path_rejected(self):
        with pytest.raises(InvalidArgumentError):
            normalize_path([])

    def test_blank_segment_rejected(self):
        with pytest.raises(InvalidArgumentError):
            normalize_path(["host", "  "])

    def test_non_string_segment_rejected(self):
        with pytest.raises(InvalidArgumentError):
            normalize_path(["host", 3])


class TestLocate:
    """Tests for TreeLocator.locate."""

    @pytest.mark.asyncio
    async def test_empty_path_never_waits(self):
        page = MagicMock()
        page.wait_for_selector = AsyncMock()

        with pytest.raises(InvalidArgumentError):
            await TreeLocator().locate(page, [])

        page.wait_for_selector.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_path_rejected_before_anchor_lookup(self):
        page = MagicMock()
        page.wait_for_selector = AsyncMock()

        with pytest.raises(InvalidArgumentError):
            await TreeLocator().locate(page, [], frame_anchor="iframe")

        page.wait_for_selector.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_segment_is_plain_wait(self):
        target = make_element()
        page = MagicMock()
        page.wait_for_selector = AsyncMock(return_value=target)

        result = await TreeLocator().locate(page, "#go", timeout_ms=500)

        assert result is target
        page.wait_for_selector.assert_awaited_once_with("#go", state="attached", timeout=500)
        target.evaluate_handle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_default_timeout_used_when_none_given(self):
        target = make_element()
        page = MagicMock()
        page.wait_for_selector = AsyncMock(return_value=target)

        await TreeLocator(default_timeout_ms=2_500).locate(page, "#go")

        page.wait_for_selector.assert_awaited_once_with("#go", state="attached", timeout=2_500)

    @pytest.mark.asyncio
    async def test_walks_nested_shadow_roots(self):
        button = make_element()
        inner_root = MagicMock(name="inner_shadow_root")
        inner_root.wait_for_selector = AsyncMock(return_value=button)
        panel = make_element(scope=inner_root)
        outer_root = MagicMock(name="outer_shadow_root")
        outer_root.wait_for_selector = AsyncMock(return_value=panel)
        app = make_element(scope=outer_root)
        page = MagicMock()
        page.wait_for_selector = AsyncMock(return_value=app)

        result = await TreeLocator().locate(page, ["my-app", "settings-panel", "#save"], timeout_ms=100)

        assert result is button
        outer_root.wait_for_selector.assert_awaited_once_with("settings-panel", state="attached", timeout=100)
        inner_root.wait_for_selector.assert_awaited_once_with("#save", state="attached", timeout=100)
        button.evaluate_handle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_element_without_shadow_root_is_its_own_context(self):
        child = make_element()
        parent = make_element()
        parent.wait_for_selector = AsyncMock(return_value=child)
        page = MagicMock()
        page.wait_for_selector = AsyncMock(return_value=parent)

        result = await TreeLocator().locate(page, ["form", "input[name=q]"])

        assert result is child
        parent.wait_for_selector.assert_awaited_once_with("input[name=q]", state="attached", timeout=None)

    @pytest.mark.asyncio
    async def test_frame_anchor_searches_frame_document(self):
        target = make_element()
        frame = MagicMock(name="frame")
        frame.wait_for_selector = AsyncMock(return_value=target)
        iframe = make_element(frame=frame)
        page = MagicMock()
        page.wait_for_selector = AsyncMock(return_value=iframe)

        result = await TreeLocator().locate(page, ["#submit"], frame_anchor="iframe#checkout", timeout_ms=300)

        assert result is target
        page.wait_for_selector.assert_awaited_once_with("iframe#checkout", state="attached", timeout=300)
        frame.wait_for_selector.assert_awaited_once_with("#submit", state="attached", timeout=300)

    @pytest.mark.asyncio
    async def test_shadow_host_anchor_searches_its_shadow_root(self):
        button = make_element()
        shadow_root = MagicMock(name="shadow_root")
        shadow_root.wait_for_selector = AsyncMock(return_value=button)
        host = make_element(frame=None, shadow_root=shadow_root)
        page = MagicMock()
        page.wait_for_selector = AsyncMock(return_value=host)

        result = await TreeLocator().locate(page, ["#go"], frame_anchor="#shadow-host")

        assert result is button
        shadow_root.wait_for_selector.assert_awaited_once_with("#go", state="attached", timeout=None)

    @pytest.mark.asyncio
    async def test_anchor_without_document_raises_detached(self):
        plain_div = make_element(frame=None, shadow_root=None)
        page = MagicMock()
        page.wait_for_selector = AsyncMock(return_value=plain_div)

        with pytest.raises(DetachedFrameError) as excinfo:
            await TreeLocator().locate(page, ["#go"], frame_anchor="div.not-a-frame")

        assert excinfo.value.frame_anchor == "div.not-a-frame"

    @pytest.mark.asyncio
    async def test_missing_anchor_raises_not_found_naming_anchor(self):
        page = MagicMock()
        page.wait_for_selector = AsyncMock(side_effect=PlaywrightTimeout("Timeout 100ms exceeded."))

        with pytest.raises(NotFoundError) as excinfo:
            await TreeLocator().locate(page, ["#go"], frame_anchor="iframe", timeout_ms=100)

        assert excinfo.value.path == ("iframe",)

    @pytest.mark.asyncio
    async def test_timeout_names_deepest_segment_attempted(self):
        shadow_root = MagicMock(name="shadow_root")
        shadow_root.wait_for_selector = AsyncMock(side_effect=PlaywrightTimeout("Timeout 100ms exceeded."))
        host = make_element(scope=shadow_root)
        page = MagicMock()
        page.wait_for_selector = AsyncMock(return_value=host)

        with pytest.raises(NotFoundError) as excinfo:
            await TreeLocator().locate(page, ["my-app", "#missing", "#never-reached"], timeout_ms=100)

        assert excinfo.value.path == ("my-app", "#missing")
        assert "my-app >> #missing" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_stale_handle_surfaces_as_not_found(self):
        host = make_element()
        host.evaluate_handle = AsyncMock(side_effect=PlaywrightError("Element is not attached to the DOM"))
        page = MagicMock()
        page.wait_for_selector = AsyncMock(return_value=host)

        with pytest.raises(NotFoundError) as excinfo:
            await TreeLocator().locate(page, ["my-app", "#go"])

        assert excinfo.value.path == ("my-app",)

    @pytest.mark.asyncio
    async def test_engine_errors_pass_through(self):
        page = MagicMock()
        page.wait_for_selector = AsyncMock(side_effect=PlaywrightError("Unexpected token in selector"))

        with pytest.raises(PlaywrightError) as excinfo:
            await TreeLocator().locate(page, "div[")

        assert not isinstance(excinfo.value, NotFoundError)

    @pytest.mark.asyncio
    async def test_none_result_treated_as_not_found(self):
        page = MagicMock()
        page.wait_for_selector = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await TreeLocator().locate(page, "#go")


def test_stale_handle_detection():
    assert is_stale_handle_error(PlaywrightError("Element is not attached to the DOM")) is True
    assert is_stale_handle_error(PlaywrightError("JSHandle is disposed.")) is True
    assert is_stale_handle_error(PlaywrightError("Target page, context or browser has been closed")) is False
    assert is_stale_handle_error(PlaywrightTimeout("Timeout 30000ms exceeded.")) is False


@pytest.mark.asyncio
async def test_missing_final_segment_names_whole_path():
    shadow_root = MagicMock(name="shadow_root")
    shadow_root.wait_for_selector = AsyncMock(return_value=None)
    host = make_element(scope=shadow_root)
    page = MagicMock()
    page.wait_for_selector = AsyncMock(return_value=host)

    with pytest.raises(NotFoundError) as excinfo:
        await TreeLocator().locate(page, ["my-app", "#save"], timeout_ms=100)

    assert excinfo.value.path == ("my-app", "#save")
