"""Element location, visibility and polling helpers over Playwright pages."""

from pagehelper.core.actions import PageActions
from pagehelper.core.disabled import DisabledStateChecker, disabled_selector
from pagehelper.core.errors import DetachedFrameError, InvalidArgumentError, NotFoundError, PageHelperError
from pagehelper.core.geometry import (
    GeometryVerdict,
    Rect,
    StyleSubset,
    Viewport,
    VisibilityReason,
    classify,
    parse_z_index,
)
from pagehelper.core.listeners import ClickEvent, ClickEventRecorder, DialogAutoResponder, Subscription, subscribe
from pagehelper.core.page_helper import HelperConfig, PageHelper
from pagehelper.core.polling import DEFAULT_RETRY_ON, ElementWaiter, PollBudget, PollingWaiter
from pagehelper.core.session import BrowserSession, SessionConfig, open_page, run_with_page
from pagehelper.core.settings import get_helper_config, get_session_config
from pagehelper.core.tree_locator import TreeLocator, normalize_path
from pagehelper.core.visibility import (
    HitTestEntry,
    HitTestResult,
    OcclusionStrategy,
    VisibilityResolver,
    VisibilityVerdict,
    is_occluded_by_containment,
    is_occluded_by_stack,
)
from pagehelper.core.wait_manager import WaitManager

__all__ = [
    "BrowserSession",
    "ClickEvent",
    "ClickEventRecorder",
    "DEFAULT_RETRY_ON",
    "DetachedFrameError",
    "DialogAutoResponder",
    "DisabledStateChecker",
    "ElementWaiter",
    "GeometryVerdict",
    "HelperConfig",
    "HitTestEntry",
    "HitTestResult",
    "InvalidArgumentError",
    "NotFoundError",
    "OcclusionStrategy",
    "PageActions",
    "PageHelper",
    "PageHelperError",
    "PollBudget",
    "PollingWaiter",
    "Rect",
    "SessionConfig",
    "StyleSubset",
    "Subscription",
    "TreeLocator",
    "Viewport",
    "VisibilityReason",
    "VisibilityResolver",
    "VisibilityVerdict",
    "WaitManager",
    "classify",
    "disabled_selector",
    "get_helper_config",
    "get_session_config",
    "is_occluded_by_containment",
    "is_occluded_by_stack",
    "normalize_path",
    "open_page",
    "parse_z_index",
    "run_with_page",
    "subscribe",
]
