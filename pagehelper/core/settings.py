from __future__ import annotations

import os

from pagehelper.core.page_helper import HelperConfig
from pagehelper.core.session import SessionConfig
from pagehelper.core.visibility import OcclusionStrategy


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def get_helper_config() -> HelperConfig:
    """Get helper timeouts and strategy from environment variables."""
    return HelperConfig(
        default_timeout_ms=int(os.getenv("PAGEHELPER_DEFAULT_TIMEOUT_MS", "30000")),
        lookup_timeout_ms=int(os.getenv("PAGEHELPER_LOOKUP_TIMEOUT_MS", "1000")),
        poll_attempt_ms=int(os.getenv("PAGEHELPER_POLL_ATTEMPT_MS", "1000")),
        poll_interval_ms=int(os.getenv("PAGEHELPER_POLL_INTERVAL_MS", "100")),
        occlusion_strategy=OcclusionStrategy(os.getenv("PAGEHELPER_OCCLUSION_STRATEGY", "stack_scan").lower()),
    )


def get_session_config() -> SessionConfig:
    """Get browser session configuration from environment variables."""
    return SessionConfig(
        headless=_flag("PAGEHELPER_HEADLESS", "true"),
        browser_type=os.getenv("PAGEHELPER_BROWSER", "chromium"),
        viewport_width=int(os.getenv("PAGEHELPER_VIEWPORT_WIDTH", "1440")),
        viewport_height=int(os.getenv("PAGEHELPER_VIEWPORT_HEIGHT", "900")),
        default_timeout_ms=int(os.getenv("PAGEHELPER_DEFAULT_TIMEOUT_MS", "30000")),
        ignore_https_errors=_flag("PAGEHELPER_IGNORE_HTTPS_ERRORS", "true"),
        slow_mo_ms=int(os.getenv("PAGEHELPER_SLOW_MO_MS", "0")),
        user_agent=os.getenv("PAGEHELPER_USER_AGENT") or None,
    )
