"""Playwright-powered browser lifecycle for quickcart."""

from .config import (
    BrowserConfig,
    DEFAULT_DEBUG_PORT,
    DEFAULT_USER_DATA_DIR,
    find_browser_executable,
    get_chrome_args,
)
from .pages import PageCache
from .session import BrowserSessionManager

__all__ = [
    "BrowserConfig",
    "BrowserSessionManager",
    "DEFAULT_DEBUG_PORT",
    "DEFAULT_USER_DATA_DIR",
    "PageCache",
    "find_browser_executable",
    "get_chrome_args",
]
