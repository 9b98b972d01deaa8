"""Per-site page memoization."""
from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Page

from .session import BrowserSessionManager

logger = logging.getLogger(__name__)


class PageCache:
    """Lazily opens one page in the shared context and keeps it.

    The page is navigated to ``home_url`` exactly once, when it is created.
    Navigation errors from Playwright propagate unchanged after the
    half-opened page is closed.
    """

    def __init__(self, session: BrowserSessionManager, home_url: str) -> None:
        self._session = session
        self.home_url = home_url
        self._page: Optional[Page] = None

    @property
    def has_page(self) -> bool:
        return self._page is not None

    @property
    def page(self) -> Optional[Page]:
        return self._page

    async def get_page(self) -> Page:
        if self._page is not None:
            return self._page
        context = await self._session.get_context()
        page = await context.new_page()
        logger.info(f"Opening {self.home_url}")
        try:
            await page.goto(self.home_url)
        except Exception:
            await page.close()
            raise
        self._page = page
        return page

    async def close(self) -> None:
        page, self._page = self._page, None
        if page is None:
            return
        try:
            await page.close()
        except Exception as e:
            logger.error(f"Error closing page for {self.home_url}: {e}")
