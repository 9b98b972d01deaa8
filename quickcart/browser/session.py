"""Ownership of the single persistent browser context."""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import httpx
from playwright.async_api import BrowserContext, async_playwright

from quickcart.exceptions import BrowserEnvironmentError, ConnectivityError

from .config import BrowserConfig, find_browser_executable

logger = logging.getLogger(__name__)


class BrowserSessionManager:
    """Launches and owns one persistent Chromium context.

    The context is launched lazily on the first :meth:`get_context` call and
    reused for the lifetime of the manager. Its remote-debugging endpoint lets
    the AI backend attach to the same browser instance.
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        *,
        playwright_factory: Callable[[], Any] = async_playwright,
        executable_finder: Callable[[], Optional[str]] = find_browser_executable,
        http_client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
    ) -> None:
        self.config = config or BrowserConfig()
        self._playwright_factory = playwright_factory
        self._executable_finder = executable_finder
        self._http_client_factory = http_client_factory
        self._playwright = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> "BrowserSessionManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._context is not None

    async def get_context(self) -> BrowserContext:
        """Return the shared context, launching the browser on first use."""
        if self._context is not None:
            return self._context

        executable_path = self.config.executable_path or self._executable_finder()
        if not executable_path:
            raise BrowserEnvironmentError(
                "Chrome executable not found",
                data={"user_data_dir": self.config.user_data_dir},
            )

        self._playwright = await self._playwright_factory().start()
        logger.info(
            f"Launching persistent context at {self.config.user_data_dir} "
            f"(debug port {self.config.debug_port}, headless={self.config.headless})"
        )
        try:
            context = await self._playwright.chromium.launch_persistent_context(
                user_data_dir=self.config.user_data_dir,
                headless=self.config.headless,
                executable_path=executable_path,
                args=self.config.launch_args(),
            )
        except Exception:
            await self._stop_playwright()
            raise
        context.set_default_timeout(self.config.timeout)
        self._context = context
        return context

    async def get_debug_endpoint(self) -> str:
        """Return the websocket debugger URL advertised on the debugging port."""
        url = self.config.version_url
        try:
            async with self._http_client_factory() as client:
                response = await client.get(url)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ConnectivityError(
                f"Debugging endpoint unreachable at {url}: {exc}",
                data={"url": url},
            ) from exc

        endpoint = payload.get("webSocketDebuggerUrl") if isinstance(payload, dict) else None
        if not endpoint:
            raise ConnectivityError(
                f"No webSocketDebuggerUrl advertised at {url}",
                data={"url": url, "payload": payload},
            )
        logger.debug(f"Resolved debugger endpoint: {endpoint}")
        return endpoint

    async def close(self) -> None:
        """Close the context and stop Playwright; errors are logged only."""
        context, self._context = self._context, None
        if context is not None:
            try:
                await context.close()
                logger.info("Closed persistent browser context")
            except Exception as e:
                logger.error(f"Error closing browser context: {e}")
        await self._stop_playwright()

    async def _stop_playwright(self) -> None:
        playwright, self._playwright = self._playwright, None
        if playwright is None:
            return
        try:
            await playwright.stop()
        except Exception as e:
            logger.error(f"Error stopping Playwright: {e}")
