"""Explicitly owned automation state: one shopping session, one automation per site."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from playwright.async_api import Page

from quickcart.agent.actions import CandidateAction, ExtractOptions, ObserveOptions
from quickcart.agent.backend import ObservationBackend, OpenAIObservationBackend
from quickcart.agent.client import AIActionClient, BackendFactory
from quickcart.browser.pages import PageCache
from quickcart.browser.session import BrowserSessionManager
from quickcart.config import Settings, get_settings
from quickcart.sites import SiteProfile, get_profile

logger = logging.getLogger(__name__)


class SiteAutomation:
    """Owns the page and AI client for one site profile."""

    def __init__(
        self,
        profile: SiteProfile,
        session: BrowserSessionManager,
        settings: Settings,
        *,
        backend_factory: BackendFactory = OpenAIObservationBackend,
    ) -> None:
        self.profile = profile
        self.settings = settings
        self.pages = PageCache(session, profile.home_url)
        self.ai = AIActionClient(self.pages, session, settings, backend_factory=backend_factory)

    async def get_page(self) -> Page:
        return await self.pages.get_page()

    async def get_client(self) -> ObservationBackend:
        return await self.ai.get_client()

    async def observe(
        self,
        instruction: Union[str, ObserveOptions, None] = None,
        options: Optional[ObserveOptions] = None,
    ) -> List[CandidateAction]:
        return await self.ai.observe(instruction, options)

    async def extract(
        self,
        instruction: Union[str, ExtractOptions, None] = None,
        schema: Any = None,
        options: Optional[ExtractOptions] = None,
    ) -> Any:
        return await self.ai.extract(instruction, schema, options)

    async def checkpoint(self, label: str) -> None:
        """Open the Playwright inspector when step pauses are enabled."""
        if not self.settings.pause_between_steps or not self.pages.has_page:
            return
        logger.info(f"Paused at {label}; resume from the Playwright inspector")
        page = await self.get_page()
        await page.pause()

    async def close(self) -> None:
        await self.ai.close()
        await self.pages.close()


class ShoppingSession:
    """Process-level owner of the browser session and per-site automations."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        session_manager: Optional[BrowserSessionManager] = None,
        backend_factory: BackendFactory = OpenAIObservationBackend,
    ) -> None:
        self.settings = settings or get_settings()
        self.browser = session_manager or BrowserSessionManager(self.settings.browser_config())
        self._backend_factory = backend_factory
        self._automations: Dict[str, SiteAutomation] = {}

    async def __aenter__(self) -> "ShoppingSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def automation(self, site: Union[str, SiteProfile]) -> SiteAutomation:
        profile = get_profile(site) if isinstance(site, str) else site
        existing = self._automations.get(profile.key)
        if existing is not None:
            return existing
        automation = SiteAutomation(
            profile,
            self.browser,
            self.settings,
            backend_factory=self._backend_factory,
        )
        self._automations[profile.key] = automation
        return automation

    async def close(self) -> None:
        for automation in list(self._automations.values()):
            await automation.close()
        self._automations.clear()
        await self.browser.close()
