"""Composable cart steps used by :class:`quickcart.workflow.cart.CartWorkflow`.

``CartSteps`` is the generic, observation-driven sequence. Sites whose markup
needs something else supply a subclass instance on their profile and only
override the steps that differ.
"""
from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from quickcart.agent.actions import CandidateAction, ExtractedItem, ExtractOptions, ItemList, ObserveOptions
from quickcart.agent.resolver import (
    ADD_KEYWORDS,
    CART_KEYWORDS,
    CART_WITH_COUNT_KEYWORDS,
    REMOVE_KEYWORDS,
    SEARCH_INPUT_KEYWORDS,
    first_match,
    require_match,
)
from quickcart.exceptions import LIFECYCLE_ERRORS, ActionNotResolvedError, ElementNotFoundError, QuickCartError

if TYPE_CHECKING:
    from quickcart.automation import SiteAutomation

logger = logging.getLogger(__name__)

# Some sites wrap the search trigger in a link; the real input appears after a click.
EDITABLE_SEARCH_INPUT = 'input[placeholder*="Search"], input[type="text"]'

SEARCH_BAR_INSTRUCTION = "find the search bar"
REMOVE_INSTRUCTION = "find the 'remove' button to delete items from the cart"
OPEN_CART_INSTRUCTION = "find the cart button in the page header"
VERIFY_CART_INSTRUCTION = (
    "Find the cart button/banner. It should be focusable, contain text 'Cart' "
    "and a number indicating an item is added."
)


def extract_instruction(count: int) -> str:
    return (
        "Extract each item name price and quantity from the search results. "
        f"Get first {count} items only."
    )


class CartSteps:
    """Generic cart steps: observe, resolve by keywords, act."""

    async def open_search(self, automation: "SiteAutomation") -> Page:
        page = await automation.get_page()
        search_url = automation.profile.search_url
        if search_url:
            logger.info(f"Opening search page {search_url}")
            await page.goto(search_url)
        return page

    async def open_cart(self, automation: "SiteAutomation") -> bool:
        """Open the cart panel; ``False`` when no cart control could be used."""
        page = await automation.get_page()
        timings = automation.settings.timings
        selector = automation.profile.cart_selector
        if not selector:
            actions = await automation.observe(OPEN_CART_INSTRUCTION)
            action = first_match(actions, CART_KEYWORDS)
            if action is None:
                logger.warning(
                    "Cart button not found, skipping cart clearing",
                    extra={"candidates": [a.description for a in actions]},
                )
                return False
            selector = action.selector

        try:
            await page.locator(selector).first.click(timeout=timings.input_visible_timeout_ms)
        except PlaywrightTimeoutError:
            logger.warning(f"Cart button did not accept click, skipping cart clearing: {selector}")
            return False
        await page.wait_for_timeout(timings.cart_open_settle_ms)
        return True

    async def empty_cart(self, automation: "SiteAutomation") -> int:
        """Remove items until no visible remove control is left.

        Each iteration re-observes because a removal changes the DOM. The loop
        is bounded by ``max_remove_iterations``. Returns the number removed,
        0 when the cart could not be opened.
        """
        page = await automation.get_page()
        timings = automation.settings.timings
        if not await self.open_cart(automation):
            return 0

        removed = 0
        for _ in range(timings.max_remove_iterations):
            actions = await automation.observe(REMOVE_INSTRUCTION)
            action = first_match(actions, REMOVE_KEYWORDS)
            if action is None:
                logger.info("No remove buttons found. Cart is likely empty.")
                break

            locator = page.locator(action.selector).first
            if not await locator.is_visible():
                logger.info(f"Remove control not visible, stopping: {action.description}")
                break

            logger.info(f"Removing item: {action.description}")
            try:
                await locator.click(timeout=timings.input_visible_timeout_ms)
            except PlaywrightTimeoutError:
                logger.warning(f"Remove control did not accept click, stopping: {action.description}")
                break
            removed += 1
            await page.wait_for_timeout(timings.remove_settle_ms)
        return removed

    async def find_search_input(self, automation: "SiteAutomation") -> Locator:
        page = await automation.get_page()
        timings = automation.settings.timings

        actions = await automation.observe(SEARCH_BAR_INSTRUCTION)
        action = require_match(actions, SEARCH_INPUT_KEYWORDS, purpose="search input")
        logger.info(f"Search input action: {action.description}")
        await page.locator(action.selector).first.click()

        input_locator = page.locator(EDITABLE_SEARCH_INPUT).first
        try:
            await input_locator.wait_for(state="visible", timeout=timings.input_visible_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise ElementNotFoundError(
                f"Search input not visible after {timings.input_visible_timeout_ms}ms",
                data={"selector": EDITABLE_SEARCH_INPUT, "trigger": action.selector},
            ) from exc
        return input_locator

    async def type_query(self, automation: "SiteAutomation", search_input: Locator, query: str) -> None:
        page = await automation.get_page()
        timings = automation.settings.timings
        await search_input.press_sequentially(query, delay=timings.type_delay_ms)
        await page.wait_for_timeout(timings.after_type_ms)
        await search_input.press("Enter")
        await page.wait_for_timeout(timings.results_settle_ms)

    async def extract_items(self, automation: "SiteAutomation", count: int) -> list[ExtractedItem]:
        items = await automation.extract(
            extract_instruction(count),
            ItemList,
            ExtractOptions(selector=automation.profile.results_selector),
        )
        return list(items)[:count]

    def select_item(
        self,
        items: Sequence[ExtractedItem],
        item_name: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ) -> ExtractedItem:
        if not items:
            raise ActionNotResolvedError("No items were extracted from the search results")
        if item_name:
            wanted = item_name.casefold()
            for item in items:
                if wanted in item.name.casefold():
                    return item
            raise ActionNotResolvedError(
                f"No extracted item matches {item_name!r}",
                data={"items": [item.name for item in items]},
            )
        return items[(rng or random).randrange(len(items))]

    async def click_add(self, automation: "SiteAutomation", item: ExtractedItem) -> None:
        page = await automation.get_page()
        actions = await automation.observe(
            f"find the 'add' to cart button for the product '{item.name}'",
            ObserveOptions(selector=automation.profile.results_selector),
        )
        # Prefer a control whose description also names the item.
        action = require_match(
            actions,
            (("add", item.name),),
            ADD_KEYWORDS,
            purpose=f"add button for {item.name}",
        )
        await page.locator(action.selector).first.click()

    async def add_to_cart(self, automation: "SiteAutomation", item: ExtractedItem) -> None:
        page = await automation.get_page()
        timings = automation.settings.timings
        logger.info(f"Adding item to cart: {item.name}")
        await self.click_add(automation, item)
        await page.wait_for_timeout(timings.add_settle_ms)
        # Dismisses the quantity stepper overlay some sites open after adding.
        await page.keyboard.press("Enter")
        await page.wait_for_timeout(timings.confirm_settle_ms)

    async def verify_cart(self, automation: "SiteAutomation") -> Optional[CandidateAction]:
        """Click the cart indicator; ``None`` when it cannot be found or used.

        The item is already added at this point, so UI failures are logged
        and never raised.
        """
        page = await automation.get_page()
        timings = automation.settings.timings
        logger.info("Verifying item added and finding Cart button...")
        try:
            actions = await automation.observe(VERIFY_CART_INSTRUCTION)
            action = first_match(actions, CART_WITH_COUNT_KEYWORDS, CART_KEYWORDS)
            if action is None:
                logger.error("Cart button not found!", extra={"candidates": [a.description for a in actions]})
                return None

            logger.info(f"Clicking Cart/Banner: {action.description}")
            await page.locator(action.selector).first.click(timeout=timings.input_visible_timeout_ms)
            await page.wait_for_timeout(timings.verify_settle_ms)
        except LIFECYCLE_ERRORS:
            raise
        except (QuickCartError, PlaywrightError) as exc:
            logger.error(f"Cart verification failed: {exc}")
            return None
        return action


class ListingCartSteps(CartSteps):
    """Adds through the listing card that contains the item's name."""

    async def click_add(self, automation: "SiteAutomation", item: ExtractedItem) -> None:
        page = await automation.get_page()
        await (
            page.locator("div")
            .filter(has_text=item.name)
            .get_by_role("button", name="add")
            .first.click()
        )


class BlinkitCartSteps(ListingCartSteps):
    """Blinkit searches as you type into an input found among all controls."""

    async def find_search_input(self, automation: "SiteAutomation") -> Locator:
        page = await automation.get_page()
        actions = await automation.observe("Get me all the inputs, buttons and links")
        action = require_match(
            actions,
            (("search", "input"), ("search", "textbox")),
            purpose="search input",
        )
        return page.locator(action.selector).first

    async def type_query(self, automation: "SiteAutomation", search_input: Locator, query: str) -> None:
        page = await automation.get_page()
        timings = automation.settings.timings
        await search_input.press_sequentially(query, delay=timings.blinkit_type_delay_ms)
        await page.wait_for_timeout(timings.results_settle_ms)


DEFAULT_STEPS = CartSteps()
