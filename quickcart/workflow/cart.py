"""End-to-end add-to-cart workflow for one site."""
from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError

from quickcart.agent.actions import ExtractedItem
from quickcart.exceptions import LIFECYCLE_ERRORS, QuickCartError

from .steps import DEFAULT_STEPS, CartSteps

if TYPE_CHECKING:
    from quickcart.automation import SiteAutomation

logger = logging.getLogger(__name__)


class CartState(str, enum.Enum):
    IDLE = "idle"
    SEARCH_OPENED = "search_opened"
    CART_CLEARED = "cart_cleared"
    QUERY_TYPED = "query_typed"
    RESULTS_EXTRACTED = "results_extracted"
    ITEM_SELECTED = "item_selected"
    ADDED_TO_CART = "added_to_cart"
    VERIFIED = "verified"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass
class CartRequest:
    """What to search for and how to pick from the results."""

    query: str
    item_name: Optional[str] = None  # None picks a random listing
    count: Optional[int] = None  # None uses the profile's item count
    empty_cart: bool = False


@dataclass
class CartRunResult:
    """Outcome of a :class:`CartWorkflow` run."""

    site: str
    query: str
    state: CartState = CartState.IDLE
    history: List[CartState] = field(default_factory=lambda: [CartState.IDLE])
    items: List[ExtractedItem] = field(default_factory=list)
    selected: Optional[ExtractedItem] = None
    removed_count: int = 0
    verified: bool = False
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and CartState.ADDED_TO_CART in self.history

    def transition(self, state: CartState) -> None:
        logger.debug(f"{self.site}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "site": self.site,
            "query": self.query,
            "state": self.state.value,
            "history": [state.value for state in self.history],
            "items": [item.model_dump() for item in self.items],
            "selected": self.selected.model_dump() if self.selected else None,
            "removed_count": self.removed_count,
            "verified": self.verified,
            "error": self.error,
            "success": self.success,
        }


class CartWorkflow:
    """Runs the cart steps for one site in strict sequence.

    UI failures end the run with ``state == FAILED`` and ``error`` set.
    Lifecycle failures (no browser, unreachable debugging endpoint, missing
    credentials) propagate to the caller untouched.
    """

    def __init__(self, automation: "SiteAutomation", *, rng: Optional[random.Random] = None) -> None:
        self.automation = automation
        self.steps: CartSteps = automation.profile.steps or DEFAULT_STEPS
        self._rng = rng

    async def run(self, request: CartRequest, *, close: bool = False) -> CartRunResult:
        profile = self.automation.profile
        result = CartRunResult(site=profile.key, query=request.query)
        count = request.count or profile.item_count
        steps = self.steps

        try:
            await steps.open_search(self.automation)
            result.transition(CartState.SEARCH_OPENED)
            await self.automation.checkpoint("search opened")

            if request.empty_cart:
                result.removed_count = await steps.empty_cart(self.automation)
                result.transition(CartState.CART_CLEARED)
                logger.info(f"Removed {result.removed_count} item(s) from the {profile.name} cart")

            search_input = await steps.find_search_input(self.automation)
            await self.automation.checkpoint("search input resolved")
            await steps.type_query(self.automation, search_input, request.query)
            result.transition(CartState.QUERY_TYPED)

            result.items = await steps.extract_items(self.automation, count)
            result.transition(CartState.RESULTS_EXTRACTED)
            logger.info(f"Extracted {len(result.items)} item(s) for {request.query!r}")

            result.selected = steps.select_item(result.items, request.item_name, self._rng)
            result.transition(CartState.ITEM_SELECTED)
            logger.info(f"Selecting item: {result.selected.name} ({result.selected.price})")
            await self.automation.checkpoint("item selected")

            await steps.add_to_cart(self.automation, result.selected)
            result.transition(CartState.ADDED_TO_CART)

            if await steps.verify_cart(self.automation) is not None:
                result.verified = True
                result.transition(CartState.VERIFIED)
            await self.automation.checkpoint("cart verified")
        except LIFECYCLE_ERRORS:
            raise
        except (QuickCartError, PlaywrightError) as exc:
            logger.error(f"{profile.name} cart workflow failed in state {result.state.value}: {exc}")
            result.error = str(exc)
            result.transition(CartState.FAILED)
        finally:
            if close:
                await self.automation.close()

        if close:
            result.transition(CartState.CLOSED)
        return result
