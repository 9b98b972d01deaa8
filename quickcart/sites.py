"""Pre-configured profiles for supported quick-commerce sites."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from quickcart.exceptions import UnknownSiteError
from quickcart.workflow.steps import BlinkitCartSteps, CartSteps, ListingCartSteps


@dataclass(frozen=True)
class SiteProfile:
    """Immutable per-site entry points and extraction scope.

    ``steps`` overrides the generic cart steps for sites whose markup the
    generic flow cannot handle; ``None`` means the generic steps.
    """

    key: str
    name: str
    home_url: str
    search_url: Optional[str] = None
    results_selector: Optional[str] = None
    cart_selector: Optional[str] = None
    item_count: int = 15
    steps: Optional[CartSteps] = None


SITE_PROFILES: Dict[str, SiteProfile] = {}


def register_profile(profile: SiteProfile) -> SiteProfile:
    SITE_PROFILES[profile.key] = profile
    return profile


def get_profile(key: str) -> SiteProfile:
    try:
        return SITE_PROFILES[key.lower()]
    except KeyError:
        raise UnknownSiteError(
            f"Unknown site {key!r}; expected one of: {', '.join(sorted(SITE_PROFILES))}",
            data={"site": key},
        ) from None


def list_profiles() -> List[SiteProfile]:
    return list(SITE_PROFILES.values())


BLINKIT = register_profile(
    SiteProfile(
        key="blinkit",
        name="Blinkit",
        home_url="https://blinkit.com",
        search_url="https://blinkit.com/s/",
        results_selector="xpath=/html/body/div[1]/div/div/div[3]/div/div/div[2]/div[1]/div/div[1]",
        item_count=20,
        steps=BlinkitCartSteps(),
    )
)

ZEPTO = register_profile(
    SiteProfile(
        key="zepto",
        name="Zepto",
        home_url="https://zepto.com",
        results_selector=(
            "xpath=/html/body/div[2]/div[1]/div[2]/div/div/div[2]/div/div/div/div/div/div/div/div"
        ),
        cart_selector="xpath=/html/body/div[2]/div/div/div/div/div/header/div/div[4]",
        steps=ListingCartSteps(),
    )
)

INSTAMART = register_profile(
    SiteProfile(
        key="instamart",
        name="Instamart",
        home_url="https://www.swiggy.com/instamart",
    )
)

MINUTES = register_profile(
    SiteProfile(
        key="minutes",
        name="Flipkart Minutes",
        home_url="https://www.flipkart.com/flipkart-minutes-store?marketplace=HYPERLOCAL",
    )
)

AMAZON = register_profile(
    SiteProfile(
        key="amazon",
        name="Amazon",
        home_url="https://www.amazon.in/",
    )
)

BIGBASKET = register_profile(
    SiteProfile(
        key="bigbasket",
        name="BigBasket",
        home_url="https://www.bigbasket.com",
    )
)
