"""Natural-language driven add-to-cart automation for quick-commerce sites."""

from .automation import ShoppingSession, SiteAutomation
from .config import Settings, WorkflowTimings, get_settings
from .exceptions import (
    ActionNotResolvedError,
    BrowserEnvironmentError,
    ConfigurationError,
    ConnectivityError,
    ElementNotFoundError,
    QuickCartError,
    SchemaValidationError,
    UnknownSiteError,
)
from .sites import SiteProfile, get_profile, list_profiles
from .workflow import CartRequest, CartRunResult, CartState, CartWorkflow

__all__ = [
    "ActionNotResolvedError",
    "BrowserEnvironmentError",
    "CartRequest",
    "CartRunResult",
    "CartState",
    "CartWorkflow",
    "ConfigurationError",
    "ConnectivityError",
    "ElementNotFoundError",
    "QuickCartError",
    "SchemaValidationError",
    "Settings",
    "ShoppingSession",
    "SiteAutomation",
    "SiteProfile",
    "UnknownSiteError",
    "WorkflowTimings",
    "get_profile",
    "get_settings",
    "list_profiles",
]
