"""Error taxonomy for quickcart automation runs."""
from __future__ import annotations

from typing import Any, Dict, Optional


class QuickCartError(RuntimeError):
    """Base class for every error raised by quickcart."""

    def __init__(self, message: str, *, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.data = data or {}


class BrowserEnvironmentError(QuickCartError):
    """Raised when no local browser executable can be located."""


class ConnectivityError(QuickCartError):
    """Raised when the browser's remote-debugging endpoint is unreachable."""


class ConfigurationError(QuickCartError):
    """Raised when required settings (model name, API key) are missing."""


class ElementNotFoundError(QuickCartError):
    """Raised when an expected control never became visible in time."""


class SchemaValidationError(QuickCartError):
    """Raised when AI-extracted data does not satisfy its schema."""

    def __init__(
        self,
        message: str,
        *,
        errors: Optional[list[Dict[str, Any]]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, data=data)
        self.errors = errors or []


class ActionNotResolvedError(QuickCartError):
    """Raised by workflow steps that have no fallback when no candidate matched."""


class UnknownSiteError(QuickCartError, KeyError):
    """Raised when a site key has no registered profile."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


# Conditions that cannot improve on retry; they abort the whole run.
LIFECYCLE_ERRORS = (BrowserEnvironmentError, ConnectivityError, ConfigurationError)
