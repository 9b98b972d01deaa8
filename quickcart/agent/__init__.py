"""AI observation, extraction and action resolution for quickcart."""

from .actions import (
    CandidateAction,
    DefaultExtraction,
    ExtractOptions,
    ExtractedItem,
    ItemList,
    ObserveOptions,
    PageText,
)
from .backend import BackendConfig, ObservationBackend, OpenAIObservationBackend
from .client import AIActionClient, normalize_extract, normalize_observe
from .resolver import first_match, require_match, resolve_actions

__all__ = [
    "AIActionClient",
    "BackendConfig",
    "CandidateAction",
    "DefaultExtraction",
    "ExtractOptions",
    "ExtractedItem",
    "ItemList",
    "ObservationBackend",
    "ObserveOptions",
    "OpenAIObservationBackend",
    "PageText",
    "first_match",
    "normalize_extract",
    "normalize_observe",
    "require_match",
    "resolve_actions",
]
