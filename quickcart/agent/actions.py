from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True, slots=True)
class CandidateAction:
    """A UI element suggested by the AI backend for an instruction."""

    description: str
    selector: str
    method: Optional[str] = None
    arguments: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CandidateAction":
        """Create a :class:`CandidateAction` from a loosely typed mapping."""

        description = payload.get("description")
        if not isinstance(description, str):
            raise ValueError("Action payload must include a 'description'")
        selector = payload.get("selector") or payload.get("target")
        if not isinstance(selector, str) or not selector.strip():
            raise ValueError("Action payload must include a non-empty 'selector'")

        method = payload.get("method")
        arguments = payload.get("arguments") or ()
        return cls(
            description=description.strip(),
            selector=selector.strip(),
            method=method if isinstance(method, str) else None,
            arguments=tuple(str(arg) for arg in arguments),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "selector": self.selector,
            "method": self.method,
            "arguments": list(self.arguments),
        }


class ExtractedItem(BaseModel):
    """One product listing parsed from search results."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, description="Name of the item")
    price: str = Field(description="Price of the item")
    qty: str = Field(description="Quantity details of the item")


class PageText(BaseModel):
    """Schema used when extraction is called without an instruction."""

    page_text: str


class DefaultExtraction(BaseModel):
    """Schema used when an instruction is given without a schema."""

    extraction: str


ItemList = list[ExtractedItem]


@dataclass
class ObserveOptions:
    """Options for an observation; ``page`` is always filled in by the client."""

    selector: Optional[str] = None
    page: Any = None


@dataclass
class ExtractOptions:
    """Options for an extraction; ``page`` is always filled in by the client."""

    selector: Optional[str] = None
    page: Any = None


@dataclass
class ObserveRequest:
    instruction: Optional[str]
    options: ObserveOptions = field(default_factory=ObserveOptions)


@dataclass
class ExtractRequest:
    instruction: str
    schema: Any
    options: ExtractOptions = field(default_factory=ExtractOptions)
