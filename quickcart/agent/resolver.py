"""Keyword-combination matching over AI-suggested candidate actions.

A keyword set is a sequence of combinations; a candidate matches when its
case-folded description contains every keyword of at least one combination.
Resolution is a stable filter: it never reorders and never raises. Tie-breaks
belong to the call sites, which express them as ordered tiers passed to
:func:`first_match`.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from quickcart.exceptions import ActionNotResolvedError

from .actions import CandidateAction

KeywordSets = Sequence[Sequence[str]]

SEARCH_INPUT_KEYWORDS: KeywordSets = (
    ("search", "textbox"),
    ("search", "input"),
    ("search", "product"),
)
REMOVE_KEYWORDS: KeywordSets = (("remove",),)
ADD_KEYWORDS: KeywordSets = (("add",),)
CART_KEYWORDS: KeywordSets = (("cart",),)
# Heuristic: any nonzero digit next to "cart" is read as an item count.
CART_WITH_COUNT_KEYWORDS: KeywordSets = tuple(("cart", str(digit)) for digit in range(1, 10))


def matches(description: str, keyword_sets: KeywordSets) -> bool:
    text = description.casefold()
    return any(
        all(keyword.casefold() in text for keyword in combination)
        for combination in keyword_sets
    )


def resolve_actions(
    candidates: Iterable[CandidateAction],
    keyword_sets: KeywordSets,
) -> List[CandidateAction]:
    """Return the candidates matching any keyword combination, in order."""
    return [action for action in candidates if matches(action.description, keyword_sets)]


def first_match(
    candidates: Sequence[CandidateAction],
    *tiers: KeywordSets,
) -> Optional[CandidateAction]:
    """Return the first match of the first tier that matches anything."""
    for keyword_sets in tiers:
        resolved = resolve_actions(candidates, keyword_sets)
        if resolved:
            return resolved[0]
    return None


def require_match(
    candidates: Sequence[CandidateAction],
    *tiers: KeywordSets,
    purpose: str,
) -> CandidateAction:
    """Like :func:`first_match` but raise when nothing matches."""
    action = first_match(candidates, *tiers)
    if action is None:
        raise ActionNotResolvedError(
            f"No candidate action matched for {purpose}",
            data={
                "purpose": purpose,
                "candidates": [candidate.description for candidate in candidates],
                "keywords": [list(map(list, tier)) for tier in tiers],
            },
        )
    return action
