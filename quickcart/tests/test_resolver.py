from __future__ import annotations

import pytest

from quickcart.agent.actions import CandidateAction
from quickcart.agent.resolver import (
    CART_KEYWORDS,
    CART_WITH_COUNT_KEYWORDS,
    SEARCH_INPUT_KEYWORDS,
    first_match,
    require_match,
    resolve_actions,
)
from quickcart.exceptions import ActionNotResolvedError


def _actions(*descriptions: str) -> list[CandidateAction]:
    return [CandidateAction(description=d, selector=f"#a{i}") for i, d in enumerate(descriptions)]


def test_search_textbox_example() -> None:
    actions = _actions("search textbox for products", "cart icon")

    resolved = resolve_actions(actions, [["search", "textbox"], ["search", "input"], ["search", "product"]])

    assert resolved == [actions[0]]


def test_resolution_is_case_insensitive() -> None:
    actions = _actions("SEARCH Input field", "Search button")

    assert resolve_actions(actions, SEARCH_INPUT_KEYWORDS) == [actions[0]]
    assert resolve_actions(actions, [["Search", "BUTTON"]]) == [actions[1]]


def test_every_keyword_of_a_combination_is_required() -> None:
    actions = _actions("search bar", "product grid", "search products here")

    resolved = resolve_actions(actions, [["search", "product"]])

    assert resolved == [actions[2]]


def test_preserves_original_order_across_combinations() -> None:
    actions = _actions("search product list", "remove item", "search input box", "cart")

    resolved = resolve_actions(actions, [["search", "input"], ["search", "product"]])

    assert [a.selector for a in resolved] == ["#a0", "#a2"]


@pytest.mark.parametrize("keywords", [[], [["missing"]], [["search", "nowhere"]]])
def test_no_match_returns_empty_list(keywords) -> None:
    actions = _actions("search textbox", "cart icon")

    assert resolve_actions(actions, keywords) == []


def test_empty_candidates() -> None:
    assert resolve_actions([], SEARCH_INPUT_KEYWORDS) == []
    assert first_match([], CART_KEYWORDS) is None


def test_first_match_prefers_earlier_tier() -> None:
    actions = _actions("Cart link in header", "View Cart button with 1 item")

    chosen = first_match(actions, CART_WITH_COUNT_KEYWORDS, CART_KEYWORDS)

    assert chosen is actions[1]


def test_first_match_falls_back_to_later_tier() -> None:
    actions = _actions("Login button", "Cart link in header")

    assert first_match(actions, CART_WITH_COUNT_KEYWORDS, CART_KEYWORDS) is actions[1]


def test_require_match_raises_with_candidates() -> None:
    actions = _actions("Login button")

    with pytest.raises(ActionNotResolvedError) as excinfo:
        require_match(actions, SEARCH_INPUT_KEYWORDS, purpose="search input")

    assert excinfo.value.data["candidates"] == ["Login button"]
    assert excinfo.value.data["purpose"] == "search input"


def test_candidate_from_dict_validation() -> None:
    with pytest.raises(ValueError):
        CandidateAction.from_dict({"description": "no selector"})

    action = CandidateAction.from_dict({"description": " Add button ", "selector": " xpath=/html/body/button "})
    assert action.description == "Add button"
    assert action.selector == "xpath=/html/body/button"
    assert action.to_dict()["arguments"] == []
