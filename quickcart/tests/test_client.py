from __future__ import annotations

import pytest

from quickcart.agent.actions import (
    DefaultExtraction,
    ExtractedItem,
    ExtractOptions,
    ItemList,
    ObserveOptions,
    PageText,
)
from quickcart.agent.client import (
    DEFAULT_EXTRACT_INSTRUCTION,
    AIActionClient,
    normalize_extract,
    normalize_observe,
)
from quickcart.browser.pages import PageCache
from quickcart.exceptions import ConfigurationError, SchemaValidationError
from quickcart.tests.fakes import FakeSessionManager, StubBackend, candidate, fast_settings

PAGE = object()


def _client(settings=None, session=None):
    session = session or FakeSessionManager()
    pages = PageCache(session, "https://zepto.com")
    built: list[StubBackend] = []

    def factory(config):
        backend = StubBackend(config)
        built.append(backend)
        return backend

    client = AIActionClient(pages, session, settings or fast_settings(), backend_factory=factory)
    return client, pages, session, built


def test_normalize_observe_call_shapes() -> None:
    bare = normalize_observe(page=PAGE)
    assert bare.instruction is None and bare.options.page is PAGE

    options = ObserveOptions(selector="#results")
    only_options = normalize_observe(options, page=PAGE)
    assert only_options.instruction is None
    assert only_options.options.selector == "#results"
    assert only_options.options.page is PAGE
    assert options.page is None  # caller's object untouched

    with_instruction = normalize_observe("find the search bar", page=PAGE)
    assert with_instruction.instruction == "find the search bar"
    assert with_instruction.options.page is PAGE

    both = normalize_observe("find add", ObserveOptions(selector="#grid"), page=PAGE)
    assert both.options.selector == "#grid" and both.options.page is PAGE


def test_normalize_extract_call_shapes() -> None:
    bare = normalize_extract(page=PAGE)
    assert bare.instruction == DEFAULT_EXTRACT_INSTRUCTION
    assert bare.schema is PageText
    assert bare.options.page is PAGE

    only_options = normalize_extract(ExtractOptions(selector="#main"), page=PAGE)
    assert only_options.schema is PageText
    assert only_options.options.selector == "#main"

    instruction_options = normalize_extract("get the title", ExtractOptions(selector="h1"), page=PAGE)
    assert instruction_options.instruction == "get the title"
    assert instruction_options.schema is DefaultExtraction
    assert instruction_options.options.selector == "h1"

    full = normalize_extract("items", ItemList, ExtractOptions(selector="#grid"), page=PAGE)
    assert full.schema is ItemList
    assert full.options.selector == "#grid" and full.options.page is PAGE


def test_normalize_rejects_duplicate_options() -> None:
    with pytest.raises(TypeError):
        normalize_observe(ObserveOptions(), ObserveOptions(), page=PAGE)
    with pytest.raises(TypeError):
        normalize_extract("x", ExtractOptions(), ExtractOptions(), page=PAGE)


@pytest.mark.asyncio
async def test_get_client_is_memoized() -> None:
    client, pages, session, built = _client()

    first = await client.get_client()
    second = await client.get_client()

    assert first is second
    assert len(built) == 1
    assert first.init_calls == 1
    assert session.endpoint_calls == 1
    assert first.config.cdp_url == session.endpoint
    assert first.config.model_name == "openai/gpt-4o-mini"
    # the page exists before the backend is bound
    assert pages.has_page
    assert len(session.context.pages) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["model_name", "model_api_key"])
async def test_get_client_requires_credentials(missing: str) -> None:
    client, pages, session, built = _client(settings=fast_settings(**{missing: None}))

    with pytest.raises(ConfigurationError):
        await client.get_client()

    assert built == []
    assert not client.is_ready


@pytest.mark.asyncio
async def test_observe_injects_current_page() -> None:
    client, pages, _, _ = _client()
    backend = await client.get_client()
    backend.observations["search"] = [candidate("search textbox")]

    actions = await client.observe("find the search bar", ObserveOptions(selector="header"))

    assert [a.description for a in actions] == ["search textbox"]
    call = backend.observe_calls[-1]
    assert call["page"] is pages.page
    assert call["selector"] == "header"


@pytest.mark.asyncio
async def test_observe_without_arguments_uses_generic_instruction() -> None:
    client, _, _, _ = _client()
    backend = await client.get_client()

    assert await client.observe() == []
    assert "future actions" in backend.observe_calls[-1]["instruction"]


@pytest.mark.asyncio
async def test_observe_takes_screenshot_when_configured() -> None:
    client, pages, _, _ = _client(settings=fast_settings(screenshot_path="shot.png"))

    await client.observe("anything")

    assert ("screenshot", "shot.png") in pages.page.actions


@pytest.mark.asyncio
async def test_extract_without_arguments_returns_page_text() -> None:
    client, pages, _, _ = _client()
    backend = await client.get_client()
    backend.extraction = {"page_text": "Milk 500 ml"}

    result = await client.extract()

    assert isinstance(result, PageText)
    assert result.page_text == "Milk 500 ml"
    call = backend.extract_calls[-1]
    assert call["instruction"] == DEFAULT_EXTRACT_INSTRUCTION
    assert call["page"] is pages.page
    assert "page_text" in call["schema"]["properties"]


@pytest.mark.asyncio
async def test_extract_with_custom_schema_validates_items() -> None:
    client, _, _, _ = _client()
    backend = await client.get_client()
    backend.extraction = [
        {"name": "Amul Taaza Milk", "price": "₹28", "qty": "500 ml"},
        {"name": "  Nandini Milk ", "price": "₹26", "qty": "500 ml"},
    ]

    items = await client.extract("Extract items", ItemList, ExtractOptions(selector="#grid"))

    assert items == [
        ExtractedItem(name="Amul Taaza Milk", price="₹28", qty="500 ml"),
        ExtractedItem(name="Nandini Milk", price="₹26", qty="500 ml"),
    ]
    assert backend.extract_calls[-1]["selector"] == "#grid"


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_name", ["", "   "])
async def test_extract_rejects_empty_item_name(bad_name: str) -> None:
    client, _, _, _ = _client()
    backend = await client.get_client()
    backend.extraction = [
        {"name": "Amul Taaza Milk", "price": "₹28", "qty": "500 ml"},
        {"name": bad_name, "price": "₹30", "qty": "1 l"},
    ]

    with pytest.raises(SchemaValidationError) as excinfo:
        await client.extract("Extract items", ItemList)

    assert excinfo.value.errors
    assert excinfo.value.errors[0]["loc"][0] == 1


@pytest.mark.asyncio
async def test_extract_rejects_wrong_shape() -> None:
    client, _, _, _ = _client()
    backend = await client.get_client()
    backend.extraction = {"unexpected": True}

    with pytest.raises(SchemaValidationError):
        await client.extract("Summarize")


@pytest.mark.asyncio
async def test_close_releases_backend() -> None:
    client, _, _, built = _client()
    await client.get_client()

    await client.close()

    assert built[0].closed is True
    assert not client.is_ready
