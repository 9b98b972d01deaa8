"""One AI backend per site page, with normalized observe/extract calls."""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from quickcart.browser.pages import PageCache
from quickcart.browser.session import BrowserSessionManager
from quickcart.config import Settings
from quickcart.exceptions import SchemaValidationError

from .actions import (
    CandidateAction,
    DefaultExtraction,
    ExtractOptions,
    ExtractRequest,
    ObserveOptions,
    ObserveRequest,
    PageText,
)
from .backend import (
    DEFAULT_OBSERVE_INSTRUCTION,
    BackendConfig,
    ObservationBackend,
    OpenAIObservationBackend,
)

logger = logging.getLogger(__name__)

DEFAULT_EXTRACT_INSTRUCTION = "Extract the text content of the page"

BackendFactory = Callable[[BackendConfig], ObservationBackend]


def normalize_observe(
    instruction: Union[str, ObserveOptions, None] = None,
    options: Optional[ObserveOptions] = None,
    *,
    page: Any,
) -> ObserveRequest:
    """Fold the accepted ``observe`` call shapes into one request.

    Accepted shapes are ``()``, ``(options)`` and ``(instruction, options?)``.
    The caller's options object is copied, never mutated.
    """
    if isinstance(instruction, ObserveOptions):
        if options is not None:
            raise TypeError("observe() takes options either positionally first or second, not both")
        options, instruction = instruction, None
    base = options or ObserveOptions()
    return ObserveRequest(instruction=instruction, options=dataclasses.replace(base, page=page))


def normalize_extract(
    instruction: Union[str, ExtractOptions, None] = None,
    schema: Any = None,
    options: Optional[ExtractOptions] = None,
    *,
    page: Any,
) -> ExtractRequest:
    """Fold the accepted ``extract`` call shapes into one request.

    Accepted shapes are ``()``, ``(options)``, ``(instruction, options?)`` and
    ``(instruction, schema, options?)``. Without an instruction the page text
    schema is used; with an instruction but no schema the generic
    ``{extraction}`` schema is used.
    """
    if isinstance(instruction, ExtractOptions):
        if schema is not None or options is not None:
            raise TypeError("extract() with options first takes no other arguments")
        options, instruction = instruction, None
    if isinstance(schema, ExtractOptions):
        if options is not None:
            raise TypeError("extract() received options twice")
        options, schema = schema, None

    if schema is None:
        schema = PageText if instruction is None else DefaultExtraction
    base = options or ExtractOptions()
    return ExtractRequest(
        instruction=instruction or DEFAULT_EXTRACT_INSTRUCTION,
        schema=schema,
        options=dataclasses.replace(base, page=page),
    )


class AIActionClient:
    """Lazily binds an AI backend to a site's page and normalizes its calls."""

    def __init__(
        self,
        pages: PageCache,
        session: BrowserSessionManager,
        settings: Settings,
        *,
        backend_factory: BackendFactory = OpenAIObservationBackend,
    ) -> None:
        self._pages = pages
        self._session = session
        self._settings = settings
        self._backend_factory = backend_factory
        self._backend: Optional[ObservationBackend] = None

    @property
    def is_ready(self) -> bool:
        return self._backend is not None

    async def get_client(self) -> ObservationBackend:
        if self._backend is not None:
            return self._backend

        model_name, api_key = self._settings.require_model_credentials()
        await self._pages.get_page()
        cdp_url = await self._session.get_debug_endpoint()
        backend = self._backend_factory(
            BackendConfig(
                model_name=model_name,
                api_key=api_key,
                cdp_url=cdp_url,
                verbose=self._settings.verbose,
                log_inference_to_file=self._settings.log_inference_to_file,
                inference_log_dir=self._settings.inference_log_dir,
            )
        )
        await backend.init()
        self._backend = backend
        return backend

    async def observe(
        self,
        instruction: Union[str, ObserveOptions, None] = None,
        options: Optional[ObserveOptions] = None,
    ) -> List[CandidateAction]:
        backend = await self.get_client()
        page = await self._pages.get_page()
        request = normalize_observe(instruction, options, page=page)

        if self._settings.screenshot_path:
            await page.screenshot(path=self._settings.screenshot_path)

        actions = await backend.observe(
            request.instruction or DEFAULT_OBSERVE_INSTRUCTION,
            page=request.options.page,
            selector=request.options.selector,
        )
        logger.info(f"Observed {len(actions)} candidate action(s) for: {request.instruction or '<page>'}")
        return list(actions)

    async def extract(
        self,
        instruction: Union[str, ExtractOptions, None] = None,
        schema: Any = None,
        options: Optional[ExtractOptions] = None,
    ) -> Any:
        backend = await self.get_client()
        page = await self._pages.get_page()
        request = normalize_extract(instruction, schema, options, page=page)

        adapter = TypeAdapter(request.schema)
        raw = await backend.extract(
            request.instruction,
            adapter.json_schema(),
            page=request.options.page,
            selector=request.options.selector,
        )
        try:
            return adapter.validate_python(raw)
        except ValidationError as exc:
            logger.warning(f"Extraction failed schema validation: {exc.error_count()} error(s)")
            raise SchemaValidationError(
                f"Extracted data does not match schema: {exc.error_count()} error(s)",
                errors=exc.errors(include_url=False),
                data={"instruction": request.instruction},
            ) from exc

    async def close(self) -> None:
        backend, self._backend = self._backend, None
        if backend is None:
            return
        try:
            await backend.close()
        except Exception as e:
            logger.error(f"Error closing AI backend: {e}")
