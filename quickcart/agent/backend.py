"""AI observation/extraction backends.

A backend turns a natural-language instruction plus the live page into
either candidate UI actions (``observe``) or raw JSON data shaped by a JSON
schema (``extract``). Schema validation is the caller's job.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol

from openai import AsyncOpenAI

from quickcart.exceptions import SchemaValidationError

from .actions import CandidateAction

logger = logging.getLogger(__name__)

DEFAULT_OBSERVE_INSTRUCTION = "Find elements that can be used for any future actions in the page."
MAX_ELEMENTS = 400
MAX_TEXT_CHARS = 60000

# Collects interactive and labelled elements under ``root`` with absolute XPaths.
SNAPSHOT_SCRIPT = """
(root, maxElements) => {
    const interactive = 'a, button, input, textarea, select, summary, [role], [tabindex], [onclick], [contenteditable="true"]';
    const xpathOf = (el) => {
        const parts = [];
        for (let node = el; node && node.nodeType === 1; node = node.parentNode) {
            let index = 1;
            for (let sib = node.previousElementSibling; sib; sib = sib.previousElementSibling) {
                if (sib.tagName === node.tagName) index++;
            }
            parts.unshift(node.tagName.toLowerCase() + '[' + index + ']');
        }
        return '/' + parts.join('/');
    };
    const visible = (el) => {
        const rect = el.getBoundingClientRect();
        const style = window.getComputedStyle(el);
        return rect.width > 0 && rect.height > 0 && style.visibility !== 'hidden' && style.display !== 'none';
    };
    const nodes = [root, ...root.querySelectorAll(interactive)].filter((el) => el.matches && el.matches(interactive));
    const out = [];
    for (const el of nodes) {
        if (out.length >= maxElements) break;
        if (!visible(el)) continue;
        out.push({
            id: out.length,
            tag: el.tagName.toLowerCase(),
            role: el.getAttribute('role'),
            type: el.getAttribute('type'),
            text: (el.innerText || el.value || '').trim().replace(/\\s+/g, ' ').slice(0, 120),
            ariaLabel: el.getAttribute('aria-label'),
            placeholder: el.getAttribute('placeholder'),
            xpath: xpathOf(el),
        });
    }
    return out;
}
"""

OBSERVE_SYSTEM_PROMPT = """You help a shopping automation find elements on a web page.
You receive an instruction and a numbered list of visible elements.
Return a JSON object: {"elements": [{"elementId": <number>, "description": <string>, "method": <string or null>}]}
Describe each relevant element in plain words including its visible text and purpose
(for example "search textbox for products" or "cart button showing 1 item").
Return an empty list when nothing matches. Never invent element ids."""

EXTRACT_SYSTEM_PROMPT = """You extract structured data from web page text.
You receive an instruction, a JSON schema and the page text.
Return a JSON object {"data": <value>} where <value> conforms to the schema.
Only use information present in the text."""


@dataclass
class BackendConfig:
    """Settings a backend is built with."""

    model_name: str
    api_key: str
    cdp_url: str
    verbose: int = 0
    log_inference_to_file: bool = True
    inference_log_dir: str = "./inference_summary"


class ObservationBackend(Protocol):
    """Protocol describing the behaviour expected from any AI backend."""

    async def init(self) -> None:
        ...

    async def observe(self, instruction: str, *, page: Any, selector: Optional[str] = None) -> List[CandidateAction]:
        ...

    async def extract(
        self,
        instruction: str,
        json_schema: Mapping[str, Any],
        *,
        page: Any,
        selector: Optional[str] = None,
    ) -> Any:
        ...

    async def close(self) -> None:
        ...


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```") and cleaned.endswith("```"):
        cleaned = cleaned.strip("`").strip()
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:].lstrip()
    return cleaned.strip()


def _model_id(model_name: str) -> str:
    # Accept provider-prefixed names such as "openai/gpt-4o".
    provider, sep, name = model_name.partition("/")
    if sep and provider.lower() == "openai":
        return name
    return model_name


class OpenAIObservationBackend:
    """Backend that asks an OpenAI chat model over a DOM snapshot.

    Pages are read through the Playwright ``page`` passed to each call. The
    debugger endpoint in ``config.cdp_url`` is only recorded in logs and
    inference records, never attached to.
    """

    def __init__(self, config: BackendConfig, *, client: Any | None = None) -> None:
        self.config = config
        self._client = client
        self._model = _model_id(config.model_name)

    async def init(self) -> None:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.config.api_key)
        logger.info(f"AI backend ready (model={self._model}, cdp={self.config.cdp_url})")

    async def close(self) -> None:
        client, self._client = self._client, None
        close = getattr(client, "close", None)
        if close is not None:
            await close()

    async def observe(self, instruction: str, *, page: Any, selector: Optional[str] = None) -> List[CandidateAction]:
        root = page.locator(selector).first if selector else page.locator("body")
        elements = await root.evaluate(SNAPSHOT_SCRIPT, MAX_ELEMENTS)
        by_id = {element["id"]: element for element in elements}

        # XPaths stay local; the model only sees ids and visible attributes.
        visible_fields = [
            {k: v for k, v in element.items() if k != "xpath" and v not in (None, "")}
            for element in elements
        ]
        prompt = json.dumps({"instruction": instruction, "elements": visible_fields})
        data = await self._complete(OBSERVE_SYSTEM_PROMPT, prompt)

        actions: List[CandidateAction] = []
        for i, item in enumerate(data.get("elements") or []):
            if not isinstance(item, dict):
                logger.warning(f"Observed element {i} is not a dictionary: {item}")
                continue
            element = by_id.get(item.get("elementId"))
            if element is None:
                logger.warning(f"Observed element {i} references unknown id: {item.get('elementId')}")
                continue
            try:
                actions.append(
                    CandidateAction.from_dict(
                        {
                            "description": item.get("description", ""),
                            "selector": f"xpath={element['xpath']}",
                            "method": item.get("method"),
                        }
                    )
                )
            except ValueError as e:
                logger.warning(f"Invalid observed element {i}: {e}")

        self._log_inference(
            "observe",
            {"instruction": instruction, "selector": selector, "elements": len(elements), "actions": len(actions)},
        )
        return actions

    async def extract(
        self,
        instruction: str,
        json_schema: Mapping[str, Any],
        *,
        page: Any,
        selector: Optional[str] = None,
    ) -> Any:
        root = page.locator(selector).first if selector else page.locator("body")
        text = await root.inner_text()
        if len(text) > MAX_TEXT_CHARS:
            logger.warning(
                f"Page text truncated from {len(text)} to {MAX_TEXT_CHARS} characters for extraction",
                extra={"selector": selector, "text_length": len(text)},
            )
            text = text[:MAX_TEXT_CHARS]

        prompt = json.dumps({"instruction": instruction, "schema": json_schema, "text": text})
        data = await self._complete(EXTRACT_SYSTEM_PROMPT, prompt)

        self._log_inference(
            "extract",
            {"instruction": instruction, "selector": selector, "text_length": len(text)},
        )
        return data.get("data", data)

    async def _complete(self, system_prompt: str, prompt: str) -> Dict[str, Any]:
        if self._client is None:
            raise RuntimeError("AI backend not initialized")
        if self.config.verbose >= 2:
            logger.debug(f"Prompt to {self._model}: {prompt[:500]}")

        response = await self._client.chat.completions.create(
            model=self._model,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
        )
        content = getattr(response.choices[0].message, "content", None)
        if content is None:
            raise RuntimeError("OpenAI chat response did not include content")

        try:
            data = json.loads(_strip_code_fence(content))
        except json.JSONDecodeError as exc:
            logger.warning("Failed to parse model response as JSON", exc_info=exc, extra={"raw_response": content})
            raise SchemaValidationError("Model response was not valid JSON", data={"raw_response": content}) from exc
        if not isinstance(data, dict):
            raise SchemaValidationError("Model response was not a JSON object", data={"raw_response": content})
        return data

    def _log_inference(self, kind: str, record: Dict[str, Any]) -> None:
        if self.config.verbose >= 1:
            logger.info(f"{kind}: {record}")
        if not self.config.log_inference_to_file:
            return
        directory = Path(self.config.inference_log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "model": self._model,
            "cdp_url": self.config.cdp_url,
            **record,
        }
        with (directory / f"{kind}_summary.jsonl").open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry) + "\n")
