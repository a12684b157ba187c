"""
Default AI action capability.

Drives a live Playwright page from natural-language targets using an
OpenAI-compatible chat completions endpoint. Two ways of locating a target:

- Visually grounded models receive a screenshot and answer with a pixel
  bounding box.
- Other models receive a screenshot plus a numbered list of the visible
  interactive elements and answer with an element id.

In both cases the action lands on the centre of the located region.
"""

import asyncio
import base64
import json
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from openai import AsyncOpenAI
from playwright.async_api import Page

from stepwright.config.agent_prompts import (
    ASSERT_SYSTEM_PROMPT,
    ASSERT_USER_PROMPT,
    ELEMENT_LIST_PROMPT,
    LOCATE_ELEMENT_SYSTEM_PROMPT,
    LOCATE_USER_PROMPT,
    LOCATE_VL_SYSTEM_PROMPT,
    WAIT_FOR_USER_PROMPT,
)
from stepwright.config.model_config import (
    ENV_MODEL_API_KEY,
    ENV_MODEL_BASE_URL,
    ENV_MODEL_FAMILY,
    ENV_MODEL_NAME,
    ENV_USE_VL_MODEL,
)
from stepwright.config.settings import get_settings
from stepwright.core.interfaces import ActionCapability
from stepwright.error_handling import CapabilityError
from stepwright.monitoring.logger import get_logger

logger = get_logger(__name__)

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

# Collects visible interactive elements in document order. Ids are positions
# in the returned list.
ELEMENT_SNAPSHOT_SCRIPT = """
() => {
    const selector = [
        'a[href]', 'button', 'input', 'select', 'textarea', 'summary',
        '[role=button]', '[role=link]', '[role=checkbox]', '[role=radio]',
        '[role=tab]', '[role=menuitem]', '[role=option]', '[role=switch]',
        '[contenteditable=true]', '[onclick]', '[tabindex]:not([tabindex="-1"])'
    ].join(',');
    const width = window.innerWidth;
    const height = window.innerHeight;
    const elements = [];
    for (const el of document.querySelectorAll(selector)) {
        const rect = el.getBoundingClientRect();
        if (rect.width <= 0 || rect.height <= 0) continue;
        if (rect.bottom < 0 || rect.right < 0 || rect.top > height || rect.left > width) continue;
        const style = window.getComputedStyle(el);
        if (style.visibility === 'hidden' || style.display === 'none') continue;
        const label = (
            el.getAttribute('aria-label') ||
            el.innerText ||
            el.value ||
            el.getAttribute('placeholder') ||
            el.getAttribute('title') ||
            el.getAttribute('name') ||
            ''
        ).trim().replace(/\\s+/g, ' ').slice(0, 80);
        elements.push({
            tag: el.tagName.toLowerCase(),
            type: el.getAttribute('type') || '',
            text: label,
            x: rect.left,
            y: rect.top,
            width: rect.width,
            height: rect.height
        });
    }
    return elements;
}
"""


def parse_model_json(content: Optional[str]) -> Dict[str, Any]:
    """
    Parse a model reply into a JSON object.

    Surrounding ```json code fences are removed first.

    Raises:
        CapabilityError: If the reply is empty, not JSON, or not an object
    """
    if not content or not content.strip():
        raise CapabilityError("Model returned an empty response")

    cleaned = _CODE_FENCE_RE.sub("", content.strip()).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise CapabilityError(
            f"Failed to parse model response as JSON: {content[:200]}", cause=e
        ) from e

    if not isinstance(parsed, dict):
        raise CapabilityError(f"Model response is not a JSON object: {content[:200]}")
    return parsed


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "pass", "passed")
    return bool(value)


class VisionActionAgent(ActionCapability):
    """AI action capability bound to one page and one model configuration."""

    def __init__(
        self,
        page: Page,
        api_key: str,
        base_url: str,
        model_name: str,
        model_family: Optional[str] = None,
        use_vl_model: bool = False,
        client: Optional[AsyncOpenAI] = None,
        temperature: Optional[float] = None,
        request_timeout: Optional[float] = None,
        poll_interval_ms: Optional[int] = None,
    ) -> None:
        """
        Initialize the agent.

        Args:
            page: Live page the actions are performed on
            api_key: Model endpoint credential
            base_url: OpenAI-compatible endpoint URL
            model_name: Model identifier sent with each request
            model_family: Model family, informational for generic models
            use_vl_model: Locate targets by bounding box instead of element id
            client: Pre-built client, mainly for tests
            temperature: Sampling temperature
            request_timeout: Per-request timeout in seconds
            poll_interval_ms: Delay between checks while waiting
        """
        settings = get_settings()
        self.page = page
        self.model_name = model_name
        self.model_family = model_family
        self.use_vl_model = use_vl_model
        self.temperature = (
            temperature if temperature is not None else settings.llm_temperature
        )
        self.request_timeout = request_timeout or settings.llm_request_timeout_seconds
        self.poll_interval_ms = poll_interval_ms or settings.action_poll_interval_ms
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def tap(self, target: str) -> None:
        x, y = await self._locate(target)
        logger.info("Tapping target", extra={"target": target, "x": x, "y": y})
        await self.page.mouse.click(x, y)

    async def input(self, value: str, target: Optional[str] = None) -> None:
        """Type ``value`` into ``target``, or into the focused element when no target is given."""
        if target:
            x, y = await self._locate(target)
            await self.page.mouse.click(x, y)
        await self.page.keyboard.press("ControlOrMeta+A")
        await self.page.keyboard.type(value)
        logger.info("Entered text", extra={"target": target, "length": len(value)})

    async def wait_for(self, target: str, timeout_ms: int) -> None:
        """Poll until ``target`` is visible or ``timeout_ms`` elapses."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000
        last_thought = ""

        while True:
            try:
                passed, last_thought = await self._verify(
                    WAIT_FOR_USER_PROMPT.format(target=target)
                )
            except CapabilityError as e:
                passed, last_thought = False, e.message

            if passed:
                return

            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self.poll_interval_ms / 1000, remaining))

        message = f"Timed out after {timeout_ms}ms waiting for: {target}"
        if last_thought:
            message = f"{message} ({last_thought})"
        raise CapabilityError(message, action="waitFor", target=target)

    async def assert_condition(self, description: str) -> None:
        passed, thought = await self._verify(
            ASSERT_USER_PROMPT.format(description=description)
        )
        if not passed:
            raise CapabilityError(
                thought or f"Assertion failed: {description}",
                action="assert",
                target=description,
            )

    async def _verify(self, user_prompt: str) -> Tuple[bool, str]:
        screenshot = await self._screenshot()
        reply = await self._complete(ASSERT_SYSTEM_PROMPT, user_prompt, screenshot)
        return _as_bool(reply.get("pass", False)), str(reply.get("thought") or "")

    async def _locate(self, target: str) -> Tuple[float, float]:
        if not target:
            raise CapabilityError("No target description given", action="locate")

        screenshot = await self._screenshot()
        if self.use_vl_model:
            return await self._locate_by_bbox(target, screenshot)
        return await self._locate_by_element(target, screenshot)

    async def _locate_by_bbox(self, target: str, screenshot: str) -> Tuple[float, float]:
        reply = await self._complete(
            LOCATE_VL_SYSTEM_PROMPT,
            LOCATE_USER_PROMPT.format(target=target),
            screenshot,
        )
        bbox = reply.get("bbox")
        if bbox is None:
            raise CapabilityError(
                f"Element not found: {target}. {reply.get('thought') or ''}".strip(),
                action="locate",
                target=target,
            )

        try:
            x1, y1, x2, y2 = (float(v) for v in bbox)
        except (TypeError, ValueError) as e:
            raise CapabilityError(
                f"Invalid bounding box from model: {bbox!r}",
                action="locate",
                target=target,
                cause=e,
            ) from e
        return (x1 + x2) / 2, (y1 + y2) / 2

    async def _locate_by_element(self, target: str, screenshot: str) -> Tuple[float, float]:
        elements: List[Dict[str, Any]] = await self.page.evaluate(ELEMENT_SNAPSHOT_SCRIPT)
        if not elements:
            raise CapabilityError(
                f"Element not found: {target}. No interactive elements on the page",
                action="locate",
                target=target,
            )

        listing = "\n".join(
            f"[{index}] <{el.get('tag', '')}"
            f"{' type=' + el['type'] if el.get('type') else ''}> {el.get('text', '')}"
            for index, el in enumerate(elements)
        )
        reply = await self._complete(
            LOCATE_ELEMENT_SYSTEM_PROMPT,
            ELEMENT_LIST_PROMPT.format(elements=listing, target=target),
            screenshot,
        )

        element_id = reply.get("id")
        try:
            element = elements[int(element_id)]
        except (TypeError, ValueError, IndexError):
            raise CapabilityError(
                f"Element not found: {target}. {reply.get('thought') or ''}".strip(),
                action="locate",
                target=target,
            )
        return (
            element["x"] + element["width"] / 2,
            element["y"] + element["height"] / 2,
        )

    async def _screenshot(self) -> str:
        screenshot_bytes = await self.page.screenshot(type="png", full_page=False)
        return base64.b64encode(screenshot_bytes).decode("utf-8")

    async def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        screenshot: str,
    ) -> Dict[str, Any]:
        messages = [
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": user_prompt},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:image/png;base64,{screenshot}"},
                    },
                ],
            },
        ]

        logger.debug(
            f"Model call: model={self.model_name}, vl={self.use_vl_model}"
        )
        response = await self.client.chat.completions.create(
            model=self.model_name,
            messages=messages,
            temperature=self.temperature,
            timeout=self.request_timeout,
        )
        return parse_model_json(response.choices[0].message.content)


def create_action_agent(page: Page, environment: Mapping[str, str]) -> VisionActionAgent:
    """Build the default capability from an injected model environment."""
    return VisionActionAgent(
        page=page,
        api_key=environment.get(ENV_MODEL_API_KEY, ""),
        base_url=environment.get(ENV_MODEL_BASE_URL, ""),
        model_name=environment.get(ENV_MODEL_NAME, ""),
        model_family=environment.get(ENV_MODEL_FAMILY),
        use_vl_model=environment.get(ENV_USE_VL_MODEL) == "1",
    )
