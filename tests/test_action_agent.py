"""
Tests for the default AI action capability.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from stepwright.agents.action_agent import (
    VisionActionAgent,
    create_action_agent,
    parse_model_json,
)
from stepwright.config.model_config import (
    ENV_MODEL_API_KEY,
    ENV_MODEL_BASE_URL,
    ENV_MODEL_FAMILY,
    ENV_MODEL_NAME,
    ENV_USE_VL_MODEL,
)
from stepwright.error_handling import CapabilityError


def _reply(content) -> MagicMock:
    """Chat completion response double."""
    if not isinstance(content, str):
        content = json.dumps(content)
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@pytest.fixture
def page() -> MagicMock:
    """Page double with mouse, keyboard and screenshot support."""
    page = MagicMock()
    page.screenshot = AsyncMock(return_value=b"\x89PNG fake")
    page.evaluate = AsyncMock(
        return_value=[
            {"tag": "input", "type": "email", "text": "Email", "x": 100, "y": 50, "width": 200, "height": 30},
            {"tag": "button", "type": "", "text": "Sign in", "x": 100, "y": 120, "width": 80, "height": 40},
        ]
    )
    page.mouse.click = AsyncMock()
    page.keyboard.press = AsyncMock()
    page.keyboard.type = AsyncMock()
    return page


@pytest.fixture
def client() -> MagicMock:
    """OpenAI client double."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


def _agent(page, client, use_vl_model=False) -> VisionActionAgent:
    return VisionActionAgent(
        page=page,
        api_key="sk-test",
        base_url="https://api.example.com/v1",
        model_name="qwen-vl-max" if use_vl_model else "gpt-4o",
        use_vl_model=use_vl_model,
        client=client,
        temperature=0.0,
        request_timeout=5.0,
        poll_interval_ms=10,
    )


class TestParseModelJson:
    """Tests for model reply parsing."""

    def test_plain_json(self):
        """Plain JSON objects parse."""
        assert parse_model_json('{"pass": true}') == {"pass": True}

    def test_code_fence_removed(self):
        """Surrounding json code fences are removed."""
        content = '```json\n{"id": 3, "thought": "match"}\n```'
        assert parse_model_json(content) == {"id": 3, "thought": "match"}

    def test_invalid_json(self):
        """Unparsable replies raise CapabilityError."""
        with pytest.raises(CapabilityError, match="Failed to parse model response"):
            parse_model_json("I think it is the blue button")

    def test_non_object(self):
        """Replies that are not objects are rejected."""
        with pytest.raises(CapabilityError, match="not a JSON object"):
            parse_model_json("[1, 2, 3, 4]")

    def test_empty(self):
        """Empty replies are rejected."""
        with pytest.raises(CapabilityError, match="empty response"):
            parse_model_json(None)


class TestCreateActionAgent:
    """Tests for building the agent from a model environment."""

    def test_reads_environment(self, page):
        """Credentials and mode come from the injected environment."""
        environment = {
            ENV_MODEL_API_KEY: "sk-injected",
            ENV_MODEL_BASE_URL: "https://llm.example.com/v1",
            ENV_MODEL_NAME: "gpt-4o",
            ENV_MODEL_FAMILY: "openai",
            ENV_USE_VL_MODEL: "0",
        }

        with patch("stepwright.agents.action_agent.AsyncOpenAI") as mock_openai:
            agent = create_action_agent(page, environment)

        mock_openai.assert_called_once_with(
            api_key="sk-injected", base_url="https://llm.example.com/v1"
        )
        assert agent.model_name == "gpt-4o"
        assert agent.model_family == "openai"
        assert agent.use_vl_model is False
        assert agent.page is page

    def test_vl_flag(self, page):
        """The VL flag selects bounding box mode."""
        environment = {
            ENV_MODEL_API_KEY: "k",
            ENV_MODEL_BASE_URL: "https://u",
            ENV_MODEL_NAME: "qwen-vl-max",
            ENV_USE_VL_MODEL: "1",
        }

        with patch("stepwright.agents.action_agent.AsyncOpenAI"):
            agent = create_action_agent(page, environment)

        assert agent.use_vl_model is True
        assert agent.model_family is None


class TestTap:
    """Tests for locating and clicking targets."""

    @pytest.mark.asyncio
    async def test_vl_tap_clicks_bbox_centre(self, page, client):
        """VL models answer with a bounding box whose centre is clicked."""
        client.chat.completions.create.return_value = _reply(
            {"bbox": [100, 200, 300, 400], "thought": "Blue button"}
        )

        await _agent(page, client, use_vl_model=True).tap("Sign in button")

        page.mouse.click.assert_awaited_once_with(200.0, 300.0)
        page.evaluate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_generic_tap_clicks_element_centre(self, page, client):
        """Generic models pick an element id from the snapshot."""
        client.chat.completions.create.return_value = _reply({"id": 1, "thought": "Sign in"})

        await _agent(page, client).tap("Sign in button")

        page.mouse.click.assert_awaited_once_with(140.0, 140.0)
        prompt = client.chat.completions.create.await_args.kwargs["messages"][1]["content"][0]["text"]
        assert "[1] <button> Sign in" in prompt
        assert "[0] <input type=email> Email" in prompt

    @pytest.mark.asyncio
    async def test_request_shape(self, page, client):
        """Requests carry the model, temperature and a screenshot."""
        client.chat.completions.create.return_value = _reply({"id": 0})

        await _agent(page, client).tap("Email")

        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.0
        assert kwargs["timeout"] == 5.0
        image = kwargs["messages"][1]["content"][1]["image_url"]["url"]
        assert image.startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_element_not_found(self, page, client):
        """A null id means the element was not found."""
        client.chat.completions.create.return_value = _reply(
            {"id": None, "thought": "No checkout button visible"}
        )

        with pytest.raises(CapabilityError, match="Element not found: Checkout"):
            await _agent(page, client).tap("Checkout")

        page.mouse.click.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_out_of_range_id(self, page, client):
        """An id outside the snapshot is treated as not found."""
        client.chat.completions.create.return_value = _reply({"id": 7})

        with pytest.raises(CapabilityError, match="Element not found"):
            await _agent(page, client).tap("Checkout")

    @pytest.mark.asyncio
    async def test_no_interactive_elements(self, page, client):
        """An empty snapshot fails without a model call."""
        page.evaluate.return_value = []

        with pytest.raises(CapabilityError, match="No interactive elements"):
            await _agent(page, client).tap("Checkout")

        client.chat.completions.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_bbox(self, page, client):
        """A malformed bounding box is an error."""
        client.chat.completions.create.return_value = _reply({"bbox": [1, 2]})

        with pytest.raises(CapabilityError, match="Invalid bounding box"):
            await _agent(page, client, use_vl_model=True).tap("Logo")

    @pytest.mark.asyncio
    async def test_empty_target(self, page, client):
        """An empty target cannot be located."""
        with pytest.raises(CapabilityError, match="No target description"):
            await _agent(page, client).tap("")


class TestInput:
    """Tests for typing text."""

    @pytest.mark.asyncio
    async def test_input_into_target(self, page, client):
        """Input clicks the target, selects all and types."""
        client.chat.completions.create.return_value = _reply({"id": 0})

        await _agent(page, client).input("user@example.com", "Email field")

        page.mouse.click.assert_awaited_once_with(200.0, 65.0)
        page.keyboard.press.assert_awaited_once_with("ControlOrMeta+A")
        page.keyboard.type.assert_awaited_once_with("user@example.com")

    @pytest.mark.asyncio
    async def test_input_without_target(self, page, client):
        """Without a target the focused element receives the text."""
        await _agent(page, client).input("hello", "")

        client.chat.completions.create.assert_not_awaited()
        page.mouse.click.assert_not_awaited()
        page.keyboard.type.assert_awaited_once_with("hello")


class TestAssertCondition:
    """Tests for visual assertions."""

    @pytest.mark.asyncio
    async def test_passes(self, page, client):
        """A passing verdict returns quietly."""
        client.chat.completions.create.return_value = _reply(
            {"pass": True, "thought": "Banner visible"}
        )

        await _agent(page, client).assert_condition("Welcome banner is shown")

        user_text = client.chat.completions.create.await_args.kwargs["messages"][1]["content"][0]["text"]
        assert "Welcome banner is shown" in user_text

    @pytest.mark.asyncio
    async def test_fails_with_thought(self, page, client):
        """A failing verdict raises with the model's reasoning."""
        client.chat.completions.create.return_value = _reply(
            '```json\n{"pass": false, "thought": "The cart still shows 2 items"}\n```'
        )

        with pytest.raises(CapabilityError, match="The cart still shows 2 items"):
            await _agent(page, client).assert_condition("Cart is empty")

    @pytest.mark.asyncio
    async def test_fails_without_thought(self, page, client):
        """A failing verdict without reasoning names the assertion."""
        client.chat.completions.create.return_value = _reply({"pass": "false"})

        with pytest.raises(CapabilityError, match="Assertion failed: Cart is empty"):
            await _agent(page, client).assert_condition("Cart is empty")

    @pytest.mark.asyncio
    async def test_unparsable_reply(self, page, client):
        """An unparsable verdict is an error."""
        client.chat.completions.create.return_value = _reply("Looks good to me")

        with pytest.raises(CapabilityError, match="Failed to parse"):
            await _agent(page, client).assert_condition("Cart is empty")


class TestWaitFor:
    """Tests for polling until a condition holds."""

    @pytest.mark.asyncio
    async def test_returns_when_visible(self, page, client):
        """Polling stops at the first passing check."""
        client.chat.completions.create.side_effect = [
            _reply({"pass": False, "thought": "Still loading"}),
            _reply("not json"),
            _reply({"pass": True, "thought": "Dashboard visible"}),
        ]

        await _agent(page, client).wait_for("Dashboard", timeout_ms=5000)

        assert client.chat.completions.create.await_count == 3

    @pytest.mark.asyncio
    async def test_times_out(self, page, client):
        """A condition that never holds times out with the last reasoning."""
        client.chat.completions.create.return_value = _reply(
            {"pass": False, "thought": "Spinner still visible"}
        )

        with pytest.raises(CapabilityError, match="Timed out after 30ms waiting for: Dashboard") as exc_info:
            await _agent(page, client).wait_for("Dashboard", timeout_ms=30)

        assert "Spinner still visible" in exc_info.value.message
        assert exc_info.value.action == "waitFor"

    @pytest.mark.asyncio
    async def test_zero_timeout_checks_once(self, page, client):
        """A zero timeout still performs one check."""
        client.chat.completions.create.return_value = _reply({"pass": False})

        with pytest.raises(CapabilityError, match="Timed out"):
            await _agent(page, client).wait_for("Dashboard", timeout_ms=0)

        assert client.chat.completions.create.await_count == 1
