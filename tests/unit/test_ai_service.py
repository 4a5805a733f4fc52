"""
Unit tests for ClaudeService - real code paths with a mocked Anthropic client.

The async Anthropic client is replaced by a mock so the request shape,
response parsing and error collapsing run without network access.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import anthropic
import pytest

from app.models.kitchen import DietaryFilter, Difficulty
from app.services.ai_schemas import AnalysisResultSchema
from app.services.ai_service import (
    GENERATION_FAILED_MESSAGE,
    ClaudeService,
    GenerationError,
    _strip_markdown_json,
)
from tests.fixtures.mocks import sample_analysis_data


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_anthropic_client():
    """Create a mock AsyncAnthropic client."""
    client = MagicMock()
    client.messages.create = AsyncMock()
    return client


@pytest.fixture
def claude_service(mock_anthropic_client):
    """ClaudeService wired to the mocked client."""
    return ClaudeService(client=mock_anthropic_client)


def create_mock_response(text: str):
    """Helper to create mock API response."""
    mock_response = MagicMock()
    mock_content = MagicMock()
    mock_content.text = text
    mock_response.content = [mock_content]
    return mock_response


def sent_prompt(mock_client) -> str:
    """Text block of the last request."""
    content = mock_client.messages.create.call_args.kwargs["messages"][0]["content"]
    return content[1]["text"]


IMAGE_BYTES = b"\x89PNG\r\n\x1a\nfake"


# =============================================================================
# Successful generation
# =============================================================================


class TestGenerateRecipes:
    """Tests for generate_recipes."""

    @pytest.mark.asyncio
    async def test_parses_analysis(self, claude_service):
        claude_service.client.messages.create.return_value = create_mock_response(
            json.dumps(sample_analysis_data())
        )

        result = await claude_service.generate_recipes(IMAGE_BYTES, "image/png", [])

        assert isinstance(result, AnalysisResultSchema)
        assert result.identified_ingredients == ["egg", "milk", "cheese"]
        assert len(result.recipes) == 5
        omelette = result.recipes[0]
        assert omelette.name == "Cheese Omelette"
        assert omelette.difficulty == Difficulty.EASY
        assert omelette.prep_time == "10 mins"
        assert omelette.ingredients[2].name == "Butter"
        assert omelette.instructions[0] == "Whisk the eggs."

    @pytest.mark.asyncio
    async def test_sends_image_and_instruction(self, claude_service):
        claude_service.client.messages.create.return_value = create_mock_response(
            json.dumps(sample_analysis_data())
        )

        await claude_service.generate_recipes(IMAGE_BYTES, "image/png", [])

        claude_service.client.messages.create.assert_called_once()
        kwargs = claude_service.client.messages.create.call_args.kwargs
        image_block, text_block = kwargs["messages"][0]["content"]
        assert image_block["type"] == "image"
        assert image_block["source"]["media_type"] == "image/png"
        assert image_block["source"]["data"] == "iVBORw0KGgpmYWtl"
        assert text_block["type"] == "text"
        assert "generate 5 creative recipes" in text_block["text"]
        assert "identifiedIngredients" in text_block["text"]
        assert kwargs["model"] == claude_service.model
        assert kwargs["system"]

    @pytest.mark.asyncio
    async def test_dietary_filters_in_instruction(self, claude_service):
        claude_service.client.messages.create.return_value = create_mock_response(
            json.dumps(sample_analysis_data())
        )

        await claude_service.generate_recipes(
            IMAGE_BYTES, "image/jpeg", [DietaryFilter.VEGAN, DietaryFilter.KETO]
        )

        prompt = sent_prompt(claude_service.client)
        assert "dietary restrictions: vegan, keto." in prompt

    @pytest.mark.asyncio
    async def test_no_dietary_clause_without_filters(self, claude_service):
        claude_service.client.messages.create.return_value = create_mock_response(
            json.dumps(sample_analysis_data())
        )

        await claude_service.generate_recipes(IMAGE_BYTES, "image/jpeg", [])

        assert "dietary restrictions" not in sent_prompt(claude_service.client)

    @pytest.mark.asyncio
    async def test_markdown_wrapped_json(self, claude_service):
        wrapped = "```json\n" + json.dumps(sample_analysis_data()) + "\n```"
        claude_service.client.messages.create.return_value = create_mock_response(
            wrapped
        )

        result = await claude_service.generate_recipes(IMAGE_BYTES, "image/jpeg")

        assert len(result.recipes) == 5

    @pytest.mark.asyncio
    async def test_recipe_count_not_enforced(self, claude_service):
        """Fewer than five recipes is accepted as returned."""
        claude_service.client.messages.create.return_value = create_mock_response(
            json.dumps(sample_analysis_data(recipe_count=2))
        )

        result = await claude_service.generate_recipes(IMAGE_BYTES, "image/jpeg")

        assert len(result.recipes) == 2


# =============================================================================
# Failures collapse to GenerationError
# =============================================================================


class TestGenerateRecipesErrors:
    """Every failure surfaces as the same GenerationError."""

    async def _assert_generation_error(self, claude_service):
        with pytest.raises(GenerationError) as exc_info:
            await claude_service.generate_recipes(IMAGE_BYTES, "image/jpeg")
        assert str(exc_info.value) == GENERATION_FAILED_MESSAGE
        return exc_info.value

    @pytest.mark.asyncio
    async def test_invalid_json(self, claude_service):
        claude_service.client.messages.create.return_value = create_mock_response(
            "Here are some recipes: pancakes!"
        )

        error = await self._assert_generation_error(claude_service)
        assert isinstance(error.__cause__, json.JSONDecodeError)

    @pytest.mark.asyncio
    async def test_missing_required_field(self, claude_service):
        data = sample_analysis_data()
        del data["recipes"][0]["instructions"]
        claude_service.client.messages.create.return_value = create_mock_response(
            json.dumps(data)
        )

        await self._assert_generation_error(claude_service)

    @pytest.mark.asyncio
    async def test_ingredient_missing_quantity(self, claude_service):
        data = sample_analysis_data()
        del data["recipes"][1]["ingredients"][0]["quantity"]
        claude_service.client.messages.create.return_value = create_mock_response(
            json.dumps(data)
        )

        await self._assert_generation_error(claude_service)

    @pytest.mark.asyncio
    async def test_unknown_difficulty(self, claude_service):
        data = sample_analysis_data()
        data["recipes"][0]["difficulty"] = "Impossible"
        claude_service.client.messages.create.return_value = create_mock_response(
            json.dumps(data)
        )

        await self._assert_generation_error(claude_service)

    @pytest.mark.asyncio
    async def test_empty_response(self, claude_service):
        claude_service.client.messages.create.return_value = create_mock_response("")

        await self._assert_generation_error(claude_service)

    @pytest.mark.asyncio
    async def test_connection_error(self, claude_service):
        claude_service.client.messages.create.side_effect = (
            anthropic.APIConnectionError(request=MagicMock())
        )

        error = await self._assert_generation_error(claude_service)
        assert isinstance(error.__cause__, anthropic.APIConnectionError)

    @pytest.mark.asyncio
    async def test_rate_limit_error(self, claude_service):
        mock_response = MagicMock()
        mock_response.status_code = 429
        claude_service.client.messages.create.side_effect = anthropic.RateLimitError(
            message="Rate limited", response=mock_response, body={}
        )

        await self._assert_generation_error(claude_service)

    @pytest.mark.asyncio
    async def test_server_error(self, claude_service):
        mock_response = MagicMock()
        mock_response.status_code = 500
        claude_service.client.messages.create.side_effect = anthropic.APIStatusError(
            message="Server error", response=mock_response, body={}
        )

        await self._assert_generation_error(claude_service)

    @pytest.mark.asyncio
    async def test_single_call_no_retry(self, claude_service):
        claude_service.client.messages.create.side_effect = (
            anthropic.APIConnectionError(request=MagicMock())
        )

        with pytest.raises(GenerationError):
            await claude_service.generate_recipes(IMAGE_BYTES, "image/jpeg")

        assert claude_service.client.messages.create.call_count == 1


class TestStripMarkdownJson:
    def test_plain_json_unchanged(self):
        assert _strip_markdown_json('{"a": 1}') == '{"a": 1}'

    def test_json_fence(self):
        assert _strip_markdown_json('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert _strip_markdown_json('```\n{"a": 1}\n```') == '{"a": 1}'
