"""
Claude AI integration for fridge image analysis and recipe generation.

One call per analysis: the fridge photo plus an instruction carrying the
output JSON schema goes in, a validated AnalysisResultSchema comes out.
"""

import base64
import json
import logging
from typing import Iterable, Optional, Protocol

import httpx
from anthropic import AsyncAnthropic

from app.config import settings
from app.models.kitchen import DietaryFilter
from app.services.ai_schemas import AnalysisResultSchema
from app.services.prompts import RECIPE_GENERATION_SYSTEM_PROMPT, build_recipe_prompt


logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "Failed to analyze image and generate recipes"


def _strip_markdown_json(text: str) -> str:
    """Strip markdown code block wrappers from JSON text."""
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()
    return text


class RecipeGenerator(Protocol):
    async def generate_recipes(
        self,
        image_data: bytes,
        mime_type: str,
        dietary_filters: Iterable[DietaryFilter] = (),
    ) -> AnalysisResultSchema:
        ...


class ClaudeService:
    """Recipe generation client backed by the Anthropic Messages API."""

    def __init__(self, client: Optional[AsyncAnthropic] = None):
        if client is None:
            timeout = httpx.Timeout(
                timeout=settings.anthropic_timeout,
                connect=settings.anthropic_connect_timeout,
            )
            # Retries are disabled: one outbound call per analysis
            client = AsyncAnthropic(
                api_key=settings.anthropic_api_key, timeout=timeout, max_retries=0
            )
        self.client = client
        self.model = settings.recipe_model
        self.max_tokens = settings.recipe_max_tokens

    async def generate_recipes(
        self,
        image_data: bytes,
        mime_type: str,
        dietary_filters: Iterable[DietaryFilter] = (),
    ) -> AnalysisResultSchema:
        """
        Identify fridge ingredients in an image and propose recipes.

        Args:
            image_data: Raw image bytes (PNG, JPEG or WEBP)
            mime_type: Image media type, e.g. "image/jpeg"
            dietary_filters: Restrictions every recipe must satisfy

        Returns:
            AnalysisResultSchema with identified ingredients and recipes

        Raises:
            GenerationError: On any transport, parsing or schema failure.
                The underlying cause is logged and chained, never surfaced.
        """
        try:
            encoded_image = base64.standard_b64encode(image_data).decode("utf-8")

            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=RECIPE_GENERATION_SYSTEM_PROMPT,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": mime_type,
                                    "data": encoded_image,
                                },
                            },
                            {
                                "type": "text",
                                "text": build_recipe_prompt(dietary_filters),
                            },
                        ],
                    }
                ],
            )

            response_text = ""
            for block in response.content:
                if hasattr(block, "text"):
                    response_text += block.text

            if not response_text.strip():
                raise ValueError("No text content in AI response")

            parsed = json.loads(_strip_markdown_json(response_text.strip()))
            result = AnalysisResultSchema.model_validate(parsed)

            logger.info(
                "Generated %d recipes from %d identified ingredients",
                len(result.recipes),
                len(result.identified_ingredients),
            )
            return result

        except Exception as e:
            logger.error("Error generating recipes: %s", e, exc_info=True)
            raise GenerationError(GENERATION_FAILED_MESSAGE) from e


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class GenerationError(Exception):
    """Image analysis or recipe generation failed."""

    pass
