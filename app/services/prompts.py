"""
AI prompt templates for fridge analysis, recipe generation and step narration.
"""

import json
from typing import Iterable

from app.models.kitchen import DietaryFilter
from app.services.ai_schemas import AnalysisResultSchema

# Number of recipes requested per analysis. The schema does not enforce it.
RECIPE_COUNT = 5

# =============================================================================
# FRIDGE ANALYSIS + RECIPE GENERATION
# =============================================================================

RECIPE_GENERATION_SYSTEM_PROMPT = """You are a world-class culinary assistant.

TASK: Look at photos of a refrigerator's contents, work out what the cook has
on hand, and suggest recipes they can make right now.

GUIDELINES:
- Only list ingredients that are edible and actually visible
- Use plain, common ingredient names ("eggs", not "a carton of free-range eggs")
- Recipes should lean on the identified ingredients; extra pantry items are fine
- Give every recipe clear, numbered-in-order steps, one action per step
- Quantities are human-readable strings ("2 cups", "1 tbsp", "to taste")

Respond with JSON only. No markdown code blocks, no commentary."""


def build_dietary_clause(dietary_filters: Iterable[DietaryFilter]) -> str:
    """
    Clause restricting every recipe to all selected filters.

    Returns an empty string when no filters are active.
    """
    names = [DietaryFilter(f).value for f in dietary_filters]
    if not names:
        return ""
    return (
        "Please ensure all recipes adhere to the following dietary restrictions: "
        f"{', '.join(names)}. Every recipe must satisfy all of them at once."
    )


def build_recipe_prompt(dietary_filters: Iterable[DietaryFilter] = ()) -> str:
    """Build the user instruction sent alongside the fridge image."""
    schema = json.dumps(AnalysisResultSchema.model_json_schema(by_alias=True), indent=2)

    sections = [
        "Analyze the provided image of a refrigerator's contents.",
        "First, identify all the visible, edible ingredients.",
        f"Second, based on the identified ingredients, generate {RECIPE_COUNT} "
        "creative recipes. For each recipe, provide all the requested details.",
    ]

    dietary_clause = build_dietary_clause(dietary_filters)
    if dietary_clause:
        sections.append(dietary_clause)

    sections.append(
        "Return your entire response as a single, valid JSON object that follows "
        "this JSON schema. Do not include any text, markdown formatting, or "
        "explanations outside of the JSON object.\n\n"
        f"{schema}"
    )
    return "\n\n".join(sections)


# =============================================================================
# STEP NARRATION (text-to-speech)
# =============================================================================


def build_speech_prompt(text: str) -> str:
    return f"Read this aloud clearly: {text}"
