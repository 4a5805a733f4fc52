"""
Pydantic models for validating structured JSON responses from the recipe model.

The JSON schema of AnalysisResultSchema is sent along with the generation
instruction, and the reply is validated against the same model.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.kitchen import Difficulty


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class IngredientSchema(_CamelModel):
    name: str = Field(description="The name of the ingredient, e.g., 'Milk'.")
    quantity: str = Field(description="The quantity, e.g., '1 cup'.")


class RecipeSchema(_CamelModel):
    name: str = Field(description="The name of the recipe.")
    difficulty: Difficulty = Field(
        description="Difficulty rating: 'Easy', 'Medium', or 'Hard'."
    )
    prep_time: str = Field(
        description="Estimated prep and cook time, e.g., '45 mins'."
    )
    calories: str = Field(
        description="Estimated calories per serving, e.g., '550 kcal'."
    )
    ingredients: list[IngredientSchema] = Field(
        description="All ingredients required for the recipe."
    )
    instructions: list[str] = Field(description="Step-by-step cooking instructions.")

    @property
    def image_url(self) -> str:
        """Placeholder card image, seeded by recipe name."""
        seed = "".join(self.name.split())
        return f"https://picsum.photos/seed/{seed}/400/250"


class AnalysisResultSchema(_CamelModel):
    identified_ingredients: list[str] = Field(
        description="A list of all edible ingredients identified in the image."
    )
    recipes: list[RecipeSchema] = Field(
        description="A list of recipe objects based on the identified ingredients."
    )
