"""
Domain enums for Fridge Chef.

Recipe data itself is defined as pydantic schemas in app.services.ai_schemas,
since it only ever comes from the recipe generation model.
"""

from app.models.kitchen import DietaryFilter, Difficulty, View

__all__ = [
    "DietaryFilter",
    "Difficulty",
    "View",
]
