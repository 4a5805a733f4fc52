"""Shopping list bookkeeping and missing-ingredient detection."""

from typing import Iterable

from app.services.ai_schemas import IngredientSchema, RecipeSchema


def find_missing_ingredients(
    recipe: RecipeSchema, identified_ingredients: Iterable[str]
) -> list[IngredientSchema]:
    """
    Recipe ingredients the fridge photo did not show.

    An ingredient counts as available when its name equals an identified
    ingredient (case-insensitive), or when some identified ingredient name
    is a substring of it ("milk" covers "whole milk"). Recipe order is kept.
    """
    identified = [name.lower() for name in identified_ingredients]
    identified_set = set(identified)

    missing = []
    for ingredient in recipe.ingredients:
        name = ingredient.name.lower()
        if name in identified_set:
            continue
        if any(known in name for known in identified):
            continue
        missing.append(ingredient)
    return missing


class ShoppingList:
    """
    Ingredients to buy, keyed by lower-cased name.

    The first quantity seen for a name wins; later duplicates are dropped,
    not merged.
    """

    def __init__(self):
        self._items: dict[str, IngredientSchema] = {}

    def add(self, item: IngredientSchema) -> bool:
        """Add an item. Returns False if its name is already listed."""
        key = item.name.lower()
        if key in self._items:
            return False
        self._items[key] = item
        return True

    def add_all(self, items: Iterable[IngredientSchema]) -> int:
        """Add items in order. Returns how many were new."""
        return sum(1 for item in items if self.add(item))

    def items(self) -> list[IngredientSchema]:
        return list(self._items.values())

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._items

    def __len__(self) -> int:
        return len(self._items)
