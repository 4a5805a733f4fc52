import enum


class DietaryFilter(str, enum.Enum):
    """Dietary constraint applied to the next recipe generation request."""
    VEGETARIAN = "vegetarian"
    KETO = "keto"
    GLUTEN_FREE = "gluten-free"
    VEGAN = "vegan"


class Difficulty(str, enum.Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class View(str, enum.Enum):
    """Screen currently shown to the user."""
    UPLOAD = "upload"
    RECIPES = "recipes"
    COOKING = "cooking"
    SHOPPING = "shopping"
