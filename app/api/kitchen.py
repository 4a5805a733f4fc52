"""API endpoints for the fridge-to-recipe cooking flow."""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from app.api.dependencies import get_kitchen_session
from app.models.kitchen import DietaryFilter, View
from app.services.ai_schemas import IngredientSchema, RecipeSchema
from app.services.file_service import file_service
from app.services.kitchen_session import InvalidTransitionError, KitchenSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/kitchen", tags=["kitchen"])


# =============================================================================
# Response models
# =============================================================================


class RecipeCard(BaseModel):
    index: int
    name: str
    difficulty: str
    prep_time: str
    calories: str
    image_url: str


class CookingState(BaseModel):
    recipe: RecipeSchema
    step: int
    total_steps: int
    instruction: Optional[str]
    is_speaking: bool
    audio_error: Optional[str]
    missing_ingredients: list[IngredientSchema]


class ShoppingListState(BaseModel):
    count: int
    items: list[IngredientSchema]


class KitchenState(BaseModel):
    view: View
    is_loading: bool
    error: Optional[str]
    notice: Optional[str]
    image_preview_url: Optional[str]
    active_filters: list[DietaryFilter]
    identified_ingredients: list[str]
    recipes: list[RecipeCard]
    cooking: Optional[CookingState]
    shopping_list: ShoppingListState


def serialize_session(session: KitchenSession) -> KitchenState:
    """Snapshot a session for the client."""
    cooking = None
    if session.view == View.COOKING and session.selected_recipe is not None:
        cooking = CookingState(
            recipe=session.selected_recipe,
            step=session.current_step,
            total_steps=session.total_steps,
            instruction=session.current_instruction,
            is_speaking=session.is_speaking,
            audio_error=session.audio_error,
            missing_ingredients=session.missing_ingredients,
        )

    return KitchenState(
        view=session.view,
        is_loading=session.is_loading,
        error=session.error,
        notice=session.notice,
        image_preview_url=file_service.get_file_url(session.image_preview),
        active_filters=list(session.active_filters),
        identified_ingredients=session.identified_ingredients,
        recipes=[
            RecipeCard(
                index=index,
                name=recipe.name,
                difficulty=recipe.difficulty.value,
                prep_time=recipe.prep_time,
                calories=recipe.calories,
                image_url=recipe.image_url,
            )
            for index, recipe in enumerate(session.recipes)
        ],
        cooking=cooking,
        shopping_list=ShoppingListState(
            count=len(session.shopping_list),
            items=session.shopping_list.items(),
        ),
    )


def _conflict(e: InvalidTransitionError) -> HTTPException:
    return HTTPException(status_code=409, detail=str(e))


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/state", response_model=KitchenState)
async def get_state(session: KitchenSession = Depends(get_kitchen_session)):
    """Current view and everything it displays."""
    return serialize_session(session)


@router.post("/upload", response_model=KitchenState)
async def upload_fridge_image(
    image: UploadFile = File(...),
    session: KitchenSession = Depends(get_kitchen_session),
):
    """
    Analyze a fridge photo and suggest recipes.

    Generation failures are not HTTP errors: the session stays on the upload
    view and the message is returned in `error`.
    """
    if session.is_loading:
        raise HTTPException(status_code=409, detail="An image is already being analyzed")

    try:
        fridge_image = await file_service.read_fridge_image(image)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    previous_preview = session.image_preview
    preview = file_service.save_preview(fridge_image)

    try:
        await session.submit_image(fridge_image, preview=preview)
    except InvalidTransitionError as e:
        file_service.delete_file(preview)
        raise _conflict(e)

    if previous_preview and previous_preview != session.image_preview:
        file_service.delete_file(previous_preview)

    return serialize_session(session)


@router.post("/filters/{dietary_filter}", response_model=KitchenState)
async def toggle_filter(
    dietary_filter: DietaryFilter,
    session: KitchenSession = Depends(get_kitchen_session),
):
    """Turn a dietary filter on or off for the next upload."""
    session.toggle_filter(dietary_filter)
    return serialize_session(session)


@router.post("/recipes/{index}/cook", response_model=KitchenState)
async def cook_recipe(
    index: int,
    session: KitchenSession = Depends(get_kitchen_session),
):
    """Open a suggested recipe in cooking mode."""
    recipes = session.recipes
    if index < 0 or index >= len(recipes):
        raise HTTPException(status_code=404, detail="Recipe not found")

    try:
        session.select_recipe(recipes[index])
    except InvalidTransitionError as e:
        raise _conflict(e)
    return serialize_session(session)


@router.post("/view/recipes", response_model=KitchenState)
async def show_recipes(session: KitchenSession = Depends(get_kitchen_session)):
    try:
        session.show_recipes()
    except InvalidTransitionError as e:
        raise _conflict(e)
    return serialize_session(session)


@router.post("/view/shopping", response_model=KitchenState)
async def show_shopping_list(session: KitchenSession = Depends(get_kitchen_session)):
    try:
        session.show_shopping_list()
    except InvalidTransitionError as e:
        raise _conflict(e)
    return serialize_session(session)


@router.post("/cooking/next", response_model=KitchenState)
async def next_step(session: KitchenSession = Depends(get_kitchen_session)):
    try:
        session.advance_step()
    except InvalidTransitionError as e:
        raise _conflict(e)
    return serialize_session(session)


@router.post("/cooking/previous", response_model=KitchenState)
async def previous_step(session: KitchenSession = Depends(get_kitchen_session)):
    try:
        session.retreat_step()
    except InvalidTransitionError as e:
        raise _conflict(e)
    return serialize_session(session)


@router.post("/cooking/read-aloud", response_model=KitchenState)
async def read_aloud(session: KitchenSession = Depends(get_kitchen_session)):
    """
    Toggle narration of the current step.

    Audio failures land in `cooking.audio_error`; navigation is unaffected.
    """
    try:
        await session.read_current_step_aloud()
    except InvalidTransitionError as e:
        raise _conflict(e)
    return serialize_session(session)


@router.get("/shopping-list", response_model=ShoppingListState)
async def get_shopping_list(session: KitchenSession = Depends(get_kitchen_session)):
    return serialize_session(session).shopping_list


@router.post("/shopping-list", response_model=KitchenState)
async def add_to_shopping_list(
    items: Optional[list[IngredientSchema]] = Body(None),
    session: KitchenSession = Depends(get_kitchen_session),
):
    """
    Add ingredients to the shopping list.

    Without a body, adds the missing ingredients of the recipe being cooked.
    """
    if items is None and session.selected_recipe is None:
        raise HTTPException(status_code=409, detail="No recipe is being cooked")

    added = session.add_missing_to_shopping_list(items)
    logger.info("Added %d new shopping list entries", added)
    return serialize_session(session)


@router.post("/reset", response_model=KitchenState)
async def reset(session: KitchenSession = Depends(get_kitchen_session)):
    """Start over. The shopping list is kept."""
    preview = session.image_preview
    session.reset()
    file_service.delete_file(preview)
    return serialize_session(session)
