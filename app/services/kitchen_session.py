"""
Per-user kitchen session: the upload → recipes → cooking → shopping flow.

A session owns the live analysis result, the active dietary filters, the
cooking position, narration state and the shopping list, and orchestrates
the recipe generation and speech synthesis clients.

Navigation:
    upload   --submit_image-->        recipes
    recipes  --select_recipe-->       cooking
    cooking  --show_recipes-->        recipes
    recipes  <--show_*-->             shopping
    any      --reset-->               upload
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from app.models.kitchen import DietaryFilter, View
from app.services.ai_schemas import (
    AnalysisResultSchema,
    IngredientSchema,
    RecipeSchema,
)
from app.services.ai_service import GenerationError, RecipeGenerator
from app.services.audio_service import (
    AudioPlayer,
    DecodeError,
    FormatError,
    PlayableAudioBuffer,
    build_playable_buffer,
    decode_audio_payload,
)
from app.services.shopping_list import ShoppingList, find_missing_ingredients
from app.services.speech_service import SpeechSynthesizer, SynthesisError

logger = logging.getLogger(__name__)

AUDIO_ERROR_MESSAGE = "Couldn't play audio. Please try again."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


class InvalidTransitionError(Exception):
    """Requested action is not allowed from the current view."""

    pass


@dataclass(frozen=True)
class FridgeImage:
    """An uploaded photo, read fully into memory."""

    data: bytes
    mime_type: str
    filename: str = ""


class KitchenSession:
    """State machine driving one user's cooking assistant session."""

    def __init__(
        self,
        recipe_service: RecipeGenerator,
        speech_service: SpeechSynthesizer,
        player: AudioPlayer,
        sample_rate: int = 24000,
        channel_count: int = 1,
    ):
        self.recipe_service = recipe_service
        self.speech_service = speech_service
        self.player = player
        self.sample_rate = sample_rate
        self.channel_count = channel_count

        self.view = View.UPLOAD
        self.is_loading = False
        self.error: Optional[str] = None
        self.image_preview: Optional[str] = None
        self.analysis: Optional[AnalysisResultSchema] = None
        self._upload_generation = 0

        # Insertion-ordered; sent with the next upload only
        self.active_filters: list[DietaryFilter] = []

        self.selected_recipe: Optional[RecipeSchema] = None
        self.current_step = 0

        self.is_speaking = False
        self.audio_error: Optional[str] = None
        self._speech_generation = 0
        self._playback_task: Optional[asyncio.Task] = None

        # Survives reset() for the lifetime of the session
        self.shopping_list = ShoppingList()
        self.notice: Optional[str] = None

    # =========================================================================
    # DERIVED STATE
    # =========================================================================

    @property
    def identified_ingredients(self) -> list[str]:
        return list(self.analysis.identified_ingredients) if self.analysis else []

    @property
    def recipes(self) -> list[RecipeSchema]:
        return list(self.analysis.recipes) if self.analysis else []

    @property
    def total_steps(self) -> int:
        return len(self.selected_recipe.instructions) if self.selected_recipe else 0

    @property
    def current_instruction(self) -> Optional[str]:
        if not self.selected_recipe or not self.selected_recipe.instructions:
            return None
        return self.selected_recipe.instructions[self.current_step]

    @property
    def missing_ingredients(self) -> list[IngredientSchema]:
        if not self.selected_recipe:
            return []
        return find_missing_ingredients(
            self.selected_recipe, self.identified_ingredients
        )

    # =========================================================================
    # UPLOAD + FILTERS
    # =========================================================================

    async def submit_image(
        self, image: FridgeImage, preview: Optional[str] = None
    ) -> bool:
        """
        Analyze a fridge photo with the active dietary filters.

        On success the new analysis replaces any previous one and the view
        moves to recipes. On failure the error is recorded and the view
        stays on upload so the user can retry. The loading flag is cleared
        either way.

        Returns:
            True if recipes were generated

        Raises:
            InvalidTransitionError: Not on the upload view, or an analysis
                is already in flight
        """
        if self.is_loading:
            raise InvalidTransitionError("An image is already being analyzed")
        if self.view != View.UPLOAD:
            raise InvalidTransitionError(
                f"Cannot upload an image from the {self.view.value} view"
            )

        self._upload_generation += 1
        generation = self._upload_generation
        self.is_loading = True
        self.error = None
        self.image_preview = preview

        try:
            if not image.data:
                raise ValueError("The selected file is empty.")

            result = await self.recipe_service.generate_recipes(
                image.data, image.mime_type, list(self.active_filters)
            )
            if generation != self._upload_generation:
                logger.info("Dropping analysis result for a reset session")
                return False
            self.analysis = result
            self.view = View.RECIPES
            return True

        except (GenerationError, ValueError) as e:
            if generation != self._upload_generation:
                return False
            self.error = str(e) or UNKNOWN_ERROR_MESSAGE
            self.view = View.UPLOAD
            return False
        finally:
            if generation == self._upload_generation:
                self.is_loading = False

    def toggle_filter(self, dietary_filter: DietaryFilter) -> bool:
        """Flip a filter on or off. Returns True if it is now active."""
        dietary_filter = DietaryFilter(dietary_filter)
        if dietary_filter in self.active_filters:
            self.active_filters.remove(dietary_filter)
            return False
        self.active_filters.append(dietary_filter)
        return True

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    def select_recipe(self, recipe: RecipeSchema) -> None:
        """Open a recipe in cooking mode at its first step."""
        if self.view != View.RECIPES:
            raise InvalidTransitionError(
                f"Cannot start cooking from the {self.view.value} view"
            )
        self.stop_speaking()
        self.selected_recipe = recipe
        self.current_step = 0
        self.audio_error = None
        self.view = View.COOKING

    def show_recipes(self) -> None:
        if self.view == View.RECIPES:
            return
        if self.view not in (View.COOKING, View.SHOPPING):
            raise InvalidTransitionError(
                f"Cannot show recipes from the {self.view.value} view"
            )
        self.stop_speaking()
        self.view = View.RECIPES

    def show_shopping_list(self) -> None:
        if self.view == View.SHOPPING:
            return
        if self.view != View.RECIPES:
            raise InvalidTransitionError(
                f"Cannot show the shopping list from the {self.view.value} view"
            )
        self.view = View.SHOPPING

    # =========================================================================
    # COOKING MODE
    # =========================================================================

    def _require_cooking(self) -> RecipeSchema:
        if self.view != View.COOKING or self.selected_recipe is None:
            raise InvalidTransitionError("No recipe is being cooked")
        return self.selected_recipe

    def advance_step(self) -> int:
        """Move to the next step; stays put on the last one."""
        recipe = self._require_cooking()
        last_step = max(len(recipe.instructions) - 1, 0)
        self.current_step = min(self.current_step + 1, last_step)
        return self.current_step

    def retreat_step(self) -> int:
        """Move to the previous step; stays put on the first one."""
        self._require_cooking()
        self.current_step = max(self.current_step - 1, 0)
        return self.current_step

    async def read_current_step_aloud(self) -> None:
        """
        Toggle narration of the current step.

        While narration is pending or playing this stops it instead. A
        synthesis response that arrives after a stop is dropped, so two
        narrations never overlap.
        """
        self._require_cooking()

        if self.is_speaking:
            self.stop_speaking()
            return

        instruction = self.current_instruction
        if instruction is None:
            return

        self._speech_generation += 1
        generation = self._speech_generation
        self.is_speaking = True
        self.audio_error = None

        try:
            payload = await self.speech_service.synthesize_speech(instruction)
            if generation != self._speech_generation:
                logger.info("Dropping speech response for a stopped narration")
                return
            raw = decode_audio_payload(payload)
            buffer = build_playable_buffer(raw, self.sample_rate, self.channel_count)
        except (SynthesisError, DecodeError, FormatError) as e:
            logger.warning("Narration failed: %s", e)
            if generation == self._speech_generation:
                self.audio_error = AUDIO_ERROR_MESSAGE
                self.is_speaking = False
            return

        self._playback_task = asyncio.create_task(self._play(buffer, generation))

    async def _play(self, buffer: PlayableAudioBuffer, generation: int) -> None:
        if generation != self._speech_generation:
            # Stopped before playback started
            return
        try:
            await self.player.play(buffer)
        except Exception as e:
            logger.error("Audio playback failed: %s", e, exc_info=True)
            if generation == self._speech_generation:
                self.audio_error = AUDIO_ERROR_MESSAGE
        finally:
            if generation == self._speech_generation:
                self.is_speaking = False

    def stop_speaking(self) -> None:
        """Stop narration and ignore any response still in flight."""
        if not self.is_speaking:
            return
        self._speech_generation += 1
        self.is_speaking = False
        self.player.stop()

    async def wait_for_playback(self) -> None:
        """Wait until the most recently scheduled playback has ended."""
        if self._playback_task is not None:
            await self._playback_task

    # =========================================================================
    # SHOPPING LIST
    # =========================================================================

    def add_missing_to_shopping_list(
        self, items: Optional[list[IngredientSchema]] = None
    ) -> int:
        """
        Add ingredients to the shopping list, skipping names already on it.

        Args:
            items: Ingredients to add; defaults to the missing ingredients of
                the recipe being cooked

        Returns:
            Number of entries actually added
        """
        if items is None:
            items = self.missing_ingredients

        added = self.shopping_list.add_all(items)
        self.notice = f"{len(items)} item(s) added to your shopping list!"
        return added

    # =========================================================================
    # RESET
    # =========================================================================

    def reset(self) -> None:
        """
        Start over from the upload view.

        Discards the analysis, selection, cooking position and errors. The
        shopping list and dietary filters are kept.
        """
        self.stop_speaking()
        self._upload_generation += 1
        self.view = View.UPLOAD
        self.is_loading = False
        self.error = None
        self.image_preview = None
        self.analysis = None
        self.selected_recipe = None
        self.current_step = 0
        self.audio_error = None
        self.notice = None
