"""FastAPI dependencies for AI clients and the caller's kitchen session."""
from functools import lru_cache

from fastapi import Depends, Request, Response

from app.config import settings
from app.services.ai_service import ClaudeService
from app.services.audio_service import SoundDevicePlayer
from app.services.kitchen_session import KitchenSession
from app.services.session_store import session_store
from app.services.speech_service import GeminiSpeechService


@lru_cache
def get_recipe_service() -> ClaudeService:
    return ClaudeService()


@lru_cache
def get_speech_service() -> GeminiSpeechService:
    return GeminiSpeechService()


@lru_cache
def get_audio_player() -> SoundDevicePlayer:
    return SoundDevicePlayer()


async def get_kitchen_session(
    request: Request,
    response: Response,
    recipe_service=Depends(get_recipe_service),
    speech_service=Depends(get_speech_service),
    player=Depends(get_audio_player),
) -> KitchenSession:
    """
    Get the caller's kitchen session, creating one on first visit.

    New sessions get a cookie so later requests find them again.
    """
    session_id = request.cookies.get(settings.session_cookie_name)
    session = session_store.get(session_id)
    if session is not None:
        return session

    session_id, session = session_store.create(
        lambda: KitchenSession(
            recipe_service=recipe_service,
            speech_service=speech_service,
            player=player,
            sample_rate=settings.speech_sample_rate,
            channel_count=settings.speech_channels,
        )
    )
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        max_age=settings.session_max_age,
        httponly=True,
        samesite="lax",
    )
    return session
