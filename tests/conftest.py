"""
Test configuration and fixtures for Fridge Chef.

- Mock AI clients and audio player (no network, no sound device)
- KitchenSession wired to the mocks
- TestClient with dependency overrides and an isolated session store
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import (
    get_audio_player,
    get_recipe_service,
    get_speech_service,
)
from app.config import settings
from app.main import app
from app.services.file_service import file_service
from app.services.kitchen_session import FridgeImage, KitchenSession
from app.services.session_store import session_store
from tests.fixtures.mocks import MockAudioPlayer, MockClaudeService, MockSpeechService


# =============================================================================
# Service mocks
# =============================================================================


@pytest.fixture
def mock_claude_service() -> MockClaudeService:
    """Mock recipe generation client, configurable per test."""
    return MockClaudeService()


@pytest.fixture
def mock_speech_service() -> MockSpeechService:
    """Mock speech synthesis client, configurable per test."""
    return MockSpeechService()


@pytest.fixture
def mock_audio_player() -> MockAudioPlayer:
    """Audio player whose playback finishes immediately."""
    return MockAudioPlayer()


@pytest.fixture
def kitchen_session(
    mock_claude_service, mock_speech_service, mock_audio_player
) -> KitchenSession:
    return KitchenSession(
        recipe_service=mock_claude_service,
        speech_service=mock_speech_service,
        player=mock_audio_player,
        sample_rate=24000,
        channel_count=1,
    )


@pytest.fixture
def fridge_image() -> FridgeImage:
    return FridgeImage(data=b"\xff\xd8\xff\xe0fake-jpeg", mime_type="image/jpeg")


# =============================================================================
# API client
# =============================================================================


@pytest.fixture
def client(
    monkeypatch,
    tmp_path,
    mock_claude_service,
    mock_speech_service,
    mock_audio_player,
) -> Generator[TestClient, None, None]:
    """
    TestClient with AI clients and audio output replaced by mocks.

    Entered as a context manager so the app lifespan runs and background
    playback tasks share one event loop across requests.
    """
    monkeypatch.setattr(settings, "anthropic_api_key", "test-anthropic-key")
    monkeypatch.setattr(settings, "gemini_api_key", "test-gemini-key")
    monkeypatch.setattr(file_service, "upload_dir", tmp_path)

    app.dependency_overrides[get_recipe_service] = lambda: mock_claude_service
    app.dependency_overrides[get_speech_service] = lambda: mock_speech_service
    app.dependency_overrides[get_audio_player] = lambda: mock_audio_player
    session_store.clear()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    session_store.clear()


# =============================================================================
# pytest markers
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
