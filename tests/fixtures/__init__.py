"""Test fixtures for Fridge Chef."""

from tests.fixtures.mocks import (
    MockAudioPlayer,
    MockClaudeService,
    MockSpeechService,
    make_pcm_payload,
    sample_analysis,
    sample_analysis_data,
)

__all__ = [
    "MockAudioPlayer",
    "MockClaudeService",
    "MockSpeechService",
    "make_pcm_payload",
    "sample_analysis",
    "sample_analysis_data",
]
