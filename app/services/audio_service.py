"""
Audio decoding and playback for narrated cooking steps.

The speech model returns base64-encoded raw PCM: 16-bit little-endian
signed samples, interleaved by channel. Decoding is pure; playback goes
through an AudioPlayer so the session never touches the sound device.
"""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Protocol

import numpy as np
import sounddevice as sd

logger = logging.getLogger(__name__)

BYTES_PER_SAMPLE = 2
PCM_SCALE = 32768.0


class DecodeError(Exception):
    """Audio payload is not valid base64."""

    pass


class FormatError(Exception):
    """Raw audio bytes do not form whole 16-bit frames."""

    pass


@dataclass(frozen=True)
class PlayableAudioBuffer:
    """De-interleaved float samples in [-1.0, 1.0], one array per channel."""

    sample_rate: int
    channels: tuple[np.ndarray, ...]

    @property
    def number_of_channels(self) -> int:
        return len(self.channels)

    @property
    def length(self) -> int:
        """Samples per channel."""
        return len(self.channels[0]) if self.channels else 0

    @property
    def duration(self) -> float:
        """Length in seconds."""
        return self.length / self.sample_rate

    def interleaved(self) -> np.ndarray:
        """Frames x channels array, the layout sounddevice plays."""
        return np.column_stack(self.channels)


def decode_audio_payload(payload: str) -> bytes:
    """
    Decode a base64 audio payload to raw bytes.

    Raises:
        DecodeError: Non-alphabet characters or bad padding
    """
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 audio payload: {e}") from e


def build_playable_buffer(
    raw: bytes, sample_rate: int, channel_count: int
) -> PlayableAudioBuffer:
    """
    Interpret raw bytes as 16-bit PCM and split them into channels.

    Args:
        raw: Interleaved little-endian int16 samples
        sample_rate: Samples per second per channel
        channel_count: Number of interleaved channels

    Returns:
        PlayableAudioBuffer with channel_count arrays of
        len(raw) / 2 / channel_count float32 samples each

    Raises:
        FormatError: Byte length is not a whole number of frames
    """
    if channel_count < 1:
        raise FormatError(f"Channel count must be positive, got {channel_count}")

    frame_size = BYTES_PER_SAMPLE * channel_count
    if len(raw) % frame_size != 0:
        raise FormatError(
            f"{len(raw)} bytes is not a whole number of "
            f"{channel_count}-channel 16-bit frames"
        )

    samples = np.frombuffer(raw, dtype="<i2").astype(np.float32) / PCM_SCALE
    frames = samples.reshape(-1, channel_count)
    channels = tuple(
        np.ascontiguousarray(frames[:, channel]) for channel in range(channel_count)
    )
    return PlayableAudioBuffer(sample_rate=sample_rate, channels=channels)


class AudioPlayer(Protocol):
    async def play(self, buffer: PlayableAudioBuffer) -> None:
        """Play the buffer; return once it finishes or is stopped."""
        ...

    def stop(self) -> None:
        ...


class SoundDevicePlayer:
    """Plays buffers on the default output device."""

    async def play(self, buffer: PlayableAudioBuffer) -> None:
        logger.debug(
            "Playing %.2fs of %d-channel audio",
            buffer.duration,
            buffer.number_of_channels,
        )
        sd.play(buffer.interleaved(), buffer.sample_rate)
        # sd.wait() blocks until playback ends or sd.stop() is called
        await asyncio.to_thread(sd.wait)

    def stop(self) -> None:
        sd.stop()
