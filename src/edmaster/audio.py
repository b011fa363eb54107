import io
import logging
import wave
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import numpy as np

from .config import settings
from .gemini import GenerationCollaborator

logger = logging.getLogger(__name__)

SAMPLE_WIDTH = 2  # bytes per int16 sample


def decode_pcm(data: bytes, channels: int = 1) -> np.ndarray:
    """Decode little-endian int16 PCM into float samples in [-1, 1].

    Returns an array shaped ``(channels, frames)``. A trailing partial frame
    is dropped.
    """
    if channels < 1:
        raise ValueError("channels must be at least 1")
    frame_bytes = SAMPLE_WIDTH * channels
    usable = len(data) - len(data) % frame_bytes
    samples = np.frombuffer(data[:usable], dtype="<i2").astype(np.float32) / 32768.0
    return samples.reshape(-1, channels).T


def encode_wav(pcm: bytes, sample_rate: int, channels: int = 1) -> bytes:
    frame_bytes = SAMPLE_WIDTH * channels
    pcm = pcm[: len(pcm) - len(pcm) % frame_bytes]
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(SAMPLE_WIDTH)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


@dataclass
class Clip:
    text: str
    pcm: bytes
    samples: np.ndarray
    sample_rate: int
    channels: int

    @property
    def frame_count(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        return self.frame_count / self.sample_rate

    def to_wav(self) -> bytes:
        return encode_wav(self.pcm, self.sample_rate, self.channels)


Sink = Callable[[Clip], Awaitable[None]]


class AudioPlayer:
    """Speaks words through the collaborator, one clip at a time.

    ``play`` while a clip is in progress does nothing and returns ``None``.
    A clip is in progress from the speech request until ``sink`` (if given)
    returns or fails. The HTTP layer passes no sink and hands the WAV to the
    browser, so there the clip ends when the response is built; ``sink`` is
    for callers that play the decoded samples themselves.
    """

    def __init__(
        self,
        collaborator: GenerationCollaborator,
        sample_rate: int = settings.SAMPLE_RATE,
        channels: int = settings.AUDIO_CHANNELS,
    ):
        self.collaborator = collaborator
        self.sample_rate = sample_rate
        self.channels = channels
        self.is_playing = False

    async def play(self, text: str, sink: Optional[Sink] = None) -> Optional[Clip]:
        if self.is_playing:
            return None

        self.is_playing = True
        try:
            pcm = await self.collaborator.synthesize_speech(text)
            if not pcm:
                return None
            clip = Clip(
                text=text,
                pcm=pcm,
                samples=decode_pcm(pcm, self.channels),
                sample_rate=self.sample_rate,
                channels=self.channels,
            )
            if sink is not None:
                await sink(clip)
            return clip
        except Exception as e:
            logger.error(f"Audio playback error for {text!r}: {e}")
            return None
        finally:
            self.is_playing = False
