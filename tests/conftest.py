"""Shared fixtures for voicecast tests."""

import asyncio
import struct

import pytest

from voicecast.models import DialogueUnit, SpeakerVoiceConfig


def pcm16(*values: int) -> bytes:
    """Pack int16 sample values as little-endian PCM."""
    return struct.pack(f"<{len(values)}h", *values)


class FakeBackend:
    """Stands in for the remote synthesis capability. Records every call."""

    def __init__(self, audio: bytes = pcm16(0, 1000, -1000, 0), fail_on: str | None = None, delay: float = 0):
        self.audio = audio
        self.fail_on = fail_on
        self.delay = delay
        self.calls = []

    async def synthesize(self, prompt: str, voice: str) -> bytes:
        self.calls.append((prompt, voice))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_on and self.fail_on in prompt:
            raise RuntimeError("Permanent failure")
        return self.audio


class FakeContext:
    """Playback device context that records start/close instead of playing."""

    def __init__(self, sample_rate: int):
        self.sample_rate = sample_rate
        self.samples = None
        self.on_finished = None
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def start(self, samples, on_finished=None):
        self.samples = samples
        self.on_finished = on_finished

    def close(self):
        self.close_calls += 1

    def finish(self):
        """Simulate the buffer playing to its natural end."""
        self.on_finished()


class FakeDevice:
    """Context factory that keeps every context it creates."""

    def __init__(self):
        self.contexts = []

    def __call__(self, sample_rate: int) -> FakeContext:
        context = FakeContext(sample_rate)
        self.contexts.append(context)
        return context


class Notifications:
    """Notifier that collects (level, message) pairs."""

    def __init__(self):
        self.messages = []

    def __call__(self, level: str, message: str) -> None:
        self.messages.append((level, message))

    def levels(self) -> list[str]:
        return [level for level, _ in self.messages]

    def texts(self) -> list[str]:
        return [message for _, message in self.messages]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def device():
    return FakeDevice()


@pytest.fixture
def notifications():
    return Notifications()


@pytest.fixture
def sample_units():
    """Pre-parsed units for cache/export tests."""
    return [
        DialogueUnit(id="line-0", speaker="Speaker 1", text="Hello, how are you?"),
        DialogueUnit(id="line-1", speaker="Speaker 2", text="I'm good, thanks!"),
    ]


@pytest.fixture
def registry():
    return {
        "Speaker 1": SpeakerVoiceConfig(voice="en-US-AriaNeural"),
        "Speaker 2": SpeakerVoiceConfig(voice="en-US-GuyNeural", style_prompt="slowly", emotion="Sad"),
    }
