"""Data models for dialogue voicing."""

from dataclasses import dataclass

import numpy as np

from voicecast.constants import DEFAULT_EMOTION


@dataclass(frozen=True)
class DialogueUnit:
    id: str            # positional, e.g. "line-0"
    speaker: str       # speaker label or NO_SPEAKER
    text: str


@dataclass
class SpeakerVoiceConfig:
    voice: str
    style_prompt: str = ""
    emotion: str = DEFAULT_EMOTION

    def to_dict(self) -> dict:
        return {"voice": self.voice, "stylePrompt": self.style_prompt, "emotion": self.emotion}

    @classmethod
    def from_dict(cls, data: dict) -> "SpeakerVoiceConfig":
        return cls(
            voice=data["voice"],
            style_prompt=data.get("stylePrompt") or "",
            emotion=data.get("emotion") or DEFAULT_EMOTION,
        )


@dataclass
class DecodedAudio:
    samples: np.ndarray   # float32, normalized to [-1.0, 1.0)
    context: object       # playback device context, owned by the caller
