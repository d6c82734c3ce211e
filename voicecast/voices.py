"""Speaker registry: one voice configuration per speaker."""

import logging

from voicecast.constants import AVAILABLE_VOICES, AVAILABLE_EMOTIONS, DEFAULT_EMOTION, NO_SPEAKER
from voicecast.models import DialogueUnit, SpeakerVoiceConfig

logger = logging.getLogger(__name__)


def reconcile(
    existing: dict[str, SpeakerVoiceConfig],
    units: list[DialogueUnit],
    voices: list[str] = AVAILABLE_VOICES,
) -> dict[str, SpeakerVoiceConfig]:
    """Return a new registry with defaults added for unseen speakers.

    Existing entries are kept as-is (user edits survive re-parsing) and
    speakers no longer in the script are not removed. New speakers get voices
    round-robin over `voices` in order of first appearance; the counter
    starts at zero on every call. The input mapping is not mutated.
    """
    result = dict(existing)
    assigned = 0
    for unit in units:
        if unit.speaker == NO_SPEAKER or unit.speaker in result:
            continue
        voice = voices[assigned % len(voices)]
        result[unit.speaker] = SpeakerVoiceConfig(voice=voice, style_prompt="", emotion=DEFAULT_EMOTION)
        logger.debug("New speaker %r → %s", unit.speaker, voice)
        assigned += 1
    return result


def update_speaker(
    registry: dict[str, SpeakerVoiceConfig],
    speaker: str,
    voice: str | None = None,
    style_prompt: str | None = None,
    emotion: str | None = None,
) -> dict[str, SpeakerVoiceConfig]:
    """Return a new registry with the given fields of one speaker replaced.

    Unknown speakers leave the registry unchanged. Raises ValueError for a
    voice or emotion outside the supported lists.
    """
    current = registry.get(speaker)
    if current is None:
        logger.warning("Ignoring settings update for unknown speaker %r", speaker)
        return dict(registry)
    if voice is not None and voice not in AVAILABLE_VOICES:
        raise ValueError(f"Unsupported voice: {voice}")
    if emotion is not None and emotion not in AVAILABLE_EMOTIONS:
        raise ValueError(f"Unsupported emotion: {emotion}")

    result = dict(registry)
    result[speaker] = SpeakerVoiceConfig(
        voice=voice if voice is not None else current.voice,
        style_prompt=style_prompt if style_prompt is not None else current.style_prompt,
        emotion=emotion if emotion is not None else current.emotion or DEFAULT_EMOTION,
    )
    return result


def voice_for(registry: dict[str, SpeakerVoiceConfig], speaker: str) -> str:
    """Display voice for a speaker, or NO_SPEAKER when it has no config."""
    config = registry.get(speaker)
    return config.voice if config else NO_SPEAKER


def filter_voices(substring: str | None = None) -> list[str]:
    """Supported voices, optionally narrowed by case-insensitive substring."""
    if not substring:
        return list(AVAILABLE_VOICES)
    needle = substring.lower()
    return [v for v in AVAILABLE_VOICES if needle in v.lower()]


def settings_to_pairs(registry: dict[str, SpeakerVoiceConfig]) -> list[list]:
    """Serialize the registry as ordered [name, config] pairs."""
    return [[name, config.to_dict()] for name, config in registry.items()]


def settings_from_pairs(pairs: list) -> dict[str, SpeakerVoiceConfig]:
    """Inverse of settings_to_pairs(); insertion order is preserved."""
    return {name: SpeakerVoiceConfig.from_dict(data) for name, data in pairs}
