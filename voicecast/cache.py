"""Audio cache keyed by dialogue unit id, with in-flight request sharing."""

import asyncio
import logging

from voicecast import tts
from voicecast.constants import NO_SPEAKER
from voicecast.errors import MissingSpeakerError, MissingVoiceConfigError
from voicecast.models import DialogueUnit, SpeakerVoiceConfig

logger = logging.getLogger(__name__)


class AudioCache:
    """Maps DialogueUnit.id → raw synthesized PCM bytes.

    Entries are only dropped wholesale by clear(). Concurrent requests for an
    id that is still being synthesized share the pending request instead of
    issuing another one.
    """

    def __init__(self, backend=None) -> None:
        self.backend = backend
        self._entries: dict[str, bytes] = {}
        self._in_flight: dict[str, asyncio.Future] = {}
        self._generation = 0

    def __contains__(self, unit_id: str) -> bool:
        return unit_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, unit_id: str) -> bytes | None:
        return self._entries.get(unit_id)

    def is_pending(self, unit_id: str) -> bool:
        return unit_id in self._in_flight

    def clear(self) -> None:
        """Drop every entry. Requests still in flight will not be stored."""
        self._entries = {}
        self._in_flight = {}
        self._generation += 1

    async def get_or_synthesize(
        self,
        unit: DialogueUnit,
        registry: dict[str, SpeakerVoiceConfig],
    ) -> bytes:
        """Return cached audio for `unit`, synthesizing it on a miss.

        Raises MissingSpeakerError, MissingVoiceConfigError or SynthesisError;
        nothing is cached on failure.
        """
        cached = self._entries.get(unit.id)
        if cached is not None:
            return cached
        if unit.speaker == NO_SPEAKER:
            raise MissingSpeakerError("Cannot generate audio for a line with no speaker.")
        config = registry.get(unit.speaker)
        if config is None:
            raise MissingVoiceConfigError(f"No voice settings found for {unit.speaker}.")

        pending = self._in_flight.get(unit.id)
        if pending is None:
            pending = asyncio.ensure_future(self._synthesize(unit, config, self._generation))
            self._in_flight[unit.id] = pending
        else:
            logger.debug("Joining in-flight synthesis for %s", unit.id)
        # shield: a cancelled caller must not cancel the shared request
        return await asyncio.shield(pending)

    async def _synthesize(self, unit: DialogueUnit, config: SpeakerVoiceConfig, generation: int) -> bytes:
        try:
            audio = await tts.synthesize(
                unit.text,
                config.voice,
                config.style_prompt,
                config.emotion,
                backend=self.backend,
            )
        finally:
            if generation == self._generation:
                self._in_flight.pop(unit.id, None)
        if generation == self._generation:
            self._entries[unit.id] = audio
        return audio
