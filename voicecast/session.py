"""Session controller: owns the script, speaker registry, audio cache and players.

Every user-facing command is a method here. Pipeline errors are caught at
this boundary and reported through `notify(level, message)`; none of them
end the session.
"""

import asyncio
import logging
from datetime import date

from voicecast import tts
from voicecast.artifacts import InMemoryStore
from voicecast.cache import AudioCache
from voicecast.constants import DEFAULT_SCRIPT, PREVIEW_ID_PREFIX, PREVIEW_TEXT, STATE_KEY
from voicecast.errors import (
    ExportPrecondition,
    MissingSpeakerError,
    MissingVoiceConfigError,
    SynthesisError,
)
from voicecast.exporter import export_all, write_archive
from voicecast.models import DialogueUnit, SpeakerVoiceConfig
from voicecast.parser import parse_script
from voicecast.playback import PlaybackController, PlaybackState
from voicecast.voices import reconcile, settings_from_pairs, settings_to_pairs, update_speaker, voice_for

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def log_notification(level: str, message: str) -> None:
    """Default notifier: forward to the module logger."""
    logger.log(_LOG_LEVELS.get(level, logging.INFO), message)


def preview_id(speaker: str) -> str:
    return f"{PREVIEW_ID_PREFIX}{speaker}"


class DialogueSession:
    def __init__(
        self,
        script: str = DEFAULT_SCRIPT,
        backend=None,
        store=None,
        notify=None,
        context_factory=None,
    ) -> None:
        self.backend = backend
        self.store = store if store is not None else InMemoryStore()
        self.notify = notify or log_notification
        self.context_factory = context_factory
        self.cache = AudioCache(backend=backend)
        self.active: set[str] = set()
        self.speaker_settings: dict[str, SpeakerVoiceConfig] = {}
        self.units: list[DialogueUnit] = []
        self.script = ""
        self._players: dict[str, PlaybackController] = {}
        self.set_script(script)

    # --- Script and speakers ---

    def set_script(self, text: str) -> None:
        """Replace the script: full re-parse, then add defaults for new speakers."""
        self.script = text
        self.units = parse_script(text)
        self.speaker_settings = reconcile(self.speaker_settings, self.units)

        line_ids = {unit.id for unit in self.units}
        for entity_id in list(self._players):
            if not entity_id.startswith(PREVIEW_ID_PREFIX) and entity_id not in line_ids:
                self._players.pop(entity_id).dispose()

    @property
    def speakers(self) -> list[str]:
        return list(self.speaker_settings)

    def update_speaker(self, speaker: str, **changes) -> None:
        self.speaker_settings = update_speaker(self.speaker_settings, speaker, **changes)

    def get_unit(self, unit_id: str) -> DialogueUnit | None:
        for unit in self.units:
            if unit.id == unit_id:
                return unit
        return None

    def line_listing(self) -> list[tuple[DialogueUnit, str]]:
        """Each unit with its speaker's current voice ("N/A" if none)."""
        return [(unit, voice_for(self.speaker_settings, unit.speaker)) for unit in self.units]

    # --- Synthesis ---

    async def generate_line(self, unit: DialogueUnit) -> bytes | None:
        """Cached-or-synthesized audio for one line; None after notifying on failure."""
        try:
            return await self.cache.get_or_synthesize(unit, self.speaker_settings)
        except (MissingSpeakerError, MissingVoiceConfigError) as e:
            logger.warning("%s: %s", unit.id, e)
            self.notify("error", str(e))
        except SynthesisError as e:
            logger.error("Error generating audio for %s: %s", unit.id, e)
            self.notify("error", f'Failed to generate audio for "{unit.text[:20]}...".')
        return None

    async def generate_all(self) -> tuple[int, int]:
        """Synthesize every line concurrently. Returns (succeeded, total)."""
        total = len(self.units)
        self.notify("info", "Generating audio for the entire script...")
        results = await asyncio.gather(*(self.generate_line(unit) for unit in self.units))
        succeeded = sum(1 for r in results if r is not None)
        if succeeded == total:
            self.notify("success", "All audio generated successfully!")
        else:
            self.notify("warning", f"Generated audio for {succeeded} out of {total} lines.")
        return succeeded, total

    # --- Playback ---

    def player(self, entity_id: str) -> PlaybackController | None:
        return self._players.get(entity_id)

    async def play_line(self, unit_id: str) -> PlaybackState:
        """Toggle playback of one line."""
        player = self._players.get(unit_id)
        if player is None:
            if self.get_unit(unit_id) is None:
                raise KeyError(unit_id)

            async def fetch():
                unit = self.get_unit(unit_id)
                if unit is None:
                    return None
                return await self.generate_line(unit)

            player = PlaybackController(
                unit_id,
                fetch,
                self.active,
                notify=self.notify,
                error_message="Could not play audio.",
                context_factory=self.context_factory,
            )
            self._players[unit_id] = player
        return await player.play()

    async def preview_speaker(self, speaker: str) -> PlaybackState:
        """Toggle a short uncached sample of a speaker's current voice settings."""
        entity_id = preview_id(speaker)
        player = self._players.get(entity_id)
        if player is None:

            async def fetch():
                config = self.speaker_settings.get(speaker)
                if config is None:
                    raise MissingVoiceConfigError(f"No voice settings found for {speaker}.")
                return await tts.synthesize(
                    PREVIEW_TEXT.format(speaker=speaker),
                    config.voice,
                    config.style_prompt,
                    config.emotion,
                    backend=self.backend,
                )

            player = PlaybackController(
                entity_id,
                fetch,
                self.active,
                notify=self.notify,
                error_message=f"Could not preview voice for {speaker}.",
                context_factory=self.context_factory,
            )
            self._players[entity_id] = player
        return await player.play()

    def stop(self, entity_id: str) -> None:
        player = self._players.get(entity_id)
        if player is not None:
            player.stop()

    def stop_all(self) -> None:
        for player in self._players.values():
            player.stop()

    def close(self) -> None:
        """Dispose every player; the session should not be used afterwards."""
        for player in self._players.values():
            player.dispose()
        self._players = {}

    # --- Export ---

    def build_archive(self, today: date | None = None) -> bytes | None:
        try:
            return export_all(self.units, self.cache, today=today)
        except ExportPrecondition as e:
            logger.warning("Export refused: %s", e)
            self.notify("error", "Please generate all audio clips before downloading.")
            return None

    def download_all(self, output_dir: str, today: date | None = None) -> str | None:
        """Write the ZIP of all clips into output_dir; None if not every line is ready."""
        if not self.units:
            self.notify("error", "There are no lines to download.")
            return None
        today = today or date.today()
        payload = self.build_archive(today=today)
        if payload is None:
            return None
        self.notify("info", "Preparing your download...")
        path = write_archive(payload, output_dir, today=today)
        self.notify("success", "Download started!")
        return path

    # --- Persistence ---

    def state(self) -> dict:
        return {"script": self.script, "speakerSettings": settings_to_pairs(self.speaker_settings)}

    def save(self) -> bool:
        try:
            self.store.save(STATE_KEY, self.state())
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save state: %s", e)
            self.notify("error", "Could not save progress.")
            return False
        self.notify("success", "Progress saved!")
        return True

    def load(self) -> bool:
        """Restore script and speaker settings; always drops cached audio."""
        try:
            saved = self.store.load(STATE_KEY)
            if saved is None:
                self.notify("info", "No saved data found.")
                return False
            if not isinstance(saved, dict):
                raise ValueError(f"saved state is a {type(saved).__name__}, expected an object")
            settings = settings_from_pairs(saved.get("speakerSettings", []))
            script = saved["script"]
        except (OSError, KeyError, TypeError, ValueError) as e:
            logger.error("Failed to load state: %s", e)
            self.notify("error", "Could not load progress.")
            return False

        self.stop_all()
        self.speaker_settings = settings
        self.set_script(script)
        self.cache.clear()
        self.notify("success", "Progress loaded!")
        return True

    def clear_audio(self) -> None:
        self.cache.clear()
