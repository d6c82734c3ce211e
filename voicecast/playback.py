"""Per-entity playback state machine: idle → loading → playing → idle."""

import enum
import logging

from voicecast import decoder
from voicecast.errors import VoicecastError

logger = logging.getLogger(__name__)


class PlaybackState(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"


class PlaybackController:
    """Owns at most one live playback resource for a single entity.

    `fetch_audio` is an async callable returning raw PCM bytes, or None when
    the failure was already reported. `active` is the session-wide set of
    entity ids currently playing; the controller adds and removes its own id.
    """

    def __init__(
        self,
        entity_id: str,
        fetch_audio,
        active: set[str],
        notify=None,
        error_message: str = "Could not play audio.",
        context_factory=None,
    ) -> None:
        self.entity_id = entity_id
        self.fetch_audio = fetch_audio
        self.active = active
        self.notify = notify
        self.error_message = error_message
        self.context_factory = context_factory or decoder.SoundDeviceContext
        self._state = PlaybackState.IDLE
        self._context = None
        self._disposed = False

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state is PlaybackState.PLAYING

    async def play(self) -> PlaybackState:
        """Toggle playback.

        Idle → fetch, decode and start. Playing → stop. Ignored while loading
        and after dispose().
        """
        if self._disposed:
            return self._state
        if self._state is PlaybackState.LOADING:
            logger.debug("%s: already loading, ignoring play", self.entity_id)
            return self._state
        if self._state is PlaybackState.PLAYING:
            self.stop()
            return self._state

        self._state = PlaybackState.LOADING
        try:
            audio = await self.fetch_audio()
            if self._disposed:
                logger.debug("%s: disposed while loading, dropping audio", self.entity_id)
                self._state = PlaybackState.IDLE
                return self._state
            if audio is None:
                self._state = PlaybackState.IDLE
                return self._state
            self._release()
            decoded = decoder.decode(audio, context_factory=self.context_factory)
            self._context = decoded.context
            decoded.context.start(decoded.samples, on_finished=self._end_handler(decoded.context))
        except VoicecastError as e:
            logger.error("%s: playback failed: %s", self.entity_id, e)
            self._release()
            self._state = PlaybackState.IDLE
            if self.notify:
                self.notify("error", self.error_message)
            return self._state

        self.active.add(self.entity_id)
        self._state = PlaybackState.PLAYING
        return self._state

    def stop(self) -> None:
        """Release the playback resource. Safe to call repeatedly."""
        self._release()
        if self._state is PlaybackState.PLAYING:
            self._state = PlaybackState.IDLE

    def dispose(self) -> None:
        """Stop and refuse any later play(), including one still loading."""
        self._disposed = True
        self.stop()

    def _end_handler(self, context):
        def on_finished():
            # a stale callback from an earlier resource must not stop a newer one
            if self._context is context:
                logger.debug("%s: finished", self.entity_id)
                self.stop()
        return on_finished

    def _release(self) -> None:
        context, self._context = self._context, None
        if context is not None:
            context.close()
        self.active.discard(self.entity_id)
