"""Error kinds raised by the voicing pipeline.

All of them are recoverable: the session catches them at the operation
boundary and turns them into user notifications.
"""


class VoicecastError(Exception):
    """Base class for pipeline errors."""


class MissingSpeakerError(VoicecastError):
    """Line has no attributable speaker."""


class MissingVoiceConfigError(VoicecastError):
    """Speaker has no entry in the speaker registry."""


class SynthesisError(VoicecastError):
    """The speech synthesis capability failed or returned no audio."""


class DecodeError(VoicecastError):
    """Raw audio payload is not well-formed PCM16."""


class ExportPrecondition(VoicecastError):
    """Export attempted before every line has cached audio."""


class PlaybackError(VoicecastError):
    """No playback device is available."""
