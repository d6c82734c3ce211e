"""Decode raw PCM16 synthesis output into playable float samples."""

import asyncio
import logging

import numpy as np

from voicecast.constants import CHANNELS, PCM_SCALE, SAMPLE_RATE, SAMPLE_WIDTH
from voicecast.errors import DecodeError, PlaybackError
from voicecast.models import DecodedAudio

# Output device is optional — decoding works without it, playback does not
try:
    import sounddevice as sd
except (ImportError, OSError):  # OSError: PortAudio library not found
    sd = None

logger = logging.getLogger(__name__)


class SoundDeviceContext:
    """One playback device context, owned by whoever created it.

    start() plays a mono float32 buffer on a sounddevice OutputStream and
    calls `on_finished` on the event loop thread once the buffer is drained.
    close() is idempotent and suppresses the finished callback.
    """

    def __init__(self, sample_rate: int = SAMPLE_RATE) -> None:
        if sd is None:
            raise PlaybackError(
                "sounddevice is required for playback but is not available. "
                "Install with: pip install sounddevice"
            )
        self.sample_rate = sample_rate
        self._stream = None
        self._on_finished = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self, samples: np.ndarray, on_finished=None) -> None:
        if self._closed:
            raise PlaybackError("Playback context is already closed.")
        self._on_finished = on_finished
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        position = 0

        def callback(outdata, frames, time, status):
            nonlocal position
            if status:
                logger.debug("Output stream status: %s", status)
            chunk = samples[position:position + frames]
            outdata[:len(chunk), 0] = chunk
            if len(chunk) < frames:
                outdata[len(chunk):] = 0
                raise sd.CallbackStop
            position += frames

        def finished():
            handler = self._on_finished
            if handler is None:
                return
            if loop is not None:
                loop.call_soon_threadsafe(handler)
            else:
                handler()

        try:
            self._stream = sd.OutputStream(
                samplerate=self.sample_rate,
                channels=CHANNELS,
                dtype="float32",
                callback=callback,
                finished_callback=finished,
            )
            self._stream.start()
        except sd.PortAudioError as e:
            raise PlaybackError(f"Could not open output device: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._on_finished = None
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None


def pcm16_to_float(raw: bytes) -> np.ndarray:
    """Little-endian signed 16-bit PCM → float32 samples divided by 32768.

    Raises DecodeError when the length is not a whole number of samples.
    """
    if len(raw) % SAMPLE_WIDTH:
        raise DecodeError(
            f"PCM payload of {len(raw)} bytes is not a multiple of {SAMPLE_WIDTH}-byte samples."
        )
    samples = np.frombuffer(raw, dtype="<i2").astype(np.float32)
    return samples / np.float32(PCM_SCALE)


def decode(raw: bytes, context_factory=SoundDeviceContext) -> DecodedAudio:
    """Decode raw synthesis bytes and open a fresh device context.

    The caller owns the returned context and must close() it.
    """
    samples = pcm16_to_float(raw)
    context = context_factory(sample_rate=SAMPLE_RATE)
    return DecodedAudio(samples=samples, context=context)
