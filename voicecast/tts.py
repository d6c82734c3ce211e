"""Speech synthesis via edge-tts, returning raw PCM16 mono audio."""

import asyncio
import io
import logging

import edge_tts
from pydub import AudioSegment

from voicecast.constants import CHANNELS, DEFAULT_EMOTION, SAMPLE_RATE, SAMPLE_WIDTH
from voicecast.errors import SynthesisError

logger = logging.getLogger(__name__)


def compose_style(style_prompt: str = "", emotion: str = DEFAULT_EMOTION) -> str:
    """Join the (lowercased, non-neutral) emotion and style prompt with ", "."""
    emotion_text = emotion.lower() if emotion and emotion != DEFAULT_EMOTION else ""
    return ", ".join(part for part in (emotion_text, style_prompt) if part)


def compose_prompt(text: str, style_prompt: str = "", emotion: str = DEFAULT_EMOTION) -> str:
    """Build the synthesis prompt for a line of dialogue.

    "Say it in this style 'sad, slowly': Goodbye." when a style applies,
    otherwise the dialogue text unchanged.
    """
    style = compose_style(style_prompt, emotion)
    if style:
        return f"Say it in this style '{style}': {text}"
    return text


def to_pcm16(encoded: bytes) -> bytes:
    """Transcode compressed audio to headerless PCM16 mono at SAMPLE_RATE."""
    audio = AudioSegment.from_file(io.BytesIO(encoded), format="mp3")
    audio = audio.set_frame_rate(SAMPLE_RATE).set_channels(CHANNELS).set_sample_width(SAMPLE_WIDTH)
    return audio.raw_data


class EdgeTTSBackend:
    """Remote synthesis capability backed by edge_tts.Communicate()."""

    async def synthesize(self, prompt: str, voice: str) -> bytes:
        communicate = edge_tts.Communicate(prompt, voice)
        chunks = []
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                chunks.append(chunk["data"])
        if not chunks:
            return b""
        # ffmpeg decode blocks; keep it off the event loop
        return await asyncio.to_thread(to_pcm16, b"".join(chunks))


_default_backend = EdgeTTSBackend()


async def synthesize(
    text: str,
    voice: str,
    style_prompt: str = "",
    emotion: str = DEFAULT_EMOTION,
    backend=None,
) -> bytes:
    """Synthesize one line of dialogue and return raw PCM16 mono bytes.

    Single attempt, no retries. Raises SynthesisError if the backend fails
    or returns no audio.
    """
    backend = backend or _default_backend
    prompt = compose_prompt(text, style_prompt, emotion)
    try:
        audio = await backend.synthesize(prompt, voice)
    except SynthesisError:
        raise
    except Exception as e:
        raise SynthesisError(f"Speech synthesis failed: {e}") from e

    if not audio:
        raise SynthesisError("No audio data received from speech synthesis.")
    logger.debug("Synthesized %d bytes with %s", len(audio), voice)
    return audio
