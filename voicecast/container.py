"""Wrap raw PCM16 mono samples in a 44-byte RIFF/WAVE header."""

import struct

from voicecast.constants import CHANNELS, SAMPLE_RATE, SAMPLE_WIDTH

HEADER_SIZE = 44
FMT_CHUNK_SIZE = 16
FORMAT_PCM = 1

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def build_header(
    data_size: int,
    sample_rate: int = SAMPLE_RATE,
    channels: int = CHANNELS,
    sample_width: int = SAMPLE_WIDTH,
) -> bytes:
    """Build the canonical 44-byte WAV header for `data_size` payload bytes.

    Offsets: 0 "RIFF", 4 chunk size (36 + data), 8 "WAVE", 12 "fmt ",
    16 fmt size, 20 format, 22 channels, 24 sample rate, 28 byte rate,
    32 block align, 34 bits per sample, 36 "data", 40 data size.
    """
    block_align = channels * sample_width
    byte_rate = sample_rate * block_align
    return _HEADER.pack(
        b"RIFF",
        HEADER_SIZE - 8 + data_size,
        b"WAVE",
        b"fmt ",
        FMT_CHUNK_SIZE,
        FORMAT_PCM,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        sample_width * 8,
        b"data",
        data_size,
    )


def wrap(pcm: bytes) -> bytes:
    """Return a playable WAV file: header followed by the untouched payload."""
    return build_header(len(pcm)) + pcm
