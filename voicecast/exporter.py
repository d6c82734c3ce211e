"""Bundle every cached clip into a single ZIP of WAV files."""

import io
import logging
import os
import re
import zipfile
from datetime import date

from voicecast.cache import AudioCache
from voicecast.constants import ARCHIVE_PREFIX, CONTAINER_EXT
from voicecast.container import wrap
from voicecast.errors import ExportPrecondition
from voicecast.models import DialogueUnit

logger = logging.getLogger(__name__)


def _date_stamp(today: date | None = None) -> str:
    return (today or date.today()).strftime("%Y%m%d")


def clip_filename(speaker: str, position: int, today: date | None = None) -> str:
    """Name for the clip at 1-based `position`.

    "Speaker 1", 3 → "Speaker_1_3_20250101.wav". Whitespace runs and path
    separators become underscores so every name is a flat archive member.
    """
    speaker_slug = re.sub(r"[\s/\\]+", "_", speaker)
    return f"{speaker_slug}_{position}_{_date_stamp(today)}.{CONTAINER_EXT}"


def archive_filename(today: date | None = None) -> str:
    return f"{ARCHIVE_PREFIX}_{_date_stamp(today)}.zip"


def missing_units(units: list[DialogueUnit], cache: AudioCache) -> list[DialogueUnit]:
    return [unit for unit in units if unit.id not in cache]


def export_all(units: list[DialogueUnit], cache: AudioCache, today: date | None = None) -> bytes:
    """Return a ZIP payload with one WAV per dialogue unit, in script order.

    Raises ExportPrecondition (and builds nothing) unless every unit has
    cached audio.
    """
    today = today or date.today()
    missing = missing_units(units, cache)
    if len(cache) < len(units) or missing:
        raise ExportPrecondition(
            f"{len(missing)} of {len(units)} lines have no audio yet."
        )

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for position, unit in enumerate(units, start=1):
            archive.writestr(clip_filename(unit.speaker, position, today), wrap(cache.get(unit.id)))

    buffer.seek(0)
    return buffer.getvalue()


def write_archive(payload: bytes, output_dir: str, today: date | None = None) -> str:
    """Write an archive payload to output_dir/<prefix>_<date>.zip.

    Returns path to the written file.
    """
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, archive_filename(today))
    with open(path, "wb") as f:
        f.write(payload)
    logger.info("Wrote %s (%d bytes)", path, len(payload))
    return path
