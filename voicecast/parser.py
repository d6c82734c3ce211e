"""Parse a multi-speaker script into dialogue units."""

import re

from voicecast.constants import LINE_ID_PREFIX, NO_SPEAKER
from voicecast.models import DialogueUnit

# "Speaker 1: Hello" / "[Speaker 1]: Hello" / "[Speaker 1:] Hello"
_LABEL_RE = re.compile(r"^\[?(.*?)\]?\s*:\s*\]?\s*(.*)$")


def line_id(position: int) -> str:
    """Identifier for the dialogue unit at a post-filter position."""
    return f"{LINE_ID_PREFIX}{position}"


def split_label(line: str) -> tuple[str, str]:
    """Split one stripped line into (speaker, dialogue).

    Lines without a usable "label:" prefix are attributed to NO_SPEAKER and
    keep their full text.
    """
    match = _LABEL_RE.match(line)
    if match:
        speaker = match.group(1).strip()
        if speaker:
            return speaker, match.group(2).strip()
    return NO_SPEAKER, line


def parse_script(text: str) -> list[DialogueUnit]:
    """Parse script text into an ordered list of DialogueUnits.

    Never raises. Blank lines and labels with no dialogue after them are
    dropped before ids are assigned, so ids follow the filtered order.
    """
    pairs = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        speaker, dialogue = split_label(line)
        if not dialogue:
            continue
        pairs.append((speaker, dialogue))

    return [
        DialogueUnit(id=line_id(i), speaker=speaker, text=dialogue)
        for i, (speaker, dialogue) in enumerate(pairs)
    ]


def speakers_in_order(units: list[DialogueUnit]) -> list[str]:
    """Distinct attributed speakers in order of first appearance."""
    seen = set()
    speakers = []
    for unit in units:
        if unit.speaker == NO_SPEAKER or unit.speaker in seen:
            continue
        seen.add(unit.speaker)
        speakers.append(unit.speaker)
    return speakers
