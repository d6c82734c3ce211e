"""Key/value JSON blob stores for saving and restoring session state."""

import json
import os

from voicecast.constants import STATE_DIR


def write_artifact(directory: str, filename: str, data) -> str:
    """Write JSON artifact to directory/filename.

    Returns path to the written file.
    """
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, filename)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return path


def load_artifact(directory: str, filename: str):
    """Read JSON artifact. Returns None if file doesn't exist."""
    path = os.path.join(directory, filename)
    if not os.path.exists(path):
        return None
    with open(path) as f:
        return json.load(f)


class JsonFileStore:
    """Stores each key as <directory>/<key>.json."""

    def __init__(self, directory: str = STATE_DIR) -> None:
        self.directory = directory

    def save(self, key: str, value) -> None:
        write_artifact(self.directory, f"{key}.json", value)

    def load(self, key: str):
        return load_artifact(self.directory, f"{key}.json")


class InMemoryStore:
    """Process-local store; values go through JSON like the file store."""

    def __init__(self) -> None:
        self._blobs: dict[str, str] = {}

    def save(self, key: str, value) -> None:
        self._blobs[key] = json.dumps(value)

    def load(self, key: str):
        blob = self._blobs.get(key)
        if blob is None:
            return None
        return json.loads(blob)
