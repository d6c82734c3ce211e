"""Tests for CLI module (Layer 3b)."""

import asyncio
import json
import os
import zipfile
from unittest.mock import patch

import pytest

from voicecast import tts
from voicecast.cli import main
from voicecast.constants import AVAILABLE_VOICES, STATE_KEY


# --- Helpers ---

def _create_script_file(tmp_path, name="script.txt", content=None):
    if content is None:
        content = "Alice: Hello there.\nBob: Hi Alice!\n\nAlice: Bye."
    path = tmp_path / name
    path.write_text(content)
    return str(path)


def _run(tmp_path, *argv):
    main(["--state-dir", str(tmp_path / "state"), *argv])


def _saved_state(tmp_path):
    with open(tmp_path / "state" / f"{STATE_KEY}.json") as f:
        return json.load(f)


class _InstantContext:
    """Device context that reports the end of playback right after starting."""

    instances = []

    def __init__(self, sample_rate):
        self.closed = False
        _InstantContext.instances.append(self)

    def start(self, samples, on_finished=None):
        asyncio.get_running_loop().call_soon(on_finished)

    def close(self):
        self.closed = True


# --- lines / speakers ---

def test_lines_default_script(tmp_path, capsys):
    """Fresh state lists the starter script."""
    _run(tmp_path, "lines")
    out = capsys.readouterr().out
    assert "1. Speaker 1" in out
    assert "Hello, how are you?" in out


def test_lines_with_script_saves_state(tmp_path, capsys):
    script = _create_script_file(tmp_path)
    _run(tmp_path, "lines", "--script", script)
    out = capsys.readouterr().out
    assert f"1. Alice ({AVAILABLE_VOICES[0]}): Hello there." in out
    assert "3. Alice" in out
    assert _saved_state(tmp_path)["script"].startswith("Alice: Hello there.")


def test_lines_missing_script_file(tmp_path, capsys):
    with pytest.raises(SystemExit):
        _run(tmp_path, "lines", "--script", str(tmp_path / "nope.txt"))
    assert "File not found" in capsys.readouterr().err


def test_speakers(tmp_path, capsys):
    _run(tmp_path, "speakers", "--script", _create_script_file(tmp_path))
    out = capsys.readouterr().out
    assert "Alice" in out and "Bob" in out
    assert "[Neutral]" in out


# --- set ---

def test_set_emotion_persists(tmp_path, capsys):
    _run(tmp_path, "lines", "--script", _create_script_file(tmp_path))
    _run(tmp_path, "set", "Bob", "emotion", "Happy")
    assert "Updated: Bob emotion → Happy" in capsys.readouterr().out
    pairs = dict((name, cfg) for name, cfg in _saved_state(tmp_path)["speakerSettings"])
    assert pairs["Bob"]["emotion"] == "Happy"


def test_set_style_joins_words(tmp_path):
    _run(tmp_path, "lines", "--script", _create_script_file(tmp_path))
    _run(tmp_path, "set", "Alice", "style", "like", "a", "pirate")
    pairs = dict((name, cfg) for name, cfg in _saved_state(tmp_path)["speakerSettings"])
    assert pairs["Alice"]["stylePrompt"] == "like a pirate"


def test_set_unknown_speaker(tmp_path, capsys):
    with pytest.raises(SystemExit):
        _run(tmp_path, "set", "Nobody", "voice", AVAILABLE_VOICES[0])
    assert "Unknown speaker" in capsys.readouterr().err


def test_set_invalid_voice(tmp_path, capsys):
    with pytest.raises(SystemExit):
        _run(tmp_path, "set", "Speaker 1", "voice", "robot")
    assert "Unsupported voice" in capsys.readouterr().err


def test_set_survives_script_change(tmp_path):
    """Edited speaker settings are kept when the script is replaced."""
    _run(tmp_path, "lines", "--script", _create_script_file(tmp_path))
    _run(tmp_path, "set", "Bob", "voice", AVAILABLE_VOICES[7])
    other = _create_script_file(tmp_path, "other.txt", "Carol: New.\nBob: Still here.")
    _run(tmp_path, "lines", "--script", other)
    pairs = dict((name, cfg) for name, cfg in _saved_state(tmp_path)["speakerSettings"])
    assert pairs["Bob"]["voice"] == AVAILABLE_VOICES[7]
    assert "Carol" in pairs


# --- render ---

def test_render_writes_zip(tmp_path, capsys, backend):
    out_dir = tmp_path / "out"
    with patch.object(tts, "_default_backend", backend):
        _run(tmp_path, "render", "--script", _create_script_file(tmp_path), "--out", str(out_dir))
    out = capsys.readouterr().out
    assert "Generated 3/3 lines" in out
    zips = list(out_dir.glob("Story_*.zip"))
    assert len(zips) == 1
    with zipfile.ZipFile(zips[0]) as archive:
        names = archive.namelist()
    assert [n.split("_")[0] for n in names] == ["Alice", "Bob", "Alice"]


def test_render_partial_failure(tmp_path, capsys, backend):
    """Unattributed lines block the download but not the other lines."""
    script = _create_script_file(tmp_path, content="Alice: Hi.\njust narration")
    with patch.object(tts, "_default_backend", backend):
        with pytest.raises(SystemExit):
            _run(tmp_path, "render", "--script", script, "--out", str(tmp_path / "out"))
    captured = capsys.readouterr()
    assert "Generated 1/2 lines" in captured.out
    assert "Please generate all audio clips" in captured.err
    assert not (tmp_path / "out").exists()


# --- play / preview ---

def test_play_line(tmp_path, backend):
    _InstantContext.instances = []
    with patch.object(tts, "_default_backend", backend), \
            patch("voicecast.decoder.SoundDeviceContext", _InstantContext):
        _run(tmp_path, "play", "2")
    assert len(backend.calls) == 1
    assert backend.calls[0][0] == "I'm good, thanks! What about you?"
    assert all(c.closed for c in _InstantContext.instances)


def test_play_out_of_range(tmp_path, capsys):
    with pytest.raises(SystemExit):
        _run(tmp_path, "play", "9")
    assert "out of range" in capsys.readouterr().err


def test_preview(tmp_path, backend):
    _InstantContext.instances = []
    with patch.object(tts, "_default_backend", backend), \
            patch("voicecast.decoder.SoundDeviceContext", _InstantContext):
        _run(tmp_path, "preview", "Speaker 2")
    assert backend.calls == [("Hello, my name is Speaker 2.", AVAILABLE_VOICES[1])]


def test_preview_failure_exits(tmp_path, capsys, backend):
    backend.fail_on = "Speaker 2"
    with patch.object(tts, "_default_backend", backend), \
            patch("voicecast.decoder.SoundDeviceContext", _InstantContext):
        with pytest.raises(SystemExit):
            _run(tmp_path, "preview", "Speaker 2")
    assert "Could not preview voice for Speaker 2." in capsys.readouterr().err


# --- voices / emotions ---

def test_voices_filter(tmp_path, capsys):
    _run(tmp_path, "voices", "--filter", "en-GB")
    out = capsys.readouterr().out
    assert "en-GB-SoniaNeural" in out
    assert "en-US-AriaNeural" not in out


def test_voices_no_match(tmp_path, capsys):
    _run(tmp_path, "voices", "--filter", "zz-ZZ")
    assert "No matching voices found." in capsys.readouterr().out


def test_emotions(tmp_path, capsys):
    _run(tmp_path, "emotions")
    out = capsys.readouterr().out
    assert "Neutral" in out and "Happy" in out


def test_no_command_prints_help(tmp_path, capsys):
    _run(tmp_path)
    assert "usage" in capsys.readouterr().out.lower()
    assert not os.path.exists(tmp_path / "state")
