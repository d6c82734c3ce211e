"""CLI interface with subcommand routing over a persisted dialogue session."""

import argparse
import asyncio
import logging
import os
import sys

from voicecast.artifacts import JsonFileStore
from voicecast.constants import AVAILABLE_EMOTIONS, STATE_DIR, STATE_KEY, VERSION
from voicecast.parser import line_id
from voicecast.playback import PlaybackState
from voicecast.session import DialogueSession, preview_id
from voicecast.voices import filter_voices

# settings key on the command line → keyword for DialogueSession.update_speaker()
SETTING_KEYS = {
    "voice": "voice",
    "style": "style_prompt",
    "emotion": "emotion",
}

_MARKERS = {
    "info": "",
    "success": "[ok] ",
    "warning": "[warn] ",
    "error": "Error: ",
}


def print_notification(level: str, message: str) -> None:
    """Notifier for terminal use: errors to stderr, the rest to stdout."""
    stream = sys.stderr if level == "error" else sys.stdout
    print(f"{_MARKERS.get(level, '')}{message}", file=stream)


def _open_session(args) -> DialogueSession:
    """Build a session from saved state, optionally replacing the script."""
    store = JsonFileStore(args.state_dir)
    # restore quietly, report everything after that
    session = DialogueSession(store=store)
    if store.load(STATE_KEY) is not None and not session.load():
        print(f"Error: Could not load saved state from {args.state_dir}", file=sys.stderr)
        raise SystemExit(1)
    session.notify = print_notification

    script_file = getattr(args, "script", None)
    if script_file:
        if not os.path.exists(script_file):
            print(f"Error: File not found: {script_file}", file=sys.stderr)
            raise SystemExit(1)
        with open(script_file) as f:
            session.set_script(f.read())
        session.save()
    return session


def _parse_line_number(value: str, session: DialogueSession) -> str:
    try:
        number = int(value)
    except ValueError:
        print(f"Error: Invalid line number: {value}", file=sys.stderr)
        raise SystemExit(1)
    if not 1 <= number <= len(session.units):
        print(f"Error: Line {number} out of range (1-{len(session.units)})", file=sys.stderr)
        raise SystemExit(1)
    return line_id(number - 1)


async def _play_to_end(player_call, session: DialogueSession, entity_id: str) -> PlaybackState:
    state = await player_call
    player = session.player(entity_id)
    while player is not None and player.is_playing:
        await asyncio.sleep(0.1)
    return state


def cmd_lines(args):
    """List parsed lines with speaker and voice."""
    session = _open_session(args)
    listing = session.line_listing()
    if not listing:
        print("No lines in script.")
        return
    for position, (unit, voice) in enumerate(listing, start=1):
        print(f"{position:>3}. {unit.speaker} ({voice}): {unit.text}")


def cmd_speakers(args):
    """List speakers and their voice settings."""
    session = _open_session(args)
    if not session.speakers:
        print("No speakers found.")
        return
    print("Speakers:")
    for name, config in session.speaker_settings.items():
        style = f", style '{config.style_prompt}'" if config.style_prompt else ""
        print(f"  {name:<15} → {config.voice} [{config.emotion}]{style}")


def cmd_set(args):
    """Update one field of a speaker's voice settings."""
    session = _open_session(args)
    if args.speaker not in session.speaker_settings:
        print(f"Error: Unknown speaker: {args.speaker}", file=sys.stderr)
        print(f"Known speakers: {', '.join(session.speakers) or 'none'}", file=sys.stderr)
        raise SystemExit(1)

    value = " ".join(args.value)
    try:
        session.update_speaker(args.speaker, **{SETTING_KEYS[args.key]: value})
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
    print(f"Updated: {args.speaker} {args.key} → {value}")
    session.save()


def cmd_render(args):
    """Generate audio for every line and write the ZIP of clips."""
    session = _open_session(args)
    if not session.units:
        print("Error: Script has no lines.", file=sys.stderr)
        raise SystemExit(1)

    succeeded, total = asyncio.run(session.generate_all())
    print(f"Generated {succeeded}/{total} lines")
    path = session.download_all(args.out)
    if path is None:
        raise SystemExit(1)
    print(f"Done: {path}")


def cmd_play(args):
    """Synthesize one line and play it to the end."""
    session = _open_session(args)
    entity_id = _parse_line_number(args.line, session)
    try:
        state = asyncio.run(_play_to_end(session.play_line(entity_id), session, entity_id))
    finally:
        session.close()
    if state is not PlaybackState.PLAYING:
        raise SystemExit(1)


def cmd_preview(args):
    """Play a short sample of a speaker's voice settings."""
    session = _open_session(args)
    if args.speaker not in session.speaker_settings:
        print(f"Error: Unknown speaker: {args.speaker}", file=sys.stderr)
        raise SystemExit(1)
    entity_id = preview_id(args.speaker)
    try:
        state = asyncio.run(_play_to_end(session.preview_speaker(args.speaker), session, entity_id))
    finally:
        session.close()
    if state is not PlaybackState.PLAYING:
        raise SystemExit(1)


def cmd_voices(args):
    """List available voices."""
    voices = filter_voices(args.filter)
    if not voices:
        print("No matching voices found.")
        return
    print("Available voices:")
    for v in voices:
        print(f"  {v}")


def cmd_emotions(args):
    """List available emotions."""
    print("Available emotions:")
    for emotion in AVAILABLE_EMOTIONS:
        print(f"  {emotion}")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="voicecast",
        description="Voicecast — turn multi-speaker scripts into per-line speech clips",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--state-dir", default=STATE_DIR, help="Directory for saved script and speaker settings")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # lines
    lines_parser = subparsers.add_parser("lines", help="List parsed script lines")
    lines_parser.add_argument("--script", help="Replace the saved script with this file")
    lines_parser.set_defaults(func=cmd_lines)

    # speakers
    speakers_parser = subparsers.add_parser("speakers", help="List speakers and voice settings")
    speakers_parser.add_argument("--script", help="Replace the saved script with this file")
    speakers_parser.set_defaults(func=cmd_speakers)

    # set
    set_parser = subparsers.add_parser("set", help="Update a speaker's voice settings")
    set_parser.add_argument("speaker", help="Speaker name as written in the script")
    set_parser.add_argument("key", choices=sorted(SETTING_KEYS), help="Setting key")
    set_parser.add_argument("value", nargs="+", help="Setting value")
    set_parser.set_defaults(func=cmd_set)

    # render
    render_parser = subparsers.add_parser("render", help="Generate all lines and write the ZIP")
    render_parser.add_argument("--script", help="Replace the saved script with this file")
    render_parser.add_argument("--out", default=".", help="Directory for the ZIP archive")
    render_parser.set_defaults(func=cmd_render)

    # play
    play_parser = subparsers.add_parser("play", help="Play one line (1-based)")
    play_parser.add_argument("line", help="Line number")
    play_parser.set_defaults(func=cmd_play)

    # preview
    preview_parser = subparsers.add_parser("preview", help="Preview a speaker's voice")
    preview_parser.add_argument("speaker", help="Speaker name")
    preview_parser.set_defaults(func=cmd_preview)

    # voices
    voices_parser = subparsers.add_parser("voices", help="List available voices")
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.set_defaults(func=cmd_voices)

    # emotions
    emotions_parser = subparsers.add_parser("emotions", help="List available emotions")
    emotions_parser.set_defaults(func=cmd_emotions)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    args.func(args)
