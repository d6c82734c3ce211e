"""All magic numbers and configuration constants."""

SAMPLE_RATE = 24000                 # Hz — synthesis output and playback rate
CHANNELS = 1                        # mono only
SAMPLE_WIDTH = 2                    # bytes per sample (signed 16-bit PCM)
PCM_SCALE = 32768.0                 # int16 → [-1.0, 1.0) divisor
NO_SPEAKER = "N/A"                  # speaker for lines without a "label:" prefix
DEFAULT_EMOTION = "Neutral"
LINE_ID_PREFIX = "line-"
PREVIEW_ID_PREFIX = "speaker-preview-"
PREVIEW_TEXT = "Hello, my name is {speaker}."
ARCHIVE_PREFIX = "Story"
CONTAINER_EXT = "wav"
STATE_KEY = "voicecast_state"       # blob-store key for save/load
STATE_DIR = ".voicecast"
VERSION = "0.1.0"

# Round-robin pool for newly discovered speakers, in assignment order
AVAILABLE_VOICES = [
    "en-US-AriaNeural",
    "en-US-GuyNeural",
    "en-US-JennyNeural",
    "en-US-DavisNeural",
    "en-GB-SoniaNeural",
    "en-GB-RyanNeural",
    "en-AU-NatashaNeural",
    "en-AU-WilliamNeural",
    "en-CA-ClaraNeural",
    "en-CA-LiamNeural",
    "en-IE-EmilyNeural",
    "en-IN-PrabhatNeural",
]

AVAILABLE_EMOTIONS = [
    DEFAULT_EMOTION,
    "Happy",
    "Sad",
    "Angry",
    "Excited",
    "Calm",
    "Fearful",
    "Surprised",
    "Whispering",
    "Sarcastic",
]

DEFAULT_SCRIPT = (
    "Speaker 1: Hello, how are you?\n"
    "Speaker 2: I'm good, thanks! What about you?\n"
    "Speaker 1: I'm doing great, excited to see you."
)
