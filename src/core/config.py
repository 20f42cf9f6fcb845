"""
Configuration and constants for the audio merger.
"""

from typing import Dict, Any
import os, sys, json


#! ---- Default configuration values ---- !#

VERSION = "1.0"

# Language tag auto-selected when the external file carries several audio streams.
# Matched case-insensitively against the stream's `language` tag as reported by ffprobe
# (ISO 639-2 codes such as "eng", "jpn", "por"). An empty string disables auto-selection.
PREFERRED_LANGUAGE = "por"

# What to do when more than one stream carries the preferred language tag:
# - "first": pick the first matching stream in ffprobe order.
# - "ask": treat the result as ambiguous and let the user pick.
DUPLICATE_LANGUAGE_POLICY = "first"

# Keep the video's own audio track in this language next to the merged one.
# Empty string (default) writes only the video stream plus the chosen external track.
KEEP_VIDEO_AUDIO_LANGUAGE = ""

# Explicit tool locations. Empty means "look next to the program, then on PATH".
FFMPEG_PATH = ""
FFPROBE_PATH = ""

FFMPEG_LOGLEVEL = "error"

OUTPUT_EXTENSION = ".mkv"

VIDEO_EXTENSIONS = ('.mp4', '.mkv', '.avi', '.mov', '.flv', '.wmv')
AUDIO_EXTENSIONS = ('.mp3', '.wav', '.aac', '.mp4', '.mkv', '.avi', '.flac')

# Seconds between two drains of the merge log channel while the live panel is shown.
POLL_INTERVAL = 0.1

LOG_DIR = "logs/"
LOG_FILE = "audio_merger.log"
LOG_FFMPEG_DEBUG = "ffmpeg_debug.log"


_STRING_KEYS = (
    "VERSION", "PREFERRED_LANGUAGE", "DUPLICATE_LANGUAGE_POLICY", "KEEP_VIDEO_AUDIO_LANGUAGE",
    "FFMPEG_PATH", "FFPROBE_PATH", "FFMPEG_LOGLEVEL", "OUTPUT_EXTENSION",
    "LOG_DIR", "LOG_FILE", "LOG_FFMPEG_DEBUG",
)

DUPLICATE_LANGUAGE_POLICIES = ("first", "ask")


#! ---- Helper functions to load and override config from JSON file ---- !#

def _get_config_path() -> str:
    """Get the path to the config.json file."""
    if getattr(sys, "frozen", False):
        base = os.path.dirname(sys.executable)
    else:
        base = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
    return os.path.join(base, "config.json")


def _defaults() -> Dict[str, Any]:
    return {
        "VERSION": VERSION,
        "PREFERRED_LANGUAGE": PREFERRED_LANGUAGE,
        "DUPLICATE_LANGUAGE_POLICY": DUPLICATE_LANGUAGE_POLICY,
        "KEEP_VIDEO_AUDIO_LANGUAGE": KEEP_VIDEO_AUDIO_LANGUAGE,
        "FFMPEG_PATH": FFMPEG_PATH,
        "FFPROBE_PATH": FFPROBE_PATH,
        "FFMPEG_LOGLEVEL": FFMPEG_LOGLEVEL,
        "OUTPUT_EXTENSION": OUTPUT_EXTENSION,
        "VIDEO_EXTENSIONS": list(VIDEO_EXTENSIONS),
        "AUDIO_EXTENSIONS": list(AUDIO_EXTENSIONS),
        "POLL_INTERVAL": POLL_INTERVAL,
        "LOG_DIR": LOG_DIR,
        "LOG_FILE": LOG_FILE,
        "LOG_FFMPEG_DEBUG": LOG_FFMPEG_DEBUG,
    }


def _write_default_config(path: str) -> None:
    """Write the default configuration to a JSON file."""
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(_defaults(), fh, indent=2, ensure_ascii=False)
    except Exception:
        pass


def _load_json_config():
    """Load configuration overrides from a JSON file."""
    path = _get_config_path()
    if not os.path.exists(path):
        _write_default_config(path)
        return
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except Exception:
        return
    if not isinstance(data, dict):
        return

    global VIDEO_EXTENSIONS, AUDIO_EXTENSIONS, POLL_INTERVAL, DUPLICATE_LANGUAGE_POLICY

    module = sys.modules[__name__]
    for key in _STRING_KEYS:
        if isinstance(data.get(key), str):
            setattr(module, key, data.get(key))

    if DUPLICATE_LANGUAGE_POLICY not in DUPLICATE_LANGUAGE_POLICIES:
        DUPLICATE_LANGUAGE_POLICY = "first"

    ve = data.get("VIDEO_EXTENSIONS")
    if isinstance(ve, (list, tuple)) and ve:
        VIDEO_EXTENSIONS = tuple(str(e).lower() for e in ve)

    ae = data.get("AUDIO_EXTENSIONS")
    if isinstance(ae, (list, tuple)) and ae:
        AUDIO_EXTENSIONS = tuple(str(e).lower() for e in ae)

    pi = data.get("POLL_INTERVAL")
    if pi is not None:
        try:
            value = float(pi)
            if value > 0:
                POLL_INTERVAL = value
        except Exception:
            pass

_load_json_config()
