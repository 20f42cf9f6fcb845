"""Probe helpers that use ffprobe to discover audio streams."""

import json
from typing import Any, Dict, List, Optional
from core import config
from core.bundle import find_tool
from .errors import MergerError, ProbeError
from .models import AudioStream
from .runner import run_command


def _ffprobe() -> str:
    return find_tool("ffprobe", config.FFPROBE_PATH)


def probe_args(media_path: str) -> List[str]:
    """ffprobe arguments listing index and language of every audio stream as JSON."""
    return [
        "-hide_banner", "-loglevel", "error",
        "-select_streams", "a",
        "-show_entries", "stream=index:stream_tags=language",
        "-of", "json",
        media_path,
    ]


def _language_of(record: Dict[str, Any]) -> str:
    tags = record.get("tags")
    if not isinstance(tags, dict):
        return ""
    for key, value in tags.items():
        if str(key).lower() == "language" and isinstance(value, str):
            return value.strip()
    return ""


def _index_of(record: Dict[str, Any]) -> Optional[int]:
    value = record.get("index")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_stream_listing(text: str, logger=None) -> List[AudioStream]:
    """Turn ffprobe's JSON stream listing into AudioStream values.

    Unknown fields are ignored. Records without a usable index are skipped.
    Empty output and non-JSON output are rejected, and so is a listing whose
    records are all unusable.
    """
    if not text or not text.strip():
        raise ProbeError("ffprobe printed no stream listing")
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ProbeError(f"Unreadable ffprobe output: {e}") from e
    if not isinstance(data, dict):
        raise ProbeError("Unexpected ffprobe output: top level is not an object")

    records = data.get("streams") or []
    if not isinstance(records, list):
        raise ProbeError("Unexpected ffprobe output: 'streams' is not a list")

    streams: List[AudioStream] = []
    seen = set()
    for record in records:
        index = _index_of(record) if isinstance(record, dict) else None
        if index is None:
            if logger:
                logger.warning(f"Skipping stream record without a usable index: {record!r}")
            continue
        if index in seen:
            if logger:
                logger.warning(f"Ignoring duplicate stream index {index}")
            continue
        seen.add(index)
        streams.append(AudioStream(index, _language_of(record)))

    if records and not streams:
        raise ProbeError("ffprobe listed streams but none had an index")
    return streams


def list_audio_streams(file_path: str, logger=None) -> List[AudioStream]:
    """Probe `file_path` and return its audio streams in ffprobe order."""
    if logger:
        logger.info(f"Probing audio streams in: {file_path}")
    try:
        result = run_command(_ffprobe(), probe_args(file_path))
    except MergerError as e:
        raise ProbeError(f"ffprobe failed for {file_path}: {e}") from e

    if logger:
        logger.log_ffmpeg("PROBE", file_path, result.stdout)

    streams = parse_stream_listing(result.stdout, logger)
    if logger:
        for s in streams:
            logger.info(f"Found stream {s.stream_index} with lang \"{s.language}\"")
    return streams


def find_audio_stream(streams: List[AudioStream], language: str) -> Optional[AudioStream]:
    """Return the first stream whose language matches, ignoring case."""
    wanted = (language or "").strip().lower()
    for stream in streams:
        if stream.language_tag.lower() == wanted:
            return stream
    return None
