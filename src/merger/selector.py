"""Picking one audio stream out of a probe result."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
from core import config
from .errors import NoAudioStreams, SelectionRequired
from .models import AudioStream


@dataclass(frozen=True)
class NoneAvailable:
    pass


@dataclass(frozen=True)
class Selected:
    stream: AudioStream


@dataclass(frozen=True)
class AmbiguousRequiresUserChoice:
    streams: Tuple[AudioStream, ...]


def select(streams: Sequence[AudioStream], preferred_tag: Optional[str] = None, duplicate_policy: Optional[str] = None):
    """Choose a stream without asking the user, if that is possible.

    A single stream is always taken. Otherwise a unique case-insensitive match
    on `preferred_tag` wins. When several streams share the preferred tag,
    `duplicate_policy` decides: "first" takes the first one in probe order,
    "ask" leaves the choice to the user. Defaults to
    `config.DUPLICATE_LANGUAGE_POLICY`.
    """
    streams = tuple(streams)
    if not streams:
        return NoneAvailable()
    if len(streams) == 1:
        return Selected(streams[0])

    if preferred_tag:
        wanted = preferred_tag.strip().lower()
        matches = [s for s in streams if s.language_tag.lower() == wanted]
        if len(matches) == 1:
            return Selected(matches[0])
        if matches:
            policy = duplicate_policy or config.DUPLICATE_LANGUAGE_POLICY
            if policy == "first":
                return Selected(matches[0])

    return AmbiguousRequiresUserChoice(streams)


def resolve_choice(outcome, choice: Optional[int] = None) -> int:
    """Stream index to merge, given a selection outcome and an optional manual pick.

    A manual pick overrides an automatic selection. For an ambiguous outcome
    the pick must be one of the listed streams.
    """
    if isinstance(outcome, NoneAvailable):
        raise NoAudioStreams("No audio streams found in the external file")

    candidates = (outcome.stream,) if isinstance(outcome, Selected) else outcome.streams
    if choice is not None:
        if isinstance(outcome, Selected) or any(s.stream_index == choice for s in candidates):
            return choice
        raise SelectionRequired(f"Stream index {choice} is not an audio stream of the external file")
    if isinstance(outcome, Selected):
        return outcome.stream.stream_index
    raise SelectionRequired("Several audio streams found; pick one")
