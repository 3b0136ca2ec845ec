"""WebVTT transcript parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

_TIME_LINE = re.compile(
    r"(?P<start>(?:\d+:)?\d{2}:\d{2}\.\d{1,3})\s+-->\s+(?P<end>(?:\d+:)?\d{2}:\d{2}\.\d{1,3})"
)
_VOICE_TAG = re.compile(r"^<v(?:\.[^\s>]*)?\s+(?P<name>[^>]+)>(?P<text>.*?)(?:</v>)?$")

MAX_SPEAKER_PREFIX = 60
MAX_SPEAKER_SPACES = 4


@dataclass(frozen=True)
class VttCue:
    """A single cue. Times are seconds from the start of the recording."""

    start: float
    end: float
    text: str
    speaker_name: Optional[str] = None
    speaker_email: Optional[str] = None


def parse_timestamp(value: str) -> float:
    """``"01:02:03.500"`` or ``"02:03.500"`` to seconds."""
    parts = value.split(":")
    seconds = float(parts[-1])
    minutes = int(parts[-2])
    hours = int(parts[-3]) if len(parts) > 2 else 0
    return hours * 3600 + minutes * 60 + seconds


def _split_speaker(line: str) -> tuple[Optional[str], str]:
    voice = _VOICE_TAG.match(line)
    if voice:
        return voice.group("name").strip(), voice.group("text").strip()

    if line.startswith("[") and "]" in line:
        end_at = line.index("]")
        if end_at > 1:
            return line[1:end_at].strip(), line[end_at + 1 :].lstrip("-: ")

    if ":" in line and not line.startswith("http"):
        idx = line.index(":")
        if 0 < idx <= MAX_SPEAKER_PREFIX:
            maybe_name = line[:idx].strip()
            if maybe_name and sum(1 for c in maybe_name if c.isspace()) <= MAX_SPEAKER_SPACES:
                return maybe_name, line[idx + 1 :].strip()

    return None, line


def parse_vtt(vtt: str) -> List[VttCue]:
    """
    Parse a WebVTT document into cues.

    Speaker detection supports ``<v Name>`` voice tags, a leading ``[Name]`` and a
    ``Name: text`` prefix. Cues without any text are dropped.
    """
    lines = vtt.replace("\r", "").split("\n")
    cues: List[VttCue] = []
    i = 0
    while i < len(lines):
        match = _TIME_LINE.search(lines[i])
        i += 1
        if not match:
            continue

        speaker: Optional[str] = None
        parts: List[str] = []
        while i < len(lines) and lines[i].strip():
            line = lines[i].strip()
            if speaker is None:
                speaker, line = _split_speaker(line)
            parts.append(line)
            i += 1

        text = " ".join(parts).strip()
        if text:
            cues.append(
                VttCue(
                    start=parse_timestamp(match.group("start")),
                    end=parse_timestamp(match.group("end")),
                    text=text,
                    speaker_name=speaker,
                )
            )
    return cues
