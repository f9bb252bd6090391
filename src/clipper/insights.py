"""
Insights payload model and loader.

The analysis service returns loosely typed JSON: the same field may arrive as
a string, a number or a boolean, and most fields are optional. Values are
normalized here, at the boundary, so the rest of the pipeline only sees
strings, floats and lists.
"""

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import EmptyTranscriptError
from .models import HintOccurrence
from .timestamps import parse_timestamp

logger = logging.getLogger("clipper")


def flexible_str(value: Any) -> str | None:
    """Normalize a JSON scalar (string, number, bool) to a string."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def flexible_float(value: Any) -> float | None:
    """Normalize a JSON number (or numeric string) to a finite float."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _items(data: dict, key: str) -> list[dict]:
    value = data.get(key) if isinstance(data, dict) else None
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@dataclass(frozen=True)
class TranscriptWord:
    text: str = ""
    word: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    start: str | None = None
    end: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "TranscriptWord":
        return cls(
            text=flexible_str(data.get("text")) or "",
            word=flexible_str(data.get("word")),
            start_time=flexible_str(data.get("startTime")),
            end_time=flexible_str(data.get("endTime")),
            start=flexible_str(data.get("start")),
            end=flexible_str(data.get("end")),
        )


@dataclass(frozen=True)
class TranscriptInstance:
    start: str | None = None
    end: str | None = None
    words: tuple[TranscriptWord, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "TranscriptInstance":
        return cls(
            start=flexible_str(data.get("start")),
            end=flexible_str(data.get("end")),
            words=tuple(TranscriptWord.from_dict(w) for w in _items(data, "words")),
        )


@dataclass(frozen=True)
class TranscriptEntry:
    text: str = ""
    speaker_id: str | None = None
    speaker: str | None = None
    sentiment: str | None = None
    instances: tuple[TranscriptInstance, ...] = ()
    start_time: str | None = None
    end_time: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "TranscriptEntry":
        return cls(
            text=flexible_str(data.get("text")) or "",
            speaker_id=flexible_str(data.get("speakerId")),
            speaker=flexible_str(data.get("speaker")),
            sentiment=flexible_str(data.get("sentiment")),
            instances=tuple(TranscriptInstance.from_dict(i) for i in _items(data, "instances")),
            start_time=flexible_str(data.get("startTime")),
            end_time=flexible_str(data.get("endTime")),
        )


@dataclass(frozen=True)
class Speaker:
    id: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class Appearance:
    start_time: str | None = None
    end_time: str | None = None
    start: str | None = None
    end: str | None = None
    start_seconds: float | None = None
    end_seconds: float | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Appearance":
        return cls(
            start_time=flexible_str(data.get("startTime")),
            end_time=flexible_str(data.get("endTime")),
            start=flexible_str(data.get("start")),
            end=flexible_str(data.get("end")),
            start_seconds=flexible_float(data.get("startSeconds")),
            end_seconds=flexible_float(data.get("endSeconds")),
        )


@dataclass(frozen=True)
class NamedAppearances:
    """A topic or keyword with the time ranges where it appears."""

    name: str = ""
    appearances: tuple[Appearance, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "NamedAppearances":
        return cls(
            name=flexible_str(data.get("name")) or "",
            appearances=tuple(Appearance.from_dict(a) for a in _items(data, "appearances")),
        )


@dataclass(frozen=True)
class VideoInsight:
    transcript: tuple[TranscriptEntry, ...] = ()
    speakers: tuple[Speaker, ...] = ()
    keywords: tuple[NamedAppearances, ...] = ()
    topics: tuple[NamedAppearances, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "VideoInsight":
        return cls(
            transcript=tuple(TranscriptEntry.from_dict(e) for e in _items(data, "transcript")),
            speakers=tuple(
                Speaker(id=flexible_str(s.get("id")), name=flexible_str(s.get("name")))
                for s in _items(data, "speakers")
            ),
            keywords=tuple(NamedAppearances.from_dict(k) for k in _items(data, "keywords")),
            topics=tuple(NamedAppearances.from_dict(t) for t in _items(data, "topics")),
        )


@dataclass(frozen=True)
class Insights:
    """Top-level analysis payload: one record per indexed video."""

    videos: tuple[VideoInsight, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "Insights":
        videos = []
        for video in _items(data, "videos"):
            insight = video.get("insights")
            videos.append(VideoInsight.from_dict(insight if isinstance(insight, dict) else {}))
        return cls(videos=tuple(videos))

    def first_video(self) -> VideoInsight:
        """Return the first video record, raising when the payload has none."""
        if not self.videos:
            raise EmptyTranscriptError("Insights payload does not contain any videos.")
        return self.videos[0]


def load_insights(path: str | Path) -> Insights:
    """Read an insights JSON file from disk."""
    p = Path(path)
    if not p.exists():
        msg = f"Insights file not found: {p}"
        raise FileNotFoundError(msg)
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        msg = f"Insights file '{p}' does not contain a JSON object."
        raise ValueError(msg)
    insights = Insights.from_dict(data)
    logger.debug(f"Loaded insights from {p} ({len(insights.videos)} videos)")
    return insights


def resolve_appearance_start(appearance: Appearance) -> float | None:
    """Clock string first, then its alias, then the numeric seconds field."""
    start = parse_timestamp(appearance.start_time or appearance.start)
    if start is None and appearance.start_seconds is not None:
        start = max(0.0, appearance.start_seconds)
    return start


def resolve_appearance_end(appearance: Appearance) -> float | None:
    end = parse_timestamp(appearance.end_time or appearance.end)
    if end is None and appearance.end_seconds is not None:
        end = max(0.0, appearance.end_seconds)
    return end


def resolve_appearance_range(appearance: Appearance) -> tuple[float, float] | None:
    """Range of a hint appearance; a missing or non-positive span becomes 1 second."""
    start = resolve_appearance_start(appearance)
    if start is None:
        return None
    end = resolve_appearance_end(appearance)
    if end is None or end <= start:
        end = start + 1.0
    return start, end


def build_hint_occurrences(video: VideoInsight) -> list[HintOccurrence]:
    """Collect time-ranged topic and keyword names (topics first)."""
    hints: list[HintOccurrence] = []
    for named in (*video.topics, *video.keywords):
        name = named.name.strip()
        if not name:
            continue
        for appearance in named.appearances:
            rng = resolve_appearance_range(appearance)
            if rng is None:
                continue
            hints.append(HintOccurrence(start=rng[0], end=rng[1], text=name))
    return hints
