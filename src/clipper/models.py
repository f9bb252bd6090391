"""
Data models for the news clip pipeline.

All times are float seconds from the start of the media.
"""

from dataclasses import dataclass

from .timestamps import parse_timestamp


@dataclass(frozen=True)
class WordTiming:
    """A single spoken word (or untimed phrase) on the flattened timeline."""

    start: float
    end: float
    text: str
    speaker_id: str | None = None
    speaker_name: str | None = None
    sentiment: str | None = None


@dataclass(frozen=True)
class TranscriptBlock:
    """A fixed-duration window of transcript text with attached metadata."""

    id: int
    start: float
    end: float
    text: str
    speaker: str | None = None
    sentiment: str | None = None
    topic_hints: tuple[str, ...] = ()


@dataclass(frozen=True)
class HintOccurrence:
    """A named topic or keyword appearance used to tag blocks."""

    start: float
    end: float
    text: str


@dataclass(frozen=True)
class TranscriptDocument:
    """Rendered block transcript plus the blocks it was rendered from."""

    text: str
    blocks: tuple[TranscriptBlock, ...]


@dataclass(frozen=True)
class ClipRange:
    """A [start, end) span of source media."""

    start: float
    end: float

    def __post_init__(self):
        if self.end <= self.start:
            msg = f"Clip end ({self.end}) must be after clip start ({self.start})."
            raise ValueError(msg)

    @property
    def duration(self) -> float:
        return self.end - self.start

    @classmethod
    def from_strings(cls, start: str | None, end: str | None) -> "ClipRange":
        """Build a range from clock strings, raising ValueError when unusable."""
        start_s = parse_timestamp(start)
        if start_s is None:
            raise ValueError(f"Unable to parse start timestamp '{start}'.")
        end_s = parse_timestamp(end)
        if end_s is None:
            raise ValueError(f"Unable to parse end timestamp '{end}'.")
        return cls(start=start_s, end=end_s)


@dataclass(frozen=True)
class NewsClipPlan:
    """A refined, published story clip."""

    title: str
    range: ClipRange
    transition_window: ClipRange | None = None


@dataclass
class StoryPlanMaterial:
    """Working copy of a story; start/end move only during boundary refinement."""

    title: str
    blocks: list[TranscriptBlock]
    start: float
    end: float
    transition_window: ClipRange | None = None
