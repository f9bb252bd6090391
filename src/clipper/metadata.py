"""
Block metadata: dominant speaker, dominant sentiment and topic hints.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace

from .config import MAX_TOPIC_HINTS
from .insights import Speaker, VideoInsight, build_hint_occurrences
from .models import HintOccurrence, TranscriptBlock, WordTiming

logger = logging.getLogger("clipper")


def overlaps(start: float, end: float, window_start: float, window_end: float) -> bool:
    """Strict overlap of [start, end) with [window_start, window_end)."""
    return start < window_end and end > window_start


def build_speaker_map(speakers: Iterable[Speaker]) -> dict[str, str]:
    """Speaker id -> name, keyed case-insensitively; incomplete records are ignored."""
    mapping: dict[str, str] = {}
    for speaker in speakers:
        if not (speaker.id and speaker.id.strip() and speaker.name and speaker.name.strip()):
            continue
        mapping.setdefault(speaker.id.strip().casefold(), speaker.name.strip())
    return mapping


def resolve_speaker_label(word: WordTiming, speaker_map: Mapping[str, str]) -> str | None:
    speaker_id = (word.speaker_id or "").strip()
    if speaker_id:
        mapped = speaker_map.get(speaker_id.casefold())
        if mapped:
            return mapped
    if word.speaker_name and word.speaker_name.strip():
        return word.speaker_name
    if speaker_id:
        return f"Speaker {speaker_id}"
    return None


def most_common_label(labels: Iterable[str | None]) -> str | None:
    """Most frequent label, compared case-insensitively.

    Ties go to the case-insensitive lexical minimum; the first spelling seen
    is the one returned.
    """
    counts: dict[str, int] = {}
    display: dict[str, str] = {}
    for label in labels:
        if label is None:
            continue
        normalized = label.strip()
        if not normalized:
            continue
        key = normalized.casefold()
        counts[key] = counts.get(key, 0) + 1
        display.setdefault(key, normalized)
    if not counts:
        return None
    best = min(counts, key=lambda k: (-counts[k], k))
    return display[best]


def select_topic_hints(
    block: TranscriptBlock, hints: Sequence[HintOccurrence], limit: int = MAX_TOPIC_HINTS
) -> tuple[str, ...]:
    selected: list[str] = []
    seen: set[str] = set()
    for hint in hints:
        if not overlaps(hint.start, hint.end, block.start, block.end):
            continue
        text = hint.text.strip()
        if not text or text.casefold() in seen:
            continue
        seen.add(text.casefold())
        selected.append(text)
        if len(selected) >= limit:
            break
    return tuple(selected)


def attach_metadata(
    blocks: Sequence[TranscriptBlock], timeline: Sequence[WordTiming], video: VideoInsight
) -> list[TranscriptBlock]:
    """Return new blocks carrying speaker, sentiment and topic hints."""
    speaker_map = build_speaker_map(video.speakers)
    hints = build_hint_occurrences(video)
    enriched: list[TranscriptBlock] = []
    for block in blocks:
        words = [w for w in timeline if overlaps(w.start, w.end, block.start, block.end)]
        enriched.append(
            replace(
                block,
                speaker=most_common_label(resolve_speaker_label(w, speaker_map) for w in words),
                sentiment=most_common_label(w.sentiment for w in words),
                topic_hints=select_topic_hints(block, hints),
            )
        )
    logger.debug(f"Attached metadata to {len(enriched)} blocks ({len(hints)} hint occurrences)")
    return enriched
