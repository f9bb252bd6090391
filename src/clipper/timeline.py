"""
Word timeline building: flatten transcript entries, instances and words into
one chronologically sorted list of timed words.
"""

import logging
import unicodedata
from collections.abc import Iterable, Sequence

from .errors import EmptyTranscriptError
from .insights import TranscriptEntry, TranscriptInstance, TranscriptWord
from .models import WordTiming
from .timestamps import parse_timestamp

logger = logging.getLogger("clipper")


def resolve_entry_times(entry: TranscriptEntry) -> tuple[float, float]:
    """Entry start defaults to zero, entry end to the entry start."""
    start = parse_timestamp(entry.start_time)
    if start is None:
        start = 0.0
    end = parse_timestamp(entry.end_time)
    if end is None:
        end = start
    return start, end


def resolve_instance_times(
    instance: TranscriptInstance, entry_start: float, entry_end: float
) -> tuple[float, float]:
    start = parse_timestamp(instance.start)
    end = parse_timestamp(instance.end)
    return (
        entry_start if start is None else start,
        entry_end if end is None else end,
    )


def resolve_word_times(
    word: TranscriptWord, instance_start: float, instance_end: float
) -> tuple[float, float]:
    """Prefer startTime/endTime, then start/end, then the instance bounds."""
    start = parse_timestamp(word.start_time or word.start)
    end = parse_timestamp(word.end_time or word.end)
    return (
        instance_start if start is None else start,
        instance_end if end is None else end,
    )


def resolve_word_text(word: TranscriptWord) -> str | None:
    if word.text and word.text.strip():
        return word.text
    return word.word


def _make_word(
    start: float, end: float, text: str | None, entry: TranscriptEntry
) -> WordTiming | None:
    normalized = (text or "").strip()
    if not normalized:
        return None
    return WordTiming(
        start=start,
        end=max(end, start),
        text=normalized,
        speaker_id=entry.speaker_id,
        speaker_name=entry.speaker,
        sentiment=entry.sentiment,
    )


def _entry_words(entry: TranscriptEntry) -> Iterable[WordTiming | None]:
    entry_start, entry_end = resolve_entry_times(entry)
    if not entry.instances:
        yield _make_word(entry_start, entry_end, entry.text, entry)
        return

    for instance in entry.instances:
        inst_start, inst_end = resolve_instance_times(instance, entry_start, entry_end)
        if not instance.words:
            yield _make_word(inst_start, inst_end, entry.text, entry)
            continue
        for word in instance.words:
            w_start, w_end = resolve_word_times(word, inst_start, inst_end)
            yield _make_word(w_start, w_end, resolve_word_text(word), entry)


def build_word_timeline(entries: Sequence[TranscriptEntry]) -> list[WordTiming]:
    """Flatten transcript entries into timed words sorted by start (stable)."""
    words = [w for entry in entries for w in _entry_words(entry) if w is not None]
    if not words:
        raise EmptyTranscriptError(
            "Transcript could not be flattened because all entries were empty."
        )
    words.sort(key=lambda w: w.start)
    logger.debug(f"Flattened {len(entries)} transcript entries into {len(words)} timed words")
    return words


def resolve_entry_range(entry: TranscriptEntry) -> tuple[float, float] | None:
    """Best-effort [start, end] of an entry, borrowing from instances and words."""
    start = parse_timestamp(entry.start_time)
    end = parse_timestamp(entry.end_time)

    for instance in entry.instances:
        if start is None:
            start = parse_timestamp(instance.start)
        if end is None:
            end = parse_timestamp(instance.end)
        for word in instance.words:
            if start is None:
                start = parse_timestamp(word.start_time or word.start)
            if end is None:
                end = parse_timestamp(word.end_time or word.end)
            if start is not None and end is not None:
                break
        if start is not None and end is not None:
            break

    if start is None:
        start = end
    if end is None:
        end = start
    if start is None or end is None:
        return None
    return start, max(start, end)


def is_punctuation_token(token: str) -> bool:
    """True when every character of the token is punctuation."""
    return bool(token) and all(unicodedata.category(ch).startswith("P") for ch in token)


def join_words(tokens: Iterable[str]) -> str:
    """Space-join tokens, attaching punctuation-only tokens to the previous word."""
    out = ""
    for token in tokens:
        piece = (token or "").strip()
        if not piece:
            continue
        if not out:
            out = piece
        elif is_punctuation_token(piece):
            out += piece
        else:
            out += " " + piece
    return out
