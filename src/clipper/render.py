"""
Transcript rendering.

Two renderings are produced from the word timeline:

- the block document fed to the story segmentation prompt, where each block
  line shows a 20-second window shifted back by 3 seconds per block so the
  model sees a little context from the previous block;
- arbitrary [start, end) windows, used for boundary refinement prompts and
  for the transcript excerpts saved next to cut clips.
"""

import logging
from collections.abc import Sequence

from .blocks import build_fixed_blocks
from .config import BLOCK_DURATION, DISPLAY_OVERLAP, MAX_TOPIC_HINTS, MIN_SPAN
from .errors import EmptyTranscriptError
from .insights import Insights, TranscriptEntry
from .metadata import attach_metadata
from .models import TranscriptBlock, TranscriptDocument, WordTiming
from .timeline import build_word_timeline, join_words, resolve_entry_range
from .timestamps import format_hms

logger = logging.getLogger("clipper")


def build_metadata_suffix(block: TranscriptBlock) -> str:
    """Render '(speaker=.., sentiment=.., topic hints: "a", "b")' or ''."""
    parts: list[str] = []
    if block.speaker and block.speaker.strip():
        parts.append(f"speaker={block.speaker.strip()}")
    if block.sentiment and block.sentiment.strip():
        parts.append(f"sentiment={block.sentiment.strip()}")
    hints = [h.strip() for h in block.topic_hints if h and h.strip()][:MAX_TOPIC_HINTS]
    if hints:
        parts.append("topic hints: " + ", ".join(f'"{h}"' for h in hints))
    if not parts:
        return ""
    return f"({', '.join(parts)})"


def extract_window_text(
    timeline: Sequence[WordTiming], index: int, start: float, end: float
) -> tuple[str, int]:
    """Join words overlapping [start, end), resuming from a cursor.

    Windows must be visited in increasing time order. The returned cursor
    points at the last word scanned; the next call steps back only over words
    that still reach into its window.
    """
    cursor = max(0, index)
    while cursor > 0 and timeline[cursor - 1].end > start:
        cursor -= 1

    tokens: list[str] = []
    while cursor < len(timeline):
        word = timeline[cursor]
        if word.start >= end:
            break
        if word.end > start:
            tokens.append(word.text)
        cursor += 1
    return join_words(tokens), max(0, cursor - 1)


def format_blocks(blocks: Sequence[TranscriptBlock], timeline: Sequence[WordTiming]) -> str:
    """Render the block document with overlapping preview windows."""
    if not blocks or not timeline:
        return ""

    last_end = timeline[-1].end
    base_start = blocks[0].start
    cursor = 0
    lines: list[str] = []

    for block in blocks:
        shift = DISPLAY_OVERLAP * (block.id - 1)
        window_start = min(max(0.0, block.start - shift), last_end)
        window_end = min(window_start + BLOCK_DURATION, last_end)
        if window_end <= window_start:
            window_start, window_end = block.start, block.end

        text, cursor = extract_window_text(timeline, cursor, window_start, window_end)
        if not text:
            text = block.text

        display_start = max(0.0, window_start - base_start)
        display_end = display_start + max(0.0, window_end - window_start)

        line = f"[ID:{block.id}][{format_hms(display_start)}-{format_hms(display_end)}]"
        metadata = build_metadata_suffix(block)
        if metadata:
            line += f" {metadata}"
        lines.append(f"{line} {text}")

    return "\n".join(lines) + "\n"


def sanitize_line(text: str | None) -> str:
    """Single-line text with double quotes swapped for single quotes."""
    if not text:
        return ""
    return text.replace("\r", " ").replace("\n", " ").strip().replace('"', "'")


def normalize_window(start: float, end: float, last_end: float) -> tuple[float, float] | None:
    """Swap, clamp to [0, last_end] and widen an empty window to one second."""
    if end < start:
        start, end = end, start
    start = min(max(0.0, start), last_end)
    end = min(max(0.0, end), last_end)
    if end <= start:
        end = min(start + MIN_SPAN, last_end)
    if end <= start:
        return None
    return start, end


def render_window(
    entries: Sequence[TranscriptEntry],
    timeline: Sequence[WordTiming],
    start: float,
    end: float,
) -> str:
    """Render transcript lines overlapping a window, offsets relative to its start."""
    if not timeline:
        return ""
    window = normalize_window(start, end, timeline[-1].end)
    if window is None:
        return ""
    w_start, w_end = window

    lines: list[str] = []
    for entry in entries:
        text = sanitize_line(entry.text)
        if not text:
            continue
        rng = resolve_entry_range(entry)
        if rng is None:
            continue
        e_start, e_end = rng
        if e_end <= w_start or e_start >= w_end:
            continue
        offset = max(0.0, e_start - w_start)
        lines.append(f'[+{offset:.1f}s] "{text}"')

    if not lines:
        tokens = [w.text for w in timeline if w.end > w_start and w.start < w_end]
        fallback = sanitize_line(join_words(tokens))
        if fallback:
            lines.append(f'[+00.0s] "{fallback}"')

    return "\n".join(lines)


def _require_transcript(insights: Insights):
    video = insights.first_video()
    if not video.transcript:
        raise EmptyTranscriptError("Transcript entries are empty.")
    return video


def flatten(insights: Insights) -> TranscriptDocument:
    """Build the block-structured transcript document for the first video."""
    video = _require_transcript(insights)
    timeline = build_word_timeline(video.transcript)
    blocks = build_fixed_blocks(timeline)
    enriched = attach_metadata(blocks, timeline, video)
    text = format_blocks(enriched, timeline)
    logger.info(
        f"Flattened transcript: {len(video.transcript)} entries, {len(timeline)} words, "
        f"{len(enriched)} blocks"
    )
    return TranscriptDocument(text=text, blocks=tuple(enriched))


def build_window_excerpt(insights: Insights, start: float, end: float) -> str:
    """Window rendering straight from an insights payload ('' when nothing to show)."""
    video = insights.first_video()
    if not video.transcript:
        return ""
    try:
        timeline = build_word_timeline(video.transcript)
    except EmptyTranscriptError:
        return ""
    return render_window(video.transcript, timeline, start, end)
