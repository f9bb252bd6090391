"""
Fixed-duration block building.

Blocks sit on an absolute 20-second grid. Windows without speech are skipped
and never numbered, so block ids are always 1..N without gaps.
"""

import logging
import math
from collections.abc import Sequence

from .config import BLOCK_DURATION
from .errors import EmptyTranscriptError
from .models import TranscriptBlock, WordTiming
from .timeline import join_words

logger = logging.getLogger("clipper")


def align_block_start(t: float, block_duration: float = BLOCK_DURATION) -> float:
    """Largest multiple of block_duration that is <= t (zero for t <= 0)."""
    if t <= 0:
        return 0.0
    return math.floor(t / block_duration) * block_duration


def build_fixed_blocks(
    timeline: Sequence[WordTiming], block_duration: float = BLOCK_DURATION
) -> list[TranscriptBlock]:
    """Partition a sorted word timeline into grid-aligned blocks."""
    if not timeline:
        raise EmptyTranscriptError("Cannot build blocks from an empty word timeline.")

    blocks: list[TranscriptBlock] = []
    tokens: list[str] = []
    block_start = align_block_start(timeline[0].start, block_duration)
    block_end = block_start + block_duration
    block_last_end = block_start

    def flush() -> None:
        text = join_words(tokens).strip()
        tokens.clear()
        if not text:
            return
        end = block_last_end if block_last_end > block_start else block_start + block_duration
        blocks.append(TranscriptBlock(id=len(blocks) + 1, start=block_start, end=end, text=text))

    for word in timeline:
        while word.start >= block_end:
            flush()
            block_start = block_end
            block_end = block_start + block_duration
            block_last_end = block_start
        tokens.append(word.text)
        if word.end > block_last_end:
            block_last_end = word.end

    flush()

    if not blocks:
        raise EmptyTranscriptError(
            "Transcript could not be flattened because all entries were empty."
        )
    logger.debug(f"Built {len(blocks)} blocks of {block_duration:.0f}s from {len(timeline)} words")
    return blocks
