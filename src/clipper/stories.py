"""
Story planning: turn a block -> story assignment into ordered stories with
transition windows between neighbours.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from .config import MIN_SPAN, TITLE_WORDS, TRANSITION_LEAD_IN, TRANSITION_WINDOW
from .errors import EmptyTranscriptError, InconsistentAssignmentError
from .insights import Insights, resolve_appearance_end, resolve_appearance_start
from .models import ClipRange, NewsClipPlan, StoryPlanMaterial, TranscriptBlock, TranscriptDocument

logger = logging.getLogger("clipper")

_TITLE_STRIP = "\"'.,;:!?"

Assignment = Mapping[int, int] | Iterable[tuple[int, int]]


def _pairs(assignments: Assignment) -> list[tuple[int, int]]:
    if isinstance(assignments, Mapping):
        return list(assignments.items())
    return list(assignments)


def validate_assignments(
    document: TranscriptDocument, assignments: Assignment
) -> list[tuple[int, int]]:
    """Check that every block is assigned exactly once; return the pairs."""
    pairs = _pairs(assignments)
    if not pairs:
        raise InconsistentAssignmentError("Story assignment list is empty.")

    known = {block.id for block in document.blocks}
    seen: set[int] = set()
    for block_id, _story_id in pairs:
        if block_id not in known:
            raise InconsistentAssignmentError(f"Assignment references unknown block id {block_id}.")
        if block_id in seen:
            raise InconsistentAssignmentError(f"Duplicate assignment for block id {block_id}.")
        seen.add(block_id)

    missing = sorted(known - seen)
    if missing:
        raise InconsistentAssignmentError(
            f"Not every block was assigned to a story (missing: {', '.join(map(str, missing))})."
        )
    return pairs


def build_clip_title(blocks: Sequence[TranscriptBlock], story_id: int) -> str:
    """First few words of the story text, or story-NN."""
    source = " ".join(block.text for block in blocks)
    words: list[str] = []
    for raw in source.split():
        word = raw.strip().strip(_TITLE_STRIP)
        if word:
            words.append(word)
        if len(words) >= TITLE_WORDS:
            break
    if not words:
        return f"story-{story_id:02d}"
    return " ".join(words)


def build_transition_window(
    previous_blocks: Sequence[TranscriptBlock], next_blocks: Sequence[TranscriptBlock]
) -> ClipRange | None:
    """Span from just before the previous story ends to ~20s into the next one."""
    if not previous_blocks or not next_blocks:
        return None

    window_start = max(previous_blocks[0].start, previous_blocks[-1].end - TRANSITION_LEAD_IN)

    first_next = next_blocks[0]
    window_end = max(first_next.start + TRANSITION_WINDOW, first_next.end)
    if window_end <= window_start:
        window_end = window_start + MIN_SPAN
    return ClipRange(start=window_start, end=window_end)


def build_story_plan(
    document: TranscriptDocument, assignments: Assignment
) -> list[StoryPlanMaterial]:
    """Group blocks into stories ordered by their earliest block."""
    pairs = validate_assignments(document, assignments)
    lookup = {block.id: block for block in document.blocks}

    groups: dict[int, list[TranscriptBlock]] = {}
    for block_id, story_id in pairs:
        groups.setdefault(story_id, []).append(lookup[block_id])

    ordered = sorted(groups.values(), key=lambda blocks: min(b.start for b in blocks))

    materials: list[StoryPlanMaterial] = []
    for normalized_id, group in enumerate(ordered, 1):
        story_blocks = sorted(group, key=lambda b: b.start)
        start = story_blocks[0].start
        end = story_blocks[-1].end
        if end <= start:
            end = start + MIN_SPAN
        materials.append(
            StoryPlanMaterial(
                title=build_clip_title(story_blocks, normalized_id),
                blocks=story_blocks,
                start=start,
                end=end,
            )
        )

    for prev, cur in zip(materials, materials[1:]):
        cur.transition_window = build_transition_window(prev.blocks, cur.blocks)

    logger.info(f"Planned {len(materials)} stories from {len(pairs)} block assignments")
    return materials


def plan_from_topic_appearances(insights: Insights) -> list[NewsClipPlan]:
    """One clip per analysis topic appearance, ordered by start time."""
    video = insights.first_video()
    plans: list[NewsClipPlan] = []
    for topic in video.topics:
        for appearance in topic.appearances:
            start = (
                max(0.0, appearance.start_seconds)
                if appearance.start_seconds is not None
                else resolve_appearance_start(appearance)
            )
            end = (
                max(0.0, appearance.end_seconds)
                if appearance.end_seconds is not None
                else resolve_appearance_end(appearance)
            )
            if start is None or end is None:
                continue
            if end <= start:
                end = start + MIN_SPAN
            plans.append(NewsClipPlan(title=topic.name.strip(), range=ClipRange(start, end)))

    if not plans:
        raise EmptyTranscriptError("Insights topics did not contain usable clip segments.")

    plans.sort(key=lambda p: p.range.start)
    return [
        p if p.title else NewsClipPlan(title=f"vi-story-{i:02d}", range=p.range)
        for i, p in enumerate(plans, 1)
    ]
