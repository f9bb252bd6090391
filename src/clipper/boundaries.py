"""
Boundary refinement and clip finalization.

Coarse story boundaries fall on 20-second block edges. For each pair of
neighbouring stories the decision service is shown the transcript of their
transition window and asked where the topic actually changes. Stories are
refined strictly left to right: each step reads the previous story's bounds
as already adjusted by the step before it.
"""

import logging
from collections.abc import Sequence
from typing import Protocol

from .config import MIN_SPAN, TAIL_PADDING, TRANSITION_WINDOW
from .errors import BoundaryRejected
from .insights import Insights
from .models import ClipRange, NewsClipPlan, StoryPlanMaterial
from .render import render_window
from .timeline import build_word_timeline

logger = logging.getLogger("clipper")


class BoundaryLocator(Protocol):
    def locate_boundary(
        self, excerpt: str, window: ClipRange, previous_title: str, next_title: str
    ) -> float | None: ...


def validate_boundary(
    offset: float | None,
    window: ClipRange,
    previous: StoryPlanMaterial,
    current: StoryPlanMaterial,
) -> float:
    """Convert a window offset to an absolute boundary, or raise BoundaryRejected."""
    if offset is None:
        raise BoundaryRejected("No boundary offset returned.")
    if offset < 0 or offset > TRANSITION_WINDOW:
        raise BoundaryRejected(f"Offset {offset:.3f}s outside [0, {TRANSITION_WINDOW:.0f}].")
    boundary = window.start + offset
    if boundary < window.start or boundary > window.end:
        raise BoundaryRejected(
            f"Boundary {boundary:.3f}s outside window [{window.start:.3f}, {window.end:.3f}]."
        )
    if boundary <= previous.start or boundary >= current.end:
        raise BoundaryRejected(
            f"Boundary {boundary:.3f}s not strictly inside ({previous.start:.3f}, {current.end:.3f})."
        )
    return boundary


def refine_boundaries(
    materials: Sequence[StoryPlanMaterial], insights: Insights, locator: BoundaryLocator
) -> int:
    """Move shared story boundaries in place; return how many were adjusted."""
    if len(materials) < 2:
        return 0

    video = insights.first_video()
    timeline = build_word_timeline(video.transcript)
    adjusted = 0

    for index in range(1, len(materials)):
        previous = materials[index - 1]
        current = materials[index]
        window = current.transition_window
        if window is None:
            continue

        excerpt = render_window(video.transcript, timeline, window.start, window.end)
        if not excerpt.strip():
            logger.debug(f"Story {index + 1}: empty transition excerpt, keeping coarse boundary")
            continue

        previous_title = previous.title or f"Story {index}"
        next_title = current.title or f"Story {index + 1}"
        offset = locator.locate_boundary(excerpt, window, previous_title, next_title)
        try:
            boundary = validate_boundary(offset, window, previous, current)
        except BoundaryRejected as e:
            logger.debug(f"Story {index + 1}: boundary rejected ({e})")
            continue

        logger.info(
            f"Story {index + 1}: boundary {current.start:.2f}s -> {boundary:.2f}s "
            f"('{previous_title}' | '{next_title}')"
        )
        previous.end = boundary
        current.start = boundary
        adjusted += 1

    return adjusted


def finalize_plans(materials: Sequence[StoryPlanMaterial]) -> list[NewsClipPlan]:
    """Freeze refined stories into published clip plans."""
    plans: list[NewsClipPlan] = []
    for material in materials:
        start = max(0.0, material.start)
        end = material.end if material.end > start else start + MIN_SPAN
        plans.append(
            NewsClipPlan(
                title=material.title,
                range=ClipRange(start=start, end=end),
                transition_window=material.transition_window,
            )
        )
    return plans


def apply_tail_padding(clip: ClipRange, padding: float = TAIL_PADDING) -> ClipRange:
    """Extend the end so trailing speech is not clipped; neighbours may overlap."""
    if padding <= 0:
        return clip
    return ClipRange(start=clip.start, end=clip.end + padding)
