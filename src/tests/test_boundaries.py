"""
Tests for boundary refinement, finalization and tail padding.
"""

import pytest

from src.clipper.boundaries import (
    apply_tail_padding,
    finalize_plans,
    refine_boundaries,
    validate_boundary,
)
from src.clipper.errors import BoundaryRejected
from src.clipper.insights import Insights
from src.clipper.models import ClipRange, StoryPlanMaterial
from src.clipper.timestamps import format_hms


class FakeLocator:
    """Returns a fixed offset and records what it was asked."""

    def __init__(self, offset):
        self.offset = offset
        self.calls = []

    def locate_boundary(self, excerpt, window, previous_title, next_title):
        self.calls.append((excerpt, window, previous_title, next_title))
        return self.offset


def _materials():
    previous = StoryPlanMaterial(title="Fires", blocks=[], start=0.0, end=40.0)
    current = StoryPlanMaterial(
        title="Weather",
        blocks=[],
        start=40.0,
        end=80.0,
        transition_window=ClipRange(35.0, 60.0),
    )
    return [previous, current]


def test_refine_moves_shared_boundary(broadcast_payload):
    """Test a valid offset moves both neighbours to the same cut point."""
    materials = _materials()
    locator = FakeLocator(8.0)

    adjusted = refine_boundaries(materials, Insights.from_dict(broadcast_payload), locator)

    assert adjusted == 1
    assert materials[0].end == 43.0
    assert materials[1].start == 43.0
    excerpt, window, previous_title, next_title = locator.calls[0]
    assert window == ClipRange(35.0, 60.0)
    assert (previous_title, next_title) == ("Fires", "Weather")
    assert '"Now the weather for the weekend."' in excerpt


@pytest.mark.parametrize("offset", [None, -1.0, 20.5])
def test_refine_ignores_rejected_offsets(broadcast_payload, offset):
    materials = _materials()

    adjusted = refine_boundaries(materials, Insights.from_dict(broadcast_payload), FakeLocator(offset))

    assert adjusted == 0
    assert (materials[0].start, materials[0].end) == (0.0, 40.0)
    assert (materials[1].start, materials[1].end) == (40.0, 80.0)


def test_refine_keeps_boundary_inside_neighbours(broadcast_payload):
    """Boundaries at or before the previous start, or at or after the current end, are ignored."""
    insights = Insights.from_dict(broadcast_payload)

    materials = _materials()
    materials[0].start = 38.0
    assert refine_boundaries(materials, insights, FakeLocator(3.0)) == 0
    assert materials[1].start == 40.0

    materials = _materials()
    materials[1].end = 50.0
    assert refine_boundaries(materials, insights, FakeLocator(15.0)) == 0
    assert materials[0].end == 40.0


def test_refine_single_story_is_noop(broadcast_payload):
    locator = FakeLocator(5.0)
    materials = _materials()[:1]

    assert refine_boundaries(materials, Insights.from_dict(broadcast_payload), locator) == 0
    assert locator.calls == []


def test_validate_boundary():
    previous, current = _materials()
    window = ClipRange(35.0, 60.0)

    assert validate_boundary(0.0, window, previous, current) == 35.0
    assert validate_boundary(20.0, window, previous, current) == 55.0
    with pytest.raises(BoundaryRejected):
        validate_boundary(20.01, window, previous, current)
    with pytest.raises(BoundaryRejected):
        validate_boundary(None, window, previous, current)


def test_finalize_plans():
    previous, current = _materials()
    previous.end = current.start = 43.0

    plans = finalize_plans([previous, current])

    assert [p.title for p in plans] == ["Fires", "Weather"]
    assert plans[0].range == ClipRange(0.0, 43.0)
    assert plans[1].range == ClipRange(43.0, 80.0)
    assert plans[1].transition_window == ClipRange(35.0, 60.0)


def test_tail_padding():
    """Test the fixed +2s padding on published clips."""
    padded = apply_tail_padding(ClipRange.from_strings("00:01:10", "00:03:45"))

    assert (format_hms(padded.start), format_hms(padded.end)) == ("00:01:10", "00:03:47")
    assert apply_tail_padding(ClipRange(1.0, 2.0), padding=0) == ClipRange(1.0, 2.0)
