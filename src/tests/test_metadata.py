"""
Tests for block metadata (speaker, sentiment, topic hints).
"""

from src.clipper.blocks import build_fixed_blocks
from src.clipper.insights import Insights, Speaker
from src.clipper.metadata import (
    attach_metadata,
    build_speaker_map,
    most_common_label,
    overlaps,
    resolve_speaker_label,
    select_topic_hints,
)
from src.clipper.models import HintOccurrence, TranscriptBlock, WordTiming
from src.clipper.timeline import build_word_timeline


def test_most_common_label_tie_break():
    """Equal counts go to the case-insensitive lexical minimum."""
    assert most_common_label(["Bob", "ann"]) == "ann"
    assert most_common_label(["ann", "Bob"]) == "ann"


def test_most_common_label_counts_case_insensitively():
    assert most_common_label(["Bob", "bob", "ann"]) == "Bob"
    assert most_common_label([None, " ", ""]) is None


def test_overlaps_is_strict():
    assert overlaps(0, 5, 4, 10)
    assert not overlaps(0, 4, 4, 10)
    assert not overlaps(10, 12, 4, 10)


def test_speaker_label_resolution():
    speaker_map = build_speaker_map(
        [Speaker(id="1", name="Ann Lee"), Speaker(id="2", name=" "), Speaker(id=None, name="X")]
    )
    assert speaker_map == {"1": "Ann Lee"}

    assert resolve_speaker_label(WordTiming(0, 1, "a", speaker_id="1"), speaker_map) == "Ann Lee"
    assert (
        resolve_speaker_label(WordTiming(0, 1, "a", speaker_id="9", speaker_name="Guest"), speaker_map)
        == "Guest"
    )
    assert resolve_speaker_label(WordTiming(0, 1, "a", speaker_id="9"), speaker_map) == "Speaker 9"
    assert resolve_speaker_label(WordTiming(0, 1, "a"), speaker_map) is None


def test_select_topic_hints_dedupes_and_caps():
    block = TranscriptBlock(id=1, start=0.0, end=20.0, text="x")
    hints = [
        HintOccurrence(0, 5, "Wildfire"),
        HintOccurrence(2, 3, "wildfire"),
        HintOccurrence(20, 30, "Outside"),
        HintOccurrence(5, 6, "Kelowna"),
        HintOccurrence(6, 7, "Evacuation"),
        HintOccurrence(7, 8, "Smoke"),
    ]

    assert select_topic_hints(block, hints) == ("Wildfire", "Kelowna", "Evacuation")


def test_attach_metadata_returns_new_blocks(broadcast_payload):
    """Test that metadata is attached without touching the input blocks."""
    video = Insights.from_dict(broadcast_payload).first_video()
    timeline = build_word_timeline(video.transcript)
    blocks = build_fixed_blocks(timeline)

    enriched = attach_metadata(blocks, timeline, video)

    assert blocks[0].speaker is None
    assert enriched[0].speaker == "Ann Lee"
    assert enriched[0].sentiment == "Negative"
    assert enriched[0].topic_hints == ("Wildfires",)
    assert enriched[-1].speaker == "Bob Ray"
    assert [b.text for b in enriched] == [b.text for b in blocks]
