"""
Tests for block document and window rendering.
"""

import re

import pytest

from conftest import make_entry, make_payload
from src.clipper.errors import EmptyTranscriptError
from src.clipper.insights import Insights, TranscriptEntry, VideoInsight
from src.clipper.models import TranscriptBlock, WordTiming
from src.clipper.render import (
    build_metadata_suffix,
    build_window_excerpt,
    flatten,
    format_blocks,
    normalize_window,
    render_window,
)
from src.clipper.timeline import build_word_timeline, join_words


def test_format_blocks_shifts_preview_windows():
    """Each block line shows a window shifted back 3s per block id."""
    timeline = [
        WordTiming(0.0, 1.0, "Fires"),
        WordTiming(1.0, 2.0, "in"),
        WordTiming(21.0, 22.0, "Kelowna"),
    ]
    blocks = [
        TranscriptBlock(id=1, start=0.0, end=2.0, text="Fires in"),
        TranscriptBlock(id=2, start=20.0, end=22.0, text="Kelowna"),
    ]

    text = format_blocks(blocks, timeline)

    assert text == "[ID:1][00:00:00-00:00:20] Fires in\n[ID:2][00:00:17-00:00:22] Kelowna\n"


def test_format_blocks_empty():
    assert format_blocks([], []) == ""


def test_metadata_suffix():
    block = TranscriptBlock(
        id=1,
        start=0.0,
        end=20.0,
        text="x",
        speaker="Ann",
        sentiment="Positive",
        topic_hints=("Wildfire", " ", "Kelowna"),
    )
    assert build_metadata_suffix(block) == (
        '(speaker=Ann, sentiment=Positive, topic hints: "Wildfire", "Kelowna")'
    )
    assert build_metadata_suffix(TranscriptBlock(id=2, start=0.0, end=1.0, text="y")) == ""


def test_flatten_builds_document(broadcast_payload):
    document = flatten(Insights.from_dict(broadcast_payload))

    assert [b.id for b in document.blocks] == [1, 2, 3]
    first_line = document.text.splitlines()[0]
    assert first_line.startswith(
        '[ID:1][00:00:00-00:00:20] (speaker=Ann Lee, sentiment=Negative, topic hints: "Wildfires") '
    )
    assert "Fires in Kelowna keep spreading." in first_line
    assert document.text.endswith("\n")


def test_flatten_rejects_empty_payloads():
    with pytest.raises(EmptyTranscriptError):
        flatten(Insights.from_dict({"videos": []}))
    with pytest.raises(EmptyTranscriptError):
        flatten(Insights.from_dict(make_payload([])))


def test_normalize_window():
    assert normalize_window(24, 4, 30) == (4, 24)
    assert normalize_window(-5, 10, 30) == (0.0, 10)
    assert normalize_window(12, 12, 30) == (12, 13)
    assert normalize_window(40, 50, 30) is None


def test_render_window_uses_entries():
    """Test that lines are offset from the window start and quotes are swapped."""
    entries = [
        TranscriptEntry.from_dict(make_entry('He said "hi"', "0:00:05", "0:00:09")),
        TranscriptEntry.from_dict(make_entry("Next story", "0:00:25", "0:00:30")),
    ]
    timeline = build_word_timeline(entries)

    assert render_window(entries, timeline, 4, 24) == "[+1.0s] \"He said 'hi'\""
    assert render_window(entries, timeline, 24, 4) == "[+1.0s] \"He said 'hi'\""
    assert render_window(entries, timeline, 4, 30) == (
        "[+1.0s] \"He said 'hi'\"\n[+21.0s] \"Next story\""
    )


def test_render_window_falls_back_to_words():
    entries = [
        TranscriptEntry.from_dict(
            make_entry(
                "",
                "0:00:00",
                "0:00:03",
                words=[("Fires", "0:00:00", "0:00:01"), ("in", "0:00:01", "0:00:02"), (".", "0:00:02", "0:00:03")],
            )
        )
    ]
    timeline = build_word_timeline(entries)

    assert render_window(entries, timeline, 0, 3) == '[+00.0s] "Fires in."'


def test_build_window_excerpt(broadcast_payload):
    insights = Insights.from_dict(broadcast_payload)

    excerpt = build_window_excerpt(insights, 35, 60)

    assert excerpt.splitlines() == [
        '[+0.0s] "Crews worked overnight near the lake."',
        '[+3.0s] "Now the weather for the weekend."',
    ]
    assert build_window_excerpt(Insights(videos=(VideoInsight(),)), 0, 10) == ""


def test_rendered_excerpt_reflattens_in_order():
    """Parsing a rendered window back into entries keeps the word order."""
    entries = [
        TranscriptEntry.from_dict(
            make_entry(
                "Fires spread near Kelowna.",
                "0:00:00",
                "0:00:04",
                words=[
                    ("Fires", "0:00:00", "0:00:01"),
                    ("spread", "0:00:01", "0:00:02"),
                    ("near", "0:00:02", "0:00:03"),
                    ("Kelowna", "0:00:03", "0:00:04"),
                    (".", "0:00:03.5", "0:00:04"),
                ],
            )
        ),
        TranscriptEntry.from_dict(
            make_entry(
                "Crews are on scene.",
                "0:00:05",
                "0:00:08",
                words=[
                    ("Crews", "0:00:05", "0:00:06"),
                    ("are", "0:00:06", "0:00:07"),
                    ("on", "0:00:07", "0:00:07.5"),
                    ("scene", "0:00:07.5", "0:00:08"),
                    (".", "0:00:07.9", "0:00:08"),
                ],
            )
        ),
    ]
    timeline = build_word_timeline(entries)

    excerpt = render_window(entries, timeline, 0, 20)

    line_re = re.compile(r'^\[\+(\d+\.\d)s\] "(.*)"$')
    parsed = []
    for line in excerpt.splitlines():
        m = line_re.match(line)
        assert m is not None
        parsed.append(TranscriptEntry.from_dict({"text": m.group(2), "startTime": m.group(1)}))
    reflattened = build_word_timeline(parsed)

    assert [e.start_time for e in parsed] == ["0.0", "5.0"]
    assert join_words(w.text for w in reflattened).split() == join_words(
        w.text for w in timeline
    ).split()
