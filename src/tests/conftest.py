"""
Shared fixtures: mock chat completions and small insights payloads.
"""

import json
from unittest.mock import MagicMock

import pytest


def make_openai_response(text="{}"):
    """Build a mock OpenAI ChatCompletion response."""
    msg = MagicMock()
    msg.content = text
    choice = MagicMock()
    choice.message = msg
    resp = MagicMock()
    resp.choices = [choice]
    return resp


def make_entry(text, start, end, speaker_id=None, sentiment=None, words=None):
    """Insights transcript entry; words are (text, start, end) tuples."""
    entry = {"text": text, "startTime": start, "endTime": end}
    if speaker_id is not None:
        entry["speakerId"] = speaker_id
    if sentiment is not None:
        entry["sentiment"] = sentiment
    if words is not None:
        entry["instances"] = [
            {
                "start": start,
                "end": end,
                "words": [{"text": w, "startTime": s, "endTime": e} for w, s, e in words],
            }
        ]
    return entry


def make_payload(transcript, speakers=None, topics=None, keywords=None):
    return {
        "videos": [
            {
                "insights": {
                    "transcript": transcript,
                    "speakers": speakers or [],
                    "topics": topics or [],
                    "keywords": keywords or [],
                }
            }
        ]
    }


@pytest.fixture
def openai_response():
    return make_openai_response


@pytest.fixture
def mock_client():
    """OpenAI-like client whose chat.completions.create is a MagicMock."""
    return MagicMock()


@pytest.fixture
def broadcast_payload():
    """Two stories: a wildfire report followed by the weather."""
    return make_payload(
        [
            make_entry(
                "Fires in Kelowna keep spreading.",
                "0:00:00",
                "0:00:12",
                speaker_id=1,
                sentiment="Negative",
            ),
            make_entry(
                "Crews worked overnight near the lake.",
                "0:00:12",
                "0:00:38",
                speaker_id=1,
                sentiment="Negative",
            ),
            make_entry(
                "Now the weather for the weekend.",
                "0:00:38",
                "0:01:05",
                speaker_id=2,
                sentiment="Neutral",
            ),
            make_entry(
                "Expect sun and light winds.",
                "0:01:05",
                "0:01:20",
                speaker_id=2,
                sentiment="Positive",
            ),
        ],
        speakers=[{"id": 1, "name": "Ann Lee"}, {"id": 2, "name": "Bob Ray"}],
        topics=[
            {"name": "Wildfires", "appearances": [{"startTime": "0:00:00", "endTime": "0:00:38"}]},
            {"name": "Weather", "appearances": [{"startTime": "0:00:38", "endTime": "0:01:20"}]},
        ],
    )


@pytest.fixture
def insights_dir(tmp_path, broadcast_payload):
    """Folder with one media file and its insights JSON next to it."""
    media = tmp_path / "media"
    media.mkdir()
    (media / "evening.mp4").write_bytes(b"")
    insights = tmp_path / "insights"
    insights.mkdir()
    (insights / "evening.mp4.insights.json").write_text(
        json.dumps(broadcast_payload), encoding="utf-8"
    )
    return tmp_path
