"""
GPT-backed decisions: locate a topic, assign blocks to stories, and pick the
exact boundary inside a transition window.
"""

import json
import logging
from pathlib import Path
from typing import Any

from openai import AzureOpenAI, OpenAI

from .config import TRANSITION_WINDOW, Settings
from .errors import DecisionResponseError
from .insights import flexible_float
from .models import ClipRange, TranscriptDocument
from .timestamps import format_hms_ms

logger = logging.getLogger("clipper")

TOPIC_SYSTEM_PROMPT = (
    "You are a video editor assistant. I will give you a transcript with timestamps. "
    "Identify the start and end timestamps for the given topic and return JSON only "
    'in the form {"start": "HH:MM:SS", "end": "HH:MM:SS"}.'
)

NEWS_SYSTEM_PROMPT = """You segment radio news transcripts into separate news stories.
A "story" is a self-contained news item on a single topic.
Do not split a story just because the speaker changes if they are still on the same topic.
Do split when the topic clearly changes."""

NEWS_USER_PROMPT = """You are given blocks of transcript with IDs and timestamps.

Each block:
[ID:<int>][<start>-<end>] <text>

Your task:
1. Assign a story_id to each block. Blocks with the same story_id belong to the same story.
2. story_id must be integers starting at 1 and increasing; do not skip numbers.
3. A story must contain at least 2 blocks unless the broadcast is extremely short.
4. The displayed timestamps may overlap slightly to show more context, but block IDs are sequential 20-second windows and never overlap.
5. Metadata hints (speaker, sentiment, topic keywords) appear in parentheses after the timestamps. Prefer to start a new story when the speaker changes and the topic hints differ from the previous block.

Output JSON in this format only:

{{
  "blocks": [
    {{"id": 1, "story_id": 1}},
    {{"id": 2, "story_id": 1}},
    {{"id": 3, "story_id": 2}}
  ]
}}

Blocks:
{blocks}"""

BOUNDARY_SYSTEM_PROMPT = """You are a precise news segmentation assistant.
You are given a short excerpt of a radio news transcript where one story ends and the next begins.
Your task is to return the exact moment within this window where the topic changes between the two stories.
Return valid JSON only."""

BOUNDARY_USER_PROMPT = """Window start time: {start}
Window end time:   {end}

Story before boundary: {previous}
Story after boundary: {next}

Transcript within this window (offsets are seconds from window start):

{excerpt}

Rules:
- The topic change happens exactly once inside this window.
- 0.0 <= boundary_offset_seconds <= {limit:.1f}.
- Do NOT include any explanation text.

Return JSON only in this format:
{{ "boundary_offset_seconds": <number> }}"""


def parse_json_object(content: str | None) -> dict[str, Any]:
    """Parse model output as a JSON object, tolerating prose around it."""
    if not content or not content.strip():
        raise DecisionResponseError("Model returned empty content")
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        start = content.find("{")
        end = content.rfind("}")
        if start == -1 or end <= start:
            raise DecisionResponseError("Model did not return valid JSON") from None
        try:
            data = json.loads(content[start : end + 1])
        except json.JSONDecodeError:
            raise DecisionResponseError("Model did not return valid JSON") from None
    if not isinstance(data, dict):
        raise DecisionResponseError("Model returned JSON that is not an object")
    return data


def _as_int(value: Any, what: str) -> int:
    number = flexible_float(value)
    if number is None or not number.is_integer():
        raise DecisionResponseError(f"Story assignment has a non-integer {what}: {value!r}")
    return int(number)


def parse_story_assignments(data: dict[str, Any]) -> list[tuple[int, int]]:
    """Extract (block_id, story_id) pairs from {"blocks": [{"id", "story_id"}, ...]}."""
    blocks = data.get("blocks")
    if not isinstance(blocks, list):
        raise DecisionResponseError("Story assignment response has no 'blocks' list")
    pairs: list[tuple[int, int]] = []
    for item in blocks:
        if not isinstance(item, dict):
            raise DecisionResponseError(f"Story assignment item is not an object: {item!r}")
        pairs.append((_as_int(item.get("id"), "id"), _as_int(item.get("story_id"), "story_id")))
    return pairs


def parse_boundary_offset(data: dict[str, Any]) -> float | None:
    return flexible_float(data.get("boundary_offset_seconds"))


def make_client(settings: Settings) -> OpenAI:
    """OpenAI client, or an Azure OpenAI client when an Azure endpoint is configured."""
    if not settings.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY is not set. Put it in .env or environment.")
    if settings.use_azure:
        return AzureOpenAI(
            api_key=settings.openai_api_key,
            api_version=settings.azure_api_version,
            azure_endpoint=settings.azure_endpoint,
        )
    return OpenAI(api_key=settings.openai_api_key)


class StoryLocator:
    """Decision service backed by chat completions in JSON mode."""

    def __init__(self, client: OpenAI, model: str = "gpt-4o-mini", temperature: float = 0.2):
        if client is None:
            raise RuntimeError("OpenAI client is not initialized (missing OPENAI_API_KEY)")
        self.client = client
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings, model: str | None = None) -> "StoryLocator":
        return cls(
            make_client(settings),
            model=model or settings.openai_model,
            temperature=settings.openai_temperature,
        )

    def _chat(self, system: str, user: str) -> str:
        chat = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=self.temperature,
            response_format={"type": "json_object"},
        )
        if not chat.choices:
            raise DecisionResponseError("Chat completion returned no choices")
        content = chat.choices[0].message.content
        if content is None:
            raise DecisionResponseError("Chat completion returned no message content")
        return content

    def locate_topic(self, transcript: str, topic: str) -> ClipRange:
        """Ask for the start/end of a topic in the rendered block transcript."""
        if not transcript or not transcript.strip():
            raise ValueError("Transcript cannot be empty.")
        if not topic or not topic.strip():
            raise ValueError("Topic cannot be empty.")

        logger.info(f"Locating topic '{topic}' with {self.model} …")
        content = self._chat(TOPIC_SYSTEM_PROMPT, f"Topic: {topic}\n\nTranscript:\n{transcript}")
        data = parse_json_object(content)
        try:
            return ClipRange.from_strings(data.get("start"), data.get("end"))
        except ValueError as e:
            raise DecisionResponseError(f"Topic range is unusable: {e}") from e

    def assign_stories(
        self, document: TranscriptDocument, dump_path: str | Path | None = None
    ) -> list[tuple[int, int]]:
        """Ask which story each block belongs to.

        When dump_path is given the prompt is written next to it as
        '<stem>.prompt.txt' and the raw response to dump_path itself.
        """
        if not document.text.strip():
            raise ValueError("Transcript cannot be empty.")

        prompt = NEWS_USER_PROMPT.format(blocks=document.text.strip())
        if dump_path:
            out = Path(dump_path)
            out.parent.mkdir(parents=True, exist_ok=True)
            out.with_name(f"{out.stem}.prompt.txt").write_text(prompt, encoding="utf-8")

        logger.info(f"Segmenting {len(document.blocks)} blocks into stories with {self.model} …")
        content = self._chat(NEWS_SYSTEM_PROMPT, prompt)
        if dump_path:
            Path(dump_path).write_text(content, encoding="utf-8")
            logger.info(f"Saved story assignment response -> {dump_path}")

        return parse_story_assignments(parse_json_object(content))

    def locate_boundary(
        self, excerpt: str, window: ClipRange, previous_title: str, next_title: str
    ) -> float | None:
        """Ask for the topic change offset (seconds from window start)."""
        prompt = BOUNDARY_USER_PROMPT.format(
            start=format_hms_ms(window.start),
            end=format_hms_ms(window.end),
            previous=previous_title,
            next=next_title,
            excerpt=excerpt,
            limit=TRANSITION_WINDOW,
        )
        content = self._chat(BOUNDARY_SYSTEM_PROMPT, prompt)
        return parse_boundary_offset(parse_json_object(content))
