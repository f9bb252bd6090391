"""
Per-file orchestration: insights -> transcript document -> clip plans -> cuts.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from tqdm import tqdm

from .boundaries import apply_tail_padding, finalize_plans, refine_boundaries
from .config import DEFAULT_EXTENSIONS
from .insights import Insights, load_insights
from .io_ffmpeg import cut_clip, ensure_dir
from .models import ClipRange, NewsClipPlan, TranscriptDocument
from .render import build_window_excerpt, flatten
from .stories import build_story_plan, plan_from_topic_appearances
from .timestamps import format_hms

logger = logging.getLogger("clipper")


class DecisionService(Protocol):
    def locate_topic(self, transcript: str, topic: str) -> ClipRange: ...

    def assign_stories(
        self, document: TranscriptDocument, dump_path: str | Path | None = None
    ) -> list[tuple[int, int]]: ...

    def locate_boundary(
        self, excerpt: str, window: ClipRange, previous_title: str, next_title: str
    ) -> float | None: ...


class JsonInsightsSource:
    """Reads '<root>/<media file name>.insights.json' for each media file."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path_for(self, media_path: str | Path) -> Path:
        name = Path(media_path).name or "insights"
        return self.root / f"{name}.insights.json"

    def fetch(self, media_path: str | Path) -> Insights:
        return load_insights(self.path_for(media_path))


@dataclass
class PipelineOptions:
    input_root: str
    output_root: str
    insights_root: str | None = None
    llm_output_root: str | None = None
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    topic: str | None = None
    news_clips: bool = False
    news_clips_from_topics: bool = False
    dry_run: bool = False
    ffmpeg_path: str = "ffmpeg"

    def __post_init__(self):
        self.extensions = tuple(normalize_extension(e) for e in self.extensions if e.strip())
        if not self.extensions:
            self.extensions = DEFAULT_EXTENSIONS
        if self.insights_root is None:
            self.insights_root = str(Path(self.output_root) / "insights")
        if self.llm_output_root is None:
            self.llm_output_root = str(Path(self.output_root) / "llm")

    @property
    def wants_news_clips(self) -> bool:
        return self.news_clips or self.news_clips_from_topics


def normalize_extension(ext: str) -> str:
    trimmed = ext.strip().lower()
    if not trimmed:
        return ""
    return trimmed if trimmed.startswith(".") else f".{trimmed}"


def slugify(value: str | None, default: str = "clip") -> str:
    slug = "".join(ch if ch.isalnum() else "-" for ch in (value or "").lower()).strip("-")
    return slug or default


def build_output_path(input_path: str | Path, output_root: str | Path) -> Path:
    p = Path(input_path)
    return Path(output_root) / f"{p.stem}_edited{p.suffix}"


def build_clip_output_path(
    input_path: str | Path, output_root: str | Path, title: str, index: int
) -> Path:
    p = Path(input_path)
    slug = slugify(title, default=f"clip-{index:02d}")
    return Path(output_root) / f"{p.stem}_{index:02d}_{slug}{p.suffix}"


def build_llm_output_path(root: str | Path, input_path: str | Path, suffix: str) -> Path:
    name = Path(input_path).name or "llm-output"
    return Path(root) / f"{name}{suffix}"


def enumerate_inputs(root: str | Path, extensions: tuple[str, ...] = DEFAULT_EXTENSIONS) -> list[Path]:
    """Top-level media files with a matching extension, sorted case-insensitively."""
    wanted = {normalize_extension(e) for e in extensions}
    files = [p for p in Path(root).iterdir() if p.is_file() and p.suffix.lower() in wanted]
    return sorted(files, key=lambda p: str(p).lower())


def build_window_record(
    index: int, title: str | None, clip: ClipRange, insights: Insights
) -> dict[str, Any]:
    return {
        "clip_index": index,
        "title": title,
        "start": format_hms(clip.start),
        "end": format_hms(clip.end),
        "transcript": build_window_excerpt(insights, clip.start, clip.end),
    }


def write_windows_manifest(records: Any, path: str | Path) -> None:
    """Write transcript window record(s) to a JSON file."""
    ensure_dir(Path(path).parent)
    Path(path).write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info(f"Saved transcript windows -> {path}")


def plan_news_clips(
    document: TranscriptDocument,
    insights: Insights,
    locator: DecisionService,
    dump_path: str | Path | None = None,
) -> list[NewsClipPlan]:
    """Assign blocks to stories, refine the cut points, and publish plans."""
    assignments = locator.assign_stories(document, dump_path=dump_path)
    materials = build_story_plan(document, assignments)
    adjusted = refine_boundaries(materials, insights, locator)
    logger.info(f"Refined {adjusted} of {max(0, len(materials) - 1)} story boundaries")
    return finalize_plans(materials)


def generate_topic_clip(
    media_path: Path,
    document: TranscriptDocument,
    insights: Insights,
    options: PipelineOptions,
    locator: DecisionService,
) -> Path:
    clip = locator.locate_topic(document.text, options.topic or "")
    window_path = build_llm_output_path(options.llm_output_root, media_path, ".topic.window.json")
    write_windows_manifest(build_window_record(1, options.topic, clip, insights), window_path)

    padded = apply_tail_padding(clip)
    output = build_output_path(media_path, options.output_root)
    logger.info(
        f"Topic '{options.topic}' located between {format_hms(clip.start)} and "
        f"{format_hms(clip.end)}; cutting {format_hms(padded.start)}-{format_hms(padded.end)}"
    )
    cut_clip(str(media_path), padded, str(output), ffmpeg_path=options.ffmpeg_path, dry_run=options.dry_run)
    return output


def generate_news_clips(
    media_path: Path,
    document: TranscriptDocument,
    insights: Insights,
    options: PipelineOptions,
    locator: DecisionService | None,
) -> list[Path]:
    if options.news_clips_from_topics:
        logger.info("Planning news clips from insights topic appearances …")
        plans = plan_from_topic_appearances(insights)
    else:
        if locator is None:
            raise RuntimeError("A decision service is required to segment news clips.")
        dump_path = build_llm_output_path(options.llm_output_root, media_path, ".news.json")
        plans = plan_news_clips(document, insights, locator, dump_path=dump_path)

    if plans:
        records = [build_window_record(i, p.title, p.range, insights) for i, p in enumerate(plans, 1)]
        windows_path = build_llm_output_path(options.llm_output_root, media_path, ".news.windows.json")
        write_windows_manifest(records, windows_path)

    outputs: list[Path] = []
    for i, plan in enumerate(plans, 1):
        output = build_clip_output_path(media_path, options.output_root, plan.title, i)
        padded = apply_tail_padding(plan.range)
        logger.info(
            f"Cutting '{plan.title}' {format_hms(plan.range.start)}-{format_hms(plan.range.end)} "
            f"-> {output} (tail padding applied)"
        )
        cut_clip(str(media_path), padded, str(output), ffmpeg_path=options.ffmpeg_path, dry_run=options.dry_run)
        outputs.append(output)
    return outputs


def process_file(
    media_path: Path,
    options: PipelineOptions,
    source: JsonInsightsSource,
    locator: DecisionService | None,
) -> list[Path]:
    """Run the full pipeline for one media file and return the clip paths."""
    insights = source.fetch(media_path)
    document = flatten(insights)

    if options.wants_news_clips:
        outputs = generate_news_clips(media_path, document, insights, options, locator)
        logger.info(f"[SUCCESS] Produced {len(outputs)} clips from {media_path.name}")
        return outputs

    if locator is None:
        raise RuntimeError("A decision service is required to locate a topic.")
    output = generate_topic_clip(media_path, document, insights, options, locator)
    logger.info(f"[SUCCESS] {media_path.name} -> {output}")
    return [output]


def run_batch(
    options: PipelineOptions, source: JsonInsightsSource, locator: DecisionService | None
) -> list[str]:
    """Process every input file; failures are logged per file. Returns the failed file names."""
    files = enumerate_inputs(options.input_root, options.extensions)
    if not files:
        logger.warning(
            f"No files matching {','.join(options.extensions)} were found under {options.input_root}."
        )
        return []

    failures: list[str] = []
    for media_path in tqdm(files, desc="Clipping"):
        try:
            process_file(media_path, options, source, locator)
        except Exception as e:
            logger.error(f"[ERROR] {media_path.name}: {e}")
            failures.append(media_path.name)
    return failures
