"""
Command-line interface for the news clip pipeline.
"""

import argparse
import logging
import pathlib
import sys

from dotenv import load_dotenv

from .config import Settings
from .io_ffmpeg import ensure_dir
from .locator import StoryLocator
from .pipeline import JsonInsightsSource, PipelineOptions, run_batch

logger = logging.getLogger("clipper")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(description="Cut news broadcasts into story clips")

    # IO
    ap.add_argument("-i", "--input", required=True, help="Folder with media files")
    ap.add_argument("-o", "--output", required=True, help="Folder for cut clips")
    ap.add_argument(
        "--insights",
        default=None,
        help="Folder with <media>.insights.json payloads (default: <output>/insights)",
    )
    ap.add_argument(
        "--llm-output",
        default=None,
        help="Folder for prompts, responses and transcript windows (default: <output>/llm)",
    )
    ap.add_argument("--extensions", default=".mp4", help="Comma-separated media extensions")

    # Mode
    ap.add_argument("--topic", default=None, help="Cut a single clip covering this topic")
    ap.add_argument(
        "--news-clips", action="store_true", help="Segment the broadcast into story clips with GPT"
    )
    ap.add_argument(
        "--news-clips-from-topics",
        action="store_true",
        help="Cut one clip per topic appearance from the insights payload (no GPT)",
    )

    # Models
    ap.add_argument("--model", default=None, help="Chat model or Azure deployment name")

    ap.add_argument("--dry-run", action="store_true", help="Log ffmpeg cuts instead of running them")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = ap.parse_args(argv)
    if not (args.news_clips or args.news_clips_from_topics) and not (args.topic or "").strip():
        ap.error("--topic is required unless --news-clips or --news-clips-from-topics is given")
    return args


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    project_root = pathlib.Path(__file__).parent.parent.parent
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()

    args = parse_args(argv)
    setup_logging(args.verbose)
    settings = Settings.from_env()

    input_root = pathlib.Path(args.input)
    if not input_root.is_dir():
        logger.error(f"Unable to locate input folder: {input_root}")
        return 1
    ensure_dir(args.output)

    options = PipelineOptions(
        input_root=str(input_root),
        output_root=args.output,
        insights_root=args.insights,
        llm_output_root=args.llm_output,
        extensions=tuple(args.extensions.split(",")),
        topic=args.topic,
        news_clips=args.news_clips,
        news_clips_from_topics=args.news_clips_from_topics,
        dry_run=args.dry_run,
        ffmpeg_path=settings.ffmpeg_path,
    )

    locator = None
    if not options.news_clips_from_topics:
        locator = StoryLocator.from_settings(settings, model=args.model)

    source = JsonInsightsSource(options.insights_root)
    failures = run_batch(options, source, locator)
    if failures:
        logger.warning(f"{len(failures)} file(s) failed: {', '.join(failures)}")
        return 1
    logger.info("Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
