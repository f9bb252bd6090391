"""
Clip extraction with ffmpeg (stream copy, no re-encoding).
"""

import logging
import subprocess
from pathlib import Path

from .models import ClipRange
from .timestamps import format_hms_ms

logger = logging.getLogger("clipper")


def run(cmd: list[str], *, check: bool = True) -> str:
    """Run a command and return its combined stdout/stderr."""
    logger.debug("Running: %s", " ".join(map(str, cmd)))
    proc = subprocess.run(
        cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, check=False
    )
    if proc.returncode != 0 and check:
        logger.error("Command failed with code %d: %s", proc.returncode, proc.stdout)
        msg = f"Command failed with code {proc.returncode}"
        raise RuntimeError(msg)
    return proc.stdout


def ensure_dir(path: str | Path) -> None:
    """Ensure directory exists."""
    if path:
        Path(path).mkdir(parents=True, exist_ok=True)


def build_cut_command(
    input_path: str, clip: ClipRange, output_path: str, ffmpeg_path: str = "ffmpeg"
) -> list[str]:
    return [
        ffmpeg_path or "ffmpeg",
        "-y",
        "-ss",
        format_hms_ms(clip.start),
        "-i",
        str(input_path),
        "-t",
        format_hms_ms(clip.duration),
        "-c",
        "copy",
        str(output_path),
    ]


def cut_clip(
    input_path: str,
    clip: ClipRange,
    output_path: str,
    *,
    ffmpeg_path: str = "ffmpeg",
    dry_run: bool = False,
) -> None:
    """Copy [clip.start, clip.end) of the input into output_path."""
    if dry_run:
        logger.info(
            f"[dry-run] Would cut {input_path} from {format_hms_ms(clip.start)} "
            f"to {format_hms_ms(clip.end)} -> {output_path}"
        )
        return
    ensure_dir(Path(output_path).parent)
    run(build_cut_command(input_path, clip, output_path, ffmpeg_path))
