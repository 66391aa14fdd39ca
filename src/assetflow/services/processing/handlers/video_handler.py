"""Video handler: optional trim and crop, fixed downscale, optional CRF compression via ffmpeg."""

import json
import logging
import subprocess
from pathlib import Path
from typing import NamedTuple, Optional

from assetflow.models.job import CropParams, TrimParams, VideoOptions
from assetflow.models.log import EventStatus
from assetflow.services.processing.exceptions import VideoProcessingError
from assetflow.services.processing.policy import (
    EventSink,
    VIDEO_COMPRESS_FLOOR_BYTES,
    crop_fits,
    notify,
    trim_fits,
    video_crf_for,
)

logger = logging.getLogger(__name__)

DEFAULT_TARGET_WIDTH = 640


class VideoMetadata(NamedTuple):
    """Geometry and duration reported by ffprobe."""
    width: int | None = None
    height: int | None = None
    duration_seconds: float | None = None


def get_video_metadata(file_path: Path) -> VideoMetadata:
    """Extract video dimensions and duration using ffprobe.

    Args:
        file_path: Path to the video file

    Returns:
        VideoMetadata; fields ffprobe did not report are None

    Raises:
        VideoProcessingError: If ffprobe fails or its output cannot be parsed
    """
    cmd = [
        "ffprobe",
        "-v", "error",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(file_path),
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise VideoProcessingError(f"ffprobe could not be started: {e}") from e

    if result.returncode != 0:
        raise VideoProcessingError(f"ffprobe failed: {result.stderr}")

    try:
        probe = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise VideoProcessingError(f"Failed to parse ffprobe output: {e}") from e

    video_stream = next(
        (s for s in probe.get("streams", []) if s.get("codec_type") == "video"), {}
    )
    duration = probe.get("format", {}).get("duration")

    try:
        return VideoMetadata(
            width=int(video_stream["width"]) if video_stream.get("width") else None,
            height=int(video_stream["height"]) if video_stream.get("height") else None,
            duration_seconds=float(duration) if duration is not None else None,
        )
    except (TypeError, ValueError) as e:
        raise VideoProcessingError(f"Unexpected ffprobe values: {e}") from e


def build_ffmpeg_command(
    input_path: Path,
    output_path: Path,
    crop: Optional[CropParams] = None,
    trim: Optional[TrimParams] = None,
    crf: Optional[int] = None,
    target_width: int = DEFAULT_TARGET_WIDTH,
) -> list[str]:
    """Build the single-pass ffmpeg invocation for already-validated parameters."""
    cmd = ["ffmpeg", "-y", "-loglevel", "error"]

    if trim is not None:
        cmd += ["-ss", f"{trim.start:.3f}"]
    cmd += ["-i", str(input_path)]
    if trim is not None:
        cmd += ["-t", f"{trim.end - trim.start:.3f}"]

    filters = []
    if crop is not None:
        filters.append(f"crop={crop.width}:{crop.height}:{crop.x}:{crop.y}")
    # Even height keeps libx264 happy
    filters.append(f"scale={target_width}:-2")
    cmd += ["-vf", ",".join(filters)]

    cmd += ["-c:v", "libx264"]
    if crf is not None:
        cmd += ["-crf", str(crf)]
    cmd += ["-c:a", "aac", str(output_path)]
    return cmd


def _probe_or_warn(input_path: Path, events: Optional[EventSink]) -> VideoMetadata:
    try:
        return get_video_metadata(input_path)
    except VideoProcessingError as e:
        message = f"Error retrieving video metadata: {e}"
        logger.warning(message, extra={"input_path": str(input_path)})
        notify(events, EventStatus.WARNING, message, error=str(e))
        return VideoMetadata()


def _validated_crop(
    crop: CropParams, metadata: VideoMetadata, events: Optional[EventSink]
) -> Optional[CropParams]:
    if metadata.width is None or metadata.height is None:
        message = "Could not determine video dimensions. Proceeding without cropping."
        logger.warning(message)
        notify(events, EventStatus.WARNING, message)
        return None

    if not crop_fits(crop, metadata.width, metadata.height):
        message = (
            f"Crop parameters {crop.describe()} exceed video dimensions "
            f"({metadata.width} x {metadata.height}). Proceeding without cropping (using full video)."
        )
        logger.warning(message)
        notify(events, EventStatus.WARNING, message)
        return None

    return crop


def _validated_trim(
    trim: TrimParams, metadata: VideoMetadata, events: Optional[EventSink]
) -> Optional[TrimParams]:
    if metadata.duration_seconds is None:
        message = "Could not determine video duration. Proceeding without trimming."
        logger.warning(message)
        notify(events, EventStatus.WARNING, message)
        return None

    if not trim_fits(trim, metadata.duration_seconds):
        message = (
            f"Trim parameters (start: {trim.start}, end: {trim.end}) are invalid. "
            f"Video duration is {metadata.duration_seconds} seconds. Proceeding without trimming."
        )
        logger.warning(message)
        notify(events, EventStatus.WARNING, message)
        return None

    return trim


def _compression_crf(
    input_path: Path, compression: bool, events: Optional[EventSink]
) -> Optional[int]:
    try:
        size_bytes = input_path.stat().st_size
    except OSError as e:
        message = "Error retrieving file size, proceeding without compression"
        logger.warning(message, extra={"error": str(e)})
        notify(events, EventStatus.WARNING, message, error=str(e))
        return None

    crf = video_crf_for(compression, size_bytes)
    if compression and crf is None:
        message = "Skipping compression due to file size threshold."
        logger.info(
            message,
            extra={"size_bytes": size_bytes, "floor_bytes": VIDEO_COMPRESS_FLOOR_BYTES},
        )
        notify(events, EventStatus.PROCESSING, message)
    return crf


def process_video(
    input_path: Path,
    options: VideoOptions,
    output_dir: Path,
    events: Optional[EventSink] = None,
    target_width: int = DEFAULT_TARGET_WIDTH,
) -> Path:
    """Trim, crop, downscale and optionally compress a video into an MP4.

    Invalid or unverifiable crop/trim parameters are dropped with a warning
    event; the encode itself must succeed.

    Args:
        input_path: Local path of the downloaded video
        options: Validated video options
        output_dir: Directory for the processed file
        events: Optional sink for warning/processing events
        target_width: Output width in pixels; height follows the aspect ratio

    Returns:
        Path of the processed ``.mp4`` file

    Raises:
        VideoProcessingError: If ffmpeg fails or produces no output
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"compressed-{input_path.stem}.mp4"

    crop: Optional[CropParams] = None
    trim: Optional[TrimParams] = None
    if options.crop is not None or options.trim is not None:
        metadata = _probe_or_warn(input_path, events)
        if options.crop is not None:
            crop = _validated_crop(options.crop, metadata, events)
        if options.trim is not None:
            trim = _validated_trim(options.trim, metadata, events)

    crf = _compression_crf(input_path, options.compression, events)

    cmd = build_ffmpeg_command(
        input_path, output_path, crop=crop, trim=trim, crf=crf, target_width=target_width
    )
    logger.info(
        "Running ffmpeg",
        extra={
            "input_path": str(input_path),
            "output_path": str(output_path),
            "trimmed": trim is not None,
            "cropped": crop is not None,
            "crf": crf,
        },
    )

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise VideoProcessingError(f"ffmpeg could not be started: {e}") from e

    if result.returncode != 0:
        error_msg = result.stderr.strip() if result.stderr else "Unknown error"
        logger.error("ffmpeg failed", extra={"error": error_msg, "returncode": result.returncode})
        raise VideoProcessingError(f"ffmpeg failed: {error_msg}")

    if not output_path.exists():
        raise VideoProcessingError("ffmpeg produced no output file")

    logger.info("Video processed", extra={"output_path": str(output_path)})
    return output_path
