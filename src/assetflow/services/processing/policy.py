"""Validation and compression policy shared by the asset handlers."""

from typing import Optional, Protocol

from assetflow.models.job import CropParams, TrimParams
from assetflow.models.log import EventStatus

# Compression floors: inputs at or below these sizes are not recompressed
IMAGE_COMPRESS_FLOOR_BYTES = 500 * 1024
VIDEO_COMPRESS_FLOOR_BYTES = int(1.5 * 1024 * 1024)
PDF_COMPRESS_FLOOR_BYTES = 50 * 1024

# Two-tier quality policy
IMAGE_QUALITY_FULL = 100
IMAGE_QUALITY_COMPRESSED = 60
VIDEO_COMPRESSED_CRF = 32


class EventSink(Protocol):
    """Anything the handlers can report degraded-parameter events to."""

    def append(self, status: EventStatus, message: str, error: Optional[str] = None) -> None:
        ...


def crop_fits(crop: CropParams, width: int, height: int) -> bool:
    """Return True if the crop rectangle is non-empty and inside a width x height frame."""
    return (
        crop.width > 0
        and crop.height > 0
        and crop.x >= 0
        and crop.y >= 0
        and crop.x + crop.width <= width
        and crop.y + crop.height <= height
    )


def trim_fits(trim: TrimParams, duration: float) -> bool:
    """Return True if the trim window is non-empty and inside [0, duration]."""
    return trim.start >= 0 and trim.end <= duration and trim.start < trim.end


def should_compress(requested: bool, size_bytes: int, floor_bytes: int) -> bool:
    """Compression runs only when requested and the input is strictly above the floor."""
    return bool(requested) and size_bytes > floor_bytes


def image_quality_for(compress: bool, size_bytes: int) -> int:
    """WebP quality for an image input of ``size_bytes``."""
    if should_compress(compress, size_bytes, IMAGE_COMPRESS_FLOOR_BYTES):
        return IMAGE_QUALITY_COMPRESSED
    return IMAGE_QUALITY_FULL


def video_crf_for(compression: bool, size_bytes: int) -> Optional[int]:
    """CRF for a video input of ``size_bytes``, or None to keep the encoder default."""
    if should_compress(compression, size_bytes, VIDEO_COMPRESS_FLOOR_BYTES):
        return VIDEO_COMPRESSED_CRF
    return None


def notify(events: Optional[EventSink], status: EventStatus, message: str, error: Optional[str] = None) -> None:
    """Report to ``events`` when the caller supplied a sink."""
    if events is not None:
        events.append(status, message, error)
