"""
Asset handlers

One stateless function per asset kind. Each takes a local input path and
validated options, reports degraded parameters to an optional event sink,
and knows nothing about the queue or the log store.
"""

from assetflow.services.processing.handlers.image_handler import process_image
from assetflow.services.processing.handlers.pdf_handler import process_pdf
from assetflow.services.processing.handlers.video_handler import (
    VideoMetadata,
    get_video_metadata,
    process_video,
)

__all__ = [
    "process_image",
    "process_video",
    "process_pdf",
    "get_video_metadata",
    "VideoMetadata",
]
