"""Image handler: optional crop, then WebP re-encode with Pillow."""

import logging
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from assetflow.models.job import CropParams, ImageOptions
from assetflow.models.log import EventStatus
from assetflow.services.processing.exceptions import ImageProcessingError
from assetflow.services.processing.policy import EventSink, crop_fits, image_quality_for, notify

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "WEBP"
OUTPUT_SUFFIX = ".webp"


def _validated_crop(
    crop: CropParams, width: int, height: int, events: Optional[EventSink]
) -> CropParams:
    """Return ``crop`` if it fits, otherwise the full-frame rectangle."""
    if crop_fits(crop, width, height):
        return crop

    message = (
        f"Crop parameters {crop.describe()} exceed image dimensions ({width} x {height}). "
        "Proceeding without cropping (using full image)."
    )
    logger.warning(message, extra={"crop": crop.model_dump(), "width": width, "height": height})
    notify(events, EventStatus.WARNING, message)
    return CropParams(x=0, y=0, width=width, height=height)


def _webp_compatible(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "RGBA"):
        return image
    has_alpha = image.mode in ("LA", "PA") or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")


def process_image(
    input_path: Path,
    options: ImageOptions,
    output_dir: Path,
    events: Optional[EventSink] = None,
) -> Path:
    """Crop (when requested and valid) and re-encode an image as WebP.

    The quality tier depends on the compress flag and the input size; see
    ``policy.image_quality_for``. ``options.resize`` is accepted but not applied.

    Args:
        input_path: Local path of the downloaded image
        options: Validated image options
        output_dir: Directory for the processed file
        events: Optional sink for warning events

    Returns:
        Path of the processed ``.webp`` file

    Raises:
        ImageProcessingError: If the image cannot be decoded or encoded
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"processed-{input_path.stem}{OUTPUT_SUFFIX}"

    try:
        size_bytes = input_path.stat().st_size
        quality = image_quality_for(options.compress, size_bytes)

        with Image.open(input_path) as source:
            image = source
            if options.crop is not None:
                width, height = source.size
                crop = _validated_crop(options.crop, width, height, events)
                image = source.crop(
                    (crop.x, crop.y, crop.x + crop.width, crop.y + crop.height)
                )

            _webp_compatible(image).save(output_path, format=OUTPUT_FORMAT, quality=quality)

    except (OSError, UnidentifiedImageError, ValueError) as e:
        logger.error(
            "Image processing failed",
            extra={"input_path": str(input_path), "error": str(e)},
        )
        raise ImageProcessingError(f"Image processing failed: {e}") from e

    logger.info(
        "Image processed",
        extra={
            "input_path": str(input_path),
            "output_path": str(output_path),
            "quality": quality,
            "cropped": options.crop is not None,
        },
    )
    return output_path
