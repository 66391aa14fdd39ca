"""
Job models shared by the intake API, the dispatcher and the worker.

The queue payload and the per-kind option bags use camelCase field names on
the wire; the models expose snake_case attributes.
"""

from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AssetKind(str, Enum):
    """Closed classification of a job's target asset."""

    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"
    UNKNOWN = "unknown"


class CropParams(BaseModel):
    """Crop rectangle in pixels."""

    x: int
    y: int
    width: int
    height: int

    def describe(self) -> str:
        return f"({self.x}, {self.y}, {self.width}, {self.height})"


class TrimParams(BaseModel):
    """Trim window in seconds."""

    start: float
    end: float


class ResizeParams(BaseModel):
    """Requested output size. Accepted and stored, not applied by any handler."""

    width: Optional[int] = None
    height: Optional[int] = None


class ImageOptions(BaseModel):
    """Options for the image handler (``assetConfig.imageProps``)."""

    model_config = ConfigDict(populate_by_name=True)

    crop: Optional[CropParams] = Field(None, alias="cropParams")
    compress: bool = False
    resize: Optional[ResizeParams] = None


class VideoOptions(BaseModel):
    """Options for the video handler (``assetConfig.videoProps``)."""

    model_config = ConfigDict(populate_by_name=True)

    crop: Optional[CropParams] = Field(None, alias="cropParams")
    trim: Optional[TrimParams] = Field(None, alias="trimParams")
    compression: bool = False

    @model_validator(mode="before")
    @classmethod
    def _accept_compress_spelling(cls, data: Any) -> Any:
        # Callers sometimes send the image/pdf spelling
        if isinstance(data, dict) and "compression" not in data and "compress" in data:
            data = {**data, "compression": data["compress"]}
        return data


class PdfOptions(BaseModel):
    """Options for the PDF handler (``assetConfig.pdfProps``)."""

    compress: bool = False


ProcessingOptions = Union[ImageOptions, VideoOptions, PdfOptions]

# Asset kind -> (assetConfig key, options model)
_OPTION_VARIANTS: Dict[AssetKind, tuple[str, type[BaseModel]]] = {
    AssetKind.IMAGE: ("imageProps", ImageOptions),
    AssetKind.VIDEO: ("videoProps", VideoOptions),
    AssetKind.PDF: ("pdfProps", PdfOptions),
}


def resolve_options(kind: AssetKind, asset_config: Optional[Dict[str, Any]]) -> ProcessingOptions:
    """
    Select and parse the option variant for an asset kind.

    Only the props entry matching ``kind`` is read; entries for other kinds
    are ignored. A missing entry resolves to the variant's defaults.

    Args:
        kind: Classified asset kind (must not be UNKNOWN)
        asset_config: Raw ``assetConfig`` bag from the job request

    Returns:
        ImageOptions, VideoOptions or PdfOptions

    Raises:
        ValueError: If kind is UNKNOWN
        pydantic.ValidationError: If the props entry is malformed
    """
    if kind not in _OPTION_VARIANTS:
        raise ValueError(f"No processing options for asset kind: {kind.value}")

    key, model = _OPTION_VARIANTS[kind]
    props = (asset_config or {}).get(key) or {}
    return model.model_validate(props)


class JobRequest(BaseModel):
    """A dispatched job, exactly as it travels on the queue."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    request_id: str = Field(..., alias="requestId", min_length=1)
    source: str = Field(..., min_length=1)
    original_url: str = Field(..., alias="originalUrl", min_length=1)
    overwrite_url: str = Field(..., alias="overwriteUrl", min_length=1)
    asset_config: Dict[str, Any] = Field(default_factory=dict, alias="assetConfig")

    @field_validator("asset_config", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_message(self) -> Dict[str, Any]:
        """Serialize to the camelCase queue payload."""
        return self.model_dump(by_alias=True)
