"""
Content-type classifier for remote assets.

Maps the declared Content-Type of a remote asset to an asset kind:
- image: any image/* type
- video: any video/* type
- pdf: exactly application/pdf
- unknown: everything else, including a failed probe
"""

import logging

import httpx

from assetflow.models.job import AssetKind
from assetflow.services.remote.transport import AssetTransport

logger = logging.getLogger(__name__)

# Prefix-based classification
CONTENT_TYPE_PREFIX_MAP = {
    "image/": AssetKind.IMAGE,
    "video/": AssetKind.VIDEO,
}

# Exact matches
CONTENT_TYPE_EXACT_MAP = {
    "application/pdf": AssetKind.PDF,
}


def classify_content_type(content_type: str | None) -> AssetKind:
    """
    Classify a Content-Type header value into an asset kind.

    Examples:
        >>> classify_content_type("image/png")
        <AssetKind.IMAGE: 'image'>
        >>> classify_content_type("application/pdf; charset=binary")
        <AssetKind.PDF: 'pdf'>
        >>> classify_content_type("text/html")
        <AssetKind.UNKNOWN: 'unknown'>
    """
    if not content_type:
        return AssetKind.UNKNOWN

    # Normalize (lowercase, remove parameters)
    normalized = content_type.lower().split(";")[0].strip()

    if normalized in CONTENT_TYPE_EXACT_MAP:
        return CONTENT_TYPE_EXACT_MAP[normalized]

    for prefix, kind in CONTENT_TYPE_PREFIX_MAP.items():
        if normalized.startswith(prefix):
            return kind

    return AssetKind.UNKNOWN


def classify_asset(url: str, transport: AssetTransport) -> AssetKind:
    """Probe ``url`` with a HEAD request and classify its content type. Never raises."""
    try:
        content_type = transport.head_content_type(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error(
            "Error fetching asset type",
            extra={"url": url, "error": str(e)},
        )
        return AssetKind.UNKNOWN

    kind = classify_content_type(content_type)
    logger.info(
        "Asset classified",
        extra={"url": url, "content_type": content_type, "asset_kind": kind.value},
    )
    return kind
