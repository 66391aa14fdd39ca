"""Tests for remote asset classification."""

import httpx
import pytest
from unittest.mock import MagicMock

from assetflow.models.job import AssetKind
from assetflow.services.remote.classifier import classify_asset, classify_content_type
from assetflow.services.remote.transport import AssetTransport


@pytest.mark.parametrize(
    "content_type,expected",
    [
        ("image/png", AssetKind.IMAGE),
        ("image/jpeg", AssetKind.IMAGE),
        ("IMAGE/WEBP", AssetKind.IMAGE),
        ("video/mp4", AssetKind.VIDEO),
        ("video/quicktime; codecs=avc1", AssetKind.VIDEO),
        ("application/pdf", AssetKind.PDF),
        ("application/pdf; charset=binary", AssetKind.PDF),
        ("application/pdfx", AssetKind.UNKNOWN),
        ("text/html", AssetKind.UNKNOWN),
        ("application/octet-stream", AssetKind.UNKNOWN),
        ("", AssetKind.UNKNOWN),
        (None, AssetKind.UNKNOWN),
    ],
)
def test_classify_content_type(content_type, expected):
    assert classify_content_type(content_type) == expected


def test_classify_asset_uses_head_content_type():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        return httpx.Response(200, headers={"Content-Type": "video/mp4"})

    transport = AssetTransport(httpx.Client(transport=httpx.MockTransport(handler)))

    assert classify_asset("https://x/clip.mp4", transport) == AssetKind.VIDEO


def test_classify_asset_network_error_is_unknown():
    transport = MagicMock()
    transport.head_content_type.side_effect = httpx.ConnectError("connection refused")

    assert classify_asset("https://x/a.jpg", transport) == AssetKind.UNKNOWN


def test_classify_asset_missing_header_is_unknown():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200)

    transport = AssetTransport(httpx.Client(transport=httpx.MockTransport(handler)))

    assert classify_asset("https://x/thing", transport) == AssetKind.UNKNOWN
