"""Signed-URL operations against remote object storage."""

import logging

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from assetflow.core.config import settings
from assetflow.services.processing.exceptions import TransportError

logger = logging.getLogger(__name__)

# Network-level failures only; HTTP error statuses are final
_retry_on_network_error = retry(
    stop=stop_after_attempt(max(settings.TRANSPORT_MAX_ATTEMPTS, 1)),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(httpx.TransportError),
    reraise=True,
)


class AssetTransport:
    """Plain HEAD/GET/PUT client for pre-signed or public asset URLs."""

    def __init__(self, client: httpx.Client):
        """Initialize the transport.

        Args:
            client: Long-lived httpx client owned by the process entry point
        """
        self.client = client

    def head_content_type(self, url: str) -> str | None:
        """Return the Content-Type a HEAD request reports for ``url``.

        Raises:
            httpx.HTTPError: On network failure
        """
        response = self.client.head(url, follow_redirects=True)
        return response.headers.get("content-type")

    def exists(self, url: str) -> bool:
        """Check whether the asset at ``url`` is still reachable.

        Any network error counts as "gone".
        """
        try:
            response = self.client.head(url, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(
                "Existence probe failed, treating asset as missing",
                extra={"url": url, "error": str(e)},
            )
            return False
        return response.is_success

    @_retry_on_network_error
    def _get(self, url: str) -> httpx.Response:
        return self.client.get(url, follow_redirects=True)

    @_retry_on_network_error
    def _put(self, url: str, body: bytes, content_type: str) -> httpx.Response:
        return self.client.put(url, content=body, headers={"Content-Type": content_type})

    def download(self, url: str) -> bytes:
        """Download the asset body from a signed URL.

        Args:
            url: Signed or public read URL

        Returns:
            Raw response body

        Raises:
            TransportError: If the request fails or returns a non-2xx status
        """
        try:
            response = self._get(url)
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to download file from signed URL: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"Failed to download file from signed URL (HTTP {response.status_code})"
            )

        logger.info(
            "File downloaded from signed URL",
            extra={"url": url, "size_bytes": len(response.content)},
        )
        return response.content

    def upload(self, url: str, body: bytes, content_type: str) -> None:
        """Upload a body to a signed write URL.

        Args:
            url: Signed write URL
            body: Bytes to upload
            content_type: Value for the Content-Type header

        Raises:
            TransportError: If the request fails or returns a non-2xx status
        """
        try:
            response = self._put(url, body, content_type)
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to upload file to signed URL: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"Failed to upload file to signed URL (HTTP {response.status_code})"
            )

        logger.info(
            "File uploaded to signed URL",
            extra={"url": url, "size_bytes": len(body), "content_type": content_type},
        )
