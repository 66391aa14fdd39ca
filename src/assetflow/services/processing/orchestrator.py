"""Orchestrator for the asset processing pipeline."""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import ValidationError

from assetflow.core.logging import request_id_context
from assetflow.models.job import (
    AssetKind,
    ImageOptions,
    JobRequest,
    PdfOptions,
    VideoOptions,
    resolve_options,
)
from assetflow.models.log import EventStatus
from assetflow.services.events.event_logger import EventLogger, RequestLogHandle
from assetflow.services.processing.exceptions import (
    DownloadError,
    MessageParseError,
    ProcessingError,
    ReadBackError,
    UnknownAssetKindError,
    UploadError,
)
from assetflow.services.processing.handlers.image_handler import process_image
from assetflow.services.processing.handlers.pdf_handler import process_pdf
from assetflow.services.processing.handlers.video_handler import (
    DEFAULT_TARGET_WIDTH,
    process_video,
)
from assetflow.services.remote.classifier import classify_asset
from assetflow.services.remote.transport import AssetTransport

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    AssetKind.IMAGE: "image/webp",
    AssetKind.VIDEO: "video/mp4",
    AssetKind.PDF: "application/pdf",
}

SKIPPED_UPLOAD_MESSAGE = "Original asset deleted by user, skipping final upload."


def parse_message(body: Union[bytes, str, Dict[str, Any]]) -> JobRequest:
    """Parse a queue payload into a JobRequest.

    Raises:
        MessageParseError: If the payload is not JSON or lacks required fields
    """
    try:
        if isinstance(body, (bytes, str)):
            body = json.loads(body)
        return JobRequest.model_validate(body)
    except (ValueError, ValidationError) as e:
        raise MessageParseError(f"Message parsing failed: {e}") from e


class PipelineOrchestrator:
    """
    Drives one job through classify, download, process, read back,
    existence check, upload and cleanup.

    Every stage after the request log is opened records its outcome as an
    audit event. Any stage failure records a ``failed`` event and re-raises,
    so the caller can reject the queue message.
    """

    def __init__(
        self,
        transport: AssetTransport,
        event_logger: EventLogger,
        work_dir: Path,
        video_target_width: int = DEFAULT_TARGET_WIDTH,
    ):
        self.transport = transport
        self.event_logger = event_logger
        self.work_dir = work_dir
        self.video_target_width = video_target_width

    def run_handler(
        self,
        kind: AssetKind,
        input_path: Path,
        asset_config: Dict[str, Any],
        events: RequestLogHandle,
    ) -> Path:
        """Run the handler selected by ``kind`` and return the output file path."""
        options = resolve_options(kind, asset_config)

        if isinstance(options, ImageOptions):
            return process_image(input_path, options, self.work_dir, events)

        if isinstance(options, VideoOptions):
            return process_video(
                input_path,
                options,
                self.work_dir,
                events,
                target_width=self.video_target_width,
            )

        if isinstance(options, PdfOptions):
            buffer = process_pdf(input_path, options, events)
            output_path = self.work_dir / f"processed-{input_path.stem}.pdf"
            output_path.write_bytes(buffer)
            return output_path

        raise ProcessingError(f"Unsupported asset type: {kind.value}")

    def process_message(self, body: Union[bytes, str, Dict[str, Any]]) -> None:
        """Process one queue delivery to completion.

        Returns normally when the result was uploaded or the upload was
        skipped because the original asset is gone.

        Raises:
            MessageParseError: Payload could not be parsed
            UnknownAssetKindError: Asset is not an image, video or PDF
            PipelineError: A stage failed after the request log was opened
        """
        job = parse_message(body)
        token = request_id_context.set(job.request_id)
        try:
            self._process_job(job)
        finally:
            request_id_context.reset(token)

    def _process_job(self, job: JobRequest) -> None:
        kind = classify_asset(job.original_url, self.transport)
        if kind == AssetKind.UNKNOWN:
            logger.error(
                "Could not determine asset type",
                extra={"original_url": job.original_url, "request_id": job.request_id},
            )
            raise UnknownAssetKindError(
                f"Could not determine asset type for URL: {job.original_url}"
            )

        events = self.event_logger.open_request_log(
            request_id=job.request_id,
            source=job.source,
            original_url=job.original_url,
            processing_config=job.asset_config,
        )
        events.append(EventStatus.PENDING, "Processing started")

        self.work_dir.mkdir(parents=True, exist_ok=True)
        input_path = self.work_dir / f"input-{int(time.time() * 1000)}-{job.request_id}"
        processed_path: Path | None = None

        try:
            # Step 1: download the original
            try:
                input_path.write_bytes(self.transport.download(job.original_url))
            except Exception as e:
                events.append_exception(EventStatus.FAILED, f"Download failed: {e}", e)
                raise DownloadError(f"Download failed: {e}") from e
            events.append(EventStatus.PROCESSING, "File downloaded")

            # Step 2: run the handler for the asset kind
            try:
                processed_path = self.run_handler(kind, input_path, job.asset_config, events)
            except Exception as e:
                events.append_exception(EventStatus.FAILED, f"Processing failed: {e}", e)
                raise ProcessingError(f"Processing failed: {e}") from e
            events.append(EventStatus.PROCESSING, "Processing complete, uploading")

            # Step 3: read the result back
            try:
                processed = processed_path.read_bytes()
            except OSError as e:
                events.append_exception(
                    EventStatus.FAILED, f"Failed to read processed file: {e}", e
                )
                raise ReadBackError(f"Failed to read processed file: {e}") from e

            # Step 4: upload unless the caller deleted the original meanwhile
            try:
                if not self.transport.exists(job.original_url):
                    events.append(EventStatus.COMPLETED, SKIPPED_UPLOAD_MESSAGE)
                    logger.info(
                        "Skipping upload, original asset deleted",
                        extra={"original_url": job.original_url},
                    )
                    return

                self.transport.upload(job.overwrite_url, processed, CONTENT_TYPES[kind])
            except Exception as e:
                events.append_exception(EventStatus.FAILED, f"Upload failed: {e}", e)
                raise UploadError(f"Upload failed: {e}") from e

            events.append(EventStatus.COMPLETED, "Upload successful")
            logger.info(
                "Uploaded processed file",
                extra={"overwrite_url": job.overwrite_url, "asset_kind": kind.value},
            )
        finally:
            self._cleanup(input_path, processed_path)

    def _cleanup(self, *paths: Path | None) -> None:
        """Remove temporary files. Failures are logged and swallowed."""
        for path in paths:
            if path is None:
                continue
            try:
                if path.exists():
                    path.unlink()
                    logger.debug("Deleted temporary file", extra={"temp_path": str(path)})
                else:
                    logger.warning(
                        "Temporary file not found for cleanup", extra={"temp_path": str(path)}
                    )
            except OSError as e:
                logger.error(
                    "Error during cleanup",
                    extra={"temp_path": str(path), "error": str(e)},
                    exc_info=True,
                )
