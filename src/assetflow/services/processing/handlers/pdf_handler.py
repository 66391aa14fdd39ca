"""PDF handler: best-effort Ghostscript compression."""

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from assetflow.models.job import PdfOptions
from assetflow.models.log import EventStatus
from assetflow.services.processing.policy import (
    EventSink,
    PDF_COMPRESS_FLOOR_BYTES,
    notify,
    should_compress,
)

logger = logging.getLogger(__name__)


def build_ghostscript_command(input_path: Path, output_path: Path) -> list[str]:
    """Build the Ghostscript pdfwrite invocation at /screen quality."""
    return [
        "gs",
        "-sDEVICE=pdfwrite",
        "-dCompatibilityLevel=1.4",
        "-dPDFSETTINGS=/screen",
        "-dNOPAUSE",
        "-dQUIET",
        "-dBATCH",
        f"-sOutputFile={output_path}",
        str(input_path),
    ]


def _decode(output: Optional[bytes]) -> str:
    # Ghostscript echoes font and metadata names, which need not be UTF-8
    return output.decode("utf-8", errors="replace").strip() if output else ""


def _compress_with_ghostscript(input_path: Path, events: Optional[EventSink]) -> bytes:
    """Run Ghostscript into a scratch file and return its bytes.

    Raises:
        OSError, subprocess.CalledProcessError: On a Ghostscript failure
    """
    with tempfile.TemporaryDirectory(prefix="assetflow-gs-") as scratch:
        output_path = Path(scratch) / f"compressed-{input_path.name}"
        result = subprocess.run(
            build_ghostscript_command(input_path, output_path),
            capture_output=True,
            check=True,
        )
        stderr = _decode(result.stderr)
        if stderr:
            message = "Ghostscript reported: " + stderr
            logger.warning(message, extra={"input_path": str(input_path)})
            notify(events, EventStatus.WARNING, message)
        return output_path.read_bytes()


def process_pdf(
    input_path: Path,
    options: PdfOptions,
    events: Optional[EventSink] = None,
) -> bytes:
    """Return the PDF bytes, compressed when requested and above the size floor.

    Compression is strictly best-effort: any Ghostscript failure is reported
    as a warning event and the original bytes are returned unchanged.

    Args:
        input_path: Local path of the downloaded PDF
        options: Validated PDF options
        events: Optional sink for processing/warning events

    Returns:
        Bytes of the (possibly compressed) PDF

    Raises:
        OSError: If the input file itself cannot be read
    """
    original = input_path.read_bytes()

    if not should_compress(options.compress, len(original), PDF_COMPRESS_FLOOR_BYTES):
        if options.compress:
            message = "Skipping PDF compression."
            logger.info(
                message,
                extra={"size_bytes": len(original), "floor_bytes": PDF_COMPRESS_FLOOR_BYTES},
            )
            notify(events, EventStatus.WARNING, message)
        return original

    logger.info("Compressing PDF using Ghostscript", extra={"input_path": str(input_path)})
    notify(events, EventStatus.PROCESSING, "Compressing PDF using Ghostscript...")

    try:
        compressed = _compress_with_ghostscript(input_path, events)
    except Exception as e:
        # Compression is best-effort; any failure keeps the original
        stderr = _decode(e.stderr) if isinstance(e, subprocess.CalledProcessError) else ""
        detail = stderr or str(e)
        message = f"Error during PDF compression: {detail}"
        logger.warning(message, extra={"input_path": str(input_path)}, exc_info=True)
        notify(events, EventStatus.WARNING, message, error=str(e))
        return original

    logger.info(
        "PDF compressed",
        extra={"original_bytes": len(original), "compressed_bytes": len(compressed)},
    )
    return compressed
