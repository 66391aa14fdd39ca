"""Tests for the Ghostscript-based PDF handler."""

import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from assetflow.models.job import PdfOptions
from assetflow.models.log import EventStatus
from assetflow.services.processing.handlers.pdf_handler import (
    build_ghostscript_command,
    process_pdf,
)

RUN_PATH = "assetflow.services.processing.handlers.pdf_handler.subprocess.run"


def fake_ghostscript(stderr=b"", output=b"%PDF-small"):
    def _run(cmd, **kwargs):
        target = next(arg for arg in cmd if arg.startswith("-sOutputFile="))
        Path(target.split("=", 1)[1]).write_bytes(output)
        result = Mock()
        result.returncode = 0
        result.stdout = b""
        result.stderr = stderr
        return result

    return _run


@pytest.fixture
def large_pdf(tmp_path):
    path = tmp_path / "input-1-req"
    path.write_bytes(b"%PDF-1.7\n" + b"0" * (60 * 1024))
    return path


@pytest.fixture
def small_pdf(tmp_path):
    path = tmp_path / "input-2-req"
    path.write_bytes(b"%PDF-1.7\n" + b"0" * 1024)
    return path


def test_build_ghostscript_command():
    cmd = build_ghostscript_command(Path("in.pdf"), Path("out.pdf"))

    assert cmd[0] == "gs"
    assert "-sDEVICE=pdfwrite" in cmd
    assert "-dCompatibilityLevel=1.4" in cmd
    assert "-dPDFSETTINGS=/screen" in cmd
    assert "-sOutputFile=out.pdf" in cmd
    assert cmd[-1] == "in.pdf"


def test_process_pdf_without_compress_returns_original(large_pdf):
    with patch(RUN_PATH) as mock_run:
        result = process_pdf(large_pdf, PdfOptions())

    assert result == large_pdf.read_bytes()
    mock_run.assert_not_called()


def test_process_pdf_below_floor_skips_with_warning(small_pdf):
    events = Mock()

    with patch(RUN_PATH) as mock_run:
        result = process_pdf(small_pdf, PdfOptions(compress=True), events)

    assert result == small_pdf.read_bytes()
    mock_run.assert_not_called()
    events.append.assert_called_once()
    assert events.append.call_args[0][:2] == (EventStatus.WARNING, "Skipping PDF compression.")


def test_process_pdf_compresses_large_input(large_pdf):
    events = Mock()

    with patch(RUN_PATH, side_effect=fake_ghostscript()) as mock_run:
        result = process_pdf(large_pdf, PdfOptions(compress=True), events)

    assert result == b"%PDF-small"
    assert mock_run.call_args[0][0][0] == "gs"
    assert events.append.call_args_list[0][0][:2] == (
        EventStatus.PROCESSING,
        "Compressing PDF using Ghostscript...",
    )


def test_process_pdf_stderr_becomes_warning(large_pdf):
    events = Mock()

    with patch(RUN_PATH, side_effect=fake_ghostscript(stderr=b"font substituted\n")):
        result = process_pdf(large_pdf, PdfOptions(compress=True), events)

    assert result == b"%PDF-small"
    status, message = events.append.call_args_list[-1][0][:2]
    assert status == EventStatus.WARNING
    assert "font substituted" in message


def test_process_pdf_ghostscript_failure_returns_original(large_pdf):
    """Test that a Ghostscript failure is non-fatal and returns the original bytes."""
    events = Mock()
    error = subprocess.CalledProcessError(1, ["gs"], stderr=b"Unrecoverable error")

    with patch(RUN_PATH, side_effect=error):
        result = process_pdf(large_pdf, PdfOptions(compress=True), events)

    assert result == large_pdf.read_bytes()
    status, message = events.append.call_args_list[-1][0][:2]
    assert status == EventStatus.WARNING
    assert "Unrecoverable error" in message


def test_process_pdf_missing_ghostscript_returns_original(large_pdf):
    with patch(RUN_PATH, side_effect=FileNotFoundError("gs")):
        result = process_pdf(large_pdf, PdfOptions(compress=True))

    assert result == large_pdf.read_bytes()


def test_process_pdf_non_utf8_stderr_is_replaced(large_pdf):
    """Test that undecodable Ghostscript output still yields the compressed bytes."""
    events = Mock()

    with patch(RUN_PATH, side_effect=fake_ghostscript(stderr=b"\xff\xfe bad font name\n")):
        result = process_pdf(large_pdf, PdfOptions(compress=True), events)

    assert result == b"%PDF-small"
    status, message = events.append.call_args_list[-1][0][:2]
    assert status == EventStatus.WARNING
    assert "bad font name" in message
    assert "�" in message


def test_process_pdf_unexpected_error_returns_original(large_pdf):
    events = Mock()

    with patch(RUN_PATH, side_effect=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")):
        result = process_pdf(large_pdf, PdfOptions(compress=True), events)

    assert result == large_pdf.read_bytes()
    assert events.append.call_args_list[-1][0][0] == EventStatus.WARNING
