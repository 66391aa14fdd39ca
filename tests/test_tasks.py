"""Tests for the Celery task acknowledgment contract."""

from unittest.mock import MagicMock, PropertyMock, patch

import pytest
from celery.exceptions import Reject

from assetflow.queue.tasks import PipelineTask, handle_delivery, process_asset
from assetflow.services.processing.exceptions import (
    MessageParseError,
    UnknownAssetKindError,
    UploadError,
)

PAYLOAD = {
    "requestId": "req-1",
    "source": "cms",
    "originalUrl": "https://x/a.jpg",
    "overwriteUrl": "https://x/a-out.jpg",
    "assetConfig": {},
}


def test_handle_delivery_success_returns_normally():
    orchestrator = MagicMock()

    handle_delivery(orchestrator, PAYLOAD)

    orchestrator.process_message.assert_called_once_with(PAYLOAD)


@pytest.mark.parametrize(
    "error",
    [
        MessageParseError("bad json"),
        UnknownAssetKindError("text/html"),
        UploadError("HTTP 500"),
        RuntimeError("unexpected"),
    ],
)
def test_handle_delivery_rejects_without_requeue(error):
    orchestrator = MagicMock()
    orchestrator.process_message.side_effect = error

    with pytest.raises(Reject) as exc_info:
        handle_delivery(orchestrator, PAYLOAD)

    assert exc_info.value.requeue is False


def test_process_asset_task_uses_cached_orchestrator():
    orchestrator = MagicMock()

    with patch.object(
        PipelineTask, "orchestrator", new_callable=PropertyMock, return_value=orchestrator
    ):
        process_asset.run(PAYLOAD)

    orchestrator.process_message.assert_called_once_with(PAYLOAD)


def test_process_asset_task_name():
    assert process_asset.name == "assetflow.process_asset"


def test_pipeline_task_builds_orchestrator_once():
    task = PipelineTask()

    with patch("assetflow.queue.tasks.build_orchestrator") as mock_build:
        first = task.orchestrator
        second = task.orchestrator

    assert first is second
    mock_build.assert_called_once()
