"""Pytest configuration and shared fixtures."""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image

from assetflow.services.events.event_logger import EventLogger


class FakeUpdateResult:
    def __init__(self, matched_count: int, upserted_id: Any = None):
        self.matched_count = matched_count
        self.modified_count = matched_count
        self.upserted_id = upserted_id


class FakeLogCollection:
    """In-memory stand-in for the ``logs`` collection.

    Supports only the query shapes the event logger issues.
    """

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []
        self.indexes: List[Dict[str, Any]] = []

    def _find(self, original_url: str) -> Optional[Dict[str, Any]]:
        return next((d for d in self.documents if d["originalUrl"] == original_url), None)

    def create_index(self, keys, **kwargs) -> str:
        self.indexes.append({"keys": keys, **kwargs})
        return kwargs.get("name", "index")

    def update_one(self, filter: Dict[str, Any], update: Dict[str, Any], upsert: bool = False):
        doc = self._find(filter["originalUrl"])

        if "$setOnInsert" in update:
            if doc is None and upsert:
                self.documents.append(copy.deepcopy(update["$setOnInsert"]))
                return FakeUpdateResult(0, upserted_id=len(self.documents))
            return FakeUpdateResult(1 if doc else 0)

        if doc is None:
            return FakeUpdateResult(0)

        request_filter = filter.get("requests.requestId")
        push = update["$push"]

        if isinstance(request_filter, dict) and "$ne" in request_filter:
            if any(r["requestId"] == request_filter["$ne"] for r in doc["requests"]):
                return FakeUpdateResult(0)
            doc["requests"].append(copy.deepcopy(push["requests"]))
            return FakeUpdateResult(1)

        entry = next((r for r in doc["requests"] if r["requestId"] == request_filter), None)
        if entry is None:
            return FakeUpdateResult(0)
        entry["events"].append(copy.deepcopy(push["requests.$.events"]))
        return FakeUpdateResult(1)

    def find_one(self, filter: Dict[str, Any], projection: Optional[Dict[str, Any]] = None):
        doc = self._find(filter["originalUrl"])
        return copy.deepcopy(doc) if doc is not None else None

    def events_for(self, original_url: str, request_id: str) -> List[Dict[str, Any]]:
        doc = self._find(original_url)
        entry = next(r for r in doc["requests"] if r["requestId"] == request_id)
        return entry["events"]


@pytest.fixture
def log_collection():
    """Empty in-memory log collection."""
    return FakeLogCollection()


@pytest.fixture
def event_logger(log_collection):
    """EventLogger backed by the in-memory collection."""
    return EventLogger(log_collection)


@pytest.fixture
def make_image(tmp_path):
    """Factory writing a solid-colour PNG and returning its path."""

    def _make(name: str = "input.png", size=(64, 48), mode: str = "RGB", color=(200, 30, 30)) -> Path:
        path = tmp_path / name
        Image.new(mode, size, color).save(path, format="PNG")
        return path

    return _make
