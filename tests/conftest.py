"""
Shared fixtures.
"""

import io
import json
import os
import tempfile

# Keep backend.config from creating data directories inside the repo
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="labeling-test-"))

import pytest
from PIL import Image

from core.db import open_database
from core.errors import NotFoundError
from core.models import ImageRecord
from core.store import ProjectStore, ImageStore


def make_png(color: str = "red", size: int = 8) -> bytes:
    """Encode a small solid-color PNG."""
    buffer = io.BytesIO()
    Image.new('RGB', (size, size), color=color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def conn():
    """In-memory database with the full schema."""
    connection = open_database(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def project_store(conn):
    return ProjectStore(conn)


@pytest.fixture
def image_store(conn):
    return ImageStore(conn)


@pytest.fixture
def project(project_store):
    return project_store.create(name="Test Project")


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_factory():
    """Callable producing PNG bytes of a given color."""
    return make_png


class FakeImageStore:
    """
    Minimal in-memory image store.

    Implements the calls made by Allocator and LabelMutator. try_reserve can
    be told to lose the compare-and-set for given ids to simulate a
    concurrent caller.
    """

    def __init__(self):
        self.records: dict[int, ImageRecord] = {}
        self.lose_reservation_for: set[int] = set()
        self.reserve_calls: list[int] = []

    def add(self, project_id: int, name: str, labeled: bool = False) -> int:
        image_id = len(self.records) + 1
        self.records[image_id] = ImageRecord(
            id=image_id, project_id=project_id, original_name=name, labeled=labeled
        )
        return image_id

    def get(self, image_id: int) -> ImageRecord:
        if image_id not in self.records:
            raise NotFoundError(f"Image {image_id} not found")
        return self.records[image_id]

    def list_unlabeled(self, project_id: int) -> list[ImageRecord]:
        return [
            img for _, img in sorted(self.records.items())
            if img.project_id == project_id and not img.labeled
        ]

    def update_labeled(self, image_id: int, labeled: bool) -> None:
        image = self.get(image_id)
        image.labeled = labeled
        if labeled:
            image.lease_expires_at = None

    def update_label_data(self, image_id: int, label_data) -> None:
        self.get(image_id).label_data_json = None if label_data is None else json.dumps(label_data)

    def try_reserve(self, image_id: int, until: float, now: float) -> bool:
        self.reserve_calls.append(image_id)
        image = self.get(image_id)
        if image_id in self.lose_reservation_for:
            # Someone else got there first
            image.lease_expires_at = until
            return False
        if image.labeled or (image.lease_expires_at is not None and image.lease_expires_at > now):
            return False
        image.lease_expires_at = until
        return True


@pytest.fixture
def fake_images():
    return FakeImageStore()
