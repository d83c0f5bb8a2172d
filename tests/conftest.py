"""
Pytest fixtures and configuration for CampusHub tests
"""
import io
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from campushub.app import create_app
from campushub.constants import DEFAULT_SETTINGS
from campushub.exceptions import StorageException
from campushub.models.resource import Resource
from campushub.repositories.resource_store import InMemoryResourceStore
from campushub.services.object_storage import ObjectStorage, StoredFile
from campushub.settings import merge_settings

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeObjectStorage(ObjectStorage):
    """Object storage double that keeps uploads in a dict"""

    def __init__(self):
        self.files = {}
        self.uploads = []
        self.deleted = []
        self.fail_upload = False
        self.fail_delete = False
        self.fail_info = False
        self.fail_usage = False
        self._counter = 0

    def upload(self, path, file_name, mime_type, context=None, tags=None):
        if self.fail_upload:
            raise StorageException("Cloudinary upload failed: quota exceeded")
        # the temp file must still exist while the provider reads it
        assert os.path.exists(path)
        self._counter += 1
        file_id = f"campushub-resources/{os.path.splitext(file_name)[0]}_{self._counter}"
        self.files[file_id] = {"path": path, "size": os.path.getsize(path), "context": context, "tags": tags}
        self.uploads.append({"path": path, "file_name": file_name, "mime_type": mime_type,
                             "context": context, "tags": tags})
        return StoredFile(
            file_id=file_id,
            url=f"https://res.example.com/raw/upload/{file_id}.pdf",
            size=os.path.getsize(path),
            file_format="pdf",
            resource_type="raw",
            version="1",
        )

    def delete(self, file_id, resource_type=None):
        if self.fail_delete or file_id not in self.files:
            raise StorageException(f"Delete failed for all resource types: {file_id}")
        self.files.pop(file_id)
        self.deleted.append(file_id)
        return "raw"

    def bulk_delete(self, file_ids):
        if self.fail_delete:
            raise StorageException("Failed to bulk delete files")
        deleted = {}
        for file_id in file_ids:
            if self.files.pop(file_id, None) is not None:
                deleted[file_id] = "deleted"
                self.deleted.append(file_id)
        return {"deleted": deleted, "deletedCount": len(deleted), "notFound": []}

    def get_file_info(self, file_id, resource_type=None):
        if self.fail_info or file_id not in self.files:
            raise StorageException(f"File not found in any resource type: {file_id}")
        return {"id": file_id, "size": self.files[file_id]["size"], "resourceType": "raw"}

    def usage(self):
        if self.fail_usage:
            raise StorageException("Failed to get storage info: unauthorized")
        return {"plan": "Free", "storage": {"used": 1024, "limit": 0}, "resources": len(self.files)}

    def ping(self):
        return True


def make_resource(title="Resource", branch="CSE", semester=3, subject="Data Structures",
                  resource_type="notes", description=None, tags=None, download_count=0,
                  uploaded_at=None, **fields):
    """Build a transient Resource with every default filled in"""
    return Resource(
        branch=branch,
        semester=semester,
        subject=subject,
        resource_type=resource_type,
        title=title,
        description=description,
        tags=list(tags or []),
        uploaded_by="admin",
        download_count=download_count,
        uploaded_at=uploaded_at or BASE_TIME,
        updated_at=uploaded_at or BASE_TIME,
        last_accessed=None,
        is_active=True,
        **fields,
    )


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing"""
    logger = MagicMock()
    logger.info = MagicMock()
    logger.error = MagicMock()
    logger.warning = MagicMock()
    logger.debug = MagicMock()
    return logger


@pytest.fixture
def test_settings(tmp_path):
    """Settings for an isolated app: memory store, no rate limits, temp upload dir"""
    return merge_settings(DEFAULT_SETTINGS, {
        "database": {"backend": "memory", "url": "sqlite://"},
        "storage": {"provider": "fake"},
        "uploads": {"dir": str(tmp_path / "uploads")},
        "rate_limits": {"enabled": False},
    })


@pytest.fixture
def store():
    return InMemoryResourceStore()


@pytest.fixture
def storage():
    return FakeObjectStorage()


@pytest.fixture
def app(test_settings, store, storage):
    _app = create_app(test_settings, store=store, storage=storage)
    _app.config.update(TESTING=True)
    return _app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def sql_app(test_settings, storage):
    """App backed by SqlResourceStore on in-memory SQLite"""
    settings = merge_settings(test_settings, {"database": {"backend": "sql", "url": "sqlite://"}})
    _app = create_app(settings, storage=storage)
    _app.config.update(TESTING=True)
    return _app


@pytest.fixture
def upload_dir(test_settings):
    return test_settings["uploads"]["dir"]


def pdf_part(name="notes.pdf", content=b"%PDF-1.4\n% test document\n", mime_type="application/pdf"):
    return (io.BytesIO(content), name, mime_type)


@pytest.fixture
def upload_file_resource(client):
    """POST a multipart upload; returns the response"""

    def _upload(resource_type="notes", file=None, **fields):
        data = {
            "branch": "CSE",
            "semester": "3",
            "subject": "Data Structures",
            "title": "Linked Lists Notes",
            "description": "Unit 2 notes",
            "tags": "lists, pointers",
        }
        data.update({k: v for k, v in fields.items()})
        data["file"] = file if file is not None else pdf_part()
        return client.post(
            f"/api/resources/upload/{resource_type}",
            data=data,
            content_type="multipart/form-data",
        )

    return _upload


@pytest.fixture
def upload_json_resource(client):
    """POST a syllabus/content upload as JSON; returns the response"""

    def _upload(resource_type="syllabus", **fields):
        body = {
            "branch": "ECE",
            "semester": 5,
            "subject": "Signals and Systems",
            "title": "Signals Syllabus",
            "tags": ["signals"],
        }
        if resource_type == "syllabus":
            body["syllabusText"] = "Unit 1: Continuous time signals and their properties."
        elif resource_type == "content":
            body["contentLink"] = "https://example.com/lectures/signals"
        body.update(fields)
        return client.post(f"/api/resources/upload/{resource_type}", json=body)

    return _upload


def later(minutes):
    return BASE_TIME + timedelta(minutes=minutes)
