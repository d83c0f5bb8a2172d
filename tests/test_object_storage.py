"""
Tests for the Cloudinary object storage adapter
"""
from unittest.mock import patch

import pytest
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import NotFound

from campushub.exceptions import StorageConfigurationException, StorageException
from campushub.services.object_storage import (
    CloudinaryStorage,
    candidate_resource_types,
    resource_type_for_mime,
)


@pytest.fixture
def cloud():
    return CloudinaryStorage("demo-cloud", "key", "secret", folder="campushub-resources")


class TestCandidateOrder:
    def test_default_order(self):
        assert candidate_resource_types() == ["raw", "image", "video"]

    def test_preferred_first(self):
        assert candidate_resource_types("video") == ["video", "raw", "image"]

    def test_unknown_preferred_is_ignored(self):
        assert candidate_resource_types("auto") == ["raw", "image", "video"]

    @pytest.mark.parametrize("mime, expected", [
        ("application/pdf", "raw"),
        ("image/png", "image"),
        ("video/mp4", "video"),
    ])
    def test_resource_type_for_mime(self, mime, expected):
        assert resource_type_for_mime(mime) == expected


class TestFromSettings:
    def test_missing_credentials_lists_each_variable(self):
        with pytest.raises(StorageConfigurationException) as exc_info:
            CloudinaryStorage.from_settings({"cloud_name": "demo", "api_key": "", "api_secret": None})
        message = str(exc_info.value)
        assert "CLOUDINARY_CLOUD_NAME: ✓" in message
        assert "CLOUDINARY_API_KEY: ✗" in message
        assert "CLOUDINARY_API_SECRET: ✗" in message

    def test_configuration_error_is_a_storage_error(self):
        with pytest.raises(StorageException):
            CloudinaryStorage.from_settings({})

    def test_builds_with_folder(self):
        storage = CloudinaryStorage.from_settings(
            {"cloud_name": "demo", "api_key": "k", "api_secret": "s", "folder": "notes"}
        )
        assert storage.folder == "notes"


class TestUpload:
    def test_upload_options_and_result(self, cloud, tmp_path):
        path = tmp_path / "upload.tmp"
        path.write_bytes(b"%PDF-1.4")
        response = {
            "public_id": "campushub-resources/unit1_1700000000000",
            "secure_url": "https://res.cloudinary.com/demo/raw/upload/v12/campushub-resources/unit1.pdf",
            "bytes": 8,
            "format": "pdf",
            "resource_type": "raw",
            "version": 12,
        }
        with patch("cloudinary.uploader.upload", return_value=response) as upload:
            stored = cloud.upload(str(path), "unit1.pdf", "application/pdf",
                                  context={"branch": "CSE", "semester": 3, "description": None},
                                  tags=["CSE", "semester_3"])

        args, kwargs = upload.call_args
        assert args == (str(path),)
        assert kwargs["folder"] == "campushub-resources"
        assert kwargs["resource_type"] == "raw"
        assert kwargs["public_id"].startswith("unit1_")
        assert kwargs["overwrite"] is False
        assert kwargs["context"] == {"branch": "CSE", "semester": "3", "description": ""}
        assert kwargs["tags"] == ["CSE", "semester_3"]

        assert stored.file_id == response["public_id"]
        assert stored.url == response["secure_url"]
        assert stored.size == 8
        assert stored.file_format == "pdf"
        assert stored.resource_type == "raw"
        assert stored.version == "12"

    def test_upload_failure_raises_storage_exception(self, cloud, tmp_path):
        path = tmp_path / "upload.tmp"
        path.write_bytes(b"%PDF-1.4")
        with patch("cloudinary.uploader.upload", side_effect=CloudinaryError("quota exceeded")):
            with pytest.raises(StorageException, match="quota exceeded"):
                cloud.upload(str(path), "unit1.pdf", "application/pdf")


class TestDelete:
    def test_stops_at_first_success(self, cloud):
        with patch("cloudinary.uploader.destroy", side_effect=[{"result": "not found"}, {"result": "ok"}]) as destroy:
            assert cloud.delete("campushub-resources/a") == "image"
        assert [c.kwargs["resource_type"] for c in destroy.call_args_list] == ["raw", "image"]

    def test_preferred_type_is_tried_first(self, cloud):
        with patch("cloudinary.uploader.destroy", return_value={"result": "ok"}) as destroy:
            assert cloud.delete("campushub-resources/a", resource_type="video") == "video"
        assert destroy.call_count == 1

    def test_errors_fall_through_to_next_type(self, cloud):
        with patch("cloudinary.uploader.destroy",
                   side_effect=[CloudinaryError("boom"), CloudinaryError("boom"), {"result": "ok"}]):
            assert cloud.delete("campushub-resources/a") == "video"

    def test_all_types_fail(self, cloud):
        with patch("cloudinary.uploader.destroy", return_value={"result": "not found"}) as destroy:
            with pytest.raises(StorageException, match="Delete failed for all resource types"):
                cloud.delete("campushub-resources/missing")
        assert destroy.call_count == 3


class TestBulkDelete:
    def test_walks_types_with_remaining_ids(self, cloud):
        responses = [
            {"deleted": {"a": "deleted", "b": "not_found", "c": "not_found"}},
            {"deleted": {"b": "deleted", "c": "not_found"}},
            {"deleted": {"c": "not_found"}},
        ]
        with patch("cloudinary.api.delete_resources", side_effect=responses) as delete_resources:
            result = cloud.bulk_delete(["a", "b", "c", "a"])

        assert [c.args[0] for c in delete_resources.call_args_list] == [["a", "b", "c"], ["b", "c"], ["c"]]
        assert result == {"deleted": {"a": "deleted", "b": "deleted"}, "deletedCount": 2, "notFound": ["c"]}

    def test_stops_when_everything_is_deleted(self, cloud):
        with patch("cloudinary.api.delete_resources", return_value={"deleted": {"a": "deleted"}}) as delete_resources:
            result = cloud.bulk_delete(["a"])
        assert delete_resources.call_count == 1
        assert result["deletedCount"] == 1


class TestFileInfo:
    def test_not_found_tries_next_type(self, cloud):
        found = {"public_id": "campushub-resources/a", "bytes": 10, "format": "pdf",
                 "resource_type": "image", "secure_url": "https://x/a.pdf", "version": 3}
        with patch("cloudinary.api.resource", side_effect=[NotFound("missing"), found]):
            info = cloud.get_file_info("campushub-resources/a")
        assert info["name"] == "a"
        assert info["resourceType"] == "image"
        assert info["size"] == 10

    def test_not_found_everywhere(self, cloud):
        with patch("cloudinary.api.resource", side_effect=NotFound("missing")):
            with pytest.raises(StorageException, match="File not found in any resource type"):
                cloud.get_file_info("campushub-resources/a")

    def test_other_errors_are_not_retried(self, cloud):
        with patch("cloudinary.api.resource", side_effect=CloudinaryError("rate limited")) as resource:
            with pytest.raises(StorageException, match="rate limited"):
                cloud.get_file_info("campushub-resources/a")
        assert resource.call_count == 1


class TestUsage:
    def test_usage_mapping(self, cloud):
        usage = {
            "plan": "Free",
            "credits": {"usage": 1.5, "limit": 25},
            "storage": {"usage": 2048},
            "resources": 4,
            "derived_resources": 1,
        }
        with patch("cloudinary.api.usage", return_value=usage):
            info = cloud.usage()
        assert info["plan"] == "Free"
        assert info["credits"] == {"used": 1.5, "limit": 25}
        assert info["storage"] == {"used": 2048, "limit": 0}
        assert info["bandwidth"] == {"used": 0, "limit": 0}
        assert info["derivedResources"] == 1

    def test_usage_failure(self, cloud):
        with patch("cloudinary.api.usage", side_effect=CloudinaryError("unauthorized")):
            with pytest.raises(StorageException):
                cloud.usage()

    def test_ping(self, cloud):
        with patch("cloudinary.api.ping", return_value={"status": "ok"}):
            assert cloud.ping() is True
        with patch("cloudinary.api.ping", side_effect=CloudinaryError("down")):
            assert cloud.ping() is False
