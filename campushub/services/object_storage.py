"""
Object storage for uploaded file bytes.

The Cloudinary API does not reliably tell us which resource type ("raw",
"image", "video") a file was stored under, so lookups and deletes walk the
candidate types in order and stop at the first hit. The type reported at
upload time is tried first when it is known.
"""
import os
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import cloudinary
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import NotFound
import structlog

from campushub.constants import STORAGE_FOLDER, STORAGE_RESOURCE_TYPES
from campushub.exceptions import StorageConfigurationException, StorageException
from campushub.metrics import storage_operations_total

logger = structlog.get_logger("object_storage")


class StoredFile:
    def __init__(self, file_id: str, url: str, size: int, file_format: Optional[str],
                 resource_type: str, version: Optional[str] = None):
        self.file_id = file_id
        self.url = url
        self.size = size
        self.file_format = file_format
        self.resource_type = resource_type
        self.version = version


def candidate_resource_types(preferred: Optional[str] = None) -> List[str]:
    """Fallback order for storage categories, `preferred` first"""
    if preferred in STORAGE_RESOURCE_TYPES:
        return [preferred] + [rt for rt in STORAGE_RESOURCE_TYPES if rt != preferred]
    return list(STORAGE_RESOURCE_TYPES)


def resource_type_for_mime(mime_type: str) -> str:
    if mime_type.startswith("image/"):
        return "image"
    if mime_type.startswith("video/"):
        return "video"
    return "raw"


class ObjectStorage(ABC):
    @abstractmethod
    def upload(self, path: str, file_name: str, mime_type: str,
               context: Dict = None, tags: List[str] = None) -> StoredFile:
        pass

    @abstractmethod
    def delete(self, file_id: str, resource_type: Optional[str] = None) -> str:
        """Delete a stored file; returns the resource type it was found under"""
        pass

    @abstractmethod
    def bulk_delete(self, file_ids: List[str]) -> Dict:
        pass

    @abstractmethod
    def get_file_info(self, file_id: str, resource_type: Optional[str] = None) -> Dict:
        pass

    @abstractmethod
    def usage(self) -> Dict:
        pass

    @abstractmethod
    def ping(self) -> bool:
        pass


class CloudinaryStorage(ObjectStorage):
    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: str = STORAGE_FOLDER):
        self.folder = folder
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )
        logger.info(f"Cloudinary configured for cloud_name: {cloud_name}")

    @classmethod
    def from_settings(cls, storage_settings):
        cloud_name = storage_settings.get("cloud_name")
        api_key = storage_settings.get("api_key")
        api_secret = storage_settings.get("api_secret")

        if not cloud_name or not api_key or not api_secret:
            raise StorageConfigurationException(
                "Missing required Cloudinary configuration: "
                f"CLOUDINARY_CLOUD_NAME: {'✓' if cloud_name else '✗'}, "
                f"CLOUDINARY_API_KEY: {'✓' if api_key else '✗'}, "
                f"CLOUDINARY_API_SECRET: {'✓' if api_secret else '✗'}"
            )
        return cls(cloud_name, api_key, api_secret, storage_settings.get("folder") or STORAGE_FOLDER)

    def upload(self, path, file_name, mime_type, context=None, tags=None):
        resource_type = resource_type_for_mime(mime_type)
        public_id = f"{os.path.splitext(file_name)[0]}_{int(time.time() * 1000)}"
        options = {
            "folder": self.folder,
            "public_id": public_id,
            "resource_type": resource_type,
            "use_filename": True,
            "unique_filename": True,
            "overwrite": False,
            "context": {k: "" if v is None else str(v) for k, v in (context or {}).items()},
            "tags": list(tags or []),
        }

        logger.info(f"Uploading file: {file_name} to folder: {self.folder} as {resource_type}")
        try:
            response = cloudinary.uploader.upload(path, **options)
        except CloudinaryError as e:
            storage_operations_total.labels(operation="upload", status="error").inc()
            raise StorageException(f"Cloudinary upload failed: {e}") from e

        storage_operations_total.labels(operation="upload", status="success").inc()
        stored = StoredFile(
            file_id=response["public_id"],
            url=response["secure_url"],
            size=response.get("bytes") or os.path.getsize(path),
            file_format=response.get("format") or os.path.splitext(file_name)[1].lstrip(".") or None,
            resource_type=response.get("resource_type", resource_type),
            version=str(response["version"]) if response.get("version") is not None else None,
        )
        logger.info(f"File uploaded successfully: {file_name} ({stored.file_id}) as {stored.resource_type}")
        return stored

    def delete(self, file_id, resource_type=None):
        last_error = None
        for candidate in candidate_resource_types(resource_type):
            try:
                response = cloudinary.uploader.destroy(file_id, resource_type=candidate)
            except CloudinaryError as e:
                last_error = e
                continue

            if response.get("result") == "ok":
                storage_operations_total.labels(operation="delete", status="success").inc()
                logger.info(f"File deleted successfully: {file_id} (type: {candidate})")
                return candidate

        storage_operations_total.labels(operation="delete", status="error").inc()
        raise StorageException(
            f"Delete failed for all resource types: {file_id}. "
            f"Last error: {last_error if last_error else 'not found'}"
        )

    def bulk_delete(self, file_ids):
        remaining = [file_id for file_id in dict.fromkeys(file_ids) if file_id]
        results = {}

        for candidate in STORAGE_RESOURCE_TYPES:
            if not remaining:
                break
            try:
                response = cloudinary.api.delete_resources(remaining, resource_type=candidate)
            except CloudinaryError as e:
                logger.warning(f"Bulk delete failed for resource type {candidate}: {e}")
                continue

            deleted = response.get("deleted") or {}
            for file_id, status in deleted.items():
                if status == "deleted":
                    results[file_id] = "deleted"
            remaining = [file_id for file_id in remaining if file_id not in results]
            logger.info(f"Bulk delete for resource type {candidate}: {len(deleted)} files processed")

        status = "success" if not remaining else "partial"
        storage_operations_total.labels(operation="bulk_delete", status=status).inc()
        logger.info(f"Bulk delete completed: {len(results)} files deleted successfully")
        return {"deleted": results, "deletedCount": len(results), "notFound": remaining}

    def get_file_info(self, file_id, resource_type=None):
        last_error = None
        for candidate in candidate_resource_types(resource_type):
            try:
                response = cloudinary.api.resource(file_id, resource_type=candidate)
            except NotFound as e:
                last_error = e
                continue
            except CloudinaryError as e:
                storage_operations_total.labels(operation="info", status="error").inc()
                raise StorageException(f"Failed to get file info for {file_id}: {e}") from e

            storage_operations_total.labels(operation="info", status="success").inc()
            return {
                "id": response.get("public_id"),
                "name": (response.get("public_id") or "").split("/")[-1],
                "size": response.get("bytes"),
                "format": response.get("format"),
                "resourceType": response.get("resource_type", candidate),
                "createdAt": response.get("created_at"),
                "url": response.get("secure_url"),
                "version": response.get("version"),
                "tags": response.get("tags", []),
                "context": response.get("context"),
            }

        storage_operations_total.labels(operation="info", status="error").inc()
        raise StorageException(
            f"File not found in any resource type: {file_id}. Last error: {last_error or 'unknown'}"
        )

    def usage(self):
        try:
            usage = cloudinary.api.usage()
        except CloudinaryError as e:
            raise StorageException(f"Failed to get storage info: {e}") from e

        def _metric(name):
            section = usage.get(name) or {}
            return {"used": section.get("used") or section.get("usage") or 0, "limit": section.get("limit") or 0}

        return {
            "plan": usage.get("plan"),
            "credits": _metric("credits"),
            "storage": _metric("storage"),
            "bandwidth": _metric("bandwidth"),
            "transformations": _metric("transformations"),
            "resources": usage.get("resources", 0),
            "derivedResources": usage.get("derived_resources", 0),
        }

    def ping(self):
        try:
            response = cloudinary.api.ping()
        except CloudinaryError as e:
            logger.warning(f"Cloudinary ping failed: {e}")
            return False
        return response.get("status") == "ok"
