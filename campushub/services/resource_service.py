"""
Resource service: the operations behind the resource API.

Holds the resource store and the object storage it was built with; both
are injected by the application factory.
"""
from collections import OrderedDict

import structlog

from campushub.constants import BRANCHES, TOP_CONTENT_LIMIT
from campushub.exceptions import DatabaseException, ResourceNotFoundException, StorageException
from campushub.metrics import resource_deletions_total, resource_downloads_total, resource_uploads_total
from campushub.models.resource import Resource
from campushub.services.resource_query import compile_filter, paginate, sort_resources
from campushub.utils import now_utc, to_iso

logger = structlog.get_logger("resources")


class ResourceService:
    def __init__(self, store, storage, soft_delete=False):
        self.store = store
        self.storage = storage
        self.soft_delete = soft_delete

    # ===== Creation =====

    def _new_resource(self, resource_type, payload, **fields):
        now = now_utc()
        return Resource(
            branch=payload.branch,
            semester=payload.semester,
            subject=payload.subject,
            resource_type=resource_type,
            title=payload.title,
            description=payload.description,
            tags=list(payload.tags),
            uploaded_by="admin",
            download_count=0,
            uploaded_at=now,
            updated_at=now,
            last_accessed=None,
            is_active=True,
            **fields,
        )

    def create_file_resource(self, resource_type, payload, upload):
        """Forward the temporary file to object storage, then record it"""
        context = {
            "branch": payload.branch,
            "semester": payload.semester,
            "subject": payload.subject,
            "resourceType": resource_type,
            "title": payload.title,
            "description": payload.description or "",
        }
        tags = [payload.branch, f"semester_{payload.semester}", resource_type, *payload.tags]

        try:
            stored = self.storage.upload(upload.path, upload.original_name, upload.mime_type, context=context, tags=tags)
        except StorageException:
            resource_uploads_total.labels(resource_type=resource_type, status="error").inc()
            raise

        resource = self._new_resource(
            resource_type,
            payload,
            file_url=stored.url,
            file_id=stored.file_id,
            file_name=upload.original_name,
            file_size=upload.size,
            mime_type=upload.mime_type,
            file_format=stored.file_format,
            storage_resource_type=stored.resource_type,
            storage_version=stored.version,
        )

        try:
            self.store.insert(resource)
        except DatabaseException:
            resource_uploads_total.labels(resource_type=resource_type, status="error").inc()
            self._delete_stored_file(stored.file_id, stored.resource_type)
            raise

        resource_uploads_total.labels(resource_type=resource_type, status="success").inc()
        logger.info(f"Resource uploaded successfully: {resource.title} (ID: {resource.id})")
        return resource

    def create_syllabus_resource(self, payload):
        resource = self.store.insert(
            self._new_resource("syllabus", payload, syllabus_text=payload.syllabus_text)
        )
        resource_uploads_total.labels(resource_type="syllabus", status="success").inc()
        logger.info(f"Syllabus uploaded successfully: {resource.title} (ID: {resource.id})")
        return resource

    def create_content_resource(self, payload):
        resource = self.store.insert(
            self._new_resource("content", payload, content_link=str(payload.content_link))
        )
        resource_uploads_total.labels(resource_type="content", status="success").inc()
        logger.info(f"Content link uploaded successfully: {resource.title} (ID: {resource.id})")
        return resource

    # ===== Queries =====

    def _run_query(self, predicate, page, limit, sort_by, sort_order):
        matched = self.store.find(predicate)
        ordered = sort_resources(matched, sort_by, sort_order)
        result = paginate(ordered, page, limit)
        return {
            "resources": [r.to_summary() for r in result.items],
            "pagination": result.pagination(),
            "sorting": {"sortBy": sort_by, "sortOrder": sort_order},
        }

    def list_resources(self, query):
        predicate = compile_filter(
            branch=query.branch,
            semester=query.semester,
            subject=query.subject,
            resource_type=query.resource_type,
            search=query.search,
        )
        data = self._run_query(predicate, query.page, query.limit, query.sort_by, query.sort_order)
        data["filters"] = query.filters()
        logger.info(f"Retrieved {len(data['resources'])} resources with filters applied")
        return data

    def search_resources(self, query):
        predicate = compile_filter(
            branch=query.branch,
            semester=query.semester,
            resource_type=query.resource_type,
            search=query.q,
        )
        data = self._run_query(predicate, query.page, query.limit, query.sort_by, query.sort_order)
        data["searchQuery"] = query.q
        data["filters"] = {
            "branch": query.branch,
            "semester": query.semester,
            "resourceType": query.resource_type,
        }
        logger.info(f"Search for {query.q!r} matched {data['pagination']['totalItems']} resources")
        return data

    def _get_or_404(self, resource_id):
        resource = self.store.get(resource_id)
        if resource is None:
            raise ResourceNotFoundException("Resource not found")
        return resource

    def get_resource(self, resource_id):
        resource = self._get_or_404(resource_id)
        self.store.record_access(resource, now_utc())

        storage_info = None
        if resource.has_stored_file:
            try:
                storage_info = self.storage.get_file_info(resource.file_id, resource.storage_resource_type)
            except StorageException as e:
                logger.warning(f"Failed to get storage file info for {resource.file_id}: {e}")

        data = resource.to_detail()
        if resource.is_file_backed:
            data["fileInfo"]["storageInfo"] = storage_info
        logger.info(f"Resource retrieved: {resource.title} (ID: {resource.id})")
        return data

    def download_resource(self, resource_id):
        resource = self._get_or_404(resource_id)
        if resource.is_file_backed and not resource.has_stored_file:
            raise ResourceNotFoundException("File not available for this resource")

        self.store.increment_downloads(resource, now_utc())
        resource_downloads_total.labels(resource_type=resource.resource_type).inc()

        download = {
            "resourceId": resource.id,
            "title": resource.title,
            "resourceType": resource.resource_type,
            "downloadCount": resource.download_count,
            "lastAccessed": to_iso(resource.last_accessed),
        }
        if resource.is_file_backed:
            download.update(
                {
                    "fileName": resource.file_name,
                    "downloadUrl": resource.file_url,
                    "viewUrl": resource.file_url,
                    "size": resource.file_size,
                    "mimeType": resource.mime_type,
                    "format": resource.file_format,
                }
            )
        elif resource.resource_type == "syllabus":
            download["syllabusText"] = resource.syllabus_text
        else:
            download["contentLink"] = resource.content_link

        logger.info(f"Download initiated for resource: {resource.title} (ID: {resource.id})")
        return download

    # ===== Deletion =====

    def _delete_stored_file(self, file_id, resource_type=None):
        """Object storage cleanup is best-effort: failures are logged, not raised"""
        try:
            self.storage.delete(file_id, resource_type)
            return True
        except StorageException as e:
            logger.warning(f"Failed to delete from object storage: {e}")
            return False

    def _remove(self, resources):
        if self.soft_delete:
            for resource in resources:
                self.store.update(resource, is_active=False)
            resource_deletions_total.labels(mode="soft").inc(len(resources))
        else:
            self.store.delete_many(resources)
            resource_deletions_total.labels(mode="hard").inc(len(resources))

    def delete_resource(self, resource_id):
        resource = self._get_or_404(resource_id)
        summary = resource.to_deleted_summary()

        if resource.has_stored_file:
            self._delete_stored_file(resource.file_id, resource.storage_resource_type)

        self._remove([resource])
        logger.info(f"Resource deleted successfully: {summary['title']} (ID: {summary['id']})")
        return summary

    def bulk_delete(self, resource_ids):
        resources = self.store.get_many(resource_ids)
        if not resources:
            raise ResourceNotFoundException("No resources found for deletion")

        summaries = [r.to_deleted_summary() for r in resources]
        found_ids = {r.id for r in resources}
        file_ids = [r.file_id for r in resources if r.has_stored_file]

        if file_ids:
            try:
                result = self.storage.bulk_delete(file_ids)
                logger.info(f"Bulk deleted {result['deletedCount']} files from object storage")
            except StorageException as e:
                logger.warning(f"Failed to bulk delete from object storage: {e}")

        self._remove(resources)
        logger.info(f"Bulk deleted {len(resources)} resources successfully")
        return {
            "deletedCount": len(resources),
            "deletedResources": summaries,
            "notFound": [rid for rid in dict.fromkeys(resource_ids) if rid not in found_ids],
        }

    # ===== Aggregates =====

    def stats(self):
        resources = self.store.find()

        total_resources = len(resources)
        total_downloads = sum(r.download_count or 0 for r in resources)
        total_size = sum(r.file_size or 0 for r in resources)

        def _breakdown(key):
            buckets = {}
            for r in resources:
                bucket = buckets.setdefault(str(key(r)), {"count": 0, "downloads": 0})
                bucket["count"] += 1
                bucket["downloads"] += r.download_count or 0
            return buckets

        most_downloaded = sorted(resources, key=lambda r: r.download_count or 0, reverse=True)[:TOP_CONTENT_LIMIT]
        recent_uploads = sort_resources(resources, "uploadedAt", "desc")[:TOP_CONTENT_LIMIT]

        storage_info = None
        try:
            storage_info = self.storage.usage()
        except StorageException as e:
            logger.warning(f"Failed to get storage info: {e}")

        logger.info("Resource statistics retrieved successfully")
        return {
            "overview": {
                "totalResources": total_resources,
                "totalDownloads": total_downloads,
                "totalSize": total_size,
                "averageDownloads": round(total_downloads / total_resources) if total_resources else 0,
                "averageSize": round(total_size / total_resources) if total_resources else 0,
            },
            "breakdown": {
                "byBranch": _breakdown(lambda r: r.branch),
                "byType": _breakdown(lambda r: r.resource_type),
                "bySemester": _breakdown(lambda r: r.semester),
            },
            "topContent": {
                "mostDownloaded": [
                    {
                        "id": r.id,
                        "title": r.title,
                        "branch": r.branch,
                        "semester": r.semester,
                        "resourceType": r.resource_type,
                        "downloadCount": r.download_count,
                    }
                    for r in most_downloaded
                ],
                "recentUploads": [
                    {
                        "id": r.id,
                        "title": r.title,
                        "branch": r.branch,
                        "semester": r.semester,
                        "resourceType": r.resource_type,
                        "uploadedAt": to_iso(r.uploaded_at),
                    }
                    for r in recent_uploads
                ],
            },
            "storage": storage_info,
        }

    def branches(self):
        counts = {}
        for r in self.store.find():
            counts[r.branch] = counts.get(r.branch, 0) + 1
        return [
            {"code": code, "name": name, "resourceCount": counts.get(code, 0)}
            for code, name in BRANCHES.items()
        ]

    def subjects(self, query):
        matched = self.store.find(compile_filter(branch=query.branch, semester=query.semester))

        subject_map = OrderedDict()
        for r in matched:
            entry = subject_map.setdefault(
                r.subject,
                {"name": r.subject, "resourceCount": 0, "branches": [], "semesters": set(), "resourceTypes": []},
            )
            entry["resourceCount"] += 1
            if r.branch not in entry["branches"]:
                entry["branches"].append(r.branch)
            if r.resource_type not in entry["resourceTypes"]:
                entry["resourceTypes"].append(r.resource_type)
            entry["semesters"].add(r.semester)

        subjects = []
        for entry in subject_map.values():
            entry["semesters"] = sorted(entry["semesters"])
            subjects.append(entry)
        subjects.sort(key=lambda s: (-s["resourceCount"], s["name"]))

        logger.info(f"Retrieved {len(subjects)} subjects with applied filters")
        return {
            "subjects": subjects,
            "filters": {"branch": query.branch, "semester": query.semester},
            "totalSubjects": len(subjects),
        }
