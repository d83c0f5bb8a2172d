"""
Model: Resource
A catalogued academic item: question paper, notes, syllabus text or external link.
"""

from campushub.constants import FILE_RESOURCE_TYPES, RESOURCE_TYPE_CONTENT, RESOURCE_TYPE_SYLLABUS
from campushub.db import db
from campushub.utils import format_size_py, now_utc, to_iso


class Resource(db.Model):
    __tablename__ = "resources"

    id = db.Column(db.Integer, primary_key=True)
    branch = db.Column(db.String(10), nullable=False, index=True)
    semester = db.Column(db.Integer, nullable=False, index=True)
    subject = db.Column(db.String(100), nullable=False, index=True)
    resource_type = db.Column(db.String(20), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.String(1000))
    tags = db.Column(db.JSON, nullable=False, default=list)

    # pyq / notes
    file_url = db.Column(db.String)
    file_id = db.Column(db.String)  # object storage public id
    file_name = db.Column(db.String)
    file_size = db.Column(db.BigInteger)
    mime_type = db.Column(db.String(100))
    file_format = db.Column(db.String(20))
    storage_resource_type = db.Column(db.String(20))  # category reported by storage at upload
    storage_version = db.Column(db.String(50))

    # syllabus
    syllabus_text = db.Column(db.Text)

    # content
    content_link = db.Column(db.String(2048))

    uploaded_by = db.Column(db.String(50), nullable=False, default="admin")
    download_count = db.Column(db.Integer, nullable=False, default=0)
    uploaded_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now_utc, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=now_utc, onupdate=now_utc)
    last_accessed = db.Column(db.DateTime(timezone=True))
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        db.Index("idx_resources_branch_semester_subject", "branch", "semester", "subject"),
        db.Index("idx_resources_type_active", "resource_type", "is_active"),
    )

    @property
    def is_file_backed(self):
        return self.resource_type in FILE_RESOURCE_TYPES

    @property
    def has_stored_file(self):
        return bool(self.file_id and self.file_url)

    def file_info(self, detailed=False):
        if not self.is_file_backed:
            return None
        info = {
            "originalName": self.file_name,
            "size": self.file_size,
            "viewUrl": self.file_url,
            "format": self.file_format,
        }
        if detailed:
            info.update(
                {
                    "mimeType": self.mime_type,
                    "sizeFormatted": format_size_py(self.file_size),
                    "storageId": self.file_id,
                    "storageUrl": self.file_url,
                    "version": self.storage_version,
                }
            )
        return info

    def to_summary(self):
        """Listing view: internal and bulky fields stripped"""
        data = {
            "id": self.id,
            "title": self.title,
            "branch": self.branch,
            "semester": self.semester,
            "subject": self.subject,
            "resourceType": self.resource_type,
            "description": self.description,
            "tags": list(self.tags or []),
            "uploadedAt": to_iso(self.uploaded_at),
            "downloadCount": self.download_count,
            "lastAccessed": to_iso(self.last_accessed),
        }
        if self.is_file_backed:
            data["fileInfo"] = self.file_info()
        elif self.resource_type == RESOURCE_TYPE_CONTENT:
            data["contentLink"] = self.content_link
        return data

    def to_detail(self):
        data = self.to_summary()
        data.update(
            {
                "syllabusText": self.syllabus_text if self.resource_type == RESOURCE_TYPE_SYLLABUS else None,
                "contentLink": self.content_link if self.resource_type == RESOURCE_TYPE_CONTENT else None,
                "uploadedBy": self.uploaded_by,
                "updatedAt": to_iso(self.updated_at),
            }
        )
        if self.is_file_backed:
            data["fileInfo"] = self.file_info(detailed=True)
        return data

    def to_deleted_summary(self):
        return {
            "id": self.id,
            "title": self.title,
            "fileName": self.file_name,
        }

    def __repr__(self):
        return f"<Resource {self.id} {self.resource_type} {self.title!r}>"
