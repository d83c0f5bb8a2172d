"""
Request schemas for the resource API.

Field names are snake_case in Python and camelCase on the wire.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from campushub.constants import (
    BRANCHES,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_BY,
    DEFAULT_SORT_ORDER,
    MAX_PAGE_SIZE,
    MAX_SEMESTER,
    MIN_SEMESTER,
    RESOURCE_TYPES,
    SORT_FIELDS,
    SORT_ORDERS,
)
from campushub.utils import split_tags

Branch = Literal[tuple(BRANCHES)]
ResourceType = Literal[tuple(RESOURCE_TYPES)]
SortBy = Literal[tuple(SORT_FIELDS)]
SortOrder = Literal[tuple(SORT_ORDERS)]

_http_url = TypeAdapter(HttpUrl)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    @classmethod
    def from_args(cls, args):
        """
        Validate a query string / form mapping; blank values count as absent.
        A key sent more than once (e.g. repeated `tags` fields) keeps all its values.
        """
        data = {}
        for key in args.keys():
            values = args.getlist(key) if hasattr(args, "getlist") else [args[key]]
            values = [v for v in values if v not in (None, "")]
            if values:
                data[key] = values if len(values) > 1 else values[0]
        return cls.model_validate(data)


class ResourceQuery(CamelModel):
    branch: Optional[Branch] = None
    semester: Optional[int] = Field(default=None, ge=MIN_SEMESTER, le=MAX_SEMESTER)
    subject: Optional[str] = Field(default=None, max_length=100)
    resource_type: Optional[ResourceType] = None
    search: Optional[str] = Field(default=None, max_length=100)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    sort_by: SortBy = DEFAULT_SORT_BY
    sort_order: SortOrder = DEFAULT_SORT_ORDER

    def filters(self):
        return {
            "branch": self.branch,
            "semester": self.semester,
            "subject": self.subject,
            "resourceType": self.resource_type,
            "search": self.search,
        }


class SearchQuery(CamelModel):
    q: str = Field(min_length=2, max_length=100)
    branch: Optional[Branch] = None
    semester: Optional[int] = Field(default=None, ge=MIN_SEMESTER, le=MAX_SEMESTER)
    resource_type: Optional[ResourceType] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    sort_by: SortBy = DEFAULT_SORT_BY
    sort_order: SortOrder = DEFAULT_SORT_ORDER


class SubjectQuery(CamelModel):
    branch: Optional[Branch] = None
    semester: Optional[int] = Field(default=None, ge=MIN_SEMESTER, le=MAX_SEMESTER)


class ResourceUpload(CamelModel):
    """Fields shared by every upload kind"""
    branch: Branch
    semester: int = Field(ge=MIN_SEMESTER, le=MAX_SEMESTER)
    subject: str = Field(min_length=2, max_length=100)
    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, value):
        if value is not None and not isinstance(value, (str, list, tuple)):
            raise ValueError("Tags must be a comma-separated string or a list of strings")
        return split_tags(value)

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, value):
        return value or None


class FileResourceUpload(ResourceUpload):
    pass


class SyllabusUpload(ResourceUpload):
    syllabus_text: str = Field(min_length=10)


class ContentUpload(ResourceUpload):
    content_link: str

    @field_validator("content_link")
    @classmethod
    def content_link_is_http_url(cls, value):
        """Must parse as an absolute http(s) URL; kept exactly as submitted"""
        try:
            _http_url.validate_python(value)
        except ValidationError:
            raise ValueError("Content link must be a valid http(s) URL")
        return value


class BulkDeleteRequest(CamelModel):
    resource_ids: List[int] = Field(min_length=1)

    @field_validator("resource_ids")
    @classmethod
    def ids_are_positive(cls, value):
        if any(resource_id < 1 for resource_id in value):
            raise ValueError("Each resource ID must be a positive integer")
        return value
