"""
Resource query pipeline: filter compiler -> sorter -> paginator.

Operates on whatever a ResourceStore hands back, so the same code serves
the in-memory and SQL stores.
"""
import math
from dataclasses import dataclass, field

from campushub.constants import DEFAULT_PAGE_SIZE, DEFAULT_SORT_BY, DEFAULT_SORT_ORDER
from campushub.utils import ensure_utc


def _contains(haystack, needle):
    return bool(haystack) and needle in haystack.lower()


def compile_filter(branch=None, semester=None, subject=None, resource_type=None, search=None):
    """
    Build a conjunctive predicate over Resource.
    Absent (None or empty) parameters impose no constraint.
    """
    predicates = []

    if branch:
        predicates.append(lambda r: r.branch == branch)
    if semester is not None:
        predicates.append(lambda r: r.semester == semester)
    if subject:
        subject_term = subject.lower()
        predicates.append(lambda r: _contains(r.subject, subject_term))
    if resource_type:
        predicates.append(lambda r: r.resource_type == resource_type)
    if search:
        term = search.lower()
        predicates.append(
            lambda r: _contains(r.title, term)
            or _contains(r.description, term)
            or _contains(r.subject, term)
            or any(_contains(tag, term) for tag in (r.tags or []))
        )

    def predicate(resource):
        return all(p(resource) for p in predicates)

    return predicate


SORT_KEYS = {
    "uploadedAt": lambda r: ensure_utc(r.uploaded_at),
    "title": lambda r: r.title or "",
    "downloadCount": lambda r: r.download_count or 0,
    "semester": lambda r: r.semester,
}


def sort_resources(resources, sort_by=DEFAULT_SORT_BY, sort_order=DEFAULT_SORT_ORDER):
    """
    Stable sort: records with equal keys keep the order they came in,
    for both directions, so identical requests page identically.
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Invalid sort field: {sort_by}")
    if sort_order not in ("asc", "desc"):
        raise ValueError(f"Invalid sort order: {sort_order}")
    return sorted(resources, key=SORT_KEYS[sort_by], reverse=sort_order == "desc")


@dataclass
class Page:
    items: list
    page: int
    limit: int
    total_items: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        self.total_pages = math.ceil(self.total_items / self.limit) if self.total_items else 0

    @property
    def has_next_page(self):
        return self.page < self.total_pages

    @property
    def has_previous_page(self):
        return self.page > 1

    def pagination(self):
        return {
            "currentPage": self.page,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
            "itemsPerPage": self.limit,
            "hasNextPage": self.has_next_page,
            "hasPreviousPage": self.has_previous_page,
        }


def paginate(resources, page=1, limit=DEFAULT_PAGE_SIZE):
    """Slice an ordered list; a page past the end is empty, not an error"""
    if page < 1:
        raise ValueError("Page must be a positive integer")
    if limit < 1:
        raise ValueError("Limit must be a positive integer")
    start = (page - 1) * limit
    return Page(items=resources[start:start + limit], page=page, limit=limit, total_items=len(resources))
