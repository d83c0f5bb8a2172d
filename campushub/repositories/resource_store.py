"""
Resource stores: insert, lookup, predicate search, update and delete of Resource records.

`InMemoryResourceStore` backs tests and throwaway deployments,
`SqlResourceStore` is the persistent store. Both hand out active records
in insertion order, which the query pipeline relies on for stable sorting.
"""

from abc import ABC, abstractmethod
from itertools import count
import threading

from sqlalchemy import update as sql_update
from sqlalchemy.exc import SQLAlchemyError
import structlog

from campushub.db import db
from campushub.exceptions import DatabaseException
from campushub.models.resource import Resource

logger = structlog.get_logger("resource_store")


class ResourceStore(ABC):
    @abstractmethod
    def insert(self, resource: Resource) -> Resource:
        pass

    @abstractmethod
    def get(self, resource_id: int, active_only: bool = True):
        pass

    @abstractmethod
    def find(self, predicate=None) -> list:
        """Active records matching `predicate`, in insertion order"""
        pass

    @abstractmethod
    def update(self, resource: Resource, **changes) -> Resource:
        pass

    @abstractmethod
    def record_access(self, resource: Resource, accessed_at) -> Resource:
        """Set last_accessed only; updated_at is left alone"""
        pass

    @abstractmethod
    def increment_downloads(self, resource: Resource, accessed_at) -> Resource:
        pass

    @abstractmethod
    def delete(self, resource: Resource) -> None:
        pass

    def delete_many(self, resources) -> int:
        removed = 0
        for resource in resources:
            self.delete(resource)
            removed += 1
        return removed

    def get_many(self, resource_ids, active_only: bool = True) -> list:
        found = []
        for resource_id in resource_ids:
            resource = self.get(resource_id, active_only=active_only)
            if resource is not None and resource not in found:
                found.append(resource)
        return found

    def count(self) -> int:
        return len(self.find())


class InMemoryResourceStore(ResourceStore):
    def __init__(self):
        self._resources = {}
        self._ids = count(1)
        self._lock = threading.Lock()

    def insert(self, resource):
        with self._lock:
            resource.id = next(self._ids)
            self._resources[resource.id] = resource
        return resource

    def get(self, resource_id, active_only=True):
        resource = self._resources.get(resource_id)
        if resource is None or (active_only and not resource.is_active):
            return None
        return resource

    def find(self, predicate=None):
        return [
            r for r in list(self._resources.values())
            if r.is_active and (predicate is None or predicate(r))
        ]

    def update(self, resource, **changes):
        for key, value in changes.items():
            if hasattr(resource, key):
                setattr(resource, key, value)
        return resource

    def record_access(self, resource, accessed_at):
        resource.last_accessed = accessed_at
        return resource

    def increment_downloads(self, resource, accessed_at):
        with self._lock:
            resource.download_count = (resource.download_count or 0) + 1
            resource.last_accessed = accessed_at
        return resource

    def delete(self, resource):
        with self._lock:
            self._resources.pop(resource.id, None)


class SqlResourceStore(ResourceStore):
    """Flask-SQLAlchemy backed store; must be used inside an app context"""

    def _commit(self, action):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise DatabaseException(f"Failed to {action}: {e}") from e

    def insert(self, resource):
        db.session.add(resource)
        self._commit("insert resource")
        db.session.refresh(resource)
        return resource

    def get(self, resource_id, active_only=True):
        resource = db.session.get(Resource, resource_id)
        if resource is None or (active_only and not resource.is_active):
            return None
        return resource

    def find(self, predicate=None):
        rows = Resource.query.filter(Resource.is_active.is_(True)).order_by(Resource.id).all()
        if predicate is None:
            return rows
        return [r for r in rows if predicate(r)]

    def update(self, resource, **changes):
        for key, value in changes.items():
            if hasattr(resource, key):
                setattr(resource, key, value)
        self._commit(f"update resource {resource.id}")
        return resource

    def record_access(self, resource, accessed_at):
        # updated_at is set to itself so the column's onupdate does not fire
        db.session.execute(
            sql_update(Resource)
            .where(Resource.id == resource.id)
            .values(last_accessed=accessed_at, updated_at=Resource.updated_at)
        )
        self._commit(f"record access of resource {resource.id}")
        db.session.refresh(resource)
        return resource

    def increment_downloads(self, resource, accessed_at):
        db.session.execute(
            sql_update(Resource)
            .where(Resource.id == resource.id)
            .values(
                download_count=Resource.download_count + 1,
                last_accessed=accessed_at,
                updated_at=Resource.updated_at,
            )
        )
        self._commit(f"record download of resource {resource.id}")
        db.session.refresh(resource)
        return resource

    def delete(self, resource):
        db.session.delete(resource)
        self._commit(f"delete resource {resource.id}")

    def delete_many(self, resources):
        resources = list(resources)
        for resource in resources:
            db.session.delete(resource)
        self._commit(f"delete {len(resources)} resources")
        return len(resources)

    def count(self):
        return Resource.query.filter(Resource.is_active.is_(True)).count()
