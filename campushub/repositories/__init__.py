"""
Repositories package
Separates resource persistence from the request handlers.

- resource_store.py: ResourceStore abstraction with in-memory and SQL implementations

Usage:
    from campushub.repositories.resource_store import SqlResourceStore
    store = SqlResourceStore()
"""
