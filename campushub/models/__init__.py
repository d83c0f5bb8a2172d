"""
Models package

Database models live in separate files:
- resource.py
"""

from .resource import Resource

__all__ = [
    "Resource",
]
