"""Persistence for Orchestra: the Storage protocol and its implementations."""

from orchestra.persistence.base import InMemoryStorage, Project, ProjectFile, Storage
from orchestra.persistence.sqlite import SQLiteStorage

__all__ = [
    "InMemoryStorage",
    "Project",
    "ProjectFile",
    "SQLiteStorage",
    "Storage",
]
