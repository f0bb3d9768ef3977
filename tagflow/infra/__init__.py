"""
Infrastructure layer for tagflow.

Contains the reference store port and its implementations:
- ReferenceStore: Abstract tag store with a remote copy
- GitReferenceStore: Git tags in a local clone, pushed to a remote
- InMemoryReferenceStore: Fake store for tests and rehearsals

These provide clean interfaces that can be swapped for testing.
"""

from .reference_store import ReferenceStore, StoreResult, SyncResult
from .git_client import GitReferenceStore
from .memory_store import InMemoryReferenceStore

__all__ = [
    'ReferenceStore',
    'StoreResult',
    'SyncResult',
    'GitReferenceStore',
    'InMemoryReferenceStore',
]
