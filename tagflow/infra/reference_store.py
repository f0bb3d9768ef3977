"""
Reference store port for tagflow.

The reference store is the shared, externally replicated set of named
tags. It offers no transactions and no compare-and-swap: the only
consistency contract is create-never-overwrite for immutable names and
last-write-wins for movable ones. TagRepository reaches the store only
through this interface, so tests substitute InMemoryReferenceStore.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional


class StoreResult(Enum):
    """Outcome of create_or_move()."""
    SUCCESS = "success"
    ALREADY_EXISTS = "already_exists"
    COMMIT_NOT_FOUND = "commit_not_found"


class SyncResult(Enum):
    """Outcome of remote_sync()."""
    SUCCESS = "success"
    CONFLICT = "conflict"
    NETWORK_ERROR = "network_error"


class ReferenceStore(ABC):
    """Abstract interface over a tag store with a remote copy."""

    # ============================================================================
    # Query Operations
    # ============================================================================

    @abstractmethod
    def resolve(self, name: str) -> Optional[str]:
        """
        Resolve a tag name to the commit it points to.

        Returns:
            Commit id, or None if the tag does not exist
        """
        ...

    @abstractmethod
    def resolve_commit(self, rev: str) -> Optional[str]:
        """
        Resolve a revision (commit id, branch, ``HEAD``) to a commit id.

        Returns:
            Full commit id, or None if it does not name a commit
        """
        ...

    @abstractmethod
    def list_by_prefix(self, pattern: str) -> List[str]:
        """
        List tag names matching a glob pattern (e.g. ``api/v*``).
        """
        ...

    @abstractmethod
    def remote_resolve(self, name: str) -> Optional[str]:
        """
        Resolve a tag name on the remote copy of the store.

        Returns:
            Commit id on the remote, or None if absent there
        """
        ...

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    @abstractmethod
    def create_or_move(
        self,
        name: str,
        commit: str,
        allow_move: bool,
        message: Optional[str] = None,
    ) -> StoreResult:
        """
        Bind a tag name to a commit.

        Args:
            name: Tag name
            commit: Target commit id
            allow_move: Rebind if the tag already exists
            message: Annotation for the tag

        Returns:
            SUCCESS, ALREADY_EXISTS (exists and allow_move is False) or
            COMMIT_NOT_FOUND

        Raises:
            ReferenceStoreError: The write failed for any other reason
        """
        ...

    @abstractmethod
    def remote_sync(self, name: str, force: bool = False) -> SyncResult:
        """
        Propagate a local tag to the remote copy.

        Args:
            name: Tag name
            force: Overwrite a differing remote tag

        Returns:
            SUCCESS, CONFLICT (remote holds a different binding) or
            NETWORK_ERROR
        """
        ...
