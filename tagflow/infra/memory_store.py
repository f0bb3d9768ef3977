"""
In-memory ReferenceStore for tests and rehearsals.

Holds a local tag map, a remote tag map and a set of known commits.
Remote behavior can be scripted: queue SyncResults per tag name, or
install a hook that mutates the remote before a push to simulate a
concurrent writer.
"""

import fnmatch
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Iterable, List, Optional, Tuple

from .reference_store import ReferenceStore, StoreResult, SyncResult


class InMemoryReferenceStore(ReferenceStore):
    """
    Fake reference store.

    Example:
        store = InMemoryReferenceStore(commits=["a1", "b2"])
        store.create_or_move("v1.0.0", "a1", allow_move=False)
        store.resolve("v1.0.0")    # "a1"
        store.mutations            # [("create", "v1.0.0", "a1")]
    """

    def __init__(
        self,
        commits: Iterable[str] = (),
        tags: Optional[Dict[str, str]] = None,
        remote_tags: Optional[Dict[str, str]] = None,
        head: Optional[str] = None,
    ):
        """
        Initialize InMemoryReferenceStore.

        Args:
            commits: Known commit ids
            tags: Initial local tags (name -> commit)
            remote_tags: Initial remote tags (name -> commit)
            head: Commit that ``HEAD`` resolves to
        """
        self.commits = set(commits)
        self.tags: Dict[str, str] = dict(tags or {})
        self.remote_tags: Dict[str, str] = dict(remote_tags or {})
        self.commits.update(self.tags.values())
        self.commits.update(self.remote_tags.values())
        self.head = head
        if head:
            self.commits.add(head)

        self.messages: Dict[str, str] = {}
        self.mutations: List[Tuple[str, str, str]] = []
        self.pushes: List[Tuple[str, bool]] = []
        self._scripted: Dict[str, Deque[SyncResult]] = defaultdict(deque)
        self.before_push: Optional[Callable[[str, bool], None]] = None

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def script_sync(self, name: str, *results: SyncResult) -> None:
        """Queue results returned by the next remote_sync() calls for name."""
        self._scripted[name].extend(results)

    # ------------------------------------------------------------------
    # ReferenceStore
    # ------------------------------------------------------------------

    def resolve(self, name: str) -> Optional[str]:
        return self.tags.get(name)

    def resolve_commit(self, rev: str) -> Optional[str]:
        if rev == 'HEAD':
            return self.head
        if rev in self.commits:
            return rev
        matches = [c for c in self.commits if c.startswith(rev)] if len(rev) >= 4 else []
        if len(matches) == 1:
            return matches[0]
        return None

    def list_by_prefix(self, pattern: str) -> List[str]:
        return sorted(name for name in self.tags if fnmatch.fnmatchcase(name, pattern))

    def remote_resolve(self, name: str) -> Optional[str]:
        return self.remote_tags.get(name)

    def create_or_move(
        self,
        name: str,
        commit: str,
        allow_move: bool,
        message: Optional[str] = None,
    ) -> StoreResult:
        if commit not in self.commits:
            return StoreResult.COMMIT_NOT_FOUND
        if name in self.tags and not allow_move:
            return StoreResult.ALREADY_EXISTS

        action = 'move' if name in self.tags else 'create'
        self.tags[name] = commit
        self.messages[name] = message or f"Tag: {name}"
        self.mutations.append((action, name, commit))
        return StoreResult.SUCCESS

    def remote_sync(self, name: str, force: bool = False) -> SyncResult:
        self.pushes.append((name, force))
        if self.before_push:
            self.before_push(name, force)

        if self._scripted.get(name):
            return self._scripted[name].popleft()

        local = self.tags.get(name)
        if local is None:
            return SyncResult.CONFLICT
        remote = self.remote_tags.get(name)
        if remote is not None and remote != local and not force:
            return SyncResult.CONFLICT
        self.remote_tags[name] = local
        return SyncResult.SUCCESS
