"""
Git client infrastructure for tagflow.

Implements the ReferenceStore port over git tags in a local clone, with
the remote (``origin`` by default) as the shared copy. All git
operations go through this client, making them:
- Easy to replace with InMemoryReferenceStore in tests
- Consistent in error handling
- Bounded by the caller's cancellation token
"""

import subprocess
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..cancellation import CancellationToken
from ..domain.errors import Cancelled, ReferenceStoreError
from .reference_store import ReferenceStore, StoreResult, SyncResult

logger = logging.getLogger(__name__)

# Substrings of `git push` stderr that mean the remote refused the update
# rather than being unreachable.
CONFLICT_MARKERS = (
    'rejected',
    'already exists',
    'non-fast-forward',
    'stale info',
)


@dataclass
class GitResult:
    """Result of one git invocation."""
    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GitReferenceStore(ReferenceStore):
    """
    ReferenceStore backed by git tags.

    Tags are created annotated (``git tag -a``) so the message records who
    created or moved them. Remote sync is ``git push <remote>
    refs/tags/<name>``.

    Example:
        store = GitReferenceStore("/path/to/clone")
        commit = store.resolve("production")
    """

    def __init__(
        self,
        path: str = ".",
        remote: str = "origin",
        timeout: int = 30,
        token: Optional[CancellationToken] = None,
    ):
        """
        Initialize GitReferenceStore.

        Args:
            path: Path to the git working tree
            remote: Remote that holds the shared copy of the tags
            timeout: Per-command timeout in seconds (default: 30)
            token: Cancellation token bounding every command
        """
        self.path = path
        self.remote = remote
        self.timeout = timeout
        self.token = token or CancellationToken()

    def _run(self, args: Sequence[str], operation: str = "git") -> GitResult:
        """
        Run a git command.

        Args:
            args: Arguments after ``git``
            operation: Label used in logs and Cancelled errors

        Returns:
            GitResult with stripped stdout/stderr

        Raises:
            Cancelled: The token fired or the command timed out
        """
        self.token.raise_if_cancelled(operation)
        cmd = ['git', *args]
        logger.debug("Running: %s", ' '.join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=self.path,
                capture_output=True,
                text=True,
                timeout=self.token.bound(self.timeout),
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {' '.join(cmd)}")
            raise Cancelled(operation)
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            return GitResult(stdout='', stderr=str(e), returncode=-1)

        return GitResult(
            stdout=(result.stdout or '').strip(),
            stderr=(result.stderr or '').strip(),
            returncode=result.returncode,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def resolve(self, name: str) -> Optional[str]:
        result = self._run(
            ['rev-parse', '--verify', '--quiet', f'refs/tags/{name}^{{commit}}'],
            operation=f"resolve {name}",
        )
        if result.ok and result.stdout:
            return result.stdout
        return None

    def resolve_commit(self, rev: str) -> Optional[str]:
        result = self._run(
            ['rev-parse', '--verify', '--quiet', f'{rev}^{{commit}}'],
            operation=f"resolve {rev}",
        )
        if result.ok and result.stdout:
            return result.stdout
        return None

    def list_by_prefix(self, pattern: str) -> List[str]:
        result = self._run(['tag', '--list', pattern], operation="list tags")
        if not result.ok or not result.stdout:
            return []
        return [line.strip() for line in result.stdout.split('\n') if line.strip()]

    def remote_resolve(self, name: str) -> Optional[str]:
        result = self._run(
            ['ls-remote', '--tags', self.remote, f'refs/tags/{name}', f'refs/tags/{name}^{{}}'],
            operation=f"ls-remote {name}",
        )
        if not result.ok or not result.stdout:
            return None
        return parse_ls_remote(result.stdout, name)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_or_move(
        self,
        name: str,
        commit: str,
        allow_move: bool,
        message: Optional[str] = None,
    ) -> StoreResult:
        if self.resolve_commit(commit) is None:
            return StoreResult.COMMIT_NOT_FOUND

        exists = self.resolve(name) is not None
        if exists and not allow_move:
            return StoreResult.ALREADY_EXISTS

        args = ['tag', '-a']
        if exists:
            args.append('-f')
        args += ['-m', message or f"Tag: {name}", name, commit]

        result = self._run(args, operation=f"tag {name}")
        if result.ok:
            return StoreResult.SUCCESS
        if 'already exists' in result.stderr:
            return StoreResult.ALREADY_EXISTS
        logger.error(f"Failed to tag {name}: {result.stderr}")
        raise ReferenceStoreError(name, result.stderr or f"git exited with {result.returncode}")

    def remote_sync(self, name: str, force: bool = False) -> SyncResult:
        args = ['push']
        if force:
            args.append('--force')
        args += [self.remote, f'refs/tags/{name}']

        result = self._run(args, operation=f"push {name}")
        if result.ok:
            return SyncResult.SUCCESS
        return classify_push_failure(result.stderr)


def classify_push_failure(stderr: str) -> SyncResult:
    """Map `git push` stderr to CONFLICT or NETWORK_ERROR."""
    lowered = stderr.lower()
    if any(marker in lowered for marker in CONFLICT_MARKERS):
        return SyncResult.CONFLICT
    return SyncResult.NETWORK_ERROR


def parse_ls_remote(output: str, name: str) -> Optional[str]:
    """
    Extract the commit a tag points to from `git ls-remote` output.

    Annotated tags appear twice: the tag object, then the peeled commit
    as ``refs/tags/<name>^{}``. The peeled line wins.
    """
    direct: Optional[str] = None
    peeled: Optional[str] = None
    for line in output.strip().split('\n'):
        parts: Tuple[str, ...] = tuple(line.split())
        if len(parts) != 2:
            continue
        sha, ref = parts
        if ref == f'refs/tags/{name}^{{}}':
            peeled = sha
        elif ref == f'refs/tags/{name}':
            direct = sha
    return peeled or direct
