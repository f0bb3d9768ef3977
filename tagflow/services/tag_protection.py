"""
Push protection for tagflow.

Backs the git pre-push hook: environment tags may only be written by the
tag assignment pipeline, so a manual push of one is refused unless the
emergency override is set. Tags that match no known shape are allowed
with a warning.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..domain import TagKind, TagNaming

logger = logging.getLogger(__name__)

OVERRIDE_VARIABLE = "ALLOW_PROTECTED_TAG_PUSH"
ZERO_SHA = "0" * 40


@dataclass
class PushCheck:
    """Verdict for one pushed tag."""
    tag_name: str
    kind: Optional[TagKind]
    allowed: bool
    deleting: bool = False
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            'tag_name': self.tag_name,
            'kind': self.kind.value if self.kind else None,
            'allowed': self.allowed,
            'deleting': self.deleting,
            'reason': self.reason,
        }


@dataclass
class PushReport:
    """All verdicts for one push."""
    checks: List[PushCheck] = field(default_factory=list)

    @property
    def allowed(self) -> bool:
        return all(c.allowed for c in self.checks)

    @property
    def rejected(self) -> List[PushCheck]:
        return [c for c in self.checks if not c.allowed]


def tag_from_ref(ref: str) -> Optional[str]:
    """
    Tag name from a pushed ref, or None for non-tag refs.

    Handles ``refs/tags/x``, ``+refs/tags/x:refs/tags/x`` and
    ``refs/tags/x:refs/tags/y``.
    """
    ref = ref.lstrip('+')
    if ':' in ref:
        ref = ref.split(':', 1)[0]
    if ref.startswith('refs/tags/'):
        return ref[len('refs/tags/'):]
    return None


def parse_hook_lines(lines: Iterable[str]) -> List[tuple]:
    """
    Parse pre-push hook stdin: ``<local ref> <local sha> <remote ref> <remote sha>``.

    Returns:
        List of (tag_name, deleting) for tag refs only
    """
    result = []
    for line in lines:
        parts = line.split()
        if len(parts) != 4:
            continue
        local_ref, local_sha, remote_ref, _ = parts
        name = tag_from_ref(remote_ref) or tag_from_ref(local_ref)
        if name is None:
            continue
        result.append((name, local_sha == ZERO_SHA))
    return result


def check_push(
    tags: Iterable[tuple],
    naming: TagNaming,
    allow_protected: bool = False,
) -> PushReport:
    """
    Check pushed tags against the protection policy.

    Args:
        tags: (tag_name, deleting) pairs
        naming: Tag naming rules
        allow_protected: Emergency override for environment tags
    """
    report = PushReport()
    for name, deleting in tags:
        kind = naming.classify(name)
        # The last path component decides protection, whatever the prefix
        if kind is None and name.rsplit('/', 1)[-1] in naming.environments:
            kind = TagKind.ENVIRONMENT
        if kind is TagKind.ENVIRONMENT:
            if allow_protected:
                logger.warning(f"Protected tag {name} pushed with {OVERRIDE_VARIABLE}=true")
                report.checks.append(PushCheck(name, kind, True, deleting, "override"))
            else:
                logger.error(f"Protected environment tag: {name}")
                report.checks.append(PushCheck(
                    name, kind, False, deleting,
                    "environment tags must be assigned by the tag assignment pipeline",
                ))
        elif kind is None:
            logger.warning(f"Tag does not follow version/environment/state patterns: {name}")
            report.checks.append(PushCheck(name, None, True, deleting, "unrecognized pattern"))
        else:
            report.checks.append(PushCheck(name, kind, True, deleting))
    return report
