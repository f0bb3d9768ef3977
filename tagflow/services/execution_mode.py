"""
Execution mode resolution for tagflow.

The same operation can run for real, as a rehearsal, or as a canned
outcome used to exercise pipelines. The mode is looked up in an ordered
list of named sources, most specific first; the first non-empty value
wins and nothing is merged across sources.

Default sources (environment variables):
    CI_TEST_<PIPELINE>_<OPERATION>_BEHAVIOR   pipeline-run scope
    CI_TEST_<OPERATION>_BEHAVIOR              operation scope
    CI_TEST_MODE                              global default
    EXECUTE                                   built-in fallback
"""

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Mapping, Optional, Sequence

from ..domain.errors import UnknownExecutionMode

logger = logging.getLogger(__name__)


class ExecutionMode(Enum):
    """How an operation runs."""
    EXECUTE = "EXECUTE"
    DRY_RUN = "DRY_RUN"
    SIMULATE_PASS = "SIMULATE_PASS"
    SIMULATE_FAIL = "SIMULATE_FAIL"
    SKIP = "SKIP"
    SIMULATE_TIMEOUT = "SIMULATE_TIMEOUT"

    @property
    def mutates(self) -> bool:
        """Only EXECUTE writes to the reference store."""
        return self is ExecutionMode.EXECUTE

    @property
    def touches_store(self) -> bool:
        """EXECUTE and DRY_RUN read the store; simulated modes do not."""
        return self in (ExecutionMode.EXECUTE, ExecutionMode.DRY_RUN)


# Short spellings used by existing pipeline configuration
MODE_ALIASES = {
    'PASS': ExecutionMode.SIMULATE_PASS,
    'FAIL': ExecutionMode.SIMULATE_FAIL,
    'TIMEOUT': ExecutionMode.SIMULATE_TIMEOUT,
    'DRYRUN': ExecutionMode.DRY_RUN,
}


def parse_mode(value: str, source: str = "value") -> ExecutionMode:
    """
    Parse a mode name (case-insensitive, '-' accepted for '_').

    Raises:
        UnknownExecutionMode: Not a known mode or alias
    """
    key = value.strip().upper().replace('-', '_')
    if key in MODE_ALIASES:
        return MODE_ALIASES[key]
    try:
        return ExecutionMode(key)
    except ValueError:
        raise UnknownExecutionMode(value, source)


def normalize_name(name: str) -> str:
    """
    Normalize a pipeline or operation name for use in a variable name:
    uppercase, non-alphanumerics collapsed to single underscores.

    Example:
        normalize_name("Release / Tag Assignment")  -> "RELEASE_TAG_ASSIGNMENT"
    """
    upper = re.sub(r'[^A-Za-z0-9]+', '_', name.upper())
    return upper.strip('_')


@dataclass(frozen=True)
class ModeSource:
    """
    One configuration scope.

    Attributes:
        name: Human-readable scope name ("pipeline", "operation", "global")
        key: Key looked up in ``values``
        values: Mapping consulted (os.environ by default)
    """
    name: str
    key: str
    values: Mapping[str, str]

    def lookup(self) -> Optional[str]:
        value = self.values.get(self.key)
        if value is None or not str(value).strip():
            return None
        return str(value)

    @property
    def label(self) -> str:
        return f"{self.name} scope {self.key}"


@dataclass(frozen=True)
class ModeResolution:
    """The resolved mode and the scope that supplied it."""
    mode: ExecutionMode
    source: str


class ExecutionModeResolver:
    """
    Resolves an execution mode from an explicit ordered list of sources.

    Example:
        resolver = ExecutionModeResolver.for_operation(
            "tag_assignment", pipeline="release", values={"CI_TEST_MODE": "DRY_RUN"}
        )
        resolver.resolve().mode   # ExecutionMode.DRY_RUN
    """

    def __init__(
        self,
        sources: Sequence[ModeSource],
        default: ExecutionMode = ExecutionMode.EXECUTE,
    ):
        self.sources: List[ModeSource] = list(sources)
        self.default = default

    @classmethod
    def for_operation(
        cls,
        operation: str,
        pipeline: Optional[str] = None,
        values: Optional[Mapping[str, str]] = None,
        prefix: str = "CI_TEST",
    ) -> 'ExecutionModeResolver':
        """
        Build the standard three-scope resolver for one operation.

        Args:
            operation: Operation name (e.g. "tag_assignment")
            pipeline: Pipeline name; defaults to $GITHUB_WORKFLOW
            values: Mapping to read; defaults to os.environ
            prefix: Variable prefix
        """
        values = os.environ if values is None else values
        if pipeline is None:
            pipeline = values.get('GITHUB_WORKFLOW', '')
        op = normalize_name(operation)
        pipe = normalize_name(pipeline or '')

        sources = []
        if pipe:
            sources.append(ModeSource('pipeline', f"{prefix}_{pipe}_{op}_BEHAVIOR", values))
        sources.append(ModeSource('operation', f"{prefix}_{op}_BEHAVIOR", values))
        sources.append(ModeSource('global', f"{prefix}_MODE", values))
        return cls(sources)

    def resolve(self) -> ModeResolution:
        """
        First non-empty source wins.

        Raises:
            UnknownExecutionMode: The winning source holds an unknown value
        """
        for source in self.sources:
            value = source.lookup()
            if value is not None:
                resolution = ModeResolution(parse_mode(value, source.key), source.label)
                logger.info(f"Execution mode: {resolution.mode.value} (from {source.key})")
                return resolution

        logger.debug(f"Execution mode: {self.default.value} (default)")
        return ModeResolution(self.default, "default")
