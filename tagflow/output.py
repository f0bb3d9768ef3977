"""
Output module for tagflow.

Provides consistent output formatting across all commands:
- key=value (default for single results): one pair per line, so calling
  pipelines can capture them as step outputs
- JSONL: newline-delimited JSON for piping
- Pretty: human-readable tables using Rich

Usage:
    from tagflow.output import emit_outputs, emit, emit_error

    emit_outputs(result.to_outputs())
    emit(tags, pretty=True)
    emit_error("Tag exists", type="already_immutable")
"""

import json
import os
import sys
from typing import Any, Dict, Iterable, List, Mapping, Optional

from rich.console import Console
from rich.table import Table


def format_outputs(outputs: Mapping[str, Any]) -> List[str]:
    """Render a mapping as ``key=value`` lines."""
    lines = []
    for key, value in outputs.items():
        if isinstance(value, bool):
            value = str(value).lower()
        elif value is None:
            value = ''
        lines.append(f"{key}={value}")
    return lines


def emit_outputs(outputs: Mapping[str, Any], stream=None, github_output: Optional[str] = None) -> None:
    """
    Print ``key=value`` lines and append them to $GITHUB_OUTPUT when set.

    Args:
        outputs: Ordered mapping of output names to values
        stream: Destination (stdout if None)
        github_output: Path of the step output file (default: $GITHUB_OUTPUT)
    """
    stream = stream or sys.stdout
    for line in format_outputs(outputs):
        print(line, file=stream, flush=True)
    write_github_output(outputs, github_output)


def write_github_output(outputs: Mapping[str, Any], path: Optional[str] = None) -> bool:
    """
    Append ``key=value`` lines to the step output file.

    Returns:
        True if a file was written
    """
    path = path or os.environ.get('GITHUB_OUTPUT')
    if not path:
        return False
    with open(path, 'a') as f:
        for line in format_outputs(outputs):
            f.write(line + '\n')
    return True


def emit_json(obj: Any) -> None:
    """Emit a single object as one JSON line."""
    _emit_jsonl([obj], sys.stdout)


def emit(
    items: Iterable[Any],
    pretty: bool = False,
    columns: Optional[List[str]] = None,
    err: bool = False
) -> None:
    """
    Emit items as JSONL or pretty table.

    Args:
        items: Items to emit (should have to_dict() method or be dicts)
        pretty: If True, render as table. If False, output JSONL
        columns: Column names for table (auto-detected if None)
        err: If True, output to stderr instead of stdout
    """
    stream = sys.stderr if err else sys.stdout

    if pretty:
        _emit_table(items, columns)
    else:
        _emit_jsonl(items, stream)


def _to_dict(item: Any) -> Dict[str, Any]:
    if hasattr(item, 'to_dict'):
        return item.to_dict()
    if isinstance(item, dict):
        return item
    return {'value': str(item)}


def _emit_jsonl(items: Iterable[Any], stream=None) -> None:
    """Emit items as JSONL."""
    stream = stream or sys.stdout
    for item in items:
        print(json.dumps(_to_dict(item), ensure_ascii=False), file=stream, flush=True)


def _emit_table(items: Iterable[Any], columns: Optional[List[str]] = None) -> None:
    """Emit items as a Rich table."""
    rows = [_to_dict(item) for item in items]

    if not rows:
        print("No results found")
        return

    if not columns:
        columns = _auto_columns(rows)

    console = Console()
    table = Table(show_header=True, header_style="bold")

    for col in columns:
        table.add_column(col)

    for row in rows:
        table.add_row(*[_format_value(row.get(col, '')) for col in columns])

    console.print(table)


def _auto_columns(rows: List[Dict]) -> List[str]:
    """Auto-detect columns from rows."""
    preferred = ['tag_name', 'kind', 'version', 'environment', 'state', 'subproject', 'commit']

    all_keys = set(rows[0].keys())
    columns = [col for col in preferred if col in all_keys]
    for key in sorted(all_keys):
        if key not in columns:
            columns.append(key)
    return columns[:8]


def _format_value(value: Any, max_len: int = 50) -> str:
    """Format a value for table display."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, list):
        s = ', '.join(str(v) for v in value[:3])
        if len(value) > 3:
            s += f' (+{len(value) - 3} more)'
        return s

    s = str(value)
    if len(s) > max_len:
        return s[:max_len-3] + '...'
    return s


def emit_error(
    error: str,
    type: str = "error",
    context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Emit error to stderr as JSON.

    Args:
        error: Error message
        type: Error type (e.g., "already_immutable", "no_candidate")
        context: Additional context dict
    """
    obj = {
        'error': error,
        'type': type
    }
    if context:
        obj['context'] = context

    print(json.dumps(obj, ensure_ascii=False), file=sys.stderr, flush=True)
