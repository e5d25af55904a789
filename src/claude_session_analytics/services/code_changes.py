"""Extract normalized code changes from file-modifying tool invocations."""

import logging
import re
from dataclasses import dataclass, field

from claude_session_analytics.types import ChangeType, CodeChange, CodeMetrics, ToolUse
from claude_session_analytics.utils.file_types import (
    NOTEBOOK_EXTENSION,
    count_lines,
    get_file_extension,
)

logger = logging.getLogger(__name__)

# Tool names that modify files directly
CODE_MODIFICATION_TOOLS = frozenset({"Write", "Edit", "MultiEdit", "NotebookEdit"})

# Shell tool whose commands may delete files
SHELL_TOOL_NAME = "Bash"

_DELETE_COMMAND_RE = re.compile(r"(?:^|[\s;&|(])(?:rm|unlink)[ \t]+(.+)")
_SHELL_SEPARATOR_RE = re.compile(r"\s*(?:&&|\|\||;|\|)\s*")
_REPLACED_LINES_RE = re.compile(r"replaced?\s+(\d+)\s+lines?", re.IGNORECASE)


@dataclass
class CodeChangeSummary:
    files_created: int = 0
    files_modified: int = 0
    files_deleted: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    net_lines_changed: int = 0
    by_extension: dict[str, dict[str, int]] = field(default_factory=dict)


def extract_code_changes(tool: ToolUse) -> list[CodeChange]:
    """Convert a single tool invocation into zero or more CodeChange records."""
    if tool.name == "Write":
        return _extract_write(tool)
    if tool.name == "Edit":
        return _extract_edit(tool)
    if tool.name == "MultiEdit":
        return _extract_multi_edit(tool)
    if tool.name == "NotebookEdit":
        return _extract_notebook_edit(tool)
    if tool.name == SHELL_TOOL_NAME:
        return [
            CodeChange(
                file_path=path,
                type=ChangeType.DELETE,
                extension=get_file_extension(path),
            )
            for path in _extract_deleted_files(tool.input.get("command") or "")
        ]
    return []


def _extract_write(tool: ToolUse) -> list[CodeChange]:
    file_path = tool.input.get("file_path")
    if not file_path:
        return []

    is_create = "overwriting" not in (tool.result or "")
    return [CodeChange(
        file_path=file_path,
        type=ChangeType.CREATE if is_create else ChangeType.MODIFY,
        lines_added=count_lines(tool.input.get("content")),
        lines_removed=0 if is_create else _estimate_removed_lines(tool.result),
        extension=get_file_extension(file_path),
    )]


def _net_change(file_path: str, old_lines: int, new_lines: int) -> CodeChange:
    # Net growth or shrinkage only: 5 lines replaced by 7 reads as +2, not +7/-5.
    net = new_lines - old_lines
    return CodeChange(
        file_path=file_path,
        type=ChangeType.MODIFY,
        lines_added=net if net > 0 else 0,
        lines_removed=-net if net < 0 else 0,
        extension=get_file_extension(file_path),
    )


def _extract_edit(tool: ToolUse) -> list[CodeChange]:
    file_path = tool.input.get("file_path")
    if not file_path:
        return []
    return [_net_change(
        file_path,
        count_lines(tool.input.get("old_string")),
        count_lines(tool.input.get("new_string")),
    )]


def _extract_multi_edit(tool: ToolUse) -> list[CodeChange]:
    file_path = tool.input.get("file_path")
    edits = tool.input.get("edits")
    if not file_path or not edits:
        return []

    old_lines = 0
    new_lines = 0
    for edit in edits:
        if not isinstance(edit, dict):
            continue
        old_lines += count_lines(edit.get("old_string"))
        new_lines += count_lines(edit.get("new_string"))
    return [_net_change(file_path, old_lines, new_lines)]


def _extract_notebook_edit(tool: ToolUse) -> list[CodeChange]:
    notebook_path = tool.input.get("notebook_path")
    if not notebook_path:
        return []

    line_count = count_lines(tool.input.get("new_source"))
    edit_mode = tool.input.get("edit_mode")
    if edit_mode == "insert":
        change_type = ChangeType.CREATE
    elif edit_mode == "delete":
        change_type = ChangeType.DELETE
    else:
        change_type = ChangeType.MODIFY

    is_delete = change_type == ChangeType.DELETE
    return [CodeChange(
        file_path=notebook_path,
        type=change_type,
        lines_added=0 if is_delete else line_count,
        lines_removed=line_count if is_delete else 0,
        extension=NOTEBOOK_EXTENSION,
    )]


def _extract_deleted_files(command: str) -> list[str]:
    """Heuristically pull deleted paths out of an rm/unlink shell command."""
    match = _DELETE_COMMAND_RE.search(command)
    if not match:
        return []
    # Only the first command in a chain like "rm a && ls" names deleted paths
    args = _SHELL_SEPARATOR_RE.split(match.group(1), maxsplit=1)[0]
    paths = [token for token in args.split() if not token.startswith("-")]
    if paths:
        logger.debug("Detected deleted files in shell command: %s", paths)
    return paths


def _estimate_removed_lines(result: str | None) -> int:
    """Look for "replaced N lines" in a tool result."""
    if not result:
        return 0
    match = _REPLACED_LINES_RE.search(result)
    return int(match.group(1)) if match else 0


def aggregate_code_changes(changes: list[CodeChange]) -> CodeChangeSummary:
    """Fold code changes into per-type file counts, line totals and per-extension lines."""
    summary = CodeChangeSummary()
    for change in changes:
        if change.type == ChangeType.CREATE:
            summary.files_created += 1
        elif change.type == ChangeType.MODIFY:
            summary.files_modified += 1
        elif change.type == ChangeType.DELETE:
            summary.files_deleted += 1

        summary.lines_added += change.lines_added
        summary.lines_removed += change.lines_removed

        ext = change.extension or "unknown"
        bucket = summary.by_extension.setdefault(ext, {"added": 0, "removed": 0})
        bucket["added"] += change.lines_added
        bucket["removed"] += change.lines_removed

    summary.net_lines_changed = summary.lines_added - summary.lines_removed
    return summary


def code_metrics_from_changes(changes: list[CodeChange]) -> CodeMetrics:
    """Aggregate code changes into the CodeMetrics shape used by session metrics."""
    summary = aggregate_code_changes(changes)
    return CodeMetrics(
        files_created=summary.files_created,
        files_modified=summary.files_modified,
        files_deleted=summary.files_deleted,
        lines_added=summary.lines_added,
        lines_removed=summary.lines_removed,
        net_lines_changed=summary.net_lines_changed,
    )


def unique_files_changed(changes: list[CodeChange]) -> list[str]:
    """Distinct file paths touched, in first-seen order."""
    return list(dict.fromkeys(change.file_path for change in changes))
