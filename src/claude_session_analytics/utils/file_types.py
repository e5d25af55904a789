"""File path helpers for code-change tracking."""

import os

UNKNOWN_EXTENSION = "unknown"
NOTEBOOK_EXTENSION = "ipynb"


def get_file_extension(file_path: str) -> str:
    """Extract file extension without the dot, or "unknown" if there is none."""
    if not file_path:
        return UNKNOWN_EXTENSION
    basename = os.path.basename(file_path)
    _, ext = os.path.splitext(basename)
    if not ext and basename.startswith(".") and len(basename) > 1:
        # Dotfiles like .gitignore have no ext per os.path.splitext;
        # treat the name after the dot as the extension.
        return basename[1:].lower()
    return ext.lstrip(".").lower() or UNKNOWN_EXTENSION


def count_lines(text: str | None) -> int:
    """Count newline-separated segments; empty text counts as one line."""
    return (text or "").count("\n") + 1
