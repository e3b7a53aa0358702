"""Workspace discovery utilities.

Functions for finding the topicsync workspace root from any subdirectory.
"""

from pathlib import Path

WORKSPACE_DIRNAME = ".topicsync"


def find_workspace_root(start_path: Path | None = None) -> Path | None:
    """Find the workspace root by walking up directories.

    Searches for .topicsync/ starting from start_path and walking up to the
    filesystem root, similar to how git finds .git/.

    Args:
        start_path: Directory to start searching from. Defaults to CWD.

    Returns:
        Absolute path to the directory containing .topicsync/, or None if
        not found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while True:
        if (current / WORKSPACE_DIRNAME).is_dir():
            return current

        parent = current.parent
        if parent == current:
            return None

        current = parent


def find_workspace(start_path: Path | None = None) -> tuple[Path, Path]:
    """Find the workspace root and its .topicsync directory.

    Args:
        start_path: Directory to start searching from. Defaults to CWD.

    Returns:
        Tuple of (workspace_root, topicsync_dir).

    Raises:
        RuntimeError: If not inside a topicsync workspace.
    """
    root = find_workspace_root(start_path)
    if root:
        return root, root / WORKSPACE_DIRNAME

    raise RuntimeError(
        "Not in a topicsync workspace (or any parent directory)\n"
        "Run 'topicsync init' first"
    )
