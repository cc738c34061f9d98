"""Repository context handed to transcript generators.

Context is a flat list of file paths under the repository root, never file
content. It gives the model enough structure (layers, naming conventions,
where tests live) to write FILE paths that exist, at a small token cost.
"""

from __future__ import annotations

import logging
import os

from revguard_core.config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)

# Directories that never hold files worth editing.
SKIPPED_DIRECTORIES = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "node_modules",
        ".venv",
        "venv",
        "env",
        "__pycache__",
        ".tox",
        ".nox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
    }
)


def build_repository_context(repo_root, limit: int = DEFAULT_CONFIG["repo_map_limit"]) -> str:
    """Return up to ``limit`` repository-relative paths, one per line, sorted.

    When more files exist an overflow note is appended instead of the rest.
    """
    paths = []
    for dirpath, dirnames, filenames in os.walk(repo_root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRECTORIES and not d.endswith(".egg-info"))
        rel_dir = os.path.relpath(dirpath, repo_root)
        for name in sorted(filenames):
            rel = name if rel_dir == "." else os.path.join(rel_dir, name)
            paths.append(rel.replace(os.sep, "/"))

    logger.debug("Repository context: %d files under %s", len(paths), repo_root)
    if len(paths) > limit:
        overflow = len(paths) - limit
        return "\n".join(paths[:limit]) + f"\n... [{overflow} more files not shown]"
    return "\n".join(paths)


def build_context_section(repository_context: str) -> str:
    """Render the repository file list as a prompt section ("" when there is none)."""
    if not repository_context:
        return ""
    return (
        "## Repository File Tree\n"
        "Use this to pick FILE paths that exist and to follow the project's layout.\n"
        f"```\n{repository_context}\n```\n"
    )
