"""Filesystem sandbox utilities for confining lookups to the document root."""

from pathlib import Path


class ForbiddenPath(Exception):
    """Raised when a requested path escapes the configured root directory."""


def resolve_under_root(root_directory: str, request_path: str) -> Path:
    """Join ``request_path`` onto the root and canonicalize the result.

    ``..`` segments and symlinks are resolved before the containment check,
    so anything that lands outside the root raises ``ForbiddenPath``. A
    path that cannot be resolved, such as a symlink loop, is refused the
    same way. The root itself is a valid result; callers decide what a
    directory means.
    """
    if "\x00" in request_path:
        raise ForbiddenPath(request_path)

    root = Path(root_directory).resolve()
    try:
        target = (root / request_path.lstrip("/")).resolve()
    except (OSError, RuntimeError) as exc:
        raise ForbiddenPath(request_path) from exc
    if target != root and root not in target.parents:
        raise ForbiddenPath(request_path)
    return target
