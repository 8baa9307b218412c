"""File materializer.

Writes every entry of a Template Set into a target directory, in order,
refusing to touch any destination that already exists.
"""
from __future__ import annotations
import logging
import os
import stat
from dataclasses import dataclass, field
from typing import Any

from init_mcp.errors import ConflictError, DirectoryError, WriteError
from init_mcp.templates import TemplateSet

logger = logging.getLogger(__name__)

FILE_MODE = 0o644
_CREATE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)


@dataclass
class MaterializationResult:
    """Outcome of a successful materialization."""
    directory: str
    files_created: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "directory": self.directory,
            "files_created": list(self.files_created),
        }


def _write_exclusive(path: str, content: bytes) -> None:
    """Create ``path`` (failing if it exists) and write ``content`` to it."""
    fd = os.open(path, _CREATE_FLAGS, FILE_MODE)
    with os.fdopen(fd, "wb") as f:
        f.write(content)


def materialize(directory: str, templates: TemplateSet) -> MaterializationResult:
    """Write all templates into ``directory``.

    Entries are processed in Template Set order. The operation is not
    transactional: if entry N conflicts or fails to write, entries before N
    stay on disk and nothing after N is attempted.

    Args:
        directory: Existing directory to write into
        templates: Template Set to materialize

    Returns:
        MaterializationResult with absolute paths in template order

    Raises:
        DirectoryError: If ``directory`` is missing or not a directory
        ConflictError: If a destination already exists
        WriteError: If creating or writing a destination fails
    """
    try:
        st = os.stat(directory)
    except (OSError, ValueError) as e:
        # ValueError: embedded NUL or a name the filesystem encoding rejects
        raise DirectoryError(directory, f"checking directory: {e}") from e

    if not stat.S_ISDIR(st.st_mode):
        raise DirectoryError(directory, f"not a directory: {directory}")

    target = os.path.abspath(directory)
    created: list[str] = []

    for entry in templates:
        dest_path = os.path.join(target, entry.destination)

        # lexists so dangling symlinks count as conflicts too
        if os.path.lexists(dest_path):
            logger.debug(f"Refusing to overwrite existing path: {dest_path}")
            raise ConflictError(dest_path)

        try:
            _write_exclusive(dest_path, entry.content)
        except FileExistsError as e:
            # created by someone else between the check and the create
            raise ConflictError(dest_path) from e
        except OSError as e:
            logger.error(f"Failed to write {dest_path}: {e}")
            raise WriteError(entry.destination, e) from e

        logger.debug(f"Created {dest_path} ({len(entry.content)} bytes)")
        created.append(dest_path)

    return MaterializationResult(directory=target, files_created=created)

