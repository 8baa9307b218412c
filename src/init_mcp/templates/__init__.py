"""Template Set: the files written by the ``init`` tool.

The default set ships inside the package under ``templates/files`` and is
loaded once at startup. Callers pass the resulting ``TemplateSet`` explicitly
to the materializer and dispatcher.

Usage:
    from init_mcp.templates import load_default_templates

    templates = load_default_templates()
    for entry in templates:
        print(entry.destination, len(entry.content))
"""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

FILES_DIR = Path(__file__).resolve().parent / "files"

# (packaged file, destination filename) in write order
DEFAULT_TEMPLATES = [
    ("LICENSE", "LICENSE"),
    ("CONTRIBUTING.md", "CONTRIBUTING.md"),
]


@dataclass(frozen=True)
class TemplateEntry:
    """One piece of template content paired with the filename it is written as."""
    content: bytes
    destination: str


class TemplateSet:
    """Immutable, ordered collection of template entries.

    Destination names must be unique, non-empty plain filenames.
    """

    def __init__(self, entries: Iterable[TemplateEntry]):
        entries = tuple(entries)
        seen: set[str] = set()
        for entry in entries:
            name = entry.destination
            if not name:
                raise ValueError("Template destination name must not be empty")
            if os.sep in name or (os.altsep and os.altsep in name) or name in (".", ".."):
                raise ValueError(f"Template destination must be a plain filename: {name!r}")
            if name in seen:
                raise ValueError(f"Duplicate template destination: {name}")
            seen.add(name)
        self._entries = entries

    def __iter__(self) -> Iterator[TemplateEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> TemplateEntry:
        return self._entries[index]

    def __repr__(self) -> str:
        return f"TemplateSet({list(self.destinations)!r})"

    @property
    def destinations(self) -> list[str]:
        return [entry.destination for entry in self._entries]

    @classmethod
    def from_files(cls, sources: Iterable[tuple[str | Path, str]]) -> TemplateSet:
        """Build a set by reading each ``(source_path, destination)`` pair.

        Raises:
            FileNotFoundError: If a source file is missing
        """
        entries = []
        for source, destination in sources:
            entries.append(TemplateEntry(content=Path(source).read_bytes(), destination=destination))
        return cls(entries)


def load_default_templates() -> TemplateSet:
    """Load the template files packaged with init-mcp."""
    return TemplateSet.from_files(
        (FILES_DIR / source, destination) for source, destination in DEFAULT_TEMPLATES
    )


__all__ = [
    "TemplateEntry",
    "TemplateSet",
    "load_default_templates",
    "DEFAULT_TEMPLATES",
]
