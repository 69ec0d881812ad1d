"""Error taxonomy for collection segments and side-file loading."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True, eq=False)
class CollectionError(Exception):
    """Base error carrying the resource that triggered it."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path})"


class MalformedResourceError(CollectionError):
    """The primary resource of a segment cannot be opened or parsed."""


class SideFileUnavailableError(CollectionError):
    """A row's side-file is missing, unreadable, or not a JSON object."""
