"""Collection enumerator: discovers resources and hands out one segment per file."""

from __future__ import annotations

from enum import Enum
import logging
from pathlib import Path
from typing import Iterator

from medcorpus.collection.segments import (
    FullTextTableSegment,
    MarkupArticleSegment,
    ParagraphTableSegment,
    Segment,
)
from medcorpus.collection.side_file import SideFileLayout

logger = logging.getLogger(__name__)


class CollectionKind(str, Enum):
    """Closed set of supported collection formats."""

    PARAGRAPH = "paragraph"
    FULL_TEXT = "full-text"
    MARKUP = "markup"

    @property
    def suffixes(self) -> frozenset[str]:
        if self is CollectionKind.MARKUP:
            return frozenset({".nxml", ".xml"})
        return frozenset({".csv"})


class DocumentCollection:
    """A root location plus the format used to read the resources under it."""

    def __init__(
        self,
        root: str | Path,
        kind: CollectionKind,
        *,
        layout: SideFileLayout | None = None,
    ) -> None:
        self._root = Path(root)
        self._kind = kind
        self._layout = layout or SideFileLayout()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def kind(self) -> CollectionKind:
        return self._kind

    def is_supported(self, path: Path) -> bool:
        return path.suffix.lower() in self._kind.suffixes

    def discover(self) -> list[Path]:
        """Return eligible resources in a stable order."""

        if self._root.is_file():
            return [self._root] if self.is_supported(self._root) else []
        if self._root.is_dir():
            return sorted(path for path in self._root.rglob("*") if path.is_file() and self.is_supported(path))
        logger.warning("Collection root does not exist: %s", self._root)
        return []

    def open_segment(self, path: Path) -> Segment:
        """Instantiate the segment variant for one resource."""

        side_file_root = self._root if self._root.is_dir() else self._root.parent
        if self._kind is CollectionKind.PARAGRAPH:
            return ParagraphTableSegment(path, side_file_root, self._layout)
        if self._kind is CollectionKind.FULL_TEXT:
            return FullTextTableSegment(path, side_file_root, self._layout)
        return MarkupArticleSegment(path)

    def segments(self) -> Iterator[Segment]:
        """Yield one freshly opened segment per discovered resource."""

        for path in self.discover():
            yield self.open_segment(path)
