"""Hand-off points between the document generator and the external indexer."""

from __future__ import annotations

import json
from pathlib import Path
import threading
from typing import Protocol, runtime_checkable

from medcorpus.index.generator import NormalizedDocument


@runtime_checkable
class DocumentSink(Protocol):
    """Receives normalized documents; must tolerate calls from worker threads."""

    def add(self, document: NormalizedDocument) -> None:
        """Accept one document."""

    def close(self) -> None:
        """Flush and release resources."""


class JsonlDocumentSink:
    """Writes one JSON object per document for bulk loading into an indexer."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = open(self._path, "w", encoding="utf-8")
        self._lock = threading.Lock()
        self._count = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def count(self) -> int:
        return self._count

    def add(self, document: NormalizedDocument) -> None:
        line = json.dumps(document.to_dict(), ensure_ascii=False)
        with self._lock:
            self._handle.write(line + "\n")
            self._count += 1

    def close(self) -> None:
        with self._lock:
            self._handle.close()

    def __enter__(self) -> "JsonlDocumentSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
