"""Drives a collection through the document generator into a sink."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
from pathlib import Path
import threading
import time

from medcorpus.collection.discovery import DocumentCollection
from medcorpus.collection.errors import MalformedResourceError
from medcorpus.index.generator import DocumentGenerator, EmptyDocumentError
from medcorpus.index.sink import DocumentSink

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IndexRunStats:
    segments: int = 0
    indexed: int = 0
    empty: int = 0
    errors: int = 0
    duration_ms: int = 0
    error_details: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, int | list[dict[str, str]]]:
        return {
            "segments": self.segments,
            "indexed": self.indexed,
            "empty": self.empty,
            "errors": self.errors,
            "duration_ms": self.duration_ms,
            "error_details": self.error_details,
        }


@dataclass(slots=True)
class _SegmentCounts:
    indexed: int = 0
    empty: int = 0
    error: str | None = None


class CollectionIndexer:
    """Pulls records from every segment of a collection and hands documents to a sink."""

    def __init__(self, generator: DocumentGenerator, sink: DocumentSink, *, workers: int = 1) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self._generator = generator
        self._sink = sink
        self._workers = workers
        self._lock = threading.Lock()

    def index_collection(self, collection: DocumentCollection) -> IndexRunStats:
        started = time.perf_counter()
        stats = IndexRunStats()
        paths = collection.discover()
        stats.segments = len(paths)
        logger.info("Indexing %d segment(s) from %s", len(paths), collection.root)

        def run(path: Path) -> None:
            counts = self._index_segment(collection, path)
            with self._lock:
                stats.indexed += counts.indexed
                stats.empty += counts.empty
                if counts.error is not None:
                    stats.errors += 1
                    stats.error_details.append({"source_path": str(path), "error": counts.error})

        if self._workers == 1:
            for path in paths:
                run(path)
        else:
            with ThreadPoolExecutor(max_workers=self._workers) as executor:
                list(executor.map(run, paths))

        stats.duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "Indexed %d document(s), %d empty, %d failed segment(s) in %d ms",
            stats.indexed,
            stats.empty,
            stats.errors,
            stats.duration_ms,
        )
        return stats

    def _index_segment(self, collection: DocumentCollection, path: Path) -> _SegmentCounts:
        counts = _SegmentCounts()
        try:
            with collection.open_segment(path) as segment:
                for record in segment:
                    try:
                        document = self._generator.create_document(record)
                    except EmptyDocumentError as exc:
                        counts.empty += 1
                        logger.debug("Skipping record: %s", exc)
                        continue
                    self._sink.add(document)
                    counts.indexed += 1
        except MalformedResourceError as exc:
            counts.error = str(exc)
            logger.error("Segment failed after %d document(s): %s", counts.indexed, exc)
        return counts
