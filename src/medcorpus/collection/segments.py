"""Per-file pull cursors over collection resources.

Every segment exposes the same capability: ``advance()`` returns the next
:class:`SourceRecord` or :data:`END_OF_SEGMENT`, and ``close()`` releases the
file handle it owns. Segments are single use. They close themselves on
exhaustion and can be driven with ``with`` blocks or plain ``for`` loops; both
release the handle when iteration stops early.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Iterator, Protocol, runtime_checkable

from medcorpus.collection.errors import MalformedResourceError
from medcorpus.collection.markup import parse_article
from medcorpus.collection.models import (
    END_OF_SEGMENT,
    EndOfSegment,
    ParagraphType,
    SourceRecord,
    paragraph_id,
)
from medcorpus.collection.side_file import Paragraph, RowContext, SideFileLayout, build_row_context
from medcorpus.collection.table import TableReader

logger = logging.getLogger(__name__)


@runtime_checkable
class Segment(Protocol):
    """Capability shared by all collection segments."""

    @property
    def path(self) -> Path:
        """Resource this segment reads."""

    @property
    def closed(self) -> bool:
        """True once the segment released its resources."""

    def advance(self) -> SourceRecord | EndOfSegment:
        """Return the next record or ``END_OF_SEGMENT``."""

    def close(self) -> None:
        """Release every resource held by the segment."""


class _SegmentBase:
    """Context-manager and iteration plumbing shared by segment variants."""

    _path: Path

    @property
    def path(self) -> Path:
        return self._path

    def __iter__(self) -> Iterator[SourceRecord]:
        try:
            while True:
                record = self.advance()
                if isinstance(record, EndOfSegment):
                    return
                yield record
        finally:
            self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _row_fields(context: RowContext, umls: str, semtypes: str) -> dict[str, str]:
    fields = dict(context.row)
    fields["umls"] = umls
    fields["semtypes"] = semtypes
    fields["has_covid"] = context.side_file.has_covid
    return fields


def title_record(context: RowContext) -> SourceRecord:
    """Synthetic title/summary record emitted first for every row."""

    return SourceRecord(
        id=paragraph_id(context.base_id, ParagraphType.TITLE, 0),
        content=context.title,
        fields=_row_fields(context, context.side_file.title_umls, context.side_file.title_semtypes),
        paragraph_type=ParagraphType.TITLE,
        sequence=0,
    )


def paragraph_record(
    context: RowContext,
    paragraph: Paragraph,
    paragraph_type: ParagraphType,
    sequence: int,
) -> SourceRecord:
    """Record for one abstract or body paragraph of a row."""

    return SourceRecord(
        id=paragraph_id(context.base_id, paragraph_type, sequence),
        content=paragraph.text,
        fields=_row_fields(context, paragraph.umls, paragraph.semtypes),
        paragraph_type=paragraph_type,
        sequence=sequence,
    )


def full_text_record(context: RowContext) -> SourceRecord:
    """One record holding the whole article of a row."""

    fields = _row_fields(context, context.accumulated_umls, context.accumulated_semtypes)
    fields["full_text"] = context.full_text
    return SourceRecord(
        id=context.base_id,
        content=context.full_text_content,
        fields=fields,
        raw=context.side_file.raw,
    )


@dataclass(frozen=True, slots=True)
class Draining:
    """Emitting paragraphs of one row's abstract or body cursor."""

    context: RowContext
    paragraph_type: ParagraphType
    position: int = 0


@dataclass(frozen=True, slots=True)
class AwaitingRow:
    """All paragraphs of the previous row are drained."""


@dataclass(frozen=True, slots=True)
class Exhausted:
    """No rows remain; the segment only returns ``END_OF_SEGMENT``."""


SegmentState = Draining | AwaitingRow | Exhausted


class ParagraphTableSegment(_SegmentBase):
    """Expands each table row into title, abstract and body paragraph records.

    All paragraphs of a row are drained, abstract before body, before the next
    row is read, so memory stays bounded to one side-file.
    """

    def __init__(self, path: Path, root: Path, layout: SideFileLayout | None = None) -> None:
        self._path = path
        self._root = root
        self._layout = layout or SideFileLayout()
        self._reader = TableReader(path)
        self._state: SegmentState = AwaitingRow()

    @property
    def state(self) -> SegmentState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._reader.closed

    def advance(self) -> SourceRecord | EndOfSegment:
        if self._reader.closed:
            self._state = Exhausted()
            return END_OF_SEGMENT

        try:
            self._state, result = self._transition(self._state)
        except MalformedResourceError:
            self._state = Exhausted()
            self.close()
            raise

        if isinstance(result, EndOfSegment):
            self.close()
        return result

    def _transition(self, state: SegmentState) -> tuple[SegmentState, SourceRecord | EndOfSegment]:
        while True:
            if isinstance(state, Exhausted):
                return state, END_OF_SEGMENT

            if isinstance(state, Draining):
                context = state.context
                if state.paragraph_type is ParagraphType.ABSTRACT:
                    paragraphs = context.side_file.abstract
                else:
                    paragraphs = context.side_file.body

                if state.position < len(paragraphs):
                    record = paragraph_record(
                        context,
                        paragraphs[state.position],
                        state.paragraph_type,
                        state.position,
                    )
                    return Draining(context, state.paragraph_type, state.position + 1), record

                if state.paragraph_type is ParagraphType.ABSTRACT:
                    state = Draining(context, ParagraphType.BODY, 0)
                else:
                    state = AwaitingRow()
                continue

            row = self._reader.next_row()
            if row is None:
                return Exhausted(), END_OF_SEGMENT

            context = build_row_context(row, self._root, self._layout)
            return Draining(context, ParagraphType.ABSTRACT, 0), title_record(context)

    def close(self) -> None:
        self._reader.close()


class FullTextTableSegment(_SegmentBase):
    """Emits one record per table row with the side-file's full text folded in."""

    def __init__(self, path: Path, root: Path, layout: SideFileLayout | None = None) -> None:
        self._path = path
        self._root = root
        self._layout = layout or SideFileLayout()
        self._reader = TableReader(path)

    @property
    def closed(self) -> bool:
        return self._reader.closed

    def advance(self) -> SourceRecord | EndOfSegment:
        if self._reader.closed:
            return END_OF_SEGMENT

        try:
            row = self._reader.next_row()
        except MalformedResourceError:
            self.close()
            raise

        if row is None:
            self.close()
            return END_OF_SEGMENT

        return full_text_record(build_row_context(row, self._root, self._layout))

    def close(self) -> None:
        self._reader.close()


class MarkupArticleSegment(_SegmentBase):
    """A single markup article; yields exactly one record."""

    def __init__(self, path: Path) -> None:
        self._path = path
        try:
            self._handle = open(path, "rb")
        except OSError as exc:
            raise MalformedResourceError(path, f"Failed to open markup file: {exc}") from exc

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def advance(self) -> SourceRecord | EndOfSegment:
        if self._handle.closed:
            return END_OF_SEGMENT

        logger.debug("Parsing markup article %s", self._path)
        try:
            payload = self._handle.read()
        except OSError as exc:
            self.close()
            raise MalformedResourceError(self._path, f"Failed to read markup file: {exc}") from exc

        # Close before parsing so a parse failure cannot leak the handle.
        self.close()
        return parse_article(payload, self._path)

    def close(self) -> None:
        self._handle.close()
