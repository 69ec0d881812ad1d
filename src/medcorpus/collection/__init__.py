"""Collection enumeration, segments and source records."""

from .discovery import CollectionKind, DocumentCollection
from .errors import CollectionError, MalformedResourceError, SideFileUnavailableError
from .models import END_OF_SEGMENT, EndOfSegment, ParagraphType, SourceRecord, paragraph_id
from .segments import FullTextTableSegment, MarkupArticleSegment, ParagraphTableSegment, Segment
from .side_file import SideFileLayout

__all__ = [
    "CollectionError",
    "CollectionKind",
    "DocumentCollection",
    "END_OF_SEGMENT",
    "EndOfSegment",
    "FullTextTableSegment",
    "MalformedResourceError",
    "MarkupArticleSegment",
    "ParagraphTableSegment",
    "ParagraphType",
    "Segment",
    "SideFileLayout",
    "SideFileUnavailableError",
    "SourceRecord",
    "paragraph_id",
]
