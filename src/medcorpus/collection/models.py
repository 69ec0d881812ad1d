"""Canonical data structures shared by all collection segments."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ParagraphType(str, Enum):
    """Type code of an expanded paragraph record."""

    TITLE = "t"
    ABSTRACT = "a"
    BODY = "c"


def paragraph_id(base_id: str, paragraph_type: ParagraphType, sequence: int) -> str:
    """Return the externally visible id of one expanded paragraph."""

    return f"{base_id}_{paragraph_type.value}_{sequence:05d}"


@dataclass(frozen=True, slots=True)
class SourceRecord:
    """A flat, loosely typed observation of one document before projection."""

    id: str
    content: str
    fields: Mapping[str, str] = field(default_factory=dict)
    raw: str | None = None
    paragraph_type: ParagraphType | None = None
    sequence: int | None = None


class EndOfSegment:
    """Value returned by ``Segment.advance`` once the segment is exhausted."""

    _instance: EndOfSegment | None = None

    def __new__(cls) -> EndOfSegment:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "END_OF_SEGMENT"

    def __bool__(self) -> bool:
        return False


END_OF_SEGMENT = EndOfSegment()
