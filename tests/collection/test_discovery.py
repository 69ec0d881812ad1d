from __future__ import annotations

from pathlib import Path

from medcorpus.collection.discovery import CollectionKind, DocumentCollection
from medcorpus.collection.models import END_OF_SEGMENT, ParagraphType, paragraph_id
from medcorpus.collection.segments import (
    FullTextTableSegment,
    MarkupArticleSegment,
    ParagraphTableSegment,
    Segment,
)


def _touch(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_table_collections_only_pick_csv_files(tmp_path: Path) -> None:
    _touch(tmp_path / "b.csv", "cord_uid\n")
    _touch(tmp_path / "a.csv", "cord_uid\n")
    _touch(tmp_path / "bucket" / "pdf_json" / "h.json", "{}")
    _touch(tmp_path / "notes.txt")

    collection = DocumentCollection(tmp_path, CollectionKind.PARAGRAPH)

    assert collection.discover() == [tmp_path / "a.csv", tmp_path / "b.csv"]


def test_markup_collection_accepts_nxml_and_xml_case_insensitively(tmp_path: Path) -> None:
    _touch(tmp_path / "1" / "a.nxml")
    _touch(tmp_path / "2" / "b.XML")
    _touch(tmp_path / "c.csv")

    collection = DocumentCollection(tmp_path, CollectionKind.MARKUP)

    assert collection.discover() == [tmp_path / "1" / "a.nxml", tmp_path / "2" / "b.XML"]


def test_missing_root_discovers_nothing(tmp_path: Path) -> None:
    assert DocumentCollection(tmp_path / "absent", CollectionKind.FULL_TEXT).discover() == []


def test_single_file_root(tmp_path: Path) -> None:
    table = _touch(tmp_path / "metadata.csv", "cord_uid\n")

    assert DocumentCollection(table, CollectionKind.FULL_TEXT).discover() == [table]
    assert DocumentCollection(table, CollectionKind.MARKUP).discover() == []


def test_one_segment_variant_per_kind(tmp_path: Path) -> None:
    table = _touch(tmp_path / "metadata.csv", "cord_uid\n")
    article = _touch(tmp_path / "a.nxml", "<article/>")

    expected = {
        CollectionKind.PARAGRAPH: (table, ParagraphTableSegment),
        CollectionKind.FULL_TEXT: (table, FullTextTableSegment),
        CollectionKind.MARKUP: (article, MarkupArticleSegment),
    }
    for kind, (path, segment_type) in expected.items():
        segments = list(DocumentCollection(tmp_path, kind).segments())
        assert len(segments) == 1
        segment = segments[0]
        assert isinstance(segment, segment_type)
        assert isinstance(segment, Segment)
        assert segment.path == path
        segment.close()


def test_empty_table_segment_ends_immediately(tmp_path: Path) -> None:
    _touch(tmp_path / "metadata.csv", "cord_uid,title\n")

    (segment,) = DocumentCollection(tmp_path, CollectionKind.PARAGRAPH).segments()

    assert segment.advance() is END_OF_SEGMENT
    assert segment.closed


def test_paragraph_id_is_zero_padded() -> None:
    assert paragraph_id("abc", ParagraphType.BODY, 7) == "abc_c_00007"
    assert paragraph_id("abc", ParagraphType.TITLE, 0) == "abc_t_00000"
    assert not END_OF_SEGMENT
