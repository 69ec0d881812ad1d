"""Projects source records into policy-tagged documents for an external indexer."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
import re
from typing import Iterator, Mapping

from medcorpus.collection.models import SourceRecord
from medcorpus.index.analysis import Analyzer, non_stemming_analyzer

ID_FIELD = "id"
RAW_FIELD = "raw"
CONTENTS_FIELD = "contents"

_YEAR_RE = re.compile(r"[0-9]{4}")


class FieldPolicy(str, Enum):
    """How the external indexer should treat a field."""

    STORED_ONLY = "stored_only"
    STEMMED_INDEXED = "stemmed_indexed"
    LITERAL_INDEXED = "literal_indexed"
    NUMERIC_POINT = "numeric_point"
    SORT_KEY = "sort_key"


class ArticleField(str, Enum):
    """Output field names of an article document."""

    SHA = "sha"
    SOURCE = "source_x"
    DOI = "doi"
    TITLE = "title"
    AUTHORS = "authors"
    AUTHOR_STRING = "author_string"
    ABSTRACT = "abstract"
    JOURNAL = "journal"
    PUBLISH_TIME = "publish_time"
    YEAR = "year"
    PMC_ID = "pmcid"
    PUBMED_ID = "pubmed_id"
    LICENSE = "license"
    MICROSOFT_ID = "Microsoft Academic Paper ID"
    WHO = "WHO #Covidence"
    URL = "url"
    UMLS = "umls"
    SEMTYPES = "semtypes"
    HAS_COVID = "has_covid"
    FULL_TEXT = "full_text"


# Exact-match metadata, emitted for every document.
_METADATA_FIELDS = (
    ArticleField.SHA,
    ArticleField.DOI,
    ArticleField.SOURCE,
    ArticleField.JOURNAL,
    ArticleField.WHO,
    ArticleField.PMC_ID,
    ArticleField.PUBMED_ID,
    ArticleField.MICROSOFT_ID,
    ArticleField.PUBLISH_TIME,
    ArticleField.LICENSE,
    ArticleField.URL,
)


@dataclass(frozen=True, slots=True)
class FieldOptions:
    stored: bool = False
    term_vectors: bool = False
    positions: bool = False


@dataclass(frozen=True, slots=True)
class IndexField:
    """One (name, value, policy) entry of a normalized document."""

    name: str
    value: str | int
    policy: FieldPolicy
    options: FieldOptions = field(default_factory=FieldOptions)
    tokens: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "value": self.value,
            "policy": self.policy.value,
            "stored": self.options.stored,
            "term_vectors": self.options.term_vectors,
            "positions": self.options.positions,
            "tokens": list(self.tokens) if self.tokens is not None else None,
        }


class NormalizedDocument:
    """Ordered fields of one document; a name may repeat."""

    def __init__(self, fields: list[IndexField] | None = None) -> None:
        self._fields: list[IndexField] = list(fields or [])

    def add(self, index_field: IndexField) -> None:
        self._fields.append(index_field)

    @property
    def id(self) -> str | None:
        value = self.get(ID_FIELD)
        return str(value) if value is not None else None

    @property
    def fields(self) -> list[IndexField]:
        return list(self._fields)

    def get(self, name: str) -> str | int | None:
        """First value stored under ``name``."""

        for index_field in self._fields:
            if index_field.name == name:
                return index_field.value
        return None

    def get_all(self, name: str, policy: FieldPolicy | None = None) -> list[str | int]:
        return [
            index_field.value
            for index_field in self._fields
            if index_field.name == name and (policy is None or index_field.policy is policy)
        ]

    def find(self, name: str) -> list[IndexField]:
        return [index_field for index_field in self._fields if index_field.name == name]

    def as_triples(self) -> list[tuple[str, str | int, str]]:
        return [(f.name, f.value, f.policy.value) for f in self._fields]

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "fields": [index_field.to_dict() for index_field in self._fields]}

    def __iter__(self) -> Iterator[IndexField]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)


@dataclass(slots=True, eq=False)
class EmptyDocumentError(Exception):
    """The record has no indexable content."""

    record_id: str

    def __str__(self) -> str:
        return f"Document has empty contents (id={self.record_id})"


@dataclass(frozen=True, slots=True)
class GeneratorOptions:
    """Indexing policy switches; they never change which fields are extracted."""

    store_raw: bool = False
    store_contents: bool = False
    store_docvectors: bool = False
    store_positions: bool = False


def normalize_author(author: str) -> str:
    """Reorder a comma-reversed name, e.g. ``"Jones, Bob"`` -> ``"Bob Jones"``."""

    parts = [part.strip() for part in author.split(",")]
    return " ".join(reversed(parts)).strip()


def split_multi_value(value: str, separator: str = ",") -> list[str]:
    """Split a delimiter-joined value, dropping empty tokens."""

    return [token.strip() for token in value.split(separator) if token.strip()]


def extract_year(publish_time: str | None) -> int | None:
    """Year from the first four characters of a publish date, if numeric."""

    if not publish_time:
        return None
    candidate = publish_time.strip()[:4]
    if not _YEAR_RE.fullmatch(candidate):
        return None
    return int(candidate)


class DocumentGenerator:
    """Builds a :class:`NormalizedDocument` from a :class:`SourceRecord`."""

    def __init__(self, options: GeneratorOptions | None = None, analyzer: Analyzer | None = None) -> None:
        self._options = options or GeneratorOptions()
        self._analyzer = analyzer or non_stemming_analyzer()

    @property
    def options(self) -> GeneratorOptions:
        return self._options

    def create_document(self, record: SourceRecord) -> NormalizedDocument:
        content = record.content
        if content is None or not content.strip():
            raise EmptyDocumentError(record.id)

        fields = _lower_keys(record.fields)
        document = NormalizedDocument()

        document.add(IndexField(ID_FIELD, record.id, FieldPolicy.LITERAL_INDEXED, FieldOptions(stored=True)))
        # Sort key so score ties break deterministically by id.
        document.add(IndexField(ID_FIELD, record.id, FieldPolicy.SORT_KEY))

        if self._options.store_raw and record.raw is not None:
            document.add(IndexField(RAW_FIELD, record.raw, FieldPolicy.STORED_ONLY, FieldOptions(stored=True)))

        text_options = FieldOptions(
            stored=self._options.store_contents,
            term_vectors=self._options.store_docvectors,
            positions=self._options.store_positions,
        )

        document.add(IndexField(CONTENTS_FIELD, content, FieldPolicy.STEMMED_INDEXED, text_options))
        document.add(self._text_field(ArticleField.TITLE, fields, text_options))
        document.add(self._text_field(ArticleField.ABSTRACT, fields, text_options))

        if ArticleField.FULL_TEXT.value in fields:
            document.add(self._text_field(ArticleField.FULL_TEXT, fields, text_options))
        if ArticleField.UMLS.value in fields:
            for concept in split_multi_value(fields[ArticleField.UMLS.value]):
                document.add(self._non_stemmed_field(ArticleField.UMLS.value, concept, text_options))
        if ArticleField.SEMTYPES.value in fields:
            for semtype in split_multi_value(fields[ArticleField.SEMTYPES.value]):
                document.add(self._non_stemmed_field(ArticleField.SEMTYPES.value, semtype, text_options))
        if ArticleField.HAS_COVID.value in fields:
            document.add(self._text_field(ArticleField.HAS_COVID, fields, text_options))

        for metadata_field in _METADATA_FIELDS:
            value = fields.get(metadata_field.value.lower(), "")
            document.add(
                IndexField(metadata_field.value, value, FieldPolicy.LITERAL_INDEXED, FieldOptions(stored=True))
            )

        self._add_authors(document, fields.get(ArticleField.AUTHORS.value, ""), text_options)

        year = extract_year(fields.get(ArticleField.PUBLISH_TIME.value))
        if year is not None:
            document.add(IndexField(ArticleField.YEAR.value, year, FieldPolicy.NUMERIC_POINT))

        return document

    def _text_field(self, name: ArticleField, fields: Mapping[str, str], options: FieldOptions) -> IndexField:
        return IndexField(name.value, fields.get(name.value, ""), FieldPolicy.STEMMED_INDEXED, options)

    def _add_authors(self, document: NormalizedDocument, author_string: str, options: FieldOptions) -> None:
        if not author_string:
            return

        document.add(self._non_stemmed_field(ArticleField.AUTHOR_STRING.value, author_string, options))
        for author in author_string.split(";"):
            name = normalize_author(author)
            if name:
                document.add(self._non_stemmed_field(ArticleField.AUTHORS.value, name, options))

    def _non_stemmed_field(self, name: str, value: str, options: FieldOptions) -> IndexField:
        # Always stored so the original value can be displayed.
        return IndexField(
            name,
            value,
            FieldPolicy.LITERAL_INDEXED,
            replace(options, stored=True),
            tokens=tuple(self._analyzer.analyze(value)),
        )


def _lower_keys(fields: Mapping[str, str]) -> dict[str, str]:
    return {key.lower(): value for key, value in fields.items()}
