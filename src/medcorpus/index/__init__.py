"""Document generation and hand-off to external indexers."""

from .analysis import EnglishAnalyzer, escape_query, non_stemming_analyzer, syntax_analyzer
from .generator import (
    DocumentGenerator,
    EmptyDocumentError,
    FieldPolicy,
    GeneratorOptions,
    IndexField,
    NormalizedDocument,
)
from .runner import CollectionIndexer, IndexRunStats
from .sink import DocumentSink, JsonlDocumentSink

__all__ = [
    "CollectionIndexer",
    "DocumentGenerator",
    "DocumentSink",
    "EnglishAnalyzer",
    "EmptyDocumentError",
    "FieldPolicy",
    "GeneratorOptions",
    "IndexField",
    "IndexRunStats",
    "JsonlDocumentSink",
    "NormalizedDocument",
    "escape_query",
    "non_stemming_analyzer",
    "syntax_analyzer",
]
