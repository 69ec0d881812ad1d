"""Pluggable analyzers used to pre-analyze literal fields.

The stemmed path is normally applied by the downstream indexer; the
non-stemming path is applied here because controlled-vocabulary codes and
author names must match literally.
"""

from __future__ import annotations

from functools import lru_cache
import re
from typing import Protocol, runtime_checkable

from nltk.tokenize import RegexpTokenizer

ENGLISH_STOP_WORDS: frozenset[str] = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "but", "by", "for", "if",
        "in", "into", "is", "it", "no", "not", "of", "on", "or", "such", "that",
        "the", "their", "then", "there", "these", "they", "this", "to", "was",
        "will", "with",
    }
)

_POSSESSIVE_RE = re.compile(r"['’][sS]\b")
# Boolean operators and ``field:`` prefixes of query-syntax text.
_QUERY_SYNTAX_RE = re.compile(r"\b(?:AND|OR|NOT)\b|\b\w+:(?=\S)")


@runtime_checkable
class Analyzer(Protocol):
    """Turns field text into index terms."""

    def analyze(self, text: str) -> list[str]:
        """Return the terms for ``text`` in order."""


@lru_cache(maxsize=1)
def _get_tokenizer() -> RegexpTokenizer:
    # Letter/digit runs stay whole: ``C0032285`` is one token.
    return RegexpTokenizer(r"\w+")


@lru_cache(maxsize=1)
def _get_stemmer():
    from nltk.stem.porter import PorterStemmer

    return PorterStemmer()


class EnglishAnalyzer:
    """Tokenize, drop possessives, lower-case, filter stopwords, optionally stem."""

    def __init__(self, *, stem: bool = True, stopwords: frozenset[str] = ENGLISH_STOP_WORDS) -> None:
        self._stem = stem
        self._stopwords = stopwords

    @property
    def stems(self) -> bool:
        return self._stem

    def analyze(self, text: str) -> list[str]:
        working = _POSSESSIVE_RE.sub("", text).lower()
        terms: list[str] = []
        for token in _get_tokenizer().tokenize(working):
            if token in self._stopwords:
                continue
            if self._stem:
                token = _get_stemmer().stem(token)
            terms.append(token)
        return terms


def non_stemming_analyzer() -> EnglishAnalyzer:
    """Analyzer for names and vocabulary codes: no stemming, no stopwords."""

    return EnglishAnalyzer(stem=False, stopwords=frozenset())


def syntax_analyzer() -> EnglishAnalyzer:
    """Stopword-filtering analyzer without stemming, for query-syntax text."""

    return EnglishAnalyzer(stem=False)


def escape_query(text: str, analyzer: Analyzer | None = None) -> str:
    """Reduce free query text to its space-joined analyzed terms.

    Boolean operators, ``field:`` prefixes and punctuation are dropped, so the
    result can be passed to a query parser without syntax errors.
    """

    analyzer = analyzer or syntax_analyzer()
    return " ".join(analyzer.analyze(_QUERY_SYNTAX_RE.sub(" ", text)))
